"""Configuration, helper-pod and deployment-rollout logic for a dynamic local PV provisioner."""

__version__ = "0.1.0"