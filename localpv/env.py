"""Environment variables read by the local PV provisioner."""

import os

OPENEBS_NAMESPACE = "OPENEBS_NAMESPACE"
OPENEBS_SERVICE_ACCOUNT = "OPENEBS_SERVICE_ACCOUNT"

# Container image used for the helper pods that manage host paths.
PROVISIONER_HELPER_IMAGE = "OPENEBS_IO_HELPER_IMAGE"
# Default base path on the node under which host-path PVs are created.
PROVISIONER_BASE_PATH = "OPENEBS_IO_BASE_PATH"
# Comma separated image pull secrets for the helper pods.
PROVISIONER_IMAGE_PULL_SECRETS = "OPENEBS_IO_IMAGE_PULL_SECRETS"

DEFAULT_HELPER_IMAGE = "openebs/linux-utils:latest"
DEFAULT_BASE_PATH = "/var/openebs/local"


def get_env(key):
    """Return the value of the variable ``key`` stripped of whitespace, or ""."""
    return os.environ.get(key, "").strip()


def get_env_or_default(key, default):
    """Return the stripped value of ``key``, or ``default`` when it is blank."""
    return get_env(key) or default


def get_openebs_namespace():
    return get_env(OPENEBS_NAMESPACE)


def get_default_helper_image():
    return get_env_or_default(PROVISIONER_HELPER_IMAGE, DEFAULT_HELPER_IMAGE)


def get_default_base_path():
    return get_env_or_default(PROVISIONER_BASE_PATH, DEFAULT_BASE_PATH)


def get_openebs_service_account_name():
    return get_env(OPENEBS_SERVICE_ACCOUNT)


def get_openebs_image_pull_secrets():
    return get_env(PROVISIONER_IMAGE_PULL_SECRETS)