"""Client for deployment operations against a Kubernetes cluster.

The cluster is reached through a clientset object that offers the
deployment calls ``get``, ``list``, ``create``, ``update``, ``delete`` and
``patch``, each taking the namespace first. Every step can be replaced
by passing a callable, which keeps the client easy to test.
"""

from __future__ import annotations

import json
from typing import Any, Callable, Protocol

from .deployment import Deploy, RolloutOutput


class DeploymentClientError(RuntimeError):
    """Raised when a deployment operation cannot be carried out."""


class DeploymentAPI(Protocol):
    """Deployment calls a clientset must offer."""

    def get(self, namespace: str, name: str, options: Any) -> dict: ...

    def list(self, namespace: str, options: Any) -> dict: ...

    def create(self, namespace: str, deployment: dict) -> dict: ...

    def update(self, namespace: str, deployment: dict) -> dict: ...

    def delete(self, namespace: str, name: str, options: Any) -> None: ...

    def patch(
        self, namespace: str, name: str, patch_type: str, data: bytes, *subresources: str
    ) -> dict: ...


def _default_get_clientset() -> DeploymentAPI:
    raise DeploymentClientError(
        "unable to get kubernetes clientset: no clientset configured"
    )


def _default_get_clientset_for_path(path: str) -> DeploymentAPI:
    raise DeploymentClientError(
        f"unable to get kubernetes clientset for kubeconfig {{{path}}}: "
        "no clientset configured"
    )


def _default_get(cli, name, namespace, options):
    return cli.get(namespace, name, options)


def _default_list(cli, namespace, options):
    return cli.list(namespace, options)


def _default_create(cli, namespace, deployment):
    return cli.create(namespace, deployment)


def _default_update(cli, namespace, deployment):
    return cli.update(namespace, deployment)


def _default_delete(cli, namespace, name, options):
    return cli.delete(namespace, name, options)


def _default_patch(cli, name, namespace, patch_type, data, *subresources):
    return cli.patch(namespace, name, patch_type, data, *subresources)


def _default_rollout_status(deployment: dict) -> RolloutOutput:
    return Deploy(deployment).rollout_status()


def _default_rollout_status_raw(deployment: dict) -> bytes:
    return Deploy(deployment).rollout_status_raw()


class Kubeclient:
    """Performs deployment operations in one namespace."""

    def __init__(
        self,
        clientset: DeploymentAPI | None = None,
        namespace: str = "",
        kubeconfig_path: str = "",
        *,
        get_clientset: Callable[[], DeploymentAPI] | None = None,
        get_clientset_for_path: Callable[[str], DeploymentAPI] | None = None,
        get: Callable[..., dict] | None = None,
        list_fn: Callable[..., dict] | None = None,
        create: Callable[..., dict] | None = None,
        update: Callable[..., dict] | None = None,
        delete: Callable[..., None] | None = None,
        patch: Callable[..., dict] | None = None,
        rollout_status: Callable[[dict], RolloutOutput] | None = None,
        rollout_status_raw: Callable[[dict], bytes] | None = None,
    ):
        self.clientset = clientset
        self.namespace = namespace
        self.kubeconfig_path = kubeconfig_path
        self._get_clientset = get_clientset or _default_get_clientset
        self._get_clientset_for_path = (
            get_clientset_for_path or _default_get_clientset_for_path
        )
        self._get = get or _default_get
        self._list = list_fn or _default_list
        self._create = create or _default_create
        self._update = update or _default_update
        self._delete = delete or _default_delete
        self._patch = patch or _default_patch
        self._rollout_status = rollout_status or _default_rollout_status
        self._rollout_status_raw = rollout_status_raw or _default_rollout_status_raw

    def with_namespace(self, namespace):
        """Set the namespace the client works in and return the client."""
        self.namespace = namespace
        return self

    def _client_for_path_or_direct(self) -> DeploymentAPI:
        if self.kubeconfig_path:
            return self._get_clientset_for_path(self.kubeconfig_path)
        return self._get_clientset()

    def _client(self) -> DeploymentAPI:
        """Return the cached clientset, fetching it on first use."""
        if self.clientset is None:
            self.clientset = self._client_for_path_or_direct()
        return self.clientset

    def get(self, name):
        """Return the deployment called ``name``."""
        cli = self._client()
        return self._get(cli, name, self.namespace, {})

    def list(self, options):
        """Return the deployments matching ``options``."""
        cli = self._client()
        return self._list(cli, self.namespace, options)

    def patch(self, name, patch_type, data, *args):
        """Patch the deployment called ``name``; ``args`` name subresources."""
        cli = self._client()
        return self._patch(cli, name, self.namespace, patch_type, data, *args)

    def get_raw(self, name):
        """Return the deployment called ``name`` as JSON bytes."""
        cli = self._client()
        deployment = self._get(cli, name, self.namespace, {})
        return json.dumps(deployment, separators=(",", ":")).encode()

    def delete(self, name, options):
        """Delete the deployment called ``name``."""
        if not name or not name.strip():
            raise DeploymentClientError(
                "failed to delete deployment: missing deployment name"
            )
        try:
            cli = self._client()
        except Exception as exc:
            raise DeploymentClientError(
                f"failed to delete deployment {{{name}}}: {exc}"
            ) from exc
        return self._delete(cli, self.namespace, name, options)

    def create(self, deployment):
        """Create ``deployment`` in the client's namespace."""
        if deployment is None:
            raise DeploymentClientError(
                "failed to create deployment: nil deployment object"
            )
        try:
            cli = self._client()
        except Exception as exc:
            meta = deployment.get("metadata") or {}
            raise DeploymentClientError(
                f"failed to create deployment {{{meta.get('name', '')}}} in "
                f"namespace {{{meta.get('namespace', '')}}}: {exc}"
            ) from exc
        return self._create(cli, self.namespace, deployment)

    def update(self, deployment):
        """Update ``deployment`` in the client's namespace."""
        if deployment is None:
            raise DeploymentClientError(
                "failed to update deployment: nil deployment object"
            )
        try:
            cli = self._client()
        except Exception as exc:
            meta = deployment.get("metadata") or {}
            raise DeploymentClientError(
                f"failed to update deployment {{{meta.get('name', '')}}} in "
                f"namespace {{{meta.get('namespace', '')}}}: {exc}"
            ) from exc
        return self._update(cli, self.namespace, deployment)

    def rollout_status(self, name):
        """Return the rollout status of the deployment called ``name``."""
        cli = self._client()
        deployment = self._get(cli, name, self.namespace, {})
        return self._rollout_status(deployment)

    def rollout_status_raw(self, name):
        """Return the rollout status of ``name`` as JSON bytes."""
        cli = self._client()
        deployment = self._get(cli, name, self.namespace, {})
        return self._rollout_status_raw(deployment)