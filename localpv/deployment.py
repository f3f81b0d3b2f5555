"""Builder and rollout status checks for Kubernetes deployment objects.

Deployments are plain mappings in the Kubernetes JSON shape, with
``metadata``, ``spec`` and ``status`` sections and camel-case keys.
"""

from __future__ import annotations

import copy
import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Iterable, Mapping

import yaml

Predicate = Callable[["Deploy"], bool]


class PredicateName(str, Enum):
    """Names of the rollout checks; each also keys its status message."""

    PROGRESS_DEADLINE_EXCEEDED = "ProgressDeadlineExceeded"
    NOT_SPEC_SYNCED = "NotSpecSynced"
    OLDER_REPLICA_ACTIVE = "OlderReplicaActive"
    TERMINATION_IN_PROGRESS = "TerminationInProgress"
    UPDATE_IN_PROGRESS = "UpdateInProgress"


class BuildError(ValueError):
    """Raised when a deployment cannot be built from the given settings."""


@dataclass
class RolloutOutput:
    """Rollout status of a deployment: whether it is rolled out, and why not."""

    is_rolledout: bool
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {"isRolledout": self.is_rolledout, "message": self.message}


def _encode_json(output: RolloutOutput) -> bytes:
    return json.dumps(output.to_dict(), separators=(",", ":")).encode()


@dataclass
class Rollout:
    """Renders a rollout output in a raw byte form."""

    output: RolloutOutput | None = None
    encoder: Callable[[RolloutOutput], bytes] = _encode_json

    def raw(self):
        """Return the output encoded as compact JSON bytes."""
        if self.output is None:
            raise ValueError("unable to get rollout status output")
        return self.encoder(self.output)


def _section(obj: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    value = obj.get(name)
    return value if isinstance(value, Mapping) else {}


class Deploy:
    """A deployment object together with the checks on its rollout."""

    def __init__(self, obj: dict[str, Any] | None = None):
        self.object: dict[str, Any] = {} if obj is None else obj

    def __str__(self) -> str:
        return yaml.safe_dump({"deployment": self.object}, sort_keys=False)

    __repr__ = __str__

    @property
    def _metadata(self) -> Mapping[str, Any]:
        return _section(self.object, "metadata")

    @property
    def _spec(self) -> Mapping[str, Any]:
        return _section(self.object, "spec")

    @property
    def _status(self) -> Mapping[str, Any]:
        return _section(self.object, "status")

    def _status_count(self, key: str) -> int:
        return int(self._status.get(key) or 0)

    @property
    def _spec_replicas(self) -> int | None:
        return self._spec.get("replicas")

    def is_progress_deadline_exceeded(self):
        """True if the Progressing condition reports an exceeded deadline."""
        return any(
            cond.get("type") == "Progressing"
            and cond.get("reason") == "ProgressDeadlineExceeded"
            for cond in self._status.get("conditions") or []
        )

    def is_older_replica_active(self):
        """True while fewer replicas are updated than the spec asks for."""
        replicas = self._spec_replicas
        return replicas is not None and self._status_count("updatedReplicas") < replicas

    def is_termination_in_progress(self):
        """True while old replicas still wait to be terminated."""
        return self._status_count("replicas") > self._status_count("updatedReplicas")

    def is_update_in_progress(self):
        """True while some updated replicas are not yet available."""
        return self._status_count("availableReplicas") < self._status_count(
            "updatedReplicas"
        )

    def is_not_sync_spec(self):
        """True while the controller has not yet observed the latest spec."""
        generation = int(self._metadata.get("generation") or 0)
        return generation > self._status_count("observedGeneration")

    def is_rollout(self):
        """Return ``(failed_check, False)`` for the first failing check, else ``(None, True)``."""
        for name, check in _ROLLOUT_CHECKS.items():
            if check(self):
                return name, False
        return None, True

    def failed_rollout(self, name):
        """Rollout output describing the failing check ``name``."""
        return RolloutOutput(
            is_rolledout=False, message=_ROLLOUT_STATUSES[PredicateName(name)](self)
        )

    def success_rollout(self):
        return RolloutOutput(
            is_rolledout=True, message="deployment successfully rolled out"
        )

    def rollout_status(self):
        """Rollout output of this deployment."""
        name, ok = self.is_rollout()
        if ok:
            return self.success_rollout()
        return self.failed_rollout(name)

    def rollout_status_raw(self):
        """Rollout output of this deployment as JSON bytes."""
        return Rollout(output=self.rollout_status()).raw()

    def verify_replica_status(self):
        """Raise ValueError unless every replica of the deployment is ready."""
        replicas = self._spec_replicas
        if replicas is None:
            raise ValueError(
                "failed to verify replica status for deployment: nil replicas"
            )
        ready = self._status_count("readyReplicas")
        if ready != replicas:
            raise ValueError(
                f"{self._metadata.get('name', '')} deployment pods are not in "
                f"running state expected: {replicas} got: {ready}"
            )


def _older_replica_message(d: Deploy) -> str:
    replicas = d._spec_replicas
    if replicas is None:
        return "replica update in-progress: some older replicas were updated"
    return (
        f"replica update in-progress: {d._status_count('updatedReplicas')} "
        f"of {replicas} new replicas were updated"
    )


_ROLLOUT_STATUSES: dict[PredicateName, Callable[[Deploy], str]] = {
    PredicateName.PROGRESS_DEADLINE_EXCEEDED: lambda d: (
        "deployment exceeded its progress deadline"
    ),
    PredicateName.OLDER_REPLICA_ACTIVE: _older_replica_message,
    PredicateName.TERMINATION_IN_PROGRESS: lambda d: (
        "replica termination in-progress: "
        f"{d._status_count('replicas') - d._status_count('updatedReplicas')} "
        "old replicas are pending termination"
    ),
    PredicateName.UPDATE_IN_PROGRESS: lambda d: (
        f"replica update in-progress: {d._status_count('availableReplicas')} "
        f"of {d._status_count('updatedReplicas')} updated replicas are available"
    ),
    PredicateName.NOT_SPEC_SYNCED: lambda d: (
        "deployment rollout in-progress: waiting for deployment spec update"
    ),
}

_ROLLOUT_CHECKS: dict[PredicateName, Predicate] = {
    PredicateName.PROGRESS_DEADLINE_EXCEEDED: Deploy.is_progress_deadline_exceeded,
    PredicateName.OLDER_REPLICA_ACTIVE: Deploy.is_older_replica_active,
    PredicateName.TERMINATION_IN_PROGRESS: Deploy.is_termination_in_progress,
    PredicateName.UPDATE_IN_PROGRESS: Deploy.is_update_in_progress,
    PredicateName.NOT_SPEC_SYNCED: Deploy.is_not_sync_spec,
}


class Builder:
    """Builds a deployment object, collecting errors until ``build``."""

    def __init__(self, deployment: Deploy | None = None):
        self.deployment = Deploy() if deployment is None else deployment
        self.checks: list[Predicate] = []
        self.errors: list[str] = []

    @property
    def _metadata(self) -> dict[str, Any]:
        return self.deployment.object.setdefault("metadata", {})

    @property
    def _spec(self) -> dict[str, Any]:
        return self.deployment.object.setdefault("spec", {})

    @property
    def _pod_spec(self) -> dict[str, Any]:
        return self._spec.setdefault("template", {}).setdefault("spec", {})

    def _fail(self, message: str) -> "Builder":
        self.errors.append(message)
        return self

    def with_name(self, name):
        if not name:
            return self._fail("failed to build deployment: missing name")
        self._metadata["name"] = name
        return self

    def with_namespace(self, namespace):
        if not namespace:
            return self._fail("failed to build deployment: missing namespace")
        self._metadata["namespace"] = namespace
        return self

    def with_annotations(self, annotations):
        """Merge ``annotations`` into the existing ones."""
        if not annotations:
            return self._fail("failed to build deployment object: missing annotations")
        if self._metadata.get("annotations") is None:
            return self.with_annotations_new(annotations)
        self._metadata["annotations"].update(annotations)
        return self

    def with_annotations_new(self, annotations):
        """Replace any existing annotations with ``annotations``."""
        if not annotations:
            return self._fail("failed to build deployment object: no new annotations")
        self._metadata["annotations"] = dict(annotations)
        return self

    def with_node_selector(self, selector):
        """Merge ``selector`` into the pod template's node selector."""
        if not selector:
            return self._fail("failed to build deployment object: no node selector")
        if self._pod_spec.get("nodeSelector") is None:
            return self.with_node_selector_new(selector)
        self._pod_spec["nodeSelector"].update(selector)
        return self

    def with_node_selector_new(self, selector):
        """Replace the pod template's node selector with ``selector``."""
        if not selector:
            return self._fail(
                "failed to build deployment object: no new node selector"
            )
        self._pod_spec["nodeSelector"] = dict(selector)
        return self

    def with_owner_reference_new(self, owner_references):
        if not owner_references:
            return self._fail(
                "failed to build deployment object: no new ownerRefernce"
            )
        self._metadata["ownerReferences"] = list(owner_references)
        return self

    def with_labels(self, labels):
        """Merge ``labels`` into the existing ones."""
        if not labels:
            return self._fail("failed to build deployment object: missing labels")
        if self._metadata.get("labels") is None:
            return self.with_labels_new(labels)
        self._metadata["labels"].update(labels)
        return self

    def with_labels_new(self, labels):
        """Replace any existing labels with ``labels``."""
        if not labels:
            return self._fail("failed to build deployment object: no new labels")
        self._metadata["labels"] = dict(labels)
        return self

    def with_selector_match_labels(self, match_labels):
        """Merge ``match_labels`` into the selector's match labels."""
        if not match_labels:
            return self._fail(
                "failed to build deployment object: missing matchlabels"
            )
        selector = self._spec.get("selector")
        if selector is None:
            return self.with_selector_match_labels_new(match_labels)
        selector.setdefault("matchLabels", {}).update(match_labels)
        return self

    def with_selector_match_labels_new(self, match_labels):
        """Replace the selector with one matching ``match_labels``."""
        if not match_labels:
            return self._fail(
                "failed to build deployment object: no new matchlabels"
            )
        self._spec["selector"] = {"matchLabels": dict(match_labels)}
        return self

    def with_replicas(self, replicas):
        if replicas is None:
            return self._fail("failed to build deployment object: nil replicas")
        if replicas < 0:
            return self._fail(
                f"failed to build deployment object: invalid replicas {{{replicas}}}"
            )
        self._spec["replicas"] = replicas
        return self

    def with_strategy_type(self, strategy_type):
        if not strategy_type:
            return self._fail(
                "failed to build deployment object: missing strategytype"
            )
        self._spec.setdefault("strategy", {})["type"] = strategy_type
        return self

    def with_pod_template_spec(self, template):
        """Set the pod template from a mapping or from a builder with ``build()``."""
        if template is None:
            return self._fail("failed to build deployment: nil templatespecbuilder")
        build = getattr(template, "build", None)
        if callable(build):
            try:
                template = build()
            except Exception as exc:  # noqa: BLE001 - recorded as a build error
                return self._fail(f"failed to build deployment: {exc}")
        if not isinstance(template, Mapping):
            return self._fail("failed to build deployment: invalid pod template spec")
        self._spec["template"] = copy.deepcopy(dict(template))
        return self

    def add_check(self, predicate):
        self.checks.append(predicate)
        return self

    def add_checks(self, predicates: Iterable[Predicate]):
        for predicate in predicates:
            self.add_check(predicate)
        return self

    def build(self):
        """Return the deployment object, or raise BuildError if any step failed."""
        if self.errors:
            name = self.deployment.object.get("metadata", {}).get("name", "")
            raise BuildError(
                f"failed to build a deployment: {name}: failed to validate: "
                f"build errors were found: {self.errors}"
            )
        return self.deployment.object