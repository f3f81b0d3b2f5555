"""Request validation and start-up settings of the local PV provisioner."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping

logger = logging.getLogger(__name__)

PING = "ping"
# Application name used for volume events.
DEFAULT_CAS_TYPE = "localpv"
DEFAULT_UNKNOWN_REPLICA_COUNT = "replica:1"

SNAPSHOT_KIND = "VolumeSnapshot"
PVC_KIND = "PersistentVolumeClaim"
SNAPSHOT_API_GROUP = "snapshot.storage.k8s.io"

CMD_NAME = "provisioner"
PROVISIONER_NAME = "openebs.io/local"
# Environment variable that switches leader election on or off.
LEADER_ELECTION_KEY = "LEADER_ELECTION_ENABLED"

_ENABLED_WORDS = frozenset({"y", "yes", "true"})
_DISABLED_WORDS = frozenset({"n", "no", "false"})


class VolumeSourceError(ValueError):
    """Raised when a PVC asks for a data source this provisioner cannot handle."""


@dataclass(frozen=True)
class DataSource:
    """The ``dataSource`` reference of a PVC."""

    kind: str = ""
    name: str = ""
    api_group: str | None = None


def validate_volume_source(pvc_name, data_source):
    """Reject PVCs that are clones, snapshot restores or populated volumes.

    ``data_source`` is None when the PVC has no data source, which is valid.
    """
    if data_source is None:
        return
    if not data_source.name:
        raise VolumeSourceError(f"dataSource name not found for PVC `{pvc_name}`")

    api_group = data_source.api_group or ""
    if data_source.kind == SNAPSHOT_KIND:
        if api_group != SNAPSHOT_API_GROUP:
            raise VolumeSourceError(
                "snapshot feature not supported by this provisioner"
            )
        raise VolumeSourceError(
            f"datasource `{data_source.kind}` of group `{api_group}` "
            "is not handled by the provisioner"
        )
    if data_source.kind == PVC_KIND:
        raise VolumeSourceError("clone feature not supported by this provisioner")
    raise VolumeSourceError(
        f"datasource `{data_source.kind}` of group `{api_group}` "
        "is not handled by the provisioner"
    )


def is_leader_election_enabled(environ=None):
    """Whether leader election is on, as set by LEADER_ELECTION_ENABLED.

    Leader election is enabled unless the variable says n, no or false.
    """
    env: Mapping[str, str] = os.environ if environ is None else environ
    setting = env.get(LEADER_ELECTION_KEY, "").lower()
    if setting in _DISABLED_WORDS:
        logger.info(
            "Leader election disabled for localpv-provisioner via leaderElectionKey"
        )
        return False
    if setting in _ENABLED_WORDS:
        logger.info(
            "Leader election enabled for localpv-provisioner via leaderElectionKey"
        )
        return True
    logger.info("Leader election enabled for localpv-provisioner")
    return True