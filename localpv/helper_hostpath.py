"""Options and commands for the helper pods that manage volume host paths."""

from __future__ import annotations

import math
import posixpath
import re
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

# Number of one-second polls to wait for a helper pod to finish.
CMD_TIMEOUT_COUNTS = 120

# Mount point of the volume's parent directory inside a helper pod.
DATA_MOUNT = "/data/"

_LIMIT_VALUE = re.compile(r"\d*\.?\d*")


class HelperPodError(ValueError):
    """Raised when the options for a helper pod are invalid."""


def _format_k(value: float) -> str:
    """Format a whole number of kilobytes without exponent or fraction."""
    text = format(Decimal(repr(float(value))).normalize(), "f")
    return text + "k"


def convert_to_k(limit, pvc_storage):
    """Convert a percentage grace ``limit`` over ``pvc_storage`` bytes to kilobytes.

    An empty limit means no grace and gives "0k". Percentages above 100 are
    capped at 100. The result is rounded up to a whole kilobyte.
    """
    if not limit:
        return "0k"

    value_string = _LIMIT_VALUE.match(limit).group(0)
    if limit != value_string + "%":
        raise HelperPodError("invalid format for limit grace")

    try:
        value = float(value_string)
    except ValueError:
        raise HelperPodError("invalid format, cannot parse") from None

    value = min(value, 100.0)
    value *= float(pvc_storage)
    value /= 100
    value += float(pvc_storage)
    value /= 1024
    return _format_k(math.ceil(value))


def split_volume_path(path):
    """Split a volume path into its parent directory and volume directory.

    The volume directory must not sit directly under the root directory.
    """
    cleaned = posixpath.normpath(path) if path else ""
    if cleaned.startswith("//"):
        cleaned = "/" + cleaned.lstrip("/")
    parent, volume_dir = posixpath.split(cleaned)
    if not cleaned or cleaned in ("/", ".") or parent in ("/", "") or not volume_dir:
        raise HelperPodError(
            f"volume directory {{{path}}} should not be under root directory"
        )
    return parent, volume_dir


def _data_path(volume_dir: str) -> str:
    return posixpath.normpath(DATA_MOUNT + volume_dir)


def quota_command(volume_dir, soft_limit, hard_limit):
    """Shell command that applies an XFS or ext4 project quota to a volume."""
    target = _data_path(volume_dir)
    fs = "FS=`stat -f -c %T /data` ; "
    check_quota = (
        'if [[ "$FS" == "xfs" ]]; then '
        "  PID=`xfs_quota -x -c 'report -h' /data | tail -2 | "
        "awk 'NR==1{print substr ($1,2)}+0'` ;"
        "  PID=`expr $PID + 1` ;"
        "  xfs_quota -x -c 'project -s -p " + target + " '$PID /data;"
        "  xfs_quota -x -c 'limit -p bsoft=" + soft_limit
        + " bhard=" + hard_limit + " '$PID /data ;"
        'elif [[ "$FS" == "ext2/ext3" ]]; then'
        "  PID=`repquota -P /data | tail -3 | "
        "awk 'NR==1{print substr ($1,2)}+0'` ;"
        "  PID=`expr $PID + 1` ;"
        "  chattr +P -p $PID " + target + " ;"
        "  setquota -P $PID " + soft_limit.upper() + " " + hard_limit.upper()
        + " 0 0 /data ; "
        "else "
        "  rm -rf " + target + " ; exit 1; fi"
    )
    return ["sh", "-c", fs + check_quota]


@dataclass
class HelperPodOptions:
    """Options for a helper pod that runs a command on a volume host path."""

    name: str = ""
    path: str = ""
    node_affinity_labels: dict[str, str] = field(default_factory=dict)
    service_account_name: str = ""
    cmds_for_path: list[str] = field(default_factory=list)
    selected_node_taints: list[Any] = field(default_factory=list)
    image_pull_secrets: list[dict[str, str]] = field(default_factory=list)
    soft_limit_grace: str = ""
    hard_limit_grace: str = ""
    pvc_storage: int = 0

    def validate(self):
        """Check that the fields needed to launch a helper pod are set."""
        if (
            not self.name
            or not self.path
            or not self.node_affinity_labels
            or not self.service_account_name
        ):
            raise HelperPodError(
                "invalid empty name or hostpath or hostname or service account name"
            )

    def validate_limits(self):
        """Check the quota limits, defaulting both to the PVC size when unset."""
        soft, hard = self.soft_limit_grace, self.hard_limit_grace
        if soft == "0k" and hard == "0k":
            size = _format_k(math.ceil(float(self.pvc_storage) / 1024))
            self.soft_limit_grace = self.hard_limit_grace = size
            return
        if soft == "0k" or hard == "0k":
            return
        if len(soft) > len(hard) or (len(soft) == len(hard) and soft > hard):
            raise HelperPodError("hard limit cannot be smaller than soft limit")