"""Volume configuration derived from the ``cas.openebs.io/config`` annotation."""

from __future__ import annotations

import posixpath
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

import yaml

KEY_PV_STORAGE_TYPE = "StorageType"
KEY_PV_BASE_PATH = "BasePath"
KEY_PV_FS_TYPE = "FSType"
# Deprecated in favour of KEY_BLOCK_DEVICE_SELECTORS.
KEY_BD_TAG = "BlockDeviceTag"
# Deprecated in favour of KEY_NODE_AFFINITY_LABELS.
KEY_NODE_AFFINITY_LABEL = "NodeAffinityLabel"
KEY_NODE_AFFINITY_LABELS = "NodeAffinityLabels"
KEY_BLOCK_DEVICE_SELECTORS = "BlockDeviceSelectors"
KEY_XFS_QUOTA = "XFSQuota"
KEY_EXT4_QUOTA = "EXT4Quota"
KEY_QUOTA_SOFT_LIMIT = "softLimitGrace"
KEY_QUOTA_HARD_LIMIT = "hardLimitGrace"

CAS_TYPE_KEY = "openebs.io/cas-type"
CAS_CONFIG_KEY = "cas.openebs.io/config"
VALUE_PTP = "value"
ENABLED_PTP = "enabled"

BETA_STORAGE_CLASS_ANNOTATION = "volume.beta.kubernetes.io/storage-class"
K8S_NODE_LABEL_KEY_HOSTNAME = "kubernetes.io/hostname"

_TRUE_STRINGS = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_FALSE_STRINGS = frozenset({"0", "f", "F", "FALSE", "false", "False"})


class ConfigError(ValueError):
    """Raised when a volume configuration is invalid."""


@dataclass
class Config:
    """One entry of a CAS configuration list."""

    name: str
    value: str = ""
    enabled: str = ""
    data: dict[str, str] | None = None
    values: list[str] = field(default_factory=list)


def parse_bool(value):
    """Parse a boolean the way the configuration format spells it."""
    if value in _TRUE_STRINGS:
        return True
    if value in _FALSE_STRINGS:
        return False
    raise ValueError(f"invalid boolean value: {value!r}")


def _scalar_to_str(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _config_from_mapping(entry: Any) -> Config:
    if not isinstance(entry, Mapping):
        raise ConfigError(f"invalid cas config entry: {entry!r}")
    data = entry.get("data")
    if data is not None:
        if not isinstance(data, Mapping):
            raise ConfigError(f"invalid 'data' in cas config entry: {entry!r}")
        data = {str(k): _scalar_to_str(v) for k, v in data.items()}
    items = entry.get("list") or []
    if not isinstance(items, list):
        raise ConfigError(f"invalid 'list' in cas config entry: {entry!r}")
    return Config(
        name=_scalar_to_str(entry.get("name")),
        value=_scalar_to_str(entry.get("value")),
        enabled=_scalar_to_str(entry.get("enabled")),
        data=data,
        values=[_scalar_to_str(item) for item in items],
    )


def _unmarshal_configs(text: str) -> list[Config]:
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"invalid cas config: {exc}") from exc
    if loaded is None:
        return []
    if not isinstance(loaded, list):
        raise ConfigError("invalid cas config: expected a list of entries")
    return [_config_from_mapping(entry) for entry in loaded]


def config_to_map(configs):
    """Map each config name to its ``enabled`` and ``value`` settings."""
    result: dict[str, Any] = {}
    for config in configs:
        name = config.name.strip()
        if not name:
            raise ConfigError(
                f"failed to transform cas config to map: missing config name: {config}"
            )
        result[name] = {ENABLED_PTP: config.enabled, VALUE_PTP: config.value}
    return result


def data_config_to_map(configs):
    """Map each config name to its ``data`` mapping, skipping entries without one."""
    result: dict[str, Any] = {}
    for config in configs:
        if config.data is None:
            continue
        result[config.name.strip()] = dict(config.data)
    return result


def list_config_to_map(configs):
    """Map each config name to its ``list`` values, skipping empty lists."""
    result: dict[str, Any] = {}
    for config in configs:
        if not config.values:
            continue
        result[config.name.strip()] = list(config.values)
    return result


@dataclass
class VolumeConfig:
    """Merged configuration of a PVC and its StorageClass."""

    pv_name: str
    pvc_name: str
    sc_name: str
    options: dict[str, Any] = field(default_factory=dict)
    config_data: dict[str, Any] = field(default_factory=dict)
    config_list: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_configs(cls, pv_name, pvc_name, sc_name, configs):
        """Build from a list of ``Config`` entries or their YAML text."""
        if isinstance(configs, str):
            configs = _unmarshal_configs(configs)
        else:
            configs = list(configs)
        return cls(
            pv_name=pv_name,
            pvc_name=pvc_name,
            sc_name=sc_name,
            options=config_to_map(configs),
            config_data=data_config_to_map(configs),
            config_list=list_config_to_map(configs),
        )

    def _option(self, key: str, prop: str) -> str:
        entry = self.options.get(key)
        if isinstance(entry, dict):
            return entry.get(prop, "")
        return ""

    def _value(self, key: str) -> str:
        return self._option(key, VALUE_PTP)

    def _enabled(self, key: str) -> str:
        return self._option(key, ENABLED_PTP)

    def _data(self, key: str) -> dict[str, str] | None:
        entry = self.config_data.get(key)
        return entry if isinstance(entry, dict) else None

    def _list(self, key: str) -> list[str] | None:
        entry = self.config_list.get(key)
        return entry if isinstance(entry, list) else None

    def _quota_enabled(self, key: str) -> bool:
        try:
            return parse_bool(self._enabled(key).strip())
        except ValueError:
            return False

    @property
    def storage_type(self):
        """Configured StorageType, ``hostpath`` by default."""
        value = self._value(KEY_PV_STORAGE_TYPE)
        return value if value.strip() else "hostpath"

    @property
    def block_device_selectors(self):
        """BlockDeviceSelectors data, or None."""
        return self._data(KEY_BLOCK_DEVICE_SELECTORS)

    @property
    def bd_tag_value(self):
        """Deprecated BlockDeviceTag value, or ""."""
        value = self._value(KEY_BD_TAG)
        return value if value.strip() else ""

    @property
    def fs_type(self):
        """Configured FSType, or "" to let the provisioner decide."""
        value = self._value(KEY_PV_FS_TYPE)
        return value if value.strip() else ""

    @property
    def node_affinity_label_key(self):
        """Deprecated NodeAffinityLabel value, or ""."""
        value = self._value(KEY_NODE_AFFINITY_LABEL)
        return value if value.strip() else ""

    @property
    def node_affinity_label_keys(self):
        """Custom node affinity label keys, or None."""
        return self._list(KEY_NODE_AFFINITY_LABELS)

    def path(self):
        """Return the host path of the volume: the base path joined with the PV name."""
        base_path = self._value(KEY_PV_BASE_PATH)
        if not base_path.strip():
            raise ConfigError("failed to get path: base path is empty")
        rel_path = self.pv_name
        joined = posixpath.normpath(f"{base_path}/{rel_path}")
        if joined == "/" or posixpath.dirname(joined) == "/":
            raise ConfigError(
                f"path should not be a root directory: {base_path}/{rel_path}"
            )
        return joined

    def is_xfs_quota_enabled(self):
        return self._quota_enabled(KEY_XFS_QUOTA)

    def is_ext4_quota_enabled(self):
        return self._quota_enabled(KEY_EXT4_QUOTA)

    def data_field(self, key, data_key):
        """Return one entry of the ``data`` mapping of ``key``, or ""."""
        data = self._data(key)
        if data is None:
            return ""
        return data.get(data_key, "")


def get_storage_class_name(annotations, storage_class_name):
    """StorageClass name of a PVC, preferring the beta annotation."""
    if annotations and BETA_STORAGE_CLASS_ANNOTATION in annotations:
        return annotations[BETA_STORAGE_CLASS_ANNOTATION]
    return storage_class_name


def get_local_pv_type(labels):
    """Local PV type recorded in the labels of a PV, or ""."""
    return (labels or {}).get(CAS_TYPE_KEY, "")


def get_node_hostname(labels):
    """Hostname label of a node, or ""."""
    return (labels or {}).get(K8S_NODE_LABEL_KEY_HOSTNAME, "")


def get_node_label_value(labels, label_key):
    """Value of ``label_key`` among the labels of a node, or ""."""
    return (labels or {}).get(label_key, "")


def get_image_pull_secrets(value):
    """Parse comma separated secret names into object references."""
    value = value.strip()
    if not value:
        return []
    return [{"name": item.strip()} for item in value.split(",") if item]