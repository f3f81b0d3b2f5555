# localpv

The decision-making core of a dynamic local persistent volume provisioner,
as a plain Python library. It covers:

- `localpv.env`: reading the provisioner's environment (namespace, helper
  image, base path, service account, image pull secrets);
- `localpv.config`: turning StorageClass `cas.openebs.io/config` entries
  (as `Config` objects or their YAML text) into a `VolumeConfig`, and
  answering questions about it: storage type, filesystem type, block device
  selectors, node affinity label keys, the volume's host path, and whether
  XFS or ext4 project quotas are enabled;
- `localpv.helper_hostpath`: helper-pod options for host path volumes:
  validating them, turning quota grace percentages into kilobyte limits,
  splitting a volume path into its parent and volume directory, and building
  the quota shell command;
- `localpv.provisioner`: validating a claim's data source and reading the
  leader-election setting;
- `localpv.deployment`: building Deployment objects (plain dicts in the
  Kubernetes JSON shape) and working out their rollout status;
- `localpv.deployment_client`: a small Deployment client, `Kubeclient`, that
  runs its calls through a clientset object or functions you supply.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Examples

Reading the volume configuration:

```python
from localpv.config import Config, VolumeConfig

configs = [
    Config(name="StorageType", value="hostpath"),
    Config(name="BasePath", value="/var/openebs/local"),
    Config(name="XFSQuota", enabled="true",
           data={"softLimitGrace": "20%", "hardLimitGrace": "50%"}),
]
vc = VolumeConfig.from_configs("pvc-123", "data-claim", "local-hostpath", configs)

vc.storage_type            # "hostpath" (a property)
vc.path()                  # "/var/openebs/local/pvc-123"
vc.is_xfs_quota_enabled()  # True
vc.data_field("XFSQuota", "softLimitGrace")  # "20%"
```

`from_configs` also accepts the YAML text of the annotation. An invalid
configuration, or a path that would sit directly under `/`, raises
`ConfigError`.

Converting quota grace percentages:

```python
from localpv.helper_hostpath import convert_to_k

convert_to_k("0%", 5000)        # "5k"
convert_to_k("200%", 5000000)   # "9766k" (percentages are capped at 100)
convert_to_k("", 5000)          # "0k"
```

Image pull secrets given as a comma separated list:

```python
from localpv.config import get_image_pull_secrets

get_image_pull_secrets(" docker-secret, image-pull-secret ")
# [{"name": "docker-secret"}, {"name": "image-pull-secret"}]
```

Rejecting claims that ask for a data source:

```python
from localpv.provisioner import DataSource, validate_volume_source

validate_volume_source("my-claim", None)   # accepted
validate_volume_source("my-claim", DataSource(kind="PersistentVolumeClaim", name="src"))
# raises VolumeSourceError: clone feature not supported by this provisioner
```

Building a Deployment and checking how its rollout is going:

```python
from localpv.deployment import Builder, Deploy

obj = (
    Builder()
    .with_name("helper")
    .with_namespace("openebs")
    .with_labels({"app": "helper"})
    .with_replicas(3)
    .build()
)
Deploy(obj).rollout_status()
# RolloutOutput(is_rolledout=False,
#               message="replica update in-progress: 0 of 3 new replicas were updated")
```

If a `with_*` call is given an invalid value, `build()` raises
`localpv.deployment.BuildError`. `Deploy.rollout_status_raw()` gives the
same result as compact JSON bytes.

## Environment

| Variable | Meaning | Default |
| --- | --- | --- |
| `OPENEBS_NAMESPACE` | namespace the provisioner works in | none |
| `OPENEBS_IO_HELPER_IMAGE` | image used by the helper pods | `openebs/linux-utils:latest` |
| `OPENEBS_IO_BASE_PATH` | default base path for host path volumes | `/var/openebs/local` |
| `OPENEBS_SERVICE_ACCOUNT` | service account for the helper pods | none |
| `OPENEBS_IO_IMAGE_PULL_SECRETS` | comma separated pull secrets | none |
| `LEADER_ELECTION_ENABLED` | `n`, `no` or `false` turns leader election off | on |

A variable that holds only whitespace counts as unset.

## What this package does not do

It is a library, not a running provisioner. It has no command to start,
does not watch claims, and does not launch helper pods or create volumes
itself. It ships no Kubernetes API client: `Kubeclient` needs a clientset
object offering `get`, `list`, `create`, `update`, `delete` and `patch`
(each taking the namespace first), or replacement functions passed to its
constructor; without one, its calls raise `DeploymentClientError`.