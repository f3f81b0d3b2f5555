import pytest

from localpv.helper_hostpath import (
    HelperPodError,
    HelperPodOptions,
    convert_to_k,
    quota_command,
    split_volume_path,
)


@pytest.mark.parametrize(
    "limit, pvc_storage, expected",
    [
        ("", 5000000000, "0k"),
        ("0%", 5000, "5k"),
        ("200%", 5000000, "9766k"),
        (".5%", 1000, "1k"),
    ],
)
def test_convert_to_k(limit, pvc_storage, expected):
    assert convert_to_k(limit, pvc_storage) == expected


@pytest.mark.parametrize("limit", ["10", "%", "abc%", "10%%"])
def test_convert_to_k_invalid(limit):
    with pytest.raises(HelperPodError):
        convert_to_k(limit, 10000)


def _valid_options(**overrides):
    values = dict(
        name="pvc-1",
        path="/var/openebs/local/pvc-1",
        node_affinity_labels={"kubernetes.io/hostname": "node-1"},
        service_account_name="openebs-sa",
    )
    values.update(overrides)
    return HelperPodOptions(**values)


def test_validate_accepts_complete_options():
    opts = _valid_options()
    assert opts.validate() is None
    assert opts.name == "pvc-1"


@pytest.mark.parametrize(
    "overrides",
    [
        {"name": ""},
        {"path": ""},
        {"node_affinity_labels": {}},
        {"service_account_name": ""},
    ],
)
def test_validate_rejects_missing_fields(overrides):
    with pytest.raises(HelperPodError):
        _valid_options(**overrides).validate()


def test_validate_limits_defaults_to_pvc_size():
    opts = _valid_options(soft_limit_grace="0k", hard_limit_grace="0k", pvc_storage=5000)
    opts.validate_limits()
    assert (opts.soft_limit_grace, opts.hard_limit_grace) == ("5k", "5k")


def test_validate_limits_one_unset_is_kept():
    opts = _valid_options(soft_limit_grace="0k", hard_limit_grace="10k")
    opts.validate_limits()
    assert (opts.soft_limit_grace, opts.hard_limit_grace) == ("0k", "10k")


def test_validate_limits_accepts_soft_below_hard():
    opts = _valid_options(soft_limit_grace="5k", hard_limit_grace="10k")
    opts.validate_limits()
    assert (opts.soft_limit_grace, opts.hard_limit_grace) == ("5k", "10k")


@pytest.mark.parametrize("soft, hard", [("10k", "9k"), ("9k", "5k")])
def test_validate_limits_rejects_soft_above_hard(soft, hard):
    opts = _valid_options(soft_limit_grace=soft, hard_limit_grace=hard)
    with pytest.raises(HelperPodError):
        opts.validate_limits()


def test_split_volume_path():
    assert split_volume_path("/var/openebs/local/pvc-1") == (
        "/var/openebs/local",
        "pvc-1",
    )


def test_split_volume_path_cleans_trailing_slash():
    assert split_volume_path("/var/openebs/pvc-1/") == ("/var/openebs", "pvc-1")


@pytest.mark.parametrize("path", ["/", "/pvc-1", ""])
def test_split_volume_path_rejects_root(path):
    with pytest.raises(HelperPodError):
        split_volume_path(path)


def test_quota_command_shape():
    cmd = quota_command("pvc-1", "5k", "10k")
    assert cmd[:2] == ["sh", "-c"]
    assert len(cmd) == 3
    script = cmd[2]
    assert script.startswith("FS=`stat -f -c %T /data` ; ")
    assert "project -s -p /data/pvc-1 '$PID /data;" in script
    assert "limit -p bsoft=5k bhard=10k '$PID /data ;" in script
    assert "chattr +P -p $PID /data/pvc-1 ;" in script
    assert "setquota -P $PID 5K 10K 0 0 /data ; " in script
    assert script.endswith("rm -rf /data/pvc-1 ; exit 1; fi")