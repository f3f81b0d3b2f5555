import pytest

from localpv import env

CASES = [
    ("", None),
    ("value1", "value1"),
    (" ", None),
]


def _set(monkeypatch, key, value):
    monkeypatch.delenv(key, raising=False)
    if value:
        monkeypatch.setenv(key, value)


@pytest.mark.parametrize("value,expected", CASES)
def test_get_openebs_namespace(monkeypatch, value, expected):
    _set(monkeypatch, env.OPENEBS_NAMESPACE, value)
    assert env.get_openebs_namespace() == (expected or "")


@pytest.mark.parametrize("value,expected", CASES)
def test_get_default_helper_image(monkeypatch, value, expected):
    _set(monkeypatch, env.PROVISIONER_HELPER_IMAGE, value)
    assert env.get_default_helper_image() == (expected or env.DEFAULT_HELPER_IMAGE)


def test_default_helper_image_value(monkeypatch):
    monkeypatch.delenv(env.PROVISIONER_HELPER_IMAGE, raising=False)
    assert env.get_default_helper_image() == "openebs/linux-utils:latest"


@pytest.mark.parametrize("value,expected", CASES)
def test_get_default_base_path(monkeypatch, value, expected):
    _set(monkeypatch, env.PROVISIONER_BASE_PATH, value)
    assert env.get_default_base_path() == (expected or env.DEFAULT_BASE_PATH)


def test_default_base_path_value(monkeypatch):
    monkeypatch.delenv(env.PROVISIONER_BASE_PATH, raising=False)
    assert env.get_default_base_path() == "/var/openebs/local"


@pytest.mark.parametrize("value,expected", CASES)
def test_get_openebs_service_account_name(monkeypatch, value, expected):
    _set(monkeypatch, env.OPENEBS_SERVICE_ACCOUNT, value)
    assert env.get_openebs_service_account_name() == (expected or "")


@pytest.mark.parametrize(
    "value,expected",
    [
        ("", ""),
        ("image-pull-secret", "image-pull-secret"),
        ("image-pull-secret,secret-1", "image-pull-secret,secret-1"),
        (" ", ""),
    ],
)
def test_get_openebs_image_pull_secrets(monkeypatch, value, expected):
    _set(monkeypatch, env.PROVISIONER_IMAGE_PULL_SECRETS, value)
    assert env.get_openebs_image_pull_secrets() == expected


def test_get_env_strips(monkeypatch):
    monkeypatch.setenv("LOCALPV_TEST_KEY", "  padded  ")
    assert env.get_env("LOCALPV_TEST_KEY") == "padded"


def test_get_env_or_default_missing(monkeypatch):
    monkeypatch.delenv("LOCALPV_TEST_KEY", raising=False)
    assert env.get_env_or_default("LOCALPV_TEST_KEY", "fallback") == "fallback"