import pytest

from pubtools._dockerhub import config
from pubtools._dockerhub.exceptions import InvalidRunnerSettings


def test_env_config_from_environ():
    env = {
        "HOME": "/home/user",
        "http_proxy": "http://proxy:3128",
        "NO_PROXY": "localhost",
        "UNRELATED": "value",
        "PUBTOOLS_BUILD_ARGS": '{"VERSION": "1.2", "DEBUG": "true"}',
        "DOCKER_CONTENT_TRUST_REPOSITORY_PASSPHRASE": "secret",
    }
    env_config = config.EnvConfig.from_environ(env)

    assert env_config.environ == env
    assert env_config.proxy_build_args == (
        ("http_proxy", "http://proxy:3128"),
        ("NO_PROXY", "localhost"),
    )
    assert env_config.extra_build_args == (("VERSION", "1.2"), ("DEBUG", "true"))
    assert env_config.home_dir == "/home/user"
    assert env_config.trust_passphrase == "secret"
    assert env_config.trust_dir == "/home/user/.docker/trust"
    assert env_config.build_args == [
        "--build-arg",
        "http_proxy=http://proxy:3128",
        "--build-arg",
        "NO_PROXY=localhost",
        "--build-arg",
        "VERSION=1.2",
        "--build-arg",
        "DEBUG=true",
    ]


def test_env_config_snapshot_is_independent(monkeypatch):
    monkeypatch.setenv("https_proxy", "http://proxy:3128")
    env_config = config.EnvConfig.from_environ()
    monkeypatch.setenv("https_proxy", "http://other:8080")

    assert ("https_proxy", "http://proxy:3128") in env_config.proxy_build_args
    assert env_config.environ["https_proxy"] == "http://proxy:3128"


@pytest.mark.parametrize(
    "value",
    ["{not json", "[1, 2]", '"string"', "", '{"A": 1}', '{"A": "1", "B": null}', '{"A": {}}'],
)
def test_env_config_bad_build_args_ignored(value):
    env_config = config.EnvConfig.from_environ(
        {"PUBTOOLS_BUILD_ARGS": value, "ftp_proxy": "ftp://proxy"}
    )

    assert env_config.extra_build_args == ()
    assert env_config.build_args == ["--build-arg", "ftp_proxy=ftp://proxy"]


def test_env_config_repr_hides_secrets():
    env_config = config.EnvConfig.from_environ(
        {"DOCKER_CONTENT_TRUST_REPOSITORY_PASSPHRASE": "secret", "TOKEN": "hidden"}
    )

    assert "secret" not in repr(env_config)
    assert "hidden" not in repr(env_config)


def test_load_runner_settings_defaults():
    settings = config.load_runner_settings()

    assert settings == {
        "content_trust": False,
        "cache": True,
        "sign": False,
        "platforms": ["linux/amd64", "linux/arm64", "linux/s390x", "linux/riscv64"],
        "registry_server": "https://index.docker.io/v1/",
        "notary_server": "https://notary.docker.io",
        "ignore_missing": False,
        "manifest_list_file": None,
    }


def test_load_runner_settings_unknown_excluded():
    settings = config.load_runner_settings(
        {"content_trust": True, "platforms": ["linux/arm/v7"], "other": "value"}
    )

    assert settings["content_trust"] is True
    assert settings["platforms"] == ["linux/arm/v7"]
    assert "other" not in settings


@pytest.mark.parametrize(
    "settings",
    [
        {"platforms": []},
        {"content_trust": "maybe"},
        {"platforms": "linux/amd64"},
    ],
)
def test_load_runner_settings_invalid(settings):
    with pytest.raises(InvalidRunnerSettings, match="Invalid runner settings.*"):
        config.load_runner_settings(settings)
