import logging

import pytest

from pubtools._dockerhub.utils import misc
from .utils.misc import compare_logs


@pytest.mark.parametrize(
    "image,expected",
    [
        ("example/app:1.0", ("docker.io", "example/app", "1.0")),
        ("example/app", ("docker.io", "example/app", "latest")),
        ("alpine:3.19", ("docker.io", "library/alpine", "3.19")),
        ("docker.io/example/app:1.0-amd64", ("docker.io", "example/app", "1.0-amd64")),
        ("registry.com:5000/ns/app:2", ("registry.com:5000", "ns/app", "2")),
        ("localhost/app", ("localhost", "app", "latest")),
        (
            "quay.io/ns/app@sha256:1234abcd",
            ("quay.io", "ns/app", "sha256:1234abcd"),
        ),
    ],
)
def test_parse_image_reference(image, expected):
    assert misc.parse_image_reference(image) == expected


@pytest.mark.parametrize("image", ["", "/app", "example/app/", "registry.com/:tag"])
def test_parse_image_reference_invalid(image):
    with pytest.raises(ValueError, match="Invalid image reference.*"):
        misc.parse_image_reference(image)


def test_registry_api_host():
    assert misc.registry_api_host("docker.io") == "registry-1.docker.io"
    assert misc.registry_api_host("index.docker.io") == "registry-1.docker.io"
    assert misc.registry_api_host("quay.io") == "quay.io"


def test_log_step(caplog):
    caplog.set_level(logging.INFO)

    @misc.log_step("Some step")
    def step(value):
        return value * 2

    assert step(2) == 4
    compare_logs(caplog, ["Some step: Started", "Some step: Finished"])
    records = [r for r in caplog.records if r.name == "pubtools.dockerhub"]
    assert records[0].event == {"type": "some-step-start"}
    assert records[1].event == {"type": "some-step-end"}


def test_log_step_failure(caplog):
    caplog.set_level(logging.INFO)

    @misc.log_step("Failing step")
    def step():
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError, match="boom"):
        step()
    compare_logs(caplog, ["Failing step: Started", "Failing step: Failed"])
    records = [r for r in caplog.records if r.name == "pubtools.dockerhub"]
    assert records[1].event == {"type": "failing-step-error"}


def test_setup_arg_parser_and_env_variables(monkeypatch):
    args = {
        ("--name",): {"help": "Name.", "required": True, "type": str},
        ("--flag",): {"help": "Flag.", "required": False, "type": bool},
        ("--item",): {"help": "Item.", "required": False, "type": str, "action": "append"},
        ("--secret",): {
            "help": "Secret.",
            "required": False,
            "type": str,
            "env_variable": "SOME_SECRET",
        },
    }
    monkeypatch.setenv("SOME_SECRET", "from-env")

    parser = misc.setup_arg_parser(args)
    parsed = parser.parse_args(["--name", "x", "--item", "a", "--item", "b"])
    parsed = misc.add_args_env_variables(parsed, args)

    assert parsed.name == "x"
    assert parsed.flag is None
    assert parsed.item == ["a", "b"]
    assert parsed.secret == "from-env"
