import base64
import logging

import mock
import pytest

from pubtools._dockerhub import notary_signer
from pubtools._dockerhub.exceptions import (
    CommandError,
    InvalidDigestError,
    InvalidReferenceError,
    SigningError,
)
from pubtools._dockerhub.models import SignRequest
from .utils.misc import compare_logs

HASH = "9834876dcfb05cb167a5c24953eba58c4ac89b1adf57f28f2f9d09af107ee8f0"


def test_make_sign_request():
    sign_request = notary_signer.make_sign_request("example/app:1.0", "sha256:" + HASH, 1234)

    assert sign_request == SignRequest(
        repo="example/app", tag="1.0", algorithm="sha256", hash=HASH, length=1234
    )


@pytest.mark.parametrize("image", ["example/app", ":1.0", "example/app:", ""])
def test_make_sign_request_invalid_image(image):
    with pytest.raises(InvalidReferenceError, match="image not composed of <repo>:<tag>.*"):
        notary_signer.make_sign_request(image, "sha256:" + HASH, 1234)


@pytest.mark.parametrize("digest", ["", HASH])
def test_make_sign_request_invalid_digest(digest):
    with pytest.raises(InvalidDigestError, match="digest not composed of <algo>:<hash>.*"):
        notary_signer.make_sign_request("example/app:1.0", digest, 1234)


def test_make_sign_request_not_sha256():
    with pytest.raises(
        InvalidDigestError, match="notary works with sha256 hash, not the provided sha512"
    ):
        notary_signer.make_sign_request("example/app:1.0", "sha512:abcd", 1234)


def test_notary_args(env_config):
    signer = notary_signer.NotarySigner(env_config, server="https://notary.example.com")
    sign_request = notary_signer.make_sign_request("example/app:1.0", "sha256:" + HASH, 1234)

    assert signer.notary_args(sign_request) == [
        "notary",
        "-s",
        "https://notary.example.com",
        "-d",
        "/home/builder/.docker/trust",
        "addhash",
        "-p",
        "docker.io/example/app",
        "1.0",
        "1234",
        "--sha256",
        HASH,
        "-r",
        "targets/releases",
    ]


def test_notary_env(env_config, auth):
    env = notary_signer.NotarySigner(env_config).notary_env(auth)

    assert env["NOTARY_DELEGATION_PASSPHRASE"] == "delegation-pass"
    assert base64.b64decode(env["NOTARY_AUTH"]) == b"hub-user:hub-pass"
    assert env["HOME"] == "/home/builder"
    assert "NOTARY_AUTH" not in env_config.environ


def test_sign(env_config, auth, hookspy, caplog):
    caplog.set_level(logging.INFO)
    executor = mock.MagicMock()
    signer = notary_signer.NotarySigner(env_config, executor=executor)

    signer.sign("example/app:1.0", "sha256:" + HASH, 1234, auth)

    executor.run_cmd.assert_called_once()
    args = executor.run_cmd.call_args[0][0]
    env = executor.run_cmd.call_args[1]["env"]
    assert args[0] == "notary"
    assert args[2] == "https://notary.docker.io"
    assert args[7:12] == ["docker.io/example/app", "1.0", "1234", "--sha256", HASH]
    assert env["NOTARY_DELEGATION_PASSPHRASE"] == "delegation-pass"
    assert hookspy == [
        (
            "dockerhub_manifest_signed",
            {"repo": "example/app", "tag": "1.0", "digest": "sha256:" + HASH},
        )
    ]
    compare_logs(
        caplog,
        [
            "Sign manifest list: Started",
            "Signed manifest index: example/app:1.0",
            "Sign manifest list: Finished",
        ],
    )


@pytest.mark.parametrize(
    "image,digest,error",
    [
        ("example/app", "sha256:" + HASH, InvalidReferenceError),
        ("example/app:", "sha256:" + HASH, InvalidReferenceError),
        ("example/app:1.0", "", InvalidDigestError),
        ("example/app:1.0", "md5:abcd", InvalidDigestError),
    ],
)
def test_sign_invalid_input_no_subprocess(env_config, auth, image, digest, error):
    executor = mock.MagicMock()
    signer = notary_signer.NotarySigner(env_config, executor=executor)

    with pytest.raises(error):
        signer.sign(image, digest, 0, auth)

    executor.run_cmd.assert_not_called()


def test_sign_notary_failure(env_config, auth, hookspy):
    executor = mock.MagicMock()
    executor.run_cmd.side_effect = CommandError(["notary", "addhash"], 1)
    signer = notary_signer.NotarySigner(env_config, executor=executor)

    with pytest.raises(
        SigningError,
        match="failed to execute notary-tool: Command 'notary addhash' returned non-zero.*",
    ):
        signer.sign("example/app:1.0", "sha256:" + HASH, 1234, auth)

    assert hookspy == []
