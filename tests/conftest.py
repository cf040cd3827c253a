import base64
import json

import pytest

from pubtools.pluggy import pm

from pubtools._dockerhub.config import EnvConfig
from pubtools._dockerhub.models import AuthCredential

# flake8: noqa: E501

AMD64_MANIFEST = {
    "schemaVersion": 2,
    "mediaType": "application/vnd.docker.distribution.manifest.v2+json",
    "config": {
        "mediaType": "application/vnd.docker.container.image.v1+json",
        "size": 1512,
        "digest": "sha256:5d0da3dc976460b72c77d94c8a1ad043720b0416bfc16c52c45d4847e53fadb6",
    },
    "layers": [
        {
            "mediaType": "application/vnd.docker.image.rootfs.diff.tar.gzip",
            "size": 2811969,
            "digest": "sha256:29291e31a76a7e560b9b7ad3cada56e8c18d50a96cca8a2573e4f4689d7aca77",
        }
    ],
}

ARM64_MANIFEST = {
    "schemaVersion": 2,
    "mediaType": "application/vnd.docker.distribution.manifest.v2+json",
    "config": {
        "mediaType": "application/vnd.docker.container.image.v1+json",
        "size": 1510,
        "digest": "sha256:b8e4bd3d7b5e3cb23b6e2eac3b1f3fcbd5f7b2ad1a8dcd2c2ec1ea8a2c6b3c4d",
    },
    "layers": [
        {
            "mediaType": "application/vnd.docker.image.rootfs.diff.tar.gzip",
            "size": 2714621,
            "digest": "sha256:a0e1fb4a3e6e17a2f2bbba1e2d4bd13a8e4d79e0d9f8c1f5f1ab6e6c2ac0a3c1",
        }
    ],
}


@pytest.fixture
def hookspy():
    # Yields a list which receives a (name, kwargs) tuple
    # every time a pubtools hook is invoked.
    hooks = []

    def record_hook(hook_name, _hook_impls, kwargs):
        hooks.append((hook_name, kwargs))

    def do_nothing(*args, **kwargs):
        pass

    undo = pm.add_hookcall_monitoring(before=record_hook, after=do_nothing)
    yield hooks
    undo()


@pytest.fixture
def env_config():
    return EnvConfig.from_environ(
        {
            "HOME": "/home/builder",
            "PATH": "/usr/bin",
            "DOCKER_CONTENT_TRUST_REPOSITORY_PASSPHRASE": "delegation-pass",
        }
    )


@pytest.fixture
def auth():
    return AuthCredential(username="hub-user", password="hub-pass")


@pytest.fixture
def docker_config(tmp_path):
    """Docker CLI config file holding Docker Hub credentials."""
    config_file = tmp_path / "config.json"
    token = base64.b64encode(b"hub-user:hub-pass").decode("utf-8")
    config_file.write_text(json.dumps({"auths": {"https://index.docker.io/v1/": {"auth": token}}}))
    return str(config_file)


@pytest.fixture
def amd64_manifest():
    return json.dumps(AMD64_MANIFEST).encode("utf-8")


@pytest.fixture
def arm64_manifest():
    return json.dumps(ARM64_MANIFEST).encode("utf-8")
