import logging
from typing import Optional

import docker.auth
import docker.errors

from .config import REGISTRY_SERVER
from .exceptions import CredentialError
from .models import AuthCredential

LOG = logging.getLogger("pubtools.dockerhub")


def get_registry_auth(
    registry_server: str = REGISTRY_SERVER, config_path: Optional[str] = None
) -> AuthCredential:
    """
    Look up registry credentials in the docker CLI configuration.

    Credential stores and credential helpers configured in the file are consulted the same way
    the docker CLI does it.

    Args:
        registry_server (str):
            Registry whose credentials to resolve. Docker Hub by default.
        config_path (str):
            Custom path to the docker config file. Default docker locations are used if omitted.
    Returns (AuthCredential):
        Username and password of the registry.
    Raises:
        CredentialError:
            When no usable credentials are found.
    """
    try:
        auth_config = docker.auth.load_config(config_path=config_path)
        entry = auth_config.resolve_authconfig(registry_server)
    except docker.errors.DockerException as e:
        raise CredentialError("failed to get auth for {0}: {1}".format(registry_server, e))

    if not entry:
        raise CredentialError("No credentials found for registry {0}".format(registry_server))

    # credential stores return capitalized keys, config file entries lowercase ones
    username = entry.get("username") or entry.get("Username")
    password = entry.get("password") or entry.get("Password")
    if not username or not password:
        raise CredentialError(
            "Credentials of registry {0} are missing username or password".format(registry_server)
        )

    LOG.debug("Resolved credentials of user '%s' for registry %s", username, registry_server)
    return AuthCredential(username=username, password=password)
