import dataclasses
import json
import logging
import os
from typing import Any, Dict, List, Mapping, Optional, Tuple

from marshmallow import Schema, fields, validate, EXCLUDE, ValidationError

from .exceptions import InvalidRunnerSettings

LOG = logging.getLogger("pubtools.dockerhub")

REGISTRY_SERVER = "https://index.docker.io/v1/"
NOTARY_SERVER = "https://notary.docker.io"
DEFAULT_PLATFORMS = ["linux/amd64", "linux/arm64", "linux/s390x", "linux/riscv64"]

# standard build-args supported by 'docker build' plus the socks all_proxy/ALL_PROXY
PROXY_ENV_VARS = [
    "http_proxy",
    "https_proxy",
    "no_proxy",
    "ftp_proxy",
    "all_proxy",
    "HTTP_PROXY",
    "HTTPS_PROXY",
    "NO_PROXY",
    "FTP_PROXY",
    "ALL_PROXY",
]
BUILD_ARGS_ENV = "PUBTOOLS_BUILD_ARGS"
TRUST_PASSPHRASE_ENV = "DOCKER_CONTENT_TRUST_REPOSITORY_PASSPHRASE"


def _parse_build_args(raw: Optional[str]) -> Tuple[Tuple[str, str], ...]:
    if raw is None:
        return ()
    try:
        kvs = json.loads(raw)
    except ValueError:
        LOG.debug("Ignoring %s, value is not valid JSON", BUILD_ARGS_ENV)
        return ()
    if not isinstance(kvs, dict) or not all(isinstance(v, str) for v in kvs.values()):
        LOG.debug("Ignoring %s, value is not a JSON object of strings", BUILD_ARGS_ENV)
        return ()
    return tuple(kvs.items())


@dataclasses.dataclass(frozen=True)
class EnvConfig:
    """
    Environment-derived configuration, captured once at pipeline start.

    Components receive this value instead of reading the process environment themselves.
    """

    environ: Mapping[str, str] = dataclasses.field(default_factory=dict, repr=False)
    proxy_build_args: Tuple[Tuple[str, str], ...] = ()
    extra_build_args: Tuple[Tuple[str, str], ...] = ()
    home_dir: str = ""
    trust_passphrase: str = dataclasses.field(default="", repr=False)

    @classmethod
    def from_environ(cls, environ: Optional[Mapping[str, str]] = None) -> "EnvConfig":
        """
        Assemble configuration from an environment mapping.

        Args:
            environ (dict):
                Environment to read. The current process environment by default.
        Returns (EnvConfig):
            Configuration snapshot.
        """
        env = dict(os.environ if environ is None else environ)
        return cls(
            environ=env,
            proxy_build_args=tuple((name, env[name]) for name in PROXY_ENV_VARS if name in env),
            extra_build_args=_parse_build_args(env.get(BUILD_ARGS_ENV)),
            home_dir=env.get("HOME", ""),
            trust_passphrase=env.get(TRUST_PASSPHRASE_ENV, ""),
        )

    @property
    def build_args(self) -> List[str]:
        """Return '--build-arg' pairs for a docker build, proxy variables first."""
        args = []
        for name, value in self.proxy_build_args + self.extra_build_args:
            args.extend(["--build-arg", "{0}={1}".format(name, value)])
        return args

    @property
    def trust_dir(self) -> str:
        """Local trust data directory used by notary."""
        return os.path.join(self.home_dir, ".docker/trust")


class RunnerSettingsSchema(Schema):
    """Validation schema for the docker runner settings."""

    content_trust = fields.Boolean(load_default=False)
    cache = fields.Boolean(load_default=True)
    sign = fields.Boolean(load_default=False)
    platforms = fields.List(
        fields.String(),
        load_default=lambda: list(DEFAULT_PLATFORMS),
        validate=validate.Length(min=1),
    )
    registry_server = fields.String(load_default=REGISTRY_SERVER)
    notary_server = fields.String(load_default=NOTARY_SERVER)
    ignore_missing = fields.Boolean(load_default=False)
    manifest_list_file = fields.String(load_default=None, allow_none=True)


def load_runner_settings(settings: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    Validate runner settings and fill in the defaults.

    Args:
        settings (dict):
            Runner settings.
    Returns (dict):
        Validated settings.
    Raises:
        InvalidRunnerSettings:
            When the settings don't pass the validation.
    """
    schema = RunnerSettingsSchema(unknown=EXCLUDE)
    try:
        return dict(schema.load(settings or {}))
    except ValidationError as e:
        raise InvalidRunnerSettings("Invalid runner settings: {0}".format(e.messages))
