import base64
import logging
from typing import Dict, List, Optional

from pubtools.pluggy import pm

from . import hooks  # noqa: F401
from .command_executor import LocalExecutor
from .config import EnvConfig, NOTARY_SERVER
from .exceptions import CommandError, InvalidDigestError, InvalidReferenceError, SigningError
from .models import AuthCredential, SignRequest
from .utils.misc import log_step

LOG = logging.getLogger("pubtools.dockerhub")

NOTARY_DELEGATION_PASSPHRASE_ENV = "NOTARY_DELEGATION_PASSPHRASE"
NOTARY_AUTH_ENV = "NOTARY_AUTH"
DELEGATION_ROLE = "targets/releases"
NAMESPACE = "docker.io"


def make_sign_request(image: str, digest: str, length: int) -> SignRequest:
    """
    Validate signing input and split it into the parts notary needs.

    The image is split on ':' and the first two parts are taken as repository and tag. References
    with a registry port ('host:5000/repo:tag') are not supported.

    Args:
        image (str):
            Image reference of the form '<repo>:<tag>'.
        digest (str):
            Manifest digest of the form '<algorithm>:<hash>'.
        length (int):
            Byte length of the manifest.
    Returns (SignRequest):
        Signing request.
    Raises:
        InvalidReferenceError:
            When the image is not composed of '<repo>:<tag>'.
        InvalidDigestError:
            When the digest is not composed of '<algo>:<hash>' or isn't a sha256 digest.
    """
    img_parts = image.split(":")
    if len(img_parts) < 2 or not img_parts[0] or not img_parts[1]:
        raise InvalidReferenceError("image not composed of <repo>:<tag> '{0}'".format(image))
    repo, tag = img_parts[0], img_parts[1]

    digest_parts = digest.split(":")
    if len(digest_parts) < 2:
        raise InvalidDigestError("digest not composed of <algo>:<hash> '{0}'".format(digest))
    algo, hash_ = digest_parts[0], digest_parts[1]
    if algo != "sha256":
        raise InvalidDigestError(
            "notary works with sha256 hash, not the provided {0}".format(algo)
        )

    return SignRequest(repo=repo, tag=tag, algorithm=algo, hash=hash_, length=length)


class NotarySigner:
    """Add signed hash records of pushed manifests to a notary trust server."""

    def __init__(
        self,
        env_config: EnvConfig,
        server: str = NOTARY_SERVER,
        executor: Optional[LocalExecutor] = None,
    ) -> None:
        """
        Initialize.

        Args:
            env_config (EnvConfig):
                Environment configuration, source of the trust passphrase and home directory.
            server (str):
                URL of the notary server.
            executor (LocalExecutor):
                Executor running the notary tool.
        """
        self.env_config = env_config
        self.server = server
        self.executor = executor or LocalExecutor()

    def notary_args(self, sign_request: SignRequest) -> List[str]:
        """Return the notary argument vector adding the hash of a signing request."""
        return [
            "notary",
            "-s",
            self.server,
            "-d",
            self.env_config.trust_dir,
            "addhash",
            "-p",
            "{0}/{1}".format(NAMESPACE, sign_request.repo),
            sign_request.tag,
            str(sign_request.length),
            "--sha256",
            sign_request.hash,
            "-r",
            DELEGATION_ROLE,
        ]

    def notary_env(self, auth: AuthCredential) -> Dict[str, str]:
        """Return environment of the notary process with the delegation passphrase and auth."""
        notary_auth = base64.b64encode(
            "{0}:{1}".format(auth.username, auth.password).encode("utf-8")
        ).decode("utf-8")
        env = dict(self.env_config.environ)
        env[NOTARY_DELEGATION_PASSPHRASE_ENV] = self.env_config.trust_passphrase
        env[NOTARY_AUTH_ENV] = notary_auth
        return env

    @log_step("Sign manifest list")
    def sign(self, image: str, digest: str, length: int, auth: AuthCredential) -> None:
        """
        Sign the manifest pushed to an image.

        Args:
            image (str):
                Image reference of the form '<repo>:<tag>'.
            digest (str):
                Digest of the pushed manifest.
            length (int):
                Byte length of the pushed manifest.
            auth (AuthCredential):
                Registry credentials, also used to authenticate to the notary server.
        Raises:
            SigningError:
                When the notary tool fails.
        """
        sign_request = make_sign_request(image, digest, length)
        args = self.notary_args(sign_request)
        LOG.debug("Executing: %s", args)

        try:
            self.executor.run_cmd(args, env=self.notary_env(auth))
        except CommandError as e:
            raise SigningError("failed to execute notary-tool: {0}".format(e))

        LOG.info("Signed manifest index: {0}:{1}".format(sign_request.repo, sign_request.tag))
        pm.hook.dockerhub_manifest_signed(
            repo=sign_request.repo, tag=sign_request.tag, digest=digest
        )
