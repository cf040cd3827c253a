import logging
from typing import Any, Dict, List, Optional

from pubtools.pluggy import pm

from . import hooks  # noqa: F401
from .build_context import BuildContext
from .command_executor import LocalExecutor
from .config import EnvConfig, load_runner_settings
from .exceptions import CommandError
from .manifest_list_pusher import ManifestListPusher
from .models import PullResult
from .notary_signer import NotarySigner
from .registry_auth import get_registry_auth
from .utils.misc import log_step

LOG = logging.getLogger("pubtools.dockerhub")

DCT_ENABLE_ENV = ("DOCKER_CONTENT_TRUST", "1")


class DockerRunner:
    """
    Thin wrapper around docker CLI invocations.

    Settings are validated by RunnerSettingsSchema. Environment dependent values (proxy
    variables, extra build args, trust passphrase) are taken from the EnvConfig value.
    """

    def __init__(
        self,
        settings: Optional[Dict[str, Any]] = None,
        env_config: Optional[EnvConfig] = None,
        executor: Optional[LocalExecutor] = None,
        context: Optional[BuildContext] = None,
    ) -> None:
        """
        Initialize.

        Args:
            settings (dict):
                Runner settings: content_trust, cache, sign, platforms, registry_server,
                notary_server, ignore_missing, manifest_list_file.
            env_config (EnvConfig):
                Environment configuration. Captured from the process environment if omitted.
            executor (LocalExecutor):
                Executor running the docker CLI.
            context (BuildContext):
                Optional build context streamed to 'docker build' via stdin.
        """
        self.settings = load_runner_settings(settings)
        self.env_config = env_config or EnvConfig.from_environ()
        self.executor = executor or LocalExecutor()
        self.context = context

        self.content_trust = self.settings["content_trust"]
        self.cache = self.settings["cache"]
        self.sign = self.settings["sign"]
        self._manifest_list_pusher: Optional[ManifestListPusher] = None
        self._notary_signer: Optional[NotarySigner] = None

    @property
    def manifest_list_pusher(self) -> ManifestListPusher:
        """Create and access ManifestListPusher of the configured platforms."""
        if self._manifest_list_pusher is None:
            self._manifest_list_pusher = ManifestListPusher(
                self.settings["platforms"],
                ignore_missing=self.settings["ignore_missing"],
                manifest_list_file=self.settings["manifest_list_file"],
            )
        return self._manifest_list_pusher

    @property
    def notary_signer(self) -> NotarySigner:
        """Create and access NotarySigner."""
        if self._notary_signer is None:
            self._notary_signer = NotarySigner(
                self.env_config, server=self.settings["notary_server"], executor=self.executor
            )
        return self._notary_signer

    def command(self, *args: str) -> None:
        """
        Run a docker CLI command.

        Content trust is enabled for the command when it's enabled for the runner, except for
        pushes done without signing. Build commands get proxy and extra build args and read the
        build context from stdin when one is set.

        Args:
            *args (str):
                Docker CLI arguments.
        Raises:
            ToolMissingError:
                When docker is not installed.
            CommandError:
                When docker exits with a non-zero status.
        """
        cmd = ["docker"] + list(args)
        env = dict(self.env_config.environ)

        dct = ""
        # when we are doing a push, we need to disable DCT if not signing
        is_push = len(args) >= 2 and args[0] == "image" and args[1] == "push"
        if self.content_trust and (not is_push or self.sign):
            env[DCT_ENABLE_ENV[0]] = DCT_ENABLE_ENV[1]
            dct = "%s=%s " % DCT_ENABLE_ENV

        context = None
        if args and args[0] == "build":
            cmd = cmd[:2] + self.env_config.build_args + cmd[2:]
            if self.context is not None:
                context = self.context
                cmd[-1] = "-"

        LOG.debug("Executing: %s%s", dct, cmd)
        self.executor.run_cmd(cmd, env=env, context=context)

    def pull(self, image: str) -> PullResult:
        """
        Pull an image.

        Args:
            image (str):
                Image reference.
        Returns (PullResult):
            FOUND if the image was pulled, NOT_FOUND if docker failed to pull it.
        Raises:
            ToolMissingError:
                When docker is not installed.
        """
        try:
            self.command("image", "pull", image)
        except CommandError as e:
            LOG.info("Image {0} could not be pulled: {1}".format(image, e))
            return PullResult.NOT_FOUND
        return PullResult.FOUND

    def push(self, image: str) -> None:
        """Push an image."""
        self.command("image", "push", image)
        pm.hook.dockerhub_image_pushed(image=image)

    def tag(self, ref: str, tag: str) -> None:
        """Tag an image reference with a new tag."""
        LOG.info("Tagging {0} as {1}".format(ref, tag))
        self.command("image", "tag", ref, tag)

    def build(self, tag: str, pkg: str, *opts: str) -> None:
        """
        Build an image.

        Args:
            tag (str):
                Tag of the built image.
            pkg (str):
                Build context path. Replaced with '-' when a build context stream is set.
            *opts (str):
                Extra 'docker build' options.
        """
        args = ["build"]
        if not self.cache:
            args.append("--no-cache")
        args.extend(opts)
        args.extend(["-t", tag, pkg])
        self.command(*args)

    def save(self, target: str, *refs: str) -> None:
        """Save images to a tar archive."""
        self.command("image", "save", "-o", target, *refs)

    @log_step("Push with manifest")
    def push_with_manifest(
        self,
        image: str,
        suffix: str,
        push_image: bool,
        push_manifest: bool,
        sign: bool,
    ) -> None:
        """
        Push an image, its multi-architecture manifest list and sign the manifest list.

        Args:
            image (str):
                Base image reference, manifest list is pushed to it.
            suffix (str):
                Suffix of the pushed image, usually '-<arch>'.
            push_image (bool):
                Whether to push the image.
            push_manifest (bool):
                Whether to push the manifest list.
            sign (bool):
                Whether to sign the manifest list. Ignored when content trust is disabled.
        """
        digest = ""
        length = 0

        if push_image:
            LOG.info("Pushing {0}".format(image + suffix))
            self.push(image + suffix)
        else:
            LOG.info("Image push disabled, skipping...")

        auth = get_registry_auth(self.settings["registry_server"])

        if push_manifest:
            LOG.info("Pushing {0} to manifest {1}".format(image + suffix, image))
            result = self.manifest_list_pusher.push(image, auth)
            digest, length = result.digest, result.length
            pm.hook.dockerhub_manifest_list_pushed(image=image, digest=digest, length=length)
        else:
            LOG.info("Manifest push disabled, skipping...")

        # if trust is not enabled, nothing more to do
        if not self.content_trust:
            LOG.info("trust disabled, not signing")
            return
        if not sign:
            LOG.info("signing disabled, not signing")
            return

        LOG.info("Signing manifest for {0}".format(image))
        self.notary_signer.sign(image, digest, length, auth)
