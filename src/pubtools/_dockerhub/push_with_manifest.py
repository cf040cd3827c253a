import logging
from typing import Any, Dict, List, Optional

from pubtools.pluggy import task_context

from .config import DEFAULT_PLATFORMS, EnvConfig
from .docker_runner import DockerRunner
from .utils.misc import setup_arg_parser, add_args_env_variables

LOG = logging.getLogger("pubtools.dockerhub")

PUSH_WITH_MANIFEST_ARGS = {
    ("--image",): {
        "help": "Base image reference of the form '<repo>:<tag>'. Manifest list is pushed to it.",
        "required": True,
        "type": str,
    },
    ("--suffix",): {
        "help": "Suffix of the pushed image, given as '--suffix=-amd64' since it starts with '-'.",
        "required": False,
        "type": str,
        "default": "",
    },
    ("--no-push-image",): {
        "help": "Flag of whether to skip pushing the image.",
        "required": False,
        "type": bool,
    },
    ("--no-push-manifest",): {
        "help": "Flag of whether to skip pushing the manifest list.",
        "required": False,
        "type": bool,
    },
    ("--sign",): {
        "help": "Flag of whether to sign the manifest list. Needs content trust.",
        "required": False,
        "type": bool,
    },
    ("--content-trust",): {
        "help": "Flag of whether docker content trust is enabled.",
        "required": False,
        "type": bool,
    },
    ("--platform",): {
        "help": "Platform of the manifest list of the form 'os/arch[/variant]'. "
        "Multiple can be specified. {0} by default.".format(", ".join(DEFAULT_PLATFORMS)),
        "required": False,
        "type": str,
        "action": "append",
    },
    ("--registry-server",): {
        "help": "Registry whose credentials are used. Docker Hub by default.",
        "required": False,
        "type": str,
    },
    ("--notary-server",): {
        "help": "URL of the notary server. Can be specified by env variable NOTARY_SERVER.",
        "required": False,
        "type": str,
        "env_variable": "NOTARY_SERVER",
    },
    ("--ignore-missing",): {
        "help": "Flag of whether to leave out images missing from the registry.",
        "required": False,
        "type": bool,
    },
    ("--manifest-list-file",): {
        "help": "YAML file describing the manifest list, used instead of the platforms.",
        "required": False,
        "type": str,
    },
}


def construct_kwargs(args: Any) -> Dict[str, Any]:
    """
    Construct a kwargs dictionary based on the entered command line arguments.

    Args:
        args (argparse.Namespace):
            Parsed command line arguments.
    Returns (dict):
        Keyword arguments for the 'push_with_manifest' function.
    """
    kwargs = dict(args.__dict__)

    # in args.__dict__ unspecified bool values have 'None' instead of 'False'
    for name, attributes in PUSH_WITH_MANIFEST_ARGS.items():
        if attributes["type"] is bool:
            bool_var = name[0].lstrip("-").replace("-", "_")
            if kwargs[bool_var] is None:
                kwargs[bool_var] = False

    kwargs["push_image"] = not kwargs.pop("no_push_image")
    kwargs["push_manifest"] = not kwargs.pop("no_push_manifest")
    kwargs["platforms"] = kwargs.pop("platform")

    return kwargs


def push_with_manifest(
    image: str,
    suffix: str = "",
    push_image: bool = True,
    push_manifest: bool = True,
    sign: bool = False,
    content_trust: bool = False,
    platforms: Optional[List[str]] = None,
    registry_server: Optional[str] = None,
    notary_server: Optional[str] = None,
    ignore_missing: bool = False,
    manifest_list_file: Optional[str] = None,
) -> None:
    """
    Push an image and its multi-architecture manifest list, optionally signing it.

    Args:
        image (str):
            Base image reference.
        suffix (str):
            Suffix of the pushed image.
        push_image (bool):
            Whether to push the image.
        push_manifest (bool):
            Whether to push the manifest list.
        sign (bool):
            Whether to sign the manifest list.
        content_trust (bool):
            Whether docker content trust is enabled.
        platforms ([str]):
            Platforms of the manifest list.
        registry_server (str):
            Registry whose credentials are used.
        notary_server (str):
            URL of the notary server.
        ignore_missing (bool):
            Whether to leave images missing from the registry out of the manifest list.
        manifest_list_file (str):
            YAML file describing the manifest list.
    """
    settings: Dict[str, Any] = {
        "content_trust": content_trust,
        "sign": sign,
        "ignore_missing": ignore_missing,
    }
    if platforms:
        settings["platforms"] = platforms
    if registry_server:
        settings["registry_server"] = registry_server
    if notary_server:
        settings["notary_server"] = notary_server
    if manifest_list_file:
        settings["manifest_list_file"] = manifest_list_file

    runner = DockerRunner(settings, EnvConfig.from_environ())
    runner.push_with_manifest(image, suffix or "", push_image, push_manifest, sign)


def setup_args() -> Any:
    """Set up argparser without extra parameters, this method is used for auto doc generation."""
    return setup_arg_parser(PUSH_WITH_MANIFEST_ARGS)


def push_with_manifest_main(sysargs: Optional[List[str]] = None) -> None:
    """Entrypoint for pushing images with manifest lists."""
    logging.basicConfig(level=logging.INFO)

    parser = setup_args()
    if sysargs:
        args = parser.parse_args(sysargs[1:])
    else:
        args = parser.parse_args()  # pragma: no cover"
    args = add_args_env_variables(args, PUSH_WITH_MANIFEST_ARGS)

    kwargs = construct_kwargs(args)
    with task_context():
        push_with_manifest(**kwargs)
