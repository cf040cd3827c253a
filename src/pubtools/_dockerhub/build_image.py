import logging
from typing import Any, Dict, List, Optional

from pubtools.pluggy import task_context

from .build_context import BuildContext, FileContext, TarDirectoryContext
from .config import EnvConfig
from .docker_runner import DockerRunner
from .models import PullResult
from .utils.misc import setup_arg_parser, add_args_env_variables

LOG = logging.getLogger("pubtools.dockerhub")

BUILD_IMAGE_ARGS = {
    ("--tag",): {
        "help": "Tag of the built image.",
        "required": True,
        "type": str,
    },
    ("--path",): {
        "help": "Build context directory passed to docker. Current directory by default.",
        "required": False,
        "type": str,
        "default": ".",
    },
    ("--context-dir",): {
        "help": "Directory archived on the fly and streamed to docker as the build context.",
        "required": False,
        "type": str,
    },
    ("--context-file",): {
        "help": "Tarball streamed to docker as the build context.",
        "required": False,
        "type": str,
    },
    ("--build-opt",): {
        "help": "Extra option for 'docker build'. Multiple can be specified.",
        "required": False,
        "type": str,
        "action": "append",
    },
    ("--no-cache",): {
        "help": "Flag of whether to disable the docker build cache.",
        "required": False,
        "type": bool,
    },
    ("--content-trust",): {
        "help": "Flag of whether docker content trust is enabled.",
        "required": False,
        "type": bool,
    },
    ("--pull-first",): {
        "help": "Flag of whether to try pulling the tag first and only build when it's missing.",
        "required": False,
        "type": bool,
    },
    ("--extra-tag",): {
        "help": "Additional tag of the built image. Multiple can be specified.",
        "required": False,
        "type": str,
        "action": "append",
    },
    ("--save-to",): {
        "help": "Path of a tar archive to save the image to.",
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
        Keyword arguments for the 'build_image' function.
    """
    kwargs = dict(args.__dict__)

    # in args.__dict__ unspecified bool values have 'None' instead of 'False'
    for name, attributes in BUILD_IMAGE_ARGS.items():
        if attributes["type"] is bool:
            bool_var = name[0].lstrip("-").replace("-", "_")
            if kwargs[bool_var] is None:
                kwargs[bool_var] = False

    kwargs["build_opts"] = kwargs.pop("build_opt") or []
    kwargs["extra_tags"] = kwargs.pop("extra_tag") or []
    kwargs["cache"] = not kwargs.pop("no_cache")

    return kwargs


def verify_build_image_args(context_dir: Optional[str], context_file: Optional[str]) -> None:
    """Verify the input parameters are not conflicting."""
    if context_dir and context_file:
        raise ValueError("Only one of context directory and context file can be specified.")


def build_image(
    tag: str,
    path: str = ".",
    context_dir: Optional[str] = None,
    context_file: Optional[str] = None,
    build_opts: Optional[List[str]] = None,
    cache: bool = True,
    content_trust: bool = False,
    pull_first: bool = False,
    extra_tags: Optional[List[str]] = None,
    save_to: Optional[str] = None,
) -> None:
    """
    Build an image with the docker CLI.

    Args:
        tag (str):
            Tag of the built image.
        path (str):
            Build context directory passed to docker.
        context_dir (str):
            Directory streamed to docker as the build context.
        context_file (str):
            Tarball streamed to docker as the build context.
        build_opts ([str]):
            Extra 'docker build' options.
        cache (bool):
            Whether to use the docker build cache.
        content_trust (bool):
            Whether docker content trust is enabled.
        pull_first (bool):
            Whether to try pulling the tag and skip the build when it exists.
        extra_tags ([str]):
            Additional tags of the image.
        save_to (str):
            Path of a tar archive to save the image to.
    """
    verify_build_image_args(context_dir, context_file)

    context: Optional[BuildContext] = None
    if context_dir:
        context = TarDirectoryContext(context_dir)
    elif context_file:
        context = FileContext(context_file)

    runner = DockerRunner(
        {"content_trust": content_trust, "cache": cache},
        EnvConfig.from_environ(),
        context=context,
    )

    if pull_first and runner.pull(tag) == PullResult.FOUND:
        LOG.info("Image {0} already exists, skipping build".format(tag))
    else:
        LOG.info("Building {0}".format(tag))
        runner.build(tag, path, *(build_opts or []))

    for extra_tag in extra_tags or []:
        runner.tag(tag, extra_tag)

    if save_to:
        LOG.info("Saving {0} to {1}".format(tag, save_to))
        runner.save(save_to, tag, *(extra_tags or []))


def setup_args() -> Any:
    """Set up argparser without extra parameters, this method is used for auto doc generation."""
    return setup_arg_parser(BUILD_IMAGE_ARGS)


def build_image_main(sysargs: Optional[List[str]] = None) -> None:
    """Entrypoint for building images."""
    logging.basicConfig(level=logging.INFO)

    parser = setup_args()
    if sysargs:
        args = parser.parse_args(sysargs[1:])
    else:
        args = parser.parse_args()  # pragma: no cover"
    args = add_args_env_variables(args, BUILD_IMAGE_ARGS)

    kwargs = construct_kwargs(args)
    with task_context():
        build_image(**kwargs)
