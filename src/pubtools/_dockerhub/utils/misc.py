import argparse
import functools
import logging
import os
from typing import Any, Callable, Dict, Tuple

from pubtools.tracing import get_trace_wrapper

tw = get_trace_wrapper()
LOG = logging.getLogger("pubtools.dockerhub")

DOCKER_HUB_DOMAIN = "docker.io"
DOCKER_HUB_API_HOST = "registry-1.docker.io"
DEFAULT_TAG = "latest"


def setup_arg_parser(args: Dict[Any, Any]) -> argparse.ArgumentParser:
    """
    Build an ArgumentParser out of an entrypoint argument table.

    Keys of the table are option aliases, values describe the option: 'help', 'type',
    'required', 'default' and 'action'. Options of type bool become flags, 'append' options
    collect repeated values of the given type.

    Args:
        args (dict):
            Argument table of an entrypoint, e.g. PUSH_WITH_MANIFEST_ARGS.
    Returns (ArgumentParser):
        Parser of the entrypoint.
    """
    parser = argparse.ArgumentParser()
    for aliases, arg_data in args.items():
        kwargs = {
            "help": arg_data.get("help"),
            "required": arg_data.get("required", False),
            "default": arg_data.get("default"),
        }
        if arg_data.get("action"):
            kwargs["action"] = arg_data["action"]
            kwargs["type"] = arg_data.get("type", str)
        elif arg_data["type"] is bool:
            # unset flags stay None, construct_kwargs turns them into False
            kwargs["action"] = "store_true"
        else:
            kwargs["type"] = arg_data.get("type", str)
        parser.add_argument(*aliases, **kwargs)

    return parser


def add_args_env_variables(
    parsed_args: argparse.Namespace, args: Dict[Any, Any]
) -> argparse.Namespace:
    """
    Fill options missing on the command line from their 'env_variable'.

    Used for values better kept out of the process list, such as server URLs set by the
    deployment (NOTARY_SERVER).

    Args:
        parsed_args (argparse.Namespace):
            Parsed command line arguments.
        args (dict):
            Argument table of the entrypoint.
    Returns (argparse.Namespace):
        The parsed arguments, updated in place.
    """
    for aliases, arg_data in args.items():
        env_variable = arg_data.get("env_variable")
        if not env_variable:
            continue
        dest = next(a for a in aliases if a.startswith("--")).lstrip("-").replace("-", "_")
        if not getattr(parsed_args, dest) and os.environ.get(env_variable):
            setattr(parsed_args, dest, os.environ[env_variable])
    return parsed_args


def task_status(event: str) -> Dict[str, Dict[str, str]]:
    """Return the log record 'extra' marking a task step event."""
    return dict(event={"type": event})


def log_step(step_name: str) -> Callable[[Any], Any]:
    """
    Log status for methods which constitute an entire task step.

    Args:
        step_name (str):
            Name of the task step, e.g., "Push manifest list".
    """
    event_name = step_name.lower().replace(" ", "-")

    def decorate(fn: Callable[..., Any]) -> Callable[..., Any]:
        fn = tw.instrument_func(span_name=event_name)(fn)

        @functools.wraps(fn)
        def fn_wrapper(*args: Any, **kwargs: Any) -> Any:
            try:
                LOG.info("%s: Started", step_name, extra=task_status("%s-start" % event_name))
                ret = fn(*args, **kwargs)
                LOG.info("%s: Finished", step_name, extra=task_status("%s-end" % event_name))
                return ret
            except Exception:
                LOG.error("%s: Failed", step_name, extra=task_status("%s-error" % event_name))
                raise

        return fn_wrapper

    return decorate


def parse_image_reference(image: str) -> Tuple[str, str, str]:
    """
    Split an image reference into registry domain, repository and reference.

    Docker Hub conventions are applied: a missing domain means 'docker.io', single component
    repositories on Docker Hub live in the 'library' namespace and a missing tag means 'latest'.

    Args:
        image (str):
            Image reference, e.g. 'example/app:1.0' or 'registry.com:5000/ns/app@sha256:...'.
    Returns ((str, str, str)):
        Registry domain, repository and tag or digest.
    Raises:
        ValueError:
            If the reference is empty or has an empty repository.
    """
    if not image or image.startswith("/") or image.endswith("/"):
        raise ValueError("Invalid image reference '{0}'".format(image))

    first, sep, rest = image.partition("/")
    if sep and ("." in first or ":" in first or first == "localhost"):
        domain, remainder = first, rest
    else:
        domain, remainder = DOCKER_HUB_DOMAIN, image

    if "@" in remainder:
        repo, ref = remainder.split("@", 1)
    else:
        path, _, last = remainder.rpartition("/")
        name, _, ref = last.partition(":")
        repo = "/".join([path, name]) if path else name
        ref = ref or DEFAULT_TAG

    if not repo:
        raise ValueError("Invalid image reference '{0}'".format(image))
    if domain == DOCKER_HUB_DOMAIN and "/" not in repo:
        repo = "library/" + repo

    return (domain, repo, ref)


def registry_api_host(domain: str) -> str:
    """Return the host serving the registry HTTP API for a registry domain."""
    if domain in (DOCKER_HUB_DOMAIN, "index.docker.io"):
        return DOCKER_HUB_API_HOST
    return domain
