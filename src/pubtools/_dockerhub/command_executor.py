import logging
import subprocess
from concurrent import futures
from concurrent.futures.thread import ThreadPoolExecutor
from types import TracebackType
from typing import Any, Dict, List, Mapping, Optional, Type
from typing_extensions import Self

from pubtools.tracing import get_trace_wrapper

from .build_context import BuildContext
from .exceptions import CommandError, ToolMissingError

tw = get_trace_wrapper()
LOG = logging.getLogger("pubtools.dockerhub")


class LocalExecutor(object):
    """
    Run external tools locally.

    Output of the tool is passed through to the caller's own stdout and stderr. Standard input is
    only used to stream a build context into the process.
    """

    def __init__(self, params: Optional[Dict[str, Any]] = None) -> None:
        """
        Initialize.

        Args:
            params (dict):
                Custom parameters to be applied when starting the processes.
        """
        self.params = dict(params or {})

    def __enter__(self) -> Self:
        """Use the class as context manager. Returns instance upon invocation."""
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_value: Optional[BaseException],
        exc_tb: Optional[TracebackType],
    ) -> None:
        """Cleanup when used as context manager. No-op by default."""
        pass

    @tw.instrument_func(args_to_attr=True)
    def run_cmd(
        self,
        args: List[str],
        env: Optional[Mapping[str, str]] = None,
        context: Optional[BuildContext] = None,
    ) -> None:
        """
        Run a command and wait for it to finish.

        When a build context is given, it's copied into the standard input of the process by a
        background worker while the process runs. Both the copy and the process are awaited and
        the first failure is raised.

        Args:
            args ([str]):
                Argument vector, first item is the tool binary.
            env (dict):
                Environment of the process. Inherited from the current process if omitted.
            context (BuildContext):
                Optional build context to stream to the standard input.
        Raises:
            ToolMissingError:
                When the tool binary is not installed.
            CommandError:
                When the tool exits with a non-zero status.
        """
        params = dict(self.params)
        if env is not None:
            params["env"] = dict(env)
        if context is not None:
            params["stdin"] = subprocess.PIPE

        try:
            proc = subprocess.Popen(args, **params)
        except FileNotFoundError:
            raise ToolMissingError(
                "pubtools-dockerhub requires {0} to be installed".format(args[0])
            )

        if context is None:
            self._wait(proc, args)
            return

        with ThreadPoolExecutor(max_workers=2) as executor:
            future_results = [
                executor.submit(self._copy_context, context, proc.stdin),
                executor.submit(self._wait, proc, args),
            ]
            first_error: Optional[BaseException] = None
            for future in futures.as_completed(future_results):
                if future.exception() is not None and first_error is None:
                    first_error = future.exception()
        if first_error is not None:
            raise first_error

    @staticmethod
    def _copy_context(context: BuildContext, stdin: Any) -> None:
        try:
            context.copy(stdin)
        finally:
            stdin.close()

    @staticmethod
    def _wait(proc: "subprocess.Popen[Any]", args: List[str]) -> None:
        returncode = proc.wait()
        if returncode != 0:
            LOG.error("Command '%s' failed with exit status %s", " ".join(args), returncode)
            raise CommandError(args, returncode)
