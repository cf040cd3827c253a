import abc
import os
import shutil
import tarfile
from typing import BinaryIO

# chunk size used when streaming contexts to a process
COPY_BUFSIZE = 64 * 1024


class BuildContext(abc.ABC):
    """Source of a build context which can be streamed to 'docker build -'."""

    @abc.abstractmethod
    def copy(self, writer: BinaryIO) -> None:
        """Write the build context as a tar stream to the writer."""


class FileContext(BuildContext):
    """Build context stored in an existing tarball."""

    def __init__(self, path: str) -> None:
        """
        Initialize.

        Args:
            path (str):
                Path to the tarball (optionally compressed, docker detects it).
        """
        self.path = path

    def copy(self, writer: BinaryIO) -> None:
        """Stream the tarball to the writer."""
        with open(self.path, "rb") as f:
            shutil.copyfileobj(f, writer, COPY_BUFSIZE)


class TarDirectoryContext(BuildContext):
    """Build context created on the fly from a directory."""

    def __init__(self, path: str) -> None:
        """
        Initialize.

        Args:
            path (str):
                Directory with the Dockerfile and the files it uses.
        """
        if not os.path.isdir(path):
            raise ValueError("Build context '{0}' is not a directory".format(path))
        self.path = path

    def copy(self, writer: BinaryIO) -> None:
        """Archive the directory into the writer, paths relative to the directory."""
        with tarfile.open(fileobj=writer, mode="w|") as tar:
            for name in sorted(os.listdir(self.path)):
                tar.add(os.path.join(self.path, name), arcname=name)
