from typing import List, Optional


class ManifestTypeError(Exception):
    """Occurs when an incorrect manifest type is encountered."""


class ManifestNotFoundError(Exception):
    """Occurs when a manifest expected in the registry is not there."""


class RegistryAuthError(Exception):
    """Occurs when registry authentication encounters an issue."""


class CredentialError(Exception):
    """Occurs when registry credentials cannot be resolved from the local credential store."""


class InvalidRunnerSettings(Exception):
    """Occurs when required runner setting is missing or has an incorrect value."""


class InvalidPlatformError(ValueError):
    """Occurs when a platform string is not of the form 'os/arch[/variant]'."""


class InvalidReferenceError(ValueError):
    """Occurs when an image reference is not composed of '<repo>:<tag>'."""


class InvalidDigestError(ValueError):
    """Occurs when a digest is malformed or uses an unsupported algorithm."""


class ToolMissingError(Exception):
    """Occurs when an external tool binary is not installed."""


class CommandError(Exception):
    """Occurs when an external command exits with a non-zero status."""

    def __init__(self, args: List[str], returncode: int, message: Optional[str] = None) -> None:
        """
        Initialize.

        Args:
            args ([str]):
                Argument vector of the failed command.
            returncode (int):
                Exit status of the command.
            message (str):
                Optional custom message.
        """
        self.cmd = list(args)
        self.returncode = returncode
        super().__init__(
            message
            or "Command '{0}' returned non-zero exit status {1}".format(
                " ".join(self.cmd), returncode
            )
        )


class SigningError(Exception):
    """Occurs when the notary signing tool fails to sign a manifest."""
