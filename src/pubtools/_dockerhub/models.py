import dataclasses
import enum
from typing import Tuple

from .types import Platform


@dataclasses.dataclass(frozen=True)
class PlatformTarget:
    """Target platform of a per-architecture image."""

    os: str
    architecture: str
    variant: str = ""

    def to_platform(self) -> Platform:
        """Return the platform in the shape used by manifest lists."""
        platform = Platform(os=self.os, architecture=self.architecture)
        if self.variant:
            platform["variant"] = self.variant
        return platform

    def __str__(self) -> str:
        """Return the slash delimited form of the platform."""
        return "/".join(p for p in (self.os, self.architecture, self.variant) if p)


@dataclasses.dataclass(frozen=True)
class ManifestEntry:
    """Per-architecture image which becomes one entry of a manifest list."""

    image: str
    platform: PlatformTarget


@dataclasses.dataclass(frozen=True)
class ManifestListInput:
    """Manifest list to be assembled and pushed to the registry."""

    image: str
    manifests: Tuple[ManifestEntry, ...]


@dataclasses.dataclass(frozen=True)
class PushResult:
    """Digest and byte length of a pushed manifest list."""

    digest: str
    length: int


@dataclasses.dataclass(frozen=True)
class AuthCredential:
    """Registry credentials."""

    username: str
    password: str = dataclasses.field(repr=False)


@dataclasses.dataclass(frozen=True)
class SignRequest:
    """Data needed to add a signed hash record to the trust server."""

    repo: str
    tag: str
    algorithm: str
    hash: str
    length: int


class PullResult(enum.Enum):
    """Outcome of an image pull which did not fail operationally."""

    FOUND = "found"
    NOT_FOUND = "not-found"
