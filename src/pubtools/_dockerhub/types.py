from typing_extensions import TypedDict
from typing import List


class _PlatformBase(TypedDict):
    architecture: str
    os: str


class Platform(_PlatformBase, total=False):
    """Typed dict used to store platform data of a manifest list entry."""

    variant: str


class Manifest(TypedDict):
    """Typed dict used to store a manifest descriptor of a manifest list."""

    mediaType: str
    size: int
    digest: str
    platform: Platform


class ManifestList(TypedDict):
    """Typed dict used to store manifest list data."""

    schemaVersion: int
    mediaType: str
    manifests: List[Manifest]
