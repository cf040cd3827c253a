import json
import logging
from typing import Any, Dict, List, Optional, Sequence, cast

import yaml

from .config import DEFAULT_PLATFORMS
from .exceptions import InvalidPlatformError, ManifestNotFoundError, ManifestTypeError
from .models import AuthCredential, ManifestEntry, ManifestListInput, PlatformTarget, PushResult
from .registry_client import RegistryClient, sha256_digest
from .types import Manifest, ManifestList
from .utils.misc import log_step

LOG = logging.getLogger("pubtools.dockerhub")


def parse_platform(index: int, platform: str) -> PlatformTarget:
    """
    Parse a platform string of the form 'os/arch' or 'os/arch/variant'.

    Args:
        index (int):
            Position of the platform in the platform list, used in error messages.
        platform (str):
            Platform string.
    Returns (PlatformTarget):
        Parsed platform.
    Raises:
        InvalidPlatformError:
            When the string doesn't consist of 2 or 3 non-empty parts.
    """
    parts = platform.split("/")
    if len(parts) not in (2, 3) or not all(parts):
        raise InvalidPlatformError(
            "platform argument {0} is not of form 'os/arch': '{1}'".format(index, platform)
        )
    return PlatformTarget(*parts)


def compose_manifest_list(image: str, platforms: Sequence[str]) -> ManifestListInput:
    """
    Compose manifest list input out of per-architecture images of a base image.

    Every platform gets one entry referencing '<image>-<architecture>'. Entries keep the order of
    the platforms.

    Args:
        image (str):
            Base image reference the manifest list will be pushed to.
        platforms ([str]):
            Platform strings.
    Returns (ManifestListInput):
        Manifest list input.
    """
    if not platforms:
        raise InvalidPlatformError("At least one platform must be specified")
    entries = []
    for i, platform in enumerate(platforms):
        target = parse_platform(i, platform)
        entries.append(
            ManifestEntry(image="{0}-{1}".format(image, target.architecture), platform=target)
        )
    return ManifestListInput(image=image, manifests=tuple(entries))


def load_manifest_list_file(path: str) -> ManifestListInput:
    """
    Load manifest list input from a YAML file.

    Expected format::

        image: example/app:1.0
        manifests:
          - image: example/app:1.0-arm
            platform:
              os: linux
              architecture: arm
              variant: v7

    Args:
        path (str):
            Path to the YAML file.
    Returns (ManifestListInput):
        Manifest list input.
    """
    with open(path) as f:
        data = yaml.safe_load(f)

    if not isinstance(data, dict) or not data.get("image") or not data.get("manifests"):
        raise ValueError(
            "Manifest list file '{0}' must contain 'image' and 'manifests'".format(path)
        )
    entries = []
    for i, item in enumerate(data["manifests"]):
        platform = item.get("platform") or {}
        if not item.get("image") or not platform.get("os") or not platform.get("architecture"):
            raise InvalidPlatformError(
                "manifest entry {0} of '{1}' needs 'image', 'platform.os' and "
                "'platform.architecture'".format(i, path)
            )
        target = PlatformTarget(
            os=platform["os"],
            architecture=platform["architecture"],
            variant=platform.get("variant") or "",
        )
        entries.append(ManifestEntry(image=item["image"], platform=target))
    return ManifestListInput(image=data["image"], manifests=tuple(entries))


class ManifestListPusher:
    """Assemble a manifest list out of per-architecture images and push it to a registry."""

    def __init__(
        self,
        platforms: Sequence[str] = DEFAULT_PLATFORMS,
        ignore_missing: bool = False,
        insecure: bool = False,
        manifest_list_file: Optional[str] = None,
    ) -> None:
        """
        Initialize.

        Args:
            platforms ([str]):
                Platforms of the manifest list, in the order of its entries.
            ignore_missing (bool):
                Whether to leave out per-architecture images missing from the registry instead
                of failing.
            insecure (bool):
                Whether to allow plain HTTP and skip TLS verification.
            manifest_list_file (str):
                YAML file describing the manifest list. Overrides the platform composition.
        """
        self.platforms = tuple(platforms)
        self.ignore_missing = ignore_missing
        self.insecure = insecure
        self.manifest_list_file = manifest_list_file

    def compose(self, image: str) -> ManifestListInput:
        """Return the manifest list input for an image."""
        if self.manifest_list_file:
            return load_manifest_list_file(self.manifest_list_file)
        return compose_manifest_list(image, self.platforms)

    @log_step("Push manifest list")
    def push(self, image: str, auth: AuthCredential) -> PushResult:
        """
        Compose the manifest list of an image and push it to the registry.

        Args:
            image (str):
                Base image reference, the manifest list is pushed to it.
            auth (AuthCredential):
                Registry credentials.
        Returns (PushResult):
            Digest and byte length of the pushed manifest list.
        """
        ml_input = self.compose(image)
        client = RegistryClient.for_image(
            ml_input.image, auth.username, auth.password, insecure=self.insecure
        )
        return self.push_manifest_list(ml_input, client)

    def push_manifest_list(
        self, ml_input: ManifestListInput, client: RegistryClient
    ) -> PushResult:
        """
        Push composed manifest list input using a registry client.

        Args:
            ml_input (ManifestListInput):
                Manifest list input.
            client (RegistryClient):
                Client of the registry the manifest list is pushed to.
        Returns (PushResult):
            Digest and byte length of the pushed manifest list.
        """
        descriptors: List[Manifest] = []
        for entry in ml_input.manifests:
            descriptor = self._get_descriptor(entry, client)
            if descriptor is not None:
                descriptors.append(descriptor)

        if not descriptors:
            raise ManifestNotFoundError(
                "None of the images of manifest list '{0}' were found".format(ml_input.image)
            )

        manifest_list = build_manifest_list(descriptors)
        media_type = manifest_list["mediaType"]
        content = serialize_manifest_list(manifest_list)
        LOG.info(
            "Uploading manifest list with {0} entries to '{1}'".format(
                len(descriptors), ml_input.image
            )
        )
        response = client.upload_manifest(content, media_type, ml_input.image)

        digest = sha256_digest(content)
        registry_digest = response.headers.get("Docker-Content-Digest")
        if registry_digest and registry_digest != digest:
            LOG.warning(
                "Registry reported digest {0} for manifest list '{1}', expected {2}".format(
                    registry_digest, ml_input.image, digest
                )
            )
        LOG.info("Digest of manifest list '{0}': {1}".format(ml_input.image, digest))
        return PushResult(digest=digest, length=len(content))

    def _get_descriptor(self, entry: ManifestEntry, client: RegistryClient) -> Optional[Manifest]:
        try:
            content, media_type, digest = client.get_manifest(entry.image)
        except ManifestNotFoundError:
            if not self.ignore_missing:
                raise
            LOG.warning("Image '{0}' not found, leaving it out".format(entry.image))
            return None

        platform = entry.platform.to_platform()
        if media_type in RegistryClient.LIST_TYPES:
            # per-arch reference pushed as a list itself, take the matching platform
            for manifest in json.loads(content)["manifests"]:
                if _platform_matches(manifest.get("platform", {}), entry.platform):
                    return Manifest(
                        mediaType=manifest["mediaType"],
                        size=manifest["size"],
                        digest=manifest["digest"],
                        platform=platform,
                    )
            raise ManifestTypeError(
                "Manifest list of image '{0}' has no {1} manifest".format(
                    entry.image, entry.platform
                )
            )

        if media_type not in (
            RegistryClient.MANIFEST_V2S2_TYPE,
            RegistryClient.MANIFEST_OCI_V2S2_TYPE,
        ):
            raise ManifestTypeError(
                "Image '{0}' has unsupported manifest type '{1}'".format(entry.image, media_type)
            )
        return Manifest(mediaType=media_type, size=len(content), digest=digest, platform=platform)


def _platform_matches(platform: Dict[str, Any], target: PlatformTarget) -> bool:
    if platform.get("os") != target.os or platform.get("architecture") != target.architecture:
        return False
    return not target.variant or platform.get("variant") == target.variant


def build_manifest_list(descriptors: List[Manifest]) -> ManifestList:
    """
    Build a manifest list out of manifest descriptors.

    OCI index media type is used when any of the manifests is an OCI manifest, Docker manifest
    list otherwise.
    """
    if any(d["mediaType"] == RegistryClient.MANIFEST_OCI_V2S2_TYPE for d in descriptors):
        media_type = RegistryClient.MANIFEST_OCI_LIST_TYPE
    else:
        media_type = RegistryClient.MANIFEST_LIST_TYPE
    return ManifestList(schemaVersion=2, mediaType=media_type, manifests=list(descriptors))


def serialize_manifest_list(manifest_list: ManifestList) -> bytes:
    """Serialize a manifest list deterministically, the bytes the digest is computed of."""
    return json.dumps(cast(Dict[str, Any], manifest_list), sort_keys=True, indent=4).encode(
        "utf-8"
    )
