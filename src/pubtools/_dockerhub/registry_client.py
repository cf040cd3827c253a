import hashlib
import logging
import threading
from typing import Any, Dict, Mapping, Optional, Tuple, Union
from urllib import request

import requests

from .exceptions import ManifestNotFoundError, RegistryAuthError
from .registry_session import RegistrySession
from .utils.misc import parse_image_reference, registry_api_host

LOG = logging.getLogger("pubtools.dockerhub")


class RegistryClient:
    """Class for performing Docker HTTP API operations with a container registry."""

    MANIFEST_LIST_TYPE = "application/vnd.docker.distribution.manifest.list.v2+json"
    MANIFEST_V2S2_TYPE = "application/vnd.docker.distribution.manifest.v2+json"
    MANIFEST_OCI_LIST_TYPE = "application/vnd.oci.image.index.v1+json"
    MANIFEST_OCI_V2S2_TYPE = "application/vnd.oci.image.manifest.v1+json"

    LIST_TYPES = (MANIFEST_LIST_TYPE, MANIFEST_OCI_LIST_TYPE)

    def __init__(
        self,
        username: Optional[str],
        password: Optional[str],
        host: Optional[str] = None,
        insecure: bool = False,
    ) -> None:
        """
        Initialize.

        Args:
            username (str):
                Registry username.
            password (str):
                Registry password.
            host (str):
                Registry API host. Docker Hub by default.
            insecure (bool):
                Whether to allow plain HTTP and skip TLS verification.
        """
        self.username = username
        self.password = password
        self.host = host
        self.insecure = insecure
        self.thread_local = threading.local()

    @property
    def session(self) -> RegistrySession:
        """Create RegistrySession object per thread."""
        if not hasattr(self.thread_local, "session"):
            self.thread_local.session = RegistrySession(hostname=self.host, insecure=self.insecure)
        return self.thread_local.session

    @classmethod
    def for_image(
        cls, image: str, username: Optional[str], password: Optional[str], insecure: bool = False
    ) -> "RegistryClient":
        """Create a client talking to the registry an image reference points to."""
        domain, _, _ = parse_image_reference(image)
        return cls(username, password, registry_api_host(domain), insecure=insecure)

    def get_manifest(self, image: str) -> Tuple[bytes, str, str]:
        """
        Get the manifest of an image, manifest lists are preferred.

        Args:
            image (str):
                Image reference to get the manifest of.
        Returns ((bytes, str, str)):
            Raw manifest, its media type and its digest.
        Raises:
            ManifestNotFoundError:
                When the registry has no such manifest.
        """
        _, repo, ref = parse_image_reference(image)
        endpoint = "{0}/manifests/{1}".format(repo, ref)
        accept = ",".join(
            [
                RegistryClient.MANIFEST_LIST_TYPE,
                RegistryClient.MANIFEST_OCI_LIST_TYPE,
                RegistryClient.MANIFEST_V2S2_TYPE,
                RegistryClient.MANIFEST_OCI_V2S2_TYPE,
            ]
        )
        try:
            response = self._request_registry("GET", endpoint, {"headers": {"Accept": accept}})
        except requests.exceptions.HTTPError as exc:
            if exc.response is not None and exc.response.status_code == 404:
                raise ManifestNotFoundError("Manifest of image '{0}' was not found".format(image))
            raise

        content = response.content
        media_type = response.headers.get("Content-Type", "").split(";")[0].strip()
        digest = response.headers.get("Docker-Content-Digest") or sha256_digest(content)
        return (content, media_type, digest)

    def upload_manifest(self, manifest: bytes, media_type: str, image: str) -> requests.Response:
        """
        Upload a raw manifest to a specified image.

        All manifest types are supported (manifest, manifest list).

        Args:
            manifest (bytes):
                Serialized manifest, uploaded byte for byte.
            media_type (str):
                Media type of the manifest.
            image (str):
                Image reference to upload the manifest to.
        Returns (Response):
            Request library's Response object.
        """
        _, repo, ref = parse_image_reference(image)
        endpoint = "{0}/manifests/{1}".format(repo, ref)
        kwargs = {"headers": {"Content-Type": media_type}, "data": manifest}
        return self._request_registry("PUT", endpoint, kwargs)

    def _request_registry(
        self, method: str, endpoint: str, kwargs: Optional[Dict[Any, Any]] = None
    ) -> requests.Response:
        """
        Send a registry API request, logging in with a Bearer token when challenged.

        Docker Hub answers anonymous manifest requests with 401 and a token challenge. The token
        obtained for the challenge is kept in the session, so the login happens once per
        repository scope.

        Args:
            method (str):
                HTTP method of the request.
            endpoint (str):
                Endpoint relative to '/v2/'.
            kwargs (dict):
                Extra arguments of the request (headers, data).
        Returns (Response):
            Successful response.
        Raises:
            HTTPError: When the registry rejects the request, also after logging in.
        """
        kwargs = kwargs or {}
        r = self.session.request(method, endpoint, **kwargs)
        if r.status_code != 401:
            r.raise_for_status()
            return r

        LOG.debug("Registry challenged %s %s, requesting a token", method, endpoint)
        self.session.set_auth_token(self._fetch_token(r.headers))
        r = self.session.request(method, endpoint, **kwargs)
        r.raise_for_status()
        return r

    def _fetch_token(self, headers: Union[Dict[Any, Any], Mapping[str, Any]]) -> str:
        """
        Get a Bearer token for the challenge of a 401 registry response.

        The challenge names the token endpoint ('realm') and the 'service' and 'scope' it should
        be asked for. The endpoint is called with the registry credentials as basic auth. See
        https://docs.docker.com/registry/spec/auth/token/

        Args:
            headers (dict):
                Headers of the 401 response.
        Returns (str):
            Token for the requested scope.
        Raises:
            RegistryAuthError:
                When the challenge is missing or not a Bearer one, or no token is returned.
        """
        challenge = headers.get("WWW-Authenticate")
        if not challenge:
            raise RegistryAuthError("Registry answered 401 without a 'WWW-Authenticate' challenge")
        scheme, _, params = challenge.partition(" ")
        if scheme.lower() != "bearer":
            raise RegistryAuthError(
                "Registry requested '{0}' authentication, only Bearer tokens are supported".format(
                    scheme
                )
            )

        query = request.parse_keqv_list(request.parse_http_list(params))
        realm = query.pop("realm")
        r = requests.get(
            realm, params=query, auth=(self.username or "", self.password or ""), timeout=10
        )
        r.raise_for_status()

        body = r.json()
        # Docker Hub returns both, other token servers only 'access_token'
        token = body.get("token") or body.get("access_token")
        if not token:
            raise RegistryAuthError("Token endpoint {0} returned no token".format(realm))
        return token


def sha256_digest(content: bytes) -> str:
    """Return the 'sha256:<hex>' digest of the content."""
    return "sha256:{0}".format(hashlib.sha256(content).hexdigest())
