from typing import Any, Optional

import requests

from .utils.misc import DOCKER_HUB_API_HOST


class RegistrySession(object):
    """Helper class to handle HTTP requests to a container registry API."""

    def __init__(
        self,
        hostname: Optional[str] = None,
        insecure: bool = False,
    ) -> None:
        """
        Initialize.

        Args:
            hostname (str):
                Registry API host. Scheme may be included, 'https://' is assumed otherwise.
            insecure (bool):
                Whether to skip TLS verification and talk plain HTTP to hosts without a scheme.
        """
        self.hostname = hostname or DOCKER_HUB_API_HOST
        self.insecure = insecure
        self.session = requests.Session()
        self.session.verify = not insecure

    def request(self, method: str, endpoint: str, **kwargs: Any) -> requests.Response:
        """
        Perform a request of a given method against a registry API endpoint.

        Args:
            method (str):
                REST API method of the request (GET, POST, PUT, DELETE).
            endpoint (str):
                Endpoint of the request.
            **kwargs:
                Additional arguments to add to the requests method.
        Returns (requests.Response):
            Response of the request.
        """
        kwargs.setdefault("timeout", 10)
        return self.session.request(method, self._api_url(endpoint), **kwargs)

    def set_auth_token(self, token: str) -> None:
        """
        Set a Bearer token used by all subsequent requests.

        Args:
            token (str):
                Authentication token.
        """
        self.session.headers["Authorization"] = "Bearer {0}".format(token)

    def _api_url(self, endpoint: str) -> str:
        """
        Generate full URL out of an endpoint.

        Args:
            endpoint (str):
                Registry API endpoint, relative to '/v2/'.
        Returns (str):
            Full URL of the endpoint.
        """
        if self.hostname.startswith("http://") or self.hostname.startswith("https://"):
            base = self.hostname.rstrip("/")
        elif self.insecure:
            base = "http://{0}".format(self.hostname)
        else:
            base = "https://{0}".format(self.hostname)

        return "{0}/v2/{1}".format(base, endpoint.lstrip("/"))
