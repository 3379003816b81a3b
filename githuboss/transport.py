"""
HTTP Transport for githuboss.

Handles HTTP communication with the GitHub REST API: authentication headers,
proxy routing and timeouts taken from the live NetworkSettings, and error
response parsing into typed exceptions. Requests are never retried here.
"""

import threading
import time
from typing import Any

import httpx

from githuboss.config import NetworkConfig, NetworkSettings
from githuboss.exceptions import (
    AuthError,
    ConfigurationError,
    ConflictError,
    GitHubOssError,
    NotFoundError,
    ProtocolError,
    RemoteError,
    RequestTimeoutError,
    UnreachableError,
)
from githuboss.logging import get_logger, log_http_request, log_http_response

logger = get_logger("http")


class HTTPTransport:
    """
    HTTP transport layer for the GitHub REST API.

    Handles:
    - Bearer authentication and GitHub media-type headers
    - Proxy and timeout settings re-read before every call
    - Mapping of transport failures to RequestTimeoutError/UnreachableError
    - Error response parsing into typed exceptions
    """

    DEFAULT_BASE_URL = "https://api.github.com"
    API_VERSION = "2022-11-28"
    USER_AGENT = "githuboss"

    def __init__(
        self,
        network: NetworkSettings | None = None,
        base_url: str = DEFAULT_BASE_URL,
        http_transport: httpx.BaseTransport | None = None,
    ) -> None:
        """
        Initialize HTTP transport.

        Args:
            network: Live proxy/timeout settings (default: no proxy, 10s timeout)
            base_url: Base URL for API requests (e.g., "https://api.github.com")
            http_transport: Optional httpx transport, e.g. ``httpx.MockTransport`` in tests
        """
        self.base_url = base_url.rstrip("/")
        self.network = network or NetworkSettings()
        self._http_transport = http_transport
        self._clients: dict[NetworkConfig, httpx.Client] = {}
        self._clients_lock = threading.Lock()

    def close(self) -> None:
        """Close every HTTP client created so far."""
        with self._clients_lock:
            clients = list(self._clients.values())
            self._clients.clear()
        for client in clients:
            client.close()

    def __enter__(self) -> "HTTPTransport":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def request(
        self,
        method: str,
        path: str,
        token: str,
        params: dict[str, Any] | None = None,
        body: dict[str, Any] | None = None,
    ) -> Any:
        """
        Make an authenticated GitHub API request.

        Args:
            method: HTTP method (GET, PUT, DELETE)
            path: API path, already percent-encoded (e.g., "/repos/o/r/contents/a.png")
            token: GitHub token sent as a Bearer credential
            params: Query parameters
            body: JSON request body

        Returns:
            Parsed JSON response (empty dict for an empty body)

        Raises:
            ConfigurationError: If no token is given
            AuthError, NotFoundError, ConflictError, RemoteError: On error statuses
            ProtocolError: If a successful response is not JSON
            RequestTimeoutError, UnreachableError: On transport failures
        """
        if not token:
            raise ConfigurationError("A GitHub token is required", fields=["token"])

        config = self.network.get()
        client = self._client_for(config)
        headers = {"Authorization": f"Bearer {token}"}
        url = f"{self.base_url}{path}"

        log_http_request(method, url, headers, body)
        started = time.monotonic()
        try:
            response = client.request(method, path, params=params, json=body, headers=headers)
        except httpx.RequestError as e:
            raise self._map_request_error(e, method, url, config) from e
        elapsed_ms = (time.monotonic() - started) * 1000
        log_http_response(response.status_code, url, response.text, elapsed_ms)

        if 200 <= response.status_code < 300:
            if not response.content:
                return {}
            try:
                return response.json()
            except ValueError as e:
                raise ProtocolError(
                    f"{method} {path} returned HTTP {response.status_code} with a non-JSON body"
                ) from e

        raise self._parse_error_response(response)

    def prepare(self) -> httpx.Client:
        """
        Build (or reuse) the HTTP client for the current network settings.

        Raises:
            ConfigurationError: If the proxy or timeout settings are unusable
        """
        return self._client_for(self.network.get())

    def head(self, url: str) -> httpx.Response:
        """
        Send an unauthenticated HEAD request to an absolute URL.

        Used by connectivity probes; status codes are returned, not raised.

        Raises:
            RequestTimeoutError, UnreachableError: On transport failures
        """
        config = self.network.get()
        client = self._client_for(config)
        log_http_request("HEAD", url)
        try:
            return client.head(url)
        except httpx.RequestError as e:
            raise self._map_request_error(e, "HEAD", url, config) from e

    def _client_options(self, config: NetworkConfig) -> dict[str, Any]:
        """Keyword arguments for an httpx.Client honouring ``config``."""
        options: dict[str, Any] = {
            "base_url": self.base_url,
            "timeout": httpx.Timeout(config.timeout_seconds),
            "follow_redirects": True,
            "headers": {
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": self.API_VERSION,
                "User-Agent": self.USER_AGENT,
            },
        }
        if config.proxy_url is not None:
            options["proxy"] = config.proxy_url
        if self._http_transport is not None:
            options["transport"] = self._http_transport
        return options

    def _client_for(self, config: NetworkConfig) -> httpx.Client:
        """
        Return the client for a settings snapshot, creating it on first use.

        Clients built for earlier snapshots are closed once a new snapshot
        replaces them.

        Raises:
            ConfigurationError: If httpx rejects the proxy or timeout settings
        """
        with self._clients_lock:
            client = self._clients.get(config)
            if client is not None:
                return client
            logger.debug(
                "creating HTTP client (proxy=%s, timeout=%sms)",
                config.proxy_url or "off",
                config.request_timeout_ms,
            )
            try:
                client = httpx.Client(**self._client_options(config))
            except (ValueError, TypeError, ImportError) as e:
                raise ConfigurationError(
                    "HTTP client rejected the network settings "
                    f"(proxy={config.proxy_url or 'off'}): {e}",
                    fields=["proxyEndpoint"],
                ) from e
            replaced = list(self._clients.values())
            self._clients = {config: client}
        for old in replaced:
            old.close()
        return client

    def _map_request_error(
        self,
        error: httpx.RequestError,
        method: str,
        url: str,
        config: NetworkConfig,
    ) -> GitHubOssError:
        """
        Convert an httpx transport failure into a network error.

        Args:
            error: The httpx exception
            method: HTTP method of the failed request
            url: Absolute URL of the failed request
            config: Network settings the request was sent with

        Returns:
            RequestTimeoutError or UnreachableError
        """
        via = f" via proxy {config.proxy_url}" if config.proxy_url else ""
        logger.warning("%s %s failed%s: %s", method, url, via, error)

        if isinstance(error, httpx.TimeoutException):
            return RequestTimeoutError(
                f"{method} {url} timed out after {config.request_timeout_ms} ms{via}"
            )
        if isinstance(error, httpx.ProxyError):
            return UnreachableError(f"proxy {config.proxy_url} refused {method} {url}: {error}")
        return UnreachableError(f"could not reach {url}{via}: {error}")

    def _parse_error_response(self, response: httpx.Response) -> GitHubOssError:
        """
        Parse an error response into a typed exception.

        Args:
            response: HTTP response with error status

        Returns:
            Appropriate GitHubOssError subclass
        """
        try:
            data = response.json()
        except ValueError:
            data = {}

        message = data.get("message") if isinstance(data, dict) else None
        message = message or f"HTTP {response.status_code}"
        status_code = response.status_code

        if status_code in (401, 403):
            return AuthError(f"GitHub rejected the credentials: {message}", status_code)
        elif status_code == 404:
            return NotFoundError(message)
        elif status_code == 409:
            return ConflictError(
                f"GitHub reported a conflicting commit on the branch: {message}",
                response.text,
            )
        else:
            return RemoteError(status_code, response.text, f"GitHub responded with HTTP {status_code}: {message}")
