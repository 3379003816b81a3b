"""
githuboss main client.

Bundles the HTTP transport, the contents client and network diagnostics that
share one set of live network settings.
"""

import os
from typing import Any

import httpx

from githuboss.clients import ContentsClient
from githuboss.config import NetworkSettings
from githuboss.diagnostics import NetworkDiagnostics
from githuboss.transport import HTTPTransport


class GitHubOssClient:
    """
    Main client for storing files in GitHub repositories.

    Example:
        ```python
        from githuboss import GitHubOssClient, RepositoryTarget

        # Create client with default network settings
        client = GitHubOssClient()

        # Or create from environment variables
        client = GitHubOssClient.from_env()

        target = RepositoryTarget(owner="me", repo="images", token="ghp_...")
        meta = client.contents.put(target, "a/b.png", data, "Upload b.png")

        # Switch the proxy off for the next request
        client.network.update(proxy_enabled=False)
        ```
    """

    DEFAULT_BASE_URL = HTTPTransport.DEFAULT_BASE_URL

    def __init__(
        self,
        network: NetworkSettings | None = None,
        base_url: str = DEFAULT_BASE_URL,
        http_transport: httpx.BaseTransport | None = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            network: Live proxy/timeout settings (default: no proxy, 10s timeout)
            base_url: Base URL for API requests (default: https://api.github.com)
            http_transport: Optional httpx transport, e.g. ``httpx.MockTransport`` in tests
        """
        self.network = network or NetworkSettings()
        self.base_url = base_url

        self._transport = HTTPTransport(
            network=self.network,
            base_url=base_url,
            http_transport=http_transport,
        )

        self.contents = ContentsClient(self._transport)
        self.diagnostics = NetworkDiagnostics(self._transport)

    @classmethod
    def from_env(cls, http_transport: httpx.BaseTransport | None = None) -> "GitHubOssClient":
        """
        Create a client from environment variables.

        Environment variables:
            GITHUBOSS_BASE_URL: Base URL for API (optional, default: https://api.github.com)
            GITHUBOSS_PROXY, GITHUBOSS_PROXY_ENABLED, GITHUBOSS_TIMEOUT_MS:
                see ``NetworkSettings.from_env``

        Raises:
            ConfigurationError: If a variable holds an invalid value
        """
        return cls(
            network=NetworkSettings.from_env(),
            base_url=os.environ.get("GITHUBOSS_BASE_URL", cls.DEFAULT_BASE_URL),
            http_transport=http_transport,
        )

    @property
    def transport(self) -> HTTPTransport:
        """Get the underlying HTTP transport (for advanced use cases)."""
        return self._transport

    def close(self) -> None:
        """Close the client and release resources."""
        self._transport.close()

    def __enter__(self) -> "GitHubOssClient":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()
