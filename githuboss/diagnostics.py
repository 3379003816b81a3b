"""
Connectivity and network diagnostics for GitHub hosts.

A probe resolves the host name and then sends a HEAD request through the
configured proxy. Probes never raise: every failure is recorded in the
ProbeResult so it can be shown to the user.
"""

import socket
import time
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING

from githuboss.exceptions import GitHubOssError
from githuboss.logging import log_probe_result
from githuboss.types.network import DiagnosticsReport, ProbeResult

if TYPE_CHECKING:
    from githuboss.transport import HTTPTransport

API_HOST = "api.github.com"
DEFAULT_HOSTS = ("github.com", API_HOST, "raw.githubusercontent.com")


class NetworkDiagnostics:
    """DNS and HTTP reachability probes against GitHub hosts."""

    def __init__(self, transport: "HTTPTransport") -> None:
        """
        Initialize diagnostics.

        Args:
            transport: HTTP transport whose proxy/timeout settings probes use
        """
        self.transport = transport

    def resolve(self, host: str) -> tuple[list[str], str | None]:
        """Resolve ``host``; returns (addresses, error message)."""
        try:
            infos = socket.getaddrinfo(host, 443, type=socket.SOCK_STREAM)
        except OSError as e:
            return [], f"DNS resolution failed: {e}"
        addresses: list[str] = []
        for info in infos:
            address = str(info[4][0])
            if address not in addresses:
                addresses.append(address)
        return addresses, None

    def probe(self, host: str) -> ProbeResult:
        """
        Probe one host.

        DNS is resolved locally even when a proxy is configured, so a result
        may show a DNS error together with a successful HTTP request.

        Args:
            host: Host name, e.g. "api.github.com"

        Returns:
            ProbeResult; ``success`` is true when HEAD returned 2xx or 3xx
        """
        result = ProbeResult(host=host)
        result.resolved_ips, result.dns_error = self.resolve(host)

        started = time.monotonic()
        try:
            response = self.transport.head(f"https://{host}/")
        except GitHubOssError as e:
            result.error = e.message
        else:
            result.http_status = response.status_code
            result.success = 200 <= response.status_code < 400
            if not result.success:
                result.error = f"unexpected HTTP status {response.status_code}"
        result.latency_ms = (time.monotonic() - started) * 1000

        detail = result.error or f"HTTP {result.http_status} in {result.latency_ms:.0f}ms"
        log_probe_result(host, result.success, detail)
        return result

    def check_connectivity(self) -> bool:
        """
        Whether the GitHub API host is reachable right now.

        Raises:
            ConfigurationError: If the network settings cannot be used at all
        """
        self.transport.prepare()
        return self.probe(API_HOST).success

    def run_diagnostics(self, hosts: Sequence[str] = DEFAULT_HOSTS) -> DiagnosticsReport:
        """
        Probe several hosts concurrently.

        Args:
            hosts: Host names to probe (default: github.com, api.github.com,
                raw.githubusercontent.com)

        Returns:
            DiagnosticsReport with results in the order of ``hosts``
        """
        if not hosts:
            return DiagnosticsReport(results=[], proxy_enabled=self.transport.network.get().proxy_enabled)
        with ThreadPoolExecutor(max_workers=len(hosts), thread_name_prefix="githuboss-probe") as pool:
            results = list(pool.map(self.probe, hosts))
        return DiagnosticsReport(
            results=results,
            proxy_enabled=self.transport.network.get().proxy_enabled,
        )
