"""Network diagnostics data models."""

from dataclasses import dataclass, field


@dataclass
class ProbeResult:
    """Outcome of a DNS + HTTP reachability probe against one host."""

    host: str
    resolved_ips: list[str] = field(default_factory=list)
    dns_error: str | None = None
    http_status: int | None = None
    latency_ms: float | None = None
    success: bool = False
    error: str | None = None


@dataclass
class DiagnosticsReport:
    """Aggregated probe results for a user-facing network report."""

    results: list[ProbeResult]
    proxy_enabled: bool = False

    @property
    def ok(self) -> bool:
        return bool(self.results) and all(r.success for r in self.results)

    def failed_hosts(self) -> list[str]:
        return [r.host for r in self.results if not r.success]

    def summary(self) -> str:
        """Render one line per host, plus a remediation hint on failure."""
        lines = []
        for r in self.results:
            if r.success:
                lines.append(f"{r.host}: OK (HTTP {r.http_status}, {r.latency_ms:.0f} ms)")
                continue
            reason = r.dns_error or r.error or f"HTTP {r.http_status}"
            lines.append(f"{r.host}: FAILED ({reason})")
        if not self.ok:
            if self.proxy_enabled:
                lines.append("Some GitHub hosts are unreachable through the configured proxy; check the proxy address.")
            else:
                lines.append("Some GitHub hosts are unreachable; consider enabling an HTTP or SOCKS proxy.")
        return "\n".join(lines)
