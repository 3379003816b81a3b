"""
Configuration documents for githuboss.

Policy settings describe one repository-backed storage policy, basic settings
hold plugin-wide defaults, and NetworkSettings is the process-wide mutable
proxy/timeout configuration read before every remote call.
"""

import json
import os
import threading
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

from githuboss.exceptions import ConfigurationError
from githuboss.types.contents import Committer, RepositoryTarget

DEFAULT_BRANCH = "main"
DEFAULT_TIMEOUT_MS = 10000
MEGABYTE = 1024 * 1024
PROXY_SCHEMES = ("http", "https", "socks5", "socks5h")


class NamingPolicy(Enum):
    """Date-folder granularity for generated object keys."""

    NONE = "none"
    YEARLY = "yearly"
    MONTHLY = "monthly"
    DAILY = "daily"

    @classmethod
    def parse(cls, value: "str | NamingPolicy | None") -> "NamingPolicy":
        """Parse a policy name or one of the legacy date patterns."""
        if isinstance(value, NamingPolicy):
            return value
        # some older policies stored a boolean here
        if value is None or isinstance(value, bool) or not str(value).strip():
            return cls.NONE
        normalized = str(value).strip()
        legacy = {"yyyy": cls.YEARLY, "yyyyMM": cls.MONTHLY, "yyyyMMdd": cls.DAILY}
        if normalized in legacy:
            return legacy[normalized]
        try:
            return cls(normalized.lower())
        except ValueError:
            raise ConfigurationError(
                f"Invalid namingPolicy: {value!r}. Must be one of none, yearly, monthly, daily",
                fields=["namingPolicy"],
            ) from None


class ConflictStrategy(Enum):
    """How an upload picks a new name when its key is already taken."""

    BUMP = "bump"  # advance the timestamp suffix by one second
    RANDOM = "random"  # append a random suffix after a remote existence check


def _get(data: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    """Get the first present, non-empty value among several key spellings."""
    for key in keys:
        value = data.get(key)
        if value is not None and value != "":
            return value
    return default


def _optional_int(data: Mapping[str, Any], *keys: str) -> int | None:
    value = _get(data, *keys)
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"{keys[0]} must be an integer, got {value!r}", fields=[keys[0]]) from None


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


@dataclass
class PolicySettings:
    """Settings of one GitHub storage policy."""

    owner: str = ""
    repo: str = ""
    branch: str = DEFAULT_BRANCH
    root_path: str = ""
    token: str = field(default="", repr=False)
    naming_policy: NamingPolicy = NamingPolicy.NONE
    min_size_mb: int | None = None
    max_size_mb: int | None = None
    jsdelivr_host: str | None = None
    cdn_domains: list[str] = field(default_factory=list)
    conflict_strategy: ConflictStrategy = ConflictStrategy.BUMP

    @classmethod
    def from_document(cls, data: Mapping[str, Any]) -> "PolicySettings":
        """
        Build settings from a key-value document.

        Legacy key spellings (``repoName``, ``path``, ``namePrefix``,
        ``jsdelivr``) are accepted.

        Raises:
            ConfigurationError: If a value has the wrong type
        """
        strategy = str(_get(data, "conflictStrategy", default="bump")).lower()
        try:
            conflict_strategy = ConflictStrategy(strategy)
        except ValueError:
            raise ConfigurationError(
                f"Invalid conflictStrategy: {strategy!r}. Must be 'bump' or 'random'",
                fields=["conflictStrategy"],
            ) from None

        cdn_domains = _get(data, "cdnDomains", default=[])
        if isinstance(cdn_domains, str):
            cdn_domains = [d.strip() for d in cdn_domains.split(",") if d.strip()]

        return cls(
            owner=str(_get(data, "owner", default="")).strip(),
            repo=str(_get(data, "repo", "repoName", default="")).strip(),
            branch=str(_get(data, "branch", default=DEFAULT_BRANCH)).strip(),
            root_path=str(_get(data, "rootPath", "path", default="")).strip().strip("/"),
            token=str(_get(data, "token", "pat", default="")).strip(),
            naming_policy=NamingPolicy.parse(_get(data, "namingPolicy", "namePrefix")),
            min_size_mb=_optional_int(data, "minSizeMB"),
            max_size_mb=_optional_int(data, "maxSizeMB"),
            jsdelivr_host=_get(data, "jsdelivrHost", "jsdelivr"),
            cdn_domains=list(cdn_domains),
            conflict_strategy=conflict_strategy,
        )

    @classmethod
    def from_json(cls, text: str | None) -> "PolicySettings":
        """Build settings from a JSON document as stored by the host."""
        try:
            data = json.loads(text or "{}")
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Policy settings are not valid JSON: {e}") from e
        if not isinstance(data, dict):
            raise ConfigurationError("Policy settings must be a JSON object")
        return cls.from_document(data)

    def validate(self) -> None:
        """
        Check that the fields needed to reach GitHub are present.

        Raises:
            ConfigurationError: Naming every missing field
        """
        missing = [
            name
            for name, value in (("owner", self.owner), ("repo", self.repo), ("token", self.token))
            if not value
        ]
        if missing:
            raise ConfigurationError(
                f"Missing required policy setting(s): {', '.join(missing)}",
                fields=missing,
            )
        if self.min_size_mb and self.max_size_mb and self.min_size_mb > self.max_size_mb:
            raise ConfigurationError(
                f"minSizeMB ({self.min_size_mb}) is larger than maxSizeMB ({self.max_size_mb})",
                fields=["minSizeMB", "maxSizeMB"],
            )

    @property
    def min_size_bytes(self) -> int | None:
        if not self.min_size_mb or self.min_size_mb <= 0:
            return None
        return self.min_size_mb * MEGABYTE

    @property
    def max_size_bytes(self) -> int | None:
        if not self.max_size_mb or self.max_size_mb <= 0:
            return None
        return self.max_size_mb * MEGABYTE

    def target(self) -> RepositoryTarget:
        """The repository branch these settings write to."""
        return RepositoryTarget(
            owner=self.owner,
            repo=self.repo,
            branch=self.branch or DEFAULT_BRANCH,
            root_path=self.root_path,
            token=self.token,
        )


@dataclass
class BasicSettings:
    """Plugin-wide settings shared by every policy."""

    jsdelivr: str | None = None
    committer_name: str | None = None
    committer_email: str | None = None

    @classmethod
    def from_document(cls, data: Mapping[str, Any]) -> "BasicSettings":
        return cls(
            jsdelivr=_get(data, "jsdelivr", "jsdelivrHost"),
            committer_name=_get(data, "committerName", "name"),
            committer_email=_get(data, "committerEmail", "email"),
        )

    def committer(self) -> Committer | None:
        if self.committer_name and self.committer_email:
            return Committer(name=self.committer_name, email=self.committer_email)
        return None


@dataclass(frozen=True)
class NetworkConfig:
    """Immutable snapshot of proxy and timeout settings."""

    proxy_endpoint: str | None = None
    proxy_enabled: bool = False
    request_timeout_ms: int = DEFAULT_TIMEOUT_MS

    def __post_init__(self) -> None:
        if self.request_timeout_ms <= 0:
            raise ConfigurationError(
                f"timeoutMs must be positive, got {self.request_timeout_ms}",
                fields=["timeoutMs"],
            )
        if self.proxy_enabled and not self.proxy_endpoint:
            raise ConfigurationError(
                "Proxy is enabled but no proxy address is configured",
                fields=["proxyEndpoint"],
            )
        if self.proxy_endpoint and "://" in self.proxy_endpoint:
            scheme = self.proxy_endpoint.strip().split("://", 1)[0].lower()
            if scheme not in PROXY_SCHEMES:
                raise ConfigurationError(
                    f"Unsupported proxy scheme {scheme!r}, "
                    f"expected one of {', '.join(PROXY_SCHEMES)}",
                    fields=["proxyEndpoint"],
                )

    @property
    def timeout_seconds(self) -> float:
        return self.request_timeout_ms / 1000.0

    @property
    def proxy_url(self) -> str | None:
        """Proxy URL to route through, or None when proxying is off."""
        if not self.proxy_enabled or not self.proxy_endpoint:
            return None
        endpoint = self.proxy_endpoint.strip()
        if "://" not in endpoint:
            endpoint = f"http://{endpoint}"
        return endpoint

    @classmethod
    def from_document(cls, data: Mapping[str, Any]) -> "NetworkConfig":
        timeout = _optional_int(data, "timeoutMs")
        if timeout is None or timeout <= 0:
            timeout = DEFAULT_TIMEOUT_MS
        return cls(
            proxy_endpoint=_get(data, "proxyEndpoint", "proxyPath"),
            proxy_enabled=_as_bool(_get(data, "proxyEnabled", "enabled", default=False)),
            request_timeout_ms=timeout,
        )

    def to_document(self) -> dict[str, Any]:
        return {
            "proxyEndpoint": self.proxy_endpoint,
            "proxyEnabled": self.proxy_enabled,
            "timeoutMs": self.request_timeout_ms,
        }


class NetworkSettings:
    """
    Process-wide mutable network configuration.

    Readers always get a consistent snapshot; updates replace the snapshot
    atomically and apply to the next remote call.
    """

    def __init__(self, config: NetworkConfig | None = None) -> None:
        self._config = config or NetworkConfig()
        self._lock = threading.Lock()

    def get(self) -> NetworkConfig:
        with self._lock:
            return self._config

    def set(self, config: NetworkConfig) -> NetworkConfig:
        with self._lock:
            self._config = config
            return config

    def update(self, **changes: Any) -> NetworkConfig:
        """Replace individual fields, e.g. ``update(proxy_enabled=False)``."""
        with self._lock:
            self._config = replace(self._config, **changes)
            return self._config

    def update_from_document(self, data: Mapping[str, Any]) -> NetworkConfig:
        return self.set(NetworkConfig.from_document(data))

    def to_document(self) -> dict[str, Any]:
        return self.get().to_document()

    @classmethod
    def from_env(cls) -> "NetworkSettings":
        """
        Create network settings from environment variables.

        Environment variables:
            GITHUBOSS_PROXY: Proxy address, ``host:port`` or a URL (optional)
            GITHUBOSS_PROXY_ENABLED: "true" to route through the proxy (optional)
            GITHUBOSS_TIMEOUT_MS: Request timeout in milliseconds (optional, default: 10000)

        Raises:
            ConfigurationError: If a variable holds an invalid value
        """
        document: dict[str, Any] = {
            "proxyEndpoint": os.environ.get("GITHUBOSS_PROXY"),
            "proxyEnabled": os.environ.get("GITHUBOSS_PROXY_ENABLED", "false"),
        }
        timeout = os.environ.get("GITHUBOSS_TIMEOUT_MS")
        if timeout:
            try:
                timeout_ms = int(timeout)
            except ValueError:
                raise ConfigurationError(
                    f"Invalid GITHUBOSS_TIMEOUT_MS: {timeout!r}", fields=["timeoutMs"]
                ) from None
            if timeout_ms <= 0:
                raise ConfigurationError(
                    f"Invalid GITHUBOSS_TIMEOUT_MS: {timeout!r}", fields=["timeoutMs"]
                )
            document["timeoutMs"] = timeout_ms
        return cls(NetworkConfig.from_document(document))
