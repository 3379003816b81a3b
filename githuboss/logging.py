"""
githuboss logging utilities.

Provides configurable logging for GitHub API requests/responses and network
diagnostics. Ensures no credentials (tokens, Authorization headers) and no
file payloads are logged.
"""

import logging
import re
from typing import Any

# Create package-specific loggers
_sdk_logger = logging.getLogger("githuboss")
_http_logger = logging.getLogger("githuboss.http")
_diagnostics_logger = logging.getLogger("githuboss.diagnostics")

# Patterns for sensitive data that should be masked
_SENSITIVE_PATTERNS = [
    # Fine-grained personal access tokens
    (re.compile(r"github_pat_[A-Za-z0-9_]{20,}"), "[TOKEN_REDACTED]"),
    # Classic tokens: ghp_ (personal), gho_ (oauth), ghu_/ghs_ (app), ghr_ (refresh)
    (re.compile(r"gh[pousr]_[A-Za-z0-9]{20,}"), "[TOKEN_REDACTED]"),
    # Authorization header values
    (re.compile(r"(Bearer|token)\s+[A-Za-z0-9_\-\.=]{8,}", re.IGNORECASE), r"\1 [REDACTED]"),
    # Secret/token key-value patterns
    (re.compile(r"(secret|token|password|api_key)['\"]?\s*[:=]\s*['\"][^'\"]+['\"]", re.IGNORECASE), r"\1: [REDACTED]"),
]

_DEFAULT_SENSITIVE_KEYS = {"token", "authorization", "password", "secret", "api_key"}

# Request body keys whose values are file payloads, not secrets
_PAYLOAD_KEYS = {"content"}


def configure_logging(
    level: int = logging.INFO,
    http_level: int | None = None,
    diagnostics_level: int | None = None,
    handler: logging.Handler | None = None,
    format_string: str | None = None,
) -> None:
    """
    Configure githuboss logging.

    Args:
        level: Default log level for all githuboss loggers (default: INFO)
        http_level: Log level for HTTP request/response logging (default: same as level)
        diagnostics_level: Log level for connectivity probes (default: same as level)
        handler: Custom handler to use (default: StreamHandler to stderr)
        format_string: Custom format string (default: includes timestamp, level, logger name)

    Example:
        ```python
        import logging
        from githuboss.logging import configure_logging

        # Trace every GitHub API call
        configure_logging(level=logging.INFO, http_level=logging.DEBUG)
        ```
    """
    if format_string is None:
        format_string = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    formatter = logging.Formatter(format_string)

    if handler is None:
        handler = logging.StreamHandler()

    handler.setFormatter(formatter)

    _sdk_logger.setLevel(level)
    _sdk_logger.addHandler(handler)

    _http_logger.setLevel(http_level if http_level is not None else level)

    _diagnostics_logger.setLevel(diagnostics_level if diagnostics_level is not None else level)


def get_logger(name: str | None = None) -> logging.Logger:
    """
    Get a githuboss logger.

    Args:
        name: Logger name suffix (e.g., "http", "adapter"). If None, returns main logger.

    Returns:
        Logger instance
    """
    if name is None:
        return _sdk_logger
    return logging.getLogger(f"githuboss.{name}")


def mask_sensitive_data(text: str) -> str:
    """
    Mask sensitive data in a string.

    Replaces GitHub tokens, Authorization header values and other secret
    patterns with redacted placeholders.

    Args:
        text: Text that may contain sensitive data

    Returns:
        Text with sensitive data masked
    """
    result = text
    for pattern, replacement in _SENSITIVE_PATTERNS:
        result = pattern.sub(replacement, result)
    return result


def safe_log_dict(data: dict[str, Any], sensitive_keys: set[str] | None = None) -> dict[str, Any]:
    """
    Create a copy of a dictionary with sensitive values masked.

    Base64 file payloads under ``content`` are replaced by their length so
    request logs stay readable.

    Args:
        data: Dictionary that may contain sensitive values
        sensitive_keys: Set of keys to mask (default: token, authorization, password, secret)

    Returns:
        Dictionary with sensitive values replaced with "[REDACTED]"
    """
    if sensitive_keys is None:
        sensitive_keys = _DEFAULT_SENSITIVE_KEYS

    result: dict[str, Any] = {}
    for key, value in data.items():
        key_lower = key.lower()
        if key_lower in sensitive_keys or any(sk in key_lower for sk in sensitive_keys):
            result[key] = "[REDACTED]"
        elif key_lower in _PAYLOAD_KEYS and isinstance(value, str):
            result[key] = f"[{len(value)} chars]"
        elif isinstance(value, dict):
            result[key] = safe_log_dict(value, sensitive_keys)
        elif isinstance(value, list):
            result[key] = [
                safe_log_dict(item, sensitive_keys) if isinstance(item, dict) else item
                for item in value
            ]
        else:
            result[key] = value

    return result


def log_http_request(
    method: str,
    url: str,
    headers: dict[str, str] | None = None,
    body: dict[str, Any] | None = None,
) -> None:
    """
    Log an HTTP request at DEBUG level with sensitive data masked.

    Args:
        method: HTTP method (GET, PUT, DELETE, HEAD)
        url: Request URL
        headers: Request headers (optional)
        body: Request body (optional)
    """
    if not _http_logger.isEnabledFor(logging.DEBUG):
        return

    log_parts = [f"{method} {url}"]

    if headers:
        log_parts.append(f"headers={safe_log_dict(headers)}")

    if body:
        log_parts.append(f"body={safe_log_dict(body)}")

    _http_logger.debug(" | ".join(log_parts))


def log_http_response(
    status_code: int,
    url: str,
    body: str | None = None,
    elapsed_ms: float | None = None,
) -> None:
    """
    Log an HTTP response at DEBUG level with sensitive data masked.

    Args:
        status_code: HTTP status code
        url: Request URL
        body: Raw response text (optional, truncated)
        elapsed_ms: Request duration in milliseconds (optional)
    """
    if not _http_logger.isEnabledFor(logging.DEBUG):
        return

    log_parts = [f"Response {status_code} from {url}"]

    if elapsed_ms is not None:
        log_parts.append(f"elapsed={elapsed_ms:.2f}ms")

    if body:
        log_parts.append(f"body={mask_sensitive_data(body[:500])}")

    _http_logger.debug(" | ".join(log_parts))


def log_probe_result(host: str, success: bool, detail: str) -> None:
    """
    Log a connectivity probe outcome.

    Failures are logged at WARNING, successes at DEBUG.
    """
    if success:
        _diagnostics_logger.debug("probe %s ok: %s", host, detail)
    else:
        _diagnostics_logger.warning("probe %s failed: %s", host, mask_sensitive_data(detail))


# Export public API
__all__ = [
    "configure_logging",
    "get_logger",
    "mask_sensitive_data",
    "safe_log_dict",
    "log_http_request",
    "log_http_response",
    "log_probe_result",
]
