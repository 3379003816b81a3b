"""githuboss exception classes and boundary error mapping."""

import socket
from collections.abc import Sequence

import httpx

PROXY_HINT = (
    "check your network connection; if GitHub is not directly reachable "
    "from this server, enable and configure an HTTP or SOCKS proxy"
)
TOKEN_HINT = "check that the GitHub token is valid and has Contents read/write permission"


class GitHubOssError(Exception):
    """Base exception for all githuboss errors."""

    def __init__(self, code: str, message: str, hint: str | None = None) -> None:
        self.code = code
        self.message = message
        self.hint = hint
        text = f"[{code}] {message}"
        if hint:
            text = f"{text} ({hint})"
        super().__init__(text)


class ConfigurationError(GitHubOssError):
    """Raised when policy or network settings are missing or invalid."""

    def __init__(self, message: str, fields: Sequence[str] = ()) -> None:
        super().__init__("CONFIGURATION_ERROR", message)
        self.fields = tuple(fields)


class ValidationError(GitHubOssError):
    """Raised when uploaded content is rejected before reaching GitHub."""

    def __init__(self, message: str) -> None:
        super().__init__("VALIDATION_ERROR", message)


class AuthError(GitHubOssError):
    """Raised on 401/403 responses."""

    def __init__(self, message: str, status_code: int) -> None:
        super().__init__("AUTH_ERROR", message, TOKEN_HINT)
        self.status_code = status_code


class NotFoundError(GitHubOssError):
    """Raised when a path or ref does not exist."""

    def __init__(self, message: str) -> None:
        super().__init__("NOT_FOUND", message)


class ConflictError(GitHubOssError):
    """Raised on 409: the ref moved while the commit was composed."""

    def __init__(self, message: str, body: str = "") -> None:
        super().__init__("CONFLICT", message)
        self.body = body


class RemoteError(GitHubOssError):
    """Raised on any other non-2xx response."""

    def __init__(self, status_code: int, body: str, message: str | None = None) -> None:
        super().__init__("REMOTE_ERROR", message or f"GitHub responded with HTTP {status_code}")
        self.status_code = status_code
        self.body = body


class ProtocolError(GitHubOssError):
    """Raised when a successful response is not in the expected shape."""

    def __init__(self, message: str) -> None:
        super().__init__("PROTOCOL_ERROR", message)


class NetworkError(GitHubOssError):
    """Base class for transport-level failures."""

    pass


class RequestTimeoutError(NetworkError):
    """Raised when a request exceeds the configured timeout."""

    def __init__(self, message: str) -> None:
        super().__init__("TIMEOUT", message, PROXY_HINT)


class UnreachableError(NetworkError):
    """Raised when GitHub cannot be reached (DNS, connect, proxy)."""

    def __init__(self, message: str) -> None:
        super().__init__("UNREACHABLE", message, PROXY_HINT)


class KeyGenerationExhaustedError(GitHubOssError):
    """Raised when no free object key could be generated."""

    def __init__(self, message: str) -> None:
        super().__init__("KEY_GENERATION_EXHAUSTED", message, "rename the file and retry")


class FileAlreadyExistsError(GitHubOssError):
    """Raised when random-suffix renaming could not find a free name."""

    def __init__(self, object_key: str) -> None:
        super().__init__(
            "FILE_ALREADY_EXISTS",
            f"file {object_key} already exists",
            "rename the file and retry",
        )
        self.object_key = object_key


class LockInterruptedError(GitHubOssError):
    """Raised when waiting for a repository write lock is abandoned."""

    def __init__(self, message: str) -> None:
        super().__init__("INTERRUPTED", message)


def map_exception(error: BaseException) -> GitHubOssError:
    """
    Map a raw exception onto the githuboss error taxonomy.

    Exceptions that already belong to the taxonomy are returned unchanged.

    Args:
        error: The exception raised by a lower layer

    Returns:
        A GitHubOssError describing the failure
    """
    if isinstance(error, GitHubOssError):
        return error
    if isinstance(error, httpx.TimeoutException):
        return RequestTimeoutError(f"request to GitHub timed out: {error}")
    if isinstance(error, httpx.ProxyError):
        return UnreachableError(f"proxy connection failed: {error}")
    if isinstance(error, socket.gaierror):
        return UnreachableError(f"could not resolve GitHub host: {error}")
    if isinstance(error, (httpx.ConnectError, httpx.RequestError)):
        return UnreachableError(f"could not connect to GitHub: {error}")
    if isinstance(error, TimeoutError):
        return RequestTimeoutError(f"request to GitHub timed out: {error}")
    if isinstance(error, OSError):
        return UnreachableError(f"network I/O failure: {error}")
    return GitHubOssError("UNKNOWN_ERROR", f"GitHub operation failed: {error}")
