"""githuboss - store CMS attachments in GitHub repositories, served through jsDelivr."""

from githuboss.adapter import AttachmentAdapter
from githuboss.client import GitHubOssClient
from githuboss.clients import ContentsClient
from githuboss.config import (
    BasicSettings,
    ConflictStrategy,
    NamingPolicy,
    NetworkConfig,
    NetworkSettings,
    PolicySettings,
)
from githuboss.diagnostics import NetworkDiagnostics
from githuboss.exceptions import (
    AuthError,
    ConfigurationError,
    ConflictError,
    FileAlreadyExistsError,
    GitHubOssError,
    KeyGenerationExhaustedError,
    LockInterruptedError,
    NetworkError,
    NotFoundError,
    ProtocolError,
    RemoteError,
    RequestTimeoutError,
    UnreachableError,
    ValidationError,
)
from githuboss.keys import PathKeyBuilder, RandomSuffixKeyBuilder, ReservedPathSet
from githuboss.logging import configure_logging, get_logger
from githuboss.serializer import CommitSerializer, FairLock
from githuboss.transport import HTTPTransport
from githuboss.types import (
    Attachment,
    Committer,
    DiagnosticsReport,
    KeyReservation,
    LinkRequest,
    LinkResult,
    ObjectMeta,
    ObjectRecord,
    ProbeResult,
    RepositoryTarget,
    TreeEntry,
)
from githuboss.watcher import PolicyEvent, PolicyWatcher

__version__ = "0.1.0"

__all__ = [
    "__version__",
    # Main client and adapter
    "GitHubOssClient",
    "AttachmentAdapter",
    "ContentsClient",
    "NetworkDiagnostics",
    "PolicyWatcher",
    "PolicyEvent",
    # Keys and serialization
    "PathKeyBuilder",
    "RandomSuffixKeyBuilder",
    "ReservedPathSet",
    "CommitSerializer",
    "FairLock",
    # Configuration
    "PolicySettings",
    "BasicSettings",
    "NamingPolicy",
    "ConflictStrategy",
    "NetworkConfig",
    "NetworkSettings",
    # Types
    "RepositoryTarget",
    "ObjectMeta",
    "TreeEntry",
    "Committer",
    "ObjectRecord",
    "Attachment",
    "KeyReservation",
    "LinkRequest",
    "LinkResult",
    "ProbeResult",
    "DiagnosticsReport",
    # Exceptions
    "GitHubOssError",
    "ConfigurationError",
    "ValidationError",
    "AuthError",
    "NotFoundError",
    "ConflictError",
    "RemoteError",
    "ProtocolError",
    "NetworkError",
    "RequestTimeoutError",
    "UnreachableError",
    "KeyGenerationExhaustedError",
    "FileAlreadyExistsError",
    "LockInterruptedError",
    # Transport
    "HTTPTransport",
    # Logging
    "configure_logging",
    "get_logger",
]
