"""Attachment-related data models."""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class ObjectRecord:
    """A file stored in the repository."""

    object_key: str
    content_sha: str | None
    size: int
    media_type: str
    created_at: datetime
    deleted: bool = False


@dataclass
class Attachment:
    """Host-side attachment record referencing a stored object."""

    name: str
    display_name: str
    permalink: str
    record: ObjectRecord
    policy_name: str | None = None
    owner_name: str | None = None
    unlinked: bool = False
    annotations: dict[str, str] = field(default_factory=dict)

    @property
    def object_key(self) -> str:
        return self.record.object_key

    @property
    def sha(self) -> str | None:
        return self.record.content_sha

    @property
    def size(self) -> int:
        return self.record.size

    @property
    def media_type(self) -> str:
        return self.record.media_type


@dataclass(frozen=True)
class KeyReservation:
    """
    An object key claimed by an upload that has not committed yet.

    ``scope`` is the ``owner/repo@branch`` the key is reserved in.
    """

    object_key: str
    filename: str
    scope: str = ""


@dataclass(frozen=True)
class LinkRequest:
    """A file already in the repository that should get an attachment record."""

    path: str
    sha: str
    size: int | None = None


@dataclass
class LinkResult:
    """Outcome of linking repository files as attachments."""

    attachments: list[Attachment] = field(default_factory=list)
    skipped: int = 0
    failed: int = 0
    first_error: str | None = None

    @property
    def saved(self) -> int:
        """Files that now have a record, counting those that already had one."""
        return len(self.attachments) + self.skipped
