"""
Attachment adapter: the host CMS's upload/delete/permalink contract on top of
a GitHub repository.

All collaborators are passed in explicitly; ``from_client`` wires the
defaults. Every public method reports failures as GitHubOssError subclasses,
so the host never sees raw httpx or socket exceptions.
"""

import functools
import uuid
from collections.abc import Callable, Iterable
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any, TypeVar
from urllib.parse import quote

from githuboss.clients.contents import ContentsClient, normalize_path, split_key
from githuboss.config import BasicSettings, ConflictStrategy, PolicySettings
from githuboss.diagnostics import API_HOST, NetworkDiagnostics
from githuboss.exceptions import GitHubOssError, UnreachableError, ValidationError, map_exception
from githuboss.keys import PathKeyBuilder, RandomSuffixKeyBuilder, media_type_for
from githuboss.logging import get_logger
from githuboss.serializer import CommitSerializer
from githuboss.types.attachments import Attachment, KeyReservation, LinkRequest, LinkResult, ObjectRecord
from githuboss.types.contents import RepositoryTarget

if TYPE_CHECKING:
    from githuboss.client import GitHubOssClient

logger = get_logger("adapter")

F = TypeVar("F", bound=Callable[..., Any])

HANDLER_NAME = "githuboss"
DEFAULT_CDN_HOST = "gcore.jsdelivr.net"

OBJECT_KEY_ANNOTATION = "githuboss/object-key"
SHA_ANNOTATION = "githuboss/sha"
EXTERNAL_LINK_ANNOTATION = "githuboss/external-link"


def translate_errors(func: F) -> F:
    """Map any exception escaping ``func`` onto the githuboss taxonomy."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except GitHubOssError as e:
            logger.warning("%s failed: %s", func.__name__, e)
            raise
        except Exception as e:
            mapped = map_exception(e)
            logger.error("%s failed: %s", func.__name__, mapped, exc_info=True)
            raise mapped from e

    return wrapper  # type: ignore[return-value]


def link_keys(attachments: Iterable[Attachment]) -> set[tuple[str, str]]:
    """``(sha, object key)`` of every attachment that has a sha, for ``link(existing=...)``."""
    return {(a.sha, normalize_path(a.object_key)) for a in attachments if a.sha}


def _local_now() -> datetime:
    return datetime.now().astimezone()


class AttachmentAdapter:
    """
    Stores host attachments as files in a GitHub repository.

    Example:
        ```python
        from githuboss import GitHubOssClient, AttachmentAdapter, PolicySettings

        client = GitHubOssClient()
        adapter = AttachmentAdapter.from_client(client)
        settings = PolicySettings.from_document({
            "owner": "me", "repo": "images", "token": "ghp_...",
            "rootPath": "attachments", "namingPolicy": "daily",
        })

        attachment = adapter.upload(data, "photo.png", settings)
        print(attachment.permalink)
        adapter.delete(attachment, settings)
        ```
    """

    def __init__(
        self,
        contents: ContentsClient,
        key_builder: PathKeyBuilder,
        serializer: CommitSerializer,
        diagnostics: NetworkDiagnostics,
        basic: BasicSettings | None = None,
        clock: Callable[[], datetime] | None = None,
        random_key_builder: RandomSuffixKeyBuilder | None = None,
    ) -> None:
        """
        Initialize the adapter.

        Args:
            contents: Remote store client
            key_builder: Object key builder (owns the reserved-path set)
            serializer: Per-branch commit serializer
            diagnostics: Connectivity probes used as an upload gate
            basic: Plugin-wide settings (CDN host, committer)
            clock: Source of the upload time (default: local time)
            random_key_builder: Builder for the "random" conflict strategy
                (default: wraps ``key_builder``)
        """
        self.contents = contents
        self.key_builder = key_builder
        self.serializer = serializer
        self.diagnostics = diagnostics
        self.basic = basic or BasicSettings()
        self.clock = clock or _local_now
        self.random_key_builder = random_key_builder or RandomSuffixKeyBuilder(key_builder)

    @classmethod
    def from_client(
        cls,
        client: "GitHubOssClient",
        basic: BasicSettings | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> "AttachmentAdapter":
        """Wire an adapter with fresh key and lock registries."""
        return cls(
            contents=client.contents,
            key_builder=PathKeyBuilder(),
            serializer=CommitSerializer(),
            diagnostics=client.diagnostics,
            basic=basic,
            clock=clock,
        )

    @staticmethod
    def handles(template_name: str | None) -> bool:
        """Whether a host storage policy template belongs to this adapter."""
        return template_name == HANDLER_NAME

    # ------------------------------------------------------------------
    # Upload
    # ------------------------------------------------------------------

    @translate_errors
    def upload(
        self,
        content: bytes,
        filename: str,
        settings: PolicySettings,
        policy_name: str | None = None,
        owner_name: str | None = None,
    ) -> Attachment:
        """
        Upload a file as one commit and return its attachment record.

        Args:
            content: Complete file bytes
            filename: Name of the uploaded file
            settings: Storage policy settings
            policy_name: Host policy the attachment belongs to (optional)
            owner_name: Host user who uploaded the file (optional)

        Returns:
            Attachment whose permalink is the jsDelivr URL

        Raises:
            ConfigurationError: If owner, repo or token is missing
            ValidationError: If the file violates the size limits
            KeyGenerationExhaustedError, FileAlreadyExistsError: If no free key was found
            UnreachableError: If GitHub is not reachable
            AuthError, ConflictError, RemoteError, ProtocolError, RequestTimeoutError
        """
        settings.validate()
        self._validate_size(content, settings)

        target = settings.target()
        now = self.clock()
        reservation = self._reserve(target, filename, settings, now)
        try:
            if not self.diagnostics.check_connectivity():
                raise UnreachableError(f"GitHub API ({API_HOST}) is not reachable")

            with self.serializer.with_lock(target):
                meta = self.contents.put(
                    target,
                    reservation.object_key,
                    content,
                    f"Upload {reservation.filename} via githuboss",
                    committer=self.basic.committer(),
                )

            record = ObjectRecord(
                object_key=reservation.object_key,
                content_sha=meta.sha,
                size=len(content),
                media_type=media_type_for(reservation.filename),
                created_at=now,
            )
            attachment = self._build_attachment(record, settings, policy_name, owner_name)
            logger.info(
                "uploaded %s to %s as %s (sha=%s)",
                filename,
                target.lock_key,
                record.object_key,
                record.content_sha,
            )
            return attachment
        finally:
            self.key_builder.release(reservation)

    def _reserve(
        self,
        target: RepositoryTarget,
        filename: str,
        settings: PolicySettings,
        now: datetime,
    ) -> KeyReservation:
        if settings.conflict_strategy is ConflictStrategy.RANDOM:
            return self.random_key_builder.build(
                target,
                filename,
                settings.naming_policy,
                now,
                exists=lambda key: self.contents.exists(target, key),
            )
        return self.key_builder.build(target, filename, settings.naming_policy, now)

    def _validate_size(self, content: bytes, settings: PolicySettings) -> None:
        size = len(content)
        min_bytes = settings.min_size_bytes
        if min_bytes is not None and size < min_bytes:
            raise ValidationError(
                f"file size {size} bytes is below the minimum of {settings.min_size_mb} MB"
            )
        max_bytes = settings.max_size_bytes
        if max_bytes is not None and size > max_bytes:
            raise ValidationError(
                f"file size {size} bytes exceeds the maximum of {settings.max_size_mb} MB"
            )

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------

    @translate_errors
    def delete(
        self,
        attachment: Attachment,
        settings: PolicySettings,
        unlink: bool = False,
    ) -> Attachment:
        """
        Delete an attachment's file, or only detach the record.

        Args:
            attachment: Attachment to delete
            settings: Storage policy settings
            unlink: Only mark the record as unlinked; GitHub is not contacted

        Returns:
            The same attachment, marked ``unlinked`` or ``record.deleted``

        Raises:
            ConfigurationError: If owner, repo or token is missing (remote delete only)
            AuthError, ConflictError, RemoteError, RequestTimeoutError, UnreachableError
        """
        if unlink:
            attachment.unlinked = True
            logger.info("unlinked %s without deleting %s", attachment.name, attachment.object_key)
            return attachment

        settings.validate()
        object_key = normalize_path(attachment.object_key)
        if not object_key:
            logger.info("attachment %s has no object key, nothing to delete", attachment.name)
            return attachment

        target = settings.target()
        sha = attachment.sha or self.contents.find_sha(target, object_key)
        if not sha:
            logger.info("%s is not in %s, treating as deleted", object_key, target.lock_key)
            attachment.record.deleted = True
            return attachment

        _, name = split_key(object_key)
        with self.serializer.with_lock(target):
            self.contents.delete(
                target,
                object_key,
                sha,
                f"Delete {name} via githuboss",
                committer=self.basic.committer(),
            )
        attachment.record.deleted = True
        return attachment

    # ------------------------------------------------------------------
    # Links
    # ------------------------------------------------------------------

    def cdn_host(self, settings: PolicySettings) -> str:
        """CDN host for a policy, falling back to plugin-wide then default hosts."""
        candidates = [settings.jsdelivr_host, *settings.cdn_domains, self.basic.jsdelivr]
        for candidate in candidates:
            if candidate and str(candidate).strip():
                host = str(candidate).strip()
                if "://" in host:
                    host = host.split("://", 1)[1]
                return host.strip("/")
        return DEFAULT_CDN_HOST

    def cdn_url(self, settings: PolicySettings, object_key: str) -> str:
        """
        jsDelivr URL of an object: ``https://{host}/gh/{owner}/{repo}@{branch}/{key}``.

        The path part is percent-encoded.
        """
        target = settings.target()
        path = f"{target.owner}/{target.repo}@{target.branch}/{normalize_path(object_key)}"
        return f"https://{self.cdn_host(settings)}/gh/{quote(path, safe='/@')}"

    @translate_errors
    def resolve_permalink(self, attachment: Attachment, settings: PolicySettings) -> str:
        """Permanent CDN link of an attachment."""
        return self.cdn_url(settings, attachment.object_key)

    @translate_errors
    def shared_url(
        self,
        attachment: Attachment,
        settings: PolicySettings,
        ttl: timedelta | None = None,
    ) -> str:
        """Shareable link of an attachment; CDN links do not expire, so ``ttl`` is unused."""
        return self.cdn_url(settings, attachment.object_key)

    # ------------------------------------------------------------------
    # Import
    # ------------------------------------------------------------------

    @translate_errors
    def link(
        self,
        entries: Iterable[LinkRequest],
        settings: PolicySettings,
        existing: Iterable[tuple[str, str]] = (),
        policy_name: str | None = None,
        owner_name: str | None = None,
    ) -> LinkResult:
        """
        Create attachment records for files already in the repository.

        Nothing is written to GitHub. Entries whose ``(sha, path)`` is in
        ``existing``, or repeats an earlier entry, are counted as skipped.
        Entries without a path or sha are counted as failed.

        Args:
            entries: Repository files chosen by the user
            settings: Storage policy settings
            existing: ``(sha, path)`` keys of attachments the host already has
            policy_name: Host policy the attachments belong to (optional)
            owner_name: Host user linking the files (optional)

        Returns:
            LinkResult with the new attachments and skip/failure counts

        Raises:
            ConfigurationError: If owner, repo or token is missing
        """
        settings.validate()
        known = {(sha, normalize_path(path)) for sha, path in existing}
        result = LinkResult()
        now = self.clock()

        for entry in entries:
            object_key = normalize_path(entry.path)
            if not object_key or not entry.sha:
                result.failed += 1
                if result.first_error is None:
                    result.first_error = f"cannot link {entry.path!r}: path and sha are required"
                continue
            key = (entry.sha, object_key)
            if key in known:
                result.skipped += 1
                continue
            known.add(key)
            record = ObjectRecord(
                object_key=object_key,
                content_sha=entry.sha,
                size=entry.size or 0,
                media_type=media_type_for(object_key),
                created_at=now,
            )
            result.attachments.append(self._build_attachment(record, settings, policy_name, owner_name))

        if result.failed:
            logger.warning("link: %d file(s) failed, first error: %s", result.failed, result.first_error)
        logger.info(
            "linked %d file(s) in %s, %d already linked",
            len(result.attachments),
            settings.target().lock_key,
            result.skipped,
        )
        return result

    @translate_errors
    def import_existing(
        self,
        settings: PolicySettings,
        policy_name: str | None = None,
        owner_name: str | None = None,
        existing: Iterable[tuple[str, str]] = (),
    ) -> list[Attachment]:
        """
        Build attachment records for every file already under the root path.

        Used when a new storage policy is registered for a repository that
        already holds files. Files whose ``(sha, path)`` is in ``existing``
        are left out.
        """
        settings.validate()
        target = settings.target()
        root = normalize_path(settings.root_path)

        entries = [
            LinkRequest(path=f"{root}/{entry.path}" if root else entry.path, sha=entry.sha, size=entry.size)
            for entry in self.contents.list_tree(target, root, recursive=True)
            if entry.is_blob
        ]
        result = self.link(entries, settings, existing, policy_name=policy_name, owner_name=owner_name)
        logger.info("imported %d existing file(s) from %s/%s", len(result.attachments), target.lock_key, root)
        return result.attachments

    def _build_attachment(
        self,
        record: ObjectRecord,
        settings: PolicySettings,
        policy_name: str | None,
        owner_name: str | None,
    ) -> Attachment:
        permalink = self.cdn_url(settings, record.object_key)
        _, display_name = split_key(record.object_key)
        return Attachment(
            name=str(uuid.uuid4()),
            display_name=display_name,
            permalink=permalink,
            record=record,
            policy_name=policy_name,
            owner_name=owner_name,
            annotations={
                OBJECT_KEY_ANNOTATION: record.object_key,
                SHA_ANNOTATION: record.content_sha or "",
                EXTERNAL_LINK_ANNOTATION: permalink,
            },
        )
