"""
Object key generation for uploads.

Keys look like ``<root>/<date folder>/<name>-<timestamp>.<ext>``. Keys claimed
by in-flight uploads live in a ReservedPathSet so that two uploads of the
same file in the same second never pick the same key.
"""

import mimetypes
import random
import string
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import datetime, timedelta

from githuboss.clients.contents import normalize_path
from githuboss.config import NamingPolicy
from githuboss.exceptions import FileAlreadyExistsError, KeyGenerationExhaustedError
from githuboss.logging import get_logger
from githuboss.types.attachments import KeyReservation
from githuboss.types.contents import RepositoryTarget

logger = get_logger("keys")

# (folder pattern, suffix pattern) per naming policy
_PATTERNS: dict[NamingPolicy, tuple[str | None, str]] = {
    NamingPolicy.NONE: (None, "%Y%m%d%H%M%S"),
    NamingPolicy.YEARLY: ("%Y", "%m%d%H%M%S"),
    NamingPolicy.MONTHLY: ("%Y%m", "%d%H%M%S"),
    NamingPolicy.DAILY: ("%Y%m%d", "%H%M%S"),
}

DEFAULT_MEDIA_TYPE = "application/octet-stream"

mimetypes.add_type("image/webp", ".webp")
mimetypes.add_type("image/avif", ".avif")


def media_type_for(filename: str) -> str:
    """Media type derived from the file extension."""
    media_type, _ = mimetypes.guess_type(filename, strict=False)
    return media_type or DEFAULT_MEDIA_TYPE


def split_filename(filename: str | None) -> tuple[str, str | None]:
    """
    Split an uploaded file name into (base, extension).

    Any directory components are dropped. The extension is None when the
    name has no dot or ends with one.
    """
    name = (filename or "").replace("\\", "/").rsplit("/", 1)[-1].strip()
    base, dot, ext = name.rpartition(".")
    if not dot:
        return name, None
    return base, ext or None


class ReservedPathSet:
    """
    Object keys claimed by uploads that have not finished yet.

    Keys are scoped by repository branch (``owner/repo@branch``), so the same
    key in two different repositories never collides.
    """

    def __init__(self) -> None:
        self._paths: set[tuple[str, str]] = set()
        self._lock = threading.Lock()

    def try_reserve(self, key: str, scope: str = "") -> bool:
        """Claim ``key`` within ``scope``; False if another upload already holds it."""
        with self._lock:
            if (scope, key) in self._paths:
                return False
            self._paths.add((scope, key))
            return True

    def release(self, key: str, scope: str = "") -> None:
        with self._lock:
            self._paths.discard((scope, key))

    def snapshot(self) -> frozenset[tuple[str, str]]:
        """Reserved (scope, object key) pairs."""
        with self._lock:
            return frozenset(self._paths)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            if isinstance(key, tuple):
                return key in self._paths
            return any(path == key for _, path in self._paths)

    def __len__(self) -> int:
        with self._lock:
            return len(self._paths)


class PathKeyBuilder:
    """
    Builds unique object keys from a file name, naming policy and time.

    On a collision with a reserved key the notional clock is advanced by one
    second and the key regenerated, up to MAX_BUMPS times (MAX_BUMPS + 1
    candidates in total). Real time is never waited for.
    """

    MAX_BUMPS = 120

    def __init__(self, reserved: ReservedPathSet | None = None) -> None:
        self.reserved = reserved if reserved is not None else ReservedPathSet()

    def candidate(
        self,
        target: RepositoryTarget,
        original_filename: str,
        naming_policy: NamingPolicy,
        now: datetime,
    ) -> KeyReservation:
        """Compute the key for ``now`` without reserving it."""
        folder_pattern, suffix_pattern = _PATTERNS[naming_policy]
        base, ext = split_filename(original_filename)
        suffix = now.strftime(suffix_pattern)

        filename = f"{base}-{suffix}" if base else suffix
        if ext:
            filename = f"{filename}.{ext}"

        folder = now.strftime(folder_pattern) if folder_pattern else ""
        object_key = "/".join(
            segment for segment in (normalize_path(target.root_path), folder, filename) if segment
        )
        return KeyReservation(object_key=object_key, filename=filename, scope=target.lock_key)

    def build(
        self,
        target: RepositoryTarget,
        original_filename: str,
        naming_policy: NamingPolicy,
        now: datetime,
    ) -> KeyReservation:
        """
        Generate and reserve a key.

        The caller owns the reservation and must ``release`` it when the
        upload ends, whether it succeeded or not.

        Raises:
            KeyGenerationExhaustedError: If every bumped key is taken
        """
        attempts = self.MAX_BUMPS + 1
        for bump in range(attempts):
            reservation = self.candidate(
                target, original_filename, naming_policy, now + timedelta(seconds=bump)
            )
            if self.reserved.try_reserve(reservation.object_key, reservation.scope):
                if bump:
                    logger.debug("reserved %s after %d bump(s)", reservation.object_key, bump)
                return reservation

        raise KeyGenerationExhaustedError(
            f"could not generate a unique name for {original_filename!r} "
            f"after {attempts} attempts ({self.MAX_BUMPS} one-second bumps)"
        )

    def release(self, reservation: KeyReservation | str, scope: str = "") -> None:
        if isinstance(reservation, KeyReservation):
            self.reserved.release(reservation.object_key, reservation.scope)
        else:
            self.reserved.release(reservation, scope)

    @contextmanager
    def reserve(
        self,
        target: RepositoryTarget,
        original_filename: str,
        naming_policy: NamingPolicy,
        now: datetime,
    ) -> Iterator[KeyReservation]:
        """Scoped ``build``: the key is released when the block exits."""
        reservation = self.build(target, original_filename, naming_policy, now)
        try:
            yield reservation
        finally:
            self.release(reservation)


class RandomSuffixKeyBuilder:
    """
    Legacy key builder that renames on proven conflicts.

    The timestamped key is tried first. If it is reserved locally or already
    exists in the repository, a short random suffix is appended and the check
    repeated, up to MAX_RETRIES times.
    """

    MAX_RETRIES = 3
    SUFFIX_ALPHABET = string.ascii_lowercase + string.digits

    def __init__(self, base: PathKeyBuilder, suffix_length: int = 4) -> None:
        self.base = base
        self.suffix_length = suffix_length

    @property
    def reserved(self) -> ReservedPathSet:
        return self.base.reserved

    def _randomized(self, reservation: KeyReservation) -> KeyReservation:
        stem, ext = split_filename(reservation.filename)
        token = "".join(random.choices(self.SUFFIX_ALPHABET, k=self.suffix_length))
        filename = f"{stem}-{token}.{ext}" if ext else f"{stem}-{token}"
        directory = reservation.object_key.rpartition("/")[0]
        object_key = f"{directory}/{filename}" if directory else filename
        return KeyReservation(object_key=object_key, filename=filename, scope=reservation.scope)

    def build(
        self,
        target: RepositoryTarget,
        original_filename: str,
        naming_policy: NamingPolicy,
        now: datetime,
        exists: Callable[[str], bool] | None = None,
    ) -> KeyReservation:
        """
        Generate and reserve a key that is free locally and remotely.

        Args:
            exists: Remote existence check for a candidate key (optional)

        Raises:
            FileAlreadyExistsError: If every retry hit an existing file
        """
        first = self.base.candidate(target, original_filename, naming_policy, now)
        reservation = first
        for attempt in range(self.MAX_RETRIES + 1):
            if not self.reserved.try_reserve(reservation.object_key, reservation.scope):
                logger.info("%s is being uploaded by another request", reservation.object_key)
            else:
                try:
                    taken = exists(reservation.object_key) if exists is not None else False
                except BaseException:
                    self.reserved.release(reservation.object_key, reservation.scope)
                    raise
                if not taken:
                    return reservation
                self.reserved.release(reservation.object_key, reservation.scope)
                logger.info("%s already exists in %s", reservation.object_key, target.lock_key)

            if attempt < self.MAX_RETRIES:
                reservation = self._randomized(first)
                logger.info("retrying upload as %s (retry %d)", reservation.object_key, attempt + 1)

        raise FileAlreadyExistsError(first.object_key)

    def release(self, reservation: KeyReservation | str, scope: str = "") -> None:
        self.base.release(reservation, scope)
