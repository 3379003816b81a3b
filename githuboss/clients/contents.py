"""Repository contents resource client.

Binds the GitHub Contents and Git Trees endpoints to object-store operations.
Each put or delete is one commit on the target branch.
"""

import base64
from typing import TYPE_CHECKING, Any
from urllib.parse import quote

from githuboss.exceptions import NotFoundError, ProtocolError
from githuboss.logging import get_logger
from githuboss.types.contents import Committer, ObjectMeta, RepositoryTarget, TreeEntry

if TYPE_CHECKING:
    from githuboss.transport import HTTPTransport

logger = get_logger("contents")


def _require(data: Any, key: str, context: str) -> Any:
    """Get a required field from a successful response."""
    if not isinstance(data, dict) or data.get(key) is None:
        raise ProtocolError(f"{context}: response has no '{key}' field")
    return data[key]


def _parse_meta(data: Any, context: str) -> ObjectMeta:
    return ObjectMeta(
        path=_require(data, "path", context),
        sha=_require(data, "sha", context),
        size=int(_require(data, "size", context)),
        type=_require(data, "type", context),
    )


def _parse_tree_entry(data: Any, context: str) -> TreeEntry:
    size = data.get("size") if isinstance(data, dict) else None
    return TreeEntry(
        path=_require(data, "path", context),
        type=_require(data, "type", context),
        sha=_require(data, "sha", context),
        size=int(size) if size is not None else None,
    )


def normalize_path(path: str | None) -> str:
    """Strip leading/trailing slashes and collapse empty segments."""
    return "/".join(segment for segment in (path or "").split("/") if segment)


def split_key(object_key: str) -> tuple[str, str]:
    """Split an object key into (directory, file name)."""
    key = normalize_path(object_key)
    directory, _, name = key.rpartition("/")
    return directory, name


class ContentsClient:
    """Client for file-level operations on a repository branch."""

    def __init__(self, transport: "HTTPTransport") -> None:
        """
        Initialize the contents client.

        Args:
            transport: HTTP transport for making requests
        """
        self.transport = transport

    def _contents_path(self, target: RepositoryTarget, path: str) -> str:
        return (
            f"/repos/{quote(target.owner, safe='')}/{quote(target.repo, safe='')}"
            f"/contents/{quote(normalize_path(path), safe='/')}"
        )

    def get(self, target: RepositoryTarget, path: str) -> ObjectMeta | None:
        """
        Get file metadata.

        Args:
            target: Repository branch to read from
            path: File path within the repository

        Returns:
            ObjectMeta, or None if the path does not exist

        Raises:
            AuthError: If the token is rejected
            ProtocolError: If the path is a directory or the payload lacks fields
        """
        try:
            data = self.transport.request(
                method="GET",
                path=self._contents_path(target, path),
                token=target.token,
                params={"ref": target.branch},
            )
        except NotFoundError:
            return None
        if isinstance(data, list):
            raise ProtocolError(f"get {path}: path is a directory, not a file")
        return _parse_meta(data, f"get {path}")

    def exists(self, target: RepositoryTarget, path: str) -> bool:
        """Check whether a file exists on the branch."""
        return self.get(target, path) is not None

    def put(
        self,
        target: RepositoryTarget,
        path: str,
        content: bytes,
        message: str,
        committer: Committer | None = None,
        sha: str | None = None,
    ) -> ObjectMeta:
        """
        Create (or, given the current ``sha``, replace) a file as one commit.

        Args:
            target: Repository branch to write to
            path: File path within the repository
            content: Raw file bytes
            message: Commit message
            committer: Optional committer identity
            sha: Blob sha of the file being replaced (updates only)

        Returns:
            ObjectMeta with the blob sha assigned by GitHub

        Raises:
            AuthError: If the token is rejected
            ConflictError: If the branch moved under the commit
            RemoteError: On other error statuses (e.g. 422 when the file exists)
            ProtocolError: If the response has no content sha
        """
        body: dict[str, Any] = {
            "message": message,
            "branch": target.branch,
            "content": base64.b64encode(content).decode("ascii"),
        }
        if committer is not None:
            body["committer"] = committer.to_dict()
        if sha:
            body["sha"] = sha

        data = self.transport.request(
            method="PUT",
            path=self._contents_path(target, path),
            token=target.token,
            body=body,
        )
        meta = _parse_meta(_require(data, "content", f"put {path}"), f"put {path}")
        logger.info("committed %s to %s (sha=%s)", meta.path, target.lock_key, meta.sha)
        return meta

    def delete(
        self,
        target: RepositoryTarget,
        path: str,
        sha: str,
        message: str,
        committer: Committer | None = None,
    ) -> bool:
        """
        Delete a file as one commit.

        Args:
            target: Repository branch to delete from
            path: File path within the repository
            sha: Current blob sha of the file
            message: Commit message
            committer: Optional committer identity

        Returns:
            True if the file was deleted, False if it was already gone

        Raises:
            AuthError: If the token is rejected
            ConflictError: If the sha is stale or the branch moved
        """
        body: dict[str, Any] = {
            "message": message,
            "branch": target.branch,
            "sha": sha,
        }
        if committer is not None:
            body["committer"] = committer.to_dict()

        try:
            self.transport.request(
                method="DELETE",
                path=self._contents_path(target, path),
                token=target.token,
                body=body,
            )
        except NotFoundError:
            logger.info("%s already absent from %s", path, target.lock_key)
            return False
        logger.info("deleted %s from %s", path, target.lock_key)
        return True

    def list_tree(
        self,
        target: RepositoryTarget,
        path: str = "",
        recursive: bool = False,
    ) -> list[TreeEntry]:
        """
        List the tree under a directory of the branch.

        Args:
            target: Repository branch to read from
            path: Directory path ("" for the repository root)
            recursive: Include nested directories

        Returns:
            TreeEntry list with paths relative to ``path``; empty if the
            directory does not exist
        """
        tree_ish = f"{target.branch}:{normalize_path(path)}"
        api_path = (
            f"/repos/{quote(target.owner, safe='')}/{quote(target.repo, safe='')}"
            f"/git/trees/{quote(tree_ish, safe='/:')}"
        )
        try:
            data = self.transport.request(
                method="GET",
                path=api_path,
                token=target.token,
                params={"recursive": "1"} if recursive else None,
            )
        except NotFoundError:
            return []

        context = f"list_tree {path or '/'}"
        entries = _require(data, "tree", context)
        if not isinstance(entries, list):
            raise ProtocolError(f"{context}: 'tree' is not a list")
        if data.get("truncated"):
            logger.warning("tree listing of %s on %s was truncated by GitHub", path or "/", target.lock_key)
        return [_parse_tree_entry(entry, context) for entry in entries]

    def find_sha(self, target: RepositoryTarget, object_key: str) -> str | None:
        """
        Look up the blob sha of a file through its parent directory tree.

        Returns:
            The sha, or None if no blob with that name exists
        """
        directory, name = split_key(object_key)
        for entry in self.list_tree(target, directory):
            if entry.is_blob and entry.path == name:
                return entry.sha
        return None
