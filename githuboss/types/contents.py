"""Repository and content data models."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class RepositoryTarget:
    """A GitHub repository branch used as an object store."""

    owner: str
    repo: str
    branch: str = "main"
    root_path: str = ""
    token: str = field(default="", repr=False)

    @property
    def lock_key(self) -> str:
        """Serialization domain for commits, ``owner/repo@branch``."""
        return f"{self.owner}/{self.repo}@{self.branch}"


@dataclass
class ObjectMeta:
    """Metadata of a single file as reported by the Contents API."""

    path: str
    sha: str
    size: int
    type: str  # "file", "dir", "symlink" or "submodule"


@dataclass
class TreeEntry:
    """One entry of a Git tree listing."""

    path: str  # relative to the listed directory
    type: str  # "blob" or "tree"
    sha: str
    size: int | None = None

    @property
    def is_blob(self) -> bool:
        return self.type == "blob"


@dataclass
class Committer:
    """Committer identity attached to content commits."""

    name: str
    email: str

    def to_dict(self) -> dict[str, str]:
        return {"name": self.name, "email": self.email}
