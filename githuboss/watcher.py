"""
Storage policy registration handling.

When the host registers a new githuboss storage policy, the files already in
the repository are turned into attachment records and handed to subscribers.
A file that already has a record for the policy, by ``(sha, path)``, is not
handed out again.
"""

import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from githuboss.adapter import AttachmentAdapter, link_keys
from githuboss.config import PolicySettings
from githuboss.logging import get_logger
from githuboss.types.attachments import Attachment

logger = get_logger("watcher")

AttachmentListener = Callable[[Attachment], None]
ExistingLookup = Callable[[str], Iterable[tuple[str, str]]]


@dataclass
class PolicyEvent:
    """A storage policy added by the host."""

    name: str
    template_name: str | None
    settings: PolicySettings
    deleting: bool = False


class PolicyWatcher:
    """Imports existing repository files when a storage policy is added."""

    def __init__(self, adapter: AttachmentAdapter, existing: ExistingLookup | None = None) -> None:
        """
        Initialize the watcher.

        Args:
            adapter: Adapter used to list and link repository files
            existing: Returns the ``(sha, path)`` keys the host already holds
                for a policy name (optional)
        """
        self.adapter = adapter
        self.existing = existing
        self._listeners: list[AttachmentListener] = []
        self._dispose_hooks: list[Callable[[], None]] = []
        self._imported: dict[str, set[tuple[str, str]]] = {}
        self._lock = threading.Lock()
        self._disposed = False

    def subscribe(self, listener: AttachmentListener) -> Callable[[], None]:
        """
        Register a listener for imported attachments.

        Returns:
            A function that removes the listener again
        """
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def register_dispose_hook(self, hook: Callable[[], None]) -> None:
        with self._lock:
            self._dispose_hooks.append(hook)

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    def on_add(self, event: PolicyEvent) -> list[Attachment]:
        """
        Handle a newly added storage policy.

        Events are ignored once the watcher is disposed, for policies being
        deleted, and for templates that do not belong to githuboss. Files
        already imported for the policy, or known to the host through
        ``existing``, are skipped.

        Returns:
            The imported attachments (empty when the event was ignored)

        Raises:
            GitHubOssError: If listing the repository fails
        """
        if self._disposed:
            logger.debug("watcher disposed, ignoring policy %s", event.name)
            return []
        if event.deleting or not self.adapter.handles(event.template_name):
            return []

        known = set(self.existing(event.name)) if self.existing is not None else set()
        with self._lock:
            known |= self._imported.get(event.name, set())

        attachments = self.adapter.import_existing(event.settings, policy_name=event.name, existing=known)
        with self._lock:
            self._imported.setdefault(event.name, set()).update(link_keys(attachments))
            listeners = list(self._listeners)
        for attachment in attachments:
            for listener in listeners:
                listener(attachment)
        logger.info("policy %s: imported %d attachment(s)", event.name, len(attachments))
        return attachments

    def dispose(self) -> None:
        """Stop handling events and run the dispose hooks once."""
        with self._lock:
            if self._disposed:
                return
            self._disposed = True
            hooks, self._dispose_hooks = self._dispose_hooks, []
            self._listeners.clear()
            self._imported.clear()
        for hook in hooks:
            hook()
