"""githuboss resource clients."""

from githuboss.clients.contents import ContentsClient

__all__ = [
    "ContentsClient",
]
