"""githuboss type definitions.

This module exports all data model types used by the package.
"""

from githuboss.types.attachments import Attachment, KeyReservation, LinkRequest, LinkResult, ObjectRecord
from githuboss.types.contents import Committer, ObjectMeta, RepositoryTarget, TreeEntry
from githuboss.types.network import DiagnosticsReport, ProbeResult

__all__ = [
    # Repository content types
    "RepositoryTarget",
    "ObjectMeta",
    "TreeEntry",
    "Committer",
    # Attachment types
    "ObjectRecord",
    "Attachment",
    "KeyReservation",
    "LinkRequest",
    "LinkResult",
    # Diagnostics types
    "ProbeResult",
    "DiagnosticsReport",
]
