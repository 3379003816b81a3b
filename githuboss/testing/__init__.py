"""githuboss testing utilities.

Provides an in-memory contents store, static diagnostics and fixtures for
testing applications that use githuboss.
"""

from githuboss.testing.fixtures import FIXED_NOW, create_policy_settings
from githuboss.testing.mock import (
    InMemoryContentsClient,
    MockCall,
    MockResponse,
    StaticDiagnostics,
    git_blob_sha,
)

__all__ = [
    # Mocks
    "InMemoryContentsClient",
    "StaticDiagnostics",
    "MockCall",
    "MockResponse",
    "git_blob_sha",
    # Helpers
    "FIXED_NOW",
    "create_policy_settings",
]
