"""Shared fixtures for the githuboss test suite."""

from githuboss.testing.conftest import (  # noqa: F401
    adapter,
    contents_store,
    diagnostics,
    fixed_now,
    mock_http,
    policy_settings,
    repository_target,
)
