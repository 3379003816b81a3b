"""
Pytest plugin for githuboss testing fixtures.

This module re-exports all fixtures from fixtures.py so they can be
automatically discovered by pytest when this package is installed.

To use these fixtures in your tests, add this to your conftest.py:

    pytest_plugins = ["githuboss.testing.conftest"]

Or import the fixtures directly:

    from githuboss.testing.fixtures import adapter, contents_store
"""

# Re-export all fixtures for pytest auto-discovery
from githuboss.testing.fixtures import (
    adapter,
    contents_store,
    diagnostics,
    fixed_now,
    mock_http,
    policy_settings,
    repository_target,
)

__all__ = [
    "adapter",
    "contents_store",
    "diagnostics",
    "fixed_now",
    "mock_http",
    "policy_settings",
    "repository_target",
]
