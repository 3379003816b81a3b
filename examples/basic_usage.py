#!/usr/bin/env python3
"""
Basic githuboss usage example.

Uploads a file to a GitHub repository, prints its jsDelivr link and deletes
it again. Needs a token with Contents read/write permission:

    GITHUBOSS_OWNER=me GITHUBOSS_REPO=images GITHUB_TOKEN=ghp_... \
        python examples/basic_usage.py photo.png

Set GITHUBOSS_PROXY / GITHUBOSS_PROXY_ENABLED when GitHub is only reachable
through a proxy.
"""

import logging
import os
import sys

from githuboss import AttachmentAdapter, GitHubOssClient, GitHubOssError, PolicySettings
from githuboss.logging import configure_logging

configure_logging(level=logging.INFO)

print("=== githuboss Basic Usage Example ===\n")

if len(sys.argv) != 2:
    print("usage: basic_usage.py <file>")
    sys.exit(2)

path = sys.argv[1]

with GitHubOssClient.from_env() as client:
    # 1. Network diagnostics
    print("1. Probing GitHub hosts...")
    report = client.diagnostics.run_diagnostics()
    print("   " + report.summary().replace("\n", "\n   "))
    if not report.ok:
        sys.exit(1)

    # 2. Upload
    print("\n2. Uploading...")
    settings = PolicySettings.from_document({
        "owner": os.environ.get("GITHUBOSS_OWNER"),
        "repo": os.environ.get("GITHUBOSS_REPO"),
        "branch": os.environ.get("GITHUBOSS_BRANCH", "main"),
        "rootPath": "attachments",
        "token": os.environ.get("GITHUB_TOKEN"),
        "namingPolicy": "daily",
        "maxSizeMB": 20,
    })
    adapter = AttachmentAdapter.from_client(client)

    with open(path, "rb") as f:
        content = f.read()

    try:
        attachment = adapter.upload(content, os.path.basename(path), settings)
    except GitHubOssError as e:
        print(f"   Upload failed: {e}")
        sys.exit(1)

    print(f"   Object key: {attachment.object_key}")
    print(f"   Blob sha:   {attachment.sha}")
    print(f"   Permalink:  {attachment.permalink}")

    # 3. Delete
    print("\n3. Deleting...")
    adapter.delete(attachment, settings)
    print(f"   Deleted: {attachment.record.deleted}")
