"""Repository content synchronization.

Public API for publishing files into a GitHub repository branch and reading
them back.

Architecture
------------
The engine works on the git object graph exposed by the store's REST API.
Single files go through the contents endpoint with the blob sha as an
optimistic-concurrency token. Batches are built bottom-up (blobs, a tree
based on the current head tree, a commit whose parent is the current head)
and made visible by a fast-forward-only branch update, so a batch is
all-or-nothing for every reader of the branch.

Modules:

- ``engine``  -- ``fetch_file``, ``read_file``, ``write_file``,
  ``upsert_file``, ``commit_batch``, ``list_markup_files``.
- ``models``  -- ``RemoteConfig``, ``FileWrite``, ``RemoteFile``,
  ``CommitResult``: core data contracts.

Usage example
-------------
::

    from github_cms_mcp.sync import FileWrite, RemoteConfig, commit_batch

    remote = RemoteConfig(
        owner="octo",
        repository_name="site",
        auth_token="ghp_...",
        branch="main",
    )
    result = await commit_batch(
        remote,
        [
            FileWrite(path="content/a.md", content=b"A"),
            FileWrite(path="content/b.md", content=b"B"),
        ],
        "Publish 2 drafts: A, B",
    )
    print(result.new_commit_id)
"""

from .engine import (
    commit_batch,
    fetch_file,
    list_markup_files,
    read_file,
    upsert_file,
    write_file,
)
from .models import CommitResult, FileWrite, RemoteConfig, RemoteFile

__all__ = [
    "CommitResult",
    "FileWrite",
    "RemoteConfig",
    "RemoteFile",
    "commit_batch",
    "fetch_file",
    "list_markup_files",
    "read_file",
    "upsert_file",
    "write_file",
]
