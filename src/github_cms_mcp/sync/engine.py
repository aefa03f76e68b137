"""Repository content synchronization engine.

Reads and writes files on one branch of a GitHub repository through the
object store client, with optimistic concurrency:

* ``fetch_file`` / ``read_file`` read a file and its concurrency token
  (blob sha).
* ``upsert_file`` / ``write_file`` replace one file in one commit; the store
  rejects the write when the token no longer matches the live version.
* ``commit_batch`` publishes many files as one commit built from the git
  object graph: blobs -> tree -> commit -> branch pointer.  The pointer
  move is a fast-forward-only update, so a branch that moved since the
  head was read makes the whole batch fail with ``ConcurrencyConflict``.
  Objects created before a failing step are unreferenced and invisible.
* ``list_markup_files`` lists documents in a directory.

No function retries. Every failure is raised as one of the ``SyncError``
variants from ``github_cms_mcp.errors``.
"""

from __future__ import annotations

import base64
import logging
from collections.abc import Callable, Sequence
from typing import Any

import requests
from pydantic import ValidationError

from github_cms_mcp.core import client as store
from github_cms_mcp.core.async_utils import (
    gather_limited,
    run_sync_limited,
)
from github_cms_mcp.errors import (
    InvalidArgument,
    NotFound,
    classify_http_error,
)
from github_cms_mcp.sync.models import (
    CommitResult,
    FileWrite,
    RemoteConfig,
    RemoteFile,
)

logger = logging.getLogger(__name__)

# Store answers meaning "your token is stale" for content writes
CONTENT_CONFLICT_STATUSES = frozenset({409, 422})
# Store answers meaning "the branch is no longer where you read it"
REF_CONFLICT_STATUSES = frozenset({409, 422})


async def _call(
    func: Callable[..., Any],
    *args: Any,
    path: str | None = None,
    conflict_statuses: frozenset[int] = frozenset(),
) -> Any:
    """Run one store call in a worker thread and classify its failure."""
    try:
        return await run_sync_limited(func, *args)
    except requests.RequestException as exc:
        error = classify_http_error(
            exc, path=path, conflict_statuses=conflict_statuses
        )
        logger.warning(
            "%s failed for %s: %s",
            getattr(func, "__name__", "store call"),
            path or "<repository>",
            error.message,
        )
        raise error from exc


def _make_write(
    path: str, content: str | bytes, token: str | None
) -> FileWrite:
    if isinstance(content, str):
        content = content.encode("utf-8")
    try:
        return FileWrite(
            path=path, content=content, concurrency_token=token
        )
    except ValidationError as exc:
        raise InvalidArgument(
            f"Invalid file write for '{path}': {exc.errors()[0]['msg']}",
            path=path,
        ) from None


def _require_message(message: str) -> None:
    if not message or not message.strip():
        raise InvalidArgument("Commit message is required")


# ------------------------------------------------------------------
# Reads
# ------------------------------------------------------------------


async def read_file(remote: RemoteConfig, path: str) -> RemoteFile | None:
    """Read a file and its concurrency token at the configured branch.

    Returns:
        The file, or ``None`` if nothing exists at *path* or *path* is a
        directory.

    Raises:
        StoreUnavailable: On transport or authentication failure.
    """
    data = await _call(store.get_content, remote, path, path=path)
    if data is None or isinstance(data, list):
        return None
    if data.get("type", "file") != "file":
        return None

    sha = data["sha"]
    encoded = data.get("content") or ""
    if encoded or not data.get("size"):
        content = base64.b64decode(encoded)
    else:
        # Large files come back without an inline body
        content = await _call(store.get_blob, remote, sha, path=path)

    return RemoteFile(
        path=data.get("path", path), content=content, concurrency_token=sha
    )


async def fetch_file(remote: RemoteConfig, path: str) -> str:
    """Return the UTF-8 content of *path* at the configured branch.

    Raises:
        NotFound: If *path* does not exist or is a directory.
        StoreUnavailable: On transport or authentication failure.
    """
    remote_file = await read_file(remote, path)
    if remote_file is None:
        raise NotFound(f"File not found: {path}", path=path)
    return remote_file.text


async def list_markup_files(
    remote: RemoteConfig, directory: str = "", extension: str = ".md"
) -> list[str]:
    """List file paths directly under *directory* ending in *extension*.

    Order follows the store's listing. A missing directory (or a path that
    is a file) yields an empty list.

    Raises:
        StoreUnavailable: On transport or authentication failure.
    """
    data = await _call(store.get_content, remote, directory, path=directory)
    if not isinstance(data, list):
        return []
    return [
        item["path"]
        for item in data
        if item.get("type") == "file"
        and item.get("name", "").endswith(extension)
    ]


# ------------------------------------------------------------------
# Single-file writes
# ------------------------------------------------------------------


async def write_file(
    remote: RemoteConfig, write: FileWrite, message: str
) -> CommitResult:
    """Persist *write* as one commit, carrying exactly its token.

    A ``None`` token means "create"; the store refuses it if the path
    already exists.

    Raises:
        ConcurrencyConflict: If the token does not match the live version.
        InvalidArgument: If *message* is empty.
        StoreUnavailable: On transport or authentication failure.
    """
    _require_message(message)
    data = await _call(
        store.put_content,
        remote,
        write.path,
        write.content,
        message,
        write.concurrency_token,
        path=write.path,
        conflict_statuses=CONTENT_CONFLICT_STATUSES,
    )
    commit_sha = data["commit"]["sha"]
    logger.info(
        "%s %s in %s@%s (commit %s)",
        "Updated" if write.concurrency_token else "Created",
        write.path,
        remote.full_name,
        remote.branch,
        commit_sha,
    )
    return CommitResult(
        new_commit_id=commit_sha,
        branch_head_after=commit_sha,
        content_tokens={write.path: data["content"]["sha"]},
    )


async def upsert_file(
    remote: RemoteConfig,
    path: str,
    content: str | bytes,
    message: str,
) -> CommitResult:
    """Create *path* or replace its current version in one commit.

    The current token is read first; absence means "create". If another
    writer changes the path between the read and the write, the store
    rejects the write and ``ConcurrencyConflict`` is raised. No retry.
    """
    _require_message(message)
    write = _make_write(path, content, None)
    current = await read_file(remote, write.path)
    token = current.concurrency_token if current is not None else None
    return await write_file(
        remote,
        write.model_copy(update={"concurrency_token": token}),
        message,
    )


# ------------------------------------------------------------------
# Multi-file atomic commit
# ------------------------------------------------------------------


async def commit_batch(
    remote: RemoteConfig, files: Sequence[FileWrite], message: str
) -> CommitResult:
    """Publish *files* as a single commit on the configured branch.

    Readers of the branch see either none of the files or all of them.
    Per-file concurrency tokens are not checked: the batch is based on the
    branch head at the time of the read, and the last batch to move the
    branch wins.

    The final ref update is a non-forced fast-forward, so the store rejects
    it only when the new commit does not descend from the current head.
    A branch rewound to an ancestor of the head read here is not detected:
    the batch lands on top of the rewind and restores the rewound commits.

    Raises:
        InvalidArgument: Empty batch, duplicate paths, or empty message;
            raised before any store call.
        ConcurrencyConflict: The branch gained commits after its head was
            read. The caller may retry the whole batch.
        NotFound: The branch does not exist.
        StoreUnavailable: On transport or authentication failure.
    """
    if not files:
        raise InvalidArgument("At least one file is required for a batch commit")
    _require_message(message)

    paths = [f.path for f in files]
    duplicates = sorted({p for p in paths if paths.count(p) > 1})
    if duplicates:
        raise InvalidArgument(
            f"Duplicate paths in batch: {', '.join(duplicates)}"
        )
    carried_tokens = [f.path for f in files if f.concurrency_token]
    if carried_tokens:
        logger.debug(
            "Ignoring per-file tokens in batch mode for: %s",
            ", ".join(carried_tokens),
        )

    ref_name = f"refs/heads/{remote.branch}"

    # 1. Live head commit and its root tree
    head_sha = await _call(store.get_ref, remote, path=ref_name)
    head_commit = await _call(store.get_commit, remote, head_sha, path=ref_name)
    base_tree = head_commit["tree"]["sha"]

    # 2. Blobs, concurrently
    blob_shas: list[str] = await gather_limited(
        [
            _call(store.create_blob, remote, f.content, path=f.path)
            for f in files
        ]
    )
    blobs = dict(zip(paths, blob_shas))

    # 3. Tree overlaying the batch on the head tree
    tree_sha = await _call(store.create_tree, remote, base_tree, blobs)

    # 4. Commit whose sole parent is the head read in step 1
    commit_sha = await _call(
        store.create_commit, remote, message, tree_sha, [head_sha]
    )

    # 5. Fast-forward the branch; fails if it moved since step 1
    new_head = await _call(
        store.update_ref,
        remote,
        commit_sha,
        path=ref_name,
        conflict_statuses=REF_CONFLICT_STATUSES,
    )

    logger.info(
        "Committed %d file(s) to %s@%s: %s -> %s",
        len(files),
        remote.full_name,
        remote.branch,
        head_sha,
        commit_sha,
    )
    return CommitResult(
        new_commit_id=commit_sha,
        branch_head_after=new_head,
        content_tokens=blobs,
    )
