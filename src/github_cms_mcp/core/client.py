"""Typed accessors for the GitHub REST endpoints the sync engine needs.

Every function takes the immutable ``RemoteConfig`` explicitly; nothing is
cached between calls except the per-thread HTTP session. Failures are not
interpreted here beyond "absent": reads that allow absence return ``None``
on 404, everything else re-raises the ``requests`` exception for the sync
engine to classify.
"""

import base64
import logging
import threading
from typing import Any
from urllib.parse import quote

import requests

from .. import __version__
from ..sync.models import FILE_MODE, RemoteConfig

logger = logging.getLogger(__name__)

_thread_local = threading.local()

API_VERSION = "2022-11-28"
TIMEOUT = (10, 60)


def _get_session() -> requests.Session:
    """Get or create a thread-local requests.Session."""
    if not hasattr(_thread_local, "session"):
        session = requests.Session()
        session.headers.update(
            {
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": API_VERSION,
                "User-Agent": f"github-cms-mcp/{__version__}",
            }
        )
        _thread_local.session = session
    return _thread_local.session


def _quote_path(path: str) -> str:
    return quote(path.strip("/"), safe="/")


def _request(
    remote: RemoteConfig,
    method: str,
    endpoint: str,
    *,
    params: dict[str, Any] | None = None,
    json: dict[str, Any] | None = None,
) -> Any:
    """Send one authenticated request and return the decoded JSON body.

    Raises:
        requests.HTTPError: For any non-2xx response.
        requests.RequestException: For transport failures.
    """
    url = f"{remote.api_url.rstrip('/')}{remote.repo_path}{endpoint}"
    headers = {
        "Authorization": f"Bearer {remote.auth_token.get_secret_value()}"
    }
    logger.debug("%s %s", method, url)
    response = _get_session().request(
        method,
        url,
        params=params,
        json=json,
        headers=headers,
        timeout=TIMEOUT,
    )
    response.raise_for_status()
    if not response.content:
        return None
    return response.json()


def _is_absent(exc: requests.HTTPError) -> bool:
    return exc.response is not None and exc.response.status_code == 404


def get_repository(remote: RemoteConfig) -> dict[str, Any]:
    """Fetch repository metadata (used as a connectivity and auth check)."""
    return _request(remote, "GET", "")


def get_content(
    remote: RemoteConfig, path: str
) -> dict[str, Any] | list[dict[str, Any]] | None:
    """Read a path at the configured branch via the contents API.

    Returns:
        A dict for a file (``content`` base64, ``sha``), a list of entries
        for a directory, or ``None`` when nothing exists at *path*.
    """
    try:
        return _request(
            remote,
            "GET",
            f"/contents/{_quote_path(path)}",
            params={"ref": remote.branch},
        )
    except requests.HTTPError as exc:
        if _is_absent(exc):
            return None
        raise


def get_blob(remote: RemoteConfig, sha: str) -> bytes:
    """Fetch raw blob bytes by sha.

    The contents API leaves ``content`` empty for files over 1 MB; the git
    blob endpoint still serves them.
    """
    data = _request(remote, "GET", f"/git/blobs/{sha}")
    if data.get("encoding") == "base64":
        return base64.b64decode(data.get("content", ""))
    return data.get("content", "").encode("utf-8")


def put_content(
    remote: RemoteConfig,
    path: str,
    content: bytes,
    message: str,
    sha: str | None = None,
) -> dict[str, Any]:
    """Create or replace one file as a single commit.

    Args:
        remote: Target repository and branch.
        path: Repository-relative path.
        content: Bytes to store.
        message: Commit message.
        sha: Blob sha of the version being replaced; omit to create.

    Returns:
        Response with ``content`` (new file, including ``sha``) and
        ``commit`` (new commit, including ``sha``).

    Raises:
        requests.HTTPError: 409/422 when *sha* does not match the live version.
    """
    body: dict[str, Any] = {
        "message": message,
        "content": base64.b64encode(content).decode("ascii"),
        "branch": remote.branch,
    }
    if sha:
        body["sha"] = sha
    return _request(
        remote, "PUT", f"/contents/{_quote_path(path)}", json=body
    )


def get_ref(remote: RemoteConfig) -> str:
    """Return the commit sha the configured branch points at."""
    data = _request(
        remote, "GET", f"/git/ref/heads/{_quote_path(remote.branch)}"
    )
    return data["object"]["sha"]


def get_commit(remote: RemoteConfig, sha: str) -> dict[str, Any]:
    """Fetch a commit object; ``tree.sha`` is its root tree."""
    return _request(remote, "GET", f"/git/commits/{sha}")


def create_blob(remote: RemoteConfig, content: bytes) -> str:
    """Store *content* as a blob and return its sha."""
    data = _request(
        remote,
        "POST",
        "/git/blobs",
        json={
            "content": base64.b64encode(content).decode("ascii"),
            "encoding": "base64",
        },
    )
    return data["sha"]


def create_tree(
    remote: RemoteConfig, base_tree: str, blobs: dict[str, str]
) -> str:
    """Create a tree overlaying *blobs* (path -> blob sha) on *base_tree*.

    Paths not in *blobs* keep their entries from the base tree.
    """
    entries = [
        {"path": path, "mode": FILE_MODE, "type": "blob", "sha": sha}
        for path, sha in blobs.items()
    ]
    data = _request(
        remote,
        "POST",
        "/git/trees",
        json={"base_tree": base_tree, "tree": entries},
    )
    return data["sha"]


def create_commit(
    remote: RemoteConfig, message: str, tree: str, parents: list[str]
) -> str:
    """Create a commit object and return its sha (no ref is moved)."""
    data = _request(
        remote,
        "POST",
        "/git/commits",
        json={"message": message, "tree": tree, "parents": parents},
    )
    return data["sha"]


def update_ref(remote: RemoteConfig, sha: str) -> str:
    """Move the branch to *sha*, refusing anything but a fast-forward.

    Raises:
        requests.HTTPError: 422 when the branch no longer points at an
            ancestor of *sha* (another writer moved it).
    """
    data = _request(
        remote,
        "PATCH",
        f"/git/refs/heads/{_quote_path(remote.branch)}",
        json={"sha": sha, "force": False},
    )
    return data["object"]["sha"]
