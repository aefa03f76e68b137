"""Shared pytest fixtures for github-cms-mcp tests."""

from unittest.mock import patch

import pytest

from fakes import FakeGitHubStore
from github_cms_mcp.config import Config
from github_cms_mcp.drafts import InMemoryDraftStore
from github_cms_mcp.mcp.context import ToolContext
from github_cms_mcp.sync import RemoteConfig

TEST_TOKEN = "ghp_testtoken1234567890"


def pytest_addoption(parser):
    """Add custom CLI options for test filtering."""
    parser.addoption(
        "--run-live",
        action="store_true",
        default=False,
        help="Run tests that require a live GitHub repository",
    )


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "live: mark test as requiring a live GitHub repository"
    )


def pytest_collection_modifyitems(config, items):
    """Skip live tests unless --run-live is passed."""
    if config.getoption("--run-live"):
        return
    skip_live = pytest.mark.skip(reason="need --run-live option to run")
    for item in items:
        if "live" in item.keywords:
            item.add_marker(skip_live)


@pytest.fixture(autouse=True)
def _reset_semaphore():
    """Each test gets an unbounded request semaphore on its own event loop."""
    import github_cms_mcp.core.async_utils as mod

    original = mod._semaphore
    mod._semaphore = None
    yield
    mod._semaphore = original


@pytest.fixture
def mock_config():
    """A valid Config instance for testing."""
    return Config(
        github_token=TEST_TOKEN,
        owner="octo",
        repo="site",
        branch="main",
    )


@pytest.fixture
def remote():
    return RemoteConfig(
        owner="octo",
        repository_name="site",
        auth_token=TEST_TOKEN,
        branch="main",
    )


@pytest.fixture
def fake_store():
    """FakeGitHubStore patched in as the sync engine's object store."""
    store = FakeGitHubStore()
    with patch("github_cms_mcp.sync.engine.store", store):
        yield store


@pytest.fixture
def seeded_store():
    """Fake store with a few documents, patched into the sync engine."""
    store = FakeGitHubStore(
        files={
            "content/a.md": "# Alpha\n\nFirst post",
            "content/b.md": "# Beta\n\nSecond post",
            "content/notes.txt": "not markdown",
            "README.md": "# Site",
        }
    )
    with patch("github_cms_mcp.sync.engine.store", store):
        yield store


@pytest.fixture
def draft_store():
    return InMemoryDraftStore()


@pytest.fixture
def tool_context(remote, draft_store):
    """ToolContext backed by an in-memory draft store."""
    return ToolContext(
        remote=remote,
        drafts=draft_store,
        content_dir="content",
        markup_extension=".md",
        max_batch_size=3,
    )
