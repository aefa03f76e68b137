"""Tests for github_cms_mcp.mcp.lifespan: server startup/shutdown lifecycle.

Tests the server_lifespan() async context manager which:
- Loads config from env vars and YAML (with optional CLI overrides)
- Validates repository access with the configured token
- Initializes concurrency semaphore
- Opens the JSON draft store
- Fails fast on config errors or connection failures
"""

from contextlib import ExitStack
from unittest.mock import patch

import pytest

from fakes import http_error
from github_cms_mcp.config import Config
from github_cms_mcp.drafts import JsonFileDraftStore
from github_cms_mcp.mcp.lifespan import server_lifespan

TOKEN = "ghp_lifespantoken123"
LIFESPAN = "github_cms_mcp.mcp.lifespan"


def _make_config(**overrides):
    defaults = {
        "github_token": TOKEN,
        "owner": "octo",
        "repo": "site",
        "max_parallel_requests": 5,
    }
    defaults.update(overrides)
    return Config(**defaults)


class _Patched:
    """Patch the lifespan's collaborators; exposes the mocks as attributes."""

    def __init__(
        self,
        config=None,
        load_error=None,
        repo_info=None,
        repo_error=None,
        config_files=(),
    ):
        self._stack = ExitStack()
        self._config = config or _make_config()
        self._load_error = load_error
        self._repo_info = (
            repo_info
            if repo_info is not None
            else {"full_name": "octo/site", "default_branch": "main"}
        )
        self._repo_error = repo_error
        self._config_files = list(config_files)
        self.stderr: list[str] = []

    def __enter__(self):
        enter = self._stack.enter_context
        enter(patch(f"{LIFESPAN}.load_dotenv"))
        enter(
            patch(
                f"{LIFESPAN}.discover_config_files",
                return_value=self._config_files,
            )
        )
        if self._load_error is not None:
            self.load_config = enter(
                patch(f"{LIFESPAN}.load_config", side_effect=self._load_error)
            )
        else:
            self.load_config = enter(
                patch(f"{LIFESPAN}.load_config", return_value=self._config)
            )
        if self._repo_error is not None:
            self.run_sync = enter(
                patch(f"{LIFESPAN}.run_sync", side_effect=self._repo_error)
            )
        else:
            self.run_sync = enter(
                patch(f"{LIFESPAN}.run_sync", return_value=self._repo_info)
            )
        self.init_semaphore = enter(patch(f"{LIFESPAN}.init_semaphore"))
        enter(
            patch(
                f"{LIFESPAN}._stderr_print",
                side_effect=self.stderr.append,
            )
        )
        return self

    def __exit__(self, *exc_info):
        return self._stack.__exit__(*exc_info)


# -------------------------------------------------------------------------
# Successful startup
# -------------------------------------------------------------------------


class TestServerLifespanSuccess:
    async def test_successful_startup(self, tmp_path):
        config = _make_config(drafts_file=str(tmp_path / "drafts.json"))
        with _Patched(config=config) as mocks:
            async with server_lifespan() as ctx:
                assert ctx.remote.full_name == "octo/site"
                assert ctx.remote.branch == "main"
                assert isinstance(ctx.drafts, JsonFileDraftStore)
                assert ctx.drafts.path == tmp_path / "drafts.json"
                assert ctx.content_dir == "content"
                assert ctx.max_batch_size == 100
                mocks.init_semaphore.assert_called_once_with(5)
                assert mocks.run_sync.call_count == 1
            assert any("shutting down" in m for m in mocks.stderr)

    async def test_semaphore_uses_max_parallel_from_config(self):
        with _Patched(config=_make_config(max_parallel_requests=12)) as mocks:
            async with server_lifespan():
                mocks.init_semaphore.assert_called_once_with(12)

    async def test_overrides_passed_to_load_config(self):
        overrides = {"owner": "cli-owner", "branch": "publish", "debug": True}
        with _Patched() as mocks:
            async with server_lifespan(config_overrides=overrides):
                kwargs = mocks.load_config.call_args.kwargs
                assert kwargs["owner"] == "cli-owner"
                assert kwargs["branch"] == "publish"
                assert kwargs["debug"] is True
                assert kwargs["token"] is None
                assert kwargs["yaml_fallbacks"] is None

    async def test_yaml_fallbacks_used_when_config_file_found(self, tmp_path):
        config_file = tmp_path / "config.yml"
        with (
            _Patched(config_files=[config_file]) as mocks,
            patch(
                f"{LIFESPAN}.load_hierarchical_config",
                return_value={"github": {"owner": "yaml-owner"}},
            ),
        ):
            async with server_lifespan():
                fallbacks = mocks.load_config.call_args.kwargs["yaml_fallbacks"]
                assert fallbacks["owner"] == "yaml-owner"
            assert any(str(config_file) in m for m in mocks.stderr)


# -------------------------------------------------------------------------
# Failure paths
# -------------------------------------------------------------------------


class TestServerLifespanConfigError:
    async def test_config_error_raises_runtime_error(self):
        with _Patched(load_error=ValueError("GITHUB_OWNER is required")):
            with pytest.raises(RuntimeError, match="GITHUB_OWNER is required"):
                async with server_lifespan():
                    pass  # pragma: no cover

    async def test_config_error_redacts_cli_token(self):
        error = ValueError(f"bad token {TOKEN}")
        with _Patched(load_error=error) as mocks:
            with pytest.raises(RuntimeError) as exc_info:
                async with server_lifespan(config_overrides={"token": TOKEN}):
                    pass  # pragma: no cover
        assert TOKEN not in str(exc_info.value)
        assert all(TOKEN not in m for m in mocks.stderr)

    async def test_config_error_skips_repository_check(self):
        with _Patched(load_error=ValueError("missing")) as mocks:
            with pytest.raises(RuntimeError):
                async with server_lifespan():
                    pass  # pragma: no cover
            mocks.run_sync.assert_not_called()


class TestServerLifespanRepositoryError:
    async def test_bad_credentials(self):
        with _Patched(repo_error=http_error(401, "Bad credentials")) as mocks:
            with pytest.raises(RuntimeError, match="Repository access failed"):
                async with server_lifespan():
                    pass  # pragma: no cover
            mocks.init_semaphore.assert_not_called()
            assert "ERROR: Repository access failed." in mocks.stderr

    async def test_missing_repository(self):
        with _Patched(repo_error=http_error(404, "Not Found")):
            with pytest.raises(RuntimeError, match="octo/site"):
                async with server_lifespan():
                    pass  # pragma: no cover

    async def test_error_message_redacts_token(self):
        error = http_error(500, f"echo {TOKEN}")
        with _Patched(repo_error=error):
            with pytest.raises(RuntimeError) as exc_info:
                async with server_lifespan():
                    pass  # pragma: no cover
        assert TOKEN not in str(exc_info.value)
