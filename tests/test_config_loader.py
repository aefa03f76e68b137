"""Tests for github_cms_mcp.config_loader -- YAML config discovery and merge."""

import textwrap

import pytest

from github_cms_mcp.config_loader import (
    _interpolate_tree,
    _read_yaml,
    discover_config_files,
    ensure_config,
    interpolate_env_vars,
    load_hierarchical_config,
    resolve_config_path,
)


@pytest.fixture
def isolated(tmp_path, monkeypatch):
    """Run with an empty CWD and HOME and no explicit config path."""
    home = tmp_path / "home"
    work = tmp_path / "work"
    home.mkdir()
    work.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.chdir(work)
    monkeypatch.delenv("GITHUB_CMS_CONFIG", raising=False)
    return work, home


def _write(path, text):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(textwrap.dedent(text), encoding="utf-8")
    return path


# -------------------------------------------------------------------------
# Env var interpolation
# -------------------------------------------------------------------------


class TestInterpolateEnvVars:
    def test_replaces_set_var(self, monkeypatch):
        monkeypatch.setenv("CMS_OWNER", "octo")
        assert interpolate_env_vars("${CMS_OWNER}") == "octo"

    def test_unset_var_is_empty(self, monkeypatch):
        monkeypatch.delenv("CMS_UNSET_XYZ", raising=False)
        assert interpolate_env_vars("${CMS_UNSET_XYZ}") == ""

    def test_default_when_unset_or_empty(self, monkeypatch):
        monkeypatch.delenv("CMS_UNSET_XYZ", raising=False)
        monkeypatch.setenv("CMS_EMPTY", "")
        assert interpolate_env_vars("${CMS_UNSET_XYZ:-main}") == "main"
        assert interpolate_env_vars("${CMS_EMPTY:-main}") == "main"

    def test_default_ignored_when_set(self, monkeypatch):
        monkeypatch.setenv("CMS_BRANCH", "publish")
        assert interpolate_env_vars("${CMS_BRANCH:-main}") == "publish"

    def test_unterminated_reference_kept(self):
        assert interpolate_env_vars("${NO_CLOSE") == "${NO_CLOSE"

    def test_nested_structures(self, monkeypatch):
        monkeypatch.setenv("CMS_TOKEN", "ghp_abc")
        data = {"github": {"token": "${CMS_TOKEN}", "max_batch_size": 10}, "l": ["${CMS_TOKEN}", 1]}
        assert _interpolate_tree(data) == {
            "github": {"token": "ghp_abc", "max_batch_size": 10},
            "l": ["ghp_abc", 1],
        }


# -------------------------------------------------------------------------
# !include
# -------------------------------------------------------------------------


class TestInclude:
    def test_include_relative_file(self, tmp_path):
        _write(tmp_path / "github.yml", "owner: octo\nrepo: site\n")
        main = _write(tmp_path / "config.yml", "github: !include github.yml\n")
        assert _read_yaml(main) == {"github": {"owner": "octo", "repo": "site"}}

    def test_missing_include(self, tmp_path):
        main = _write(tmp_path / "config.yml", "github: !include nope.yml\n")
        with pytest.raises(FileNotFoundError, match="nope.yml"):
            _read_yaml(main)

    def test_circular_include(self, tmp_path):
        _write(tmp_path / "a.yml", "b: !include b.yml\n")
        _write(tmp_path / "b.yml", "a: !include a.yml\n")
        with pytest.raises(ValueError, match="Circular include"):
            _read_yaml(tmp_path / "a.yml")


# -------------------------------------------------------------------------
# Discovery and merge
# -------------------------------------------------------------------------


class TestDiscovery:
    def test_nothing_found(self, isolated):
        assert discover_config_files() == []
        assert load_hierarchical_config() == {}

    def test_precedence_order(self, isolated, tmp_path, monkeypatch):
        work, home = isolated
        explicit = _write(tmp_path / "explicit.yml", "github: {}\n")
        project = _write(work / ".github_cms" / "config.yml", "github: {}\n")
        global_file = _write(
            home / ".config" / "github_cms" / "config.yml", "github: {}\n"
        )
        monkeypatch.setenv("GITHUB_CMS_CONFIG", str(explicit))

        found = discover_config_files()
        assert found[0] == explicit.resolve()
        assert project in found
        assert found[-1] == global_file

    def test_project_wins_per_section(self, isolated):
        work, home = isolated
        _write(
            home / ".config" / "github_cms" / "config.yml",
            """\
            github:
              owner: global-owner
            logging:
              level: DEBUG
            """,
        )
        _write(
            work / ".github_cms" / "config.yml",
            """\
            github:
              owner: project-owner
            """,
        )
        merged = load_hierarchical_config()
        assert merged["github"] == {"owner": "project-owner"}
        assert merged["logging"] == {"level": "DEBUG"}

    def test_interpolates_after_merge(self, isolated, monkeypatch):
        work, _ = isolated
        monkeypatch.setenv("CMS_REPO", "blog")
        _write(work / ".github_cms" / "config.yml", "github:\n  repo: ${CMS_REPO}\n")
        assert load_hierarchical_config() == {"github": {"repo": "blog"}}

    def test_non_mapping_root_ignored(self, isolated):
        work, _ = isolated
        _write(work / ".github_cms" / "config.yml", "- just\n- a list\n")
        assert load_hierarchical_config() == {}


class TestEnsureConfig:
    def test_resolve_default_location(self, isolated):
        work, _ = isolated
        assert resolve_config_path() == work / ".github_cms" / "config.yml"

    def test_creates_starter(self, isolated):
        work, _ = isolated
        path = ensure_config()
        assert path == work / ".github_cms" / "config.yml"
        text = path.read_text(encoding="utf-8")
        assert "github:" in text
        # Starter file is all comments, so it loads as nothing
        assert load_hierarchical_config() == {}

    def test_existing_file_untouched(self, isolated):
        work, _ = isolated
        existing = _write(work / ".github_cms" / "config.yml", "github: {}\n")
        assert ensure_config() == existing
        assert existing.read_text(encoding="utf-8") == "github: {}\n"
