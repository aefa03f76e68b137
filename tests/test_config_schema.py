"""Tests for the unified config schema and its load_config() adapter."""

import pytest
from pydantic import ValidationError

from github_cms_mcp.config_schema import (
    ContentSection,
    GitHubSection,
    LoggingSection,
    UnifiedConfig,
    build_config,
    to_yaml_fallbacks,
)


class TestUnifiedConfig:
    def test_defaults(self):
        config = UnifiedConfig()
        assert config.github.owner is None
        assert config.github.max_parallel_requests == 5
        assert config.content.directory == "content"
        assert config.content.markup_extension == ".md"
        assert config.logging.level is None

    def test_build_from_empty(self):
        assert build_config({}) == UnifiedConfig()

    def test_build_full(self):
        config = build_config(
            {
                "github": {
                    "token": "ghp_x",
                    "owner": "octo",
                    "repo": "site",
                    "branch": "publish",
                    "max_batch_size": 20,
                },
                "content": {"directory": "posts", "drafts_file": "d.json"},
                "logging": {"level": "DEBUG", "file": "/tmp/x.log"},
            }
        )
        assert config.github.branch == "publish"
        assert config.content.directory == "posts"
        assert config.logging.file == "/tmp/x.log"

    def test_frozen(self):
        config = UnifiedConfig()
        with pytest.raises(ValidationError):
            config.github = GitHubSection()


class TestSections:
    def test_token_is_secret(self):
        section = GitHubSection(token="ghp_secret")
        assert "ghp_secret" not in repr(section)
        assert section.token.get_secret_value() == "ghp_secret"

    @pytest.mark.parametrize("value", [0, 101])
    def test_parallel_requests_bounds(self, value):
        with pytest.raises(ValidationError):
            GitHubSection(max_parallel_requests=value)

    @pytest.mark.parametrize("value", [0, 1001])
    def test_batch_size_bounds(self, value):
        with pytest.raises(ValidationError):
            GitHubSection(max_batch_size=value)

    @pytest.mark.parametrize("value", ["md", ".", ".m d"])
    def test_markup_extension_pattern(self, value):
        with pytest.raises(ValidationError):
            ContentSection(markup_extension=value)

    def test_logging_defaults(self):
        assert LoggingSection().file is None


class TestToYamlFallbacks:
    def test_unset_values_omitted(self):
        fallbacks = to_yaml_fallbacks(UnifiedConfig())
        assert "owner" not in fallbacks
        assert "token" not in fallbacks
        assert "drafts_file" not in fallbacks
        assert fallbacks["directory"] == "content"
        assert fallbacks["max_parallel_requests"] == 5

    def test_flattens_sections(self):
        unified = build_config(
            {
                "github": {"token": "ghp_x", "owner": "octo", "repo": "site"},
                "content": {"directory": "posts", "markup_extension": ".mdx"},
            }
        )
        fallbacks = to_yaml_fallbacks(unified)
        assert fallbacks["token"] == "ghp_x"
        assert fallbacks["owner"] == "octo"
        assert fallbacks["directory"] == "posts"
        assert fallbacks["markup_extension"] == ".mdx"
