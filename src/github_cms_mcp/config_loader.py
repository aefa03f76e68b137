"""
YAML config file discovery and loading for github_cms_mcp.

Files are found by convention, may pull in other files with ``!include``
and may reference environment variables as ``${VAR}`` or
``${VAR:-default}``.  When several files exist, the project-level file
wins over the global one.

Usage:
    from github_cms_mcp.config_loader import load_hierarchical_config

    raw = load_hierarchical_config()
"""

import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "GITHUB_CMS_CONFIG"
PROJECT_CONFIG_DIR = ".github_cms"
GLOBAL_CONFIG_DIR = Path(".config") / "github_cms"

# ${VAR} or ${VAR:-default}
_ENV_REF = re.compile(r"\$\{([^}:]+?)(?::-(.*?))?\}")


def interpolate_env_vars(value: str) -> str:
    """Expand ``${VAR}`` and ``${VAR:-default}`` references in *value*.

    An unset or empty variable expands to its default, or to ``""`` when
    there is none.  An unterminated ``${`` is kept as written.
    """

    def _expand(match: re.Match) -> str:
        current = os.environ.get(match.group(1))
        if current:
            return current
        return match.group(2) or ""

    return _ENV_REF.sub(_expand, value)


def _interpolate_tree(node: Any) -> Any:
    if isinstance(node, str):
        return interpolate_env_vars(node)
    if isinstance(node, dict):
        return {key: _interpolate_tree(val) for key, val in node.items()}
    if isinstance(node, list):
        return [_interpolate_tree(item) for item in node]
    return node


class ConfigLoader(yaml.SafeLoader):
    """SafeLoader that understands ``!include <path>``.

    Registered on a subclass so the global ``yaml.SafeLoader`` keeps its
    stock constructors.
    """


def _include(loader: ConfigLoader, node: yaml.ScalarNode) -> Any:
    target = Path(loader.construct_scalar(node))
    including_file = Path(loader.name).resolve()
    if not target.is_absolute():
        target = including_file.parent / target
    target = target.resolve()

    chain: list[Path] = getattr(loader, "_include_chain", [])
    if target in chain:
        cycle = " -> ".join(str(p) for p in [*chain, target])
        raise ValueError(f"Circular include detected: {cycle}")
    if not target.exists():
        raise FileNotFoundError(
            f"Include file not found: {target} (referenced from {including_file})"
        )

    return _read_yaml(target, chain=[*chain, target])


ConfigLoader.add_constructor("!include", _include)


def _read_yaml(path: Path, *, chain: list[Path] | None = None) -> Any:
    path = path.resolve()
    with open(path, "r", encoding="utf-8") as fh:
        loader = ConfigLoader(fh)
        loader._include_chain = chain or [path]  # type: ignore[attr-defined]
        try:
            return loader.get_single_data()
        finally:
            loader.dispose()


def discover_config_files() -> list[Path]:
    """Existing config files, highest precedence first.

    Looked up in this order:
        1. the path named by ``GITHUB_CMS_CONFIG``
        2. ``.github_cms/config.yml`` in the working directory
        3. ``.github_cms/config.yaml`` in the working directory
        4. ``~/.config/github_cms/config.yml``
    """
    candidates: list[Path] = []

    explicit = os.environ.get(CONFIG_ENV_VAR)
    if explicit:
        candidates.append(Path(explicit).expanduser().resolve())

    project_dir = Path.cwd() / PROJECT_CONFIG_DIR
    candidates.append(project_dir / "config.yml")
    candidates.append(project_dir / "config.yaml")
    candidates.append(Path.home() / GLOBAL_CONFIG_DIR / "config.yml")

    return [p for p in candidates if p.exists()]


_STARTER_CONFIG = """\
# github-cms-mcp configuration
#
# Connection settings may instead come from environment variables:
#   GITHUB_TOKEN, GITHUB_OWNER, GITHUB_REPO, GITHUB_BRANCH
#
# github:
#   token: ${GITHUB_TOKEN}
#   owner: my-org
#   repo: my-site
#   branch: main
#   max_parallel_requests: 5
#   max_batch_size: 100
#
# content:
#   directory: content
#   markup_extension: .md
#   drafts_file: .github_cms/drafts.json
#
# logging:
#   level: INFO
#   file: null
"""


def resolve_config_path() -> Path:
    """The config file in effect, or the project-level default location.

    Nothing is created; see ``ensure_config()``.
    """
    found = discover_config_files()
    if found:
        return found[0]
    return Path.cwd() / PROJECT_CONFIG_DIR / "config.yml"


def ensure_config(target: Path | None = None) -> Path:
    """Return the active config file, writing a commented starter if none exists.

    Args:
        target: Where to write the starter file. Defaults to
            ``resolve_config_path()``.
    """
    found = discover_config_files()
    if found:
        logger.debug("Config file already exists: %s", found[0])
        return found[0]

    path = target or resolve_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(_STARTER_CONFIG, encoding="utf-8")
    logger.info("Created starter config: %s", path)
    return path


def load_hierarchical_config() -> dict[str, Any]:
    """Merge every discovered config file into one dict.

    Files are applied from lowest to highest precedence and top-level
    sections replace earlier ones wholesale.  Environment references are
    expanded after the merge.  No config files means ``{}``.
    """
    paths = discover_config_files()
    if not paths:
        logger.debug("No config files found, using built-in defaults")
        return {}

    merged: dict[str, Any] = {}
    for path in reversed(paths):
        logger.debug("Loading config: %s", path)
        try:
            data = _read_yaml(path)
        except Exception:
            logger.exception("Failed to load config file %s", path)
            raise

        if isinstance(data, dict):
            merged.update(data)
        elif data is not None:
            logger.warning(
                "Ignoring config file %s: root is %s, not a mapping",
                path,
                type(data).__name__,
            )

    return _interpolate_tree(merged)
