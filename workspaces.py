"""
Workspace registry and per-workspace docs configuration.

The registry lives at ~/.config/docshelf/workspaces.yaml (or under
$DOCSHELF_CONFIG_DIR) and lists every documentation set:

    workspaces:
      - name: Motion
        path: ~/docs/motion
        styles:
          tui: ~/.config/docshelf/style.json
          web: ~/.config/docshelf/web.css

Each workspace root contains a docs.yaml describing its categories and
references.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

APP_NAME = 'docshelf'
VERSION = '0.1.0'

REGISTRY_FILENAME = 'workspaces.yaml'
CONFIG_FILENAME = 'docs.yaml'


class ConfigError(Exception):
    """Registry or docs configuration could not be read or is malformed."""


@dataclass(frozen=True)
class Styles:
    tui: str = ''
    web: str = ''


@dataclass(frozen=True)
class Workspace:
    name: str
    path: str
    styles: Styles = field(default_factory=Styles)

    @property
    def root(self) -> Path:
        return Path(expand_tilde(self.path))


@dataclass(frozen=True)
class Reference:
    name: str
    description: str = ''


@dataclass(frozen=True)
class Category:
    name: str
    references: tuple[Reference, ...] = ()


@dataclass(frozen=True)
class DocsConfig:
    name: str = ''
    description: str = ''
    categories: tuple[Category, ...] = ()

    @property
    def reference_count(self) -> int:
        return sum(len(cat.references) for cat in self.categories)


def get_config_dir() -> Path:
    """Return the docshelf config directory."""
    override = os.environ.get('DOCSHELF_CONFIG_DIR')
    if override:
        return Path(expand_tilde(override))
    return Path.home() / '.config' / APP_NAME


def expand_tilde(path: str) -> str:
    if path.startswith('~/'):
        return str(Path.home() / path[2:])
    return path


# ---------------------------------------------------------------------------
# Parsing helpers
# ---------------------------------------------------------------------------

def _load_yaml(text: str, source: str) -> Any:
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {source}: {e}") from e


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding='utf-8')
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"Could not read {path}: {e}") from e


def _require_name(entry: Any, what: str, source: str) -> str:
    if not isinstance(entry, dict):
        raise ConfigError(f"{source}: each {what} must be a mapping")
    name = entry.get('name')
    if not isinstance(name, str) or not name:
        raise ConfigError(f"{source}: {what} without a name")
    return name


def _as_list(value: Any, what: str, source: str) -> list:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ConfigError(f"{source}: '{what}' must be a list")
    return value


def _as_text(value: Any) -> str:
    return '' if value is None else str(value)


# ---------------------------------------------------------------------------
# Workspace registry
# ---------------------------------------------------------------------------

def parse_workspace_registry(text: str, source: str = REGISTRY_FILENAME) -> list[Workspace]:
    data = _load_yaml(text, source)
    if not isinstance(data, dict):
        raise ConfigError(f"{source}: expected a mapping with a 'workspaces' list")

    workspaces = []
    for entry in _as_list(data.get('workspaces'), 'workspaces', source):
        name = _require_name(entry, 'workspace', source)
        path = entry.get('path')
        if not isinstance(path, str) or not path:
            raise ConfigError(f"{source}: workspace '{name}' has no path")
        styles = entry.get('styles') or {}
        if not isinstance(styles, dict):
            raise ConfigError(f"{source}: styles of '{name}' must be a mapping")
        workspaces.append(Workspace(
            name=name,
            path=path,
            styles=Styles(tui=_as_text(styles.get('tui')), web=_as_text(styles.get('web'))),
        ))
    return workspaces


def load_workspace_registry(config_dir: Path | None = None) -> list[Workspace]:
    """Load workspaces.yaml; raises ConfigError when missing or corrupt."""
    config_dir = config_dir or get_config_dir()
    registry_path = config_dir / REGISTRY_FILENAME
    return parse_workspace_registry(_read_text(registry_path), str(registry_path))


def find_workspace(workspaces: list[Workspace], name: str) -> Workspace | None:
    for ws in workspaces:
        if ws.name == name:
            return ws
    return None


# ---------------------------------------------------------------------------
# docs.yaml
# ---------------------------------------------------------------------------

def parse_docs_config(text: str, source: str = CONFIG_FILENAME) -> DocsConfig:
    data = _load_yaml(text, source)
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"{source}: expected a mapping at the top level")

    categories = []
    for cat in _as_list(data.get('categories'), 'categories', source):
        cat_name = _require_name(cat, 'category', source)
        refs = tuple(
            Reference(
                name=_require_name(ref, 'reference', source),
                description=_as_text(ref.get('description')),
            )
            for ref in _as_list(cat.get('references'), 'references', source)
        )
        categories.append(Category(name=cat_name, references=refs))

    return DocsConfig(
        name=_as_text(data.get('name')),
        description=_as_text(data.get('description')),
        categories=tuple(categories),
    )


def load_docs_config(root: Path) -> DocsConfig:
    """Read <root>/docs.yaml; raises ConfigError when unreadable or malformed."""
    config_path = root / CONFIG_FILENAME
    return parse_docs_config(_read_text(config_path), str(config_path))
