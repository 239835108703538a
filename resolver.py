"""
Resolve logical document names to markdown files inside a workspace.

A reference named "Getting Started" in category "Core" is looked up in
<root>/core/ under these names, first hit wins:

    Getting Started.md
    Getting-Started.md
    GettingStarted.md
    Getting Started.md      (hyphens -> spaces)
    Getting Started.md      (hyphens removed)

The synthetic README item is not looked up in a category folder; it is
built from <root>/README.md plus some stats about the workspace.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

from workspaces import DocsConfig

logger = logging.getLogger(__name__)

OVERVIEW_NAME = 'README'
OVERVIEW_CATEGORY = 'Overview'
OVERVIEW_DESCRIPTION = 'Project overview and stats'
README_FILENAME = 'README.md'

# Category label -> folder under the workspace root
CATEGORY_FOLDERS = {
    'Core': 'core',
    'Responsive': 'responsive',
    'Helpers': 'helpers',
    'Components': 'components',
    'Templates': 'templates',
    'Player': 'player',
}

# Unmapped categories share this folder
DEFAULT_FOLDER = 'core'


def folder_for(category: str) -> str:
    return CATEGORY_FOLDERS.get(category, DEFAULT_FOLDER)


def is_plain_name(name: str) -> bool:
    """True when name cannot step out of its category folder."""
    return not any(part in name for part in ('/', '\\', '..'))


def filename_candidates(name: str) -> list[str]:
    """Filenames to try for a logical name, in precedence order."""
    return [
        name + '.md',
        name.replace(' ', '-') + '.md',
        name.replace(' ', '') + '.md',
        name.replace('-', ' ') + '.md',
        name.replace('-', '') + '.md',
    ]


@dataclass(frozen=True)
class Resolved:
    name: str
    category: str
    content: str
    path: Path | None


@dataclass(frozen=True)
class NotFound:
    name: str
    category: str
    folder: str

    def placeholder(self) -> str:
        """Markdown shown in place of a missing document."""
        return (
            f"# {self.name}\n\nDocumentation not found.\n\n"
            f"Category: '{self.category}'\nFolder: '{self.folder}'"
        )


def _read_candidate(path: Path) -> str | None:
    if not path.is_file():
        return None
    try:
        content = path.read_text(encoding='utf-8')
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Skipping unreadable candidate %s: %s", path, e)
        return None
    return content or None


def count_markdown_files(directory: Path) -> int:
    """Recursively count .md files below directory."""
    try:
        entries = list(directory.iterdir())
    except OSError:
        return 0
    count = 0
    for entry in entries:
        if entry.is_dir():
            count += count_markdown_files(entry)
        elif entry.name.endswith('.md'):
            count += 1
    return count


def build_overview(config: DocsConfig, root: Path) -> str:
    """Overview document: the root README plus stats, or a generated welcome page."""
    file_count = count_markdown_files(root)
    # README.md is shown as the overview itself
    if file_count > 0:
        file_count -= 1

    stats = (
        f"- **{len(config.categories)}** categories\n"
        f"- **{config.reference_count}** references\n"
        f"- **{file_count}** doc files\n"
    )

    readme = _read_candidate(root / README_FILENAME)
    if readme:
        return readme + "\n\n---\n\n**Stats**\n\n" + stats

    project_name = config.name or root.name
    project_desc = config.description or f"Documentation for {project_name}"
    lines = [
        f"# {project_name}",
        "",
        project_desc,
        "",
        "---",
        "",
        "**Stats**",
        "",
        stats,
        "---",
        "",
        "**Quick Start**",
        "",
        "- Use `[tab]` to switch categories",
        "- Use `[↑/↓]` or `[j/k]` to navigate",
        "- Use `[/]` to search",
        "- Use `[pgup/pgdn]` to scroll docs",
        "- Use `[w]` to open the web preview",
        "",
        "Select a reference from the list to view its documentation.",
    ]
    return '\n'.join(lines)


class DocumentResolver:
    """Read-only lookup of documents in one workspace.

    Safe to share between the terminal loop and HTTP handler threads: it
    holds no mutable state.
    """

    def __init__(self, root: Path, config: DocsConfig):
        self.root = root
        self.config = config

    def resolve(self, name: str, category: str) -> Resolved | NotFound:
        if name == OVERVIEW_NAME:
            readme_path = self.root / README_FILENAME
            return Resolved(
                name=name,
                category=OVERVIEW_CATEGORY,
                content=build_overview(self.config, self.root),
                path=readme_path if readme_path.is_file() else None,
            )

        folder = folder_for(category)
        docs_dir = self.root / folder
        if not is_plain_name(name):
            logger.warning("Refusing document name with a path in it: %r", name)
            return NotFound(name=name, category=category, folder=folder)

        for filename in filename_candidates(name):
            path = docs_dir / filename
            content = _read_candidate(path)
            if content is not None:
                return Resolved(name=name, category=category, content=content, path=path)

        logger.info("No file for '%s' in %s", name, docs_dir)
        return NotFound(name=name, category=category, folder=folder)
