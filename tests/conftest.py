"""Shared fixtures for the docshelf test suite."""
import sys
import textwrap
from pathlib import Path

import pytest

# Add project root to path so imports work
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from workspaces import Workspace  # noqa: E402


DOCS_YAML = textwrap.dedent("""\
    name: Test Docs
    description: Docs used by the test suite
    categories:
      - name: Core
        references:
          - name: Install
            description: Installing the package
          - name: Getting Started
            description: First steps
      - name: Components
        references:
          - name: Buttons
            description: Clickable things
          - name: Cards
            description: Missing on purpose
      - name: Guides
        references:
          - name: Contributing
            description: How to help
""")

FILES = {
    "core/Install.md": "# Hi\n\nInstall the package.\n",
    "core/Getting-Started.md": "# Getting Started\n\nRun it.\n",
    "components/Buttons.md": "# Buttons\n\n| a | b |\n|---|---|\n| 1 | 2 |\n",
    # Guides is not in the folder map, so it lives in the default folder
    "core/Contributing.md": "# Contributing\n\nSend patches.\n",
}


def write_workspace(root: Path, docs_yaml: str = DOCS_YAML, files: dict | None = None) -> Path:
    root.mkdir(parents=True, exist_ok=True)
    (root / "docs.yaml").write_text(docs_yaml, encoding="utf-8")
    for rel, content in (FILES if files is None else files).items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    return root


@pytest.fixture
def workspace_root(tmp_path):
    return write_workspace(tmp_path / "ws")


@pytest.fixture
def workspace(workspace_root):
    return Workspace(name="Test", path=str(workspace_root))


class RecordingRenderer:
    """Stand-in terminal renderer that marks output with the width."""

    def __init__(self):
        self.calls = []

    def __call__(self, content, width):
        self.calls.append((content, width))
        return f"[w={width}]\n{content}"

    def count(self, content):
        return sum(1 for c, _ in self.calls if c == content)


@pytest.fixture
def renderer():
    return RecordingRenderer()
