"""Tests for category routing and candidate file resolution."""
import pytest

from resolver import (
    DEFAULT_FOLDER,
    OVERVIEW_CATEGORY,
    OVERVIEW_NAME,
    DocumentResolver,
    NotFound,
    Resolved,
    build_overview,
    count_markdown_files,
    filename_candidates,
    is_plain_name,
    folder_for,
)
from workspaces import load_docs_config


@pytest.fixture
def resolver(workspace_root):
    return DocumentResolver(workspace_root, load_docs_config(workspace_root))


class TestCandidates:

    def test_all_five_variants_in_order(self):
        assert filename_candidates("My Doc-Name") == [
            "My Doc-Name.md",   # exact
            "My-Doc-Name.md",   # spaces -> hyphens
            "MyDoc-Name.md",    # spaces removed
            "My Doc Name.md",   # hyphens -> spaces
            "My DocName.md",    # hyphens removed
        ]

    def test_plain_name(self):
        assert filename_candidates("Install")[0] == "Install.md"
        assert len(filename_candidates("Install")) == 5


class TestCategoryRouter:

    @pytest.mark.parametrize("label,folder", [
        ("Core", "core"),
        ("Responsive", "responsive"),
        ("Helpers", "helpers"),
        ("Components", "components"),
        ("Templates", "templates"),
        ("Player", "player"),
    ])
    def test_known_categories(self, label, folder):
        assert folder_for(label) == folder

    def test_unmapped_category_uses_default(self):
        assert folder_for("Unknown-XYZ") == DEFAULT_FOLDER
        assert folder_for("core") == DEFAULT_FOLDER  # labels are case-sensitive


class TestResolve:

    def test_exact_match_wins_over_variants(self, workspace_root, resolver):
        (workspace_root / "core" / "Foo Bar.md").write_text("exact", encoding="utf-8")
        (workspace_root / "core" / "foo-bar.md").write_text("lower", encoding="utf-8")
        (workspace_root / "core" / "Foo-Bar.md").write_text("hyphen", encoding="utf-8")

        result = resolver.resolve("Foo Bar", "Core")
        assert isinstance(result, Resolved)
        assert result.path.name == "Foo Bar.md"
        assert result.content == "exact"

    def test_hyphenated_file_found_for_spaced_name(self, workspace_root, resolver):
        result = resolver.resolve("Getting Started", "Core")
        assert isinstance(result, Resolved)
        assert result.path == workspace_root / "core" / "Getting-Started.md"

    def test_spaced_file_found_for_hyphenated_name(self, workspace_root, resolver):
        (workspace_root / "core" / "Quick Start.md").write_text("# QS", encoding="utf-8")
        result = resolver.resolve("Quick-Start", "Core")
        assert result.path.name == "Quick Start.md"

    def test_joined_file_found_for_hyphenated_name(self, workspace_root, resolver):
        (workspace_root / "core" / "QuickStart.md").write_text("# QS", encoding="utf-8")
        result = resolver.resolve("Quick-Start", "Core")
        assert result.path.name == "QuickStart.md"

    def test_empty_candidate_is_skipped(self, workspace_root, resolver):
        (workspace_root / "core" / "Foo Bar.md").write_text("", encoding="utf-8")
        (workspace_root / "core" / "Foo-Bar.md").write_text("second", encoding="utf-8")
        result = resolver.resolve("Foo Bar", "Core")
        assert result.content == "second"

    def test_unmapped_category_resolves_in_default_folder(self, workspace_root, resolver):
        (workspace_root / DEFAULT_FOLDER / "Odd.md").write_text("# Odd", encoding="utf-8")
        result = resolver.resolve("Odd", "Unknown-XYZ")
        assert isinstance(result, Resolved)
        assert result.path == workspace_root / DEFAULT_FOLDER / "Odd.md"

    def test_not_found_is_a_value(self, resolver):
        result = resolver.resolve("Cards", "Components")
        assert result == NotFound(name="Cards", category="Components", folder="components")
        placeholder = result.placeholder()
        assert placeholder.startswith("# Cards")
        assert "Documentation not found." in placeholder
        assert "Category: 'Components'" in placeholder
        assert "Folder: 'components'" in placeholder

    def test_resolution_is_deterministic(self, resolver):
        for name, cat in [("Install", "Core"), ("Cards", "Components"), ("Buttons", "Components")]:
            assert resolver.resolve(name, cat) == resolver.resolve(name, cat)


class TestOverview:

    def test_overview_uses_root_readme(self, workspace_root, resolver):
        (workspace_root / "README.md").write_text("# Welcome\n", encoding="utf-8")
        result = resolver.resolve(OVERVIEW_NAME, "ignored")
        assert result.category == OVERVIEW_CATEGORY
        assert result.path == workspace_root / "README.md"
        assert result.content.startswith("# Welcome\n")
        assert "**Stats**" in result.content
        assert "- **3** categories" in result.content
        assert "- **5** references" in result.content
        # 5 markdown files including the README, which is not counted
        assert "- **4** doc files" in result.content

    def test_generated_overview_without_readme(self, workspace_root, resolver):
        result = resolver.resolve(OVERVIEW_NAME, "Core")
        assert result.path is None
        assert result.content.startswith("# Test Docs")
        assert "Docs used by the test suite" in result.content
        assert "**Quick Start**" in result.content

    def test_generated_overview_falls_back_to_folder_name(self, tmp_path):
        (tmp_path / "handbook").mkdir()
        from workspaces import DocsConfig
        content = build_overview(DocsConfig(), tmp_path / "handbook")
        assert content.startswith("# handbook")
        assert "Documentation for handbook" in content

    def test_count_markdown_files_recurses(self, workspace_root):
        (workspace_root / "core" / "deep").mkdir()
        (workspace_root / "core" / "deep" / "x.md").write_text("x", encoding="utf-8")
        (workspace_root / "core" / "notes.txt").write_text("x", encoding="utf-8")
        assert count_markdown_files(workspace_root) == 5


class TestNamesWithPaths:

    @pytest.mark.parametrize("name", ["../../secret", "..\\secret", "sub/Install", ".."])
    def test_rejected(self, name):
        assert not is_plain_name(name)

    def test_plain_names_pass(self):
        assert is_plain_name("Getting Started")
        assert is_plain_name("v1.2 Notes")

    def test_traversal_stays_inside_workspace(self, tmp_path, resolver):
        (tmp_path / "secret.md").write_text("# Secret\n", encoding="utf-8")
        result = resolver.resolve("../../secret", "Core")
        assert isinstance(result, NotFound)
        assert result.folder == "core"
