"""Flat, ordered index of the documents a workspace declares."""

from dataclasses import dataclass

from resolver import OVERVIEW_CATEGORY, OVERVIEW_DESCRIPTION, OVERVIEW_NAME
from workspaces import DocsConfig

ALL_TAB = 'All'


@dataclass(frozen=True)
class DocItem:
    name: str
    description: str
    category: str


def build_items(config: DocsConfig) -> tuple[DocItem, ...]:
    """One item per reference, preceded by the overview item."""
    items = [DocItem(OVERVIEW_NAME, OVERVIEW_DESCRIPTION, OVERVIEW_CATEGORY)]
    for cat in config.categories:
        for ref in cat.references:
            items.append(DocItem(ref.name, ref.description, cat.name))
    return tuple(items)


def tab_labels(config: DocsConfig) -> list[str]:
    return [ALL_TAB] + [cat.name for cat in config.categories]


def filter_by_category(items: tuple[DocItem, ...], category: str | None) -> list[DocItem]:
    """Items of one category in index order; None (the All tab) keeps everything."""
    if category is None:
        return list(items)
    return [item for item in items if item.category == category]


def filter_by_text(items: tuple[DocItem, ...], query: str) -> list[DocItem]:
    """Case-insensitive substring search over name, description and category.

    Always searches the full item set; an empty query returns all items.
    """
    if not query:
        return list(items)
    needle = query.lower()
    return [
        item for item in items
        if needle in item.name.lower()
        or needle in item.description.lower()
        or needle in item.category.lower()
    ]


def category_of(items: tuple[DocItem, ...], name: str) -> str:
    """Category of the first item with this name, or '' if none."""
    for item in items:
        if item.name == name:
            return item.category
    return ''
