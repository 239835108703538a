"""Memo of terminal-rendered documents, keyed by logical name."""

from typing import Callable

RenderFn = Callable[[str, int], str]


class RenderCache:
    """One rendered string per document name.

    Hits are returned without comparing content or width, so the owner must
    call clear() whenever the panel width or the workspace changes.
    """

    def __init__(self):
        self._entries: dict[str, str] = {}

    def get(self, name: str, raw_content: str, width: int, render_fn: RenderFn) -> str:
        """Cached render for name, rendering and storing it on a miss.

        Exceptions from render_fn propagate and nothing is stored.
        """
        cached = self._entries.get(name)
        if cached is not None:
            return cached
        rendered = render_fn(raw_content, width)
        self._entries[name] = rendered
        return rendered

    def put(self, name: str, rendered: str) -> None:
        """Store a value computed outside get(), e.g. a raw-text fallback."""
        self._entries.setdefault(name, rendered)

    def clear(self) -> None:
        self._entries = {}

    def __contains__(self, name: str) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return len(self._entries)
