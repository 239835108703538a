"""
Terminal session state and its key-driven state machine.

A Session is owned by the interactive loop. Keys arrive as normalized
names ('up', 'tab', 'shift+tab', 'enter', 'esc', 'backspace', 'ctrl+c' or
a single printable character). handle_key() applies everything that only
touches session state and returns an Action for the side effects the
application context has to carry out (clipboard, web preview, ...).
"""

import enum
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from doc_index import (
    DocItem,
    build_items,
    category_of,
    filter_by_category,
    filter_by_text,
    tab_labels,
)
from render_cache import RenderCache
from renderers import RenderFailed, load_terminal_style, render_terminal
from resolver import OVERVIEW_NAME, DocumentResolver, NotFound
from workspaces import ConfigError, DocsConfig, Workspace, expand_tilde, load_docs_config

logger = logging.getLogger(__name__)

NOTICE_TICKS = 30
INITIAL_DOC_WIDTH = 60
SCROLL_STEP = 5


class Mode(enum.Enum):
    BROWSING = 'browsing'
    FILTERING = 'filtering'
    QUITTING = 'quitting'


class Action(enum.Enum):
    SELECTED = 'selected'
    COPY = 'copy'
    OPEN_FOLDER = 'open-folder'
    WEB = 'web'
    WEB_STOP = 'web-stop'
    SWITCH_WORKSPACE = 'switch-workspace'
    QUIT = 'quit'


@dataclass
class Notice:
    """Short-lived status line; counts down one tick per loop iteration."""
    text: str = ''
    ticks: int = 0

    def show(self, text: str, ticks: int = NOTICE_TICKS) -> None:
        self.text = text
        self.ticks = ticks

    def tick(self) -> None:
        if self.ticks > 0:
            self.ticks -= 1
            if self.ticks == 0:
                self.text = ''

    @property
    def active(self) -> bool:
        return bool(self.text)


def list_width(width: int) -> int:
    return max(width * 40 // 100, 45)


def doc_width(width: int) -> int:
    return max(width - list_width(width) - 4, 40)


class Session:
    def __init__(
        self,
        workspace: Workspace,
        config: DocsConfig,
        render_fn: Callable[[str, int], str] | None = None,
    ):
        self._custom_render = render_fn
        self.cache = RenderCache()
        self.notice = Notice()
        self.width = 0
        self.height = 0
        self.doc_width = INITIAL_DOC_WIDTH
        self.web_running = False
        self._reset(workspace, config)

    @classmethod
    def open(cls, workspace: Workspace, **kwargs) -> 'Session':
        """Load the workspace's docs.yaml and build a session; raises ConfigError."""
        return cls(workspace, load_docs_config(workspace.root), **kwargs)

    def _reset(self, workspace: Workspace, config: DocsConfig) -> None:
        self.workspace = workspace
        self.config = config
        self.resolver = DocumentResolver(workspace.root, config)
        if self._custom_render is not None:
            self.render_fn = self._custom_render
        else:
            theme = load_terminal_style(expand_tilde(workspace.styles.tui))
            self.render_fn = lambda content, width: render_terminal(content, width, theme)

        self.items: tuple[DocItem, ...] = build_items(config)
        self.view: list[DocItem] = list(self.items)
        self.tabs = tab_labels(config)
        self.active_tab = 0
        self.filter_text = ''
        self.mode = Mode.BROWSING
        self.cursor = 0
        self.page = 0
        self._resolved = {}
        self.drop_cache()
        self.load_doc(OVERVIEW_NAME)

    # ------------------------------------------------------------------
    # Layout
    # ------------------------------------------------------------------

    @property
    def items_per_page(self) -> int:
        per_page = self.height - 14
        if per_page < 5:
            per_page = 10
        return per_page

    @property
    def doc_height(self) -> int:
        return max(self.height - 4, 10)

    @property
    def total_pages(self) -> int:
        if not self.view:
            return 1
        return (len(self.view) + self.items_per_page - 1) // self.items_per_page

    def resize(self, width: int, height: int) -> None:
        self.width = width
        self.height = height
        new_doc_width = doc_width(width)
        if new_doc_width != self.doc_width:
            self.doc_width = new_doc_width
            # Rendering depends on width; drop every entry, not just the current one
            self.drop_cache()
            if self.doc_name:
                self.load_doc(self.doc_name, self.doc_category)
        self._clamp()

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    def drop_cache(self) -> None:
        """Forget every rendered document and the resolution it came from."""
        self.cache.clear()
        self._resolved.clear()

    def load_doc(self, name: str, category: str | None = None) -> None:
        if category is None:
            category = category_of(self.items, name)

        # A render cache miss always goes back to disk
        if name in self.cache and name in self._resolved:
            resolution = self._resolved[name]
        else:
            resolution = self.resolver.resolve(name, category)
            self._resolved[name] = resolution

        if isinstance(resolution, NotFound):
            content = resolution.placeholder()
            path = None
        else:
            content = resolution.content
            path = resolution.path
            category = resolution.category

        try:
            rendered = self.cache.get(name, content, self.doc_width, self.render_fn)
        except RenderFailed as e:
            logger.warning("Render of '%s' failed, showing raw markdown: %s", name, e)
            rendered = content
            self.cache.put(name, rendered)

        self.doc_name = name
        self.doc_category = category
        self.doc_content = content
        self.doc_path: Path | None = path
        self.rendered = rendered
        self.scroll = 0

    @property
    def rendered_lines(self) -> list[str]:
        return self.rendered.splitlines()

    def scroll_by(self, delta: int) -> None:
        max_scroll = max(len(self.rendered_lines) - self.doc_height, 0)
        self.scroll = min(max(self.scroll + delta, 0), max_scroll)

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def _clamp(self) -> None:
        if self.view:
            self.cursor = min(max(self.cursor, 0), len(self.view) - 1)
        else:
            self.cursor = 0
        self.page = self.cursor // self.items_per_page

    def _apply_tab(self) -> None:
        category = None if self.active_tab == 0 else self.config.categories[self.active_tab - 1].name
        self.view = filter_by_category(self.items, category)
        self._clamp()

    def _apply_filter(self) -> None:
        if not self.filter_text:
            self._apply_tab()
            return
        self.view = filter_by_text(self.items, self.filter_text)
        self.cursor = 0
        self.page = 0

    def cycle_tab(self, step: int) -> None:
        self.active_tab = (self.active_tab + step) % (len(self.config.categories) + 1)
        self.filter_text = ''
        self._apply_tab()
        self.cursor = 0
        self.page = 0

    def move(self, step: int) -> Action | None:
        if not self.view:
            return None
        count = len(self.view)
        self.cursor = (self.cursor + step + count) % count
        self.page = self.cursor // self.items_per_page
        item = self.view[self.cursor]
        self.load_doc(item.name, item.category)
        return Action.SELECTED

    # ------------------------------------------------------------------
    # Keys
    # ------------------------------------------------------------------

    def handle_key(self, key: str) -> Action | None:
        if key == 'ctrl+c':
            self.mode = Mode.QUITTING
            return Action.QUIT
        if self.mode is Mode.FILTERING:
            return self._handle_filter_key(key)
        if self.mode is Mode.BROWSING:
            return self._handle_browse_key(key)
        return None

    def _handle_filter_key(self, key: str) -> Action | None:
        if key == 'enter':
            self.mode = Mode.BROWSING
            if self.view:
                self.cursor = 0
                self.page = 0
        elif key == 'esc':
            self.mode = Mode.BROWSING
            self.filter_text = ''
            self._apply_tab()
        elif key == 'backspace':
            if self.filter_text:
                self.filter_text = self.filter_text[:-1]
                self._apply_filter()
        elif len(key) == 1 and key.isprintable():
            self.filter_text += key
            self._apply_filter()
        return None

    def _handle_browse_key(self, key: str) -> Action | None:
        if key == 'q':
            self.mode = Mode.QUITTING
            return Action.QUIT
        if key in ('/', '?'):
            self.mode = Mode.FILTERING
            self.active_tab = 0
            self._apply_filter()
        elif key == 'esc':
            if self.filter_text:
                self.filter_text = ''
                self._apply_tab()
        elif key in ('up', 'k'):
            return self.move(-1)
        elif key in ('down', 'j', ' '):
            return self.move(1)
        elif key == 'pgup':
            self.scroll_by(-self.doc_height)
        elif key == 'pgdown':
            self.scroll_by(self.doc_height)
        elif key == 'left':
            self.scroll_by(-SCROLL_STEP)
        elif key == 'right':
            self.scroll_by(SCROLL_STEP)
        elif key == 'tab':
            self.cycle_tab(1)
        elif key == 'shift+tab':
            self.cycle_tab(-1)
        elif key == 'enter':
            if self.doc_content:
                return Action.COPY
        elif key == 'f':
            if self.doc_path is not None:
                return Action.OPEN_FOLDER
        elif key == 'w':
            if self.doc_content:
                return Action.WEB
        elif key == 's':
            return Action.WEB_STOP
        elif key == 'W':
            return Action.SWITCH_WORKSPACE
        return None

    # ------------------------------------------------------------------
    # Workspaces
    # ------------------------------------------------------------------

    def switch_workspace(self, workspace: Workspace) -> bool:
        """Reload everything from another workspace.

        On a configuration error nothing changes and a notice is shown.
        """
        try:
            config = load_docs_config(workspace.root)
        except ConfigError as e:
            logger.warning("Workspace switch to '%s' aborted: %s", workspace.name, e)
            self.notice.show("Failed to load docs config")
            return False
        self._reset(workspace, config)
        self.notice.show(f"Switched to: {workspace.name}")
        return True
