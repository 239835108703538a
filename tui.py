"""
curses front end: two panels, a document list on the left and the rendered
document on the right.

Keymap:
  ↑/k     Previous document      Tab        Next category
  ↓/j     Next document          Shift+Tab  Previous category
  PgUp    Scroll doc page up     /  ?       Search all documents
  PgDn    Scroll doc page down   Enter      Copy document to clipboard
  ←/→     Scroll doc 5 lines     f          Open document folder
  w       Web preview            s          Stop web preview
  W       Switch workspace       q          Quit
"""

import curses
import logging
import os

from rich.color import Color, ColorSystem
from rich.style import Style

from app import App
from renderers import line_segments
from session import Action, Mode, list_width
from workspaces import Workspace

logger = logging.getLogger(__name__)

TICK_MS = 100
MIN_WIDTH = 60
MIN_HEIGHT = 12
# Color pairs from here on are handed out to rendered document colors
FIRST_STYLE_PAIR = 10

SPECIAL_KEYS = {
    curses.KEY_UP: 'up',
    curses.KEY_DOWN: 'down',
    curses.KEY_LEFT: 'left',
    curses.KEY_RIGHT: 'right',
    curses.KEY_PPAGE: 'pgup',
    curses.KEY_NPAGE: 'pgdown',
    curses.KEY_BTAB: 'shift+tab',
    curses.KEY_ENTER: 'enter',
    curses.KEY_BACKSPACE: 'backspace',
    3: 'ctrl+c',
    8: 'backspace',
    9: 'tab',
    10: 'enter',
    13: 'enter',
    27: 'esc',
    127: 'backspace',
}

WHEEL_UP = getattr(curses, 'BUTTON4_PRESSED', 0)
WHEEL_DOWN = getattr(curses, 'BUTTON5_PRESSED', 0)

HELP_LINE = "[↑/↓] move [tab] category [/] search [enter] copy [w] web [s] stop [W] workspace [q] quit"


def translate_key(ch: int) -> str | None:
    """Normalized key name for a curses key code."""
    if ch in SPECIAL_KEYS:
        return SPECIAL_KEYS[ch]
    if 32 <= ch < 127:
        return chr(ch)
    return None


class Screen:
    """Draws the session onto a curses window."""

    def __init__(self, stdscr):
        self.stdscr = stdscr
        self.has_colors = curses.has_colors()
        self.bg = -1
        self._pairs: dict[int, int] = {}
        if self.has_colors:
            curses.start_color()
            try:
                curses.use_default_colors()
            except curses.error:
                self.bg = curses.COLOR_BLACK
            curses.init_pair(1, curses.COLOR_MAGENTA, self.bg)
            curses.init_pair(2, curses.COLOR_WHITE, curses.COLOR_MAGENTA)
            curses.init_pair(3, curses.COLOR_GREEN, self.bg)
            self.ACCENT = curses.color_pair(1) | curses.A_BOLD
            self.TAB = curses.color_pair(2) | curses.A_BOLD
            self.NOTICE = curses.color_pair(3) | curses.A_BOLD
        else:
            self.ACCENT = curses.A_BOLD
            self.TAB = curses.A_REVERSE
            self.NOTICE = curses.A_STANDOUT

    def style_attr(self, style: Style) -> int:
        """curses attributes for a rich Style."""
        attr = curses.A_NORMAL
        if style.bold:
            attr |= curses.A_BOLD
        if style.dim:
            attr |= curses.A_DIM
        if style.italic:
            attr |= getattr(curses, 'A_ITALIC', 0)
        if style.underline:
            attr |= curses.A_UNDERLINE
        if style.reverse:
            attr |= curses.A_REVERSE
        if self.has_colors and style.color is not None:
            attr |= self.color_attr(style.color)
        return attr

    def color_attr(self, color: Color) -> int:
        number = color.downgrade(ColorSystem.STANDARD).number
        if number is None:
            return 0
        attr = 0
        if number >= 8:
            number -= 8
            attr = curses.A_BOLD
        if number >= curses.COLORS:
            return attr
        if number not in self._pairs:
            pair = FIRST_STYLE_PAIR + len(self._pairs)
            if pair >= curses.COLOR_PAIRS:
                return attr
            curses.init_pair(pair, number, self.bg)
            self._pairs[number] = pair
        return attr | curses.color_pair(self._pairs[number])

    def put_segments(self, y: int, x: int, segments: list[tuple[str, Style]], width: int) -> None:
        for text, style in segments:
            if width <= 0:
                break
            chunk = text[:width]
            self.put(y, x, chunk, self.style_attr(style))
            x += len(chunk)
            width -= len(chunk)

    def put(self, y: int, x: int, text: str, attr: int = curses.A_NORMAL) -> None:
        h, w = self.stdscr.getmaxyx()
        if y < 0 or y >= h or x >= w - 1:
            return
        self.stdscr.addnstr(y, x, text, w - x - 1, attr)

    def draw(self, app: App) -> None:
        s = app.session
        self.stdscr.erase()
        h, w = self.stdscr.getmaxyx()
        if w < MIN_WIDTH or h < MIN_HEIGHT:
            self.put(0, 0, f"Terminal too small ({w}x{h})", curses.A_BOLD)
            self.stdscr.refresh()
            return

        left = min(list_width(w), w // 2)
        self.draw_list(s, left, h)
        self.draw_doc(s, left + 1, w - left - 1, h)

        if s.notice.active:
            self.put(h - 1, 1, s.notice.text, self.NOTICE)
        self.stdscr.refresh()

    def draw_list(self, s, width: int, h: int) -> None:
        title = s.config.name or s.workspace.name
        marker = "  [web]" if s.web_running else ""
        self.put(0, 1, f"{title}{marker}"[:width - 2], self.ACCENT)

        x = 1
        for idx, label in enumerate(s.tabs):
            text = f" {label} "
            if x + len(text) >= width:
                break
            self.put(1, x, text, self.TAB if idx == s.active_tab else curses.A_DIM)
            x += len(text) + 1

        if s.mode is Mode.FILTERING:
            self.put(2, 1, f"Search: {s.filter_text}_"[:width - 2], curses.A_BOLD)
        elif s.filter_text:
            self.put(2, 1, f"Filter: {s.filter_text}  (esc clears)"[:width - 2], curses.A_DIM)
        else:
            self.put(2, 1, "/ to search", curses.A_DIM)

        per_page = s.items_per_page
        start = s.page * per_page
        rows = max(h - 8, 1)
        y = 4
        for offset, item in enumerate(s.view[start:start + min(per_page, rows)]):
            idx = start + offset
            selected = idx == s.cursor
            prefix = "> " if selected else "  "
            name = f"{prefix}{item.name}"
            self.put(y, 1, name[:width - 2], self.ACCENT if selected else curses.A_NORMAL)
            if item.description and len(name) + 3 < width - 2:
                desc_x = 1 + len(name) + 2
                self.put(y, desc_x, item.description[:width - desc_x - 1], curses.A_DIM)
            y += 1

        if not s.view:
            self.put(4, 3, "No matches", curses.A_DIM)

        dots = ''.join('●' if p == s.page else '•' for p in range(s.total_pages))
        self.put(h - 4, 1, dots[:width - 2], self.ACCENT)
        self.put(h - 3, 1, HELP_LINE[:width - 2], curses.A_DIM)

    def draw_doc(self, s, x: int, width: int, h: int) -> None:
        top, bottom = 0, h - 2
        self.stdscr.attron(self.ACCENT if s.mode is Mode.BROWSING else curses.A_DIM)
        self.stdscr.hline(top, x, curses.ACS_HLINE, width - 1)
        self.stdscr.hline(bottom, x, curses.ACS_HLINE, width - 1)
        self.stdscr.vline(top, x, curses.ACS_VLINE, bottom - top)
        self.stdscr.attroff(self.ACCENT if s.mode is Mode.BROWSING else curses.A_DIM)
        self.put(top, x + 2, f" {s.doc_name} ", curses.A_BOLD)

        lines = s.rendered_lines
        visible = bottom - top - 1
        for row, line in enumerate(lines[s.scroll:s.scroll + visible]):
            self.put_segments(top + 1 + row, x + 2, line_segments(line), width - 4)

        if len(lines) > visible:
            pos = f" {s.scroll + 1}-{min(s.scroll + visible, len(lines))}/{len(lines)} "
            self.put(bottom, x + width - len(pos) - 2, pos, curses.A_DIM)


def pick_workspace(stdscr, workspaces: list[Workspace], current: str = '') -> Workspace | None:
    """Modal list of workspaces. Enter selects, Esc cancels."""
    if not workspaces:
        return None
    cursor = next((i for i, ws in enumerate(workspaces) if ws.name == current), 0)
    stdscr.timeout(-1)
    try:
        while True:
            stdscr.erase()
            h, w = stdscr.getmaxyx()
            stdscr.addnstr(1, 2, "Select a workspace", w - 3, curses.A_BOLD)
            for idx, ws in enumerate(workspaces[:max(h - 5, 1)]):
                attr = curses.A_REVERSE if idx == cursor else curses.A_NORMAL
                stdscr.addnstr(3 + idx, 2, f"{ws.name}  {ws.path}", w - 3, attr)
            stdscr.refresh()

            key = translate_key(stdscr.getch())
            if key in ('up', 'k', 'shift+tab'):
                cursor = (cursor - 1) % len(workspaces)
            elif key in ('down', 'j', 'tab'):
                cursor = (cursor + 1) % len(workspaces)
            elif key == 'enter':
                return workspaces[cursor]
            elif key in ('esc', 'q', 'ctrl+c'):
                return None
    finally:
        stdscr.timeout(TICK_MS)


def select_workspace(workspaces: list[Workspace]) -> Workspace | None:
    """Choose the startup workspace; a single entry is used directly."""
    if not workspaces:
        return None
    if len(workspaces) == 1:
        print(f"Using workspace: {workspaces[0].name}")
        return workspaces[0]
    os.environ.setdefault('ESCDELAY', '25')
    return curses.wrapper(pick_workspace, workspaces)


def _loop(stdscr, app: App) -> None:
    try:
        curses.curs_set(0)
    except curses.error:
        pass
    curses.raw()
    stdscr.keypad(True)
    stdscr.timeout(TICK_MS)
    if WHEEL_UP or WHEEL_DOWN:
        curses.mousemask(WHEEL_UP | WHEEL_DOWN)

    screen = Screen(stdscr)
    h, w = stdscr.getmaxyx()
    app.session.resize(w, h)

    while True:
        screen.draw(app)
        ch = stdscr.getch()
        if ch == curses.KEY_RESIZE:
            h, w = stdscr.getmaxyx()
            app.session.resize(w, h)
        elif ch == curses.KEY_MOUSE:
            try:
                _, _, _, _, bstate = curses.getmouse()
            except curses.error:
                bstate = 0
            if bstate & WHEEL_UP:
                app.session.scroll_by(-3)
            elif bstate & WHEEL_DOWN:
                app.session.scroll_by(3)
        elif ch != -1:
            key = translate_key(ch)
            if key is not None:
                action = app.handle_key(key)
                if action is Action.QUIT:
                    return
                if action is Action.SWITCH_WORKSPACE and app.reload_workspaces():
                    chosen = pick_workspace(stdscr, app.workspaces, app.session.workspace.name)
                    if chosen is not None:
                        app.switch_workspace(chosen)
        app.tick()


def run(app: App) -> None:
    """Run the interactive session until the user quits."""
    os.environ.setdefault('ESCDELAY', '25')
    curses.wrapper(_loop, app)
