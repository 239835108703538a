"""
Markdown renderers for the two surfaces.

The terminal renderer uses rich to lay markdown out at a fixed width as
ANSI-styled text that the curses view maps back onto attributes; the
web renderer uses Python-Markdown with table and fenced code support.
Both raise RenderFailed instead of leaking library errors so callers can
fall back to raw text.
"""

import html
import io
import json
import logging
from pathlib import Path

import markdown
from rich.ansi import AnsiDecoder
from rich.console import Console
from rich.markdown import Markdown
from rich.style import Style
from rich.text import Text

logger = logging.getLogger(__name__)

DEFAULT_CODE_THEME = 'dracula'
WEB_EXTENSIONS = ['tables', 'fenced_code']
TERMINAL_COLORS = '256'

_decoder = AnsiDecoder()
# Only used to turn Text into Segments, never printed to
_segment_console = Console(file=io.StringIO(), color_system=None)


class RenderFailed(Exception):
    """A renderer raised or produced nothing."""


def load_terminal_style(style_path: str) -> str:
    """Pygments theme for code blocks from a JSON style file.

    Falls back to the default theme when the file is missing or invalid.
    """
    if not style_path:
        return DEFAULT_CODE_THEME
    try:
        data = json.loads(Path(style_path).read_text(encoding='utf-8'))
    except (OSError, ValueError) as e:
        logger.info("Using default terminal style (%s)", e)
        return DEFAULT_CODE_THEME
    theme = data.get('code_theme') if isinstance(data, dict) else None
    return theme if isinstance(theme, str) and theme else DEFAULT_CODE_THEME


def load_web_style(style_path: str) -> str:
    """Extra CSS for the web page, or '' when not configured or unreadable."""
    if not style_path:
        return ''
    try:
        return Path(style_path).read_text(encoding='utf-8')
    except (OSError, UnicodeDecodeError) as e:
        logger.info("Ignoring web style %s: %s", style_path, e)
        return ''


def render_terminal(content: str, width: int, code_theme: str = DEFAULT_CODE_THEME) -> str:
    """Lay markdown out at the given width as ANSI-styled lines.

    code_theme picks the Pygments style of fenced code blocks. The escape
    sequences are turned back into curses attributes by line_segments().
    """
    buf = io.StringIO()
    console = Console(
        file=buf,
        width=max(width, 1),
        color_system=TERMINAL_COLORS,
        force_terminal=True,
        legacy_windows=False,
        highlight=False,
    )
    try:
        console.print(Markdown(content, code_theme=code_theme))
    except Exception as e:
        raise RenderFailed(str(e)) from e
    rendered = buf.getvalue()
    if not plain_text(rendered).strip():
        raise RenderFailed("terminal renderer returned nothing")
    return rendered


def plain_text(rendered: str) -> str:
    """rendered with every escape sequence stripped."""
    return Text.from_ansi(rendered).plain


def line_segments(line: str) -> list[tuple[str, Style]]:
    """Split one rendered line into (text, style) runs."""
    text = _decoder.decode_line(line)
    return [
        (seg.text, seg.style or Style.null())
        for seg in text.render(_segment_console)
        if seg.text and not seg.control
    ]


def render_html(content: str) -> str:
    """Convert markdown to an HTML fragment."""
    try:
        fragment = markdown.markdown(content, extensions=WEB_EXTENSIONS)
    except Exception as e:
        raise RenderFailed(str(e)) from e
    if not fragment.strip() and content.strip():
        raise RenderFailed("web renderer returned nothing")
    return fragment


def html_or_raw(content: str) -> str:
    """render_html, falling back to the escaped raw text."""
    try:
        return render_html(content)
    except RenderFailed as e:
        logger.warning("HTML render failed, embedding raw text: %s", e)
        return f'<pre>{html.escape(content)}</pre>'
