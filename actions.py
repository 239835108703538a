"""Best-effort desktop integrations: clipboard, file manager, browser."""

import logging
import shutil
import subprocess
import sys
import threading
import webbrowser
from pathlib import Path

logger = logging.getLogger(__name__)

BROWSER_DELAY = 0.3

CLIPBOARD_COMMANDS = [
    ['pbcopy'],
    ['wl-copy'],
    ['xclip', '-selection', 'clipboard'],
    ['xsel', '--clipboard', '--input'],
]


def _clipboard_command() -> list[str] | None:
    for cmd in CLIPBOARD_COMMANDS:
        if shutil.which(cmd[0]):
            return cmd
    return None


def copy_to_clipboard(text: str) -> bool:
    cmd = _clipboard_command()
    if cmd is None:
        logger.warning("No clipboard command found")
        return False
    try:
        subprocess.run(cmd, input=text.encode('utf-8'), check=True, timeout=5,
                       stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL)
    except (OSError, subprocess.SubprocessError) as e:
        logger.warning("Clipboard copy failed: %s", e)
        return False
    return True


def _opener() -> list[str]:
    if sys.platform == 'darwin':
        return ['open']
    if sys.platform.startswith('win'):
        return ['explorer']
    return ['xdg-open']


def open_folder(path: Path) -> bool:
    """Reveal the folder containing path; does not wait for the file manager."""
    folder = path if path.is_dir() else path.parent
    try:
        subprocess.Popen(_opener() + [str(folder)],
                         stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL,
                         start_new_session=True)
    except OSError as e:
        logger.warning("Could not open %s: %s", folder, e)
        return False
    return True


def _open_url(url: str) -> None:
    try:
        webbrowser.open(url)
    except webbrowser.Error as e:
        logger.warning("Could not open browser: %s", e)


def open_browser(url: str) -> None:
    """Open url in the browser from a timer thread; returns immediately."""
    timer = threading.Timer(BROWSER_DELAY, _open_url, args=(url,))
    timer.daemon = True
    timer.start()
