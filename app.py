"""
Application context for one docshelf run.

Owns the terminal Session and the web preview plumbing, and carries out
the side effects Session.handle_key() asks for. The curses front end only
talks to this object.
"""

import logging
from pathlib import Path
from typing import Callable

from actions import copy_to_clipboard, open_browser, open_folder
from renderers import load_web_style
from resolver import OVERVIEW_NAME
from server import LiveWebEndpoint
from session import Action, Session
from sync import DocumentUpdate, SyncChannel, SyncEvent
from workspaces import ConfigError, Workspace, expand_tilde, load_workspace_registry

logger = logging.getLogger(__name__)


class App:
    def __init__(
        self,
        session: Session,
        workspaces: list[Workspace],
        config_dir: Path | None = None,
        endpoint: LiveWebEndpoint | None = None,
        channel: SyncChannel | None = None,
        clipboard: Callable[[str], bool] = copy_to_clipboard,
        folder_opener: Callable = open_folder,
        browser_opener: Callable[[str], None] = open_browser,
    ):
        self.session = session
        self.workspaces = workspaces
        self.config_dir = config_dir
        self.endpoint = endpoint or LiveWebEndpoint()
        self.channel = channel or SyncChannel(self.endpoint)
        self.clipboard = clipboard
        self.folder_opener = folder_opener
        self.browser_opener = browser_opener

    @property
    def notice(self):
        return self.session.notice

    def current_update(self) -> DocumentUpdate:
        s = self.session
        title = 'preview' if s.doc_name == OVERVIEW_NAME else None
        return DocumentUpdate(s.doc_name, s.doc_category, s.doc_content, title)

    def handle_key(self, key: str) -> Action | None:
        """Feed one key through the session and run its side effect.

        SWITCH_WORKSPACE and QUIT are returned for the front end to handle.
        """
        action = self.session.handle_key(key)
        if action is Action.SELECTED:
            if self.session.web_running:
                self.channel.push(self.current_update())
        elif action is Action.COPY:
            self.copy_document()
        elif action is Action.OPEN_FOLDER:
            self.folder_opener(self.session.doc_path)
        elif action is Action.WEB:
            self.start_or_open_web()
        elif action is Action.WEB_STOP:
            self.stop_web()
        return action

    def copy_document(self) -> None:
        if self.clipboard(self.session.doc_content):
            self.notice.show("Copied!")
        else:
            self.notice.show("Clipboard unavailable")

    def start_or_open_web(self) -> None:
        s = self.session
        if s.web_running:
            self.notice.show("Opening...")
            self.browser_opener(self.endpoint.url)
            return
        s.web_running = True
        self.notice.show(f"Web preview on :{self.endpoint.port}")
        extra_css = load_web_style(expand_tilde(s.workspace.styles.web))
        self.channel.start_server(s.resolver, self.current_update(), extra_css)

    def stop_web(self) -> None:
        if not self.session.web_running:
            return
        self.channel.stop_server()
        self.session.web_running = False
        self.notice.show("Server stopped")

    def reload_workspaces(self) -> bool:
        """Re-read workspaces.yaml before offering the picker."""
        try:
            self.workspaces = load_workspace_registry(self.config_dir)
        except ConfigError as e:
            logger.warning("Could not reload workspaces: %s", e)
            self.notice.show("Failed to load workspaces")
            return False
        return True

    def switch_workspace(self, workspace: Workspace) -> bool:
        if self.session.web_running:
            if not self.channel.stop_server(wait=True):
                logger.warning("Web preview still stopping while switching workspace")
            self.session.web_running = False
        return self.session.switch_workspace(workspace)

    def apply_event(self, event: SyncEvent) -> None:
        if event.ok:
            logger.debug("%s: %s", event.kind, event.message)
            return
        if event.kind == 'start':
            self.session.web_running = False
        self.notice.show(event.message)

    def tick(self) -> None:
        """Once per loop iteration: collect web outcomes, age the notice."""
        for event in self.channel.poll_events():
            self.apply_event(event)
        self.notice.tick()

    def close(self) -> None:
        self.channel.close()
