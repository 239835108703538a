"""
Hand-off between the terminal loop and the web preview.

The terminal loop never touches the HTTP listener directly: it queues
commands here and returns at once. A single worker thread starts and stops
the LiveWebEndpoint, converts markdown to HTML and publishes pages.
Outcomes come back as SyncEvents which the loop polls and turns into
notices.

Document pushes are coalesced: only the most recent pending document is
published, older ones are dropped.
"""

import logging
import queue
import threading
from dataclasses import dataclass

from resolver import DocumentResolver
from server import LiveWebEndpoint, make_snapshot

logger = logging.getLogger(__name__)

STOP_TIMEOUT = 3.0


@dataclass(frozen=True)
class DocumentUpdate:
    name: str
    category: str
    content: str
    title: str | None = None


@dataclass(frozen=True)
class SyncEvent:
    kind: str
    ok: bool
    message: str = ''


class SyncChannel:
    def __init__(self, endpoint: LiveWebEndpoint):
        self.endpoint = endpoint
        self._commands: queue.Queue = queue.Queue()
        self._events: queue.Queue = queue.Queue()
        self._pending_lock = threading.Lock()
        self._pending: DocumentUpdate | None = None
        # Only touched by the worker thread
        self._resolver: DocumentResolver | None = None
        self._extra_css = ''
        self._worker = threading.Thread(target=self._run, name='docshelf-sync', daemon=True)
        self._worker.start()

    # ------------------------------------------------------------------
    # Called from the terminal loop; none of these block on I/O
    # ------------------------------------------------------------------

    def start_server(self, resolver: DocumentResolver, update: DocumentUpdate, extra_css: str = '') -> None:
        self._commands.put(('start', (resolver, update, extra_css), None))

    def stop_server(self, wait: bool = False, timeout: float = STOP_TIMEOUT) -> bool:
        """Queue a stop. With wait=True block until it ran (bounded by timeout)."""
        done = threading.Event()
        self._commands.put(('stop', None, done))
        if wait:
            return done.wait(timeout)
        return True

    def push(self, update: DocumentUpdate) -> None:
        with self._pending_lock:
            self._pending = update
        self._commands.put(('publish', None, None))

    def poll_events(self) -> list[SyncEvent]:
        events = []
        while True:
            try:
                events.append(self._events.get_nowait())
            except queue.Empty:
                return events

    def wait_idle(self, timeout: float = STOP_TIMEOUT) -> bool:
        """Block until every queued command has run."""
        done = threading.Event()
        self._commands.put(('noop', None, done))
        return done.wait(timeout)

    def close(self) -> None:
        self.stop_server(wait=True)
        self._commands.put(('close', None, None))
        self._worker.join(timeout=STOP_TIMEOUT)

    # ------------------------------------------------------------------
    # Worker thread
    # ------------------------------------------------------------------

    def _run(self) -> None:
        while True:
            kind, payload, done = self._commands.get()
            try:
                if kind == 'close':
                    return
                if kind == 'start':
                    self._do_start(*payload)
                elif kind == 'stop':
                    self._do_stop()
                elif kind == 'publish':
                    self._do_publish()
            except Exception as e:
                logger.exception("Web preview command '%s' failed", kind)
                self._events.put(SyncEvent(kind, False, f"Web preview error: {e}"))
            finally:
                if done is not None:
                    done.set()

    def _do_start(self, resolver: DocumentResolver, update: DocumentUpdate, extra_css: str) -> None:
        self._resolver = resolver
        self._extra_css = extra_css
        snapshot = make_snapshot(
            resolver.config, update.name, update.category, update.content,
            title=update.title, extra_css=extra_css,
        )
        try:
            started = self.endpoint.start(resolver, snapshot, extra_css)
        except OSError as e:
            logger.warning("Web preview could not bind port %s: %s", self.endpoint.port, e)
            self._events.put(SyncEvent('start', False, f"Web preview failed: {e.strerror or e}"))
            return
        if not started:
            # Already running: just refresh the page
            self.endpoint.publish(snapshot)
        self._events.put(SyncEvent('start', True, f"Web preview on {self.endpoint.url}"))

    def _do_stop(self) -> None:
        if not self.endpoint.is_running:
            return
        self.endpoint.stop()
        self._events.put(SyncEvent('stop', True, "Server stopped"))

    def _do_publish(self) -> None:
        with self._pending_lock:
            update, self._pending = self._pending, None
        if update is None or self._resolver is None or not self.endpoint.is_running:
            return
        snapshot = make_snapshot(
            self._resolver.config, update.name, update.category, update.content,
            title=update.title, extra_css=self._extra_css,
        )
        self.endpoint.publish(snapshot)
