#!/usr/bin/env python3
"""
docshelf - Local Web Preview

Serves the documentation of one workspace as browsable HTML pages.

    GET /                    last page published by the terminal session
    GET /?cat=Core&doc=Foo   "Foo" from category "Core", read fresh from disk

The terminal session starts this in-process and pushes a new page every
time the selected document changes. It can also run on its own:

Usage:
    python server.py --workspace-dir PATH [--port PORT]

Then open http://localhost:8080 in your browser.
"""

import argparse
import html
import logging
import sys
import threading
import time
from dataclasses import dataclass
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from urllib.parse import parse_qs, quote, urlparse

from actions import open_browser
from renderers import html_or_raw
from resolver import OVERVIEW_CATEGORY, OVERVIEW_NAME, DocumentResolver, Resolved
from workspaces import VERSION, ConfigError, DocsConfig, load_docs_config

logger = logging.getLogger(__name__)

DEFAULT_HOST = 'localhost'
DEFAULT_PORT = 8080


@dataclass(frozen=True)
class PageSnapshot:
    title: str
    category: str
    doc_name: str
    fragment: str
    page: str


PAGE_TEMPLATE = '''<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{{title}} - {{project}}</title>
    <link rel="stylesheet" href="https://cdnjs.cloudflare.com/ajax/libs/highlight.js/11.9.0/styles/github-dark.min.css" id="dark-hl">
    <link rel="stylesheet" href="https://cdnjs.cloudflare.com/ajax/libs/highlight.js/11.9.0/styles/github.min.css" id="light-hl" disabled>
    <script src="https://cdnjs.cloudflare.com/ajax/libs/highlight.js/11.9.0/highlight.min.js"></script>
    <script>hljs.highlightAll();</script>
    <style>
        :root {
            --primary: #7d56f4;
            --bg: #0d1117;
            --panel: #161b22;
            --text: #c9d1d9;
            --text-light: #8b949e;
            --heading: #f0f6fc;
            --border: #30363d;
            --code-bg: #30363d;
        }

        body.light {
            --bg: #ffffff;
            --panel: #f6f8fa;
            --text: #24292f;
            --text-light: #57606a;
            --heading: #24292f;
            --border: #d0d7de;
            --code-bg: #f6f8fa;
        }

        * {
            box-sizing: border-box;
            margin: 0;
            padding: 0;
        }

        body {
            font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, Ubuntu, sans-serif;
            background: var(--bg);
            color: var(--text);
            display: flex;
            height: 100vh;
            overflow: hidden;
        }

        .theme-toggle {
            position: fixed;
            top: 10px;
            right: 20px;
            background: var(--primary);
            color: white;
            border: none;
            padding: 8px 16px;
            border-radius: 20px;
            cursor: pointer;
            font-size: 12px;
        }

        .sidebar {
            width: 280px;
            background: var(--panel);
            border-right: 1px solid var(--border);
            display: flex;
            flex-direction: column;
            overflow-y: auto;
        }

        .sidebar-header {
            padding: 16px;
            font-size: 18px;
            font-weight: bold;
            color: var(--primary);
            border-bottom: 1px solid var(--border);
        }

        .sidebar-header .version {
            font-size: 12px;
            color: var(--text-light);
        }

        .sidebar-footer {
            padding: 12px;
            font-size: 11px;
            color: var(--text-light);
            border-top: 1px solid var(--border);
            text-align: center;
            margin-top: auto;
        }

        .category { border-bottom: 1px solid var(--border); }

        .cat-title {
            padding: 10px 16px;
            cursor: pointer;
            font-weight: 600;
            color: var(--heading);
        }

        .category.active .cat-title { color: var(--primary); }
        .cat-items { display: none; }
        .category.active .cat-items { display: block; }

        .sidebar a {
            display: block;
            padding: 8px 16px 8px 32px;
            color: var(--text-light);
            text-decoration: none;
            font-size: 13px;
        }

        .sidebar a.overview { padding-left: 16px; }
        .sidebar a:hover { color: var(--text); }
        .sidebar a.active { color: var(--primary); border-right: 2px solid var(--primary); }

        .content {
            flex: 1;
            overflow-y: auto;
            padding: 40px 60px;
            line-height: 1.6;
        }

        .content h1, .content h2, .content h3, .content h4 { color: var(--heading); margin: 24px 0 16px; }
        .content h1 { font-size: 2em; border-bottom: 1px solid var(--border); padding-bottom: 10px; }
        .content h2 { font-size: 1.5em; border-bottom: 1px solid var(--border); padding-bottom: 8px; }
        .content p { margin-bottom: 1rem; }
        .content a { color: #58a6ff; }
        .content pre { background: var(--panel); padding: 16px; border-radius: 8px; overflow-x: auto; }
        .content code { font-family: 'Fira Code', Menlo, monospace; font-size: 14px; background: var(--code-bg); padding: 2px 4px; border-radius: 4px; }
        .content pre code { padding: 0; background: none; }
        .content blockquote { border-left: 4px solid var(--primary); margin: 16px 0; padding: 0 16px; color: var(--text-light); }
        .content ul, .content ol { padding-left: 24px; }
        .content li { margin: 8px 0; }
        .content table { border-collapse: collapse; width: 100%; margin: 16px 0; }
        .content th, .content td { border: 1px solid var(--border); padding: 10px 14px; text-align: left; }
        .content th { background: var(--panel); }
        .content hr { border: none; border-top: 1px solid var(--border); margin: 32px 0; }
{{extra_css}}
    </style>
</head>
<body>
{{sidebar}}
<button class="theme-toggle" onclick="toggleTheme()">Light</button>
<main class="content">
{{content}}
</main>
<script>
    function applyTheme(light) {
        document.body.classList.toggle('light', light);
        document.querySelector('.theme-toggle').textContent = light ? 'Dark' : 'Light';
        document.getElementById('dark-hl').disabled = light;
        document.getElementById('light-hl').disabled = !light;
    }

    function toggleTheme() {
        const light = !document.body.classList.contains('light');
        applyTheme(light);
        localStorage.setItem('theme', light ? 'light' : 'dark');
    }

    function toggleCat(el) {
        el.parentElement.classList.toggle('active');
    }

    applyTheme(localStorage.getItem('theme') === 'light');

    const links = document.querySelectorAll('.sidebar a');
    let currentIdx = 0;
    links.forEach((link, idx) => { if (link.classList.contains('active')) currentIdx = idx; });

    document.addEventListener('keydown', (e) => {
        if (e.key === 'j' || e.key === 'ArrowDown') {
            currentIdx = Math.min(currentIdx + 1, links.length - 1);
            links[currentIdx].click();
        } else if (e.key === 'k' || e.key === 'ArrowUp') {
            currentIdx = Math.max(currentIdx - 1, 0);
            links[currentIdx].click();
        } else if (e.key === 'Enter' || e.key === 'r') {
            location.reload();
        } else if (e.key === 'q') {
            window.close();
        }
    });
</script>
</body>
</html>
'''


def doc_link(category: str, doc_name: str) -> str:
    return f"/?cat={quote(category, safe='')}&doc={quote(doc_name, safe='')}"


def build_sidebar(config: DocsConfig, active_cat: str, active_doc: str) -> str:
    """Navigation listing every category and reference of the workspace."""
    project = html.escape(config.name or 'Docs')
    parts = [
        '<nav class="sidebar">',
        f'<div class="sidebar-header">{project} <span class="version">{VERSION}</span></div>',
    ]

    overview_class = 'overview active' if active_doc == OVERVIEW_NAME else 'overview'
    parts.append(
        f'<a class="{overview_class}" href="{html.escape(doc_link(OVERVIEW_CATEGORY, OVERVIEW_NAME))}">Overview</a>'
    )

    for cat in config.categories:
        cat_class = 'category active' if cat.name == active_cat else 'category'
        parts.append(
            f'<div class="{cat_class}"><div class="cat-title" onclick="toggleCat(this)">'
            f'&#9654; {html.escape(cat.name)}</div><div class="cat-items">'
        )
        for ref in cat.references:
            active = ' class="active"' if cat.name == active_cat and ref.name == active_doc else ''
            parts.append(
                f'<a href="{html.escape(doc_link(cat.name, ref.name))}"{active}>{html.escape(ref.name)}</a>'
            )
        parts.append('</div></div>')

    parts.append('<div class="sidebar-footer">[j/k] navigate &bull; [enter] reload &bull; [q] close</div>')
    parts.append('</nav>')
    return ''.join(parts)


def build_page(
    title: str,
    fragment: str,
    config: DocsConfig,
    active_cat: str,
    active_doc: str,
    extra_css: str = '',
) -> str:
    """Full HTML page: sidebar navigation plus the rendered document."""
    return (
        PAGE_TEMPLATE
        .replace('{{title}}', html.escape(title))
        .replace('{{project}}', html.escape(config.name or 'docshelf'))
        .replace('{{extra_css}}', extra_css)
        .replace('{{sidebar}}', build_sidebar(config, active_cat, active_doc))
        .replace('{{content}}', fragment)
    )


def make_snapshot(
    config: DocsConfig,
    doc_name: str,
    category: str,
    content: str,
    title: str | None = None,
    extra_css: str = '',
) -> PageSnapshot:
    """Render markdown into a publishable page."""
    fragment = html_or_raw(content)
    title = title or doc_name
    return PageSnapshot(
        title=title,
        category=category,
        doc_name=doc_name,
        fragment=fragment,
        page=build_page(title, fragment, config, category, doc_name, extra_css),
    )


class RequestHandler(BaseHTTPRequestHandler):
    protocol_version = 'HTTP/1.0'

    # Set on the per-endpoint subclass created by LiveWebEndpoint.start()
    endpoint: 'LiveWebEndpoint'

    def send_html(self, html_content: str, status: int = 200) -> None:
        """Send an uncached HTML response."""
        body = html_content.encode('utf-8')
        self.send_response(status)
        self.send_header('Content-Type', 'text/html; charset=utf-8')
        self.send_header('Content-Length', str(len(body)))
        self.send_header('Cache-Control', 'no-cache, no-store, must-revalidate')
        self.send_header('Pragma', 'no-cache')
        self.send_header('Expires', '0')
        self.send_header('Connection', 'close')
        self.end_headers()
        self.wfile.write(body)
        self.wfile.flush()

    def do_GET(self):
        parsed = urlparse(self.path)
        query = parse_qs(parsed.query)

        try:
            if parsed.path in ('/', '/index.html'):
                doc_name = query.get('doc', [''])[0]
                cat_name = query.get('cat', [''])[0]
                self.send_html(self.endpoint.page_for(doc_name, cat_name))
            else:
                self.send_response(404)
                self.send_header('Connection', 'close')
                self.end_headers()
        except Exception:
            logger.exception("Error handling %s", self.path)
            self.send_response(500)
            self.send_header('Connection', 'close')
            self.end_headers()

    def log_message(self, format, *args):
        logger.info("[%s] %s", self.command, self.path)


class LiveWebEndpoint:
    """Local HTTP listener holding the last published page.

    publish() and request handlers run on different threads; the snapshot
    slot is only read or replaced under self._lock.
    """

    def __init__(self, host: str = DEFAULT_HOST, port: int = DEFAULT_PORT, open_browser: bool = True):
        self.host = host
        self.port = port
        self.open_browser = open_browser
        self._lock = threading.Lock()
        self._lifecycle = threading.Lock()
        self._snapshot: PageSnapshot | None = None
        self._server: ThreadingHTTPServer | None = None
        self._thread: threading.Thread | None = None
        self._resolver: DocumentResolver | None = None
        self._extra_css = ''

    @property
    def is_running(self) -> bool:
        return self._server is not None

    @property
    def url(self) -> str:
        port = self._server.server_address[1] if self._server else self.port
        return f"http://{self.host}:{port}"

    def start(self, resolver: DocumentResolver, snapshot: PageSnapshot, extra_css: str = '') -> bool:
        """Bind and serve in a background thread.

        Returns False when already running. Bind errors (OSError) propagate.
        """
        with self._lifecycle:
            if self._server is not None:
                return False
            self._resolver = resolver
            self._extra_css = extra_css
            self.publish(snapshot)

            handler = type('BoundRequestHandler', (RequestHandler,), {'endpoint': self})
            server = ThreadingHTTPServer((self.host, self.port), handler)
            server.daemon_threads = True
            self._server = server
            self._thread = threading.Thread(
                target=server.serve_forever, name='docshelf-web', daemon=True
            )
            self._thread.start()
            logger.info("Web preview listening on %s", self.url)

        if self.open_browser:
            open_browser(self.url)
        return True

    def stop(self) -> None:
        """Shut the listener down; safe to call when not running."""
        with self._lifecycle:
            server, thread = self._server, self._thread
            self._server = None
            self._thread = None
            if server is None:
                return
            try:
                server.shutdown()
                server.server_close()
            except OSError as e:
                logger.warning("Web preview did not shut down cleanly: %s", e)
            if thread is not None:
                thread.join(timeout=2.0)
            logger.info("Web preview stopped")

    def publish(self, snapshot: PageSnapshot) -> None:
        with self._lock:
            self._snapshot = snapshot

    def snapshot(self) -> PageSnapshot | None:
        with self._lock:
            return self._snapshot

    def page_for(self, doc_name: str, cat_name: str) -> str:
        """Page for a request: a freshly resolved document, else the published one."""
        if doc_name and cat_name and self._resolver is not None:
            resolution = self._resolver.resolve(doc_name, cat_name)
            if isinstance(resolution, Resolved):
                snapshot = make_snapshot(
                    self._resolver.config,
                    resolution.name,
                    cat_name,
                    resolution.content,
                    extra_css=self._extra_css,
                )
                return snapshot.page
            logger.info("Web request for missing '%s' (%s), serving published page", doc_name, cat_name)

        snapshot = self.snapshot()
        if snapshot is None:
            return '<!DOCTYPE html><html><body><p>Nothing published yet.</p></body></html>'
        return snapshot.page


def main():
    parser = argparse.ArgumentParser(description='docshelf web preview')
    parser.add_argument('--workspace-dir', type=Path, required=True,
                        help='Workspace root containing docs.yaml')
    parser.add_argument('--port', type=int, default=DEFAULT_PORT, help='Port to run server on')
    parser.add_argument('--host', default=DEFAULT_HOST, help='Interface to bind')
    parser.add_argument('--open', action='store_true', help='Open the browser once listening')

    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO, format='%(asctime)s %(levelname)s %(name)s: %(message)s')

    try:
        config = load_docs_config(args.workspace_dir)
    except ConfigError as e:
        print(f"Error: {e}")
        sys.exit(1)

    resolver = DocumentResolver(args.workspace_dir, config)
    overview = resolver.resolve(OVERVIEW_NAME, OVERVIEW_CATEGORY)
    snapshot = make_snapshot(config, OVERVIEW_NAME, OVERVIEW_CATEGORY, overview.content, title='preview')

    endpoint = LiveWebEndpoint(host=args.host, port=args.port, open_browser=args.open)
    try:
        endpoint.start(resolver, snapshot)
    except OSError as e:
        print(f"Error: could not listen on port {args.port}: {e}")
        sys.exit(1)

    print(f"\n{'='*50}")
    print(f"  {config.name or 'docshelf'} - web preview")
    print(f"{'='*50}")
    print(f"\n  Open in browser: {endpoint.url}")
    print(f"\n  Press Ctrl+C to stop the server")
    print(f"{'='*50}\n")

    try:
        while endpoint.is_running:
            time.sleep(0.5)
    except KeyboardInterrupt:
        print("\nServer stopped.")
        endpoint.stop()


if __name__ == '__main__':
    main()
