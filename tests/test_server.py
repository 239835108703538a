"""Tests for the live web endpoint."""
import threading
import urllib.error
import urllib.request

import pytest

from resolver import OVERVIEW_CATEGORY, OVERVIEW_NAME, DocumentResolver
from server import LiveWebEndpoint, build_page, build_sidebar, make_snapshot
from workspaces import load_docs_config


def fetch(url):
    with urllib.request.urlopen(url, timeout=5) as response:
        return response.read().decode("utf-8"), response.headers


@pytest.fixture
def config(workspace_root):
    return load_docs_config(workspace_root)


@pytest.fixture
def resolver(workspace_root, config):
    return DocumentResolver(workspace_root, config)


@pytest.fixture
def endpoint(resolver, config):
    ep = LiveWebEndpoint(host="127.0.0.1", port=0, open_browser=False)
    ep.start(resolver, make_snapshot(config, "Getting Started", "Core", "# Getting Started\n\nRun it.\n"))
    yield ep
    ep.stop()


class TestPage:

    def test_sidebar_lists_every_reference_with_quoted_links(self, config):
        sidebar = build_sidebar(config, "Core", "Getting Started")
        assert 'href="/?cat=Core&amp;doc=Getting%20Started" class="active"' in sidebar
        assert 'href="/?cat=Components&amp;doc=Cards"' in sidebar
        assert 'class="category active"' in sidebar
        assert sidebar.count("<a ") == 1 + config.reference_count

    def test_page_escapes_title_and_embeds_extra_css(self, config):
        page = build_page("<Tag>", "<p>body</p>", config, "Core", "Install", extra_css="h1 { color: red; }")
        assert "<title>&lt;Tag&gt; - Test Docs</title>" in page
        assert "<p>body</p>" in page
        assert "h1 { color: red; }" in page

    def test_snapshot_renders_markdown(self, config):
        snap = make_snapshot(config, "Install", "Core", "# Hi\n")
        assert snap.fragment == "<h1>Hi</h1>"
        assert snap.title == "Install"
        assert "<h1>Hi</h1>" in snap.page


class TestEndpoint:

    def test_plain_request_serves_published_snapshot(self, endpoint):
        body, headers = fetch(endpoint.url + "/")
        assert "<title>Getting Started - Test Docs</title>" in body
        assert headers["Content-Type"] == "text/html; charset=utf-8"
        assert "no-store" in headers["Cache-Control"]
        assert headers["Pragma"] == "no-cache"
        assert headers["Expires"] == "0"

    def test_navigation_request_resolves_from_disk(self, endpoint):
        published = endpoint.snapshot()
        body, _ = fetch(endpoint.url + "/?doc=Install&cat=Core")
        assert "<h1>Hi</h1>" in body
        assert "<title>Install - Test Docs</title>" in body

        # The published page is untouched
        assert endpoint.snapshot() is published
        body, _ = fetch(endpoint.url + "/")
        assert "<title>Getting Started - Test Docs</title>" in body

    def test_navigation_with_hyphenated_name(self, endpoint):
        body, _ = fetch(endpoint.url + "/?doc=Getting-Started&cat=Core")
        assert "<h1>Getting Started</h1>" in body

    def test_overview_navigation(self, endpoint):
        body, _ = fetch(f"{endpoint.url}/?doc={OVERVIEW_NAME}&cat={OVERVIEW_CATEGORY}")
        assert "<h1>Test Docs</h1>" in body

    def test_missing_document_falls_back_to_snapshot(self, endpoint):
        body, _ = fetch(endpoint.url + "/?doc=Cards&cat=Components")
        assert "<title>Getting Started - Test Docs</title>" in body

    def test_names_outside_workspace_are_not_served(self, endpoint, tmp_path):
        (tmp_path / "secret.md").write_text("# Secret notes\n", encoding="utf-8")
        body, _ = fetch(endpoint.url + "/?doc=..%2F..%2Fsecret&cat=Core")
        assert "Secret notes" not in body
        assert "<title>Getting Started - Test Docs</title>" in body

    def test_doc_without_category_serves_snapshot(self, endpoint):
        body, _ = fetch(endpoint.url + "/?doc=Install")
        assert "<title>Getting Started - Test Docs</title>" in body

    def test_publish_replaces_snapshot(self, endpoint, config):
        endpoint.publish(make_snapshot(config, "Buttons", "Components", "# Buttons\n"))
        body, _ = fetch(endpoint.url + "/")
        assert "<title>Buttons - Test Docs</title>" in body

    def test_unknown_path_is_404(self, endpoint):
        with pytest.raises(urllib.error.HTTPError) as excinfo:
            fetch(endpoint.url + "/favicon.ico")
        assert excinfo.value.code == 404

    def test_start_twice_is_a_no_op(self, endpoint, resolver, config):
        url = endpoint.url
        assert endpoint.start(resolver, make_snapshot(config, "X", "Core", "# X")) is False
        assert endpoint.url == url

    def test_stop_is_idempotent(self, endpoint):
        endpoint.stop()
        assert not endpoint.is_running
        endpoint.stop()
        assert not endpoint.is_running

    def test_second_listener_on_same_port_fails(self, endpoint, resolver, config):
        port = int(endpoint.url.rsplit(":", 1)[1])
        other = LiveWebEndpoint(host="127.0.0.1", port=port, open_browser=False)
        with pytest.raises(OSError):
            other.start(resolver, make_snapshot(config, "X", "Core", "# X"))
        assert not other.is_running

    def test_concurrent_publish_never_tears_pages(self, endpoint, config):
        snapshots = [make_snapshot(config, f"Doc {i}", "Core", f"# Doc {i}\n") for i in range(20)]
        pages = {snap.page for snap in snapshots} | {endpoint.snapshot().page}
        stop = threading.Event()

        def publisher():
            i = 0
            while not stop.is_set():
                endpoint.publish(snapshots[i % len(snapshots)])
                i += 1

        thread = threading.Thread(target=publisher)
        thread.start()
        try:
            for _ in range(20):
                body, _ = fetch(endpoint.url + "/")
                assert body.rstrip().endswith("</html>")
                assert body in pages
        finally:
            stop.set()
            thread.join()
