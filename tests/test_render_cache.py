"""Tests for the terminal render cache."""
import pytest

from render_cache import RenderCache
from renderers import RenderFailed


def test_miss_renders_and_hit_reuses(renderer):
    cache = RenderCache()
    first = cache.get("Install", "# Hi", 60, renderer)
    second = cache.get("Install", "# Hi", 60, renderer)
    assert first == second == "[w=60]\n# Hi"
    assert len(renderer.calls) == 1


def test_hit_ignores_new_content_and_width(renderer):
    cache = RenderCache()
    cache.get("Install", "# Hi", 60, renderer)
    assert cache.get("Install", "# Changed", 80, renderer) == "[w=60]\n# Hi"


def test_clear_after_width_change(renderer):
    cache = RenderCache()
    assert cache.get("Install", "# Hi", 60, renderer).startswith("[w=60]")

    cache.clear()
    assert len(cache) == 0
    assert "Install" not in cache

    assert cache.get("Install", "# Hi", 100, renderer).startswith("[w=100]")
    assert len(cache) == 1


def test_render_failure_propagates_and_stores_nothing():
    def broken(content, width):
        raise RenderFailed("boom")

    cache = RenderCache()
    with pytest.raises(RenderFailed):
        cache.get("Install", "# Hi", 60, broken)
    assert len(cache) == 0


def test_put_never_replaces_an_entry(renderer):
    cache = RenderCache()
    cache.get("Install", "# Hi", 60, renderer)
    cache.put("Install", "raw")
    assert cache.get("Install", "# Hi", 60, renderer) == "[w=60]\n# Hi"
