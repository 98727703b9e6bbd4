from toonframe.infrastructure.cache import ResponseCache, last_good_png, remember_last_good


def test_response_cache_eviction_limit():
    cache = ResponseCache()

    # Fill the cache beyond the limit to trigger eviction logic.
    for idx in range(20):
        cache.put(f"key-{idx}", b"data")

    assert len(cache._entries) == 16

    # Ensure the oldest entries are evicted first
    assert "key-0" not in cache._entries
    assert "key-3" not in cache._entries
    assert "key-4" in cache._entries


def test_response_cache_overwrite_does_not_evict():
    cache = ResponseCache(max_entries=2)
    cache.put("a", b"1")
    cache.put("b", b"2")

    cache.put("a", b"3")

    assert cache.get("a", ttl=60) == b"3"
    assert cache.get("b", ttl=60) == b"2"


def test_response_cache_expires_entries():
    cache = ResponseCache()
    cache.put("frame", b"png")

    assert cache.get("frame", ttl=60) == b"png"
    assert cache.get("frame", ttl=-1) is None
    assert "frame" not in cache._entries


def test_response_cache_clear():
    cache = ResponseCache()
    cache.put("frame", b"png")

    cache.clear()

    assert cache.get("frame", ttl=60) is None


def test_last_good_png_is_kept_per_effect():
    remember_last_good("cel", b"\x89PNG-cel")
    remember_last_good("genga", b"\x89PNG-genga")

    assert last_good_png("cel") == b"\x89PNG-cel"
    assert last_good_png("genga") == b"\x89PNG-genga"
    assert last_good_png("never-rendered") is None
