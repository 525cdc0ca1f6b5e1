"""Tests for ``natkey.core.cache`` — in-memory tagged cache and factory."""

from __future__ import annotations

import threading
import time
from unittest.mock import patch

import pytest

from natkey.core.cache import InMemoryTaggedCache, RedisTaggedCache, cache_key, create_cache
from natkey.core.errors import ConfigError
from natkey.core.protocols import TaggedCacheStore
from natkey.core.settings import FinderSettings


class TestCacheKey:
    def test_without_prefix(self):
        assert cache_key("natkey/catalogs", "props") == "natkey/catalogs:props"

    def test_with_prefix(self):
        assert cache_key("natkey/catalogs", "default", "app") == "app:natkey/catalogs:default"


class TestInMemoryTaggedCache:
    @pytest.fixture
    def cache(self):
        return InMemoryTaggedCache()

    def test_satisfies_protocol(self, cache):
        assert isinstance(cache, TaggedCacheStore)
        assert cache.serializes_values is False

    def test_get_missing(self, cache):
        assert cache.get("dir", "default") is None

    def test_set_and_get_same_object(self, cache):
        value = object()
        cache.set("dir", "default", value)
        assert cache.get("dir", "default") is value

    def test_ttl_expiry(self, cache):
        cache.set("dir", "default", "v", ttl_seconds=10)
        with patch("natkey.core.cache.time.time", return_value=time.time() + 11):
            assert cache.get("dir", "default") is None
        assert cache.size() == 0

    def test_invalidate_by_tag(self, cache):
        cache.set("dir", "default", "a", tags=["entity_id_5", "entity_id_new"])
        cache.set("dir", "props", "b", tags=["entity_id_7"])

        assert cache.invalidate(["entity_id_5"]) == 1
        assert cache.get("dir", "default") is None
        assert cache.get("dir", "props") == "b"

    def test_invalidate_shared_tag_drops_all(self, cache):
        cache.set("dir", "default", "a", tags=["entity_id_new"])
        cache.set("dir", "props", "b", tags=["entity_id_new"])
        assert cache.invalidate(["entity_id_new"]) == 2
        assert cache.size() == 0

    def test_invalidate_unknown_tag(self, cache):
        cache.set("dir", "default", "a", tags=["t"])
        assert cache.invalidate(["other"]) == 0
        assert cache.get("dir", "default") == "a"

    def test_reset_replaces_tags(self, cache):
        cache.set("dir", "default", "a", tags=["old"])
        cache.set("dir", "default", "b", tags=["new"])
        assert cache.invalidate(["old"]) == 0
        assert cache.get("dir", "default") == "b"

    def test_clear_directory_one_shard(self, cache):
        cache.set("dir", "default", "a")
        cache.set("dir", "props", "b")
        assert cache.clear_directory("dir", "props") == 1
        assert cache.get("dir", "default") == "a"

    def test_clear_directory_all_shards(self, cache):
        cache.set("dir", "default", "a")
        cache.set("dir", "props", "b")
        cache.set("other", "default", "c")
        assert cache.clear_directory("dir") == 2
        assert cache.get("other", "default") == "c"

    def test_clear(self, cache):
        cache.set("dir", "default", "a", tags=["t"])
        cache.clear()
        assert cache.size() == 0
        assert cache.invalidate(["t"]) == 0

    def test_lock_is_per_key(self, cache):
        entered = threading.Event()
        release = threading.Event()

        def hold():
            with cache.lock("dir", "default"):
                entered.set()
                release.wait(5)

        t = threading.Thread(target=hold)
        t.start()
        entered.wait(5)
        try:
            # A different shard is not blocked.
            with cache.lock("dir", "props"):
                pass
        finally:
            release.set()
            t.join(5)


class TestCreateCache:
    def test_memory(self):
        assert isinstance(create_cache(FinderSettings(cache_url="memory")), InMemoryTaggedCache)

    def test_default_settings(self):
        assert isinstance(create_cache(), InMemoryTaggedCache)

    def test_redis_url(self):
        with patch.object(RedisTaggedCache, "__init__", return_value=None) as init:
            cache = create_cache(
                FinderSettings(cache_url="redis://cache:6379/1", cache_key_prefix="app")
            )
        assert isinstance(cache, RedisTaggedCache)
        init.assert_called_once_with("redis://cache:6379/1", prefix="app", lock_timeout_seconds=60.0)

    def test_unknown_scheme(self):
        with pytest.raises(ConfigError):
            create_cache(FinderSettings(cache_url="memcached://x"))
