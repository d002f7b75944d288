from __future__ import annotations

from intune_assign.auth import TokenCacheManager


def test_clear_removes_cache_file(tmp_path) -> None:
    cache_path = tmp_path / "cache.bin"
    cache_path.write_text("{}", encoding="utf-8")

    manager = TokenCacheManager(cache_path)
    assert manager.path == cache_path
    assert cache_path.exists()

    manager.clear()
    assert not cache_path.exists()


def test_clear_handles_missing_file(tmp_path) -> None:
    cache_path = tmp_path / "cache.bin"
    manager = TokenCacheManager(cache_path)

    manager.clear()
    assert not cache_path.exists()
    assert manager.path == cache_path


def test_unreadable_cache_is_discarded(tmp_path) -> None:
    cache_path = tmp_path / "cache.bin"
    cache_path.write_text("not json", encoding="utf-8")

    manager = TokenCacheManager(cache_path)

    assert manager.cache.serialize()
    assert not manager.cache.has_state_changed


def test_save_skips_unchanged_cache(tmp_path) -> None:
    cache_path = tmp_path / "nested" / "cache.bin"
    manager = TokenCacheManager(cache_path)

    manager.save()

    assert not cache_path.exists()


def test_clear_keeps_cache_object_and_reports_removal(tmp_path) -> None:
    cache_path = tmp_path / "cache.bin"
    cache_path.write_text('{"AccessToken": {}}', encoding="utf-8")
    manager = TokenCacheManager(cache_path)
    original = manager.cache

    assert manager.clear() is True
    assert manager.clear() is False
    assert manager.cache is original
    assert manager.cache.serialize() == "{}"


def test_save_writes_changed_cache(tmp_path) -> None:
    cache_path = tmp_path / "nested" / "cache.bin"
    manager = TokenCacheManager(cache_path)
    manager.cache.has_state_changed = True

    assert manager.save() is True
    assert cache_path.read_text(encoding="utf-8") == "{}"
    assert manager.save() is False
