import datetime as dt
import threading

from packages.core.reminders.dedupe import NotifiedCache


NOW = dt.datetime(2024, 3, 15, 6, 0, tzinfo=dt.timezone.utc)


def test_mark_claims_once_within_retention():
    cache = NotifiedCache()

    assert cache.mark("r1", NOW) is True
    assert cache.mark("r1", NOW) is False
    assert cache.mark("r1", NOW + dt.timedelta(hours=23, minutes=59)) is False
    assert cache.is_notified("r1", NOW + dt.timedelta(hours=1)) is True


def test_entries_expire_after_retention():
    cache = NotifiedCache(retention=dt.timedelta(hours=24))
    cache.mark("r1", NOW)

    later = NOW + dt.timedelta(hours=24)
    assert cache.is_notified("r1", later) is False
    assert "r1" not in cache
    assert cache.mark("r1", later) is True


def test_prune_drops_only_expired_entries():
    cache = NotifiedCache(retention=dt.timedelta(minutes=10))
    cache.mark("old", NOW)
    cache.mark("new", NOW + dt.timedelta(minutes=8))

    removed = cache.prune(NOW + dt.timedelta(minutes=12))

    assert removed == 1
    assert "old" not in cache
    assert "new" in cache
    assert len(cache) == 1


def test_clear_forgets_everything():
    cache = NotifiedCache()
    cache.mark("r1", NOW)
    cache.mark("r2", NOW)

    cache.clear()

    assert len(cache) == 0
    assert cache.mark("r1", NOW) is True


def test_size_and_membership_wait_for_writers():
    cache = NotifiedCache()
    cache.mark("r1", NOW)
    results = {}

    def read():
        results["len"] = len(cache)
        results["contains"] = "r1" in cache

    with cache._lock:
        reader = threading.Thread(target=read)
        reader.start()
        reader.join(timeout=0.1)
        assert reader.is_alive()
        assert results == {}

    reader.join(timeout=5)
    assert results == {"len": 1, "contains": True}
