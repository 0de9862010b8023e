import pytest

from modules.orders import cache

pytestmark = pytest.mark.unit


def test_key_scheme():
    assert cache.orders_key(7) == "orders:7"
    assert cache.order_key(42) == "order:42"
    assert cache.order_key(42, "-items") == "order:42-items"
    assert cache.order_view_keys(42) == [
        "order:42",
        "order:42-items",
        "order:42-address",
        "order:42-items-address",
    ]


def test_unknown_suffix_rejected():
    with pytest.raises(ValueError):
        cache.order_key(42, "-history")


def test_evict_order_drops_lists_and_every_view():
    for key in cache.order_view_keys(42) + [cache.order_key(43)]:
        cache.order_cache.get_or_set(key, lambda key=key: key)
    cache.order_cache.get_or_set(cache.orders_key(7), lambda: ["list"])

    cache.evict_order(42)

    assert all(cache.order_cache.get(key) is None for key in cache.order_view_keys(42))
    assert cache.order_cache.get(cache.orders_key(7)) is None
    assert cache.order_cache.get(cache.order_key(43)) == "order:43"


def test_evict_after_create_drops_lists_only():
    cache.order_cache.get_or_set(cache.orders_key(7), lambda: ["list"])
    cache.order_cache.get_or_set(cache.order_key(42), lambda: {"id": 42})

    cache.evict_after_create()

    assert cache.order_cache.get(cache.orders_key(7)) is None
    assert cache.order_cache.get(cache.order_key(42)) == {"id": 42}
