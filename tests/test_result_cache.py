"""Result cache tests."""

from memory.result_cache import ResultCache


def test_get_returns_none_on_miss() -> None:
    cache = ResultCache()
    assert cache.get("a|b|none|none") is None
    assert "a|b|none|none" not in cache
    assert len(cache) == 0


def test_put_then_get_returns_same_analysis(analysis) -> None:
    cache = ResultCache()
    cache.put("jeans#2|shirt#1|casual|15", analysis)

    assert cache.get("jeans#2|shirt#1|casual|15") is analysis
    assert "jeans#2|shirt#1|casual|15" in cache
    assert cache.get("jeans#2|shirt#1|casual|20") is None


def test_put_overwrites_and_clear_empties(analysis) -> None:
    cache = ResultCache()
    cache.put("k", analysis)
    cache.put("k", analysis)
    cache.put("other", analysis)
    assert len(cache) == 2

    cache.clear()
    assert len(cache) == 0
    assert cache.get("k") is None
