import threading

from picktle.embedding_cache import EmbeddingCache


def test_put_get_and_overwrite():
    cache = EmbeddingCache()
    cache.put("hot", [1.0, 2.0])
    cache.put("hot", [3.0, 4.0])

    assert cache.get("hot") == [3.0, 4.0]
    assert cache.get("Hot") is None
    assert len(cache) == 1


def test_empty_key_is_ignored():
    cache = EmbeddingCache()
    cache.put("", [1.0])
    assert len(cache) == 0


def test_clear_reports_removed():
    cache = EmbeddingCache()
    cache.put("a", [1.0])
    cache.put("b", [2.0])

    assert cache.clear() == 2
    assert cache.keys() == []


def test_concurrent_writers():
    cache = EmbeddingCache()

    def writer(offset):
        for i in range(200):
            cache.put(f"w{offset}-{i}", [float(i)])

    threads = [threading.Thread(target=writer, args=(n,)) for n in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(cache) == 800
