"""Tests for PropertyPath parsing and the thread-safe PropertyCache."""
from concurrent.futures import ThreadPoolExecutor

import pytest

from beanprops import EscalatingExtractor, ExtractionDepth, PropertyCache, PropertyPath

from testbeans import TraditionalBean


@pytest.fixture
def chain_factory(provider):
    """Provide a factory binding fresh single-segment chains."""
    extractor = EscalatingExtractor(ExtractionDepth.METHODS, provider)

    def _bind(name='name'):
        return (extractor.extract(name, TraditionalBean()),)
    return _bind


class TestPropertyPath:
    def test_split_and_trim(self):
        assert PropertyPath.parse('a.b.c').segments == ('a', 'b', 'c')
        assert PropertyPath.parse(' a . b ').segments == ('a', 'b')

    def test_empty_segments_are_dropped(self):
        assert PropertyPath.parse('a..b.').segments == ('a', 'b')
        assert PropertyPath.parse('').segments == ()

    def test_budget_limits_splits(self):
        assert PropertyPath.parse('bean.value', 0).segments == ('bean.value',)
        assert PropertyPath.parse('a.b.c', 1).segments == ('a', 'b.c')
        assert PropertyPath.parse('a.b.c', 5).segments == ('a', 'b', 'c')

    def test_non_string_path(self):
        with pytest.raises(TypeError):
            PropertyPath.parse(['a', 'b'])

    def test_key_behaviour(self):
        key = PropertyPath.parse('owner.name')

        assert str(key) == 'owner.name'
        assert len(key) == 2
        assert key.is_nested
        assert not PropertyPath.parse('name').is_nested
        assert key == PropertyPath.parse(' owner . name ')
        assert {key: 1}[PropertyPath(('owner', 'name'))] == 1


class TestPropertyCache:
    def test_first_writer_wins(self, chain_factory):
        cache = PropertyCache()
        key = PropertyPath.parse('name')
        first, second = chain_factory(), chain_factory()

        assert cache.put_if_absent(key, first) is first
        assert cache.put_if_absent(key, second) is first
        assert cache.get(key) is first

    def test_get_or_bind_binds_once(self, chain_factory):
        cache = PropertyCache()
        key = PropertyPath.parse('name')
        calls = []

        def bind():
            calls.append(1)
            return chain_factory()

        first = cache.get_or_bind(key, bind)
        second = cache.get_or_bind(key, bind)

        assert first is second
        assert len(calls) == 1

    def test_replace_evict_clear(self, chain_factory):
        cache = PropertyCache()
        name_key, age_key = PropertyPath.parse('name'), PropertyPath.parse('age')
        cache.put_if_absent(name_key, chain_factory())
        cache.put_if_absent(age_key, chain_factory('age'))

        replacement = chain_factory()
        cache.replace(name_key, replacement)
        assert cache.get(name_key) is replacement

        cache.evict(age_key)
        cache.evict(age_key)
        assert age_key not in cache
        assert len(cache) == 1

        cache.clear()
        assert len(cache) == 0
        assert cache.get(name_key) is None

    def test_items_is_a_snapshot(self, chain_factory):
        cache = PropertyCache()
        cache.put_if_absent(PropertyPath.parse('name'), chain_factory())
        cache.put_if_absent(PropertyPath.parse('age'), chain_factory('age'))

        for key, _ in cache.items():
            cache.evict(key)

        assert len(cache) == 0

    def test_concurrent_inserts_converge(self, chain_factory):
        cache = PropertyCache()
        key = PropertyPath.parse('name')
        candidates = [chain_factory() for _ in range(32)]

        with ThreadPoolExecutor(max_workers=8) as executor:
            winners = list(executor.map(lambda chain: cache.put_if_absent(key, chain), candidates))

        assert len({id(winner) for winner in winners}) == 1
        assert cache.get(key) is winners[0]
        assert len(cache) == 1
