"""
Tests for the sorted city store and its name index.
"""

import pytest

from citycoder.store import CityStore, NameIndex


@pytest.fixture
def small_store(make_city):
    """Five cities given out of order."""
    return CityStore.build([
        make_city("Charlie", latitude=10.0, longitude=10.0),
        make_city("bravo", latitude=20.0, longitude=20.0),
        make_city("Alpha", latitude=30.0, longitude=30.0),
        make_city("Beta", latitude=40.0, longitude=40.0),
        make_city("Amber"),
    ])


class TestCityStore:
    """Test CityStore ordering and lookups."""

    def test_sorted_by_lowercase_name(self, small_store):
        assert [city.name for city in small_store] == [
            "Alpha", "Amber", "Beta", "bravo", "Charlie",
        ]

    def test_stable_sort(self, make_city):
        """Test equal names keep their input order."""
        store = CityStore.build([
            make_city("Austin", region="TX"),
            make_city("austin", region="MN"),
            make_city("AUSTIN", region="CA"),
        ])
        assert [city.region for city in store] == ["TX", "MN", "CA"]

    def test_sequence_protocol(self, small_store):
        assert len(small_store) == 5
        assert small_store[0].name == "Alpha"
        assert small_store[-1].name == "Charlie"

    def test_geohash_order_excludes_blank(self, small_store):
        """Test cities without a geohash are left out of the geohash ordering."""
        assert len(small_store.geohash_order) == 4
        hashes = [small_store[pos].geohash for pos in small_store.geohash_order]
        assert hashes == sorted(hashes)

    def test_with_geohash_prefix(self, small_store):
        target = small_store[3].geohash
        found = list(small_store.with_geohash_prefix(target[:4]))
        assert found == [(3, small_store[3])]

    def test_with_geohash_prefix_no_match(self, small_store):
        assert list(small_store.with_geohash_prefix("00")) == []

    def test_with_empty_prefix(self, small_store):
        with pytest.raises(ValueError):
            list(small_store.with_geohash_prefix(""))

    def test_count_by_country(self, corpus):
        store, _, _ = corpus
        counts = store.count_by_country()
        assert counts == {"US": 9, "FR": 2, "GB": 2}

    def test_equality(self, corpus):
        """Test rebuilding from the same input yields an equal store."""
        store, _, _ = corpus
        assert CityStore(list(store)) == store


class TestNameIndex:
    """Test prefix bounds and bracket arithmetic."""

    def test_bounds(self, small_store):
        index = NameIndex.build(small_store)
        assert index.to_dict() == {
            "a": 1, "al": 0, "am": 1,
            "b": 3, "be": 2, "br": 3,
            "c": 4, "ch": 4,
        }
        assert "am" in index
        assert index.get("z") is None
        assert len(index) == 8

    @pytest.mark.parametrize("token,expected", [
        ("Bravo", (1, 4)),
        ("alpha", (0, 2)),
        ("delta", (4, 5)),
        ("zulu", (0, 5)),
        ("Charlie", (3, 5)),
    ])
    def test_bracket(self, small_store, token, expected):
        index = NameIndex.build(small_store)
        assert index.bracket(token, len(small_store)) == expected

    def test_bracket_contains_exact_names(self, small_store):
        """Test every name falls inside the bracket for itself."""
        index = NameIndex.build(small_store)
        for position, city in enumerate(small_store):
            start, end = index.bracket(city.name, len(small_store))
            assert start <= position < end

    def test_bracket_degenerate(self, small_store):
        index = NameIndex.build(small_store)
        assert index.bracket("", 5) == (0, 0)
        assert index.bracket("alpha", 0) == (0, 0)

    @pytest.mark.parametrize("token", ["a", "Beta", "charlie", "x", "ਪੈਰਿਸ", "İstanbul", "0"])
    @pytest.mark.parametrize("size", [1, 3, 5])
    def test_bracket_within_bounds(self, small_store, token, size):
        index = NameIndex.build(small_store)
        start, end = index.bracket(token, size)
        assert 0 <= start <= end <= size

    def test_corpus_bracket(self, corpus):
        store, index, _ = corpus
        start, end = index.bracket("Paris", len(store))
        names = {store[pos].name for pos in range(start, end)}
        assert {"Paris", "Parenville"} <= names
