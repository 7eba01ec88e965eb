import pytest
from kvcollection import Collection, EmptyCollectionError, InvalidArgumentError, configure


class TestConstruction:
    """Test building collections from different sources"""

    def test_list_source_gets_sequential_keys(self):
        """Test that sequences are keyed from 0"""
        assert Collection(["a", "b"]).to_array() == {0: "a", 1: "b"}

    def test_mapping_source_keeps_keys(self, scores):
        """Test that mappings keep their keys and order"""
        assert list(scores) == [("ada", 90), ("bob", 72), ("cyd", 85)]

    def test_collection_source(self, scores):
        """Test building from another collection"""
        copy = Collection(scores.filter(lambda v: v > 80))
        assert copy.to_array() == {"ada": 90, "cyd": 85}

    def test_from_pairs(self):
        """Test explicit (key, value) construction"""
        col = Collection.from_pairs([("x", 1), (5, 2)])
        assert col.to_array() == {"x": 1, 5: 2}

    def test_none_is_empty(self):
        """Test that None builds an empty collection"""
        assert Collection().is_empty()
        assert Collection(None).count() == 0

    def test_string_source_rejected(self):
        """Test that strings are not silently split into characters"""
        with pytest.raises(InvalidArgumentError):
            Collection("abc")

    def test_non_iterable_source_rejected(self):
        """Test that scalars cannot be collections"""
        with pytest.raises(InvalidArgumentError):
            Collection(42)


class TestAccessors:
    """Test read access to collection items"""

    def test_get_with_default(self, scores):
        """Test get never raises"""
        assert scores.get("ada") == 90
        assert scores.get("zed") is None
        assert scores.get("zed", -1) == -1
        assert scores.filter(lambda v: v < 80).get("ada", "gone") == "gone"

    def test_get_and_has_with_unhashable_key(self, scores):
        """Test that unhashable keys are simply absent"""
        assert scores.get(["ada"], "none") == "none"
        assert scores.get({"a": 1}) is None
        assert not scores.has(["ada"])

    def test_getitem_raises_key_error(self, scores):
        """Test subscript access"""
        assert scores["bob"] == 72
        with pytest.raises(KeyError):
            scores["zed"]

    def test_has(self, scores):
        """Test key membership"""
        assert scores.has("cyd")
        assert not scores.has("zed")
        assert Collection([1, 2]).map(lambda v: v).has(1)

    def test_contains_is_strict(self):
        """Test that value membership is type-exact"""
        col = Collection([1, "2", [3]])
        assert col.contains(1)
        assert not col.contains(1.0), "1.0 must not match 1"
        assert not col.contains(True), "True must not match 1"
        assert not col.contains(2), "2 must not match '2'"
        assert col.contains([3])

    def test_first_and_last(self):
        """Test first/last with and without predicates"""
        col = Collection([4, 7, 10, 13])
        assert col.first() == 4
        assert col.last() == 13
        assert col.first(lambda v: v > 5) == 7
        assert col.last(lambda v: v % 2 == 0) == 10

    def test_first_and_last_on_empty(self):
        """Test the empty-collection path"""
        with pytest.raises(EmptyCollectionError):
            Collection([]).first()
        with pytest.raises(EmptyCollectionError):
            Collection([]).last()
        assert Collection([]).first(default="none") == "none"

    def test_first_and_last_predicate_miss(self):
        """Test the predicate-miss path"""
        col = Collection([1, 2, 3])
        with pytest.raises(EmptyCollectionError):
            col.first(lambda v: v > 10)
        with pytest.raises(EmptyCollectionError):
            col.last(lambda v: v > 10)
        assert col.first(lambda v: v > 10, default=0) == 0
        assert col.last(lambda v: v > 10, None) is None

    def test_first_stops_early(self, call_counter):
        """Test that first() pulls only what it needs"""
        track, calls = call_counter
        assert Collection(range(100)).map(track).first() == 0
        assert len(calls) == 1, f"Expected 1 call, got {len(calls)}"

    def test_keys_and_values(self, scores):
        """Test key and value projections"""
        assert scores.keys().to_list() == ["ada", "bob", "cyd"]
        assert scores.values().to_array() == {0: 90, 1: 72, 2: 85}

    def test_parts(self, people):
        """Test selector projection into a plain list"""
        assert people.parts("name") == ["ada", "bob", "cyd", "dee"]
        assert Collection([1, 2]).parts() == [1, 2]

    def test_random(self):
        """Test random pick and the empty path"""
        col = Collection([10, 20, 30])
        assert col.random() in (10, 20, 30)
        with pytest.raises(EmptyCollectionError):
            Collection([]).random()

    def test_random_is_seedable(self):
        """Test that a configured seed makes picks repeatable"""
        configure(random_seed=7)
        col = Collection(range(50))
        assert col.random() == col.random()

    def test_each_can_stop(self):
        """Test each() visits in order and stops on False"""
        seen = []

        def visit(value, key):
            seen.append(key)
            return value < 2

        Collection([1, 2, 3, 4]).each(visit)
        assert seen == [0, 1], f"Unexpected visits: {seen}"

    def test_count_and_len(self, scores):
        """Test counting"""
        assert scores.count() == 3
        assert len(scores) == 3
        assert Collection(range(10)).filter(lambda v: v % 2).count() == 5

    def test_count_uses_unique_keys(self):
        """Test that re-keyed duplicates are counted once"""
        col = Collection(["a", "b", "a"]).index_by(lambda v: v)
        assert col.count() == 2
        assert len(list(col)) == 3, "The raw stream still carries the duplicate"

    def test_is_empty_and_bool(self):
        """Test emptiness checks"""
        assert Collection([]).is_empty()
        assert not Collection([0]).is_empty()
        assert not Collection([])
        assert Collection([0])
