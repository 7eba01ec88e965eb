import pytest
from kvcollection import Collection, InvalidArgumentError


class TestSetOperations:
    """Test diff/intersect/distinct and friends"""

    def test_diff_keeps_receiver_keys(self):
        """Test diff by strict value equality"""
        col = Collection({"a": 1, "b": 2, "c": 3, "d": "3"})
        assert col.diff([2, 3]).to_array() == {"a": 1, "d": "3"}

    def test_diff_is_strict(self):
        """Test that diff does not coerce types"""
        col = Collection([1, 1.0, True, "1"])
        assert col.diff([1]).to_list() == [1.0, True, "1"]

    def test_intersect_is_complement_of_diff(self):
        """Test diff and intersect partition the receiver"""
        col = Collection({"a": 1, "b": 2, "c": 3, "d": 4})
        other = [4, 2, 9]

        diff = col.diff(other).to_array()
        intersect = col.intersect(other).to_array()

        assert intersect == {"b": 2, "d": 4}
        assert {**diff, **intersect} == col.to_array()
        assert not set(diff) & set(intersect)

    def test_variadic_diff_and_intersect(self):
        """Test several other collections at once"""
        col = Collection([1, 2, 3, 4, 5])
        assert col.diff([1], Collection([5])).to_list() == [2, 3, 4]
        assert col.intersect([1, 2, 3], [2, 3, 4]).to_list() == [2, 3]

    def test_diff_with_unhashable_values(self):
        """Test strict comparison of unhashable values"""
        col = Collection([[1], [2], {"a": 1}])
        assert col.diff([[2], {"a": 1}]).to_list() == [[1]]

    def test_diff_is_lazy_over_receiver(self, call_counter):
        """Test that only the receiver streams"""
        track, calls = call_counter
        result = Collection(range(100)).map(track).diff([0, 2]).take(2).to_list()
        assert result == [4, 6]
        assert len(calls) == 4, f"Expected 4 calls, got {len(calls)}"

    def test_distinct(self):
        """Test that first occurrences win and keep their keys"""
        col = Collection({"a": 1, "b": 2, "c": 1, "d": 1.0, "e": [1], "f": [1]})
        assert col.distinct().to_array() == {"a": 1, "b": 2, "d": 1.0, "e": [1]}

    def test_merge(self):
        """Test associative-array merge"""
        merged = Collection({"a": 1, "b": 2}).merge({"a": 9, "c": 3}).to_array()
        assert merged == {"a": 9, "b": 2, "c": 3}
        assert list(merged) == ["a", "b", "c"]

    def test_merge_renumbers_int_keys(self):
        """Test that integer keys are appended, never overwritten"""
        merged = Collection({5: "x", "k": "v", 9: "y"}).merge({0: "z", "k": "w"})
        assert merged.to_array() == {0: "x", "k": "w", 1: "y", 2: "z"}

    def test_concat(self):
        """Test concatenation renumbers every key"""
        col = Collection({"a": 1}).concat([2, 3], Collection({"b": 4}))
        assert col.to_array() == {0: 1, 1: 2, 2: 3, 3: 4}

    def test_concat_is_lazy(self, call_counter):
        """Test that concat pulls nothing from later sources early"""
        track, calls = call_counter
        result = Collection([1, 2]).concat(Collection(range(50)).map(track)).take(3).to_list()
        assert result == [1, 2, 0]
        assert len(calls) == 1, f"Expected 1 call, got {len(calls)}"

    def test_zip_stops_at_shortest(self):
        """Test positional pairing"""
        zipped = Collection([1, 2]).zip([10, 20, 30])
        assert zipped.to_list() == [[1, 10], [2, 20]]
        assert isinstance(zipped.first(), Collection)

    def test_zip_several(self):
        """Test zipping more than two sources"""
        zipped = Collection(["a", "b", "c"]).zip([1, 2, 3], ("x", "y"))
        assert zipped.to_list() == [["a", 1, "x"], ["b", 2, "y"]]

    def test_transpose(self):
        """Test swapping rows and columns"""
        matrix = Collection([Collection([1, 2, 3]), Collection([4, 5, 6])])
        assert matrix.transpose().to_list() == [[1, 4], [2, 5], [3, 6]]

    def test_transpose_keeps_keys(self):
        """Test that row keys become column keys and vice versa"""
        rows = Collection({
            "r1": Collection({"x": 1, "y": 2}),
            "r2": Collection({"x": 3, "y": 4}),
        })
        assert rows.transpose().to_array() == {"x": {"r1": 1, "r2": 3}, "y": {"r1": 2, "r2": 4}}

    def test_transpose_requires_collections(self):
        """Test transpose precondition on item types"""
        with pytest.raises(InvalidArgumentError):
            Collection([[1, 2], [3, 4]]).transpose()

    def test_transpose_requires_equal_lengths(self):
        """Test transpose precondition on lengths"""
        with pytest.raises(InvalidArgumentError):
            Collection([Collection([1, 2]), Collection([3])]).transpose()

    def test_transpose_empty(self):
        """Test transposing nothing"""
        assert Collection([]).transpose().to_list() == []
