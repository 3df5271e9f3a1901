"""
Structural diff tests

Tests added/modified/removed detection, idempotence and disjointness.
"""

import pytest

from unrender import diff, DiffResult, FieldChange


def all_paths(result: DiffResult):
    """Flatten the three categories into path sets"""
    def added_paths(node, prefix=""):
        for key, value in node.items():
            path = f"{prefix}.{key}" if prefix else key
            if isinstance(value, dict) and value:
                yield from added_paths(value, path)
            else:
                yield path

    return set(added_paths(result.added)), set(result.modified), set(result.removed)


class TestCategories:
    """added, modified and removed"""

    def test_added_key(self):
        """Key only in extracted"""
        result = diff({"title": "Hello"}, {"title": "Hello", "subtitle": "World"})

        assert result.added == {"subtitle": "World"}
        assert result.modified == {}
        assert result.removed == []
        assert result.has_changes is True

    def test_modified_key(self):
        """Changed value reported with from_/to"""
        result = diff({"title": "Hello"}, {"title": "Hi"})
        assert result.modified == {"title": FieldChange(from_="Hello", to="Hi")}

    def test_removed_key(self):
        """Key only in original"""
        result = diff({"title": "Hello", "draft": True}, {"title": "Hello"})
        assert result.removed == ["draft"]

    def test_nested_added_keeps_shape(self):
        """Nested additions are nested"""
        result = diff({"a": {"b": 1}}, {"a": {"b": 1, "c": 2}})
        assert result.added == {"a": {"c": 2}}

    def test_nested_modified_dot_path(self):
        """Nested modifications use dot paths"""
        result = diff({"post": {"meta": {"title": "A"}}}, {"post": {"meta": {"title": "B"}}})
        assert list(result.modified) == ["post.meta.title"]

    def test_removed_subtree_lists_leaves(self):
        """Removing a subtree lists its leaves"""
        result = diff({"a": {"b": 1, "c": {"d": 2}}, "k": 0}, {"k": 0})
        assert sorted(result.removed) == ["a.b", "a.c.d"]

    def test_removed_empty_dict_is_leaf(self):
        """An empty dict is reported by its own path"""
        result = diff({"meta": {}}, {})
        assert result.removed == ["meta"]

    def test_arrays_are_atomic(self):
        """Any element change marks the whole array modified"""
        result = diff({"tags": ["a", "b"]}, {"tags": ["a", "c"]})
        assert result.modified == {"tags": FieldChange(from_=["a", "b"], to=["a", "c"])}

    def test_type_change_is_modification(self):
        """dict -> scalar is a modification at that path"""
        result = diff({"a": {"b": 1}}, {"a": "flat"})
        assert result.modified == {"a": FieldChange(from_={"b": 1}, to="flat")}
        assert result.removed == []

    def test_kind_aware_equality(self):
        """True and 1 differ; 1 and 1.0 do not"""
        assert diff({"x": True}, {"x": 1}).has_changes
        assert not diff({"x": 1}, {"x": 1.0}).has_changes

    def test_nan_against_number(self):
        """NaN only equals NaN"""
        result = diff({"score": float("nan")}, {"score": 1.0})
        assert list(result.modified) == ["score"]
        assert diff({"score": float("nan")}, {"score": float("nan")}).has_changes is False

    def test_root_scalars(self):
        """Non-dict roots differ as a whole"""
        result = diff("a", "b")
        assert result.modified == {"": FieldChange(from_="a", to="b")}
        assert not diff("a", "a").has_changes

    def test_values_are_copies(self):
        """Results do not alias the inputs"""
        extracted = {"tags": ["x"]}
        result = diff({"tags": []}, extracted)
        result.modified["tags"].to.append("y")
        assert extracted == {"tags": ["x"]}


class TestPaths:
    """Restricting the diff to paths"""

    def test_restricted_to_path(self):
        """Only the listed path is compared"""
        result = diff(
            {"title": "A", "body": "B"},
            {"title": "X", "body": "Y", "new": "Z"},
            paths=["title"],
        )
        assert list(result.modified) == ["title"]
        assert result.added == {}

    def test_nested_selector(self):
        """A nested selector ignores siblings"""
        result = diff({"data": {"title": "A", "body": "B"}}, {"data": {"title": "X"}}, paths=["data.title"])
        assert list(result.modified) == ["data.title"]
        assert result.removed == []

    def test_selector_covers_descendants(self):
        """A selector includes everything below it"""
        result = diff({"data": {"a": 1}}, {"data": {"a": 2, "b": 3}}, paths=["data"])
        assert list(result.modified) == ["data.a"]
        assert result.added == {"data": {"b": 3}}


class TestProperties:
    """Idempotence and disjointness"""

    @pytest.mark.parametrize("value", [
        {},
        {"a": 1},
        {"a": {"b": [1, 2, {"c": None}]}, "d": True, "e": 1.5},
        {"nested": {"empty": {}}},
        "scalar",
        None,
        {"score": float("nan")},
        float("nan"),
    ])
    def test_idempotence(self, value):
        """diff(x, x) is the zero result"""
        result = diff(value, value)
        assert result == DiffResult()
        assert result.has_changes is False

    @pytest.mark.parametrize("original,extracted", [
        ({"a": 1, "b": {"c": 2}}, {"a": 2, "b": {"d": 3}, "e": 4}),
        ({"a": {"b": 1}}, {"a": 1}),
        ({"x": [1], "y": {"z": {}}}, {"x": [2], "w": {"v": 1}}),
    ])
    def test_disjoint(self, original, extracted):
        """No path appears in more than one category"""
        added, modified, removed = all_paths(diff(original, extracted))
        assert not added & modified
        assert not added & removed
        assert not modified & removed
