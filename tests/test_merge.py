"""
Data merger tests

Tests apply_extract(): array policies, path filtering and immutability.
"""

import copy

import pytest

from unrender import apply_extract, ApplyOptions, ArrayMerge
from unrender.config import appsettings


class TestArrayPolicies:
    """replace, append and prepend"""

    def test_append(self):
        """append: original + extracted"""
        result = apply_extract({"tags": ["a", "b"]}, {"tags": ["c"]}, ApplyOptions(array_merge="append"))
        assert result == {"tags": ["a", "b", "c"]}

    def test_replace_is_default(self):
        """Without options the extracted array wins"""
        assert apply_extract({"tags": ["a", "b"]}, {"tags": ["c"]}) == {"tags": ["c"]}

    def test_prepend(self):
        """prepend: extracted + original"""
        result = apply_extract({"tags": ["a"]}, {"tags": ["b"]}, ApplyOptions(array_merge=ArrayMerge.PREPEND))
        assert result == {"tags": ["b", "a"]}

    def test_string_coerced(self):
        """Plain strings become ArrayMerge members"""
        assert ApplyOptions(array_merge="prepend").array_merge is ArrayMerge.PREPEND

    def test_invalid_policy(self):
        """Unknown policies are rejected"""
        with pytest.raises(ValueError):
            ApplyOptions(array_merge="shuffle")

    def test_default_from_settings(self, monkeypatch):
        """The default policy comes from settings"""
        monkeypatch.setattr(appsettings, "array_merge", ArrayMerge.APPEND)
        assert apply_extract({"t": [1]}, {"t": [2]}) == {"t": [1, 2]}

    def test_array_over_scalar(self):
        """An array replaces a non-array regardless of policy"""
        result = apply_extract({"t": "x"}, {"t": ["y"]}, ApplyOptions(array_merge="append"))
        assert result == {"t": ["y"]}


class TestMerge:
    """Recursive merge"""

    def test_nested_merge(self):
        """Dicts recurse and untouched keys survive"""
        original = {"post": {"title": "A", "views": 10}}
        result = apply_extract(original, {"post": {"title": "B"}})
        assert result == {"post": {"title": "B", "views": 10}}

    def test_creates_intermediates(self):
        """Paths only in extracted are created"""
        assert apply_extract({}, {"a": {"b": {"c": 1}}}) == {"a": {"b": {"c": 1}}}

    def test_scalar_overwrites_dict(self):
        """Non-dict values overwrite"""
        assert apply_extract({"a": {"b": 1}}, {"a": "flat"}) == {"a": "flat"}

    def test_dict_overwrites_scalar(self):
        """A dict replaces a scalar"""
        assert apply_extract({"a": "flat"}, {"a": {"b": 1}}) == {"a": {"b": 1}}

    def test_non_dict_extracted(self):
        """A non-dict extracted value replaces the whole record"""
        assert apply_extract({"a": 1}, ["x"]) == ["x"]


class TestImmutability:
    """Inputs are never mutated"""

    def test_inputs_untouched(self):
        """Neither input changes"""
        original = {"tags": ["a"], "post": {"title": "A"}}
        extracted = {"tags": ["b"], "post": {"title": "B", "meta": {"x": 1}}}
        original_before = copy.deepcopy(original)
        extracted_before = copy.deepcopy(extracted)

        apply_extract(original, extracted, ApplyOptions(array_merge="append"))

        assert original == original_before
        assert extracted == extracted_before

    def test_result_does_not_alias(self):
        """Mutating the result leaves the inputs alone"""
        original = {"post": {"tags": ["a"]}}
        extracted = {"post": {"meta": {"x": 1}}}
        result = apply_extract(original, extracted)

        result["post"]["tags"].append("z")
        result["post"]["meta"]["x"] = 2

        assert original == {"post": {"tags": ["a"]}}
        assert extracted == {"post": {"meta": {"x": 1}}}


class TestPaths:
    """Restricting apply_extract to paths"""

    def test_top_level_selector(self):
        """Unselected keys keep their original value"""
        result = apply_extract({"a": 1, "b": 2}, {"a": 10, "b": 20}, ApplyOptions(paths=["a"]))
        assert result == {"a": 10, "b": 2}

    def test_nested_selector(self):
        """Only the selected leaf lands in a new branch"""
        result = apply_extract({}, {"data": {"title": "T", "body": "B"}}, ApplyOptions(paths=["data.title"]))
        assert result == {"data": {"title": "T"}}

    def test_unrelated_selector(self):
        """Nothing lands when no key is selected"""
        result = apply_extract({"a": 1}, {"data": {"title": "T"}}, ApplyOptions(paths=["other"]))
        assert result == {"a": 1}

    def test_selector_covers_subtree(self):
        """A selector includes everything below it"""
        result = apply_extract(
            {"data": {"title": "A"}, "x": 1},
            {"data": {"title": "B", "body": "C"}, "x": 2},
            ApplyOptions(paths=["data"]),
        )
        assert result == {"data": {"title": "B", "body": "C"}, "x": 1}
