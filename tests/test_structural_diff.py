"""Unit tests for structural diff and patch application."""

import pytest

from histore.errors import PatchApplicationError, UnsupportedKeyError
from histore.models.constants import PatchOp
from histore.models.patch import Patch
from histore.models.structural_diff import apply_patches, diff_values, values_equal


class TestValuesEqual:
    """Tests for strict structural equality."""

    def test_equal_nested(self):
        assert values_equal({"a": [1, {"b": "x"}]}, {"a": [1, {"b": "x"}]}) is True

    def test_int_and_bool_differ(self):
        """1 == True in Python, but they are different values here."""
        assert values_equal({"a": 1}, {"a": True}) is False

    def test_int_and_float_differ(self):
        assert values_equal([1], [1.0]) is False

    def test_list_length_differs(self):
        assert values_equal([1, 2], [1, 2, 3]) is False

    def test_dict_keys_differ(self):
        assert values_equal({"a": 1}, {"b": 1}) is False


class TestDiffValues:
    """Tests for diff_values()."""

    def test_equal_values_produce_no_patches(self):
        forward, inverse = diff_values({"a": 1}, {"a": 1})
        assert forward == []
        assert inverse == []

    def test_dict_replace(self):
        """Changed key produces a replace at its path."""
        forward, inverse = diff_values({"a": 1, "b": 2}, {"a": 10, "b": 2})

        assert forward == [Patch(PatchOp.REPLACE, ("a",), 10)]
        assert inverse == [Patch(PatchOp.REPLACE, ("a",), 1)]

    def test_dict_add_and_remove(self):
        forward, inverse = diff_values({"a": 1}, {"b": 2})

        assert Patch(PatchOp.REMOVE, ("a",)) in forward
        assert Patch(PatchOp.ADD, ("b",), 2) in forward
        assert Patch(PatchOp.ADD, ("a",), 1) in inverse
        assert Patch(PatchOp.REMOVE, ("b",)) in inverse

    def test_nested_path(self):
        old = {"user": {"address": {"city": "NY", "zip": "10001"}}}
        new = {"user": {"address": {"city": "LA", "zip": "10001"}}}

        forward, _ = diff_values(old, new)

        assert forward == [Patch(PatchOp.REPLACE, ("user", "address", "city"), "LA")]

    def test_list_append(self):
        forward, inverse = diff_values([1, 2], [1, 2, 3, 4])

        assert forward == [Patch(PatchOp.ADD, (2,), 3), Patch(PatchOp.ADD, (3,), 4)]
        # Inverse removes the last element first
        assert inverse == [Patch(PatchOp.REMOVE, (3,)), Patch(PatchOp.REMOVE, (2,))]

    def test_list_shrink_removes_from_end(self):
        forward, inverse = diff_values([1, 2, 3, 4], [1, 2])

        assert forward == [Patch(PatchOp.REMOVE, (3,)), Patch(PatchOp.REMOVE, (2,))]
        assert inverse == [Patch(PatchOp.ADD, (2,), 3), Patch(PatchOp.ADD, (3,), 4)]

    def test_type_change_replaces_whole_value(self):
        forward, inverse = diff_values({"a": [1, 2]}, {"a": {"x": 1}})

        assert forward == [Patch(PatchOp.REPLACE, ("a",), {"x": 1})]
        assert inverse == [Patch(PatchOp.REPLACE, ("a",), [1, 2])]

    def test_root_scalar_change(self):
        forward, inverse = diff_values(1, 2)

        assert forward == [Patch(PatchOp.REPLACE, (), 2)]
        assert inverse == [Patch(PatchOp.REPLACE, (), 1)]

    def test_tuple_is_a_scalar(self):
        forward, _ = diff_values({"t": (1, 2)}, {"t": (1, 3)})
        assert forward == [Patch(PatchOp.REPLACE, ("t",), (1, 3))]

    def test_patch_values_do_not_alias_inputs(self):
        """Mutating the new value afterwards must not change recorded patches."""
        new = {"items": [{"id": 1}]}
        forward, _ = diff_values({"items": []}, new)

        new["items"][0]["id"] = 999

        assert forward[0].value == {"id": 1}

    def test_inverse_matches_inverted_forward(self):
        forward, inverse = diff_values({"a": 1, "gone": [1]}, {"a": 2, "new": "x"})

        assert forward == [
            Patch(PatchOp.REMOVE, ("gone",)),
            Patch(PatchOp.ADD, ("new",), "x"),
            Patch(PatchOp.REPLACE, ("a",), 2),
        ]
        assert inverse == [
            Patch(PatchOp.REPLACE, ("a",), 1),
            Patch(PatchOp.REMOVE, ("new",)),
            Patch(PatchOp.ADD, ("gone",), [1]),
        ]

    @pytest.mark.parametrize("key", [True, ("a", 1), 1.5, None])
    def test_changed_key_must_be_str_or_int(self, key):
        with pytest.raises(UnsupportedKeyError):
            diff_values({}, {key: 0})

    def test_unchanged_odd_key_is_ignored(self):
        forward, _ = diff_values({(1, 2): "t", "a": 1}, {(1, 2): "t", "a": 2})
        assert forward == [Patch(PatchOp.REPLACE, ("a",), 2)]

    def test_int_keys_are_allowed(self):
        forward, _ = diff_values({1: "a"}, {1: "b"})
        assert forward == [Patch(PatchOp.REPLACE, (1,), "b")]


class TestPatchInverted:
    """Tests for Patch.inverted()."""

    def test_add_inverts_to_remove(self):
        assert Patch(PatchOp.ADD, ("k",), 5).inverted() == Patch(PatchOp.REMOVE, ("k",))

    def test_remove_inverts_to_add_of_previous(self):
        assert Patch(PatchOp.REMOVE, (0,)).inverted("old") == Patch(PatchOp.ADD, (0,), "old")

    def test_replace_inverts_to_replace_of_previous(self):
        assert Patch(PatchOp.REPLACE, ()).inverted(3) == Patch(PatchOp.REPLACE, (), 3)


class TestRoundTrip:
    """Forward patches reach the new value; inverse patches get back."""

    @pytest.mark.parametrize(
        ("old", "new"),
        [
            ({"list": [1, 2, 3, 4]}, {"list": [4, 3, 2, 1]}),
            (
                {"nested": {"arr": [1, 2], "obj": {"x": 1}}},
                {"nested": {"arr": [2, 3], "obj": {"x": 42}}},
            ),
            ({"a": 1, "nested": {"b": 2}}, {"a": 100, "nested": {"b": 20}, "c": None}),
            ([{"k": [1]}, 2, "s"], [{"k": []}]),
            ({"a": 1}, [1, 2]),
        ],
    )
    def test_round_trip(self, old, new):
        forward, inverse = diff_values(old, new)

        assert apply_patches(old, forward) == new
        assert apply_patches(new, inverse) == old


class TestApplyPatches:
    """Tests for apply_patches()."""

    def test_does_not_mutate_input(self):
        value = {"a": {"b": [1, 2]}}
        result = apply_patches(value, [Patch(PatchOp.ADD, ("a", "b", 2), 3)])

        assert result == {"a": {"b": [1, 2, 3]}}
        assert value == {"a": {"b": [1, 2]}}

    def test_shares_untouched_subtrees(self):
        value = {"changed": {"x": 1}, "untouched": {"y": 2}}
        result = apply_patches(value, [Patch(PatchOp.REPLACE, ("changed", "x"), 5)])

        assert result["untouched"] is value["untouched"]
        assert result["changed"] is not value["changed"]

    def test_no_patches_returns_same_object(self):
        value = {"a": 1}
        assert apply_patches(value, []) is value

    def test_list_insert_in_middle(self):
        result = apply_patches([1, 3], [Patch(PatchOp.ADD, (1,), 2)])
        assert result == [1, 2, 3]

    def test_root_replace(self):
        assert apply_patches({"a": 1}, [Patch(PatchOp.REPLACE, (), [1])]) == [1]

    def test_missing_key_raises(self):
        patch = Patch(PatchOp.REPLACE, ("missing", "x"), 1)

        with pytest.raises(PatchApplicationError) as exc_info:
            apply_patches({"a": 1}, [patch])

        assert exc_info.value.patch == patch
        assert "missing" in exc_info.value.reason

    def test_remove_missing_key_raises(self):
        with pytest.raises(PatchApplicationError):
            apply_patches({"a": 1}, [Patch(PatchOp.REMOVE, ("b",))])

    def test_index_out_of_range_raises(self):
        with pytest.raises(PatchApplicationError):
            apply_patches([1, 2], [Patch(PatchOp.REPLACE, (5,), 0)])

    def test_string_index_into_list_raises(self):
        with pytest.raises(PatchApplicationError):
            apply_patches([1, 2], [Patch(PatchOp.REPLACE, ("0",), 0)])

    def test_descend_into_scalar_raises(self):
        with pytest.raises(PatchApplicationError):
            apply_patches({"a": 1}, [Patch(PatchOp.REPLACE, ("a", "b"), 0)])

    def test_remove_root_raises(self):
        with pytest.raises(PatchApplicationError):
            apply_patches({"a": 1}, [Patch(PatchOp.REMOVE, ())])

    def test_failure_midway_leaves_input_untouched(self):
        value = {"a": 1, "b": 2}
        patches = [
            Patch(PatchOp.REPLACE, ("a",), 10),
            Patch(PatchOp.REPLACE, ("gone", "x"), 0),
        ]

        with pytest.raises(PatchApplicationError):
            apply_patches(value, patches)

        assert value == {"a": 1, "b": 2}
