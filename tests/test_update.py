from __future__ import annotations

import pytest

from pylitetrigger import (
    InvalidDocumentError,
    InvalidUpdateError,
    MalformedUpdatePathError,
    apply_update,
    match_query,
)


def _base() -> dict:
    return {
        "_id": 1,
        "name": "alpha",
        "meta": {"owner": "ann", "level": 2},
        "slots": [{
            "_id": 1,
            "label": "s1",
            "subjects": [{"_id": 1, "available": 0}, {"_id": 2, "available": 0}],
        }],
        "counts": [1, 2, 3],
    }


def test_base_is_never_mutated() -> None:
    base = _base()
    apply_update(base, {"name": "beta", "slots.$": {"label": "x"}, "$unset": {"meta": 1}}, [0])
    assert base == _base()


def test_plain_field_is_created_or_overwritten() -> None:
    new = apply_update(_base(), {"name": "beta", "extra": [1]})
    assert new["name"] == "beta"
    assert new["extra"] == [1]
    assert new["meta"] == {"owner": "ann", "level": 2}


def test_dict_value_under_a_literal_path_replaces() -> None:
    new = apply_update(_base(), {"meta": {"owner": "bob"}})
    assert new["meta"] == {"owner": "bob"}


def test_dotted_path_sets_nested_field_and_creates_parents() -> None:
    new = apply_update(_base(), {"meta.owner": "bob", "a.b.c": 1})
    assert new["meta"] == {"owner": "bob", "level": 2}
    assert new["a"] == {"b": {"c": 1}}


def test_nested_positional_merge_leaves_siblings_untouched() -> None:
    base = _base()
    captures = match_query(base, {"slots": {"_id": 1, "subjects": {"_id": 2}}})
    assert captures == [0, 1]

    new = apply_update(base, {"slots.$": {"subjects.$": {"available": 1}}}, captures)

    assert new["slots"][0]["label"] == "s1"
    assert new["slots"][0]["subjects"] == [
        {"_id": 1, "available": 0},
        {"_id": 2, "available": 1},
    ]


def test_positional_inside_dotted_path() -> None:
    new = apply_update(_base(), {"slots.$.subjects.$.available": 5}, [0, 1])
    assert new["slots"][0]["subjects"][1] == {"_id": 2, "available": 5}


def test_captures_are_consumed_left_to_right_across_keys() -> None:
    base = {"a": [{"v": 0}, {"v": 0}], "b": [{"v": 0}, {"v": 0}]}
    new = apply_update(base, {"a.$.v": 1, "b.$.v": 2}, [1, 0])
    assert new == {"a": [{"v": 0}, {"v": 1}], "b": [{"v": 2}, {"v": 0}]}


def test_positional_scalar_replacement() -> None:
    new = apply_update(_base(), {"counts.$": 20}, [1])
    assert new["counts"] == [1, 20, 3]


def test_numeric_segment_indexes_a_list() -> None:
    new = apply_update(_base(), {"slots.0.label": "first"})
    assert new["slots"][0]["label"] == "first"


def test_last_write_wins_for_overlapping_paths() -> None:
    new = apply_update(_base(), {"slots.$.label": "positional", "slots.0.label": "literal"}, [0])
    assert new["slots"][0]["label"] == "literal"
    new = apply_update(_base(), {"slots.0.label": "literal", "slots.$.label": "positional"}, [0])
    assert new["slots"][0]["label"] == "positional"


def test_same_update_twice_is_idempotent() -> None:
    changes = {"slots.$": {"subjects.$": {"available": 1}}, "name": "beta"}
    once = apply_update(_base(), changes, [0, 0])
    twice = apply_update(once, changes, [0, 0])
    assert once == twice


def test_changes_are_copied_into_the_result() -> None:
    value = {"k": [1]}
    new = apply_update(_base(), {"obj": value})
    value["k"].append(2)
    assert new["obj"] == {"k": [1]}


@pytest.mark.parametrize(
    "changes, captures",
    [
        ({"slots.$.label": "x"}, []),
        ({"slots.$": {"subjects.$": {"available": 1}}}, [0]),
        ({"name.$": 1}, [0]),
        ({"slots.$.label": "x"}, [5]),
        ({"slots.label": "x"}, []),
        ({"slots.9.label": "x"}, []),
    ],
)
def test_unresolvable_paths_raise(changes, captures) -> None:
    with pytest.raises(MalformedUpdatePathError):
        apply_update(_base(), changes, captures)


def test_set_operator() -> None:
    new = apply_update(_base(), {"$set": {"meta.level": 3, "slots.$.label": "y"}}, [0])
    assert new["meta"]["level"] == 3
    assert new["slots"][0]["label"] == "y"


def test_unset_operator() -> None:
    new = apply_update(_base(), {"$unset": {"meta.owner": "", "nope.deeper": ""}})
    assert new["meta"] == {"level": 2}
    assert "nope" not in new


def test_inc_operator() -> None:
    new = apply_update(_base(), {"$inc": {"meta.level": 3, "fresh": 1}})
    assert new["meta"]["level"] == 5
    assert new["fresh"] == 1
    with pytest.raises(InvalidUpdateError):
        apply_update(_base(), {"$inc": {"name": 1}})


def test_push_and_pull_operators() -> None:
    new = apply_update(_base(), {"$push": {"counts": 4, "fresh": {"$each": [1, 2]}}})
    assert new["counts"] == [1, 2, 3, 4]
    assert new["fresh"] == [1, 2]

    new = apply_update(_base(), {"$pull": {"counts": {"$gte": 2}}})
    assert new["counts"] == [1]

    new = apply_update(_base(), {"$pull": {"slots.$.subjects": {"_id": 1}}}, [0])
    assert new["slots"][0]["subjects"] == [{"_id": 2, "available": 0}]

    with pytest.raises(InvalidUpdateError):
        apply_update(_base(), {"$push": {"name": 1}})


def test_invalid_updates_raise() -> None:
    with pytest.raises(InvalidUpdateError):
        apply_update(_base(), ["name"])
    with pytest.raises(InvalidUpdateError):
        apply_update(_base(), {"$rename": {"name": "title"}})
    with pytest.raises(InvalidUpdateError):
        apply_update(_base(), {"$set": "name"})


def test_non_json_values_are_rejected() -> None:
    with pytest.raises(InvalidDocumentError):
        apply_update(_base(), {"tags": {"a", "b"}})


def test_non_decimal_digit_segment_into_a_list_raises() -> None:
    with pytest.raises(MalformedUpdatePathError):
        apply_update({"tags": [1, 2]}, {"tags.²": 5})
