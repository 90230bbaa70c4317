from docstore.db.field_values import (
    array_remove,
    array_union,
    build_update,
    resolve_for_set,
)


def test_build_update_splits_operators():
    update = build_update(
        {
            "name": "x",
            "profile.age": 3,
            "tags": array_union("a", "b", "a"),
            "old": array_remove("z"),
        }
    )
    assert update == {
        "$set": {"name": "x", "profile.age": 3},
        "$addToSet": {"tags": {"$each": ["a", "b"]}},
        "$pullAll": {"old": ["z"]},
    }


def test_build_update_resolves_nested_sentinels_in_set_values():
    update = build_update({"meta": {"tags": array_union(1, 2)}})
    assert update == {"$set": {"meta": {"tags": [1, 2]}}}


def test_build_update_empty_payload():
    assert build_update({}) == {}


def test_resolve_for_set():
    out = resolve_for_set(
        {"a": array_union(1, 1, 2), "b": array_remove(3), "c": [{"d": array_union("x")}]}
    )
    assert out == {"a": [1, 2], "b": [], "c": [{"d": ["x"]}]}
