"""Tests for the folder tree builder."""

import itertools

from soulscape.media.tree import build_tree
from soulscape.models.media import StoredObject


def _obj(key: str, size: int = 10) -> StoredObject:
    return StoredObject(key=key, public_url=f"https://cdn.example.com/{key}", size_bytes=size)


def _shape(node):
    """Nested (name, is_leaf, children) tuples for structural comparison."""
    return (node.name, node.is_leaf, tuple(_shape(child) for child in node.children))


def test_build_tree_example():
    """Test tree shape for a small listing."""
    items = [_obj("p/a/x.png"), _obj("p/a/y.png"), _obj("p/b/z.png")]

    root = build_tree(items, "p/")

    assert [child.name for child in root.children] == ["a", "b"]
    a, b = root.children
    assert [leaf.name for leaf in a.children] == ["x.png", "y.png"]
    assert all(leaf.is_leaf for leaf in a.children)
    assert [leaf.name for leaf in b.children] == ["z.png"]
    assert b.child("z.png").item.key == "p/b/z.png"
    assert not a.is_leaf


def test_build_tree_is_order_independent():
    """Test that input order does not change the tree."""
    keys = ["p/a/x.png", "p/a/y.png", "p/b/z.png", "p/top.png", "p/a/deep/er/q.png"]
    shapes = {
        _shape(build_tree([_obj(k) for k in perm], "p/"))
        for perm in itertools.permutations(keys)
    }

    assert len(shapes) == 1


def test_prefix_without_trailing_slash():
    """Test that the prefix slash is optional."""
    root = build_tree([_obj("p/a/x.png")], "p")
    assert root.child("a").child("x.png").is_leaf


def test_keys_outside_prefix_are_ignored():
    """Test that keys outside the prefix are skipped."""
    root = build_tree([_obj("q/a/x.png"), _obj("p/a/x.png"), _obj("p/")], "p/")

    assert [child.name for child in root.children] == ["a"]


def test_node_with_object_and_children_is_not_leaf():
    """Test that a node with children is not a leaf."""
    root = build_tree([_obj("p/a"), _obj("p/a/x.png")], "p/")

    a = root.child("a")
    assert a.item is not None
    assert not a.is_leaf
    assert a.child("x.png").is_leaf


def test_flatten_yields_sorted_paths():
    """Test flatten yields relative paths in order."""
    items = [_obj("p/b/z.png"), _obj("p/a/y.png"), _obj("p/a/x.png"), _obj("p/root.png")]

    paths = [path for path, _ in build_tree(items, "p/").flatten()]

    assert paths == ["a/x.png", "a/y.png", "b/z.png", "root.png"]


def test_to_dict_renders_json_tree():
    """Test JSON rendering of the tree."""
    root = build_tree([_obj("p/a/x.png", size=42)], "p/")

    data = root.to_dict()

    assert data["name"] == ""
    folder = data["children"][0]
    assert folder["name"] == "a"
    leaf = folder["children"][0]
    assert leaf["name"] == "x.png"
    assert leaf["item"]["key"] == "p/a/x.png"
    assert leaf["item"]["cdnUrl"] == "https://cdn.example.com/p/a/x.png"
    assert leaf["item"]["size"] == 42
    assert "children" not in leaf


def test_empty_listing_gives_empty_root():
    """Test the tree of an empty listing."""
    root = build_tree([], "p/")
    assert root.children == []
    assert not root.is_leaf
