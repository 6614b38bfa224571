"""Folder tree built from a flat listing of stored objects."""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, Optional

from soulscape.models.media import StoredObject


@dataclass
class FolderNode:
    """One path segment of the tree.

    A node is a leaf when it carries an object and no child was ever
    inserted below it.
    """

    name: str
    item: Optional[StoredObject] = None
    _children: Dict[str, "FolderNode"] = field(default_factory=dict, repr=False)

    @property
    def children(self) -> list["FolderNode"]:
        """Child nodes ordered by segment name."""
        return [self._children[name] for name in sorted(self._children)]

    @property
    def is_leaf(self) -> bool:
        return self.item is not None and not self._children

    def child(self, name: str) -> "FolderNode":
        return self._children[name]

    def insert(self, segments: list[str], item: StoredObject) -> None:
        node = self
        for segment in segments:
            node = node._children.setdefault(segment, FolderNode(name=segment))
        node.item = item

    def flatten(self, parent: str = "") -> Iterator[tuple[str, StoredObject]]:
        """Yield ``(relative path, object)`` pairs in sorted order."""
        for node in self.children:
            path = f"{parent}/{node.name}" if parent else node.name
            if node.item is not None:
                yield path, node.item
            yield from node.flatten(path)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"name": self.name}
        if self.item is not None:
            data["item"] = self.item.model_dump(by_alias=True, mode="json")
        if self._children:
            data["children"] = [node.to_dict() for node in self.children]
        return data


def build_tree(items: Iterable[StoredObject], prefix: str) -> FolderNode:
    """Arrange stored objects into folders below ``prefix``.

    Args:
        items: Stored objects, in any order
        prefix: Common key prefix to strip (e.g. ``soulscape/image/``)

    Returns:
        Root node; the result does not depend on the order of ``items``
    """
    root = FolderNode(name="")
    normalized = prefix if not prefix or prefix.endswith("/") else f"{prefix}/"
    for item in items:
        if not item.key.startswith(normalized):
            continue
        segments = [s for s in item.key[len(normalized):].split("/") if s]
        if segments:
            root.insert(segments, item)
    return root
