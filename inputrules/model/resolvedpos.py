from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from inputrules.model.node import Mark, Node


class ResolvedPos:
    """A position with its ancestor path. ``path[d]`` holds the ancestor at
    depth ``d``, the index into it, and the absolute start of that child."""

    def __init__(self, pos: int, path: List[Tuple[Node, int, int]], parent_offset: int):
        self.pos = pos
        self.path = path
        self.parent_offset = parent_offset
        self.depth = len(path) - 1

    @classmethod
    def resolve(cls, doc: Node, pos: int) -> "ResolvedPos":
        if not 0 <= pos <= doc.content_size:
            raise ValueError(f"Position {pos} out of range (document size {doc.content_size})")
        path: List[Tuple[Node, int, int]] = []
        start = 0
        parent_offset = pos
        node = doc
        while True:
            index, offset = node.find_index(parent_offset)
            rem = parent_offset - offset
            path.append((node, index, start + offset))
            if not rem:
                break
            child = node.child(index)
            if child.is_text:
                break
            node = child
            parent_offset = rem - 1
            start += offset + 1
        return cls(pos, path, parent_offset)

    def __repr__(self) -> str:
        return f"<ResolvedPos {self.pos} depth={self.depth}>"

    def _depth(self, depth: Optional[int]) -> int:
        if depth is None:
            return self.depth
        return self.depth + depth if depth < 0 else depth

    @property
    def parent(self) -> Node:
        return self.node(self.depth)

    @property
    def doc(self) -> Node:
        return self.node(0)

    @property
    def text_offset(self) -> int:
        return self.pos - self.path[-1][2]

    def node(self, depth: Optional[int] = None) -> Node:
        return self.path[self._depth(depth)][0]

    def index(self, depth: Optional[int] = None) -> int:
        return self.path[self._depth(depth)][1]

    def index_after(self, depth: Optional[int] = None) -> int:
        depth = self._depth(depth)
        return self.index(depth) + (0 if depth == self.depth and not self.text_offset else 1)

    def start(self, depth: Optional[int] = None) -> int:
        depth = self._depth(depth)
        return 0 if depth == 0 else self.path[depth - 1][2] + 1

    def end(self, depth: Optional[int] = None) -> int:
        depth = self._depth(depth)
        return self.start(depth) + self.node(depth).content_size

    def before(self, depth: Optional[int] = None) -> int:
        depth = self._depth(depth)
        if not depth:
            raise ValueError("There is no position before the top-level node")
        return self.pos if depth == self.depth + 1 else self.path[depth - 1][2]

    def after(self, depth: Optional[int] = None) -> int:
        depth = self._depth(depth)
        if not depth:
            raise ValueError("There is no position after the top-level node")
        if depth == self.depth + 1:
            return self.pos
        return self.path[depth - 1][2] + self.node(depth).node_size

    @property
    def node_after(self) -> Optional[Node]:
        parent, index = self.parent, self.index()
        if index == parent.child_count:
            return None
        offset = self.text_offset
        child = parent.child(index)
        return child.cut(offset) if offset else child

    @property
    def node_before(self) -> Optional[Node]:
        index = self.index()
        offset = self.text_offset
        if offset:
            return self.parent.child(index).cut(0, offset)
        return None if index == 0 else self.parent.child(index - 1)

    def marks(self) -> Tuple[Mark, ...]:
        """Marks that text inserted at this position would get."""
        parent, index = self.parent, self.index()
        if parent.content_size == 0:
            return ()
        if self.text_offset:
            return parent.child(index).marks
        main, other = parent.maybe_child(index - 1), parent.maybe_child(index)
        if main is None:
            main, other = other, main
        marks = main.marks
        for mark in main.marks:
            if not mark.type.spec.inclusive and (other is None or not mark.is_in_set(other.marks)):
                marks = mark.remove_from_set(marks)
        return marks

    def marks_across(self, end: "ResolvedPos") -> Optional[Tuple[Mark, ...]]:
        after = self.parent.maybe_child(self.index())
        if after is None or not after.is_inline:
            return None
        marks = after.marks
        following = end.parent.maybe_child(end.index())
        for mark in after.marks:
            if not mark.type.spec.inclusive and (following is None or not mark.is_in_set(following.marks)):
                marks = mark.remove_from_set(marks)
        return marks

    def block_range(self, other: Optional["ResolvedPos"] = None,
                    pred: Optional[Callable[[Node], bool]] = None) -> Optional["NodeRange"]:
        """Range of whole block nodes around this position (and ``other``)."""
        other = other or self
        if other.pos < self.pos:
            return other.block_range(self, pred)
        start_depth = self.depth - (1 if self.parent.inline_content or self.pos == other.pos else 0)
        for depth in range(start_depth, -1, -1):
            if other.pos <= self.end(depth) and (pred is None or pred(self.node(depth))):
                return NodeRange(self, other, depth)
        return None


@dataclass
class NodeRange:
    from_: ResolvedPos
    to: ResolvedPos
    depth: int

    @property
    def start(self) -> int:
        return self.from_.before(self.depth + 1)

    @property
    def end(self) -> int:
        return self.to.after(self.depth + 1)

    @property
    def parent(self) -> Node:
        return self.from_.node(self.depth)

    @property
    def start_index(self) -> int:
        return self.from_.index(self.depth)

    @property
    def end_index(self) -> int:
        return self.to.index_after(self.depth)
