"""
Immutable document nodes.

Positions follow the usual token scheme: the document's content starts at
0, entering or leaving a non-leaf node costs one position, every character
of text and every leaf node counts one.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union, TYPE_CHECKING
import json

from inputrules.model.schema import MarkType, NodeType

if TYPE_CHECKING:
    from inputrules.model.resolvedpos import ResolvedPos


class TransformError(ValueError):
    """Raised when a step cannot be applied to a document."""


@dataclass(frozen=True)
class Mark:
    type: MarkType
    attr_items: Tuple[Tuple[str, Any], ...] = ()

    @property
    def attrs(self) -> Dict[str, Any]:
        return dict(self.attr_items)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Mark) and other.type is self.type and other.attr_items == self.attr_items

    def __hash__(self) -> int:
        return hash((id(self.type), self.attr_items))

    def __repr__(self) -> str:
        return self.type.name

    def is_in_set(self, marks: Sequence["Mark"]) -> bool:
        return any(m == self for m in marks)

    def remove_from_set(self, marks: Sequence["Mark"]) -> Tuple["Mark", ...]:
        return tuple(m for m in marks if m != self)


def sort_marks(marks: Sequence[Mark]) -> Tuple[Mark, ...]:
    return tuple(sorted(marks, key=lambda m: m.type.rank))


def _normalize(children: Sequence["Node"]) -> Tuple["Node", ...]:
    """Merge adjacent text nodes that carry the same marks."""
    out: List[Node] = []
    for child in children:
        if out and child.is_text and out[-1].is_text and out[-1].marks == child.marks:
            out[-1] = out[-1].with_text(out[-1].text + child.text)
        else:
            out.append(child)
    return tuple(out)


def _cut_children(children: Sequence["Node"], from_: int, to: int) -> List["Node"]:
    """Children between two content offsets. Text nodes are cut, other
    nodes must lie entirely inside the range."""
    result: List[Node] = []
    pos = 0
    for child in children:
        if pos >= to:
            break
        end = pos + child.node_size
        if end > from_ and pos < to:
            if child.is_text:
                result.append(child.cut(max(0, from_ - pos), min(len(child.text), to - pos)))
            elif pos < from_ or end > to:
                raise TransformError(f"Range {from_}-{to} cuts through a {child.type.name} node")
            else:
                result.append(child)
        pos = end
    return result


class Node:
    __slots__ = ("type", "attrs", "content", "marks", "text", "content_size", "node_size")

    def __init__(self, type: NodeType, attrs: Dict[str, Any], content: Sequence["Node"] = (),
                 marks: Sequence[Mark] = (), text: Optional[str] = None):
        self.type = type
        self.attrs = attrs
        self.content = _normalize(content)
        self.marks = tuple(marks)
        self.text = text
        if text is not None:
            self.content_size = 0
            self.node_size = len(text)
        else:
            self.content_size = sum(c.node_size for c in self.content)
            self.node_size = 1 if type.is_leaf else self.content_size + 2

    # -------------------------------------------------------------------------
    # Basic properties
    # -------------------------------------------------------------------------

    @property
    def is_text(self) -> bool:
        return self.text is not None

    @property
    def is_leaf(self) -> bool:
        return self.type.is_leaf

    @property
    def is_inline(self) -> bool:
        return self.type.is_inline

    @property
    def is_block(self) -> bool:
        return self.type.is_block

    @property
    def is_textblock(self) -> bool:
        return self.type.is_textblock

    @property
    def inline_content(self) -> bool:
        return self.type.inline_content

    @property
    def child_count(self) -> int:
        return len(self.content)

    @property
    def text_content(self) -> str:
        if self.is_text:
            return self.text
        return "".join(c.text_content for c in self.content)

    def child(self, index: int) -> "Node":
        return self.content[index]

    def maybe_child(self, index: int) -> Optional["Node"]:
        return self.content[index] if 0 <= index < len(self.content) else None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Node):
            return NotImplemented
        return (self.type is other.type and self.attrs == other.attrs and self.text == other.text
                and self.marks == other.marks and self.content == other.content)

    def __hash__(self) -> int:
        return hash((self.type.name, self.text, self.content))

    def __repr__(self) -> str:
        if self.is_text:
            out = json.dumps(self.text, ensure_ascii=False)
            for mark in reversed(self.marks):
                out = f"{mark.type.name}({out})"
            return out
        inner = ", ".join(repr(c) for c in self.content)
        return f"{self.type.name}({inner})" if self.content else self.type.name

    # -------------------------------------------------------------------------
    # Copies
    # -------------------------------------------------------------------------

    def copy(self, content: Sequence["Node"]) -> "Node":
        return Node(self.type, self.attrs, content, self.marks)

    def with_text(self, text: str) -> "Node":
        return Node(self.type, self.attrs, (), self.marks, text)

    def mark(self, marks: Sequence[Mark]) -> "Node":
        return Node(self.type, self.attrs, self.content, sort_marks(marks), self.text)

    def cut(self, from_: int, to: Optional[int] = None) -> "Node":
        if not self.is_text:
            raise TransformError("Only text nodes can be cut by offset")
        return self.with_text(self.text[from_:len(self.text) if to is None else to])

    def has_markup(self, type: NodeType, attrs: Optional[Dict[str, Any]] = None) -> bool:
        return self.type is type and self.attrs == type.compute_attrs(attrs)

    # -------------------------------------------------------------------------
    # Content queries
    # -------------------------------------------------------------------------

    def find_index(self, pos: int) -> Tuple[int, int]:
        """Index of the child at content offset ``pos`` and that child's start."""
        if pos == 0:
            return 0, 0
        if pos == self.content_size:
            return len(self.content), pos
        if pos > self.content_size or pos < 0:
            raise ValueError(f"Position {pos} outside of node content (size {self.content_size})")
        cur = 0
        for i, child in enumerate(self.content):
            end = cur + child.node_size
            if end >= pos:
                if end == pos:
                    return i + 1, end
                return i, cur
            cur = end
        raise ValueError(f"Position {pos} outside of node content")

    def nodes_between(self, from_: int, to: int,
                      f: Callable[["Node", int, Optional["Node"], int], Optional[bool]],
                      node_start: int = 0) -> None:
        pos = 0
        for i, child in enumerate(self.content):
            if pos >= to:
                break
            end = pos + child.node_size
            if end > from_ and f(child, node_start + pos, self, i) is not False and child.content_size:
                start = pos + 1
                child.nodes_between(max(0, from_ - start), min(child.content_size, to - start), f,
                                    node_start + start)
            pos = end

    def text_between(self, from_: int, to: int, block_separator: Optional[str] = None,
                     leaf_text: Union[None, str, Callable[["Node"], str]] = None) -> str:
        parts: List[str] = []
        first = [True]

        def visit(node: Node, pos: int, parent: Optional[Node], index: int) -> None:
            if node.is_text:
                node_text = node.text[max(from_, pos) - pos:to - pos]
            elif not node.is_leaf:
                node_text = ""
            elif leaf_text is not None:
                node_text = leaf_text(node) if callable(leaf_text) else leaf_text
            else:
                node_text = node.type.spec.leaf_text or ""
            if ((node.is_block and node.is_leaf and node_text) or node.is_textblock) and block_separator:
                if first[0]:
                    first[0] = False
                else:
                    parts.append(block_separator)
            parts.append(node_text)

        self.nodes_between(from_, to, visit)
        return "".join(parts)

    def node_at(self, pos: int) -> Optional["Node"]:
        node: Node = self
        while True:
            index, offset = node.find_index(pos)
            child = node.maybe_child(index)
            if child is None:
                return None
            if offset == pos or child.is_text:
                return child
            node = child
            pos -= offset + 1

    def resolve(self, pos: int) -> "ResolvedPos":
        from inputrules.model.resolvedpos import ResolvedPos
        return ResolvedPos.resolve(self, pos)

    def can_replace(self, from_index: int, to_index: int, replacement: Sequence["Node"] = ()) -> bool:
        children = list(self.content[:from_index]) + list(replacement) + list(self.content[to_index:])
        return self.type.valid_content(children)

    def can_replace_with(self, from_index: int, to_index: int, type: NodeType) -> bool:
        types = [c.type for c in self.content[:from_index]] + [type] + [c.type for c in self.content[to_index:]]
        return self.type.content_expr.valid(types)

    def can_append(self, other: "Node") -> bool:
        return self.type.valid_content(list(self.content) + list(other.content))

    # -------------------------------------------------------------------------
    # Replacement
    # -------------------------------------------------------------------------

    def slice_content(self, from_: int, to: int) -> Tuple["Node", ...]:
        """Nodes between two positions that share a parent."""
        node, from_, to = self._common_parent(from_, to)
        return _normalize(_cut_children(node.content, from_, to))

    def replace_content(self, from_: int, to: int, nodes: Sequence["Node"]) -> "Node":
        """Copy of this node with the range between two positions sharing a
        parent replaced by ``nodes``. Raises TransformError when the result
        would violate the schema."""
        if from_ > to or from_ < 0 or to > self.content_size:
            raise TransformError(f"Invalid replace range {from_}-{to}")
        start = 0
        for i, child in enumerate(self.content):
            if start >= to:
                break
            end = start + child.node_size
            if not child.is_text and not child.is_leaf and start < from_ and to < end:
                inner = child.replace_content(from_ - start - 1, to - start - 1, nodes)
                return self.copy(self.content[:i] + (inner,) + self.content[i + 1:])
            start = end
        children = (_cut_children(self.content, 0, from_) + list(nodes)
                    + _cut_children(self.content, to, self.content_size))
        if not self.type.valid_content(children):
            raise TransformError(f"Invalid content for node {self.type.name}: "
                                 f"{[c.type.name for c in children]}")
        return self.copy(children)

    def _common_parent(self, from_: int, to: int) -> Tuple["Node", int, int]:
        node: Node = self
        while True:
            pos = 0
            for child in node.content:
                end = pos + child.node_size
                if not child.is_text and not child.is_leaf and pos < from_ and to < end:
                    node, from_, to = child, from_ - pos - 1, to - pos - 1
                    break
                pos = end
            else:
                return node, from_, to

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"type": self.type.name}
        if self.attrs:
            out["attrs"] = dict(self.attrs)
        if self.is_text:
            out["text"] = self.text
        if self.marks:
            out["marks"] = [m.type.name for m in self.marks]
        if self.content:
            out["content"] = [c.to_dict() for c in self.content]
        return out
