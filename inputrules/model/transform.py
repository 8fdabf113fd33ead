"""
Steps and transforms.

A step replaces the content between two positions that share a parent
with a closed run of nodes. Every step can be inverted against the
document it was applied to, which is what makes a recorded transform
reversible without the rest of the editing history.
"""
from __future__ import annotations
from collections import deque
from dataclasses import dataclass
from typing import Any, Deque, Dict, List, Optional, Sequence, Tuple, Union
import logging

from inputrules.model.node import Node, TransformError
from inputrules.model.resolvedpos import NodeRange
from inputrules.model.schema import ContentExpr, NodeType

logger = logging.getLogger(__name__)

# (start, old_size, new_size) in the coordinates of the document before the step
MapRange = Tuple[int, int, int]


# =============================================================================
# Position mapping
# =============================================================================

class StepMap:
    def __init__(self, ranges: Sequence[MapRange] = ()):
        self.ranges = tuple(ranges)

    def map(self, pos: int, assoc: int = 1) -> int:
        diff = 0
        for start, old_size, new_size in self.ranges:
            if start > pos:
                break
            end = start + old_size
            if pos <= end:
                if not old_size:
                    side = assoc
                elif pos == start:
                    side = -1
                elif pos == end:
                    side = 1
                else:
                    side = assoc
                return start + diff + (0 if side < 0 else new_size)
            diff += new_size - old_size
        return pos + diff

    def invert(self) -> "StepMap":
        out: List[MapRange] = []
        diff = 0
        for start, old_size, new_size in self.ranges:
            out.append((start + diff, new_size, old_size))
            diff += new_size - old_size
        return StepMap(out)


class Mapping:
    def __init__(self, maps: Sequence[StepMap] = ()):
        self.maps: List[StepMap] = list(maps)

    def append_map(self, step_map: StepMap) -> None:
        self.maps.append(step_map)

    def slice(self, from_: int = 0, to: Optional[int] = None) -> "Mapping":
        return Mapping(self.maps[from_:to])

    def map(self, pos: int, assoc: int = 1) -> int:
        for step_map in self.maps:
            pos = step_map.map(pos, assoc)
        return pos


# =============================================================================
# Steps
# =============================================================================

@dataclass
class StepResult:
    doc: Optional[Node] = None
    failed: Optional[str] = None


class ReplaceStep:
    """Replace ``[from_, to)`` with ``content``."""

    def __init__(self, from_: int, to: int, content: Sequence[Node] = ()):
        self.from_ = from_
        self.to = to
        self.content = tuple(content)
        self.size = sum(n.node_size for n in self.content)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.from_}, {self.to}, {list(self.content)})"

    def apply(self, doc: Node) -> StepResult:
        try:
            return StepResult(doc=doc.replace_content(self.from_, self.to, self.content))
        except TransformError as e:
            return StepResult(failed=str(e))

    def invert(self, doc: Node) -> "ReplaceStep":
        return ReplaceStep(self.from_, self.from_ + self.size, doc.slice_content(self.from_, self.to))

    def get_map(self) -> StepMap:
        return StepMap([(self.from_, self.to - self.from_, self.size)])


class RestructureStep(ReplaceStep):
    """A replacement that keeps the replaced content inside the new nodes
    (wrapping, joining, retyping). ``ranges`` describe only the structural
    tokens that appear or disappear, so positions inside the kept content
    map through unchanged."""

    def __init__(self, from_: int, to: int, content: Sequence[Node], ranges: Sequence[MapRange]):
        super().__init__(from_, to, content)
        self.ranges = tuple(ranges)
        delta = sum(new - old for _, old, new in self.ranges)
        if delta != self.size - (to - from_):
            raise ValueError(f"Step map ranges {self.ranges} do not account for size change")

    def invert(self, doc: Node) -> "RestructureStep":
        return RestructureStep(self.from_, self.from_ + self.size, doc.slice_content(self.from_, self.to),
                               StepMap(self.ranges).invert().ranges)

    def get_map(self) -> StepMap:
        return StepMap(self.ranges)


Step = Union[ReplaceStep, RestructureStep]


# =============================================================================
# Structure helpers
# =============================================================================

@dataclass(frozen=True)
class Wrapper:
    type: NodeType
    attrs: Optional[Dict[str, Any]] = None


@dataclass
class _Candidate:
    expr: ContentExpr
    prefix: List[NodeType]
    type: Optional[NodeType] = None
    via: Optional["_Candidate"] = None


def _wrap_chain(expr: ContentExpr, prefix: Sequence[NodeType], target: NodeType) -> Optional[List[NodeType]]:
    """Shortest list of wrapper types that lets ``target`` appear after
    ``prefix`` in content matching ``expr``."""
    seen = set()
    active: Deque[_Candidate] = deque([_Candidate(expr, list(prefix))])
    while active:
        current = active.popleft()
        if current.expr.allows_prefix(current.prefix + [target]):
            result: List[NodeType] = []
            node: Optional[_Candidate] = current
            while node is not None and node.type is not None:
                result.append(node.type)
                node = node.via
            return list(reversed(result))
        for candidate in target.schema.nodes.values():
            if candidate.is_text or candidate.is_leaf or candidate.has_required_attrs() or candidate.name in seen:
                continue
            if not current.expr.allows_prefix(current.prefix + [candidate]):
                continue
            # Intermediate wrappers must be complete with a single child.
            if current.type is not None and not current.expr.valid(current.prefix + [candidate]):
                continue
            seen.add(candidate.name)
            active.append(_Candidate(candidate.content_expr, [], candidate, current))
    return None


def _find_wrapping_outside(block_range: NodeRange, node_type: NodeType) -> Optional[List[NodeType]]:
    parent = block_range.parent
    prefix = [c.type for c in parent.content[:block_range.start_index]]
    around = _wrap_chain(parent.type.content_expr, prefix, node_type)
    if around is None:
        return None
    outer = around[0] if around else node_type
    return around if parent.can_replace_with(block_range.start_index, block_range.end_index, outer) else None


def _find_wrapping_inside(block_range: NodeRange, node_type: NodeType) -> Optional[List[NodeType]]:
    parent = block_range.parent
    inner = parent.child(block_range.start_index)
    inside = _wrap_chain(node_type.content_expr, [], inner.type)
    if inside is None:
        return None
    last = inside[-1] if inside else node_type
    wrapped = [parent.child(i).type for i in range(block_range.start_index, block_range.end_index)]
    if not last.content_expr.valid(wrapped):
        return None
    return inside


def find_wrapping(block_range: NodeRange, node_type: NodeType,
                  attrs: Optional[Dict[str, Any]] = None) -> Optional[List[Wrapper]]:
    """Wrappers needed to put the blocks in ``block_range`` inside a node of
    ``node_type``, outermost first, or None when no valid wrapping exists."""
    around = _find_wrapping_outside(block_range, node_type)
    inner = _find_wrapping_inside(block_range, node_type) if around is not None else None
    if inner is None:
        return None
    return [Wrapper(t) for t in around] + [Wrapper(node_type, attrs)] + [Wrapper(t) for t in inner]


def can_join(doc: Node, pos: int) -> bool:
    rp = doc.resolve(pos)
    before, after = rp.node_before, rp.node_after
    if before is None or after is None or before.is_leaf or not before.can_append(after):
        return False
    index = rp.index()
    return rp.parent.can_replace(index, index + 1)


def can_change_type(doc: Node, pos: int, node_type: NodeType) -> bool:
    rp = doc.resolve(pos)
    index = rp.index()
    return rp.parent.can_replace_with(index, index + 1, node_type)


# =============================================================================
# Transform
# =============================================================================

NodeInput = Union[Node, Sequence[Node]]


def _as_nodes(content: Optional[NodeInput]) -> Tuple[Node, ...]:
    if content is None:
        return ()
    if isinstance(content, Node):
        return (content,)
    return tuple(content)


class Transform:
    """Accumulates steps against a starting document. ``docs[i]`` is the
    document as it was right before ``steps[i]`` was applied."""

    def __init__(self, doc: Node):
        self.doc = doc
        self.steps: List[Step] = []
        self.docs: List[Node] = []
        self.mapping = Mapping()

    @property
    def before(self) -> Node:
        return self.docs[0] if self.docs else self.doc

    @property
    def doc_changed(self) -> bool:
        return bool(self.steps)

    def step(self, step: Step) -> "Transform":
        result = self.maybe_step(step)
        if result.failed:
            raise TransformError(result.failed)
        return self

    def maybe_step(self, step: Step) -> StepResult:
        result = step.apply(self.doc)
        if result.failed:
            logger.debug(f"Step {step!r} failed: {result.failed}")
        else:
            self.add_step(step, result.doc)
        return result

    def add_step(self, step: Step, doc: Node) -> None:
        self.docs.append(self.doc)
        self.steps.append(step)
        self.mapping.append_map(step.get_map())
        self.doc = doc

    def replace(self, from_: int, to: Optional[int] = None, content: Optional[NodeInput] = None) -> "Transform":
        to = from_ if to is None else to
        nodes = _as_nodes(content)
        if from_ == to and not nodes:
            return self
        return self.step(ReplaceStep(from_, to, nodes))

    def replace_with(self, from_: int, to: int, content: NodeInput) -> "Transform":
        return self.replace(from_, to, content)

    def delete(self, from_: int, to: int) -> "Transform":
        return self.replace(from_, to)

    def insert(self, pos: int, content: NodeInput) -> "Transform":
        return self.replace(pos, pos, content)

    def wrap(self, block_range: NodeRange, wrappers: Sequence[Wrapper]) -> "Transform":
        content: Tuple[Node, ...] = tuple(block_range.parent.content[block_range.start_index:block_range.end_index])
        for wrapper in reversed(wrappers):
            if not wrapper.type.valid_content(content):
                raise TransformError(f"Wrapper {wrapper.type.name} cannot hold {[c.type.name for c in content]}")
            content = (wrapper.type.create(wrapper.attrs, content),)
        depth = len(wrappers)
        start, end = block_range.start, block_range.end
        return self.step(RestructureStep(start, end, content, [(start, 0, depth), (end, 0, depth)]))

    def join(self, pos: int) -> "Transform":
        rp = self.doc.resolve(pos)
        before, after = rp.node_before, rp.node_after
        if before is None or after is None or before.is_text or after.is_text:
            raise TransformError(f"Nothing to join at {pos}")
        merged = before.copy(before.content + after.content)
        return self.step(RestructureStep(pos - before.node_size, pos + after.node_size, [merged],
                                         [(pos - 1, 2, 0)]))

    def split(self, pos: int, type_after: Optional[NodeType] = None) -> "Transform":
        """Split the textblock around ``pos`` into two blocks."""
        rp = self.doc.resolve(pos)
        block = rp.parent
        if not block.is_textblock:
            raise TransformError(f"Cannot split a {block.type.name} node")
        start, before = rp.start(), rp.before()
        left = block.copy(block.slice_content(0, pos - start))
        after_type = type_after or block.type
        right = Node(after_type, after_type.compute_attrs(block.attrs if after_type is block.type else None),
                     block.slice_content(pos - start, block.content_size))
        return self.step(RestructureStep(before, before + block.node_size, [left, right], [(pos, 0, 2)]))

    def clear_incompatible(self, pos: int, node_type: NodeType) -> "Transform":
        node = self.doc.node_at(pos)
        allowed = node_type.content_expr.names()
        kept: List[Node] = []
        changed = False
        for child in node.content:
            if child.type.name not in allowed:
                changed = True
                continue
            marks = [m for m in child.marks if node_type.allows_mark_type(m.type)]
            if len(marks) != len(child.marks):
                changed = True
                child = child.mark(marks)
            kept.append(child)
        if changed:
            self.replace(pos + 1, pos + 1 + node.content_size, kept)
        return self

    def set_block_type(self, from_: int, to: Optional[int], node_type: NodeType,
                       attrs: Optional[Dict[str, Any]] = None) -> "Transform":
        """Retype every textblock between ``from_`` and ``to``."""
        if not node_type.is_textblock:
            raise ValueError("Type given to set_block_type should be a textblock")
        to = from_ if to is None else to
        targets: List[int] = []

        def visit(node: Node, pos: int, parent: Optional[Node], index: int) -> bool:
            if node.is_textblock:
                if not node.has_markup(node_type, attrs) and can_change_type(self.doc, pos, node_type):
                    targets.append(pos)
                return False
            return True

        self.doc.nodes_between(from_, to, visit)
        # Later blocks first so earlier positions stay valid.
        for pos in reversed(targets):
            self.clear_incompatible(pos, node_type)
            node = self.doc.node_at(pos)
            retyped = node_type.create(attrs, node.content, node.marks)
            self.step(RestructureStep(pos, pos + node.node_size, [retyped], []))
        return self
