"""
Rule Builders

Helpers for the two structural rule shapes: wrapping the current textblock
in a new parent (lists, blockquotes) and changing the type of the current
textblock (headings, code blocks). Both build the whole transaction first
and decline, without side effects, when the schema does not allow the
change at the cursor.
"""
from __future__ import annotations
from typing import Any, Callable, Dict, Mapping, Optional, Pattern, Union
import re

from inputrules.inputrules import Accepted, Computed, Declined, HandlerResult, InputRule
from inputrules.model.node import Node
from inputrules.model.schema import NodeType
from inputrules.model.state import EditorState
from inputrules.model.transform import can_join, find_wrapping

AttrsInput = Union[None, Mapping[str, Any], Callable[["re.Match[str]"], Optional[Mapping[str, Any]]]]
JoinPredicate = Callable[["re.Match[str]", Node], bool]


def _node_type(state: EditorState, node_type: Union[str, NodeType]) -> NodeType:
    return state.schema.node_type(node_type) if isinstance(node_type, str) else node_type


def _attrs(get_attrs: AttrsInput, match: "re.Match[str]") -> Optional[Dict[str, Any]]:
    attrs = get_attrs(match) if callable(get_attrs) else get_attrs
    return dict(attrs) if attrs is not None else None


def wrapping_input_rule(pattern: Union[str, Pattern[str]], node_type: Union[str, NodeType],
                        get_attrs: AttrsInput = None, join_predicate: Optional[JoinPredicate] = None,
                        name: str = "") -> InputRule:
    """Rule that wraps the textblock in a ``node_type`` node when ``pattern``
    is typed. When the node right before the new wrapper has the same type
    the two are joined, unless ``join_predicate(match, node_before)`` says
    otherwise."""

    def handler(state: EditorState, match: "re.Match[str]", start: int, end: int) -> HandlerResult:
        target = _node_type(state, node_type)
        attrs = _attrs(get_attrs, match)
        tr = state.tr.delete(start, end)
        block_range = tr.doc.resolve(start).block_range()
        wrapping = find_wrapping(block_range, target, attrs) if block_range is not None else None
        if not wrapping:
            return Declined(f"cannot wrap in {target.name} here")
        wrap_step = len(tr.steps)
        tr.wrap(block_range, wrapping)
        # The wrapper now starts where the wrapped range started.
        join_pos = tr.mapping.slice(wrap_step).map(block_range.start, -1)
        before = tr.doc.resolve(join_pos).node_before
        if (before is not None and before.type is target and can_join(tr.doc, join_pos)
                and (join_predicate is None or join_predicate(match, before))):
            tr.join(join_pos)
        return Accepted(tr)

    return InputRule(pattern, Computed(handler), name)


def textblock_type_input_rule(pattern: Union[str, Pattern[str]], node_type: Union[str, NodeType],
                              get_attrs: AttrsInput = None, name: str = "") -> InputRule:
    """Rule that changes the type of the textblock when ``pattern`` is
    typed in it."""

    def handler(state: EditorState, match: "re.Match[str]", start: int, end: int) -> HandlerResult:
        target = _node_type(state, node_type)
        rp = state.doc.resolve(start)
        attrs = _attrs(get_attrs, match)
        if rp.depth < 1 or not rp.node(-1).can_replace_with(rp.index(-1), rp.index_after(-1), target):
            return Declined(f"{target.name} not allowed in {rp.node(-1).type.name if rp.depth else 'top level'}")
        tr = state.tr.delete(start, end).set_block_type(start, start, target, attrs)
        return Accepted(tr)

    return InputRule(pattern, Computed(handler), name)
