"""
Document Schema

Node and mark types plus the content expressions that decide which
children a node may hold. Content expressions are a whitespace separated
sequence of terms, each a node type name or group name with an optional
``?``, ``*`` or ``+`` quantifier (``"paragraph block*"``, ``"inline*"``).
"""
from __future__ import annotations
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional, Sequence, Set, Tuple, TYPE_CHECKING
import re

if TYPE_CHECKING:
    from inputrules.model.node import Mark, Node

_TERM = re.compile(r"^([\w|]+)([?*+]?)$")


# =============================================================================
# Specs
# =============================================================================

@dataclass
class NodeSpec:
    content: str = ""
    group: str = ""
    attrs: Dict[str, Dict[str, Any]] = field(default_factory=dict)  # name -> {"default": value}
    inline: bool = False
    code: bool = False                 # verbatim block: no input rules, no marks
    marks: Optional[str] = None        # None = all marks allowed, "" = none
    leaf_text: Optional[str] = None    # text_between stand-in for leaf nodes


@dataclass
class MarkSpec:
    attrs: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    inclusive: bool = True


# =============================================================================
# Content expressions
# =============================================================================

@dataclass(frozen=True)
class ContentTerm:
    names: FrozenSet[str]
    min: int
    max: Optional[int]  # None = unbounded


class ContentExpr:
    """Sequence of terms matched as a small NFA over child node types.

    A state is ``(term_index, seen)`` where ``seen`` is 0 or 1. Since every
    quantifier has min 0/1 and max 1/unbounded, that is all we need to track.
    """

    def __init__(self, terms: Sequence[ContentTerm]):
        self.terms = tuple(terms)

    @property
    def is_empty(self) -> bool:
        return not self.terms

    def _closure(self, states: Set[Tuple[int, int]]) -> Set[Tuple[int, int]]:
        result = set(states)
        pending = list(states)
        while pending:
            i, seen = pending.pop()
            if i < len(self.terms) and seen >= self.terms[i].min:
                nxt = (i + 1, 0)
                if nxt not in result:
                    result.add(nxt)
                    pending.append(nxt)
        return result

    def _step(self, states: Set[Tuple[int, int]], name: str) -> Set[Tuple[int, int]]:
        out: Set[Tuple[int, int]] = set()
        for i, seen in self._closure(states):
            if i >= len(self.terms):
                continue
            term = self.terms[i]
            if name in term.names and (term.max is None or seen < term.max):
                out.add((i, 1))
        return out

    def _run(self, types: Iterable["NodeType"]) -> Set[Tuple[int, int]]:
        states = {(0, 0)}
        for t in types:
            states = self._step(states, t.name)
            if not states:
                break
        return states

    def allows_prefix(self, types: Sequence["NodeType"]) -> bool:
        """True when ``types`` can be extended into valid content."""
        return bool(self._run(types))

    def valid(self, types: Sequence["NodeType"]) -> bool:
        states = self._run(types)
        return any(i == len(self.terms) for i, _ in self._closure(states))

    def names(self) -> FrozenSet[str]:
        out: Set[str] = set()
        for term in self.terms:
            out |= term.names
        return frozenset(out)


def _parse_content(expr: str, groups: Mapping[str, List[str]], known: Iterable[str]) -> ContentExpr:
    known = set(known)
    terms: List[ContentTerm] = []
    for token in expr.split():
        m = _TERM.match(token)
        if not m:
            raise ValueError(f"Invalid content expression term: {token!r}")
        names: Set[str] = set()
        for name in m.group(1).split("|"):
            if name in groups:
                names.update(groups[name])
            elif name in known:
                names.add(name)
            else:
                raise ValueError(f"Unknown node type or group in content expression: {name!r}")
        quant = m.group(2)
        lo = 1 if quant in ("", "+") else 0
        hi = 1 if quant in ("", "?") else None
        terms.append(ContentTerm(frozenset(names), lo, hi))
    return ContentExpr(terms)


# =============================================================================
# Types
# =============================================================================

class NodeType:
    def __init__(self, name: str, spec: NodeSpec, schema: "Schema"):
        self.name = name
        self.spec = spec
        self.schema = schema
        self.groups = spec.group.split()
        self.content_expr = ContentExpr(())

    def __repr__(self) -> str:
        return f"<NodeType {self.name}>"

    @property
    def is_text(self) -> bool:
        return self.name == "text"

    @property
    def is_inline(self) -> bool:
        return self.spec.inline or self.is_text

    @property
    def is_block(self) -> bool:
        return not self.is_inline

    @property
    def is_leaf(self) -> bool:
        return self.content_expr.is_empty

    @property
    def inline_content(self) -> bool:
        if self.content_expr.is_empty:
            return False
        first = self.content_expr.terms[0].names
        return all(self.schema.nodes[n].is_inline for n in first)

    @property
    def is_textblock(self) -> bool:
        return self.is_block and self.inline_content

    def has_required_attrs(self) -> bool:
        return any("default" not in a for a in self.spec.attrs.values())

    def compute_attrs(self, attrs: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        attrs = dict(attrs or {})
        out: Dict[str, Any] = {}
        for name, a in self.spec.attrs.items():
            if name in attrs:
                out[name] = attrs[name]
            elif "default" in a:
                out[name] = a["default"]
            else:
                raise ValueError(f"No value supplied for attribute {name!r} on node type {self.name}")
        return out

    def valid_content(self, children: Sequence["Node"]) -> bool:
        return self.content_expr.valid([c.type for c in children])

    def allows_mark_type(self, mark_type: "MarkType") -> bool:
        if self.spec.marks is None:
            return True
        return mark_type.name in self.spec.marks.split()

    def create(self, attrs: Optional[Mapping[str, Any]] = None, content: Sequence["Node"] = (),
               marks: Sequence["Mark"] = ()) -> "Node":
        from inputrules.model.node import Node
        if self.is_text:
            raise ValueError("Text nodes are created with Schema.text")
        return Node(self, self.compute_attrs(attrs), tuple(content), tuple(marks))


class MarkType:
    def __init__(self, name: str, spec: MarkSpec, rank: int, schema: "Schema"):
        self.name = name
        self.spec = spec
        self.rank = rank
        self.schema = schema

    def __repr__(self) -> str:
        return f"<MarkType {self.name}>"

    def create(self, attrs: Optional[Mapping[str, Any]] = None) -> "Mark":
        from inputrules.model.node import Mark
        values = dict(attrs or {})
        for name, a in self.spec.attrs.items():
            if name not in values:
                if "default" not in a:
                    raise ValueError(f"No value supplied for attribute {name!r} on mark type {self.name}")
                values[name] = a["default"]
        return Mark(self, tuple(sorted(values.items())))


class Schema:
    """Ordered collection of node and mark types. The first node type listed
    must be the top-level ``doc`` type."""

    def __init__(self, nodes: Mapping[str, NodeSpec], marks: Optional[Mapping[str, MarkSpec]] = None):
        if "text" not in nodes:
            raise ValueError("Schema must define a 'text' node type")
        self.nodes: Dict[str, NodeType] = {name: NodeType(name, spec, self) for name, spec in nodes.items()}
        self.marks: Dict[str, MarkType] = {
            name: MarkType(name, spec, i, self) for i, (name, spec) in enumerate((marks or {}).items())
        }
        groups: Dict[str, List[str]] = {}
        for t in self.nodes.values():
            for g in t.groups:
                groups.setdefault(g, []).append(t.name)
        for t in self.nodes.values():
            t.content_expr = _parse_content(t.spec.content, groups, self.nodes)
        self.top_node_type = next(iter(self.nodes.values()))

    def node_type(self, name: str) -> NodeType:
        try:
            return self.nodes[name]
        except KeyError:
            raise ValueError(f"Unknown node type: {name}") from None

    def mark_type(self, name: str) -> MarkType:
        try:
            return self.marks[name]
        except KeyError:
            raise ValueError(f"Unknown mark type: {name}") from None

    def node(self, name: str, attrs: Optional[Mapping[str, Any]] = None, content: Sequence["Node"] = (),
             marks: Sequence["Mark"] = ()) -> "Node":
        return self.node_type(name).create(attrs, content, marks)

    def text(self, text: str, marks: Sequence["Mark"] = ()) -> "Node":
        from inputrules.model.node import Node, sort_marks
        if not text:
            raise ValueError("Empty text nodes are not allowed")
        return Node(self.nodes["text"], {}, (), sort_marks(marks), text)

    def mark(self, name: str, attrs: Optional[Mapping[str, Any]] = None) -> "Mark":
        return self.mark_type(name).create(attrs)


@lru_cache(maxsize=None)
def basic_schema() -> Schema:
    """Schema with the usual rich-text blocks: paragraphs, headings,
    blockquotes, code blocks and bullet/ordered lists. Always the same
    instance, since nodes compare their types by identity."""
    return Schema(
        nodes={
            "doc": NodeSpec(content="block+"),
            "paragraph": NodeSpec(content="inline*", group="block"),
            "blockquote": NodeSpec(content="block+", group="block"),
            "horizontal_rule": NodeSpec(group="block"),
            "heading": NodeSpec(content="inline*", group="block", attrs={"level": {"default": 1}}),
            "code_block": NodeSpec(content="text*", group="block", code=True, marks=""),
            "ordered_list": NodeSpec(content="list_item+", group="block", attrs={"order": {"default": 1}}),
            "bullet_list": NodeSpec(content="list_item+", group="block"),
            "list_item": NodeSpec(content="paragraph block*"),
            "text": NodeSpec(group="inline"),
            "image": NodeSpec(group="inline", inline=True, attrs={"src": {}, "alt": {"default": None}}),
            "hard_break": NodeSpec(group="inline", inline=True, leaf_text="\n"),
        },
        marks={
            "link": MarkSpec(attrs={"href": {}}, inclusive=False),
            "em": MarkSpec(),
            "strong": MarkSpec(),
            "code": MarkSpec(),
        },
    )
