from typing import Optional, Sequence, Tuple

from inputrules import EditorSession, InputRule, InputRules, InputRulesConfig
from inputrules.model import EditorState, Node, TextSelection, basic_schema

schema = basic_schema()


def _inline(content):
    return [schema.text(c) if isinstance(c, str) else c for c in content if c != ""]


def doc(*blocks: Node) -> Node:
    return schema.node("doc", None, blocks)


def p(*content) -> Node:
    return schema.node("paragraph", None, _inline(content))


def h(level: int, *content) -> Node:
    return schema.node("heading", {"level": level}, _inline(content))


def code_block(text: str = "") -> Node:
    return schema.node("code_block", None, _inline([text]))


def blockquote(*blocks: Node) -> Node:
    return schema.node("blockquote", None, blocks)


def li(*blocks: Node) -> Node:
    return schema.node("list_item", None, blocks)


def ul(*items: Node) -> Node:
    return schema.node("bullet_list", None, items)


def ol(*items: Node, order: int = 1) -> Node:
    return schema.node("ordered_list", {"order": order}, items)


def em(text: str) -> Node:
    return schema.text(text, [schema.mark("em")])


def img(src: str = "pic.png") -> Node:
    return schema.node("image", {"src": src})


def end_of(d: Node) -> int:
    """Position at the end of the last textblock."""
    rp = d.resolve(d.content_size)
    while not rp.parent.inline_content and rp.node_before is not None:
        rp = d.resolve(rp.pos - 1)
    return rp.pos


def make_session(d: Node, rules: Sequence[InputRule], pos: Optional[int] = None,
                 config: Optional[InputRulesConfig] = None, **kwargs) -> Tuple[EditorSession, InputRules]:
    plugin = InputRules(rules, config)
    pos = end_of(d) if pos is None else pos
    state = EditorState.create(d, TextSelection.cursor(pos), [plugin])
    return EditorSession(state, **kwargs), plugin
