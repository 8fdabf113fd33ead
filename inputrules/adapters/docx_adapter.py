from __future__ import annotations
from typing import Any, Dict, List, Optional
import re

from docx import Document
from docx.shared import Pt

from inputrules.model.node import Node
from inputrules.model.schema import Schema

CODE_FONT = "Courier New"

_LIST_STYLES = {"List Bullet": "bullet_list", "List Number": "ordered_list"}
ORDERED_STYLE = "List Number"


def _inline(schema: Schema, paragraph) -> List[Node]:
    nodes: List[Node] = []
    for run in paragraph.runs:
        if not run.text:
            continue
        marks = []
        if run.bold:
            marks.append(schema.mark("strong"))
        if run.italic:
            marks.append(schema.mark("em"))
        if run.font.name == CODE_FONT:
            marks.append(schema.mark("code"))
        nodes.append(schema.text(run.text, marks))
    return nodes


def _list_start(src, paragraph) -> Optional[int]:
    """Start number of a list restarted on this paragraph, if any."""
    ppr = paragraph._p.pPr
    num_pr = ppr.numPr if ppr is not None else None
    if num_pr is None or num_pr.numId is None:
        return None
    try:
        num = src.part.numbering_part.element.num_having_numId(num_pr.numId.val)
    except KeyError:
        return None
    for override in num.lvlOverride_lst:
        if override.ilvl == 0 and override.startOverride is not None:
            return override.startOverride.val
    return None


def load_docx(docx_path: str, schema: Schema) -> Node:
    """Build a document tree from a .docx, mapping paragraph styles to
    headings, list items and blockquotes."""
    src = Document(docx_path)
    blocks: List[Node] = []
    group_type: Optional[str] = None
    group_attrs: Optional[Dict[str, Any]] = None
    group: List[Node] = []

    def flush() -> None:
        nonlocal group_type, group_attrs, group
        if group_type:
            blocks.append(schema.node(group_type, group_attrs, group))
        group_type, group_attrs, group = None, None, []

    for p in src.paragraphs:
        style = p.style.name if p.style else ""
        m = re.match(r"Heading (\d)", style)
        if m:
            flush()
            level = min(max(int(m.group(1)), 1), 6)
            blocks.append(schema.node("heading", {"level": level}, _inline(schema, p)))
            continue
        para = schema.node("paragraph", None, _inline(schema, p))
        wanted = _LIST_STYLES.get(style) or ("blockquote" if style in ("Quote", "Intense Quote") else None)
        if wanted is None:
            flush()
            blocks.append(para)
            continue
        start = _list_start(src, p) if style == ORDERED_STYLE else None
        if wanted != group_type or start is not None:
            flush()
            group_type = wanted
            group_attrs = {"order": start} if start is not None else None
        group.append(schema.node("list_item", None, [para]) if wanted in _LIST_STYLES.values() else para)
    flush()

    if not blocks:
        blocks.append(schema.node("paragraph"))
    return schema.node(schema.top_node_type.name, None, blocks)


def _add_runs(paragraph, block: Node, code: bool = False) -> None:
    for child in block.content:
        if child.is_text:
            run = paragraph.add_run(child.text)
            names = {m.type.name for m in child.marks}
            run.bold = "strong" in names or None
            run.italic = "em" in names or None
            if code or "code" in names:
                run.font.name = CODE_FONT
                run.font.size = Pt(10)
        elif child.type.name == "hard_break":
            paragraph.add_run().add_break()
        else:
            paragraph.add_run(child.attrs.get("alt") or "[image]")


def _restart_numbering(out, start: int) -> int:
    """New instance of the numbered-list definition that starts at ``start``."""
    style_num_id = out.styles[ORDERED_STYLE].element.pPr.numPr.numId.val
    numbering = out.part.numbering_part.element
    abstract_id = numbering.num_having_numId(style_num_id).abstractNumId.val
    num = numbering.add_num(abstract_id)
    num.add_lvlOverride(ilvl=0).add_startOverride(start)
    return num.numId


def _set_numbering(paragraph, num_id: int) -> None:
    num_pr = paragraph._p.get_or_add_pPr().get_or_add_numPr()
    num_pr.get_or_add_ilvl().val = 0
    num_pr.get_or_add_numId().val = num_id


def _emit_block(out, node: Node, style: Optional[str] = None):
    """Write ``node``; returns the paragraph when it is a textblock."""
    name = node.type.name
    if name == "heading":
        paragraph = out.add_heading("", level=node.attrs.get("level", 1))
        _add_runs(paragraph, node)
        return paragraph
    if node.is_textblock:
        paragraph = out.add_paragraph(style=style)
        _add_runs(paragraph, node, code=bool(node.type.spec.code))
        return paragraph
    if name == "blockquote":
        for child in node.content:
            _emit_block(out, child, style or "Quote")
    elif name in ("bullet_list", "ordered_list"):
        list_style = "List Bullet" if name == "bullet_list" else ORDERED_STYLE
        order = node.attrs.get("order", 1)
        num_id = _restart_numbering(out, order) if name == "ordered_list" and order != 1 else None
        for item in node.content:
            for child in item.content:
                paragraph = _emit_block(out, child, list_style)
                if num_id is not None and paragraph is not None:
                    _set_numbering(paragraph, num_id)
                    num_id = None
    elif name == "horizontal_rule":
        out.add_paragraph("* * *")
    return None


def emit_docx(doc: Node, out_docx: str) -> None:
    out = Document()
    for block in doc.content:
        _emit_block(out, block)
    out.save(out_docx)
