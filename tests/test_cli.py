import json
import sys

from docx import Document

from inputrules.cli import main, simulate_typing
from inputrules.rules import builtin_rules, em_dash

from helpers import doc, h, p, ul, li


def run_main(monkeypatch, capsys, *argv):
    monkeypatch.setattr(sys, "argv", ["inputrules", *argv])
    main()
    return json.loads(capsys.readouterr().out)


def test_simulate_typing_smart_quotes():
    result = simulate_typing('say "hi"', builtin_rules("typography"))
    assert result.doc == doc(p("say “hi”"))
    assert result.fired == ["typography.open_double_quote", "typography.close_double_quote"]
    assert result.undone is False


def test_simulate_typing_heading_then_paragraph():
    result = simulate_typing("# Title\nbody", builtin_rules("typography", "markdown"))
    assert result.doc == doc(h(1, "Title"), p("body"))
    assert result.fired == ["markdown.heading"]
    assert result.to_dict()["blocks"] == [
        {"type": "heading", "attrs": {"level": 1}, "text": "Title"},
        {"type": "paragraph", "attrs": {}, "text": "body"},
    ]


def test_simulate_typing_into_existing_document():
    start = doc(ul(li(p("one"))), p())
    result = simulate_typing("- two", builtin_rules("markdown"), doc=start)
    assert result.doc == doc(ul(li(p("one")), li(p("two"))))


def test_simulate_typing_with_undo():
    result = simulate_typing("a--", [em_dash], undo=True)
    assert result.doc == doc(p("a--"))
    assert result.fired == ["typography.em_dash"]
    assert result.undone is True


def test_main_prints_json(monkeypatch, capsys):
    out = run_main(monkeypatch, capsys, "## Notes\\nwait...")
    assert out["doc"] == 'doc(heading("Notes"), paragraph("wait…"))'
    assert out["fired"] == ["markdown.heading", "typography.ellipsis"]
    assert out["blocks"][0] == {"type": "heading", "attrs": {"level": 2}, "text": "Notes"}


def test_main_pack_selection_and_undo(monkeypatch, capsys):
    out = run_main(monkeypatch, capsys, "- a--", "--pack", "typography", "--undo")
    assert out["blocks"] == [{"type": "paragraph", "attrs": {}, "text": "- a--"}]
    assert out["undone"] is True


def test_main_max_match(monkeypatch, capsys):
    out = run_main(monkeypatch, capsys, "a--", "--max-match", "0")
    assert out["fired"] == []
    assert out["blocks"][0]["text"] == "a--"


def test_main_extra_rules_file(monkeypatch, capsys, tmp_path):
    pack = tmp_path / "arrows.yml"
    pack.write_text("input_rules:\n  - id: arrows.right\n    pattern: '->$'\n    replace: \"→\"\n",
                    encoding="utf-8")
    out = run_main(monkeypatch, capsys, "a->b", "--pack", "typography", "--rules-file", str(pack))
    assert out["blocks"][0]["text"] == "a→b"
    assert out["fired"] == ["arrows.right"]


def test_main_writes_docx(monkeypatch, capsys, tmp_path):
    target = tmp_path / "out.docx"
    out = run_main(monkeypatch, capsys, "# Hello\\n> quoted", "--docx", str(target))
    assert out["docx"] == str(target)
    paragraphs = [(para.style.name, para.text) for para in Document(str(target)).paragraphs]
    assert paragraphs == [("Heading 1", "Hello"), ("Quote", "quoted")]
