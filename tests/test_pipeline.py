from pathlib import Path

import pytest

from markletpack.config import Settings
from markletpack.errors import UnterminatedBlockError
from markletpack.normalize import SCHEME, decode_uri
from markletpack.pipeline import build_document, build_file
from markletpack.tree import iter_entries
from markletpack.writer_netscape import render_netscape_html


def test_single_block_lands_at_root():
    r = build_document('BEGIN Favicon Grabber\nlocation.href = "x";\nEND\n', Settings())
    assert r.tree.children == {}
    (e,) = r.tree.entries
    assert e.name == "Favicon Grabber"
    assert e.uri.startswith(SCHEME)
    assert "\n" not in e.uri
    assert e.uri == "javascript:location.href%20=%20%22x%22;"
    assert len(r.warnings) == 0


def test_entries_with_same_folder_share_one_node_in_order():
    text = (
        "BEGIN Slower\nFOLDER YouTube Tools/Speed\nslower()\nEND\n"
        "BEGIN Other\nFOLDER YouTube Tools\nother()\nEND\n"
        "BEGIN Faster\nFOLDER YouTube Tools/Speed\nfaster()\nEND\n"
    )
    r = build_document(text, Settings())
    speed = r.tree.children["YouTube Tools"].children["Speed"]
    assert [e.name for e in speed.entries] == ["Slower", "Faster"]
    assert [e.name for e in r.tree.children["YouTube Tools"].entries] == ["Other"]
    assert r.tree.entries == []


def test_missing_end_aborts_with_begin_line():
    with pytest.raises(UnterminatedBlockError) as ei:
        build_document("BEGIN Fine\nok()\nEND\n\nBEGIN Broken\nbroken()\n", Settings())
    assert ei.value.line == 5


def test_document_sort_orders_each_folder():
    text = "SORT\nBEGIN Beta\nb()\nEND\nBEGIN Alpha\na()\nEND\nBEGIN Gamma\ng()\nEND\n"
    r = build_document(text, Settings())
    assert [e.name for e in r.tree.entries] == ["Alpha", "Beta", "Gamma"]
    # Without SORT the declaration order stays.
    r = build_document(text.replace("SORT\n", ""), Settings())
    assert [e.name for e in r.tree.entries] == ["Beta", "Alpha", "Gamma"]


def test_sort_setting_works_without_sort_line():
    text = "BEGIN b\nb()\nEND\nBEGIN a\na()\nEND\n"
    r = build_document(text, Settings(sort=True))
    assert [e.name for e in r.tree.entries] == ["a", "b"]


def test_unknown_language_skips_only_that_entry():
    text = "BEGIN Good\ngood()\nEND\nBEGIN Weird\nLANG Brainfuck\n+++\nEND\nBEGIN Also Good\nfine()\nEND\n"
    r = build_document(text, Settings())
    assert [e.name for e in r.tree.entries] == ["Good", "Also Good"]
    ((skipped, reason),) = r.skipped
    assert skipped.name == "Weird"
    assert "Brainfuck" in reason
    (warning,) = list(r.warnings)
    assert warning.title == "Weird" and warning.line == 4


def test_missing_compiler_skips_coffeescript_entry(monkeypatch):
    import markletpack.normalize as normalize

    def _missing(*_a, **_k):
        raise FileNotFoundError("coffee")

    monkeypatch.setattr(normalize.subprocess, "run", _missing)
    text = "BEGIN GCD\nFOLDER Math\nLANG CoffeeScript\nalert 1\nEND\nBEGIN JS\nalert(1)\nEND\n"
    r = build_document(text, Settings())
    assert [e.name for e in iter_entries(r.tree)] == ["JS"]
    assert "Math" not in r.tree.children
    assert "not found" in r.skipped[0][1]


def test_sticky_folder_option():
    text = "BEGIN a\nFOLDER Tools\na()\nEND\nBEGIN b\nb()\nEND\nBEGIN c\nFOLDER Other\nc()\nEND\nBEGIN d\nd()\nEND\n"
    r = build_document(text, Settings(sticky_folder=True))
    assert [e.name for e in r.tree.children["Tools"].entries] == ["a", "b"]
    assert [e.name for e in r.tree.children["Other"].entries] == ["c", "d"]
    r = build_document(text, Settings())
    assert [e.name for e in r.tree.entries] == ["b", "d"]


def test_duplicate_names_are_warned_at_the_end():
    text = "BEGIN Reset\nr()\nEND\nBEGIN Reset\nr2()\nEND\n"
    r = build_document(text, Settings())
    assert [e.name for e in r.tree.entries] == ["Reset", "Reset"]
    assert any("Reset" in w.message for w in r.warnings)
    r = build_document(text, Settings(duplicates="rename"))
    assert [e.name for e in r.tree.entries] == ["Reset", "Reset (2)"]


def test_sample_document(sample_doc: Path, fake_coffee):
    r = build_file(sample_doc, Settings())
    assert len(r.warnings) == 0
    assert list(r.tree.children) == ["URL Manipulators", "YouTube Tools", "Math"]
    (grabber,) = r.tree.entries
    assert decode_uri(grabber.uri) == (
        'const url = "http://www.google.com/s2/favicons?"; '
        'const domain = "domain=" + location.href; '
        "location.href = url + domain;"
    )
    assert grabber.icon_attr[0] == "ICON"
    assert grabber.icon_attr[1].startswith("data:image/")
    (killer,) = r.tree.children["URL Manipulators"].entries
    assert decode_uri(killer.uri) == 'location.search = "";'
    assert killer.created_at == "Monday, April 22nd, 2024 at 2:08 AM"
    (gcd,) = r.tree.children["Math"].entries
    assert decode_uri(gcd.uri) == "var x; x = 1;"
    assert r.header.created_at == "Thursday, December 21st, 2023"
    assert r.header.updated_at == "Monday, June 16th, 2025 at 8:23 PM"


def test_parallel_normalization_gives_identical_output(sample_doc: Path, fake_coffee):
    serial = build_file(sample_doc, Settings(jobs=1))
    parallel = build_file(sample_doc, Settings(jobs=4))
    assert [e.name for e in iter_entries(parallel.tree)] == [e.name for e in iter_entries(serial.tree)]
    assert render_netscape_html(parallel.tree, title="B", header=parallel.header) == render_netscape_html(
        serial.tree, title="B", header=serial.header
    )


def test_two_runs_render_identical_bytes(sample_doc: Path, fake_coffee):
    first = build_file(sample_doc, Settings())
    second = build_file(sample_doc, Settings())
    assert render_netscape_html(first.tree, title="B", header=first.header) == render_netscape_html(
        second.tree, title="B", header=second.header
    )


def test_non_executable_compiler_skips_only_coffeescript_entry(monkeypatch):
    import markletpack.normalize as normalize

    def _denied(*_a, **_k):
        raise PermissionError(13, "Permission denied")

    monkeypatch.setattr(normalize.subprocess, "run", _denied)
    text = "BEGIN GCD\nLANG CoffeeScript\nalert 1\nEND\nBEGIN JS\nalert(1)\nEND\n"
    r = build_document(text, Settings(jobs=2))
    assert [e.name for e in r.entries] == ["JS"]
    ((skipped, reason),) = r.skipped
    assert skipped.name == "GCD"
    assert "Permission denied" in reason
