import pytest

from markletpack.config import Settings
from markletpack.directives import parse_block, split_folder
from markletpack.errors import MissingTitleError, WarningCollector
from markletpack.model import RawBlock


def _block(*lines, title="Entry", line=10, trailer=None):
    return RawBlock(title=title, line=line, lines=list(lines), trailer=trailer)


def test_defaults_without_directives():
    e = parse_block(_block("", "alert(1)", ""))
    assert e.name == "Entry"
    assert e.folder_path == []
    assert e.icon is None
    assert e.language == "JavaScript"
    assert e.body == "alert(1)"
    assert e.line == 10


def test_directives_any_order_with_blank_lines_between():
    e = parse_block(
        _block("", "LANG CoffeeScript", "", "ICON javascript.ico", "FOLDER Math/Number Theory", "", "alert 1"),
        settings=Settings(),
    )
    assert e.language == "CoffeeScript"
    assert e.icon == "javascript.ico"
    assert e.folder_path == ["Math", "Number Theory"]
    assert e.body == "alert 1"


def test_first_body_line_ends_directives():
    e = parse_block(_block("ICON a.ico", "x = 1", "FOLDER Late"))
    assert e.folder_path == []
    assert e.body == "x = 1\nFOLDER Late"


def test_unknown_directive_warns_and_starts_body():
    w = WarningCollector()
    e = parse_block(_block("ICON a.ico", "COLOR red", "alert(1)"), warnings=w)
    assert e.body == "COLOR red\nalert(1)"
    (warning,) = list(w)
    assert "COLOR" in warning.message
    assert warning.line == 12
    assert warning.title == "Entry"


def test_repeated_directive_last_wins():
    w = WarningCollector()
    e = parse_block(_block("FOLDER A", "FOLDER B", "x()"), warnings=w)
    assert e.folder_path == ["B"]
    assert len(w) == 1


def test_missing_title_is_fatal():
    with pytest.raises(MissingTitleError) as ei:
        parse_block(_block("x()", title="", line=7))
    assert ei.value.line == 7


def test_trailer_becomes_created_at():
    e = parse_block(_block("x()", trailer="Friday, June 7th, 2024 @ 9:45 PM"))
    assert e.created_at == "Friday, June 7th, 2024 @ 9:45 PM"


def test_sticky_folder_is_opt_in():
    prev = ["YouTube Tools"]
    assert parse_block(_block("x()"), previous_folder=prev).folder_path == []
    sticky = Settings(sticky_folder=True)
    e = parse_block(_block("x()"), previous_folder=prev, settings=sticky)
    assert e.folder_path == ["YouTube Tools"]
    assert e.folder_path is not prev
    assert parse_block(_block("FOLDER Other", "x()"), previous_folder=prev, settings=sticky).folder_path == ["Other"]


def test_split_folder_drops_empty_segments():
    assert split_folder("/YouTube Tools//Speed/ ") == ["YouTube Tools", "Speed"]
    assert split_folder("") == []


def test_uppercase_assignment_is_script_not_a_directive():
    w = WarningCollector()
    e = parse_block(_block("FOLDER Tools", "URL = location.href", "MAX += 3", "open(URL)"), warnings=w)
    assert e.folder_path == ["Tools"]
    assert e.body == "URL = location.href\nMAX += 3\nopen(URL)"
    assert len(w) == 0

    e = parse_block(_block("MAX  = 3", "alert(MAX)"), warnings=w)
    assert e.body == "MAX  = 3\nalert(MAX)"
    assert len(w) == 0
