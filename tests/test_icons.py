import base64
from pathlib import Path

from markletpack.errors import WarningCollector
from markletpack.icons import default_icon_uri, resolve_icon
from markletpack.model import Entry


def test_no_icon_uses_placeholder():
    assert resolve_icon(Entry(name="a"), icon_dir=None) == ("ICON", default_icon_uri())
    assert default_icon_uri().startswith("data:image/svg+xml;utf8,")


def test_local_file_is_embedded(tmp_path: Path):
    data = b"\x00\x00\x01\x00\x01\x00\x10\x10"
    (tmp_path / "javascript.ico").write_bytes(data)
    attr, value = resolve_icon(Entry(name="a", icon="javascript.ico"), icon_dir=tmp_path)
    assert attr == "ICON"
    assert value.startswith("data:image/")
    assert value.endswith(";base64," + base64.b64encode(data).decode("ascii"))


def test_remote_and_data_references_pass_through():
    attr, value = resolve_icon(Entry(name="a", icon="https://example.com/favicon.ico"), icon_dir=None)
    assert (attr, value) == ("ICON_URI", "https://example.com/favicon.ico")
    attr, value = resolve_icon(Entry(name="a", icon="data:image/png;base64,AAAA"), icon_dir=None)
    assert (attr, value) == ("ICON", "data:image/png;base64,AAAA")


def test_missing_file_falls_back_with_warning(tmp_path: Path):
    w = WarningCollector()
    e = Entry(name="Favicon Grabber", icon="nope.ico", line=4)
    assert resolve_icon(e, icon_dir=tmp_path, warnings=w) == ("ICON", default_icon_uri())
    (warning,) = list(w)
    assert warning.title == "Favicon Grabber"
    assert warning.line == 4
    assert "nope.ico" in warning.message


def test_unknown_extension_is_sniffed(tmp_path: Path):
    (tmp_path / "favicon").write_bytes(b"\x89PNG\r\n\x1a\n....")
    _attr, value = resolve_icon(Entry(name="a", icon="favicon"), icon_dir=tmp_path)
    assert value.startswith("data:image/png;base64,")
