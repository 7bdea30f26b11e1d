from __future__ import annotations

import re
from typing import Dict, List, Optional

from .config import Settings
from .errors import MissingTitleError, WarningCollector
from .model import Entry, RawBlock

DIRECTIVES = ("FOLDER", "ICON", "LANG")

# A value starting with an operator makes the line code, as in "MAX = 3" or "URL += q".
_KEYWORD_RE = re.compile(r"^(?P<key>[A-Z][A-Z0-9_]*)[ \t]+(?![=(.:,;?\[+\-*%<>!&|^])(?P<value>\S.*?)[ \t]*$")


def parse_block(
    block: RawBlock,
    *,
    previous_folder: Optional[List[str]] = None,
    settings: Optional[Settings] = None,
    warnings: Optional[WarningCollector] = None,
) -> Entry:
    """Turn one raw block into an Entry (without URI).

    Directive lines come first; the first line that is neither blank nor a
    known directive starts the body. With ``settings.sticky_folder`` an entry
    without FOLDER lands in ``previous_folder``.
    """
    settings = settings or Settings()
    if warnings is None:
        warnings = WarningCollector()
    if not block.title:
        raise MissingTitleError(block.line)

    found: Dict[str, str] = {}
    body_start = len(block.lines)
    for idx, line in enumerate(block.lines):
        if not line.strip():
            continue
        m = _KEYWORD_RE.match(line)
        if m is None:
            body_start = idx
            break
        key = m.group("key")
        if key not in DIRECTIVES:
            warnings.add(
                f"unrecognized directive {key}, treating it as script",
                line=block.line + 1 + idx,
                title=block.title,
            )
            body_start = idx
            break
        if key in found:
            warnings.add(f"{key} given twice, keeping the last one", line=block.line + 1 + idx, title=block.title)
        found[key] = m.group("value")

    if "FOLDER" in found:
        folder_path = split_folder(found["FOLDER"], settings.folder_delimiter)
    elif settings.sticky_folder and previous_folder:
        folder_path = list(previous_folder)
    else:
        folder_path = []

    return Entry(
        name=block.title,
        folder_path=folder_path,
        icon=found.get("ICON"),
        language=found.get("LANG", settings.default_language),
        body="\n".join(block.lines[body_start:]).strip("\n"),
        created_at=block.trailer,
        line=block.line,
    )


def split_folder(value: str, delimiter: str = "/") -> List[str]:
    return [seg.strip() for seg in value.split(delimiter) if seg.strip()]
