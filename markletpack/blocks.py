"""Split a bookmarklet document into its header settings and BEGIN/END blocks."""

from __future__ import annotations

import re
from typing import Iterator, List, Optional, Tuple

from .errors import NestedBlockError, UnterminatedBlockError, WarningCollector
from .log import get_logger
from .model import DocumentHeader, RawBlock

log = get_logger(__name__)

_BEGIN_RE = re.compile(r"^BEGIN(?:[ \t]+(?P<title>.*?))?[ \t]*$")
_END_RE = re.compile(r"^END(?:[ \t]+(?P<trailer>.*?))?[ \t]*$")
_NAME_RE = re.compile(r"^NAME[ \t]+(?P<owner>\S.*?)[ \t]*$")
_SORT_RE = re.compile(r"^SORT[ \t]*$")
# Banner lines such as "// UPDATED: Saturday, January 6th, 2024" or "DATE: ...".
_STAMP_RE = re.compile(r"^[\s/*#!-]*(?P<key>DATE|UPDATED)[ \t]*:[ \t]*(?P<value>\S.*?)[ \t]*$")


def tokenize(
    text: str, warnings: Optional[WarningCollector] = None
) -> Tuple[DocumentHeader, Iterator[RawBlock]]:
    """Read the preamble eagerly and return the remaining blocks as a lazy iterator.

    Raises UnterminatedBlockError / NestedBlockError while the iterator is consumed.
    """
    if warnings is None:
        warnings = WarningCollector()
    lines = text.splitlines()
    header = DocumentHeader()

    i = 0
    while i < len(lines) and not _BEGIN_RE.match(lines[i]):
        line = lines[i]
        m = _NAME_RE.match(line)
        if m:
            if header.owner is not None:
                warnings.add(f"NAME given twice, keeping {m.group('owner')!r}", line=i + 1)
            header.owner = m.group("owner")
        elif _SORT_RE.match(line):
            header.sort = True
        elif _END_RE.match(line):
            warnings.add("END outside of any block", line=i + 1)
        else:
            _capture_stamp(header, line)
        i += 1

    return header, _iter_blocks(lines, i, header, warnings)


def _iter_blocks(
    lines: List[str], start: int, header: DocumentHeader, warnings: WarningCollector
) -> Iterator[RawBlock]:
    block: Optional[RawBlock] = None
    for idx in range(start, len(lines)):
        line = lines[idx]
        lineno = idx + 1

        m = _BEGIN_RE.match(line)
        if m:
            if block is not None:
                raise NestedBlockError(lineno, block.line)
            block = RawBlock(title=(m.group("title") or "").strip(), line=lineno)
            continue

        m = _END_RE.match(line)
        if m:
            if block is None:
                warnings.add("END outside of any block", line=lineno)
                continue
            block.trailer = m.group("trailer") or None
            log.debug("Block %r: lines %d-%d", block.title, block.line, lineno)
            yield block
            block = None
            continue

        if block is not None:
            block.lines.append(line)
            continue

        # Commentary between blocks.
        if _NAME_RE.match(line) or _SORT_RE.match(line):
            warnings.add(f"{line.split()[0]} after the first block is ignored", line=lineno)
            continue
        _capture_stamp(header, line)

    if block is not None:
        raise UnterminatedBlockError(block.line, block.title)


def _capture_stamp(header: DocumentHeader, line: str) -> None:
    m = _STAMP_RE.match(line)
    if not m:
        return
    if m.group("key") == "DATE":
        header.created_at = m.group("value")
    else:
        header.updated_at = m.group("value")
