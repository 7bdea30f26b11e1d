from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple

from bs4 import BeautifulSoup  # type: ignore

from .log import get_logger

log = get_logger(__name__)
_WS_RE = re.compile(r"\s+")


@dataclass
class ExportedBookmark:
    title: str
    href: str
    folder_path: List[str] = field(default_factory=list)
    icon: Optional[str] = None
    add_date: Optional[int] = None


def parse_bookmarks_html(path: Path) -> Tuple[List[ExportedBookmark], str]:
    """Read a Netscape bookmark file back into flat (folder path, title, href) records."""
    text = path.read_text(encoding="utf-8", errors="replace")
    return parse_bookmarks_text(text)


def parse_bookmarks_text(text: str) -> Tuple[List[ExportedBookmark], str]:
    soup = BeautifulSoup(text, "lxml")

    h1 = soup.find("h1")
    root_title = h1.get_text(strip=True) if h1 else "Bookmarks"

    dl = soup.find("dl")
    if dl is None:
        raise ValueError("Could not find <DL> root in bookmarks file")

    out: List[ExportedBookmark] = []
    _walk_dl(dl, out)
    return out, root_title


def _walk_dl(dl, out: List[ExportedBookmark]) -> None:
    # DL elements always carry end tags, so they nest the same way under any
    # parser; DT elements do not. A link's folders are the DLs around it, each
    # named by the H3 right before it.
    for a in dl.find_all("a"):
        if not a.get("href"):
            continue
        path: List[str] = []
        for anc in a.parents:
            if anc is dl:
                break
            if anc.name != "dl":
                continue
            h3 = anc.find_previous("h3")
            if h3 is None:
                log.warning("Folder without H3 around: %s", a.get_text(strip=True))
                continue
            path.append(_WS_RE.sub(" ", h3.get_text(strip=True)))
        path.reverse()
        out.append(
            ExportedBookmark(
                title=_WS_RE.sub(" ", a.get_text(strip=True)),
                href=a.get("href"),
                folder_path=path,
                icon=a.get("icon") or a.get("icon_uri"),
                add_date=_maybe_int(a.get("add_date")),
            )
        )


def _maybe_int(v):
    if v is None:
        return None
    try:
        return int(v)
    except ValueError:
        return None
