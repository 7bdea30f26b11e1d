from __future__ import annotations

import html
from pathlib import Path
from typing import List, Optional

from .config import Settings
from .icons import default_icon_uri
from .log import get_logger
from .model import DocumentHeader, Entry, FolderNode
from .stamps import parse_stamp

log = get_logger(__name__)


def render_netscape_html(
    tree: FolderNode,
    *,
    title: str,
    header: Optional[DocumentHeader] = None,
    settings: Optional[Settings] = None,
) -> str:
    """Render a Netscape Bookmark HTML document for the tree.

    Key details:
    - A folder with H3 attribute PERSONAL_TOOLBAR_FOLDER="true" becomes the browser's toolbar folder.
    - Inside every folder, child folders come first, then entries.
    """
    header = header or DocumentHeader()
    settings = settings or Settings()

    lines: List[str] = []
    lines.append("<!DOCTYPE NETSCAPE-Bookmark-file-1>")
    lines.append("<!-- This is an automatically generated file. DO NOT EDIT! -->")
    if header.created_at or header.updated_at:
        stamp = ", ".join(
            f"{k}: {v}" for k, v in (("created", header.created_at), ("updated", header.updated_at)) if v
        )
        lines.append(f"<!-- Source {html.escape(stamp.replace('--', '- -'))} -->")
    lines.append('<META HTTP-EQUIV="Content-Type" CONTENT="text/html; charset=UTF-8">')
    lines.append(f"<TITLE>{html.escape(title)}</TITLE>")
    lines.append(f"<H1>{html.escape(title)}</H1>")
    lines.append("<DL><p>")

    indent = "    "
    wrappers = []
    if settings.toolbar:
        wrappers.append('<H3 PERSONAL_TOOLBAR_FOLDER="true">Bookmarks Toolbar</H3>')
    if header.owner:
        wrappers.append(f"<H3{_date_attrs(header)}>{html.escape(header.owner)}</H3>")
    for w in wrappers:
        lines.append(f"{indent}<DT>{w}")
        lines.append(f"{indent}<DL><p>")
        indent += "    "

    _write_folder(lines, tree, indent, header=header, embed_metadata=settings.embed_metadata)

    for _w in wrappers:
        indent = indent[:-4]
        lines.append(f"{indent}</DL><p>")
    lines.append("</DL><p>")
    return "\n".join(lines) + "\n"


def write_netscape_html(
    out_path: Path,
    tree: FolderNode,
    *,
    title: str,
    header: Optional[DocumentHeader] = None,
    settings: Optional[Settings] = None,
) -> None:
    text = render_netscape_html(tree, title=title, header=header, settings=settings)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(text, encoding="utf-8")
    log.info("Wrote bookmarks HTML: %s", out_path)


def _write_folder(
    lines: List[str], node: FolderNode, indent: str, *, header: DocumentHeader, embed_metadata: bool
) -> None:
    for name, child in node.children.items():
        lines.append(f"{indent}<DT><H3>{html.escape(name)}</H3>")
        lines.append(f"{indent}<DL><p>")
        _write_folder(lines, child, indent + "    ", header=header, embed_metadata=embed_metadata)
        lines.append(f"{indent}</DL><p>")

    for e in node.entries:
        lines.append(f"{indent}<DT><A {' '.join(_entry_attrs(e, header, embed_metadata))}>{html.escape(e.name)}</A>")


def _entry_attrs(e: Entry, header: DocumentHeader, embed_metadata: bool) -> List[str]:
    attrs = [f'HREF="{html.escape(e.uri or "", quote=True)}"']
    add_date = parse_stamp(e.created_at)
    if add_date is not None:
        attrs.append(f'ADD_DATE="{add_date}"')
    last_modified = parse_stamp(e.updated_at or header.updated_at)
    if last_modified is not None:
        attrs.append(f'LAST_MODIFIED="{last_modified}"')

    attr, value = e.icon_attr or ("ICON", default_icon_uri())
    attrs.append(f'{attr}="{html.escape(value, quote=True)}"')

    if embed_metadata:
        attrs.append(f'data-marklet-lang="{html.escape(e.language, quote=True)}"')
        if e.created_at:
            attrs.append(f'data-marklet-stamp="{html.escape(e.created_at, quote=True)}"')
    return attrs


def _date_attrs(header: DocumentHeader) -> str:
    out = ""
    created = parse_stamp(header.created_at)
    if created is not None:
        out += f' ADD_DATE="{created}"'
    updated = parse_stamp(header.updated_at)
    if updated is not None:
        out += f' LAST_MODIFIED="{updated}"'
    return out
