from __future__ import annotations

import base64
import html
import mimetypes
from pathlib import Path
from typing import Optional, Tuple
from urllib.parse import quote

from .errors import WarningCollector
from .log import get_logger
from .model import Entry

log = get_logger(__name__)

DEFAULT_GLYPH = "JS"
_MAX_ICON_BYTES = 256_000


def default_icon_uri(glyph: str = DEFAULT_GLYPH) -> str:
    # Browsers accept ICON data URLs on import. SVG keeps this tiny.
    svg = (
        '<svg xmlns="http://www.w3.org/2000/svg" width="16" height="16">'
        '<rect width="100%" height="100%" fill="#f7df1e"/>'
        f'<text x="8" y="12" text-anchor="middle" font-family="sans-serif" font-size="8">{html.escape(glyph)}</text>'
        "</svg>"
    )
    return "data:image/svg+xml;utf8," + quote(svg, safe="")


def resolve_icon(
    entry: Entry,
    *,
    icon_dir: Optional[Path],
    warnings: Optional[WarningCollector] = None,
) -> Tuple[str, str]:
    """Pick the (attribute, value) pair the exporter writes for an entry's icon.

    - no ICON directive: placeholder
    - data: URI: used as is
    - http(s) URL: ICON_URI, left for the browser to fetch
    - anything else: a file relative to icon_dir, embedded as base64
    """
    ref = (entry.icon or "").strip()
    if not ref:
        return "ICON", default_icon_uri()
    if ref.startswith("data:"):
        return "ICON", ref
    if ref.startswith(("http://", "https://")):
        return "ICON_URI", ref

    path = Path(ref).expanduser()
    if not path.is_absolute() and icon_dir is not None:
        path = icon_dir / path
    try:
        data = path.read_bytes()
    except OSError as e:
        log.debug("Icon %s unreadable: %s", path, e)
        if warnings is not None:
            warnings.add(f"icon {ref!r} not found, using the default icon", line=entry.line, title=entry.name)
        return "ICON", default_icon_uri()
    if len(data) > _MAX_ICON_BYTES:
        if warnings is not None:
            warnings.add(f"icon {ref!r} is larger than {_MAX_ICON_BYTES} bytes, using the default icon", line=entry.line, title=entry.name)
        return "ICON", default_icon_uri()

    mime = mimetypes.guess_type(path.name)[0] or _sniff_mime(data)
    return "ICON", f"data:{mime};base64,{base64.b64encode(data).decode('ascii')}"


def _sniff_mime(data: bytes) -> str:
    if data.startswith(b"\x89PNG"):
        return "image/png"
    if data.startswith(b"GIF8"):
        return "image/gif"
    if data.startswith(b"\x00\x00\x01\x00"):
        return "image/x-icon"
    if data.lstrip().startswith(b"<svg") or data.lstrip().startswith(b"<?xml"):
        return "image/svg+xml"
    return "application/octet-stream"
