from __future__ import annotations

import argparse
import time
from pathlib import Path
from typing import List

from . import __version__
from .config import DUPLICATE_POLICIES, WRAP_MODES, Settings, load_settings
from .errors import ParseError
from .log import LogConfig, get_logger, setup_logging
from .normalize import decode_uri
from .parse_netscape import parse_bookmarks_html
from .pipeline import BuildResult, build_file, export, report_warnings
from .tree import iter_folders

log = get_logger(__name__)


def main(argv: List[str] | None = None) -> int:
    p = argparse.ArgumentParser(
        prog="markletpack",
        description="Package a bookmarklet source document into an importable bookmarks HTML file.",
    )
    p.add_argument("-V", "--version", action="version", version=f"markletpack {__version__}")
    p.add_argument("--config", default=None, help="YAML config file (optional). Env vars override defaults.")
    p.add_argument("--log-level", default=None, help="DEBUG/INFO/WARN/ERROR (overrides env/config).")
    p.add_argument("--no-color", action="store_true", help="Disable colored logging.")
    sub = p.add_subparsers(dest="cmd", required=True)

    b = sub.add_parser("build", help="Write a Netscape bookmarks HTML file from a bookmarklet document.")
    b.add_argument("input", help="Bookmarklet source document.")
    b.add_argument("--out", required=True, help="Output HTML path.")
    b.add_argument("--sort", action="store_true", help="Sort every folder by name (same as a SORT line).")
    b.add_argument("--sticky-folder", action="store_true", help="Blocks without FOLDER reuse the previous block's folder.")
    b.add_argument("--duplicates", choices=DUPLICATE_POLICIES, default=None, help="Same-name entries in one folder.")
    b.add_argument("--wrap", choices=WRAP_MODES, default=None, help="Wrap each script in a function.")
    b.add_argument("--toolbar", action="store_true", help="Put everything into the bookmarks toolbar folder.")
    b.add_argument("--jobs", type=int, default=None, help="Normalize entries in N threads.")
    b.add_argument("--icon-dir", default=None, help="Directory ICON files are relative to (default: input's dir).")
    b.add_argument("--title", default=None, help="Document title.")
    b.add_argument("--dry-run", action="store_true", help="Run the pipeline but do not write the output file.")
    b.add_argument("--strict", action="store_true", help="Exit 1 when any warning was collected.")

    ls = sub.add_parser("list", help="Show the folder tree and entry names of a bookmarklet document.")
    ls.add_argument("input")

    u = sub.add_parser("uri", help="Print the javascript: URI of one entry.")
    u.add_argument("input")
    u.add_argument("name", help="Entry title.")
    u.add_argument("--decode", action="store_true", help="Print the decoded one-line script instead.")

    v = sub.add_parser("verify", help="Check an exported HTML file against its source document.")
    v.add_argument("input")
    v.add_argument("exported")
    v.add_argument("--toolbar", action="store_true", help="The export was built with --toolbar.")
    v.add_argument("--sticky-folder", action="store_true", help="The export was built with --sticky-folder.")

    args = p.parse_args(argv)
    cfg = load_settings(args.config)
    if args.log_level:
        cfg.log_level = args.log_level
    if args.no_color:
        cfg.no_color = True
    setup_logging(LogConfig(level=cfg.log_level, no_color=cfg.no_color))

    if args.cmd == "build":
        _apply_build_flags(args, cfg)
    handlers = {"build": _cmd_build, "list": _cmd_list, "uri": _cmd_uri, "verify": _cmd_verify}
    return handlers[args.cmd](args, cfg)


def _apply_build_flags(args, cfg: Settings) -> None:
    if args.sort:
        cfg.sort = True
    if args.sticky_folder:
        cfg.sticky_folder = True
    if args.duplicates:
        cfg.duplicates = args.duplicates
    if args.wrap:
        cfg.wrap = args.wrap
    if args.toolbar:
        cfg.toolbar = True
    if args.jobs is not None:
        cfg.jobs = args.jobs
    if args.icon_dir:
        cfg.icon_dir = args.icon_dir
    if args.title:
        cfg.root_title = args.title


def _load(input_path: str, cfg: Settings) -> BuildResult | None:
    src = Path(input_path)
    if not src.exists():
        log.error("Input file not found: %s", src)
        return None
    try:
        return build_file(src, cfg)
    except ParseError as e:
        log.error("Failed to parse %s: %s", src, e)
        return None
    except UnicodeDecodeError as e:
        log.error("Input is not valid UTF-8: %s (%s)", src, e)
        return None


def _cmd_build(args, cfg: Settings) -> int:
    t0 = time.time()
    result = _load(args.input, cfg)
    if result is None:
        return 2
    log.info("Built %d bookmarklets (%d skipped).", len(result.entries), len(result.skipped))

    if args.dry_run:
        log.info("Dry-run: not writing output file.")
    else:
        try:
            export(result, Path(args.out), cfg)
        except OSError as e:
            log.error("Failed to write output HTML: %s", e)
            return 2

    report_warnings(result)
    log.info("Done in %d ms.", int((time.time() - t0) * 1000))
    if args.strict and len(result.warnings):
        log.error("%d warnings with --strict.", len(result.warnings))
        return 1
    return 0


def _cmd_list(args, cfg: Settings) -> int:
    result = _load(args.input, cfg)
    if result is None:
        return 2
    for folder in iter_folders(result.tree):
        depth = len(folder.path)
        if folder.path:
            print("  " * (depth - 1) + folder.name + "/")
        for e in folder.entries:
            print("  " * depth + f"{e.name}  [{e.language}, line {e.line}]")
    report_warnings(result)
    return 0


def _cmd_uri(args, cfg: Settings) -> int:
    result = _load(args.input, cfg)
    if result is None:
        return 2
    matches = [e for e in result.entries if e.name == args.name]
    if not matches:
        log.error("No entry named %r.", args.name)
        return 2
    if len(matches) > 1:
        log.warning("%d entries named %r, printing the first.", len(matches), args.name)
    uri = matches[0].uri or ""
    print(decode_uri(uri) if args.decode else uri)
    return 0


def _cmd_verify(args, cfg: Settings) -> int:
    if args.toolbar:
        cfg.toolbar = True
    if args.sticky_folder:
        cfg.sticky_folder = True
    result = _load(args.input, cfg)
    if result is None:
        return 2
    exported_path = Path(args.exported)
    try:
        exported, _title = parse_bookmarks_html(exported_path)
    except (OSError, ValueError) as e:
        log.error("Failed to read %s: %s", exported_path, e)
        return 2

    prefix: List[str] = []
    if cfg.toolbar:
        prefix.append("Bookmarks Toolbar")
    if result.header.owner:
        prefix.append(result.header.owner)

    want = sorted((tuple(prefix + e.folder_path), e.name, e.uri or "") for e in result.entries)
    got = sorted((tuple(b.folder_path), b.title, b.href) for b in exported)
    if want == got:
        log.info("Verified %d bookmarklets in %s.", len(got), exported_path)
        return 0

    missing = [w for w in want if w not in got]
    extra = [g for g in got if g not in want]
    log.error(
        "Export does not match source (source=%d, exported=%d, missing=%d, unexpected=%d).",
        len(want),
        len(got),
        len(missing),
        len(extra),
    )
    for path, name, _uri in missing[:5]:
        log.error("Missing: %s/%s", "/".join(path), name)
    for path, name, _uri in extra[:5]:
        log.error("Unexpected: %s/%s", "/".join(path), name)
    return 1
