from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from .blocks import tokenize
from .config import Settings
from .directives import parse_block
from .errors import NormalizeError, WarningCollector
from .icons import resolve_icon
from .log import get_logger, log_warning_summary
from .model import DocumentHeader, Entry, FolderNode
from .normalize import ScriptNormalizer, build_registry, encode_uri, normalizer_for, wrap_script
from .tree import apply_duplicate_policy, build_tree, sort_tree
from .writer_netscape import write_netscape_html

log = get_logger(__name__)


@dataclass
class BuildResult:
    header: DocumentHeader
    tree: FolderNode
    entries: List[Entry] = field(default_factory=list)
    skipped: List[Tuple[Entry, str]] = field(default_factory=list)
    warnings: WarningCollector = field(default_factory=WarningCollector)


def parse_document(
    text: str, settings: Settings, warnings: WarningCollector
) -> Tuple[DocumentHeader, List[Entry]]:
    """All blocks of a document as entries without URIs. Structural errors raise here."""
    header, blocks = tokenize(text, warnings)
    entries: List[Entry] = []
    previous_folder: List[str] = []
    for block in blocks:
        e = parse_block(block, previous_folder=previous_folder, settings=settings, warnings=warnings)
        previous_folder = e.folder_path
        entries.append(e)
    return header, entries


def build_document(text: str, settings: Settings, *, base_dir: Optional[Path] = None) -> BuildResult:
    warnings = WarningCollector()
    header, parsed = parse_document(text, settings, warnings)
    log.info("Parsed %d bookmarklet blocks.", len(parsed))

    registry = build_registry(settings)
    scripts = _normalize_all(parsed, registry, jobs=settings.jobs)

    icon_dir = Path(settings.icon_dir) if settings.icon_dir else base_dir
    entries: List[Entry] = []
    skipped: List[Tuple[Entry, str]] = []
    # Assemble in document order whatever order normalization finished in.
    for e in parsed:
        script, error = scripts[id(e)]
        if error is not None:
            warnings.add(f"skipped: {error}", line=e.line, title=e.name)
            skipped.append((e, error))
            continue
        e.uri = encode_uri(wrap_script(script, settings.wrap))
        e.icon_attr = resolve_icon(e, icon_dir=icon_dir, warnings=warnings)
        entries.append(e)

    tree = build_tree(entries)
    apply_duplicate_policy(tree, settings.duplicates, warnings)
    if header.sort or settings.sort:
        sort_tree(tree)

    if skipped:
        log.warning("Skipped %d of %d entries.", len(skipped), len(parsed))
    return BuildResult(header=header, tree=tree, entries=entries, skipped=skipped, warnings=warnings)


def build_file(path: Path, settings: Settings) -> BuildResult:
    text = path.read_text(encoding="utf-8")
    return build_document(text, settings, base_dir=path.resolve().parent)


def export(result: BuildResult, out_path: Path, settings: Settings) -> None:
    title = settings.root_title
    write_netscape_html(out_path, result.tree, title=title, header=result.header, settings=settings)


def report_warnings(result: BuildResult) -> int:
    return log_warning_summary(log, result.warnings)


def _normalize_all(
    entries: List[Entry], registry: Dict[str, ScriptNormalizer], *, jobs: int
) -> Dict[int, Tuple[Optional[str], Optional[str]]]:
    def _one(e: Entry) -> Tuple[Optional[str], Optional[str]]:
        try:
            return normalizer_for(e.language, registry).normalize(e.body), None
        except NormalizeError as err:
            return None, str(err)

    if jobs <= 1 or len(entries) < 2:
        return {id(e): _one(e) for e in entries}

    with ThreadPoolExecutor(max_workers=jobs) as ex:
        results = list(ex.map(_one, entries))
    return {id(e): r for e, r in zip(entries, results)}
