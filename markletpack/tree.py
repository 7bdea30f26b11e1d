from __future__ import annotations

from collections import Counter
from typing import Iterable, Iterator, List, Tuple

from .errors import WarningCollector
from .log import get_logger
from .model import Entry, FolderNode

log = get_logger(__name__)


def build_tree(entries: Iterable[Entry], *, sort: bool = False) -> FolderNode:
    """Place entries into folders by path, in the order given.

    Folder names match exactly, so "Tools" and "tools" are two siblings.
    """
    root = FolderNode()
    for e in entries:
        node = root
        for comp in e.folder_path:
            node = node.get_or_create(comp)
        node.entries.append(e)
    if sort:
        sort_tree(root)
    return root


def sort_tree(node: FolderNode) -> None:
    # Each folder on its own; stable, so equal names keep document order.
    node.entries.sort(key=lambda e: e.name)
    node.children = dict(sorted(node.children.items(), key=lambda kv: kv[0]))
    for child in node.children.values():
        sort_tree(child)


def iter_folders(node: FolderNode) -> Iterator[FolderNode]:
    yield node
    for child in node.children.values():
        yield from iter_folders(child)


def iter_entries(node: FolderNode) -> Iterator[Entry]:
    for folder in iter_folders(node):
        yield from folder.entries


def find_duplicates(root: FolderNode) -> List[Tuple[List[str], str, int]]:
    out = []
    for folder in iter_folders(root):
        counts = Counter(e.name for e in folder.entries)
        for name, n in counts.items():
            if n > 1:
                out.append((folder.path, name, n))
    return out


def apply_duplicate_policy(root: FolderNode, policy: str, warnings: WarningCollector) -> int:
    """Warn about sibling entries sharing a name; with policy "rename" suffix the later ones.

    Returns the number of renamed entries.
    """
    renamed = 0
    for path, name, n in find_duplicates(root):
        where = "/".join(path) or "(root)"
        warnings.add(f"{n} entries named {name!r} in folder {where}", title=name)
        if policy != "rename":
            continue
        folder = _folder_at(root, path)
        taken = {e.name for e in folder.entries}
        seq = 1
        first = True
        for e in folder.entries:
            if e.name != name:
                continue
            if first:
                first = False
                continue
            seq += 1
            while f"{name} ({seq})" in taken:
                seq += 1
            e.name = f"{name} ({seq})"
            taken.add(e.name)
            renamed += 1
    if renamed:
        log.info("Renamed %d duplicate entries.", renamed)
    return renamed


def _folder_at(root: FolderNode, path: List[str]) -> FolderNode:
    node = root
    for comp in path:
        node = node.children[comp]
    return node
