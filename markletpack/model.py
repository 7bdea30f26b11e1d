from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple


@dataclass
class DocumentHeader:
    owner: Optional[str] = None
    sort: bool = False
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


@dataclass
class RawBlock:
    title: str
    line: int
    lines: List[str] = field(default_factory=list)  # between BEGIN and END, no newlines
    trailer: Optional[str] = None  # free text after END


@dataclass
class Entry:
    name: str
    folder_path: List[str] = field(default_factory=list)
    icon: Optional[str] = None
    language: str = "JavaScript"
    body: str = ""
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    line: int = 0

    icon_attr: Optional[Tuple[str, str]] = None
    _uri: Optional[str] = field(default=None, repr=False)

    @property
    def uri(self) -> Optional[str]:
        return self._uri

    @uri.setter
    def uri(self, value: str) -> None:
        if self._uri is not None:
            raise AttributeError(f"uri of {self.name!r} is already set")
        self._uri = value


@dataclass
class FolderNode:
    name: str = ""
    children: Dict[str, "FolderNode"] = field(default_factory=dict)
    entries: List[Entry] = field(default_factory=list)
    path: List[str] = field(default_factory=list)

    def get_or_create(self, name: str) -> "FolderNode":
        if name not in self.children:
            self.children[name] = FolderNode(name=name, path=self.path + [name])
        return self.children[name]
