from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional


class MarkletError(Exception):
    """Base class for everything markletpack raises on purpose."""


class ParseError(MarkletError):
    """Structural problem in the source document. Aborts the whole run."""

    def __init__(self, message: str, line: int):
        super().__init__(f"line {line}: {message}")
        self.line = line


class UnterminatedBlockError(ParseError):
    def __init__(self, line: int, title: str = ""):
        super().__init__(f"block {title!r} has no END before end of document", line)
        self.title = title


class NestedBlockError(ParseError):
    def __init__(self, line: int, outer_line: int):
        super().__init__(f"BEGIN inside the block opened on line {outer_line}", line)
        self.outer_line = outer_line


class MissingTitleError(ParseError):
    def __init__(self, line: int):
        super().__init__("BEGIN without a title", line)


class NormalizeError(MarkletError):
    """A single entry could not be turned into a URI. The rest of the document continues."""


class UnsupportedLanguageError(NormalizeError):
    def __init__(self, language: str):
        super().__init__(f"no normalizer for language {language!r}")
        self.language = language


class CompileError(NormalizeError):
    pass


@dataclass(frozen=True)
class BuildWarning:
    message: str
    line: Optional[int] = None
    title: Optional[str] = None

    def __str__(self) -> str:
        where = []
        if self.line is not None:
            where.append(f"line {self.line}")
        if self.title:
            where.append(repr(self.title))
        prefix = ", ".join(where)
        return f"{prefix}: {self.message}" if prefix else self.message


class WarningCollector:
    def __init__(self) -> None:
        self.items: List[BuildWarning] = []

    def add(self, message: str, *, line: Optional[int] = None, title: Optional[str] = None) -> None:
        self.items.append(BuildWarning(message=message, line=line, title=title))

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self):
        return iter(self.items)
