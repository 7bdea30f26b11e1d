from __future__ import annotations

import os
import shlex
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

import yaml

DUPLICATE_POLICIES = ("keep", "rename")
WRAP_MODES = ("none", "iife", "void")


def _env_int(name: str, default: int) -> int:
    v = os.getenv(name)
    if v is None or v == "":
        return default
    try:
        return int(v)
    except ValueError:
        return default


def _env_bool(name: str, default: bool) -> bool:
    v = os.getenv(name)
    if v is None or v == "":
        return default
    return v.strip().lower() in ("1", "true", "yes", "y", "on")


def _env_str(name: str, default: str) -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_choice(name: str, default: str, choices: tuple[str, ...]) -> str:
    v = (os.getenv(name) or "").strip().lower()
    return v if v in choices else default


@dataclass
class Settings:
    # Parsing
    sticky_folder: bool = False  # FOLDER carries over to following blocks that omit it
    default_language: str = "JavaScript"
    folder_delimiter: str = "/"

    # Normalization
    wrap: str = "none"  # none | iife | void
    jobs: int = 1
    coffee_command: List[str] = field(
        default_factory=lambda: ["coffee", "--bare", "--compile", "--print", "--stdio"]
    )
    coffee_timeout_s: int = 30

    # Tree / export
    duplicates: str = "keep"  # keep | rename
    sort: bool = False  # same effect as a document-level SORT line
    root_title: str = "Bookmarklets"
    toolbar: bool = False
    embed_metadata: bool = True
    icon_dir: Optional[str] = None  # default: directory of the input document

    # Logging / UX
    log_level: str = "INFO"
    no_color: bool = False

    @staticmethod
    def from_env() -> "Settings":
        s = Settings()
        s.sticky_folder = _env_bool("MARKLET_STICKY_FOLDER", s.sticky_folder)
        s.default_language = _env_str("MARKLET_DEFAULT_LANG", s.default_language)

        s.wrap = _env_choice("MARKLET_WRAP", s.wrap, WRAP_MODES)
        s.jobs = _env_int("MARKLET_JOBS", s.jobs)
        coffee = os.getenv("MARKLET_COFFEE_COMMAND")
        if coffee:
            s.coffee_command = shlex.split(coffee)
        s.coffee_timeout_s = _env_int("MARKLET_COFFEE_TIMEOUT_S", s.coffee_timeout_s)

        s.duplicates = _env_choice("MARKLET_DUPLICATES", s.duplicates, DUPLICATE_POLICIES)
        s.sort = _env_bool("MARKLET_SORT", s.sort)
        s.root_title = _env_str("MARKLET_ROOT_TITLE", s.root_title)
        s.toolbar = _env_bool("MARKLET_TOOLBAR", s.toolbar)
        s.embed_metadata = _env_bool("MARKLET_EMBED_METADATA", s.embed_metadata)
        s.icon_dir = os.getenv("MARKLET_ICON_DIR") or s.icon_dir

        s.log_level = _env_str("MARKLET_LOG_LEVEL", s.log_level)
        s.no_color = _env_bool("MARKLET_NO_COLOR", s.no_color)
        return s

    @staticmethod
    def from_file(path: Path) -> "Settings":
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        s = Settings.from_env()
        for k, v in data.items():
            if hasattr(s, k):
                setattr(s, k, v)
        if isinstance(s.coffee_command, str):
            s.coffee_command = shlex.split(s.coffee_command)
        return s


def load_settings(config_path: Optional[str]) -> Settings:
    if config_path:
        return Settings.from_file(Path(config_path))
    return Settings.from_env()
