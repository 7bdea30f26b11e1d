from __future__ import annotations

import subprocess
from typing import Dict, List, Optional
from urllib.parse import quote, unquote

from .config import Settings
from .errors import CompileError, UnsupportedLanguageError
from .jslex import minify
from .log import get_logger

log = get_logger(__name__)

SCHEME = "javascript:"
# Everything else (including %, #, quotes, <, >, & and whitespace) is percent-encoded.
URI_SAFE = "()[]{}!*'~;:@=+$,/?"


class ScriptNormalizer:
    """Turn a script body written in one source language into a single line of JavaScript."""

    language = ""

    def normalize(self, body: str) -> str:
        raise NotImplementedError


class JavaScriptNormalizer(ScriptNormalizer):
    language = "JavaScript"

    def normalize(self, body: str) -> str:
        return minify(body)


class CoffeeScriptNormalizer(ScriptNormalizer):
    """Strip '#' comments, compile with the external CoffeeScript compiler, then minify its output."""

    language = "CoffeeScript"

    def __init__(self, command: List[str], timeout_s: int = 30):
        self.command = list(command)
        self.timeout_s = timeout_s

    def normalize(self, body: str) -> str:
        js = self.compile(strip_hash_comments(body))
        return minify(js)

    def compile(self, source: str) -> str:
        log.debug("Compiling %d chars of CoffeeScript with %s", len(source), self.command[0])
        try:
            r = subprocess.run(
                self.command,
                input=source,
                capture_output=True,
                text=True,
                encoding="utf-8",
                timeout=self.timeout_s,
            )
        except FileNotFoundError as e:
            raise CompileError(f"CoffeeScript compiler not found: {self.command[0]}") from e
        except subprocess.TimeoutExpired as e:
            raise CompileError(f"CoffeeScript compiler timed out after {self.timeout_s}s") from e
        except OSError as e:
            raise CompileError(f"Cannot run CoffeeScript compiler {self.command[0]}: {e}") from e
        except UnicodeDecodeError as e:
            raise CompileError(f"CoffeeScript compiler wrote non-UTF-8 output: {e}") from e
        if r.returncode != 0:
            detail = (r.stderr or "").strip().splitlines()
            raise CompileError("CoffeeScript compile failed: " + (detail[0] if detail else f"exit {r.returncode}"))
        return r.stdout


def strip_hash_comments(src: str) -> str:
    """Remove '#' line comments and '###' block comments outside of string literals.

    Interpolations ("#{...}") inside double-quoted strings are left alone.
    """
    out: List[str] = []
    i = 0
    n = len(src)
    while i < n:
        if src.startswith("###", i) and not src.startswith("####", i):
            end = src.find("###", i + 3)
            i = n if end == -1 else end + 3
            continue
        c = src[i]
        if c == "#":
            end = src.find("\n", i)
            i = n if end == -1 else end
            continue
        if c in "'\"`/" and (c != "/" or src.startswith("///", i)):
            delim = "///" if c == "/" else (c * 3 if src.startswith(c * 3, i) else c)
            end = _find_closing(src, i + len(delim), delim)
            out.append(src[i:end])
            i = end
            continue
        out.append(c)
        i += 1
    lines = [ln.rstrip() for ln in "".join(out).split("\n")]
    return "\n".join(ln for ln in lines if ln.strip())


def _find_closing(src: str, i: int, delim: str) -> int:
    n = len(src)
    while i < n:
        if src[i] == "\\":
            i += 2
            continue
        if src.startswith(delim, i):
            return i + len(delim)
        i += 1
    return n


def build_registry(settings: Settings) -> Dict[str, ScriptNormalizer]:
    js = JavaScriptNormalizer()
    coffee = CoffeeScriptNormalizer(settings.coffee_command, settings.coffee_timeout_s)
    return {
        "javascript": js,
        "js": js,
        "ecmascript": js,
        "coffeescript": coffee,
        "coffee": coffee,
    }


def normalizer_for(language: str, registry: Dict[str, ScriptNormalizer]) -> ScriptNormalizer:
    try:
        return registry[(language or "").strip().lower()]
    except KeyError:
        raise UnsupportedLanguageError(language) from None


def wrap_script(script: str, mode: str) -> str:
    if mode == "iife":
        return f"(function(){{{script}}})();"
    if mode == "void":
        return f"void (() => {{{script}}})();"
    return script


def encode_uri(script: str) -> str:
    return SCHEME + quote(script, safe=URI_SAFE)


def decode_uri(uri: str) -> str:
    if not uri.startswith(SCHEME):
        raise ValueError(f"not a {SCHEME} URI")
    return unquote(uri[len(SCHEME):])


def to_uri(
    body: str,
    language: str,
    *,
    settings: Optional[Settings] = None,
    registry: Optional[Dict[str, ScriptNormalizer]] = None,
) -> str:
    settings = settings or Settings()
    if registry is None:
        registry = build_registry(settings)
    script = normalizer_for(language, registry).normalize(body)
    return encode_uri(wrap_script(script, settings.wrap))
