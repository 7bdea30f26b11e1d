"""A small JavaScript lexer used to collapse bookmarklet bodies onto one line.

It only knows enough of the grammar to tell code from literals (strings,
template literals, regular expressions) and comments, and to decide where a
line break ended a statement under automatic semicolon insertion. It never
validates the script.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

KEYWORDS = frozenset(
    """
    await break case catch class const continue debugger default delete do else
    export extends finally for function if import in instanceof let new return
    static switch throw try typeof var void while with yield
    """.split()
)
VALUE_KEYWORDS = frozenset(("this", "super", "null", "true", "false"))
# A line break right after these always ends the statement.
RESTRICTED = frozenset(("return", "break", "continue", "throw", "yield"))
# Keywords after which a "/" starts a regular expression.
REGEX_AFTER = frozenset(
    ("return", "typeof", "instanceof", "in", "of", "new", "delete", "void", "throw", "case", "do", "else", "yield", "await")
)
CONTROL_HEADS = frozenset(("if", "for", "while", "with"))
BLOCK_FOLLOWERS = frozenset(("else", "catch", "finally"))

_PUNCTUATORS = sorted(
    """
    >>>= ... === !== **= <<= >>= >>> &&= ||= ??= => == != <= >= && || ?? ?. ++ --
    += -= *= /= %= &= |= ^= ** << >> { } ( ) [ ] ; , < > + - * / % & | ^ ! ~ ? : = . @
    """.split(),
    key=len,
    reverse=True,
)

_IDENT_RE = re.compile(r"#?(?:[^\W\d]|\$)(?:\w|\$)*")
_NUMBER_RE = re.compile(
    r"0[xXoObB][0-9a-fA-F_]+n?|(?:\d[\d_]*(?:\.[\d_]*)?|\.\d[\d_]*)(?:[eE][+-]?\d[\d_]*)?n?"
)
_FLAGS_RE = re.compile(r"[a-zA-Z]*")


@dataclass
class Token:
    kind: str  # word | prop | num | str | tmpl | regex | punct
    text: str
    ws_before: bool = False
    nl_before: bool = False
    # Filled by _mark_context; the lexer sets control_close early for regex detection.
    control_close: bool = False
    do_close: bool = False
    do_tail: bool = False
    depth_kind: Optional[str] = None  # innermost open bracket at this token

    def is_punct(self, *texts: str) -> bool:
        return self.kind == "punct" and self.text in texts

    def is_word(self, *texts: str) -> bool:
        return self.kind == "word" and self.text in texts


def tokenize_js(src: str) -> List[Token]:
    tokens, _ = _lex(src.replace("\r\n", "\n").replace("\r", "\n"), 0, nested=False)
    return tokens


def collapse(tokens: List[Token]) -> str:
    """Join tokens on one line, inserting ';' where a line break ended a statement."""
    _mark_context(tokens)
    out: List[str] = []
    prev: Optional[Token] = None
    for tok in tokens:
        if prev is not None:
            if tok.nl_before and _needs_semicolon(prev, tok):
                out.append("; ")
            elif tok.ws_before or tok.nl_before or _glued(prev, tok):
                out.append(" ")
        out.append(tok.text)
        prev = tok
    return "".join(out)


def minify(src: str) -> str:
    return collapse(tokenize_js(src))


def _lex(src: str, i: int, *, nested: bool) -> Tuple[List[Token], int]:
    tokens: List[Token] = []
    n = len(src)
    ws = nl = False
    depth = 0
    parens: List[bool] = []  # open "(", True for an if/for/while/with head
    while i < n:
        c = src[i]
        if c == "\n":
            nl = True
            i += 1
            continue
        if c in " \t\f\v\u00a0\ufeff":
            ws = True
            i += 1
            continue
        if src.startswith("//", i):
            end = src.find("\n", i)
            i = n if end == -1 else end
            ws = True
            continue
        if src.startswith("/*", i):
            end = src.find("*/", i + 2)
            end = n if end == -1 else end + 2
            if "\n" in src[i:end]:
                nl = True
            ws = True
            i = end
            continue

        prev = tokens[-1] if tokens else None
        control = False
        if c in "'\"":
            i, text = _scan_string(src, i)
            kind = "str"
        elif c == "`":
            i, text = _scan_template(src, i)
            kind = "tmpl"
        elif c == "/" and _regex_allowed(prev):
            end = _scan_regex(src, i)
            if end is None:
                text, kind = "/", "punct"
                i += 1
            else:
                text, kind = src[i:end], "regex"
                i = end
        else:
            m = _NUMBER_RE.match(src, i) if (c.isdigit() or (c == "." and src[i + 1:i + 2].isdigit())) else None
            if m:
                text, kind = m.group(0), "num"
                i = m.end()
            else:
                m = _IDENT_RE.match(src, i)
                if m:
                    text, kind = m.group(0), "word"
                    i = m.end()
                    if prev is not None and prev.is_punct(".", "?."):
                        # Property names may be reserved words: mod.default, s.delete.
                        kind = "prop"
                else:
                    text = next((p for p in _PUNCTUATORS if src.startswith(p, i)), c)
                    kind = "punct"
                    i += len(text)
                    if text == "(":
                        parens.append(prev is not None and prev.is_word(*CONTROL_HEADS))
                    elif text == ")":
                        control = parens.pop() if parens else False
                    elif text == "{":
                        depth += 1
                    elif text == "}":
                        if nested and depth == 0:
                            return tokens, i
                        depth -= 1

        tokens.append(Token(kind=kind, text=text, ws_before=ws, nl_before=nl, control_close=control))
        ws = nl = False
    return tokens, n


def _scan_string(src: str, i: int) -> Tuple[int, str]:
    quote = src[i]
    out = [quote]
    j = i + 1
    n = len(src)
    while j < n:
        c = src[j]
        if c == "\\":
            if src.startswith("\n", j + 1):
                j += 2
                continue
            out.append(src[j:j + 2])
            j += 2
            continue
        if c == quote:
            out.append(quote)
            return j + 1, "".join(out)
        if c == "\n":
            # Not valid JavaScript, but bookmarklet collections do it: splice the lines.
            j += 1
            while j < n and src[j] in " \t":
                j += 1
            continue
        out.append(c)
        j += 1
    return n, "".join(out)


def _scan_template(src: str, i: int) -> Tuple[int, str]:
    out = ["`"]
    j = i + 1
    n = len(src)
    while j < n:
        c = src[j]
        if c == "\\":
            if src.startswith("\n", j + 1):
                j += 2
                continue
            out.append(src[j:j + 2])
            j += 2
            continue
        if c == "`":
            out.append("`")
            return j + 1, "".join(out)
        if src.startswith("${", j):
            inner, j = _lex(src, j + 2, nested=True)
            out.append("${" + collapse(inner) + "}")
            continue
        if c == "\n":
            # Same cooked value, one line.
            out.append("\\n")
        else:
            out.append(c)
        j += 1
    return n, "".join(out)


def _scan_regex(src: str, i: int) -> Optional[int]:
    j = i + 1
    n = len(src)
    in_class = False
    while j < n:
        c = src[j]
        if c == "\n":
            return None
        if c == "\\":
            j += 2
            continue
        if c == "[":
            in_class = True
        elif c == "]":
            in_class = False
        elif c == "/" and not in_class:
            if j == i + 1:
                return None
            return _FLAGS_RE.match(src, j + 1).end()
        j += 1
    return None


def _regex_allowed(prev: Optional[Token]) -> bool:
    if prev is None:
        return True
    if prev.kind in ("prop", "num", "str", "tmpl", "regex"):
        return False
    if prev.kind == "word":
        return prev.text in REGEX_AFTER
    if prev.text == ")":
        # After an if (...) head a statement starts, so "/" opens a regex.
        return prev.control_close
    return prev.text not in ("]", "++", "--")


def _mark_context(tokens: List[Token]) -> None:
    """Annotate control-statement parens, do-blocks and the innermost open bracket."""
    stack: List[Tuple[str, bool]] = []  # (bracket, flag)
    prev: Optional[Token] = None
    for tok in tokens:
        tok.depth_kind = stack[-1][0] if stack else None
        if tok.is_word("while") and prev is not None and prev.do_close:
            tok.do_tail = True
        if tok.kind == "punct":
            if tok.text == "(":
                is_control = prev is not None and prev.is_word(*CONTROL_HEADS) and not prev.do_tail
                stack.append(("(", is_control))
            elif tok.text == "[":
                stack.append(("[", False))
            elif tok.text == "{":
                stack.append(("{", prev is not None and prev.is_word("do")))
            elif tok.text in (")", "]", "}") and stack:
                _bracket, flag = stack.pop()
                if tok.text == ")":
                    tok.control_close = flag
                elif tok.text == "}":
                    tok.do_close = flag
        prev = tok


def _ends_expression(tok: Token) -> bool:
    if tok.kind in ("prop", "num", "str", "tmpl", "regex"):
        return True
    if tok.kind == "word":
        return tok.text in VALUE_KEYWORDS or tok.text not in KEYWORDS
    if tok.text == ")":
        return not tok.control_close
    return tok.text in ("]", "}", "++", "--")


def _starts_statement(tok: Token) -> bool:
    if tok.kind in ("prop", "num", "str", "regex"):
        return True
    if tok.kind == "word":
        return tok.text not in ("in", "instanceof", "of")
    return tok.text in ("{", "!", "~", "++", "--")


def _needs_semicolon(prev: Token, tok: Token) -> bool:
    if tok.depth_kind not in (None, "{"):
        return False
    if prev.kind == "word" and prev.text in RESTRICTED:
        return True
    if not (_ends_expression(prev) and _starts_statement(tok)):
        return False
    if prev.text == "}" and (tok.is_word(*BLOCK_FOLLOWERS) or tok.do_tail):
        return False
    if prev.text == ")" and tok.is_punct("{"):
        return False
    return True


def _glued(prev: Token, tok: Token) -> bool:
    # Only reachable when the source had no whitespace; keeps "a+ +b" apart after comment removal.
    if prev.kind in ("word", "prop", "num", "regex") and tok.kind in ("word", "prop", "num"):
        return True
    return prev.text in ("+", "++") and tok.text.startswith("+") or prev.text in ("-", "--") and tok.text.startswith("-")
