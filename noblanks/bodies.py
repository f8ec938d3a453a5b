"""
noblanks/bodies.py
══════════════════

Extraction of function bodies from a Cppcheck ``Configuration``.

Both kinds of body the rule cares about are scopes in the dump:

    Function   ``int main(void) { ... }``       → named body
    Lambda     ``[&](int x) { ... }``           → anonymous body

Each scope is turned into a ``FunctionBody``: the ordered list of its
top-level statements, each reduced to a start and end ``Position``.  The
statement walk runs over the token list between ``bodyStart`` and
``bodyEnd`` and skips bracketed groups through ``tok.link``, so blocks
belonging to ``if``/``for``/``while`` count as a single statement of the
enclosing body and are never flattened into it.

License: MIT
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Iterator, List, Optional, Set, Tuple

_log = logging.getLogger(__name__)

# We use Any for cppcheckdata objects to avoid a hard dependency on the
# cppcheckdata module at import time.
Token = Any
Scope = Any

BODY_SCOPE_TYPES = frozenset({"Function", "Lambda"})

# A '{' preceded by one of these opens a statement block.  ':' covers
# labeled and `case` blocks.
_BLOCK_PRECEDERS = frozenset({")", ":", "else", "do", "try"})

# After a statement block closes, these keep the statement going.
_BLOCK_CONTINUERS = frozenset({"else", "catch"})


@dataclass(frozen=True, order=True)
class Position:
    """A 1-based source position.  ``column`` 0 means unknown."""
    file: str = ""
    line: int = 0
    column: int = 0

    def __str__(self) -> str:
        if self.column:
            return f"{self.file}:{self.line}:{self.column}"
        return f"{self.file}:{self.line}"


@dataclass(frozen=True)
class Statement:
    """Span of one top-level statement: first character to just past the last."""
    start: Position
    end: Position


@dataclass(frozen=True)
class FunctionBody:
    """
    The statements of one function or lambda body, in source order.

    Attributes
    ----------
    name       : Function name, or None for a lambda
    kind       : "Function" or "Lambda"
    statements : Top-level statements of the body
    location   : Position of the opening brace
    """
    name: Optional[str]
    kind: str
    statements: Tuple[Statement, ...]
    location: Position = Position()

    @property
    def display_name(self) -> str:
        return self.name or "anonymous"

    @property
    def file(self) -> str:
        return self.location.file


# ═════════════════════════════════════════════════════════════════════════
#  TOKEN HELPERS
# ═════════════════════════════════════════════════════════════════════════

def _tok_str(tok: Token) -> str:
    return getattr(tok, "str", "") or ""


def _tok_pos(tok: Token) -> Position:
    return Position(
        file=getattr(tok, "file", "") or "",
        line=int(getattr(tok, "linenr", 0) or 0),
        column=int(getattr(tok, "column", 0) or 0),
    )


def _tok_end_pos(tok: Token) -> Position:
    pos = _tok_pos(tok)
    if pos.column:
        return Position(pos.file, pos.line, pos.column + len(_tok_str(tok)))
    return pos


# ═════════════════════════════════════════════════════════════════════════
#  STATEMENT SPLITTING
# ═════════════════════════════════════════════════════════════════════════

def _opens_block(brace: Token, first: Token, lambda_starts: Set[int]) -> bool:
    """Whether ``brace`` opens a statement block rather than an expression."""
    if id(brace) in lambda_starts:
        return False
    if brace is first:
        return True
    prev = getattr(brace, "previous", None)
    return _tok_str(prev) in _BLOCK_PRECEDERS


def _statement_last_token(
    first: Token, limit: Token, lambda_starts: Set[int]
) -> Optional[Token]:
    """
    Return the last token of the statement beginning at ``first``.

    ``None`` means the token links are broken and the statement cannot be
    delimited.
    """
    starts_with_do = _tok_str(first) == "do"
    last = first
    tok = first
    while tok is not None and tok is not limit:
        s = _tok_str(tok)
        if s == ";":
            return tok
        if s in ("(", "["):
            close = getattr(tok, "link", None)
            if close is None:
                return None
            last = close
            tok = close.next
            continue
        if s == "{":
            close = getattr(tok, "link", None)
            if close is None:
                return None
            if _opens_block(tok, first, lambda_starts):
                follower = _tok_str(close.next)
                if follower in _BLOCK_CONTINUERS or (
                        starts_with_do and follower == "while"):
                    last = close
                    tok = close.next
                    continue
                return close
            last = close
            tok = close.next
            continue
        last = tok
        tok = tok.next
    # Ran into the closing brace of the body without a terminator.
    return last


def iter_statements(
    body_start: Token,
    body_end: Token,
    lambda_starts: Iterable[int] = (),
) -> Iterator[Tuple[Token, Token]]:
    """
    Yield ``(first, last)`` token pairs for each top-level statement between
    ``body_start`` ('{') and ``body_end`` ('}').

    ``lambda_starts`` holds ``id()`` of the '{' tokens opening lambda
    bodies, which are expression parts rather than statement blocks.
    """
    starts = set(lambda_starts)
    tok = getattr(body_start, "next", None)
    while tok is not None and tok is not body_end:
        last = _statement_last_token(tok, body_end, starts)
        if last is None:
            raise ValueError(
                f"unbalanced token links at {_tok_pos(tok)}"
            )
        yield tok, last
        tok = last.next


def split_statements(
    body_start: Token,
    body_end: Token,
    lambda_starts: Iterable[int] = (),
) -> Tuple[Statement, ...]:
    return tuple(
        Statement(start=_tok_pos(first), end=_tok_end_pos(last))
        for first, last in iter_statements(body_start, body_end, lambda_starts)
    )


# ═════════════════════════════════════════════════════════════════════════
#  BODY EXTRACTION
# ═════════════════════════════════════════════════════════════════════════

def scope_function_name(scope: Scope) -> Optional[str]:
    """Name of the function owning a Function scope; None for lambdas."""
    if getattr(scope, "type", "") == "Lambda":
        return None
    name = getattr(scope, "className", None)
    if name:
        return name
    func = getattr(scope, "function", None)
    if func is not None:
        return getattr(func, "name", None) or None
    return None


def body_from_scope(
    scope: Scope, lambda_starts: Iterable[int] = ()
) -> Optional[FunctionBody]:
    """
    Build the ``FunctionBody`` for one scope.

    Returns None for scopes that are not function/lambda bodies, have no
    body tokens, or whose token links are broken.
    """
    kind = getattr(scope, "type", "")
    if kind not in BODY_SCOPE_TYPES:
        return None
    start = getattr(scope, "bodyStart", None)
    end = getattr(scope, "bodyEnd", None)
    if start is None or end is None:
        return None
    try:
        statements = split_statements(start, end, lambda_starts)
    except ValueError as exc:
        _log.debug("Skipping %s body: %s", kind, exc)
        return None
    return FunctionBody(
        name=scope_function_name(scope),
        kind=kind,
        statements=statements,
        location=_tok_pos(start),
    )


def extract_function_bodies(cfg: Any) -> List[FunctionBody]:
    """
    Collect every function and lambda body of a configuration.

    Parameters
    ----------
    cfg : cppcheckdata.Configuration (anything with a ``scopes`` list)
    """
    scopes = list(getattr(cfg, "scopes", []) or [])
    lambda_starts = {
        id(s.bodyStart) for s in scopes
        if getattr(s, "type", "") == "Lambda"
        and getattr(s, "bodyStart", None) is not None
    }
    bodies: List[FunctionBody] = []
    for scope in scopes:
        body = body_from_scope(scope, lambda_starts)
        if body is not None:
            bodies.append(body)
    _log.debug("Extracted %d function bodies", len(bodies))
    return bodies
