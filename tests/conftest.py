# tests/conftest.py
"""
Shared fixtures: lightweight stand-ins for the ``cppcheckdata`` objects
(Token, Scope, Configuration, CppcheckData) and a tiny C tokenizer that
builds them from source text the way ``cppcheck --dump`` would: comments
and preprocessor lines dropped, brackets linked, function/lambda scopes
recorded with their body braces.
"""

import re
from pathlib import Path
from typing import List, Optional

import pytest


class MockToken:
    def __init__(self, str="", file="test.c", linenr=1, column=1, **kw):
        self.str = str
        self.file = file
        self.linenr = linenr
        self.column = column
        self.next = None
        self.previous = None
        self.link = None
        self.scope = None
        for k, v in kw.items():
            setattr(self, k, v)

    def __repr__(self):
        return f"<MockToken {self.str!r} {self.file}:{self.linenr}:{self.column}>"


class MockFunction:
    def __init__(self, name=""):
        self.name = name


class MockScope:
    def __init__(self, type="Function", className="", bodyStart=None,
                 bodyEnd=None, function=None, nestedIn=None):
        self.type = type
        self.className = className
        self.bodyStart = bodyStart
        self.bodyEnd = bodyEnd
        self.function = function
        self.nestedIn = nestedIn


class MockSuppression:
    def __init__(self, errorId="", fileName="", lineNumber=0):
        self.errorId = errorId
        self.fileName = fileName
        self.lineNumber = lineNumber


class MockConfiguration:
    def __init__(self, tokenlist=None, scopes=None, suppressions=None, name=""):
        self.tokenlist = tokenlist or []
        self.scopes = scopes or []
        self.suppressions = suppressions or []
        self.name = name


class MockCppcheckData:
    def __init__(self, configurations=None):
        self.configurations = configurations or []


def make_token_chain(specs: List[dict]) -> List[MockToken]:
    """Build a doubly-linked token list from attribute dicts."""
    tokens = [MockToken(**spec) for spec in specs]
    for prev, nxt in zip(tokens, tokens[1:]):
        prev.next = nxt
        nxt.previous = prev
    return tokens


# ── C tokenizer ──────────────────────────────────────────────────────────

_TOKEN_RE = re.compile(r"""
      (?P<ws>[ \t\f\v\r]+)
    | (?P<nl>\n)
    | (?P<line_comment>//[^\n]*)
    | (?P<block_comment>/\*.*?\*/)
    | (?P<string>"(?:\\.|[^"\\\n])*")
    | (?P<char>'(?:\\.|[^'\\\n])*')
    | (?P<name>[A-Za-z_]\w*)
    | (?P<number>\d[\w.]*)
    | (?P<op>->|\+\+|--|<<=|>>=|<<|>>|<=|>=|==|!=|&&|\|\||::|[-+*/%&|^!~<>=?:;,.()\[\]{}])
""", re.VERBOSE | re.DOTALL)

_OPEN_TO_CLOSE = {"(": ")", "[": "]", "{": "}"}

_CONTROL_SCOPES = {
    "if": "If", "for": "For", "while": "While", "switch": "Switch",
    "catch": "Catch", "else": "Else", "do": "Do", "try": "Try",
}


def tokenize_c(source: str, file: str = "test.c") -> List[MockToken]:
    """Tokenize C source into linked MockTokens (1-based line/column)."""
    specs = []
    line = 1
    line_start = 0
    pos = 0
    at_line_start = True
    while pos < len(source):
        if at_line_start:
            m = re.match(r"[ \t]*#[^\n]*", source[pos:])
            if m:
                pos += m.end()
                continue
        m = _TOKEN_RE.match(source, pos)
        if m is None:
            raise ValueError(f"cannot tokenize at offset {pos}: {source[pos:pos + 10]!r}")
        kind = m.lastgroup
        text = m.group()
        if kind == "nl":
            line += 1
            line_start = m.end()
            at_line_start = True
        elif kind == "block_comment":
            newlines = text.count("\n")
            if newlines:
                line += newlines
                line_start = m.start() + text.rfind("\n") + 1
        elif kind not in ("ws", "line_comment"):
            specs.append({"str": text, "file": file, "linenr": line,
                          "column": m.start() - line_start + 1})
            at_line_start = False
        pos = m.end()

    tokens = make_token_chain(specs)
    stack = []
    for tok in tokens:
        if tok.str in _OPEN_TO_CLOSE:
            stack.append(tok)
        elif tok.str in (")", "]", "}"):
            opener = stack.pop()
            assert _OPEN_TO_CLOSE[opener.str] == tok.str, f"unbalanced at {tok}"
            opener.link = tok
            tok.link = opener
    assert not stack, "unbalanced brackets"
    return tokens


def _scope_for_brace(brace: MockToken) -> Optional[MockScope]:
    prev = brace.previous
    if prev is None:
        return None
    if prev.str == "]":
        return MockScope(type="Lambda")
    if prev.str in ("else", "do", "try"):
        return MockScope(type=_CONTROL_SCOPES[prev.str])
    if prev.str != ")":
        return None
    before = prev.link.previous
    if before is None:
        return None
    if before.str == "]":
        return MockScope(type="Lambda")
    if before.str in _CONTROL_SCOPES:
        return MockScope(type=_CONTROL_SCOPES[before.str])
    if re.match(r"[A-Za-z_]\w*$", before.str):
        return MockScope(type="Function", className=before.str,
                         function=MockFunction(before.str))
    return None


def make_cfg_from_source(source: str, file: str = "test.c") -> MockConfiguration:
    """Build a configuration with Global, Function, Lambda and control scopes."""
    tokens = tokenize_c(source, file)
    scopes = [MockScope(type="Global")]
    for tok in tokens:
        if tok.str != "{":
            continue
        scope = _scope_for_brace(tok)
        if scope is None:
            continue
        scope.bodyStart = tok
        scope.bodyEnd = tok.link
        scopes.append(scope)
    return MockConfiguration(tokenlist=tokens, scopes=scopes)


@pytest.fixture
def c_source(tmp_path):
    """Write C source into tmp_path; return (path, configuration)."""
    def _write(source: str, name: str = "test.c"):
        path: Path = tmp_path / name
        path.write_bytes(source.encode("utf-8"))
        return str(path), make_cfg_from_source(source, str(path))
    return _write
