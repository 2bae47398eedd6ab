"""Document Codec - DOT text <-> GraphDocument.

This module owns the single escaping boundary of waymark. Every label and
attribute value that ends up in a persisted document or in a generated
gvpr program passes through ``escape_literal``.

Escaping rules (``escape_literal``):
- ``\\`` becomes ``\\\\``, except in front of a Graphviz label escape
  (``\\N``, ``\\G``, ``\\E``, ``\\T``, ``\\H``, ``\\L``, ``\\l``), which is
  kept as written so default labels such as ``"\\N"`` survive a rewrite
- ``"`` becomes ``\\"`` (quoted form only)
- newline, carriage return and tab become ``\\n``, ``\\r``, ``\\t``
- NUL cannot be represented and raises EncodingFailure

``unescape_literal`` is the exact inverse. The unquoted form
(``quote=False``) is what Graphviz keeps in memory after reading a quoted
DOT string; it is also the one-literal-per-line wire form of query results.

The parser accepts the DOT subset written by ``serialize`` and by Graphviz
tools (``gvpr -c`` output): quoted, bare, numeric and HTML IDs, comments,
``strict``, ``digraph``, default statements, attribute lists and edge
chains. Subgraphs and undirected graphs are rejected.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterator, Mapping

from waymark.errors import DocumentFormatError, EncodingFailure
from waymark.graph.document import GraphDocument

_ESCAPES = {"\\": "\\\\", "\n": "\\n", "\r": "\\r", "\t": "\\t"}
_UNESCAPES = {"\\": "\\", '"': '"', "n": "\n", "r": "\r", "t": "\t"}

# Graphviz escString letters; a backslash in front of these is not doubled
_GRAPHVIZ_ESCAPES = frozenset("NGETHLl")

_KEY_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*\Z")
_BARE_ID_RE = re.compile(r"[A-Za-z_\u0080-\U0010ffff][A-Za-z0-9_\u0080-\U0010ffff]*")
_NUMERAL_RE = re.compile(r"-?(?:\.[0-9]+|[0-9]+(?:\.[0-9]*)?)")

_KEYWORDS = frozenset({"strict", "graph", "digraph", "node", "edge", "subgraph"})


def escape_literal(value: str, quote: bool = True) -> str:
    """Render a string safe for embedding between double quotes.

    Args:
        value: Raw string.
        quote: Also escape double quotes. Pass False for the in-memory
            (Graphviz) form.

    Returns:
        The escaped string, without surrounding quotes.

    Raises:
        EncodingFailure: If the value contains NUL.
    """
    if "\x00" in value:
        raise EncodingFailure("NUL characters cannot be stored in a graph document", value)

    out: list[str] = []
    for i, ch in enumerate(value):
        if ch == "\\":
            nxt = value[i + 1] if i + 1 < len(value) else ""
            out.append("\\" if nxt in _GRAPHVIZ_ESCAPES else "\\\\")
        elif ch == '"':
            out.append('\\"' if quote else '"')
        else:
            out.append(_ESCAPES.get(ch, ch))
    return "".join(out)


def unescape_literal(value: str) -> str:
    """Invert ``escape_literal``.

    Unknown escape sequences are kept verbatim.
    """
    if "\\" not in value:
        return value

    out: list[str] = []
    i = 0
    while i < len(value):
        ch = value[i]
        if ch == "\\" and i + 1 < len(value) and value[i + 1] in _UNESCAPES:
            out.append(_UNESCAPES[value[i + 1]])
            i += 2
            continue
        out.append(ch)
        i += 1
    return "".join(out)


def quote_literal(value: str) -> str:
    """Escape and wrap a value in double quotes."""
    return f'"{escape_literal(value)}"'


def program_literal(value: str) -> str:
    """Render a value as a C-style string literal for a gvpr program.

    The literal denotes the value in Graphviz's in-memory form, so it
    compares equal to names and attributes gvpr read from the document.
    """
    memory = escape_literal(value, quote=False)
    return '"' + memory.replace("\\", "\\\\").replace('"', '\\"') + '"'


def check_attribute_key(key: str) -> str:
    """Validate an attribute name.

    Attribute names are written bare in DOT and used as field names in
    gvpr programs, so they must be plain identifiers.

    Raises:
        EncodingFailure: If the key is not an identifier.
    """
    if not _KEY_RE.match(key):
        raise EncodingFailure(f"Invalid attribute name: {key!r}", key)
    return key


# ─────────────────────────────────────────────────────────────────────────────
# Serialization
# ─────────────────────────────────────────────────────────────────────────────


def _format_attrs(attrs: Mapping[str, str]) -> str:
    items = ", ".join(f"{check_attribute_key(k)}={quote_literal(v)}" for k, v in attrs.items())
    return f"[{items}]"


def serialize(document: GraphDocument) -> str:
    """Serialize a GraphDocument to DOT text.

    Args:
        document: The document to serialize.

    Returns:
        DOT source, newline terminated.
    """
    header = f"digraph {quote_literal(document.name)} {{"
    if document.strict:
        header = "strict " + header
    lines = [header]

    for keyword, attrs in (
        ("graph", document.graph_attrs),
        ("node", document.node_defaults),
        ("edge", document.edge_defaults),
    ):
        if attrs:
            lines.append(f"\t{keyword} {_format_attrs(attrs)};")

    for node in document.iter_nodes():
        stmt = quote_literal(node.label)
        if node.attrs:
            stmt += " " + _format_attrs(node.attrs)
        lines.append(f"\t{stmt};")

    for edge in document.iter_edges():
        stmt = f"{quote_literal(edge.tail)} -> {quote_literal(edge.head)}"
        if edge.attrs:
            stmt += " " + _format_attrs(edge.attrs)
        lines.append(f"\t{stmt};")

    lines.append("}")
    return "\n".join(lines) + "\n"


# ─────────────────────────────────────────────────────────────────────────────
# Deserialization
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Token:
    """A lexical token.

    Attributes:
        kind: "id", "keyword", "arrow", "undirected" or the punctuation itself.
        value: Decoded text for IDs, the lowercase keyword, or the symbol.
        line: 1-based source line.
    """

    kind: str
    value: str
    line: int


def tokenize(text: str) -> Iterator[Token]:
    """Split DOT text into tokens.

    Raises:
        DocumentFormatError: On unterminated strings or comments, or
            unexpected characters.
    """
    i = 0
    line = 1
    at_line_start = True
    n = len(text)

    while i < n:
        ch = text[i]

        if ch == "\n":
            line += 1
            i += 1
            at_line_start = True
            continue
        if ch in " \t\r\f\v":
            i += 1
            continue

        # Preprocessor output lines
        if ch == "#" and at_line_start:
            end = text.find("\n", i)
            i = n if end == -1 else end
            continue
        at_line_start = False

        if text.startswith("//", i):
            end = text.find("\n", i)
            i = n if end == -1 else end
            continue
        if text.startswith("/*", i):
            end = text.find("*/", i + 2)
            if end == -1:
                raise DocumentFormatError("unterminated comment", line)
            line += text.count("\n", i, end)
            i = end + 2
            continue

        if text.startswith("->", i):
            yield Token("arrow", "->", line)
            i += 2
            continue
        if text.startswith("--", i):
            yield Token("undirected", "--", line)
            i += 2
            continue

        if ch in "{}[]=;,:":
            yield Token(ch, ch, line)
            i += 1
            continue

        if ch == '"':
            start_line = line
            raw, i, line = _read_quoted(text, i, line)
            # "a" + "b" concatenation
            while True:
                j = i
                while j < n and text[j] in " \t\r\n":
                    j += 1
                if j < n and text[j] == "+":
                    k = j + 1
                    while k < n and text[k] in " \t\r\n":
                        k += 1
                    if k < n and text[k] == '"':
                        line += text.count("\n", i, k)
                        more, i, line = _read_quoted(text, k, line)
                        raw += more
                        continue
                break
            yield Token("id", unescape_literal(raw), start_line)
            continue

        if ch == "<":
            start_line = line
            depth = 0
            j = i
            while j < n:
                if text[j] == "<":
                    depth += 1
                elif text[j] == ">":
                    depth -= 1
                    if depth == 0:
                        break
                elif text[j] == "\n":
                    line += 1
                j += 1
            if depth != 0:
                raise DocumentFormatError("unterminated HTML string", start_line)
            yield Token("id", text[i : j + 1], start_line)
            i = j + 1
            continue

        match = _NUMERAL_RE.match(text, i) if (ch.isdigit() or ch in "-.") else None
        if match:
            yield Token("id", match.group(0), line)
            i = match.end()
            continue

        match = _BARE_ID_RE.match(text, i)
        if match:
            word = match.group(0)
            if word.lower() in _KEYWORDS:
                yield Token("keyword", word.lower(), line)
            else:
                yield Token("id", word, line)
            i = match.end()
            continue

        raise DocumentFormatError(f"unexpected character {ch!r}", line)


def _read_quoted(text: str, i: int, line: int) -> tuple[str, int, int]:
    """Read a quoted string starting at ``text[i] == '"'``.

    Returns:
        Tuple of (raw content with escapes intact, index after the closing
        quote, updated line number).
    """
    start_line = line
    out: list[str] = []
    i += 1
    n = len(text)
    while i < n:
        ch = text[i]
        if ch == "\\" and i + 1 < n:
            nxt = text[i + 1]
            if nxt == "\n":
                # Line continuation
                line += 1
                i += 2
                continue
            if nxt == "\r" and text.startswith("\r\n", i + 1):
                line += 1
                i += 3
                continue
            out.append(ch + nxt)
            i += 2
            continue
        if ch == '"':
            return "".join(out), i + 1, line
        if ch == "\n":
            line += 1
        out.append(ch)
        i += 1
    raise DocumentFormatError("unterminated string", start_line)


class _Parser:
    """Recursive-descent parser over the token stream."""

    def __init__(self, text: str):
        self._tokens = list(tokenize(text))
        self._pos = 0

    def _peek(self, offset: int = 0) -> Token | None:
        pos = self._pos + offset
        return self._tokens[pos] if pos < len(self._tokens) else None

    def _next(self) -> Token:
        token = self._peek()
        if token is None:
            last = self._tokens[-1].line if self._tokens else 1
            raise DocumentFormatError("unexpected end of document", last)
        self._pos += 1
        return token

    def _expect(self, kind: str) -> Token:
        token = self._next()
        if token.kind != kind:
            raise DocumentFormatError(f"expected {kind!r}, found {token.value!r}", token.line)
        return token

    def _accept(self, kind: str, value: str | None = None) -> Token | None:
        token = self._peek()
        if token is not None and token.kind == kind and (value is None or token.value == value):
            self._pos += 1
            return token
        return None

    def parse(self) -> GraphDocument:
        strict = self._accept("keyword", "strict") is not None
        kind = self._expect("keyword")
        if kind.value == "graph":
            raise DocumentFormatError("undirected graphs are not supported", kind.line)
        if kind.value != "digraph":
            raise DocumentFormatError(f"expected 'digraph', found {kind.value!r}", kind.line)

        name_token = self._accept("id")
        document = GraphDocument(name=name_token.value if name_token else "", strict=strict)

        self._expect("{")
        while not self._accept("}"):
            self._statement(document)

        trailing = self._peek()
        if trailing is not None:
            raise DocumentFormatError(
                f"unexpected {trailing.value!r} after end of graph", trailing.line
            )
        return document

    def _statement(self, document: GraphDocument) -> None:
        token = self._peek()
        if token is None:
            raise DocumentFormatError("unterminated graph body", self._tokens[-1].line)

        if token.kind == ";":
            self._pos += 1
            return

        if token.kind == "{" or (token.kind == "keyword" and token.value == "subgraph"):
            raise DocumentFormatError("subgraphs are not supported", token.line)

        if token.kind == "keyword" and token.value in ("graph", "node", "edge"):
            self._pos += 1
            attrs = self._attr_lists()
            target = {
                "graph": document.graph_attrs,
                "node": document.node_defaults,
                "edge": document.edge_defaults,
            }[token.value]
            target.update(attrs)
            return

        if token.kind != "id":
            raise DocumentFormatError(f"unexpected {token.value!r}", token.line)

        # ID '=' ID at graph level
        after = self._peek(1)
        if after is not None and after.kind == "=":
            if not _KEY_RE.match(token.value):
                raise DocumentFormatError(f"invalid attribute name {token.value!r}", token.line)
            self._pos += 2
            value = self._expect("id")
            document.graph_attrs[token.value] = value.value
            return

        endpoints = [self._node_id()]
        while True:
            arrow = self._peek()
            if arrow is not None and arrow.kind == "undirected":
                raise DocumentFormatError("undirected edges are not supported", arrow.line)
            if not self._accept("arrow"):
                break
            endpoints.append(self._node_id())

        attrs = self._attr_lists()
        if len(endpoints) == 1:
            document.upsert_node(endpoints[0], attrs)
            return
        for tail, head in zip(endpoints, endpoints[1:]):
            document.add_edge(tail, head, attrs)

    def _node_id(self) -> str:
        token = self._peek()
        if token is not None and (
            token.kind == "{" or (token.kind == "keyword" and token.value == "subgraph")
        ):
            raise DocumentFormatError("subgraphs are not supported", token.line)
        label = self._expect("id").value
        # Ports are accepted and dropped
        while self._accept(":"):
            self._expect("id")
        return label

    def _attr_word(self) -> str:
        # Keywords are valid attribute names and values
        token = self._next()
        if token.kind not in ("id", "keyword"):
            raise DocumentFormatError(f"expected an attribute, found {token.value!r}", token.line)
        return token.value

    def _attr_key(self) -> str:
        key = self._attr_word()
        if not _KEY_RE.match(key):
            raise DocumentFormatError(
                f"invalid attribute name {key!r}", self._tokens[self._pos - 1].line
            )
        return key

    def _attr_lists(self) -> dict[str, str]:
        attrs: dict[str, str] = {}
        while self._accept("["):
            while not self._accept("]"):
                key = self._attr_key()
                if self._accept("="):
                    attrs[key] = self._attr_word()
                else:
                    attrs[key] = "true"
                if not self._accept(","):
                    self._accept(";")
        return attrs


def deserialize(text: str) -> GraphDocument:
    """Parse DOT text into a GraphDocument.

    Args:
        text: DOT source.

    Returns:
        The parsed document.

    Raises:
        DocumentFormatError: If the text is not a supported DOT document.
    """
    return _Parser(text).parse()


__all__ = [
    "escape_literal",
    "unescape_literal",
    "quote_literal",
    "program_literal",
    "check_attribute_key",
    "serialize",
    "deserialize",
    "tokenize",
    "Token",
]
