"""
OpenFOAM Dictionary Parser

Consumes the token stream of one file and builds the generic parse tree:

    FoamFile { version 2.0; format ascii; class volScalarField; object p; }
    dimensions      [0 2 -2 0 0 0 0];
    internalField   uniform 0;
    boundaryField   { inlet { type zeroGradient; } }

Mesh files (points, faces, owner, neighbour, boundary) have no keyed body;
their count-prefixed list ends up in ``FoamFile.data``.

The header is checked as soon as it is parsed: a ``format binary;`` header
raises UnsupportedFormat before a single body token is read.
"""

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Dict, Iterator, List, Optional, Tuple, Union

from openfoamparser.exceptions import ParseError, UnsupportedFormat
from openfoamparser.parsing.nodes import (
    Dictionary, Dimensions, ListNode, Node, Number, Sequence, String,
    UniformList, Word, as_text,
)
from openfoamparser.parsing.tokenizer import Token, TokenKind, Tokenizer

logger = logging.getLogger(__name__)

HEADER_KEYWORD = "FoamFile"
SUPPORTED_FORMATS = ("ascii",)

# Words that may open a line inside a multi-line value.
VALUE_CONTINUATION_WORDS = ("uniform", "nonuniform")


@dataclass(frozen=True)
class FoamFile:
    """Root of a parsed file: header, keyed body and bare top-level data."""
    header: Dictionary
    body: Dictionary
    data: Tuple[Node, ...] = ()
    source: Optional[str] = field(default=None, compare=False)

    @property
    def format(self) -> str:
        return as_text(self.header.get("format")) or "ascii"

    @property
    def class_name(self) -> Optional[str]:
        return as_text(self.header.get("class"))

    @property
    def object_name(self) -> Optional[str]:
        return as_text(self.header.get("object"))

    def __getitem__(self, key: str) -> Node:
        return self.body[key]

    def __contains__(self, key: object) -> bool:
        return key in self.body

    def get(self, key: str, default=None):
        return self.body.get(key, default)


class _TokenStream:
    """Lookahead buffer over the lazy token iterator."""

    def __init__(self, tokens: Iterator[Token]):
        self._tokens = tokens
        self._buffer: Deque[Token] = deque()
        self.last: Optional[Token] = None

    def peek(self, ahead: int = 0) -> Token:
        while len(self._buffer) <= ahead:
            token = next(self._tokens)
            self._buffer.append(token)
            if token.kind is TokenKind.EOF:
                # Pad so that further lookahead keeps returning EOF.
                while len(self._buffer) <= ahead:
                    self._buffer.append(token)
        return self._buffer[ahead]

    def next(self) -> Token:
        token = self.peek()
        if token.kind is not TokenKind.EOF:
            self._buffer.popleft()
            self.last = token
        return token


class FoamParser:
    """
    Recursive descent parser for the OpenFOAM ASCII dictionary format.

    Grammar (informally):
        file    := [ 'FoamFile' '{' entries '}' ] ( entry | item )*
        entry   := key ( '{' entries '}' [';'] | value ';' )
        value   := item*
        item    := number | word | string | list | uniform-list | dims
        list    := [ integer ] '(' ( item | key '{' entries '}' )* ')'
        uniform-list := integer '{' item '}'
        dims    := '[' ( number | word )* ']'
    """

    def __init__(self, data: Union[bytes, str], source: Optional[str] = None):
        self.tokenizer = Tokenizer(data, source)
        self.source = source
        self._stream: Optional[_TokenStream] = None

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def parse(self) -> FoamFile:
        self._stream = _TokenStream(iter(self.tokenizer))
        header = Dictionary()

        first = self._stream.peek()
        if first.kind is TokenKind.WORD and first.text == HEADER_KEYWORD:
            self._stream.next()
            opening = self._expect("{")
            header = self._parse_entries(opening.offset)
            self._expect("}")
            self._check_header(header)
            self._skip_semicolons()
        else:
            logger.debug(f"No FoamFile header in {self.source or '<string>'}")

        entries: Dict[str, Node] = {}
        patterns = set()
        data: List[Node] = []
        while True:
            token = self._stream.peek()
            if token.kind is TokenKind.EOF:
                break
            if token.is_punct(";"):
                self._stream.next()
                continue
            if token.kind in (TokenKind.WORD, TokenKind.STRING):
                self._parse_entry(entries, patterns)
            elif token.kind is TokenKind.NUMBER or token.is_punct("("):
                data.append(self._parse_item())
            else:
                raise self._error("unexpected token", token, "keyword or list")

        body = Dictionary(entries, patterns=frozenset(patterns), offset=0)
        return FoamFile(header=header, body=body, data=tuple(data), source=self.source)

    # ------------------------------------------------------------------ #
    # Grammar rules
    # ------------------------------------------------------------------ #

    def _check_header(self, header: Dictionary) -> None:
        fmt = as_text(header.get("format"))
        if fmt is not None and fmt not in SUPPORTED_FORMATS:
            raise UnsupportedFormat(fmt, source=self.source)

    def _parse_entries(self, offset: int, name: Optional[str] = None) -> Dictionary:
        """Parse entries up to (not including) the closing brace."""
        entries: Dict[str, Node] = {}
        patterns = set()
        while True:
            token = self._stream.peek()
            if token.is_punct("}"):
                break
            if token.is_punct(";"):
                self._stream.next()
                continue
            if token.kind in (TokenKind.WORD, TokenKind.STRING):
                self._parse_entry(entries, patterns)
                continue
            raise self._error("malformed dictionary", token, "keyword or '}'")
        return Dictionary(entries, name=name, patterns=frozenset(patterns), offset=offset)

    def _parse_entry(self, entries: Dict[str, Node], patterns: set) -> None:
        key_token = self._stream.next()
        key = key_token.value if key_token.kind is TokenKind.STRING else key_token.text
        if key in entries:
            raise self._error("duplicate key", key_token, "unique key")

        if self._stream.peek().is_punct("{"):
            opening = self._stream.next()
            value: Node = self._parse_entries(opening.offset)
            self._expect("}")
            if self._stream.peek().is_punct(";"):
                self._stream.next()
        else:
            value = self._parse_value()
            self._expect(";")

        entries[key] = value
        if key_token.kind is TokenKind.STRING:
            patterns.add(key)

    def _parse_value(self) -> Node:
        start = self._stream.peek()
        items: List[Node] = []
        while True:
            token = self._stream.peek()
            if token.is_punct(";"):
                break
            if token.kind is TokenKind.EOF or token.is_punct("}"):
                raise self._error("unterminated entry", token, "';'")
            if token.kind in (TokenKind.WORD, TokenKind.STRING) and self._stream.peek(1).is_punct("{"):
                # A new sub-dictionary starts: the previous entry lost its ';'.
                raise self._error("unterminated entry", token, "';'")
            if items and self._starts_new_entry(token):
                # The next line opens a plain entry: the previous one lost its ';'.
                previous = self._stream.last
                raise ParseError("unterminated entry", previous.offset + len(previous.text),
                                 expected="';'", found=str(token), source=self.source)
            items.append(self._parse_item())

        if len(items) == 1:
            return items[0]
        return Sequence(tuple(items), offset=start.offset)

    def _parse_item(self) -> Node:
        token = self._stream.next()

        if token.kind is TokenKind.NUMBER:
            following = self._stream.peek()
            if isinstance(token.value, int) and token.value >= 0:
                if following.is_punct("("):
                    self._stream.next()
                    return self._parse_list(token.offset, count=token.value)
                if following.is_punct("{"):
                    self._stream.next()
                    value = self._parse_item()
                    self._expect("}")
                    return UniformList(token.value, value, offset=token.offset)
            return Number(token.value, offset=token.offset)

        if token.kind is TokenKind.WORD:
            return Word(token.text, offset=token.offset)

        if token.kind is TokenKind.STRING:
            return String(token.value, offset=token.offset)

        if token.is_punct("("):
            return self._parse_list(token.offset, count=None)

        if token.is_punct("["):
            return self._parse_dimensions(token.offset)

        raise self._error("unexpected token", token, "value")

    def _parse_list(self, offset: int, count: Optional[int]) -> ListNode:
        items: List[Node] = []
        while True:
            token = self._stream.peek()
            if token.is_punct(")"):
                self._stream.next()
                break
            if token.kind is TokenKind.EOF or token.is_punct(";") or token.is_punct("}"):
                raise self._error("unbalanced list", token, "')'")
            if token.kind in (TokenKind.WORD, TokenKind.STRING) and self._stream.peek(1).is_punct("{"):
                name_token = self._stream.next()
                opening = self._stream.next()
                name = name_token.value if name_token.kind is TokenKind.STRING else name_token.text
                items.append(self._parse_entries(opening.offset, name=name))
                self._expect("}")
                continue
            items.append(self._parse_item())
        return ListNode(tuple(items), count=count, offset=offset)

    def _parse_dimensions(self, offset: int) -> Dimensions:
        values = []
        while True:
            token = self._stream.next()
            if token.is_punct("]"):
                break
            if token.kind is TokenKind.NUMBER:
                values.append(token.value)
            elif token.kind is TokenKind.WORD:
                values.append(token.text)
            else:
                raise self._error("malformed dimension set", token, "number or ']'")
        return Dimensions(tuple(values), offset=offset)

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    def _expect(self, char: str) -> Token:
        token = self._stream.peek()
        if not token.is_punct(char):
            raise self._error("syntax error", token, f"'{char}'")
        return self._stream.next()

    @staticmethod
    def _starts_new_entry(token: Token) -> bool:
        return (token.kind is TokenKind.WORD and token.line_start
                and token.text not in VALUE_CONTINUATION_WORDS
                and not token.text.startswith("List<"))

    def _skip_semicolons(self) -> None:
        while self._stream.peek().is_punct(";"):
            self._stream.next()

    def _error(self, message: str, token: Token, expected: str) -> ParseError:
        return ParseError(message, token.offset, expected=expected, found=str(token), source=self.source)


def parse_bytes(data: Union[bytes, str], source: Optional[str] = None) -> FoamFile:
    """Parse the contents of one OpenFOAM file."""
    return FoamParser(data, source).parse()
