"""
OpenFOAM Tokenizer

Turns the raw bytes of one OpenFOAM ASCII file into a lazy stream of tokens:
- bare words / keywords (``internalField``, ``List<vector>``, ``div(phi,U)``)
- numbers (integer, floating point, scientific notation, signed)
- double-quoted strings
- single character punctuation ``( ) { } [ ] ;``

C and C++ style comments, ``#include``-like directive lines and ``#{ ... #}``
code blocks are skipped and never produce tokens.
"""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, Optional, Union

from openfoamparser.exceptions import LexError

logger = logging.getLogger(__name__)


class TokenKind(Enum):
    """Lexical class of a token."""
    WORD = "word"
    NUMBER = "number"
    STRING = "string"
    PUNCT = "punct"
    EOF = "eof"


@dataclass(frozen=True)
class Token:
    """A classified lexical unit."""
    kind: TokenKind
    text: str
    value: Union[int, float, str, None]
    offset: int
    # True when a line break separates the token from the previous one.
    line_start: bool = field(default=False, compare=False)

    def is_punct(self, char: str) -> bool:
        return self.kind is TokenKind.PUNCT and self.text == char

    def __str__(self) -> str:
        if self.kind is TokenKind.EOF:
            return "end of input"
        return self.text


PUNCTUATION = b"(){}[];"

_WHITESPACE = re.compile(rb"[ \t\r\n\f\v]+")
_NUMBER = re.compile(rb"[+-]?(?:\d+\.?\d*(?:[eE][+-]?\d+)?|\.\d+(?:[eE][+-]?\d+)?)")
_WORD = re.compile(rb"[^\s(){}\[\];\"]+")
_NON_PRINTABLE = re.compile(rb"[^\x21-\x7e]")
_DELIMITERS = b" \t\r\n\f\v" + PUNCTUATION + b'"'

# Words that are followed by a parenthesised value rather than forming one
# token with it.
_NON_ABSORBING_WORDS = ("uniform", "nonuniform")


class Tokenizer:
    """
    Restartable lazy tokenizer over one file's bytes.

    Iterating the tokenizer starts a fresh scan from the beginning; the
    stream always ends with a single EOF token.
    """

    def __init__(self, data: bytes, source: Optional[str] = None):
        if isinstance(data, str):
            data = data.encode("utf-8")
        self.data = data
        self.source = source

    def __iter__(self) -> Iterator[Token]:
        return self._scan()

    def _error(self, message: str, offset: int) -> LexError:
        return LexError(message, offset, source=self.source)

    def _scan(self) -> Iterator[Token]:
        data = self.data
        end = len(data)
        pos = 0

        while True:
            gap = pos
            pos = self._skip_ignorable(pos)
            line_start = b"\n" in data[gap:pos]
            if pos >= end:
                yield Token(TokenKind.EOF, "", None, end)
                return

            char = data[pos:pos + 1]

            if char in PUNCTUATION:
                yield Token(TokenKind.PUNCT, char.decode("ascii"), None, pos, line_start)
                pos += 1
                continue

            if char == b'"':
                token, pos = self._scan_string(pos, line_start)
                yield token
                continue

            match = _NUMBER.match(data, pos)
            if match and (match.end() == end or data[match.end():match.end() + 1] in _DELIMITERS
                          or data.startswith(b"//", match.end()) or data.startswith(b"/*", match.end())):
                text = match.group(0).decode("ascii")
                if "." in text or "e" in text or "E" in text:
                    value: Union[int, float] = float(text)
                else:
                    value = int(text)
                yield Token(TokenKind.NUMBER, text, value, pos, line_start)
                pos = match.end()
                continue

            match = _WORD.match(data, pos)
            raw = match.group(0)
            for marker in (b"//", b"/*"):
                cut = raw.find(marker)
                if cut > 0:
                    raw = raw[:cut]
            bad = _NON_PRINTABLE.search(raw)
            if bad:
                raise self._error(f"unexpected byte 0x{raw[bad.start()]:02x}", pos + bad.start())
            word_end = pos + len(raw)
            text = raw.decode("ascii")
            if (data[word_end:word_end + 1] == b"("
                    and text not in _NON_ABSORBING_WORDS
                    and not text.startswith("List<")):
                word_end = self._balanced_group_end(word_end)
                text = data[pos:word_end].decode("ascii", errors="replace")
            yield Token(TokenKind.WORD, text, text, pos, line_start)
            pos = word_end

    def _skip_ignorable(self, pos: int) -> int:
        """Skip whitespace, comments and directives starting at ``pos``."""
        data = self.data
        end = len(data)
        while pos < end:
            match = _WHITESPACE.match(data, pos)
            if match:
                pos = match.end()
                continue
            if data.startswith(b"//", pos):
                newline = data.find(b"\n", pos)
                pos = end if newline == -1 else newline + 1
                continue
            if data.startswith(b"/*", pos):
                close = data.find(b"*/", pos + 2)
                if close == -1:
                    raise self._error("unterminated block comment", pos)
                pos = close + 2
                continue
            if data.startswith(b"#{", pos):
                close = data.find(b"#}", pos + 2)
                if close == -1:
                    raise self._error("unterminated #{ code block", pos)
                pos = close + 2
                continue
            if data.startswith(b"#", pos):
                logger.debug(f"Skipping directive at byte {pos} in {self.source or '<string>'}")
                newline = data.find(b"\n", pos)
                pos = end if newline == -1 else newline + 1
                continue
            break
        return pos

    def _scan_string(self, start: int, line_start: bool = False):
        data = self.data
        pos = start + 1
        chunks = []
        while pos < len(data):
            char = data[pos:pos + 1]
            if char == b"\\" and pos + 1 < len(data):
                chunks.append(data[pos + 1:pos + 2])
                pos += 2
                continue
            if char == b'"':
                text = b"".join(chunks).decode("utf-8", errors="replace")
                raw = data[start:pos + 1].decode("utf-8", errors="replace")
                return Token(TokenKind.STRING, raw, text, start, line_start), pos + 1
            chunks.append(char)
            pos += 1
        raise self._error("unterminated string", start)

    def _balanced_group_end(self, pos: int) -> int:
        """Return the offset just past the parenthesis group opening at ``pos``."""
        data = self.data
        depth = 0
        start = pos
        while pos < len(data):
            char = data[pos:pos + 1]
            if char == b"(":
                depth += 1
            elif char == b")":
                depth -= 1
                if depth == 0:
                    return pos + 1
            elif char in b"{};\n":
                break
            pos += 1
        raise self._error("unbalanced parentheses in word", start)


def tokenize(data: Union[bytes, str], source: Optional[str] = None) -> Iterator[Token]:
    """Convenience generator over the tokens of ``data``."""
    return iter(Tokenizer(data, source))
