"""Tokenizer, parse tree and dictionary parser for OpenFOAM ASCII files."""

from .nodes import (
    Dictionary,
    Dimensions,
    ListNode,
    Node,
    Number,
    Sequence,
    String,
    UniformList,
    Word,
    to_python,
)
from .parser import FoamFile, FoamParser, parse_bytes
from .tokenizer import Token, TokenKind, Tokenizer, tokenize

__all__ = [
    'Dictionary',
    'Dimensions',
    'FoamFile',
    'FoamParser',
    'ListNode',
    'Node',
    'Number',
    'Sequence',
    'String',
    'Token',
    'TokenKind',
    'Tokenizer',
    'UniformList',
    'Word',
    'parse_bytes',
    'to_python',
    'tokenize',
]
