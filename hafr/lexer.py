"""
Lexical analyser for hafr templates.

Splits template text into positioned tokens. Lexical rules depend on the
current context:
- outside a hole: literal text runs, line breaks and the opening '{'
- inside a hole {...}: punctuation, numbers, quoted strings, identifiers
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass
from typing import Iterator, List, Optional

from .errors import LexerError
from .position import Position, START


class TokenType(enum.Enum):
    """Token types of the template language."""

    # Hole delimiters
    OPEN_CURLY = "OPEN_CURLY"      # {
    CLOSE_CURLY = "CLOSE_CURLY"    # }

    # Punctuation inside holes
    OPEN_PAREN = "OPEN_PAREN"      # (
    CLOSE_PAREN = "CLOSE_PAREN"    # )
    COMMA = "COMMA"                # ,
    PIPE = "PIPE"                  # |

    # Literals and names
    STRING = "STRING"              # 'sql ''style'' quoting'
    NUMBER = "NUMBER"              # 32-bit integer
    IDENTIFIER = "IDENTIFIER"

    # Outside holes
    TEXT = "TEXT"
    LINE_BREAK = "LINE_BREAK"      # \n or \r\n

    EOF = "EOF"


@dataclass(frozen=True)
class Token:
    """
    Token with the position of its first character.

    Attributes:
        type: Token type
        value: Raw source slice
        position: Location in the template text
    """
    type: TokenType
    value: str
    position: Position

    def __repr__(self) -> str:
        return f"Token({self.type.name}, {self.value!r}, {self.position.line}:{self.position.column})"


INT32_MAX = 2 ** 31 - 1


class TemplateLexer:
    """
    Context-sensitive template tokenizer.

    Tokens are produced lazily by tokens(); the stream always ends with
    an EOF token unless a lexical error is raised first.
    """

    # Text runs stop before '{' and before a line break ('\n' or '\r\n')
    _TEXT = re.compile(r'(?:[^{\r\n]|\r(?!\n))+')
    _WHITESPACE = re.compile(r'[^\S\r\n]+')
    _NUMBER = re.compile(r'[0-9]+')
    _IDENTIFIER = re.compile(r'[^\W\d]\w*')

    _PUNCTUATION = {
        '(': TokenType.OPEN_PAREN,
        ')': TokenType.CLOSE_PAREN,
        ',': TokenType.COMMA,
        '|': TokenType.PIPE,
    }

    def __init__(self, text: str):
        self.text = text
        self.length = len(text)
        self.position = START
        self.in_hole = False

    def tokens(self) -> Iterator[Token]:
        """
        Yields tokens one at a time.

        Raises:
            LexerError: On unterminated strings or holes, invalid numbers
                and characters that are not allowed inside a hole
        """
        while self.position.offset < self.length:
            if self.in_hole:
                token = self._next_in_hole()
            else:
                token = self._next_in_text()
            if token is not None:
                yield token

        if self.in_hole:
            raise LexerError("Unexpected end of input: unterminated hole, expected '}'", self.position)

        yield Token(TokenType.EOF, "", self.position)

    # ---- Outside holes ----

    def _next_in_text(self) -> Token:
        offset = self.position.offset
        char = self.text[offset]

        if char == '{':
            self.in_hole = True
            return self._take(TokenType.OPEN_CURLY, 1)

        if char == '\n':
            return self._take(TokenType.LINE_BREAK, 1)

        if self.text.startswith('\r\n', offset):
            return self._take(TokenType.LINE_BREAK, 2)

        match = self._TEXT.match(self.text, offset)
        if match is None:
            raise LexerError(f"Unexpected character {char!r} in text", self.position)
        return self._take(TokenType.TEXT, match.end() - offset)

    # ---- Inside holes ----

    def _next_in_hole(self) -> Optional[Token]:
        offset = self.position.offset
        char = self.text[offset]

        whitespace = self._WHITESPACE.match(self.text, offset)
        if whitespace:
            self._advance(whitespace.end() - offset)
            return None

        if char == '}':
            self.in_hole = False
            return self._take(TokenType.CLOSE_CURLY, 1)

        token_type = self._PUNCTUATION.get(char)
        if token_type is not None:
            return self._take(token_type, 1)

        if char in '\r\n':
            raise LexerError("Line break inside hole, expected '}' before the end of the line", self.position)

        if char == "'":
            return self._take(TokenType.STRING, self._scan_string())

        number = self._NUMBER.match(self.text, offset)
        if number:
            if int(number.group(0)) > INT32_MAX:
                raise LexerError(
                    f"Invalid number literal '{number.group(0)}': value is outside the 32-bit integer range",
                    self.position,
                )
            return self._take(TokenType.NUMBER, number.end() - offset)

        identifier = self._IDENTIFIER.match(self.text, offset)
        if identifier:
            return self._take(TokenType.IDENTIFIER, identifier.end() - offset)

        raise LexerError(f"Unexpected character {char!r} in hole", self.position)

    def _scan_string(self) -> int:
        """Returns the length of the quoted string starting at the current position."""
        start = self.position.offset
        index = start + 1
        while True:
            quote = self.text.find("'", index)
            if quote < 0:
                raise LexerError("Unterminated string literal", self.position)
            if self.text.startswith("''", quote):
                index = quote + 2
                continue
            return quote + 1 - start

    # ---- Helpers ----

    def _take(self, token_type: TokenType, length: int) -> Token:
        start = self.position
        value = self.text[start.offset:start.offset + length]
        self._advance(length)
        return Token(token_type, value, start)

    def _advance(self, count: int) -> None:
        position = self.position
        for char in self.text[position.offset:position.offset + count]:
            position = position.advance(char)
        self.position = position


def unquote(raw: str) -> str:
    """Decodes an SQL-style quoted string token: 'it''s' -> it's"""
    return raw[1:-1].replace("''", "'")


def tokenize(text: str) -> List[Token]:
    """
    Convenience function for tokenizing a whole template.

    Args:
        text: Template source text

    Returns:
        List of tokens ending with EOF

    Raises:
        LexerError: On lexical errors
    """
    return list(TemplateLexer(text).tokens())


__all__ = ["TokenType", "Token", "TemplateLexer", "tokenize", "unquote", "INT32_MAX"]
