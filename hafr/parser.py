"""
Recursive descent parser for hafr templates.

Builds an expression tree from the token stream produced by TemplateLexer.

Grammar:
multi_template → template (LINE_BREAK template)* EOF
template       → (hole | TEXT)*
hole           → "{" pipe_chain "}"
pipe_chain     → argument ("|" argument)*
argument       → NUMBER | STRING | function_call | property
function_call  → IDENTIFIER "(" (argument ("," argument)*)? ")"
property       → IDENTIFIER

An empty line yields a template holding a single empty text node.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from typing import Deque, Iterator, List, Optional

from .errors import ParserError, TemplateSyntaxError
from .lexer import TemplateLexer, Token, TokenType, unquote
from .nodes import (
    ConstantNode,
    Expression,
    FunctionCallNode,
    MultiTemplateNode,
    PipeNode,
    PropertyNode,
    TemplateNode,
    TextNode,
)
from .position import Position

logger = logging.getLogger(__name__)


# Human readable token names for error messages
_DESCRIPTIONS = {
    TokenType.OPEN_CURLY: "'{'",
    TokenType.CLOSE_CURLY: "'}'",
    TokenType.OPEN_PAREN: "'('",
    TokenType.CLOSE_PAREN: "')'",
    TokenType.COMMA: "','",
    TokenType.PIPE: "'|'",
    TokenType.STRING: "string",
    TokenType.NUMBER: "number",
    TokenType.IDENTIFIER: "identifier",
    TokenType.TEXT: "text",
    TokenType.LINE_BREAK: "line break",
    TokenType.EOF: "end of input",
}

_ARGUMENT_STARTS = (TokenType.NUMBER, TokenType.STRING, TokenType.IDENTIFIER)


def _describe(token: Token) -> str:
    name = _DESCRIPTIONS[token.type]
    if token.type in (TokenType.STRING, TokenType.NUMBER, TokenType.IDENTIFIER):
        return f"{name} '{token.value}'"
    return name


class TokenStream:
    """
    Lookahead buffer over the lazily produced token iterator.

    Tokens are pulled from the lexer only when the parser looks at them.
    """

    def __init__(self, tokens: Iterator[Token]):
        self._tokens = tokens
        self._buffer: Deque[Token] = deque()

    def peek(self, distance: int = 0) -> Token:
        while len(self._buffer) <= distance:
            self._buffer.append(next(self._tokens))
        return self._buffer[distance]

    def advance(self) -> Token:
        token = self.peek()
        if token.type != TokenType.EOF:
            self._buffer.popleft()
        return token

    def drain(self) -> None:
        """Pulls the remaining tokens so that a pending lexical error is raised."""
        for _ in self._tokens:
            pass


class TemplateParser:
    """
    Parser for a single template text.

    Raises on the first token at which the grammar cannot continue.
    Lexical errors from the tokenizer propagate unchanged and win over
    syntax errors, even when they occur later in the input.
    """

    def __init__(self, text: str):
        self.text = text
        self._stream = TokenStream(TemplateLexer(text).tokens())

    def parse(self) -> MultiTemplateNode:
        """
        Parses the whole input.

        Returns:
            Multi-line template with one TemplateNode per input line

        Raises:
            LexerError: On lexical errors
            ParserError: On syntax errors
        """
        try:
            lines = [self._parse_template()]

            while self._match(TokenType.LINE_BREAK):
                lines.append(self._parse_template())

            self._expect(TokenType.EOF, "line break or end of input")
        except ParserError:
            # A lexical error anywhere in the input takes precedence
            self._stream.drain()
            raise

        logger.debug("Parsed template with %d line(s)", len(lines))
        return MultiTemplateNode(tuple(lines))

    def _parse_template(self) -> TemplateNode:
        """Parses one line: a run of text tokens and holes."""
        start = self._current().position
        parts: List[Expression] = []

        while True:
            current = self._current()
            if current.type == TokenType.TEXT:
                self._stream.advance()
                parts.append(TextNode(current.value, current.position))
            elif current.type == TokenType.OPEN_CURLY:
                parts.append(self._parse_hole())
            else:
                break

        if not parts:
            parts.append(TextNode("", start))

        return TemplateNode(tuple(parts), start)

    def _parse_hole(self) -> Expression:
        self._expect(TokenType.OPEN_CURLY, "'{'")
        expression = self._parse_pipe_chain()
        self._expect(TokenType.CLOSE_CURLY, "'|' or '}'")
        return expression

    def _parse_pipe_chain(self) -> Expression:
        left = self._parse_argument()

        while self._current().type == TokenType.PIPE:
            pipe = self._stream.advance()
            right = self._parse_argument()
            left = PipeNode(left, right, pipe.position)

        return left

    def _parse_argument(self) -> Expression:
        current = self._current()

        if current.type == TokenType.NUMBER:
            self._stream.advance()
            return ConstantNode(int(current.value), current.position)

        if current.type == TokenType.STRING:
            self._stream.advance()
            return ConstantNode(unquote(current.value), current.position)

        if current.type == TokenType.IDENTIFIER:
            # name( ... ) is a call, a bare name is a property
            if self._stream.peek(1).type == TokenType.OPEN_PAREN:
                return self._parse_function_call()
            self._stream.advance()
            return PropertyNode(current.value, current.position)

        raise self._error(current, "number, string or identifier")

    def _parse_function_call(self) -> FunctionCallNode:
        name = self._expect(TokenType.IDENTIFIER, "identifier")
        self._expect(TokenType.OPEN_PAREN, "'('")

        arguments: List[Expression] = []
        if self._current().type in _ARGUMENT_STARTS:
            arguments.append(self._parse_argument())
            while self._match(TokenType.COMMA):
                arguments.append(self._parse_argument())
            self._expect(TokenType.CLOSE_PAREN, "',' or ')'")
        else:
            self._expect(TokenType.CLOSE_PAREN, "argument or ')'")

        return FunctionCallNode(name.value, tuple(arguments), name.position)

    # ---- Token helpers ----

    def _current(self) -> Token:
        return self._stream.peek()

    def _match(self, token_type: TokenType) -> bool:
        if self._current().type == token_type:
            self._stream.advance()
            return True
        return False

    def _expect(self, token_type: TokenType, expected: str) -> Token:
        current = self._current()
        if current.type != token_type:
            raise self._error(current, expected)
        return self._stream.advance()

    @staticmethod
    def _error(token: Token, expected: str) -> ParserError:
        return ParserError(f"Syntax error: unexpected {_describe(token)}, expected {expected}", token.position)


@dataclass(frozen=True)
class ParseResult:
    """
    Outcome of try_parse().

    Exactly one of ``template`` and ``error`` is set.
    """
    template: Optional[MultiTemplateNode] = None
    error: Optional[str] = None
    position: Position = Position.EMPTY

    @property
    def ok(self) -> bool:
        return self.template is not None


def parse_template(text: str) -> MultiTemplateNode:
    """
    Parses template text into an expression tree.

    Raises:
        LexerError: On lexical errors
        ParserError: On syntax errors
    """
    return TemplateParser(text).parse()


def try_parse(text: str) -> ParseResult:
    """Parses template text, reporting failure as a value instead of raising."""
    try:
        return ParseResult(template=parse_template(text))
    except TemplateSyntaxError as e:
        return ParseResult(error=e.message, position=e.position)


__all__ = ["TemplateParser", "TokenStream", "ParseResult", "parse_template", "try_parse"]
