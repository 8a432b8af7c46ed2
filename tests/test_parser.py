"""
Tests for the template parser.
"""

import pytest

from hafr.errors import LexerError, ParserError
from hafr.nodes import (
    ConstantNode,
    FunctionCallNode,
    MultiTemplateNode,
    PipeNode,
    PropertyNode,
    TemplateNode,
    TextNode,
)
from hafr.parser import TemplateParser, parse_template, try_parse
from hafr.position import Position


def single_hole(text):
    """Parses a one-line template made of a single hole and returns its expression."""
    result = parse_template(text)
    assert len(result.parts) == 1
    assert len(result.parts[0].parts) == 1
    return result.parts[0].parts[0]


class TestTemplateStructure:

    def setup_method(self):
        self.parser = TemplateParser("Hello {name}!")

    def test_text_and_hole(self):
        result = self.parser.parse()

        assert isinstance(result, MultiTemplateNode)
        line = result.parts[0]
        assert isinstance(line, TemplateNode)
        assert line.parts == (
            TextNode("Hello ", Position(0, 1, 1)),
            PropertyNode("name", Position(7, 1, 8)),
            TextNode("!", Position(12, 1, 13)),
        )

    def test_plain_text(self):
        result = parse_template("just text")
        assert result.parts == (TemplateNode((TextNode("just text", Position(0, 1, 1)),), Position(0, 1, 1)),)

    def test_special_characters_outside_holes(self):
        result = parse_template("Hello {name}, this is a | (pipe)")
        assert [type(p) for p in result.parts[0].parts] == [TextNode, PropertyNode, TextNode]

    def test_multiple_lines(self):
        result = parse_template("a\n{b}\r\nc")

        assert len(result.parts) == 3
        assert result.parts[0].parts[0].value == "a"
        assert result.parts[1].parts[0] == PropertyNode("b", Position(3, 2, 2))
        assert result.parts[2].parts[0].value == "c"
        assert result.parts[2].position == Position(7, 3, 1)

    def test_empty_line_becomes_empty_text(self):
        result = parse_template("a\n\nb")

        assert len(result.parts) == 3
        assert result.parts[1].parts == (TextNode("", Position(2, 2, 1)),)

    def test_empty_input(self):
        result = parse_template("")
        assert result.parts == (TemplateNode((TextNode("", Position(0, 1, 1)),), Position(0, 1, 1)),)

    def test_adjacent_holes(self):
        result = parse_template("{a}{b}")
        assert [p.name for p in result.parts[0].parts] == ["a", "b"]


class TestHoleExpressions:

    def test_property(self):
        assert single_hole("{ name }") == PropertyNode("name", Position(2, 1, 3))

    def test_number_literal(self):
        assert single_hole("{42}") == ConstantNode(42, Position(1, 1, 2))

    def test_string_literal(self):
        assert single_hole("{'it''s'}") == ConstantNode("it's", Position(1, 1, 2))

    def test_function_call_without_arguments(self):
        assert single_hole("{upper()}") == FunctionCallNode("upper", (), Position(1, 1, 2))

    def test_function_call_with_arguments(self):
        node = single_hole("{f(1, 'x', g(y))}")

        assert isinstance(node, FunctionCallNode)
        assert node.name == "f"
        assert node.arguments[0] == ConstantNode(1, Position(3, 1, 4))
        assert node.arguments[1] == ConstantNode("x", Position(6, 1, 7))
        inner = node.arguments[2]
        assert isinstance(inner, FunctionCallNode)
        assert inner.name == "g"
        assert inner.arguments == (PropertyNode("y", Position(13, 1, 14)),)

    def test_pipe(self):
        node = single_hole("{a | f(1)}")

        assert isinstance(node, PipeNode)
        assert node.left == PropertyNode("a", Position(1, 1, 2))
        assert node.right == FunctionCallNode("f", (ConstantNode(1, Position(7, 1, 8)),), Position(5, 1, 6))
        assert node.position == Position(3, 1, 4)

    def test_pipe_chain_is_left_associative(self):
        node = single_hole("{a | b | c}")

        assert isinstance(node, PipeNode)
        assert node.position == Position(7, 1, 8)
        assert node.right == PropertyNode("c", Position(9, 1, 10))
        assert isinstance(node.left, PipeNode)
        assert node.left.left == PropertyNode("a", Position(1, 1, 2))
        assert node.left.right == PropertyNode("b", Position(5, 1, 6))

    def test_literal_as_pipe_target_parses(self):
        """Pipe targets are checked during evaluation, not parsing"""
        node = single_hole("{a | 2}")
        assert node.right == ConstantNode(2, Position(5, 1, 6))


class TestParserErrors:

    @pytest.mark.parametrize("text, expected, position", [
        ("{}", "unexpected '}', expected number, string or identifier", Position(1, 1, 2)),
        ("{a b}", "unexpected identifier 'b', expected '|' or '}'", Position(3, 1, 4)),
        ("{a |}", "unexpected '}', expected number, string or identifier", Position(4, 1, 5)),
        ("{f(1,)}", "unexpected ')', expected number, string or identifier", Position(5, 1, 6)),
        ("{f(1}", "unexpected '}', expected ',' or ')'", Position(4, 1, 5)),
        ("{f(}", "unexpected '}', expected argument or ')'", Position(3, 1, 4)),
        ("{(a)}", "unexpected '(', expected number, string or identifier", Position(1, 1, 2)),
        ("{a,b}", "unexpected ',', expected '|' or '}'", Position(2, 1, 3)),
    ])
    def test_syntax_error(self, text, expected, position):
        with pytest.raises(ParserError) as info:
            parse_template(text)

        assert expected in info.value.message
        assert info.value.position == position

    def test_lexical_error_surfaces_unchanged(self):
        """A dangling '{' on the third line reports the lexer's position"""
        with pytest.raises(LexerError) as info:
            parse_template("{firstName}\n{firstName}\r\n{")

        assert info.value.position == Position(26, 3, 2)

    def test_lexical_error_wins_over_earlier_syntax_error(self):
        with pytest.raises(LexerError) as info:
            parse_template("{a b}\n{'unterminated")
        assert "Unterminated string literal" in info.value.message
        assert info.value.position == Position(7, 2, 2)

    def test_unclosed_hole_after_syntax_error(self):
        with pytest.raises(LexerError) as info:
            parse_template("{a b}\n{")
        assert "unterminated hole" in info.value.message
        assert info.value.position == Position(7, 2, 2)

    def test_syntax_error_kept_when_rest_of_input_is_valid(self):
        with pytest.raises(ParserError) as info:
            parse_template("{a b}\n{c}")
        assert info.value.position == Position(3, 1, 4)


class TestTryParse:

    def test_success(self):
        result = try_parse("{a}")

        assert result.ok
        assert result.error is None
        assert result.position == Position.EMPTY
        assert isinstance(result.template, MultiTemplateNode)

    def test_failure(self):
        result = try_parse("{firstName}\n{firstName}\r\n{")

        assert not result.ok
        assert result.template is None
        assert "unterminated hole" in result.error
        assert result.position == Position(26, 3, 2)


class TestSourceRendering:

    @pytest.mark.parametrize("text", [
        "plain text",
        "{a}",
        "Hello {name | upper}!",
        "{a | f(1, 'it''s', g(b)) | h}",
        "{f()}",
        "x\n{y}\nz",
    ])
    def test_str_reproduces_source(self, text):
        assert str(parse_template(text)) == text

    def test_str_normalizes_whitespace_in_holes(self):
        assert str(parse_template("{ a|f( 1 ,2 ) }")) == "{a | f(1, 2)}"
