from __future__ import annotations

import pytest

from flatlang.diagnostics import DiagnosticKind, LexError
from flatlang.lexer import byte_literal_value, iter_tokens, tokenize


def _kinds(source: str) -> list[str]:
	return [t.kind for t in tokenize(source)]


def test_keywords_and_names() -> None:
	tokens = tokenize("var counter int")
	assert [t.kind for t in tokens] == ["VAR", "NAME", "INT_TYPE"]
	assert [t.lexeme for t in tokens] == ["var", "counter", "int"]
	assert tokens[0].is_keyword
	assert not tokens[1].is_keyword


def test_keyword_prefix_is_a_plain_name() -> None:
	assert _kinds("variable labels gotox") == ["NAME", "NAME", "NAME"]


def test_builtin_names_are_lexed_separately() -> None:
	assert _kinds("_add_i x_1") == ["BUILTIN_NAME", "NAME"]


def test_numeric_literals() -> None:
	tokens = tokenize("42 -7 1.5 -2.0e3 4e2 10b")
	assert [t.kind for t in tokens] == ["INTEGER", "INTEGER", "REAL", "REAL", "REAL", "BYTE_NUM"]
	assert [t.lexeme for t in tokens] == ["42", "-7", "1.5", "-2.0e3", "4e2", "10b"]


def test_char_literals_and_escapes() -> None:
	tokens = tokenize("'a' '\\n' '\\''")
	assert [t.kind for t in tokens] == ["CHAR", "CHAR", "CHAR"]
	assert [byte_literal_value(t.lexeme) for t in tokens] == [97, 10, 39]
	assert byte_literal_value("255b") == 255


def test_adjacency_retypes_suffix_punctuation() -> None:
	assert _kinds("a[0]") == ["NAME", "LSQB_ADJ", "INTEGER", "_RSQB"]
	assert _kinds("a [0]") == ["NAME", "LSQB", "INTEGER", "_RSQB"]
	assert _kinds("f(x)") == ["NAME", "LPAR_ADJ", "NAME", "_RPAR"]
	assert _kinds("f (x)") == ["NAME", "LPAR", "NAME", "_RPAR"]
	assert _kinds("int*") == ["INT_TYPE", "STAR_ADJ"]
	assert _kinds("int *") == ["INT_TYPE", "STAR"]


def test_adjacent_flag_on_token() -> None:
	spaced = tokenize("x [")[1]
	touching = tokenize("x[")[1]
	assert not spaced.adjacent
	assert touching.adjacent


def test_comment_breaks_adjacency() -> None:
	assert _kinds("x // note\n[1]") == ["NAME", "LSQB", "INTEGER", "_RSQB"]


def test_comments_and_whitespace_are_discarded() -> None:
	assert _kinds("// header\nbreak  // trailing\n\tcontinue") == ["BREAK", "CONTINUE"]


def test_token_positions() -> None:
	tokens = tokenize("var x int\n  var y float", file="demo.fl")
	second_var = tokens[3]
	assert second_var.kind == "VAR"
	assert (second_var.span.line, second_var.span.column) == (2, 3)
	assert second_var.span.offset == 12
	assert second_var.span.file == "demo.fl"


def test_iter_tokens_is_lazy_and_restartable() -> None:
	stream = iter_tokens("const a 1")
	assert next(stream).kind == "CONST"
	assert [t.kind for t in iter_tokens("const a 1")] == ["CONST", "NAME", "INTEGER"]


def test_invalid_character() -> None:
	with pytest.raises(LexError) as exc:
		tokenize("var x int\nx := @")
	err = exc.value
	assert err.kind is DiagnosticKind.LEX_ERROR
	assert "invalid character '@'" in err.reason
	assert (err.span.line, err.span.column) == (2, 6)
	assert err.diagnostic.phase == "lexer"


def test_byte_literal_out_of_range() -> None:
	with pytest.raises(LexError) as exc:
		tokenize("256b")
	assert "out of range" in exc.value.reason


def test_bad_escape_in_char_literal() -> None:
	with pytest.raises(LexError) as exc:
		tokenize("'\\q'")
	assert "unknown escape sequence" in exc.value.reason


def test_char_literal_with_two_characters() -> None:
	with pytest.raises(LexError) as exc:
		tokenize("'ab'")
	assert "exactly one character" in exc.value.reason


def test_unterminated_char_literal() -> None:
	with pytest.raises(LexError) as exc:
		tokenize("'a")
	assert "unterminated" in exc.value.reason


def test_lone_minus_is_rejected() -> None:
	with pytest.raises(LexError) as exc:
		tokenize("- 1")
	assert "'-' must be followed by digits" in exc.value.reason


def test_leading_underscore_needs_a_letter() -> None:
	with pytest.raises(LexError) as exc:
		tokenize("_1")
	assert "must start with a letter" in exc.value.reason


def test_overflowing_float_literal_is_rejected() -> None:
	with pytest.raises(LexError) as exc:
		tokenize("const BIG 1e999")
	assert "malformed float literal 1e999" in exc.value.reason
	assert exc.value.span.column == 11
	assert [t.lexeme for t in tokenize("1.5e308")] == ["1.5e308"]
