# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Tokenizer for flatlang sources.

Terminals live in `grammar.lark`; the same Lark instance later drives the
parser. Whitespace is discarded except that `[`, `(` and `*` remember whether
they touch the previous token: the `AdjacencyMarker` post-lexer retypes them
to LSQB_ADJ / LPAR_ADJ / STAR_ADJ, and the grammar only accepts those forms in
suffix positions.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Optional

from lark import Lark, Token as LarkToken
from lark.exceptions import UnexpectedCharacters

from .diagnostics import LexError
from .span import Span

_GRAMMAR_PATH = Path(__file__).with_name("grammar.lark")
_GRAMMAR_SRC = _GRAMMAR_PATH.read_text()

KEYWORDS = frozenset(
	{
		"const",
		"var",
		"struct",
		"fun",
		"if",
		"else",
		"while",
		"break",
		"continue",
		"label",
		"goto",
		"int",
		"float",
		"byte",
		"void",
	}
)

CHAR_ESCAPES = {
	"n": "\n",
	"t": "\t",
	"r": "\r",
	"0": "\0",
	"\\": "\\",
	"'": "'",
	'"': '"',
}


class AdjacencyMarker:
	"""Post-lexer that tags adjacency-sensitive punctuation."""

	# Spaced `(` and `*` never appear in a rule; keep them so the parser can
	# reject them with a targeted message instead of the lexer failing.
	always_accept = ("LSQB", "LPAR", "STAR")

	ADJACENT = {
		"LSQB": "LSQB_ADJ",
		"LPAR": "LPAR_ADJ",
		"STAR": "STAR_ADJ",
	}

	def process(self, stream):
		prev_end: Optional[int] = None
		for token in stream:
			adjacent_type = self.ADJACENT.get(token.type)
			if adjacent_type is not None and prev_end is not None and prev_end == token.start_pos:
				token = LarkToken.new_borrow_pos(adjacent_type, token.value, token)
			prev_end = token.end_pos
			yield token


FRONTEND = Lark(
	_GRAMMAR_SRC,
	parser="lalr",
	lexer="basic",
	start="start",
	propagate_positions=True,
	maybe_placeholders=False,
	postlex=AdjacencyMarker(),
)


@dataclass(frozen=True)
class Token:
	"""A lexed token: terminal kind, source text and position."""

	kind: str
	lexeme: str
	span: Span

	@property
	def adjacent(self) -> bool:
		"""True for `[`/`(`/`*` written with no whitespace before them."""
		return self.kind.endswith("_ADJ")

	@property
	def is_keyword(self) -> bool:
		return self.lexeme in KEYWORDS and self.kind != "NAME"

	def to_lark(self) -> LarkToken:
		span = self.span
		return LarkToken(
			self.kind,
			self.lexeme,
			span.offset,
			span.line,
			span.column,
			span.end_line,
			span.end_column,
			span.end_offset,
		)

	def __str__(self) -> str:
		return f"{self.span} {self.kind} {self.lexeme!r}"


def iter_tokens(source: str, file: Optional[str] = None) -> Iterator[Token]:
	"""
	Lazily tokenize `source`.

	Restartable: every call lexes from the beginning. Raises `LexError` at the
	first character that cannot start a token or on a malformed literal.
	"""
	stream = FRONTEND.lex(source)
	while True:
		try:
			raw = next(stream)
		except StopIteration:
			return
		except UnexpectedCharacters as exc:
			raise _lex_error(source, exc, file) from None
		token = Token(kind=raw.type, lexeme=str(raw), span=Span.from_loc(raw, file=file))
		_validate_literal(token)
		yield token


def tokenize(source: str, file: Optional[str] = None) -> List[Token]:
	"""Tokenize the whole of `source` eagerly."""
	return list(iter_tokens(source, file=file))


def byte_literal_value(lexeme: str) -> int:
	"""Numeric value of a `12b` or `'c'` byte literal."""
	if lexeme.startswith("'"):
		body = lexeme[1:-1]
		if body.startswith("\\"):
			return ord(CHAR_ESCAPES[body[1]])
		return ord(body)
	return int(lexeme[:-1])


def _validate_literal(token: Token) -> None:
	if token.kind == "REAL" and not math.isfinite(float(token.lexeme)):
		raise LexError(f"malformed float literal {token.lexeme}: value is out of range", token.span)
	if token.kind == "BYTE_NUM" and byte_literal_value(token.lexeme) > 255:
		raise LexError(f"byte literal {token.lexeme} is out of range 0..255", token.span)
	if token.kind == "CHAR" and byte_literal_value(token.lexeme) > 255:
		raise LexError(f"character literal {token.lexeme} is not a single byte", token.span)


def _lex_error(source: str, exc: UnexpectedCharacters, file: Optional[str]) -> LexError:
	pos = exc.pos_in_stream
	span = Span(file=file, line=exc.line, column=exc.column, offset=pos)
	char = source[pos] if pos is not None and pos < len(source) else ""
	if char == "'":
		end = source.find("'", pos + 1)
		body = source[pos + 1 : end] if end != -1 else source[pos + 1 :].split("\n", 1)[0]
		if body.startswith("\\") and len(body) == 2:
			return LexError(f"unknown escape sequence '{body}' in character literal", span)
		if end == -1:
			return LexError("unterminated character literal", span)
		return LexError("character literal must contain exactly one character", span)
	if char == "-":
		return LexError("'-' must be followed by digits", span)
	if char == "_":
		return LexError("identifiers must start with a letter", span)
	return LexError(f"invalid character {char!r}", span)


__all__ = ["FRONTEND", "KEYWORDS", "Token", "byte_literal_value", "iter_tokens", "tokenize"]
