# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Diagnostic records and the front-end exception hierarchy.

Every user-facing problem (lexing, parsing, name/type/control-flow checks)
is described by a `Diagnostic`. Stages that abort raise a `FrontendError`
subclass wrapping the diagnostic; the resolver collects them instead.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from .span import Span


class DiagnosticKind(Enum):
	"""Error taxonomy; values are the user-facing `Category::Detail` names."""

	LEX_ERROR = "LexError"
	SYNTAX_ERROR = "SyntaxError"
	DUPLICATE = "NameError::Duplicate"
	UNDEFINED = "NameError::Undefined"
	UNDEFINED_LABEL = "NameError::UndefinedLabel"
	UNDEFINED_TYPE = "NameError::UndefinedType"
	ASSIGNMENT_MISMATCH = "TypeError::AssignmentMismatch"
	ARGUMENT_MISMATCH = "TypeError::ArgumentMismatch"
	COMPOSITE_SHAPE_MISMATCH = "TypeError::CompositeShapeMismatch"
	COMPOSITE_WITHOUT_CONTEXT = "TypeError::CompositeWithoutContext"
	INVALID_ARRAY_SIZE = "TypeError::InvalidArraySize"
	NON_INT_CONDITION = "TypeError::NonIntCondition"
	SELF_CONTAINING_STRUCT = "TypeError::SelfContainingStruct"
	INVALID_VOID = "TypeError::InvalidVoid"
	INVALID_SELECTOR = "TypeError::InvalidSelector"
	NOT_ASSIGNABLE = "TypeError::NotAssignable"
	NOT_ADDRESSABLE = "TypeError::NotAddressable"
	NOT_CALLABLE = "TypeError::NotCallable"
	NOT_A_VALUE = "TypeError::NotAValue"
	NOT_IN_LOOP = "ControlFlowError::NotInLoop"

	@property
	def category(self) -> str:
		"""Leading taxonomy bucket (`NameError`, `TypeError`, ...)."""
		return self.value.split("::", 1)[0]

	def __str__(self) -> str:
		return self.value


@dataclass
class Diagnostic:
	"""Represents a compiler diagnostic (error/warning/etc.)."""

	message: str
	kind: DiagnosticKind
	# Pipeline stage that produced the diagnostic: lexer, parser or resolve.
	phase: str | None = None
	severity: str = "error"
	span: Span = field(default_factory=Span)
	notes: list[str] = field(default_factory=list)

	def __post_init__(self) -> None:
		if self.span is None:  # type: ignore[unreachable]
			self.span = Span()

	def format(self, source_name: str | None = None) -> str:
		"""Render as `file:line:col: severity: message [kind]`."""
		where = self.span.file or source_name or "<input>"
		return f"{where}:{self.span}: {self.severity}: {self.message} [{self.kind.value}]"

	def to_json(self) -> dict:
		"""Render to a structured JSON-friendly dict."""
		return {
			"phase": self.phase,
			"kind": self.kind.value,
			"message": self.message,
			"severity": self.severity,
			"file": self.span.file,
			"line": self.span.line,
			"column": self.span.column,
			"notes": list(self.notes),
		}


class FrontendError(Exception):
	"""Base class for user errors raised by the front-end stages."""

	phase = "frontend"

	def __init__(self, kind: DiagnosticKind, message: str, span: Span | None = None) -> None:
		super().__init__(f"{span or Span()}: {message}")
		self.diagnostic = Diagnostic(
			message=message,
			kind=kind,
			phase=self.phase,
			span=span or Span(),
		)

	@property
	def kind(self) -> DiagnosticKind:
		return self.diagnostic.kind

	@property
	def span(self) -> Span:
		return self.diagnostic.span


class LexError(FrontendError):
	"""Invalid character, malformed literal or bad escape in the source text."""

	phase = "lexer"

	def __init__(self, message: str, span: Span | None = None) -> None:
		super().__init__(DiagnosticKind.LEX_ERROR, message, span)
		self.reason = message


class ParseError(FrontendError):
	"""First syntax error of a unit; carries the accepted-token set."""

	phase = "parser"

	def __init__(
		self,
		message: str,
		span: Span | None = None,
		expected: frozenset[str] = frozenset(),
		found: str | None = None,
	) -> None:
		super().__init__(DiagnosticKind.SYNTAX_ERROR, message, span)
		self.expected = expected
		self.found = found


class CheckError(FrontendError):
	"""Name, type or control-flow violation found by the resolver."""

	phase = "resolve"


__all__ = [
	"CheckError",
	"Diagnostic",
	"DiagnosticKind",
	"FrontendError",
	"LexError",
	"ParseError",
]
