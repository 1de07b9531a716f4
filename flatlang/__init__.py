# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
flatlang front end: lexer -> parser -> symbol/type catalog -> resolver.

`resolve(source)` runs the whole pipeline and returns the validated program
plus catalog, or diagnostics.
"""

from .catalog import Catalog, LocalScope, ScopeKind, StructInfo, Symbol, SymbolKind
from .diagnostics import CheckError, Diagnostic, DiagnosticKind, FrontendError, LexError, ParseError
from .lexer import Token, iter_tokens, tokenize
from .parser import parse, parse_source
from .printer import format_program, format_type_expr
from .resolver import CheckedProgram, FunctionInfo, ResolveResult, ResolveState, Resolver, resolve, resolve_program
from .span import Span

__all__ = [
	"Catalog",
	"CheckError",
	"CheckedProgram",
	"Diagnostic",
	"DiagnosticKind",
	"FrontendError",
	"FunctionInfo",
	"LexError",
	"LocalScope",
	"ParseError",
	"ResolveResult",
	"ResolveState",
	"Resolver",
	"ScopeKind",
	"Span",
	"StructInfo",
	"Symbol",
	"SymbolKind",
	"Token",
	"format_program",
	"format_type_expr",
	"iter_tokens",
	"parse",
	"parse_source",
	"resolve",
	"resolve_program",
	"tokenize",
]
