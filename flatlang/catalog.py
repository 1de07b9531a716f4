# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Symbol/type catalog.

One Global scope holds every top-level const/var/struct/fun. Each function
owns exactly one flat Local scope (parameters, `result`, every `var` and
every `label` in its body, whatever the brace nesting). Only one Local scope
is open at a time; finished scopes are kept in `function_scopes` for
consumers of the validated program.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Dict, List, Optional

from .diagnostics import CheckError, DiagnosticKind
from .span import Span
from .types import Type

RESULT_NAME = "result"


class SymbolKind(Enum):
	CONST = auto()
	VAR = auto()
	PARAM = auto()
	RESULT = auto()
	FUNC = auto()
	STRUCT = auto()
	LABEL = auto()

	@property
	def is_storage(self) -> bool:
		"""Kinds that name a storage location (assignable, addressable)."""
		return self in (SymbolKind.VAR, SymbolKind.PARAM, SymbolKind.RESULT)

	def describe(self) -> str:
		return {
			SymbolKind.CONST: "constant",
			SymbolKind.VAR: "variable",
			SymbolKind.PARAM: "parameter",
			SymbolKind.RESULT: "result variable",
			SymbolKind.FUNC: "function",
			SymbolKind.STRUCT: "struct",
			SymbolKind.LABEL: "label",
		}[self]


class ScopeKind(Enum):
	GLOBAL = auto()
	LOCAL = auto()


@dataclass
class Symbol:
	"""A declared name with its kind, resolved type and owning scope."""

	name: str
	kind: SymbolKind
	scope: ScopeKind
	ty: Optional[Type] = None
	span: Span = field(default_factory=Span)
	# Owning function for Local symbols.
	function: Optional[str] = None
	# Resolved literal value (constants only).
	value: object = None
	# Pre-order statement index of the declaration inside its function;
	# -1 for parameters and `result`, unused for globals.
	order: int = -1


@dataclass
class StructInfo:
	"""Ordered field list of a struct."""

	name: str
	fields: Dict[str, Type] = field(default_factory=dict)
	span: Span = field(default_factory=Span)
	# False when a field failed to resolve; selectors on it are rejected.
	complete: bool = True

	@property
	def field_names(self) -> List[str]:
		return list(self.fields)

	@property
	def field_types(self) -> List[Type]:
		return list(self.fields.values())


class LocalScope:
	"""The single flat namespace of one function."""

	def __init__(self, function: str) -> None:
		self.function = function
		self.symbols: Dict[str, Symbol] = {}

	def get(self, name: str) -> Optional[Symbol]:
		return self.symbols.get(name)

	def labels(self) -> Dict[str, Symbol]:
		return {name: sym for name, sym in self.symbols.items() if sym.kind is SymbolKind.LABEL}

	def __contains__(self, name: str) -> bool:
		return name in self.symbols

	def __iter__(self):
		return iter(self.symbols.values())

	def __len__(self) -> int:
		return len(self.symbols)


class Catalog:
	"""Global scope plus at most one open function scope."""

	def __init__(self) -> None:
		self.globals: Dict[str, Symbol] = {}
		self.structs: Dict[str, StructInfo] = {}
		self.function_scopes: Dict[str, LocalScope] = {}
		self._local: Optional[LocalScope] = None

	@property
	def current(self) -> Optional[LocalScope]:
		return self._local

	def declare_global(self, symbol: Symbol) -> Symbol:
		if symbol.scope is not ScopeKind.GLOBAL:
			raise ValueError(f"symbol '{symbol.name}' is not global")
		previous = self.globals.get(symbol.name)
		if previous is not None:
			raise _duplicate(symbol, previous, "at global scope")
		self.globals[symbol.name] = symbol
		return symbol

	def enter_function(self, name: str) -> LocalScope:
		if self._local is not None:
			raise RuntimeError(
				f"cannot enter function '{name}' while resolving '{self._local.function}'"
			)
		self._local = LocalScope(name)
		return self._local

	def declare_local(self, symbol: Symbol) -> Symbol:
		scope = self._require_local()
		if symbol.scope is not ScopeKind.LOCAL:
			raise ValueError(f"symbol '{symbol.name}' is not local")
		previous = scope.get(symbol.name)
		if previous is not None:
			raise _duplicate(symbol, previous, f"in function '{scope.function}'")
		symbol.function = scope.function
		scope.symbols[symbol.name] = symbol
		return symbol

	def lookup(self, name: str, at: Optional[int] = None) -> Optional[Symbol]:
		"""
		Find `name` in the open Local scope, then in the Global scope.

		With `at` (a statement index), a local `var` declared after that
		statement is not visible yet, so a global of the same name still
		resolves there. Labels, parameters and `result` are visible throughout.
		"""
		if self._local is not None:
			local = self._local.get(name)
			if local is not None and _visible(local, at):
				return local
		return self.globals.get(name)

	def lookup_global(self, name: str) -> Optional[Symbol]:
		return self.globals.get(name)

	def lookup_label(self, name: str) -> Optional[Symbol]:
		"""Labels never escape their function and never live in Global scope."""
		scope = self._require_local()
		symbol = scope.get(name)
		if symbol is None or symbol.kind is not SymbolKind.LABEL:
			return None
		return symbol

	def leave_function(self) -> LocalScope:
		scope = self._require_local()
		self.function_scopes[scope.function] = scope
		self._local = None
		return scope

	def _require_local(self) -> LocalScope:
		if self._local is None:
			raise RuntimeError("no function scope is open")
		return self._local


def _visible(symbol: Symbol, at: Optional[int]) -> bool:
	if at is None or symbol.kind is not SymbolKind.VAR:
		return True
	return symbol.order <= at


def _duplicate(symbol: Symbol, previous: Symbol, where: str) -> CheckError:
	err = CheckError(
		DiagnosticKind.DUPLICATE,
		f"'{symbol.name}' is already declared {where}",
		symbol.span,
	)
	if previous.span.line is not None:
		err.diagnostic.notes.append(
			f"previous declaration of {previous.kind.describe()} '{previous.name}' at {previous.span}"
		)
	return err


__all__ = [
	"Catalog",
	"LocalScope",
	"RESULT_NAME",
	"ScopeKind",
	"StructInfo",
	"Symbol",
	"SymbolKind",
]
