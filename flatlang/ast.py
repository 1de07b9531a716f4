# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Syntax tree produced by the parser and annotated by the resolver.

Nodes own their children exclusively (a strict tree). Spans and resolver
annotations (`ty`, `symbol`, label indices) are excluded from equality, so
two trees compare equal when they are structurally the same program.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, List, Optional, Union

from .span import Span

if TYPE_CHECKING:
	from .catalog import Symbol
	from .types import Type


def _span() -> Any:
	return field(default_factory=Span, compare=False, repr=False)


def _note(default: Any = None) -> Any:
	return field(default=default, compare=False, repr=False)


# Types as written in source.


class TypeExpr:
	span: Span


@dataclass
class NamedTypeExpr(TypeExpr):
	"""A primitive (`int`, `float`, `byte`, `void`) or struct name."""

	name: str
	span: Span = _span()


@dataclass
class PointerTypeExpr(TypeExpr):
	elem: TypeExpr
	span: Span = _span()


@dataclass
class ArrayTypeExpr(TypeExpr):
	elem: TypeExpr
	# Integer literal or the name of an integer constant.
	size: Union[int, str]
	span: Span = _span()


@dataclass
class FunctionTypeExpr(TypeExpr):
	"""Function-pointer type `result(params...)*`."""

	result: TypeExpr
	params: List[TypeExpr]
	span: Span = _span()


# Expressions.


class Expr:
	span: Span
	ty: Optional["Type"]


@dataclass
class IntLit(Expr):
	value: int
	span: Span = _span()
	ty: Optional["Type"] = _note()


@dataclass
class FloatLit(Expr):
	value: float
	span: Span = _span()
	ty: Optional["Type"] = _note()


@dataclass
class ByteLit(Expr):
	value: int
	span: Span = _span()
	ty: Optional["Type"] = _note()


@dataclass
class Ident(Expr):
	name: str
	span: Span = _span()
	ty: Optional["Type"] = _note()
	symbol: Optional["Symbol"] = _note()


@dataclass
class Index(Expr):
	"""`base[index]`; a bare-identifier index on a struct becomes a `Field`."""

	base: Expr
	index: Expr
	span: Span = _span()
	ty: Optional["Type"] = _note()


@dataclass
class Field(Expr):
	base: Expr
	name: str
	span: Span = _span()
	ty: Optional["Type"] = _note()


@dataclass
class Call(Expr):
	callee: Expr
	args: List[Expr]
	span: Span = _span()
	ty: Optional["Type"] = _note()


@dataclass
class CompositeLit(Expr):
	elements: List[Expr]
	span: Span = _span()
	ty: Optional["Type"] = _note()


@dataclass
class AddrOf(Expr):
	"""`_addr(target)`."""

	target: Expr
	span: Span = _span()
	ty: Optional["Type"] = _note()


@dataclass
class TypeExpression(Expr):
	"""A type in argument position (first argument of `_alloc`)."""

	type_expr: TypeExpr
	span: Span = _span()
	ty: Optional["Type"] = _note()


# Statements.


class Stmt:
	span: Span


@dataclass
class Block(Stmt):
	statements: List[Stmt]
	span: Span = _span()


@dataclass
class VarDecl(Stmt):
	"""`var name Type`, at global scope, in a struct body or in a function body."""

	name: str
	type_expr: TypeExpr
	span: Span = _span()


@dataclass
class AssignStmt(Stmt):
	target: Expr
	value: Expr
	span: Span = _span()


@dataclass
class CallStmt(Stmt):
	call: Call
	span: Span = _span()


@dataclass
class IfStmt(Stmt):
	condition: Expr
	then_block: Block
	# `else if` chains nest an IfStmt here.
	else_branch: Optional[Union[Block, "IfStmt"]] = None
	span: Span = _span()


@dataclass
class WhileStmt(Stmt):
	condition: Expr
	body: Block
	span: Span = _span()


@dataclass
class BreakStmt(Stmt):
	span: Span = _span()


@dataclass
class ContinueStmt(Stmt):
	span: Span = _span()


@dataclass
class LabelStmt(Stmt):
	name: str
	span: Span = _span()
	# Pre-order statement index within the function, set by the resolver.
	index: Optional[int] = _note()


@dataclass
class GotoStmt(Stmt):
	label: str
	span: Span = _span()
	target_index: Optional[int] = _note()


# Declarations.


@dataclass
class ConstDecl:
	name: str
	# IntLit, FloatLit, ByteLit or an Ident naming another constant.
	value: Expr
	span: Span = _span()


@dataclass
class StructDecl:
	name: str
	fields: List[VarDecl]
	span: Span = _span()


@dataclass
class Param:
	name: str
	type_expr: TypeExpr
	span: Span = _span()


@dataclass
class FuncDecl:
	name: str
	return_type: TypeExpr
	params: List[Param]
	body: Block
	span: Span = _span()


Decl = Union[ConstDecl, VarDecl, StructDecl, FuncDecl]


@dataclass
class Program:
	decls: List[Decl]
	file: Optional[str] = _note()

	@property
	def functions(self) -> List[FuncDecl]:
		return [d for d in self.decls if isinstance(d, FuncDecl)]

	@property
	def structs(self) -> List[StructDecl]:
		return [d for d in self.decls if isinstance(d, StructDecl)]


def iter_statements(block: Block):
	"""Yield every statement of `block` in pre-order, descending into nested bodies."""
	for stmt in block.statements:
		yield stmt
		if isinstance(stmt, Block):
			yield from iter_statements(stmt)
		elif isinstance(stmt, WhileStmt):
			yield from iter_statements(stmt.body)
		elif isinstance(stmt, IfStmt):
			yield from _iter_if(stmt)


def _iter_if(stmt: IfStmt):
	yield from iter_statements(stmt.then_block)
	branch = stmt.else_branch
	if isinstance(branch, IfStmt):
		yield branch
		yield from _iter_if(branch)
	elif isinstance(branch, Block):
		yield from iter_statements(branch)
