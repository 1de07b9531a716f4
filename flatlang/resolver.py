# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Resolver / type checker: raw AST -> validated AST + catalog.

Resolution runs in two passes over a translation unit:

1. Collection: every global const/var/struct/fun is registered first
   (names only), then constants, struct field lists, global variable types
   and function signatures are resolved. Forward references among globals
   therefore work in any order. This pass completes before any body is
   looked at.
2. Body pass, per function: seed the flat Local scope with `result` and the
   parameters, collect every `var` and `label` in the body regardless of
   nesting, then check statements in order.

A failure halts the declaration or function it occurs in; other functions
are still resolved so one run reports every function's first problem.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from itertools import repeat
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Set

from . import ast
from .catalog import RESULT_NAME, Catalog, LocalScope, ScopeKind, StructInfo, Symbol, SymbolKind
from .diagnostics import CheckError, Diagnostic, DiagnosticKind, LexError, ParseError
from .parser import parse_source
from .runtime import SPECIAL_FORMS, builtin_signatures, is_builtin_name
from .types import (
	BYTE,
	FLOAT,
	INT,
	PRIMITIVES,
	VOID,
	ArrayType,
	FunctionType,
	PointerType,
	StructType,
	Type,
	innermost_element,
)


class ResolveState(Enum):
	"""Per-function progress; strictly sequential, no re-entry."""

	COLLECTING_SIGNATURE = auto()
	COLLECTING_LOCALS = auto()
	CHECKING_STATEMENTS = auto()
	DONE = auto()
	FAILED = auto()


@dataclass
class FunctionInfo:
	name: str
	decl: ast.FuncDecl
	signature: Optional[FunctionType] = None
	scope: Optional[LocalScope] = None
	# label name -> pre-order statement index
	labels: Dict[str, int] = field(default_factory=dict)
	# every statement of the body in pre-order; goto targets index into it
	statements: List[ast.Stmt] = field(default_factory=list)
	state: ResolveState = ResolveState.COLLECTING_SIGNATURE


@dataclass
class CheckedProgram:
	program: ast.Program
	catalog: Catalog
	functions: Dict[str, FunctionInfo]
	diagnostics: List[Diagnostic]

	@property
	def ok(self) -> bool:
		return not any(d.severity == "error" for d in self.diagnostics)

	@property
	def globals(self) -> Dict[str, Symbol]:
		return self.catalog.globals

	@property
	def structs(self) -> Dict[str, StructInfo]:
		return self.catalog.structs


@dataclass
class ResolveResult:
	"""Outcome of `resolve`: a validated program, or diagnostics."""

	program: Optional[ast.Program]
	checked: Optional[CheckedProgram]
	diagnostics: List[Diagnostic]

	@property
	def ok(self) -> bool:
		return self.program is not None

	@property
	def catalog(self) -> Optional[Catalog]:
		return self.checked.catalog if self.checked is not None else None


@dataclass
class _FunctionContext:
	info: FunctionInfo
	index_of: Dict[int, int]
	loop_depth: int = 0
	# index of the statement being checked (drives shadowing)
	index: int = -1


def _fail(kind: DiagnosticKind, message: str, span) -> CheckError:
	return CheckError(kind, message, span)


class Resolver:
	def __init__(self, builtins: Optional[Mapping[str, FunctionType]] = None) -> None:
		self.builtins: Dict[str, FunctionType] = dict(
			builtin_signatures() if builtins is None else builtins
		)
		self.catalog = Catalog()
		self.functions: Dict[str, FunctionInfo] = {}
		self.diagnostics: List[Diagnostic] = []
		self._invalid: Set[int] = set()

	def resolve(self, program: ast.Program) -> CheckedProgram:
		self._collect(program)
		for decl in program.functions:
			info = self.functions.get(decl.name)
			if info is None or info.decl is not decl or info.signature is None:
				continue
			self._resolve_function(info)
		return CheckedProgram(
			program=program,
			catalog=self.catalog,
			functions=self.functions,
			diagnostics=self.diagnostics,
		)

	def _report(self, err: CheckError) -> None:
		self.diagnostics.append(err.diagnostic)

	def _guarded(self, action, decl) -> bool:
		if id(decl) in self._invalid:
			return False
		try:
			action(decl)
		except CheckError as err:
			self._report(err)
			self._invalid.add(id(decl))
			return False
		return True

	# Collection pass.

	def _collect(self, program: ast.Program) -> None:
		for decl in program.decls:
			self._guarded(self._register, decl)
		for decl in program.decls:
			if isinstance(decl, ast.ConstDecl):
				self._guarded(self._resolve_const, decl)
		for decl in program.structs:
			self._guarded(self._resolve_struct, decl)
		self._check_struct_containment(program.structs)
		for decl in program.decls:
			if isinstance(decl, ast.VarDecl):
				self._guarded(self._resolve_global_var, decl)
			elif isinstance(decl, ast.FuncDecl):
				self._guarded(self._resolve_signature, decl)

	def _register(self, decl: ast.Decl) -> None:
		if isinstance(decl, ast.ConstDecl):
			kind = SymbolKind.CONST
		elif isinstance(decl, ast.VarDecl):
			kind = SymbolKind.VAR
		elif isinstance(decl, ast.StructDecl):
			kind = SymbolKind.STRUCT
		elif isinstance(decl, ast.FuncDecl):
			kind = SymbolKind.FUNC
		else:
			raise TypeError(f"unexpected declaration {decl!r}")
		symbol = Symbol(name=decl.name, kind=kind, scope=ScopeKind.GLOBAL, span=decl.span)
		self.catalog.declare_global(symbol)
		if isinstance(decl, ast.StructDecl):
			symbol.ty = StructType(decl.name)
			self.catalog.structs[decl.name] = StructInfo(name=decl.name, span=decl.span, complete=False)
		elif isinstance(decl, ast.FuncDecl):
			self.functions[decl.name] = FunctionInfo(name=decl.name, decl=decl)

	def _resolve_const(self, decl: ast.ConstDecl) -> None:
		symbol = self.catalog.globals[decl.name]
		value = decl.value
		if isinstance(value, ast.IntLit):
			value.ty, literal = INT, value.value
		elif isinstance(value, ast.FloatLit):
			value.ty, literal = FLOAT, value.value
		elif isinstance(value, ast.ByteLit):
			value.ty, literal = BYTE, value.value
		elif isinstance(value, ast.Ident):
			source = self.catalog.lookup_global(value.name)
			if source is None:
				raise _fail(DiagnosticKind.UNDEFINED, f"undefined name '{value.name}'", value.span)
			if source.kind is not SymbolKind.CONST:
				raise _fail(
					DiagnosticKind.NOT_A_VALUE,
					f"constant '{decl.name}' must be initialized with a literal or another constant, "
					f"not {source.kind.describe()} '{value.name}'",
					value.span,
				)
			if source.ty is None:
				raise _fail(
					DiagnosticKind.UNDEFINED,
					f"constant '{value.name}' must be declared before '{decl.name}'",
					value.span,
				)
			value.symbol = source
			value.ty, literal = source.ty, source.value
		else:
			raise TypeError(f"unexpected constant value {value!r}")
		symbol.ty = value.ty
		symbol.value = literal

	def _resolve_struct(self, decl: ast.StructDecl) -> None:
		info = self.catalog.structs[decl.name]
		for member in decl.fields:
			if member.name in info.fields:
				raise _fail(
					DiagnosticKind.DUPLICATE,
					f"field '{member.name}' is already declared in struct '{decl.name}'",
					member.span,
				)
			info.fields[member.name] = self._resolve_type(member.type_expr)
		info.complete = True

	def _check_struct_containment(self, structs: Sequence[ast.StructDecl]) -> None:
		"""Reject structs that contain themselves by value (through fields or arrays)."""
		edges: Dict[str, List[str]] = {}
		for name, info in self.catalog.structs.items():
			edges[name] = [
				elem.name
				for elem in (innermost_element(ty) for ty in info.field_types)
				if isinstance(elem, StructType)
			]
		reported: Set[str] = set()
		for decl in structs:
			if id(decl) in self._invalid or decl.name in reported:
				continue
			cycle = _find_cycle(decl.name, edges)
			if cycle is None:
				continue
			reported.update(cycle)
			self.catalog.structs[decl.name].complete = False
			self._invalid.add(id(decl))
			self._report(
				_fail(
					DiagnosticKind.SELF_CONTAINING_STRUCT,
					f"struct '{decl.name}' contains itself by value ({' -> '.join(cycle)}); use a pointer",
					decl.span,
				)
			)

	def _resolve_global_var(self, decl: ast.VarDecl) -> None:
		self.catalog.globals[decl.name].ty = self._resolve_type(decl.type_expr)

	def _resolve_signature(self, decl: ast.FuncDecl) -> None:
		params = tuple(self._resolve_type(param.type_expr) for param in decl.params)
		result = self._resolve_type(decl.return_type, allow_void=True)
		signature = FunctionType(params, result)
		self.catalog.globals[decl.name].ty = signature
		self.functions[decl.name].signature = signature

	# Types.

	def _resolve_type(self, type_expr: ast.TypeExpr, allow_void: bool = False, at: Optional[int] = None) -> Type:
		"""
		Resolve a type expression. Type names are always global; inside a
		function body `at` is the statement index used to look up array sizes,
		so a parameter or visible local hides a global constant of that name.
		"""
		if isinstance(type_expr, ast.NamedTypeExpr):
			name = type_expr.name
			if name == "void":
				if allow_void:
					return VOID
				raise _fail(
					DiagnosticKind.INVALID_VOID,
					"'void' is only valid as a function return type",
					type_expr.span,
				)
			primitive = PRIMITIVES.get(name)
			if primitive is not None:
				return primitive
			symbol = self.catalog.lookup_global(name)
			if symbol is None:
				raise _fail(DiagnosticKind.UNDEFINED_TYPE, f"unknown type '{name}'", type_expr.span)
			if symbol.kind is not SymbolKind.STRUCT:
				raise _fail(
					DiagnosticKind.UNDEFINED_TYPE,
					f"'{name}' is a {symbol.kind.describe()}, not a type",
					type_expr.span,
				)
			return StructType(name)
		if isinstance(type_expr, ast.PointerTypeExpr):
			return PointerType(self._resolve_type(type_expr.elem, at=at))
		if isinstance(type_expr, ast.ArrayTypeExpr):
			elem = self._resolve_type(type_expr.elem, at=at)
			return ArrayType(elem, self._array_size(type_expr, at))
		if isinstance(type_expr, ast.FunctionTypeExpr):
			params = tuple(self._resolve_type(param, at=at) for param in type_expr.params)
			return FunctionType(params, self._resolve_type(type_expr.result, allow_void=True, at=at))
		raise TypeError(f"unexpected type expression {type_expr!r}")

	def _array_size(self, type_expr: ast.ArrayTypeExpr, at: Optional[int] = None) -> int:
		size = type_expr.size
		if isinstance(size, str):
			symbol = self.catalog.lookup(size, at=at)
			if symbol is None or symbol.kind is not SymbolKind.CONST or symbol.ty != INT:
				raise _fail(
					DiagnosticKind.INVALID_ARRAY_SIZE,
					f"array size '{size}' is not an integer constant",
					type_expr.span,
				)
			value = symbol.value
		else:
			value = size
		if value <= 0:
			raise _fail(
				DiagnosticKind.INVALID_ARRAY_SIZE,
				f"array size must be positive, got {value}",
				type_expr.span,
			)
		return value

	# Body pass.

	def _resolve_function(self, info: FunctionInfo) -> None:
		self.catalog.enter_function(info.name)
		try:
			info.state = ResolveState.COLLECTING_SIGNATURE
			self._seed_scope(info)
			info.state = ResolveState.COLLECTING_LOCALS
			index_of = self._collect_locals(info)
			info.state = ResolveState.CHECKING_STATEMENTS
			ctx = _FunctionContext(info=info, index_of=index_of)
			self._check_block(info.decl.body, ctx)
			info.state = ResolveState.DONE
		except CheckError as err:
			info.state = ResolveState.FAILED
			self._report(err)
		finally:
			info.scope = self.catalog.leave_function()

	def _seed_scope(self, info: FunctionInfo) -> None:
		decl = info.decl
		signature = info.signature
		if signature.result != VOID:
			self.catalog.declare_local(
				Symbol(
					name=RESULT_NAME,
					kind=SymbolKind.RESULT,
					scope=ScopeKind.LOCAL,
					ty=signature.result,
					span=decl.return_type.span,
				)
			)
		for param, ty in zip(decl.params, signature.params):
			self.catalog.declare_local(
				Symbol(name=param.name, kind=SymbolKind.PARAM, scope=ScopeKind.LOCAL, ty=ty, span=param.span)
			)

	def _collect_locals(self, info: FunctionInfo) -> Dict[int, int]:
		index_of: Dict[int, int] = {}
		for index, stmt in enumerate(ast.iter_statements(info.decl.body)):
			info.statements.append(stmt)
			index_of[id(stmt)] = index
			if isinstance(stmt, ast.VarDecl):
				self.catalog.declare_local(
					Symbol(
						name=stmt.name,
						kind=SymbolKind.VAR,
						scope=ScopeKind.LOCAL,
						ty=self._resolve_type(stmt.type_expr, at=index),
						span=stmt.span,
						order=index,
					)
				)
			elif isinstance(stmt, ast.LabelStmt):
				stmt.index = index
				self.catalog.declare_local(
					Symbol(name=stmt.name, kind=SymbolKind.LABEL, scope=ScopeKind.LOCAL, span=stmt.span, order=index)
				)
				info.labels[stmt.name] = index
		return index_of

	def _check_block(self, block: ast.Block, ctx: _FunctionContext) -> None:
		for stmt in block.statements:
			self._check_stmt(stmt, ctx)

	def _check_stmt(self, stmt: ast.Stmt, ctx: _FunctionContext) -> None:
		ctx.index = ctx.index_of[id(stmt)]
		if isinstance(stmt, (ast.VarDecl, ast.LabelStmt)):
			return
		if isinstance(stmt, ast.AssignStmt):
			target_type = self._check_target(stmt, ctx)
			stmt.value = self._check_expr(stmt.value, ctx, expected=target_type)
			if stmt.value.ty != target_type:
				raise _fail(
					DiagnosticKind.ASSIGNMENT_MISMATCH,
					f"cannot assign a value of type {stmt.value.ty} to a target of type {target_type}",
					stmt.span,
				)
			return
		if isinstance(stmt, ast.CallStmt):
			stmt.call = self._check_call(stmt.call, ctx)
			return
		if isinstance(stmt, ast.IfStmt):
			stmt.condition = self._check_condition(stmt.condition, ctx)
			self._check_block(stmt.then_block, ctx)
			if isinstance(stmt.else_branch, ast.IfStmt):
				self._check_stmt(stmt.else_branch, ctx)
			elif stmt.else_branch is not None:
				self._check_block(stmt.else_branch, ctx)
			return
		if isinstance(stmt, ast.WhileStmt):
			stmt.condition = self._check_condition(stmt.condition, ctx)
			ctx.loop_depth += 1
			try:
				self._check_block(stmt.body, ctx)
			finally:
				ctx.loop_depth -= 1
			return
		if isinstance(stmt, (ast.BreakStmt, ast.ContinueStmt)):
			if ctx.loop_depth == 0:
				word = "break" if isinstance(stmt, ast.BreakStmt) else "continue"
				raise _fail(DiagnosticKind.NOT_IN_LOOP, f"'{word}' outside of a while loop", stmt.span)
			return
		if isinstance(stmt, ast.GotoStmt):
			label = self.catalog.lookup_label(stmt.label)
			if label is None:
				raise _fail(
					DiagnosticKind.UNDEFINED_LABEL,
					f"label '{stmt.label}' is not declared in function '{ctx.info.name}'",
					stmt.span,
				)
			stmt.target_index = label.order
			return
		if isinstance(stmt, ast.Block):
			self._check_block(stmt, ctx)
			return
		raise TypeError(f"unexpected statement {stmt!r}")

	def _check_target(self, stmt: ast.AssignStmt, ctx: _FunctionContext) -> Type:
		root = stmt.target
		while isinstance(root, (ast.Index, ast.Field)):
			root = root.base
		symbol = self.catalog.lookup(root.name, at=ctx.index)
		if symbol is not None and not symbol.kind.is_storage:
			raise _fail(
				DiagnosticKind.NOT_ASSIGNABLE,
				f"cannot assign to {symbol.kind.describe()} '{root.name}'",
				stmt.target.span,
			)
		stmt.target = self._check_expr(stmt.target, ctx)
		return stmt.target.ty

	def _check_condition(self, expr: ast.Expr, ctx: _FunctionContext) -> ast.Expr:
		expr = self._check_expr(expr, ctx)
		if expr.ty != INT:
			raise _fail(DiagnosticKind.NON_INT_CONDITION, f"condition must be int, got {expr.ty}", expr.span)
		return expr

	# Expressions. Each check returns the validated node, which may replace
	# the one passed in (selector disambiguation, `_alloc` type arguments).

	def _check_expr(self, expr: ast.Expr, ctx: _FunctionContext, expected: Optional[Type] = None) -> ast.Expr:
		if isinstance(expr, ast.IntLit):
			expr.ty = INT
			return expr
		if isinstance(expr, ast.FloatLit):
			expr.ty = FLOAT
			return expr
		if isinstance(expr, ast.ByteLit):
			expr.ty = BYTE
			return expr
		if isinstance(expr, ast.Ident):
			symbol = self._lookup_value(expr, ctx)
			expr.symbol = symbol
			expr.ty = symbol.ty
			return expr
		if isinstance(expr, ast.Index):
			return self._check_index(expr, ctx)
		if isinstance(expr, ast.Field):
			expr.base = self._check_expr(expr.base, ctx)
			return self._select_field(expr.base, expr.name, expr.span)
		if isinstance(expr, ast.Call):
			return self._check_call(expr, ctx)
		if isinstance(expr, ast.AddrOf):
			return self._check_addr(expr, ctx)
		if isinstance(expr, ast.CompositeLit):
			if expected is None:
				raise _fail(
					DiagnosticKind.COMPOSITE_WITHOUT_CONTEXT,
					"a composite literal needs a known target type (assignment value or nested literal)",
					expr.span,
				)
			return self._check_composite(expr, expected, ctx)
		if isinstance(expr, ast.TypeExpression):
			raise _fail(
				DiagnosticKind.ARGUMENT_MISMATCH,
				"a type is only accepted as the first argument of _alloc",
				expr.span,
			)
		raise TypeError(f"unexpected expression {expr!r}")

	def _lookup_value(self, ident: ast.Ident, ctx: _FunctionContext) -> Symbol:
		name = ident.name
		symbol = self.catalog.lookup(name, at=ctx.index)
		if symbol is None:
			if is_builtin_name(name):
				raise _fail(DiagnosticKind.NOT_A_VALUE, f"builtin '{name}' can only be called", ident.span)
			later = self.catalog.current.get(name) if self.catalog.current is not None else None
			if later is not None:
				raise _fail(
					DiagnosticKind.UNDEFINED,
					f"'{name}' is used before its declaration at {later.span}",
					ident.span,
				)
			raise _fail(DiagnosticKind.UNDEFINED, f"undefined name '{name}'", ident.span)
		if symbol.kind is SymbolKind.FUNC:
			raise _fail(
				DiagnosticKind.NOT_A_VALUE,
				f"function '{name}' is not a value; use _addr({name}) for a function pointer",
				ident.span,
			)
		if symbol.kind in (SymbolKind.STRUCT, SymbolKind.LABEL):
			raise _fail(
				DiagnosticKind.NOT_A_VALUE,
				f"{symbol.kind.describe()} '{name}' is not a value",
				ident.span,
			)
		if symbol.ty is None:
			raise _fail(
				DiagnosticKind.UNDEFINED_TYPE,
				f"the type of {symbol.kind.describe()} '{name}' could not be resolved",
				ident.span,
			)
		return symbol

	def _check_index(self, expr: ast.Index, ctx: _FunctionContext) -> ast.Expr:
		expr.base = self._check_expr(expr.base, ctx)
		base_type = expr.base.ty
		if isinstance(base_type, StructType):
			if not isinstance(expr.index, ast.Ident):
				raise _fail(
					DiagnosticKind.INVALID_SELECTOR,
					f"a value of struct type {base_type} is selected by field name",
					expr.index.span,
				)
			return self._select_field(expr.base, expr.index.name, expr.span)
		if isinstance(base_type, (ArrayType, PointerType)):
			expr.index = self._check_expr(expr.index, ctx)
			if expr.index.ty != INT:
				raise _fail(
					DiagnosticKind.INVALID_SELECTOR,
					f"index must be int, got {expr.index.ty}",
					expr.index.span,
				)
			expr.ty = base_type.elem
			return expr
		raise _fail(
			DiagnosticKind.INVALID_SELECTOR,
			f"cannot index a value of type {base_type}",
			expr.span,
		)

	def _select_field(self, base: ast.Expr, name: str, span) -> ast.Field:
		base_type = base.ty
		if not isinstance(base_type, StructType):
			raise _fail(
				DiagnosticKind.INVALID_SELECTOR,
				f"cannot select field '{name}' from a value of type {base_type}",
				span,
			)
		info = self.catalog.structs.get(base_type.name)
		if info is None or not info.complete:
			raise _fail(
				DiagnosticKind.INVALID_SELECTOR,
				f"struct '{base_type.name}' has an invalid declaration",
				span,
			)
		if name not in info.fields:
			raise _fail(
				DiagnosticKind.INVALID_SELECTOR,
				f"struct '{base_type.name}' has no field '{name}'",
				span,
			)
		return ast.Field(base=base, name=name, span=span, ty=info.fields[name])

	def _check_call(self, call: ast.Call, ctx: _FunctionContext) -> ast.Call:
		callee = call.callee
		if isinstance(callee, ast.Ident) and is_builtin_name(callee.name):
			return self._check_builtin_call(call, callee, ctx)
		what = "call"
		symbol = None
		if isinstance(callee, ast.Ident):
			what = f"'{callee.name}'"
			symbol = self.catalog.lookup(callee.name, at=ctx.index)
		if symbol is not None and symbol.kind is SymbolKind.FUNC:
			if symbol.ty is None:
				raise _fail(
					DiagnosticKind.NOT_CALLABLE,
					f"function '{symbol.name}' has an invalid signature",
					callee.span,
				)
			callee.symbol = symbol
			callee.ty = symbol.ty
		elif symbol is not None and symbol.kind in (SymbolKind.STRUCT, SymbolKind.LABEL):
			raise _fail(
				DiagnosticKind.NOT_CALLABLE,
				f"{symbol.kind.describe()} '{symbol.name}' is not callable",
				callee.span,
			)
		else:
			call.callee = self._check_expr(callee, ctx)
		signature = call.callee.ty
		if not isinstance(signature, FunctionType):
			raise _fail(
				DiagnosticKind.NOT_CALLABLE,
				f"a value of type {signature} is not callable",
				call.callee.span,
			)
		call.args = self._check_args(call, signature.params, what, ctx)
		call.ty = signature.result
		return call

	def _check_args(
		self,
		call: ast.Call,
		params: Sequence[Type],
		what: str,
		ctx: _FunctionContext,
	) -> List[ast.Expr]:
		if len(call.args) != len(params):
			raise _fail(
				DiagnosticKind.ARGUMENT_MISMATCH,
				f"{what} expects {len(params)} argument(s), got {len(call.args)}",
				call.span,
			)
		checked: List[ast.Expr] = []
		for position, (arg, param_type) in enumerate(zip(call.args, params), start=1):
			arg = self._check_expr(arg, ctx)
			if arg.ty != param_type:
				raise _fail(
					DiagnosticKind.ARGUMENT_MISMATCH,
					f"argument {position} of {what}: expected {param_type}, got {arg.ty}",
					arg.span,
				)
			checked.append(arg)
		return checked

	def _check_builtin_call(self, call: ast.Call, callee: ast.Ident, ctx: _FunctionContext) -> ast.Call:
		name = callee.name
		if name == "_alloc":
			return self._check_alloc(call, ctx)
		if name == "_free":
			return self._check_free(call, ctx)
		if name in SPECIAL_FORMS:
			raise _fail(
				DiagnosticKind.ARGUMENT_MISMATCH,
				"_addr expects exactly one addressable value or function name",
				call.span,
			)
		signature = self.builtins.get(name)
		if signature is None:
			raise _fail(DiagnosticKind.UNDEFINED, f"unknown builtin '{name}'", callee.span)
		callee.ty = signature
		call.args = self._check_args(call, signature.params, f"'{name}'", ctx)
		call.ty = signature.result
		return call

	def _check_alloc(self, call: ast.Call, ctx: _FunctionContext) -> ast.Call:
		if not 1 <= len(call.args) <= 2:
			raise _fail(
				DiagnosticKind.ARGUMENT_MISMATCH,
				f"_alloc expects a type and an optional int count, got {len(call.args)} argument(s)",
				call.span,
			)
		type_arg = self._as_type_argument(call.args[0])
		type_arg.ty = self._resolve_type(type_arg.type_expr, at=ctx.index)
		args: List[ast.Expr] = [type_arg]
		if len(call.args) == 2:
			count = self._check_expr(call.args[1], ctx)
			if count.ty != INT:
				raise _fail(
					DiagnosticKind.ARGUMENT_MISMATCH,
					f"argument 2 of '_alloc': expected int, got {count.ty}",
					count.span,
				)
			args.append(count)
		call.args = args
		call.ty = PointerType(type_arg.ty)
		call.callee.ty = FunctionType(tuple(a.ty for a in args), call.ty)
		return call

	def _as_type_argument(self, arg: ast.Expr) -> ast.TypeExpression:
		if isinstance(arg, ast.TypeExpression):
			return arg
		type_expr = self._expr_as_type(arg)
		if type_expr is None:
			raise _fail(
				DiagnosticKind.ARGUMENT_MISMATCH,
				"the first argument of _alloc must be a type",
				arg.span,
			)
		return ast.TypeExpression(type_expr=type_expr, span=arg.span)

	def _expr_as_type(self, expr: ast.Expr) -> Optional[ast.TypeExpr]:
		"""
		Reinterpret `Name` / `Name[N]` parsed as expressions as struct (array)
		types. The name itself is checked by `_resolve_type`, so an unknown name
		or a non-struct symbol is reported as an undefined type.
		"""
		if isinstance(expr, ast.Ident):
			return ast.NamedTypeExpr(name=expr.name, span=expr.span)
		if isinstance(expr, ast.Index):
			elem = self._expr_as_type(expr.base)
			if elem is None:
				return None
			if isinstance(expr.index, ast.IntLit):
				return ast.ArrayTypeExpr(elem=elem, size=expr.index.value, span=expr.span)
			if isinstance(expr.index, ast.Ident):
				return ast.ArrayTypeExpr(elem=elem, size=expr.index.name, span=expr.span)
		return None

	def _check_free(self, call: ast.Call, ctx: _FunctionContext) -> ast.Call:
		if len(call.args) != 1:
			raise _fail(
				DiagnosticKind.ARGUMENT_MISMATCH,
				f"'_free' expects 1 argument(s), got {len(call.args)}",
				call.span,
			)
		pointer = self._check_expr(call.args[0], ctx)
		if not isinstance(pointer.ty, PointerType):
			raise _fail(
				DiagnosticKind.ARGUMENT_MISMATCH,
				f"argument 1 of '_free': expected a pointer, got {pointer.ty}",
				pointer.span,
			)
		call.args = [pointer]
		call.ty = VOID
		call.callee.ty = FunctionType((pointer.ty,), VOID)
		return call

	def _check_addr(self, node: ast.AddrOf, ctx: _FunctionContext) -> ast.AddrOf:
		target = node.target
		if isinstance(target, ast.Ident):
			symbol = self.catalog.lookup(target.name, at=ctx.index)
			if symbol is not None and symbol.kind is SymbolKind.FUNC:
				if symbol.ty is None:
					raise _fail(
						DiagnosticKind.NOT_ADDRESSABLE,
						f"function '{symbol.name}' has an invalid signature",
						target.span,
					)
				target.symbol = symbol
				target.ty = symbol.ty
				node.ty = symbol.ty
				return node
			if is_builtin_name(target.name):
				raise _fail(
					DiagnosticKind.NOT_ADDRESSABLE,
					f"builtin '{target.name}' has no address",
					target.span,
				)
		node.target = self._check_expr(target, ctx)
		if not self._is_addressable(node.target):
			raise _fail(
				DiagnosticKind.NOT_ADDRESSABLE,
				"_addr needs an addressable value or a function name",
				node.target.span,
			)
		node.ty = PointerType(node.target.ty)
		return node

	def _is_addressable(self, expr: ast.Expr) -> bool:
		if isinstance(expr, ast.Ident):
			return expr.symbol is not None and expr.symbol.kind.is_storage
		if isinstance(expr, ast.Index):
			if isinstance(expr.base.ty, PointerType):
				return True
			return self._is_addressable(expr.base)
		if isinstance(expr, ast.Field):
			return self._is_addressable(expr.base)
		return False

	def _check_composite(self, lit: ast.CompositeLit, expected: Type, ctx: _FunctionContext) -> ast.CompositeLit:
		if isinstance(expected, ArrayType):
			count = expected.size
			slots: Iterable[Type] = repeat(expected.elem)
		elif isinstance(expected, StructType):
			info = self.catalog.structs.get(expected.name)
			if info is None or not info.complete:
				raise _fail(
					DiagnosticKind.COMPOSITE_SHAPE_MISMATCH,
					f"struct '{expected.name}' has an invalid declaration",
					lit.span,
				)
			count = len(info.field_types)
			slots = info.field_types
		else:
			raise _fail(
				DiagnosticKind.COMPOSITE_SHAPE_MISMATCH,
				f"a composite literal cannot initialize a value of type {expected}",
				lit.span,
			)
		if len(lit.elements) != count:
			raise _fail(
				DiagnosticKind.COMPOSITE_SHAPE_MISMATCH,
				f"{expected} needs {count} element(s), got {len(lit.elements)}",
				lit.span,
			)
		elements: List[ast.Expr] = []
		for position, (element, slot) in enumerate(zip(lit.elements, slots), start=1):
			if isinstance(element, ast.CompositeLit):
				element = self._check_composite(element, slot, ctx)
			else:
				element = self._check_expr(element, ctx)
				if element.ty != slot:
					raise _fail(
						DiagnosticKind.COMPOSITE_SHAPE_MISMATCH,
						f"element {position} of a {expected} literal: expected {slot}, got {element.ty}",
						element.span,
					)
			elements.append(element)
		lit.elements = elements
		lit.ty = expected
		return lit


def _find_cycle(start: str, edges: Mapping[str, Sequence[str]]) -> Optional[List[str]]:
	"""Path `start -> ... -> start` through by-value containment, if any."""
	seen: Set[str] = set()

	def visit(name: str, path: List[str]) -> Optional[List[str]]:
		for nxt in edges.get(name, ()):
			if nxt == start:
				return path + [nxt]
			if nxt in seen:
				continue
			seen.add(nxt)
			found = visit(nxt, path + [nxt])
			if found is not None:
				return found
		return None

	return visit(start, [start])


def resolve_program(
	program: ast.Program,
	builtins: Optional[Mapping[str, FunctionType]] = None,
) -> CheckedProgram:
	"""Resolve an already parsed program."""
	return Resolver(builtins).resolve(program)


def resolve(source: str, file: Optional[str] = None) -> ResolveResult:
	"""
	Run the whole front end over `source`.

	Lex and syntax errors abort immediately with a single diagnostic. Otherwise
	the resolver's diagnostics are returned; `program` is only set when there
	are none.
	"""
	try:
		program = parse_source(source, file=file)
	except (LexError, ParseError) as err:
		return ResolveResult(program=None, checked=None, diagnostics=[err.diagnostic])
	checked = resolve_program(program)
	return ResolveResult(
		program=program if checked.ok else None,
		checked=checked,
		diagnostics=list(checked.diagnostics),
	)


__all__ = [
	"CheckedProgram",
	"FunctionInfo",
	"ResolveResult",
	"ResolveState",
	"Resolver",
	"resolve",
	"resolve_program",
]
