# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Parser: tokens -> raw AST.

The grammar (`grammar.lark`) is LALR(1) and every production starts with a
fixed keyword or punctuation token, so this is a pure syntax pass with no
symbol lookups. Tokens from `lexer.tokenize` are fed to Lark's interactive
parser; the resulting parse tree is then converted into `flatlang.ast` nodes.
The first syntax error aborts the unit.
"""

from __future__ import annotations

from typing import Iterable, List, Optional

from lark import Token as LarkToken, Tree
from lark.exceptions import UnexpectedToken

from . import ast
from .diagnostics import ParseError
from .lexer import FRONTEND, Token, byte_literal_value, tokenize
from .span import Span

_TERMINAL_DISPLAY = {
	"_ASSIGN": "':='",
	"_COMMA": "','",
	"_SEMI": "';'",
	"_LBRACE": "'{'",
	"_RBRACE": "'}'",
	"_RSQB": "']'",
	"_RPAR": "')'",
	"LSQB": "'['",
	"LSQB_ADJ": "'['",
	"LPAR": "'('",
	"LPAR_ADJ": "'('",
	"STAR": "'*'",
	"STAR_ADJ": "'*'",
	"NAME": "identifier",
	"BUILTIN_NAME": "builtin name",
	"INTEGER": "integer literal",
	"REAL": "float literal",
	"BYTE_NUM": "byte literal",
	"CHAR": "character literal",
	"$END": "end of input",
}

_TYPE_TREES = frozenset(
	{
		"prim_type",
		"named_type",
		"named_pointer_type",
		"pointer_type",
		"array_type",
		"function_type",
	}
)

ADDR_BUILTIN = "_addr"


def parse(tokens: Iterable[Token], file: Optional[str] = None) -> ast.Program:
	"""Parse a token sequence into a `Program`, raising `ParseError` on the first error."""
	interactive = FRONTEND.parse_interactive("")
	last: Optional[LarkToken] = None
	try:
		for token in tokens:
			last = token.to_lark()
			interactive.feed_token(last)
		if last is not None:
			eof = LarkToken.new_borrow_pos("$END", "", last)
		else:
			eof = LarkToken("$END", "", 0, 1, 1, 1, 1, 0)
		tree = interactive.feed_token(eof)
	except UnexpectedToken as exc:
		raise _syntax_error(exc, file) from None
	program = AstBuilder(file).build_program(tree)
	return program


def parse_source(source: str, file: Optional[str] = None) -> ast.Program:
	"""Tokenize and parse `source` (raises `LexError` or `ParseError`)."""
	return parse(tokenize(source, file=file), file=file)


def describe_terminal(name: str) -> str:
	display = _TERMINAL_DISPLAY.get(name)
	if display is not None:
		return display
	pattern = FRONTEND.get_terminal(name).pattern
	return f"'{pattern.value}'"


def _syntax_error(exc: UnexpectedToken, file: Optional[str]) -> ParseError:
	token = exc.token
	span = Span.from_loc(token, file=file)
	expected = frozenset(exc.expected)
	adjacent_form = f"{token.type}_ADJ"
	if adjacent_form in expected:
		return ParseError(
			f"whitespace is not permitted before {describe_terminal(token.type)}",
			span,
			expected=expected,
			found=token.type,
		)
	found = describe_terminal(token.type)
	if token.type in ("NAME", "BUILTIN_NAME"):
		found = f"{found} '{token}'"
	wanted = ", ".join(sorted({describe_terminal(t) for t in expected}))
	return ParseError(f"unexpected {found}; expected one of: {wanted}", span, expected=expected, found=token.type)


class AstBuilder:
	"""Converts the Lark parse tree into `flatlang.ast` nodes."""

	def __init__(self, file: Optional[str] = None) -> None:
		self.file = file

	def build_program(self, tree: Tree) -> ast.Program:
		decls: List[ast.Decl] = []
		for child in _trees(tree):
			kind = _name(child)
			if kind == "const_decl":
				decls.append(self._build_const_decl(child))
			elif kind == "var_decl":
				decls.append(self._build_var_decl(child))
			elif kind == "struct_decl":
				decls.append(self._build_struct_decl(child))
			elif kind == "fun_decl":
				decls.append(self._build_fun_decl(child))
			else:
				raise ValueError(f"unexpected top-level node {kind}")
		return ast.Program(decls=decls, file=self.file)

	# Declarations.

	def _build_const_decl(self, tree: Tree) -> ast.ConstDecl:
		name = _tokens(tree, "NAME")[0]
		value_node = _trees(tree)[0]
		if _name(value_node) == "const_ref":
			ref = _tokens(value_node, "NAME")[0]
			value: ast.Expr = ast.Ident(name=str(ref), span=self._span(ref))
		else:
			value = self._build_literal(value_node)
		return ast.ConstDecl(name=str(name), value=value, span=self._span(tree))

	def _build_var_decl(self, tree: Tree) -> ast.VarDecl:
		name = _tokens(tree, "NAME")[0]
		type_node = _trees(tree)[0]
		return ast.VarDecl(name=str(name), type_expr=self._build_type(type_node), span=self._span(tree))

	def _build_struct_decl(self, tree: Tree) -> ast.StructDecl:
		name = _tokens(tree, "NAME")[0]
		fields = [self._build_var_decl(child) for child in _trees(tree)]
		return ast.StructDecl(name=str(name), fields=fields, span=self._span(tree))

	def _build_fun_decl(self, tree: Tree) -> ast.FuncDecl:
		name = _tokens(tree, "NAME")[0]
		children = _trees(tree)
		return_type = self._build_type(children[0])
		params = [self._build_param(child) for child in children[1:-1]]
		body = self._build_block(children[-1])
		return ast.FuncDecl(
			name=str(name),
			return_type=return_type,
			params=params,
			body=body,
			span=self._span(tree),
		)

	def _build_param(self, tree: Tree) -> ast.Param:
		name = _tokens(tree, "NAME")[0]
		type_node = _trees(tree)[0]
		return ast.Param(name=str(name), type_expr=self._build_type(type_node), span=self._span(tree))

	# Types.

	def _build_type(self, tree: Tree) -> ast.TypeExpr:
		kind = _name(tree)
		span = self._span(tree)
		if kind == "prim_type":
			return ast.NamedTypeExpr(name=str(tree.children[0]), span=span)
		if kind == "named_type":
			return ast.NamedTypeExpr(name=str(tree.children[0]), span=span)
		if kind == "named_pointer_type":
			name = _tokens(tree, "NAME")[0]
			elem = ast.NamedTypeExpr(name=str(name), span=self._span(name))
			return ast.PointerTypeExpr(elem=elem, span=span)
		if kind == "pointer_type":
			return ast.PointerTypeExpr(elem=self._build_type(_trees(tree)[0]), span=span)
		if kind == "array_type":
			elem_node, size_node = _trees(tree)
			size_token = size_node.children[0]
			size = int(size_token) if size_token.type == "INTEGER" else str(size_token)
			return ast.ArrayTypeExpr(elem=self._build_type(elem_node), size=size, span=span)
		if kind == "function_type":
			parts = [self._build_type(child) for child in _trees(tree)]
			return ast.FunctionTypeExpr(result=parts[0], params=parts[1:], span=span)
		raise ValueError(f"unexpected type node {kind}")

	# Statements.

	def _build_block(self, tree: Tree) -> ast.Block:
		statements = [self._build_stmt(child) for child in _trees(tree)]
		return ast.Block(statements=statements, span=self._span(tree))

	def _build_stmt(self, tree: Tree) -> ast.Stmt:
		kind = _name(tree)
		span = self._span(tree)
		if kind == "var_decl":
			return self._build_var_decl(tree)
		if kind == "assign_stmt":
			target_node, value_node = _trees(tree)
			target = self._build_expr(target_node)
			_ensure_lvalue(target)
			return ast.AssignStmt(target=target, value=self._build_expr(value_node), span=span)
		if kind == "call_stmt":
			call = self._build_expr(_trees(tree)[0])
			if not isinstance(call, ast.Call):
				raise ParseError(
					"expected ':=' or a call; a bare expression is not a statement",
					call.span,
					expected=frozenset({"_ASSIGN", "LPAR_ADJ"}),
				)
			return ast.CallStmt(call=call, span=span)
		if kind == "if_stmt":
			return self._build_if(tree)
		if kind == "while_stmt":
			condition_node, body_node = _trees(tree)
			return ast.WhileStmt(
				condition=self._build_expr(condition_node),
				body=self._build_block(body_node),
				span=span,
			)
		if kind == "break_stmt":
			return ast.BreakStmt(span=span)
		if kind == "continue_stmt":
			return ast.ContinueStmt(span=span)
		if kind == "label_stmt":
			return ast.LabelStmt(name=str(_tokens(tree, "NAME")[0]), span=span)
		if kind == "goto_stmt":
			return ast.GotoStmt(label=str(_tokens(tree, "NAME")[0]), span=span)
		if kind == "block":
			return self._build_block(tree)
		raise ValueError(f"unexpected statement node {kind}")

	def _build_if(self, tree: Tree) -> ast.IfStmt:
		children = _trees(tree)
		condition = self._build_expr(children[0])
		then_block = self._build_block(children[1])
		else_branch = None
		if len(children) > 2:
			branch = children[2]
			else_branch = self._build_if(branch) if _name(branch) == "if_stmt" else self._build_block(branch)
		return ast.IfStmt(
			condition=condition,
			then_block=then_block,
			else_branch=else_branch,
			span=self._span(tree),
		)

	# Expressions.

	def _build_expr(self, tree: Tree) -> ast.Expr:
		kind = _name(tree)
		if kind == "postfix":
			return self._build_postfix(tree)
		if kind == "composite":
			elements = [self._build_expr(child) for child in _trees(tree)]
			return ast.CompositeLit(elements=elements, span=self._span(tree))
		if kind in ("int_lit", "float_lit", "byte_lit", "char_lit"):
			return self._build_literal(tree)
		raise ValueError(f"unexpected expression node {kind}")

	def _build_literal(self, tree: Tree) -> ast.Expr:
		kind = _name(tree)
		token = tree.children[0]
		span = self._span(tree)
		if kind == "int_lit":
			return ast.IntLit(value=int(token), span=span)
		if kind == "float_lit":
			return ast.FloatLit(value=float(token), span=span)
		if kind in ("byte_lit", "char_lit"):
			return ast.ByteLit(value=byte_literal_value(str(token)), span=span)
		raise ValueError(f"unexpected literal node {kind}")

	def _build_postfix(self, tree: Tree) -> ast.Expr:
		head = tree.children[0]
		expr: ast.Expr = ast.Ident(name=str(head), span=self._span(head))
		for suffix in _trees(tree):
			span = _join(expr.span, self._span(suffix))
			if _name(suffix) == "index_suffix":
				index = self._build_expr(_trees(suffix)[0])
				expr = ast.Index(base=expr, index=index, span=span)
				continue
			args = [self._build_arg(child) for child in _trees(suffix)]
			if (
				isinstance(expr, ast.Ident)
				and expr.name == ADDR_BUILTIN
				and len(args) == 1
				and not isinstance(args[0], ast.TypeExpression)
			):
				expr = ast.AddrOf(target=args[0], span=span)
			else:
				expr = ast.Call(callee=expr, args=args, span=span)
		return expr

	def _build_arg(self, tree: Tree) -> ast.Expr:
		if _name(tree) in _TYPE_TREES:
			return ast.TypeExpression(type_expr=self._build_type(tree), span=self._span(tree))
		return self._build_expr(tree)

	def _span(self, node) -> Span:
		if isinstance(node, Tree):
			return Span.from_loc(node.meta, file=self.file)
		return Span.from_loc(node, file=self.file)


def _ensure_lvalue(expr: ast.Expr) -> None:
	node = expr
	while isinstance(node, ast.Index):
		node = node.base
	if not isinstance(node, ast.Ident) or node.name.startswith("_"):
		raise ParseError(
			"assignment target must be a variable optionally followed by [selectors]",
			expr.span,
			expected=frozenset({"NAME"}),
		)


def _join(start: Span, end: Span) -> Span:
	return Span(
		file=start.file,
		line=start.line,
		column=start.column,
		offset=start.offset,
		end_line=end.end_line,
		end_column=end.end_column,
		end_offset=end.end_offset,
	)


def _trees(tree: Tree) -> List[Tree]:
	return [child for child in tree.children if isinstance(child, Tree)]


def _tokens(tree: Tree, kind: str) -> List[LarkToken]:
	return [child for child in tree.children if isinstance(child, LarkToken) and child.type == kind]


def _name(node: Tree | LarkToken) -> str:
	if isinstance(node, Tree):
		data = node.data
		if isinstance(data, LarkToken):
			return data.value
		return data
	return node.type


__all__ = ["AstBuilder", "describe_terminal", "parse", "parse_source"]
