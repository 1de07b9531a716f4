from __future__ import annotations

import pytest

from flatlang import ast
from flatlang.diagnostics import DiagnosticKind, ParseError
from flatlang.lexer import tokenize
from flatlang.parser import parse, parse_source


def _body(source: str) -> list[ast.Stmt]:
	prog = parse_source(f"fun main void() {{\n{source}\n}}")
	return prog.functions[0].body.statements


def _syntax_error(source: str) -> ParseError:
	with pytest.raises(ParseError) as exc:
		parse_source(source)
	assert exc.value.kind is DiagnosticKind.SYNTAX_ERROR
	return exc.value


def test_empty_source_is_an_empty_program() -> None:
	assert parse_source("").decls == []
	assert parse_source("// only a comment\n").decls == []


def test_global_declarations() -> None:
	prog = parse_source(
		"""
const SIZE 4
const LIMIT SIZE
const HALF 0.5
var counter int
struct Point [var x float, var y float]
"""
	)
	assert prog.decls == [
		ast.ConstDecl(name="SIZE", value=ast.IntLit(4)),
		ast.ConstDecl(name="LIMIT", value=ast.Ident("SIZE")),
		ast.ConstDecl(name="HALF", value=ast.FloatLit(0.5)),
		ast.VarDecl(name="counter", type_expr=ast.NamedTypeExpr("int")),
		ast.StructDecl(
			name="Point",
			fields=[
				ast.VarDecl(name="x", type_expr=ast.NamedTypeExpr("float")),
				ast.VarDecl(name="y", type_expr=ast.NamedTypeExpr("float")),
			],
		),
	]


def test_type_suffixes_apply_left_to_right() -> None:
	prog = parse_source("var grid int*[3][N]")
	assert prog.decls[0].type_expr == ast.ArrayTypeExpr(
		elem=ast.ArrayTypeExpr(elem=ast.PointerTypeExpr(ast.NamedTypeExpr("int")), size=3),
		size="N",
	)


def test_function_pointer_type() -> None:
	prog = parse_source("var f1 void(int*, int*)*")
	assert prog.decls[0].type_expr == ast.FunctionTypeExpr(
		result=ast.NamedTypeExpr("void"),
		params=[
			ast.PointerTypeExpr(ast.NamedTypeExpr("int")),
			ast.PointerTypeExpr(ast.NamedTypeExpr("int")),
		],
	)


def test_function_declaration() -> None:
	prog = parse_source("fun swap_ints void(var x int*, var y int*) { var t int }")
	fn = prog.functions[0]
	assert fn.name == "swap_ints"
	assert fn.return_type == ast.NamedTypeExpr("void")
	assert [p.name for p in fn.params] == ["x", "y"]
	assert fn.params[0].type_expr == ast.PointerTypeExpr(ast.NamedTypeExpr("int"))
	assert fn.body.statements == [ast.VarDecl(name="t", type_expr=ast.NamedTypeExpr("int"))]


def test_assignment_with_selectors_and_composite() -> None:
	stmts = _body("pts[3][y] := pts[0][y]\npts := [[1.0, 2.0], [3.0, 4.0]]")
	assert stmts[0] == ast.AssignStmt(
		target=ast.Index(base=ast.Index(base=ast.Ident("pts"), index=ast.IntLit(3)), index=ast.Ident("y")),
		value=ast.Index(base=ast.Index(base=ast.Ident("pts"), index=ast.IntLit(0)), index=ast.Ident("y")),
	)
	assert stmts[1].value == ast.CompositeLit(
		elements=[
			ast.CompositeLit(elements=[ast.FloatLit(1.0), ast.FloatLit(2.0)]),
			ast.CompositeLit(elements=[ast.FloatLit(3.0), ast.FloatLit(4.0)]),
		]
	)


def test_byte_and_char_literals_share_a_node() -> None:
	stmts = _body("c := 'a'\nc := 97b")
	assert stmts[0].value == ast.ByteLit(97)
	assert stmts[0].value == stmts[1].value


def test_calls_and_special_forms() -> None:
	stmts = _body(
		"""
swap_ints(_addr(a), _addr(b))
p := _alloc(int*, 4)
q := _alloc(Node)
_free(p)
"""
	)
	assert stmts[0] == ast.CallStmt(
		call=ast.Call(
			callee=ast.Ident("swap_ints"),
			args=[ast.AddrOf(ast.Ident("a")), ast.AddrOf(ast.Ident("b"))],
		)
	)
	assert stmts[1].value == ast.Call(
		callee=ast.Ident("_alloc"),
		args=[ast.TypeExpression(ast.PointerTypeExpr(ast.NamedTypeExpr("int"))), ast.IntLit(4)],
	)
	# A bare struct name stays an expression until resolution.
	assert stmts[2].value.args == [ast.Ident("Node")]
	assert isinstance(stmts[3], ast.CallStmt)


def test_indirect_call_through_selector() -> None:
	stmts = _body("table[1](x)")
	assert stmts[0].call == ast.Call(
		callee=ast.Index(base=ast.Ident("table"), index=ast.IntLit(1)),
		args=[ast.Ident("x")],
	)


def test_if_else_chain_and_loops() -> None:
	stmts = _body(
		"""
if a {
	break
} else if b {
	continue
} else {
	goto label out
}
while c { label out }
{ var inner int }
"""
	)
	if_stmt = stmts[0]
	assert isinstance(if_stmt, ast.IfStmt)
	assert if_stmt.then_block.statements == [ast.BreakStmt()]
	elif_stmt = if_stmt.else_branch
	assert isinstance(elif_stmt, ast.IfStmt)
	assert elif_stmt.condition == ast.Ident("b")
	assert elif_stmt.else_branch.statements == [ast.GotoStmt("out")]
	assert stmts[1] == ast.WhileStmt(
		condition=ast.Ident("c"),
		body=ast.Block([ast.LabelStmt("out")]),
	)
	assert stmts[2] == ast.Block([ast.VarDecl(name="inner", type_expr=ast.NamedTypeExpr("int"))])


def test_iter_statements_walks_every_nesting_level_in_preorder() -> None:
	prog = parse_source(
		"""
fun main void() {
	var a int
	while a {
		if a { break } else if a { continue } else { label l }
	}
	{ goto label l }
}
"""
	)
	kinds = [type(s).__name__ for s in ast.iter_statements(prog.functions[0].body)]
	assert kinds == [
		"VarDecl",
		"WhileStmt",
		"IfStmt",
		"BreakStmt",
		"IfStmt",
		"ContinueStmt",
		"LabelStmt",
		"Block",
		"GotoStmt",
	]


def test_parse_accepts_token_list() -> None:
	source = "var x int"
	assert parse(tokenize(source)).decls == parse_source(source).decls


def test_spans_are_recorded() -> None:
	prog = parse_source("var x int\nfun main void() {\n\tx := 1\n}", file="demo.fl")
	assign = prog.functions[0].body.statements[0]
	assert (assign.span.line, assign.span.column) == (3, 2)
	assert assign.span.file == "demo.fl"


def test_spaced_pointer_star_is_rejected() -> None:
	err = _syntax_error("var p int *")
	assert "whitespace is not permitted before '*'" in err.diagnostic.message
	assert "STAR_ADJ" in err.expected


def test_spaced_array_bracket_is_rejected() -> None:
	err = _syntax_error("var a int [3]")
	assert "whitespace is not permitted before '['" in err.diagnostic.message


def test_spaced_declaration_paren_is_rejected() -> None:
	err = _syntax_error("fun main void () {}")
	assert "whitespace is not permitted before '('" in err.diagnostic.message


def test_spaced_index_bracket_is_rejected() -> None:
	err = _syntax_error("fun main void() { x [0] := 1 }")
	assert "whitespace is not permitted before '['" in err.diagnostic.message
	assert (err.span.line, err.span.column) == (1, 21)


def test_spaced_call_paren_is_rejected() -> None:
	err = _syntax_error("fun main void() { f (1) }")
	assert "whitespace is not permitted before '('" in err.diagnostic.message


def test_spaced_function_pointer_star_is_rejected() -> None:
	err = _syntax_error("var f void(int) *")
	assert "whitespace is not permitted before '*'" in err.diagnostic.message


def test_unexpected_token_reports_expected_set() -> None:
	err = _syntax_error("fun main void() { 1 }")
	assert err.found == "INTEGER"
	assert "unexpected integer literal" in err.diagnostic.message
	assert "_RBRACE" in err.expected


def test_bare_expression_is_not_a_statement() -> None:
	err = _syntax_error("fun main void() { x }")
	assert "bare expression" in err.diagnostic.message


def test_assignment_target_must_be_a_variable() -> None:
	err = _syntax_error("fun main void() { f(1) := 2 }")
	assert "assignment target" in err.diagnostic.message


def test_missing_block_at_end_of_input() -> None:
	err = _syntax_error("fun main void()")
	assert err.found == "$END"
	assert "end of input" in err.diagnostic.message


def test_semicolons_separate_statements() -> None:
	assert _body("var a int; a := 1; if a { a := 2; }") == _body("var a int\na := 1\nif a {\n\ta := 2\n}")


def test_semicolon_needs_a_statement() -> None:
	_syntax_error("fun main void() { ; }")
	_syntax_error("fun main void() { break;; }")
	_syntax_error("var x int;")
