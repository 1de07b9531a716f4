# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Render AST nodes back to canonical flatlang source.

Output uses tab indentation and one statement per line. Re-parsing the text
yields a structurally equal tree; resolved `Field` selectors print in their
source spelling `base[name]`, so compare resolved trees on both sides.
"""

from __future__ import annotations

from typing import List

from . import ast


def format_type_expr(type_expr: ast.TypeExpr) -> str:
	if isinstance(type_expr, ast.NamedTypeExpr):
		return type_expr.name
	if isinstance(type_expr, ast.PointerTypeExpr):
		return f"{format_type_expr(type_expr.elem)}*"
	if isinstance(type_expr, ast.ArrayTypeExpr):
		return f"{format_type_expr(type_expr.elem)}[{type_expr.size}]"
	if isinstance(type_expr, ast.FunctionTypeExpr):
		params = ", ".join(format_type_expr(p) for p in type_expr.params)
		return f"{format_type_expr(type_expr.result)}({params})*"
	raise TypeError(f"unexpected type expression {type_expr!r}")


def format_expr(expr: ast.Expr) -> str:
	if isinstance(expr, ast.IntLit):
		return str(expr.value)
	if isinstance(expr, ast.FloatLit):
		return repr(expr.value)
	if isinstance(expr, ast.ByteLit):
		return f"{expr.value}b"
	if isinstance(expr, ast.Ident):
		return expr.name
	if isinstance(expr, ast.Index):
		return f"{format_expr(expr.base)}[{format_expr(expr.index)}]"
	if isinstance(expr, ast.Field):
		return f"{format_expr(expr.base)}[{expr.name}]"
	if isinstance(expr, ast.Call):
		args = ", ".join(format_expr(a) for a in expr.args)
		return f"{format_expr(expr.callee)}({args})"
	if isinstance(expr, ast.AddrOf):
		return f"_addr({format_expr(expr.target)})"
	if isinstance(expr, ast.CompositeLit):
		return "[" + ", ".join(format_expr(e) for e in expr.elements) + "]"
	if isinstance(expr, ast.TypeExpression):
		return format_type_expr(expr.type_expr)
	raise TypeError(f"unexpected expression {expr!r}")


def format_stmt(stmt: ast.Stmt, depth: int = 0) -> List[str]:
	"""Lines for one statement, indented `depth` tabs."""
	pad = "\t" * depth
	if isinstance(stmt, ast.VarDecl):
		return [f"{pad}var {stmt.name} {format_type_expr(stmt.type_expr)}"]
	if isinstance(stmt, ast.AssignStmt):
		return [f"{pad}{format_expr(stmt.target)} := {format_expr(stmt.value)}"]
	if isinstance(stmt, ast.CallStmt):
		return [f"{pad}{format_expr(stmt.call)}"]
	if isinstance(stmt, ast.IfStmt):
		return _format_if(stmt, depth)
	if isinstance(stmt, ast.WhileStmt):
		lines = [f"{pad}while {format_expr(stmt.condition)} {{"]
		lines.extend(_format_body(stmt.body, depth + 1))
		lines.append(f"{pad}}}")
		return lines
	if isinstance(stmt, ast.BreakStmt):
		return [f"{pad}break"]
	if isinstance(stmt, ast.ContinueStmt):
		return [f"{pad}continue"]
	if isinstance(stmt, ast.LabelStmt):
		return [f"{pad}label {stmt.name}"]
	if isinstance(stmt, ast.GotoStmt):
		return [f"{pad}goto label {stmt.label}"]
	if isinstance(stmt, ast.Block):
		return [f"{pad}{{", *_format_body(stmt, depth + 1), f"{pad}}}"]
	raise TypeError(f"unexpected statement {stmt!r}")


def _format_if(stmt: ast.IfStmt, depth: int) -> List[str]:
	pad = "\t" * depth
	lines = [f"{pad}if {format_expr(stmt.condition)} {{"]
	while True:
		lines.extend(_format_body(stmt.then_block, depth + 1))
		branch = stmt.else_branch
		if isinstance(branch, ast.IfStmt):
			lines.append(f"{pad}}} else if {format_expr(branch.condition)} {{")
			stmt = branch
			continue
		if isinstance(branch, ast.Block):
			lines.append(f"{pad}}} else {{")
			lines.extend(_format_body(branch, depth + 1))
		lines.append(f"{pad}}}")
		return lines


def _format_body(block: ast.Block, depth: int) -> List[str]:
	lines: List[str] = []
	for stmt in block.statements:
		lines.extend(format_stmt(stmt, depth))
	return lines


def format_decl(decl: ast.Decl) -> List[str]:
	if isinstance(decl, ast.ConstDecl):
		return [f"const {decl.name} {format_expr(decl.value)}"]
	if isinstance(decl, ast.VarDecl):
		return format_stmt(decl)
	if isinstance(decl, ast.StructDecl):
		fields = ", ".join(f"var {f.name} {format_type_expr(f.type_expr)}" for f in decl.fields)
		return [f"struct {decl.name} [{fields}]"]
	if isinstance(decl, ast.FuncDecl):
		params = ", ".join(f"var {p.name} {format_type_expr(p.type_expr)}" for p in decl.params)
		header = f"fun {decl.name} {format_type_expr(decl.return_type)}({params}) {{"
		return [header, *_format_body(decl.body, 1), "}"]
	raise TypeError(f"unexpected declaration {decl!r}")


def format_program(program: ast.Program) -> str:
	lines: List[str] = []
	for decl in program.decls:
		if isinstance(decl, ast.FuncDecl) and lines:
			lines.append("")
		lines.extend(format_decl(decl))
	return "\n".join(lines) + "\n" if lines else ""


__all__ = ["format_decl", "format_expr", "format_program", "format_stmt", "format_type_expr"]
