# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Command-line driver: run the front end over one source file.

Exit codes: 0 when the unit resolves, 1 when diagnostics were produced, 2 when
the source cannot be read.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from .catalog import Catalog, Symbol, SymbolKind
from .diagnostics import Diagnostic, LexError
from .lexer import tokenize
from .printer import format_program
from .resolver import CheckedProgram, resolve


def _diag_to_json(diag: Diagnostic, source: Path) -> dict:
	"""Render a Diagnostic to a structured JSON-friendly dict."""
	payload = diag.to_json()
	if payload["file"] is None:
		payload["file"] = str(source)
	return payload


def _print_diagnostics(diagnostics: list[Diagnostic], source: Path, as_json: bool) -> None:
	if as_json:
		payload = {
			"exit_code": 1,
			"diagnostics": [_diag_to_json(d, source) for d in diagnostics],
		}
		print(json.dumps(payload))
		return
	for d in diagnostics:
		print(d.format(str(source)), file=sys.stderr)
		for note in d.notes:
			print(f"{source}:{d.span}: note: {note}", file=sys.stderr)


def _format_symbol(symbol: Symbol) -> str:
	ty = symbol.ty if symbol.ty is not None else "<unresolved>"
	line = f"{symbol.kind.describe()} {symbol.name}: {ty}"
	if symbol.value is not None:
		line += f" = {symbol.value!r}"
	return line


def format_catalog(checked: CheckedProgram) -> str:
	"""Globals, struct layouts and every function's flat Local scope."""
	catalog: Catalog = checked.catalog
	lines = ["globals:"]
	for symbol in catalog.globals.values():
		lines.append(f"\t{_format_symbol(symbol)}")
	for info in catalog.structs.values():
		fields = ", ".join(f"{name} {ty}" for name, ty in info.fields.items())
		lines.append(f"struct {info.name} [{fields}]")
	for name, info in checked.functions.items():
		signature = info.signature if info.signature is not None else "<unresolved>"
		lines.append(f"fun {name} {signature} ({info.state.name.lower()}):")
		if info.scope is not None:
			for symbol in info.scope:
				if symbol.kind is SymbolKind.LABEL:
					lines.append(f"\tlabel {symbol.name} -> statement {symbol.order}")
				else:
					lines.append(f"\t{_format_symbol(symbol)}")
	return "\n".join(lines)


def main(argv: list[str] | None = None) -> int:
	"""
	Parse and resolve a flatlang file.

	With --json, prints structured diagnostics (phase/kind/message/severity/
	file/line/column) and an exit_code; otherwise prints human-readable
	messages to stderr.
	"""
	parser = argparse.ArgumentParser(prog="flatc", description="flatlang front end")
	parser.add_argument("source", type=Path, help="Path to a flatlang source file")
	parser.add_argument("--json", action="store_true", help="Emit diagnostics as JSON")
	parser.add_argument("--tokens", action="store_true", help="Print the token stream")
	parser.add_argument(
		"--dump-ast",
		action="store_true",
		help="Print the validated program back as canonical source",
	)
	parser.add_argument(
		"--dump-catalog",
		action="store_true",
		help="Print global symbols, structs and each function's local scope",
	)
	args = parser.parse_args(argv)

	source_path: Path = args.source
	try:
		source = source_path.read_text(encoding="utf-8")
	except (OSError, UnicodeDecodeError) as err:
		msg = f"cannot read source: {err}"
		if args.json:
			print(
				json.dumps(
					{
						"exit_code": 2,
						"diagnostics": [
							{
								"phase": "driver",
								"message": msg,
								"severity": "error",
								"file": str(source_path),
								"line": None,
								"column": None,
							}
						],
					}
				)
			)
		else:
			print(f"{source_path}:?:?: error: {msg}", file=sys.stderr)
		return 2

	if args.tokens:
		try:
			for token in tokenize(source, file=str(source_path)):
				print(f"{token.span}\t{token.kind}\t{token.lexeme}")
		except LexError as err:
			_print_diagnostics([err.diagnostic], source_path, args.json)
			return 1

	result = resolve(source, file=str(source_path))
	if args.dump_catalog and result.checked is not None:
		print(format_catalog(result.checked))
	if not result.ok:
		_print_diagnostics(result.diagnostics, source_path, args.json)
		return 1

	if args.dump_ast:
		print(format_program(result.program), end="")
	if args.json:
		print(json.dumps({"exit_code": 0, "diagnostics": []}))
	return 0


__all__ = ["format_catalog", "main"]
