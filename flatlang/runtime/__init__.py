# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Builtin catalog consumed read-only by the resolver.

Operation names carry an operand suffix: `_i` (int), `_u` (int operands with
unsigned semantics) and `_f` (float). Comparisons always produce `int`
(0 or 1). `_addr`, `_alloc` and `_free` are special forms whose arguments
the resolver checks by hand, so they have no fixed signature here.
"""

from __future__ import annotations

from typing import Dict

from ..types import BYTE, FLOAT, INT, FunctionType, Type

SPECIAL_FORMS = frozenset({"_addr", "_alloc", "_free"})

_INT_BINARY = ("add", "sub", "mult", "div", "rem", "shl", "shr", "and", "or", "xor")
_INT_UNARY = ("flip", "not")
_FLOAT_BINARY = ("add", "sub", "mult", "div")
_COMPARISONS = ("eq", "neq", "lt", "lte", "gt", "gte")

_CONVERSIONS: Dict[str, FunctionType] = {
	"_itof": FunctionType((INT,), FLOAT),
	"_ftoi": FunctionType((FLOAT,), INT),
	"_itob": FunctionType((INT,), BYTE),
	"_btoi": FunctionType((BYTE,), INT),
}


def _operations(suffix: str, operand: Type, binary, unary) -> Dict[str, FunctionType]:
	table: Dict[str, FunctionType] = {}
	for op in binary:
		table[f"_{op}_{suffix}"] = FunctionType((operand, operand), operand)
	for op in unary:
		table[f"_{op}_{suffix}"] = FunctionType((operand,), operand)
	for op in _COMPARISONS:
		table[f"_{op}_{suffix}"] = FunctionType((operand, operand), INT)
	return table


def builtin_signatures() -> Dict[str, FunctionType]:
	"""Fixed-signature builtins, name -> signature."""
	table: Dict[str, FunctionType] = {}
	table.update(_operations("i", INT, _INT_BINARY, _INT_UNARY))
	table.update(_operations("u", INT, _INT_BINARY, _INT_UNARY))
	table.update(_operations("f", FLOAT, _FLOAT_BINARY, ()))
	table.update(_CONVERSIONS)
	return table


def is_builtin_name(name: str) -> bool:
	return name.startswith("_")


__all__ = ["SPECIAL_FORMS", "builtin_signatures", "is_builtin_name"]
