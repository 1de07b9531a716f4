# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Resolved (semantic) types.

All types are frozen dataclasses, so `==` is the language's type equality:
pointers compare by pointee, arrays by element type and size, function types
by parameter list and result, and structs by name only (nominal). Struct
field lists live in the catalog (`StructInfo`), which lets a struct refer to
itself through a pointer without building cyclic values.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


class Type:
	"""Base class of every resolved type."""


@dataclass(frozen=True)
class PrimitiveType(Type):
	name: str

	def __str__(self) -> str:
		return self.name


@dataclass(frozen=True)
class VoidType(Type):
	"""Result type of functions that return nothing; never a value type."""

	def __str__(self) -> str:
		return "void"


@dataclass(frozen=True)
class PointerType(Type):
	elem: Type

	def __str__(self) -> str:
		return f"{self.elem}*"


@dataclass(frozen=True)
class ArrayType(Type):
	elem: Type
	size: int

	def __str__(self) -> str:
		return f"{self.elem}[{self.size}]"


@dataclass(frozen=True)
class StructType(Type):
	name: str

	def __str__(self) -> str:
		return self.name


@dataclass(frozen=True)
class FunctionType(Type):
	"""Signature of a function; as a value it is a function pointer."""

	params: Tuple[Type, ...]
	result: Type

	def __str__(self) -> str:
		params = ", ".join(str(p) for p in self.params)
		return f"{self.result}({params})*"


INT = PrimitiveType("int")
FLOAT = PrimitiveType("float")
BYTE = PrimitiveType("byte")
VOID = VoidType()

PRIMITIVES = {
	"int": INT,
	"float": FLOAT,
	"byte": BYTE,
}


def innermost_element(ty: Type) -> Type:
	"""Strip array layers: `Point[4][2]` -> `Point`."""
	while isinstance(ty, ArrayType):
		ty = ty.elem
	return ty


__all__ = [
	"ArrayType",
	"BYTE",
	"FLOAT",
	"FunctionType",
	"INT",
	"PRIMITIVES",
	"PointerType",
	"PrimitiveType",
	"StructType",
	"Type",
	"VOID",
	"VoidType",
	"innermost_element",
]
