# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Source span representation shared by tokens, AST nodes and diagnostics.

Lines and columns are 1-based; `offset` is the 0-based character offset of
the span start in the source text.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class Span:
	"""Represents a source span (best-effort file/line/column/offset)."""

	file: Optional[str] = None
	line: Optional[int] = None
	column: Optional[int] = None
	offset: Optional[int] = None
	end_line: Optional[int] = None
	end_column: Optional[int] = None
	end_offset: Optional[int] = None

	@classmethod
	def from_loc(cls, loc: Any, file: Optional[str] = None) -> "Span":
		"""
		Construct a Span from a Lark token or tree meta object.

		Lark exposes `line`/`column`/`start_pos` plus the matching `end_*`
		fields on both tokens and `Tree.meta`; missing fields stay None.
		"""
		if loc is None:
			return cls(file=file)
		if isinstance(loc, cls):
			return loc
		return cls(
			file=file,
			line=getattr(loc, "line", None),
			column=getattr(loc, "column", None),
			offset=getattr(loc, "start_pos", None),
			end_line=getattr(loc, "end_line", None),
			end_column=getattr(loc, "end_column", None),
			end_offset=getattr(loc, "end_pos", None),
		)

	def __str__(self) -> str:
		line = self.line if self.line is not None else "?"
		column = self.column if self.column is not None else "?"
		return f"{line}:{column}"


__all__ = ["Span"]
