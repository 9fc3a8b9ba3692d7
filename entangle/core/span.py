# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Source span attached to syntax nodes and diagnostics.

Spans are best-effort: the parser fills line/column from lark's propagated
positions, while nodes synthesized by the transformer carry `Span()` or the
span of the input node they were derived from.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class Span:
	"""Represents a source span (best-effort file/line/column plus raw parser loc)."""

	file: Optional[str] = None
	line: Optional[int] = None
	column: Optional[int] = None
	end_line: Optional[int] = None
	end_column: Optional[int] = None
	raw: Any = None

	@classmethod
	def from_meta(cls, meta: Any, file: Optional[str] = None) -> "Span":
		"""
		Construct a Span from a lark `Meta` (or a token).

		Empty metas (rules that matched no tokens) produce the unknown span.
		"""
		if meta is None or getattr(meta, "empty", False):
			return cls(file=file)
		return cls(
			file=file,
			line=getattr(meta, "line", None),
			column=getattr(meta, "column", None),
			end_line=getattr(meta, "end_line", None),
			end_column=getattr(meta, "end_column", None),
		)

	def with_file(self, file: Optional[str]) -> "Span":
		if file is None or self.file is not None:
			return self
		return Span(
			file=file,
			line=self.line,
			column=self.column,
			end_line=self.end_line,
			end_column=self.end_column,
			raw=self.raw,
		)


__all__ = ["Span"]
