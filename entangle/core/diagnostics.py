"""
Common diagnostic structure for the parser, the transformers and the driver.

Transformers never print: every warning or error is a `Diagnostic` value that
is returned alongside the expansion so callers decide how to render it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from .span import Span


@dataclass
class Diagnostic:
	"""Represents a transformer diagnostic (error/warning)."""

	message: str
	code: str | None = None
	# Phase label: "parser", "transform", "config" or "internal".
	phase: str | None = None
	severity: str = "error"
	span: Span = field(default_factory=Span)  # Source location (Span() denotes unknown).
	notes: list[str] = field(default_factory=list)

	def __post_init__(self) -> None:
		if self.span is None:  # type: ignore[unreachable]
			self.span = Span()

	@property
	def is_error(self) -> bool:
		return self.severity == "error"

	def format_human(self, default_file: str | None = None) -> str:
		file = self.span.file or default_file or "<input>"
		line = self.span.line if self.span.line is not None else "?"
		column = self.span.column if self.span.column is not None else "?"
		text = f"{file}:{line}:{column}: {self.severity}: {self.message}"
		for note in self.notes:
			text += f"\n  note: {note}"
		return text

	def to_dict(self, default_file: str | None = None) -> dict:
		return {
			"phase": self.phase,
			"code": self.code,
			"message": self.message,
			"severity": self.severity,
			"file": self.span.file or default_file,
			"line": self.span.line,
			"column": self.span.column,
			"notes": list(self.notes),
		}


def transform_error(message: str, *, code: str, span: Span | None = None, notes: list[str] | None = None) -> Diagnostic:
	return Diagnostic(message=message, code=code, phase="transform", severity="error", span=span or Span(), notes=notes or [])


def transform_warning(message: str, *, code: str, span: Span | None = None) -> Diagnostic:
	return Diagnostic(message=message, code=code, phase="transform", severity="warning", span=span or Span())


def has_errors(diagnostics: Iterable[Diagnostic]) -> bool:
	return any(d.is_error for d in diagnostics)


__all__ = ["Diagnostic", "transform_error", "transform_warning", "has_errors"]
