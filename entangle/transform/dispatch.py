# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Entry points of the transformation.

`expand` routes one already-parsed construct to the transformer for its kind;
`expand_source` parses a file of constructs and expands each independently,
so a user error in one construct never suppresses output for its siblings.

Both return an `Expansion` (emitted items plus diagnostics). User errors are
diagnostics; `InternalTransformError` is raised and never converted.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import List, Optional, Sequence

from lark.exceptions import UnexpectedInput

from entangle.config import EntangleConfig
from entangle.core.diagnostics import Diagnostic, has_errors, transform_error
from entangle.core.errors import InternalTransformError, TransformError
from entangle.core.span import Span
from entangle.syntax.ast import (
	Attribute,
	HandlerImpl,
	InterfaceImpl,
	Item,
	SourceConstruct,
	StructDef,
	TypeExpr,
	TypePath,
)
from entangle.syntax.parser import parse_constructs
from entangle.syntax.printer import format_items

from .interface import rewrite_interface_impl
from .methods import transform_handler_impl
from .naming import ImplNamer
from .splitter import split_struct

IMPL_TARGET_ERROR = "E-IMPL-TARGET"
PARSE_ERROR = "E-PARSE"


@dataclass
class ExpansionSession:
	"""
	State shared by every expansion in one compilation.

	The impl namer lives here (not in a module global) so two sessions never
	influence each other's `__implN` numbering.
	"""

	config: EntangleConfig = field(default_factory=EntangleConfig)
	namer: ImplNamer = field(default_factory=ImplNamer)


@dataclass
class Expansion:
	items: List[Item] = field(default_factory=list)
	diagnostics: List[Diagnostic] = field(default_factory=list)

	@property
	def ok(self) -> bool:
		return not has_errors(self.diagnostics)

	def extend(self, other: "Expansion") -> None:
		self.items.extend(other.items)
		self.diagnostics.extend(other.diagnostics)

	def render(self) -> str:
		return format_items(self.items)


def _strip_marker(attrs: Sequence[Attribute], marker: str) -> List[Attribute]:
	return [a for a in attrs if a.name != marker]


def _require_type_path(ty: TypeExpr) -> TypePath:
	if isinstance(ty, TypePath):
		return ty
	raise TransformError(
		transform_error(
			"the implementation target must be a plain type path",
			code=IMPL_TARGET_ERROR,
			span=ty.span,
		)
	)


def expand(
	construct: SourceConstruct,
	session: ExpansionSession,
	attrs: Optional[Sequence[Attribute]] = None,
) -> Expansion:
	"""
	Expand one construct.

	`attrs` are leading attributes delivered separately from the construct
	(they are prepended to its own). The invocation marker attribute is
	removed before any transformer sees the construct.
	"""
	leading = list(attrs or []) + list(getattr(construct, "attrs", []))
	marker = session.config.marker
	try:
		if isinstance(construct, StructDef):
			items, diagnostics = split_struct(replace(construct, attrs=_strip_marker(leading, marker)), session.config)
		elif isinstance(construct, InterfaceImpl):
			_require_type_path(construct.self_ty)
			items, diagnostics = rewrite_interface_impl(replace(construct, attrs=_strip_marker(leading, marker)))
		elif isinstance(construct, HandlerImpl):
			_require_type_path(construct.self_ty)
			items, diagnostics = transform_handler_impl(
				replace(construct, attrs=_strip_marker(leading, marker)),
				session.namer,
				session.config,
			)
		else:
			raise InternalTransformError(f"unknown construct kind: {type(construct).__name__}")
	except TransformError as err:
		return Expansion(items=[], diagnostics=[err.diagnostic])
	return Expansion(items=items, diagnostics=diagnostics)


def expand_source(source: str, session: ExpansionSession, file: Optional[str] = None) -> Expansion:
	"""Parse `source` and expand every construct in it, in order."""
	try:
		constructs = parse_constructs(source, file=file)
	except UnexpectedInput as err:
		span = Span(
			file=file,
			line=getattr(err, "line", None),
			column=getattr(err, "column", None),
			raw=err,
		)
		return Expansion(diagnostics=[Diagnostic(message=str(err).strip(), code=PARSE_ERROR, phase="parser", span=span)])
	result = Expansion()
	for construct in constructs:
		one = expand(construct, session)
		for diag in one.diagnostics:
			diag.span = diag.span.with_file(file)
		result.extend(one)
	return result


__all__ = ["Expansion", "ExpansionSession", "expand", "expand_source", "IMPL_TARGET_ERROR", "PARSE_ERROR"]
