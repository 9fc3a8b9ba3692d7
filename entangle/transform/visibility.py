# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Visibility normalization for items relocated into a generated namespace.

Moving an item one module deeper changes what its visibility means. Private
items (and `pub(self)`) would become invisible to the module that declared
them, so they are lifted to `pub(super)`. Restrictions relative to the old
location (`pub(super)`, `pub(in super::..)`, `pub(in self::..)`) cannot be
re-expressed, so they are widened to `pub(crate)` with a warning.
"""

from __future__ import annotations

from typing import List, Tuple

from entangle.core.diagnostics import Diagnostic, transform_warning
from entangle.syntax.ast import VisKind, Visibility

VIS_WIDENED = "W-VIS-WIDENED"


def normalize_visibility(vis: Visibility) -> Tuple[Visibility, List[Diagnostic]]:
	"""Return the visibility to emit inside the generated namespace plus any warnings."""
	if vis.kind in (VisKind.PUBLIC, VisKind.CRATE):
		return vis, []
	if vis.kind is VisKind.INHERITED:
		return Visibility(kind=VisKind.RESTRICTED, path=("super",), span=vis.span), []
	head = vis.path[0] if vis.path else ""
	if head == "crate" and vis.explicit_in:
		return vis, []
	if vis.path == ("self",):
		return Visibility(kind=VisKind.RESTRICTED, path=("super",), span=vis.span), []
	warning = transform_warning(
		f"visibility `{vis.render()}` is not supported on relocated items and was widened to `pub(crate)`",
		code=VIS_WIDENED,
		span=vis.span,
	)
	return Visibility(kind=VisKind.CRATE, span=vis.span), [warning]


__all__ = ["normalize_visibility", "VIS_WIDENED"]
