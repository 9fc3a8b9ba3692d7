# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

from dataclasses import replace
from typing import List, Tuple

from entangle.core.diagnostics import Diagnostic
from entangle.core.errors import InternalTransformError
from entangle.syntax.ast import InterfaceImpl, Item, TypePath

from .naming import actor_type_path


def rewrite_interface_impl(block: InterfaceImpl) -> Tuple[List[Item], List[Diagnostic]]:
	"""
	Move a trait impl onto the actor.

	Only the self type changes (`Type<G>` becomes `__TypeActor::Type<G>`);
	items, generics and the trait path are emitted as written, and no
	handle-side mirror is produced.
	"""
	if not isinstance(block.self_ty, TypePath):
		raise InternalTransformError(f"interface impl target reached the rewriter as {type(block.self_ty).__name__}")
	return [replace(block, self_ty=actor_type_path(block.self_ty))], []


__all__ = ["rewrite_interface_impl"]
