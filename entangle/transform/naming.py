# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from typing import Iterator

from entangle.syntax.ast import PathSegment, TypePath


def actor_namespace_name(name: str) -> str:
	"""Name of the generated module that holds the actor for type `name`."""
	return f"__{name}Actor"


def actor_type_path(path: TypePath) -> TypePath:
	"""
	Rewrite `a::b::Type<G>` to `a::b::__TypeActor::Type<G>`.

	The input path is not mutated; the namespace segment is inserted
	immediately before the final segment, which keeps its generic arguments.
	"""
	segments = list(path.segments)
	last = segments[-1]
	segments.insert(len(segments) - 1, PathSegment(name=actor_namespace_name(last.name)))
	return TypePath(segments=segments, leading_colon=path.leading_colon, span=path.span)


def _nested(path: TypePath) -> TypePath:
	"""`path` as written one module deeper than where it appeared."""
	segments = list(path.segments)
	if segments[0].name == "self":
		segments = segments[1:]
	return TypePath(segments=[PathSegment(name="super")] + segments, leading_colon=False, span=path.span)


def handle_type_path(path: TypePath) -> TypePath:
	"""
	Self type of the handle-side impl, seen from inside an `__implN` module.

	The handle is always named through `super`: the module imports the actor
	under the same final name, which shadows the glob-imported handle.
	"""
	if path.is_rooted():
		return path
	return _nested(path)


def nested_actor_path(path: TypePath) -> TypePath:
	"""Actor path for `path`, seen from inside an `__implN` module."""
	actor = actor_type_path(path)
	if actor.segments[0].name in ("self", "super") and not actor.leading_colon:
		return _nested(actor)
	return actor


@dataclass
class ImplNamer:
	"""
	Mints `__implN` module names.

	One namer per expansion session; numbers are never reused. `next()` on an
	`itertools.count` is atomic under the interpreter lock, so a shared namer
	stays unique across threads.
	"""

	_counter: Iterator[int] = field(default_factory=itertools.count)

	def next_impl_namespace(self) -> str:
		return f"__impl{next(self._counter)}"


__all__ = ["actor_namespace_name", "actor_type_path", "handle_type_path", "nested_actor_path", "ImplNamer"]
