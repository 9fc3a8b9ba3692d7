# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Data-type splitter: one struct declaration becomes a handle and an actor.

	#[derive(Clone)]
	<vis> struct Name<G> { addr: <rt>::Address<__NameActor::Name<G>> }

	impl<G> Name<G> {
	    <vis> fn into_address(self) -> <rt>::Address<...> { self.addr }
	    <vis> fn address(&self) -> &<rt>::Address<...> { &self.addr }
	}

	#[doc(hidden)]
	#[allow(non_snake_case)]
	<vis> mod __NameActor {
	    <attrs> pub struct Name<G> { <fields with normalized visibility> }
	}
"""

from __future__ import annotations

from dataclasses import replace
from typing import List, Tuple

from entangle.config import EntangleConfig
from entangle.core.diagnostics import Diagnostic
from entangle.syntax.ast import (
	Attribute,
	ExprBody,
	Field,
	FieldStyle,
	Generics,
	HandlerImpl,
	Item,
	MethodItem,
	ModuleDef,
	PathSegment,
	Receiver,
	ReceiverKind,
	RefType,
	StructDef,
	TypePath,
	Visibility,
)

from .naming import actor_namespace_name
from .visibility import normalize_visibility


def runtime_type_path(config: EntangleConfig, name: str, args: list | None = None) -> TypePath:
	"""`<runtime_path>::<name><args>` as a type path."""
	root = config.runtime_path
	leading = root.startswith("::")
	segments = [PathSegment(name=part) for part in root.lstrip(":").split("::")]
	segments.append(PathSegment(name=name, args=list(args or [])))
	return TypePath(segments=segments, leading_colon=leading)


def split_struct(struct: StructDef, config: EntangleConfig) -> Tuple[List[Item], List[Diagnostic]]:
	diagnostics: List[Diagnostic] = []
	actor_fields: List[Field] = []
	for fld in struct.fields:
		vis, diags = normalize_visibility(fld.vis)
		diagnostics.extend(diags)
		actor_fields.append(replace(fld, vis=vis))

	namespace = actor_namespace_name(struct.name)
	type_args = struct.generics.type_args()
	actor_ty = TypePath(segments=[PathSegment(name=namespace), PathSegment(name=struct.name, args=list(type_args))])
	address_ty = runtime_type_path(config, "Address", [actor_ty])
	field_name = config.address_field

	handle = StructDef(
		name=struct.name,
		fields=[Field(name=field_name, ty=address_ty)],
		vis=struct.vis,
		generics=struct.generics,
		style=FieldStyle.NAMED,
		attrs=[Attribute("derive(Clone)")],
		span=struct.span,
	)
	accessors = HandlerImpl(
		self_ty=TypePath(segments=[PathSegment(name=struct.name, args=list(type_args))]),
		generics=Generics(params=list(struct.generics.params), where=list(struct.generics.where)),
		items=[
			MethodItem(
				name="into_address",
				receiver=Receiver(kind=ReceiverKind.VALUE),
				ret=address_ty,
				body=ExprBody(f"self.{field_name}"),
				vis=struct.vis,
			),
			MethodItem(
				name="address",
				receiver=Receiver(kind=ReceiverKind.REF),
				ret=RefType(inner=address_ty),
				body=ExprBody(f"&self.{field_name}"),
				vis=struct.vis,
			),
		],
		span=struct.span,
	)
	actor = StructDef(
		name=struct.name,
		fields=actor_fields,
		vis=Visibility.public(),
		generics=struct.generics,
		style=struct.style,
		attrs=list(struct.attrs),
		span=struct.span,
	)
	module = ModuleDef(
		name=namespace,
		items=[actor],
		vis=struct.vis,
		attrs=[Attribute("doc(hidden)"), Attribute("allow(non_snake_case)")],
	)
	return [handle, accessors, module], diagnostics


__all__ = ["split_struct", "runtime_type_path"]
