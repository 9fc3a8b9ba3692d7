# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Method transformer: one handler impl becomes two mirrored impls.

	mod __implN {
	    use super::*;
	    use <path>::__NameActor::Name;

	    impl<G> __NameActor::Name<G> { <items, visibilities normalized> }
	    impl<G> super::Name<G> { <items, method bodies forwarded> }
	}

Both mirrors keep every item and every signature; only the handle-side
method bodies differ.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import List, Optional, Tuple

from entangle.config import EntangleConfig
from entangle.core.diagnostics import Diagnostic, transform_error
from entangle.core.errors import InternalTransformError, TransformError
from entangle.syntax.ast import (
	ArrayType,
	AssocBinding,
	Attribute,
	Body,
	ConstItem,
	DelegateBody,
	ForwardingBody,
	FnPtrType,
	ForwardMode,
	HandlerImpl,
	ImplItem,
	Item,
	MacroItem,
	MethodItem,
	ModuleDef,
	Param,
	ParenType,
	PtrType,
	ReceiverKind,
	RefType,
	SliceType,
	SpawnBody,
	TraitBound,
	TraitObjectType,
	TupleType,
	TypeItem,
	TypePath,
	UseDecl,
	VerbatimItem,
)

from .naming import ImplNamer, handle_type_path, nested_actor_path
from .visibility import normalize_visibility

FORWARD_ATTR = "forward"

RECEIVER_ERROR = "E-RECEIVER"
RETURN_TYPE_ERROR = "E-RETURN-TYPE"
FORWARD_ATTR_ERROR = "E-FORWARD-ATTR"


@dataclass
class _ImplContext:
	type_name: str
	actor_ty: TypePath
	config: EntangleConfig


def transform_handler_impl(
	block: HandlerImpl,
	namer: ImplNamer,
	config: EntangleConfig,
) -> Tuple[List[Item], List[Diagnostic]]:
	"""
	Expand a handler impl into its `__implN` module.

	Raises `TransformError` for user input the handle cannot forward, in which
	case no impl number is consumed. Unknown item kinds raise
	`InternalTransformError`.
	"""
	self_ty = block.self_ty
	if not isinstance(self_ty, TypePath):
		raise InternalTransformError(f"handler impl target reached the transformer as {type(self_ty).__name__}")
	ctx = _ImplContext(type_name=self_ty.last.name, actor_ty=nested_actor_path(self_ty), config=config)

	diagnostics: List[Diagnostic] = []
	actor_items: List[ImplItem] = []
	handle_items: List[ImplItem] = []
	for item in block.items:
		actor_item, diags = _actor_item(item)
		diagnostics.extend(diags)
		actor_items.append(actor_item)
		handle_items.append(_handle_item(item, ctx))

	actor_use = TypePath(
		segments=[seg.without_args() for seg in ctx.actor_ty.segments],
		leading_colon=ctx.actor_ty.leading_colon,
	)
	actor_impl = replace(block, self_ty=ctx.actor_ty, items=actor_items)
	handle_impl = replace(block, self_ty=handle_type_path(self_ty), items=handle_items)
	module = ModuleDef(
		name=namer.next_impl_namespace(),
		items=[
			UseDecl(path=TypePath.simple("super"), glob=True),
			UseDecl(path=actor_use),
			actor_impl,
			handle_impl,
		],
	)
	return [module], diagnostics


def _strip_forward_attrs(attrs: List[Attribute]) -> List[Attribute]:
	return [a for a in attrs if a.path != FORWARD_ATTR]


def _actor_item(item: ImplItem) -> Tuple[ImplItem, List[Diagnostic]]:
	if isinstance(item, MethodItem):
		vis, diags = normalize_visibility(item.vis)
		return replace(item, vis=vis, attrs=_strip_forward_attrs(item.attrs)), diags
	if isinstance(item, (ConstItem, TypeItem)):
		vis, diags = normalize_visibility(item.vis)
		return replace(item, vis=vis), diags
	if isinstance(item, (MacroItem, VerbatimItem)):
		return item, []
	raise InternalTransformError(f"unknown impl item kind: {type(item).__name__}")


def _handle_item(item: ImplItem, ctx: _ImplContext) -> ImplItem:
	if isinstance(item, MethodItem):
		return transform_method(item, ctx)
	if isinstance(item, (ConstItem, TypeItem, MacroItem, VerbatimItem)):
		return item
	raise InternalTransformError(f"unknown impl item kind: {type(item).__name__}")


def _forwardable_params(params: List[Param]) -> Tuple[List[Param], List[str]]:
	"""Give every parameter a plain binding so it can be moved into the message."""
	out: List[Param] = []
	args: List[str] = []
	for idx, param in enumerate(params):
		name = param.binding()
		if name is None:
			name = f"__arg{idx}"
			param = replace(param, pattern=name)
		out.append(param)
		args.append(name)
	return out, args


def _returns_self(method: MethodItem, type_name: str) -> bool:
	ret = method.ret
	if not isinstance(ret, TypePath) or len(ret.segments) != 1 or ret.leading_colon:
		return False
	return ret.last.name in ("Self", type_name)


def _self_reference(ty: object, names: Tuple[str, ...]) -> Optional[TypePath]:
	"""First path inside `ty` whose final segment is one of `names`."""
	if isinstance(ty, TypePath):
		if ty.last.name in names:
			return ty
		nested: List[object] = []
		for seg in ty.segments:
			nested.extend(a.ty if isinstance(a, AssocBinding) else a for a in seg.args)
			if seg.paren is not None:
				nested.extend(seg.paren.inputs)
				nested.append(seg.paren.output)
	elif isinstance(ty, TupleType):
		nested = list(ty.elems)
	elif isinstance(ty, (ParenType, RefType, PtrType)):
		nested = [ty.inner]
	elif isinstance(ty, (ArrayType, SliceType)):
		nested = [ty.elem]
	elif isinstance(ty, TraitObjectType):
		nested = [b.path for b in ty.bounds if isinstance(b, TraitBound)]
	elif isinstance(ty, FnPtrType):
		nested = list(ty.inputs) + [ty.output]
	else:
		return None
	for child in nested:
		found = _self_reference(child, names)
		if found is not None:
			return found
	return None


def _reject_self_return(method: MethodItem, ctx: _ImplContext) -> None:
	if method.ret is None:
		return
	found = _self_reference(method.ret, ("Self", ctx.type_name))
	if found is None:
		return
	raise TransformError(
		transform_error(
			f"the return type of `{method.name}` names `{found.last.name}`, which is the handle on the forwarding side",
			code=RETURN_TYPE_ERROR,
			span=found.span,
			notes=["only a constructor returning exactly `Self` can produce a new handle"],
		)
	)


def _forward_mode(method: MethodItem, config: EntangleConfig) -> ForwardMode:
	attrs = [a for a in method.attrs if a.path == FORWARD_ATTR]
	if len(attrs) > 1:
		raise TransformError(
			transform_error(
				f"method `{method.name}` has more than one `#[forward]` attribute",
				code=FORWARD_ATTR_ERROR,
				span=attrs[1].span,
			)
		)
	if attrs:
		attr = attrs[0]
		try:
			mode = ForwardMode((attr.arguments or "").strip())
		except ValueError:
			raise TransformError(
				transform_error(
					f"invalid forwarding attribute `#[{attr.text}]`",
					code=FORWARD_ATTR_ERROR,
					span=attr.span,
					notes=["expected `#[forward(request)]` or `#[forward(notify)]`"],
				)
			) from None
		if mode is ForwardMode.NOTIFY and not method.returns_unit():
			raise TransformError(
				transform_error(
					f"`#[forward(notify)]` method `{method.name}` must not return a value",
					code=FORWARD_ATTR_ERROR,
					span=attr.span,
				)
			)
		return mode
	if config.forward_policy == "return-shape" and method.returns_unit():
		return ForwardMode.NOTIFY
	return ForwardMode.REQUEST


def transform_method(method: MethodItem, ctx: _ImplContext) -> MethodItem:
	"""Handle-side mirror of `method`: same signature, generated body."""
	config = ctx.config
	params, args = _forwardable_params(method.params)
	receiver = method.receiver
	body: Body
	if receiver is None:
		forward_attrs = [a for a in method.attrs if a.path == FORWARD_ATTR]
		if forward_attrs:
			raise TransformError(
				transform_error(
					f"`#[forward]` on `{method.name}` requires a `&self` or `&mut self` receiver",
					code=FORWARD_ATTR_ERROR,
					span=forward_attrs[0].span,
				)
			)
		if _returns_self(method, ctx.type_name):
			body = SpawnBody(
				actor_ty=ctx.actor_ty,
				constructor=method.name,
				args=args,
				runtime=config.runtime_path,
				address_field=config.address_field,
				awaited=method.is_async,
			)
		else:
			_reject_self_return(method, ctx)
			body = DelegateBody(actor_ty=ctx.actor_ty, function=method.name, args=args, awaited=method.is_async)
		return replace(method, params=params, body=body, attrs=_strip_forward_attrs(method.attrs))

	if receiver.kind in (ReceiverKind.VALUE, ReceiverKind.TYPED):
		raise TransformError(
			transform_error(
				"methods forwarded through a handle must take `self` by reference",
				code=RECEIVER_ERROR,
				span=method.span,
				notes=[f"`{method.name}` takes `self` by value or with an explicit type"],
			)
		)
	ret = method.ret
	if ret is not None and not isinstance(ret, TypePath) and not (isinstance(ret, TupleType) and ret.is_unit()):
		raise TransformError(
			transform_error(
				"the return type of a forwarded method must be a plain type path",
				code=RETURN_TYPE_ERROR,
				span=ret.span,
			)
		)
	_reject_self_return(method, ctx)
	body = ForwardingBody(
		mode=_forward_mode(method, config),
		tag=f"{ctx.type_name}::{method.name}",
		actor_ty=ctx.actor_ty,
		method=method.name,
		receiver=receiver.kind,
		args=args,
		runtime=config.runtime_path,
		address_field=config.address_field,
		awaited=method.is_async,
	)
	return replace(method, params=params, body=body, attrs=_strip_forward_attrs(method.attrs))


__all__ = ["transform_handler_impl", "transform_method", "FORWARD_ATTR"]
