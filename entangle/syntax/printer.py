# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Text emitter for `entangle.syntax.ast`.

Output is indented with four spaces; verbatim regions (bodies, constant
values, attribute contents, macro groups) are re-emitted exactly as parsed.
"""

from __future__ import annotations

from typing import Iterable, List

from . import ast

_INDENT = "    "


def format_vis(vis: ast.Visibility) -> str:
	rendered = vis.render()
	return f"{rendered} " if rendered else ""


def format_generic_arg(arg: ast.GenericArg) -> str:
	if isinstance(arg, ast.Lifetime):
		return arg.name
	if isinstance(arg, ast.ConstArg):
		return arg.text
	if isinstance(arg, ast.AssocBinding):
		return f"{arg.name} = {format_type(arg.ty)}"
	return format_type(arg)


def format_segment(seg: ast.PathSegment) -> str:
	if seg.paren is not None:
		inputs = ", ".join(format_type(t) for t in seg.paren.inputs)
		text = f"{seg.name}({inputs})"
		if seg.paren.output is not None:
			text += f" -> {format_type(seg.paren.output)}"
		return text
	if seg.args:
		return f"{seg.name}<{', '.join(format_generic_arg(a) for a in seg.args)}>"
	return seg.name


def format_path(path: ast.TypePath) -> str:
	text = "::".join(format_segment(seg) for seg in path.segments)
	return f"::{text}" if path.leading_colon else text


def format_bound(bound: ast.Bound) -> str:
	if isinstance(bound, ast.Lifetime):
		return bound.name
	return f"?{format_path(bound.path)}" if bound.maybe else format_path(bound.path)


def format_bounds(bounds: Iterable[ast.Bound]) -> str:
	return " + ".join(format_bound(b) for b in bounds)


def format_type(ty: ast.TypeExpr) -> str:
	if isinstance(ty, ast.TypePath):
		return format_path(ty)
	if isinstance(ty, ast.TupleType):
		if not ty.elems:
			return "()"
		if len(ty.elems) == 1:
			return f"({format_type(ty.elems[0])},)"
		return f"({', '.join(format_type(t) for t in ty.elems)})"
	if isinstance(ty, ast.ParenType):
		return f"({format_type(ty.inner)})"
	if isinstance(ty, ast.RefType):
		text = "&"
		if ty.lifetime is not None:
			text += f"{ty.lifetime.name} "
		if ty.mutable:
			text += "mut "
		return text + format_type(ty.inner)
	if isinstance(ty, ast.PtrType):
		return f"*{'mut' if ty.mutable else 'const'} {format_type(ty.inner)}"
	if isinstance(ty, ast.ArrayType):
		return f"[{format_type(ty.elem)}; {ty.length}]"
	if isinstance(ty, ast.SliceType):
		return f"[{format_type(ty.elem)}]"
	if isinstance(ty, ast.TraitObjectType):
		return f"{ty.keyword} {format_bounds(ty.bounds)}"
	if isinstance(ty, ast.FnPtrType):
		text = f"fn({', '.join(format_type(t) for t in ty.inputs)})"
		if ty.output is not None:
			text += f" -> {format_type(ty.output)}"
		return text
	if isinstance(ty, ast.NeverType):
		return "!"
	raise TypeError(f"cannot format type {ty!r}")


def format_generic_param(param: ast.GenericParam, *, defaults: bool = True) -> str:
	if param.kind is ast.GenericParamKind.CONST:
		assert param.const_ty is not None
		text = f"const {param.name}: {format_type(param.const_ty)}"
	else:
		text = param.name
		if param.bounds:
			text += f": {format_bounds(param.bounds)}"
	if defaults and param.default is not None:
		default = param.default
		if isinstance(default, ast.ConstArg):
			text += f" = {default.text}"
		else:
			text += f" = {format_type(default)}"
	return text


def format_generics(generics: ast.Generics, *, defaults: bool = True) -> str:
	"""`<...>` parameter list; impl blocks pass `defaults=False`."""
	if not generics.params:
		return ""
	return "<" + ", ".join(format_generic_param(p, defaults=defaults) for p in generics.params) + ">"


def format_where(generics: ast.Generics) -> str:
	"""Where clause with a leading space, or the empty string."""
	if not generics.where:
		return ""
	preds: List[str] = []
	for pred in generics.where:
		if isinstance(pred.bounded, ast.Lifetime):
			bounded = pred.bounded.name
		else:
			bounded = format_type(pred.bounded)
		preds.append(f"{bounded}: {format_bounds(pred.bounds)}".rstrip())
	return " where " + ", ".join(preds)


def format_attrs(attrs: Iterable[ast.Attribute], indent: int = 0) -> List[str]:
	pad = _INDENT * indent
	return [f"{pad}#[{a.text}]" for a in attrs]


# ---------------------------------------------------------------------------
# structs


def format_field(fld: ast.Field) -> str:
	attrs = "".join(f"#[{a.text}] " for a in fld.attrs)
	if fld.name is None:
		return f"{attrs}{format_vis(fld.vis)}{format_type(fld.ty)}"
	return f"{attrs}{format_vis(fld.vis)}{fld.name}: {format_type(fld.ty)}"


def format_struct(struct: ast.StructDef, indent: int = 0) -> str:
	pad = _INDENT * indent
	lines = format_attrs(struct.attrs, indent)
	head = f"{pad}{format_vis(struct.vis)}struct {struct.name}{format_generics(struct.generics)}"
	where = format_where(struct.generics)
	if struct.style is ast.FieldStyle.UNIT:
		lines.append(f"{head}{where};")
	elif struct.style is ast.FieldStyle.TUPLE:
		fields = ", ".join(format_field(f) for f in struct.fields)
		lines.append(f"{head}({fields}){where};")
	else:
		lines.append(f"{head}{where} {{")
		for fld in struct.fields:
			lines.append(f"{pad}{_INDENT}{format_field(fld)},")
		lines.append(f"{pad}}}")
	return "\n".join(lines)


# ---------------------------------------------------------------------------
# impl items


def format_receiver(receiver: ast.Receiver) -> str:
	if receiver.kind in (ast.ReceiverKind.REF, ast.ReceiverKind.REF_MUT):
		text = "&"
		if receiver.lifetime is not None:
			text += f"{receiver.lifetime.name} "
		if receiver.kind is ast.ReceiverKind.REF_MUT:
			text += "mut "
		return text + "self"
	text = "mut self" if receiver.mutable_binding else "self"
	if receiver.kind is ast.ReceiverKind.TYPED and receiver.ty is not None:
		text += f": {format_type(receiver.ty)}"
	return text


def format_signature(method: ast.MethodItem) -> str:
	params: List[str] = []
	if method.receiver is not None:
		params.append(format_receiver(method.receiver))
	params.extend(f"{p.pattern}: {format_type(p.ty)}" for p in method.params)
	quals = "".join(f"{q} " for q in method.qualifiers)
	text = f"{format_vis(method.vis)}{quals}fn {method.name}{format_generics(method.generics)}({', '.join(params)})"
	if method.ret is not None:
		text += f" -> {format_type(method.ret)}"
	return text + format_where(method.generics)


def _call(target: str, args: Iterable[str], awaited: bool) -> str:
	text = f"{target}({', '.join(args)})"
	return f"{text}.await" if awaited else text


def format_body(body: ast.Body, indent: int = 0) -> str:
	"""Render a body starting at the opening brace (or `;` for bodiless methods)."""
	pad = _INDENT * indent
	inner = pad + _INDENT
	if isinstance(body, ast.Block):
		return body.text
	if isinstance(body, ast.ExprBody):
		return f"{{\n{inner}{body.expr}\n{pad}}}"
	if isinstance(body, ast.ForwardingBody):
		rt = body.runtime
		actor_ty = format_type(body.actor_ty)
		borrow = "&mut " if body.receiver is ast.ReceiverKind.REF_MUT else "&"
		call = _call(f"__actor.{body.method}", body.args, False)
		message = (
			f'let __message = {rt}::Message::new("{body.tag}", '
			f"move |__actor: {borrow}{actor_ty}| {call});"
		)
		if body.mode is ast.ForwardMode.NOTIFY:
			outcome = f"{rt}::Address::notify(&self.{body.address_field}, __message)"
		else:
			outcome = f"{rt}::Address::send(&self.{body.address_field}, __message)"
			outcome = f"{outcome}.await" if body.awaited else f"{rt}::block_on({outcome})"
		return f"{{\n{inner}{message}\n{inner}{rt}::resolve({outcome})\n{pad}}}"
	if isinstance(body, ast.SpawnBody):
		actor = _call(f"<{format_path(body.actor_ty)}>::{body.constructor}", body.args, body.awaited)
		return f"{{\n{inner}Self {{ {body.address_field}: {body.runtime}::spawn({actor}) }}\n{pad}}}"
	if isinstance(body, ast.DelegateBody):
		call = _call(f"<{format_path(body.actor_ty)}>::{body.function}", body.args, body.awaited)
		return f"{{\n{inner}{call}\n{pad}}}"
	raise TypeError(f"cannot format body {body!r}")


def format_method(method: ast.MethodItem, indent: int = 0) -> str:
	pad = _INDENT * indent
	lines = format_attrs(method.attrs, indent)
	body = format_body(method.body, indent)
	sep = "" if body == ";" else " "
	lines.append(f"{pad}{format_signature(method)}{sep}{body}")
	return "\n".join(lines)


def format_impl_item(item: ast.ImplItem, indent: int = 0) -> str:
	pad = _INDENT * indent
	if isinstance(item, ast.MethodItem):
		return format_method(item, indent)
	if isinstance(item, ast.VerbatimItem):
		return pad + item.text
	lines = format_attrs(item.attrs, indent)
	if isinstance(item, ast.ConstItem):
		lines.append(f"{pad}{format_vis(item.vis)}const {item.name}: {format_type(item.ty)} = {item.value};")
	elif isinstance(item, ast.TypeItem):
		lines.append(
			f"{pad}{format_vis(item.vis)}type {item.name}{format_generics(item.generics)}"
			f"{format_where(item.generics)} = {format_type(item.ty)};"
		)
	elif isinstance(item, ast.MacroItem):
		lines.append(f"{pad}{item.path}!{item.tokens}{';' if item.semi else ''}")
	else:
		raise TypeError(f"cannot format impl item {item!r}")
	return "\n".join(lines)


def format_impl(block: ast.HandlerImpl | ast.InterfaceImpl, indent: int = 0) -> str:
	pad = _INDENT * indent
	lines = format_attrs(block.attrs, indent)
	head = f"{pad}{'unsafe ' if block.unsafe else ''}impl{format_generics(block.generics, defaults=False)} "
	if isinstance(block, ast.InterfaceImpl):
		head += f"{'!' if block.negative else ''}{format_path(block.interface)} for "
	head += format_type(block.self_ty) + format_where(block.generics)
	if not block.items:
		lines.append(f"{head} {{}}")
		return "\n".join(lines)
	lines.append(f"{head} {{")
	lines.extend(format_impl_item(item, indent + 1) for item in block.items)
	lines.append(f"{pad}}}")
	return "\n".join(lines)


# ---------------------------------------------------------------------------
# modules


def format_use(use: ast.UseDecl, indent: int = 0) -> str:
	suffix = "::*" if use.glob else ""
	return f"{_INDENT * indent}use {format_path(use.path)}{suffix};"


def format_module(module: ast.ModuleDef, indent: int = 0) -> str:
	pad = _INDENT * indent
	lines = format_attrs(module.attrs, indent)
	lines.append(f"{pad}{format_vis(module.vis)}mod {module.name} {{")
	lines.extend(format_item(item, indent + 1) for item in module.items)
	lines.append(f"{pad}}}")
	return "\n".join(lines)


def format_item(item: ast.Item, indent: int = 0) -> str:
	if isinstance(item, ast.StructDef):
		return format_struct(item, indent)
	if isinstance(item, (ast.HandlerImpl, ast.InterfaceImpl)):
		return format_impl(item, indent)
	if isinstance(item, ast.ModuleDef):
		return format_module(item, indent)
	if isinstance(item, ast.UseDecl):
		return format_use(item, indent)
	raise TypeError(f"cannot format item {item!r}")


def format_items(items: Iterable[ast.Item]) -> str:
	"""Render top-level items separated by blank lines, newline-terminated."""
	rendered = [format_item(item) for item in items]
	if not rendered:
		return ""
	return "\n\n".join(rendered) + "\n"


__all__ = [
	"format_body",
	"format_generics",
	"format_impl",
	"format_item",
	"format_items",
	"format_method",
	"format_module",
	"format_path",
	"format_struct",
	"format_type",
	"format_use",
	"format_vis",
]
