# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Lark front-end: parses struct / impl source text into `entangle.syntax.ast`.

Verbatim regions (bodies, constant values, attribute contents, macro token
trees, non-identifier patterns) are recovered by slicing the original source
with lark's propagated positions, so they round-trip exactly as written.
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from lark import Lark, Token, Tree

from entangle.core.span import Span

from .ast import (
	ArrayType,
	AssocBinding,
	Attribute,
	Block,
	Bound,
	ConstArg,
	ConstItem,
	Field,
	FieldStyle,
	FnPtrType,
	GenericArg,
	GenericParam,
	GenericParamKind,
	Generics,
	HandlerImpl,
	ImplItem,
	InterfaceImpl,
	Lifetime,
	MacroItem,
	MethodItem,
	NeverType,
	Param,
	ParenArgs,
	ParenType,
	PathSegment,
	PtrType,
	Receiver,
	ReceiverKind,
	RefType,
	SliceType,
	SourceConstruct,
	StructDef,
	TraitBound,
	TraitObjectType,
	TupleType,
	TypeExpr,
	TypeItem,
	TypePath,
	VisKind,
	Visibility,
	WherePredicate,
)

_GRAMMAR_PATH = Path(__file__).with_name("grammar.lark")
_GRAMMAR_SRC = _GRAMMAR_PATH.read_text()

_PARSER = Lark(
	_GRAMMAR_SRC,
	parser="lalr",
	start=["start", "construct"],
	propagate_positions=True,
	maybe_placeholders=False,
)

_TYPE_RULES = frozenset(
	{
		"type_path",
		"unit_type",
		"paren_type",
		"tuple_type",
		"ref_type",
		"ptr_type",
		"array_type",
		"slice_type",
		"impl_type",
		"dyn_type",
		"fn_ptr_type",
		"never_type",
	}
)


def parse_constructs(source: str, *, file: str | None = None) -> List[SourceConstruct]:
	"""
	Parse a whole source file into its top-level constructs.

	Raises `lark.exceptions.UnexpectedInput` on malformed input; callers turn
	that into a parser-phase diagnostic.
	"""
	tree = _PARSER.parse(source, start="start")
	builder = _Builder(source, file)
	return [builder.construct(child) for child in _trees(tree, "construct")]


def parse_construct(source: str, *, file: str | None = None) -> SourceConstruct:
	"""
	Parse exactly one construct.

	Classification follows the leading keyword: `impl` (optionally `unsafe
	impl`) is an impl block, and a `for` after the first type turns it into an
	interface impl; anything else must be a struct.
	"""
	tree = _PARSER.parse(source, start="construct")
	return _Builder(source, file).construct(tree)


def parse_type(source: str) -> TypeExpr:
	"""Parse a standalone type by wrapping it in a one-field tuple struct."""
	construct = parse_construct(f"struct __T({source});")
	if not isinstance(construct, StructDef) or len(construct.fields) != 1:
		raise ValueError(f"not a single type: {source!r}")
	return construct.fields[0].ty


class _Builder:
	def __init__(self, source: str, file: Optional[str]) -> None:
		self.source = source
		self.file = file

	# -- helpers --------------------------------------------------------------

	def _span(self, node: Tree | Token) -> Span:
		if isinstance(node, Token):
			return Span(
				file=self.file,
				line=node.line,
				column=node.column,
				end_line=node.end_line,
				end_column=node.end_column,
			)
		return Span.from_meta(node.meta, self.file)

	def _text(self, node: Tree | Token) -> str:
		if isinstance(node, Token):
			return str(node.value)
		meta = node.meta
		if getattr(meta, "empty", True):
			return ""
		return self.source[meta.start_pos : meta.end_pos]

	# -- constructs -----------------------------------------------------------

	def construct(self, tree: Tree) -> SourceConstruct:
		attrs = [self.attribute(a) for a in _trees(tree, "attribute")]
		body = tree.children[-1]
		assert isinstance(body, Tree)
		kind = _name(body)
		if kind == "struct_def":
			item = self.struct_def(body)
		elif kind == "impl_def":
			item = self.impl_def(body)
		else:
			raise ValueError(f"unexpected construct {kind}")
		item.attrs = attrs + item.attrs
		if attrs:
			item.span = self._span(tree)
		return item

	def attribute(self, tree: Tree) -> Attribute:
		text = self._text(tree)
		inner = text[text.index("[") + 1 : text.rindex("]")]
		return Attribute(text=inner.strip(), span=self._span(tree))

	def visibility(self, tree: Optional[Tree]) -> Visibility:
		if tree is None:
			return Visibility()
		tok = tree.children[0]
		assert isinstance(tok, Token)
		span = self._span(tok)
		if tok.type == "PUB":
			return Visibility(kind=VisKind.PUBLIC, span=span)
		inner = tok.value[tok.value.index("(") + 1 : tok.value.rindex(")")].strip()
		explicit_in = False
		if inner.startswith("in") and inner[2:3].isspace():
			explicit_in = True
			inner = inner[2:].strip()
		path = tuple(part.strip() for part in inner.split("::"))
		if path == ("crate",):
			return Visibility(kind=VisKind.CRATE, path=path, explicit_in=explicit_in, span=span)
		return Visibility(kind=VisKind.RESTRICTED, path=path, explicit_in=explicit_in, span=span)

	# -- structs --------------------------------------------------------------

	def struct_def(self, tree: Tree) -> StructDef:
		name = _token(tree, "NAME")
		generics = self.generics(_tree(tree, "generics"))
		body = next(c for c in tree.children if isinstance(c, Tree) and _name(c) in ("named_body", "tuple_body", "unit_body"))
		where = _tree(body, "where_clause")
		if where is not None:
			generics.where = self.where_clause(where)
		fields: List[Field] = []
		kind = _name(body)
		if kind == "named_body":
			style = FieldStyle.NAMED
			fields = [self.named_field(f) for f in _trees(_tree(body, "named_fields"), "named_field")]
		elif kind == "tuple_body":
			style = FieldStyle.TUPLE
			fields = [self.tuple_field(f) for f in _trees(_tree(body, "tuple_fields"), "tuple_field")]
		else:
			style = FieldStyle.UNIT
		return StructDef(
			name=str(name),
			fields=fields,
			vis=self.visibility(_tree(tree, "visibility")),
			generics=generics,
			style=style,
			span=self._span(tree),
		)

	def named_field(self, tree: Tree) -> Field:
		return Field(
			name=str(_token(tree, "NAME")),
			ty=self.type(_type_child(tree)),
			vis=self.visibility(_tree(tree, "visibility")),
			attrs=[self.attribute(a) for a in _trees(tree, "attribute")],
			span=self._span(tree),
		)

	def tuple_field(self, tree: Tree) -> Field:
		return Field(
			name=None,
			ty=self.type(_type_child(tree)),
			vis=self.visibility(_tree(tree, "visibility")),
			attrs=[self.attribute(a) for a in _trees(tree, "attribute")],
			span=self._span(tree),
		)

	# -- impls ----------------------------------------------------------------

	def impl_def(self, tree: Tree) -> HandlerImpl | InterfaceImpl:
		unsafe = _token(tree, "UNSAFE") is not None
		generics = self.generics(_tree(tree, "generics"))
		where = _tree(tree, "where_clause")
		if where is not None:
			generics.where = self.where_clause(where)
		items = [self.impl_item(i) for i in _trees(tree, "impl_item")]
		head = next(c for c in tree.children if isinstance(c, Tree) and _name(c) in ("inherent_head", "trait_head"))
		span = self._span(tree)
		if _name(head) == "inherent_head":
			return HandlerImpl(
				self_ty=self.type(_type_child(head)),
				items=items,
				generics=generics,
				unsafe=unsafe,
				span=span,
			)
		types = [c for c in head.children if isinstance(c, Tree)]
		trait_path = self.type(types[0])
		assert isinstance(trait_path, TypePath)
		return InterfaceImpl(
			self_ty=self.type(types[1]),
			interface=trait_path,
			items=items,
			generics=generics,
			unsafe=unsafe,
			negative=_token(head, "BANG") is not None,
			span=span,
		)

	def impl_item(self, tree: Tree) -> ImplItem:
		attrs = [self.attribute(a) for a in _trees(tree, "attribute")]
		body = tree.children[-1]
		assert isinstance(body, Tree)
		kind = _name(body)
		item: ImplItem
		if kind == "method":
			item = self.method(body)
		elif kind == "const_item":
			item = ConstItem(
				name=str(_token(body, "NAME")),
				ty=self.type(_type_child(body)),
				value=self._text(_tree(body, "const_value")).strip(),
				vis=self.visibility(_tree(body, "visibility")),
				span=self._span(body),
			)
		elif kind == "type_item":
			item = TypeItem(
				name=str(_token(body, "NAME")),
				ty=self.type(_type_child(body)),
				vis=self.visibility(_tree(body, "visibility")),
				generics=self.generics(_tree(body, "generics")),
				span=self._span(body),
			)
		elif kind == "macro_item":
			group = _tree(body, "macro_group")
			item = MacroItem(
				path=self._text(_tree(body, "macro_path")).replace(" ", ""),
				tokens=self._text(group),
				semi=body.meta.end_pos > group.meta.end_pos,
				span=self._span(body),
			)
		else:
			raise ValueError(f"unexpected impl item {kind}")
		item.attrs = attrs
		return item

	def method(self, tree: Tree) -> MethodItem:
		qualifiers: List[str] = []
		quals = _tree(tree, "fn_qualifiers")
		if quals is not None:
			for q in quals.children:
				if isinstance(q, Token):
					qualifiers.append(str(q.value))
				else:
					qualifiers.append(self._text(q).strip())
		receiver: Optional[Receiver] = None
		params: List[Param] = []
		fn_params = _tree(tree, "fn_params")
		if fn_params is not None:
			for child in fn_params.children:
				if not isinstance(child, Tree):
					continue
				kind = _name(child)
				if kind in ("ref_receiver", "value_receiver"):
					receiver = self.receiver(child)
				elif kind == "param":
					params.append(self.param(child))
		ret_tree = _type_child(tree, required=False)
		end = tree.children[-1]
		assert isinstance(end, Tree)
		body = Block(self._text(end)) if _name(end) == "block" else Block(";")
		generics = self.generics(_tree(tree, "generics"))
		where = _tree(tree, "where_clause")
		if where is not None:
			generics.where = self.where_clause(where)
		return MethodItem(
			name=str(_token(tree, "NAME")),
			receiver=receiver,
			params=params,
			ret=self.type(ret_tree) if ret_tree is not None else None,
			body=body,
			vis=self.visibility(_tree(tree, "visibility")),
			generics=generics,
			qualifiers=qualifiers,
			span=self._span(tree),
		)

	def receiver(self, tree: Tree) -> Receiver:
		mutable = _token(tree, "MUT") is not None
		lifetime_tok = _token(tree, "LIFETIME")
		lifetime = Lifetime(str(lifetime_tok)) if lifetime_tok is not None else None
		if _name(tree) == "ref_receiver":
			kind = ReceiverKind.REF_MUT if mutable else ReceiverKind.REF
			return Receiver(kind=kind, lifetime=lifetime)
		ty_tree = _type_child(tree, required=False)
		if ty_tree is not None:
			return Receiver(kind=ReceiverKind.TYPED, mutable_binding=mutable, ty=self.type(ty_tree))
		return Receiver(kind=ReceiverKind.VALUE, mutable_binding=mutable)

	def param(self, tree: Tree) -> Param:
		pattern = tree.children[0]
		assert isinstance(pattern, Tree)
		if _name(pattern) == "ident_pattern":
			text = " ".join(str(t.value) for t in pattern.children if isinstance(t, Token))
		else:
			text = self._text(pattern)
		return Param(pattern=text, ty=self.type(_type_child(tree)))

	# -- generics -------------------------------------------------------------

	def generics(self, tree: Optional[Tree]) -> Generics:
		if tree is None:
			return Generics()
		params: List[GenericParam] = []
		for child in tree.children:
			if not isinstance(child, Tree):
				continue
			kind = _name(child)
			if kind == "lifetime_param":
				lts = [t for t in child.children if isinstance(t, Token) and t.type == "LIFETIME"]
				params.append(
					GenericParam(
						kind=GenericParamKind.LIFETIME,
						name=str(lts[0]),
						bounds=[Lifetime(str(t)) for t in lts[1:]],
					)
				)
			elif kind == "type_param":
				bounds_tree = _tree(child, "bounds")
				default = _type_child(child, required=False)
				params.append(
					GenericParam(
						kind=GenericParamKind.TYPE,
						name=str(_token(child, "NAME")),
						bounds=self.bounds(bounds_tree) if bounds_tree is not None else [],
						default=self.type(default) if default is not None else None,
					)
				)
			elif kind == "const_param":
				default_tree = _tree(child, "const_arg")
				params.append(
					GenericParam(
						kind=GenericParamKind.CONST,
						name=str(_token(child, "NAME")),
						const_ty=self.type(_type_child(child)),
						default=ConstArg(self._text(default_tree).strip()) if default_tree is not None else None,
					)
				)
		return Generics(params=params)

	def where_clause(self, tree: Tree) -> List[WherePredicate]:
		preds: List[WherePredicate] = []
		for child in tree.children:
			if not isinstance(child, Tree):
				continue
			if _name(child) == "lifetime_predicate":
				lts = [Lifetime(str(t)) for t in child.children if isinstance(t, Token) and t.type == "LIFETIME"]
				preds.append(WherePredicate(bounded=lts[0], bounds=list(lts[1:])))
				continue
			bounds_tree = _tree(child, "bounds")
			preds.append(
				WherePredicate(
					bounded=self.type(_type_child(child)),
					bounds=self.bounds(bounds_tree) if bounds_tree is not None else [],
				)
			)
		return preds

	def bounds(self, tree: Tree) -> List[Bound]:
		out: List[Bound] = []
		for child in tree.children:
			if isinstance(child, Token) and child.type == "LIFETIME":
				out.append(Lifetime(str(child)))
			elif isinstance(child, Tree) and _name(child) == "trait_bound":
				path = self.type(_tree(child, "type_path"))
				assert isinstance(path, TypePath)
				out.append(TraitBound(path=path, maybe=_token(child, "QMARK") is not None))
		return out

	# -- types ----------------------------------------------------------------

	def type(self, tree: Tree) -> TypeExpr:
		kind = _name(tree)
		span = self._span(tree)
		if kind == "type_path":
			return self.type_path(tree)
		if kind == "unit_type":
			return TupleType(elems=[], span=span)
		if kind == "tuple_type":
			return TupleType(elems=[self.type(c) for c in _type_children(tree)], span=span)
		if kind == "paren_type":
			return ParenType(inner=self.type(_type_child(tree)), span=span)
		if kind == "ref_type":
			lifetime_tok = _token(tree, "LIFETIME")
			return RefType(
				inner=self.type(_type_child(tree)),
				mutable=_token(tree, "MUT") is not None,
				lifetime=Lifetime(str(lifetime_tok)) if lifetime_tok is not None else None,
				span=span,
			)
		if kind == "ptr_type":
			return PtrType(inner=self.type(_type_child(tree)), mutable=_token(tree, "MUT") is not None, span=span)
		if kind == "array_type":
			return ArrayType(
				elem=self.type(_type_child(tree)),
				length=self._text(_tree(tree, "array_len")).strip(),
				span=span,
			)
		if kind == "slice_type":
			return SliceType(elem=self.type(_type_child(tree)), span=span)
		if kind in ("impl_type", "dyn_type"):
			return TraitObjectType(
				keyword="impl" if kind == "impl_type" else "dyn",
				bounds=self.bounds(_tree(tree, "bounds")),
				span=span,
			)
		if kind == "fn_ptr_type":
			inputs_tree = _tree(tree, "type_list")
			output = _type_child(tree, required=False)
			return FnPtrType(
				inputs=[self.type(c) for c in _type_children(inputs_tree)] if inputs_tree is not None else [],
				output=self.type(output) if output is not None else None,
				span=span,
			)
		if kind == "never_type":
			return NeverType(span=span)
		raise ValueError(f"unexpected type node {kind}")

	def type_path(self, tree: Tree) -> TypePath:
		segments: List[PathSegment] = []
		for child in tree.children:
			if isinstance(child, Tree) and _name(child) == "path_segment":
				segments.append(self.path_segment(child))
		first = tree.children[0]
		leading = isinstance(first, Token) and first.type == "COLON2"
		return TypePath(segments=segments, leading_colon=leading, span=self._span(tree))

	def path_segment(self, tree: Tree) -> PathSegment:
		ident = tree.children[0]
		assert isinstance(ident, Token)
		seg = PathSegment(name=str(ident.value))
		args_tree = _tree(tree, "generic_args")
		if args_tree is not None:
			seg.args = [self.generic_arg(c) for c in args_tree.children]
		paren_tree = _tree(tree, "paren_args")
		if paren_tree is not None:
			inputs_tree = _tree(paren_tree, "type_list")
			output = _type_child(paren_tree, required=False)
			seg.paren = ParenArgs(
				inputs=[self.type(c) for c in _type_children(inputs_tree)] if inputs_tree is not None else [],
				output=self.type(output) if output is not None else None,
			)
		return seg

	def generic_arg(self, node: Tree | Token) -> GenericArg:
		if isinstance(node, Token):
			if node.type == "LIFETIME":
				return Lifetime(str(node))
			raise ValueError(f"unexpected generic argument token {node.type}")
		kind = _name(node)
		if kind == "assoc_binding":
			return AssocBinding(name=str(_token(node, "NAME")), ty=self.type(_type_child(node)))
		if kind == "const_arg":
			return ConstArg(self._text(node).strip())
		return self.type(node)


# ---------------------------------------------------------------------------
# tree helpers


def _name(node: Tree | Token) -> str:
	if isinstance(node, Tree):
		data = node.data
		if isinstance(data, Token):
			return data.value
		return data
	if isinstance(node, Token):
		return node.type
	return str(node)


def _tree(tree: Optional[Tree], name: str) -> Optional[Tree]:
	if tree is None:
		return None
	return next((c for c in tree.children if isinstance(c, Tree) and _name(c) == name), None)


def _trees(tree: Optional[Tree], name: str) -> List[Tree]:
	if tree is None:
		return []
	return [c for c in tree.children if isinstance(c, Tree) and _name(c) == name]


def _token(tree: Tree, type_name: str) -> Optional[Token]:
	return next((c for c in tree.children if isinstance(c, Token) and c.type == type_name), None)


def _type_children(tree: Optional[Tree]) -> List[Tree]:
	if tree is None:
		return []
	return [c for c in tree.children if isinstance(c, Tree) and _name(c) in _TYPE_RULES]


def _type_child(tree: Tree, *, required: bool = True) -> Optional[Tree]:
	"""The last type child of `tree` (return types and defaults come last)."""
	found = _type_children(tree)
	if not found:
		if required:
			raise ValueError(f"{_name(tree)} has no type child")
		return None
	return found[-1]


__all__ = ["parse_constructs", "parse_construct", "parse_type"]
