# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Structural model of the constructs the transformer reads and emits.

Only what the transformation needs is modelled precisely: visibilities, type
paths, generics and item signatures. Everything the transformer never looks
inside (method bodies, constant values, attribute contents, macro token
trees) is kept as verbatim source text.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple, Union

from entangle.core.span import Span


# ---------------------------------------------------------------------------
# Visibility


class VisKind(Enum):
	INHERITED = "inherited"
	PUBLIC = "pub"
	CRATE = "crate"
	RESTRICTED = "restricted"


@dataclass(frozen=True)
class Visibility:
	kind: VisKind = VisKind.INHERITED
	path: Tuple[str, ...] = ()
	explicit_in: bool = False
	span: Span = field(default_factory=Span, compare=False)

	@classmethod
	def public(cls) -> "Visibility":
		return cls(kind=VisKind.PUBLIC)

	def render(self) -> str:
		if self.kind is VisKind.INHERITED:
			return ""
		if self.kind is VisKind.PUBLIC:
			return "pub"
		if self.kind is VisKind.CRATE:
			return "pub(crate)"
		path = "::".join(self.path)
		if self.explicit_in:
			return f"pub(in {path})"
		return f"pub({path})"


# ---------------------------------------------------------------------------
# Types


class TypeExpr:
	span: Span


@dataclass(frozen=True)
class Lifetime:
	name: str  # including the leading quote, e.g. "'a"


@dataclass
class ConstArg:
	text: str


@dataclass
class AssocBinding:
	name: str
	ty: TypeExpr


GenericArg = Union[TypeExpr, Lifetime, ConstArg, AssocBinding]


@dataclass
class ParenArgs:
	"""`Fn(A, B) -> C` style arguments on a path segment."""

	inputs: List[TypeExpr] = field(default_factory=list)
	output: Optional[TypeExpr] = None


@dataclass
class PathSegment:
	name: str
	args: List[GenericArg] = field(default_factory=list)
	paren: Optional[ParenArgs] = None

	def without_args(self) -> "PathSegment":
		return PathSegment(name=self.name)


@dataclass
class TypePath(TypeExpr):
	segments: List[PathSegment]
	leading_colon: bool = False
	span: Span = field(default_factory=Span, compare=False)

	@classmethod
	def simple(cls, *names: str) -> "TypePath":
		return cls(segments=[PathSegment(name=n) for n in names])

	@property
	def last(self) -> PathSegment:
		return self.segments[-1]

	def is_rooted(self) -> bool:
		"""True when the path resolves the same way from any module of the crate."""
		if self.leading_colon:
			return True
		return self.segments[0].name == "crate"

	def names(self) -> Tuple[str, ...]:
		return tuple(seg.name for seg in self.segments)


@dataclass
class TupleType(TypeExpr):
	elems: List[TypeExpr] = field(default_factory=list)
	span: Span = field(default_factory=Span, compare=False)

	def is_unit(self) -> bool:
		return not self.elems


@dataclass
class ParenType(TypeExpr):
	inner: TypeExpr
	span: Span = field(default_factory=Span, compare=False)


@dataclass
class RefType(TypeExpr):
	inner: TypeExpr
	mutable: bool = False
	lifetime: Optional[Lifetime] = None
	span: Span = field(default_factory=Span, compare=False)


@dataclass
class PtrType(TypeExpr):
	inner: TypeExpr
	mutable: bool = False
	span: Span = field(default_factory=Span, compare=False)


@dataclass
class ArrayType(TypeExpr):
	elem: TypeExpr
	length: str
	span: Span = field(default_factory=Span, compare=False)


@dataclass
class SliceType(TypeExpr):
	elem: TypeExpr
	span: Span = field(default_factory=Span, compare=False)


@dataclass
class TraitBound:
	path: TypePath
	maybe: bool = False  # `?Sized`


Bound = Union[TraitBound, Lifetime]


@dataclass
class TraitObjectType(TypeExpr):
	keyword: str  # "impl" | "dyn"
	bounds: List[Bound] = field(default_factory=list)
	span: Span = field(default_factory=Span, compare=False)


@dataclass
class FnPtrType(TypeExpr):
	inputs: List[TypeExpr] = field(default_factory=list)
	output: Optional[TypeExpr] = None
	span: Span = field(default_factory=Span, compare=False)


@dataclass
class NeverType(TypeExpr):
	span: Span = field(default_factory=Span, compare=False)


# ---------------------------------------------------------------------------
# Generics


class GenericParamKind(Enum):
	LIFETIME = "lifetime"
	TYPE = "type"
	CONST = "const"


@dataclass
class GenericParam:
	kind: GenericParamKind
	name: str
	bounds: List[Bound] = field(default_factory=list)
	const_ty: Optional[TypeExpr] = None
	default: Optional[Union[TypeExpr, ConstArg]] = None

	def as_arg(self) -> GenericArg:
		if self.kind is GenericParamKind.LIFETIME:
			return Lifetime(self.name)
		if self.kind is GenericParamKind.CONST:
			return ConstArg(self.name)
		return TypePath.simple(self.name)


@dataclass
class WherePredicate:
	bounded: Union[TypeExpr, Lifetime]
	bounds: List[Bound] = field(default_factory=list)


@dataclass
class Generics:
	params: List[GenericParam] = field(default_factory=list)
	where: List[WherePredicate] = field(default_factory=list)

	def type_args(self) -> List[GenericArg]:
		"""Arguments that instantiate the declaring type with its own parameters."""
		return [p.as_arg() for p in self.params]


# ---------------------------------------------------------------------------
# Attributes and bodies


@dataclass
class Attribute:
	"""An outer attribute, kept as the text between `#[` and `]`."""

	text: str
	span: Span = field(default_factory=Span, compare=False)

	@property
	def path(self) -> str:
		head = self.text
		for stop in ("(", "=", "[", "{", " "):
			idx = head.find(stop)
			if idx != -1:
				head = head[:idx]
		return head.strip()

	@property
	def name(self) -> str:
		return self.path.split("::")[-1]

	@property
	def arguments(self) -> Optional[str]:
		"""Contents of a parenthesized argument list, if any."""
		start = self.text.find("(")
		if start == -1 or not self.text.rstrip().endswith(")"):
			return None
		return self.text[start + 1 : self.text.rstrip().rfind(")")].strip()


@dataclass
class Block:
	"""Verbatim method body, braces included."""

	text: str


@dataclass
class ExprBody:
	"""Generated single-expression body."""

	expr: str


class ForwardMode(Enum):
	REQUEST = "request"
	NOTIFY = "notify"


@dataclass
class ForwardingBody:
	"""Handle-side body that ships a call to the actor through its mailbox."""

	mode: ForwardMode
	tag: str
	actor_ty: TypeExpr
	method: str
	receiver: "ReceiverKind"
	args: List[str]
	runtime: str
	address_field: str
	awaited: bool


@dataclass
class SpawnBody:
	"""Handle-side constructor: build the actor, spawn it, keep its address."""

	actor_ty: TypePath
	constructor: str
	args: List[str]
	runtime: str
	address_field: str
	awaited: bool


@dataclass
class DelegateBody:
	"""Handle-side static method that calls the actor's associated function."""

	actor_ty: TypePath
	function: str
	args: List[str]
	awaited: bool


Body = Union[Block, ExprBody, ForwardingBody, SpawnBody, DelegateBody]


# ---------------------------------------------------------------------------
# Struct declarations


class FieldStyle(Enum):
	NAMED = "named"
	TUPLE = "tuple"
	UNIT = "unit"


@dataclass
class Field:
	name: Optional[str]
	ty: TypeExpr
	vis: Visibility = field(default_factory=Visibility)
	attrs: List[Attribute] = field(default_factory=list)
	span: Span = field(default_factory=Span, compare=False)


@dataclass
class StructDef:
	name: str
	fields: List[Field] = field(default_factory=list)
	vis: Visibility = field(default_factory=Visibility)
	generics: Generics = field(default_factory=Generics)
	style: FieldStyle = FieldStyle.NAMED
	attrs: List[Attribute] = field(default_factory=list)
	span: Span = field(default_factory=Span, compare=False)


# ---------------------------------------------------------------------------
# Impl items


class ReceiverKind(Enum):
	VALUE = "self"
	REF = "&self"
	REF_MUT = "&mut self"
	TYPED = "self: T"


@dataclass
class Receiver:
	kind: ReceiverKind
	mutable_binding: bool = False  # `mut self`
	lifetime: Optional[Lifetime] = None
	ty: Optional[TypeExpr] = None  # `self: Box<Self>`


@dataclass
class Param:
	pattern: str
	ty: TypeExpr

	def binding(self) -> Optional[str]:
		"""The bound identifier when the pattern is a plain (optionally `mut`) name."""
		words = self.pattern.split()
		if words and words[0] == "mut":
			words = words[1:]
		if len(words) != 1:
			return None
		name = words[0]
		if name == "_" or not (name[0].isalpha() or name[0] == "_"):
			return None
		if not all(ch.isalnum() or ch == "_" for ch in name):
			return None
		return name


@dataclass
class MethodItem:
	name: str
	receiver: Optional[Receiver] = None
	params: List[Param] = field(default_factory=list)
	ret: Optional[TypeExpr] = None
	body: Body = field(default_factory=lambda: Block("{}"))
	vis: Visibility = field(default_factory=Visibility)
	generics: Generics = field(default_factory=Generics)
	qualifiers: List[str] = field(default_factory=list)
	attrs: List[Attribute] = field(default_factory=list)
	span: Span = field(default_factory=Span, compare=False)

	@property
	def is_async(self) -> bool:
		return "async" in self.qualifiers

	def returns_unit(self) -> bool:
		if self.ret is None:
			return True
		return isinstance(self.ret, TupleType) and self.ret.is_unit()


@dataclass
class ConstItem:
	name: str
	ty: TypeExpr
	value: str
	vis: Visibility = field(default_factory=Visibility)
	attrs: List[Attribute] = field(default_factory=list)
	span: Span = field(default_factory=Span, compare=False)


@dataclass
class TypeItem:
	name: str
	ty: TypeExpr
	vis: Visibility = field(default_factory=Visibility)
	generics: Generics = field(default_factory=Generics)
	attrs: List[Attribute] = field(default_factory=list)
	span: Span = field(default_factory=Span, compare=False)


@dataclass
class MacroItem:
	path: str
	tokens: str  # delimited group, delimiters included
	semi: bool = True
	attrs: List[Attribute] = field(default_factory=list)
	span: Span = field(default_factory=Span, compare=False)


@dataclass
class VerbatimItem:
	text: str
	span: Span = field(default_factory=Span, compare=False)


ImplItem = Union[MethodItem, ConstItem, TypeItem, MacroItem, VerbatimItem]


# ---------------------------------------------------------------------------
# Impl blocks


@dataclass
class HandlerImpl:
	"""Inherent impl block: the methods become actor handlers."""

	self_ty: TypeExpr
	items: List[ImplItem] = field(default_factory=list)
	generics: Generics = field(default_factory=Generics)
	attrs: List[Attribute] = field(default_factory=list)
	unsafe: bool = False
	span: Span = field(default_factory=Span, compare=False)


@dataclass
class InterfaceImpl:
	"""Trait impl block: conformance machinery that stays on the actor."""

	self_ty: TypeExpr
	interface: TypePath
	items: List[ImplItem] = field(default_factory=list)
	generics: Generics = field(default_factory=Generics)
	attrs: List[Attribute] = field(default_factory=list)
	unsafe: bool = False
	negative: bool = False
	span: Span = field(default_factory=Span, compare=False)


SourceConstruct = Union[StructDef, HandlerImpl, InterfaceImpl]


# ---------------------------------------------------------------------------
# Emitted-only declarations


@dataclass
class UseDecl:
	path: TypePath
	glob: bool = False


@dataclass
class ModuleDef:
	name: str
	items: List["Item"] = field(default_factory=list)
	vis: Visibility = field(default_factory=Visibility)
	attrs: List[Attribute] = field(default_factory=list)


Item = Union[StructDef, HandlerImpl, InterfaceImpl, ModuleDef, UseDecl]
