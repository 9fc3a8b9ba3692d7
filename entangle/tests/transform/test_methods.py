# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import pytest

from entangle.config import EntangleConfig
from entangle.core.errors import InternalTransformError, TransformError
from entangle.syntax import ast
from entangle.syntax.parser import parse_construct
from entangle.syntax.printer import format_items
from entangle.transform.methods import transform_handler_impl
from entangle.transform.naming import ImplNamer


def _transform(source: str, config: EntangleConfig | None = None, namer: ImplNamer | None = None):
	block = parse_construct(source)
	assert isinstance(block, ast.HandlerImpl)
	return transform_handler_impl(block, namer or ImplNamer(), config or EntangleConfig())


def _method(items, name: str) -> ast.MethodItem | None:
	return next((i for i in items if isinstance(i, ast.MethodItem) and i.name == name), None)


def _impls(items):
	(module,) = items
	assert isinstance(module, ast.ModuleDef)
	use_super, use_actor, actor_impl, handle_impl = module.items
	assert isinstance(actor_impl, ast.HandlerImpl)
	assert isinstance(handle_impl, ast.HandlerImpl)
	return module, use_super, use_actor, actor_impl, handle_impl


def test_increment_is_mirrored_and_forwarded() -> None:
	items, diags = _transform("impl Counter { fn increment(&mut self, by: i64) { self.count += by; } }")
	assert diags == []
	assert format_items(items) == (
		"mod __impl0 {\n"
		"    use super::*;\n"
		"    use __CounterActor::Counter;\n"
		"    impl __CounterActor::Counter {\n"
		"        pub(super) fn increment(&mut self, by: i64) { self.count += by; }\n"
		"    }\n"
		"    impl super::Counter {\n"
		"        fn increment(&mut self, by: i64) {\n"
		'            let __message = ::entangle::runtime::Message::new("Counter::increment", '
		"move |__actor: &mut __CounterActor::Counter| __actor.increment(by));\n"
		"            ::entangle::runtime::resolve(::entangle::runtime::block_on("
		"::entangle::runtime::Address::send(&self.addr, __message)))\n"
		"        }\n"
		"    }\n"
		"}\n"
	)


def test_two_impls_in_one_session_get_distinct_namespaces() -> None:
	namer = ImplNamer()
	first, _ = _transform("impl Counter { fn a(&self) {} }", namer=namer)
	second, _ = _transform("impl Counter { fn b(&self) {} }", namer=namer)
	assert first[0].name == "__impl0"
	assert second[0].name == "__impl1"


def test_mirrors_keep_every_item_and_signature() -> None:
	items, _ = _transform(
		"""
impl<T: Send> Queue<T> where T: Clone {
	pub const CAP: usize = 8;
	type Item = T;
	log_calls!();
	pub fn push(&mut self, item: T) { self.items.push(item) }
	pub(crate) async fn len(&self) -> usize { self.items.len() }
}
"""
	)
	_, _, use_actor, actor_impl, handle_impl = _impls(items)
	assert isinstance(use_actor, ast.UseDecl)
	assert use_actor.path.names() == ("__QueueActor", "Queue")
	assert len(actor_impl.items) == len(handle_impl.items) == 5
	for actor_item, handle_item in zip(actor_impl.items, handle_impl.items):
		assert type(actor_item) is type(handle_item)
	text = format_items(items)
	assert "impl<T: Send> __QueueActor::Queue<T> where T: Clone {" in text
	assert "impl<T: Send> super::Queue<T> where T: Clone {" in text
	assert text.count("pub const CAP: usize = 8;") == 2
	assert "pub(super) type Item = T;" in text
	assert "    type Item = T;" in text
	assert text.count("log_calls!();") == 2

	push_actor = _method(actor_impl.items, "push")
	push_handle = _method(handle_impl.items, "push")
	assert push_actor is not None and push_handle is not None
	assert isinstance(push_actor.body, ast.Block)
	assert isinstance(push_handle.body, ast.ForwardingBody)
	assert push_handle.params == push_actor.params
	assert push_handle.ret == push_actor.ret
	assert push_handle.vis.kind is ast.VisKind.PUBLIC

	len_handle = _method(handle_impl.items, "len")
	assert len_handle is not None
	assert isinstance(len_handle.body, ast.ForwardingBody)
	assert len_handle.body.awaited
	assert len_handle.vis.render() == "pub(crate)"
	assert "::entangle::runtime::resolve(::entangle::runtime::Address::send(&self.addr, __message).await)" in text


def test_static_constructor_spawns_and_other_statics_delegate() -> None:
	items, _ = _transform(
		"""
impl Counter {
	pub fn new(start: i64) -> Self { Counter { count: start } }
	pub async fn connect(url: String) -> Counter { todo!() }
	fn describe() -> String { String::from("counter") }
}
"""
	)
	_, _, _, _, handle_impl = _impls(items)
	new, connect, describe = handle_impl.items
	assert isinstance(new, ast.MethodItem) and isinstance(new.body, ast.SpawnBody)
	assert isinstance(connect, ast.MethodItem) and isinstance(connect.body, ast.SpawnBody)
	assert isinstance(describe, ast.MethodItem) and isinstance(describe.body, ast.DelegateBody)
	text = format_items(items)
	assert "Self { addr: ::entangle::runtime::spawn(<__CounterActor::Counter>::new(start)) }" in text
	assert "Self { addr: ::entangle::runtime::spawn(<__CounterActor::Counter>::connect(url).await) }" in text
	assert "<__CounterActor::Counter>::describe()" in text


def test_non_identifier_patterns_are_renamed_on_the_handle() -> None:
	items, _ = _transform("impl P { fn put(&self, (x, y): (u8, u8), _: u8, mut z: u8) {} }")
	_, _, _, actor_impl, handle_impl = _impls(items)
	actor_put = actor_impl.items[0]
	handle_put = handle_impl.items[0]
	assert isinstance(actor_put, ast.MethodItem) and isinstance(handle_put, ast.MethodItem)
	assert [p.pattern for p in actor_put.params] == ["(x, y)", "_", "mut z"]
	assert [p.pattern for p in handle_put.params] == ["__arg0", "__arg1", "mut z"]
	assert isinstance(handle_put.body, ast.ForwardingBody)
	assert handle_put.body.args == ["__arg0", "__arg1", "z"]


def test_by_value_receiver_is_rejected() -> None:
	with pytest.raises(TransformError) as exc:
		_transform("impl Counter { fn finish(self) {} }")
	assert exc.value.diagnostic.code == "E-RECEIVER"
	assert exc.value.diagnostic.message == "methods forwarded through a handle must take `self` by reference"
	with pytest.raises(TransformError):
		_transform("impl Counter { fn boxed(self: Box<Self>) {} }")


def test_non_path_return_type_is_rejected() -> None:
	with pytest.raises(TransformError) as exc:
		_transform("impl Counter { fn pair(&self) -> (i64, i64) { (1, 2) } }")
	diag = exc.value.diagnostic
	assert diag.code == "E-RETURN-TYPE"
	assert diag.message == "the return type of a forwarded method must be a plain type path"
	assert diag.span.line == 1


def test_failed_block_does_not_consume_an_impl_number() -> None:
	namer = ImplNamer()
	with pytest.raises(TransformError):
		_transform("impl Counter { fn finish(self) {} }", namer=namer)
	items, _ = _transform("impl Counter { fn ok(&self) {} }", namer=namer)
	assert items[0].name == "__impl0"


def test_forward_attribute_selects_mode_and_is_stripped() -> None:
	items, _ = _transform(
		"""
impl Counter {
	#[forward(notify)]
	#[inline]
	fn bump(&mut self) {}
	#[forward(request)]
	fn ping(&self) {}
}
"""
	)
	_, _, _, actor_impl, handle_impl = _impls(items)
	bump, ping = handle_impl.items
	assert isinstance(bump, ast.MethodItem) and isinstance(bump.body, ast.ForwardingBody)
	assert bump.body.mode is ast.ForwardMode.NOTIFY
	assert isinstance(ping, ast.MethodItem) and isinstance(ping.body, ast.ForwardingBody)
	assert ping.body.mode is ast.ForwardMode.REQUEST
	text = format_items(items)
	assert "forward" not in text.replace("forwarded", "")
	assert text.count("#[inline]") == 2
	assert "::entangle::runtime::resolve(::entangle::runtime::Address::notify(&self.addr, __message))" in text


def test_return_shape_policy_notifies_unit_methods() -> None:
	config = EntangleConfig(forward_policy="return-shape")
	items, _ = _transform("impl C { fn poke(&self) {} fn read(&self) -> u8 { 0 } fn unit(&self) -> () {} }", config)
	_, _, _, _, handle_impl = _impls(items)
	modes = [m.body.mode for m in handle_impl.items if isinstance(m, ast.MethodItem) and isinstance(m.body, ast.ForwardingBody)]
	assert modes == [ast.ForwardMode.NOTIFY, ast.ForwardMode.REQUEST, ast.ForwardMode.NOTIFY]

	items, _ = _transform("impl C { fn poke(&self) {} }")
	_, _, _, _, handle_impl = _impls(items)
	poke = handle_impl.items[0]
	assert isinstance(poke, ast.MethodItem) and isinstance(poke.body, ast.ForwardingBody)
	assert poke.body.mode is ast.ForwardMode.REQUEST


@pytest.mark.parametrize(
	"source",
	[
		"impl C { #[forward(later)] fn a(&self) {} }",
		"impl C { #[forward] fn a(&self) {} }",
		"impl C { #[forward(notify)] fn a(&self) -> u8 { 0 } }",
		"impl C { #[forward(request)] #[forward(notify)] fn a(&self) {} }",
		"impl C { #[forward(request)] fn new() -> Self { C } }",
	],
)
def test_invalid_forward_attributes_are_rejected(source: str) -> None:
	with pytest.raises(TransformError) as exc:
		_transform(source)
	assert exc.value.diagnostic.code == "E-FORWARD-ATTR"


def test_actor_side_visibility_warnings_are_collected() -> None:
	items, diags = _transform("impl C { pub(super) fn a(&self) {} pub(in crate::x) fn b(&self) {} }")
	assert [d.code for d in diags] == ["W-VIS-WIDENED"]
	_, _, _, actor_impl, handle_impl = _impls(items)
	assert [m.vis.render() for m in actor_impl.items if isinstance(m, ast.MethodItem)] == ["pub(crate)", "pub(in crate::x)"]
	assert [m.vis.render() for m in handle_impl.items if isinstance(m, ast.MethodItem)] == ["pub(super)", "pub(in crate::x)"]


def test_rooted_self_type_is_not_prefixed() -> None:
	items, _ = _transform("impl crate::net::Conn { fn close(&self) {} }")
	_, _, use_actor, actor_impl, handle_impl = _impls(items)
	assert use_actor.path.names() == ("crate", "net", "__ConnActor", "Conn")
	text = format_items(items)
	assert "impl crate::net::__ConnActor::Conn {" in text
	assert "impl crate::net::Conn {" in text
	assert '"Conn::close"' in text


def test_self_relative_target_is_reanchored_inside_the_impl_module() -> None:
	items, _ = _transform("impl self::Counter { fn get(&self) -> i64 { self.count } }")
	_, _, use_actor, _, _ = _impls(items)
	assert use_actor.path.names() == ("super", "__CounterActor", "Counter")
	text = format_items(items)
	assert "impl self::Counter {" not in text
	assert "impl super::__CounterActor::Counter {" in text
	assert "impl super::Counter {" in text
	assert "move |__actor: &super::__CounterActor::Counter| __actor.get()" in text


def test_super_relative_target_gains_one_more_super() -> None:
	items, _ = _transform("impl super::Counter { fn get(&self) -> i64 { self.count } }")
	_, _, use_actor, _, _ = _impls(items)
	assert use_actor.path.names() == ("super", "super", "__CounterActor", "Counter")
	text = format_items(items)
	assert "impl super::super::__CounterActor::Counter {" in text
	assert "impl super::super::Counter {" in text
	assert "use super::__CounterActor::Counter;" not in text


@pytest.mark.parametrize(
	"source",
	[
		"impl Counter { fn snapshot(&self) -> Self { self.clone() } }",
		"impl Counter { fn snapshot(&self) -> Option<Counter> { None } }",
		"impl Counter { fn pair(&self) -> Vec<(u8, Self)> { vec![] } }",
		"impl Counter { fn find(id: u8) -> Option<Self> { None } }",
		"impl Counter { fn make() -> Box<dyn Fn() -> Counter> { todo!() } }",
	],
)
def test_return_type_naming_the_type_itself_is_rejected(source: str) -> None:
	with pytest.raises(TransformError) as exc:
		_transform(source)
	diag = exc.value.diagnostic
	assert diag.code == "E-RETURN-TYPE"
	assert "which is the handle on the forwarding side" in diag.message
	assert diag.span.line == 1


def test_associated_types_through_self_are_allowed() -> None:
	items, _ = _transform("impl Counter { type Item = u8; fn peek(&self) -> Self::Item { 0 } }")
	_, _, _, _, handle_impl = _impls(items)
	peek = handle_impl.items[1]
	assert isinstance(peek, ast.MethodItem) and isinstance(peek.body, ast.ForwardingBody)


def test_unknown_item_kind_is_internal_error() -> None:
	block = ast.HandlerImpl(self_ty=ast.TypePath.simple("C"), items=["not an item"])  # type: ignore[list-item]
	with pytest.raises(InternalTransformError):
		transform_handler_impl(block, ImplNamer(), EntangleConfig())
