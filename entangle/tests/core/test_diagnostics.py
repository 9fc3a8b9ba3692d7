# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

from entangle.core.diagnostics import Diagnostic, has_errors, transform_error, transform_warning
from entangle.core.errors import TransformError
from entangle.core.span import Span


def test_format_human_uses_span_location() -> None:
	diag = Diagnostic(message="boom", severity="error", span=Span(file="a.rs", line=3, column=7))
	assert diag.format_human() == "a.rs:3:7: error: boom"


def test_format_human_falls_back_to_default_file_and_unknown_location() -> None:
	diag = transform_warning("careful", code="W-X")
	assert diag.format_human("b.rs") == "b.rs:?:?: warning: careful"
	assert diag.format_human() == "<input>:?:?: warning: careful"


def test_format_human_appends_notes() -> None:
	diag = transform_error("bad", code="E-X", span=Span(file="c.rs", line=1, column=1), notes=["try this"])
	assert diag.format_human().splitlines() == ["c.rs:1:1: error: bad", "  note: try this"]


def test_to_dict_shape() -> None:
	diag = transform_error("bad", code="E-X", span=Span(line=2, column=5))
	assert diag.to_dict("d.rs") == {
		"phase": "transform",
		"code": "E-X",
		"message": "bad",
		"severity": "error",
		"file": "d.rs",
		"line": 2,
		"column": 5,
		"notes": [],
	}


def test_has_errors_ignores_warnings() -> None:
	assert not has_errors([transform_warning("w", code="W")])
	assert has_errors([transform_warning("w", code="W"), transform_error("e", code="E")])


def test_span_with_file_keeps_existing_file() -> None:
	assert Span(line=1).with_file("x.rs").file == "x.rs"
	assert Span(file="y.rs").with_file("x.rs").file == "y.rs"


def test_transform_error_carries_diagnostic() -> None:
	diag = transform_error("nope", code="E-X")
	err = TransformError(diag)
	assert err.diagnostic is diag
	assert str(err) == "nope"
