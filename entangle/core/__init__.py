# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from .diagnostics import Diagnostic, has_errors
from .errors import ConfigError, InternalTransformError, TransformError
from .span import Span

__all__ = [
	"ConfigError",
	"Diagnostic",
	"InternalTransformError",
	"Span",
	"TransformError",
	"has_errors",
]
