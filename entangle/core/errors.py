# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

from .diagnostics import Diagnostic


class TransformError(Exception):
	"""
	User-correctable input error.

	Raised from inside a transformer and caught by the dispatcher, which turns
	it into a diagnostic and drops all output for the offending construct.
	"""

	def __init__(self, diagnostic: Diagnostic) -> None:
		super().__init__(diagnostic.message)
		self.diagnostic = diagnostic


class InternalTransformError(RuntimeError):
	"""An input shape the transformer was never designed to accept."""


class ConfigError(ValueError):
	pass


__all__ = ["TransformError", "InternalTransformError", "ConfigError"]
