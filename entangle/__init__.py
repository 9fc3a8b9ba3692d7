# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
entangle: split a struct and its impls into a copyable handle that forwards
calls as messages and an actor that owns the state.
"""

from .config import EntangleConfig
from .transform import Expansion, ExpansionSession, expand, expand_source

__all__ = ["EntangleConfig", "Expansion", "ExpansionSession", "expand", "expand_source"]
