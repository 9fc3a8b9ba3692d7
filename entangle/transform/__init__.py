# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from .dispatch import Expansion, ExpansionSession, expand, expand_source
from .naming import ImplNamer, actor_namespace_name, actor_type_path
from .visibility import normalize_visibility

__all__ = [
	"Expansion",
	"ExpansionSession",
	"ImplNamer",
	"actor_namespace_name",
	"actor_type_path",
	"expand",
	"expand_source",
	"normalize_visibility",
]
