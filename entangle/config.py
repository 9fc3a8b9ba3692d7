# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Expansion settings and their JSON file format.

Format (pinned for v0, JSON):
{
  "format": "entangle-config",
  "version": 0,
  "runtime_path": "::entangle::runtime",   // optional
  "address_field": "addr",                 // optional
  "forward_policy": "request",             // optional: "request" | "return-shape"
  "marker": "entangled"                    // optional
}
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Mapping, Optional

from entangle.core.errors import ConfigError

FORWARD_POLICIES = ("request", "return-shape")
CONFIG_FILE_NAME = "entangle.json"

_IDENT = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_PATH = re.compile(r"^(?:::)?[A-Za-z_][A-Za-z0-9_]*(?:::[A-Za-z_][A-Za-z0-9_]*)*$")


@dataclass(frozen=True)
class EntangleConfig:
	"""Settings shared by every construct expanded in one session."""

	# Root path of the runtime capability surface (Address, Message, spawn, ...).
	runtime_path: str = "::entangle::runtime"
	# Name of the handle's single field holding the actor address.
	address_field: str = "addr"
	forward_policy: str = "request"
	# Invocation marker attribute stripped from expanded constructs.
	marker: str = "entangled"

	def __post_init__(self) -> None:
		if not _PATH.match(self.runtime_path):
			raise ConfigError(f"runtime_path must be a `::`-separated path, got {self.runtime_path!r}")
		if not _IDENT.match(self.address_field):
			raise ConfigError(f"address_field must be an identifier, got {self.address_field!r}")
		if self.forward_policy not in FORWARD_POLICIES:
			allowed = ", ".join(FORWARD_POLICIES)
			raise ConfigError(f"forward_policy must be one of {allowed}, got {self.forward_policy!r}")
		if not _IDENT.match(self.marker):
			raise ConfigError(f"marker must be an identifier, got {self.marker!r}")

	def with_overrides(self, **overrides: Optional[str]) -> "EntangleConfig":
		"""Copy with every non-None override applied (CLI flags beat file values)."""
		changes = {key: value for key, value in overrides.items() if value is not None}
		if not changes:
			return self
		return replace(self, **changes)


def config_from_mapping(obj: Any) -> EntangleConfig:
	if not isinstance(obj, Mapping):
		raise ConfigError("config must be a JSON object")
	if obj.get("format") != "entangle-config" or obj.get("version") != 0:
		raise ConfigError("unsupported config format/version")
	known = ("runtime_path", "address_field", "forward_policy", "marker")
	unknown = sorted(k for k in obj if k not in known and k not in ("format", "version"))
	if unknown:
		raise ConfigError(f"unknown config keys: {', '.join(unknown)}")
	values: dict[str, str] = {}
	for key in known:
		if key not in obj:
			continue
		value = obj[key]
		if not isinstance(value, str):
			raise ConfigError(f"config key {key!r} must be a string")
		values[key] = value
	return EntangleConfig(**values)


def load_config_json(path: Path) -> EntangleConfig:
	"""Load an `entangle-config` file; every failure surfaces as `ConfigError`."""
	try:
		text = path.read_text(encoding="utf-8")
	except OSError as err:
		raise ConfigError(f"cannot read config {path}: {err.strerror or err}") from err
	try:
		obj = json.loads(text)
	except json.JSONDecodeError as err:
		raise ConfigError(f"config {path} is not valid JSON: {err.msg} (line {err.lineno})") from err
	return config_from_mapping(obj)


__all__ = ["EntangleConfig", "FORWARD_POLICIES", "CONFIG_FILE_NAME", "config_from_mapping", "load_config_json"]
