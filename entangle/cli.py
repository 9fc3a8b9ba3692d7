# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Command-line driver: `python -m entangle SOURCE... [-o OUT] [--json]`.

All sources are expanded in one session so `__implN` numbers stay unique
across files. Generated code goes to `-o` (or stdout); diagnostics go to
stderr as `file:line:col: severity: message`, or into a single JSON payload
on stdout with `--json`.

Exit status: 0 success (warnings allowed), 1 user errors, 2 internal error.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from entangle.config import CONFIG_FILE_NAME, FORWARD_POLICIES, EntangleConfig, load_config_json
from entangle.core.diagnostics import Diagnostic, has_errors
from entangle.core.errors import ConfigError, InternalTransformError
from entangle.transform.dispatch import ExpansionSession, expand_source

CONFIG_ERROR = "E-CONFIG"


def _resolve_config(args: argparse.Namespace) -> EntangleConfig:
	config_path: Optional[Path] = args.config
	if config_path is None and Path(CONFIG_FILE_NAME).is_file():
		config_path = Path(CONFIG_FILE_NAME)
	config = load_config_json(config_path) if config_path is not None else EntangleConfig()
	return config.with_overrides(
		runtime_path=args.runtime_path,
		address_field=args.address_field,
		forward_policy=args.forward_policy,
	)


def _report(diagnostics: List[Diagnostic], *, as_json: bool, exit_code: int, output: Optional[str]) -> None:
	if as_json:
		payload = {
			"exit_code": exit_code,
			"diagnostics": [d.to_dict() for d in diagnostics],
			"output": output,
		}
		print(json.dumps(payload))
		return
	for d in diagnostics:
		print(d.format_human(), file=sys.stderr)


def main(argv: list[str] | None = None) -> int:
	"""Expand every SOURCE; nothing is written when any source has errors."""
	parser = argparse.ArgumentParser(prog="entangle", description="Split structs and impls into handle/actor pairs")
	parser.add_argument("source", type=Path, nargs="+", help="Path(s) to source files containing struct/impl constructs")
	parser.add_argument("-o", "--output", type=Path, help="Write generated code to this path (default: stdout)")
	parser.add_argument("--json", action="store_true", help="Emit diagnostics (and output) as a JSON payload on stdout")
	parser.add_argument("--config", type=Path, help=f"Path to config JSON (default: ./{CONFIG_FILE_NAME} when present)")
	parser.add_argument("--runtime-path", type=str, help="Root path of the runtime capability surface")
	parser.add_argument("--address-field", type=str, help="Name of the handle's address field")
	parser.add_argument("--forward-policy", choices=FORWARD_POLICIES, help="Default forwarding mode for unmarked methods")
	args = parser.parse_args(argv)

	try:
		config = _resolve_config(args)
	except ConfigError as err:
		diag = Diagnostic(message=str(err), code=CONFIG_ERROR, phase="config", severity="error")
		if args.config is not None:
			diag.span = diag.span.with_file(str(args.config))
		_report([diag], as_json=args.json, exit_code=1, output=None)
		return 1

	session = ExpansionSession(config=config)
	diagnostics: List[Diagnostic] = []
	chunks: List[str] = []
	for source_path in args.source:
		try:
			source = source_path.read_text(encoding="utf-8")
		except OSError as err:
			diagnostics.append(
				Diagnostic(
					message=f"cannot read source: {err.strerror or err}",
					phase="driver",
					severity="error",
				)
			)
			diagnostics[-1].span = diagnostics[-1].span.with_file(str(source_path))
			continue
		try:
			expansion = expand_source(source, session, file=str(source_path))
		except InternalTransformError as err:
			if args.json:
				diag = Diagnostic(message=str(err), phase="internal", severity="error")
				diag.span = diag.span.with_file(str(source_path))
				_report(diagnostics + [diag], as_json=True, exit_code=2, output=None)
			else:
				_report(diagnostics, as_json=False, exit_code=2, output=None)
				print(f"{source_path}: internal error: {err}", file=sys.stderr)
			return 2
		diagnostics.extend(expansion.diagnostics)
		if expansion.items:
			chunks.append(expansion.render())

	if has_errors(diagnostics):
		_report(diagnostics, as_json=args.json, exit_code=1, output=None)
		return 1

	text = "\n".join(chunks)
	if args.output is not None:
		args.output.write_text(text, encoding="utf-8")
		_report(diagnostics, as_json=args.json, exit_code=0, output=None)
	elif args.json:
		_report(diagnostics, as_json=True, exit_code=0, output=text)
	else:
		_report(diagnostics, as_json=False, exit_code=0, output=None)
		sys.stdout.write(text)
	return 0


__all__ = ["main"]
