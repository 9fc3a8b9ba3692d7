# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import json
import os
import subprocess
import sys
from pathlib import Path

_REPO_ROOT = Path(__file__).resolve().parents[3]


def _run_entangle(argv: list[str], cwd: Path) -> subprocess.CompletedProcess[str]:
	env = dict(os.environ)
	env["PYTHONPATH"] = os.pathsep.join(filter(None, [str(_REPO_ROOT), env.get("PYTHONPATH")]))
	return subprocess.run([sys.executable, "-m", "entangle", *argv], text=True, capture_output=True, cwd=cwd, env=env)


def _write(path: Path, text: str) -> Path:
	path.write_text(text, encoding="utf-8")
	return path


COUNTER = """
#[entangled]
pub struct Counter { count: i64 }

#[entangled]
impl Counter {
	pub fn new() -> Self { Counter { count: 0 } }
	pub fn increment(&mut self, by: i64) { self.count += by; }
}
"""


def test_cli_writes_expansion_to_stdout(tmp_path: Path) -> None:
	src = _write(tmp_path / "counter.rs", COUNTER)
	cp = _run_entangle([str(src)], tmp_path)
	assert cp.returncode == 0, cp.stderr
	assert cp.stderr == ""
	assert "pub mod __CounterActor {" in cp.stdout
	assert "mod __impl0 {" in cp.stdout
	assert "#[entangled]" not in cp.stdout


def test_cli_numbers_impls_across_files(tmp_path: Path) -> None:
	a = _write(tmp_path / "a.rs", "impl A { fn a(&self) {} }")
	b = _write(tmp_path / "b.rs", "impl B { fn b(&self) {} }")
	out = tmp_path / "out.rs"
	cp = _run_entangle([str(a), str(b), "-o", str(out)], tmp_path)
	assert cp.returncode == 0, cp.stderr
	text = out.read_text(encoding="utf-8")
	assert "mod __impl0 {" in text
	assert "mod __impl1 {" in text
	assert cp.stdout == ""


def test_cli_json_reports_errors(tmp_path: Path) -> None:
	src = _write(tmp_path / "bad.rs", "impl (i32, i32) { }\n")
	cp = _run_entangle([str(src), "--json"], tmp_path)
	assert cp.returncode == 1
	payload = json.loads(cp.stdout)
	assert payload["exit_code"] == 1
	assert payload["output"] is None
	(diag,) = payload["diagnostics"]
	assert diag["code"] == "E-IMPL-TARGET"
	assert diag["file"] == str(src)
	assert diag["line"] == 1


def test_cli_human_diagnostics_go_to_stderr(tmp_path: Path) -> None:
	src = _write(tmp_path / "bad.rs", "struct A { x: u8 }\nimpl A { fn take(self) {} }\n")
	cp = _run_entangle([str(src)], tmp_path)
	assert cp.returncode == 1
	assert cp.stdout == ""
	assert f"{src}:2:10: error: methods forwarded through a handle must take `self` by reference" in cp.stderr


def test_cli_warnings_keep_exit_code_zero(tmp_path: Path) -> None:
	src = _write(tmp_path / "w.rs", "struct A { pub(super) x: u8 }\n")
	cp = _run_entangle([str(src), "--json"], tmp_path)
	assert cp.returncode == 0
	payload = json.loads(cp.stdout)
	assert [d["code"] for d in payload["diagnostics"]] == ["W-VIS-WIDENED"]
	assert "pub(crate) x: u8," in payload["output"]


def test_cli_parse_error(tmp_path: Path) -> None:
	src = _write(tmp_path / "p.rs", "fn main() {}\n")
	cp = _run_entangle([str(src), "--json"], tmp_path)
	assert cp.returncode == 1
	payload = json.loads(cp.stdout)
	assert payload["diagnostics"][0]["code"] == "E-PARSE"
	assert payload["diagnostics"][0]["phase"] == "parser"


def test_cli_reads_config_file_and_flags_override(tmp_path: Path) -> None:
	_write(
		tmp_path / "entangle.json",
		json.dumps({"format": "entangle-config", "version": 0, "runtime_path": "::spaad::rt", "address_field": "mbox"}),
	)
	src = _write(tmp_path / "c.rs", "struct C;\n")
	cp = _run_entangle([str(src), "--address-field", "inbox"], tmp_path)
	assert cp.returncode == 0, cp.stderr
	assert "inbox: ::spaad::rt::Address<__CActor::C>," in cp.stdout


def test_cli_config_error(tmp_path: Path) -> None:
	cfg = _write(tmp_path / "custom.json", json.dumps({"format": "entangle-config", "version": 7}))
	src = _write(tmp_path / "c.rs", "struct C;\n")
	cp = _run_entangle([str(src), "--config", str(cfg), "--json"], tmp_path)
	assert cp.returncode == 1
	payload = json.loads(cp.stdout)
	assert payload["diagnostics"][0]["code"] == "E-CONFIG"
	assert payload["diagnostics"][0]["file"] == str(cfg)
