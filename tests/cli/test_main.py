# Copyright 2026 ArchML Contributors
# SPDX-License-Identifier: Apache-2.0

"""Tests for the modeldesc CLI entry point."""

import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest
import yaml

from modeldesc.cli.main import main
from modeldesc.codec import serialize
from modeldesc.model import AgentTools, CloudInstance, Model, Status

# ###############
# Helpers
# ###############

_UPDATED = datetime(2024, 3, 1, 10, 30, tzinfo=timezone.utc)


def _model() -> Model:
    status = Status(value="started", updated=_UPDATED)
    model = Model(owner="admin", cloud="lxd", status=status)
    model.add_machine(
        id="0",
        base="ubuntu@22.04",
        status=status,
        tools=AgentTools(version="3.1.2-ubuntu-amd64"),
        instance=CloudInstance(instance_id="inst-0", status=status),
    )
    return model


def _write_v1_model(path: Path, model: Model) -> Path:
    """Write ``model`` relabelled as a version 1 document."""
    document = yaml.safe_load(serialize(model))
    document["version"] = 1
    path.write_text(yaml.safe_dump(document), encoding="utf-8")
    return path


# ###############
# Public Interface
# ###############


def test_main_no_args_prints_help_and_exits(monkeypatch: pytest.MonkeyPatch) -> None:
    """main() with no subcommand prints help and exits with code 0."""
    monkeypatch.setattr(sys, "argv", ["modeldesc"])
    with pytest.raises(SystemExit) as exc_info:
        main()
    assert exc_info.value.code == 0


# -------- check tests --------


def test_check_valid_model(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    """check prints OK for a well formed and consistent model."""
    path = tmp_path / "model.yaml"
    path.write_text(serialize(_model()), encoding="utf-8")
    monkeypatch.setattr(sys, "argv", ["modeldesc", "check", str(path)])
    with pytest.raises(SystemExit) as exc_info:
        main()
    assert exc_info.value.code == 0
    assert capsys.readouterr().out.strip() == "OK"


def test_check_reports_schema_error(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    """check exits with code 1 and prints the annotated error for a malformed document."""
    path = tmp_path / "model.yaml"
    path.write_text("version: 11\nowner: []\n", encoding="utf-8")
    monkeypatch.setattr(sys, "argv", ["modeldesc", "check", str(path)])
    with pytest.raises(SystemExit) as exc_info:
        main()
    assert exc_info.value.code == 1
    err = capsys.readouterr().err
    assert err.startswith("Error: model v11 schema check failed: owner: expected string")


def test_check_reports_validation_error(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    """check exits with code 1 when the document imports but is not consistent."""
    model = _model()
    model.machines[0].add_opened_port_range("mysql/0", "", 3306, 3306, "tcp")
    path = tmp_path / "model.yaml"
    path.write_text(serialize(model), encoding="utf-8")
    monkeypatch.setattr(sys, "argv", ["modeldesc", "check", str(path)])
    with pytest.raises(SystemExit) as exc_info:
        main()
    assert exc_info.value.code == 1
    assert "unknown unit names in open ports: mysql/0" in capsys.readouterr().err


def test_check_missing_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """check exits with code 1 when the file does not exist."""
    monkeypatch.setattr(sys, "argv", ["modeldesc", "check", str(tmp_path / "absent.yaml")])
    with pytest.raises(SystemExit) as exc_info:
        main()
    assert exc_info.value.code == 1


# -------- upgrade tests --------


def test_upgrade_writes_current_version_to_output(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    """upgrade reads a version 1 document and writes version 11 to --output."""
    source = _write_v1_model(tmp_path / "old.yaml", _model())
    target = tmp_path / "upgraded" / "new.yaml"
    monkeypatch.setattr(sys, "argv", ["modeldesc", "upgrade", str(source), "-o", str(target)])
    with pytest.raises(SystemExit) as exc_info:
        main()
    assert exc_info.value.code == 0
    assert yaml.safe_load(target.read_text(encoding="utf-8"))["version"] == 11
    assert yaml.safe_load(source.read_text(encoding="utf-8"))["version"] == 1
    assert "Wrote model version 11" in capsys.readouterr().out


def test_upgrade_overwrites_input_by_default(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """upgrade without --output rewrites the input file in place."""
    source = _write_v1_model(tmp_path / "model.yaml", _model())
    monkeypatch.setattr(sys, "argv", ["modeldesc", "upgrade", str(source)])
    with pytest.raises(SystemExit) as exc_info:
        main()
    assert exc_info.value.code == 0
    document = yaml.safe_load(source.read_text(encoding="utf-8"))
    assert document["version"] == 11
    assert document["status"]["status"]["value"] == "available"


def test_upgrade_validates_by_default(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """upgrade refuses to write an inconsistent model."""
    model = _model()
    model.machines[0].add_opened_port_range("mysql/0", "", 3306, 3306, "tcp")
    source = tmp_path / "model.yaml"
    source.write_text(serialize(model), encoding="utf-8")
    target = tmp_path / "out.yaml"
    monkeypatch.setattr(sys, "argv", ["modeldesc", "upgrade", str(source), "-o", str(target)])
    with pytest.raises(SystemExit) as exc_info:
        main()
    assert exc_info.value.code == 1
    assert not target.exists()


def test_upgrade_no_validate(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """upgrade --no-validate writes an inconsistent but well formed model."""
    model = _model()
    model.machines[0].add_opened_port_range("mysql/0", "", 3306, 3306, "tcp")
    source = tmp_path / "model.yaml"
    source.write_text(serialize(model), encoding="utf-8")
    target = tmp_path / "out.yaml"
    monkeypatch.setattr(sys, "argv", ["modeldesc", "upgrade", str(source), "-o", str(target), "--no-validate"])
    with pytest.raises(SystemExit) as exc_info:
        main()
    assert exc_info.value.code == 0
    assert target.exists()


# -------- versions tests --------


def test_versions_lists_registries(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    """versions prints every document kind with its current version."""
    monkeypatch.setattr(sys, "argv", ["modeldesc", "versions"])
    with pytest.raises(SystemExit) as exc_info:
        main()
    assert exc_info.value.code == 0
    lines = capsys.readouterr().out.splitlines()
    model_line = next(line for line in lines if line.startswith("model "))
    assert model_line.split()[1] == "11"
    assert model_line.endswith("(reads 1, 2, 3, 4, 5, 6, 7, 8, 9, 10, 11)")
    assert any(line.startswith("machine ") for line in lines)
