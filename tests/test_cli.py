"""
Smoke tests for the command line interface using the mock client.
"""

import json

import pytest
from typer.testing import CliRunner

from freetimefinder.cli.app import app

runner = CliRunner()


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "api_base_url: http://localhost:3000/api\n"
        "colleagues:\n"
        "  - name: ana\n"
        "    id: u-ana\n",
        encoding="utf-8",
    )
    return path


def test_slots_json_with_mock(config_file):
    """Common slots of two people on Monday as JSON."""
    result = runner.invoke(app, ["slots", "me", "ana", "--day", "1", "--json", "--mock", "--config", str(config_file)])

    assert result.exit_code == 0, result.output
    assert json.loads(result.stdout) == [
        {"dayOfWeek": 1, "start": "08:00", "end": "09:00"},
        {"dayOfWeek": 1, "start": "11:00", "end": "14:00"},
        {"dayOfWeek": 1, "start": "16:00", "end": "22:00"},
    ]


def test_slots_resolves_ids_from_service(config_file):
    """Ids unknown to the config are looked up in the service colleague list."""
    result = runner.invoke(
        app,
        ["slots", "me", "u-bruno", "--day", "4", "--json", "--mock", "--config", str(config_file)],
    )

    assert result.exit_code == 0, result.output
    assert json.loads(result.stdout) == [
        {"dayOfWeek": 4, "start": "08:00", "end": "09:00"},
        {"dayOfWeek": 4, "start": "12:00", "end": "16:00"},
        {"dayOfWeek": 4, "start": "18:00", "end": "22:00"},
    ]


def test_group_slots_text_output(config_file):
    """Group slots in the human readable format."""
    result = runner.invoke(app, ["slots", "--group", "g-algebra", "--day", "1", "--mock", "--config", str(config_file)])

    assert result.exit_code == 0, result.output
    assert "Monday | 11:00 - 14:00 (180 min)" in result.stdout


def test_slots_requires_participants_or_group(config_file):
    """Calling without a selection fails."""
    result = runner.invoke(app, ["slots", "--mock", "--config", str(config_file)])

    assert result.exit_code == 1


def test_unknown_participant(config_file):
    """Unknown names are reported as errors."""
    result = runner.invoke(app, ["slots", "zoe", "--mock", "--config", str(config_file)])

    assert result.exit_code == 1
    assert "zoe" in result.stdout


def test_compare_json(config_file):
    """The comparison grid as JSON."""
    result = runner.invoke(app, ["compare", "me", "ana", "--json", "--mock", "--config", str(config_file)])

    assert result.exit_code == 0, result.output
    data = json.loads(result.stdout)
    monday_ten = next(c for c in data["cells"] if c["dayOfWeek"] == 1 and c["hour"] == "10:00")
    assert monday_ten["status"] == "occupied"
    assert monday_ten["labels"] == {"me": "Linear Algebra (B1.02)", "u-ana": "Statistics (C0.01)"}
    assert len(data["cells"]) == 7 * 15


def test_compare_table(config_file):
    """The comparison grid renders as a table."""
    result = runner.invoke(app, ["compare", "me", "ana", "--mock", "--config", str(config_file)])

    assert result.exit_code == 0, result.output
    assert "Comparison of 2 people" in result.stdout


def test_validate_reports_rejected_blocks(tmp_path):
    """Invalid blocks in a local file make validation fail."""
    schedule_file = tmp_path / "schedule.yaml"
    schedule_file.write_text(
        "blocos:\n"
        "  - {disciplina: Physics, diaSemana: 4, horaInicio: '16:00', horaFim: '18:00'}\n"
        "  - {disciplina: Empty, diaSemana: 4, horaInicio: '09:00', horaFim: '09:00'}\n",
        encoding="utf-8",
    )

    result = runner.invoke(app, ["validate", str(schedule_file)])

    assert result.exit_code == 1
    assert "1 valid block(s)" in result.stdout
    assert "Rejected blocks" in result.stdout


def test_validate_accepts_clean_file(tmp_path):
    """A clean JSON file validates."""
    schedule_file = tmp_path / "schedule.json"
    schedule_file.write_text(
        json.dumps([{"label": "Physics", "day_of_week": 4, "start_time": "16:00", "end_time": "18:00"}]),
        encoding="utf-8",
    )

    result = runner.invoke(app, ["validate", str(schedule_file)])

    assert result.exit_code == 0, result.output
    assert "1 valid block(s)" in result.stdout


def test_version():
    """Version command prints the package version."""
    result = runner.invoke(app, ["version"])

    assert result.exit_code == 0
    assert "freetimefinder" in result.stdout


def test_slots_rejects_zero_granularity(config_file):
    """An explicit zero sampling step is an error, not the default step."""
    result = runner.invoke(
        app,
        ["slots", "me", "--day", "1", "--granularity", "0", "--json", "--mock", "--config", str(config_file)],
    )

    assert result.exit_code == 1
    assert "Granularity" in result.stdout


@pytest.mark.parametrize("content", ["user: me\n", ""])
def test_validate_without_block_list(tmp_path, content):
    """A file without a block list is reported instead of passing as empty."""
    schedule_file = tmp_path / "schedule.yaml"
    schedule_file.write_text(content, encoding="utf-8")

    result = runner.invoke(app, ["validate", str(schedule_file)])

    assert result.exit_code == 1
    assert "No block list found" in result.stdout
