"""Tests for CLI commands: help, init, review, show, due, next, switch, elo, serve and config."""

import json
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from cadence.interface.cli import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def isolated_store(mock_home, tmp_path, monkeypatch):
    """Point every command at a throwaway JSON store."""
    path = tmp_path / "progress.json"
    monkeypatch.setenv("CADENCE_STORE_PATH", str(path))
    return path


# --- Help ---


def test_cli_help():
    """Test that help text is displayed correctly."""
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    assert "cadence: spaced-repetition review scheduling" in result.stdout
    assert "review" in result.stdout
    assert "config" in result.stdout


# --- Init / Review / Show ---


def test_init_command(isolated_store):
    result = runner.invoke(app, ["init", "deck-1", "--algorithm", "Leitner"])

    assert result.exit_code == 0
    assert "deck-1[0] (Leitner System)" in result.stdout
    assert "Leitner box: 1" in result.stdout
    assert isolated_store.exists()


def test_review_json():
    result = runner.invoke(app, ["review", "deck-1", "-c", "3", "--json"])

    assert result.exit_code == 0
    summary = json.loads(result.stdout)
    assert summary["algorithm"] == "FSRS"
    assert summary["phase"] == "Learning"
    assert summary["study_sessions"] == 1
    assert summary["elo"] == 1516
    assert summary["elo_level"] == "Intermediate"
    assert summary["user"] == "local"


def test_review_rejects_out_of_range_confidence():
    result = runner.invoke(app, ["review", "deck-1", "-c", "7"])
    assert result.exit_code != 0


def test_show_after_review():
    runner.invoke(app, ["review", "deck-1", "-c", "5", "--incorrect", "-u", "ada", "-i", "2"])
    result = runner.invoke(app, ["show", "deck-1", "-u", "ada", "-i", "2", "--json"])

    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert data["summary"]["card_index"] == 2
    assert data["summary"]["phase"] == "Relearning"
    assert data["record"]["user_id"] == "ada"
    assert data["record"]["study_sessions"] == 1
    assert data["record"]["state"]["fsrs_state"]["lapses"] == 1


def test_show_missing_item():
    result = runner.invoke(app, ["show", "nope"])

    assert result.exit_code == 1
    assert "No progress for user=local item=nope card=0" in result.output


# --- Due / Next ---


def test_due_nothing():
    runner.invoke(app, ["init", "deck-1"])
    result = runner.invoke(app, ["due"])

    assert result.exit_code == 0
    assert "Nothing due." in result.stdout


def test_next_without_items():
    result = runner.invoke(app, ["next"])

    assert result.exit_code == 1
    assert "No items scheduled." in result.output


def test_next_returns_nearest_item():
    runner.invoke(app, ["init", "deck-1"])
    result = runner.invoke(app, ["next"])

    assert result.exit_code == 0
    assert "deck-1[0] (FSRS)" in result.stdout


# --- Switch ---


def test_switch_algorithm():
    runner.invoke(app, ["init", "deck-1"])
    result = runner.invoke(app, ["switch", "deck-1", "sm2"])

    assert result.exit_code == 0
    assert "deck-1[0] now uses SM-2." in result.stdout

    shown = json.loads(runner.invoke(app, ["show", "deck-1", "--json"]).stdout)
    assert shown["record"]["algorithm"] == "SM-2"
    # FSRS state survives the switch
    assert shown["record"]["state"]["fsrs_state"] is not None


def test_switch_missing_item():
    result = runner.invoke(app, ["switch", "nope", "SM-2"])
    assert result.exit_code == 1


# --- ELO ---


def test_elo_command():
    result = runner.invoke(app, ["elo", "1500", "-c", "3"])

    assert result.exit_code == 0
    assert "1500 -> 1516 (Intermediate)" in result.stdout


def test_elo_command_dynamic():
    result = runner.invoke(app, ["elo", "1100", "-c", "3", "--dynamic"])
    assert "1100 -> 1124 (Novice)" in result.stdout


def test_elo_command_incorrect_with_k_factor():
    result = runner.invoke(app, ["elo", "1500", "-c", "3", "--incorrect", "--k-factor", "64"])
    assert "1500 -> 1468 (Intermediate)" in result.stdout


# --- Server ---


@patch("uvicorn.run")
def test_server_command(mock_run):
    result = runner.invoke(app, ["serve", "--port", "9000"])

    assert result.exit_code == 0
    mock_run.assert_called_once_with(
        "cadence.server:app", host="127.0.0.1", port=9000, reload=False
    )


# --- Config ---


def test_config_show_command(isolated_store):
    result = runner.invoke(app, ["config", "show"])

    assert result.exit_code == 0
    output_data = json.loads(result.stdout)
    assert output_data["default_algorithm"] == "FSRS"
    assert output_data["store_path"] == str(isolated_store)
    assert output_data["store_backend"] == "json"
