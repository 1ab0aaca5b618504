"""
Tests for the drift check script (scripts/check_drift.py).

Covers the exit-code contract (0 quiet, 1 alerting, 2 invalid input),
JSON output, alert persistence and history mode.
"""
import importlib.util
import json
import sys
from pathlib import Path

import pytest

from brand_drift.config import get_default_config


SCRIPT_PATH = Path(__file__).parent.parent / "scripts" / "check_drift.py"

GOOD = "Acme is a good choice"
TERRIBLE = "Acme is a terrible choice"
QUIET_PREVIOUS = "Acme sells CRM software"
QUIET_CURRENT = "Acme sells CRM software."


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def check_drift(monkeypatch):
    """Load the script as a module with logging and .env loading stubbed out."""
    for name in (
        "DRIFT_MENTION_WINDOW",
        "DRIFT_NORMALIZE_MENTIONS",
        "DRIFT_MAX_CONTENT_LENGTH",
        "DRIFT_SENTIMENT_BACKEND",
    ):
        monkeypatch.delenv(name, raising=False)

    spec = importlib.util.spec_from_file_location("check_drift", SCRIPT_PATH)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)

    monkeypatch.setattr(module, "setup_logging", lambda verbose=False: None)
    monkeypatch.setattr(module, "load_dotenv", lambda *args, **kwargs: None)
    get_default_config.cache_clear()
    yield module
    get_default_config.cache_clear()


def write_answer(directory: Path, name: str, content: str) -> str:
    path = directory / name
    path.write_text(content, encoding="utf-8")
    return str(path)


def run_main(module, monkeypatch, *args: str) -> int:
    monkeypatch.setattr(sys, "argv", ["check_drift.py", *args])
    return module.main()


# =============================================================================
# Test Pair Mode
# =============================================================================


class TestPairMode:
    """Test comparing two answer files."""

    def test_quiet_result_exits_0(self, check_drift, monkeypatch, tmp_path, capsys):
        previous = write_answer(tmp_path, "prev.txt", QUIET_PREVIOUS)
        current = write_answer(tmp_path, "curr.txt", QUIET_CURRENT)

        code = run_main(check_drift, monkeypatch, previous, current, "--brand", "Acme")

        assert code == check_drift.EXIT_OK == 0
        assert "Drift Score:" in capsys.readouterr().out

    def test_alerting_result_exits_1(self, check_drift, monkeypatch, tmp_path):
        previous = write_answer(tmp_path, "prev.txt", GOOD)
        current = write_answer(tmp_path, "curr.txt", TERRIBLE)

        code = run_main(check_drift, monkeypatch, previous, current, "--brand", "Acme")

        assert code == check_drift.EXIT_ALERT == 1

    def test_json_output_carries_alert_decision(self, check_drift, monkeypatch, tmp_path, capsys):
        previous = write_answer(tmp_path, "prev.txt", GOOD)
        current = write_answer(tmp_path, "curr.txt", TERRIBLE)

        run_main(check_drift, monkeypatch, previous, current, "--brand", "Acme", "--json")
        data = json.loads(capsys.readouterr().out)

        assert data["shouldAlert"] is True
        assert data["driftScore"] == 58
        assert data["changes"]["sentimentChanged"] is True

    def test_alert_written_to_store(self, check_drift, monkeypatch, tmp_path):
        previous = write_answer(tmp_path, "prev.txt", GOOD)
        current = write_answer(tmp_path, "curr.txt", TERRIBLE)
        store_path = tmp_path / "alerts.jsonl"

        run_main(
            check_drift, monkeypatch, previous, current,
            "--brand", "Acme", "--store", str(store_path),
            "--prompt-id", "best-crm", "--provider", "openai",
        )

        [line] = store_path.read_text(encoding="utf-8").splitlines()
        record = json.loads(line)
        assert record["brand_name"] == "Acme"
        assert record["prompt_id"] == "best-crm"
        assert record["provider"] == "openai"
        assert record["drift_score"] == 58

    def test_quiet_result_not_stored(self, check_drift, monkeypatch, tmp_path):
        previous = write_answer(tmp_path, "prev.txt", QUIET_PREVIOUS)
        current = write_answer(tmp_path, "curr.txt", QUIET_CURRENT)
        store_path = tmp_path / "alerts.jsonl"

        code = run_main(
            check_drift, monkeypatch, previous, current,
            "--brand", "Acme", "--store", str(store_path),
        )

        assert code == 0
        assert not store_path.exists()


# =============================================================================
# Test Invalid Input
# =============================================================================


class TestInvalidInput:
    """Test exit code 2 paths."""

    def test_missing_file(self, check_drift, monkeypatch, tmp_path, capsys):
        previous = write_answer(tmp_path, "prev.txt", GOOD)

        code = run_main(
            check_drift, monkeypatch, previous, str(tmp_path / "missing.txt"), "--brand", "Acme"
        )

        assert code == check_drift.EXIT_INVALID == 2
        assert "Failed to read answers" in capsys.readouterr().err

    def test_blank_brand(self, check_drift, monkeypatch, tmp_path):
        previous = write_answer(tmp_path, "prev.txt", GOOD)
        current = write_answer(tmp_path, "curr.txt", TERRIBLE)

        assert run_main(check_drift, monkeypatch, previous, current, "--brand", "  ") == 2

    def test_bad_environment_setting(self, check_drift, monkeypatch, tmp_path, capsys):
        """A malformed DRIFT_* variable is reported, not raised."""
        previous = write_answer(tmp_path, "prev.txt", GOOD)
        current = write_answer(tmp_path, "curr.txt", TERRIBLE)
        monkeypatch.setenv("DRIFT_MENTION_WINDOW", "wide")

        code = run_main(check_drift, monkeypatch, previous, current, "--brand", "Acme")

        assert code == 2
        assert "DRIFT_MENTION_WINDOW" in capsys.readouterr().err

    def test_content_over_limit(self, check_drift, monkeypatch, tmp_path):
        previous = write_answer(tmp_path, "prev.txt", "a" * 30)
        current = write_answer(tmp_path, "curr.txt", "b" * 30)
        monkeypatch.setenv("DRIFT_MAX_CONTENT_LENGTH", "10")

        assert run_main(check_drift, monkeypatch, previous, current, "--brand", "Acme") == 2

    def test_no_inputs_is_usage_error(self, check_drift, monkeypatch):
        with pytest.raises(SystemExit) as exc_info:
            run_main(check_drift, monkeypatch, "--brand", "Acme")
        assert exc_info.value.code == 2


# =============================================================================
# Test History Mode
# =============================================================================


class TestHistoryMode:
    """Test comparing a directory of answers."""

    @pytest.fixture
    def history_dir(self, tmp_path):
        directory = tmp_path / "answers"
        directory.mkdir()
        # Written out of order; filename order decides the sequence
        write_answer(directory, "03.txt", TERRIBLE)
        write_answer(directory, "01.txt", GOOD)
        write_answer(directory, "02.txt", TERRIBLE)
        return directory

    def test_text_report(self, check_drift, monkeypatch, history_dir, capsys):
        code = run_main(check_drift, monkeypatch, "--history", str(history_dir), "--brand", "Acme")
        out = capsys.readouterr().out

        assert code == 1
        assert "LLM ANSWER DRIFT: Acme" in out
        assert "1 of 2 comparison(s) drifted" in out

    def test_filename_order(self, check_drift, monkeypatch, history_dir, capsys):
        run_main(
            check_drift, monkeypatch, "--history", str(history_dir), "--brand", "Acme", "--json"
        )
        data = json.loads(capsys.readouterr().out)

        assert [r["drift_score"] for r in data["results"]] == [58, 0]
        assert data["significance"] == "medium"

    def test_quiet_history_exits_0(self, check_drift, monkeypatch, tmp_path):
        directory = tmp_path / "answers"
        directory.mkdir()
        write_answer(directory, "01.txt", GOOD)
        write_answer(directory, "02.txt", GOOD)

        assert run_main(
            check_drift, monkeypatch, "--history", str(directory), "--brand", "Acme"
        ) == 0
