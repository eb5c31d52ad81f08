"""
Tests for the command line entry point.
"""

import json
import pytest

from payer_points.cli import main


TRANSACTIONS = """payer,points,timestamp
DANNON,1000,2020-11-02T14:00:00Z
UNILEVER,200,2020-10-31T11:00:00Z
DANNON,-200,2020-10-31T15:00:00Z
MILLER COORS,10000,2020-11-01T14:00:00Z
DANNON,300,2020-10-31T10:00:00Z
"""


@pytest.fixture
def transaction_file(tmp_path):
    path = tmp_path / "transactions.csv"
    path.write_text(TRANSACTIONS)
    return path


class TestCommandLine:
    """Tests for `payer-points <points> <file>`."""

    def test_prints_final_balances(self, transaction_file, capsys):
        """Test a successful spend prints the balances as JSON."""
        exit_code = main(["5000", str(transaction_file)])

        out = capsys.readouterr().out
        assert exit_code == 0
        assert json.loads(out) == {"DANNON": 1000, "MILLER COORS": 5300, "UNILEVER": 0}

    def test_trailing_arguments_ignored(self, transaction_file, capsys):
        """Test that extra arguments do not change the result."""
        exit_code = main(["0", str(transaction_file), "extra", "args"])

        assert exit_code == 0
        assert json.loads(capsys.readouterr().out)["DANNON"] == 1100

    def test_non_integer_points(self, transaction_file, capsys):
        """Test that a non-integer spend is reported and fails."""
        exit_code = main(["many", str(transaction_file)])

        captured = capsys.readouterr()
        assert exit_code == 1
        assert "many" in captured.err
        assert captured.out == ""

    def test_missing_file(self, tmp_path, capsys):
        """Test that an unreadable transaction file fails."""
        exit_code = main(["10", str(tmp_path / "missing.csv")])

        assert exit_code == 1
        assert "Failed to open file" in capsys.readouterr().err

    def test_overspend_produces_no_output(self, transaction_file, capsys):
        """Test that an insolvent spend prints nothing to stdout."""
        exit_code = main(["11301", str(transaction_file)])

        captured = capsys.readouterr()
        assert exit_code == 1
        assert captured.out == ""
        assert "Invalid operation" in captured.err

    def test_negative_points(self, transaction_file, capsys):
        """Test that a negative spend is refused."""
        exit_code = main(["-5", str(transaction_file)])

        assert exit_code == 1
        assert capsys.readouterr().out == ""

    def test_unknown_log_level(self, transaction_file, capsys):
        """Test that a bad --log-level fails cleanly."""
        exit_code = main(["0", str(transaction_file), "--log-level", "chatty"])

        captured = capsys.readouterr()
        assert exit_code == 1
        assert "Unknown log level: CHATTY" in captured.err
        assert captured.out == ""

    def test_unknown_log_level_from_environment(self, transaction_file, capsys, monkeypatch):
        """Test that a bad POINTS_LOG_LEVEL fails cleanly."""
        monkeypatch.setenv("POINTS_LOG_LEVEL", "loud")

        assert main(["0", str(transaction_file)]) == 1
        assert "Unknown log level: LOUD" in capsys.readouterr().err

    def test_strict_flag(self, tmp_path, capsys):
        """Test that --strict turns a malformed record into a failure."""
        path = tmp_path / "bad.csv"
        path.write_text("payer,points,timestamp\nDANNON,abc,2020-11-02T14:00:00Z\n")

        assert main(["0", str(path)]) == 0
        capsys.readouterr()
        assert main(["0", str(path), "--strict"]) == 1
        assert "line 2" in capsys.readouterr().err


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
