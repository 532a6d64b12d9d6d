from loanbook.cli import main


class TestCli:
    def test_schedule(self, capsys):
        assert main(["500000", "9", "60", "--start", "2025-02-01"]) == 0
        out = capsys.readouterr().out
        assert "10,379" in out
        assert "2025-02-01" in out
        assert "2029-12-01" in out  # 60th installment

    def test_yearly(self, capsys):
        assert main(["500000", "9", "60", "--start", "2025-02-01", "--yearly"]) == 0
        out = capsys.readouterr().out
        assert "Year" in out
        assert "2025-02-01" not in out

    def test_invalid_tenure(self, capsys):
        assert main(["500000", "9", "0"]) == 1
        assert "Tenure" in capsys.readouterr().err
