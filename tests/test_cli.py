from pathlib import Path

from typer.testing import CliRunner

from conftest import REPORT_TEMPLATE, write_files
from vaultcheck.cli import app

runner = CliRunner()


def _vault(temp_vault: Path) -> Path:
    write_files(
        temp_vault,
        {
            "A.md": "# A\n[[B]] [[A#Missing heading]]\n",
            "images/orphan.png": b"png",
        },
    )
    return temp_vault


def test_check_updates_report(temp_vault, monkeypatch):
    monkeypatch.chdir(temp_vault)
    vault = _vault(temp_vault)

    result = runner.invoke(app, ["check", "--vault", str(vault), "--today", "2024-05-15"])
    assert result.exit_code == 0, result.output
    assert "Updated" in result.output

    content = (vault / "assets/no-sync/missing.md").read_text(encoding="utf-8")
    assert "| [A.md](A.md) | B |" in content
    assert "| [A.md](A.md) | #Missing heading | A.md |" in content
    assert "- [images/orphan.png](images/orphan.png)" in content

    result = runner.invoke(app, ["check", "--vault", str(vault), "--today", "2024-05-15"])
    assert result.exit_code == 0, result.output
    assert "already up to date" in result.output


def test_check_dry_run_prints_report(temp_vault, monkeypatch):
    monkeypatch.chdir(temp_vault)
    vault = _vault(temp_vault)

    result = runner.invoke(app, ["check", "--vault", str(vault), "--dry-run"])
    assert result.exit_code == 0, result.output
    assert "## Missing reference" in result.output
    assert (vault / "assets/no-sync/missing.md").read_text(encoding="utf-8") == REPORT_TEMPLATE


def test_check_fails_without_report_document(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    write_files(tmp_path, {"A.md": "[[B]]\n"})
    result = runner.invoke(app, ["check", "--vault", str(tmp_path)])
    assert result.exit_code == 1
    assert "not found" in result.output


def test_check_rejects_bad_today(temp_vault, monkeypatch):
    monkeypatch.chdir(temp_vault)
    result = runner.invoke(app, ["check", "--vault", str(temp_vault), "--today", "15/05/2024"])
    assert result.exit_code == 1


def test_show_prints_findings(temp_vault, monkeypatch):
    monkeypatch.chdir(temp_vault)
    vault = _vault(temp_vault)
    result = runner.invoke(app, ["show", "--vault", str(vault)])
    assert result.exit_code == 0, result.output
    assert "Missing reference" in result.output
    assert "orphan.png" in result.output
    assert (vault / "assets/no-sync/missing.md").read_text(encoding="utf-8") == REPORT_TEMPLATE


def test_version():
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert "vaultcheck v" in result.output
