import json
from pathlib import Path

from typer.testing import CliRunner

from jobfilter.cli.app import app

runner = CliRunner()


def _run(*args: str) -> object:
    result = runner.invoke(app, list(args))
    assert result.exit_code == 0, result.output
    return json.loads(result.stdout)


def test_cli_import_save_approve_delete(tmp_path: Path, sample_resume: str) -> None:
    assert _run("init")["ok"] is True

    resume = tmp_path / "resume.txt"
    resume.write_text(sample_resume, encoding="utf-8")
    summary = _run("imports", "parse", "--file", str(resume))
    assert [company["name"] for company in summary["companies"]] == ["Acme Inc", "Globex Corp"]
    session_id = summary["id"]

    saved = _run("imports", "save", "--session-id", session_id)
    assert len(saved["experience_ids"]) == 2

    claims = _run("claims", "list")
    assert len(claims) == 5
    assert len(_run("claims", "list", "--type", "Experience")) == 2

    assert _run("claims", "approve") == {"approved": 5}
    assert _run("claims", "list", "--review") == []

    experience_id = saved["experience_ids"][0]
    deleted = _run("claims", "delete", "--id", experience_id)
    assert deleted["deleted_ids"][0] == experience_id
    assert len(deleted["deleted_ids"]) == 3
    assert len(_run("claims", "list")) == 2

    again = runner.invoke(app, ["imports", "save", "--session-id", session_id])
    assert again.exit_code != 0


def test_cli_report_writes_file(tmp_path: Path, sample_resume: str) -> None:
    resume = tmp_path / "resume.txt"
    resume.write_text(sample_resume, encoding="utf-8")
    session_id = _run("imports", "parse", "--file", str(resume), "--mode", "bullets")["id"]

    output = tmp_path / "report.json"
    assert _run("imports", "report", "--session-id", session_id, "--output", str(output)) == {
        "written": str(output)
    }
    report = json.loads(output.read_text(encoding="utf-8"))
    assert report["session"]["requested_mode"] == "bullets"
    assert report["source"]["file_name"] == "resume.txt"
