# tests/cli/test_cli_report_out_dir.py
from pathlib import Path
from typer.testing import CliRunner
from gitvision.cli.app import app

runner = CliRunner()


def test_highlight_writes_into_output_directory(git_repo, tmp_path: Path):
    out_dir = tmp_path / "reports"
    out_dir.mkdir()
    r = runner.invoke(
        app,
        [
            "highlight",
            "--repo",
            str(git_repo.root),
            "-c",
            "2) C3",
            "--fmt",
            "json",
            "--out",
            str(out_dir),
        ],
    )
    assert r.exit_code == 0, r.output

    target = out_dir / "highlights.json"
    assert target.exists() and target.stat().st_size > 0
