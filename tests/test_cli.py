"""Tests for the snapshotlink command line."""

import zipfile

import pytest

from snapshotlink import cli


@pytest.fixture(autouse=True)
def no_logging_setup(monkeypatch):
    monkeypatch.setattr(cli, "setup_logging", lambda level="INFO": None)


@pytest.fixture
def properties(tmp_path, upload_dir):
    path = tmp_path / "analysis.properties"
    path.write_text(
        "customerId=acme\n"
        "projectId=billing\n"
        f"uploadDirectory={upload_dir}\n"
        "languages=java\n"
        "java.fileFilter.includeFilesWithName=*.java\n",
        encoding="utf-8",
    )
    return path


def run(argv):
    with pytest.raises(SystemExit) as excinfo:
        cli.main(argv)
    return excinfo.value.code


class TestPackageCommand:
    """snapshotlink package"""

    def test_creates_archive_and_marker(self, workspace, files, properties, upload_dir, capsys):
        files(workspace, {"src/Main.java": "class Main {}", "README.md": "# hi"})

        code = run(["package", str(workspace), "-p", str(properties), "--no-progress"])

        assert code == 0
        archives = list(upload_dir.glob("acme.billing.*.zip"))
        assert len(archives) == 1
        assert (upload_dir / (archives[0].name + ".DONE")).exists()
        with zipfile.ZipFile(archives[0]) as archive:
            assert archive.namelist() == ["src/Main.java"]
        assert "Success" in capsys.readouterr().out

    def test_upload_dir_override(self, workspace, files, properties, tmp_path):
        files(workspace, {"src/Main.java": "class Main {}"})
        other = tmp_path / "other"
        other.mkdir()

        code = run(
            ["package", str(workspace), "-p", str(properties), "-u", str(other), "--no-progress"]
        )

        assert code == 0
        assert len(list(other.glob("*.zip.DONE"))) == 1

    def test_failure_exits_nonzero(self, workspace, properties, tmp_path, capsys):
        code = run(
            [
                "package",
                str(workspace),
                "-p",
                str(properties),
                "-u",
                str(tmp_path / "missing"),
                "--no-progress",
            ]
        )
        assert code == 1
        assert "DestinationNotReady" in capsys.readouterr().err

    def test_bad_properties_exits_nonzero(self, workspace, tmp_path):
        code = run(["package", str(workspace), "-p", str(tmp_path / "nope.properties")])
        assert code == 1


class TestCheckCommand:
    """snapshotlink check"""

    def test_valid_setup(self, properties, capsys):
        assert run(["check", "-p", str(properties)]) == 0
        out = capsys.readouterr().out
        assert "customer acme" in out
        assert "Languages: java" in out

    def test_missing_upload_dir(self, properties, tmp_path, capsys):
        assert run(["check", "-p", str(properties), "-u", str(tmp_path / "missing")]) == 1
        assert "does not exist" in capsys.readouterr().err
