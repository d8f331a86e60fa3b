import json

import pytest
from typer.testing import CliRunner

import main

runner = CliRunner()


@pytest.fixture
def session_file(tmp_path, session):
    path = tmp_path / "session.json"
    path.write_text(json.dumps(session.model_dump()), encoding="utf-8")
    return path


@pytest.fixture
def use_client(monkeypatch):
    def _use(client):
        monkeypatch.setattr(main, "LanguageModelClient", lambda **kwargs: client)

    return _use


def test_generate_note_writes_export(session_file, tmp_path, use_client, make_client):
    use_client(make_client(note="Generated."))
    out = tmp_path / "out"

    result = runner.invoke(
        main.app, ["generate-note", "--session-path", str(session_file), "--format", "txt", "--output-dir", str(out)]
    )

    assert result.exit_code == 0, result.output
    written = out / "RBT_Note_Jordan_K__2024-01-05.txt"
    assert written.read_text(encoding="utf-8").endswith("\n\nGenerated.")


def test_invalid_session_exits_before_generation(tmp_path, session, use_client, make_client):
    client = make_client()
    use_client(client)
    session.end_time = "09:00"
    path = tmp_path / "session.json"
    path.write_text(json.dumps(session.model_dump()), encoding="utf-8")

    result = runner.invoke(main.app, ["generate-note", "--session-path", str(path), "--output-dir", str(tmp_path)])

    assert result.exit_code == 2
    assert client.calls == []


def test_generation_failure_writes_failure_file(session_file, tmp_path, use_client, make_client):
    use_client(make_client(note_error=ConnectionError("down")))

    result = runner.invoke(
        main.app, ["generate-note", "--session-path", str(session_file), "--output-dir", str(tmp_path)]
    )

    assert result.exit_code == 1
    assert (tmp_path / "note_failure.txt").exists()


def test_unknown_format_is_rejected(session_file, use_client, make_client):
    use_client(make_client())
    result = runner.invoke(main.app, ["generate-note", "--session-path", str(session_file), "--format", "rtf"])
    assert result.exit_code != 0


def test_slashed_date_stays_inside_output_dir(tmp_path, session, use_client, make_client):
    use_client(make_client(note="Generated."))
    session.session_date = "01/05/2024"
    path = tmp_path / "session.json"
    path.write_text(json.dumps(session.model_dump()), encoding="utf-8")
    out = tmp_path / "out"

    result = runner.invoke(
        main.app, ["generate-note", "--session-path", str(path), "--format", "txt", "--output-dir", str(out)]
    )

    assert result.exit_code == 0, result.output
    assert [p.name for p in out.iterdir()] == ["RBT_Note_Jordan_K__01_05_2024.txt"]
