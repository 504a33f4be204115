# tests/adapters/test_cli.py
import io

import pytest

from ontogen import cli


@pytest.fixture
def cli_session(monkeypatch, session):
    """Makes `main` use the fixture session instead of the container's."""
    monkeypatch.setattr(cli, "build_session", lambda project=None: session)
    return session


class TestRunScript:
    def test_runs_every_statement(self, session, tmp_path):
        """
        Scenario: A script declares fuzzy cats, has a comment line, then imagines a cat.
        Expected: Each statement is echoed with its responses; exit code 0.
        """
        # Arrange
        script = tmp_path / "cats.txt"
        script.write_text("# a comment\ncats are fuzzy\n\nimagine a cat\n", encoding="utf-8")
        out = io.StringIO()

        # Act
        code = cli.run_script(session, script, out)

        # Assert
        assert code == 0
        lines = out.getvalue().splitlines()
        assert lines == [
            "> cats are fuzzy",
            "Learned the new common noun cat.",
            "> imagine a cat",
            "the cat is a fuzzy cat",
        ]

    def test_rejected_statement_sets_exit_code(self, session, tmp_path):
        script = tmp_path / "bad.txt"
        script.write_text("cats should maybe\n", encoding="utf-8")
        out = io.StringIO()

        code = cli.run_script(session, script, out)

        assert code == 1
        assert "Perhaps you meant one of:" in out.getvalue()
        assert "    Subject should exist/not exist" in out.getvalue().splitlines()

    def test_missing_script(self, session, tmp_path):
        out = io.StringIO()

        assert cli.run_script(session, tmp_path / "nowhere.txt", out) == 1
        assert "No such file" in out.getvalue()


class TestRepl:
    def test_reads_until_quit(self, session):
        stdin = io.StringIO("cats are fuzzy\nimagine a cat\nquit\nimagine a dog\n")
        out = io.StringIO()

        code = cli.repl(session, [], stdin=stdin, out=out)

        assert code == 0
        output = out.getvalue()
        assert "the cat is a fuzzy cat" in output
        assert "dog" not in output

    def test_loads_definition_files_first(self, session, project_dir):
        # Arrange
        (project_dir / "pets.gen").write_text("cats are fuzzy\n", encoding="utf-8")
        stdin = io.StringIO("imagine a cat\n")
        out = io.StringIO()

        # Act
        cli.repl(session, ["pets.gen"], stdin=stdin, out=out)

        # Assert
        assert session.loaded_files == ["pets"]
        assert "the cat is a fuzzy cat" in out.getvalue()

    def test_missing_definition_file(self, session):
        out = io.StringIO()

        code = cli.repl(session, ["nowhere"], stdin=io.StringIO(""), out=out)

        assert code == 1
        assert "nowhere" in out.getvalue()


class TestMain:
    def test_no_command_prints_help(self, capsys):
        assert cli.main([]) == 2
        assert "usage: ontogen" in capsys.readouterr().out

    def test_run_subcommand(self, cli_session, tmp_path, capsys):
        script = tmp_path / "cats.txt"
        script.write_text("cats are fuzzy\nimagine a cat\n", encoding="utf-8")

        code = cli.main(["run", str(script)])

        assert code == 0
        assert "the cat is a fuzzy cat" in capsys.readouterr().out
