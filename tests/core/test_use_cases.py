# tests/core/test_use_cases.py
from unittest.mock import MagicMock

import pytest

from ontogen.core.domain.exceptions import DefinitionFileNotFoundError
from ontogen.core.ports.solver import ISolver
from ontogen.core.use_cases import Session, Transcript, run_tests
from ontogen.core.use_cases.session import NO_PROBLEM_YET


class TestTranscript:
    def test_log_and_undo(self):
        transcript = Transcript()
        transcript.log("cats are fuzzy")
        transcript.log("cats are big")

        assert transcript.undo() == "cats are big"
        assert transcript.statements == ["cats are fuzzy"]
        assert len(transcript) == 1

    def test_undo_when_empty(self):
        assert Transcript().undo() is None


class TestExecuteStatement:
    def test_declaration_is_logged(self, session):
        """
        Scenario: A valid declaration is executed.
        Expected: It is accepted, logged, and the new noun is announced.
        """
        # Act
        result = session.execute("cats are fuzzy")

        # Assert
        assert result.accepted
        assert result.is_declaration
        assert "Learned the new common noun cat." in result.responses
        assert session.transcript.statements == ["cats are fuzzy"]

    def test_grammar_error_is_reported_not_raised(self, session):
        result = session.execute("cats should maybe")

        assert not result.accepted
        assert "Unknown sentence pattern" in result.error
        assert "Subject should exist/not exist" in result.suggestions
        assert session.transcript.statements == []

    def test_failed_declaration_leaves_no_trace(self, session):
        """
        Scenario: A declaration that starts changing the ontology then hits a contradiction.
        Expected: The statement is rejected and the ontology is rebuilt from the transcript.
        """
        # Arrange
        session.execute("a cat is a kind of animal")

        # Act
        result = session.execute("an animal is a kind of cat")

        # Assert
        assert not result.accepted
        assert result.error.startswith("Contradiction: ")
        cat = session.ontology.find_kind(["cat"])
        animal = session.ontology.find_kind(["animal"])
        assert cat.superkinds == [animal]
        assert animal.superkinds == []
        assert session.transcript.statements == ["a cat is a kind of animal"]

    def test_rejected_statement_does_not_coin_nouns(self, session):
        session.execute("dogs cannot bark at")

        assert session.ontology.find_kind(["dog"]) is None

    def test_blank_input(self, session):
        result = session.execute("   ")

        assert result.accepted
        assert result.responses == []

    def test_unexpected_errors_propagate(self, repository):
        """
        Scenario: The solver crashes with a non-domain exception.
        Expected: The exception is raised to the caller.
        """
        # Arrange
        solver = MagicMock(spec=ISolver)
        solver.new_problem.side_effect = RuntimeError("engine crash")
        session = Session(solver, repository)
        session.execute("cats are fuzzy")

        # Act & Assert
        with pytest.raises(RuntimeError):
            session.execute("imagine a cat")


class TestCommands:
    def test_imagine(self, session):
        session.execute("cats are fuzzy")

        result = session.execute("imagine a cat")

        assert result.accepted
        assert not result.is_declaration
        assert result.responses == ["the cat is a fuzzy cat"]
        assert session.transcript.statements == ["cats are fuzzy"]

    def test_noun_coined_in_the_plural_is_the_same_kind(self, session):
        """
        Scenario: "zombies are scary" coins a noun from its plural, then "imagine a zombie".
        Expected: Both statements name one kind, so the zombie is scary.
        """
        # Act
        declared = session.execute("zombies are scary")
        imagined = session.execute("imagine a zombie")

        # Assert
        assert "Learned the new common noun zombie." in declared.responses
        assert imagined.responses == ["the zombie is a scary zombie"]

    def test_imagine_plural_uses_default_count(self, session):
        session.execute("cats are fuzzy")

        result = session.execute("imagine cats")

        assert result.responses == ["cat 0 is a fuzzy cat", "cat 1 is a fuzzy cat", "cat 2 is a fuzzy cat"]

    def test_imagine_explicit_count_and_relations(self, session):
        session.execute("cats must love exactly one cat")
        session.execute("cats cannot love themselves")

        result = session.execute("imagine 2 cats")

        assert result.responses == [
            "cat 0 is a cat",
            "cat 1 is a cat",
            "cat 0 loves cat 1",
            "cat 1 loves cat 0",
        ]

    def test_imagine_contradiction(self, session):
        session.execute("cats are fuzzy")
        session.execute("cats are not fuzzy")

        result = session.execute("imagine a cat")

        assert result.accepted
        assert result.responses == ["Can't think of any - maybe there's a contradiction?"]

    def test_undo(self, session):
        """
        Scenario: A declaration is undone.
        Expected: The ontology no longer knows what it introduced.
        """
        session.execute("cats are fuzzy")
        session.execute("dogs are loud")

        result = session.execute("undo")

        assert result.responses == ["Undid dogs are loud"]
        assert session.ontology.find_kind(["dog"]) is None
        assert session.ontology.find_kind(["cat"]) is not None
        assert session.transcript.statements == ["cats are fuzzy"]

    def test_undo_nothing(self, session):
        assert session.execute("undo").responses == ["No declarations to undo."]

    def test_start_over(self, session):
        session.execute("cats are fuzzy")

        result = session.execute("start over")

        assert result.responses == ["Knowledge-base erased.  I don't know anything."]
        assert session.ontology.find_kind(["cat"]) is None
        assert len(session.transcript) == 0

    def test_save(self, session, project_dir):
        session.execute("cats are fuzzy")
        session.execute("cats can be big")

        result = session.execute("save zoo")

        saved = project_dir / "zoo.gen"
        assert result.responses == [f"Saved 2 declarations to {saved}"]
        assert saved.read_text(encoding="utf-8") == "cats are fuzzy\ncats can be big\n"

    def test_save_without_project(self, solver):
        session = Session(solver)

        result = session.execute("save zoo")

        assert not result.accepted
        assert "zoo" in result.error

    def test_load(self, session, project_dir):
        (project_dir / "pets.gen").write_text("cats are fuzzy\nthis is not a sentence\n", encoding="utf-8")

        errors = session.load("pets")

        assert len(errors) == 1
        assert session.ontology.find_kind(["cat"]) is not None
        assert session.loaded_files == ["pets"]

    def test_loaded_files_survive_rebuild(self, session, project_dir):
        (project_dir / "pets.gen").write_text("cats are fuzzy\n", encoding="utf-8")
        session.load("pets")
        session.execute("dogs are loud")

        session.execute("undo")

        assert session.ontology.find_kind(["cat"]) is not None
        assert session.ontology.find_kind(["dog"]) is None

    def test_load_missing_file(self, session):
        with pytest.raises(DefinitionFileNotFoundError):
            session.load("nowhere")

    def test_decompile_and_stats_need_a_problem(self, session):
        assert session.execute("decompile").responses == [NO_PROBLEM_YET]
        assert session.execute("stats").responses[-1] == NO_PROBLEM_YET

    def test_stats_after_imagine(self, session):
        session.execute("cats are fuzzy")
        session.execute("imagine a cat")

        responses = session.execute("stats").responses

        assert responses[0] == "1 kinds, 1 adjectives, 0 verbs"
        assert "propositions" in responses[2]

    def test_decompile_after_imagine(self, session):
        session.execute("cats are fuzzy")
        session.execute("imagine a cat")

        assert session.execute("decompile").responses

    def test_help_lists_patterns(self, session):
        responses = session.execute("help").responses

        assert any(line.startswith("imagine Object") for line in responses)
        assert any(line.startswith("Subject should exist/not exist") for line in responses)

    def test_debug_toggle(self, session):
        assert session.execute("debug").responses == ["Parse logging on."]
        assert session.execute("debug").responses == ["Parse logging off."]


class TestRunTests:
    def test_no_tests(self, session):
        assert session.execute("test").responses == ["No tests have been defined."]

    def test_passing_and_failing(self, session):
        """
        Scenario: One test expects cats, another expects no fuzzy cats, but cats are fuzzy.
        Expected: The first passes with an example, the second fails.
        """
        # Arrange
        session.execute("cats are fuzzy")
        session.execute("cats should exist")
        session.execute("fuzzy cats should not exist")

        # Act
        responses = session.execute("test").responses

        # Assert
        assert responses[0] == "1 of 2 tests failed."
        assert responses[1] == "Test succeeded: cats should exist"
        assert responses[2] == "Example: the cat is a fuzzy cat"
        assert responses[3] == "Test failed: fuzzy cats should not exist"

    def test_unsatisfiable_should_not_exist_passes(self, ontology, solver, declare):
        declare("cats are fuzzy", "cats are not fuzzy", "cats should not exist")

        runner = run_tests.TestRunner(ontology, solver, retries=3)
        stats = runner.run_all()

        assert stats.summary == "All 1 tests passed."
        assert runner.results[0].example is None
        assert runner.results[0].example_text is None

    def test_contradiction_counts_as_not_found(self, ontology, solver, declare):
        declare("cats must love at least 3 cats", "cats should exist")

        runner = run_tests.TestRunner(ontology, solver)
        stats = runner.run_all()

        assert stats.failed == 1
        assert stats.passed == 0

    def test_step_runs_one_test_at_a_time(self, ontology, solver, declare):
        declare("cats should exist", "dogs should exist")
        runner = run_tests.TestRunner(ontology, solver)

        assert runner.step() is True
        assert runner.stats.total == 1
        assert runner.step() is False
        assert runner.finished
        assert runner.step() is False
        assert runner.stats.total == 2
