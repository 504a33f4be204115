# tests/core/test_generation.py
import re
from unittest.mock import MagicMock

import pytest

from ontogen.core.domain.constraints import FALSE
from ontogen.core.domain.exceptions import OntologyContradictionError, SolverTimeoutError, UnsatisfiableError
from ontogen.core.generation import Generator

REPEATS = 5


@pytest.fixture
def generator_for(ontology, solver):
    """Builds a Generator for the named kind over the fixture ontology."""

    def build(noun, count=1):
        kind = ontology.find_kind([noun])
        assert kind is not None, f"unknown kind {noun}"
        return Generator(ontology, solver, kind, count=count)

    return build


class TestTaxonomy:
    def test_subtype_closure(self, declare, generator_for):
        """
        Scenario: tabby < cat < animal, and a tabby is imagined.
        Expected: Every solve makes the tabby a cat and an animal.
        """
        # Arrange
        ontology = declare("a cat is a kind of animal", "a tabby is a kind of cat")
        generator = generator_for("tabby", count=3)

        for _ in range(REPEATS):
            # Act
            invention = generator.solve()

            # Assert
            for individual in invention.ephemeral_individuals:
                for name in ("tabby", "cat", "animal"):
                    assert invention.is_a(individual, ontology.find_kind([name]))

    def test_exactly_one_subkind(self, declare, generator_for):
        ontology = declare("cats and dogs are kinds of animal")
        cat, dog = ontology.find_kind(["cat"]), ontology.find_kind(["dog"])

        invention = generator_for("animal", count=6).solve()

        for individual in invention.ephemeral_individuals:
            assert invention.is_a(individual, cat) != invention.is_a(individual, dog)

    def test_unrelated_kind_is_constant_false(self, declare, generator_for):
        ontology = declare("a cat is a kind of animal", "a rock is a kind of thing")
        generator = generator_for("cat")
        individual = generator.ephemeral_individuals[0]

        assert generator.is_a(individual, ontology.find_kind(["rock"])) is FALSE
        assert not generator.solve().is_a(individual, ontology.find_kind(["rock"]))

    def test_kind_of_person_with_optional_adjective(self, declare, generator_for):
        """
        Scenario: "a cat is a kind of person", "cats can be fuzzy", "imagine a cat".
        Expected: The cat is always a person; fuzzy is left to the solver.
        """
        ontology = declare("a cat is a kind of person", "cats can be fuzzy")
        person = ontology.find_kind(["person"])
        generator = generator_for("cat")

        for _ in range(REPEATS):
            invention = generator.solve()
            the_cat = invention.ephemeral_individuals[0]
            assert invention.is_a(the_cat, person)
            assert the_cat.text == "the cat"

    def test_permanent_individuals_join_every_problem(self, declare, generator_for):
        ontology = declare("Ben is a person", "cats are fuzzy")
        ben = ontology.find_noun(["Ben"]).individual

        generator = generator_for("cat")

        assert ben in generator.individuals
        assert ben not in generator.ephemeral_individuals


class TestAdjectives:
    def test_implied_adjective_always_holds(self, declare, generator_for):
        ontology = declare("cats are fuzzy")
        fuzzy = ontology.find_adjective(["fuzzy"])
        generator = generator_for("cat", count=4)

        for _ in range(REPEATS):
            invention = generator.solve()
            assert invention is not None
            assert all(invention.is_a(i, fuzzy) for i in invention.ephemeral_individuals)

    def test_required_choice_is_exclusive(self, declare, generator_for):
        """
        Scenario: "cats are big or small".
        Expected: Each cat is exactly one of big and small, never both, never neither.
        """
        ontology = declare("cats are big or small")
        big, small = ontology.find_adjective(["big"]), ontology.find_adjective(["small"])
        generator = generator_for("cat", count=5)

        for _ in range(REPEATS):
            invention = generator.solve()
            for individual in invention.ephemeral_individuals:
                assert invention.is_a(individual, big) != invention.is_a(individual, small)

    def test_any_two_of_four(self, declare, generator_for):
        ontology = declare("cats are any 2 of big, fuzzy, striped or grumpy")
        adjectives = [ontology.find_adjective([a]) for a in ("big", "fuzzy", "striped", "grumpy")]

        invention = generator_for("cat", count=3).solve()

        for individual in invention.ephemeral_individuals:
            assert sum(invention.is_a(individual, a) for a in adjectives) == 2

    def test_contradictory_adjectives_find_nothing(self, declare, generator_for):
        declare("cats are fuzzy", "cats are not fuzzy")

        assert generator_for("cat").solve(retries=3) is None


class TestRelations:
    def test_exactly_one(self, declare, generator_for):
        """
        Scenario: "cats must love exactly one cat" and four cats are imagined.
        Expected: Every cat loves exactly one cat in every solve.
        """
        ontology = declare("cats must love exactly one cat")
        love = ontology.find_verb(["love"])
        generator = generator_for("cat", count=4)

        for _ in range(REPEATS):
            invention = generator.solve()
            cats = invention.ephemeral_individuals
            for subject in cats:
                assert sum(invention.holds(love, subject, obj) for obj in cats) == 1

    def test_unmeetable_lower_bound_is_a_contradiction(self, declare, generator_for):
        declare("cats must love at least 3 cats")

        with pytest.raises(OntologyContradictionError) as excinfo:
            generator_for("cat", count=2)

        assert "only 2 total cats" in str(excinfo.value)

    def test_anti_reflexive(self, declare, generator_for):
        ontology = declare("people cannot love themselves", "people must love one person")
        love = ontology.find_verb(["love"])
        generator = generator_for("person", count=3)

        for _ in range(REPEATS):
            invention = generator.solve()
            for individual in invention.ephemeral_individuals:
                assert not invention.holds(love, individual, individual)

    def test_symmetric_propositions_are_shared(self, declare, generator_for):
        """
        Scenario: "people can love each other".
        Expected: holds(a, b) and holds(b, a) are one solver object.
        """
        ontology = declare("people can love each other")
        love = ontology.find_verb(["love"])
        generator = generator_for("person", count=3)
        people = generator.ephemeral_individuals

        for a in people:
            for b in people:
                assert generator.holds(love, a, b) is generator.holds(love, b, a)

        invention = generator.solve()
        assert all(
            invention.holds(love, a, b) == invention.holds(love, b, a) for a in people for b in people
        )

    def test_mutual_exclusion(self, declare, generator_for):
        ontology = declare(
            "cats can love other cats",
            "cats can hate other cats",
            "loving and hating are mutually exclusive",
        )
        love, hate = ontology.find_verb(["love"]), ontology.find_verb(["hate"])
        generator = generator_for("cat", count=3)

        for _ in range(REPEATS):
            invention = generator.solve()
            for a in invention.ephemeral_individuals:
                for b in invention.ephemeral_individuals:
                    assert not (invention.holds(love, a, b) and invention.holds(hate, a, b))

    def test_way_of_implies_general_verb(self, declare, generator_for):
        ontology = declare(
            "cats can love other cats",
            "cats can adore other cats",
            "adoring is a way of loving",
        )
        love, adore = ontology.find_verb(["love"]), ontology.find_verb(["adore"])
        generator = generator_for("cat", count=3)

        invention = generator.solve()
        for a in invention.ephemeral_individuals:
            for b in invention.ephemeral_individuals:
                if a is not b and invention.holds(adore, a, b):
                    assert invention.holds(love, a, b)
                if a is not b and invention.holds(love, a, b):
                    assert invention.holds(adore, a, b)


class TestResolve:
    def test_rebuild_keeps_every_constraint(self, declare, generator_for):
        """
        Scenario: The same generator is rebuilt and solved repeatedly.
        Expected: Every model still satisfies the cardinality and adjective constraints.
        """
        ontology = declare("cats are fuzzy", "cats must love exactly one cat")
        fuzzy, love = ontology.find_adjective(["fuzzy"]), ontology.find_verb(["love"])
        generator = generator_for("cat", count=3)

        for _ in range(REPEATS):
            generator.rebuild()
            invention = generator.solve()
            cats = invention.ephemeral_individuals
            assert all(invention.is_a(c, fuzzy) for c in cats)
            assert all(sum(invention.holds(love, s, o) for o in cats) == 1 for s in cats)


class TestSolveRetries:
    @pytest.fixture
    def timing_out(self, declare, generator_for, monkeypatch):
        """A cat generator whose problem is replaced by a mock; returns (generator, problem, real solution)."""
        declare("cats are fuzzy")
        generator = generator_for("cat")
        solution = generator.problem.solve()
        problem = MagicMock()
        monkeypatch.setattr(generator, "problem", problem)
        return generator, problem, solution

    def test_retries_after_timeouts(self, timing_out):
        """
        Scenario: The solver times out twice, then finds a model.
        Expected: The third attempt's model is returned.
        """
        # Arrange
        generator, problem, solution = timing_out
        problem.solve.side_effect = [SolverTimeoutError(5), SolverTimeoutError(5), solution]

        # Act
        invention = generator.solve(retries=10)

        # Assert
        assert invention is not None
        assert invention.model is solution
        assert problem.solve.call_count == 3

    def test_gives_up_after_the_last_retry(self, timing_out):
        generator, problem, _ = timing_out
        problem.solve.side_effect = SolverTimeoutError(5)

        assert generator.solve(retries=4) is None
        assert problem.solve.call_count == 4

    def test_unsatisfiable_is_not_retried(self, timing_out):
        generator, problem, _ = timing_out
        problem.solve.side_effect = UnsatisfiableError()

        assert generator.solve(retries=4) is None
        assert problem.solve.call_count == 1


class TestDescriptions:
    def test_default_description(self, declare, generator_for):
        declare("cats are fuzzy")

        invention = generator_for("cat").solve()

        assert invention.descriptions() == ["the cat is a fuzzy cat"]

    def test_article_before_vowel(self, declare, generator_for):
        declare("cats are orange")

        assert generator_for("cat").solve().descriptions() == ["the cat is an orange cat"]

    def test_article_before_a_yu_sound(self, declare, generator_for):
        declare("cats are unique")

        assert generator_for("cat").solve().descriptions() == ["the cat is a unique cat"]

    def test_hyphen_in_description_template(self, declare, generator_for):
        """
        Scenario: A description template contains the hyphenated word "well-known".
        Expected: The hyphen is rendered without surrounding spaces.
        """
        # Arrange
        declare('cats are described as "[NameString] is a well-known [Noun]"')

        # Act
        [line] = generator_for("cat").solve().descriptions()

        # Assert
        assert line == "the cat is a well-known cat"

    def test_hyphen_in_name_template(self, declare, generator_for):
        declare('cats are identified as "the well-known cat"')

        assert generator_for("cat").solve().descriptions() == ["the well-known cat is a cat"]

    def test_numeric_property_is_rendered_as_integer(self, declare, generator_for):
        """
        Scenario: "cats have an age between 1 and 20", "imagine a cat".
        Expected: The rendered age is an integer in [1, 20] on every solve.
        """
        declare("cats have an age between 1 and 20")
        generator = generator_for("cat")

        for _ in range(REPEATS):
            [line] = generator.solve().descriptions()
            match = re.fullmatch(r"the cat is a cat, age: (\d+)", line)
            assert match is not None, line
            assert 1 <= int(match.group(1)) <= 20

    def test_name_from_menu(self, declare, generator_for, project_dir):
        (project_dir / "names.txt").write_text("Tom\nFelix\n", encoding="utf-8")
        declare("cats have a name from names")

        [line] = generator_for("cat").solve().descriptions()

        assert line in ("Tom is a cat", "Felix is a cat")

    def test_parts_are_described_after_their_container(self, declare, generator_for):
        declare("cats have a tail called its tail")

        invention = generator_for("cat").solve()

        assert invention.descriptions() == ["the cat is a cat", "the cat's tail is a tail"]

    def test_description_template(self, declare, generator_for):
        declare('cats are described as "[NameString], a [Noun]"')

        assert generator_for("cat").solve().descriptions() == ["the cat, a cat"]

    def test_unknown_template_property(self, declare, generator_for):
        declare('cats are described as "[NameString] with [whiskers]"')

        [line] = generator_for("cat").solve().descriptions()

        assert line == "the cat with <unknown property whiskers>"

    def test_silent_adjective_is_not_mentioned(self, declare, generator_for):
        declare("cats are fuzzy", "do not mention being fuzzy")

        assert generator_for("cat").solve().descriptions() == ["the cat is a cat"]

    def test_relationship_sentences(self, declare, generator_for):
        ontology = declare("cats must love exactly one cat", "cats cannot love themselves")
        generator = generator_for("cat", count=2)

        invention = generator.solve()

        assert sorted(invention.describe_relationship(*r) for r in invention.relationships()) == [
            "cat 0 loves cat 1",
            "cat 1 loves cat 0",
        ]
        assert ontology.find_verb(["love"]).is_anti_reflexive
