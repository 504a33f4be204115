# tests/core/test_domain.py
import pytest

from ontogen.core.domain.concepts import Adjective, Kind, Literal
from ontogen.core.domain.exceptions import GrammaticalError, NameCollisionError, OntologyContradictionError
from ontogen.core.domain.inflection import load_inflector
from ontogen.core.domain.tokens import TokenString, tokenize, untokenize
from ontogen.core.domain.trie import TokenTrie


IRREGULAR_NOUNS = [tuple(pair) for pair in load_inflector().config["nouns"]["irregular"]]

# One word per regular rule, keyed by the rule's singular ending
REGULAR_SAMPLES = [
    ("ss", "glass", "glasses"),
    ("sh", "dish", "dishes"),
    ("ch", "church", "churches"),
    ("x", "box", "boxes"),
    ("zz", "buzz", "buzzes"),
    ("ay", "day", "days"),
    ("ey", "monkey", "monkeys"),
    ("oy", "boy", "boys"),
    ("uy", "guy", "guys"),
    ("y", "city", "cities"),
    ("", "cat", "cats"),
]


@pytest.fixture
def inflector():
    return load_inflector()


class TestTokenizer:
    def test_splits_words_digits_and_punctuation(self):
        assert tokenize("cats have an age between 1 and 20.") == [
            "cats", "have", "an", "age", "between", "1", "and", "20", ".",
        ]

    def test_keeps_case(self):
        assert tokenize("Ben is a Person") == ["Ben", "is", "a", "Person"]

    def test_apostrophe_is_its_own_token(self):
        assert tokenize("can't") == ["can", "'", "t"]

    def test_rejects_unknown_characters(self):
        with pytest.raises(GrammaticalError):
            tokenize("cats + dogs")

    def test_untokenize_attaches_punctuation(self):
        assert untokenize(["the", "cat", ",", "a", "pet", "."]) == "the cat, a pet."

    def test_token_string_ignores_case(self):
        assert TokenString(["Big", "Cat"]) == TokenString(["big", "cat"])
        assert hash(TokenString(["Big", "Cat"])) == hash(TokenString(["big", "cat"]))
        assert str(TokenString(["big", "cat"])) == "big cat"


class TestInflection:
    @pytest.mark.parametrize("singular, plural", IRREGULAR_NOUNS)
    def test_irregular_noun_round_trip(self, inflector, singular, plural):
        assert inflector.plural_of_word(singular) == plural
        assert inflector.singular_of_word(plural) == singular

    @pytest.mark.parametrize("ending, singular, plural", REGULAR_SAMPLES)
    def test_regular_noun_round_trip(self, inflector, ending, singular, plural):
        assert inflector.plural_of_word(singular) == plural
        assert inflector.singular_of_word(plural) == singular

    def test_every_regular_rule_has_a_sample(self, inflector):
        endings = [singular for singular, _ in inflector.config["nouns"]["regular"]]

        assert sorted(endings) == sorted(ending for ending, _, _ in REGULAR_SAMPLES)

    @pytest.mark.parametrize("singular", ["movie", "zombie", "cookie", "niche", "cache", "quiche"])
    def test_plural_ending_in_ies_or_ches_keeps_its_e(self, inflector, singular):
        """
        Scenario: A noun ending in -ie or -che is pluralised, then singularised.
        Expected: The final "e" survives; "movies" is not read as "movy".
        """
        assert inflector.singular_of_word(inflector.plural_of_word(singular)) == singular

    def test_plural_keeps_capitalisation(self, inflector):
        assert inflector.plural_of_word("Person") == "People"

    def test_inflects_last_token_of_noun(self, inflector):
        assert inflector.plural_of_noun(["fire", "truck"]) == ["fire", "trucks"]

    def test_appears_plural(self, inflector):
        assert inflector.noun_appears_plural(["cats"])
        assert inflector.noun_appears_plural(["people"])
        assert not inflector.noun_appears_plural(["person"])
        assert not inflector.noun_appears_plural(["octopus"])

    def test_verb_forms(self, inflector):
        assert inflector.singular_of_verb(["love"]) == ["loves"]
        assert inflector.singular_of_verb(["be", "friends", "with"]) == ["is", "friends", "with"]
        assert inflector.base_of_singular_verb(["loves"]) == ["love"]
        assert inflector.passive_participle(["love"]) == ["loved"]
        assert inflector.passive_participle(["carry"]) == ["carried"]

    def test_gerunds(self, inflector):
        assert inflector.gerund_of_verb(["love"]) == ["loving"]
        assert inflector.gerund_of_verb(["stop"]) == ["stopping"]
        assert inflector.base_of_gerund(["loving"]) == ["love"]

    @pytest.mark.parametrize(
        "word, article",
        [
            ("apple", "an"),
            ("cat", "a"),
            ("orange", "an"),
            ("user", "a"),
            ("unicorn", "a"),
            ("unique", "a"),
            ("European", "a"),
            ("one", "a"),
            ("hour", "an"),
            ("uninvited", "an"),
            ("umbrella", "an"),
        ],
    )
    def test_indefinite_article(self, inflector, word, article):
        assert inflector.indefinite_article(word) == article


class TestTokenTrie:
    def test_longest_match_wins(self):
        # Arrange
        trie = TokenTrie()
        trie.store(["fire"], "fire")
        trie.store(["fire", "truck"], "fire truck", is_plural=False)

        # Act
        match = trie.lookup(["a", "Fire", "Truck", "drives"], 1)

        # Assert
        assert match.concept == "fire truck"
        assert match.end == 3
        assert match.is_plural is False

    def test_store_returns_previous_binding(self):
        trie = TokenTrie()
        trie.store(["cats"], "cat", is_plural=True)

        previous = trie.store(["cats"], None)

        assert previous == ("cat", True)
        assert trie.find(["cats"]) is None

    def test_lookup_without_match(self):
        trie = TokenTrie()
        trie.store(["cat"], "cat")
        assert trie.lookup(["dog"], 0) is None


class TestOntology:
    def test_superclass_cycle_is_a_contradiction(self, declare):
        """
        Scenario: Two kinds are declared kinds of each other.
        Expected: The second declaration is rejected as a contradiction.
        """
        # Arrange
        ontology = declare("a cat is a kind of animal")
        cat = ontology.find_kind(["cat"])
        animal = ontology.find_kind(["animal"])

        # Act & Assert
        with pytest.raises(OntologyContradictionError):
            animal.declare_superclass(cat)

    def test_kind_hierarchy(self, declare):
        ontology = declare("a cat is a kind of animal", "a tabby is a kind of cat")
        animal = ontology.find_kind(["animals"])
        tabby = ontology.find_kind(["tabby"])

        assert animal.is_super_kind_of(tabby)
        assert [k.text for k in tabby.ancestors()] == ["tabby", "cat", "animal"]

    def test_name_collision(self, declare):
        """
        Scenario: A word already naming a kind is used as an adjective.
        Expected: NameCollisionError.
        """
        ontology = declare("cats are fuzzy")

        with pytest.raises(NameCollisionError):
            ontology.ensure_undefined_or_defined_as(["cat"], Adjective)

    def test_journal_rollback_forgets_new_concepts(self, ontology):
        # Arrange
        mark = ontology.journal.mark()
        kind = Kind(ontology)
        kind.set_singular(["dog"])

        # Act
        ontology.journal.rollback(mark)

        # Assert
        assert ontology.find_kind(["dog"]) is None

    def test_literal_inverse(self, ontology):
        fuzzy = Adjective(ontology, ["fuzzy"])
        literal = Literal(fuzzy)

        assert literal.inverse() == Literal(fuzzy, False)
        assert str(literal.inverse()) == "not fuzzy"
