# ontogen/core/domain/inflection.py
"""
core/domain/inflection.py

English inflection for the names of kinds and relations.

This module provides `EnglishInflector`, a rule engine parameterised by the
tables in `ontogen/data/inflections.json`.

It is responsible for:

- Noun number (singular <-> plural) via an irregular table and an ordered
  list of (singular ending, plural ending) rewrite rules
- Guessing whether a newly coined noun was written in the plural
- Verb conjugation: third person singular, gerunds, passive participles,
  and recovering a base form from any of those
- Indefinite article selection (a/an)

Multi-token nouns inflect their last token ("magic user" -> "magic users");
multi-token verbs inflect their first ("live with" -> "lives with").
"""

from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from .exceptions import GrammaticalError

DATA_PATH = Path(__file__).resolve().parents[2] / "data" / "inflections.json"

VOWELS = "aeiou"


def _match_case(template: str, word: str) -> str:
    if template[:1].isupper():
        return word[:1].upper() + word[1:]
    return word


def _vowel_groups(word: str) -> int:
    groups = 0
    previous_vowel = False
    for ch in word.lower():
        is_vowel = ch in VOWELS
        if is_vowel and not previous_vowel:
            groups += 1
        previous_vowel = is_vowel
    return groups


def _ends_cvc(word: str) -> bool:
    """Consonant-vowel-consonant ending, as in 'stop' or 'love' without its e."""
    w = word.lower()
    if len(w) < 3:
        return False
    c1, v, c2 = w[-3], w[-2], w[-1]
    return c1 not in VOWELS and v in VOWELS and c2 not in VOWELS and c2 not in "wxy"


class EnglishInflector:
    """
    Inflection engine for English nouns and verbs.
    All lookups are case-insensitive; results keep the input's capitalisation.
    """

    def __init__(self, config: Mapping[str, Any]) -> None:
        self.config = config
        nouns = config.get("nouns", {})
        verbs = config.get("verbs", {})

        self._rules: List[Tuple[str, str]] = [
            (str(s), str(p)) for s, p in nouns.get("regular", [])
        ]
        self._singular_only: Tuple[str, ...] = tuple(nouns.get("singular_only_endings", []))

        self._irregular_plurals: Dict[str, str] = {}
        self._irregular_singulars: Dict[str, str] = {}
        for singular, plural in nouns.get("irregular", []):
            self._irregular_plurals[singular.lower()] = plural
            self._irregular_singulars[plural.lower()] = singular

        self._irregular_verbs: Dict[str, Dict[str, str]] = {
            base.lower(): forms for base, forms in (verbs.get("irregular") or {}).items()
        }
        self._copula = {c.lower() for c in verbs.get("copula_forms", ["be", "is", "are"])}

        articles = config.get("articles", {})
        self._a_before: Tuple[str, ...] = tuple(p.lower() for p in articles.get("a_before", []))
        self._an_before: Tuple[str, ...] = tuple(p.lower() for p in articles.get("an_before", []))

        # Reverse indices: inflected verb form -> base form
        self._verb_bases: Dict[str, Dict[str, str]] = {"singular": {}, "gerund": {}, "participle": {}}
        for base, forms in self._irregular_verbs.items():
            for form_name, index in self._verb_bases.items():
                if form_name in forms:
                    index[forms[form_name].lower()] = base

    # ------------------------------------------------------------------
    # Noun Number
    # ------------------------------------------------------------------

    def plural_of_word(self, word: str) -> str:
        lowered = word.lower()
        if lowered in self._irregular_plurals:
            return _match_case(word, self._irregular_plurals[lowered])
        for singular_ending, plural_ending in self._rules:
            if lowered.endswith(singular_ending):
                stem = word[: len(word) - len(singular_ending)]
                return stem + plural_ending
        raise GrammaticalError("Don't know the plural of", offending_input=word)

    def singular_of_word(self, word: str) -> str:
        lowered = word.lower()
        if lowered in self._irregular_singulars:
            return _match_case(word, self._irregular_singulars[lowered])
        for singular_ending, plural_ending in self._rules:
            if plural_ending and lowered.endswith(plural_ending):
                stem = word[: len(word) - len(plural_ending)]
                return stem + singular_ending
        raise GrammaticalError("Don't know the singular of", offending_input=word)

    def plural_of_noun(self, tokens: Sequence[str]) -> List[str]:
        return self._inflect_last(tokens, self.plural_of_word)

    def singular_of_noun(self, tokens: Sequence[str]) -> List[str]:
        return self._inflect_last(tokens, self.singular_of_word)

    def noun_appears_plural(self, tokens: Sequence[str]) -> bool:
        if not tokens:
            return False
        last = tokens[-1].lower()
        if last in self._irregular_singulars:
            return True
        if last in self._irregular_plurals:
            return False
        if last.endswith(self._singular_only):
            return False
        return any(p and last.endswith(p) for _, p in self._rules)

    @staticmethod
    def _inflect_last(tokens: Sequence[str], inflect) -> List[str]:
        if not tokens:
            raise GrammaticalError("Cannot inflect an empty name")
        result = list(tokens)
        result[-1] = inflect(result[-1])
        return result

    # ------------------------------------------------------------------
    # Verb Conjugation
    # ------------------------------------------------------------------

    def is_copula(self, token: str) -> bool:
        return token.lower() in self._copula

    def _irregular(self, word: str, form: str) -> Optional[str]:
        forms = self._irregular_verbs.get(word.lower())
        if forms and form in forms:
            return _match_case(word, forms[form])
        return None

    def singular_of_verb(self, base: Sequence[str]) -> List[str]:
        """Third person singular: 'love' -> 'loves', 'be friends with' -> 'is friends with'."""
        return self._inflect_head(
            base, lambda w: self._irregular(w, "singular") or self.plural_of_word(w)
        )

    def base_of_singular_verb(self, singular: Sequence[str]) -> List[str]:
        def base(word: str) -> str:
            known = self._verb_bases["singular"].get(word.lower())
            if known:
                return _match_case(word, known)
            return self.singular_of_word(word)

        return self._inflect_head(singular, base)

    def gerunds_of_verb(self, base: Sequence[str]) -> List[List[str]]:
        """
        Every plausible gerund of a base form, canonical form first.
        Consonant doubling is ambiguous ('visiting', 'stopping'), so both
        spellings are produced where the rule might apply.
        """
        head = base[0]
        irregular = self._irregular(head, "gerund")
        if irregular:
            candidates = [irregular]
        else:
            lowered = head.lower()
            if lowered.endswith("ie"):
                candidates = [head[:-2] + "ying"]
            elif lowered.endswith("e") and not lowered.endswith(("ee", "ye", "oe")) and len(lowered) > 2:
                candidates = [head[:-1] + "ing"]
            elif _ends_cvc(lowered):
                doubled = head + head[-1] + "ing"
                plain = head + "ing"
                candidates = [doubled, plain] if _vowel_groups(lowered) == 1 else [plain, doubled]
            else:
                candidates = [head + "ing"]
        return [[c] + list(base[1:]) for c in candidates]

    def gerund_of_verb(self, base: Sequence[str]) -> List[str]:
        return self.gerunds_of_verb(base)[0]

    def is_gerund(self, tokens: Sequence[str]) -> bool:
        if not tokens:
            return False
        head = tokens[0].lower()
        return head == "being" or (head.endswith("ing") and len(head) > 4)

    def base_of_gerund(self, gerund: Sequence[str]) -> List[str]:
        def base(word: str) -> str:
            known = self._verb_bases["gerund"].get(word.lower())
            if known:
                return _match_case(word, known)
            if not word.lower().endswith("ing"):
                raise GrammaticalError("Expected a verb ending in 'ing'", offending_input=word)
            return self._restore_stem(word[:-3])

        return self._inflect_head(gerund, base)

    def passive_participle(self, base: Sequence[str]) -> List[str]:
        def participle(word: str) -> str:
            irregular = self._irregular(word, "participle")
            if irregular:
                return irregular
            lowered = word.lower()
            if lowered.endswith("e"):
                return word + "d"
            if lowered.endswith("y") and len(lowered) > 1 and lowered[-2] not in VOWELS:
                return word[:-1] + "ied"
            if _ends_cvc(lowered) and _vowel_groups(lowered) == 1:
                return word + word[-1] + "ed"
            return word + "ed"

        return self._inflect_head(base, participle)

    def base_of_participle(self, participle: Sequence[str]) -> List[str]:
        def base(word: str) -> str:
            known = self._verb_bases["participle"].get(word.lower())
            if known:
                return _match_case(word, known)
            lowered = word.lower()
            if lowered.endswith("ied"):
                return word[:-3] + "y"
            if not lowered.endswith("ed"):
                raise GrammaticalError("Expected a verb ending in 'ed'", offending_input=word)
            return self._restore_stem(word[:-2])

        return self._inflect_head(participle, base)

    @staticmethod
    def _restore_stem(stem: str) -> str:
        """Undo consonant doubling or restore a dropped final e."""
        lowered = stem.lower()
        if len(lowered) >= 3 and lowered[-1] == lowered[-2] and lowered[-1] not in VOWELS + "slfz":
            return stem[:-1]
        if lowered.endswith("v") or lowered.endswith("u"):
            return stem + "e"
        if _ends_cvc(lowered) and _vowel_groups(lowered) == 1:
            return stem + "e"
        return stem

    @staticmethod
    def _inflect_head(tokens: Sequence[str], inflect) -> List[str]:
        if not tokens:
            raise GrammaticalError("Cannot conjugate an empty verb")
        result = list(tokens)
        result[0] = inflect(result[0])
        return result

    # ------------------------------------------------------------------
    # Articles
    # ------------------------------------------------------------------

    def indefinite_article(self, next_word: str) -> str:
        """
        English a/an selection for the following word.
        Goes by sound where the tables know better than the first letter:
        "a unicorn", "an hour".
        """
        lowered = next_word.lower()
        if lowered.startswith(self._an_before):
            return "an"
        if lowered.startswith(self._a_before):
            return "a"
        if lowered[:1] in VOWELS:
            return "an"
        return "a"


@lru_cache(maxsize=None)
def load_inflector(path: Optional[str] = None) -> EnglishInflector:
    """Load the inflection tables once per process."""
    source = Path(path) if path else DATA_PATH
    with source.open(encoding="utf-8") as f:
        return EnglishInflector(json.load(f))
