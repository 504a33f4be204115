# ontogen/core/domain/individual.py
from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence, Union

from .concepts import Kind, Literal, MonadicConcept, Part, Property
from .tokens import TokenString, untokenize


class Individual:
    """
    One modelled object.

    Ephemeral individuals are created per generation request; permanent ones
    exist for every proper noun. `kinds` only ever holds the most specific
    declared kinds: a kind that is a superkind of another listed kind is
    dropped at construction.
    """

    def __init__(
        self,
        uid: int,
        concepts: Sequence[Union[MonadicConcept, Literal]] = (),
        name: Sequence[str] = (),
        container: Optional["Individual"] = None,
        is_permanent: bool = False,
    ) -> None:
        self.uid = uid
        self.name = TokenString(name)
        self.container = container
        self.is_permanent = is_permanent
        self.kinds: List[Kind] = []
        self.modifiers: List[Literal] = []
        self.properties: Dict[Property, Any] = {}
        self.parts: Dict[Part, "Individual"] = {}
        self.most_recent_description: Optional[str] = None
        for c in concepts:
            literal = c if isinstance(c, Literal) else Literal(c)
            if literal.is_positive and isinstance(literal.concept, Kind):
                self.add_kind(literal.concept)
            else:
                self.modifiers.append(literal)

    def add_kind(self, kind: Kind) -> None:
        if any(k.is_sub_kind_of(kind) for k in self.kinds):
            return
        self.kinds = [k for k in self.kinds if not kind.is_sub_kind_of(k)]
        self.kinds.append(kind)

    def add_modifier(self, literal: Literal) -> None:
        if literal not in self.modifiers:
            self.modifiers.append(literal)

    def name_property(self) -> Optional[Property]:
        return next((p for p in self.properties if p.is_name_property), None)

    @property
    def text(self) -> str:
        return untokenize(self.name)

    def __lt__(self, other: "Individual") -> bool:
        return self.uid < other.uid

    def __le__(self, other: "Individual") -> bool:
        return self.uid <= other.uid

    def __str__(self) -> str:
        return self.text

    def __repr__(self) -> str:
        return f"<Individual #{self.uid} {self.text!r}>"
