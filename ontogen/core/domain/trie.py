# ontogen/core/domain/trie.py
"""
core/domain/trie.py

The concept registry: a trie over case-insensitive token sequences.

Each terminal node holds the concept named by the path leading to it and
whether that surface form is a plural (`True`), a singular (`False`) or
could be either (`None`, for nouns like "sheep").

Lookups never move the caller's cursor; they report where the match ended
and the caller decides whether to advance.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Generic, Iterator, List, Optional, Sequence, Tuple, TypeVar

T = TypeVar("T")


@dataclass
class _Node(Generic[T]):
    children: Dict[str, "_Node[T]"] = field(default_factory=dict)
    concept: Optional[T] = None
    is_plural: Optional[bool] = None


@dataclass(frozen=True)
class TrieMatch(Generic[T]):
    """Result of a successful lookup: the concept and the index just past it."""

    concept: T
    end: int
    is_plural: Optional[bool]


class TokenTrie(Generic[T]):
    def __init__(self) -> None:
        self._root: _Node[T] = _Node()

    def clear(self) -> None:
        self._root = _Node()

    def store(self, tokens: Sequence[str], concept: Optional[T], is_plural: Optional[bool] = False) -> Tuple[Optional[T], Optional[bool]]:
        """
        Bind `tokens` to `concept`, overwriting any previous binding.
        Storing None removes the binding.

        Returns the previous (concept, is_plural) pair so the caller can
        undo the store.
        """
        node = self._root
        for token in tokens:
            key = token.lower()
            child = node.children.get(key)
            if child is None:
                child = _Node()
                node.children[key] = child
            node = child
        previous = (node.concept, node.is_plural)
        node.concept = concept
        node.is_plural = is_plural if concept is not None else None
        return previous

    def lookup(self, tokens: Sequence[str], start: int) -> Optional[TrieMatch[T]]:
        """Longest stored name beginning at tokens[start], or None."""
        node = self._root
        best: Optional[TrieMatch[T]] = None
        index = start
        while index < len(tokens):
            node = node.children.get(tokens[index].lower())
            if node is None:
                break
            index += 1
            if node.concept is not None:
                best = TrieMatch(node.concept, index, node.is_plural)
        return best

    def find(self, tokens: Sequence[str]) -> Optional[T]:
        """Exact lookup of a whole token sequence."""
        node = self._root
        for token in tokens:
            node = node.children.get(token.lower())
            if node is None:
                return None
        return node.concept

    def contents(self) -> Iterator[Tuple[List[str], T, Optional[bool]]]:
        """Every (path, concept, is_plural) binding, depth first."""
        stack: List[Tuple[List[str], _Node[T]]] = [([], self._root)]
        while stack:
            path, node = stack.pop()
            if node.concept is not None:
                yield path, node.concept, node.is_plural
            for key in sorted(node.children, reverse=True):
                stack.append((path + [key], node.children[key]))

    def __len__(self) -> int:
        return sum(1 for _ in self.contents())

    def __repr__(self) -> str:
        return f"TokenTrie({len(self)} entries)"
