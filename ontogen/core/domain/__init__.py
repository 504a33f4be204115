# ontogen/core/domain/__init__.py
"""
Domain Entities and Value Objects.

Concepts (kinds, proper nouns, adjectives, verbs, properties, parts),
individuals and the `OntologyContext` that owns them, plus the word-level
machinery (tokens, inflection, the concept trie) they are named with.
"""
