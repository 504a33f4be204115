# ontogen/__init__.py
"""
ontogen - a restricted-English world modeller and random instance generator.

Sentences describing kinds, adjectives, properties, parts and relations are
parsed into an ontology graph, compiled into a Boolean constraint problem for
a requested set of individuals, solved, and read back as prose.

The package follows a Hexagonal Architecture (Ports & Adapters) layout.
"""

__version__ = "1.0.0"
