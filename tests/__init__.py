# tests/__init__.py
"""
Test Suite for ontogen.

Organization:
- `core`: Tokens, inflection, the ontology, the parser, the generator and the session use cases.
- `adapters`: The backtracking solver, the project directory repository, the HTTP API and the CLI.
"""
