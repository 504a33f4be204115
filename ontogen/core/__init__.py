# ontogen/core/__init__.py
"""
Core Domain Layer.

Pure modelling logic of the system:
- `domain`: tokens, inflection, the concept trie and the ontology graph.
- `parsing`: the sentence pattern engine.
- `generation`: the constraint compiler and the model interpreter.
- `ports`: interfaces the infrastructure adapters implement.
- `use_cases`: sessions, transcripts and batch test runs.

Nothing in here imports from `ontogen.adapters`.
"""
