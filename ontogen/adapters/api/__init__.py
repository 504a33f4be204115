# ontogen/adapters/api/__init__.py
"""
REST API Adapter.

The HTTP entry point for ontogen sessions, built on FastAPI:
- It depends on `ontogen.core` (Use Cases & Models).
- It wires the `ontogen.shared.container` to inject dependencies.
- It does NOT contain business logic.
"""
