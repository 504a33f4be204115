# ontogen/adapters/__init__.py
"""
Infrastructure Adapters.

Concrete implementations of the Ports defined in `ontogen.core.ports`:
- `api`: Primary Adapter (Driving) - FastAPI web server.
- `persistence`: Secondary Adapter (Driven) - definition and list files.
- `solvers`: Secondary Adapter (Driven) - the constraint solving engine.

Dependencies point INWARD. These modules depend on `ontogen.core`,
but `ontogen.core` never imports from here.
"""
