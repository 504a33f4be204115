# ontogen/core/generation/__init__.py
from .generator import Generator
from .invention import DEFAULT_DESCRIPTION_TEMPLATE, Invention

__all__ = ["Generator", "Invention", "DEFAULT_DESCRIPTION_TEMPLATE"]
