# ontogen/core/parsing/__init__.py
from .parser import Parser
from .patterns import Check, SentencePattern, Word
from .segments import Number

__all__ = ["Parser", "SentencePattern", "Word", "Check", "Number"]
