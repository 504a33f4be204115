# ontogen/core/use_cases/__init__.py
from .run_tests import TestResult, TestRunner, TestRunStats
from .session import Session
from .transcript import Transcript

__all__ = ["Session", "Transcript", "TestRunner", "TestRunStats", "TestResult"]
