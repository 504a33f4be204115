# ontogen/core/use_cases/run_tests.py
"""
Runs the ontology's existence tests one at a time.

`TestRunner.step()` solves a single test and returns whether any remain, so
a caller can interleave other work (printing progress, handling requests)
between tests:

    runner = TestRunner(ontology, solver)
    while runner.step():
        report(runner.stats)
"""

from dataclasses import dataclass
from typing import List, Optional

import structlog

from ontogen.core.domain.exceptions import OntologyContradictionError
from ontogen.core.domain.ontology import ExistenceTest, OntologyContext
from ontogen.core.generation import Generator, Invention
from ontogen.core.ports.solver import ISolver
from ontogen.shared.observability import get_tracer

logger = structlog.get_logger()
tracer = get_tracer(__name__)


@dataclass
class TestRunStats:
    __test__ = False

    total: int = 0
    failed: int = 0

    @property
    def passed(self) -> int:
        return self.total - self.failed

    @property
    def summary(self) -> str:
        if self.total == 0:
            return "No tests have been defined."
        if self.failed == 0:
            return f"All {self.total} tests passed."
        return f"{self.failed} of {self.total} tests failed."


@dataclass
class TestResult:
    __test__ = False

    test: ExistenceTest
    passed: bool
    # The object found for a test that should not have found one, or vice versa
    example: Optional[Invention] = None

    @property
    def message(self) -> str:
        if self.passed:
            return self.test.succeed_message or f"Test succeeded: {self.test.description}"
        return self.test.fail_message or f"Test failed: {self.test.description}"

    @property
    def example_text(self) -> Optional[str]:
        if self.example is None or not self.example.ephemeral_individuals:
            return None
        return f"Example: {self.example.description(self.example.ephemeral_individuals[0])}"


class TestRunner:
    """Step-wise execution of every test defined in an ontology."""

    __test__ = False

    def __init__(self, ontology: OntologyContext, solver: ISolver, retries: int = 100):
        self.ontology = ontology
        self.solver = solver
        self.retries = retries
        self.tests: List[ExistenceTest] = list(ontology.tests)
        self.results: List[TestResult] = []
        self.stats = TestRunStats()
        self._next = 0

    @property
    def finished(self) -> bool:
        return self._next >= len(self.tests)

    def step(self) -> bool:
        """Run the next test. Returns True while tests remain."""
        if self.finished:
            return False
        test = self.tests[self._next]
        self._next += 1

        with tracer.start_as_current_span("use_case.run_test") as span:
            span.set_attribute("ontogen.test", test.description)
            try:
                invention = Generator(self.ontology, self.solver, test.noun, test.modifiers).solve(self.retries)
            except OntologyContradictionError as e:
                # A bound no model can meet: nothing of this kind exists.
                logger.info("test_contradiction", test=test.description, reason=e.message)
                invention = None
            found = invention is not None
            passed = found == test.should_exist
            span.set_attribute("ontogen.passed", passed)

        self.stats.total += 1
        if not passed:
            self.stats.failed += 1
        self.results.append(TestResult(test, passed, invention))
        logger.info("test_completed", test=test.description, passed=passed)
        return not self.finished

    def run_all(self) -> TestRunStats:
        while self.step():
            pass
        return self.stats
