# ontogen/core/use_cases/session.py
from typing import List, Optional, Sequence

import structlog

from ontogen.core.domain.concepts import Kind, Literal
from ontogen.core.domain.exceptions import DefinitionFileNotFoundError, DomainError, GrammaticalError
from ontogen.core.domain.models import StatementResult
from ontogen.core.domain.ontology import OntologyContext
from ontogen.core.generation import Generator, Invention
from ontogen.core.parsing import Parser
from ontogen.core.parsing.parser import is_valid_filename
from ontogen.core.ports.definitions import IDefinitionRepository
from ontogen.core.ports.solver import ISolver
from ontogen.shared.observability import get_tracer

from .commands import commands
from .run_tests import TestRunner
from .transcript import Transcript

logger = structlog.get_logger()
tracer = get_tracer(__name__)

NO_PROBLEM_YET = "Please type an imagine command first."


class Session:
    """
    Use Case: One user's conversation with the world modeller.

    Responsibilities:
    1. Executes statements against its own ontology.
    2. Logs accepted declarations in the transcript.
    3. Restores a known-good ontology after a failed statement.
    4. Runs the commands (imagine, undo, test, ...).
    """

    def __init__(
        self,
        solver: ISolver,
        definitions: Optional[IDefinitionRepository] = None,
        retries: int = 100,
        default_plural_count: int = 9,
    ):
        self.solver = solver
        self.retries = retries
        self.default_plural_count = default_plural_count
        self.ontology = OntologyContext(definitions)
        self.transcript = Transcript()
        self.parser = Parser(self.ontology, command_sets=[lambda p: commands(p, self)])

        # Definition files loaded explicitly, replayed before the transcript
        self.loaded_files: List[str] = []
        self.generator: Optional[Generator] = None
        self.invention: Optional[Invention] = None
        self._responses: List[str] = []
        self._rebuild_requested = False

    # ------------------------------------------------------------------
    # Statements
    # ------------------------------------------------------------------

    def execute(self, text: str) -> StatementResult:
        """
        Executes one line of input.

        Domain errors are reported in the result, never raised. When the
        failed statement had started changing the ontology, the ontology is
        rebuilt from the transcript so none of the change survives.
        """
        text = text.strip()
        if not text:
            return StatementResult(text=text)

        with tracer.start_as_current_span("use_case.execute_statement") as span:
            span.set_attribute("ontogen.statement", text)
            self._responses = []
            self._rebuild_requested = False

            try:
                is_declaration = self.parser.parse_and_execute(text)
            except DomainError as e:
                mutated = self.parser.action_started
                if mutated:
                    self._rebuild()
                else:
                    self.ontology.drain_notices()
                span.set_attribute("ontogen.accepted", False)
                logger.info("statement_rejected", text=text, error=str(e), rebuilt=mutated)
                return StatementResult(
                    text=text,
                    accepted=False,
                    responses=self._responses,
                    error=str(e),
                    suggestions=list(getattr(e, "suggestions", ())),
                )
            except Exception as e:
                logger.error("statement_failed", text=text, error=str(e), exc_info=True)
                if self.parser.action_started:
                    self._rebuild()
                raise

            self.ontology.journal.commit()
            if is_declaration:
                self.transcript.log(text)
            if self._rebuild_requested:
                self._rebuild()
            responses = self.ontology.drain_notices() + self._responses

            span.set_attribute("ontogen.accepted", True)
            span.set_attribute("ontogen.is_declaration", is_declaration)
            logger.info("statement_accepted", text=text, is_declaration=is_declaration)
            return StatementResult(text=text, is_declaration=is_declaration, responses=responses)

    def execute_all(self, lines: Sequence[str]) -> List[StatementResult]:
        return [self.execute(line) for line in lines]

    def load(self, name: str) -> List[str]:
        """
        Loads a definition file from the project and keeps it loaded across
        rebuilds. Returns the errors of statements that failed.

        Raises:
            DefinitionFileNotFoundError: If the project has no such file.
        """
        with tracer.start_as_current_span("use_case.load_definitions") as span:
            span.set_attribute("ontogen.file", name)
            errors = self.parser.load_definitions(name, throw_on_errors=False)
            self.ontology.journal.commit()
            self.ontology.drain_notices()
            if name not in self.loaded_files:
                self.loaded_files.append(name)
            return [str(e) for e in errors]

    def _respond(self, line: str) -> None:
        self._responses.append(line)

    def _rebuild(self) -> None:
        """Erases the ontology, then reloads project files and replays the transcript."""
        with tracer.start_as_current_span("use_case.rebuild"):
            logger.info("ontology_rebuilding", statements=len(self.transcript), files=len(self.loaded_files))
            self.ontology.erase()
            self.generator = None
            self.invention = None
            for name in self.loaded_files:
                try:
                    self.parser.load_definitions(name, throw_on_errors=False)
                except DefinitionFileNotFoundError as e:
                    logger.warning("replay_file_missing", name=name, error=str(e))
            for statement in self.transcript.statements:
                try:
                    self.parser.parse_and_execute(statement)
                except DomainError as e:
                    logger.warning("replay_failed", statement=statement, error=str(e))
            self.ontology.journal.commit()
            self.ontology.drain_notices()

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def imagine(self, noun: Kind, modifiers: Sequence[Literal], count: int) -> None:
        self.invention = None
        self.generator = Generator(self.ontology, self.solver, noun, modifiers, count)
        self.invention = self.generator.solve(self.retries)
        if self.invention is None:
            self._respond("Can't think of any - maybe there's a contradiction?")
            return
        for line in self.invention.descriptions():
            self._respond(line)
        for verb, subject, obj in self.invention.relationships():
            self._respond(self.invention.describe_relationship(verb, subject, obj))

    def undo(self) -> None:
        undone = self.transcript.undo()
        if undone is None:
            self._respond("No declarations to undo.")
        else:
            self._respond(f"Undid {undone}")
        self._rebuild_requested = True

    def start_over(self) -> None:
        self.transcript.clear()
        self.loaded_files.clear()
        self.ontology.erase()
        self.generator = None
        self.invention = None
        self._respond("Knowledge-base erased.  I don't know anything.")

    def save(self, name: str) -> None:
        repository = self.ontology.definitions
        if repository is None:
            raise DefinitionFileNotFoundError(name, "<no project directory>")
        if not is_valid_filename(name):
            raise GrammaticalError(f"'{name}' is not a valid file name")
        path = repository.save_definitions(name, self.transcript.statements)
        logger.info("transcript_saved", name=name, path=path, statements=len(self.transcript))
        self._respond(f"Saved {len(self.transcript)} declarations to {path}")

    def run_tests(self) -> None:
        runner = TestRunner(self.ontology, self.solver, self.retries)
        while runner.step():
            pass
        self._respond(runner.stats.summary)
        for result in runner.results:
            self._respond(result.message)
            if result.example_text:
                self._respond(result.example_text)

    def decompile(self) -> None:
        if self.generator is None:
            self._respond(NO_PROBLEM_YET)
            return
        for line in self.generator.problem.decompile():
            self._respond(line)

    def stats(self) -> None:
        for line in self.ontology.describe():
            self._respond(line)
        if self.generator is None:
            self._respond(NO_PROBLEM_YET)
            return
        s = self.generator.problem.stats()
        self._respond(f"{s.propositions} propositions, {s.constraints} constraints, {s.variables} variables")
        timing = f", {s.mean_solve_ms:.1f} ms per solve" if s.mean_solve_ms is not None else ""
        self._respond(f"{s.solve_count} solves, {s.failures} failures{timing}")

    def help(self) -> None:
        for pattern in self.parser.patterns:
            self._respond(pattern.help_text)

    def toggle_debug(self) -> None:
        self.parser.log_parsing = not self.parser.log_parsing
        self._respond(f"Parse logging {'on' if self.parser.log_parsing else 'off'}.")
