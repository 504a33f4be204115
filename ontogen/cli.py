#!/usr/bin/env python3
"""
=============================================================================
ONTOGEN COMMAND LINE
=============================================================================
Usage:
    ontogen repl [--project DIR] [--load NAME ...]   # Interactive session
    ontogen run SCRIPT [--project DIR]               # Execute a file of statements

Statements and commands are the ones `help` lists inside a session.
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional, TextIO

import structlog

from ontogen import __version__
from ontogen.adapters.persistence.filesystem_repo import strip_comment
from ontogen.core.domain.exceptions import DomainError
from ontogen.core.domain.models import StatementResult
from ontogen.core.use_cases.session import Session
from ontogen.shared.config import settings
from ontogen.shared.container import container
from ontogen.shared.logging_config import configure_logging
from ontogen.shared.observability import setup_tracing

logger = structlog.get_logger()

PROMPT = "> "
EXIT_WORDS = {"quit", "exit"}


# Colors for terminal output
class Colors:
    BLUE = '\033[94m'
    GREEN = '\033[92m'
    WARNING = '\033[93m'
    FAIL = '\033[91m'
    ENDC = '\033[0m'


def _paint(text: str, color: str, out: TextIO) -> str:
    if not out.isatty():
        return text
    return f"{color}{text}{Colors.ENDC}"


def print_result(result: StatementResult, out: Optional[TextIO] = None) -> None:
    out = out or sys.stdout
    for line in result.responses:
        print(line, file=out)
    if result.accepted:
        return
    print(_paint(result.error or "Rejected", Colors.FAIL, out), file=out)
    if result.suggestions:
        print(_paint("Perhaps you meant one of:", Colors.WARNING, out), file=out)
        for usage in result.suggestions:
            print(f"    {usage}", file=out)


def _definition_name(name: str) -> str:
    """`cats.gen` and `cats` both name the definition file `cats`."""
    if name.endswith(settings.DEFINITION_EXTENSION):
        return name[: -len(settings.DEFINITION_EXTENSION)]
    return name


def build_session(project: Optional[str] = None) -> Session:
    configure_logging(stream=sys.stderr)
    setup_tracing()
    if project:
        container.config.DEFINITIONS_PATH.from_value(project)
        container.definition_repository.reset()
    return container.session()


# --- COMMANDS ---

def repl(session: Session, load: List[str], stdin: Optional[TextIO] = None, out: Optional[TextIO] = None) -> int:
    stdin = stdin or sys.stdin
    out = out or sys.stdout
    for name in load:
        try:
            errors = session.load(_definition_name(name))
        except DomainError as e:
            print(_paint(str(e), Colors.FAIL, out), file=out)
            return 1
        for error in errors:
            print(_paint(error, Colors.WARNING, out), file=out)

    print(f"ontogen {__version__}.  Type 'help' for the sentences I understand, 'quit' to leave.", file=out)
    while True:
        if stdin.isatty():
            out.write(PROMPT)
            out.flush()
        line = stdin.readline()
        if not line:
            break
        text = line.strip()
        if text.lower() in EXIT_WORDS:
            break
        print_result(session.execute(text), out)
    return 0


def run_script(session: Session, script: Path, out: Optional[TextIO] = None) -> int:
    """Executes every statement of `script`. Returns 1 if any was rejected."""
    out = out or sys.stdout
    if not script.is_file():
        print(_paint(f"No such file: {script}", Colors.FAIL, out), file=out)
        return 1
    rejected = 0
    with script.open(encoding="utf-8") as f:
        for line in f:
            text = strip_comment(line)
            if not text:
                continue
            print(_paint(f"{PROMPT}{text}", Colors.BLUE, out), file=out)
            result = session.execute(text)
            print_result(result, out)
            if not result.accepted:
                rejected += 1
    logger.info("script_finished", script=str(script), rejected=rejected)
    return 1 if rejected else 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="ontogen", description="Restricted-English world modeller")
    parser.add_argument("--version", action="version", version=f"ontogen {__version__}")
    subparsers = parser.add_subparsers(dest="command")

    repl_parser = subparsers.add_parser("repl", help="Start an interactive session")
    repl_parser.add_argument("--project", type=str, default=None, help="Directory of definition and list files")
    repl_parser.add_argument("--load", nargs="*", default=[], metavar="NAME", help="Definition files to load first")

    run_parser = subparsers.add_parser("run", help="Execute a file of statements")
    run_parser.add_argument("script", type=Path, help="File with one statement per line")
    run_parser.add_argument("--project", type=str, default=None, help="Directory of definition and list files")

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 2

    session = build_session(args.project)
    if args.command == "repl":
        return repl(session, args.load)
    return run_script(session, args.script)


if __name__ == "__main__":
    sys.exit(main())
