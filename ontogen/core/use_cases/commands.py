# ontogen/core/use_cases/commands.py
"""
Command patterns of an interactive session.

Commands are matched before any declaration pattern and are never logged in
the transcript. Their actions call back into the `Session` that owns the
parser.
"""

from typing import TYPE_CHECKING, List

from ontogen.core.parsing import Number, Parser, SentencePattern

if TYPE_CHECKING:
    from .session import Session


def commands(p: Parser, session: "Session") -> List[SentencePattern]:
    def imagine() -> None:
        count = p.object.explicit_count
        if count is None:
            count = session.default_plural_count if p.object.number is Number.PLURAL else 1
        session.imagine(p.object.common_noun, p.object.modifiers, count)

    return [
        SentencePattern(
            p, ["help"], session.help,
            doc="Lists every sentence pattern.",
            is_command=True,
        ),
        SentencePattern(
            p, ["imagine", p.object], imagine,
            checks=[p.object_common_noun],
            doc="Generates one or more Objects.  For example, 'imagine a cat' or 'imagine 10 long-haired cats'.",
            is_command=True,
        ),
        SentencePattern(
            p, ["undo"], session.undo,
            doc="Undoes the last change to the ontology.",
            is_command=True,
        ),
        SentencePattern(
            p, ["start", "over"], session.start_over,
            doc="Tells the system to forget everything you've told it about the world.",
            is_command=True,
        ),
        SentencePattern(
            p, ["save", p.list_name], lambda: session.save(str(p.list_name.text)),
            doc="Saves the declarations typed so far as a definition file.",
            is_command=True,
        ),
        SentencePattern(
            p, ["test"], session.run_tests,
            doc="Runs all tests currently defined.",
            is_command=True,
        ),
        SentencePattern(
            p, ["decompile"], session.decompile,
            doc="Dumps the clauses of the most recently compiled problem.",
            is_command=True,
        ),
        SentencePattern(
            p, ["stats"], session.stats,
            doc="Shows the size of the ontology and of the most recently compiled problem.",
            is_command=True,
        ),
        SentencePattern(
            p, ["debug"], session.toggle_debug,
            doc="Turns logging of pattern matching on or off.",
            is_command=True,
        ),
    ]
