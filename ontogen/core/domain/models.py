# ontogen/core/domain/models.py
from typing import List, Optional

from pydantic import BaseModel, Field


class StatementResult(BaseModel):
    """
    The outcome of one line of user input.
    This is what the REPL prints and what the HTTP API returns.
    """
    text: str = Field(..., description="The statement as typed")
    accepted: bool = True
    # Declarations are logged in the transcript; commands are not
    is_declaration: bool = False
    responses: List[str] = Field(default_factory=list)
    error: Optional[str] = None
    suggestions: List[str] = Field(default_factory=list, description="Usage of patterns sharing a keyword with the input")


class TranscriptView(BaseModel):
    statements: List[str] = Field(default_factory=list)
