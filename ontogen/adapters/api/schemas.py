# ontogen/adapters/api/schemas.py
from typing import List

from pydantic import BaseModel, Field


class SessionCreate(BaseModel):
    load: List[str] = Field(default_factory=list, description="Definition files to load into the new session")


class SessionCreated(BaseModel):
    session_id: str
    loaded: List[str] = Field(default_factory=list)
    # Statements of the loaded files that were rejected
    errors: List[str] = Field(default_factory=list)


class StatementRequest(BaseModel):
    text: str = Field(..., min_length=1, description="One statement or command, e.g. 'imagine a cat'")
