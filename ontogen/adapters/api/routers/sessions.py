# ontogen/adapters/api/routers/sessions.py
from threading import Lock
from typing import Callable, Optional

import structlog
from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Body, Depends, HTTPException, Response, status

from ontogen.adapters.api.dependencies import SessionRegistry, get_session, get_session_lock, get_session_registry
from ontogen.adapters.api.schemas import SessionCreate, SessionCreated, StatementRequest
from ontogen.core.domain.exceptions import DefinitionFileNotFoundError
from ontogen.core.domain.models import StatementResult, TranscriptView
from ontogen.core.use_cases.session import Session
from ontogen.shared.container import Container

logger = structlog.get_logger()

router = APIRouter(prefix="/sessions", tags=["Sessions"])


@router.post(
    "",
    response_model=SessionCreated,
    status_code=status.HTTP_201_CREATED,
    summary="Start a new session",
)
@inject
def create_session(
    body: Optional[SessionCreate] = Body(None),
    session_factory: Callable[[], Session] = Depends(Provide[Container.session.provider]),
    registry: SessionRegistry = Depends(get_session_registry),
):
    """
    Creates a session with an empty ontology, optionally loading definition
    files from the project directory first.
    """
    request = body or SessionCreate()
    session_id, session = registry.create(session_factory)
    errors = []
    try:
        with registry.lock_for(session_id):
            for name in request.load:
                errors.extend(session.load(name))
    except DefinitionFileNotFoundError as e:
        registry.remove(session_id)
        # Map Domain Error -> HTTP 404
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return SessionCreated(session_id=session_id, loaded=request.load, errors=errors)


@router.post(
    "/{session_id}/statements",
    response_model=StatementResult,
    status_code=status.HTTP_200_OK,
    summary="Execute a statement or command",
)
def execute_statement(
    request: StatementRequest = Body(..., description="One line of restricted English"),
    session: Session = Depends(get_session),
    lock: Lock = Depends(get_session_lock),
):
    """
    Runs one statement in the session.

    A rejected statement is still a 200 response: `accepted` is false and
    `error` / `suggestions` say why.
    """
    try:
        with lock:
            return session.execute(request.text)
    except Exception as e:
        # Unexpected System Errors -> HTTP 500 (already logged by the use case)
        logger.critical("unexpected_statement_crash", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred while executing the statement.",
        )


@router.get(
    "/{session_id}/transcript",
    response_model=TranscriptView,
    summary="Declarations accepted so far",
)
def get_transcript(session: Session = Depends(get_session), lock: Lock = Depends(get_session_lock)):
    with lock:
        return TranscriptView(statements=list(session.transcript.statements))


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_session(session_id: str, registry: SessionRegistry = Depends(get_session_registry)):
    if not registry.remove(session_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"No session with id '{session_id}'")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
