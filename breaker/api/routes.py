from __future__ import annotations

import logging
import random
from uuid import UUID

import redis
from fastapi import APIRouter, Depends, HTTPException, Response, WebSocket, WebSocketDisconnect, status
from fastapi.responses import PlainTextResponse

from breaker.api.deps import get_contributions_client, get_redis, get_sessions, get_settings
from breaker.api.models import (
    MoveRequest,
    ResizeRequest,
    SessionCreateRequest,
    SessionListResponse,
    SessionSnapshot,
    SpeedRequest,
    TickRequest,
)
from breaker.calendar_cache import load_calendar
from breaker.config import Settings
from breaker.core.events import GameEvent
from breaker.core.field_text import render_field_text
from breaker.github.client import ContributionsClient
from breaker.github.errors import GitHubError, UserNotFoundError, is_auth_error
from breaker.github.ranges import resolve_range
from breaker.session import GameSession
from breaker.session_store import SessionRegistry
from breaker.streams import SessionStream, publish_events
from breaker.websocket_hub import hub

logger = logging.getLogger(__name__)

router = APIRouter()

ANONYMOUS_LOGIN = "anonymous"
# Application close code (4000-4999 range) for an unknown session id.
WS_SESSION_NOT_FOUND = 4404


def _require_session(sessions: SessionRegistry, session_id: UUID) -> GameSession:
    try:
        return sessions.require(session_id)
    except KeyError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found") from e


async def _publish(*, r: redis.Redis, session: GameSession, events: list[GameEvent]) -> None:
    if not events:
        return
    publish_events(r=r, stream=SessionStream(session_id=str(session.session_id)), events=events)
    await hub.broadcast_session(session, events)


@router.websocket("/ws/session/{session_id}")
async def session_updates_ws(
    websocket: WebSocket,
    session_id: UUID,
    sessions: SessionRegistry = Depends(get_sessions),
) -> None:
    if sessions.get(session_id) is None:
        await websocket.close(code=WS_SESSION_NOT_FOUND)
        return

    await hub.subscribe(session_id, websocket)
    try:
        # Observers only listen; anything they send is ignored.
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        await hub.unsubscribe(session_id, websocket)
    except Exception:
        await hub.unsubscribe(session_id, websocket)
        raise


@router.get("/healthcheck")
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.post("/session", response_model=SessionSnapshot, status_code=status.HTTP_201_CREATED)
async def create_session_route(
    payload: SessionCreateRequest,
    r: redis.Redis = Depends(get_redis),
    client: ContributionsClient = Depends(get_contributions_client),
    settings: Settings = Depends(get_settings),
    sessions: SessionRegistry = Depends(get_sessions),
) -> SessionSnapshot:
    if payload.calendar is not None:
        login, calendar = payload.login or ANONYMOUS_LOGIN, payload.calendar
    else:
        try:
            start, end = resolve_range(weeks=payload.weeks, from_date=payload.from_date, to_date=payload.to_date)
            login, calendar = await load_calendar(
                r=r,
                client=client,
                login=payload.login,
                start=start,
                end=end,
                ttl_s=settings.calendar_ttl_s,
            )
        except ValueError as e:
            raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e
        except UserNotFoundError as e:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
        except GitHubError as e:
            if is_auth_error(e):
                raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e)) from e
            logger.warning("contribution fetch failed login=%s: %s", payload.login, e)
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail=f"failed to fetch GitHub contributions: {e}",
            ) from e

    seed = payload.seed if payload.seed is not None else random.SystemRandom().randint(1, 2**63 - 1)
    session, built = GameSession.create(
        login=login,
        calendar=calendar,
        seed=seed,
        speed=payload.speed,
        width=payload.width,
        height=payload.height,
    )
    sessions.add(session)
    await _publish(r=r, session=session, events=[built])
    return session.snapshot()


@router.get("/session", response_model=SessionListResponse)
async def list_sessions_route(sessions: SessionRegistry = Depends(get_sessions)) -> SessionListResponse:
    return SessionListResponse(sessions=[s.snapshot() for s in sessions.list_sessions()])


@router.get("/session/{session_id}", response_model=SessionSnapshot)
async def get_session_route(session_id: UUID, sessions: SessionRegistry = Depends(get_sessions)) -> SessionSnapshot:
    return _require_session(sessions, session_id).snapshot()


@router.delete("/session/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_session_route(session_id: UUID, sessions: SessionRegistry = Depends(get_sessions)) -> Response:
    if not sessions.delete(session_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found")
    await hub.close_session(session_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/session/{session_id}/field", response_class=PlainTextResponse)
async def session_field_route(session_id: UUID, sessions: SessionRegistry = Depends(get_sessions)) -> str:
    """Debug endpoint: plain-text dump of the current field."""

    session = _require_session(sessions, session_id)
    if session.state is None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Session not ready")
    return render_field_text(session.state.to_snapshot())


@router.post("/session/{session_id}/input", response_model=SessionSnapshot)
async def input_route(
    session_id: UUID,
    payload: MoveRequest,
    sessions: SessionRegistry = Depends(get_sessions),
) -> SessionSnapshot:
    session = _require_session(sessions, session_id)
    try:
        session.press(payload.move)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e
    return session.snapshot()


@router.post("/session/{session_id}/tick", response_model=SessionSnapshot)
async def tick_route(
    session_id: UUID,
    payload: TickRequest,
    r: redis.Redis = Depends(get_redis),
    sessions: SessionRegistry = Depends(get_sessions),
) -> SessionSnapshot:
    session = _require_session(sessions, session_id)
    events = session.tick(payload.now)
    await _publish(r=r, session=session, events=events)
    return session.snapshot()


@router.post("/session/{session_id}/speed", response_model=SessionSnapshot)
async def speed_route(
    session_id: UUID,
    payload: SpeedRequest,
    sessions: SessionRegistry = Depends(get_sessions),
) -> SessionSnapshot:
    session = _require_session(sessions, session_id)
    session.adjust_speed(payload.delta)
    return session.snapshot()


@router.post("/session/{session_id}/retry", response_model=SessionSnapshot)
async def retry_route(
    session_id: UUID,
    r: redis.Redis = Depends(get_redis),
    sessions: SessionRegistry = Depends(get_sessions),
) -> SessionSnapshot:
    session = _require_session(sessions, session_id)
    event = session.retry()
    await _publish(r=r, session=session, events=[event] if event else [])
    return session.snapshot()


@router.post("/session/{session_id}/resize", response_model=SessionSnapshot)
async def resize_route(
    session_id: UUID,
    payload: ResizeRequest,
    r: redis.Redis = Depends(get_redis),
    sessions: SessionRegistry = Depends(get_sessions),
) -> SessionSnapshot:
    session = _require_session(sessions, session_id)
    event = session.resize(payload.width, payload.height)
    await _publish(r=r, session=session, events=[event])
    return session.snapshot()
