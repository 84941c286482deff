import os
import time
import uuid
import logging
from typing import Optional

from fastapi import FastAPI, UploadFile, File, HTTPException, Request
from fastapi.responses import HTMLResponse, JSONResponse, Response
from fastapi.middleware.cors import CORSMiddleware

from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from resume_architect import ai
from resume_architect.core import (
    AchievementRequest,
    AchievementResponse,
    AnalysisResult,
    AuthRequest,
    HistoryItem,
    SessionResponse,
    StatusResponse,
    TargetRequest,
)
from resume_architect.models import (
    AuthCompleted,
    AuthRequested,
    DescriptionEdited,
    LoggedOut,
    Phase,
    Reset,
    TargetLocked,
    TitleEdited,
)
from resume_architect.services.history import HistoryStore
from resume_architect.services.ingest import ValidationError, ingest_upload
from resume_architect.services.report import EXPORT_FILENAME, export_json, render_html_report
from resume_architect.services.session import AnalysisSession
from resume_architect.services.state import InvalidTransition

ENV = os.getenv("ENV", "dev").lower()
IS_PROD = ENV in {"prod", "production"}

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)

CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",") if o.strip()]

SESSION_TTL_S = int(os.getenv("SESSION_TTL_S", "3600"))
MAX_SESSIONS = int(os.getenv("MAX_SESSIONS", "500"))

# limits are per route; status polling is never throttled
limiter = Limiter(key_func=get_remote_address, default_limits=[])

rate_limit = limiter.limit("20/day") if IS_PROD else (lambda fn: fn)

app = FastAPI(title="Resume Architect", version="0.1.0")
app.state.limiter = limiter
app.add_middleware(SlowAPIMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

history = HistoryStore()
history.load()

sessions: dict[str, AnalysisSession] = {}


@app.exception_handler(RateLimitExceeded)
def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    return JSONResponse(
        status_code=429,
        content={"status": False, "message": "Rate limit exceeded: 20 analyses/day per IP."},
    )


@app.exception_handler(InvalidTransition)
def invalid_transition_handler(request: Request, exc: InvalidTransition):
    return JSONResponse(status_code=409, content={"status": False, "message": str(exc)})


def get_session(session_id: str) -> AnalysisSession:
    session = sessions.get(session_id)
    if not session:
        raise HTTPException(status_code=404, detail="Session not found")
    session.touch()
    return session


def prune_sessions() -> None:
    now = time.monotonic()
    idle = sorted((s for s in sessions.values() if not s.busy), key=lambda s: s.last_seen)
    stale = sum(1 for s in idle if now - s.last_seen > SESSION_TTL_S)
    # room for the session about to be created
    overflow = len(sessions) - MAX_SESSIONS + 1
    evicted = idle[: max(stale, overflow)]
    for s in evicted:
        del sessions[s.session_id]
    if evicted:
        logger.info(f"Evicted {len(evicted)} idle sessions")


def snapshot(session: AnalysisSession) -> StatusResponse:
    state = session.state
    return StatusResponse(
        session_id=session.session_id,
        phase=state.phase.value,
        message=state.loading_message,
        job_title=state.job_title,
        job_description=state.job_description,
        target_locked=state.target_locked,
        authenticated=state.is_authenticated,
        auth_mode=state.auth_mode,
        file_name=state.file_name,
        quick_summary=state.quick_summary,
        error=state.error,
        upload_error=state.upload_error,
        has_result=state.result is not None,
    )


def _result_or_404(session: AnalysisSession) -> AnalysisResult:
    if session.state.result is None:
        raise HTTPException(status_code=404, detail="Result not found")
    return session.state.result


@app.get("/", tags=["default"])
def root():
    return {"status": "ok", "service": "Resume Architect", "docs": "/docs"}


@app.get("/health", tags=["default"])
def health():
    return {"ok": True, "env": ENV, "rate_limit_enabled": IS_PROD, "mock_mode": ai.is_mock_mode()}


@app.post("/api/sessions", response_model=SessionResponse, tags=["session"])
def create_session():
    prune_sessions()
    session_id = str(uuid.uuid4())
    sessions[session_id] = AnalysisSession(session_id, history)
    return SessionResponse(session_id=session_id)


@app.get("/api/sessions/{session_id}", response_model=StatusResponse, tags=["session"])
def status(session_id: str):
    return snapshot(get_session(session_id))


@app.put("/api/sessions/{session_id}/target", response_model=StatusResponse, tags=["session"])
def edit_target(session_id: str, body: TargetRequest):
    session = get_session(session_id)
    if body.job_title is not None:
        session.dispatch(TitleEdited(body.job_title))
    if body.job_description is not None:
        session.dispatch(DescriptionEdited(body.job_description))
    return snapshot(session)


@app.post("/api/sessions/{session_id}/target/lock", response_model=StatusResponse, tags=["session"])
def lock_target(session_id: str):
    session = get_session(session_id)
    session.dispatch(TargetLocked())
    return snapshot(session)


@app.post("/api/sessions/{session_id}/analyze", response_model=StatusResponse, tags=["analysis"])
@rate_limit
async def analyze(request: Request, session_id: str, resume: UploadFile = File(...)):
    session = get_session(session_id)
    if session.state.phase != Phase.UPLOAD:
        raise HTTPException(status_code=409, detail=f"Cannot upload while {session.state.phase.value}.")

    try:
        uploaded = await ingest_upload(resume)
    except ValidationError as e:
        session.reject_upload(str(e))
        raise HTTPException(status_code=400, detail=str(e))

    session.begin(uploaded)
    logger.info(f"Started analysis run {session.state.run_id} for {uploaded.name} ({uploaded.mime_type})")
    return snapshot(session)


@app.get("/api/sessions/{session_id}/result", response_model=AnalysisResult, tags=["analysis"])
def result(session_id: str):
    return _result_or_404(get_session(session_id))


@app.get("/api/sessions/{session_id}/report", response_class=HTMLResponse, tags=["analysis"])
def report(session_id: str):
    session = get_session(session_id)
    return HTMLResponse(render_html_report(_result_or_404(session), session.state.file_name or ""))


@app.get("/api/sessions/{session_id}/export", tags=["analysis"])
def export(session_id: str):
    payload = export_json(_result_or_404(get_session(session_id)))
    return Response(
        content=payload,
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{EXPORT_FILENAME}"'},
    )


@app.post("/api/sessions/{session_id}/reset", response_model=StatusResponse, tags=["session"])
def reset(session_id: str):
    session = get_session(session_id)
    session.dispatch(Reset())
    return snapshot(session)


@app.post("/api/sessions/{session_id}/auth", response_model=StatusResponse, tags=["auth"])
def start_auth(session_id: str, body: Optional[AuthRequest] = None):
    session = get_session(session_id)
    session.dispatch(AuthRequested((body or AuthRequest()).mode))
    return snapshot(session)


@app.post("/api/sessions/{session_id}/auth/complete", response_model=StatusResponse, tags=["auth"])
def complete_auth(session_id: str):
    session = get_session(session_id)
    session.dispatch(AuthCompleted())
    return snapshot(session)


@app.post("/api/sessions/{session_id}/logout", response_model=StatusResponse, tags=["auth"])
def logout(session_id: str):
    session = get_session(session_id)
    session.dispatch(LoggedOut())
    return snapshot(session)


@app.get("/api/history", response_model=list[HistoryItem], tags=["history"])
def list_history():
    return history.items


@app.post("/api/sessions/{session_id}/history/{item_id}", response_model=StatusResponse, tags=["history"])
def select_history(session_id: str, item_id: str):
    session = get_session(session_id)
    try:
        session.select_history(item_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="History item not found")
    return snapshot(session)


@app.post("/api/achievements", response_model=AchievementResponse, tags=["achievements"])
@rate_limit
async def achievements(request: Request, body: AchievementRequest):
    suggestions = await ai.improve_achievement(body.task)
    return AchievementResponse(suggestions=suggestions)
