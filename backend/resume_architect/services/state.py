from __future__ import annotations

from dataclasses import replace
from typing import Dict, Set

from resume_architect.models import (
    AnalysisFailed,
    AnalysisSucceeded,
    AppState,
    AuthCompleted,
    AuthRequested,
    DescriptionEdited,
    FileAccepted,
    HistorySelected,
    ImpressionReceived,
    IngestionRejected,
    LoggedOut,
    Phase,
    Reset,
    TargetLocked,
    TitleEdited,
)

ERROR_PREFIX = "An error occurred during analysis. Please try again. "

TRANSITIONS: Dict[Phase, Set[Phase]] = {
    Phase.UPLOAD: {Phase.ANALYZING, Phase.AUTH, Phase.REPORT},
    Phase.AUTH: {Phase.UPLOAD},
    Phase.ANALYZING: {Phase.REPORT, Phase.ERROR},
    Phase.REPORT: {Phase.UPLOAD, Phase.REPORT, Phase.AUTH},
    Phase.ERROR: {Phase.UPLOAD, Phase.REPORT, Phase.AUTH},
}


class InvalidTransition(Exception):
    def __init__(self, current: Phase, event: object):
        super().__init__(f"{type(event).__name__} is not allowed while {current.value}")
        self.current = current
        self.event = event


def validate_transition(current: Phase, new: Phase) -> bool:
    return new == current or new in TRANSITIONS.get(current, set())


def _move(state: AppState, event: object, new: Phase, **changes) -> AppState:
    if not validate_transition(state.phase, new):
        raise InvalidTransition(state.phase, event)
    return replace(state, phase=new, **changes)


def _loading_message(job_title: str) -> str:
    if job_title:
        return f'Analyzing fit for "{job_title}"...'
    return "Analysing ATS compatibility..."


def reduce(state: AppState, event: object) -> AppState:
    """Return the state that follows ``event``; ``state`` is left untouched."""
    if isinstance(event, TitleEdited):
        return replace(state, job_title=event.title, target_locked=False)

    if isinstance(event, TargetLocked):
        return replace(state, target_locked=bool(state.job_title))

    if isinstance(event, DescriptionEdited):
        return replace(state, job_description=event.text)

    if isinstance(event, AuthRequested):
        if state.phase == Phase.ANALYZING:
            raise InvalidTransition(state.phase, event)
        return _move(state, event, Phase.AUTH, auth_mode=event.mode)

    if isinstance(event, AuthCompleted):
        if state.phase != Phase.AUTH:
            raise InvalidTransition(state.phase, event)
        return _move(state, event, Phase.UPLOAD, is_authenticated=True)

    if isinstance(event, LoggedOut):
        if state.phase == Phase.ANALYZING:
            raise InvalidTransition(state.phase, event)
        return _move(state, event, Phase.UPLOAD, is_authenticated=False)

    if isinstance(event, IngestionRejected):
        if state.phase != Phase.UPLOAD:
            raise InvalidTransition(state.phase, event)
        return replace(state, upload_error=event.message)

    if isinstance(event, FileAccepted):
        if state.phase != Phase.UPLOAD:
            raise InvalidTransition(state.phase, event)
        return _move(
            state,
            event,
            Phase.ANALYZING,
            current_file=event.file,
            file_name=event.file.name,
            result=None,
            error=None,
            upload_error=None,
            quick_summary=None,
            loading_message=_loading_message(state.job_title),
            run_id=state.run_id + 1,
        )

    if isinstance(event, ImpressionReceived):
        # late arrivals are shown but never touch the phase or the result;
        # Reset and HistorySelected start a new run id
        if event.run_id != state.run_id:
            return state
        return replace(state, quick_summary=event.summary)

    if isinstance(event, AnalysisSucceeded):
        if event.run_id != state.run_id or state.phase != Phase.ANALYZING:
            return state
        return _move(state, event, Phase.REPORT, result=event.result, current_file=None)

    if isinstance(event, AnalysisFailed):
        if event.run_id != state.run_id or state.phase != Phase.ANALYZING:
            return state
        return _move(state, event, Phase.ERROR, error=ERROR_PREFIX + event.message, current_file=None)

    if isinstance(event, HistorySelected):
        if state.phase in (Phase.ANALYZING, Phase.AUTH):
            raise InvalidTransition(state.phase, event)
        return _move(
            state,
            event,
            Phase.REPORT,
            result=event.item.result,
            file_name=event.item.file_name,
            quick_summary=None,
            run_id=state.run_id + 1,
        )

    if isinstance(event, Reset):
        if state.phase in (Phase.ANALYZING, Phase.AUTH):
            raise InvalidTransition(state.phase, event)
        return _move(
            state,
            event,
            Phase.UPLOAD,
            result=None,
            current_file=None,
            file_name=None,
            quick_summary=None,
            error=None,
            upload_error=None,
            target_locked=False,
            job_description="",
            run_id=state.run_id + 1,
        )

    raise TypeError(f"Unknown event: {event!r}")
