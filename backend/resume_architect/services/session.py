from __future__ import annotations

import asyncio
import logging
import time
from typing import List, Set

from resume_architect import ai
from resume_architect.core import DEFAULT_HISTORY_TITLE, AnalysisResult
from resume_architect.models import (
    AnalysisFailed,
    AnalysisSucceeded,
    AppState,
    FileAccepted,
    HistorySelected,
    ImpressionReceived,
    IngestionRejected,
    Phase,
    UploadedFile,
)
from resume_architect.services.history import HistoryStore
from resume_architect.services.state import reduce

logger = logging.getLogger(__name__)


class AnalysisSession:
    """Owns one visitor's application state and drives it through analyses.

    All state changes go through ``dispatch``; the only side effects are the
    two gateway tasks started by ``begin`` and the history write that follows
    a successful analysis.
    """

    def __init__(self, session_id: str, history: HistoryStore):
        self.session_id = session_id
        self.history = history
        self.state = AppState()
        self.phase_trail: List[Phase] = [self.state.phase]
        self._tasks: Set[asyncio.Task] = set()
        self.last_seen = time.monotonic()

    @property
    def busy(self) -> bool:
        return self.state.phase == Phase.ANALYZING or bool(self._tasks)

    def touch(self) -> None:
        self.last_seen = time.monotonic()

    def dispatch(self, event: object) -> AppState:
        new_state = reduce(self.state, event)
        if new_state.phase != self.state.phase:
            self.phase_trail.append(new_state.phase)
        self.state = new_state
        return new_state

    def reject_upload(self, message: str) -> AppState:
        return self.dispatch(IngestionRejected(message))

    def begin(self, file: UploadedFile) -> int:
        """Enter ANALYZING and launch the quick impression and the analysis.

        The two calls run as independent tasks; only the analysis decides the
        next phase.
        """
        state = self.dispatch(FileAccepted(file))
        run_id = state.run_id
        self._spawn(self._quick_impression(run_id, file))
        self._spawn(self.run_analysis(run_id, file, state.job_title, state.job_description))
        return run_id

    def select_history(self, item_id: str) -> AppState:
        return self.dispatch(HistorySelected(self.history.get(item_id)))

    async def wait(self) -> None:
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    async def run_analysis(self, run_id: int, file: UploadedFile, job_title: str, job_description: str):
        try:
            result = await ai.analyze(file, job_title, job_description)
            state = self.dispatch(AnalysisSucceeded(run_id, result))
            if state.phase == Phase.REPORT and state.result is result:
                self._record(result, job_title or DEFAULT_HISTORY_TITLE, file.name)
        except Exception as e:
            logger.exception(f"Analysis orchestration failed for session {self.session_id}")
            self.dispatch(AnalysisFailed(run_id, str(e)))

    async def _quick_impression(self, run_id: int, file: UploadedFile):
        summary = await ai.fetch_quick_impression(file)
        self.dispatch(ImpressionReceived(run_id, summary))

    def _record(self, result: AnalysisResult, job_title: str, file_name: str):
        item = self.history.new_item(result, job_title, file_name)
        self.history.record(item)
        logger.info(f"Recorded analysis {item.id} (score {item.score}) for session {self.session_id}")

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task
