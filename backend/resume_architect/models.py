from dataclasses import dataclass
from enum import Enum
from typing import Optional

from resume_architect.core import AnalysisResult, HistoryItem


class Phase(str, Enum):
    AUTH = "auth"
    UPLOAD = "upload"
    ANALYZING = "analyzing"
    REPORT = "report"
    ERROR = "error"


@dataclass(frozen=True)
class UploadedFile:
    content: str  # base64
    mime_type: str
    name: str


@dataclass(frozen=True)
class AppState:
    phase: Phase = Phase.UPLOAD
    auth_mode: str = "login"
    is_authenticated: bool = False
    job_title: str = ""
    job_description: str = ""
    target_locked: bool = False
    current_file: Optional[UploadedFile] = None
    file_name: Optional[str] = None
    result: Optional[AnalysisResult] = None
    quick_summary: Optional[str] = None
    loading_message: str = ""
    error: Optional[str] = None
    upload_error: Optional[str] = None
    run_id: int = 0


# events

@dataclass(frozen=True)
class TitleEdited:
    title: str


@dataclass(frozen=True)
class TargetLocked:
    pass


@dataclass(frozen=True)
class DescriptionEdited:
    text: str


@dataclass(frozen=True)
class AuthRequested:
    mode: str = "login"


@dataclass(frozen=True)
class AuthCompleted:
    pass


@dataclass(frozen=True)
class LoggedOut:
    pass


@dataclass(frozen=True)
class IngestionRejected:
    message: str


@dataclass(frozen=True)
class FileAccepted:
    file: UploadedFile


@dataclass(frozen=True)
class ImpressionReceived:
    run_id: int
    summary: str


@dataclass(frozen=True)
class AnalysisSucceeded:
    run_id: int
    result: AnalysisResult


@dataclass(frozen=True)
class AnalysisFailed:
    run_id: int
    message: str


@dataclass(frozen=True)
class HistorySelected:
    item: HistoryItem


@dataclass(frozen=True)
class Reset:
    pass
