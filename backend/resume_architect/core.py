import os
from pathlib import Path
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

MAX_FILE_MB = 5
MAX_FILE_BYTES = MAX_FILE_MB * 1024 * 1024

DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

ALLOWED_MIME_TYPES = {
    "application/pdf",
    DOCX_MIME,
    "text/plain",
    "image/png",
    "image/jpeg",
}

HISTORY_KEY = "resume_history"
HISTORY_LIMIT = 10

DEFAULT_HISTORY_TITLE = "General Analysis"

BASE_DIR = Path(__file__).resolve().parent.parent
DATA_DIR = Path(os.getenv("RESUME_ARCHITECT_DATA_DIR", str(BASE_DIR / "data")))

FAST_MODEL = os.getenv("GEMINI_FAST_MODEL", "gemini-3-flash-preview")
LITE_MODEL = os.getenv("GEMINI_LITE_MODEL", "gemini-2.5-flash-lite-latest")
PRO_MODEL = os.getenv("GEMINI_PRO_MODEL", "gemini-3-pro-preview")
THINKING_BUDGET = 32768


def get_api_key() -> Optional[str]:
    return os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY") or None


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SectionScore(_CamelModel):
    name: str
    score: int = Field(ge=0, le=100)
    feedback: str


class ActionItem(_CamelModel):
    priority: Literal["High", "Medium", "Low"]
    category: Literal["Formatting", "Content", "Keywords", "Impact"]
    suggestion: str


class Keywords(_CamelModel):
    present: List[str]
    missing: List[str]


class AnalysisResult(_CamelModel):
    overall_score: int = Field(ge=0, le=100)
    summary: str
    sections: List[SectionScore]
    keywords: Keywords
    action_items: List[ActionItem]
    job_market_insights: str


class HistoryItem(_CamelModel):
    id: str
    timestamp: int
    job_title: str
    score: int
    result: AnalysisResult
    file_name: str


class SessionResponse(BaseModel):
    status: bool = True
    session_id: str


class StatusResponse(BaseModel):
    status: bool = True
    session_id: str
    phase: str
    message: str
    job_title: str
    job_description: str
    target_locked: bool
    authenticated: bool
    auth_mode: str
    file_name: Optional[str] = None
    quick_summary: Optional[str] = None
    error: Optional[str] = None
    upload_error: Optional[str] = None
    has_result: bool = False


class TargetRequest(BaseModel):
    job_title: Optional[str] = None
    job_description: Optional[str] = None


class AuthRequest(BaseModel):
    mode: Literal["login", "signup"] = "login"


class AchievementRequest(BaseModel):
    task: str


class AchievementResponse(BaseModel):
    status: bool = True
    suggestions: List[str]
