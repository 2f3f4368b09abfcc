"""
View models returned to the browser.

They carry exactly what a page needs to render: the lists, their load state
and which affordances (upload form, ask form) are visible.
"""

from pydantic import BaseModel, Field
from typing import List, Literal, Optional

from studyhub.schemas.auth import SessionUser
from studyhub.schemas.document import DocumentOut
from studyhub.schemas.question import QuestionOut

Tab = Literal["docs", "qa"]

NO_ANSWERS_PLACEHOLDER = "Chưa có trả lời. Bạn có thể trả lời dưới đây..."
LOADING_PLACEHOLDER = "Đang tải..."


class Notice(BaseModel):
    message: str


class HeaderView(BaseModel):
    signed_in: bool
    user: Optional[SessionUser] = None
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None


class DocumentsView(BaseModel):
    state: str
    error: Optional[str] = None
    can_upload: bool
    query: str = ""
    items: List[DocumentOut] = Field(default_factory=list)


class QuestionItemView(BaseModel):
    question: QuestionOut
    has_image: bool
    answers_placeholder: Optional[str] = None


class QuestionsView(BaseModel):
    state: str
    error: Optional[str] = None
    can_ask: bool
    items: List[QuestionItemView] = Field(default_factory=list)


class HomeView(BaseModel):
    loading: bool
    placeholder: Optional[str] = None
    header: Optional[HeaderView] = None
    active_tab: Optional[Tab] = None
    documents: Optional[DocumentsView] = None
    questions: Optional[QuestionsView] = None


class UploadResult(Notice):
    document: Optional[DocumentOut] = None


class AskResult(Notice):
    question: Optional[QuestionOut] = None
