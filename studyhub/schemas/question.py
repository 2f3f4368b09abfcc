from pydantic import BaseModel, Field
from typing import List
from uuid import UUID
from datetime import datetime


class QuestionOut(BaseModel):
    id: UUID
    question: str
    image_url: str = ""
    asked_by: str
    answers: List = Field(default_factory=list)
    created_at: datetime

    class Config:
        from_attributes = True
