from pydantic import BaseModel
from uuid import UUID
from datetime import datetime


class DocumentOut(BaseModel):
    id: UUID
    title: str
    subject: str
    file_url: str
    file_name: str
    uploaded_by: str
    created_at: datetime

    class Config:
        from_attributes = True
