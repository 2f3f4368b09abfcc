from sqlalchemy import Column, String, DateTime, Text, JSON, Uuid
from sqlalchemy.sql import func
from studyhub.core.database import Base
from studyhub.models.document import _utcnow
import uuid


class Question(Base):
    __tablename__ = "questions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    question = Column(Text, nullable=False)
    image_url = Column(String, nullable=False, default="")
    asked_by = Column(String, nullable=False)
    # Populated out-of-band only; this service always inserts an empty list
    answers = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), default=_utcnow, server_default=func.now(), index=True)
