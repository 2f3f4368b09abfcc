import logging
from typing import Optional

from studyhub.core.config import QA_BUCKET
from studyhub.core.errors import AuthError, ValidationError
from studyhub.schemas.auth import SessionUser
from studyhub.schemas.question import QuestionOut
from studyhub.schemas.views import (
    NO_ANSWERS_PLACEHOLDER,
    AskResult,
    QuestionItemView,
    QuestionsView,
)
from studyhub.services.collection import CollectionManager, FilePayload, generate_key

logger = logging.getLogger(__name__)

MISSING_QUESTION = "Nhập câu hỏi!"
NOT_AN_IMAGE = "Tệp đính kèm phải là hình ảnh"
IMAGE_UPLOAD_FAILED = "Lỗi upload ảnh: "
ASKED = "Câu hỏi đã gửi!"

IMAGE_EXTENSION = "jpg"


class QuestionBoardManager(CollectionManager):
    collection = "questions"
    schema = QuestionOut

    def __init__(self, datastore, storage, bucket: str = QA_BUCKET):
        super().__init__(datastore, storage, bucket)

    async def ask(
        self,
        question_text: str,
        image: Optional[FilePayload],
        asker: Optional[SessionUser]
    ) -> AskResult:
        if not question_text or not question_text.strip():
            raise ValidationError(MISSING_QUESTION)
        if image is not None and not (image.content_type or "").startswith("image/"):
            raise ValidationError(NOT_AN_IMAGE)
        if asker is None:
            raise AuthError("Bạn cần đăng nhập để đặt câu hỏi")

        image_url = ""
        key = None
        if image is not None:
            key = generate_key(IMAGE_EXTENSION)
            image_url = await self._store_file(key, image, IMAGE_UPLOAD_FAILED)

        created = await self._insert(
            {
                "question": question_text,
                "image_url": image_url,
                "asked_by": asker.label,
                "answers": [],
            },
            stored_key=key,
        )
        logger.info("Question %s asked by %s", created.get("id"), asker.label)

        await self.refresh()
        return AskResult(message=ASKED, question=QuestionOut.model_validate(created))

    def view(self, can_ask: bool) -> QuestionsView:
        return QuestionsView(
            state=self.state.value,
            error=self.error,
            can_ask=can_ask,
            items=[
                QuestionItemView(
                    question=question,
                    has_image=bool(question.image_url),
                    answers_placeholder=None if question.answers else NO_ANSWERS_PLACEHOLDER,
                )
                for question in self.items
            ],
        )
