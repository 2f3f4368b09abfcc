"""
Tests for the question board: refresh, ask flow and rendering
"""
import pytest

from studyhub.core.errors import SaveError, UploadError, ValidationError
from studyhub.schemas.views import NO_ANSWERS_PLACEHOLDER
from studyhub.services.collection import FilePayload, ListState
from studyhub.services.questions import QuestionBoardManager

from conftest import FakeObjectStore


def photo(name="cau5.png", content_type="image/png"):
    return FilePayload(filename=name, content=b"\x89PNG...", content_type=content_type)


class TestAsk:

    @pytest.mark.asyncio
    async def test_text_only_question(self, data_store, object_store, minh):
        board = QuestionBoardManager(data_store, object_store)

        result = await board.ask("Đáp án câu 5 môn Toán HK1?", None, minh)

        assert result.message == "Câu hỏi đã gửi!"
        collection, record = data_store.inserts[0]
        assert collection == "questions"
        assert record == {
            "question": "Đáp án câu 5 môn Toán HK1?",
            "image_url": "",
            "asked_by": "Minh Trần",
            "answers": [],
        }
        assert object_store.uploads == []
        assert board.items[0].question == "Đáp án câu 5 môn Toán HK1?"

    @pytest.mark.asyncio
    async def test_image_goes_to_question_bucket_as_jpg(self, data_store, object_store, lan):
        board = QuestionBoardManager(data_store, object_store)

        await board.ask("Bài này giải sao ạ?", photo(), lan)

        bucket, key, content_type = object_store.uploads[0]
        assert bucket == "qa"
        assert key.endswith(".jpg")
        assert content_type == "image/png"
        _, record = data_store.inserts[0]
        assert record["image_url"] == f"https://cdn.studyhub.test/qa/{key}"
        assert record["asked_by"] == "lan@example.com"

    @pytest.mark.parametrize("text", ["", "   ", "\n\t "])
    @pytest.mark.asyncio
    async def test_blank_question_rejected(self, data_store, object_store, lan, text):
        data_store.seed("questions", question="Câu cũ", image_url="", asked_by="x", answers=[])
        board = QuestionBoardManager(data_store, object_store)
        await board.refresh()
        before = list(board.items)

        with pytest.raises(ValidationError) as exc:
            await board.ask(text, photo(), lan)

        assert exc.value.message == "Nhập câu hỏi!"
        assert len(data_store.inserts) == 1
        assert object_store.uploads == []
        assert board.items == before

    @pytest.mark.asyncio
    async def test_non_image_attachment_rejected(self, data_store, object_store, lan):
        board = QuestionBoardManager(data_store, object_store)
        with pytest.raises(ValidationError):
            await board.ask("Câu hỏi", photo("notes.pdf", "application/pdf"), lan)
        assert object_store.uploads == []

    @pytest.mark.asyncio
    async def test_image_upload_failure_aborts(self, data_store, lan):
        board = QuestionBoardManager(data_store, FakeObjectStore(fail_with="Payload too large"))

        with pytest.raises(UploadError) as exc:
            await board.ask("Câu hỏi kèm ảnh", photo(), lan)

        assert exc.value.message == "Lỗi upload ảnh: Payload too large"
        assert data_store.inserts == []

    @pytest.mark.asyncio
    async def test_insert_failure_removes_image(self, data_store, object_store, lan):
        data_store.fail_insert = "duplicate key"
        board = QuestionBoardManager(data_store, object_store)

        with pytest.raises(SaveError) as exc:
            await board.ask("Câu hỏi kèm ảnh", photo(), lan)

        assert exc.value.message == "Lỗi lưu: duplicate key"
        assert object_store.objects == {}
        assert len(object_store.deleted) == 1

    @pytest.mark.asyncio
    async def test_image_left_behind_is_logged(self, data_store, lan, caplog):
        object_store = FakeObjectStore(fail_delete=True)
        data_store.fail_insert = "duplicate key"
        board = QuestionBoardManager(data_store, object_store)

        with caplog.at_level("ERROR", logger="studyhub.services.collection"):
            with pytest.raises(SaveError) as exc:
                await board.ask("Câu hỏi kèm ảnh", photo(), lan)

        assert exc.value.message == "Lỗi lưu: duplicate key"
        assert "Orphaned object left in qa" in caplog.text
        assert data_store.selects == 0

    @pytest.mark.asyncio
    async def test_insert_failure_without_image_deletes_nothing(self, data_store, object_store, lan):
        data_store.fail_insert = "duplicate key"
        board = QuestionBoardManager(data_store, object_store)

        with pytest.raises(SaveError):
            await board.ask("Câu hỏi", None, lan)

        assert object_store.deleted == []


class TestBoardView:

    @pytest.mark.asyncio
    async def test_newest_first_with_placeholder(self, data_store, object_store):
        data_store.seed("questions", question="Q1", image_url="", asked_by="a", answers=[])
        data_store.seed("questions", question="Q2", image_url="https://cdn/x.jpg", asked_by="b", answers=[])
        board = QuestionBoardManager(data_store, object_store)
        await board.refresh()

        view = board.view(can_ask=True)

        assert view.state == "loaded"
        assert view.can_ask is True
        assert [item.question.question for item in view.items] == ["Q2", "Q1"]
        assert view.items[0].has_image is True
        assert view.items[1].has_image is False
        assert all(item.answers_placeholder == NO_ANSWERS_PLACEHOLDER for item in view.items)

    @pytest.mark.asyncio
    async def test_answered_question_has_no_placeholder(self, data_store, object_store):
        data_store.seed("questions", question="Q1", image_url="", asked_by="a",
                        answers=[{"text": "Đáp án là 42", "by": "c"}])
        board = QuestionBoardManager(data_store, object_store)
        await board.refresh()

        item = board.view(can_ask=False).items[0]

        assert item.answers_placeholder is None
        assert item.question.answers[0]["text"] == "Đáp án là 42"

    @pytest.mark.asyncio
    async def test_failed_fetch_is_reported_in_view(self, data_store, object_store):
        data_store.fail_select = "service unavailable"
        board = QuestionBoardManager(data_store, object_store)
        await board.refresh()

        view = board.view(can_ask=False)

        assert view.state == ListState.FAILED.value
        assert view.error == "service unavailable"
        assert view.items == []
