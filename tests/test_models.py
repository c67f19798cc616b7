"""Tests for task decoding and request validation."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from kieai_kit.catalog import list_models
from kieai_kit.errors import BadRequestError, DecodingFailedError, TaskFailedError
from kieai_kit.models import (
    ExecutionMode,
    ImageEditRequest,
    ImageGenerationRequest,
    MediaKind,
    Task,
    TaskStatus,
    UploadedFile,
    Veo31Request,
    VeoMode,
)


class TestTaskStatus:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("waiting", TaskStatus.WAITING),
            ("queuing", TaskStatus.PENDING),
            ("queued", TaskStatus.PENDING),
            ("generating", TaskStatus.PROCESSING),
            ("running", TaskStatus.PROCESSING),
            ("SUCCESS", TaskStatus.SUCCESS),
            ("fail", TaskStatus.FAILED),
            ("canceled", TaskStatus.CANCELLED),
        ],
    )
    def test_aliases(self, raw: str, expected: TaskStatus) -> None:
        assert TaskStatus.parse(raw) is expected

    def test_unknown_state(self) -> None:
        with pytest.raises(DecodingFailedError):
            TaskStatus.parse("exploded")

    def test_terminal_states(self) -> None:
        terminal = {status for status in TaskStatus if status.is_terminal}
        assert terminal == {TaskStatus.SUCCESS, TaskStatus.FAILED, TaskStatus.CANCELLED}
        assert TaskStatus.WAITING.is_in_progress


class TestTaskFromPayload:
    def test_full_payload(self) -> None:
        task = Task.from_payload(
            {
                "taskId": "abc",
                "state": "success",
                "model": "flux-2",
                "progress": "100",
                "resultJson": '{"resultUrls": ["https://cdn/x.png"]}',
                "createTime": 1700000000000,
                "completeTime": 1700000005000,
                "metadata": {"duration": 5, "resultJson": "{}"},
            }
        )
        assert task.task_id == "abc"
        assert task.status is TaskStatus.SUCCESS
        assert task.progress == 100
        assert task.result_json == '{"resultUrls": ["https://cdn/x.png"]}'
        assert task.created_at == datetime(2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc)
        assert (task.completed_at - task.created_at).total_seconds() == 5
        assert task.metadata == {"duration": "5", "resultJson": "{}"}

    def test_fail_msg_wins_over_error_message(self) -> None:
        task = Task.from_payload({"taskId": "a", "state": "fail", "failMsg": "nsfw", "errorMessage": "other"})
        assert task.status is TaskStatus.FAILED
        assert task.error_message == "nsfw"

    def test_content_type(self) -> None:
        task = Task.from_payload({"task_id": "a", "status": "pending", "content_type": "VIDEO"})
        assert task.content_type is MediaKind.VIDEO

    def test_unknown_content_type_is_tolerated(self) -> None:
        task = Task.from_payload({"taskId": "a", "state": "pending", "contentType": "hologram"})
        assert task.content_type is None

    def test_missing_task_id(self) -> None:
        with pytest.raises(DecodingFailedError):
            Task.from_payload({"state": "success"})

    def test_not_an_object(self) -> None:
        with pytest.raises(DecodingFailedError):
            Task.from_payload(["abc"])

    @pytest.mark.parametrize("millis", [10**20, -(10**20), float("inf"), "9" * 40])
    def test_out_of_range_timestamps_are_dropped(self, millis: object) -> None:
        task = Task.from_payload({"taskId": "a", "state": "processing", "createTime": millis, "completeTime": millis})
        assert task.status is TaskStatus.PROCESSING
        assert task.created_at is None
        assert task.completed_at is None


class TestTaskValidate:
    def test_empty_id(self) -> None:
        with pytest.raises(BadRequestError):
            Task(task_id="", status=TaskStatus.PENDING).validate()

    def test_failed_with_message(self) -> None:
        with pytest.raises(TaskFailedError, match="content policy"):
            Task(task_id="a", status=TaskStatus.FAILED, error_message="content policy").validate()

    def test_failed_without_message_passes(self) -> None:
        Task(task_id="a", status=TaskStatus.FAILED).validate()


class TestRequests:
    def test_blank_prompt_rejected(self) -> None:
        with pytest.raises(ValueError):
            ImageGenerationRequest(prompt="   ")

    def test_size_preset(self) -> None:
        request = ImageGenerationRequest.with_size("a cat", "landscape")
        assert (request.width, request.height) == (1920, 1080)
        with pytest.raises(ValueError):
            ImageGenerationRequest.with_size("a cat", "huge")

    def test_edit_requires_image(self) -> None:
        with pytest.raises(ValueError):
            ImageEditRequest(prompt="x", image_urls=())
        assert ImageEditRequest.single("x", "https://a").image_urls == ("https://a",)

    @pytest.mark.parametrize("count", [0, 4])
    def test_veo_reference_bounds(self, count: int) -> None:
        urls = [f"https://x/{i}.png" for i in range(count)]
        with pytest.raises(ValueError):
            Veo31Request.reference_to_video("shot", urls)

    def test_veo_wire_model(self) -> None:
        assert Veo31Request(prompt="p").wire_model == "veo-3.1/text-to-video"
        assert Veo31Request(prompt="p", image_urls=("https://a",)).wire_model == "veo-3.1/image-to-video"
        first_last = Veo31Request.first_and_last_frames("p", "https://a", "https://b")
        assert first_last.mode is VeoMode.FIRST_AND_LAST_FRAMES
        assert first_last.wire_model == "veo-3.1/image-to-video"


class TestCatalog:
    def test_filter_by_kind(self) -> None:
        images = list_models("image")
        assert images and all(descriptor.kind is MediaKind.IMAGE for descriptor in images)

    def test_veo_is_immediate(self) -> None:
        veo = [descriptor for descriptor in list_models(MediaKind.VIDEO) if descriptor.wire_id.startswith("veo-3.1")]
        assert len(veo) == 2
        assert all(descriptor.execution_mode is ExecutionMode.IMMEDIATE for descriptor in veo)


class TestUploadedFile:
    def test_from_payload(self) -> None:
        uploaded = UploadedFile.from_payload(
            {
                "fileId": "f1",
                "downloadUrl": "https://files/x.png",
                "fileSize": 2048,
                "expiresAt": "2025-01-04T00:00:00Z",
            }
        )
        assert uploaded.file_url == "https://files/x.png"
        assert uploaded.file_size == 2048
        assert uploaded.expires_at == datetime(2025, 1, 4, tzinfo=timezone.utc)

    def test_missing_url(self) -> None:
        with pytest.raises(DecodingFailedError):
            UploadedFile.from_payload({"fileId": "f1"})
