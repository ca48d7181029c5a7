"""Tests for the HTTP surface with in-process adapters."""

import asyncio
import io

import pytest
from fastapi import HTTPException, UploadFile
from fastapi.testclient import TestClient

from adapters.local.file_storage import LocalFileStorage
from adapters.local.job_queue import SyncJobAdapter
from adapters.stand_in import StandInTranscriptionAdapter
import api
from api import create_app, media_type_for, read_bounded
from config import get_config
from conftest import FakeEngine, FakeTranscoder, RecordingProgress
from domain.models import MediaType

LESSON = b"Hello, how are you today? I am learning English. We booked a hotel for our trip."


@pytest.fixture
def transcoder():
    return FakeTranscoder()


@pytest.fixture
def client(tmp_path, transcoder):
    app = create_app(
        transcoder=transcoder,
        transcription=FakeEngine(available=False),
        stand_in=StandInTranscriptionAdapter(),
        storage=LocalFileStorage(str(tmp_path)),
        job_queue=SyncJobAdapter(),
        progress=RecordingProgress(),
    )
    return TestClient(app)


@pytest.mark.unit
class TestMediaTypeFor:
    @pytest.mark.parametrize("content_type,expected", [
        ("video/mp4", MediaType.VIDEO),
        ("video/quicktime", MediaType.VIDEO),
        ("audio/mpeg", MediaType.AUDIO),
        ("audio/wav", MediaType.AUDIO),
        ("text/plain; charset=utf-8", MediaType.TEXT),
        ("application/pdf", None),
        (None, None),
    ])
    def test_mapping(self, content_type, expected):
        assert media_type_for(content_type) is expected


@pytest.mark.unit
class TestReadBounded:
    def test_unknown_size_stops_once_over_limit(self, monkeypatch):
        monkeypatch.setattr(api, "UPLOAD_READ_SIZE", 4)
        stream = io.BytesIO(b"x" * 100)
        upload = UploadFile(file=stream, filename="big.txt")

        with pytest.raises(HTTPException) as exc_info:
            asyncio.run(read_bounded(upload, 10))

        assert exc_info.value.status_code == 413
        assert stream.tell() == 12

    def test_declared_size_rejected_before_reading(self):
        stream = io.BytesIO(b"x" * 100)
        upload = UploadFile(file=stream, filename="big.txt", size=100)

        with pytest.raises(HTTPException):
            asyncio.run(read_bounded(upload, 10))

        assert stream.tell() == 0

    def test_within_limit(self):
        upload = UploadFile(file=io.BytesIO(b"hello"), filename="a.txt")

        assert asyncio.run(read_bounded(upload, 5)) == b"hello"


@pytest.mark.integration
class TestUploads:
    def test_text_upload_completes_with_analysis(self, client, tmp_path):
        response = client.post(
            "/v1/uploads",
            files={"file": ("lesson.txt", LESSON, "text/plain")},
            data={"language": "en", "proficiency_level": "a2"},
        )

        assert response.status_code == 202
        body = response.json()
        assert body["status"] == "completed"
        assert body["media_type"] == "text"
        assert body["size"] == len(LESSON)
        assert (tmp_path / "uploads" / body["job_id"] / "lesson.txt").read_bytes() == LESSON

        status = client.get(f"/v1/uploads/{body['job_id']}").json()
        analysis = status["analysis"]
        assert status["status"] == "completed"
        assert analysis["topics"] == ["Travel"]
        assert analysis["conversations"][0]["proficiency_level"] == "A2"
        assert analysis["transcript"] is None
        assert analysis["statistics"]["total_speakers"] == 1
        assert {turn["speaker"] for turn in analysis["turns"]} == {"Reader"}

    def test_video_upload_in_stand_in_mode(self, client, transcoder):
        response = client.post("/v1/uploads", files={"file": ("clip.mp4", b"video", "video/mp4")})

        status = client.get(f"/v1/uploads/{response.json()['job_id']}").json()

        assert transcoder.extract_calls == 1
        assert status["status"] == "completed"
        assert status["analysis"]["used_stand_in"] is True
        assert status["analysis"]["engine"] == "stand-in"
        assert len(status["analysis"]["segments"]) == 4

    def test_failed_pipeline_reports_stage(self, tmp_path):
        app = create_app(
            transcoder=FakeTranscoder(has_audio=False),
            transcription=FakeEngine(),
            storage=LocalFileStorage(str(tmp_path)),
            job_queue=SyncJobAdapter(),
            progress=RecordingProgress(),
        )
        client = TestClient(app)

        job_id = client.post("/v1/uploads", files={"file": ("clip.mp4", b"video", "video/mp4")}).json()["job_id"]
        status = client.get(f"/v1/uploads/{job_id}").json()

        assert status["status"] == "failed"
        assert status["stage"] == "transcoding"
        assert "no audio track" in status["error"]
        assert status["analysis"] is None

    def test_unsupported_type(self, client):
        response = client.post("/v1/uploads", files={"file": ("a.zip", b"PK", "application/zip")})

        assert response.status_code == 415

    def test_invalid_level(self, client):
        response = client.post(
            "/v1/uploads",
            files={"file": ("a.txt", b"Hi there.", "text/plain")},
            data={"proficiency_level": "Z9"},
        )

        assert response.status_code == 400

    def test_empty_file(self, client):
        response = client.post("/v1/uploads", files={"file": ("a.txt", b"", "text/plain")})

        assert response.status_code == 400

    def test_size_limit(self, client, monkeypatch):
        monkeypatch.setattr(get_config(), "max_upload_bytes", 4)

        response = client.post("/v1/uploads", files={"file": ("a.txt", b"Too long.", "text/plain")})

        assert response.status_code == 413

    def test_upload_read_in_pieces_up_to_limit(self, client, monkeypatch):
        monkeypatch.setattr(api, "UPLOAD_READ_SIZE", 2)
        monkeypatch.setattr(get_config(), "max_upload_bytes", len(LESSON))

        response = client.post("/v1/uploads", files={"file": ("lesson.txt", LESSON, "text/plain")})

        assert response.status_code == 202
        assert response.json()["size"] == len(LESSON)

    def test_unknown_upload(self, client):
        assert client.get("/v1/uploads/doesnotexist").status_code == 404


@pytest.mark.integration
class TestHealth:
    def test_reports_stand_in_mode(self, client):
        body = client.get("/health").json()

        assert body["status"] == "ok"
        assert body["ffmpeg"] is True
        assert body["transcription_engine"] == "fake-asr"
        assert body["stand_in_mode"] is True
        assert body["storage"] is True
