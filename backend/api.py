"""HTTP surface: upload a file, poll its processing status, check health.

Uploads are stored through the object storage port and processed as
independent background jobs on the job queue port.
"""

import uuid
import logging
from pathlib import PurePosixPath
from typing import Optional

from fastapi import FastAPI, File, Form, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware

import config as config_module
from content_analysis import ContentAnalyzer
from domain.errors import PipelineError, StorageError
from domain.models import CEFR_LEVELS, MediaType
from mappers import outcome_to_response
from models import HealthResponse, UploadAccepted, UploadStatus
from ports.job_queue import JobQueuePort
from ports.progress import ProgressPort
from ports.storage import ObjectStoragePort
from ports.transcoding import MediaTranscodingPort
from ports.transcription import TranscriptionPort
from use_cases.process_upload import ProcessUploadUseCase
from use_cases.transcribe import TranscribeChunksUseCase

logger = logging.getLogger(__name__)

ALLOWED_VIDEO_TYPES = ["video/mp4", "video/quicktime", "video/mov", "video/x-msvideo", "video/avi", "video/webm"]
ALLOWED_AUDIO_TYPES = [
    "audio/mp3", "audio/mpeg", "audio/wav", "audio/x-wav", "audio/wave",
    "audio/m4a", "audio/x-m4a", "audio/mp4", "audio/ogg", "audio/webm", "audio/flac",
]
ALLOWED_TEXT_TYPES = ["text/plain"]
UPLOAD_READ_SIZE = 1024 * 1024


def media_type_for(content_type: Optional[str]) -> Optional[MediaType]:
    """Map an upload's MIME type to a pipeline media type, or None if not accepted."""
    mime = (content_type or "").split(";")[0].strip().lower()
    if mime in ALLOWED_VIDEO_TYPES:
        return MediaType.VIDEO
    if mime in ALLOWED_AUDIO_TYPES:
        return MediaType.AUDIO
    if mime in ALLOWED_TEXT_TYPES:
        return MediaType.TEXT
    return None


def _too_large(limit: int) -> HTTPException:
    return HTTPException(status_code=413, detail=f"File size exceeds {limit // (1024 * 1024)}MB limit")


async def read_bounded(file: UploadFile, limit: int) -> bytes:
    """Read an upload in pieces, rejecting it with 413 as soon as it passes limit bytes."""
    if file.size is not None and file.size > limit:
        raise _too_large(limit)
    data = bytearray()
    while True:
        piece = await file.read(UPLOAD_READ_SIZE)
        if not piece:
            break
        data.extend(piece)
        if len(data) > limit:
            raise _too_large(limit)
    return bytes(data)


def create_app(
    transcoder: Optional[MediaTranscodingPort] = None,
    transcription: Optional[TranscriptionPort] = None,
    stand_in: Optional[TranscriptionPort] = None,
    storage: Optional[ObjectStoragePort] = None,
    job_queue: Optional[JobQueuePort] = None,
    progress: Optional[ProgressPort] = None,
) -> FastAPI:
    """Build the FastAPI app. Adapters not passed in are created from config."""
    cfg = config_module.get_config()

    if transcoder is None:
        transcoder = config_module.create_transcoder(cfg)
    if transcription is None:
        transcription, default_stand_in = config_module.create_transcription_engines(cfg)
        stand_in = stand_in or default_stand_in
    if storage is None:
        storage = config_module.create_storage(cfg)
    if job_queue is None or progress is None:
        infra = config_module.create_infra_adapters(cfg)
        job_queue = job_queue or infra["job_queue"]
        progress = progress or infra["progress"]

    pipeline = ProcessUploadUseCase(
        transcoder=transcoder,
        transcriber=TranscribeChunksUseCase(
            transcription,
            stand_in=stand_in,
            max_workers=cfg.transcription_workers,
            timeout=cfg.transcription_timeout,
        ),
        analyzer=ContentAnalyzer(),
        progress=progress,
        chunk_duration=cfg.chunk_duration,
        speaker_gap=cfg.speaker_gap,
    )

    app = FastAPI(title="Conversate Ingest", version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health", response_model=HealthResponse)
    def health():
        stand_in_mode = not transcription.is_available()
        return HealthResponse(
            status="ok",
            ffmpeg=transcoder.is_available(),
            transcription_engine=transcription.model_name(),
            stand_in_mode=stand_in_mode,
            storage=storage.is_available(),
        )

    @app.post("/v1/uploads", response_model=UploadAccepted, status_code=202)
    async def upload(
        file: UploadFile = File(...),
        language: Optional[str] = Form(None),
        proficiency_level: str = Form("A1"),
    ):
        media_type = media_type_for(file.content_type)
        if media_type is None:
            raise HTTPException(status_code=415, detail=f"Unsupported file type: {file.content_type}")

        level = proficiency_level.upper()
        if level not in CEFR_LEVELS:
            raise HTTPException(status_code=400, detail=f"Invalid proficiency level: {proficiency_level}")

        data = await read_bounded(file, cfg.max_upload_bytes)
        if not data:
            raise HTTPException(status_code=400, detail="Uploaded file is empty")

        job_id = uuid.uuid4().hex[:12]
        filename = PurePosixPath(file.filename or "upload").name or "upload"
        try:
            stored = storage.put(data, f"uploads/{job_id}/{filename}", file.content_type)
        except StorageError as e:
            logger.error(f"[{job_id}] Upload storage failed: {e}", exc_info=True)
            raise HTTPException(status_code=502, detail="Could not store uploaded file")

        logger.info(f"[{job_id}] Accepted {media_type.value} upload {filename!r} ({len(data)} bytes)")
        # The queue consumes the job_id keyword; the pipeline gets it positionally for its logs.
        job_queue.submit(pipeline.process, data, media_type, language, level, job_id, job_id=job_id)

        return UploadAccepted(
            job_id=job_id,
            status=job_queue.status(job_id),
            filename=filename,
            media_type=media_type.value,
            size=len(data),
            storage_url=stored.url,
        )

    @app.get("/v1/uploads/{job_id}", response_model=UploadStatus)
    def upload_status(job_id: str):
        status = job_queue.status(job_id)
        if status == "unknown":
            raise HTTPException(status_code=404, detail=f"Unknown upload: {job_id}")

        response = UploadStatus(job_id=job_id, status=status)
        if status == "completed":
            response.analysis = outcome_to_response(job_queue.result(job_id))
        elif status == "failed":
            error = job_queue.error(job_id)
            if isinstance(error, PipelineError):
                response.stage = error.stage
                response.error = error.detail
            else:
                response.error = str(error) if error else "unknown error"
        return response

    return app
