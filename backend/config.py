import os
import logging
from typing import Dict, Any

from domain.errors import ConfigurationError

logger = logging.getLogger(__name__)

try:
    from dotenv import load_dotenv
    load_dotenv()
except ImportError:
    pass

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8001
DEFAULT_ENGINE = "openai"
DEFAULT_OPENAI_MODEL = "whisper-1"
DEFAULT_MODEL_ID_SHERPA = "/models/sherpa-onnx"
DEFAULT_CHUNK_DURATION = 600
DEFAULT_SPEAKER_GAP = 2.0
DEFAULT_TRANSCRIPTION_TIMEOUT = 300.0
DEFAULT_TRANSCRIPTION_WORKERS = 4
DEFAULT_TRANSCODE_TIMEOUT = 600.0
DEFAULT_STORAGE_DIR = "/tmp/conversate/storage"
DEFAULT_MAX_UPLOAD_BYTES = 100 * 1024 * 1024
DEFAULT_JOB_WORKERS = 2

VALID_ENGINES = ("openai", "sherpa", "stand-in")


def _env_number(name: str, default, cast=int):
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = cast(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from e
    if value <= 0:
        raise ConfigurationError(f"{name} must be positive, got {raw!r}")
    return value


class Config:
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            instance = super(Config, cls).__new__(cls)
            instance._initialize()
            cls._instance = instance
        return cls._instance

    def _initialize(self):
        self.host = os.environ.get("HOST", DEFAULT_HOST)
        self.port = _env_number("PORT", DEFAULT_PORT)
        self.debug = os.environ.get("DEBUG", "0") == "1"
        self.engine = os.environ.get("ENGINE", DEFAULT_ENGINE).lower()
        self.openai_api_key = os.environ.get("OPENAI_API_KEY") or None
        self.openai_model = os.environ.get("OPENAI_MODEL", DEFAULT_OPENAI_MODEL)
        self.model_id = os.environ.get("MODEL_ID", "").strip() or DEFAULT_MODEL_ID_SHERPA
        self.chunk_duration = _env_number("CHUNK_DURATION", DEFAULT_CHUNK_DURATION)
        self.speaker_gap = _env_number("SPEAKER_GAP_SECONDS", DEFAULT_SPEAKER_GAP, float)
        self.transcription_timeout = _env_number("TRANSCRIPTION_TIMEOUT", DEFAULT_TRANSCRIPTION_TIMEOUT, float)
        self.transcription_workers = _env_number("TRANSCRIPTION_WORKERS", DEFAULT_TRANSCRIPTION_WORKERS)
        self.transcode_timeout = _env_number("TRANSCODE_TIMEOUT", DEFAULT_TRANSCODE_TIMEOUT, float)
        self.ffmpeg_path = os.environ.get("FFMPEG_PATH", "ffmpeg")
        self.ffprobe_path = os.environ.get("FFPROBE_PATH", "ffprobe")
        self.storage_dir = os.environ.get("STORAGE_DIR", DEFAULT_STORAGE_DIR)
        self.storage_base_url = os.environ.get("STORAGE_BASE_URL") or None
        self.max_upload_bytes = _env_number("MAX_UPLOAD_BYTES", DEFAULT_MAX_UPLOAD_BYTES)
        self.job_workers = _env_number("JOB_WORKERS", DEFAULT_JOB_WORKERS)

        if self.engine not in VALID_ENGINES:
            raise ConfigurationError(
                f"Unknown ENGINE: {self.engine!r}. Valid options: {', '.join(VALID_ENGINES)}"
            )

    def as_dict(self) -> Dict[str, Any]:
        return {
            "host": self.host,
            "port": self.port,
            "debug": self.debug,
            "engine": self.engine,
            "openai_model": self.openai_model,
            "has_openai_key": self.openai_api_key is not None,
            "model_id": self.model_id,
            "chunk_duration": self.chunk_duration,
            "speaker_gap": self.speaker_gap,
            "transcription_timeout": self.transcription_timeout,
            "transcription_workers": self.transcription_workers,
            "transcode_timeout": self.transcode_timeout,
            "storage_dir": self.storage_dir,
            "max_upload_bytes": self.max_upload_bytes,
            "job_workers": self.job_workers,
        }


def get_config() -> Config:
    return Config()


def create_transcoder(cfg: Config):
    """Create the media transcoding adapter (always FFmpeg)."""
    from adapters.ffmpeg.transcoder import FFmpegTranscoder
    return FFmpegTranscoder(
        ffmpeg_path=cfg.ffmpeg_path,
        ffprobe_path=cfg.ffprobe_path,
        timeout=cfg.transcode_timeout,
    )


def create_transcription_engines(cfg: Config):
    """Create the primary ASR adapter and the stand-in fallback based on ENGINE.

    Uses lazy imports so unused frameworks are never loaded.
    """
    from adapters.stand_in import StandInTranscriptionAdapter

    stand_in = StandInTranscriptionAdapter()
    engine = cfg.engine

    if engine == "openai":
        from adapters.openai import OpenAIWhisperAdapter
        primary = OpenAIWhisperAdapter(
            api_key=cfg.openai_api_key,
            model=cfg.openai_model,
            timeout=cfg.transcription_timeout,
        )
    elif engine == "sherpa":
        from adapters.sherpa import SherpaTranscriptionAdapter
        primary = SherpaTranscriptionAdapter(model_dir=cfg.model_id)
        try:
            primary.load()
        except (FileNotFoundError, ImportError) as e:
            # An unloaded adapter reports itself unavailable, so the stand-in takes over.
            logger.warning(f"Sherpa model could not be loaded: {e}")
    else:
        primary = stand_in

    mode = "available" if primary.is_available() else "stand-in"
    logger.info(f"Transcription engine: {engine} -> {type(primary).__name__} ({mode})")
    return primary, stand_in


def create_storage(cfg: Config):
    """Create the object storage adapter (local filesystem)."""
    from adapters.local.file_storage import LocalFileStorage
    return LocalFileStorage(cfg.storage_dir, base_url=cfg.storage_base_url)


def create_infra_adapters(cfg: Config):
    """Create the job queue and progress adapters."""
    from adapters.local.job_queue import ThreadPoolJobAdapter
    from adapters.local.log_progress import LogProgressAdapter

    adapters = {
        "job_queue": ThreadPoolJobAdapter(max_workers=cfg.job_workers),
        "progress": LogProgressAdapter(),
    }
    logger.info(f"Infra adapters: {', '.join(type(v).__name__ for v in adapters.values())}")
    return adapters
