from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings


class GatewaySettings(BaseSettings):
    host: str = "0.0.0.0"
    port: int = 3000
    uploads_dir: str = "uploads"
    results_dir: str = "results"
    # Externally reachable base URL (e.g. a tunnel) under which /uploads is served
    public_base_url: str = ""
    log_level: str = "INFO"

    model_config = {"env_file": ".env", "extra": "ignore"}


class AudioSettings(BaseSettings):
    ffmpeg_path: str = "ffmpeg"
    ffprobe_path: str = "ffprobe"
    sample_rate: int = 16000

    model_config = {"env_file": ".env", "extra": "ignore"}


class WhisperSettings(BaseSettings):
    api_key: str = ""
    base_url: str = "https://api.openai.com/v1"
    model: str = "whisper-1"
    language: str | None = None
    size_limit_bytes: int = 25 * 1024 * 1024
    chunk_duration_s: int = 600

    model_config = {"env_prefix": "WHISPER_", "env_file": ".env", "extra": "ignore"}


class PyannoteSettings(BaseSettings):
    api_key: str = ""
    base_url: str = "https://api.pyannote.ai/v1"
    max_attempts: int = 30
    poll_interval_s: float = 10.0
    timeout_s: float = 30.0

    model_config = {"env_prefix": "PYANNOTE_", "env_file": ".env", "extra": "ignore"}


class OpenAISettings(BaseSettings):
    api_key: str = ""
    base_url: str = "https://api.openai.com/v1"
    model: str = "gpt-4o-mini"
    temperature: float = 0.3
    max_tokens: int = 1024
    timeout_s: float = 120.0

    model_config = {"env_prefix": "OPENAI_", "env_file": ".env", "extra": "ignore"}


class PipelineSettings(BaseSettings):
    concurrent_stages: bool = False

    model_config = {"env_prefix": "PIPELINE_", "env_file": ".env", "extra": "ignore"}


class AppSettings(BaseModel):
    """Everything the process needs, loaded once at startup."""

    gateway: GatewaySettings = Field(default_factory=GatewaySettings)
    audio: AudioSettings = Field(default_factory=AudioSettings)
    whisper: WhisperSettings = Field(default_factory=WhisperSettings)
    pyannote: PyannoteSettings = Field(default_factory=PyannoteSettings)
    openai: OpenAISettings = Field(default_factory=OpenAISettings)
    pipeline: PipelineSettings = Field(default_factory=PipelineSettings)
