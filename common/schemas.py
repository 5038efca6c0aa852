from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

UNKNOWN_SPEAKER = "unknown"


# --- Pipeline data: transcription, diarization, alignment ---

class TranscriptSegment(BaseModel):
    start: float
    end: float
    text: str


class DiarizationInterval(BaseModel):
    start: float
    end: float
    speaker: str


class AlignedEntry(BaseModel):
    speaker: str = UNKNOWN_SPEAKER
    text: str
    start: float
    end: float


class JobStatus(str, Enum):
    queued = "queued"
    succeeded = "succeeded"
    failed = "failed"


class DiarizationJob(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    job_id: str = Field(alias="jobId")
    # running, pending, ... as well as JobStatus values
    status: str
    output: Optional[dict[str, Any]] = None


class ResultRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    original_file: str = Field(alias="originalFile")
    processed_at: str = Field(alias="processedAt")
    transcription: list[AlignedEntry]
    summary: Optional[str] = None

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True, indent=2)


# --- HTTP request / response bodies ---

class FilenameRequest(BaseModel):
    filename: Optional[str] = None


class ProcessAudioResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    result: list[AlignedEntry]
    saved_file: str = Field(alias="savedFile")


class CombineSpeechesResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    message: str
    output_file: str = Field(alias="outputFile")


class AnalyzeInterviewResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    analysis: str
    updated_file: str = Field(alias="updatedFile")


class ErrorResponse(BaseModel):
    error: str
    details: Optional[str] = None
