from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from analysis_service.analyzer import InterviewAnalyzer
from asr_service.combiner import combine
from asr_service.diarizer import PyannoteDiarizer
from asr_service.transcoder import Transcoder
from asr_service.transcriber import WhisperTranscriber
from common.config import AppSettings
from common.errors import NotFoundError, ValidationError
from common.schemas import (
    AnalyzeInterviewResponse,
    CombineSpeechesResponse,
    ErrorResponse,
    FilenameRequest,
    ProcessAudioResponse,
    ResultRecord,
)
from gateway.pipeline import UPLOADS_ROUTE, AudioPipeline
from gateway.store import ResultStore

logger = logging.getLogger(__name__)


def create_app(settings: AppSettings | None = None) -> FastAPI:
    settings = settings or AppSettings()
    uploads_dir = Path(settings.gateway.uploads_dir)
    results_dir = Path(settings.gateway.results_dir)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        uploads_dir.mkdir(parents=True, exist_ok=True)
        results_dir.mkdir(parents=True, exist_ok=True)
        logger.info("Serving %s at %s", uploads_dir.resolve(), UPLOADS_ROUTE)
        yield

    app = FastAPI(title="Interview Transcriptor", lifespan=lifespan)

    transcoder = Transcoder(settings.audio)
    store = ResultStore(results_dir)
    app.state.settings = settings
    app.state.store = store
    app.state.analyzer = InterviewAnalyzer(settings.openai)
    app.state.pipeline = AudioPipeline(
        settings,
        transcoder=transcoder,
        transcriber=WhisperTranscriber(settings.whisper, transcoder),
        diarizer=PyannoteDiarizer(settings.pyannote),
        store=store,
    )

    # The diarization service downloads waveforms from here
    app.mount(UPLOADS_ROUTE, StaticFiles(directory=uploads_dir, check_dir=False), name="uploads")

    _register_error_handlers(app)
    _register_routes(app)
    return app


def _error(status_code: int, error: str, details: str | None = None) -> JSONResponse:
    body = ErrorResponse(error=error, details=details).model_dump(exclude_none=True)
    return JSONResponse(status_code=status_code, content=body)


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ValidationError)
    async def validation_error(request: Request, exc: ValidationError):
        return _error(400, exc.message)

    @app.exception_handler(NotFoundError)
    async def not_found_error(request: Request, exc: NotFoundError):
        return _error(404, exc.message)

    @app.exception_handler(RequestValidationError)
    async def request_validation_error(request: Request, exc: RequestValidationError):
        return _error(400, "Invalid request body", str(exc.errors()))


def _require_result(store: ResultStore, filename: str | None) -> str:
    if not filename:
        raise ValidationError("Filename is required in request body")
    if not store.exists(filename):
        raise NotFoundError("Result file not found", filename)
    return filename


def _register_routes(app: FastAPI) -> None:
    @app.get("/health")
    async def health():
        return {"status": "ok"}

    @app.post("/process-audio", response_model=ProcessAudioResponse)
    async def process_audio(req: FilenameRequest, request: Request):
        pipeline: AudioPipeline = request.app.state.pipeline
        try:
            result = await pipeline.process(req.filename)
        except (ValidationError, NotFoundError):
            raise
        except Exception as exc:
            logger.exception("Processing error for %s", req.filename)
            return _error(500, "Processing failed", str(exc))

        return ProcessAudioResponse(result=result.entries, saved_file=result.saved_file)

    @app.post("/combine-speeches", response_model=CombineSpeechesResponse)
    async def combine_speeches(req: FilenameRequest, request: Request):
        store: ResultStore = request.app.state.store
        filename = _require_result(store, req.filename)
        try:
            record = store.load(filename)
            combined = combine(record.transcription)
            output_file = store.save_combined(filename, combined)
        except Exception as exc:
            logger.exception("Combining speeches failed for %s", filename)
            return _error(500, "Combination failed", str(exc))

        logger.info("Combined %d entries into %d turns -> %s", len(record.transcription), len(combined), output_file)
        return CombineSpeechesResponse(message="Speeches combined successfully", output_file=output_file)

    @app.post("/analyze-interview", response_model=AnalyzeInterviewResponse)
    async def analyze_interview(req: FilenameRequest, request: Request):
        store: ResultStore = request.app.state.store
        analyzer: InterviewAnalyzer = request.app.state.analyzer
        filename = _require_result(store, req.filename)
        try:
            record = store.load(filename)
            analysis = await analyzer.analyze(record.transcription)
            store.update(filename, lambda r: r.model_copy(update={"summary": analysis}))
        except Exception as exc:
            logger.exception("Interview analysis failed for %s", filename)
            return _error(500, "Analysis failed", str(exc))

        return AnalyzeInterviewResponse(analysis=analysis, updated_file=filename)

    @app.get("/results/{filename}")
    async def get_result(filename: str, request: Request):
        store: ResultStore = request.app.state.store
        try:
            record: ResultRecord = store.load(filename)
        except (ValidationError, NotFoundError):
            raise
        except Exception as exc:
            logger.exception("Reading result %s failed", filename)
            return _error(500, "Reading result failed", str(exc))
        return JSONResponse(content=record.model_dump(by_alias=True, exclude_none=True))


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = app.state.settings
    logging.basicConfig(
        level=settings.gateway.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    uvicorn.run(app, host=settings.gateway.host, port=settings.gateway.port)
