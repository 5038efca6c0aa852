import pytest

from common.config import AppSettings, GatewaySettings, PipelineSettings
from common.schemas import DiarizationInterval, TranscriptSegment


@pytest.fixture
def uploads_dir(tmp_path):
    path = tmp_path / "uploads"
    path.mkdir()
    return path


@pytest.fixture
def results_dir(tmp_path):
    path = tmp_path / "results"
    path.mkdir()
    return path


@pytest.fixture
def settings(uploads_dir, results_dir):
    return AppSettings(
        gateway=GatewaySettings(
            uploads_dir=str(uploads_dir),
            results_dir=str(results_dir),
            public_base_url="https://demo.ngrok.app/",
        ),
        pipeline=PipelineSettings(concurrent_stages=False),
    )


@pytest.fixture
def segments():
    return [
        TranscriptSegment(start=0.0, end=2.0, text="Tell me about yourself."),
        TranscriptSegment(start=2.5, end=6.0, text="I build data pipelines."),
        TranscriptSegment(start=6.0, end=8.0, text="Mostly in Python."),
    ]


@pytest.fixture
def intervals():
    return [
        DiarizationInterval(start=0.0, end=2.2, speaker="SPEAKER_00"),
        DiarizationInterval(start=2.2, end=9.0, speaker="SPEAKER_01"),
    ]
