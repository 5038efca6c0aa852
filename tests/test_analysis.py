import json

import httpx
import pytest

from analysis_service.analyzer import InterviewAnalyzer
from analysis_service.openai_client import chat_completion
from analysis_service.prompts import ANALYSIS_PROMPT, build_analysis_prompt, format_transcript
from common.config import OpenAISettings
from common.errors import AnalysisError
from common.schemas import AlignedEntry


@pytest.fixture
def entries():
    return [
        AlignedEntry(speaker="SPEAKER_00", text="Why do you want this role?", start=0.0, end=2.0),
        AlignedEntry(speaker="SPEAKER_01", text="I enjoy solving data problems.", start=2.0, end=5.0),
        AlignedEntry(speaker="unknown", text="(laughs)", start=5.0, end=5.5),
    ]


def completion_transport(content, captured, status=200):
    def handler(request):
        captured.append(request)
        if status != 200:
            return httpx.Response(status, json={"error": {"message": "model overloaded"}})
        return httpx.Response(200, json={"choices": [{"message": {"role": "assistant", "content": content}}]})

    return httpx.MockTransport(handler)


class TestPrompts:
    def test_format_transcript(self, entries):
        assert format_transcript(entries) == (
            "SPEAKER_00: Why do you want this role?\n"
            "SPEAKER_01: I enjoy solving data problems.\n"
            "unknown: (laughs)"
        )

    def test_format_transcript_empty(self):
        assert format_transcript([]) == ""

    def test_prompt_requests_five_assessments(self):
        prompt = build_analysis_prompt("A: hi")
        for section in ("Task summary", "Strengths", "Motivation", "Communication level", "Areas for improvement"):
            assert section in prompt
        assert prompt.rstrip().endswith("A: hi")

    def test_template_has_single_placeholder(self):
        assert ANALYSIS_PROMPT.count("{transcript}") == 1


class TestChatCompletion:
    @pytest.mark.asyncio
    async def test_payload_and_response(self):
        captured = []
        settings = OpenAISettings(api_key="sk-llm", model="gpt-4o-mini", temperature=0.3)
        content = await chat_completion(
            [{"role": "user", "content": "hello"}],
            settings,
            transport=completion_transport("Hi!", captured),
        )
        assert content == "Hi!"
        request = captured[0]
        assert request.url.path == "/v1/chat/completions"
        assert request.headers["Authorization"] == "Bearer sk-llm"
        payload = json.loads(request.content)
        assert payload["model"] == "gpt-4o-mini"
        assert payload["temperature"] == 0.3
        assert payload["messages"] == [{"role": "user", "content": "hello"}]


class TestInterviewAnalyzer:
    @pytest.mark.asyncio
    async def test_analyze_returns_raw_text(self, entries):
        captured = []
        analyzer = InterviewAnalyzer(OpenAISettings(), transport=completion_transport("1. Task summary: ...", captured))

        analysis = await analyzer.analyze(entries)

        assert analysis == "1. Task summary: ..."
        assert len(captured) == 1
        sent = json.loads(captured[0].content)["messages"][0]["content"]
        assert "SPEAKER_01: I enjoy solving data problems." in sent

    @pytest.mark.asyncio
    async def test_remote_failure_is_not_retried(self, entries):
        captured = []
        analyzer = InterviewAnalyzer(OpenAISettings(), transport=completion_transport("", captured, status=503))

        with pytest.raises(AnalysisError) as excinfo:
            await analyzer.analyze(entries)

        assert len(captured) == 1
        assert "model overloaded" in excinfo.value.details

    @pytest.mark.asyncio
    async def test_malformed_response(self, entries):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"choices": []}))
        with pytest.raises(AnalysisError):
            await InterviewAnalyzer(OpenAISettings(), transport=transport).analyze(entries)
