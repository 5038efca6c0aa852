from __future__ import annotations

import logging
from typing import Sequence

import httpx

from analysis_service.openai_client import chat_completion
from analysis_service.prompts import build_analysis_prompt, format_transcript
from common.config import OpenAISettings
from common.errors import AnalysisError
from common.schemas import AlignedEntry

logger = logging.getLogger(__name__)


class InterviewAnalyzer:
    def __init__(
        self,
        settings: OpenAISettings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.settings = settings or OpenAISettings()
        self._transport = transport

    async def analyze(self, entries: Sequence[AlignedEntry]) -> str:
        """Ask the LLM for an interview assessment. One attempt, no retry."""
        prompt = build_analysis_prompt(format_transcript(entries))
        messages = [{"role": "user", "content": prompt}]

        try:
            analysis = await chat_completion(messages, self.settings, transport=self._transport)
        except httpx.HTTPStatusError as exc:
            logger.error("LLM API error (%d): %s", exc.response.status_code, exc.response.text)
            raise AnalysisError("Analysis request failed", exc.response.text) from exc
        except httpx.HTTPError as exc:
            logger.error("LLM API error: %s", exc)
            raise AnalysisError("Analysis request failed", str(exc)) from exc
        except (KeyError, IndexError, TypeError, ValueError) as exc:
            logger.error("LLM returned an unexpected body: %s", exc)
            raise AnalysisError("Analysis response was malformed", str(exc)) from exc

        logger.info("Analysis generated (%d chars) from %d entries", len(analysis), len(entries))
        return analysis
