from __future__ import annotations

from typing import Iterable

from common.schemas import AlignedEntry

ANALYSIS_PROMPT = """\
You are an experienced interviewer reviewing the transcript of a job interview.
Each line has the form "<speaker>: <text>".

Based on the transcript, write an assessment of the candidate with exactly these five sections:

1. Task summary: what the candidate was asked to do and how they approached it.
2. Strengths: the skills and qualities the candidate demonstrated.
3. Motivation: how motivated and engaged the candidate appears, with evidence.
4. Communication level: clarity, structure and fluency of the candidate's answers.
5. Areas for improvement: concrete points the candidate should work on.

Be specific and refer to what was actually said. If the transcript does not
contain enough information for a section, say so instead of guessing.

Transcript:
{transcript}
"""


def format_transcript(entries: Iterable[AlignedEntry]) -> str:
    return "\n".join(f"{e.speaker}: {e.text}" for e in entries)


def build_analysis_prompt(formatted_transcript: str) -> str:
    return ANALYSIS_PROMPT.format(transcript=formatted_transcript)
