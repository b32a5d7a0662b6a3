from __future__ import annotations

import json
import logging
from typing import Any, Optional

from openai import OpenAI, OpenAIError

from .config import SummaryConfig
from .models import ReportRecord


logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """
You are summarizing Northwestern University CTEC written comments.

Return ONLY valid JSON matching this schema:

{
  "overall_sentiment": "positive | mixed | negative",
  "workload": "low | medium | high",
  "difficulty": "low | medium | high",
  "teaching_quality": "low | medium | high",
  "common_praise": ["..."],
  "common_complaints": ["..."],
  "tips_to_succeed": ["..."],
  "summary_paragraph": "..."
}

Rules:
- Use only evidence from the provided text.
- If unclear, choose "mixed" or "medium".
- Keep arrays 3-6 items.
""".strip()


def build_user_prompt(record: ReportRecord) -> str:
    q = record.course_input
    row = record.evaluation_row
    return (
        f"Course: {q.subject} {q.number}\n"
        f"Evaluation row: {row.term} | {row.description}\n\n"
        f"TEXT (between ESSAY QUESTIONS and DEMOGRAPHICS):\n"
        f"{record.essay_chunk or ''}"
    )


def summarize_record(
    record: ReportRecord,
    cfg: SummaryConfig,
    *,
    client: Optional[Any] = None,
) -> Optional[dict]:
    """
    Ask the completion API for a structured summary of the essay chunk.

    Returns None (and logs why) when there is no API key, too little text, or an unusable reply.
    """
    if not cfg.enabled and client is None:
        logger.info("OPENAI_API_KEY not set, skipping summary.")
        return None

    chunk = (record.essay_chunk or "").strip()
    if len(chunk) < cfg.min_chunk_chars:
        logger.info("Essay chunk too small (%d chars), skipping summary.", len(chunk))
        return None

    if client is None:
        client = OpenAI(api_key=cfg.api_key)

    logger.info("Generating summary with model=%s ...", cfg.model)
    try:
        resp = client.chat.completions.create(
            model=cfg.model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": build_user_prompt(record)},
            ],
            response_format={"type": "json_object"},
            temperature=0,
        )
    except OpenAIError:
        logger.warning("Summary request failed; saving the record without a summary.", exc_info=True)
        return None

    content = resp.choices[0].message.content or ""
    try:
        data = json.loads(content)
    except json.JSONDecodeError:
        logger.warning("Failed to parse summary JSON (%d chars).", len(content))
        return None
    if not isinstance(data, dict):
        logger.warning("Summary JSON was not an object; ignoring it.")
        return None
    return data
