"""AI quiz generation: prompt → LLM → candidate questions.

The output is only ever a *draft* for the editor. Nothing here is saved or
scored; the author reviews the candidates and saves them as a normal quiz.
"""

import json
import logging
from typing import Any

from quiz_builder.config import settings
from quiz_builder.core.errors import GenerationFailed, ValidationFailed
from quiz_builder.db.models import CHOICE_TYPES, QuestionTypeEnum
from quiz_builder.services.document_text import extract_text
from quiz_builder.services.generation_cache import cached_questions, store_questions
from quiz_builder.services.llm_client import get_llm_client

logger = logging.getLogger(__name__)

# Labels the model (and older clients) use → enumerated question types.
_TYPE_LABELS: dict[str, QuestionTypeEnum] = {
    "mcq": QuestionTypeEnum.SINGLE_CHOICE,
    "single-choice": QuestionTypeEnum.SINGLE_CHOICE,
    "multi mcq": QuestionTypeEnum.MULTI_CHOICE,
    "multi-mcq": QuestionTypeEnum.MULTI_CHOICE,
    "multi-choice": QuestionTypeEnum.MULTI_CHOICE,
    "true/false": QuestionTypeEnum.TRUE_FALSE,
    "true-false": QuestionTypeEnum.TRUE_FALSE,
    "one word": QuestionTypeEnum.SHORT_ANSWER,
    "short-answer": QuestionTypeEnum.SHORT_ANSWER,
    "subjective": QuestionTypeEnum.FREE_TEXT,
    "free-text": QuestionTypeEnum.FREE_TEXT,
}

_EXAMPLES = """\
Example 1:
{"type": "MCQ", "text": "What is the capital of France?", "options": ["Paris", "London", "Berlin", "Rome"], "answer": "Paris"}

Example 2:
{"type": "Multi MCQ", "text": "Which of these are primary colours?", "options": ["Red", "Green", "Blue", "Purple"], "answer": ["Red", "Blue"]}

Example 3:
{"type": "True/False", "text": "The Sun rises in the west.", "options": ["True", "False"], "answer": "False"}

Example 4:
{"type": "One Word", "text": "Name the process by which plants make food.", "answer": "Photosynthesis"}

Example 5:
{"type": "Subjective", "text": "Explain why the sky appears blue.", "answer": "Due to scattering of sunlight by the atmosphere."}
"""

_GENERATE_PROMPT = """\
Generate a JSON array of {count} questions about "{source}".
Maintain a mix of difficulty of about {difficulties}.
Each question must be an object with keys:
- type: one of {types}
- text: question text
- options: array of strings (only for MCQ / Multi MCQ / True/False)
- answer: string (or array for Multi MCQ); every answer must be one of the options for choice questions
- explanation: one short sentence explaining the answer

Use the following examples for reference:

{examples}
Return **only JSON**, no extra text or formatting.
"""

_CONVERT_PROMPT = """\
The text below is an existing quiz or question paper. Convert every question in it into a
JSON array. Keep the original wording. Each question must be an object with keys:
- type: one of MCQ, Multi MCQ, True/False, One Word, Subjective
- text: question text
- options: array of strings (only for MCQ / Multi MCQ / True/False)
- answer: string (or array for Multi MCQ); use "" when the text gives no answer
- explanation: "" unless the text explains the answer

Use the following examples for reference:

{examples}
Quiz text:
\"\"\"
{document}
\"\"\"

Return **only JSON**, no extra text or formatting.
"""


# ── Parsing ───────────────────────────────────────────────────────────────────


def parse_questions_json(raw: str) -> list[dict[str, Any]]:
    """Extract a JSON array from the LLM response, even if wrapped in markdown.

    Raises GenerationFailed carrying the sanitised text when it is not JSON.
    """
    text = raw.replace("```json", "").replace("```JSON", "").replace("```", "").strip()
    start = text.find("[")
    end = text.rfind("]")
    candidate = text[start : end + 1] if start != -1 and end > start else text
    try:
        data = json.loads(candidate)
    except json.JSONDecodeError:
        logger.warning("LLM returned unparsable JSON: %s", text[:200])
        raise GenerationFailed(
            "LLM returned unparsable JSON",
            raw=text if settings.EXPOSE_LLM_RAW_OUTPUT else None,
        )
    if isinstance(data, dict):
        data = data.get("questions") or data.get("quiz") or [data]
    if not isinstance(data, list):
        raise GenerationFailed(
            "LLM returned unexpected JSON",
            raw=text if settings.EXPOSE_LLM_RAW_OUTPUT else None,
        )
    return [item for item in data if isinstance(item, dict)]


def resolve_type(label: Any) -> QuestionTypeEnum:
    return _TYPE_LABELS.get(str(label or "").strip().lower(), QuestionTypeEnum.SINGLE_CHOICE)


def normalize_candidate(item: dict[str, Any]) -> dict[str, Any] | None:
    """Shape one model-produced question like an editor question, or None to drop it."""
    text = str(item.get("text") or "").strip()
    if not text:
        return None
    q_type = resolve_type(item.get("type"))

    options = item.get("options") or []
    options = [str(o).strip() for o in options if str(o).strip()] if isinstance(options, list) else []
    if q_type == QuestionTypeEnum.TRUE_FALSE and not options:
        options = ["True", "False"]
    if q_type not in CHOICE_TYPES:
        options = []

    answer = item.get("answer")
    if q_type == QuestionTypeEnum.MULTI_CHOICE:
        values = answer if isinstance(answer, list) else ([answer] if answer else [])
        answer = [str(v) for v in values if str(v) in options]
    else:
        if isinstance(answer, list):
            answer = answer[0] if answer else ""
        answer = "" if answer is None else str(answer).strip()
        if q_type == QuestionTypeEnum.TRUE_FALSE:
            # Models often answer true/false questions with a bare boolean.
            answer = {"true": "True", "false": "False"}.get(answer.lower(), answer)
        if q_type in CHOICE_TYPES and answer not in options:
            answer = ""

    return {
        "type": q_type.value,
        "text": text,
        "options": options,
        "answer": answer,
        "explanation": str(item.get("explanation") or "").strip(),
    }


def _run_prompt(kind: str, prompt: str, cache_params: dict[str, Any], limit: int) -> list[dict[str, Any]]:
    cached = cached_questions(kind, cache_params)
    if cached is not None:
        return cached

    raw = get_llm_client().generate(prompt)
    if not raw.strip():
        raise GenerationFailed("LLM returned an empty response")

    questions = [q for q in map(normalize_candidate, parse_questions_json(raw)) if q]
    if not questions:
        raise GenerationFailed(
            "LLM returned no usable questions",
            raw=raw if settings.EXPOSE_LLM_RAW_OUTPUT else None,
        )
    questions = questions[:limit]
    store_questions(kind, cache_params, questions)
    logger.info("Generated %d candidate questions (%s)", len(questions), kind)
    return questions


# ── Entry points ──────────────────────────────────────────────────────────────


def generate_from_source(
    source: str | None,
    num_questions: int = 5,
    difficulties: list[str] | None = None,
    question_types: list[str] | None = None,
) -> list[dict[str, Any]]:
    """Generate candidate questions about a topic or a block of text."""
    if not source or not source.strip():
        raise ValidationFailed("source required")
    count = max(1, min(num_questions, settings.MAX_GENERATED_QUESTIONS))
    difficulties = difficulties or ["Intermediate"]
    question_types = question_types or ["MCQ", "True/False", "One Word", "Subjective"]

    prompt = _GENERATE_PROMPT.format(
        count=count,
        source=source.strip(),
        difficulties=", ".join(difficulties),
        types=", ".join(question_types),
        examples=_EXAMPLES,
    )
    params = {
        "source": source.strip(),
        "count": count,
        "difficulties": difficulties,
        "types": question_types,
    }
    return _run_prompt("generate", prompt, params, count)


def convert_document(file_bytes: bytes, filename: str) -> list[dict[str, Any]]:
    """Turn an uploaded quiz document into candidate questions."""
    document = extract_text(file_bytes, filename)
    prompt = _CONVERT_PROMPT.format(examples=_EXAMPLES, document=document)
    return _run_prompt(
        "convert", prompt, {"document": document}, settings.MAX_GENERATED_QUESTIONS
    )
