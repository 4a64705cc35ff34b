"""
AI assistant — clarification, duplicate detection and thread summaries.

Each feature is one LLM call with a fixed prompt and a fixed response shape.
The response is checked against a pydantic schema; anything that doesn't
match is treated exactly like a network failure.

Callers get None (or an empty list) whenever the AI is unavailable and carry
on without it. Nothing here is allowed to break posting or browsing.
"""

import json
from typing import Optional, Sequence

from pydantic import BaseModel, Field, StrictInt, StrictStr, ValidationError

from peerpath.llm_client import call_llm, is_configured
from peerpath.models import BaselineAnswer, Clarification, StructuredAnswer, ThreadSummary


# ============================================================
# RESPONSE SCHEMAS
# ============================================================

# Strict types: the model must send the right JSON types, nothing is coerced
# (e.g. "1", 1.0 or true are not accepted as an index)

class BaselineAnswerSchema(BaseModel):
    summary: StrictStr
    paths: list[StrictStr]


class ClarificationSchema(BaseModel):
    neutralQuestion: StrictStr = Field(..., description="Neutral, clearer rewording of the question")
    baselineAnswer: BaselineAnswerSchema
    suggestedTags: list[StrictStr] = Field(..., description="3-5 short topic tags")


class SimilarQuestionsSchema(BaseModel):
    indices: list[StrictInt] = Field(..., description="Positions of near-duplicate questions")


class ThreadSummarySchema(BaseModel):
    tldr: StrictStr
    consensus: StrictStr
    differences: StrictStr


# ============================================================
# PROMPTS
# ============================================================

CLARIFY_SYSTEM_PROMPT = """You help college students ask better career and academic questions.

Given a student's question, produce:
1. A neutral, clearer version of the question. Keep the student's intent. Remove emotional or leading wording.
2. A baseline answer: a one-paragraph summary and 2-3 possible paths the student could take.
3. 3-5 relevant short tags (lowercase, 1-3 words each).

Respond in this exact JSON format:
{
    "neutralQuestion": "string",
    "baselineAnswer": {
        "summary": "string",
        "paths": ["path 1", "path 2"]
    },
    "suggestedTags": ["tag1", "tag2", "tag3"]
}"""

SIMILAR_SYSTEM_PROMPT = """You detect duplicate questions on a campus Q&A forum.

You get a new question and a numbered list of existing question titles.
Return the indices (0-based, as numbered) of existing questions that are semantically very similar
to the new one. Return an empty list if none are.

Respond in this exact JSON format:
{
    "indices": [0, 3]
}"""

SUMMARY_SYSTEM_PROMPT = """You summarize career decision threads for college students.

You get a question and several mentor answers. Produce:
1. tldr: a 1-2 sentence takeaway for the student.
2. consensus: what the mentors agree on.
3. differences: where the mentors disagree or suggest different paths.

Respond in this exact JSON format:
{
    "tldr": "string",
    "consensus": "string",
    "differences": "string"
}"""


# ============================================================
# FEATURES
# ============================================================

def clarify(question_text: str) -> Optional[Clarification]:
    """Neutral rewording, baseline answer and tags for a draft question."""
    if not is_configured():
        return None

    result = call_llm(
        system_prompt=CLARIFY_SYSTEM_PROMPT,
        user_prompt=f"Question: {question_text}",
        temperature=0.3,
    )
    if result is None:
        return None

    try:
        parsed = ClarificationSchema.model_validate(result)
    except ValidationError as e:
        print(f"Warning: clarification response did not match schema: {e.error_count()} errors")
        return None

    return Clarification(
        neutral_question=parsed.neutralQuestion,
        baseline_answer=BaselineAnswer(
            summary=parsed.baselineAnswer.summary,
            paths=list(parsed.baselineAnswer.paths),
        ),
        suggested_tags=list(parsed.suggestedTags),
    )


def find_similar(candidate_text: str, existing_titles: Sequence[str]) -> list[int]:
    """
    Indices into existing_titles of questions that look like duplicates.

    The indices come straight from the model and are NOT range-checked here.
    Bound-check them before indexing.
    """
    if not is_configured() or not existing_titles:
        return []

    numbered = [f"[{i}] {title}" for i, title in enumerate(existing_titles)]
    user_prompt = f"""New question: {json.dumps(candidate_text)}

EXISTING QUESTIONS:
{chr(10).join(numbered)}"""

    result = call_llm(
        system_prompt=SIMILAR_SYSTEM_PROMPT,
        user_prompt=user_prompt,
        temperature=0.0,
    )
    if result is None:
        return []

    # Some models answer with the bare array despite the instructions
    if isinstance(result, list):
        result = {"indices": result}

    try:
        parsed = SimilarQuestionsSchema.model_validate(result)
    except ValidationError as e:
        print(f"Warning: similarity response did not match schema: {e.error_count()} errors")
        return []

    return list(parsed.indices)


def summarize_thread(question_text: str,
                     answers: Sequence[StructuredAnswer]) -> Optional[ThreadSummary]:
    """
    TL;DR, consensus and differences across a thread's answers.
    Only meaningful with 2+ answers; the caller checks that.
    """
    if not is_configured():
        return None

    answers_text = "\n".join(
        f"Answer {i + 1}: {a.short_answer}" for i, a in enumerate(answers)
    )
    user_prompt = f"""Question: {question_text}

ANSWERS:
{answers_text}"""

    result = call_llm(
        system_prompt=SUMMARY_SYSTEM_PROMPT,
        user_prompt=user_prompt,
        temperature=0.2,
    )
    if result is None:
        return None

    try:
        parsed = ThreadSummarySchema.model_validate(result)
    except ValidationError as e:
        print(f"Warning: summary response did not match schema: {e.error_count()} errors")
        return None

    return ThreadSummary(tldr=parsed.tldr, consensus=parsed.consensus, differences=parsed.differences)
