"""Per-provider LLM match scoring of a job against the reference resume."""

import json
import logging
import math
import re
from typing import Any, Literal

from pydantic import BaseModel, ValidationError, field_validator

from src.core.schemas import JobRecord, ProviderScore
from src.llm.base import LLMProvider

logger = logging.getLogger(__name__)

ScorerRole = Literal["primary", "secondary"]

# Shorter responses are treated as empty
MIN_RESPONSE_LENGTH = 10

_CODE_FENCE = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```")

_ROLE_CONTEXT = (
    "You are a strict, realistic technical recruiter evaluating job fit. "
    "Your assessments directly impact whether candidates waste time applying "
    "to unsuitable positions."
)

_PENALTIES_FROM_POSTING = """### AUTOMATIC SCORE PENALTIES (apply these strictly):

**Critical gaps (each reduces score by 15-25 points):**
- Missing a REQUIRED technical skill explicitly listed in the {source}
- Less experience than the MINIMUM years required
- Missing required degree/certification if stated as "required"
- No experience in a required industry/domain (e.g., "fintech experience required")

**Significant gaps (each reduces score by 10-15 points):**
- Missing 2+ preferred technical skills
- Experience is in a different domain (e.g., B2C vs B2B, startup vs enterprise)
- Location mismatch for non-remote roles
- Missing preferred degree level (e.g., has BS, role prefers MS/PhD)

**Minor gaps (each reduces score by 5-10 points):**
- Missing 1 preferred skill
- Slightly less experience than preferred (but meets minimum)
- Related but not exact industry experience"""

_PENALTIES_TYPICAL = """### AUTOMATIC SCORE PENALTIES (apply these strictly):

**Critical gaps (each reduces score by 15-25 points):**
- Missing a REQUIRED technical skill typically needed for this role type
- Less experience than typically required for senior/lead roles
- No experience in the required industry/domain if role implies it

**Significant gaps (each reduces score by 10-15 points):**
- Missing 2+ preferred technical skills for this role type
- Experience is in a different domain (e.g., B2C vs B2B, startup vs enterprise)
- Location mismatch for non-remote roles

**Minor gaps (each reduces score by 5-10 points):**
- Missing 1 preferred skill
- Slightly less experience than typically preferred
- Related but not exact industry experience"""

_SCORING_SCALE = """### SCORING SCALE:

- 0-25: Severely unqualified - missing multiple required qualifications
- 26-40: Poor match - missing 1-2 required qualifications or 3+ preferred
- 41-55: Below average - meets minimum but missing several preferred qualifications
- 56-70: Average match - meets most requirements, some gaps in preferred skills
- 71-80: Good match - meets all required, most preferred qualifications
- 81-90: Strong match - exceeds requirements in key areas
- 91-100: Exceptional - rare, exceeds all requirements significantly

### IMPORTANT GUIDELINES:

1. Start at 50 (neutral) and adjust based on gaps and strengths
2. NEVER score above 75 if ANY required qualification is missing
3. NEVER score above 60 if the candidate lacks the core technical skills for the role
4. Most candidates should realistically score between 35-65
5. A score of 70+ should be reserved for genuinely strong matches
6. Consider: would this resume make it past an ATS and initial recruiter screen?"""

_REQUIREMENTS_TRACKING = """Count the explicit requirements from the job posting{fallback}:
- requirementsTotal: Total number of distinct required AND strongly preferred qualifications
- requirementsMet: How many the candidate clearly demonstrates
- requirementsGaps: List each unmet requirement with brief explanation

Only count clear, specific requirements (not vague "nice to haves"). Examples of countable requirements:
- "5+ years Python experience" → 1 requirement
- "Bachelor's degree in CS or related field" → 1 requirement
- "Experience with React, TypeScript, and Node.js" → 3 requirements (count each technology)
- "Strong communication skills" → 0 (too vague, don't count)"""

_GAPS_FIELD = (
    '"requirementsMet": <number>, "requirementsTotal": <number>, '
    '"requirementsGaps": ["<unmet requirement 1 with brief explanation>", '
    '"<unmet requirement 2 with brief explanation>"]'
)


def _job_line(record: JobRecord) -> str:
    return f'Job: "{record.title}" at "{record.company}" in "{record.location}"'


def build_primary_prompt(record: JobRecord, reference_text: str) -> str:
    """Prompt that asks the model to look the posting up and summarise it."""
    return f"""{_ROLE_CONTEXT}

## STEP 1: FETCH JOB DESCRIPTION

Search for and retrieve the FULL job description from this LinkedIn job posting:
{record.url}

{_job_line(record)}

Use Google Search to find the complete requirements, qualifications, and responsibilities. Pay special attention to:
- Required vs preferred qualifications
- Specific technologies, frameworks, or tools mentioned
- Years of experience requirements
- Education requirements
- Industry-specific experience requirements

## STEP 2: CANDIDATE'S RESUME

{reference_text}

## STEP 3: STRICT MATCH EVALUATION

Score the match probability from 0-100. BE CONSERVATIVE AND REALISTIC.

{_PENALTIES_FROM_POSTING.format(source="job posting")}

{_SCORING_SCALE}

## STEP 4: REQUIREMENTS TRACKING

{_REQUIREMENTS_TRACKING.format(fallback="")}

## RESPONSE FORMAT

Respond ONLY with valid JSON (no markdown, no code blocks):
{{"probability": <number 0-100>, "reasoning": "<2-3 sentences citing SPECIFIC requirements from the job posting and how the candidate does or doesn't meet them>", "jobDescription": "<summarized job description including: role overview, required qualifications, preferred qualifications, key responsibilities, and any specific requirements like years of experience or technologies>", {_GAPS_FIELD}}}"""


def build_secondary_prompt(
    record: JobRecord,
    reference_text: str,
    job_description: str | None = None,
) -> str:
    """Prompt that scores from a supplied description, or from the title alone."""
    job_info = f"## JOB INFORMATION\n\n{_job_line(record)}\nLinkedIn URL: {record.url}"
    if job_description:
        job_info += f"\n\n## JOB DESCRIPTION\n\n{job_description}"
        penalties = _PENALTIES_FROM_POSTING.format(source="job description")
        reasoning = (
            "2-3 sentences citing SPECIFIC requirements from the job description "
            "and how the candidate does or doesn't meet them"
        )
    else:
        job_info += (
            "\n\nNote: You don't have access to the full job description. Base your "
            "analysis on the job title, company, and location provided, combined "
            "with typical requirements for this type of role."
        )
        penalties = _PENALTIES_TYPICAL
        reasoning = (
            "2-3 sentences explaining how the candidate's specific skills and "
            "experience align or don't align with typical requirements for this role type"
        )

    tracking = _REQUIREMENTS_TRACKING.format(
        fallback=" (or typical requirements for this role type if no job description is provided)"
    )
    return f"""{_ROLE_CONTEXT}

{job_info}

## CANDIDATE'S RESUME

{reference_text}

## STRICT MATCH EVALUATION

Score the match probability from 0-100. BE CONSERVATIVE AND REALISTIC.

{penalties}

{_SCORING_SCALE}

## REQUIREMENTS TRACKING

{tracking}

## RESPONSE FORMAT

Respond ONLY with valid JSON (no markdown, no code blocks):
{{"probability": <number 0-100>, "reasoning": "<{reasoning}>", {_GAPS_FIELD}}}"""


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive values (70.5 -> 71)."""
    return math.floor(value + 0.5)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class _ScoreResponse(BaseModel):
    """Shape of the JSON object a model is asked to return."""

    probability: float
    reasoning: Any = ""
    jobDescription: Any = None
    requirementsMet: Any = None
    requirementsTotal: Any = None
    requirementsGaps: Any = None

    @field_validator("probability", mode="before")
    @classmethod
    def real_number(cls, v: Any) -> Any:
        if not _is_number(v) or not math.isfinite(v):
            msg = "probability must be a number"
            raise ValueError(msg)
        return v


def _count(value: Any) -> int | None:
    if not _is_number(value) or not math.isfinite(value):
        return None
    return max(0, round_half_up(value))


def parse_score_response(raw_text: str | None, provider_id: str = "") -> ProviderScore | None:
    """Turn a raw model response into a ProviderScore, or None if unusable.

    Handles markdown-wrapped JSON. Clamps probability to 0-100.
    """
    text = (raw_text or "").strip()
    if len(text) < MIN_RESPONSE_LENGTH:
        return None

    match = _CODE_FENCE.search(text)
    if match:
        text = match.group(1)

    try:
        data = _ScoreResponse.model_validate(json.loads(text))
    except (json.JSONDecodeError, ValidationError):
        return None

    description = data.jobDescription
    if description is not None and not isinstance(description, str):
        description = json.dumps(description)

    gaps = data.requirementsGaps
    return ProviderScore(
        provider_id=provider_id,
        probability=max(0, min(100, round_half_up(data.probability))),
        reasoning=data.reasoning if isinstance(data.reasoning, str) else str(data.reasoning or ""),
        job_description=description or None,
        requirements_met=_count(data.requirementsMet),
        requirements_total=_count(data.requirementsTotal),
        requirements_gaps=[g for g in gaps if isinstance(g, str)] if isinstance(gaps, list) else None,
    )


class LLMMatchScorer:
    """Scores jobs with one LLM provider.

    The primary role asks the model to fetch the posting itself; the
    secondary role works from a description handed to it. Providers with
    search grounding get a grounded attempt first and a plain retry.
    """

    def __init__(
        self,
        provider: LLMProvider,
        model: str | None = None,
        *,
        role: ScorerRole = "primary",
    ) -> None:
        self._provider = provider
        self._model = model
        self.role = role

    @property
    def provider_id(self) -> str:
        return self._provider.provider_id

    @property
    def display_name(self) -> str:
        return self._provider.display_name

    def build_prompt(
        self,
        record: JobRecord,
        reference_text: str,
        job_description: str | None = None,
    ) -> str:
        if self.role == "primary":
            return build_primary_prompt(record, reference_text)
        return build_secondary_prompt(record, reference_text, job_description)

    def score(
        self,
        record: JobRecord,
        reference_text: str,
        job_description: str | None = None,
    ) -> ProviderScore | None:
        """Score one job; None when every attempt failed."""
        prompt = self.build_prompt(record, reference_text, job_description)
        attempts = [True, False] if self._provider.supports_grounding else [False]

        for attempt, grounded in enumerate(attempts, start=1):
            try:
                raw = self._provider.complete(prompt, model=self._model, grounded=grounded)
            except Exception:
                logger.warning(
                    "%s scoring failed for job %s (attempt %d, grounded=%s)",
                    self.display_name,
                    record.job_id,
                    attempt,
                    grounded,
                    exc_info=True,
                )
                continue

            result = parse_score_response(raw, self.provider_id)
            if result is None:
                logger.warning(
                    "Unusable %s response for job %s (attempt %d): %.200s",
                    self.display_name,
                    record.job_id,
                    attempt,
                    (raw or "").strip(),
                )
                continue

            logger.info(
                "%s scored job %s: %d (requirements %s/%s)",
                self.display_name,
                record.job_id,
                result.probability,
                result.requirements_met,
                result.requirements_total,
            )
            return result

        logger.error("All %s attempts failed for job %s (%s)", self.display_name, record.job_id, record.url)
        return None
