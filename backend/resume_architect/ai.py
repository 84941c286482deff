from __future__ import annotations

import asyncio
import json
import logging
import re
from datetime import datetime
from typing import List, Optional

from google import genai
from google.genai import types
from pydantic import ValidationError

from resume_architect.core import (
    DOCX_MIME,
    FAST_MODEL,
    LITE_MODEL,
    PRO_MODEL,
    THINKING_BUDGET,
    AnalysisResult,
    get_api_key,
)
from resume_architect.models import UploadedFile
from resume_architect.services.ingest import decode, extract_docx_text

logger = logging.getLogger(__name__)

MOCK_DELAY_S = 1.5
ACHIEVEMENT_MOCK_DELAY_S = 0.8

GENERIC_CONTEXT = "General professional standards apply."
FALLBACK_CONTEXT = "Standard industry keywords apply."
IMPRESSION_OFFLINE = "Analyzing structure..."
IMPRESSION_FALLBACK = "Ready for deep analysis."

_FENCE_RE = re.compile(r"```(?:json)?\s*|\s*```")


def _client() -> Optional[genai.Client]:
    api_key = get_api_key()
    if not api_key:
        logger.warning("GEMINI_API_KEY is missing. Falling back to mock mode.")
        return None
    return genai.Client(api_key=api_key)


def is_mock_mode() -> bool:
    return get_api_key() is None


def generate_mock_analysis(job_title: str) -> AnalysisResult:
    title = job_title or "General Professional"
    return AnalysisResult.model_validate({
        "overallScore": 78,
        "summary": (
            f'This is a high-fidelity demonstration analysis for a "{title}" role. '
            "Your resume shows strong technical foundations but could benefit from more quantifiable "
            "impact metrics. The structure is professional, but key industry-standard keywords for "
            f"{datetime.now().year} are currently underrepresented."
        ),
        "sections": [
            {"name": "Header", "score": 95,
             "feedback": "Excellent contact information and professional links (LinkedIn/GitHub) present."},
            {"name": "Experience", "score": 72,
             "feedback": "Good chronological structure. Needs more 'Action Verbs' and specific percentage-based achievements."},
            {"name": "Skills", "score": 85, "feedback": "Strong technical stack, well-categorized."},
            {"name": "Education", "score": 90, "feedback": "Degree information is clear and appropriately placed."},
        ],
        "keywords": {
            "present": ["TypeScript", "React", "Node.js", "System Design", "Agile"],
            "missing": ["Cloud Native", "CI/CD Orchestration", "Microservices Architecture",
                        "OAuth 2.0", "Performance Optimization"],
        },
        "actionItems": [
            {"priority": "High", "category": "Impact",
             "suggestion": "Rephrase experience bullet points to follow the Google 'X-Y-Z' formula: "
                           "Accomplished [X] as measured by [Y], by doing [Z]."},
            {"priority": "Medium", "category": "Keywords",
             "suggestion": "Integrate more cloud-specific terminology if targeting Senior roles."},
            {"priority": "Low", "category": "Formatting",
             "suggestion": "Ensure consistency in date formatting across all entries."},
        ],
        "jobMarketInsights": (
            "Current hiring trends emphasize stability, cost-optimization skills, and deep "
            "integration of AI-assisted development workflows."
        ),
    })


def generate_mock_achievements() -> List[str]:
    return [
        "Resolved 50+ customer queries daily with a 98% satisfaction rating by implementing a new ticketing response framework.",
        "Reduced average call wait time by 40% (from 5 mins to 3 mins) by automating frequent FAQ responses for the support team.",
        "Awarded 'Service Excellence' after maintaining a 100% response rate for 1,200+ high-priority client inquiries over 12 months.",
    ]


def _resume_part(file: UploadedFile) -> types.Part:
    raw = decode(file)
    if file.mime_type == DOCX_MIME:
        # inline data does not accept DOCX
        return types.Part.from_text(text=extract_docx_text(raw))
    return types.Part.from_bytes(data=raw, mime_type=file.mime_type)


def analysis_schema() -> types.Schema:
    S, T = types.Schema, types.Type
    return S(
        type=T.OBJECT,
        properties={
            "overallScore": S(type=T.INTEGER, description="Score from 0 to 100"),
            "summary": S(type=T.STRING, description="Executive summary of the analysis"),
            "sections": S(
                type=T.ARRAY,
                items=S(
                    type=T.OBJECT,
                    properties={
                        "name": S(type=T.STRING),
                        "score": S(type=T.INTEGER),
                        "feedback": S(type=T.STRING),
                    },
                    required=["name", "score", "feedback"],
                ),
            ),
            "keywords": S(
                type=T.OBJECT,
                properties={
                    "present": S(type=T.ARRAY, items=S(type=T.STRING)),
                    "missing": S(type=T.ARRAY, items=S(type=T.STRING)),
                },
                required=["present", "missing"],
            ),
            "actionItems": S(
                type=T.ARRAY,
                items=S(
                    type=T.OBJECT,
                    properties={
                        "priority": S(type=T.STRING, enum=["High", "Medium", "Low"]),
                        "suggestion": S(type=T.STRING),
                        "category": S(type=T.STRING, enum=["Formatting", "Content", "Keywords", "Impact"]),
                    },
                    required=["priority", "suggestion", "category"],
                ),
            ),
            "jobMarketInsights": S(type=T.STRING, description="Insights used for the analysis"),
        },
        required=["overallScore", "summary", "sections", "keywords", "actionItems", "jobMarketInsights"],
    )


def build_analysis_prompt(job_title: str, job_description: str, market_context: str) -> str:
    title = job_title or "General Professional"
    year = datetime.now().year
    jd_block = f"SPECIFIC JOB DESCRIPTION TO MATCH AGAINST:\n{job_description}\n" if job_description else ""
    keyword_source = "Specific Job Description (Primary)" if job_description else "Market Context"
    cross_ref = "the Specific Job Description" if job_description else f"local market trends for {title}"

    return f"""
You are a World-Class ATS Architect and Executive Resume Coach.

CRITICAL TASK: Perform an exhaustive analysis of the attached resume for the role: "{title}".

{jd_block}
MARKET CONTEXT ({year}):
{market_context}

STRICT EVALUATION CRITERIA:
1. IMPACT: Look for quantifiable metrics (%, $, time). If missing, mark score down heavily.
2. KEYWORDS: Compare against the {keyword_source}. Identify exact missing high-value terms.
3. BREVITY: Is it concise? Does it use the Google X-Y-Z formula for bullets?
4. ATS PARSABILITY: Are there complex layouts that might break traditional parsers?

YOUR OUTPUT MUST BE:
- Accurate and tailored to the provided context.
- Extremely critical but professional and constructive.
- Provide deep, non-obvious insights.
- If a section is weak, explain EXACTLY how to rewrite a sample bullet point.

THINKING REQUIREMENT:
- Exhaustively cross-reference every bullet point with {cross_ref}.
- Evaluate the 'Seniority' level of the language used vs the target role.
"""


async def fetch_market_context(job_title: str) -> str:
    if not job_title:
        return GENERIC_CONTEXT

    try:
        client = _client()
        if client is None:
            return FALLBACK_CONTEXT

        response = await client.aio.models.generate_content(
            model=FAST_MODEL,
            contents=(
                f'Find the top 10 most critical technical skills, soft skills, and industry keywords '
                f'for a "{job_title}" role in {datetime.now().year}. Focus on what ATS systems prioritize.'
            ),
            config=types.GenerateContentConfig(tools=[types.Tool(google_search=types.GoogleSearch())]),
        )
        return response.text or FALLBACK_CONTEXT
    except Exception as e:
        logger.error(f"Error fetching job market context: {e}")
        return FALLBACK_CONTEXT


async def fetch_quick_impression(file: UploadedFile) -> str:
    try:
        client = _client()
        if client is None:
            return IMPRESSION_OFFLINE

        response = await client.aio.models.generate_content(
            model=LITE_MODEL,
            contents=[
                _resume_part(file),
                "Give me a 2-sentence 'first impression' summary of this resume structure and professionalism.",
            ],
        )
        return response.text or IMPRESSION_FALLBACK
    except Exception as e:
        logger.warning(f"Quick impression failed: {e}")
        return IMPRESSION_FALLBACK


async def analyze(file: UploadedFile, job_title: str, job_description: str = "") -> AnalysisResult:
    """Score a resume against a target role.

    Never raises: without a credential the mock analysis is returned after
    ``MOCK_DELAY_S``, and any remote failure (no text, invalid JSON, a shape
    that does not match ``AnalysisResult``, transport errors) is logged and
    replaced by the same mock analysis for ``job_title``.
    """
    try:
        client = _client()
        if client is None:
            await asyncio.sleep(MOCK_DELAY_S)
            return generate_mock_analysis(job_title)

        market_context = await fetch_market_context(job_title)
        prompt = build_analysis_prompt(job_title, job_description, market_context)

        response = await client.aio.models.generate_content(
            model=PRO_MODEL,
            contents=[_resume_part(file), prompt],
            config=types.GenerateContentConfig(
                response_mime_type="application/json",
                response_schema=analysis_schema(),
                thinking_config=types.ThinkingConfig(thinking_budget=THINKING_BUDGET),
            ),
        )
        if not response.text:
            raise RuntimeError("No response from Gemini.")
        return AnalysisResult.model_validate_json(response.text)
    except ValidationError as e:
        logger.error(f"Analysis response did not match schema, falling back to mock mode: {e}")
        return generate_mock_analysis(job_title)
    except Exception:
        logger.exception("Deep analysis failed, falling back to mock mode.")
        return generate_mock_analysis(job_title)


async def improve_achievement(task: str) -> List[str]:
    task = (task or "").strip()
    if not task:
        return []

    try:
        client = _client()
        if client is None:
            await asyncio.sleep(ACHIEVEMENT_MOCK_DELAY_S)
            return generate_mock_achievements()

        prompt = f"""
Convert this simple resume task into 3 high-impact, professional "Achievement" sentences.
Use the format: "Accomplished [Result] as measured by [Numbers], by doing [Action]."

Simple Task: "{task}"

Requirements:
- Make them sound very impressive.
- Invent realistic numbers (%, $, or time) if needed.
- Output ONLY a JSON array of 3 strings.
"""
        response = await client.aio.models.generate_content(model=FAST_MODEL, contents=prompt)
        content = _FENCE_RE.sub("", response.text or "").strip()

        try:
            parsed = json.loads(content)
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse achievement response: {e}")
            return generate_mock_achievements()

        if isinstance(parsed, list) and parsed and all(isinstance(s, str) for s in parsed):
            return parsed
        logger.warning("Achievement response was not a list of strings")
        return generate_mock_achievements()
    except Exception as e:
        logger.error(f"Achievement generation failed: {e}")
        return generate_mock_achievements()
