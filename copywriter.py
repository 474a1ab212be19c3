"""
AI-written marketing copy for the back office (Gemini).

Both helpers always return a string: any failure degrades to a fixed
placeholder so admin screens keep working without the text service.
"""
import structlog
from google import genai
from google.genai import types

from config import gemini_settings

logger = structlog.get_logger(__name__)

DESCRIPTION_FAILED = "Failed to generate description with AI."
DESCRIPTION_EMPTY = "No description generated."
ANALYSIS_FAILED = "Analysis failed."
ANALYSIS_EMPTY = "Unable to analyze."


def _client():
    api_key, _ = gemini_settings()
    if not api_key:
        return None
    return genai.Client(api_key=api_key)


def _generate(prompt: str, temperature=None):
    client = _client()
    if client is None:
        raise RuntimeError("GEMINI_API_KEY is not set")
    _, model = gemini_settings()
    config = types.GenerateContentConfig(temperature=temperature) if temperature is not None else None
    response = client.models.generate_content(model=model, contents=prompt, config=config)
    return (response.text or "").strip()


def generate_description(product_name: str) -> str:
    prompt = (
        f'Write a compelling, short marketing description (2-3 sentences) for a product named "{product_name}". '
        "Target skincare shoppers."
    )
    try:
        text = _generate(prompt, temperature=0.7)
    except Exception as exc:
        logger.warning("ai.description_failed", product=product_name, error=str(exc))
        return DESCRIPTION_FAILED
    return text or DESCRIPTION_EMPTY


def analyze_sales(sales_json: str) -> str:
    prompt = (
        f"Analyze these recent sales JSON data: {sales_json}. Give 3 quick bullet points on performance "
        "and 1 recommendation for improvement. Keep it concise."
    )
    try:
        text = _generate(prompt)
    except Exception as exc:
        logger.warning("ai.analysis_failed", error=str(exc))
        return ANALYSIS_FAILED
    return text or ANALYSIS_EMPTY
