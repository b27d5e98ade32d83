"""
This module provides an interface to the Google Gemini large language model.

It is used by the recovery assistant for questions that none of the scripted
replies cover. It is responsible for:
- Configuring the Gemini API from `GEMINI_API_KEY` (environment or Streamlit secrets).
- Lazily initializing the generative model on first use.
- Providing `generate_answer`, which builds a recovery-focused prompt and returns the
  model's reply, or None when the model is unavailable or the call fails.
"""
# orthocompanion/gemini.py

import logging

import google.generativeai as genai

from orthocompanion import config

logger = logging.getLogger(__name__)

_model = None


def get_model():
    """Returns the configured Gemini model, or None if no API key is available."""
    global _model
    if _model is None:
        api_key = config.get_gemini_api_key()
        if not api_key:
            return None
        genai.configure(api_key=api_key)
        _model = genai.GenerativeModel(config.GEMINI_MODEL)
    return _model


def generate_answer(question: str, condition: str, days_post_op: int | None) -> str | None:
    """Generates a recovery-focused answer to a patient's question.

    Args:
        question: The patient's question.
        condition: The condition recorded on the patient's profile.
        days_post_op: Days since surgery, if the patient had one.

    Returns:
        The generated answer, or None if the model is unavailable or an error occurs.
    """
    model = get_model()
    if model is None:
        return None

    stage = f"Day {days_post_op} after surgery" if days_post_op is not None else "Not post-surgical"
    prompt = f"""
    You are an orthopaedic recovery assistant inside a patient app.
    Patient condition: {condition or 'not specified'}
    Recovery stage: {stage}

    Patient question:
    {question}

    Answer in one short, kind paragraph. Do not diagnose. Advise contacting the care team for
    sudden worsening pain, fever, warmth, redness or numbness.

    Answer:
    """

    try:
        response = model.generate_content(prompt)
        return response.text
    except Exception:
        logger.exception("Error generating answer from Gemini API")
        return None
