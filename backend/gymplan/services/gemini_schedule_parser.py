"""
Extract a week training schedule from blog-post markdown using Gemini.

Output is untrusted: this module only turns the model reply into a JSON object;
structural validation lives in schedule_validation.
"""
from __future__ import annotations

import json
import logging
import re
from datetime import date
from typing import Any

import google.generativeai as genai
from google.generativeai.types import HarmBlockThreshold, HarmCategory

from gymplan.config import settings
from gymplan.errors import ParseValidationError
from gymplan.services.gemini_common import run_generate_content

logger = logging.getLogger(__name__)

GENERATION_CONFIG = {
    "temperature": 0.1,
    "top_p": 0.95,
    "max_output_tokens": 8192,
    "response_mime_type": "application/json",
}

SAFETY_SETTINGS = {
    HarmCategory.HARM_CATEGORY_HARASSMENT: HarmBlockThreshold.BLOCK_NONE,
    HarmCategory.HARM_CATEGORY_HATE_SPEECH: HarmBlockThreshold.BLOCK_NONE,
    HarmCategory.HARM_CATEGORY_SEXUALLY_EXPLICIT: HarmBlockThreshold.BLOCK_NONE,
    HarmCategory.HARM_CATEGORY_DANGEROUS_CONTENT: HarmBlockThreshold.BLOCK_NONE,
}

SCHEDULE_EXTRACT_PROMPT = """You extract data from a Polish gym weekly training plan (markdown scraped from a blog post). Output ONLY valid JSON.

Input:
- week header such as "Tydzień 20/10-26/10"
- one block per day, headed "DD.MM <day name>" (e.g. "20.10 Poniedziałek")
- per day one or more sessions: the session type after the ⇒ sign, a "Ćwiczenia:" line, a "Metoda treningowa:" line and a "Czas pracy w części głównej" line (with or without a colon)

Output format (strict JSON):
{
  "week": "DD/MM/YYYY-DD/MM/YYYY",
  "days": [
    {
      "date": "DD.MM",
      "dayName": "Polish day name",
      "trainingSessions": [
        {"type": "...", "exercises": ["..."], "trainingMethod": "...", "mainPartDuration": "NN min"}
      ]
    }
  ]
}

Rules:
- week: both dates with a full year; infer the year from the current date given below, including ranges across New Year (e.g. "30/12/2024-05/01/2025").
- type: copy exactly as written ("Speed", "Speed Beginners", "HYROX SPEED", "Athletic", "FBB", "Calisthenics", "Fast&strong", ...). Never map it to a fixed list.
- exercises: split the "Ćwiczenia:" line on commas, trim, keep Polish names and abbreviations, keep the order.
- trainingMethod: full text with numbers, e.g. "2 x EMOM", "4 rundy, co 2,5 min wykonaj parę ćwiczeń".
- mainPartDuration: number and unit as text, e.g. "21 min".
- a day with no sessions is kept with "trainingSessions": [].
- ignore navigation, images, links and footer text.

Example:
{"week": "20/10/2024-26/10/2024", "days": [{"date": "20.10", "dayName": "Poniedziałek", "trainingSessions": [{"type": "Speed", "exercises": ["cal SKI/bike ERG", "box jump", "DU (skakanka)"], "trainingMethod": "2 x EMOM", "mainPartDuration": "21 min"}]}]}"""


def parse_schedule_json(text: str) -> Any:
    """Parse JSON from Gemini, tolerating code fences, trailing commas and minor truncation."""
    text = (text or "").strip()
    if text.startswith("```"):
        text = text.split("\n", 1)[1].rsplit("```", 1)[0].strip() if "\n" in text else ""
    if not text:
        raise ParseValidationError("Empty response from Gemini")
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass
    # Remove trailing comma before } or ]
    fixed = re.sub(r",\s*([}\]])", r"\1", text)
    try:
        return json.loads(fixed)
    except json.JSONDecodeError:
        pass
    logger.warning("gemini_schedule_parser: invalid JSON from Gemini (first 500 chars): %s", text[:500])
    raise ParseValidationError("Could not parse schedule JSON returned by Gemini")


class GeminiScheduleParser:
    """Markdown -> candidate week object. Every failure surfaces as ParseValidationError."""

    def __init__(self, model=None) -> None:
        self._model = model

    def _get_model(self):
        if self._model is None:
            if not settings.google_gemini_api_key:
                raise ParseValidationError("GOOGLE_GEMINI_API_KEY is not set")
            genai.configure(api_key=settings.google_gemini_api_key)
            self._model = genai.GenerativeModel(
                settings.gemini_model,
                generation_config=GENERATION_CONFIG,
                safety_settings=SAFETY_SETTINGS,
            )
        return self._model

    async def parse(self, raw_text: str, today: date | None = None) -> Any:
        if not raw_text or not raw_text.strip():
            raise ParseValidationError("Document has no content")
        model = self._get_model()
        today = today or date.today()
        contents = [
            SCHEDULE_EXTRACT_PROMPT,
            f"Current date: {today.isoformat()}",
            f"## Markdown to parse:\n\n{raw_text}",
        ]
        try:
            response = await run_generate_content(model, contents)
            text = response.text if response else ""
        except Exception as e:
            logger.warning("Gemini schedule extraction failed: %s", e)
            raise ParseValidationError(f"Gemini request failed: {e}") from e
        data = parse_schedule_json(text)
        if isinstance(data, dict):
            days = data.get("days")
            logger.info(
                "Parsed schedule for week %s: %s days",
                data.get("week"),
                len(days) if isinstance(days, list) else "?",
            )
        return data
