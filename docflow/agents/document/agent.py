"""
DocumentAgent Runner

Single-shot Gemini calls for images and for text extracted from PDFs.
One prompt, one response, no tools and no retries.
"""

import json
import logging
from typing import Any, Optional

from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from docflow.agents.document.images import InvalidImageError, prepare_image
from docflow.agents.document.prompts import (
    DOCUMENT_AGENT_SYSTEM_PROMPT,
    STRUCTURED_PROFILES,
    build_image_prompt,
    build_pdf_text_prompt,
)
from docflow.agents.document.types import AnalysisProfile, AnalysisResult

logger = logging.getLogger(__name__)

# Gemini status codes that mean "this input cannot be processed"
INPUT_REJECTION_CODES = frozenset({400, 413, 415, 422})

# Keeps a huge PDF from blowing past the model context window
MAX_PDF_TEXT_CHARS = 60_000


class GeminiDocumentAnalyzer:
    """
    Analysis capability backed by the Google Gen AI SDK.

    Returns AnalysisResult with ok=False when the model rejects the input
    (bad image, unreadable request). Transport errors, auth errors and server
    faults propagate to the caller.
    """

    def __init__(
        self,
        api_key: str,
        vision_model: str = "gemini-2.5-flash",
        text_model: str = "gemini-2.5-flash",
        client: Optional[Any] = None,
    ):
        self.api_key = api_key
        self.vision_model = vision_model
        self.text_model = text_model
        self._client = client

    def _get_client(self):
        if self._client is None:
            if not self.api_key:
                logger.error("GOOGLE_API_KEY not configured")
                raise ValueError(
                    "GOOGLE_API_KEY is not configured. "
                    "Please set it in your .env file to use DocumentAgent."
                )
            self._client = genai.Client(api_key=self.api_key)
        return self._client

    async def analyze_image(
        self,
        data: bytes,
        mime: str,
        profile: AnalysisProfile = "general",
    ) -> AnalysisResult:
        """
        Analyze an image with the vision model.

        Args:
            data: Raw image bytes
            mime: MIME type resolved by the classifier (the detected format wins)
            profile: Prompt profile (general summary or a structured reading)
        """
        try:
            prepared = prepare_image(data)
        except InvalidImageError as e:
            logger.warning(f"Image rejected before vision call: resolved_mime={mime}")
            return {"ok": False, "error": str(e)}

        if prepared.mime != mime:
            logger.info(f"Image format detected as {prepared.mime} (resolved {mime})")

        parts = [
            types.Part(text=build_image_prompt(profile)),
            types.Part(
                inline_data=types.Blob(mime_type=prepared.mime, data=prepared.data)
            ),
        ]

        result = await self._generate(self.vision_model, parts, profile)
        result["mime"] = prepared.mime
        return result

    async def analyze_pdf_text(
        self,
        text: str,
        filename_hint: Optional[str] = None,
        profile: AnalysisProfile = "general",
    ) -> AnalysisResult:
        """
        Analyze text extracted from a PDF with the text model.

        Args:
            text: Extracted text (never logged)
            filename_hint: Client filename, passed to the model as context
            profile: Prompt profile
        """
        if not text.strip():
            return {"ok": False, "error": "No hay texto para analizar."}

        if len(text) > MAX_PDF_TEXT_CHARS:
            logger.info(f"Truncating PDF text from {len(text)} to {MAX_PDF_TEXT_CHARS} chars")
            text = text[:MAX_PDF_TEXT_CHARS]

        parts = [types.Part(text=build_pdf_text_prompt(text, filename_hint, profile))]
        return await self._generate(self.text_model, parts, profile)

    async def _generate(self, model: str, parts: list, profile: str) -> AnalysisResult:
        structured = profile in STRUCTURED_PROFILES
        config = types.GenerateContentConfig(
            system_instruction=DOCUMENT_AGENT_SYSTEM_PROMPT,
            temperature=0.0,
            response_mime_type="application/json" if structured else "text/plain",
        )

        client = self._get_client()
        logger.debug(f"Sending single-shot request to {model} (profile={profile})")
        try:
            response = await client.aio.models.generate_content(
                model=model,
                contents=parts,  # type: ignore
                config=config,
            )
        except genai_errors.ClientError as e:
            if e.code in INPUT_REJECTION_CODES:
                logger.warning(f"Model rejected input: code={e.code}")
                return {"ok": False, "error": e.message or "El modelo rechazó el contenido."}
            raise

        response_text = (response.text or "").strip()
        if not response_text:
            logger.warning("Model returned an empty response")
            return {"ok": False, "error": "El modelo no devolvió respuesta."}

        logger.info(f"DocumentAgent completed: model={model}, profile={profile}")

        if structured:
            parsed = _parse_json_object(response_text)
            if parsed is not None:
                return {"ok": True, "structured": parsed, "summary": None}
            logger.warning("Structured profile returned non-JSON text; relaying as summary")

        return {"ok": True, "structured": None, "summary": response_text}


def _parse_json_object(text: str) -> Optional[dict]:
    """Parse a JSON object, tolerating a ```json fence around it."""
    cleaned = text.strip()
    if cleaned.startswith("```"):
        cleaned = cleaned.strip("`")
        if cleaned.lower().startswith("json"):
            cleaned = cleaned[4:]
    try:
        value = json.loads(cleaned)
    except json.JSONDecodeError:
        return None
    return value if isinstance(value, dict) else None
