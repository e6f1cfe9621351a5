"""
DocumentAgent Package

Analysis capability used by the dispatcher: reads images with a Gemini
vision model and summarizes text extracted from PDFs.

Main Components:
- types: AnalysisResult contract and the AnalysisCapability protocol
- images: Pillow validation / PNG re-encoding before a vision call
- prompts: System prompt and per-profile task prompts
- agent: GeminiDocumentAnalyzer, the single-shot runner

Usage:
    from docflow.agents.document import GeminiDocumentAnalyzer

    analyzer = GeminiDocumentAnalyzer(api_key=settings.GOOGLE_API_KEY)
    result = await analyzer.analyze_image(image_bytes, "image/jpeg")
"""

from docflow.agents.document.agent import GeminiDocumentAnalyzer
from docflow.agents.document.images import InvalidImageError, PreparedImage, prepare_image
from docflow.agents.document.prompts import DOCUMENT_AGENT_SYSTEM_PROMPT
from docflow.agents.document.types import (
    AnalysisCapability,
    AnalysisProfile,
    AnalysisResult,
)

__all__ = [
    # Runner
    "GeminiDocumentAnalyzer",
    # Types
    "AnalysisCapability",
    "AnalysisProfile",
    "AnalysisResult",
    # Images
    "InvalidImageError",
    "PreparedImage",
    "prepare_image",
    # Prompts
    "DOCUMENT_AGENT_SYSTEM_PROMPT",
]
