"""
AI components for the docflow backend.

1. DocumentAgent (single-shot multimodal workflow)
   - Gemini vision for images, Gemini text model for PDF text
   - NOT an ADK agent - direct Google Gen AI SDK calls, no tools
"""

from docflow.agents.document import GeminiDocumentAnalyzer

__all__ = ["GeminiDocumentAnalyzer"]
