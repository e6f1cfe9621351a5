"""
DocumentAgent Type Definitions

Input/output contracts of the analysis capability consumed by the dispatcher.
All result types are JSON-serializable.
"""

from typing import Any, Dict, Literal, Optional, Protocol, TypedDict


AnalysisProfile = Literal["general", "medical", "nota"]


class AnalysisResult(TypedDict, total=False):
    """
    Output of one analysis call.

    On success exactly one of structured / summary is set. On failure ok is
    False and error carries a human-readable reason (the input was unusable).
    """
    ok: bool
    structured: Optional[Dict[str, Any]]  # parsed JSON from the model
    summary: Optional[str]  # free-text answer from the model
    error: Optional[str]
    mime: Optional[str]  # MIME actually sent to the model (images only)


class AnalysisCapability(Protocol):
    """
    Anything that can read documents for the dispatcher.

    Implementations return ok=False for unusable input and raise for
    transport or internal faults.
    """

    async def analyze_image(
        self,
        data: bytes,
        mime: str,
        profile: AnalysisProfile = "general",
    ) -> AnalysisResult:
        ...

    async def analyze_pdf_text(
        self,
        text: str,
        filename_hint: Optional[str] = None,
        profile: AnalysisProfile = "general",
    ) -> AnalysisResult:
        ...
