"""
DocumentAgent Prompt Templates

System prompt plus per-profile task prompts.

Profiles:
- general: short free-text summary of the key text (images and PDF text)
- medical: structured JSON reading of a medical document (prescription, lab result)
- nota: structured JSON reading of a sales note / ticket

Structured profiles ask for JSON only; the agent sets
response_mime_type="application/json" for them.
"""

from typing import Optional

# =============================================================================
# SYSTEM PROMPT
# =============================================================================

DOCUMENT_AGENT_SYSTEM_PROMPT = """You are DocumentAgent, a document reading assistant for a Mexican back-office service.

<role>
You read images of documents (tickets, notes, invoices, medical papers) and text extracted from PDFs,
and you report what they contain accurately. You answer in Spanish.
</role>

<limitations>
- You only describe what is visible or present in the provided text
- You never invent amounts, dates, names or tax ids
- When a value cannot be read, use null (JSON) or say it is illegible (text)
</limitations>"""


# =============================================================================
# TASK PROMPTS
# =============================================================================

GENERAL_TASK_PROMPT = "Extrae texto clave y da un breve resumen del contenido."

MEDICAL_TASK_PROMPT = """Analiza el documento médico y devuelve SOLO JSON válido con esta estructura:

{
  "tipo_documento": string | null,
  "paciente": string | null,
  "medico": string | null,
  "cedula_profesional": string | null,
  "fecha": string | null,
  "diagnostico": string | null,
  "medicamentos": [
    {"nombre": string, "dosis": string | null, "frecuencia": string | null, "duracion": string | null}
  ],
  "estudios": [
    {"nombre": string, "resultado": string | null, "unidad": string | null, "referencia": string | null}
  ],
  "observaciones": string | null
}"""

NOTA_TASK_PROMPT = """Analiza la nota de venta o ticket y devuelve SOLO JSON válido con esta estructura:

{
  "comercio": string | null,
  "rfc": string | null,
  "folio": string | null,
  "fecha": string | null,
  "conceptos": [
    {"descripcion": string, "cantidad": number | null, "precio_unitario": number | null, "importe": number | null}
  ],
  "subtotal": number | null,
  "iva": number | null,
  "total": number | null,
  "forma_pago": string | null
}"""

TASK_PROMPTS = {
    "general": GENERAL_TASK_PROMPT,
    "medical": MEDICAL_TASK_PROMPT,
    "nota": NOTA_TASK_PROMPT,
}

STRUCTURED_PROFILES = frozenset({"medical", "nota"})


def build_image_prompt(profile: str) -> str:
    """Task prompt sent next to an image."""
    return TASK_PROMPTS.get(profile, GENERAL_TASK_PROMPT)


def build_pdf_text_prompt(text: str, filename_hint: Optional[str], profile: str) -> str:
    """
    Task prompt for text extracted from a PDF.

    The text goes inside <document> tags so the model does not confuse it
    with instructions.
    """
    name_line = f"Archivo: {filename_hint}\n" if filename_hint else ""
    return (
        f"{TASK_PROMPTS.get(profile, GENERAL_TASK_PROMPT)}\n\n"
        f"{name_line}"
        "<document>\n"
        f"{text}\n"
        "</document>"
    )
