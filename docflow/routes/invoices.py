"""
Prefactura generation endpoint.

Flow:
1. POST /generate-pdf - orchestrator or legacy invoice payload -> PDF in base64
"""

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends, status

from docflow.dependencies import get_invoice_normalizer, get_pdf_renderer
from docflow.schemas.invoices import GeneratePdfResponse
from docflow.services.invoice_normalizer import InvoiceNormalizer
from docflow.services.rendering import PdfRenderer, invoice_filename, render_to_base64

logger = logging.getLogger(__name__)

router = APIRouter(tags=["prefacturas"])

ORCHESTRATOR_EXAMPLE = {
    "Folio": "S/N",
    "Date": "2026-01-11",
    "CfdiType": "I",
    "ExpeditionPlace": "20160",
    "PaymentForm": "01",
    "PaymentMethod": "PUE",
    "Emisor": {
        "Name": "EMPRESA DEMO SA DE CV",
        "Rfc": "EKU9003173C9",
        "Address": "AV. SIEMPRE VIVA 742, AGUASCALIENTES, CP: 20160",
        "FiscalRegime": "601 - General de Ley Personas Morales",
    },
    "Receiver": {
        "Name": "PUBLICO EN GENERAL",
        "Rfc": "XAXX010101000",
        "CfdiUse": "S01",
        "FiscalRegime": "616",
        "TaxZipCode": "20160",
    },
    "Items": [
        {
            "ProductCode": "31162800",
            "UnitCode": "H87",
            "Quantity": 1,
            "UnitPrice": 3017.24,
            "Subtotal": 3017.24,
            "Description": "Bomba centrífuga 1/2 hp",
            "Taxes": [{"Name": "IVA", "Rate": 0.16, "IsRetention": False, "Total": 482.76}],
        }
    ],
}

LEGACY_EXAMPLE = {
    "cliente": "JUAN PEREZ",
    "rfc_cliente": "XAXX010101000",
    "items": [
        {"descripcion": "Servicio de mantenimiento", "cantidad": 2, "precio_unitario": 50}
    ],
}


@router.post(
    "/generate-pdf",
    response_model=GeneratePdfResponse,
    status_code=status.HTTP_200_OK,
    summary="Generate a prefactura PDF (classic CFDI layout) and return it in base64",
    description="""
    Accepts either invoice schema:

    - **Orchestrator**: `Items` list plus a `Receiver` object (PascalCase fields)
    - **Legacy**: flat snake_case fields with `cliente` as a string and `items`

    Totals: subtotal from lines; VAT from non-retention `IVA` taxes, or a flat
    16% of the subtotal when no VAT is supplied; total = subtotal + VAT.

    Errors:
    - 400: body is not a JSON object, missing `cliente` (legacy), no items,
      or out-of-range amounts
    - 500: PDF rendering failure
    """
)
async def generate_pdf(
    payload: Annotated[
        Any,
        Body(openapi_examples={
            "orchestrator": {"summary": "Orchestrator schema", "value": ORCHESTRATOR_EXAMPLE},
            "legacy": {"summary": "Legacy schema", "value": LEGACY_EXAMPLE},
        }),
    ],
    normalizer: Annotated[InvoiceNormalizer, Depends(get_invoice_normalizer)],
    renderer: Annotated[PdfRenderer, Depends(get_pdf_renderer)],
) -> GeneratePdfResponse:
    """
    Normalize the payload, compute totals and render the prefactura.

    No partial invoice is ever rendered: normalization raises ValidationError
    (400) before the renderer is called.
    """
    invoice = normalizer.normalize(payload)
    logger.info(
        f"Rendering prefactura: schema={invoice.source_schema}, items={len(invoice.items)}"
    )

    pdf_base64 = await render_to_base64(renderer, invoice)

    return GeneratePdfResponse(
        nombre_archivo=invoice_filename(),
        pdf_base64=pdf_base64,
    )
