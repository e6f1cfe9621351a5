"""
Canonical invoice model and /generate-pdf response schema.

Both accepted request schemas (orchestrator and legacy) are converted into
CanonicalInvoice by services.invoice_normalizer. The model is frozen: it is
built once per request and only read afterwards (totals, rendering).
"""

from typing import Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

CFDI_EFFECTS = {
    "I": "I - Ingreso",
    "E": "E - Egreso",
    "T": "T - Traslado",
    "N": "N - Nómina",
    "P": "P - Pago",
}


class TaxEntry(BaseModel):
    """One tax applied to a line. Retentions never add to the VAT total."""
    model_config = ConfigDict(frozen=True)

    name: str = Field("IVA", description="Tax name, e.g. 'IVA', 'ISR', 'IEPS'")
    rate: float = Field(0.0, description="Rate as a fraction (0.16)")
    is_retention: bool = Field(False, description="Withheld instead of added")
    is_federal: bool = Field(True, description="Federal (vs. local) tax")
    total: float = Field(0.0, description="Tax amount for the line")


class LineItem(BaseModel):
    """
    One invoice line.

    line_subtotal and line_total are None when the source did not supply
    them; the totals engine decides the fallbacks.
    """
    model_config = ConfigDict(frozen=True)

    product_code: str = Field(..., description="Clave ProdServ (SAT)")
    quantity: float = Field(..., ge=0, description="Quantity")
    unit_code: str = Field(..., description="Clave Unidad (SAT), e.g. 'H87'")
    description: str = Field(..., description="Line description")
    unit_price: float = Field(..., ge=0, description="Price per unit")
    line_subtotal: Optional[float] = Field(None, description="Explicit line subtotal")
    line_total: Optional[float] = Field(None, description="Explicit line total")
    taxes: Tuple[TaxEntry, ...] = Field((), description="Taxes applied to the line")

    @property
    def subtotal_amount(self) -> float:
        """Explicit subtotal when present, otherwise quantity × unit price."""
        if self.line_subtotal is not None:
            return self.line_subtotal
        return self.quantity * self.unit_price


class Issuer(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    tax_id: str
    address: str
    fiscal_regime: str


class Receiver(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    tax_id: str
    cfdi_use: str
    fiscal_regime: str
    tax_zip_code: str


class InvoiceMetadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    folio: str
    date: str
    expedition_place: str
    cfdi_type: str
    payment_form: str
    payment_method: str

    @property
    def effect_label(self) -> str:
        """Human label for the comprobante effect ('I' -> 'I - Ingreso')."""
        return CFDI_EFFECTS.get(self.cfdi_type, self.cfdi_type)


class ExplicitTotals(BaseModel):
    """Document-level totals as sent by the client, if any."""
    model_config = ConfigDict(frozen=True)

    subtotal: Optional[float] = None
    tax: Optional[float] = None
    total: Optional[float] = None


class InvoiceTotals(BaseModel):
    """
    Totals at full precision.

    INVARIANT: |total - (subtotal + tax)| < 0.01
    Use rounded() for anything shown to a person.
    """
    model_config = ConfigDict(frozen=True)

    subtotal: float
    tax: float
    total: float

    def rounded(self) -> "InvoiceTotals":
        return InvoiceTotals(
            subtotal=round(self.subtotal, 2),
            tax=round(self.tax, 2),
            total=round(self.total, 2),
        )


class CanonicalInvoice(BaseModel):
    """The single in-memory invoice representation used for totals and rendering."""
    model_config = ConfigDict(frozen=True)

    source_schema: Literal["orchestrator", "legacy"]
    issuer: Issuer
    receiver: Receiver
    metadata: InvoiceMetadata
    items: Tuple[LineItem, ...]
    totals: InvoiceTotals


class GeneratePdfResponse(BaseModel):
    """Response of POST /generate-pdf."""
    model_config = ConfigDict(populate_by_name=True)

    nombre_archivo: str = Field(
        ...,
        alias="nombreArchivo",
        description="Suggested file name",
        examples=["prefactura_1736600000000.pdf"]
    )
    pdf_base64: str = Field(
        ...,
        alias="pdfBase64",
        description="Generated PDF encoded as base64"
    )
