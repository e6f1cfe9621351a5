"""
Invoice payload normalizer.

Two request schemas reach /generate-pdf and both become one CanonicalInvoice.

Orchestrator schema (PascalCase, nested):
    {"Folio", "Date", "CfdiType", "ExpeditionPlace", "PaymentForm", "PaymentMethod",
     "Emisor": {"Name", "Rfc", "Address", "FiscalRegime"},
     "Receiver": {"Name", "Rfc", "CfdiUse", "FiscalRegime", "TaxZipCode"},
     "Items": [{"ProductCode", "UnitCode", "Quantity", "UnitPrice", "Subtotal", "Total",
                "Description", "Taxes": [{"Name", "Rate", "IsRetention", "IsFederalTax", "Total"}]}]}

Legacy schema (snake_case, flat, customer as a plain string):
    {"cliente", "rfc_cliente", "uso_cfdi", "regimen_fiscal_cliente", "codigo_postal",
     "folio", "fecha", "tipo_comprobante", "lugar_expedicion", "forma_pago", "metodo_pago",
     "emisor": {"nombre", "rfc", "direccion", "regimen_fiscal"},
     "items": [{"clave_prod_serv", "clave_unidad", "cantidad", "precio_unitario", "importe",
                "total", "descripcion", "iva", "impuestos": [{"nombre", "tasa", "retencion",
                "federal", "total"}]}],
     "subtotal", "iva", "total"}

There is no version field. detect_schema() decides once: a list-valued
"Items" AND an object-valued "Receiver" means orchestrator, everything else
is legacy. Every field has a default except the legacy "cliente" and the
items; an orchestrator Receiver without a Name is the general public.
"""

import logging
import math
from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, Dict, List, Literal, Mapping, Optional, Tuple, Union

from pydantic import ValidationError as PydanticValidationError

from docflow.errors import ValidationError
from docflow.schemas.invoices import (
    CanonicalInvoice,
    ExplicitTotals,
    InvoiceMetadata,
    Issuer,
    LineItem,
    Receiver,
    TaxEntry,
)
from docflow.services.totals import compute_totals

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NormalizerConfig:
    """Defaults applied to every field a payload leaves out."""
    issuer_name: str = "N/A"
    issuer_rfc: str = "N/A"
    issuer_address: str = ""
    issuer_fiscal_regime: str = "N/A"
    expedition_place: str = "N/A"
    receiver_name: str = "PUBLICO EN GENERAL"  # orchestrator only; legacy requires cliente
    receiver_rfc: str = "XAXX010101000"  # generic public consumer
    receiver_cfdi_use: str = "S01"
    receiver_fiscal_regime: str = "616"
    receiver_tax_zip_code: str = "N/A"
    folio: str = "S/N"
    cfdi_type: str = "I"
    payment_form: str = "01"
    payment_method: str = "PUE"
    product_code: str = "01010101"  # SAT generic product code
    unit_code: str = "H87"  # piece
    description: str = "N/A"
    quantity: float = 1.0
    tax_name: str = "IVA"

    @classmethod
    def from_settings(cls, settings) -> "NormalizerConfig":
        return cls(
            issuer_name=settings.ISSUER_NAME,
            issuer_rfc=settings.ISSUER_RFC,
            issuer_address=settings.ISSUER_ADDRESS,
            issuer_fiscal_regime=settings.ISSUER_FISCAL_REGIME,
            expedition_place=settings.DEFAULT_EXPEDITION_PLACE,
        )


@dataclass(frozen=True)
class OrchestratorPayload:
    data: Mapping[str, Any]
    kind: Literal["orchestrator"] = "orchestrator"


@dataclass(frozen=True)
class LegacyPayload:
    data: Mapping[str, Any]
    kind: Literal["legacy"] = "legacy"


SourcePayload = Union[OrchestratorPayload, LegacyPayload]


def detect_schema(payload: Mapping[str, Any]) -> SourcePayload:
    """Label a payload as orchestrator or legacy. Applied once, at the boundary."""
    if isinstance(payload.get("Items"), list) and isinstance(payload.get("Receiver"), dict):
        return OrchestratorPayload(payload)
    return LegacyPayload(payload)


# --- Field coercion helpers ---

def _text(value: Any, default: str) -> str:
    if value is None or isinstance(value, (dict, list)):
        return default
    text = str(value).strip()
    return text or default


def _number(value: Any, default: Optional[float]) -> Optional[float]:
    """Lenient numeric parse: accepts numbers and strings like '$1,234.50'."""
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError as e:
            raise ValidationError(f"Valor numérico fuera de rango: {str(value)[:20]}...") from e
    elif isinstance(value, str):
        cleaned = value.strip().replace("$", "").replace(",", "")
        if not cleaned:
            return default
        try:
            number = float(cleaned)
        except ValueError:
            return default
    else:
        return default
    return number if math.isfinite(number) else default


def _flag(value: Any, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("true", "1", "si", "sí", "yes"):
            return True
        if lowered in ("false", "0", "no"):
            return False
    return default


def _mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, dict) else {}


def _first_list(data: Mapping[str, Any], *keys: str) -> List[Any]:
    for key in keys:
        value = data.get(key)
        if isinstance(value, list):
            return value
    return []


def _first(data: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = data.get(key)
        if value is not None and value != "":
            return value
    return None


class InvoiceNormalizer:
    """
    Converts either request schema into a CanonicalInvoice.

    Args:
        config: Defaults for missing fields (issuer identity, SAT codes, ...)
        today: Date source for payloads without a date
    """

    def __init__(
        self,
        config: Optional[NormalizerConfig] = None,
        today: Callable[[], date] = date.today,
    ):
        self.config = config or NormalizerConfig()
        self.today = today

    def normalize(self, payload: Any) -> CanonicalInvoice:
        """
        Build the canonical invoice, totals included.

        Raises:
            ValidationError: If the body is not an object, a legacy payload has
                no cliente, there are no items, or a line has a negative quantity
                or unit price.
        """
        if not isinstance(payload, dict):
            raise ValidationError("El cuerpo de la solicitud debe ser un objeto JSON.")

        source = detect_schema(payload)
        logger.info(f"Normalizing invoice payload: schema={source.kind}")

        if isinstance(source, OrchestratorPayload):
            parts = self._from_orchestrator(source.data)
        else:
            parts = self._from_legacy(source.data)

        issuer, receiver, metadata, raw_items, explicit_totals = parts

        missing_required = []
        if not receiver["name"]:
            missing_required.append("cliente")
        if not raw_items:
            missing_required.append("items" if source.kind == "legacy" else "Items")
        if missing_required:
            logger.warning(f"Invoice payload missing required fields: {missing_required}")
            raise ValidationError(
                "Faltan campos requeridos: " + ", ".join(missing_required)
            )

        try:
            items = tuple(LineItem(**item) for item in raw_items)
            totals = compute_totals(items, explicit_totals)
            return CanonicalInvoice(
                source_schema=source.kind,
                issuer=Issuer(**issuer),
                receiver=Receiver(**receiver),
                metadata=InvoiceMetadata(**metadata),
                items=items,
                totals=totals,
            )
        except PydanticValidationError as e:
            fields = sorted({".".join(str(p) for p in err["loc"]) for err in e.errors()})
            raise ValidationError(
                "Valores inválidos en la factura: " + ", ".join(fields)
            ) from e

    # --- Orchestrator schema ---

    def _from_orchestrator(self, data: Mapping[str, Any]) -> Tuple[Dict, Dict, Dict, List[Dict], Optional[ExplicitTotals]]:
        cfg = self.config
        emisor = _mapping(data.get("Emisor") or data.get("Issuer"))
        receptor = _mapping(data.get("Receiver"))

        issuer = {
            "name": _text(emisor.get("Name"), cfg.issuer_name),
            "tax_id": _text(emisor.get("Rfc"), cfg.issuer_rfc),
            "address": _text(emisor.get("Address"), cfg.issuer_address),
            "fiscal_regime": _text(emisor.get("FiscalRegime"), cfg.issuer_fiscal_regime),
        }
        receiver = {
            "name": _text(receptor.get("Name"), cfg.receiver_name),
            "tax_id": _text(receptor.get("Rfc"), cfg.receiver_rfc),
            "cfdi_use": _text(receptor.get("CfdiUse"), cfg.receiver_cfdi_use),
            "fiscal_regime": _text(receptor.get("FiscalRegime"), cfg.receiver_fiscal_regime),
            "tax_zip_code": _text(receptor.get("TaxZipCode"), cfg.receiver_tax_zip_code),
        }
        metadata = self._metadata(
            folio=data.get("Folio"),
            date_value=data.get("Date"),
            expedition_place=data.get("ExpeditionPlace"),
            cfdi_type=data.get("CfdiType"),
            payment_form=data.get("PaymentForm"),
            payment_method=data.get("PaymentMethod"),
        )

        items = []
        for raw in data.get("Items") or []:
            it = _mapping(raw)
            taxes = [
                self._tax(
                    name=tax.get("Name"),
                    rate=tax.get("Rate"),
                    is_retention=tax.get("IsRetention"),
                    is_federal=tax.get("IsFederalTax"),
                    total=tax.get("Total"),
                )
                for tax in map(_mapping, _first_list(it, "Taxes"))
            ]
            items.append(self._line(
                product_code=it.get("ProductCode"),
                quantity=it.get("Quantity"),
                unit_code=it.get("UnitCode"),
                description=it.get("Description"),
                unit_price=it.get("UnitPrice"),
                line_subtotal=it.get("Subtotal"),
                line_total=it.get("Total"),
                taxes=taxes,
            ))

        return issuer, receiver, metadata, items, None

    # --- Legacy schema ---

    def _from_legacy(self, data: Mapping[str, Any]) -> Tuple[Dict, Dict, Dict, List[Dict], Optional[ExplicitTotals]]:
        cfg = self.config
        emisor = _mapping(data.get("emisor"))

        cliente = data.get("cliente")
        if isinstance(cliente, dict):
            cliente = cliente.get("nombre")

        issuer = {
            "name": _text(emisor.get("nombre"), cfg.issuer_name),
            "tax_id": _text(emisor.get("rfc"), cfg.issuer_rfc),
            "address": _text(emisor.get("direccion"), cfg.issuer_address),
            "fiscal_regime": _text(emisor.get("regimen_fiscal"), cfg.issuer_fiscal_regime),
        }
        receiver = {
            "name": _text(cliente, ""),
            "tax_id": _text(_first(data, "rfc_cliente", "rfc"), cfg.receiver_rfc),
            "cfdi_use": _text(data.get("uso_cfdi"), cfg.receiver_cfdi_use),
            "fiscal_regime": _text(
                _first(data, "regimen_fiscal_cliente", "regimen_fiscal"),
                cfg.receiver_fiscal_regime,
            ),
            "tax_zip_code": _text(_first(data, "codigo_postal", "cp"), cfg.receiver_tax_zip_code),
        }
        metadata = self._metadata(
            folio=data.get("folio"),
            date_value=data.get("fecha"),
            expedition_place=data.get("lugar_expedicion"),
            cfdi_type=data.get("tipo_comprobante"),
            payment_form=data.get("forma_pago"),
            payment_method=data.get("metodo_pago"),
        )

        items = []
        for raw in _first_list(data, "items", "productos", "conceptos"):
            it = _mapping(raw)
            taxes = [
                self._tax(
                    name=tax.get("nombre"),
                    rate=tax.get("tasa"),
                    is_retention=tax.get("retencion"),
                    is_federal=tax.get("federal"),
                    total=_first(tax, "total", "importe"),
                )
                for tax in map(_mapping, _first_list(it, "impuestos"))
            ]
            if not taxes and _number(it.get("iva"), None) is not None:
                taxes.append(self._tax(name="IVA", rate=None, is_retention=False,
                                       is_federal=True, total=it.get("iva")))
            items.append(self._line(
                product_code=_first(it, "clave_prod_serv", "clave"),
                quantity=it.get("cantidad"),
                unit_code=_first(it, "clave_unidad", "unidad"),
                description=it.get("descripcion"),
                unit_price=_first(it, "precio_unitario", "precio"),
                line_subtotal=_first(it, "importe", "subtotal"),
                line_total=it.get("total"),
                taxes=taxes,
            ))

        explicit = ExplicitTotals(
            subtotal=_number(data.get("subtotal"), None),
            tax=_number(data.get("iva"), None),
            total=_number(data.get("total"), None),
        )
        return issuer, receiver, metadata, items, explicit

    # --- Shared builders ---

    def _metadata(self, *, folio, date_value, expedition_place, cfdi_type,
                  payment_form, payment_method) -> Dict[str, str]:
        cfg = self.config
        return {
            "folio": _text(folio, cfg.folio),
            "date": _text(date_value, "") or self.today().isoformat(),
            "expedition_place": _text(expedition_place, cfg.expedition_place),
            "cfdi_type": _text(cfdi_type, cfg.cfdi_type).upper(),
            "payment_form": _text(payment_form, cfg.payment_form),
            "payment_method": _text(payment_method, cfg.payment_method),
        }

    def _line(self, *, product_code, quantity, unit_code, description, unit_price,
              line_subtotal, line_total, taxes) -> Dict[str, Any]:
        cfg = self.config
        return {
            "product_code": _text(product_code, cfg.product_code),
            "quantity": _number(quantity, cfg.quantity),
            "unit_code": _text(unit_code, cfg.unit_code),
            "description": _text(description, cfg.description),
            "unit_price": _number(unit_price, 0.0),
            "line_subtotal": _number(line_subtotal, None),
            "line_total": _number(line_total, None),
            "taxes": tuple(taxes),
        }

    def _tax(self, *, name, rate, is_retention, is_federal, total) -> TaxEntry:
        return TaxEntry(
            name=_text(name, self.config.tax_name),
            rate=_number(rate, 0.0),
            is_retention=_flag(is_retention, False),
            is_federal=_flag(is_federal, True),
            total=_number(total, 0.0),
        )
