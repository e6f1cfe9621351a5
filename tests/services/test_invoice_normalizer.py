"""
Tests for the invoice normalizer.

Covers both request schemas, schema detection, defaults and the required
field rules.
"""

from datetime import date

import pytest

from docflow.errors import ValidationError
from docflow.services.invoice_normalizer import (
    InvoiceNormalizer,
    LegacyPayload,
    NormalizerConfig,
    OrchestratorPayload,
    detect_schema,
)


@pytest.fixture
def normalizer() -> InvoiceNormalizer:
    return InvoiceNormalizer(today=lambda: date(2026, 1, 11))


ORCHESTRATOR_PAYLOAD = {
    "Folio": "A-100",
    "Date": "2026-01-10",
    "CfdiType": "e",
    "ExpeditionPlace": "20160",
    "Emisor": {"Name": "EMPRESA DEMO", "Rfc": "EKU9003173C9", "FiscalRegime": "601"},
    "Receiver": {"Name": "CLIENTE SA", "Rfc": "CSA010101AAA", "CfdiUse": "G03", "TaxZipCode": "01000"},
    "Items": [
        {
            "ProductCode": "31162800",
            "Quantity": 1,
            "UnitPrice": 100,
            "Subtotal": 100,
            "Description": "Bomba",
            "Taxes": [{"Name": "IVA", "Rate": 0.16, "Total": 16, "IsRetention": False}],
        }
    ],
}


class TestDetectSchema:
    """Tests for detect_schema()."""

    def test_orchestrator_needs_items_list_and_receiver_object(self):
        assert isinstance(detect_schema({"Items": [], "Receiver": {}}), OrchestratorPayload)

    def test_everything_else_is_legacy(self):
        assert isinstance(detect_schema({"Items": [], "Receiver": "X"}), LegacyPayload)
        assert isinstance(detect_schema({"Items": {}, "Receiver": {}}), LegacyPayload)
        assert isinstance(detect_schema({"cliente": "X", "items": []}), LegacyPayload)


class TestOrchestratorSchema:
    """Orchestrator (PascalCase) payloads."""

    def test_full_payload(self, normalizer):
        invoice = normalizer.normalize(ORCHESTRATOR_PAYLOAD)

        assert invoice.source_schema == "orchestrator"
        assert invoice.issuer.name == "EMPRESA DEMO"
        assert invoice.issuer.tax_id == "EKU9003173C9"
        assert invoice.receiver.name == "CLIENTE SA"
        assert invoice.receiver.cfdi_use == "G03"
        assert invoice.receiver.fiscal_regime == "616"
        assert invoice.metadata.folio == "A-100"
        assert invoice.metadata.date == "2026-01-10"
        assert invoice.metadata.cfdi_type == "E"
        assert invoice.metadata.effect_label == "E - Egreso"

        (item,) = invoice.items
        assert item.product_code == "31162800"
        assert item.unit_code == "H87"
        assert item.taxes[0].total == 16.0

        totals = invoice.totals
        assert (totals.subtotal, totals.tax, totals.total) == (100.0, 16.0, 116.0)

    def test_receiver_without_name_is_general_public(self, normalizer):
        payload = {"Receiver": {}, "Items": [{"UnitPrice": 10}]}

        invoice = normalizer.normalize(payload)

        assert invoice.receiver.name == "PUBLICO EN GENERAL"
        assert invoice.receiver.tax_id == "XAXX010101000"

    def test_defaults(self, normalizer):
        invoice = normalizer.normalize({"Receiver": {"Name": "X"}, "Items": [{}]})

        meta = invoice.metadata
        assert meta.folio == "S/N"
        assert meta.date == "2026-01-11"
        assert meta.effect_label == "I - Ingreso"
        assert (meta.payment_form, meta.payment_method) == ("01", "PUE")
        item = invoice.items[0]
        assert item.product_code == "01010101"
        assert item.quantity == 1.0
        assert item.description == "N/A"
        assert invoice.issuer.name == "N/A"

    def test_issuer_defaults_come_from_config(self):
        normalizer = InvoiceNormalizer(NormalizerConfig(issuer_name="MI EMPRESA", issuer_rfc="MEM010101AB1"))

        invoice = normalizer.normalize({"Receiver": {}, "Items": [{"UnitPrice": 1}]})

        assert invoice.issuer.name == "MI EMPRESA"
        assert invoice.issuer.tax_id == "MEM010101AB1"

    def test_empty_items_raise(self, normalizer):
        with pytest.raises(ValidationError) as exc_info:
            normalizer.normalize({"Receiver": {"Name": "X"}, "Items": []})
        assert "Items" in exc_info.value.message


class TestLegacySchema:
    """Legacy (snake_case) payloads."""

    def test_minimal_payload_uses_flat_vat(self, normalizer):
        invoice = normalizer.normalize(
            {"cliente": "JUAN PEREZ", "items": [{"cantidad": 2, "precio_unitario": 50}]}
        )

        assert invoice.source_schema == "legacy"
        assert invoice.receiver.name == "JUAN PEREZ"
        assert invoice.receiver.tax_id == "XAXX010101000"
        totals = invoice.totals
        assert (totals.subtotal, totals.tax, totals.total) == (100.0, 16.0, 116.0)

    def test_alternate_keys_and_string_amounts(self, normalizer):
        invoice = normalizer.normalize({
            "cliente": {"nombre": "FERRETERIA LOPEZ"},
            "rfc": "FLO010101XX1",
            "cp": "64000",
            "emisor": {"nombre": "EMPRESA DEMO", "direccion": "Calle 1"},
            "productos": [
                {"clave": "27111700", "unidad": "E48", "cantidad": "3",
                 "precio": "$1,000.00", "descripcion": "Taladro", "iva": "480"},
            ],
        })

        assert invoice.receiver.name == "FERRETERIA LOPEZ"
        assert invoice.receiver.tax_id == "FLO010101XX1"
        assert invoice.receiver.tax_zip_code == "64000"
        assert invoice.issuer.address == "Calle 1"
        item = invoice.items[0]
        assert (item.product_code, item.unit_code) == ("27111700", "E48")
        assert item.quantity == 3.0
        assert item.unit_price == 1000.0
        assert invoice.totals.subtotal == 3000.0
        assert invoice.totals.tax == 480.0
        assert invoice.totals.total == 3480.0

    def test_explicit_document_totals_as_fallback(self, normalizer):
        invoice = normalizer.normalize({
            "cliente": "X",
            "items": [{"importe": 100}],
            "subtotal": 100,
            "iva": 8,
            "total": 108,
        })

        assert (invoice.totals.tax, invoice.totals.total) == (8.0, 108.0)

    def test_missing_cliente_raises(self, normalizer):
        with pytest.raises(ValidationError) as exc_info:
            normalizer.normalize({"items": [{"cantidad": 1, "precio_unitario": 10}]})
        assert "cliente" in exc_info.value.message

    def test_missing_cliente_and_items_are_reported_together(self, normalizer):
        with pytest.raises(ValidationError) as exc_info:
            normalizer.normalize({"items": []})

        assert exc_info.value.status_code == 400
        assert "cliente" in exc_info.value.message
        assert "items" in exc_info.value.message

    def test_negative_amounts_raise(self, normalizer):
        with pytest.raises(ValidationError) as exc_info:
            normalizer.normalize({"cliente": "X", "items": [{"cantidad": -1, "precio_unitario": 10}]})
        assert "quantity" in exc_info.value.message

    def test_amount_too_large_for_float_raises(self, normalizer):
        with pytest.raises(ValidationError) as exc_info:
            normalizer.normalize({"cliente": "X", "items": [{"cantidad": 10**400, "precio_unitario": 1}]})
        assert exc_info.value.status_code == 400
        assert "fuera de rango" in exc_info.value.message


def test_non_object_body_raises(normalizer):
    with pytest.raises(ValidationError):
        normalizer.normalize(["not", "an", "object"])


def test_normalize_is_deterministic(normalizer):
    assert normalizer.normalize(ORCHESTRATOR_PAYLOAD) == normalizer.normalize(ORCHESTRATOR_PAYLOAD)
