"""
Totals engine for canonical invoices.

Algorithm:
1. subtotal = sum of line subtotals (explicit, else quantity × unit price)
2. tax = sum of non-retention taxes named "IVA" (case-insensitive)
3. if tax is zero and subtotal > 0: tax = round(subtotal × 0.16, 2)
4. total = sum of explicit line totals; zero -> subtotal + tax

Step 3 is a flat-rate heuristic for payloads without a tax breakdown. It is
NOT a tax-law computation: exempt goods, 8% border zone rates and IEPS are
not considered.

Values are accumulated at full precision; round only when presenting
(InvoiceTotals.rounded()).
"""

import logging
from typing import Iterable, Optional

from docflow.schemas.invoices import ExplicitTotals, InvoiceTotals, LineItem

logger = logging.getLogger(__name__)

VAT_TAX_NAME = "IVA"
FALLBACK_VAT_RATE = 0.16
TOTALS_TOLERANCE = 0.01


def is_additive_vat(name: str, is_retention: bool) -> bool:
    """True for tax entries that add to the VAT total."""
    return not is_retention and name.strip().lower() == VAT_TAX_NAME.lower()


def compute_totals(
    items: Iterable[LineItem],
    explicit_totals: Optional[ExplicitTotals] = None,
) -> InvoiceTotals:
    """
    Derive subtotal, tax and total from canonical line items.

    Args:
        items: Canonical line items
        explicit_totals: Document-level totals sent by the client. Only used
            when the lines carry no VAT (tax) or no line totals (total).

    Returns:
        InvoiceTotals at full precision with total == subtotal + tax
        (within TOTALS_TOLERANCE).
    """
    items = list(items)

    subtotal = sum(item.subtotal_amount for item in items)

    tax = sum(
        entry.total
        for item in items
        for entry in item.taxes
        if is_additive_vat(entry.name, entry.is_retention)
    )

    if tax == 0 and explicit_totals is not None and explicit_totals.tax:
        tax = explicit_totals.tax

    if tax == 0 and subtotal > 0:
        tax = round(subtotal * FALLBACK_VAT_RATE, 2)
        logger.debug("No VAT breakdown supplied; applied flat 16% fallback")

    total = sum(item.line_total for item in items if item.line_total is not None)

    if total == 0 and explicit_totals is not None and explicit_totals.total:
        total = explicit_totals.total

    if total == 0 and subtotal > 0:
        total = subtotal + tax
    elif abs(total - (subtotal + tax)) >= TOTALS_TOLERANCE:
        logger.warning(
            "Supplied totals do not match subtotal + tax; using computed total"
        )
        total = subtotal + tax

    return InvoiceTotals(subtotal=subtotal, tax=tax, total=total)
