"""GST tax calculator

Aggregates line amounts into subtotal, CGST/SGST or IGST, tax amount and
grand total. Tax components are taken from the precise (unrounded) subtotal;
the grand total is built from the already-rounded subtotal and tax amount.
"""

from decimal import Decimal, DecimalException
from typing import Any, Iterable

from billing.calculations.amounts import ZERO, apply_rounding_policy, money_context, percentage_of, to_decimal
from billing.models.invoice import InvoiceTotals, TaxConfiguration, TaxType


def precise_subtotal(amounts: Iterable[Any]) -> Decimal:
    """Sum of line amounts without any rounding policy applied"""
    with money_context():
        try:
            return sum((to_decimal(amount) for amount in amounts), ZERO)
        except DecimalException:
            return ZERO


def calculate_totals(amounts: Iterable[Any], config: TaxConfiguration) -> InvoiceTotals:
    """
    Compute invoice totals for the given line amounts.

    Args:
        amounts: Line amounts (already rounded to cents at row level)
        config: Tax type, rates and round-off mode

    Returns:
        InvoiceTotals with every monetary field rounded per `config.round_off`

    Note:
        Under CGST+SGST the tax amount is rounded from the precise component
        sum, so it can differ from cgst_amount + sgst_amount by one unit of
        rounding.
    """
    round_off = config.round_off
    subtotal_precise = precise_subtotal(amounts)
    subtotal = apply_rounding_policy(subtotal_precise, round_off)

    igst_amount = cgst_amount = sgst_amount = apply_rounding_policy(ZERO, round_off)

    if config.tax_type == TaxType.IGST:
        igst_amount = apply_rounding_policy(
            percentage_of(subtotal_precise, config.igst_rate), round_off
        )
        tax_amount = igst_amount
    else:
        cgst_precise = percentage_of(subtotal_precise, config.cgst_rate)
        sgst_precise = percentage_of(subtotal_precise, config.sgst_rate)
        cgst_amount = apply_rounding_policy(cgst_precise, round_off)
        sgst_amount = apply_rounding_policy(sgst_precise, round_off)
        with money_context():
            tax_amount = apply_rounding_policy(cgst_precise + sgst_precise, round_off)

    with money_context():
        total = apply_rounding_policy(subtotal + tax_amount, round_off)

    return InvoiceTotals(
        subtotal=subtotal,
        igst_amount=igst_amount,
        cgst_amount=cgst_amount,
        sgst_amount=sgst_amount,
        tax_amount=tax_amount,
        total=total,
    )
