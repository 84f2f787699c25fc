"""Stored-totals validation

Checks that an invoice's stored totals agree with its items and tax
configuration, under the same rounding rules the calculator applies.
"""

from decimal import Decimal
from typing import Any, Dict, Optional, Tuple
from billing.calculations.tax_calculator import calculate_totals
from billing.calculations.amounts import apply_rounding_policy, calculate_amount
from billing.models.invoice import InvoiceRecord, TaxType
import logging

logger = logging.getLogger(__name__)


class TotalsValidator:
    """Validates consistency between an invoice's totals and its line items"""

    @staticmethod
    def validate_item_amounts(invoice: InvoiceRecord) -> Tuple[bool, Optional[str]]:
        """
        Validate: item.amount == round2(quantity * rate) for every item

        Returns:
            (is_valid, error_message)
        """
        mismatched = [
            item.serial_no
            for item in invoice.items
            if calculate_amount(item.quantity, item.rate) != item.amount
        ]
        if mismatched:
            return False, f"Item amount mismatch for serial numbers {mismatched}"
        return True, None

    @staticmethod
    def validate_subtotal(invoice: InvoiceRecord) -> Tuple[bool, Optional[str]]:
        """
        Validate: invoice.subtotal == policy(sum(item.amount))

        Returns:
            (is_valid, error_message)
        """
        sum_amounts = sum((item.amount for item in invoice.items), Decimal("0"))
        expected = apply_rounding_policy(sum_amounts, invoice.round_off)

        if invoice.subtotal != expected:
            return False, (
                f"Subtotal mismatch: invoice.subtotal={invoice.subtotal} != "
                f"sum(item.amount)={expected}"
            )
        return True, None

    @staticmethod
    def validate_tax_components(invoice: InvoiceRecord) -> Tuple[bool, Optional[str]]:
        """
        Validate IGST or CGST/SGST amounts against the configured rates.
        Components of the inactive regime must be zero.

        Returns:
            (is_valid, error_message)
        """
        expected = calculate_totals(
            (item.amount for item in invoice.items), invoice.tax_configuration()
        )
        errors = []
        for name in ("igst_amount", "cgst_amount", "sgst_amount"):
            stored = getattr(invoice, name)
            if stored != getattr(expected, name):
                errors.append(f"{name}={stored} (expected {getattr(expected, name)})")

        if errors:
            regime = "IGST" if invoice.tax_type == TaxType.IGST else "CGST+SGST"
            return False, f"{regime} component mismatch: " + ", ".join(errors)
        return True, None

    @staticmethod
    def validate_tax_amount(invoice: InvoiceRecord) -> Tuple[bool, Optional[str]]:
        """
        Validate: invoice.tax_amount == recomputed tax amount

        Returns:
            (is_valid, error_message)
        """
        expected = calculate_totals(
            (item.amount for item in invoice.items), invoice.tax_configuration()
        ).tax_amount

        if invoice.tax_amount != expected:
            return False, (
                f"Tax amount mismatch: invoice.tax_amount={invoice.tax_amount} != "
                f"recomputed={expected}"
            )
        return True, None

    @staticmethod
    def validate_total(invoice: InvoiceRecord) -> Tuple[bool, Optional[str]]:
        """
        Validate: invoice.total == policy(subtotal + tax_amount)

        Returns:
            (is_valid, error_message)
        """
        expected = apply_rounding_policy(invoice.subtotal + invoice.tax_amount, invoice.round_off)

        if invoice.total != expected:
            return False, (
                f"Total mismatch: invoice.total={invoice.total} != "
                f"subtotal + tax_amount={expected}"
            )
        return True, None

    @staticmethod
    def validate_all(invoice: InvoiceRecord) -> Dict[str, Tuple[bool, Optional[str]]]:
        """
        Run all validations.

        Returns:
            Dictionary mapping validation name to (is_valid, error_message)
        """
        return {
            "item_amounts": TotalsValidator.validate_item_amounts(invoice),
            "subtotal": TotalsValidator.validate_subtotal(invoice),
            "tax_components": TotalsValidator.validate_tax_components(invoice),
            "tax_amount": TotalsValidator.validate_tax_amount(invoice),
            "total": TotalsValidator.validate_total(invoice),
        }

    @staticmethod
    def get_validation_summary(invoice: InvoiceRecord) -> Dict[str, Any]:
        """
        Get a summary of validation results.

        Returns:
            Dictionary with:
            - all_valid: bool
            - validations: dict of validation results
            - errors: list of error messages
        """
        results = TotalsValidator.validate_all(invoice)

        all_valid = all(is_valid for is_valid, _ in results.values())
        errors = [error for is_valid, error in results.values() if not is_valid and error]
        if errors:
            logger.warning(f"Invoice {invoice.id or invoice.invoice_number} failed validation: {errors}")

        return {
            "all_valid": all_valid,
            "validations": results,
            "errors": errors,
            "total_validations": len(results),
            "passed_validations": sum(1 for is_valid, _ in results.values() if is_valid),
            "failed_validations": len(errors)
        }
