"""
Payment Terms Policy - Settles the paid/received amount of a document.
"""
import logging

from ..engine.models import CASH, CREDIT, DocumentTotals
from ..engine.money import ZERO, is_blank, money, parse_decimal

logger = logging.getLogger(__name__)


class PaymentTermsPolicy:
    """
    Applies payment terms to computed totals.

    Cash sales without an entered amount are settled in full. Otherwise
    the amount entered is clamped to [0, grand total] and the remainder is
    the credit balance.
    """

    PAYMENT_TYPES = (CASH, CREDIT)

    def __init__(self, places: int = 2):
        self.places = places

    def settle(
        self,
        totals: DocumentTotals,
        payment_type: str = CREDIT,
        paid_or_received=None,
        settle_cash_in_full: bool = False,
    ) -> DocumentTotals:
        """Fill `paid_or_received` and `credit_balance` on `totals`."""
        grand_total = totals.grand_total

        if payment_type == CASH and settle_cash_in_full and is_blank(paid_or_received):
            paid = grand_total
            totals.add_trace("Payment", "Cash document settled in full", f"{paid:.2f}")
        else:
            requested = parse_decimal(paid_or_received)
            if requested is None:
                paid = ZERO
            elif requested > grand_total:
                paid = grand_total
                totals.add_warning(
                    f"Paid amount {requested:.2f} exceeds grand total {grand_total:.2f}; clamped"
                )
                logger.debug("Clamped paid amount %s to grand total %s", requested, grand_total)
            elif requested < ZERO:
                paid = ZERO
                totals.add_warning(f"Negative paid amount {requested:.2f} ignored")
            else:
                paid = requested
            totals.add_trace("Payment", f"{payment_type or CREDIT} payment recorded", f"{paid:.2f}")

        totals.paid_or_received = money(paid, self.places)
        totals.credit_balance = money(grand_total - totals.paid_or_received, self.places)
        if totals.credit_balance > ZERO:
            totals.add_trace("Balance", "Remaining on credit", f"{totals.credit_balance:.2f}")
        return totals
