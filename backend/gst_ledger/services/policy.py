"""
Ledger policy switches
Project: GST Ledger
"""

from dataclasses import dataclass

from gst_ledger.core.config import Settings


@dataclass(frozen=True)
class LedgerPolicy:
    """
    Business decisions that vary per deployment.

    Attributes:
        allow_negative_due: payments, allocations and adjustments may drive
            amount_due below zero (overpayment / over-credit)
        allow_cancel_sent_unpaid: a sent document with nothing paid may be cancelled
        allow_locked_reversal_on_advance_delete: deleting an advance may reverse
            allocations on documents inside a filed GST period
        default_currency: currency used when a request omits one
        supported_currencies: accepted ISO codes
    """

    allow_negative_due: bool = False
    allow_cancel_sent_unpaid: bool = True
    allow_locked_reversal_on_advance_delete: bool = True
    default_currency: str = "BTN"
    supported_currencies: tuple[str, ...] = ("BTN", "INR", "USD")

    @classmethod
    def from_settings(cls, settings: Settings) -> "LedgerPolicy":
        return cls(
            allow_negative_due=settings.allow_negative_due,
            allow_cancel_sent_unpaid=settings.allow_cancel_sent_unpaid,
            allow_locked_reversal_on_advance_delete=settings.allow_locked_reversal_on_advance_delete,
            default_currency=settings.default_currency,
            supported_currencies=tuple(settings.supported_currencies),
        )
