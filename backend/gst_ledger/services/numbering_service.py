"""
Document numbering
Project: GST Ledger

Format: PREFIX-YYYY-NNNN (e.g. INV-2025-0001), one sequence per team,
prefix and year.
"""

import datetime
import uuid

from gst_ledger.repositories.base import UnitOfWork

PREFIX_INVOICE = "INV"
PREFIX_BILL = "BILL"
PREFIX_QUOTATION = "QT"
PREFIX_CUSTOMER_ADVANCE = "ADV-C"
PREFIX_SUPPLIER_ADVANCE = "ADV-S"
PREFIX_RECEIPT = "RCP"


class NumberingService:

    async def next_number(
        self,
        uow: UnitOfWork,
        team_id: uuid.UUID,
        prefix: str,
        day: datetime.date,
    ) -> str:
        """
        Reserve the next number for the year of `day`.

        The number is only consumed if the surrounding unit of work commits.
        """
        value = await uow.sequences.next_value(team_id, prefix, day.year)
        # Zero-padded to 4 digits, grows past 9999
        return f"{prefix}-{day.year}-{value:04d}"
