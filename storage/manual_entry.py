"""Normalization of the manual funnel entry form.

The form collects totals for a day plus which kind of client the closes
were. ``to_fields`` turns it into the manual fields stored by EntryStore.
"""

import math
from dataclasses import dataclass
from typing import Any, Dict, Optional

from storage.exceptions import ValidationError


def _float(value: Any) -> float:
    try:
        number = float(value) if value not in (None, "") else 0.0
    except (TypeError, ValueError, OverflowError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def _int(value: Any) -> int:
    return int(_float(value))


@dataclass
class ManualEntryForm:
    """Raw values as typed into the manual entry form."""

    meetings: Optional[Any] = None
    shows: Optional[Any] = None
    offers_made: Optional[Any] = None
    closes: Optional[Any] = None
    cash_collected: Optional[Any] = None
    revenue: Optional[Any] = None
    is_new_client: bool = False
    is_recurring_client: bool = False

    def to_fields(self) -> Dict[str, Any]:
        """Validate the form and build manual field values.

        Closes are split into new/recurring by the client-type flags; with
        both flags set the split is half and half, rounding towards new.
        Revenue is mirrored into totalRevenue and newRevenue. Fields that
        end up 0 are left out so they do not touch stored values.

        Raises:
            ValidationError: On an empty form, cash above revenue, or closes
                without a client type.
        """
        values = {
            "meetings": _int(self.meetings),
            "shows": _int(self.shows),
            "offersMade": _int(self.offers_made),
            "closes": _int(self.closes),
            "cashCollected": _float(self.cash_collected),
            "revenue": _float(self.revenue),
        }

        if not any(values.values()):
            raise ValidationError("Please fill in at least one field")

        if values["revenue"] > 0 and values["cashCollected"] > values["revenue"]:
            raise ValidationError(
                "Cash collected cannot exceed total revenue", field="cashCollected"
            )

        closes = values["closes"]
        if closes > 0 and not (self.is_new_client or self.is_recurring_client):
            raise ValidationError(
                "Please select if closes are new clients, recurring clients, or both",
                field="closes",
            )

        if self.is_new_client and self.is_recurring_client:
            new_closes = math.ceil(closes / 2)
        elif self.is_recurring_client:
            new_closes = 0
        else:
            new_closes = closes
        values["newCloses"] = new_closes
        values["recurringCloses"] = closes - new_closes

        values["totalRevenue"] = values["revenue"]
        values["newRevenue"] = values["revenue"]

        # Only filled-in fields are submitted
        return {key: value for key, value in values.items() if value}
