"""Deal sub-records: customers, vehicles, worksheet, disclosures and delivery."""

from dealerdesk.deals.models import DealBundle, DealRecord, DealSummaryRow, DealTable
from dealerdesk.deals.store import DealStore

__all__ = ["DealBundle", "DealRecord", "DealStore", "DealSummaryRow", "DealTable"]
