"""Ticket number sequence."""

from pydantic import Field

from tmtickets.core.db import ApiModel

# Fixed identity of the single counter record (partition "ticket-seq", row "counter")
TICKET_COUNTER_KEY = "ticket-seq/counter"


class TicketNumber(ApiModel):
    """A freshly allocated ticket number."""

    ticket_number: str = Field(..., description="Formatted ticket number, e.g. T-1000")
