"""Sample obligations shown while the backend is unavailable."""
from datetime import date
from typing import List

from fiscal_calendar.models.obligation import Obligation


def get_mock_obligations(today: date) -> List[Obligation]:
    prefix = f"{today.year}-{today.month:02d}"
    return [
        Obligation(id="1", date=f"{prefix}-10", title="DCTFWeb", sphere="Federal"),
        Obligation(id="2", date=f"{prefix}-20", title="GPS", sphere="Federal"),
        Obligation(id="3", date=f"{prefix}-07", title="Simples Nacional", sphere="Federal"),
    ]
