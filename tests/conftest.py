from typing import Any, Dict, List

import pytest

from earthview.models import LocationRecord

from factories import item, record_payload


@pytest.fixture
def group_a_payload() -> List[Dict[str, Any]]:
    """3 records, 5 narrative items, two records sharing one coordinate pair."""
    return [
        record_payload("Seoul", [127.0, 37.5], [item("a1", "2024-03-01"), item("a2", "2024-01-15")], venue="City Hall"),
        record_payload("Seoul", [127.0, 37.5], [item("a3", "2024-02-01")], venue="Gwanghwamun"),
        record_payload("Busan", [129.0, 35.1], [item("b1", "2024-04-01"), item("b2", "2023-12-31")], code="FLOOD"),
    ]


@pytest.fixture
def group_a_records(group_a_payload) -> List[LocationRecord]:
    return [LocationRecord.from_dict(p) for p in group_a_payload]
