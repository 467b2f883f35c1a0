"""
aggregate.py
Group narrative items by exact coordinates for the news list.

Pipeline:
  flatten   -> one NarrativeItem per news/wiki entry, carrying its parent's location
  group     -> one LocationCluster per coordinate key, in first-seen order
  sort      -> newest first by parsed timestamp; undated items last; stable for ties
"""

import re
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

from .logging_setup import get_logger
from .models import LocationCluster, LocationRecord, NarrativeItem

logger = get_logger(__name__)

_DATE_FORMATS = ("%Y-%m-%d", "%Y/%m/%d", "%Y.%m.%d", "%Y%m%d")

# fromisoformat before 3.11 only takes 3 or 6 fraction digits
_FRACTION = re.compile(r"(\d{2}:\d{2}:\d{2})\.(\d+)")


# ----------------------------
# Helpers: dates
# ----------------------------

def parse_timestamp(raw: Any) -> Optional[datetime]:
    """Parse a narrative date into a naive UTC datetime; None when missing or unparseable."""
    if not raw:
        return None
    s = str(raw).strip()
    if not s:
        return None
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    s = _FRACTION.sub(lambda m: f"{m.group(1)}.{m.group(2)[:6].ljust(6, '0')}", s, count=1)
    dt: Optional[datetime] = None
    try:
        dt = datetime.fromisoformat(s)
    except ValueError:
        for fmt in _DATE_FORMATS:
            try:
                dt = datetime.strptime(s, fmt)
                break
            except ValueError:
                continue
    if dt is None:
        return None
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def _sort_key(cluster: LocationCluster) -> Tuple[int, datetime]:
    dt = parse_timestamp(cluster.date)
    if dt is None:
        return (0, datetime.min)
    return (1, dt)


# ----------------------------
# Core
# ----------------------------

def flatten(records: Iterable[LocationRecord]) -> Iterator[NarrativeItem]:
    """Yield every narrative entry of every record, in record order."""
    for record in records:
        for entry in record.narrative:
            yield NarrativeItem.from_entry(entry, record)


def aggregate(records: Iterable[LocationRecord]) -> List[LocationCluster]:
    """
    Build the deduplicated, newest-first cluster list for a record set.

    Records without narrative entries contribute nothing. Every item lands in
    exactly one cluster's news_list.
    """
    by_key: Dict[str, LocationCluster] = {}
    item_count = 0
    for item in flatten(records):
        item_count += 1
        key = item.key
        existing = by_key.get(key)
        if existing is None:
            by_key[key] = LocationCluster(representative=item)
        else:
            existing.append(item)

    # sorted() is stable, and reverse=True keeps equal keys in encounter order
    clusters = sorted(by_key.values(), key=_sort_key, reverse=True)
    logger.debug("aggregated narrative items", items=item_count, clusters=len(clusters))
    return clusters


def filter_clusters(clusters: List[LocationCluster], location_name: Optional[str]) -> List[LocationCluster]:
    """List view for the current selection; the full list when nothing is selected."""
    if location_name is None:
        return list(clusters)
    return [c for c in clusters if c.location_name == location_name]
