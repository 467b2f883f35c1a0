"""
selection.py
Selection state linking map markers, polygons and the news list.

State:
  selected      -> the clicked LocationRecord (by reference) or None
  list_visible  -> news list panel shown or hidden
  collapsed     -> titles of list rows the user collapsed; rows are expanded
                   unless their title is in this set

Viewport commands go to the map collaborator through Viewport.fly_to().
"""

from dataclasses import dataclass
from typing import Any, List, Optional, Protocol, Sequence, Set

from .aggregate import filter_clusters
from .config import ITEM_FLY_DURATION, ITEM_ZOOM, LOCATION_FLY_DURATION, LOCATION_ZOOM
from .geometry import resolve_feature
from .logging_setup import get_logger
from .models import Coordinates, LocationCluster, LocationRecord

logger = get_logger(__name__)


@dataclass(frozen=True)
class FlyTo:
    center: Coordinates  # (longitude, latitude)
    zoom: float
    duration: int  # ms


class Viewport(Protocol):
    def fly_to(self, command: FlyTo) -> None:
        ...


class RecordingViewport:
    """Viewport that keeps every command; the map composer renders the latest."""

    def __init__(self):
        self.commands: List[FlyTo] = []

    def fly_to(self, command: FlyTo) -> None:
        self.commands.append(command)

    @property
    def last(self) -> Optional[FlyTo]:
        return self.commands[-1] if self.commands else None

    def clear(self) -> None:
        self.commands = []


class SelectionState:
    def __init__(self, viewport: Optional[Viewport] = None):
        self.viewport = viewport if viewport is not None else RecordingViewport()
        self.selected: Optional[LocationRecord] = None
        self.list_visible = True
        self.collapsed: Set[str] = set()

    def reset(self) -> None:
        """Back to the initial state: nothing selected, list shown, every row expanded."""
        self.selected = None
        self.list_visible = True
        self.collapsed = set()

    # --- map interaction ---

    def select_location(self, record: LocationRecord) -> None:
        """Marker or polygon click: select the record, force the list open, fly to it."""
        self.selected = record
        self.list_visible = True
        logger.info("location selected", location=record.name)
        self.viewport.fly_to(FlyTo(record.coordinates, LOCATION_ZOOM, LOCATION_FLY_DURATION))

    def select_feature(self, records: Sequence[LocationRecord], location_index: Any) -> Optional[LocationRecord]:
        record = resolve_feature(records, location_index)
        if record is None:
            logger.debug("polygon click ignored", location_index=location_index)
            return None
        self.select_location(record)
        return record

    def is_selected(self, record: LocationRecord) -> bool:
        return self.selected is record

    # --- list interaction ---

    def show_all(self) -> None:
        self.selected = None

    def view_location(self, coordinates: Coordinates) -> None:
        """Closer fly-to for a single list item; selection and filter stay as they are."""
        self.viewport.fly_to(FlyTo(tuple(coordinates), ITEM_ZOOM, ITEM_FLY_DURATION))

    def toggle_list(self) -> None:
        self.list_visible = not self.list_visible

    def show_list(self) -> None:
        self.list_visible = True

    def hide_list(self) -> None:
        self.list_visible = False

    def toggle_item(self, title: str) -> None:
        if title in self.collapsed:
            self.collapsed.discard(title)
        else:
            self.collapsed.add(title)

    def is_expanded(self, title: str) -> bool:
        return title not in self.collapsed

    def visible_clusters(self, clusters: List[LocationCluster]) -> List[LocationCluster]:
        name = self.selected.name if self.selected is not None else None
        return filter_clusters(clusters, name)

    @property
    def list_title(self) -> str:
        if self.selected is not None:
            return f"{self.selected.name} news"
        return "All news"
