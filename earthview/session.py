"""
session.py
Active group lifecycle.

Each group switch bumps a generation counter. A detail response is applied
only if its generation is still current, so a slow response for a group the
user already left can never overwrite the newer group's records.
"""

from typing import List, Optional, Sequence

from .aggregate import aggregate
from .loader import DataSource, LoadError
from .logging_setup import get_logger
from .models import GroupDescriptor, LocationCluster, LocationRecord
from .selection import SelectionState

logger = get_logger(__name__)


class ChronicleSession:
    def __init__(self, source: DataSource, selection: Optional[SelectionState] = None):
        self.source = source
        self.selection = selection if selection is not None else SelectionState()
        self.groups: List[GroupDescriptor] = []
        self.active_group: Optional[GroupDescriptor] = None
        self.records: List[LocationRecord] = []
        self._clusters: Optional[List[LocationCluster]] = None
        self._generation = 0

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def clusters(self) -> List[LocationCluster]:
        """Sorted cluster list, recomputed after every records change."""
        if self._clusters is None:
            self._clusters = aggregate(self.records)
        return self._clusters

    def visible_clusters(self) -> List[LocationCluster]:
        return self.selection.visible_clusters(self.clusters)

    def _set_records(self, records: Sequence[LocationRecord]) -> None:
        self.records = list(records)
        self._clusters = None

    # ----------------------------
    # Group list
    # ----------------------------

    def set_source(self, source: DataSource) -> None:
        """
        Point the session at another data source.

        Bumps the generation, so detail responses still pending from the old
        source are discarded when they arrive.
        """
        self._generation += 1
        self.source = source
        self.groups = []
        self.active_group = None
        self._set_records([])
        self.selection.reset()
        logger.info("data source changed", generation=self._generation)

    def apply_groups(self, source: DataSource, groups: List[GroupDescriptor]) -> bool:
        """Store a fetched group list; False when it came from a source the session has since left."""
        if source is not self.source:
            logger.warning("discarding group list from replaced source")
            return False
        self.groups = list(groups)
        logger.info("groups loaded", count=len(self.groups))
        return True

    async def load_groups(self, select_first: bool = True) -> List[GroupDescriptor]:
        source = self.source
        groups = await source.fetch_groups()
        if not self.apply_groups(source, groups):
            return self.groups
        if select_first and self.groups:
            await self.select_group(self.groups[0])
        return self.groups

    def find_group(self, group_id: str) -> Optional[GroupDescriptor]:
        for group in self.groups:
            if group.id == group_id:
                return group
        return None

    # ----------------------------
    # Group detail
    # ----------------------------

    def begin_group(self, group: GroupDescriptor) -> int:
        """Make group active, drop the old records and selection; returns the request generation."""
        self._generation += 1
        self.active_group = group
        self._set_records([])
        self.selection.reset()
        logger.info("group switch", group_id=group.id, generation=self._generation)
        return self._generation

    async def fetch_detail(self, group: GroupDescriptor) -> Optional[List[LocationRecord]]:
        """Fetch a group's records; None when the load failed."""
        try:
            return await self.source.fetch_locations(group.data_path)
        except LoadError as exc:
            logger.error(
                "group detail load failed",
                group_id=group.id,
                path=exc.path,
                status=exc.status,
                error=str(exc),
            )
            return None

    def apply_detail(self, generation: int, records: Optional[Sequence[LocationRecord]]) -> bool:
        """
        Apply a finished detail fetch.

        Returns False (and changes nothing) when a newer group switch has
        happened since the request started. A failed load (records=None)
        clears the collection.
        """
        if generation != self._generation:
            logger.warning("discarding stale group detail", generation=generation, current=self._generation)
            return False
        self._set_records(records or [])
        self.selection.show_all()
        logger.info(
            "group detail applied",
            group_id=self.active_group.id if self.active_group else None,
            records=len(self.records),
        )
        return True

    async def select_group(self, group: GroupDescriptor) -> bool:
        generation = self.begin_group(group)
        records = await self.fetch_detail(group)
        return self.apply_detail(generation, records)

    async def select_group_id(self, group_id: str) -> bool:
        group = self.find_group(group_id)
        if group is None:
            logger.warning("unknown group id", group_id=group_id)
            return False
        return await self.select_group(group)
