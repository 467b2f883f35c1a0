"""
earthview package

Places groups of geo-tagged narrative events (news, wiki entries, historical
incidents) on a world map: groups co-located entries into location clusters,
projects region polygons, resolves category styles and keeps the map and the
news list in sync through a selection state.

Group data is loaded from a web root or a local data directory.
"""

__version__ = "0.1.0"

from .config import init_project
from .models import GroupDescriptor, LocationRecord, NarrativeItem, LocationCluster, coordinate_key
from .styles import Style, resolve_style, record_style
from .aggregate import aggregate, filter_clusters, parse_timestamp
from .geometry import project, resolve_feature, collection_style
from .selection import FlyTo, RecordingViewport, SelectionState
from .loader import DataSource, LoadError
from .session import ChronicleSession

# The folium composer pulls in folium/pandas; import lazily
def create_map(*args, **kwargs):
    from .map_create import create_map as _create_map
    return _create_map(*args, **kwargs)

__all__ = [
    "init_project",
    "GroupDescriptor",
    "LocationRecord",
    "NarrativeItem",
    "LocationCluster",
    "coordinate_key",
    "Style",
    "resolve_style",
    "record_style",
    "aggregate",
    "filter_clusters",
    "parse_timestamp",
    "project",
    "resolve_feature",
    "collection_style",
    "FlyTo",
    "RecordingViewport",
    "SelectionState",
    "DataSource",
    "LoadError",
    "ChronicleSession",
    "create_map",
]
