import html
import os
import re
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

import folium
import pandas as pd
from branca.element import MacroElement
from folium import Html, Popup
from jinja2 import Template as JinjaTemplate

from .config import (
    DEFAULT_MAP_SUFFIX,
    DEFAULT_TABLE_SUFFIX,
    INITIAL_VIEW,
    ITEM_FLY_DURATION,
    ITEM_ZOOM,
    LOCATION_FLY_DURATION,
    LOCATION_ZOOM,
    POLYGON_FILL_OPACITY,
    POLYGON_LINE_WIDTH,
)
from .geometry import project
from .logging_setup import get_logger
from .models import GroupDescriptor, LocationCluster, LocationRecord
from .selection import FlyTo, SelectionState
from .styles import Style, record_style

logger = get_logger(__name__)


# ----------------------------
# Helpers: formatting
# ----------------------------

def _esc(value: Any) -> str:
    """HTML-escape arbitrary user data for popup/list output."""
    if value is None:
        return ""
    escaped = html.escape(str(value))
    # Prevent Jinja from treating brace sequences like {{ }} or {% %} as template tags
    return escaped.replace('{', '&#123;').replace('}', '&#125;')


def _safe_name(value: Optional[str]) -> str:
    return re.sub(r"[^A-Za-z0-9_-]+", "_", (value or "").strip()).strip("_") or "earthview"


def _fly_to_js(map_name: str, coordinates, zoom: float, duration_ms: int) -> str:
    # Leaflet takes [lat, lon] and seconds
    lon, lat = coordinates[0], coordinates[1]
    return f"{map_name}.flyTo([{float(lat)!r}, {float(lon)!r}], {zoom}, {{duration: {duration_ms / 1000.0}}});"


# ----------------------------
# Map elements
# ----------------------------

class _ZoomTopRight(MacroElement):
    _template = JinjaTemplate(
        """
        {% macro script(this, kwargs) %}
        {{this._parent.get_name()}}.zoomControl.setPosition('topright');
        {% endmacro %}
        """
    )


class _FlyTo(MacroElement):
    """Animated viewport move issued once the map is ready."""

    _template = JinjaTemplate(
        """
        {% macro script(this, kwargs) %}
        {{this._parent.get_name()}}.flyTo(
            [{{ this.lat }}, {{ this.lon }}], {{ this.zoom }}, {duration: {{ this.seconds }}}
        );
        {% endmacro %}
        """
    )

    def __init__(self, command: FlyTo):
        super().__init__()
        self._name = "FlyTo"
        self.lon = float(command.center[0])
        self.lat = float(command.center[1])
        self.zoom = command.zoom
        self.seconds = command.duration / 1000.0


class _MarkerFlyTo(MacroElement):
    """Marker click moves the map to the marker at location zoom."""

    _template = JinjaTemplate(
        """
        {% macro script(this, kwargs) %}
        {{this._parent.get_name()}}.on('click', function() {
            {{ this.map_name }}.flyTo([{{ this.lat }}, {{ this.lon }}], {{ this.zoom }}, {duration: {{ this.seconds }}});
        });
        {% endmacro %}
        """
    )

    def __init__(self, map_name: str, coordinates):
        super().__init__()
        self._name = "MarkerFlyTo"
        self.map_name = map_name
        self.lon = float(coordinates[0])
        self.lat = float(coordinates[1])
        self.zoom = LOCATION_ZOOM
        self.seconds = LOCATION_FLY_DURATION / 1000.0


def _marker_icon(style: Style, selected: bool) -> folium.DivIcon:
    background = style.color if selected else "white"
    border = "white" if selected else style.color
    glyph = "white" if selected else style.color
    scale = "transform:scale(1.25);" if selected else ""
    icon_html = (
        f'<div style="width:28px;height:28px;border-radius:50%;background:{background};'
        f'border:2px solid {border};box-shadow:0 2px 6px rgba(0,0,0,0.3);'
        f'display:flex;align-items:center;justify-content:center;{scale}">'
        f'<i class="fa-solid fa-{style.icon}" style="color:{glyph};font-size:14px;"></i>'
        '</div>'
    )
    return folium.DivIcon(html=icon_html, icon_size=(32, 32), icon_anchor=(16, 16))


def _marker_popup_html(record: LocationRecord) -> str:
    lines = [f'<div style="font-weight:600;">{_esc(record.name)}</div>']
    if record.venue:
        lines.append(f'<div>{_esc(record.venue)}</div>')
    count = len(record.narrative)
    if count:
        label = "entry" if count == 1 else "entries"
        lines.append(f'<div style="color:#64748b;">{count} {label}</div>')
    return '<div style="font-size:13px; line-height:1.3;">' + "\n".join(lines) + "</div>"


def _add_markers(
    map_obj: folium.Map,
    records: Sequence[LocationRecord],
    state: SelectionState,
    group_id: Optional[str],
) -> None:
    """Add one styled marker per record; the selected record gets the filled icon."""
    map_name = map_obj.get_name()
    for record in records:
        style = record_style(record, group_id)
        lon, lat = record.coordinates
        marker = folium.Marker(
            location=[lat, lon],
            icon=_marker_icon(style, state.is_selected(record)),
            tooltip=record.name or None,
            popup=Popup(Html(_marker_popup_html(record), script=True), max_width=300),
        )
        marker.add_child(_MarkerFlyTo(map_name, record.coordinates))
        marker.add_to(map_obj)


def _add_polygons(map_obj: folium.Map, records: Sequence[LocationRecord]) -> int:
    collection = project(records)
    features = collection["features"]
    if not features:
        return 0
    fallback = collection["style"]["fill"]["fill-color"]

    def style_function(feature):
        color = (feature.get("properties") or {}).get("color") or fallback
        return {
            "color": color,
            "weight": POLYGON_LINE_WIDTH,
            "fillColor": color,
            "fillOpacity": POLYGON_FILL_OPACITY,
        }

    folium.GeoJson(
        {"type": "FeatureCollection", "features": features},
        name="polygon-layer",
        style_function=style_function,
    ).add_to(map_obj)
    return len(features)


# ----------------------------
# News list panel
# ----------------------------

def _list_row_html(map_name: str, cluster: LocationCluster, idx: int, expanded: bool) -> str:
    row_id = f"news-row-{idx}"
    badge = ""
    if cluster.duplicate_count > 0:
        badge = (
            '<span style="margin-left:6px;padding:0 5px;border-radius:4px;background:#eef2ff;'
            f'color:#4f46e5;font-weight:700;font-size:10px;">+{cluster.duplicate_count}</span>'
        )
    place = " · ".join(part for part in (cluster.location_name, cluster.venue) if part)
    view_js = _esc(_fly_to_js(map_name, cluster.coordinates, ITEM_ZOOM, ITEM_FLY_DURATION))
    actions = (
        '<div style="display:flex;gap:12px;margin-top:6px;font-size:11px;font-weight:700;">'
        f'<a href="#" onclick="{view_js} return false;">View location</a>'
    )
    if cluster.url:
        actions += f'<a href="{_esc(cluster.url)}" target="_blank" rel="noopener noreferrer">Open article</a>'
    actions += '</div>'
    open_attr = " open" if expanded else ""
    return (
        f'<details id="{row_id}"{open_attr} style="background:white;border:1px solid #e2e8f0;'
        'border-radius:10px;padding:8px 10px;margin-bottom:8px;">'
        '<summary style="cursor:pointer;list-style:none;">'
        '<div style="display:flex;justify-content:space-between;font-size:10px;color:#64748b;">'
        f'<span><span style="text-transform:uppercase;font-weight:700;">{_esc(cluster.publisher)}</span>{badge}</span>'
        f'<span>{_esc(cluster.date or "")}</span></div>'
        f'<div style="font-size:13px;font-weight:600;margin:4px 0 2px;">{_esc(cluster.title)}</div>'
        f'<div style="font-size:10px;color:#64748b;">{_esc(place)}</div>'
        '</summary>'
        f'{actions}'
        '</details>'
    )


def _list_panel_html(map_name: str, clusters: Sequence[LocationCluster], state: SelectionState) -> str:
    rows = [
        _list_row_html(map_name, cluster, idx, state.is_expanded(cluster.title))
        for idx, cluster in enumerate(clusters)
    ]
    if not rows:
        rows.append('<div style="color:#94a3b8;font-size:12px;">No entries.</div>')
    return (
        '<div id="earthview-news-list" style="position:fixed;bottom:10px;left:10px;z-index:9999;'
        'width:340px;max-height:55%;overflow-y:auto;background:rgba(248,250,252,0.95);'
        'border-radius:12px;box-shadow:0 4px 16px rgba(0,0,0,0.15);padding:10px;font-family:sans-serif;">'
        f'<div style="font-size:13px;font-weight:700;margin-bottom:8px;">{_esc(state.list_title)}</div>'
        + "".join(rows)
        + '</div>'
    )


# ----------------------------
# Attribute table
# ----------------------------

def clusters_frame(clusters: Sequence[LocationCluster]) -> pd.DataFrame:
    """One row per list entry, in list order."""
    rows = []
    for cluster in clusters:
        lon, lat = cluster.coordinates
        rows.append({
            "title": cluster.title,
            "publisher": cluster.publisher,
            "date": cluster.date,
            "location": cluster.location_name,
            "venue": cluster.venue,
            "longitude": lon,
            "latitude": lat,
            "items": len(cluster.news_list),
            "duplicate_count": cluster.duplicate_count,
            "url": cluster.url,
        })
    columns = ["title", "publisher", "date", "location", "venue", "longitude", "latitude",
               "items", "duplicate_count", "url"]
    return pd.DataFrame(rows, columns=columns)


def _write_attribute_table(clusters: Sequence[LocationCluster], out_path: str) -> Optional[str]:
    try:
        clusters_frame(clusters).to_csv(out_path, index=False)
    except OSError as exc:
        logger.error("attribute table write failed", path=out_path, error=str(exc))
        return None
    return out_path


# ----------------------------
# Public API
# ----------------------------

def build_map(
    records: Sequence[LocationRecord],
    clusters: Sequence[LocationCluster],
    state: SelectionState,
    group: Optional[GroupDescriptor] = None,
    fly_to: Optional[FlyTo] = None,
) -> folium.Map:
    """
    Compose the scene: markers, polygons, the pending viewport command and
    the news list for the current selection.
    """
    m = folium.Map(
        location=[INITIAL_VIEW["latitude"], INITIAL_VIEW["longitude"]],
        zoom_start=INITIAL_VIEW["zoom"],
        tiles="cartodbpositron",
    )
    m.add_child(_ZoomTopRight())

    group_id = group.id if group else None
    polygon_count = _add_polygons(m, records)
    _add_markers(m, records, state, group_id)

    if fly_to is not None:
        m.add_child(_FlyTo(fly_to))

    visible = state.visible_clusters(list(clusters))
    if state.list_visible:
        m.get_root().html.add_child(folium.Element(_list_panel_html(m.get_name(), visible, state)))

    title = group.title if group else "Global chronicle"
    caption_html = (
        '<div style="position: fixed; top: 5px; left: 50px; z-index:9999; '
        'background-color: rgba(255,255,255,0.8); padding: 2px 6px; font-weight:700;">'
        f"{_esc(title)}</div>"
    )
    m.get_root().html.add_child(folium.Element(caption_html))

    logger.debug(
        "map composed",
        markers=len(records),
        polygons=polygon_count,
        list_rows=len(visible) if state.list_visible else 0,
    )
    return m


def create_map(
    records: Sequence[LocationRecord],
    clusters: Sequence[LocationCluster],
    state: SelectionState,
    group: Optional[GroupDescriptor] = None,
    out_dir: str = ".",
    fly_to: Optional[FlyTo] = None,
    write_table: bool = True,
) -> Dict[str, Optional[str]]:
    """
    Render the current scene to HTML next to a CSV of the visible list.

    When fly_to is not given, the viewport's most recent command (if it
    keeps one) is used.

    Returns:
        dict with 'map_path' and optional 'attribute_table'.
    """
    if fly_to is None:
        fly_to = getattr(state.viewport, "last", None)

    m = build_map(records, clusters, state, group=group, fly_to=fly_to)

    os.makedirs(out_dir, exist_ok=True)
    base_name = _safe_name(group.id if group else None)
    timestamp = datetime.now().strftime('%Y%m%d-%H%M%S')
    map_path = os.path.join(out_dir, f"{base_name}_{DEFAULT_MAP_SUFFIX}_{timestamp}.html")
    m.save(map_path)

    table_path: Optional[str] = None
    if write_table:
        table_path = _write_attribute_table(
            state.visible_clusters(list(clusters)),
            os.path.join(out_dir, f"{base_name}_{DEFAULT_TABLE_SUFFIX}_{timestamp}.csv"),
        )

    logger.info("map written", map_path=map_path, attribute_table=table_path)
    return {"map_path": map_path, "attribute_table": table_path}


def create_session_map(session, out_dir: str = ".", write_table: bool = True) -> Dict[str, Optional[str]]:
    """create_map() for a ChronicleSession's current group, records and selection."""
    return create_map(
        session.records,
        session.clusters,
        session.selection,
        group=session.active_group,
        out_dir=out_dir,
        write_table=write_table,
    )
