# Project structure:
#
# earthview_project/
# ├── earthview/                    # Python package
# │   ├── __init__.py
# │   ├── config.py                 # central path and viewer configuration
# │   ├── logging_setup.py          # structlog configuration
# │   ├── models.py                 # groups, location records, narrative items, clusters
# │   ├── styles.py                 # category -> marker style
# │   ├── aggregate.py              # coordinate grouping of narrative items
# │   ├── geometry.py               # polygon feature collection
# │   ├── selection.py              # map/list selection state
# │   ├── loader.py                 # group list + group detail sources
# │   ├── session.py                # active group lifecycle
# │   └── map_create.py             # folium scene + attribute table
# ├── app.py                        # PyQt GUI, imports earthview.* modules
# ├── pyproject.toml
# └── output/                       # created under project root
#     └── *.html, *.csv             # rendered maps and list tables

import os

# Data source layout (relative to the data base URL or directory)
DEFAULT_GROUP_LIST_PATH = "data/group.json"
REQUEST_TIMEOUT = 30.0
USER_AGENT = "earthview/1.0"

# Map viewport
INITIAL_VIEW = {"longitude": 0.0, "latitude": 20.0, "zoom": 1.5}
LOCATION_ZOOM = 5
LOCATION_FLY_DURATION = 2000  # ms
ITEM_ZOOM = 12
ITEM_FLY_DURATION = 1500  # ms

# Polygon paint
POLYGON_FALLBACK_COLOR = "#ef4444"
POLYGON_FILL_OPACITY = 0.2
POLYGON_LINE_WIDTH = 2

# Default file names
DEFAULT_MAP_SUFFIX = "map"
DEFAULT_TABLE_SUFFIX = "list"


def init_project(project_dir: str) -> dict:
    """
    Ensure the project output directory exists and return key paths.

    Creates:
      project_dir/output/
    """
    out_dir = os.path.join(project_dir, "output")
    os.makedirs(out_dir, exist_ok=True)

    paths = {
        "project": project_dir,
        "output": out_dir,
        "group_list": DEFAULT_GROUP_LIST_PATH,
    }
    return paths
