import logging
import os

DEFAULT_PLAY_SPEED_MS = 500
MIN_PLAY_SPEED_MS = 50
MAX_PLAY_SPEED_MS = 2000

MARKER_RADIUS = 6
SELECTED_RING_RADIUS = 7
MAGNIFIER_SIZE = 150
MAGNIFIER_ZOOM = 4
MAGNIFIER_DOT_RADIUS = 4

SHEET_FILENAME = "sprite-sheet.png"
XML_FILENAME = "sprite-data.xml"
JSON_FILENAME = "sprite-data.json"
PNG_MIME = "image/png"
XML_MIME = "application/xml"
JSON_MIME = "application/json"

# Exported point elements are named <Category><suffix>.
POINT_ELEMENT_SUFFIX = "Point"

# Legacy position tables.
POSITION_LIST_TAG = "positionsList"
GROUP_TAG_SUFFIX = "Position"

CATEGORY_COLORS = {
    "Laser": "#ff0000",
    "Engine": "#0000ff",
    "Weapon": "#ffa500",
    "Explosion": "#ffff00",
    "Smoke": "#808080",
}

MODE_CREATE = "create"
MODE_EDIT = "edit"


def configure_logging() -> None:
    level_name = os.environ.get("LOGLEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
