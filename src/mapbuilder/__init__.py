"""Map Builder - layout editing engine for rooms, connectors and furniture."""

__version__ = "0.1.0"

from .core.model import Camera, Connector, ConnectorState, Furniture, Layout, Rect, Room
from .engine.session import LayoutSession

__all__ = [
    "Camera",
    "Connector",
    "ConnectorState",
    "Furniture",
    "Layout",
    "LayoutSession",
    "Rect",
    "Room",
]
