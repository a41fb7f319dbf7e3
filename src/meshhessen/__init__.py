"""In-memory state reconciliation for a Meshtastic mesh-radio client."""

from .settings import MeshSettings, StaticPosition, load_settings_from_env
from .state import AppState, EventDispatcher

__all__ = [
    "AppState",
    "EventDispatcher",
    "MeshSettings",
    "StaticPosition",
    "load_settings_from_env",
]
