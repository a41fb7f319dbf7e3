from __future__ import annotations

import os
from dataclasses import dataclass, replace


@dataclass(slots=True)
class MeshSettings:
    # Own position (used for node distances)
    my_latitude: float | None = None
    my_longitude: float | None = None

    # Message handling
    show_encrypted_messages: bool = True

    # Diagnostics
    debug_messages: bool = False
    log_level: str = "INFO"

    @property
    def has_my_position(self) -> bool:
        return self.my_latitude is not None and self.my_longitude is not None

    def own_position(self) -> tuple[float, float] | None:
        if self.my_latitude is None or self.my_longitude is None:
            return None
        return self.my_latitude, self.my_longitude

    def clone(self) -> "MeshSettings":
        return replace(self)


@dataclass(frozen=True, slots=True)
class StaticPosition:
    """Fixed operator position."""

    latitude: float
    longitude: float

    def own_position(self) -> tuple[float, float] | None:
        return self.latitude, self.longitude


def load_settings_from_env() -> MeshSettings:
    return MeshSettings(
        my_latitude=_env_float("MESHHESSEN_MY_LATITUDE"),
        my_longitude=_env_float("MESHHESSEN_MY_LONGITUDE"),
        show_encrypted_messages=_env_bool("MESHHESSEN_SHOW_ENCRYPTED", True),
        debug_messages=_env_bool("MESHHESSEN_DEBUG_MESSAGES", False),
        log_level=os.environ.get("LOG_LEVEL", "INFO").upper() or "INFO",
    )


def _env_float(name: str) -> float | None:
    value = os.environ.get(name)
    if value is None:
        return None
    try:
        return float(value)
    except ValueError:
        return None


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}
