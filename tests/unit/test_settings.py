from __future__ import annotations

from meshhessen.settings import MeshSettings, StaticPosition, load_settings_from_env

_ENV_KEYS = (
    "MESHHESSEN_MY_LATITUDE",
    "MESHHESSEN_MY_LONGITUDE",
    "MESHHESSEN_SHOW_ENCRYPTED",
    "MESHHESSEN_DEBUG_MESSAGES",
    "LOG_LEVEL",
)


def _clear_env(monkeypatch) -> None:
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def test_defaults(monkeypatch) -> None:
    _clear_env(monkeypatch)
    settings = load_settings_from_env()

    assert settings.my_latitude is None
    assert settings.my_longitude is None
    assert settings.show_encrypted_messages is True
    assert settings.debug_messages is False
    assert settings.log_level == "INFO"
    assert settings.own_position() is None


def test_env_overrides(monkeypatch) -> None:
    _clear_env(monkeypatch)
    monkeypatch.setenv("MESHHESSEN_MY_LATITUDE", "50.5841")
    monkeypatch.setenv("MESHHESSEN_MY_LONGITUDE", "8.6784")
    monkeypatch.setenv("MESHHESSEN_SHOW_ENCRYPTED", "no")
    monkeypatch.setenv("MESHHESSEN_DEBUG_MESSAGES", "1")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    settings = load_settings_from_env()

    assert settings.own_position() == (50.5841, 8.6784)
    assert settings.has_my_position is True
    assert settings.show_encrypted_messages is False
    assert settings.debug_messages is True
    assert settings.log_level == "DEBUG"


def test_invalid_coordinate_falls_back(monkeypatch) -> None:
    _clear_env(monkeypatch)
    monkeypatch.setenv("MESHHESSEN_MY_LATITUDE", "north")
    monkeypatch.setenv("MESHHESSEN_MY_LONGITUDE", "8.0")

    settings = load_settings_from_env()

    assert settings.my_latitude is None
    assert settings.has_my_position is False
    assert settings.own_position() is None


def test_clone_is_independent() -> None:
    settings = MeshSettings(my_latitude=1.0, my_longitude=2.0)
    copy = settings.clone()
    copy.my_latitude = 9.0
    assert settings.my_latitude == 1.0


def test_static_position() -> None:
    assert StaticPosition(50.0, 8.0).own_position() == (50.0, 8.0)
