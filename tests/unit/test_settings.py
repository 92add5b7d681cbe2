import pytest
from pydantic import ValidationError

from docmapper.settings import MapperSettings


def test_settings_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "MONGO_URI",
        "MONGO_DB_NAME",
        "DOCMAPPER_OPERATION_TIMEOUT",
        "DOCMAPPER_PRELOAD_TIMEOUT",
        "DOCMAPPER_STRICT",
    ):
        monkeypatch.delenv(name, raising=False)

    settings = MapperSettings()

    assert settings.uri == "mongodb://localhost:27017"
    assert settings.database == "docmapper"
    assert settings.operation_timeout == 10
    assert settings.preload_timeout == 30
    assert settings.strict is False


def test_settings_read_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MONGO_URI", "mongodb://db:27017")
    monkeypatch.setenv("MONGO_DB_NAME", "shop")
    monkeypatch.setenv("DOCMAPPER_OPERATION_TIMEOUT", "2.5")
    monkeypatch.setenv("DOCMAPPER_PRELOAD_TIMEOUT", "45")
    monkeypatch.setenv("DOCMAPPER_STRICT", "yes")

    settings = MapperSettings()

    assert settings.uri == "mongodb://db:27017"
    assert settings.database == "shop"
    assert settings.operation_timeout == 2.5
    assert settings.preload_timeout == 45
    assert settings.strict is True


def test_settings_reject_non_positive_timeouts() -> None:
    with pytest.raises(ValidationError):
        MapperSettings(operation_timeout=0)
