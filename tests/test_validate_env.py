import logging

import pytest

from portal.app.config import validate_on_boot
from portal.app.errors import ConfigurationError


def _set_required(monkeypatch):
    monkeypatch.setenv("STORE_URL", "https://store.example.com")
    monkeypatch.setenv("STORE_ANON_KEY", "anon-secret-key")
    monkeypatch.delenv("CODE_ROTATION_SECS", raising=False)


def test_validate_on_boot_ok(monkeypatch, caplog):
    _set_required(monkeypatch)

    with caplog.at_level(logging.INFO, logger="portal.config"):
        validate_on_boot()

    text = caplog.text
    assert "STORE_ANON_KEY=an***********ey" in text
    assert "anon-secret-key" not in text


def test_validate_on_boot_missing(monkeypatch):
    _set_required(monkeypatch)
    monkeypatch.delenv("STORE_URL")
    monkeypatch.setenv("STORE_ANON_KEY", "")

    with pytest.raises(ConfigurationError) as exc:
        validate_on_boot()
    assert str(exc.value) == "Missing required environment variables: STORE_ANON_KEY, STORE_URL"


def test_validate_on_boot_bad_url(monkeypatch):
    _set_required(monkeypatch)
    monkeypatch.setenv("STORE_URL", "store.example.com")

    with pytest.raises(ConfigurationError, match="STORE_URL"):
        validate_on_boot()


@pytest.mark.parametrize("value", ["soon", "-1", "0"])
def test_validate_on_boot_bad_rotation_period(monkeypatch, value):
    _set_required(monkeypatch)
    monkeypatch.setenv("CODE_ROTATION_SECS", value)

    with pytest.raises(ConfigurationError, match="CODE_ROTATION_SECS"):
        validate_on_boot()
