import importlib
import sys

import pytest


@pytest.fixture(autouse=True)
def main_import_isolation():
    sys.modules.pop("ttlive.main", None)
    try:
        yield
    finally:
        sys.modules.pop("ttlive.main", None)


def test_rejects_wildcard_with_credentials(monkeypatch):
    monkeypatch.setenv("ALLOWED_ORIGINS", "*")
    monkeypatch.setenv("ALLOW_CREDENTIALS", "true")
    with pytest.raises(ValueError):
        importlib.import_module("ttlive.main")


def test_requires_allowed_origins(monkeypatch):
    monkeypatch.delenv("ALLOWED_ORIGINS", raising=False)
    monkeypatch.delenv("ALLOW_CREDENTIALS", raising=False)
    with pytest.raises(ValueError):
        importlib.import_module("ttlive.main")


def test_accepts_explicit_origins(monkeypatch):
    monkeypatch.setenv("ALLOWED_ORIGINS", "https://scores.example.org, http://localhost:3000")
    module = importlib.import_module("ttlive.main")
    assert module.ALLOWED_ORIGINS == ["https://scores.example.org", "http://localhost:3000"]
