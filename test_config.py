"""
test_config.py - Environment-backed settings.

Usage:
    pytest test_config.py
"""

from __future__ import annotations

import os
import sys

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from config import load_settings


def test_defaults(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    for name in ("SITEBOOK_STORE_FILE", "SITEBOOK_DOCUMENTS_DIR", "SITEBOOK_LOG_JSON", "DEBUG", "PORT"):
        monkeypatch.delenv(name, raising=False)

    settings = load_settings()

    assert settings.store_file is None
    assert settings.documents_dir == "data/documents"
    assert settings.log_json is False
    assert settings.port == 8000


def test_environment_overrides(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("SITEBOOK_STORE_FILE", "data/store.json")
    monkeypatch.setenv("SITEBOOK_DOCUMENTS_DIR", "/srv/docs")
    monkeypatch.setenv("SITEBOOK_LOG_JSON", "yes")
    monkeypatch.setenv("DEBUG", "1")
    monkeypatch.setenv("PORT", "not-a-number")

    settings = load_settings()

    assert settings.store_file == "data/store.json"
    assert settings.documents_dir == "/srv/docs"
    assert settings.log_json is True
    assert settings.debug is True
    assert settings.port == 8000
