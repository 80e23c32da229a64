"""
Unit tests for configuration module.

Tests configuration loading from environment variables and .env files.
"""
import os
from unittest.mock import patch

import pytest

from adapters.youtube_auth import DEFAULT_SCOPES
from app.config import Config, load_config

ENV_VARS = [
    "UPLOADER_DB_URL",
    "UPLOADER_DOWNLOAD_FOLDER",
    "UPLOADER_MAX_ITEMS",
    "UPLOADER_DESCRIPTION_TEMPLATE",
    "UPLOADER_PART_EXTENSION",
    "YT_SCOPES",
    "YT_CREDENTIALS_FILE",
    "YT_TOKEN_FILE",
]


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Remove uploader variables and point .env lookup at an empty folder."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return str(tmp_path / "missing.env")


@pytest.mark.unit
def test_default_values(clean_env):
    cfg = load_config(clean_env)

    assert cfg == Config()
    assert cfg.database_url == "sqlite:///data/uploader.db"
    assert cfg.max_items_to_process == 10
    assert cfg.description_template is None
    assert cfg.youtube_scopes == DEFAULT_SCOPES
    assert cfg.token_file_template == ".data/tokens/{user}.json"


@pytest.mark.unit
def test_custom_values(clean_env, monkeypatch):
    monkeypatch.setenv("UPLOADER_DB_URL", "postgresql://db/uploads")
    monkeypatch.setenv("UPLOADER_DOWNLOAD_FOLDER", "/mnt/parts")
    monkeypatch.setenv("UPLOADER_MAX_ITEMS", "3")
    monkeypatch.setenv("UPLOADER_DESCRIPTION_TEMPLATE", "$$original_title$$")
    monkeypatch.setenv("UPLOADER_PART_EXTENSION", "mkv")
    monkeypatch.setenv("YT_CREDENTIALS_FILE", "secrets.json")
    monkeypatch.setenv("YT_TOKEN_FILE", "tokens/{user}.json")

    cfg = load_config(clean_env)

    assert cfg.database_url == "postgresql://db/uploads"
    assert cfg.download_folder_path == "/mnt/parts"
    assert cfg.max_items_to_process == 3
    assert cfg.description_template == "$$original_title$$"
    assert cfg.part_extension == "mkv"
    assert cfg.client_secrets_file == "secrets.json"
    assert cfg.token_file_template == "tokens/{user}.json"


@pytest.mark.unit
@pytest.mark.parametrize("value", ["scope1,scope2,scope3", "scope1 scope2  scope3", " scope1, scope2 ,scope3 "])
def test_scopes_separators(clean_env, monkeypatch, value):
    monkeypatch.setenv("YT_SCOPES", value)
    assert load_config(clean_env).youtube_scopes == ["scope1", "scope2", "scope3"]


@pytest.mark.unit
def test_empty_description_template_is_none(clean_env, monkeypatch):
    monkeypatch.setenv("UPLOADER_DESCRIPTION_TEMPLATE", "")
    assert load_config(clean_env).description_template is None


@pytest.mark.unit
def test_invalid_max_items(clean_env, monkeypatch):
    monkeypatch.setenv("UPLOADER_MAX_ITEMS", "many")
    with pytest.raises(ValueError, match="UPLOADER_MAX_ITEMS"):
        load_config(clean_env)


@pytest.mark.unit
def test_env_file_is_loaded(clean_env, monkeypatch, tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text("UPLOADER_DOWNLOAD_FOLDER=/from/dotenv\nUPLOADER_MAX_ITEMS=4\n")
    monkeypatch.setenv("UPLOADER_MAX_ITEMS", "7")

    with patch.dict(os.environ):
        cfg = load_config(str(env_file))

    assert cfg.download_folder_path == "/from/dotenv"
    # Existing variables win over the file
    assert cfg.max_items_to_process == 7
