"""
Configuration module for the uploader.

Reads environment variables (and a .env file) into a Config value that is
passed explicitly to the components that need it.
"""

import os
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import load_dotenv

from adapters.youtube_auth import DEFAULT_SCOPES


@dataclass
class Config:
    """
    Application configuration for the segment uploader.

    Attributes:
        database_url: SQLAlchemy URL of the progress database
        download_folder_path: Root folder containing one folder of parts per video
        max_items_to_process: Maximum videos per run
        description_template: Optional override of the description template
        youtube_scopes: OAuth scopes requested for every account
        client_secrets_file: Path to OAuth2 client secrets JSON
        token_file_template: Token path per account, with a {user} placeholder
        part_extension: Container extension of part files
    """
    database_url: str = "sqlite:///data/uploader.db"
    download_folder_path: str = "downloads"
    max_items_to_process: int = 10
    description_template: Optional[str] = None
    youtube_scopes: List[str] = field(default_factory=lambda: list(DEFAULT_SCOPES))
    client_secrets_file: str = "credentials.json"
    token_file_template: str = ".data/tokens/{user}.json"
    part_extension: str = "mp4"


def _parse_scopes(value: str) -> List[str]:
    # Comma or space separated
    return [s.strip() for s in value.replace(",", " ").split() if s.strip()]


def _parse_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from e


def load_config(env_file: Optional[str] = None) -> Config:
    """
    Load configuration from environment variables.

    Loads the .env file if present (existing variables win).

    Environment variables:
        UPLOADER_DB_URL: Database URL (default: sqlite:///data/uploader.db)
        UPLOADER_DOWNLOAD_FOLDER: Parts root folder (default: downloads)
        UPLOADER_MAX_ITEMS: Videos per run (default: 10)
        UPLOADER_DESCRIPTION_TEMPLATE: Description template override
        UPLOADER_PART_EXTENSION: Part file extension (default: mp4)
        YT_SCOPES: Comma or space-separated OAuth scopes
        YT_CREDENTIALS_FILE: Path to client secrets (default: credentials.json)
        YT_TOKEN_FILE: Token path template (default: .data/tokens/{user}.json)

    Returns:
        Config instance

    Raises:
        ValueError: If a numeric variable is not an integer.
    """
    load_dotenv(env_file)

    defaults = Config()
    scopes_str = os.getenv("YT_SCOPES", "")

    return Config(
        database_url=os.getenv("UPLOADER_DB_URL", defaults.database_url),
        download_folder_path=os.getenv("UPLOADER_DOWNLOAD_FOLDER", defaults.download_folder_path),
        max_items_to_process=_parse_int("UPLOADER_MAX_ITEMS", defaults.max_items_to_process),
        description_template=os.getenv("UPLOADER_DESCRIPTION_TEMPLATE") or None,
        youtube_scopes=_parse_scopes(scopes_str) or defaults.youtube_scopes,
        client_secrets_file=os.getenv("YT_CREDENTIALS_FILE", defaults.client_secrets_file),
        token_file_template=os.getenv("YT_TOKEN_FILE", defaults.token_file_template),
        part_extension=os.getenv("UPLOADER_PART_EXTENSION", defaults.part_extension),
    )
