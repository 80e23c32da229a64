"""Unit tests for CLI argument parsing and wiring."""
from unittest.mock import Mock

import pytest

from app import main as cli
from app.config import Config
from domain.services import UploadService


@pytest.mark.unit
def test_parse_args_defaults():
    args = cli.parse_args([])

    assert args.dry_run is False
    assert args.max_items is None
    assert args.verbose is False


@pytest.mark.unit
def test_parse_args_full():
    args = cli.parse_args(["--dry-run", "--max-items", "2", "-v"])

    assert args.dry_run is True
    assert args.max_items == 2
    assert args.verbose is True


@pytest.mark.unit
def test_create_upload_service_dry_run(tmp_path):
    config = Config(
        database_url=f"sqlite:///{tmp_path / 'uploader.db'}",
        download_folder_path=str(tmp_path / "downloads"),
        max_items_to_process=4,
    )

    service = cli.create_upload_service(config, dry_run=True)

    assert isinstance(service, UploadService)
    assert service.dry_run is True
    assert service.max_items == 4
    assert len(service.clients) == 0
    assert (tmp_path / "uploader.db").exists()


@pytest.mark.unit
def test_main_exits_nonzero_on_failures(monkeypatch):
    service = Mock()
    service.run.return_value = {"processed": 2, "succeeded": 1, "failed": 1}
    monkeypatch.setattr(cli, "load_config", lambda: Config())
    monkeypatch.setattr(cli, "create_upload_service", Mock(return_value=service))

    with pytest.raises(SystemExit) as exc_info:
        cli.main([])

    assert exc_info.value.code == 1


@pytest.mark.unit
def test_main_max_items_overrides_config(monkeypatch):
    service = Mock()
    service.run.return_value = {"processed": 0, "succeeded": 0, "failed": 0}
    create = Mock(return_value=service)
    monkeypatch.setattr(cli, "load_config", lambda: Config(max_items_to_process=10))
    monkeypatch.setattr(cli, "create_upload_service", create)

    cli.main(["--max-items", "1", "--dry-run"])

    config = create.call_args.args[0]
    assert config.max_items_to_process == 1
    assert create.call_args.kwargs == {"dry_run": True}


@pytest.mark.unit
def test_main_invalid_config(monkeypatch):
    def broken():
        raise ValueError("UPLOADER_MAX_ITEMS must be an integer")

    monkeypatch.setattr(cli, "load_config", broken)

    with pytest.raises(SystemExit) as exc_info:
        cli.main([])
    assert exc_info.value.code == 1
