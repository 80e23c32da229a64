"""Main CLI application for uploading split videos to YouTube."""
import argparse
import logging
import sys
from typing import Optional

from adapters.local_segment_store import LocalSegmentStore
from adapters.sql_progress_store import SqlProgressStore, open_database
from adapters.youtube_auth import YouTubeAuthorizer
from adapters.youtube_platform import YouTubePlatform
from app.config import Config, load_config
from domain.client_registry import AccountClientRegistry
from domain.models import User
from domain.services import UploadService
from domain.templates import TemplateRenderer
from ports.video_platform import VideoPlatform


def setup_logging(verbose: bool = False) -> None:
    """
    Configure logging.

    Args:
        verbose: Enable debug logging if True.
    """
    log_level = logging.DEBUG if verbose else logging.INFO
    log_format = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

    logging.basicConfig(
        level=log_level,
        format=log_format,
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # Reduce noise from Google API client
    logging.getLogger("googleapiclient").setLevel(logging.WARNING)
    logging.getLogger("google").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy").setLevel(logging.WARNING)


def create_upload_service(config: Config, dry_run: bool = False) -> UploadService:
    """
    Create and wire up UploadService with dependencies.

    Args:
        config: Application configuration.
        dry_run: Validate only; skips OAuth and uploads.

    Returns:
        Configured UploadService instance.
    """
    logger = logging.getLogger(__name__)

    engine = open_database(config.database_url)
    progress_store = SqlProgressStore(engine)
    progress_store.create_schema()
    logger.debug("Progress store initialized")

    segment_store = LocalSegmentStore(
        base_path=config.download_folder_path,
        extension=config.part_extension,
    )
    logger.debug(f"Segment store initialized: base_path={config.download_folder_path}")

    if dry_run:
        clients = AccountClientRegistry({})
        logger.info("DRY RUN mode enabled - will validate only, no uploads")
    else:
        authorizer = YouTubeAuthorizer(
            client_secrets_file=config.client_secrets_file,
            token_file_template=config.token_file_template,
        )

        def client_factory(user: Optional[User]) -> VideoPlatform:
            account = user.youtube_account if user else None
            credentials = authorizer.get_credentials(account, config.youtube_scopes)
            return YouTubePlatform.from_credentials(credentials, account or "unknown")

        clients = AccountClientRegistry.build(progress_store.get_users(), client_factory)
        logger.debug(f"Client registry initialized with {len(clients)} clients")

    renderer = TemplateRenderer(description_template=config.description_template)

    service = UploadService(
        progress_store=progress_store,
        segment_store=segment_store,
        clients=clients,
        renderer=renderer,
        max_items=config.max_items_to_process,
        dry_run=dry_run,
    )

    logger.info("UploadService initialized successfully")
    return service


def parse_args(argv: Optional[list] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Segment Uploader - Upload split videos to YouTube playlists",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Environment Variables:
  UPLOADER_DB_URL               Database URL (default: sqlite:///data/uploader.db)
  UPLOADER_DOWNLOAD_FOLDER      Folder with one sub-folder of parts per video (default: downloads)
  UPLOADER_MAX_ITEMS            Maximum videos per run (default: 10)
  UPLOADER_DESCRIPTION_TEMPLATE Description template override
  UPLOADER_PART_EXTENSION       Part file extension (default: mp4)
  YT_SCOPES                     OAuth scopes (default: upload, readonly, full)
  YT_CREDENTIALS_FILE           Path to OAuth2 client secrets (default: credentials.json)
  YT_TOKEN_FILE                 Token path template (default: .data/tokens/{user}.json)

Examples:
  # Normal run - upload ready videos
  python -m app.main

  # Validate part files and titles only
  python -m app.main --dry-run

  # Upload at most 2 videos with debug logging
  python -m app.main --max-items 2 --verbose
        """,
    )

    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Validate part files and render titles without uploading",
    )

    parser.add_argument(
        "--max-items",
        type=int,
        default=None,
        help="Maximum videos to process in this run (overrides UPLOADER_MAX_ITEMS)",
    )

    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose debug logging",
    )

    return parser.parse_args(argv)


def main(argv: Optional[list] = None) -> None:
    """Main CLI entry point."""
    args = parse_args(argv)

    setup_logging(verbose=args.verbose)
    logger = logging.getLogger(__name__)

    try:
        config = load_config()
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        sys.exit(1)

    if args.max_items is not None:
        config.max_items_to_process = args.max_items

    logger.info("=" * 60)
    logger.info("Segment Uploader - Starting")
    logger.info("=" * 60)

    try:
        service = create_upload_service(config, dry_run=args.dry_run)
    except Exception as e:
        logger.exception(f"Failed to initialize service: {e}")
        sys.exit(1)

    try:
        stats = service.run()

        logger.info("=" * 60)
        logger.info("Workflow completed")
        logger.info("=" * 60)
        logger.info(f"  Processed: {stats['processed']}")
        logger.info(f"  Succeeded: {stats['succeeded']}")
        logger.info(f"  Failed:    {stats['failed']}")
        logger.info("=" * 60)

        if stats["failed"] > 0:
            sys.exit(1)

    except KeyboardInterrupt:
        logger.warning("\nInterrupted by user")
        sys.exit(130)

    except Exception as e:
        logger.exception(f"Fatal error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
