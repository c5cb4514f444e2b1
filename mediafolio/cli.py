"""
Command Line Interface for the mediafolio service and thumbnail tools.
"""

import argparse
import json
import logging
import sys
from typing import List, Optional

import urllib3
from bottle import run

from .config import AppConfig, S3Config
from .errors import StorageIOError, ThumbnailError
from .server import build_services, create_app
from .thumbnail_generator import ThumbnailGenerator
from .variant import ThumbnailOptions


def setup_logging(verbose: bool, level_name: str = 'INFO') -> logging.Logger:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.getLevelName(level_name.upper())
    if not isinstance(level, int):
        level = logging.INFO

    logging.basicConfig(
        level=level,
        format='%(asctime)s [%(levelname)s] %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    logging.getLogger('boto3').setLevel(logging.WARNING)
    logging.getLogger('botocore').setLevel(logging.WARNING)
    logging.getLogger('urllib3').setLevel(logging.WARNING)

    return logging.getLogger('mediafolio')


def get_app_config(args: argparse.Namespace) -> AppConfig:
    """Get application configuration from environment and CLI overrides."""
    config = AppConfig.from_env()

    if getattr(args, 'base_url', None):
        config.base_url = args.base_url.rstrip('/')
    if getattr(args, 'thumbnail_dir', None):
        config.thumbnail_dir = args.thumbnail_dir
    if getattr(args, 'upload_dir', None):
        config.upload_dir = args.upload_dir
    if getattr(args, 'library', None):
        config.library_path = args.library
    if getattr(args, 'max_upload_mb', None):
        config.max_upload_mb = args.max_upload_mb
    if getattr(args, 'host', None):
        config.host = args.host
    if getattr(args, 'port', None):
        config.port = args.port
    if getattr(args, 'timeout', None):
        config.read_timeout = args.timeout

    return config


def get_s3_config(args: argparse.Namespace) -> S3Config:
    """Get S3 configuration from environment and CLI overrides."""
    config = S3Config.from_env()

    if getattr(args, 's3_endpoint', None):
        config.endpoint = args.s3_endpoint
    if getattr(args, 's3_bucket', None):
        config.bucket = args.s3_bucket
    if getattr(args, 's3_prefix', None):
        config.prefix = args.s3_prefix
    if getattr(args, 's3_access_key', None):
        config.access_key = args.s3_access_key
    if getattr(args, 's3_secret_key', None):
        config.secret_key = args.s3_secret_key

    return config


def check_config(config: AppConfig, logger: logging.Logger) -> bool:
    errors = config.validate()
    for error in errors:
        logger.error(error)
    return not errors


def add_service_arguments(parser: argparse.ArgumentParser) -> None:
    """Add directory and URL arguments shared by the subcommands."""
    group = parser.add_argument_group('Service')
    group.add_argument('--base-url', help='Override BASE_URL (public URL prefix)')
    group.add_argument('--thumbnail-dir', metavar='PATH', help='Override THUMBNAIL_DIR')
    group.add_argument('--timeout', type=float, metavar='SECONDS', help='Override FETCH_READ_TIMEOUT')


def add_storage_arguments(parser: argparse.ArgumentParser) -> None:
    """Add original-storage configuration arguments to a parser."""
    local_group = parser.add_argument_group('Local Storage')
    local_group.add_argument('--upload-dir', metavar='PATH', help='Override UPLOAD_DIR')
    local_group.add_argument('--library', metavar='PATH', help='Override LIBRARY_PATH')

    s3_group = parser.add_argument_group('S3 Storage')
    s3_group.add_argument('--s3-endpoint', help='Override S3_ENDPOINT')
    s3_group.add_argument('--s3-bucket', help='Override S3_BUCKET')
    s3_group.add_argument('--s3-prefix', help='Override S3_PREFIX')
    s3_group.add_argument('--s3-access-key', help='Override S3_ACCESS_KEY')
    s3_group.add_argument('--s3-secret-key', help='Override S3_SECRET_KEY')


def parse_sizes(values: Optional[List[str]], fmt: str, quality: Optional[int]) -> Optional[List[ThumbnailOptions]]:
    """Turn repeated --size WxH flags into options; None keeps the default tiers."""
    if not values:
        return None
    kwargs = {'format': fmt}
    if quality is not None:
        kwargs['quality'] = quality
    return [ThumbnailOptions.parse_size(value, **kwargs) for value in values]


def cmd_serve(args: argparse.Namespace) -> int:
    """Run the HTTP service."""
    config = get_app_config(args)
    logger = setup_logging(args.verbose, config.log_level)
    urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

    if not check_config(config, logger):
        return 1

    try:
        services = build_services(config, get_s3_config(args), logger)
    except (StorageIOError, ValueError) as e:
        logger.error(f"Startup failed: {e}")
        return 1

    if services.s3 is not None:
        logger.info(f"Originals: S3 {services.s3.config.endpoint} {services.s3.config.bucket}/{services.s3.config.prefix}")
    else:
        logger.info(f"Originals: {config.upload_dir}")
    logger.info(f"Thumbnails: {config.thumbnail_dir}")
    logger.info(f"Library: {config.library_path} ({len(services.library)} items)")
    logger.info(f"Public URL: {config.base_url}")

    run(app=create_app(services), host=config.host, port=config.port, quiet=not args.verbose)
    logger.info("Exiting.")
    return 0


def cmd_thumbnail(args: argparse.Namespace) -> int:
    """Generate thumbnail tiers for a file or URL and print the result."""
    config = get_app_config(args)
    logger = setup_logging(args.verbose, config.log_level)

    if not check_config(config, logger):
        return 1

    try:
        sizes = parse_sizes(args.size, args.format, args.quality)
    except ValueError as e:
        logger.error(str(e))
        return 1

    try:
        generator = ThumbnailGenerator(config, logger=logger)
        variants = generator.generate_multiple_sizes(args.source, sizes)
    except ThumbnailError as e:
        logger.error(f"Thumbnail generation failed: {e}")
        return 1

    print(json.dumps(variants.to_dict(), indent=2))
    return 0 if variants.complete else 1


def cmd_delete(args: argparse.Namespace) -> int:
    """Delete previously generated thumbnails by URL."""
    config = get_app_config(args)
    logger = setup_logging(args.verbose, config.log_level)

    try:
        generator = ThumbnailGenerator(config, logger=logger)
    except StorageIOError as e:
        logger.error(str(e))
        return 1

    failures = 0
    for url in args.urls:
        try:
            if generator.delete_variant(url):
                logger.info(f"Deleted {url}")
            else:
                logger.info(f"Already gone: {url}")
        except StorageIOError as e:
            logger.error(f"Delete failed for {url}: {e}")
            failures += 1

    return 0 if failures == 0 else 1


def cmd_validate(args: argparse.Namespace) -> int:
    """Check that a URL serves an image."""
    config = get_app_config(args)
    logger = setup_logging(args.verbose, config.log_level)

    generator = ThumbnailGenerator(config, logger=logger)
    if generator.validate_remote_image(args.url):
        logger.info(f"OK: {args.url}")
        return 0
    logger.error(f"Not an image: {args.url}")
    return 1


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog='mediafolio',
        description='Portfolio media service with progressive thumbnail tiers',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  Serve:      python -m mediafolio serve --port 5000
  Thumbnails: python -m mediafolio thumbnail photo.jpg --size 400x300 --size 800x600
  Delete:     python -m mediafolio delete http://localhost:5000/thumbnails/<file>.jpg
  Validate:   python -m mediafolio validate https://example.com/photo.jpg

Configuration comes from the environment (BASE_URL, THUMBNAIL_DIR, UPLOAD_DIR,
S3_ENDPOINT, ...); flags override it.
"""
    )

    parser.add_argument('-v', '--verbose', action='store_true', help='Enable verbose logging')

    subparsers = parser.add_subparsers(dest='command', help='Command to run')

    # Serve command
    serve_parser = subparsers.add_parser('serve', help='Run the HTTP service')
    serve_parser.add_argument('--host', help='Override HOST (bind address)')
    serve_parser.add_argument('-p', '--port', type=int, help='Override PORT')
    serve_parser.add_argument('--max-upload-mb', type=int, metavar='MB', help='Override MAX_UPLOAD_MB')
    serve_parser.add_argument('-v', '--verbose', action='store_true', help='Enable verbose logging')
    add_service_arguments(serve_parser)
    add_storage_arguments(serve_parser)

    # Thumbnail command
    thumb_parser = subparsers.add_parser('thumbnail', help='Generate thumbnail tiers for a file or URL')
    thumb_parser.add_argument('source', help='Image file path or URL')
    thumb_parser.add_argument('-s', '--size', action='append', metavar='WxH',
                              help='Tier size, repeatable (default: small/medium/large tiers)')
    thumb_parser.add_argument('-f', '--format', default='jpeg', choices=['jpeg', 'webp', 'png'],
                              help='Output format for --size tiers (default: jpeg)')
    thumb_parser.add_argument('-q', '--quality', type=int, help='Encoder quality 1-100 for --size tiers')
    thumb_parser.add_argument('-v', '--verbose', action='store_true', help='Enable verbose logging')
    add_service_arguments(thumb_parser)

    # Delete command
    delete_parser = subparsers.add_parser('delete', help='Delete generated thumbnails by URL')
    delete_parser.add_argument('urls', nargs='+', metavar='URL', help='Thumbnail URL(s)')
    delete_parser.add_argument('-v', '--verbose', action='store_true', help='Enable verbose logging')
    add_service_arguments(delete_parser)

    # Validate command
    validate_parser = subparsers.add_parser('validate', help='Check that a URL serves an image')
    validate_parser.add_argument('url', help='Image URL')
    validate_parser.add_argument('-v', '--verbose', action='store_true', help='Enable verbose logging')
    add_service_arguments(validate_parser)

    return parser


def main(args: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    parsed_args = parser.parse_args(args)

    if not parsed_args.command:
        parser.print_help()
        return 1

    if parsed_args.command == 'serve':
        return cmd_serve(parsed_args)
    elif parsed_args.command == 'thumbnail':
        return cmd_thumbnail(parsed_args)
    elif parsed_args.command == 'delete':
        return cmd_delete(parsed_args)
    elif parsed_args.command == 'validate':
        return cmd_validate(parsed_args)

    return 1


if __name__ == '__main__':
    sys.exit(main())
