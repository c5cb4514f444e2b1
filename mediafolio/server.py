"""
HTTP service for uploads, the media listing and thumbnail/original files.

Built with create_app() from explicit configuration; nothing is created at
import time.
"""

import json
import logging
from functools import wraps
from mimetypes import guess_type
from typing import Optional
from urllib.parse import quote

from bottle import BaseRequest, Bottle, HTTPResponse, request, response, static_file
from botocore.exceptions import ClientError

from .config import AppConfig, S3Config, THUMBNAIL_ROUTE
from .errors import FetchError, ProcessingError, StorageIOError, ThumbnailError, UploadError
from .local_client import LocalClient, LocalConfig
from .media_library import MediaLibrary
from .media_record import MediaRecord, MediaType
from .s3_client import S3Client
from .thumbnail_generator import ThumbnailGenerator
from .uploads import STAGE_STORE_ORIGINAL, UploadPipeline, UploadRequest

UPLOAD_ROUTE = 'uploads'
OBJECT_ROUTE = 'public-objects'

logger = logging.getLogger(__name__)


class Services:
    """The collaborators one running app is built from."""

    def __init__(
        self,
        config: AppConfig,
        generator: ThumbnailGenerator,
        library: MediaLibrary,
        pipeline: UploadPipeline,
        s3: Optional[S3Client] = None
    ):
        self.config = config
        self.generator = generator
        self.library = library
        self.pipeline = pipeline
        self.s3 = s3


def build_services(
    config: AppConfig,
    s3_config: Optional[S3Config] = None,
    log: Optional[logging.Logger] = None
) -> Services:
    """
    Create the generator, library and upload pipeline for a config.

    Originals go to object storage when s3_config is enabled and to the
    local upload directory otherwise.

    Raises:
        StorageIOError: If the thumbnail or upload directory cannot be created
        ValueError: If S3 storage is enabled but incomplete
    """
    log = log or logger
    generator = ThumbnailGenerator(config, logger=log)
    library = MediaLibrary.load(config.library_path, log) if config.library_path else MediaLibrary(logger=log)

    s3 = None
    if s3_config is not None and s3_config.enabled:
        errors = s3_config.validate()
        if errors:
            for error in errors:
                log.error(error)
            raise ValueError("S3 configuration invalid")
        s3 = S3Client(s3_config, log)
        originals, route = s3, OBJECT_ROUTE
    else:
        originals, route = LocalClient(LocalConfig(root_path=config.upload_dir), log), UPLOAD_ROUTE

    pipeline = UploadPipeline(config, generator, library, originals, original_route=route, logger=log)
    return Services(config, generator, library, pipeline, s3)


def allow_cross_origin(func):
    """Decorate a view function to allow cross domain access."""
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            result = func(*args, **kwargs)
        except HTTPResponse as r:
            r.set_header('Access-Control-Allow-Origin', '*')
            raise
        (result if isinstance(result, HTTPResponse) else response) \
            .set_header('Access-Control-Allow-Origin', '*')
        return result
    return wrapper


def json_response(body, status: int = 200) -> HTTPResponse:
    return HTTPResponse(
        body=json.dumps(body, ensure_ascii=False),
        status=status,
        headers={'Content-Type': 'application/json; charset=utf-8'}
    )


def error_response(message: str, status: int, **extra) -> HTTPResponse:
    body = {'error': message}
    body.update(extra)
    return json_response(body, status)


def status_for(error: Exception) -> int:
    """HTTP status for a generation or upload failure."""
    if isinstance(error, UploadError):
        if error.stage == STAGE_STORE_ORIGINAL and isinstance(error.cause, StorageIOError):
            return 500
        return status_for(error.cause)
    if isinstance(error, ProcessingError):
        return 422
    if isinstance(error, FetchError):
        return 502
    return 500


def create_app(services: Services) -> Bottle:
    """Build the Bottle application for a set of services."""
    config = services.config
    app = Bottle()

    BaseRequest.MEMFILE_MAX = config.max_upload_bytes

    def records_body(records):
        return json_response([r.to_dict() for r in records])

    @app.route('/api/media')
    @allow_cross_origin
    def list_media():
        return records_body(services.library.all())

    @app.route('/api/media/type/<media_type>')
    @allow_cross_origin
    def list_media_by_type(media_type):
        try:
            parsed = MediaType.parse(media_type)
        except ValueError:
            return error_response("Invalid media type", 400)
        return records_body(services.library.by_type(parsed))

    @app.route('/api/media/location/<location>')
    @allow_cross_origin
    def list_media_by_location(location):
        return records_body(services.library.by_location(location))

    @app.route('/api/media', method='POST')
    @allow_cross_origin
    def create_media():
        data = request.json
        if not isinstance(data, dict):
            return error_response("Invalid data", 400, details="Expected a JSON object")
        try:
            record = MediaRecord.from_client(data)
        except (KeyError, ValueError, TypeError) as e:
            return error_response("Invalid data", 400, details=str(e))
        services.library.add(record)
        logger.info(f"Created media {record.id}: {record.title}")
        return json_response(record.to_dict(), 201)

    @app.route('/api/media/<record_id>', method='DELETE')
    @allow_cross_origin
    def delete_media(record_id):
        record = services.pipeline.delete_media(record_id)
        if record is None:
            return error_response("Media item not found", 404)
        return json_response({'message': "Media item deleted successfully"})

    @app.route('/api/upload', method='OPTIONS')
    @allow_cross_origin
    def upload_options():
        response.content_type = 'text/plain; charset=utf-8'
        return ''

    @app.route('/api/upload', method='POST')
    @allow_cross_origin
    def upload():
        """Accept an image upload and return its URLs and record."""
        if request.content_length > config.max_upload_bytes:
            logger.info(f"Rejected upload of {request.content_length} bytes")
            return error_response(f"File too large (limit {config.max_upload_mb} MB)", 413)

        upload_file = request.files.get('file')
        if upload_file is None:
            return error_response("No file uploaded", 400)
        content_type = upload_file.content_type or guess_type(upload_file.raw_filename)[0] or ''
        if not content_type.startswith('image/'):
            return error_response("Only image uploads are supported", 400)

        try:
            media_type = MediaType.parse(request.forms.getunicode('mediaType') or MediaType.PHOTO.value)
        except ValueError:
            return error_response("Invalid media type", 400)

        upload_request = UploadRequest(
            data=upload_file.file.read(),
            filename=upload_file.raw_filename,
            content_type=content_type,
            title=request.forms.getunicode('title') or upload_file.raw_filename,
            location=request.forms.getunicode('location') or '',
            media_type=media_type,
        )
        try:
            record = services.pipeline.run(upload_request)
        except UploadError as e:
            return error_response(str(e), status_for(e), stage=e.stage)

        return json_response({
            'url': record.url,
            'thumbnailUrl': record.thumbnail_url,
            'item': record.to_dict(),
        }, 201)

    @app.route('/api/thumbnails', method='POST')
    @allow_cross_origin
    def generate_thumbnails():
        """Generate every tier for a remote image URL."""
        data = request.json
        url = data.get('url') if isinstance(data, dict) else None
        if not url:
            return error_response("url is required", 400)
        if not services.generator.validate_remote_image(url):
            return error_response("URL does not serve an image", 422, url=url)
        try:
            variants = services.generator.generate_multiple_sizes(url, remote=True)
        except ThumbnailError as e:
            logger.error(f"Thumbnail generation for {url} failed: {e}")
            return error_response(str(e), status_for(e), url=url)
        return json_response(variants.to_dict())

    @app.route(f'/{THUMBNAIL_ROUTE}/<filename>')
    def thumbnail_file(filename):
        return static_file(filename, root=services.generator.storage.directory)

    @app.route(f'/{UPLOAD_ROUTE}/<filename>')
    def upload_file_route(filename):
        originals = services.pipeline.originals
        if not isinstance(originals, LocalClient):
            return error_response("Not found", 404)
        return static_file(filename, root=originals.directory)

    @app.route(f'/{OBJECT_ROUTE}/<filename>')
    def object_file(filename):
        """Stream an original out of object storage."""
        if services.s3 is None:
            return error_response("Object storage is not configured", 404)
        try:
            body, metadata = services.s3.open_stream(filename)
        except ClientError as e:
            if S3Client.is_missing(e):
                return error_response("File not found", 404)
            logger.error(f"Error streaming {filename}: {e}")
            return error_response("Error downloading file", 500)

        mime, _ = guess_type(filename)
        r = HTTPResponse(body=body)
        r.set_header('Content-Type', mime or metadata['content_type'])
        r.set_header('Content-Length', str(metadata['size']))
        r.set_header('Cache-Control', 'public, max-age=3600')
        r.set_header('Content-Disposition', f"inline; filename*=utf-8''{quote(filename)}")
        return r

    @app.route('/')
    def main_page():
        response.content_type = 'text/plain; charset=utf-8'
        return 'mediafolio'

    return app
