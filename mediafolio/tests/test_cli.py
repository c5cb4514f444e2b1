"""Tests for CLI module."""

import json
import os

import pytest

from mediafolio.cli import create_parser, get_app_config, main, parse_sizes


class TestCreateParser:
    """Tests for argument parser creation."""

    def test_parser_created(self):
        parser = create_parser()
        assert parser is not None

    def test_serve_command(self):
        parser = create_parser()
        args = parser.parse_args(['serve', '--port', '8080', '--thumbnail-dir', '/tmp/thumbs'])

        assert args.command == 'serve'
        assert args.port == 8080
        assert args.thumbnail_dir == '/tmp/thumbs'
        assert args.verbose is False

    def test_thumbnail_defaults(self):
        parser = create_parser()
        args = parser.parse_args(['thumbnail', 'photo.jpg'])

        assert args.source == 'photo.jpg'
        assert args.size is None
        assert args.format == 'jpeg'
        assert args.quality is None

    def test_thumbnail_sizes(self):
        parser = create_parser()
        args = parser.parse_args(['thumbnail', 'photo.jpg', '-s', '400x300', '-s', '800x600', '-f', 'webp'])

        assert args.size == ['400x300', '800x600']
        assert args.format == 'webp'

    def test_delete_command(self):
        parser = create_parser()
        args = parser.parse_args(['delete', 'http://a/thumbnails/1.jpeg', 'http://a/thumbnails/2.jpeg'])

        assert args.urls == ['http://a/thumbnails/1.jpeg', 'http://a/thumbnails/2.jpeg']

    def test_validate_command(self):
        parser = create_parser()
        args = parser.parse_args(['validate', 'https://example.com/a.jpg', '-v'])

        assert args.url == 'https://example.com/a.jpg'
        assert args.verbose is True


class TestHelpers:
    """Tests for config and size helpers."""

    def test_app_config_overrides(self, monkeypatch):
        monkeypatch.delenv('BASE_URL', raising=False)
        parser = create_parser()
        args = parser.parse_args(['serve', '--base-url', 'https://media.example.com/', '--max-upload-mb', '10'])

        config = get_app_config(args)

        assert config.base_url == 'https://media.example.com'
        assert config.max_upload_mb == 10

    def test_parse_sizes_default(self):
        assert parse_sizes(None, 'jpeg', None) is None

    def test_parse_sizes(self):
        sizes = parse_sizes(['40x30'], 'png', 90)

        assert [(s.width, s.height, s.format, s.quality) for s in sizes] == [(40, 30, 'png', 90)]


class TestMain:
    """Tests for main entry point."""

    def test_no_command(self):
        assert main([]) == 1

    def test_thumbnail(self, tmp_path, sample_image_file, capsys):
        thumbs = tmp_path / 'out'

        result = main(['thumbnail', sample_image_file, '--thumbnail-dir', str(thumbs), '-s', '32x32'])

        assert result == 0
        output = json.loads(capsys.readouterr().out)
        assert set(output) == {'small'}
        assert os.path.exists(output['small']['path'])

    def test_thumbnail_bad_source(self, tmp_path):
        bad = tmp_path / 'bad.jpg'
        bad.write_bytes(b'nope')

        assert main(['thumbnail', str(bad), '--thumbnail-dir', str(tmp_path / 'out')]) == 1

    def test_thumbnail_bad_size(self, sample_image_file, tmp_path):
        assert main(['thumbnail', sample_image_file, '-s', 'big', '--thumbnail-dir', str(tmp_path)]) == 1

    def test_delete(self, tmp_path):
        thumbs = tmp_path / 'thumbs'
        thumbs.mkdir()
        (thumbs / 'a.jpeg').write_bytes(b'x')

        result = main(['delete', 'http://localhost:5000/thumbnails/a.jpeg', '--thumbnail-dir', str(thumbs)])

        assert result == 0
        assert not (thumbs / 'a.jpeg').exists()

    def test_validate(self, tmp_path, mocker):
        mocker.patch('mediafolio.cli.ThumbnailGenerator.validate_remote_image', return_value=False)

        assert main(['validate', 'https://example.com/', '--thumbnail-dir', str(tmp_path)]) == 1

    def test_serve(self, tmp_path, mocker, monkeypatch):
        monkeypatch.delenv('S3_ENDPOINT', raising=False)
        run = mocker.patch('mediafolio.cli.run')

        result = main([
            'serve', '--port', '8099',
            '--thumbnail-dir', str(tmp_path / 'thumbs'),
            '--upload-dir', str(tmp_path / 'uploads'),
            '--library', str(tmp_path / 'media.json'),
        ])

        assert result == 0
        assert run.call_args.kwargs['port'] == 8099
        assert os.path.isdir(tmp_path / 'thumbs')
