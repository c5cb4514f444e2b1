"""Tests for thumbnail options and variant sets."""

import pytest

from mediafolio.variant import DEFAULT_TIERS, PRIMARY_TIER, ThumbnailOptions, ThumbnailResult, VariantSet


class TestThumbnailOptions:
    """Tests for ThumbnailOptions."""

    def test_defaults(self):
        options = ThumbnailOptions()

        assert (options.width, options.height) == (200, 200)
        assert options.quality == 60
        assert options.format == 'jpeg'
        assert options.pil_format == 'JPEG'
        assert options.content_type == 'image/jpeg'

    def test_jpg_alias(self):
        assert ThumbnailOptions(format='JPG').extension == 'jpeg'

    def test_webp(self):
        options = ThumbnailOptions(format='webp')

        assert options.extension == 'webp'
        assert options.content_type == 'image/webp'

    def test_quality_clamped(self):
        assert ThumbnailOptions(quality=500).quality == 100
        assert ThumbnailOptions(quality=0).quality == 1

    def test_non_positive_size(self):
        with pytest.raises(ValueError):
            ThumbnailOptions(width=0)

    def test_unknown_format(self):
        with pytest.raises(ValueError):
            ThumbnailOptions(format='gif')

    def test_parse_size(self):
        options = ThumbnailOptions.parse_size('400x300', quality=80)

        assert (options.width, options.height, options.quality) == (400, 300, 80)

    @pytest.mark.parametrize('text', ['400', 'axb', '400x'])
    def test_parse_size_invalid(self, text):
        with pytest.raises(ValueError):
            ThumbnailOptions.parse_size(text)


class TestDefaultTiers:
    """Tests for the default tier table."""

    def test_tiers(self):
        assert {name: (o.width, o.height, o.quality) for name, o in DEFAULT_TIERS.items()} == {
            'small': (150, 150, 60),
            'medium': (400, 300, 80),
            'large': (800, 600, 85),
        }

    def test_primary_is_small(self):
        assert PRIMARY_TIER == 'small'


class TestVariantSet:
    """Tests for VariantSet."""

    def test_accessors(self):
        small = ThumbnailResult(path='/t/a.jpeg', url='http://x/thumbnails/a.jpeg', byte_size=10)
        variants = VariantSet(results={'small': small}, errors={'large': 'boom'})

        assert variants.small is small
        assert variants.medium is None
        assert variants.urls == ['http://x/thumbnails/a.jpeg']
        assert not variants.complete
        assert variants.to_dict() == {
            'small': {'path': '/t/a.jpeg', 'url': 'http://x/thumbnails/a.jpeg', 'size': 10},
            'errors': {'large': 'boom'},
        }

    def test_result_from_dict(self):
        result = ThumbnailResult.from_dict({'path': 'p', 'url': 'u', 'size': 3})

        assert result == ThumbnailResult(path='p', url='u', byte_size=3)
