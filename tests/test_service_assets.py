"""
Tests for diploma asset providers.
"""

import pytest
from unittest.mock import Mock, patch
from botocore.exceptions import ClientError
import requests
import responses
import sys
import os

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '../src'))

from domain.errors import AssetFetchError, ConfigurationError
from services import assets
from services.assets import (
    CJK_FONT, LATIN_FONT, TEMPLATE,
    CachingAssetProvider, HttpAssetProvider, LocalAssetProvider, S3AssetProvider,
    build_asset_provider, fetch_all,
)

URLS = {
    TEMPLATE: 'https://assets.example.com/template_diploma.pdf',
    LATIN_FONT: 'https://assets.example.com/fonts/Chomsky.ttf',
    CJK_FONT: 'https://assets.example.com/fonts/NotoSerifSC-Bold.ttf',
}


class TestHttpAssetProvider:
    """Test downloading assets over HTTP."""

    def test_default_urls(self):
        """Test defaults point at the public diploma assets."""
        provider = HttpAssetProvider()

        assert provider.urls[TEMPLATE].endswith('/public/template_diploma.pdf')
        assert provider.urls[LATIN_FONT].endswith('/public/fonts/Chomsky.ttf')
        assert provider.urls[CJK_FONT].endswith('/public/fonts/NotoSerifSC-Bold.ttf')

    @responses.activate
    def test_fetch_success(self):
        responses.add(responses.GET, URLS[TEMPLATE], body=b'%PDF-1.7', status=200)

        result = HttpAssetProvider(URLS).fetch(TEMPLATE)

        assert result == b'%PDF-1.7'

    @responses.activate
    def test_fetch_http_error(self):
        """Test non-2xx responses fail."""
        responses.add(responses.GET, URLS[LATIN_FONT], status=404)

        with pytest.raises(AssetFetchError, match="Failed to download latin_font"):
            HttpAssetProvider(URLS).fetch(LATIN_FONT)

    @responses.activate
    def test_fetch_connection_error(self):
        responses.add(
            responses.GET, URLS[CJK_FONT],
            body=requests.ConnectionError("connection refused")
        )

        with pytest.raises(AssetFetchError, match="connection refused"):
            HttpAssetProvider(URLS).fetch(CJK_FONT)

    def test_unknown_asset(self):
        with pytest.raises(AssetFetchError, match="Unknown asset: logo"):
            HttpAssetProvider(URLS).fetch('logo')


class TestS3AssetProvider:
    """Test loading assets from S3."""

    @patch('services.assets.s3_service.fetch_object')
    def test_fetch_success(self, mock_fetch):
        mock_fetch.return_value = b'font-bytes'

        result = S3AssetProvider('asset-bucket', 'diploma/').fetch(LATIN_FONT)

        assert result == b'font-bytes'
        mock_fetch.assert_called_once_with('asset-bucket', 'diploma/fonts/Chomsky.ttf')

    @patch('services.assets.s3_service.fetch_object')
    def test_fetch_missing_object(self, mock_fetch):
        mock_fetch.side_effect = ValueError("Object not found in S3: diploma/template_diploma.pdf")

        with pytest.raises(AssetFetchError, match="Failed to load template from S3"):
            S3AssetProvider('asset-bucket', 'diploma/').fetch(TEMPLATE)

    @patch('services.assets.s3_service.fetch_object')
    def test_fetch_client_error(self, mock_fetch):
        mock_fetch.side_effect = ClientError(
            {'Error': {'Code': 'AccessDenied', 'Message': 'Access Denied'}},
            'GetObject'
        )

        with pytest.raises(AssetFetchError):
            S3AssetProvider('asset-bucket').fetch(TEMPLATE)

    def test_requires_bucket(self):
        with pytest.raises(ConfigurationError, match="ASSET_BUCKET"):
            S3AssetProvider('')


class TestLocalAssetProvider:
    """Test loading assets from a directory."""

    def test_fetch_success(self, tmp_path):
        (tmp_path / 'fonts').mkdir()
        (tmp_path / 'fonts' / 'NotoSerifSC-Bold.ttf').write_bytes(b'cjk-font')

        result = LocalAssetProvider(str(tmp_path)).fetch(CJK_FONT)

        assert result == b'cjk-font'

    def test_fetch_missing_file(self, tmp_path):
        with pytest.raises(AssetFetchError, match="Failed to read template"):
            LocalAssetProvider(str(tmp_path)).fetch(TEMPLATE)

    def test_requires_directory(self):
        with pytest.raises(ConfigurationError, match="ASSET_DIR"):
            LocalAssetProvider(None)


class TestCachingAssetProvider:
    """Test TTL caching of assets."""

    def test_cache_hit(self):
        inner = Mock()
        inner.fetch.return_value = b'data'
        provider = CachingAssetProvider(inner, ttl_seconds=300)

        assert provider.fetch(TEMPLATE) == b'data'
        assert provider.fetch(TEMPLATE) == b'data'

        inner.fetch.assert_called_once_with(TEMPLATE)

    @patch('services.assets.time.time')
    def test_cache_expired(self, mock_time):
        inner = Mock()
        inner.fetch.side_effect = [b'old', b'new']
        provider = CachingAssetProvider(inner, ttl_seconds=300)

        mock_time.return_value = 1000.0
        assert provider.fetch(TEMPLATE) == b'old'

        mock_time.return_value = 1301.0
        assert provider.fetch(TEMPLATE) == b'new'

    def test_failures_are_not_cached(self):
        inner = Mock()
        inner.fetch.side_effect = [AssetFetchError("timeout"), b'data']
        provider = CachingAssetProvider(inner, ttl_seconds=300)

        with pytest.raises(AssetFetchError):
            provider.fetch(TEMPLATE)
        assert provider.fetch(TEMPLATE) == b'data'

    def test_clear(self):
        inner = Mock()
        inner.fetch.return_value = b'data'
        provider = CachingAssetProvider(inner, ttl_seconds=300)

        provider.fetch(TEMPLATE)
        provider.clear()
        provider.fetch(TEMPLATE)

        assert inner.fetch.call_count == 2


class TestFetchAll:
    """Test concurrent fetching."""

    def test_fetch_all(self):
        provider = Mock()
        provider.fetch.side_effect = lambda asset_id: asset_id.encode()

        result = fetch_all(provider)

        assert result == {
            TEMPLATE: b'template',
            LATIN_FONT: b'latin_font',
            CJK_FONT: b'cjk_font',
        }

    def test_fetch_all_propagates_failure(self):
        def fetch(asset_id):
            if asset_id == CJK_FONT:
                raise AssetFetchError("Failed to download cjk_font")
            return b'ok'

        provider = Mock()
        provider.fetch.side_effect = fetch

        with pytest.raises(AssetFetchError, match="cjk_font"):
            fetch_all(provider)


class TestBuildAssetProvider:
    """Test provider selection from configuration."""

    @patch('services.assets.CACHE_TTL_SECONDS', 300)
    def test_http_with_cache(self):
        provider = build_asset_provider('http')

        assert isinstance(provider, CachingAssetProvider)
        assert isinstance(provider.provider, HttpAssetProvider)

    @patch('services.assets.CACHE_TTL_SECONDS', 0)
    @patch('services.assets.ASSET_BUCKET', 'asset-bucket')
    def test_s3_without_cache(self):
        provider = build_asset_provider('s3')

        assert isinstance(provider, S3AssetProvider)
        assert provider.bucket == 'asset-bucket'

    @patch('services.assets.CACHE_TTL_SECONDS', 0)
    @patch('services.assets.ASSET_DIR', '/opt/diploma')
    def test_local(self):
        provider = build_asset_provider('LOCAL')

        assert isinstance(provider, LocalAssetProvider)

    def test_unknown_source(self):
        with pytest.raises(ConfigurationError, match="ASSET_SOURCE"):
            build_asset_provider('ftp')

    @patch('services.assets.ASSET_SOURCE', 'http')
    def test_defaults_to_configured_source(self):
        assert isinstance(build_asset_provider(), (CachingAssetProvider, HttpAssetProvider))
