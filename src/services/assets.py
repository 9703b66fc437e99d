"""
Diploma asset loading.

The diploma template and its two fonts are loaded through an AssetProvider
selected by ASSET_SOURCE:
1. http  - fixed public URLs (default)
2. s3    - an S3 bucket (ASSET_BUCKET / ASSET_KEY_PREFIX)
3. local - a directory on disk (ASSET_DIR)

Assets are cached in memory for warm Lambda invocations with TTL.
"""

import logging
import os
import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Dict, Iterable, Optional, Tuple

import requests
from botocore.exceptions import ClientError

from domain.errors import AssetFetchError, ConfigurationError
from services import http
from services import s3 as s3_service

logger = logging.getLogger(__name__)

# Asset identifiers
TEMPLATE = 'template'
LATIN_FONT = 'latin_font'
CJK_FONT = 'cjk_font'
ASSET_IDS = (TEMPLATE, LATIN_FONT, CJK_FONT)

_ASSET_BASE_URL = 'https://raw.githubusercontent.com/WildChickenUniversity/WildChickenUniversity/master/public/'

# Relative asset paths, shared by the S3 and local providers
ASSET_PATHS = {
    TEMPLATE: 'template_diploma.pdf',
    LATIN_FONT: 'fonts/Chomsky.ttf',
    CJK_FONT: 'fonts/NotoSerifSC-Bold.ttf',
}

ASSET_URLS = {
    TEMPLATE: os.environ.get('DIPLOMA_TEMPLATE_URL', _ASSET_BASE_URL + ASSET_PATHS[TEMPLATE]),
    LATIN_FONT: os.environ.get('DIPLOMA_LATIN_FONT_URL', _ASSET_BASE_URL + ASSET_PATHS[LATIN_FONT]),
    CJK_FONT: os.environ.get('DIPLOMA_CJK_FONT_URL', _ASSET_BASE_URL + ASSET_PATHS[CJK_FONT]),
}

# Configuration from environment variables
ASSET_SOURCE = os.environ.get('ASSET_SOURCE', 'http')
ASSET_BUCKET = os.environ.get('ASSET_BUCKET')
ASSET_KEY_PREFIX = os.environ.get('ASSET_KEY_PREFIX', 'assets/')
ASSET_DIR = os.environ.get('ASSET_DIR')

# Cache TTL in seconds (default: 5 minutes, 0 disables caching)
CACHE_TTL_SECONDS = int(os.environ.get('ASSET_CACHE_TTL', '300'))


class AssetProvider:
    """Loads diploma assets by id."""

    def fetch(self, asset_id: str) -> bytes:
        """
        Load one asset.

        Raises:
            AssetFetchError: If the asset is unknown or cannot be loaded
        """
        raise NotImplementedError


class HttpAssetProvider(AssetProvider):
    """Downloads assets from fixed URLs."""

    def __init__(self, urls: Optional[Dict[str, str]] = None):
        self.urls = dict(urls if urls is not None else ASSET_URLS)

    def fetch(self, asset_id: str) -> bytes:
        url = self.urls.get(asset_id)
        if not url:
            raise AssetFetchError(f"Unknown asset: {asset_id}")

        logger.info(f"Downloading asset {asset_id}: {url}")
        try:
            response = http.session.get(url, timeout=http.TIMEOUT)
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error(f"Failed to download asset {asset_id} from {url}: {e}")
            raise AssetFetchError(f"Failed to download {asset_id}: {e}") from e

        return response.content


class S3AssetProvider(AssetProvider):
    """Reads assets from an S3 bucket."""

    def __init__(self, bucket: str, key_prefix: str = 'assets/'):
        if not bucket:
            raise ConfigurationError("ASSET_BUCKET environment variable not set")
        self.bucket = bucket
        self.key_prefix = key_prefix

    def fetch(self, asset_id: str) -> bytes:
        path = ASSET_PATHS.get(asset_id)
        if not path:
            raise AssetFetchError(f"Unknown asset: {asset_id}")

        key = f"{self.key_prefix}{path}"
        logger.info(f"Loading asset {asset_id} from S3: s3://{self.bucket}/{key}")
        try:
            return s3_service.fetch_object(self.bucket, key)
        except (ClientError, ValueError) as e:
            raise AssetFetchError(f"Failed to load {asset_id} from S3: {e}") from e


class LocalAssetProvider(AssetProvider):
    """Reads assets from a local directory."""

    def __init__(self, directory: str):
        if not directory:
            raise ConfigurationError("ASSET_DIR environment variable not set")
        self.directory = Path(directory)

    def fetch(self, asset_id: str) -> bytes:
        path = ASSET_PATHS.get(asset_id)
        if not path:
            raise AssetFetchError(f"Unknown asset: {asset_id}")

        asset_path = self.directory / path
        logger.info(f"Loading asset {asset_id} from filesystem: {asset_path}")
        try:
            with open(asset_path, 'rb') as f:
                return f.read()
        except OSError as e:
            raise AssetFetchError(f"Failed to read {asset_id}: {e}") from e


class CachingAssetProvider(AssetProvider):
    """
    Caches another provider's assets in memory with a TTL.
    """

    def __init__(self, provider: AssetProvider, ttl_seconds: int = CACHE_TTL_SECONDS):
        self.provider = provider
        self.ttl_seconds = ttl_seconds
        # {asset_id: (content, timestamp)}
        self._cache: Dict[str, Tuple[bytes, float]] = {}

    def fetch(self, asset_id: str) -> bytes:
        current_time = time.time()

        if asset_id in self._cache:
            content, cached_time = self._cache[asset_id]
            age_seconds = current_time - cached_time
            if age_seconds < self.ttl_seconds:
                logger.info(
                    f"Using cached asset: {asset_id} "
                    f"(age: {int(age_seconds)}s, TTL: {self.ttl_seconds}s)"
                )
                return content
            logger.info(f"Cache expired for asset: {asset_id}, reloading...")

        content = self.provider.fetch(asset_id)
        self._cache[asset_id] = (content, current_time)
        return content

    def clear(self) -> None:
        """Drop all cached assets."""
        self._cache.clear()
        logger.info("Asset cache cleared")


def fetch_all(provider: AssetProvider, asset_ids: Iterable[str] = ASSET_IDS) -> Dict[str, bytes]:
    """
    Fetch several assets concurrently.

    Fetches run in parallel threads and are awaited as a group.

    Returns:
        Dict mapping asset id to content

    Raises:
        AssetFetchError: If any asset fails to load
    """
    asset_ids = list(asset_ids)
    start_time = time.time()

    with ThreadPoolExecutor(max_workers=len(asset_ids) or 1) as executor:
        contents = list(executor.map(provider.fetch, asset_ids))

    assets = dict(zip(asset_ids, contents))
    logger.info(
        f"Fetched {len(assets)} asset(s) in {time.time() - start_time:.3f}s: "
        + ", ".join(f"{k}={len(v):,} bytes" for k, v in assets.items())
    )
    return assets


def build_asset_provider(source: Optional[str] = None) -> AssetProvider:
    """
    Build the asset provider configured by ASSET_SOURCE.

    Raises:
        ConfigurationError: If the source is unknown or incompletely configured
    """
    source = (source or ASSET_SOURCE).lower()

    if source == 'http':
        provider = HttpAssetProvider()
    elif source == 's3':
        provider = S3AssetProvider(ASSET_BUCKET, ASSET_KEY_PREFIX)
    elif source == 'local':
        provider = LocalAssetProvider(ASSET_DIR)
    else:
        raise ConfigurationError(
            f"ASSET_SOURCE must be one of 'http', 's3', 'local', got: '{source}'"
        )

    if CACHE_TTL_SECONDS > 0:
        provider = CachingAssetProvider(provider, CACHE_TTL_SECONDS)

    logger.info(f"Asset provider configured: source={source}, cache_ttl={CACHE_TTL_SECONDS}s")
    return provider
