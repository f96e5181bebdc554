"""
Utility functions for schema_scraper.

Domain and filename helpers used when persisting results.
"""

import hashlib
import logging
import re
from urllib.parse import urlparse

logger = logging.getLogger(__name__)


def extract_domain(url: str) -> str:
    """
    Extract domain from URL.

    Args:
        url: URL to extract domain from

    Returns:
        Domain name without a leading "www.", or empty string if invalid
    """
    try:
        domain = urlparse(url).hostname or ""
    except ValueError as e:
        logger.warning(f"Failed to extract domain from URL {url}: {e}")
        return ""
    if domain.startswith('www.'):
        domain = domain[4:]
    return domain


def sanitize_filename(filename: str, max_length: int = 120) -> str:
    """
    Sanitize filename by removing/replacing invalid characters.

    Args:
        filename: Filename to sanitize
        max_length: Maximum length of filename

    Returns:
        Sanitized filename
    """
    sanitized = re.sub(r'[^a-zA-Z0-9\-_.]', '_', filename)
    sanitized = re.sub(r'_+', '_', sanitized)
    sanitized = sanitized.strip('_')
    return sanitized[:max_length] or "unnamed"


def create_url_hash(url: str, algorithm: str = "md5") -> str:
    """
    Create hash of URL for unique identification.

    Args:
        url: URL to hash
        algorithm: Hash algorithm to use ("md5", "sha1" or "sha256")

    Returns:
        Hexadecimal hash string
    """
    if algorithm not in ("md5", "sha1", "sha256"):
        raise ValueError(f"Unsupported hash algorithm: {algorithm}")
    return hashlib.new(algorithm, url.encode('utf-8')).hexdigest()
