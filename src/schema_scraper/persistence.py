"""
Persistence module for schema_scraper.

Handles different persistence strategies for saving scrape results as JSON.
"""

import json
import logging
from abc import ABC, abstractmethod
from collections import defaultdict
from pathlib import Path
from typing import Any, Dict, List
from urllib.parse import urlparse

from .utils import create_url_hash, extract_domain, sanitize_filename

logger = logging.getLogger(__name__)


def _dump(record: Dict[str, Any], indent=None) -> str:
    return json.dumps(record, ensure_ascii=False, indent=indent, allow_nan=False)


class PersistenceStrategy(ABC):
    """Abstract base class for persistence strategies."""

    @abstractmethod
    async def save(self, url: str, record: Dict[str, Any]) -> str:
        """
        Save the scrape record for a URL.

        Args:
            url: URL the record was scraped from
            record: JSON-serializable record

        Returns:
            Path where the record was (or will be) saved
        """
        pass

    @abstractmethod
    async def finalize(self) -> None:
        """Finalize persistence operations (e.g., flush buffers)."""
        pass


class FolderPerDomainStrategy(PersistenceStrategy):
    """Persistence strategy that writes one JSON file per URL in domain folders."""

    def __init__(self, output_dir: str):
        """
        Initialize FolderPerDomainStrategy.

        Args:
            output_dir: Base output directory
        """
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.saved_count = 0

    def _build_file_path(self, url: str, extension: str = ".json") -> Path:
        """
        Build file path for URL in domain folder structure.

        Args:
            url: URL to build path for
            extension: File extension

        Returns:
            Full path to save file
        """
        domain = extract_domain(url) or "unknown"
        domain_dir = self.output_dir / domain
        domain_dir.mkdir(parents=True, exist_ok=True)

        parsed = urlparse(url)
        if not parsed.path or parsed.path == '/':
            filename = "index"
        else:
            filename = parsed.path.strip('/').replace('/', '_')

        filename = sanitize_filename(filename)

        # Long names and URLs with a query keep a prefix plus a hash of the full URL
        max_file_name_len = 120
        if parsed.query or len(filename) > max_file_name_len - len(extension):
            name_part = filename[:max_file_name_len - len(extension) - 9]
            filename = f"{name_part}_{create_url_hash(url)[:8]}"

        return domain_dir / f"{filename}{extension}"

    async def save(self, url: str, record: Dict[str, Any]) -> str:
        """
        Save a record to the URL's domain folder.

        Args:
            url: URL the record was scraped from
            record: JSON-serializable record

        Returns:
            Path where the record was saved, empty string on failure
        """
        file_path = self._build_file_path(url)
        content = _dump(record, indent=2)

        try:
            with open(file_path, 'w', encoding='utf-8') as f:
                f.write(content)
        except OSError as e:
            logger.error(f"Failed to save record for {url}: {e}")
            return ""

        self.saved_count += 1
        logger.debug(f"Saved record to: {file_path}")
        return str(file_path)

    async def finalize(self) -> None:
        """No finalization needed for folder per domain."""
        logger.info(f"FolderPerDomainStrategy completed. Saved {self.saved_count} files.")


class FilePerDomainStrategy(PersistenceStrategy):
    """Persistence strategy that appends records to one JSON Lines file per domain."""

    def __init__(self, output_dir: str, buffer_size: int = 100):
        """
        Initialize FilePerDomainStrategy.

        Args:
            output_dir: Base output directory
            buffer_size: Number of records to buffer per domain before flushing
        """
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.buffer_size = buffer_size
        self.buffers: Dict[str, List[Dict[str, Any]]] = defaultdict(list)
        self.records_written: Dict[str, int] = defaultdict(int)

    def _domain_file(self, domain: str) -> Path:
        return self.output_dir / f"{domain}.jsonl"

    async def _flush_domain(self, domain: str) -> str:
        """
        Append the buffered records of a domain to its file.

        Args:
            domain: Domain to flush

        Returns:
            Path to the domain file, empty string on failure
        """
        records = self.buffers[domain]
        if not records:
            return ""

        domain_file = self._domain_file(domain)
        lines = [_dump(record) + "\n" for record in records]

        try:
            with open(domain_file, 'a', encoding='utf-8') as f:
                f.writelines(lines)
        except OSError as e:
            logger.error(f"Failed to flush domain {domain}: {e}")
            return ""

        self.records_written[domain] += len(records)

        logger.info(f"Flushed {len(records)} records for domain {domain} to {domain_file}")
        self.buffers[domain] = []
        return str(domain_file)

    async def save(self, url: str, record: Dict[str, Any]) -> str:
        """
        Buffer a record for its domain file.

        Args:
            url: URL the record was scraped from
            record: JSON-serializable record

        Returns:
            Path of the domain file the record goes to
        """
        domain = extract_domain(url) or "unknown"
        self.buffers[domain].append(record)
        logger.debug(f"Buffered record for {domain}: {url}")

        if len(self.buffers[domain]) >= self.buffer_size:
            await self._flush_domain(domain)

        return str(self._domain_file(domain))

    async def finalize(self) -> None:
        """Flush all remaining buffers to domain files."""
        logger.info("Finalizing FilePerDomainStrategy - flushing all buffers")

        for domain in list(self.buffers.keys()):
            await self._flush_domain(domain)

        logger.info(f"FilePerDomainStrategy completed. Wrote {len(self.records_written)} domain files.")


def create_persistence_strategy(
    strategy: str,
    output_dir: str,
    **kwargs
) -> PersistenceStrategy:
    """
    Factory function to create persistence strategy.

    Args:
        strategy: Strategy name ("folder_per_domain" or "file_per_domain")
        output_dir: Output directory
        **kwargs: Additional strategy-specific parameters

    Returns:
        Configured persistence strategy

    Raises:
        ValueError: If strategy is not supported
    """
    if strategy == "folder_per_domain":
        return FolderPerDomainStrategy(output_dir)
    elif strategy == "file_per_domain":
        return FilePerDomainStrategy(output_dir, kwargs.get("buffer_size", 100))
    else:
        raise ValueError(f"Unsupported persistence strategy: {strategy}")
