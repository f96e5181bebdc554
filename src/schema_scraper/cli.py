"""
CLI module for schema_scraper.

Provides command-line interface and orchestration logic.
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from .batch_runner import BatchRunner
from .config import ScraperSettings, load_config
from .fetch import create_fetcher
from .persistence import create_persistence_strategy
from .schema import load_schema
from .scraper import Scraper

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    """Set up logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
        stream=sys.stderr,
    )


async def run_batch(
    config_path: str,
    output_dir: str,
    dry_run: bool = False,
) -> int:
    """
    Scrape every item of a configuration file into an output directory.

    Args:
        config_path: Path to configuration file
        output_dir: Output directory for scrape results
        dry_run: If True, only log the items without scraping

    Returns:
        Process exit code
    """
    try:
        config = load_config(config_path)
    except (OSError, ValueError) as e:
        logger.error(f"Invalid configuration: {e}")
        return 1

    if dry_run:
        for item in config.items:
            logger.info(f"Would scrape {item.url} with schema '{item.schema_name}'")
        return 0

    Path(output_dir).mkdir(parents=True, exist_ok=True)
    persistence = create_persistence_strategy(config.persistence_strategy, output_dir)
    defaults = config.defaults

    async with create_fetcher(defaults.fetcher, timeout=defaults.timeout, user_agent=defaults.user_agent) as fetcher:
        runner = BatchRunner(fetcher, config, persistence)
        await runner.run(config.items)

    await persistence.finalize()

    stats = runner.get_stats()
    logger.info(f"Batch stats: {stats.success} success, {stats.degraded} degraded, {stats.failed} failed")
    return 1 if stats.failed else 0


async def run_scrape(
    schema_path: str,
    url: Optional[str] = None,
    html_file: Optional[str] = None,
    fetcher_name: str = "http",
    timeout: float = 30.0,
    propagate_location: bool = False,
) -> int:
    """
    Scrape a single URL or HTML file and print the result as JSON.

    Returns:
        Process exit code
    """
    try:
        schema = load_schema(schema_path)
        html = Path(html_file).read_text(encoding='utf-8') if html_file else None
    except (OSError, ValueError) as e:
        logger.error(f"Cannot load input: {e}")
        return 1

    settings = ScraperSettings(propagate_location=propagate_location, fetch_timeout=timeout)

    try:
        if url:
            async with create_fetcher(fetcher_name, timeout=timeout) as fetcher:
                result = await Scraper(schema, fetcher, settings).scrape(url=url)
        else:
            result = Scraper(schema, settings=settings).scrape_html(html)
    except asyncio.TimeoutError:
        logger.error(f"Timed out fetching {url}")
        return 1
    except Exception as e:
        logger.error(f"Scrape failed: {e}")
        return 1

    json.dump(result.to_dict(), sys.stdout, ensure_ascii=False, indent=2, allow_nan=False)
    sys.stdout.write("\n")
    return 0


def main(argv: Optional[list] = None) -> None:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Declarative, schema-driven HTML scraper",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  schema-scraper scrape schema.json --url https://example.com/page
  schema-scraper scrape schema.json --html-file page.html
  schema-scraper run config.json output/ --dry-run
        """
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    run_parser = subparsers.add_parser('run', help='Scrape every item of a config file')
    run_parser.add_argument('config_file', help='Path to JSON configuration file')
    run_parser.add_argument('output_dir', help='Directory to store results')
    run_parser.add_argument('--dry-run', action='store_true',
                          help='Print items only, don\'t scrape')
    run_parser.add_argument('--verbose', '-v', action='store_true',
                          help='Enable verbose logging')

    scrape_parser = subparsers.add_parser('scrape', help='Scrape a single document')
    scrape_parser.add_argument('schema_file', help='Path to JSON schema file')
    source = scrape_parser.add_mutually_exclusive_group(required=True)
    source.add_argument('--url', help='URL to fetch')
    source.add_argument('--html-file', help='Local HTML file to scrape')
    scrape_parser.add_argument('--fetcher', choices=['http', 'browser'], default='http',
                             help='How to fetch URLs (default: http)')
    scrape_parser.add_argument('--timeout', type=float, default=30.0,
                             help='Fetch timeout in seconds')
    scrape_parser.add_argument('--propagate-location', action='store_true',
                             help='Resolve url meta fields inside array items to the page URL')
    scrape_parser.add_argument('--verbose', '-v', action='store_true',
                             help='Enable verbose logging')

    args = parser.parse_args(argv)

    if args.command == 'run':
        setup_logging(args.verbose)
        code = asyncio.run(run_batch(args.config_file, args.output_dir, dry_run=args.dry_run))
    elif args.command == 'scrape':
        setup_logging(args.verbose)
        code = asyncio.run(run_scrape(
            args.schema_file,
            url=args.url,
            html_file=args.html_file,
            fetcher_name=args.fetcher,
            timeout=args.timeout,
            propagate_location=args.propagate_location,
        ))
    else:
        parser.print_help()
        code = 1

    sys.exit(code)


if __name__ == '__main__':
    main()
