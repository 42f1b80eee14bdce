"""
Catalog Crawler

Walks a paginated online catalog and scrapes one record per item:
- Generates numbered listing page URLs until the catalog runs out
- Discovers detail page links on every listing page
- Fetches detail pages concurrently and extracts a fixed-shape record
- Saves records as JSON lines and logs a summary
"""

import sys
import asyncio
import logging
import argparse
import dataclasses
from pathlib import Path

from catalog_crawler import run_catalog_crawl
from errors import FetchError, RecipeError
from fetcher import PageFetcher
from recipe_loader import (
    CatalogRecipe,
    ConcurrencyConfig,
    LimitsConfig,
    OutputConfig,
    load_recipe,
    validate_recipe
)

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s'
    )


def _override(flag_value, recipe_value):
    """A flag given on the command line wins, even when it is 0."""
    return flag_value if flag_value is not None else recipe_value


def build_recipe(args) -> CatalogRecipe:
    """
    Load the recipe (or defaults) and apply command-line overrides.

    Raises:
        RecipeError: If the resulting configuration is invalid
    """
    recipe = load_recipe(args.recipe) if args.recipe else CatalogRecipe()

    overrides = {}
    if args.base_url:
        overrides['base_url'] = args.base_url
    if args.timeout is not None:
        overrides['request_timeout'] = args.timeout
    if args.listing_concurrency is not None or args.detail_concurrency is not None:
        overrides['concurrency'] = ConcurrencyConfig(
            listing=_override(args.listing_concurrency, recipe.concurrency.listing),
            detail=_override(args.detail_concurrency, recipe.concurrency.detail)
        )
    if args.max_pages is not None or args.max_records is not None:
        overrides['limits'] = LimitsConfig(
            max_listing_pages=_override(args.max_pages, recipe.limits.max_listing_pages),
            max_records=_override(args.max_records, recipe.limits.max_records)
        )
    if args.output_dir:
        output_dir = Path(args.output_dir)
        overrides['output'] = OutputConfig(
            records_jsonl=str(output_dir / 'records.jsonl'),
            pages_jsonl=str(output_dir / 'listing_pages.jsonl')
        )

    if overrides:
        recipe = dataclasses.replace(recipe, **overrides)
    return recipe


def main():
    """Main entry point with argument parsing."""
    parser = argparse.ArgumentParser(
        description='Paginated catalog crawler',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Crawl the default catalog
  python crawler.py

  # Crawl using a recipe
  python crawler.py --recipe recipes/books_toscrape.yaml
  python crawler.py --recipe recipes/books_toscrape.yaml --dry-run

  # Point at a local mirror with smaller windows
  python crawler.py --base-url http://localhost:8000/ --listing-concurrency 2 --detail-concurrency 4

  # Debug tools
  python crawler.py --verbose-selectors --max-pages 1 --dry-run
  python crawler.py --dump-html https://books.toscrape.com/catalogue/page-1.html
        """
    )

    parser.add_argument('--recipe', help='Recipe YAML file')
    parser.add_argument('--base-url', help='Catalog base URL')
    parser.add_argument('--listing-concurrency', type=int, help='Listing page fetches in flight')
    parser.add_argument('--detail-concurrency', type=int, help='Detail page fetches in flight')
    parser.add_argument('--timeout', type=float, help='Per-request timeout in seconds')
    parser.add_argument('--max-pages', type=int, help='Stop after this many listing pages')
    parser.add_argument('--max-records', type=int, help='Stop after this many records')
    parser.add_argument('--output-dir', help='Directory for records.jsonl and listing_pages.jsonl')

    # Debug options
    parser.add_argument('--dry-run', action='store_true',
                        help='Print scraped records without saving')
    parser.add_argument('--verbose-selectors', action='store_true',
                        help='Log match counts for CSS selectors')
    parser.add_argument('--verbose', action='store_true', help='Enable debug logging')
    parser.add_argument('--dump-html', metavar='URL',
                        help='Dump HTML content for a URL and exit')

    args = parser.parse_args()
    setup_logging(args.verbose)

    try:
        recipe = build_recipe(args)
    except FileNotFoundError as e:
        logger.error(str(e))
        sys.exit(1)
    except RecipeError as e:
        logger.error(f"Invalid recipe: {e}")
        sys.exit(1)

    for warning in validate_recipe(recipe):
        logger.warning(f"Recipe warning: {warning}")

    if args.dump_html:
        sys.exit(asyncio.run(_dump_html(args.dump_html, recipe)))

    result = asyncio.run(run_catalog_crawl(
        recipe,
        dry_run=args.dry_run,
        verbose_selectors=args.verbose_selectors
    ))

    sys.exit(0 if result.succeeded else 1)


async def _dump_html(url: str, recipe: CatalogRecipe) -> int:
    """Dump HTML content for a URL."""
    logger.info(f"Dumping HTML for: {url}")

    async with PageFetcher(timeout=recipe.request_timeout) as fetcher:
        try:
            html = await fetcher.fetch(url)
        except FetchError as e:
            logger.error(f"Failed to fetch page: {e}")
            return 1

    output_file = Path("debug_dump.html")
    with open(output_file, 'w', encoding='utf-8') as f:
        f.write(html)
    logger.info(f"HTML saved to: {output_file}")
    return 0


if __name__ == "__main__":
    main()
