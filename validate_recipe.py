"""
Simple script to validate a recipe file.

Usage:
    python validate_recipe.py recipes/books_toscrape.yaml
"""

import sys
import logging

import yaml

from errors import RecipeError
from recipe_loader import load_recipe, validate_recipe

logging.basicConfig(level=logging.INFO, format='%(levelname)s: %(message)s')
logger = logging.getLogger(__name__)


def main():
    if len(sys.argv) < 2:
        print("Usage: python validate_recipe.py <recipe_file>")
        sys.exit(1)

    recipe_file = sys.argv[1]

    try:
        logger.info(f"Loading recipe: {recipe_file}")
        recipe = load_recipe(recipe_file)
    except FileNotFoundError as e:
        logger.error(f"File not found: {e}")
        sys.exit(1)
    except RecipeError as e:
        logger.error(f"Invalid recipe: {e}")
        sys.exit(1)
    except yaml.YAMLError as e:
        logger.error(f"Could not parse YAML: {e}")
        sys.exit(1)

    logger.info("✓ Recipe loaded successfully")
    logger.info(f"  Base URL: {recipe.base_url}")
    logger.info(f"  Item link CSS: {recipe.item_link_css}")
    for name, css in recipe.record_selectors.items():
        logger.info(f"  Selector override {name}: {css}")
    logger.info(f"  Concurrency: listing={recipe.concurrency.listing}, detail={recipe.concurrency.detail}")
    logger.info(f"  Request timeout: {recipe.request_timeout}s")
    logger.info(f"  Exhaustion statuses: {recipe.exhaustion_statuses}")

    if recipe.limits.max_listing_pages:
        logger.info(f"  Max listing pages: {recipe.limits.max_listing_pages}")
    if recipe.limits.max_records:
        logger.info(f"  Max records: {recipe.limits.max_records}")

    logger.info(f"  Output records: {recipe.output.records_jsonl}")
    logger.info(f"  Output pages: {recipe.output.pages_jsonl}")

    warnings = validate_recipe(recipe)
    if warnings:
        logger.warning("Validation warnings:")
        for warning in warnings:
            logger.warning(f"  - {warning}")
    else:
        logger.info("✓ No validation warnings")

    logger.info("")
    logger.info("Recipe is valid and ready to use!")
    logger.info(f"Run with: python crawler.py --recipe {recipe_file}")


if __name__ == '__main__':
    main()
