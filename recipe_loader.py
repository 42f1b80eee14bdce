"""
Recipe loader for the catalog crawler.

Loads and validates YAML recipe files that describe where the catalog
lives, which selectors to use and how hard to hit the site. Every field is
optional; anything left out falls back to crawler_config.
"""

from typing import List, Dict, Any, Optional
from dataclasses import dataclass, field
from pathlib import Path
import yaml

import crawler_config
from errors import RecipeError, UrlBuildError
from extractors.document import compile_selector
from extractors.detail_page import compile_record_selectors
from extractors.urls import normalize_base_url


@dataclass
class ConcurrencyConfig:
    """Sizes of the two fetch windows."""
    listing: int = crawler_config.LISTING_CONCURRENCY
    detail: int = crawler_config.DETAIL_CONCURRENCY


@dataclass
class LimitsConfig:
    """Configuration for crawl limits."""
    max_listing_pages: Optional[int] = None
    max_records: Optional[int] = None


@dataclass
class OutputConfig:
    """Configuration for output files."""
    records_jsonl: str = crawler_config.RECORDS_JSONL
    pages_jsonl: str = crawler_config.PAGES_JSONL


def _positive_int(value: Any, name: str, allow_none: bool = False) -> Optional[int]:
    if value is None and allow_none:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise RecipeError(f"'{name}' must be a positive integer, got {value!r}")
    return value


@dataclass
class CatalogRecipe:
    """
    Complete crawl configuration.

    Validation happens on construction: a bad base URL, selector or limit
    raises RecipeError here rather than during the crawl.
    """
    base_url: str = crawler_config.BASE_URL
    item_link_css: str = crawler_config.ITEM_LINK_CSS
    record_selectors: Dict[str, str] = field(default_factory=dict)
    concurrency: ConcurrencyConfig = field(default_factory=ConcurrencyConfig)
    request_timeout: float = crawler_config.REQUEST_TIMEOUT
    exhaustion_statuses: List[int] = field(default_factory=lambda: list(crawler_config.EXHAUSTION_STATUSES))
    limits: LimitsConfig = field(default_factory=LimitsConfig)
    output: OutputConfig = field(default_factory=OutputConfig)

    # Compiled selectors, filled in by __post_init__
    item_link_selector: Any = field(init=False, repr=False, compare=False)
    field_selectors: Dict[str, Any] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        try:
            self.base_url = normalize_base_url(self.base_url)
        except UrlBuildError as e:
            raise RecipeError(str(e)) from e

        _positive_int(self.concurrency.listing, 'concurrency.listing')
        _positive_int(self.concurrency.detail, 'concurrency.detail')
        _positive_int(self.limits.max_listing_pages, 'limits.max_listing_pages', allow_none=True)
        _positive_int(self.limits.max_records, 'limits.max_records', allow_none=True)

        if isinstance(self.request_timeout, bool) or not isinstance(self.request_timeout, (int, float)) \
                or self.request_timeout <= 0:
            raise RecipeError(f"'request_timeout' must be a positive number, got {self.request_timeout!r}")

        if not isinstance(self.exhaustion_statuses, list) or \
                not all(isinstance(s, int) and 100 <= s <= 599 for s in self.exhaustion_statuses):
            raise RecipeError("'exhaustion_statuses' must be a list of HTTP status codes")

        if not isinstance(self.record_selectors, dict):
            raise RecipeError("'record_selectors' must be a dictionary")

        self.item_link_selector = compile_selector(self.item_link_css)
        self.field_selectors = compile_record_selectors(self.record_selectors)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CatalogRecipe':
        """
        Create a CatalogRecipe from a dictionary (loaded from YAML).

        Args:
            data: Dictionary from YAML file

        Returns:
            CatalogRecipe instance

        Raises:
            RecipeError: If a field is present but invalid
        """
        kwargs: Dict[str, Any] = {}

        for key in ('base_url', 'item_link_css', 'record_selectors',
                    'request_timeout', 'exhaustion_statuses'):
            if key in data:
                kwargs[key] = data[key]

        if 'concurrency' in data:
            concurrency_data = data['concurrency']
            if not isinstance(concurrency_data, dict):
                raise RecipeError("'concurrency' must be a dictionary")
            kwargs['concurrency'] = ConcurrencyConfig(
                listing=concurrency_data.get('listing', crawler_config.LISTING_CONCURRENCY),
                detail=concurrency_data.get('detail', crawler_config.DETAIL_CONCURRENCY)
            )

        if 'limits' in data:
            limits_data = data['limits']
            if not isinstance(limits_data, dict):
                raise RecipeError("'limits' must be a dictionary")
            kwargs['limits'] = LimitsConfig(
                max_listing_pages=limits_data.get('max_listing_pages'),
                max_records=limits_data.get('max_records')
            )

        if 'output' in data:
            output_data = data['output']
            if not isinstance(output_data, dict):
                raise RecipeError("'output' must be a dictionary")
            output = OutputConfig()
            output.records_jsonl = output_data.get('records_jsonl', output.records_jsonl)
            output.pages_jsonl = output_data.get('pages_jsonl', output.pages_jsonl)
            kwargs['output'] = output

        return cls(**kwargs)


def load_recipe(file_path: str) -> CatalogRecipe:
    """
    Load a recipe from a YAML file.

    Args:
        file_path: Path to YAML recipe file

    Returns:
        CatalogRecipe instance

    Raises:
        FileNotFoundError: If file doesn't exist
        RecipeError: If recipe is invalid
        yaml.YAMLError: If YAML parsing fails
    """
    path = Path(file_path)

    if not path.exists():
        raise FileNotFoundError(f"Recipe file not found: {file_path}")

    with open(path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f)

    # An empty file means "all defaults"
    if data is None:
        data = {}

    if not isinstance(data, dict):
        raise RecipeError("Recipe file must contain a YAML dictionary")

    return CatalogRecipe.from_dict(data)


def validate_recipe(recipe: CatalogRecipe) -> List[str]:
    """
    Validate a recipe and return a list of warnings (not errors).

    Args:
        recipe: Recipe to validate

    Returns:
        List of warning messages (empty if no warnings)
    """
    warnings = []

    if recipe.base_url.startswith('http://'):
        warnings.append(f"Base URL is not HTTPS: {recipe.base_url}")

    if recipe.concurrency.listing > 50:
        warnings.append(f"Listing concurrency is very high: {recipe.concurrency.listing}")
    if recipe.concurrency.detail > 50:
        warnings.append(f"Detail concurrency is very high: {recipe.concurrency.detail}")

    if recipe.limits.max_listing_pages and recipe.limits.max_listing_pages > 1000:
        warnings.append(f"max_listing_pages is very high: {recipe.limits.max_listing_pages}")

    if not recipe.exhaustion_statuses:
        warnings.append("No exhaustion statuses configured - every listing failure will be reported as an error")

    return warnings
