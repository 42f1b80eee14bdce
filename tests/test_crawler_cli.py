"""
Tests for command-line recipe overrides.
"""

import unittest
from argparse import Namespace

from crawler import build_recipe
from errors import RecipeError


def make_args(**overrides):
    args = dict(
        recipe=None,
        base_url=None,
        listing_concurrency=None,
        detail_concurrency=None,
        timeout=None,
        max_pages=None,
        max_records=None,
        output_dir=None
    )
    args.update(overrides)
    return Namespace(**args)


class TestBuildRecipe(unittest.TestCase):

    def test_defaults_without_flags(self):
        recipe = build_recipe(make_args())
        self.assertIsNone(recipe.limits.max_listing_pages)

    def test_flags_override(self):
        recipe = build_recipe(make_args(
            base_url="http://localhost:8000",
            detail_concurrency=3,
            max_pages=2,
            output_dir="run1"
        ))

        self.assertEqual(recipe.base_url, "http://localhost:8000/")
        self.assertEqual(recipe.concurrency.detail, 3)
        self.assertEqual(recipe.concurrency.listing, 10)
        self.assertEqual(recipe.limits.max_listing_pages, 2)
        self.assertTrue(recipe.output.records_jsonl.endswith("records.jsonl"))
        self.assertIn("run1", recipe.output.pages_jsonl)
        self.assertEqual(len(recipe.field_selectors), 6)

    def test_invalid_override(self):
        with self.assertRaises(RecipeError):
            build_recipe(make_args(listing_concurrency=-2))

    def test_zero_flags_are_rejected(self):
        """A 0 flag must reach validation, not fall back to the recipe value."""
        for flag in ('listing_concurrency', 'detail_concurrency', 'max_pages', 'max_records'):
            with self.subTest(flag=flag):
                with self.assertRaises(RecipeError):
                    build_recipe(make_args(**{flag: 0}))


if __name__ == '__main__':
    unittest.main()
