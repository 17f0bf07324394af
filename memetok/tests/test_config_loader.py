import os
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from memetok.config_loader import (
    DEFAULT_SEARCH_GROUP,
    DEFAULT_SEARCH_QUERIES,
    SourceCatalog,
    build_catalog,
    load_catalog,
)
from memetok.models import Category
from memetok.settings import DEFAULT_SOURCES_PATH, load_settings


class CatalogTests(unittest.TestCase):
    def test_bundled_catalog_covers_every_category_with_sources(self):
        catalog = load_catalog(DEFAULT_SOURCES_PATH)
        declared = [category for category, _ in catalog.categories]
        self.assertEqual(
            sorted(c.value for c in declared),
            sorted(c.value for c in Category if c is not Category.OTHER),
        )
        self.assertIn("CricketShitpost", catalog.sources_for(Category.SPORTS))
        self.assertEqual(catalog.search_group, "ICC_Champions_Trophy")
        self.assertIn("champions trophy", catalog.search_queries)

    def test_unknown_categories_and_blank_sources_skipped(self):
        catalog = build_catalog(
            {
                "categories": {
                    "Tech": ["ProgrammerHumor", "  ", None, "softwaregore"],
                    "Cooking": ["recipes"],
                },
            }
        )
        self.assertEqual(catalog.categories, ((Category.TECH, ("ProgrammerHumor", "softwaregore")),))
        self.assertEqual(catalog.search_queries, DEFAULT_SEARCH_QUERIES)
        self.assertEqual(catalog.search_group, DEFAULT_SEARCH_GROUP)
        self.assertEqual(catalog.search_category, Category.SPORTS)

    def test_env_placeholders_expanded(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "sources.yaml"
            path.write_text(
                "categories:\n  Sports:\n    - ${MEMETOK_TEST_SOURCE}\nsearch:\n  group: Finals\n  queries: [final over]\n",
                encoding="utf-8",
            )
            with patch.dict(os.environ, {"MEMETOK_TEST_SOURCE": "cricketmemes"}):
                catalog = load_catalog(path)
        self.assertEqual(catalog.sources_for(Category.SPORTS), ("cricketmemes",))
        self.assertEqual(catalog.search_group, "Finals")
        self.assertEqual(catalog.search_queries, ("final over",))

    def test_missing_file_gives_empty_catalog(self):
        catalog = load_catalog(Path(tempfile.gettempdir()) / "definitely-missing-sources.yaml")
        self.assertEqual(catalog.categories, ())
        self.assertEqual(catalog.all_sources(), [])

    def test_all_sources_keeps_order_and_drops_repeats(self):
        catalog = SourceCatalog(
            categories=(
                (Category.ENTERTAINMENT, ("desimemes", "bollywood")),
                (Category.POLITICS, ("indiameme", "desimemes")),
            )
        )
        self.assertEqual(catalog.all_sources(), ["desimemes", "bollywood", "indiameme"])


class SettingsTests(unittest.TestCase):
    def test_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            settings = load_settings()
        self.assertEqual(settings.base_url, "https://www.reddit.com")
        self.assertEqual(settings.per_source_limit, 25)
        self.assertEqual(settings.sources_path, DEFAULT_SOURCES_PATH)
        self.assertFalse(settings.strict_storage)

    def test_env_overrides_and_invalid_values(self):
        env = {
            "MEMETOK_BASE_URL": "http://localhost:8080/",
            "MEMETOK_PER_SOURCE_LIMIT": "10",
            "MEMETOK_HTTP_TIMEOUT": "soon",
            "MEMETOK_MAX_WORKERS": "-4",
            "MEMETOK_STRICT_STORAGE": "yes",
            "MEMETOK_DB_PATH": "/tmp/memetok-test.sqlite",
        }
        with patch.dict(os.environ, env, clear=True):
            settings = load_settings()
        self.assertEqual(settings.base_url, "http://localhost:8080")
        self.assertEqual(settings.per_source_limit, 10)
        self.assertEqual(settings.http_timeout, 15)
        self.assertEqual(settings.max_workers, 8)
        self.assertTrue(settings.strict_storage)
        self.assertEqual(settings.db_path, Path("/tmp/memetok-test.sqlite"))


if __name__ == "__main__":
    unittest.main()
