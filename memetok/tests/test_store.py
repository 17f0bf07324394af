import shutil
import tempfile
import unittest
from datetime import datetime, timezone
from pathlib import Path

from memetok.errors import StorageError
from memetok.models import Category, Post, Topic
from memetok.store import Store, metadata


def _topic(topic_id, category=Category.TECH, subcategory_id=None, score=10.0, active=True):
    return Topic(
        id=topic_id,
        title=f"topic {topic_id}",
        category=category,
        subcategory_id=subcategory_id,
        created_at=datetime.fromtimestamp(1_700_000_000, tz=timezone.utc),
        trending_score=score,
        is_active=active,
    )


def _post(post_id, created=1_700_000_000.5):
    return Post(
        id=post_id,
        title=f"meme {post_id}",
        url=f"https://i.redd.it/{post_id}.png",
        subreddit="ProgrammerHumor",
        score=321,
        upvote_ratio=0.88,
        created_utc=created,
    )


class StoreTests(unittest.TestCase):
    def setUp(self) -> None:
        self.tmpdir = Path(tempfile.mkdtemp())
        self.store = Store(self.tmpdir / "nested" / "memes.sqlite")

    def tearDown(self) -> None:
        self.store.close()
        shutil.rmtree(self.tmpdir, ignore_errors=True)

    def test_post_round_trip(self):
        self.store.save_topic(_topic("t1"))
        post = _post("abc")
        key = self.store.save_post(post, "t1")

        self.assertIsNotNone(key)
        self.assertNotEqual(key, post.id)
        self.assertEqual(self.store.get_posts_for_topic("t1"), [post])

    def test_posts_ordered_newest_first(self):
        self.store.save_topic(_topic("t1"))
        for post_id, created in (("old", 100.0), ("new", 300.0), ("mid", 200.0)):
            self.store.save_post(_post(post_id, created=created), "t1")
        self.assertEqual([p.id for p in self.store.get_posts_for_topic("t1")], ["new", "mid", "old"])

    def test_same_post_saved_twice_gets_two_rows(self):
        self.store.save_post(_post("dup"), "t1")
        self.store.save_post(_post("dup"), "t1")
        self.assertEqual(len(self.store.get_posts_for_topic("t1")), 2)

    def test_post_without_topic(self):
        self.assertIsNotNone(self.store.save_post(_post("orphan")))
        self.assertEqual(self.store.get_posts_for_topic("t1"), [])

    def test_topic_round_trip_and_replace(self):
        self.store.save_topic(_topic("t1", subcategory_id="ai_ml", score=5.0))
        self.store.save_topic(_topic("t1", subcategory_id="ai_ml", score=42.0, active=False))

        topics = self.store.get_topics()
        self.assertEqual(len(topics), 1)
        self.assertEqual(topics[0], _topic("t1", subcategory_id="ai_ml", score=42.0, active=False))

    def test_filters_are_anded_and_sorted_by_score(self):
        self.store.save_topic(_topic("tech-low", score=10.0))
        self.store.save_topic(_topic("tech-inactive", score=50.0, active=False))
        self.store.save_topic(_topic("sports", category=Category.SPORTS, score=30.0))
        self.store.save_topic(_topic("tech-high", subcategory_id="ai_ml", score=20.0))

        active_tech = self.store.get_topics(category=Category.TECH, is_active=True)
        self.assertEqual([t.id for t in active_tech], ["tech-high", "tech-low"])

        ai = self.store.get_topics(category=Category.TECH, subcategory_id="ai_ml")
        self.assertEqual([t.id for t in ai], ["tech-high"])

        inactive = self.store.get_topics(is_active=False)
        self.assertEqual([t.id for t in inactive], ["tech-inactive"])

        everything = self.store.get_topics()
        self.assertEqual([t.id for t in everything], ["tech-inactive", "sports", "tech-high", "tech-low"])

    def test_save_classified_writes_topic_and_posts(self):
        topic = _topic("t9", category=Category.SPORTS, subcategory_id="cricket")
        keys = self.store.save_classified(topic, [_post("a"), _post("b", created=1.0)])

        self.assertEqual(len(keys), 2)
        self.assertEqual([t.id for t in self.store.get_topics(subcategory_id="cricket")], ["t9"])
        self.assertEqual([p.id for p in self.store.get_posts_for_topic("t9")], ["a", "b"])

    def test_failures_absorbed_by_default(self):
        metadata.drop_all(self.store.engine)

        self.store.save_topic(_topic("t1"))
        self.assertIsNone(self.store.save_post(_post("a"), "t1"))
        self.assertEqual(self.store.save_classified(_topic("t2"), [_post("b")]), [])
        self.assertEqual(self.store.get_topics(), [])
        self.assertEqual(self.store.get_posts_for_topic("t1"), [])

    def test_strict_mode_raises_storage_error(self):
        strict = Store(self.tmpdir / "strict.sqlite", strict=True)
        try:
            metadata.drop_all(strict.engine)
            with self.assertRaises(StorageError):
                strict.save_topic(_topic("t1"))
            with self.assertRaises(StorageError):
                strict.get_topics()
        finally:
            strict.close()


class InMemoryStoreTests(unittest.TestCase):
    def test_memory_store_shares_one_database(self):
        store = Store(":memory:")
        try:
            store.save_topic(_topic("t1"))
            self.assertEqual([t.id for t in store.get_topics()], ["t1"])
        finally:
            store.close()


if __name__ == "__main__":
    unittest.main()
