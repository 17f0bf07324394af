import shutil
import tempfile
import unittest
from pathlib import Path

from memetok.classifier import TopicClassifier
from memetok.entities import NullEntityTagger
from memetok.models import AggregationReport, Category, Post, SourceResult
from memetok.pipeline import MemePipeline
from memetok.settings import load_settings
from memetok.status import build_status
from memetok.store import Store


def _post(post_id, title, source):
    return Post(
        id=post_id,
        title=title,
        url=f"https://i.redd.it/{post_id}.jpg",
        subreddit=source,
        score=100,
        upvote_ratio=0.5,
        created_utc=1_700_000_000.0,
    )


class _StaticAggregator:
    def __init__(self, report):
        self.report = report

    def aggregate(self):
        return self.report

    def fetch_trending_for_source(self, source, limit):
        return self.report.groups.get(source, [])[:limit]


class PipelineTests(unittest.TestCase):
    def setUp(self) -> None:
        self.tmpdir = Path(tempfile.mkdtemp())
        self.store = Store(self.tmpdir / "memes.sqlite")
        report = AggregationReport(
            groups={
                "ICC_Champions_Trophy": [_post("a", "ICC Champions Trophy India vs Pakistan match highlights", "Cricket")],
                "ProgrammerHumor": [
                    _post("b", "New GPU leak shows RTX performance", "ProgrammerHumor"),
                    _post("c", "Guess who is back", "ProgrammerHumor"),
                ],
            },
            results=[
                SourceResult(source="Cricket", group="ICC_Champions_Trophy", query="champions trophy"),
                SourceResult(source="broken", group="broken", error="unexpected HTTP status 503"),
            ],
        )
        classifier = TopicClassifier(tagger=NullEntityTagger(), store=self.store)
        self.pipeline = MemePipeline(_StaticAggregator(report), classifier, self.store)

    def tearDown(self) -> None:
        self.store.close()
        shutil.rmtree(self.tmpdir, ignore_errors=True)

    def test_refresh_classifies_and_persists_every_post(self):
        result = self.pipeline.refresh()

        self.assertEqual(len(result.classified), 3)
        by_post = {post.id: topic for post, topic in result.classified}
        self.assertEqual((by_post["a"].category, by_post["a"].subcategory_id), (Category.SPORTS, "cricket"))
        self.assertEqual((by_post["b"].category, by_post["b"].subcategory_id), (Category.TECH, "gaming_tech"))
        self.assertEqual(by_post["c"].category, Category.OTHER)

        for post_id, topic in by_post.items():
            stored = self.pipeline.posts_for_topic(topic.id)
            self.assertEqual([p.id for p in stored], [post_id])

        self.assertEqual(len(self.pipeline.topics(is_active=True)), 3)
        self.assertEqual([t.id for t in self.pipeline.topics(category=Category.TECH)], [by_post["b"].id])

    def test_trending_for_source_passes_through(self):
        posts = self.pipeline.trending_for_source("ProgrammerHumor", 1)
        self.assertEqual([p.id for p in posts], ["b"])

    def test_status_reports_last_refresh(self):
        settings = load_settings()
        empty = build_status(self.pipeline, settings)
        self.assertIsNone(empty["last_refresh"]["generated_at"])

        self.pipeline.refresh()
        status = build_status(self.pipeline, settings)
        self.assertEqual(status["last_refresh"]["groups"], {"ICC_Champions_Trophy": 1, "ProgrammerHumor": 2})
        self.assertEqual(status["last_refresh"]["failures"], 1)
        self.assertEqual(status["last_refresh"]["classified"], 3)
        self.assertEqual(status["store"]["active_topics"]["Tech"], 1)
        self.assertEqual(status["store"]["active_topics"]["Sports"], 1)


if __name__ == "__main__":
    unittest.main()
