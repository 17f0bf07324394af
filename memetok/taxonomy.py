"""
Keyword tables for topic classification.

The tables are immutable and handed to the classifier at construction time;
``DEFAULT_TAXONOMY`` is the curated set used in production.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet, Tuple

from memetok.models import Category, Subcategory


def _sub(id: str, name: str, *keywords: str) -> Subcategory:
    return Subcategory(id=id, name=name, keywords=frozenset(keywords))


@dataclass(frozen=True)
class Taxonomy:
    subcategories: Tuple[Tuple[Category, Tuple[Subcategory, ...]], ...]
    education_keywords: FrozenSet[str]
    education_target: Tuple[Category, str]
    category_keywords: Tuple[Tuple[Category, FrozenSet[str]], ...]

    def __post_init__(self) -> None:
        declared = {category for category, _ in self.subcategories}
        missing = [c.value for c in Category if c is not Category.OTHER and c not in declared]
        if missing:
            raise ValueError(f"taxonomy has no subcategory table for: {', '.join(missing)}")
        if Category.OTHER in declared and self.subcategories_for(Category.OTHER):
            raise ValueError("Other must not carry subcategories")
        category, subcategory_id = self.education_target
        if subcategory_id not in {sub.id for sub in self.subcategories_for(category)}:
            raise ValueError(f"education target {category.value}/{subcategory_id} is not a known subcategory")

    def subcategories_for(self, category: Category) -> Tuple[Subcategory, ...]:
        for declared, subcategories in self.subcategories:
            if declared == category:
                return subcategories
        return ()

    def ordered_subcategories(self):
        """Yield (category, subcategory) in enum order, then definition order."""
        for category in Category:
            for subcategory in self.subcategories_for(category):
                yield category, subcategory


EDUCATION_KEYWORDS = frozenset(
    {
        "exam", "student", "study", "homework", "assignment", "college", "university",
        "school", "cheating", "grade", "professor", "teacher", "lecture", "class",
    }
)

DEFAULT_TAXONOMY = Taxonomy(
    subcategories=(
        (
            Category.SPORTS,
            (
                _sub("cricket", "Cricket", "cricket", "ipl", "bcci", "test match", "t20", "icc", "champions trophy", "wicket"),
                _sub("soccer", "Soccer", "soccer", "football", "fifa", "premier league", "champions league"),
                _sub("basketball", "Basketball", "nba", "basketball", "lebron", "bulls", "lakers"),
                _sub("formula1", "Formula 1", "f1", "formula 1", "racing", "ferrari", "mercedes"),
                _sub("esports", "Esports", "esports", "competitive gaming", "tournament", "league"),
            ),
        ),
        (
            Category.POLITICS,
            (
                _sub("us_politics", "US Politics", "biden", "trump", "democrat", "republican", "congress"),
                _sub("world_politics", "World Politics", "un", "eu", "nato", "summit", "international"),
                _sub("elections", "Elections", "election", "vote", "campaign", "ballot", "polling"),
                _sub("policy", "Policy", "policy", "law", "regulation", "reform", "bill"),
            ),
        ),
        (
            Category.ENTERTAINMENT,
            (
                _sub("hollywood", "Hollywood", "hollywood", "marvel", "dc", "disney", "warner"),
                _sub("bollywood", "Bollywood", "bollywood", "hindi", "mumbai", "shah rukh", "salman"),
                _sub("anime", "Anime", "anime", "manga", "japan", "otaku", "naruto"),
                _sub("gaming", "Gaming", "gaming", "playstation", "xbox", "nintendo", "steam"),
                _sub("streaming", "Streaming", "netflix", "prime", "disney+", "hulu", "streaming"),
            ),
        ),
        (
            Category.TECH,
            (
                _sub(
                    "programming", "Programming",
                    "programming", "coding", "developer", "software", "bug", "code",
                    "compiler", "debugging", "algorithm", "git", "stack overflow",
                    "python", "java", "javascript", "css", "html", "react", "angular",
                    "exam", "student", "cheating", "study", "homework", "assignment",
                ),
                _sub(
                    "ai_ml", "AI & ML",
                    "ai", "artificial intelligence", "machine learning", "chatgpt", "deep learning",
                    "neural network", "data science", "model", "training", "dataset",
                ),
                # No bare "x": as a substring it matches words like "rtx" or "linux".
                _sub(
                    "elon", "Elon Musk",
                    "elon", "musk", "tesla", "spacex", "twitter", "starship",
                    "boring company", "neuralink", "cybertruck",
                ),
                _sub(
                    "tech_companies", "Tech Companies",
                    "google", "apple", "microsoft", "meta", "facebook", "amazon", "aws",
                    "netflix", "startup", "silicon valley", "tech company",
                ),
                _sub(
                    "gaming_tech", "Gaming & Hardware",
                    "gpu", "cpu", "gaming pc", "console", "playstation", "xbox",
                    "nvidia", "amd", "intel", "hardware", "ram", "ssd",
                ),
                _sub(
                    "education", "Education",
                    "exam", "student", "study", "homework", "assignment",
                    "college", "university", "school", "cheating", "grade",
                    "professor", "teacher", "lecture", "class", "semester",
                    "finals", "midterm", "quiz", "test", "project",
                    "deadline", "submission", "lab", "tutorial", "course",
                ),
            ),
        ),
        (Category.OTHER, ()),
    ),
    education_keywords=EDUCATION_KEYWORDS,
    education_target=(Category.TECH, "programming"),
    category_keywords=(
        (
            Category.SPORTS,
            frozenset({
                "cricket", "ipl", "bcci", "match", "game", "player", "team", "sport",
                "tournament", "stadium", "ball", "bat", "wicket", "over", "run",
            }),
        ),
        (
            Category.TECH,
            frozenset({
                "programming", "code", "developer", "software", "computer", "tech",
                "ai", "machine learning", "data", "algorithm", "bug", "feature",
            }),
        ),
        (
            Category.ENTERTAINMENT,
            frozenset({
                "movie", "film", "actor", "actress", "director", "cinema", "bollywood",
                "hollywood", "show", "series", "episode", "season", "trailer",
            }),
        ),
        (
            Category.POLITICS,
            frozenset({
                "politics", "government", "minister", "party", "election", "vote",
                "campaign", "policy", "parliament", "congress", "bjp", "modi",
            }),
        ),
    ),
)
