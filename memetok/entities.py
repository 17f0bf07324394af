"""
Named-entity extraction used as the last classification fallback.
"""
from __future__ import annotations

import logging
import threading
from typing import Optional, Protocol, Set

import spacy
from spacy.language import Language

logger = logging.getLogger(__name__)


class EntityTagger(Protocol):
    def entities(self, text: str) -> Set[str]:
        ...


class NullEntityTagger:
    """Tagger that never finds anything; disables the entity rule."""

    def entities(self, text: str) -> Set[str]:
        return set()


class SpacyEntityTagger:
    """
    Word-level entity tagging backed by a spaCy pipeline.

    The pipeline is loaded on first use. If the model package is not
    installed the tagger logs once and behaves like ``NullEntityTagger``.
    """

    def __init__(self, model: str = "en_core_web_sm", nlp: Optional[Language] = None) -> None:
        self.model = model
        self._nlp = nlp
        self._load_failed = False
        self._lock = threading.Lock()

    def entities(self, text: str) -> Set[str]:
        nlp = self._get_nlp()
        if nlp is None or not text:
            return set()
        doc = nlp(text)
        return {token.text.lower() for token in doc if token.ent_type_}

    def _get_nlp(self) -> Optional[Language]:
        if self._nlp is not None or self._load_failed:
            return self._nlp
        with self._lock:
            if self._nlp is None and not self._load_failed:
                try:
                    self._nlp = spacy.load(self.model)
                except OSError as exc:
                    self._load_failed = True
                    logger.warning("spaCy model '%s' unavailable; entity rule disabled (%s)", self.model, exc)
        return self._nlp
