"""Pluggable named-entity heuristics.

A heuristic is a callable ``Article -> list[NamedEntity]``. It must be a pure
function of the article and the options it was built with, because a failed
partition is recomputed by running it again.
"""

from __future__ import annotations

import logging
import random
import re
import threading
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Callable

import pycountry
import spacy

from common.hashing import stable_seed
from dataflow.errors import ConfigurationError
from extract_entities.models import NamedEntity
from ingest_feeds.models import Article

logger = logging.getLogger(__name__)

Heuristic = Callable[[Article], list[NamedEntity]]

DEFAULT_MODEL = "en_core_web_sm"
DEFAULT_WORD_LIMIT = 300
ALLOWED_LABELS = {"GPE", "ORG", "PERSON", "NORP", "LOC"}

_CAPITALIZED_RUN = re.compile(r"[A-Z][\w&'’.-]*(?:\s+[A-Z][\w&'’.-]*)*")
_LEADING_STOPWORDS = {
    "A", "After", "An", "And", "As", "At", "Before", "But", "By", "For", "From", "He",
    "Her", "His", "I", "If", "In", "It", "Its", "On", "Or", "She", "So", "That", "The",
    "Their", "These", "They", "This", "Those", "To", "We", "When", "While", "With", "You",
}


def _apply_word_limit(text: str, word_limit: int | None) -> str:
    if not word_limit or not text:
        return text
    words = text.split()
    if len(words) <= word_limit:
        return text
    return " ".join(words[:word_limit])


def _strip_possessive(name: str) -> str:
    if name.upper().endswith("&APOS;S"):
        name = name[:-7]
    if name.endswith(("'s", "'S", "’s", "’S")):
        name = name[:-2]
    elif name.endswith(("s'", "S'", "s’", "S’")):
        name = name[:-1]
    return name


def _normalize_entity_name(text: str) -> str:
    entity_name = text.replace("\n", " ").strip()
    entity_name = _strip_possessive(re.sub(r"[^\w'’;&]+$", "", entity_name))
    entity_name = re.sub(r"[^\w]+$", "", entity_name).strip()
    return entity_name


def _normalize_gpe_name(name: str) -> str:
    if not name:
        return name
    cleaned = name
    if cleaned.startswith("THE "):
        cleaned = cleaned[4:]
    cleaned = re.sub(r"[^\w\s]", "", cleaned)
    cleaned = re.sub(r"\s+", " ", cleaned).strip()
    return cleaned


def _normalize_country_name(name: str) -> str | None:
    if not name:
        return None
    manual = {
        "UK": "UNITED KINGDOM",
        "BRITAIN": "UNITED KINGDOM",
    }
    if name in manual:
        return manual[name]
    for candidate in (name, name.title()):
        try:
            country = pycountry.countries.lookup(candidate)
        except LookupError:
            continue
        return country.name.upper()
    return None


def quick_heuristic(article: Article) -> list[NamedEntity]:
    """Runs of capitalized words, minus leading function words and possessives."""
    entities = []
    for match in _CAPITALIZED_RUN.finditer(article.text or ""):
        words = match.group(0).split()
        while words and words[0].rstrip(".,;:") in _LEADING_STOPWORDS:
            words = words[1:]
        if not words:
            continue
        name = _normalize_entity_name(" ".join(words))
        if len(name) < 2:
            continue
        entities.append(NamedEntity(name=name))
    return entities


@dataclass(frozen=True)
class RandomHeuristic:
    """
    Picks random words of the article as entities.

    The generator is seeded from (seed, article id, article text), so the
    same article always yields the same entities, on any worker and on any
    retry.
    """
    seed: int = 0
    max_entities: int = 5

    def __call__(self, article: Article) -> list[NamedEntity]:
        words = [_normalize_entity_name(word) for word in (article.text or "").split()]
        words = [word for word in words if word]
        if not words:
            return []
        rng = random.Random(stable_seed(self.seed, article.id, article.text))
        count = rng.randint(0, min(self.max_entities, len(words)))
        return [NamedEntity(name=word) for word in rng.sample(words, count)]


_model_lock = threading.Lock()


@lru_cache(maxsize=None)
def _cached_model(model: str) -> Any:
    logger.info("Loading spaCy model: %s", model)
    return spacy.load(model)


def _load_model(model: str) -> Any:
    with _model_lock:
        return _cached_model(model)


@dataclass(frozen=True)
class SpacyHeuristic:
    """spaCy NER restricted to people, places, organisations and groups."""
    model: str = DEFAULT_MODEL
    word_limit: int | None = DEFAULT_WORD_LIMIT

    def __call__(self, article: Article) -> list[NamedEntity]:
        text = _apply_word_limit(article.text or "", self.word_limit)
        if not text:
            return []
        doc = _load_model(self.model)(text)

        entities = []
        for ent in doc.ents:
            if ent.label_ not in ALLOWED_LABELS:
                continue
            entity_name = _normalize_entity_name(ent.text).upper()
            if not entity_name:
                continue
            if ent.label_ == "GPE":
                entity_name = _normalize_gpe_name(entity_name)
                if not entity_name:
                    continue
                normalized_country = _normalize_country_name(entity_name)
                if normalized_country:
                    entity_name = normalized_country
            entities.append(NamedEntity(name=entity_name, label=ent.label_))
        return entities


HEURISTICS = ("quick", "random", "spacy")


def get_heuristic(
    name: str,
    seed: int = 0,
    spacy_model: str = DEFAULT_MODEL,
    word_limit: int | None = DEFAULT_WORD_LIMIT,
) -> Heuristic:
    """
    Build the heuristic selected by name, with its options bound.

    The spaCy model is loaded here, so a missing model fails the job
    before any feed is fetched.

    Raises:
        ConfigurationError: If name is not a known heuristic or the spaCy
            model cannot be loaded.
    """
    if name == "quick":
        return quick_heuristic
    if name == "random":
        return RandomHeuristic(seed=seed)
    if name == "spacy":
        try:
            _load_model(spacy_model)
        except OSError as e:
            raise ConfigurationError(f"Cannot load spaCy model {spacy_model!r}: {e}") from e
        return SpacyHeuristic(model=spacy_model, word_limit=word_limit)
    raise ConfigurationError(f"Unknown heuristic {name!r}. Valid heuristics: {', '.join(HEURISTICS)}")
