"""Shared pytest configuration: path setup and common fixtures."""

import logging
import sys
from pathlib import Path

import pytest

# Repository root, so ``from config.settings import ...`` works without installing
_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(_ROOT))

from config.settings import AssessmentConfig  # noqa: E402
from core.run_context import RunContext  # noqa: E402
from models.entity import Entity, TextSource  # noqa: E402
from models.enums import EntityType, ExtractionMethod  # noqa: E402
from utils.text_processing import normalize_name  # noqa: E402


@pytest.fixture
def config(monkeypatch):
    for name in ("KOPPLA_LOG_LEVEL", "KOPPLA_DEBUG", "KOPPLA_SIMILARITY_THRESHOLD",
                 "KOPPLA_CO_MENTION_WINDOW", "KOPPLA_MIN_CREDIBLE_SOURCES"):
        monkeypatch.delenv(name, raising=False)
    return AssessmentConfig()


@pytest.fixture
def logger():
    test_logger = logging.getLogger("koppla.tests")
    test_logger.setLevel(logging.DEBUG)
    return test_logger


@pytest.fixture
def run_context():
    return RunContext()


@pytest.fixture
def make_entity():
    """Factory for resolved entities with sensible defaults."""
    def _make(entity_id, name, entity_type=EntityType.PERSON, roles=None, confidence=0.75,
              mention_count=1, source="test-source", methods=None):
        return Entity(
            id=entity_id,
            name=name,
            normalized_name=normalize_name(name),
            type=entity_type,
            roles=list(roles or []),
            extraction_methods=list(methods or [ExtractionMethod.NLP]),
            preferred_method=(methods or [ExtractionMethod.NLP])[0],
            confidence=confidence,
            mention_count=mention_count,
            source=source,
        )
    return _make


@pytest.fixture
def make_text():
    def _make(text, mentions=None, roles=None, source="test-source", language="en"):
        return TextSource.from_dict({
            "text": text,
            "source": source,
            "language": language,
            "mentions": mentions or [],
            "roles": roles or [],
        })
    return _make


@pytest.fixture
def sample_request():
    text = (
        "Acme Corp CEO Ahmed Al-Rashid announced a new investment. "
        "Ahmed Al-Rashid met Nordic Trading AB about a funding transaction. "
        "Later Ahmed Al-Rashid and Nordic Trading AB signed a payment deal."
    )
    return {
        "subject": "Acme Corp",
        "texts": [{
            "text": text,
            "source": "news-1",
            "sourceUrl": "https://example.org/news-1",
            "language": "en",
            "mentions": [
                {"name": "Ahmed Al-Rashid", "type": "person", "extractedBy": "nlp"},
                {"name": "Nordic Trading AB", "type": "organization", "extractedBy": "regex"},
                {"name": "Acme Corp", "type": "organization", "extractedBy": "regex"},
            ],
            "roles": [{"role": "CEO", "index": 10}],
        }],
        "evidence": [
            {"sourceType": "news", "category": "racism", "severity": "medium",
             "description": "Newspaper report on discriminatory hiring", "source": "Daily News"},
            {"sourceType": "ngo", "category": "human-rights", "severity": "high",
             "description": "NGO report on labour conditions", "source": "Watchdog"},
        ],
        "sanctions": {"sanctioned": False, "results": [{"list": "EU"}, {"list": "UN"}], "errors": []},
    }
