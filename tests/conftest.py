"""
Pytest configuration and shared fixtures for piinguin tests.
"""

import json

import pytest

from piinguin.core.domain import AnnotatedValue
from piinguin.core.loader import RuleCatalog
from piinguin.engine.processor import RedactionProcessor
from piinguin.service.suggestions import SuggestionEngine


SAMPLE_EVENT = {
    "message": "Paid with card 1234-1234-1234-1234 on d/deadbeef1234",
    "level": "warning",
    "extra": {"foo": [1, 2, 3, "127.0.0.1"]},
}

DEVICE_ID_CONFIG = {
    "rules": {
        "device_id": {
            "type": "pattern",
            "pattern": "d/[a-f0-9]{12}",
            "redaction": {"method": "hash"},
        }
    }
}


@pytest.fixture
def catalog():
    """The process-wide rule catalog."""
    return RuleCatalog.get_instance()


@pytest.fixture
def processor(catalog):
    """A processor with the default hash settings."""
    return RedactionProcessor(catalog=catalog)


@pytest.fixture
def engine(processor, catalog):
    """An unbounded suggestion engine."""
    return SuggestionEngine(processor=processor, catalog=catalog)


@pytest.fixture
def make_event(processor):
    """Build an annotated event from a plain dict."""

    def _make(data):
        return processor.parse_event(json.dumps(data))

    return _make


@pytest.fixture
def sample_event(make_event):
    return make_event(SAMPLE_EVENT)


@pytest.fixture
def tree():
    """A plain annotated tree, not yet processed."""
    return AnnotatedValue.from_json(SAMPLE_EVENT)