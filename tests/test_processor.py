"""
Tests for the PII processor: config parsing, event parsing and stripping.
"""

import json
import re

import pytest

from piinguin.core.definitions import RemarkType
from piinguin.core.domain import Value
from piinguin.core.exceptions import ConfigParseError, EventParseError
from piinguin.engine.processor import RedactionProcessor
from piinguin.engine.recognizers import (
    USER_RECOGNIZER_CACHE_SIZE,
    named_pattern_recognizer,
    user_pattern_recognizer,
)
from piinguin.logic.paths import resolve

from conftest import DEVICE_ID_CONFIG, SAMPLE_EVENT


def strip(processor, config, event):
    return processor.strip(processor.parse_config(json.dumps(config)), event)


def walk(node):
    yield node
    if node.value is not None and node.value.kind.value == "array":
        for child in node.value.data:
            yield from walk(child)
    elif node.value is not None and node.value.kind.value == "map":
        for child in node.value.data.values():
            yield from walk(child)


class TestParseEvent:
    def test_object(self, processor):
        event = processor.parse_event('{"message": "hi"}')
        assert resolve(event, "message").value == Value.string("hi")
        assert event.meta.path is None

    @pytest.mark.parametrize(
        "text",
        ['{"x": NaN}', '{"x": Infinity}', '{"x": [-Infinity]}'],
    )
    def test_rejects_non_finite_tokens(self, processor, text):
        with pytest.raises(EventParseError):
            processor.parse_event(text)

    @pytest.mark.parametrize("text", ["[1, 2]", '"hi"', "{", ""])
    def test_rejects_non_objects(self, processor, text):
        with pytest.raises(EventParseError):
            processor.parse_event(text)

    def test_drops_meta_key(self, processor):
        event = processor.parse_event('{"_meta": {"message": {}}, "message": "hi"}')
        assert resolve(event, "_meta") is None


class TestParseConfig:
    def test_empty_config(self, processor):
        config = processor.parse_config("{}")
        assert config.applications == {}

    def test_builtin_reference(self, processor):
        config = processor.parse_config('{"applications": {"ip": ["@ip:hash"]}}')
        assert [r.rule_id for r in config.rules_for("ip")] == ["@ip:hash"]

    @pytest.mark.parametrize(
        "text",
        [
            "not json",
            "[]",
            '{"applications": {"nope": ["@ip:hash"]}}',
            '{"applications": {"ip": ["missing_rule"]}}',
            '{"applications": {"ip": "@ip:hash"}}',
            '{"rules": {"r": {"type": "bogus"}}}',
            '{"rules": {"r": {"type": "pattern", "pattern": "("}}}',
            '{"rules": {"r": {"type": "redactPair"}}}',
            '{"rules": {"r": {"type": "ip", "redaction": {"method": "explode"}}}}',
            '{"vars": {"hashKey": NaN}}',
        ],
    )
    def test_invalid_configs(self, processor, text):
        with pytest.raises(ConfigParseError):
            processor.parse_config(text)

    def test_recursive_alias(self, processor):
        config = {
            "rules": {
                "a": {"type": "alias", "rule": "b"},
                "b": {"type": "alias", "rule": "a"},
            },
            "applications": {"freeform": ["a"]},
        }
        with pytest.raises(ConfigParseError, match="Recursive"):
            processor.parse_config(json.dumps(config))

    def test_unused_rules_are_not_resolved(self, processor):
        config = {"rules": {"a": {"type": "alias", "rule": "missing"}}}
        processor.parse_config(json.dumps(config))


class TestStripPaths:
    """Every node of a processed tree knows its path."""

    def test_paths_populated(self, processor, sample_event):
        result = strip(processor, {}, sample_event)
        assert result.meta.path == "."
        assert resolve(result, "extra.foo.3").meta.path == "extra.foo.3"
        assert all(node.meta.path is not None for node in walk(result))

    def test_paths_match_position(self, processor, sample_event):
        result = strip(processor, {}, sample_event)
        for node in walk(result):
            assert resolve(result, node.meta.path) is node

    def test_empty_config_keeps_values(self, processor, sample_event):
        result = strip(processor, {}, sample_event)
        assert result.value == sample_event.value
        assert result.to_json() == SAMPLE_EVENT


class TestStripPatterns:
    def test_creditcard_replace(self, processor, make_event):
        event = make_event({"message": "card 1234-1234-1234-1234"})
        config = {"applications": {"freeform": ["@creditcard:replace"]}}
        node = resolve(strip(processor, config, event), "message")

        assert node.value == Value.string("card [creditcard]")
        assert len(node.meta.remarks) == 1
        remark = node.meta.remarks[0]
        assert remark.rule_id == "@creditcard:replace"
        assert remark.ty is RemarkType.SUBSTITUTED
        assert remark.range is not None

    def test_creditcard_mask_keeps_last_digits(self, processor, make_event):
        event = make_event({"message": "card 1234-1234-1234-1234"})
        config = {"applications": {"freeform": ["@creditcard:mask"]}}
        node = resolve(strip(processor, config, event), "message")
        assert node.value == Value.string("card ****-****-****-1234")
        assert node.meta.remarks[0].ty is RemarkType.MASKED

    def test_creditcard_hash(self, processor, make_event):
        event = make_event({"message": "card 1234-1234-1234-1234"})
        config = {"applications": {"freeform": ["@creditcard:hash"]}}
        node = resolve(strip(processor, config, event), "message")
        assert re.fullmatch(r"card [0-9A-F]{40}", node.value.data)
        assert node.meta.remarks[0].ty is RemarkType.PSEUDONYMIZED

    def test_hash_is_deterministic(self, processor, make_event):
        event = make_event({"message": "card 1234-1234-1234-1234"})
        config = {"applications": {"freeform": ["@creditcard:hash"]}}
        first = strip(processor, config, event)
        second = strip(processor, config, event)
        assert first.value == second.value

    def test_hash_key_from_vars(self, processor, make_event):
        event = make_event({"message": "card 1234-1234-1234-1234"})
        config = {"applications": {"freeform": ["@creditcard:hash"]}}
        keyed = dict(config, vars={"hashKey": "secret"})
        assert strip(processor, config, event).value != strip(processor, keyed, event).value

    def test_rules_only_apply_to_their_kind(self, processor, make_event):
        event = make_event({"message": "from 10.0.0.1", "user": {"ip_address": "10.0.0.1"}})
        result = strip(processor, {"applications": {"ip": ["@ip:replace"]}}, event)
        assert resolve(result, "message").value == Value.string("from 10.0.0.1")
        assert resolve(result, "user.ip_address").value == Value.string("[ip]")

    def test_databag_applies_to_nested_values(self, processor, sample_event):
        result = strip(processor, {"applications": {"databag": ["@ip:replace"]}}, sample_event)
        assert resolve(result, "extra.foo").to_json() == [1, 2, 3, "[ip]"]

    def test_user_pattern_rule(self, processor, sample_event):
        config = dict(DEVICE_ID_CONFIG, applications={"freeform": ["device_id"]})
        message = resolve(strip(processor, config, sample_event), "message").value.data
        assert "d/deadbeef1234" not in message
        assert message.startswith("Paid with card 1234-1234-1234-1234 on ")

    def test_input_event_untouched(self, processor, sample_event):
        strip(processor, {"applications": {"freeform": ["@creditcard:replace"]}}, sample_event)
        message = resolve(sample_event, "message")
        assert message.value == Value.string(SAMPLE_EVENT["message"])
        assert message.meta.is_empty()
        assert message.meta.path is None


class TestStripCompositeRules:
    def test_multiple_hides_inner_rules(self, processor, make_event):
        event = make_event({"extra": {"a": "1.2.3.4 x@example.com"}})
        config = {
            "rules": {
                "both": {
                    "type": "multiple",
                    "rules": ["@ip:replace", "@email:replace"],
                    "hideInner": True,
                }
            },
            "applications": {"databag": ["both"]},
        }
        node = resolve(strip(processor, config, event), "extra.a")
        assert node.value == Value.string("[ip] [email]")
        assert {r.rule_id for r in node.meta.remarks} == {"both"}

    def test_alias_reports_inner_rule(self, processor, make_event):
        event = make_event({"extra": {"a": "1.2.3.4"}})
        config = {
            "rules": {"myip": {"type": "alias", "rule": "@ip:replace"}},
            "applications": {"databag": ["myip"]},
        }
        node = resolve(strip(processor, config, event), "extra.a")
        assert node.value == Value.string("[ip]")
        assert node.meta.remarks[0].rule_id == "@ip:replace"


class TestStripRedactPair:
    def test_removes_matching_key(self, processor, sample_event):
        config = {
            "rules": {"remove_foo": {"type": "redactPair", "keyPattern": "foo"}},
            "applications": {"databag": ["remove_foo"]},
        }
        result = strip(processor, config, sample_event)
        node = resolve(result, "extra.foo")
        assert node.value is None
        assert node.meta.remarks[0].ty is RemarkType.REMOVED
        assert resolve(result, "extra").value is not None

    def test_builtin_password_rule(self, processor, make_event):
        event = make_event({"extra": {"password": "hunter2", "user": "alice"}})
        result = strip(processor, {"applications": {"databag": ["@password:remove"]}}, event)
        assert resolve(result, "extra.password").value is None
        assert resolve(result, "extra.user").value == Value.string("alice")

    def test_replaces_scalar_values(self, processor, make_event):
        event = make_event({"extra": {"count": 5}})
        config = {
            "rules": {
                "r": {
                    "type": "redactPair",
                    "keyPattern": "count",
                    "redaction": {"method": "replace", "text": "[x]"},
                }
            },
            "applications": {"databag": ["r"]},
        }
        node = resolve(strip(processor, config, event), "extra.count")
        assert node.value == Value.string("[x]")
        assert node.meta.remarks[0].ty is RemarkType.SUBSTITUTED

    def test_array_indices_are_not_keys(self, processor, sample_event):
        config = {
            "rules": {"r": {"type": "redactPair", "keyPattern": "3"}},
            "applications": {"databag": ["r"]},
        }
        result = strip(processor, config, sample_event)
        assert resolve(result, "extra.foo.3").value == Value.string("127.0.0.1")


class TestProcessorSettings:
    def test_default_hash_key(self, catalog, make_event):
        event = make_event({"message": "card 1234-1234-1234-1234"})
        config = {"applications": {"freeform": ["@creditcard:hash"]}}
        plain = RedactionProcessor(catalog=catalog)
        keyed = RedactionProcessor(catalog=catalog, hash_key="k")
        assert strip(plain, config, event).value != strip(keyed, config, event).value


class TestRecognizerCache:
    def test_user_patterns_are_reused(self):
        assert user_pattern_recognizer("d/[a-f0-9]{12}") is user_pattern_recognizer(
            "d/[a-f0-9]{12}"
        )

    def test_user_pattern_cache_is_bounded(self):
        info = user_pattern_recognizer.cache_info()
        assert info.maxsize == USER_RECOGNIZER_CACHE_SIZE

    def test_named_patterns_are_reused(self):
        assert named_pattern_recognizer("ip") is named_pattern_recognizer("ip")
