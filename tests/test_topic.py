"""Tests for topic string helpers and the ingestion policy."""

import pytest

from core.exceptions import InvalidTopic
from core.topic import depth, leaf_name, parent, parents, validate_topic


class TestParents:
    def test_root_level_has_no_parents(self):
        assert parents("foo") == []

    def test_one_separator(self):
        assert parents("foo/bar") == ["foo"]

    def test_root_first_order(self):
        assert parents("a/b/c/d") == ["a", "a/b", "a/b/c"]

    def test_count_matches_separators(self):
        topic = "e/f/g/h/i"
        assert len(parents(topic)) == topic.count("/")

    def test_segments_with_spaces_and_dots(self):
        assert parents("my home/living.room/temp") == ["my home", "my home/living.room"]

    def test_empty_string_has_no_parents(self):
        assert parents("") == []


def test_parent():
    assert parent("a/b/c") == "a/b"
    assert parent("a") is None


def test_depth():
    assert depth("a") == 0
    assert depth("a/b/c") == 2


def test_leaf_name():
    assert leaf_name("a/b/temperature") == "temperature"
    assert leaf_name("root") == "root"


class TestValidateTopic:
    def test_valid_topic_is_returned(self):
        assert validate_topic("sensors/room1/temp") == "sensors/room1/temp"

    @pytest.mark.parametrize(
        "topic,reason",
        [
            ("", "topic must not be empty"),
            ("/a", "leading separator"),
            ("a/", "trailing separator"),
            ("a//b", "empty level"),
            ("/", "leading separator"),
        ],
    )
    def test_rejected(self, topic, reason):
        with pytest.raises(InvalidTopic) as exc_info:
            validate_topic(topic)
        assert exc_info.value.reason == reason
        assert exc_info.value.to_dict()["details"]["topic"] == topic
