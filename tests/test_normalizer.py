"""Unit tests for record normalization - no internet required."""

from datetime import datetime, timezone

import pytest

from xthreads.core.normalizer import (
    get_record_id,
    normalize_count,
    normalize_post,
    normalize_snapshot,
    parse_created_at,
    resolve_reply_target_id,
)
from xthreads.models.post import CanonicalPost, PostSnapshot, Provenance


class TestNormalizeCount:
    """Test count coercion."""

    @pytest.mark.parametrize(
        "raw, expected",
        [
            (42, 42),
            ("500", 500),
            ("1,234", 1234),
            ("1.2K", 1200),
            ("3M", 3_000_000),
            (None, 0),
            ("", 0),
            ("n/a", 0),
            (-5, 0),
            ("inf", 0),
            ("Infinity", 0),
            ("1e400", 0),
            ("1e400K", 0),
            (float("inf"), 0),
        ],
    )
    def test_values(self, raw, expected):
        assert normalize_count(raw) == expected


class TestParseCreatedAt:
    """Test timestamp parsing."""

    def test_twitter_format(self):
        parsed = parse_created_at("Mon Jan 01 10:00:00 +0000 2024")
        assert parsed == datetime(2024, 1, 1, 10, 0, tzinfo=timezone.utc)

    def test_iso_with_z(self):
        parsed = parse_created_at("2026-01-18T18:17:20.000Z")
        assert parsed == datetime(2026, 1, 18, 18, 17, 20, tzinfo=timezone.utc)

    def test_naive_iso_is_utc(self):
        parsed = parse_created_at("2024-01-01T10:00:00")
        assert parsed.tzinfo is not None
        assert parsed.hour == 10

    def test_epoch_milliseconds(self):
        parsed = parse_created_at(1704103200000)
        assert parsed == datetime(2024, 1, 1, 10, 0, tzinfo=timezone.utc)

    def test_garbage_is_none(self):
        assert parse_created_at("yesterday-ish") is None
        assert parse_created_at(None) is None

    @pytest.mark.parametrize(
        "value",
        ["9999-12-31T23:59:59-05:00", "0001-01-01T00:00:00+05:00", 10**400],
    )
    def test_out_of_range_is_none(self, value):
        assert parse_created_at(value) is None


class TestRecordId:
    """Test id resolution."""

    def test_id_variants(self):
        assert get_record_id({"id": "1"}) == "1"
        assert get_record_id({"id_str": "2"}) == "2"
        assert get_record_id({"rest_id": 3}) == "3"

    def test_missing_or_invalid(self):
        assert get_record_id({"text": "no id"}) is None
        assert get_record_id({"id": ""}) is None
        assert get_record_id("not a record") is None


class TestNormalizePost:
    """Test canonical post construction."""

    def test_drops_record_without_id(self):
        assert normalize_post({"text": "orphan"}) is None
        assert normalize_post(None) is None

    def test_camel_case_record(self, make_raw):
        raw = make_raw("1", likeCount=5, retweetCount=2, replyCount=1, quoteCount=3, viewCount=100)
        post = normalize_post(raw, Provenance.INCLUDED)

        assert isinstance(post, CanonicalPost)
        assert post.id == "1"
        assert post.author.username == "user1"
        assert post.author.display_name == "User 1"
        assert (post.like_count, post.retweet_count, post.reply_count, post.quote_count) == (5, 2, 1, 3)
        assert post.view_count == 100
        assert post.provenance == Provenance.INCLUDED

    def test_snake_case_and_nested_metrics(self):
        raw = {
            "id_str": "7",
            "full_text": "legacy text",
            "created_at": "Mon Jan 01 10:00:00 +0000 2024",
            "public_metrics": {"like_count": 9, "retweet_count": 1, "impression_count": 50},
            "user": {"screen_name": "legacy", "name": "Legacy User"},
        }
        post = normalize_post(raw)

        assert post.text == "legacy text"
        assert post.like_count == 9
        assert post.retweet_count == 1
        assert post.reply_count == 0
        assert post.view_count == 50
        assert post.author.username == "legacy"

    def test_view_count_absent_not_zero(self, make_raw):
        post = normalize_post(make_raw("1"))
        assert post.view_count is None
        assert post.like_count == 0

    def test_text_defaults_to_empty(self):
        post = normalize_post({"id": "1"})
        assert post.text == ""
        assert post.created_at is None

    def test_media_and_card(self, make_raw):
        raw = make_raw(
            "1",
            entities={"media": [{"type": "video", "media_url_https": "https://m/1.mp4"}, {"type": "photo"}]},
            card={"title": "T", "domain": "example.org", "photo_image_full_size_large": "https://i/1.jpg"},
        )
        post = normalize_post(raw)

        assert [(m.type, m.url) for m in post.media] == [("video", "https://m/1.mp4")]
        assert post.link_preview.title == "T"
        assert post.link_preview.image_url == "https://i/1.jpg"
        assert post.link_preview.description is None

    def test_empty_card_is_ignored(self, make_raw):
        assert normalize_post(make_raw("1", card={})).link_preview is None


class TestReplyLinkage:
    """Test the collapse of reply representations into one id."""

    def test_explicit_field_wins(self):
        raw = {"id": "2", "inReplyToId": "1", "in_reply_to_status_id": "99"}
        assert resolve_reply_target_id(raw) == "1"

    @pytest.mark.parametrize(
        "field",
        [
            "in_reply_to_id",
            "inReplyToStatusId",
            "in_reply_to_status_id",
            "in_reply_to_status_id_str",
            "inReplyToTweetId",
            "in_reply_to_tweet_id",
            "replyToId",
        ],
    )
    def test_alternate_fields(self, field):
        assert resolve_reply_target_id({"id": "2", field: "1"}) == "1"

    def test_reference_list_entry(self):
        raw = {"id": "5", "referenced_tweets": [{"type": "quoted", "id": "3"}, {"type": "replied_to", "id": "4"}]}
        assert resolve_reply_target_id(raw) == "4"

    def test_inline_embed(self):
        raw = {"id": "5", "repliedTo": {"id": "4", "text": "parent"}}
        assert resolve_reply_target_id(raw) == "4"

    def test_is_reply_computed(self):
        post = normalize_post({"id": "2", "in_reply_to_id": 1})
        assert post.is_reply is True
        assert post.in_reply_to_id == "1"

    def test_explicit_is_reply_flag_kept(self):
        post = normalize_post({"id": "2", "isReply": False, "inReplyToId": "1"})
        assert post.is_reply is False
        assert post.in_reply_to_id == "1"

    def test_not_a_reply(self, make_raw):
        post = normalize_post(make_raw("1"))
        assert post.is_reply is False
        assert post.in_reply_to_id is None

    def test_referenced_ids_collects_all_types(self):
        raw = {"id": "5", "referencedTweets": [{"type": "quoted", "id": "3"}, {"type": "replied_to", "tweet": {"id": "4"}}]}
        post = normalize_post(raw)
        assert post.referenced_ids == ["3", "4"]

    def test_linkage_fields(self):
        raw = {
            "id": "2",
            "inReplyToId": "1",
            "inReplyToUserId": 77,
            "in_reply_to_screen_name": "someone",
            "conversationId": "1",
        }
        post = normalize_post(raw)
        assert post.in_reply_to_user_id == "77"
        assert post.in_reply_to_username == "someone"
        assert post.conversation_id == "1"


class TestDisplayText:
    """Test mention trimming for replies."""

    def test_range_applied_to_replies(self):
        raw = {"id": "2", "text": "@alice hello", "displayTextRange": [7, 12], "inReplyToId": "1"}
        assert normalize_post(raw).display_text == "hello"

    def test_range_ignored_for_non_replies(self):
        raw = {"id": "2", "text": "@alice hello", "displayTextRange": [7, 12]}
        assert normalize_post(raw).display_text == "@alice hello"

    def test_invalid_range_falls_back(self):
        raw = {"id": "2", "text": "short", "displayTextRange": [0, 99], "inReplyToId": "1"}
        assert normalize_post(raw).display_text == "short"

    def test_trimming_can_be_disabled(self):
        raw = {"id": "2", "text": "@alice hello", "displayTextRange": [7, 12], "inReplyToId": "1"}
        post = normalize_post(raw, trim_reply_mentions=False)
        assert post.display_text == "@alice hello"


class TestNormalizeSnapshot:
    """Test the depth-limited snapshot path."""

    def test_snapshot_has_no_linkage(self):
        raw = {
            "id": "4",
            "text": "parent",
            "inReplyToId": "3",
            "conversationId": "3",
            "repliedTo": {"id": "3", "text": "grandparent"},
            "children": [{"id": "5"}],
        }
        snapshot = normalize_snapshot(raw)

        assert type(snapshot) is PostSnapshot
        assert snapshot.id == "4"
        assert not hasattr(snapshot, "replied_to")
        assert not hasattr(snapshot, "children")
        assert "in_reply_to_id" not in snapshot.model_dump()

    def test_snapshot_requires_id(self):
        assert normalize_snapshot({"text": "x"}) is None
