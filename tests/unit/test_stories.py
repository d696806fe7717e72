"""Unit tests for story slugs, publication dates and tag normalization."""

import string
import uuid
from datetime import datetime, timedelta, timezone

from inkwell.kernel.models.story import Story, generate_unique_hash
from inkwell.services.story_service import is_published
from inkwell.services.tag_service import normalize_tag_titles

BASE32_LOWER = set(string.ascii_lowercase + "234567")


class TestUniqueHash:

    def test_default_length_and_alphabet(self):
        slug = generate_unique_hash()
        assert len(slug) == 16
        assert set(slug) <= BASE32_LOWER

    def test_custom_length(self):
        assert len(generate_unique_hash(24)) == 24

    def test_random_per_call(self):
        assert len({generate_unique_hash() for _ in range(50)}) == 50


class TestIsPublished:

    def _story(self, published_at):
        return Story(
            author_id=uuid.uuid4(),
            content={"blocks": []},
            unique_hash=generate_unique_hash(),
            published_at=published_at,
        )

    def test_draft_is_not_published(self):
        assert is_published(self._story(None)) is False

    def test_past_date_is_published(self):
        past = datetime.now(timezone.utc) - timedelta(hours=1)
        assert is_published(self._story(past)) is True

    def test_future_date_is_scheduled(self):
        future = datetime.now(timezone.utc) + timedelta(days=1)
        assert is_published(self._story(future)) is False

    def test_naive_datetime_treated_as_utc(self):
        naive_past = datetime.now(timezone.utc).replace(tzinfo=None) - timedelta(minutes=5)
        assert is_published(self._story(naive_past)) is True


class TestNormalizeTagTitles:

    def test_strips_lowercases_and_dedupes_in_order(self):
        assert normalize_tag_titles([" Python", "sql", "python ", "", "  ", "SQL", "Go"]) == [
            "python", "sql", "go",
        ]

    def test_empty(self):
        assert normalize_tag_titles([]) == []
