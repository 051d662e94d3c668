"""Tests for exclusion, deduplication and the canonical sort."""

import pandas as pd
import pytest
from conftest import make_frame

from camtrap_capture.errors import MissingColumnError, NoDataError
from camtrap_capture.observation_filter import (
    canonical_sort,
    dedup_and_sort,
    drop_duplicate_observations,
    exclude_tags,
    prepare_observations,
)
from camtrap_capture.records import DEFAULT_EXCLUDE_TAGS, TagType


@pytest.fixture
def mixed_rows():
    return make_frame(
        [
            ("site2", "2024-05-01 12:00:00", "Fox"),
            ("site1", "2024-05-01 10:05:00", "Blank"),
            ("site1", "2024-05-01 10:00:00", "Fox"),
            ("site1", "2024-05-01 09:00:00", "Deer"),
            ("site1", "2024-05-01 10:00:00", "Fox"),
            ("site1", "2024-05-01 10:10:00", "Human"),
            ("site1", "2024-05-01 08:00:00", "Fox"),
        ]
    )


class TestExcludeTags:
    """Rows dropped before analysis."""

    def test_default_exclusion(self, mixed_rows):
        filtered = exclude_tags(mixed_rows, TagType.SPECIES)
        assert set(filtered["species"]) == {"Fox", "Deer"}
        assert len(filtered) == 5

    def test_no_exclude_keeps_administrative_tags(self, mixed_rows):
        filtered = exclude_tags(mixed_rows, TagType.SPECIES, no_exclude=True)
        assert len(filtered) == len(mixed_rows)

    def test_custom_exclude_list(self, mixed_rows):
        filtered = exclude_tags(mixed_rows, TagType.SPECIES, exclude=["Deer"])
        assert "Deer" not in set(filtered["species"])
        assert "Blank" in set(filtered["species"])

    def test_null_keys_always_dropped(self):
        df = make_frame([("site1", "2024-05-01 10:00:00", "Fox"), ("site1", "2024-05-01 10:30:00", "Fox")])
        df.loc[1, "time"] = pd.NaT
        df = pd.concat([df, make_frame([("site1", "2024-05-01 11:00:00", "Fox")])], ignore_index=True)
        df.loc[2, "deployment"] = None
        for no_exclude in (False, True):
            filtered = exclude_tags(df, TagType.SPECIES, no_exclude=no_exclude)
            assert len(filtered) == 1

    def test_missing_column(self, mixed_rows):
        with pytest.raises(MissingColumnError, match="individual"):
            exclude_tags(mixed_rows, TagType.INDIVIDUAL)

    def test_empty_string_is_excluded_by_default(self):
        assert "" in DEFAULT_EXCLUDE_TAGS
        df = make_frame([("site1", "2024-05-01 10:00:00", ""), ("site1", "2024-05-01 10:00:00", "Fox")])
        assert exclude_tags(df, TagType.SPECIES)["species"].tolist() == ["Fox"]


class TestDedupAndSort:
    """Uniqueness and ordering of the analyzed table."""

    def test_exact_duplicates_collapse(self, mixed_rows):
        deduped = drop_duplicate_observations(mixed_rows, TagType.SPECIES)
        keys = deduped[["deployment", "time", "species"]]
        assert not keys.duplicated().any()
        assert len(deduped) == len(mixed_rows) - 1

    def test_canonical_order(self, mixed_rows):
        ordered = canonical_sort(mixed_rows, TagType.SPECIES)
        keys = list(zip(ordered["deployment"], ordered["species"], ordered["time"]))
        assert keys == sorted(keys)
        assert ordered.index.tolist() == list(range(len(ordered)))

    def test_sort_is_stable_on_ties(self):
        df = make_frame([("s1", "2024-05-01 10:00:00", "Fox"), ("s1", "2024-05-01 10:00:00", "Fox")])
        ordered = canonical_sort(df, TagType.SPECIES)
        assert ordered["path"].tolist() == df["path"].tolist()

    def test_empty_after_filtering(self):
        df = make_frame([("site1", "2024-05-01 10:00:00", "Blank")])
        with pytest.raises(NoDataError, match="No records to analyze"):
            prepare_observations(df, TagType.SPECIES)

    def test_idempotent(self, mixed_rows):
        once = prepare_observations(mixed_rows, TagType.SPECIES)
        twice = prepare_observations(once, TagType.SPECIES)
        pd.testing.assert_frame_equal(once, twice)

    def test_dedup_and_sort_on_filtered_table(self, mixed_rows):
        prepared = dedup_and_sort(exclude_tags(mixed_rows, TagType.SPECIES), TagType.SPECIES)
        assert prepared["species"].tolist() == ["Deer", "Fox", "Fox", "Fox"]
        assert prepared["deployment"].tolist() == ["site1", "site1", "site1", "site2"]
