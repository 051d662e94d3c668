"""Tests for the count tables and the summary report."""

import pytest
from conftest import make_frame

from camtrap_capture.aggregate import StageCounts, count_all, count_by_deployment, generate_summary_report
from camtrap_capture.config import CaptureConfig
from camtrap_capture.independence import detect_independent
from camtrap_capture.records import TagType


@pytest.fixture
def independent():
    df = make_frame(
        [
            ("s2", "2024-05-01 08:00:00", "Fox"),
            ("s1", "2024-05-01 10:00:00", "Fox"),
            ("s1", "2024-05-01 12:00:00", "Fox"),
            ("s1", "2024-05-01 09:00:00", "Deer"),
            ("s2", "2024-05-01 09:00:00", "Badger"),
        ]
    )
    return detect_independent(df, TagType.SPECIES, 30)


class TestCounts:
    def test_count_by_deployment_first_seen_order(self, independent):
        counts = count_by_deployment(independent, TagType.SPECIES)
        assert list(counts.columns) == ["deployment", "species", "count"]
        assert list(counts.itertuples(index=False, name=None)) == [
            ("s1", "Deer", 1),
            ("s1", "Fox", 2),
            ("s2", "Badger", 1),
            ("s2", "Fox", 1),
        ]

    def test_count_all(self, independent):
        counts = count_all(independent)
        assert list(counts.columns) == ["species", "count"]
        assert dict(zip(counts["species"], counts["count"])) == {"Deer": 1, "Fox": 3, "Badger": 1}
        assert counts["species"].tolist() == ["Deer", "Fox", "Badger"]

    def test_counts_are_consistent(self, independent):
        by_deployment = count_by_deployment(independent, TagType.SPECIES)
        totals = by_deployment.groupby("species")["count"].sum()
        for species, count in count_all(independent).itertuples(index=False, name=None):
            assert totals[species] == count
        assert by_deployment["count"].sum() == len(independent)


class TestSummaryReport:
    def test_report_contents(self, tmp_path, independent):
        config = CaptureConfig(min_delta_time=30, deployment_index=4, output_dir=tmp_path)
        stages = StageCounts(loaded=9, filtered=7, deduplicated=6, independent=5, deployments=2)
        report = tmp_path / "capture_summary.txt"

        generate_summary_report(report, config, stages, count_by_deployment(independent, "species"))

        text = report.read_text(encoding="utf-8")
        assert "Minimum time difference: 30 minutes" in text
        assert "LastIndependentRecord (LIR)" in text
        assert "Removed by filtering: 2" in text
        assert "Duplicates removed: 1" in text
        assert "Fox: 3" in text
        assert "Records assigned to an event" not in text

    def test_stage_properties(self):
        stages = StageCounts(loaded=10, filtered=8, deduplicated=5, independent=3, deployments=1, events_assigned=8)
        assert stages.excluded == 2
        assert stages.duplicates == 3
