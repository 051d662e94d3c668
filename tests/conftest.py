"""Shared fixtures for the capture pipeline tests."""

import matplotlib

matplotlib.use("Agg")

import pandas as pd
import pytest

from camtrap_capture.records import TagType


def make_frame(rows, target=TagType.SPECIES):
    """Observation table from (deployment, 'yyyy-MM-dd HH:mm:ss', tag) tuples."""
    tag_col = TagType.parse(target).col_name
    return pd.DataFrame(
        {
            "path": [f"/data/{dep}/IMG_{i:04d}.JPG" for i, (dep, _, _) in enumerate(rows)],
            "deployment": [dep for dep, _, _ in rows],
            "time": pd.to_datetime([t for _, t, _ in rows]),
            tag_col: [tag for _, _, tag in rows],
        }
    )


@pytest.fixture
def fox_rows():
    """Three Fox detections at site1: 10:00, 10:15, 10:50."""
    return make_frame(
        [
            ("site1", "2024-05-01 10:00:00", "Fox"),
            ("site1", "2024-05-01 10:15:00", "Fox"),
            ("site1", "2024-05-01 10:50:00", "Fox"),
        ]
    )


@pytest.fixture
def tags_csv(tmp_path):
    """A small tags.csv laid out like an exported project folder."""
    content = (
        "path,datetime,species,individual\n"
        "/mnt/survey/project/siteA/100EK113/IMG_0001.JPG,2024-05-01 10:00:00,Fox,F1\n"
        "/mnt/survey/project/siteA/100EK113/IMG_0002.JPG,2024-05-01 10:15:00,Fox,F1\n"
        "/mnt/survey/project/siteA/100EK113/IMG_0003.JPG,2024-05-01 10:50:00,Fox,F2\n"
        "/mnt/survey/project/siteA/100EK113/IMG_0004.JPG,2024-05-01 10:20:00,Blank,\n"
        "/mnt/survey/project/siteB/100EK113/IMG_0001.JPG,2024-05-01 09:00:00,Deer,D1\n"
        "/mnt/survey/project/siteB/100EK113/IMG_0002.JPG,2024-05-01 09:00:00,Deer,D1\n"
        "/mnt/survey/project/siteB/100EK113/IMG_0003.JPG,2024-05-02 09:00:00,Fox,F3\n"
        "/mnt/survey/project/siteB/100EK113/IMG_0004.JPG,,Deer,D1\n"
    )
    path = tmp_path / "tags.csv"
    path.write_text(content, encoding="utf-8")
    return path
