"""
Read and write the per-year stats file and works table.

Two artifacts per year live side by side in the output directory:
``user_{year}.json`` holds the frequency tables and word total, and
``works_{year}.csv`` holds one row per work. Loading both back is what the
stats-only mode uses to rebuild a report without scraping again.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pandas as pd

from stats import COLUMNS, NUMERIC_COLUMNS, AggregateTables, TabularDataset

logger = logging.getLogger(__name__)


class ArtifactMissing(FileNotFoundError):
    pass


def stats_path(year, output_dir=".") -> Path:
    return Path(output_dir) / f"user_{year}.json"


def works_path(year, output_dir=".") -> Path:
    return Path(output_dir) / f"works_{year}.csv"


def save(tables: AggregateTables, dataset: TabularDataset, year, output_dir="."):
    """Write both artifacts for ``year`` and return their paths."""
    output = Path(output_dir)
    output.mkdir(parents=True, exist_ok=True)

    user_file = stats_path(year, output)
    user_file.write_text(json.dumps(tables.to_dict(), indent=2, ensure_ascii=False), encoding="utf-8")

    works_file = works_path(year, output)
    dataset.to_frame().to_csv(works_file, index=False, encoding="utf-8")

    logger.info("Saved %s works to %s and %s", len(dataset), works_file, user_file)
    return user_file, works_file


def load(year, output_dir="."):
    """Rebuild (AggregateTables, TabularDataset) from the saved artifacts."""
    user_file = stats_path(year, output_dir)
    works_file = works_path(year, output_dir)
    if not user_file.exists():
        raise ArtifactMissing(f"User stats file not found: {user_file}")
    if not works_file.exists():
        raise ArtifactMissing(f"Works file not found: {works_file}")

    tables = AggregateTables.from_dict(json.loads(user_file.read_text(encoding="utf-8")))

    text_columns = {column: str for column in COLUMNS if column not in NUMERIC_COLUMNS}
    frame = pd.read_csv(works_file, dtype=text_columns, keep_default_na=False, encoding="utf-8")
    dataset = TabularDataset.from_frame(frame)

    logger.info("Loaded %s works from %s", len(dataset), works_file)
    return tables, dataset
