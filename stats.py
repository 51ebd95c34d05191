"""
Frequency tables and the per-work dataset built up while scraping a year.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field

import pandas as pd

COLUMNS = [
    'title',
    'authors',
    'last_updated',
    'fandoms',
    'characters',
    'ship_types',
    'rating',
    'work_status',
    'ships',
    'additional_tags',
    'word_count',
    'kudos',
    'hits',
    'user_last_visited',
    'user_visitations',
]
NUMERIC_COLUMNS = ['word_count', 'kudos', 'hits', 'user_visitations']
LIST_DELIMITER = ","

# counter attribute -> key used in the persisted stats file
_TABLE_KEYS = {
    'authors': 'user_authors',
    'fandoms': 'user_fandoms',
    'ship_types': 'user_ship_type',
    'ratings': 'user_rating',
    'statuses': 'user_status',
    'ships': 'user_ships',
    'characters': 'user_characters',
    'tags': 'user_tags',
}


@dataclass
class AggregateTables:
    authors: Counter = field(default_factory=Counter)
    fandoms: Counter = field(default_factory=Counter)
    ship_types: Counter = field(default_factory=Counter)
    ratings: Counter = field(default_factory=Counter)
    statuses: Counter = field(default_factory=Counter)
    ships: Counter = field(default_factory=Counter)
    characters: Counter = field(default_factory=Counter)
    tags: Counter = field(default_factory=Counter)
    user_word_count: int = 0
    title_lower_count: int = 0

    def table(self, name) -> Counter:
        if name not in _TABLE_KEYS:
            raise KeyError(f"Unknown stats table: {name}")
        return getattr(self, name)

    def to_dict(self):
        data = {key: dict(getattr(self, name)) for name, key in _TABLE_KEYS.items()}
        data['user_word_count'] = self.user_word_count
        data['title_lower_count'] = self.title_lower_count
        return data

    @classmethod
    def from_dict(cls, data):
        tables = {name: Counter(data.get(key, {})) for name, key in _TABLE_KEYS.items()}
        return cls(
            **tables,
            user_word_count=int(data.get('user_word_count', 0)),
            title_lower_count=int(data.get('title_lower_count', 0)),
        )


class TabularDataset:
    """Append-only rows, one per accepted work, list fields comma-joined."""

    def __init__(self, rows=None):
        self._rows = list(rows or [])

    def append(self, row):
        self._rows.append({column: row[column] for column in COLUMNS})

    @property
    def rows(self):
        return list(self._rows)

    def __len__(self):
        return len(self._rows)

    def __iter__(self):
        return iter(self._rows)

    def to_frame(self) -> pd.DataFrame:
        frame = pd.DataFrame(self._rows, columns=COLUMNS)
        return frame.astype({column: 'int64' for column in NUMERIC_COLUMNS})

    @classmethod
    def from_frame(cls, frame: pd.DataFrame) -> "TabularDataset":
        dataset = cls()
        for row in frame[COLUMNS].to_dict('records'):
            for column in NUMERIC_COLUMNS:
                row[column] = int(row[column])
            dataset.append(row)
        return dataset


def record_to_row(record):
    return {
        'title': record.title,
        'authors': LIST_DELIMITER.join(record.authors),
        'last_updated': record.last_updated,
        'fandoms': LIST_DELIMITER.join(record.fandoms),
        'characters': LIST_DELIMITER.join(record.characters),
        'ship_types': LIST_DELIMITER.join(record.ship_types),
        'rating': record.rating,
        'work_status': record.work_status,
        'ships': LIST_DELIMITER.join(record.ships),
        'additional_tags': LIST_DELIMITER.join(record.additional_tags),
        'word_count': record.word_count,
        'kudos': record.kudos,
        'hits': record.hits,
        'user_last_visited': record.user_last_visited,
        'user_visitations': record.user_visitations,
    }


class StatsAggregator:
    """
    Owns the AggregateTables and TabularDataset for one run and folds each
    accepted WorkRecord into both.
    """

    def __init__(self, tables=None, dataset=None):
        self.tables = tables if tables is not None else AggregateTables()
        self.dataset = dataset if dataset is not None else TabularDataset()

    def absorb(self, record):
        tables = self.tables
        tables.authors.update(record.authors)
        tables.fandoms.update(record.fandoms)
        tables.ship_types.update(record.ship_types)
        tables.ships.update(record.ships)
        tables.characters.update(record.characters)
        tables.tags.update(record.additional_tags)
        tables.ratings[record.rating] += 1
        tables.statuses[record.work_status] += 1
        tables.user_word_count += record.word_count
        if record.title == record.title.lower():
            tables.title_lower_count += 1

        self.dataset.append(record_to_row(record))

    def __len__(self):
        return len(self.dataset)
