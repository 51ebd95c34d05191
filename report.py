"""
Build the year-end summary from the frequency tables and works dataset, and
render it as text.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Dict, List, Optional

from stats import AggregateTables, TabularDataset

DAYS_PER_YEAR = 365
WORDS_PER_NOVEL = 70000
RUNNERS_UP = 9

RANKED_TABLES = ['ship_types', 'ratings', 'authors', 'fandoms', 'ships', 'characters', 'tags']
EXTREME_COLUMNS = ['word_count', 'hits', 'kudos']


@dataclass
class Ranking:
    top: Optional[tuple]
    runners_up: List[tuple] = field(default_factory=list)
    distinct: int = 0


@dataclass
class Extreme:
    column: str
    most: dict
    least: dict
    mean: int


@dataclass
class Summary:
    total_works: int
    total_words: int
    words_per_day: float
    novels: float
    most_visited: Optional[dict]
    rankings: Dict[str, Ranking]
    top_statuses: List[tuple]
    tags_per_work: float
    extremes: Dict[str, Extreme]

    def to_dict(self):
        return asdict(self)


def _top(counts, n):
    return sorted(counts.items(), key=lambda item: item[1], reverse=True)[:n]


def rank(counts, runners_up=RUNNERS_UP) -> Ranking:
    """Sort by descending count; equal counts keep the table's order."""
    ordered = _top(counts, None)
    if not ordered:
        return Ranking(top=None)
    return Ranking(top=ordered[0], runners_up=ordered[1:1 + runners_up], distinct=len(ordered))


def _work(row, column):
    return {'title': row['title'], 'authors': row['authors'], column: int(row[column])}


def build_summary(tables: AggregateTables, dataset: TabularDataset) -> Summary:
    frame = dataset.to_frame()
    total_works = len(frame)

    most_visited = None
    extremes = {}
    if total_works:
        most_visited = _work(frame.loc[frame['user_visitations'].idxmax()], 'user_visitations')
        for column in EXTREME_COLUMNS:
            extremes[column] = Extreme(
                column=column,
                most=_work(frame.loc[frame[column].idxmax()], column),
                least=_work(frame.loc[frame[column].idxmin()], column),
                mean=int(frame[column].mean()),
            )

    return Summary(
        total_works=total_works,
        total_words=tables.user_word_count,
        words_per_day=tables.user_word_count / DAYS_PER_YEAR,
        novels=tables.user_word_count / WORDS_PER_NOVEL,
        most_visited=most_visited,
        rankings={name: rank(tables.table(name)) for name in RANKED_TABLES},
        top_statuses=_top(tables.statuses, 2),
        tags_per_work=len(tables.tags) / total_works if total_works else 0.0,
        extremes=extremes,
    )


def _top_and_rest(lines, ranking, intro, also, fmt):
    if ranking.top is None:
        return
    key, count = ranking.top
    lines.append(intro.format(key=key, count=count, distinct=ranking.distinct))
    if ranking.runners_up:
        lines.append(also)
        lines.extend(fmt(key, count) for key, count in ranking.runners_up)
    lines.append("")


def render_text(summary: Summary, year) -> str:
    if not summary.total_works:
        return f"You haven't read any fanfics in {year}. Nothing to wrap up yet."

    lines = [
        f"You've read {summary.total_works} fanfics in {year}, totaling {summary.total_words} words, "
        f"or {summary.words_per_day:.2f} words/day. There's about {WORDS_PER_NOVEL} words in a novel. "
        f"You could've read {summary.novels:.2f} novels this year, but you read fanfics instead.",
        "",
    ]

    visited = summary.most_visited
    lines.append(
        f"The fic you've visited the most was {visited['title']} by {visited['authors']}, "
        f"with {visited['user_visitations']} visits."
    )
    lines.append("")

    rankings = summary.rankings
    plain = lambda key, count: f"{count} {key} fics"
    _top_and_rest(lines, rankings['ship_types'], "You read {count} {key} fics this year.", "You also read", plain)
    _top_and_rest(lines, rankings['ratings'], "You read {count} {key} fics this year.", "You also read", plain)

    if len(summary.top_statuses) >= 2:
        (first, first_count), (second, second_count) = summary.top_statuses
        lines.append(f"You read {first_count} {first} and {second_count} {second} fics this year.")
        lines.append("")

    _top_and_rest(
        lines, rankings['authors'],
        "You read {distinct} different authors this year.\n"
        "Your most read author this year was {key}, with {count} fics.",
        "You also read:", lambda key, count: f"{count} fics by {key}",
    )
    _top_and_rest(
        lines, rankings['fandoms'],
        "You read fics for {distinct} different fandoms this year.\n"
        "Your most read fandom was {key}, with {count} fics this year.",
        "You also read:", plain,
    )
    _top_and_rest(
        lines, rankings['ships'],
        "You read fics with {distinct} different ships this year.\n"
        "Are you not tired of reading about {key}? You read {count} fics of them this year.",
        "You also read:", plain,
    )
    _top_and_rest(
        lines, rankings['characters'],
        "You read about {distinct} different characters this year.\n"
        "What a {key} stan. You read {count} fics of them this year.",
        "You also read:", plain,
    )
    _top_and_rest(
        lines, rankings['tags'],
        f"You read fics with {{distinct}} different tags this year, averaging {summary.tags_per_work:.2f} tags/work.\n"
        "You absolutely love {key}, but you already knew that. You read {count} fics with that tag this year.",
        "You also read:", plain,
    )

    labels = {'word_count': 'word count', 'hits': 'hits', 'kudos': 'kudos'}
    for column, extreme in summary.extremes.items():
        label = labels[column]
        for name, work in (("Most", extreme.most), ("Least", extreme.least)):
            lines.append(f"{name} {label}: {work['title']} by {work['authors']} with {work[column]} {label}")
        lines.append(f"Average {label}: {extreme.mean}")
        lines.append("")

    return "\n".join(lines).rstrip() + "\n"
