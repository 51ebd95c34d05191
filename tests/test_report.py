"""Tests for the year-end summary."""

from collections import Counter

import pytest

from history_parser import WorkRecord
from report import build_summary, rank, render_text
from stats import StatsAggregator


def _work(title, words, kudos, hits, visits=1, authors=("writer",), **fields):
    return WorkRecord(
        title=title,
        authors=list(authors),
        word_count=words,
        kudos=kudos,
        hits=hits,
        user_visitations=visits,
        rating=fields.pop("rating", "Teen And Up Audiences"),
        work_status=fields.pop("work_status", "Complete Work"),
        **fields,
    )


@pytest.fixture
def summary():
    aggregator = StatsAggregator()
    aggregator.absorb(_work("Short", 700, 5, 50, fandoms=["Star Trek"], ship_types=["M/M"],
                            additional_tags=["Fluff"]))
    aggregator.absorb(_work("Long", 70000, 900, 10000, visits=7, authors=("novelist",),
                            fandoms=["Star Trek", "Star Wars"], ship_types=["M/M", "F/F"],
                            work_status="Work in Progress", additional_tags=["Angst", "Fluff"]))
    aggregator.absorb(_work("Middle", 2300, 40, 700, visits=7, fandoms=["Star Wars"], ship_types=["Gen"]))
    return build_summary(aggregator.tables, aggregator.dataset)


class TestRank:
    def test_descending_with_runners_up(self):
        counts = Counter({f"tag{i}": i for i in range(1, 13)})

        ranking = rank(counts)

        assert ranking.top == ("tag12", 12)
        assert len(ranking.runners_up) == 9
        assert ranking.runners_up[0] == ("tag11", 11)
        assert ranking.distinct == 12

    def test_ties_keep_table_order(self):
        ranking = rank(Counter({"b": 2, "a": 2, "c": 5}))
        assert ranking.top == ("c", 5)
        assert ranking.runners_up == [("b", 2), ("a", 2)]

    def test_empty(self):
        assert rank(Counter()).top is None


class TestBuildSummary:
    def test_totals(self, summary):
        assert summary.total_works == 3
        assert summary.total_words == 73000
        assert summary.words_per_day == pytest.approx(73000 / 365)
        assert summary.novels == pytest.approx(73000 / 70000)

    def test_most_visited_is_first_with_max(self, summary):
        assert summary.most_visited == {"title": "Long", "authors": "novelist", "user_visitations": 7}

    def test_rankings(self, summary):
        assert summary.rankings["ship_types"].top == ("M/M", 2)
        assert summary.rankings["fandoms"].top == ("Star Trek", 2)
        assert summary.rankings["authors"].top == ("writer", 2)
        assert summary.rankings["tags"].top == ("Fluff", 2)
        assert summary.top_statuses == [("Complete Work", 2), ("Work in Progress", 1)]
        assert summary.tags_per_work == pytest.approx(2 / 3)

    def test_extremes(self, summary):
        words = summary.extremes["word_count"]
        assert words.most["title"] == "Long"
        assert words.least["title"] == "Short"
        assert words.mean == 24333
        assert summary.extremes["kudos"].least == {"title": "Short", "authors": "writer", "kudos": 5}
        assert summary.extremes["hits"].mean == 3583

    def test_to_dict_is_plain_data(self, summary):
        data = summary.to_dict()
        assert data["rankings"]["fandoms"]["distinct"] == 2
        assert data["extremes"]["hits"]["most"]["hits"] == 10000


class TestRenderText:
    def test_mentions_headline_numbers(self, summary):
        text = render_text(summary, 2024)

        assert "You've read 3 fanfics in 2024, totaling 73000 words, or 200.00 words/day." in text
        assert "You could've read 1.04 novels this year" in text
        assert "The fic you've visited the most was Long by novelist, with 7 visits." in text
        assert "You read 2 M/M fics this year." in text
        assert "You read 2 Complete Work and 1 Work in Progress fics this year." in text
        assert "Your most read fandom was Star Trek, with 2 fics this year." in text
        assert "Most word count: Long by novelist with 70000 word count" in text
        assert "Average kudos: 315" in text

    def test_empty_year(self):
        empty = StatsAggregator()
        text = render_text(build_summary(empty.tables, empty.dataset), 2019)
        assert "haven't read any fanfics in 2019" in text
