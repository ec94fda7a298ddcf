"""
数据概览和 AI 请求 payload
"""
import pytest

from notebook.data_profile import (
    build_analyze_data_request,
    build_clean_data_request,
    build_data_context,
    profile_csv,
)

CSV = """size,rooms,city,price
50,2,Paris,300
80,3,Lyon,
,1,Paris,150
120,4,Nice,600
60,2,,310
90,3,Lyon,420
"""


@pytest.fixture
def profile():
    return profile_csv(CSV)


class TestProfile:

    def test_columns_and_preview(self, profile):
        assert profile["columns"] == ["size", "rooms", "city", "price"]
        assert profile["rowCount"] == 6
        assert len(profile["rows"]) == 5
        assert profile["rows"][0] == [50.0, 2, "Paris", 300.0]
        assert profile["rows"][2][0] is None
        assert profile["rows"][4][2] is None

    def test_numeric_stats(self, profile):
        size = profile["stats"]["size"]
        assert size["type"] == "numeric"
        assert size["count"] == 5
        assert size["missing"] == 1
        assert size["min"] == 50.0
        assert size["max"] == 120.0
        assert size["mean"] == pytest.approx(80.0)

    def test_categorical_stats(self, profile):
        assert profile["stats"]["city"] == {"type": "categorical", "count": 5, "missing": 1, "unique": 3}

    def test_distributions(self, profile):
        assert "city" not in profile["distributions"]
        bins = profile["distributions"]["rooms"]
        assert 1 <= len(bins) <= 10
        assert sum(b["count"] for b in bins) == 6
        assert bins[0]["bin"].startswith("1.00-")


class TestPayloads:

    def test_analyze_data_request(self, profile):
        payload = build_analyze_data_request(profile)
        assert payload["columns"][2] == {"name": "city", "type": "categorical",
                                         "sampleValues": ["Paris", "Lyon", "Paris"]}
        assert payload["sampleRows"] == profile["rows"]

    def test_clean_data_feedback_optional(self, profile):
        assert "userFeedback" not in build_clean_data_request(profile)
        assert build_clean_data_request(profile, "drop city")["userFeedback"] == "drop city"

    def test_data_context(self, profile):
        ctx = build_data_context(profile, "houses.csv")
        assert ctx["csvFileName"] == "houses.csv"
        assert ctx["rowCount"] == 6
        assert ctx["sampleData"][0] == {"size": 50.0, "rooms": 2, "city": "Paris", "price": 300.0}
