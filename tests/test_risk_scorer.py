import pytest

from backend.floodwatch.risk_scorer import calculate_flood_risk, level_for_score


def test_worst_case_site_scores_high_with_all_factors():
    result = calculate_flood_risk(1, 5, "low", 1, "poor", "low", "frequent", "commercial")

    assert result["score"] == 20 + 20 + 15 + 15 + 10 + 10 + 10 + 4
    assert result["level"] == "high"
    assert result["factors"] == [
        "Very low elevation",
        "Very close to water",
        "Low soil permeability",
        "Very flat terrain",
        "Poor drainage",
        "Low vegetation cover",
        "Frequent historical flooding",
        "Critical infrastructure",
    ]


def test_safest_site_scores_zero():
    result = calculate_flood_risk(50, 500, "high", 30, "good", "high", "none", "landmark")

    assert result["score"] == 0
    assert result["level"] == "low"
    # no area-type label for types without a bonus
    assert len(result["factors"]) == 7


def test_missing_inputs_use_defaults():
    result = calculate_flood_risk()

    # elevation 5 -> 15, distance 50 -> 10, medium soil 8, slope 2 -> 15,
    # fair drainage 5, medium vegetation 5, rare history 3
    assert result["score"] == 61
    assert result["level"] == "medium"
    assert result["factors"][0] == "Low elevation"


def test_unparseable_numbers_fall_back_to_defaults():
    assert calculate_flood_risk("abc", None, None, "") == calculate_flood_risk()


@pytest.mark.parametrize(
    "elevation,points",
    [(2, 20), (2.01, 15), (5, 15), (10, 10), (20, 5), (20.5, 0)],
)
def test_elevation_band_edges(elevation, points):
    base = calculate_flood_risk(elevation, 500, "high", 30, "good", "high", "none", "other")
    assert base["score"] == points


@pytest.mark.parametrize(
    "slope,points",
    [(2, 15), (5, 10), (10, 5), (20, 2), (21, 0)],
)
def test_slope_band_edges(slope, points):
    base = calculate_flood_risk(50, 500, "high", slope, "good", "high", "none", "other")
    assert base["score"] == points


def test_area_type_bonus_values():
    neutral = calculate_flood_risk(50, 500, "high", 30, "good", "high", "none", "river")["score"]
    assert neutral == 0
    assert calculate_flood_risk(50, 500, "high", 30, "good", "high", "none", "single-house")["score"] == 3
    assert calculate_flood_risk(50, 500, "high", 30, "good", "high", "none", "infrastructure")["score"] == 4
    assert calculate_flood_risk(50, 500, "high", 30, "good", "high", "none", "agricultural")["score"] == 2


def test_history_points():
    scores = {
        history: calculate_flood_risk(50, 500, "high", 30, "good", "high", history, "other")["score"]
        for history in ("frequent", "occasional", "rare", "none")
    }
    assert scores == {"frequent": 10, "occasional": 7, "rare": 3, "none": 0}


def test_level_boundaries():
    assert level_for_score(70) == "high"
    assert level_for_score(69) == "medium"
    assert level_for_score(40) == "medium"
    assert level_for_score(39) == "low"


def test_score_never_exceeds_105():
    result = calculate_flood_risk(0, 0, "low", 0, "poor", "low", "frequent", "infrastructure")
    assert 0 <= result["score"] <= 105
