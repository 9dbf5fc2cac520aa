"""
Weighted evaluation score and performance banding.
"""
from decimal import Decimal
from typing import Any, Dict, Mapping, Optional, Union

from app.core.criteria import (
    EVALUATION_CRITERIA,
    LOWEST_BAND,
    MAX_RATING,
    PERFORMANCE_BANDS,
)

Number = Union[int, float, Decimal]


def _rating(ratings: Optional[Mapping[str, Any]], subcriterion_id: str) -> Decimal:
    if not ratings:
        return Decimal(0)
    value = ratings.get(subcriterion_id)
    if value is None or value == "":
        return Decimal(0)
    return Decimal(str(value))


def compute_score(ratings: Optional[Mapping[str, Any]]) -> float:
    """Σ rating × multiplier over every subcriterion; missing ratings count as 0."""
    total = Decimal(0)
    for category in EVALUATION_CRITERIA:
        for sub in category.subcriteria:
            total += _rating(ratings, sub.id) * sub.multiplier
    return float(total)


def performance_level(score: Number) -> str:
    for threshold, level in PERFORMANCE_BANDS:
        if score >= threshold:
            return level
    return LOWEST_BAND


def score_breakdown(ratings: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Per-criterion points table, the data behind the printed evaluation report."""
    categories = []
    for category in EVALUATION_CRITERIA:
        items = []
        category_points = Decimal(0)
        for sub in category.subcriteria:
            rating = _rating(ratings, sub.id)
            points = rating * sub.multiplier
            category_points += points
            items.append({
                "id": sub.id,
                "name": sub.name,
                "weight": sub.weight,
                "multiplier": float(sub.multiplier),
                "rating": float(rating),
                "points": float(points),
                "max_points": float(sub.multiplier * MAX_RATING),
            })
        categories.append({
            "id": category.id,
            "name": category.name,
            "weight": category.weight,
            "points": float(category_points),
            "subcriteria": items,
        })
    total = compute_score(ratings)
    return {
        "categories": categories,
        "total_score": total,
        "max_score": float(sum(sub.multiplier for c in EVALUATION_CRITERIA for sub in c.subcriteria) * MAX_RATING),
        "performance_level": performance_level(total),
    }
