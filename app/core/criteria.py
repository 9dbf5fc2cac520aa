"""
Evaluation criteria table.

Fixed configuration: three categories whose weights sum to 100%. Each
subcriterion carries a multiplier (its weight as a share of 20), so the
multipliers sum to 20 and a full set of 5-point ratings scores exactly 100.
Multipliers are kept as Decimal so totals are exact.
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, List, Tuple


@dataclass(frozen=True)
class Subcriterion:
    id: str
    name: str
    weight: str
    multiplier: Decimal


@dataclass(frozen=True)
class Category:
    id: int
    name: str
    weight: str
    subcriteria: Tuple[Subcriterion, ...]


MAX_RATING = 5

EVALUATION_CRITERIA: Tuple[Category, ...] = (
    Category(
        id=1,
        name="Technical Skill",
        weight="48%",
        subcriteria=(
            Subcriterion("1_1", "Job Knowledge", "30%", Decimal("6")),
            Subcriterion("1_2", "Initiative and Creativity", "10%", Decimal("2")),
            Subcriterion("1_3", "Potential", "8%", Decimal("1.6")),
        ),
    ),
    Category(
        id=2,
        name="Sense of Concern & Cooperativeness",
        weight="21%",
        subcriteria=(
            Subcriterion("2_1", "Attendance", "3%", Decimal("0.6")),
            Subcriterion("2_2", "Cooperation & Team work", "3%", Decimal("0.6")),
            Subcriterion("2_3", "Personality", "3%", Decimal("0.6")),
            Subcriterion("2_4", "Customer Handling", "5%", Decimal("1")),
            Subcriterion("2_5", "Communication", "4%", Decimal("0.8")),
            Subcriterion("2_6", "Concern for the company's Resource", "3%", Decimal("0.6")),
        ),
    ),
    Category(
        id=3,
        name="Work Accomplishment Capacity",
        weight="31%",
        subcriteria=(
            Subcriterion("3_1", "Meeting Objectives", "16%", Decimal("3.2")),
            Subcriterion("3_2", "Quality of Work", "15%", Decimal("3")),
        ),
    ),
)

# Bands scanned top-down, first match wins
PERFORMANCE_BANDS: List[Tuple[int, str]] = [
    (90, "Excellent"),
    (70, "Very Good"),
    (50, "Good"),
    (30, "Low"),
    (20, "Very Low"),
]
LOWEST_BAND = "Unsatisfactory"


def all_subcriteria() -> List[Subcriterion]:
    return [sub for category in EVALUATION_CRITERIA for sub in category.subcriteria]


def subcriterion_ids() -> List[str]:
    return [sub.id for sub in all_subcriteria()]


def criteria_as_dict() -> Dict:
    """Serializable view of the table for the /criteria endpoint."""
    return {
        "max_rating": MAX_RATING,
        "categories": [
            {
                "id": category.id,
                "name": category.name,
                "weight": category.weight,
                "subcriteria": [
                    {
                        "id": sub.id,
                        "name": sub.name,
                        "weight": sub.weight,
                        "multiplier": float(sub.multiplier),
                    }
                    for sub in category.subcriteria
                ],
            }
            for category in EVALUATION_CRITERIA
        ],
        "performance_bands": [
            {"min_score": threshold, "level": level} for threshold, level in PERFORMANCE_BANDS
        ] + [{"min_score": 0, "level": LOWEST_BAND}],
    }
