"""
Search result ranking.
"""

from typing import List

from pydantic import BaseModel, ConfigDict

from ...config import Settings
from ...core.enums import PromotionLevel
from ...core.models import DoctorSearchResult


class RankingWeights(BaseModel):
    """Score weights; only the ordering they produce is contractual."""

    model_config = ConfigDict(extra="forbid")

    premium: float = 1000.0
    promoted: float = 500.0
    tier: float = 100.0
    rating: float = 50.0
    availability: float = 50.0

    @classmethod
    def from_settings(cls, settings: Settings) -> "RankingWeights":
        return cls(
            premium=settings.ranking_weight_premium,
            promoted=settings.ranking_weight_promoted,
            tier=settings.ranking_weight_tier,
            rating=settings.ranking_weight_rating,
            availability=settings.ranking_weight_availability,
        )


def score_doctor(doctor: DoctorSearchResult, weights: RankingWeights) -> float:
    """Promotion, then hospital tier (1 is best), then rating, then availability."""
    score = 0.0
    hospital = doctor.hospital
    level = hospital.promotion_level if hospital else None
    if level == PromotionLevel.PREMIUM:
        score += weights.premium
    elif level == PromotionLevel.PROMOTED:
        score += weights.promoted

    tier = hospital.tier if hospital else 3
    score += (4 - tier) * weights.tier
    score += (doctor.rating or 0.0) * weights.rating

    if doctor.next_available_slot is not None:
        score += weights.availability
    return score


def rank_doctors(
    doctors: List[DoctorSearchResult], weights: RankingWeights, limit: int = 5
) -> List[DoctorSearchResult]:
    """Highest score first; equal scores keep their input order."""
    ranked = sorted(doctors, key=lambda d: score_doctor(d, weights), reverse=True)
    return ranked[:limit]
