"""
Doctor search module.
"""

from .ranking import RankingWeights, rank_doctors, score_doctor
from .service import DoctorSearchService

__all__ = ["RankingWeights", "rank_doctors", "score_doctor", "DoctorSearchService"]
