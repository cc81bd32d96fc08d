"""Deterministic score adjustments over attempt metadata.

The base score is a random draw in [40, 80). It stands in for real answer
grading, which is not wired in; only the adjustments below carry meaning.
Pass an explicit ``random.Random`` to make a call reproducible.
"""
import random
from typing import Optional

from app.core.constants import DifficultyEnum
from app.core.exceptions import ConfigNotFound
from app.data.assessment_catalog import get_profile
from app.schemas.assessment import ScoringResult
from app.schemas.profile import AssessmentProfile

MINUTES_PER_QUESTION = 2
BASE_SCORE_MIN = 40
BASE_SCORE_MAX = 80  # exclusive

DIFFICULTY_BONUS = {
    DifficultyEnum.BEGINNER: 0,
    DifficultyEnum.INTERMEDIATE: 2,
    DifficultyEnum.ADVANCED: 5,
}


def time_adjustment(time_spent_minutes: Optional[float], total_questions: int) -> int:
    if not time_spent_minutes:
        return 0

    expected = total_questions * MINUTES_PER_QUESTION
    ratio = time_spent_minutes / expected

    if ratio < 0.5:
        # suspiciously fast
        return -5
    if ratio > 2.0:
        return -3
    if 0.8 <= ratio <= 1.2:
        return 5
    return 0


def violation_penalty(violation_count: int) -> int:
    if violation_count <= 0:
        return 0
    if violation_count <= 2:
        return -5
    if violation_count <= 5:
        return -10
    return -20


def attempt_penalty(attempt_count: int) -> int:
    if attempt_count <= 1:
        return 0
    if attempt_count == 2:
        return -3
    if attempt_count == 3:
        return -7
    return -15


def difficulty_bonus(difficulty: DifficultyEnum) -> int:
    return DIFFICULTY_BONUS.get(difficulty, 0)


def build_feedback(score: int, passed: bool, adjustments: dict, attempt_count: int) -> str:
    parts = []
    if passed:
        parts.append("Congratulations! You have successfully completed the assessment.")
    else:
        parts.append("Unfortunately, you did not achieve the required passing score.")

    if adjustments["violations"] < 0:
        parts.append("Please note that violations were detected during your assessment.")

    if attempt_count > 1:
        parts.append(f"This was attempt {attempt_count}.")

    if adjustments["time_spent"] > 0:
        parts.append("Good job on managing your time effectively.")
    elif adjustments["time_spent"] < 0:
        parts.append("Consider taking more time to read and understand the questions.")

    if score >= 90:
        parts.append("Excellent performance!")
    elif score >= 80:
        parts.append("Good job!")
    elif score >= 70:
        parts.append("You're on the right track, but consider reviewing the material more thoroughly.")
    else:
        parts.append("Please review the course material and try again.")

    return " ".join(parts)


class ScoringEngine:

    def __init__(self, rng: Optional[random.Random] = None):
        self._rng = rng or random.Random()

    def score_profile(
        self,
        profile: AssessmentProfile,
        *,
        time_spent_minutes: Optional[float],
        violation_count: int,
        attempt_count: int,
        rng: Optional[random.Random] = None,
    ) -> ScoringResult:
        base = (rng or self._rng).randrange(BASE_SCORE_MIN, BASE_SCORE_MAX)

        adjustments = {
            "time_spent": time_adjustment(time_spent_minutes, profile.total_questions),
            "violations": violation_penalty(violation_count),
            "attempts": attempt_penalty(attempt_count),
            "difficulty": difficulty_bonus(profile.difficulty),
        }

        raw = base + sum(adjustments.values())
        score = int(round(max(0, min(100, raw))))
        passed = score >= profile.passing_score

        return ScoringResult(
            score=score,
            passed=passed,
            passing_score=profile.passing_score,
            total_questions=profile.total_questions,
            adjustments=adjustments,
            feedback=build_feedback(score, passed, adjustments, attempt_count),
        )

    def calculate_score(
        self,
        task_title: str,
        *,
        time_spent_minutes: Optional[float],
        violation_count: int,
        attempt_count: int,
        rng: Optional[random.Random] = None,
    ) -> ScoringResult:
        profile = get_profile(task_title)
        if not profile:
            raise ConfigNotFound(task_title)
        return self.score_profile(
            profile,
            time_spent_minutes=time_spent_minutes,
            violation_count=violation_count,
            attempt_count=attempt_count,
            rng=rng,
        )


scoring_engine = ScoringEngine()
