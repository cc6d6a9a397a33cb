"""
Metric computations for user statistics.
"""

from __future__ import annotations

import pandas as pd


def compute_words_learned(reviews_df: pd.DataFrame) -> int:
    """
    Words whose most recent answer was correct.
    """
    if reviews_df.empty:
        return 0
    return int(reviews_df["is_known"].astype(bool).sum())


def compute_answer_totals(reviews_df: pd.DataFrame) -> tuple[int, int, int]:
    """
    (total reviews, correct, incorrect) summed over all words.
    """
    if reviews_df.empty:
        return 0, 0, 0
    correct = int(reviews_df["correct_count"].sum())
    incorrect = int(reviews_df["incorrect_count"].sum())
    return int(reviews_df["review_count"].sum()), correct, incorrect


def compute_accuracy(correct: int, incorrect: int) -> float:
    """Percentage of correct answers, rounded to one decimal."""
    attempts = correct + incorrect
    if attempts == 0:
        return 0.0
    return round(correct / attempts * 100.0, 1)


def compute_study_minutes(sessions_df: pd.DataFrame) -> tuple[float, float]:
    """
    (total, average) session duration in minutes.
    """
    if sessions_df.empty:
        return 0.0, 0.0
    durations = sessions_df["duration_minutes"]
    return round(float(durations.sum()), 1), round(float(durations.mean()), 1)


def rank_difficult_words(reviews_df: pd.DataFrame, limit: int) -> pd.DataFrame:
    """
    Words missed at least once, hardest first.

    Ranked by error rate descending, then ease ascending, then review
    count descending.
    """
    if reviews_df.empty:
        return reviews_df.assign(error_rate=pd.Series(dtype="float64"))

    missed = reviews_df[reviews_df["incorrect_count"] > 0].copy()
    if missed.empty:
        return missed.assign(error_rate=pd.Series(dtype="float64"))

    attempts = missed["correct_count"] + missed["incorrect_count"]
    missed["error_rate"] = missed["incorrect_count"] / attempts
    ranked = missed.sort_values(
        ["error_rate", "ease_factor", "review_count", "word_id"],
        ascending=[False, True, False, True],
        kind="mergesort",
    )
    return ranked.head(limit).reset_index(drop=True)
