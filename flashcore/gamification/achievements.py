"""
Achievement Engine

Evaluates a fixed, immutable catalog of one-off and tiered achievements
against a progression snapshot.

Evaluation is deterministic: identical (snapshot, already_unlocked) inputs
give identical output, and ids already unlocked are never returned again.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable, Optional


# ---- Catalog Types ----

@dataclass(frozen=True)
class AchievementTier:
    """One unlockable threshold inside a tiered family."""
    threshold: int
    id: str
    xp_reward: int


@dataclass(frozen=True)
class AchievementFamily:
    """Tiered family, tiers ordered by ascending threshold."""
    key: str
    name: str
    description: str  # "{n}" is replaced by a threshold
    icon: str
    metric: str
    tiers: tuple[AchievementTier, ...]


@dataclass(frozen=True)
class OneOffAchievement:
    """Single achievement unlocked once `metric` reaches `threshold`."""
    id: str
    name: str
    description: str
    icon: str
    metric: str
    threshold: int
    xp_reward: int


@dataclass(frozen=True)
class AchievementCatalog:
    """Versioned, immutable achievement definitions."""
    version: str
    one_offs: tuple[OneOffAchievement, ...]
    families: tuple[AchievementFamily, ...]

    def __post_init__(self):
        ids = [a.id for a in self.one_offs]
        for family in self.families:
            thresholds = [t.threshold for t in family.tiers]
            if thresholds != sorted(thresholds):
                raise ValueError(f"Tiers of {family.key} must be in ascending threshold order")
            ids.extend(t.id for t in family.tiers)
        if len(ids) != len(set(ids)):
            raise ValueError("Achievement ids must be unique across the catalog")

    def all_ids(self) -> list[str]:
        ids = [a.id for a in self.one_offs]
        for family in self.families:
            ids.extend(t.id for t in family.tiers)
        return ids


# ---- Evaluation Types ----

@dataclass(frozen=True)
class AchievementSnapshot:
    """Metric values achievements are evaluated against."""
    correct_answers: int = 0
    words_learned: int = 0
    daily_streak: int = 0
    perfect_sessions: int = 0
    total_xp: int = 0

    def metric(self, name: str) -> int:
        return getattr(self, name)


@dataclass(frozen=True)
class AchievementUnlock:
    """A newly crossed achievement."""
    id: str
    xp_reward: int
    name: str
    family: Optional[str] = None  # None for one-offs
    tier_level: int = 0           # 1-based tier index, 0 for one-offs


@dataclass(frozen=True)
class AchievementStatus:
    """Display status of a one-off or a tiered family."""
    id: Optional[str]
    type: str
    name: str
    description: str
    icon: str
    unlocked: bool
    level: int = 0
    total_tiers: int = 0
    current_value: int = 0
    current_threshold: Optional[int] = None
    next_threshold: Optional[int] = None


# ---- Default Catalog ----

def _tiers(*rows: tuple[int, str, int]) -> tuple[AchievementTier, ...]:
    return tuple(AchievementTier(threshold=t, id=i, xp_reward=xp) for t, i, xp in rows)


DEFAULT_CATALOG = AchievementCatalog(
    version="2024.1",
    one_offs=(
        OneOffAchievement(
            id="first_correct",
            name="First Step",
            description="Answer your first question correctly",
            icon="star",
            metric="correct_answers",
            threshold=1,
            xp_reward=50,
        ),
    ),
    families=(
        AchievementFamily(
            key="vocab_builder",
            name="Vocab Builder",
            description="Learn {n} words",
            icon="book",
            metric="words_learned",
            tiers=_tiers(
                (50, "words_50", 150),
                (100, "words_100", 200),
                (200, "words_200", 300),
                (350, "words_350", 450),
                (550, "words_550", 600),
                (800, "words_800", 800),
                (1100, "words_1100", 1000),
                (1450, "words_1450", 1250),
                (1850, "words_1850", 1500),
                (2300, "words_2300", 2000),
            ),
        ),
        AchievementFamily(
            key="streak_warrior",
            name="Streak Warrior",
            description="Maintain a {n}-day study streak",
            icon="flame",
            metric="daily_streak",
            tiers=_tiers(
                (3, "streak_3", 50),
                (7, "streak_7", 100),
                (14, "streak_14", 200),
                (21, "streak_21", 300),
                (30, "streak_30", 500),
                (50, "streak_50", 750),
                (75, "streak_75", 1000),
                (100, "streak_100", 1500),
                (180, "streak_180", 2500),
                (365, "streak_365", 5000),
            ),
        ),
        AchievementFamily(
            key="perfectionist",
            name="Perfectionist",
            description="Complete {n} sessions with 100% accuracy",
            icon="trophy",
            metric="perfect_sessions",
            tiers=_tiers(
                (1, "perfect_1", 50),
                (5, "perfect_5", 150),
                (10, "perfect_10", 300),
                (25, "perfect_25", 600),
                (50, "perfect_50", 1000),
                (100, "perfect_100", 2000),
                (200, "perfect_200", 4000),
                (500, "perfect_500", 10000),
            ),
        ),
        AchievementFamily(
            key="xp_enthusiast",
            name="XP Enthusiast",
            description="Earn {n} total XP",
            icon="star",
            metric="total_xp",
            tiers=_tiers(
                (1000, "xp_1k", 100),
                (5000, "xp_5k", 250),
                (15000, "xp_15k", 500),
                (40000, "xp_40k", 1000),
                (100000, "xp_100k", 2500),
                (250000, "xp_250k", 5000),
                (500000, "xp_500k", 10000),
                (1000000, "xp_1m", 25000),
            ),
        ),
    ),
)


# ---- Evaluation ----

def check_new_achievements(
    snapshot: AchievementSnapshot,
    already_unlocked: Iterable[str],
    catalog: AchievementCatalog = DEFAULT_CATALOG
) -> list[AchievementUnlock]:
    """
    Return achievements crossed by `snapshot` that are not yet unlocked.

    One-offs come first, then each family in catalog order with its tiers
    ascending by threshold. Several tiers of one family may unlock at once.

    Args:
        snapshot: Current metric values
        already_unlocked: Ids unlocked before this evaluation
        catalog: Achievement definitions

    Returns:
        List of AchievementUnlock (empty when nothing new)
    """
    unlocked = set(already_unlocked)
    new_unlocks: list[AchievementUnlock] = []

    for achievement in catalog.one_offs:
        if achievement.id in unlocked:
            continue
        if snapshot.metric(achievement.metric) >= achievement.threshold:
            new_unlocks.append(AchievementUnlock(
                id=achievement.id,
                xp_reward=achievement.xp_reward,
                name=achievement.name,
            ))

    for family in catalog.families:
        value = snapshot.metric(family.metric)
        for level, tier in enumerate(family.tiers, start=1):
            if value < tier.threshold:
                break
            if tier.id in unlocked:
                continue
            new_unlocks.append(AchievementUnlock(
                id=tier.id,
                xp_reward=tier.xp_reward,
                name=family.name,
                family=family.key,
                tier_level=level,
            ))

    return new_unlocks


def achievement_status(
    snapshot: AchievementSnapshot,
    unlocked_ids: Iterable[str],
    catalog: AchievementCatalog = DEFAULT_CATALOG
) -> list[AchievementStatus]:
    """
    Display listing of every one-off and family with the user's standing.
    """
    unlocked = set(unlocked_ids)
    result: list[AchievementStatus] = []

    for achievement in catalog.one_offs:
        result.append(AchievementStatus(
            id=achievement.id,
            type="one_off",
            name=achievement.name,
            description=achievement.description,
            icon=achievement.icon,
            unlocked=achievement.id in unlocked,
            current_value=snapshot.metric(achievement.metric),
        ))

    for family in catalog.families:
        # Highest unlocked tier
        highest = -1
        for index in range(len(family.tiers) - 1, -1, -1):
            if family.tiers[index].id in unlocked:
                highest = index
                break

        current_tier = family.tiers[highest] if highest >= 0 else None
        next_tier = family.tiers[highest + 1] if highest + 1 < len(family.tiers) else None
        shown = next_tier or current_tier

        result.append(AchievementStatus(
            id=(current_tier or next_tier).id,
            type=family.key,
            name=family.name,
            description=family.description.replace("{n}", str(shown.threshold)),
            icon=family.icon,
            unlocked=highest >= 0,
            level=highest + 1,
            total_tiers=len(family.tiers),
            current_value=snapshot.metric(family.metric),
            current_threshold=current_tier.threshold if current_tier else None,
            next_threshold=next_tier.threshold if next_tier else None,
        ))

    return result
