"""
Backfill achievements for every user.

Re-evaluates the achievement catalog against each user's current stats
and unlocks (with rewards) anything they already qualify for. Useful after
adding tiers to the catalog. Safe to run repeatedly.

Usage:
    python -m scripts.maintenance.backfill_achievements [--dry-run]
"""

import argparse
import logging

from flashcore import database, srs
from flashcore.gamification import persistence
from flashcore.gamification.achievements import check_new_achievements
from flashcore.study import apply_achievements, build_snapshot

logger = logging.getLogger(__name__)


def backfill(db, dry_run: bool = False) -> dict[str, list[str]]:
    """
    Unlock missing achievements for all known users.

    Returns:
        Mapping user_id -> newly unlocked achievement ids (users with
        nothing new are omitted)
    """
    user_ids = sorted(set(srs.get_user_ids(db)) | set(persistence.get_progression_user_ids(db)))
    now = srs.utc_now()
    results: dict[str, list[str]] = {}

    for user_id in user_ids:
        progression = persistence.load_or_create_progression(db, user_id)
        if dry_run:
            unlocks = check_new_achievements(
                build_snapshot(db, progression), progression.unlocked_achievements
            )
        else:
            unlocks = apply_achievements(db, progression, now)
            persistence.save_progression(db, progression)

        if unlocks:
            results[user_id] = [u.id for u in unlocks]

    logger.info(f"Checked {len(user_ids)} users, {len(results)} with new achievements")
    return results


def main():
    parser = argparse.ArgumentParser(description="Backfill achievements for all users")
    parser.add_argument("--dry-run", action="store_true", help="Report without saving")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    print("=" * 60)
    print("Backfill Achievements" + (" (dry run)" if args.dry_run else ""))
    print("=" * 60)

    database.init_db()
    with database.session_scope() as db:
        results = backfill(db, dry_run=args.dry_run)
        if args.dry_run:
            db.rollback()

    if not results:
        print("\nNo new achievements to unlock.")
        return

    for user_id, ids in results.items():
        print(f"  {user_id}: {', '.join(ids)}")
    print(f"\nDone: {sum(len(ids) for ids in results.values())} achievements for {len(results)} users")


if __name__ == "__main__":
    main()
