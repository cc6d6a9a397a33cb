"""
Reset the learning database.

DANGEROUS: This deletes all review state, XP, streaks, achievements and
study sessions!
Only use when you want to start fresh for testing.

Usage:
    python -m scripts.maintenance.reset_learning_db
"""

import logging

from flashcore import database


def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    print("=" * 60)
    print("WARNING: Reset Learning Database")
    print("=" * 60)
    print()
    print("This will DELETE all learning data:")
    print("  - Review state of every word (ease, interval, due date)")
    print("  - XP, levels and daily streaks")
    print("  - Unlocked achievements")
    print("  - Study session history")
    print()

    response = input("Are you sure you want to reset? (type 'yes' to confirm): ")

    if response.lower() == "yes":
        print("\nResetting database...")
        database.reset_db()
        print("Database reset complete!")
        print("\nThe database now has empty tables ready for new reviews.")
    else:
        print("\nCancelled. No changes made.")


if __name__ == "__main__":
    main()
