"""
Flashcore - Vocabulary review scheduling and progression engine

Packages:
- srs: modified SM-2 review scheduler
- gamification: XP, levels, streaks, achievements, study sessions
- analytics: read-only user statistics

The caller-facing operations live in `flashcore.study`.
"""

__version__ = "0.1.0"
