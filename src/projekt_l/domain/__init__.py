"""Domain layer for Projekt L.

Pure progression rules: XP curves, factions, habit streaks, quest progress,
contact relationships, mood scores and finance calculators.
This layer has no dependencies on infrastructure concerns.
"""
