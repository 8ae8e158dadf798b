"""
Apothecary progression rules.

Levels and titles, the one-time profession choice, per-level profession
abilities and their modifiers, skill checks and the quest ledger.

Quick Start:
    from apothecary.progression.service import ProgressionService

    service = ProgressionService()
    service.award_xp(50)
    service.choose_profession('surgeon')
    service.title  # 'Surgeon'
"""

__version__ = "0.1.0"
