"""
Cerebro: capture-first personal productivity tracker.

Free-text captures are classified by an external language model and
reconciled into a strict relational schema:
- Tasks, notes, insights and bookmarks as entries
- Recurring numeric goals bucketed by day, week or month
- Keyword fail-safes when the model is wrong or unavailable
"""

__version__ = "0.1.0"
