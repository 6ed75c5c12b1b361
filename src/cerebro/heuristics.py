"""
Keyword fail-safes layered over the classifier.

Pure string matching on the raw capture text, so they run the same whether
the model answered, answered badly, or never answered at all.
"""

URGENT_KEYWORDS = ("urgente", "urgent", "pra ontem")

IN_PROGRESS_PREFIXES = ("estou ",)
IN_PROGRESS_KEYWORDS = ("fazendo", "andamento")


def is_urgent(text: str) -> bool:
    """True if the text carries an urgency keyword (case-insensitive)."""
    lower = text.lower()
    return any(keyword in lower for keyword in URGENT_KEYWORDS)


def is_in_progress(text: str) -> bool:
    """True if the text reads like work already under way ("estou fazendo...")."""
    lower = text.lower()
    if lower.startswith(IN_PROGRESS_PREFIXES):
        return True
    return any(keyword in lower for keyword in IN_PROGRESS_KEYWORDS)
