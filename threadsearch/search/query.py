import re

from threadsearch.search.types import QueryIntent

_QUANTITY_RE = re.compile(r"how\s+many|number\s+of|total", re.IGNORECASE)
_HIRING_RE = re.compile(r"hiring|roles?|positions?|jobs?|openings?", re.IGNORECASE)
_CURRENT_RE = re.compile(r"current|currently|right now|at the moment", re.IGNORECASE)

_PUNCTUATION_RE = re.compile(r"[^\w\s+]")
_WHITESPACE_RE = re.compile(r"\s+")

# (pattern, replacement) pairs tried per intent, in order
_HIRING_REWRITES = (
    (re.compile(r"roles?"), "positions"),
    (re.compile(r"roles?"), "jobs"),
    (re.compile(r"hiring"), "recruiting"),
)
_CURRENT_REWRITES = (
    (re.compile(r"currently"), "right now"),
    (re.compile(r"current"), "latest"),
)


def normalize_query(query: str) -> str:
    text = query.lower().strip()
    text = _PUNCTUATION_RE.sub("", text)
    return _WHITESPACE_RE.sub(" ", text).strip()


def classify_intent(query: str) -> QueryIntent:
    return QueryIntent(
        is_quantity_question=bool(_QUANTITY_RE.search(query)),
        is_hiring_question=bool(_HIRING_RE.search(query)),
        is_current_question=bool(_CURRENT_RE.search(query)),
    )


def query_variations(normalized: str, intent: QueryIntent) -> list[str]:
    """Base query first, then intent-specific rewrites. Duplicates are dropped."""
    rewrites = []
    if intent.is_hiring_question:
        rewrites.extend(_HIRING_REWRITES)
    if intent.is_current_question:
        rewrites.extend(_CURRENT_REWRITES)

    variations = [normalized]
    for pattern, replacement in rewrites:
        variant = pattern.sub(replacement, normalized)
        if variant not in variations:
            variations.append(variant)
    return variations
