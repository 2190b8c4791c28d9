import re

_TOKEN_RE = re.compile(r"\w+")

_STOPWORDS = frozenset(
    """
    a an the and or but is are was were be been being am
    in on at to for of with by from about into over
    it its this that these those there here
    i me my we us our you your he she his her they them their
    do does did has have had will would could should can
    not no so if how what when where who which why
    any anyone someone anything something please pls hey hi ok
    """.split()
)

# Already scored by intent classification. Left in, "right now" would match
# every message that happens to say it.
_INTENT_WORDS = frozenset({"many", "number", "total", "right", "now", "current", "currently", "moment", "latest"})


def lexical_terms(query: str) -> list[str]:
    """Distinct search terms of a chat query, in order.

    Numbers survive even as single digits. Intent words are only used when
    nothing else is left.
    """
    tokens = [t for t in _TOKEN_RE.findall(query.lower()) if len(t) > 1 or t.isdigit()]
    terms = [t for t in tokens if t not in _STOPWORDS]
    content = [t for t in terms if t not in _INTENT_WORDS]
    return list(dict.fromkeys(content or terms))


def build_fts_query(query: str) -> str | None:
    """FTS5 MATCH expression over message text, or None when the query has no usable terms."""
    terms = lexical_terms(query)
    if not terms:
        return None
    return " OR ".join(f'"{t}"' for t in terms)
