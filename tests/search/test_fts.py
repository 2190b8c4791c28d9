import pytest

from threadsearch.search.fts import build_fts_query, lexical_terms


class TestLexicalTerms:
    def test_intent_words_dropped(self):
        assert lexical_terms("how many roles are hiring right now") == ["roles", "hiring"]

    def test_intent_words_kept_when_alone(self):
        assert lexical_terms("what is current right now") == ["current", "right", "now"]

    def test_numbers_survive(self):
        assert lexical_terms("Is 5 or 60+ the number?") == ["5", "60"]

    def test_punctuation_and_case(self):
        assert lexical_terms("Deploy?? deploy, DEPLOY!") == ["deploy"]

    @pytest.mark.parametrize("query", ["", "a", "the of and", "hey, can you?"])
    def test_nothing_usable(self, query):
        assert lexical_terms(query) == []


class TestBuildFtsQuery:
    def test_or_of_quoted_terms(self):
        assert build_fts_query("who owns the billing migration") == '"owns" OR "billing" OR "migration"'

    def test_none_without_terms(self):
        assert build_fts_query("is it?") is None

    def test_quotes_never_leak(self):
        assert build_fts_query('"budget" approved') == '"budget" OR "approved"'
