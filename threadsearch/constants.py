# --- Retrieval ---

SEMANTIC_RESULT_LIMIT = 20
LEXICAL_RESULT_LIMIT = 20
EXPANSION_RESULT_LIMIT = 15

# Short queries get the static synonym table instead of an LLM rephrase
SHORT_QUERY_MAX_CHARS = 10
EXPANSION_CACHE_TTL = 3600  # seconds

EMBEDDING_TEXT_LIMIT = 8000


# --- Fusion ---

RRF_K = 10
DEFAULT_DOC_SCORE = 0.5  # used when a collaborator returns no score
DM_FUSION_BOOST = 1.2  # multiplicative, applied per ranked list
RECENT_MESSAGE_DAYS = 7
RECENCY_BOOST = 1.5

NUMBER_MATCH_BOOST = 1.0
NUMBER_QUALIFIER_BOOST = 0.5  # "60+" / "60 plus"
PHRASE_MATCH_BOOST = 0.3

HIRING_PHRASES = (
    "hiring for",
    "open positions",
    "job openings",
    "current roles",
    "looking to hire",
)


# --- Answer assembly ---

DM_FINAL_BOOST = 0.2  # additive, applied once after permission filtering
ANSWER_RESULT_LIMIT = 10

NO_RESULTS_ANSWER = "I couldn't find any messages about that topic that you have access to."
NO_RESULTS_CONTEXT = "No accessible messages found"


# --- LLM ---

SYNTHESIS_TEMPERATURE = 0.7
EXPANSION_TEMPERATURE = 0.3
EXPANSION_MAX_TOKENS = 200
LLM_RETRY_ATTEMPTS = 3
