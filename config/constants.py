# koppla/config/constants.py

# Fixed tables used by the assessment stages. Stage configs copy these as
# their defaults so a deployment can override them without editing code.

# Synthetic id of the organization being assessed
SUBJECT_NODE_ID = "org-target"

# --- Entity resolution ---

# Legal-entity suffixes dropped during name normalization (whole tokens only)
LEGAL_SUFFIXES = (
    "inc", "ltd", "llc", "ab", "corp", "gmbh", "ag", "sa", "plc", "co", "pty",
)

# Entity confidence by extraction evidence, checked in this order. An entity
# with neither method scores EntityResolutionConfig.default_confidence.
CONFIDENCE_TABLE = {
    "nlp_role": 0.9,
    "nlp_pattern": 0.85,
    "nlp": 0.75,
    "pattern_role": 0.7,
    "pattern": 0.5,
}

# --- Evidence scoring ---

CREDIBILITY_WEIGHTS = {
    "government": 10,   # official agencies, sanctions lists
    "court": 10,        # rulings and legal decisions
    "news": 7,
    "ngo": 6,
    "social": 4,
    "forum": 2,
    "unknown": 1,
}

SEVERITY_MULTIPLIERS = {
    "high": 1.0,
    "medium": 0.7,
    "low": 0.4,
}
DEFAULT_SEVERITY_MULTIPLIER = 0.5

# news / NGO / court / government tier
CREDIBLE_WEIGHT_THRESHOLD = 6

EVIDENCE_CATEGORIES = ["lgbtq", "gender", "racism", "anti-democratic", "human-rights"]
UNCATEGORIZED = "uncategorized"

# --- Relationship typing ---

FINANCIAL_KEYWORDS = [
    # English
    "funding", "funded", "investment", "investor", "transaction", "transfer",
    "payment", "donation", "donated", "financial", "money laundering",
    "bank account", "wire transfer", "offshore", "shell company",
    # Swedish
    "finansiering", "investering", "transaktion", "överföring",
    "betalning", "penningtvätt", "bankkonto", "skalbolag",
]

ORGANIZATIONAL_KEYWORDS_PATTERN = (
    r"\b(CEO|director|founder|chairman|board|VD|ordförande|grundare|employed|works?|heads?)\b"
)

EVENT_KEYWORDS_PATTERN = (
    r"\b(investigation|arrest|convicted|charged|incident|event|raid|seized)\b"
)

# --- Graph distance decay ---

HOP_DECAY_FACTORS = {
    0: 1.0,    # the subject itself
    1: 1.0,    # direct connections
    2: 0.5,
    3: 0.25,
}
DISTANT_DECAY_FACTOR = 0.1        # 4+ hops
UNREACHABLE_DECAY_FACTOR = 0.05

# --- Visual export ---

EDGE_COLORS = {
    "organizational": {"color": "#2196F3", "highlight": "#1976D2"},
    "financial": {"color": "#F44336", "highlight": "#D32F2F"},
    "event-based": {"color": "#FF9800", "highlight": "#F57C00"},
    "co-mention": {"color": "#9E9E9E", "highlight": "#757575"},
    "sanctions-link": {"color": "#E91E63", "highlight": "#C2185B"},
}

# --- Suggestions ---

# ISO 639-1 and 639-3 codes the extractors handle without translation
PRIMARY_LANGUAGES = ("en", "sv", "eng", "swe", "und")

ENGINE_VERSION = "3.0"
