# Constants for the similar-products scorer.
DEFAULT_MAX_RECOMMENDATIONS = 3

# Score weights (sum of weighted terms ~1.0, bonuses on top)
WEIGHT_CATEGORY = 0.40
BONUS_SUBCATEGORY = 0.15
SCORE_RELATED_CATEGORY = 0.15
WEIGHT_PRICE = 0.25
WEIGHT_KEYWORDS = 0.20
WEIGHT_BRAND = 0.10
BONUS_YA_BA_BOSS = 0.03
BONUS_FLASH_OFFER = 0.02
BONUS_SAME_CITY = 0.05
MAX_JITTER = 0.05
UNRELATED_CATEGORY_PENALTY = 0.3  # multiplies the whole score, applied last

# Shortlist = top (n * factor), then weighted draw with weight DECAY**rank
SHORTLIST_FACTOR = 2
SELECTION_DECAY = 0.85

# PRNG offsets so each use of the seed draws from a different stream
OFFSET_SELECTION = 200
DIVERSE_SEED_SUFFIX = "_diverse"

# Price ratio bands (target / source): (low, high, score)
PRICE_BANDS = (
    (0.8, 1.2, 1.0),
    (0.5, 2.0, 0.8),
    (0.3, 3.0, 0.6),
    (0.1, 10.0, 0.3),
)
PRICE_FLOOR_SCORE = 0.1

FALLBACK_CATEGORY = "general"

# Related categories (lower-case). Partial credit, and no penalty.
CATEGORY_COMPATIBILITY = {
    "phones": ("accessories", "electronics", "audio", "tech", "mobile"),
    "computers": ("accessories", "electronics", "peripherals", "tech", "software"),
    "electronics": ("phones", "computers", "accessories", "audio", "tech"),
    "fashion": ("accessories", "beauty", "lifestyle", "clothing", "style"),
    "beauty": ("fashion", "accessories", "health", "lifestyle", "skincare"),
    "accessories": ("phones", "computers", "electronics", "fashion", "beauty"),
    "audio": ("phones", "electronics", "accessories", "tech", "music"),
    "health": ("beauty", "lifestyle", "fitness", "wellness"),
    "home": ("electronics", "accessories", "lifestyle", "furniture"),
    "sports": ("health", "fitness", "lifestyle", "equipment"),
    "automotive": ("electronics", "accessories", "tech", "auto"),
    "gaming": ("electronics", "computers", "accessories", "tech"),
    "books": ("education", "lifestyle", "entertainment"),
    "kitchen": ("home", "electronics", "appliances"),
    "clothing": ("fashion", "accessories", "style", "apparel"),
}

FRENCH_STOPWORDS = frozenset({
    "le", "la", "les", "de", "du", "des", "et", "ou", "avec", "pour",
    "dans", "sur", "un", "une", "ce", "cette", "ces", "son", "sa",
    "ses", "leur", "leurs", "très", "plus", "tout", "sans", "par",
    "est", "sont", "avoir", "être", "faire", "aller", "voir", "savoir",
})
