# gigsim/config.py

# Score scale
SCORE_MIN = 0.0
SCORE_MAX = 25.0
SCORE_DECIMALS = 2

# Every numeric sub-factor lives on this scale before use
FACTOR_MIN = 0.0
FACTOR_MAX = 100.0

# Random swing applied once per song position
RANDOM_FACTOR_MIN = -5.0
RANDOM_FACTOR_MAX = 5.0

# Skill aggregation
NEUTRAL_SKILL = 50.0
# instrument role -> skill attributes that count for it; loose matches are
# tried in this order
ROLE_SKILLS = {
    "bass": ("bass",),
    "lead guitar": ("guitar",),
    "rhythm guitar": ("guitar",),
    "guitar": ("guitar",),
    "drums": ("drums",),
    "lead vocals": ("vocals",),
    "vocals": ("vocals",),
    "keys": ("keys", "synth"),
    "keyboard": ("keys", "synth"),
    "synth": ("synth", "keys"),
    "dj": ("turntables",),
}

# Synergy (multiplier, ~0.7..1.7)
CHEMISTRY_BASE = 0.7
CHEMISTRY_SPAN = 0.6
EXPERIENCE_PER_SHOW = 0.01
EXPERIENCE_CAP = 0.2
REHEARSAL_LEVEL_MAX = 10.0
REHEARSAL_SPAN = 0.2

# Crowd engagement (multiplier, clamped 0.3..2.0)
ENGAGEMENT_BASE = 0.5
FAME_CAP = 10000.0
FAME_SPAN = 1.0
AUDIENCE_MEMORY_NEUTRAL = 50.0
SOCIAL_BUZZ_PER_POST = 0.05
SOCIAL_BUZZ_CAP = 0.3
SOCIAL_BUZZ_WINDOW_DAYS = 7
ENGAGEMENT_MIN = 0.3
ENGAGEMENT_MAX = 2.0

# Setlist quality (0..100)
NEUTRAL_QUALITY = 50.0
DEFAULT_SONG_QUALITY = 50.0
DEFAULT_ENERGY_LEVEL = 5
DEFAULT_GENRE_AFFINITY = 0.7
QUALITY_WEIGHT = 0.4
ENERGY_CURVE_WEIGHT = 0.3
GENRE_MATCH_WEIGHT = 0.3
ENERGY_CURVE_IDEAL = 90.0
ENERGY_CURVE_RISING = 80.0
ENERGY_CURVE_NEUTRAL = 70.0
ENERGY_CURVE_MIN_ENTRIES = 3

# Performance items
DEFAULT_CROWD_APPEAL = 50.0
NEUTRAL_SKILL_MATCH = 70.0

# Modifiers (additive score points)
PROMOTER_TIER_BONUS = {
    "amateur": -2.0,
    "standard": 0.0,
    "professional": 3.0,
    "legendary": 5.0,
}
PROMOTER_NEUTRAL_REPUTATION = 50.0
PROMOTER_REPUTATION_DIVISOR = 10.0
VENUE_LOYALTY_SCALE = 10.0

# Production factors (reported, not scored)
DEFAULT_EQUIPMENT_QUALITY = 40.0
DEFAULT_CREW_SKILL = 40.0
DEFAULT_CAPACITY_USED = 70.0
DEFAULT_VENUE_CAPACITY = 100
NEUTRAL_STAGE_SKILL = 50.0
DEFAULT_STAGE_ATTRIBUTE = 5.0
STAGE_ATTRIBUTE_MAX = 20.0
STAGE_PRESENCE_WEIGHT = 0.6
CHARISMA_WEIGHT = 0.4

# Stage events
MISHAP_CHANCE = 0.05
MISHAP_MINOR_CHANCE = 0.70
PERFECT_MOMENT_THRESHOLD = 0.95
PERFECT_MOMENT_MIN_POSITION = 4
RARE_EVENT_CHANCE = 0.02

# Per-position RNG derivation (seed + position * stride)
RNG_POSITION_STRIDE = 10007
