"""
Tournament format engine: seeding, bracket generation, progression and standings.
"""
from .engine import (
    advance,
    available_formats,
    compute_standings,
    generate,
    is_complete,
    preview_seeding,
    recommend_format,
    validate,
)
from .errors import BracketIntegrityError, EngineError, SettingsError, UnsupportedFormatError
from .models import (
    BracketNode,
    BracketResult,
    GenerationOptions,
    Match,
    MatchResult,
    Player,
    ProgressionResult,
    SeedingOptions,
    Slot,
    Standing,
    Standings,
    Team,
    Tournament,
    ValidatorResult,
)

__version__ = '0.1.0'
