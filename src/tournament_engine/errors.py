"""
Exceptions raised by the tournament engine.

Legality problems with user input are never raised: they come back inside a
ValidatorResult. The exceptions below mean the caller passed a corrupted
match list, asked for a format that does not exist, or supplied bad settings.
"""


class EngineError(Exception):
    """Base class for all engine errors."""


class BracketIntegrityError(EngineError):
    """The match list handed to advance() is inconsistent with the bracket."""

    def __init__(self, message, match_id=None):
        super().__init__(message)
        self.match_id = match_id


class UnsupportedFormatError(EngineError, ValueError):
    """No format variant is registered for the tournament type."""

    def __init__(self, tournament_type):
        super().__init__(f"Unsupported tournament type: {tournament_type}")
        self.tournament_type = tournament_type


class SettingsError(EngineError):
    """A settings file or tie-breaker configuration could not be used."""
