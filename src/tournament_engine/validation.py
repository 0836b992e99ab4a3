"""
Legality checks run before a bracket is generated.

Problems come back as data in a ValidatorResult: errors block generation,
warnings and suggestions do not.
"""
import logging
from typing import List, Optional, Tuple

from .config import TIE_BREAKER_NAMES
from .models import Team, ValidatorResult

logger = logging.getLogger(__name__)

TEAM_FORMAT_SIZES = {
    'singles': 1,
    'doubles': 2,
    'triples': 3,
}


class FormatConstraints:
    def __init__(self, min_teams, max_teams=None, preferred_team_counts=(),
                 supports_odd_team_count=True, supports_byes=True, max_rounds=None,
                 power_of_two_bracket=False):
        self.min_teams = min_teams
        self.max_teams = max_teams
        self.preferred_team_counts = tuple(preferred_team_counts)
        self.supports_odd_team_count = supports_odd_team_count
        self.supports_byes = supports_byes
        self.max_rounds = max_rounds
        self.power_of_two_bracket = power_of_two_bracket

    def __repr__(self):
        return (f"FormatConstraints(min_teams={self.min_teams}, max_teams={self.max_teams}, "
                f"supports_byes={self.supports_byes})")


def closest_preferred_count(count: int, preferred: Tuple[int, ...]) -> Optional[int]:
    """Nearest preferred team count; the smaller one wins a tie."""
    if not preferred:
        return None
    closest = preferred[0]
    for candidate in preferred[1:]:
        if abs(candidate - count) < abs(closest - count):
            closest = candidate
    return closest


def _is_power_of_two(n: int) -> bool:
    return n > 0 and (n & (n - 1)) == 0


def _next_power_of_two(n: int) -> int:
    size = 1
    while size < n:
        size *= 2
    return size


def validate_teams(tournament, teams: List[Team], constraints: FormatConstraints,
                   format_name: Optional[str] = None, settings: Optional[dict] = None) -> ValidatorResult:
    """
    Check a team list against a format's constraints and the tournament.

    Args:
        tournament: Tournament descriptor (format, max_players)
        teams: Candidate teams
        constraints: The format variant's constraints
        format_name: Name used in messages (defaults to the tournament type)
        settings: Effective settings, checked for unknown tie-breakers

    Returns:
        ValidatorResult with errors, warnings and suggestions
    """
    name = format_name if format_name else tournament.type
    count = len(teams)
    errors = []
    warnings = []
    suggestions = []

    if count < constraints.min_teams:
        errors.append(f'{name} requires at least {constraints.min_teams} teams, got {count}')
    if constraints.max_teams is not None and count > constraints.max_teams:
        errors.append(f'{name} supports maximum {constraints.max_teams} teams, got {count}')
    if tournament.max_players is not None and count > tournament.max_players:
        errors.append(f'Tournament allows at most {tournament.max_players} teams, got {count}')

    if not errors and constraints.preferred_team_counts and count not in constraints.preferred_team_counts:
        closest = closest_preferred_count(count, constraints.preferred_team_counts)
        warnings.append(f'{count} teams is not optimal for {name}')
        suggestions.append(f'Consider {closest} teams for better bracket balance')

    if count % 2 != 0 and not constraints.supports_odd_team_count:
        if constraints.supports_byes:
            warnings.append(f'Odd team count ({count}) will require bye assignments')
        else:
            errors.append(f'{name} does not support odd team counts')

    if constraints.power_of_two_bracket and count >= 2 and not _is_power_of_two(count):
        bracket_size = _next_power_of_two(count)
        warnings.append(f'{bracket_size - count} byes required to fill a bracket of {bracket_size}')

    team_ids = [team.id for team in teams]
    if len(team_ids) != len(set(team_ids)):
        errors.append('Duplicate teams detected in tournament')

    seen_names = set()
    duplicate_names = set()
    for team in teams:
        key = team.name.strip().lower()
        if key in seen_names:
            duplicate_names.add(team.name)
        seen_names.add(key)
    if duplicate_names:
        warnings.append(f'Duplicate team names: {", ".join(sorted(duplicate_names))}')

    expected_size = TEAM_FORMAT_SIZES.get(tournament.format)
    if expected_size is not None:
        incompatible = [team for team in teams if len(team.members) != expected_size]
        if incompatible:
            errors.append(f'{len(incompatible)} teams have incorrect player count for '
                          f'{tournament.format} format')

    tie_breakers = (settings or {}).get('tie_breakers')
    if tie_breakers:
        unknown = [method for method in tie_breakers if method not in TIE_BREAKER_NAMES]
        if unknown:
            errors.append(f'Unknown tie-breakers: {", ".join(unknown)}')

    for warning in warnings:
        logger.warning(f'{name} validation: {warning}')

    return ValidatorResult(errors, warnings, suggestions)
