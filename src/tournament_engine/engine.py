"""
Entry points for callers.

Each function dispatches on the tournament type to one format handler and
takes and returns plain objects; no state is kept between calls.
"""
import logging
from typing import Dict, List, Optional

from .formats import FORMAT_HANDLERS, get_format
from .models import (
    BARRAGE_BRANCH, BracketResult, CONSOLATION_BRANCH, GenerationOptions, Match,
    ProgressionResult, SeedingOptions, Standings, Team, ValidatorResult,
)
from .seeding import seed_teams
from .standings import compute_standings as _compute_standings

logger = logging.getLogger(__name__)

# matches on these branches are driven by their own handler whatever the tournament type
SUB_BRACKET_FORMATS = {
    BARRAGE_BRANCH: 'barrage',
    CONSOLATION_BRANCH: 'consolation',
}


def validate(tournament, teams: List[Team]) -> ValidatorResult:
    """Check whether teams can play the tournament's format."""
    return get_format(tournament.type).validate(tournament, teams)


def generate(tournament, teams: List[Team], options: Optional[GenerationOptions] = None) -> BracketResult:
    """Seed the teams and build the initial matches and bracket structure."""
    return get_format(tournament.type).generate(tournament, teams, options)


def advance(completed_match: Match, tournament, all_matches: List[Match]) -> ProgressionResult:
    """
    Apply one completed match.

    A barrage or consolation match is progressed by that sub-bracket's
    handler even inside a tournament of another type.
    """
    format_type = SUB_BRACKET_FORMATS.get(completed_match.branch, tournament.type)
    return get_format(format_type).advance(completed_match, tournament, all_matches)


def compute_standings(tournament, matches: List[Match], teams: Optional[List[Team]] = None,
                      tie_breakers: Optional[List[str]] = None) -> Standings:
    return _compute_standings(tournament, matches, teams=teams, tie_breakers=tie_breakers)


def is_complete(tournament, matches: List[Match]) -> bool:
    return get_format(tournament.type).is_complete(tournament, matches)


def available_formats(team_count: Optional[int] = None) -> List[Dict]:
    """Describe every registered format, optionally only those that accept team_count teams."""
    formats = []
    for format_type, handler in FORMAT_HANDLERS.items():
        constraints = handler.constraints
        if team_count is not None:
            if team_count < constraints.min_teams:
                continue
            if constraints.max_teams is not None and team_count > constraints.max_teams:
                continue
        formats.append({
            'type': format_type,
            'name': handler.display_name,
            'description': handler.description,
            'constraints': {
                'min_teams': constraints.min_teams,
                'max_teams': constraints.max_teams,
                'preferred_team_counts': list(constraints.preferred_team_counts),
                'supports_odd_team_count': constraints.supports_odd_team_count,
                'supports_byes': constraints.supports_byes,
                'max_rounds': constraints.max_rounds,
            },
        })
    return formats


def recommend_format(team_count: int, time_budget: Optional[int] = None) -> str:
    """
    Suggest a format for team_count teams.

    time_budget is in minutes; a tight budget favours single elimination
    for small and medium fields.
    """
    if team_count <= 4:
        return 'round-robin'
    if team_count <= 8:
        return 'single-elimination' if time_budget and time_budget < 120 else 'round-robin'
    if team_count <= 16:
        return 'single-elimination' if time_budget and time_budget < 180 else 'swiss'
    return 'swiss'


def preview_seeding(teams: List[Team], options: Optional[SeedingOptions] = None) -> List[Dict]:
    """Seed order a generation would use, without building any matches."""
    ordered = seed_teams(teams, options)
    return [
        {'seed': index + 1, 'team_id': team.id, 'name': team.name, 'ranking': team.ranking}
        for index, team in enumerate(ordered)
    ]
