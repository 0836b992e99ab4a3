"""
Consolation bracket for teams knocked out in their first match.
"""
from typing import List, Optional

from ..models import CONSOLATION_BRANCH, COMPLETED, Team, WINNER_BRANCH
from ..validation import FormatConstraints
from .elimination import SingleEliminationHandler


def select_consolation_teams(matches, teams: Optional[List[Team]] = None,
                             branch: str = WINNER_BRANCH):
    """
    Losers of their first played match in an elimination bracket.

    Teams that started with a bye count from their first real match. The
    result is in elimination order (round, then position).
    """
    first_matches = {}
    ordered = sorted((m for m in matches if m.branch == branch and m.status == COMPLETED),
                     key=lambda m: (m.round, m.position))
    for match in ordered:
        for team_id in match.team_ids:
            first_matches.setdefault(team_id, match)

    selected = []
    for match in ordered:
        loser = match.loser_id
        if loser is not None and first_matches.get(loser) is match:
            selected.append(loser)

    if teams is None:
        return selected
    by_id = {team.id: team for team in teams}
    return [by_id[team_id] for team_id in selected if team_id in by_id]


class ConsolationHandler(SingleEliminationHandler):
    type = 'consolation'
    display_name = 'Consolation Bracket'
    description = 'Knockout bracket for teams eliminated in their first match.'
    constraints = FormatConstraints(
        min_teams=2,
        max_teams=512,
        preferred_team_counts=(),
        supports_odd_team_count=True,
        supports_byes=True,
        max_rounds=9,
        power_of_two_bracket=True,
    )
    supports_consolation = False
    prefix = "C"
    branches = (CONSOLATION_BRANCH,)
