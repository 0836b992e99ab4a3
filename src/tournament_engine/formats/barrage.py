"""
Barrage: a play-off between teams tied on wins at a qualification boundary.
"""
from typing import List, Optional

from ..models import BARRAGE_BRANCH, Team
from ..validation import FormatConstraints
from .elimination import SingleEliminationHandler


def select_barrage_teams(standings, qualifiers: int, teams: Optional[List[Team]] = None):
    """
    Teams tied on wins across the qualification boundary.

    Args:
        standings: Standings or a ranked list of Standing
        qualifiers: Number of places that qualify
        teams: When given, the matching Team objects are returned instead of ids

    Returns:
        Team ids (or teams) in ranking order; empty when the boundary is clear.
    """
    rankings = getattr(standings, 'rankings', standings)
    if qualifiers <= 0 or len(rankings) <= qualifiers:
        return []
    boundary_wins = rankings[qualifiers - 1].wins
    if rankings[qualifiers].wins != boundary_wins:
        return []

    selected = [s.team_id for s in rankings if s.wins == boundary_wins]
    if teams is None:
        return selected
    by_id = {team.id: team for team in teams}
    return [by_id[team_id] for team_id in selected if team_id in by_id]


class BarrageHandler(SingleEliminationHandler):
    type = 'barrage'
    display_name = 'Barrage Qualification'
    description = 'Knockout play-off between teams tied at a qualification boundary.'
    constraints = FormatConstraints(
        min_teams=2,
        max_teams=100,
        preferred_team_counts=(),
        supports_odd_team_count=True,
        supports_byes=True,
        max_rounds=7,
        power_of_two_bracket=True,
    )
    supports_consolation = False
    prefix = "B"
    branches = (BARRAGE_BRANCH,)
