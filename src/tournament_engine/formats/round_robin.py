"""
Round robin scheduling with the circle method.

The first seed stays fixed while the others rotate one place per round.
An odd field gets a phantom opponent; whoever meets it sits the round out.
Those byes appear in the bracket structure and metadata, never as matches.
"""
import logging
from typing import Dict, List, Optional, Tuple

from ..models import BracketNode, Match, SCHEDULED, Slot, WINNER_BRANCH
from ..validation import FormatConstraints
from .base import FormatHandler, apply_qualification_cutoff, is_finished

logger = logging.getLogger(__name__)


def circle_rounds(team_ids: List[str]) -> List[Tuple[List[Tuple[str, str]], Optional[str]]]:
    """
    Every round of a single round robin.

    Returns a list of (pairs, bye team) per round; the bye is None for an
    even number of teams.
    """
    circle: List[Optional[str]] = list(team_ids)
    if len(circle) % 2 == 1:
        circle.append(None)
    n = len(circle)
    fixed = circle[0]
    rotating = circle[1:]

    rounds = []
    for _ in range(n - 1):
        current = [fixed] + rotating
        pairs = []
        bye = None
        for i in range(n // 2):
            first, second = current[i], current[n - 1 - i]
            if first is None or second is None:
                bye = second if first is None else first
                continue
            pairs.append((first, second) if i % 2 == 0 else (second, first))
        rounds.append((pairs, bye))
        rotating = [rotating[-1]] + rotating[:-1]
    return rounds


class RoundRobinHandler(FormatHandler):
    type = 'round-robin'
    display_name = 'Round Robin'
    description = 'Everyone plays everyone else once.'
    constraints = FormatConstraints(
        min_teams=3,
        max_teams=20,
        preferred_team_counts=(),
        supports_odd_team_count=True,
        supports_byes=False,
        max_rounds=19,
    )
    default_tie_breakers = ('head_to_head', 'points_differential', 'points_against')

    def bye_teams(self, seeded):
        return []

    def build(self, tournament, seeded, settings):
        seeds = {team.id: team.seed for team in seeded}
        matches = []
        byes_by_round = {}
        schedule = circle_rounds([team.id for team in seeded])
        for round_num, (pairs, bye) in enumerate(schedule, 1):
            round_name = f'Round {round_num}'
            for position, (first, second) in enumerate(pairs, 1):
                matches.append(Match(
                    f'R{round_num}-M{position}', round_num, round_name,
                    Slot.for_team(first, seed=seeds[first]),
                    Slot.for_team(second, seed=seeds[second]),
                    branch=WINNER_BRANCH, position=position, status=SCHEDULED,
                ))
            if bye is not None:
                byes_by_round[round_num] = bye
        extra = {
            'total_rounds': len(schedule),
            'byes_by_round': byes_by_round,
        }
        return matches, extra

    def build_structure(self, matches: List[Match]) -> List[BracketNode]:
        nodes = super().build_structure(matches)
        for round_num, team_id in sorted(self.byes_by_round(matches).items()):
            nodes.append(BracketNode(
                id=f'R{round_num}-BYE', round=round_num, position=0,
                branch=WINNER_BRANCH, team_ids=[team_id],
            ))
        return nodes

    def byes_by_round(self, matches: List[Match]) -> Dict[int, str]:
        """The team sitting out each round, derived from who does not play in it."""
        teams = set()
        playing: Dict[int, set] = {}
        for match in matches:
            teams.update(match.team_ids)
            playing.setdefault(match.round, set()).update(match.team_ids)
        if len(teams) % 2 == 0:
            return {}
        byes = {}
        for round_num, active in playing.items():
            idle = sorted(teams - active)
            if len(idle) == 1:
                byes[round_num] = idle[0]
        return byes

    def progress(self, completed, tournament, matches, by_id, settings):
        return [completed], [], {}

    def is_complete(self, tournament, matches):
        own = self.own_matches(matches)
        return bool(own) and all(is_finished(m) for m in own)

    def team_outcomes(self, tournament, matches, standings, settings):
        remaining: Dict[str, int] = {}
        for match in matches:
            if is_finished(match):
                continue
            for team_id in match.team_ids:
                remaining[team_id] = remaining.get(team_id, 0) + 1
        apply_qualification_cutoff(standings, remaining, int(settings.get('qualifiers', 1)))
