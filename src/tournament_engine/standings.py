"""
Standings computed from scratch on every call.

Nothing is carried over between calls: the match list is the only source
of truth, so a corrected or replayed result can never leave stale totals.
"""
import logging
from itertools import groupby
from typing import Dict, List, Optional, Sequence

from .config import TIE_BREAKER_NAMES, resolve_settings
from .errors import SettingsError
from .formats import get_format
from .models import COMPLETED, Match, Standing, Standings, Team

logger = logging.getLogger(__name__)

ASCENDING_TIE_BREAKERS = ('points_against',)


def resolve_tie_breakers(handler, settings: Dict, tie_breakers: Optional[Sequence[str]] = None) -> List[str]:
    """Tie-break chain: explicit argument, then the tie_breakers setting, then the format default."""
    if tie_breakers is not None:
        chain = list(tie_breakers)
    elif settings.get('tie_breakers'):
        chain = list(settings['tie_breakers'])
    else:
        chain = list(handler.default_tie_breakers)
    unknown = [method for method in chain if method not in TIE_BREAKER_NAMES]
    if unknown:
        raise SettingsError(f'Unknown tie-breakers: {", ".join(unknown)}')
    return chain


def _tally(matches: List[Match], teams: Optional[List[Team]], window: int) -> Dict[str, Standing]:
    table: Dict[str, Standing] = {}

    def entry(team_id, seed):
        if team_id not in table:
            table[team_id] = Standing(team_id, seed)
        elif table[team_id].seed is None:
            table[team_id].seed = seed

    for team in teams or []:
        entry(team.id, team.seed)
    for match in matches:
        for slot in match.slots:
            if slot.is_team:
                entry(slot.team_id, slot.seed)

    for match in matches:
        if match.status != COMPLETED or match.winner_id is None:
            continue
        for team_id in match.team_ids:
            standing = table[team_id]
            points_for, points_against = match.score_for(team_id)
            standing.points_for += points_for
            standing.points_against += points_against
            if team_id == match.winner_id:
                standing.wins += 1
                standing.recent_results.append('W')
            else:
                standing.losses += 1
                standing.recent_results.append('L')

    for standing in table.values():
        standing.recent_results = standing.recent_results[-window:] if window > 0 else []
    return table


class TieBreakContext:
    """Opponent records needed by the tie-break methods."""

    def __init__(self, matches: List[Match], table: Dict[str, Standing]):
        self.table = table
        self.opponents: Dict[str, List[str]] = {team_id: [] for team_id in table}
        self.defeated: Dict[str, List[str]] = {team_id: [] for team_id in table}
        self.head_to_head_wins: Dict[tuple, int] = {}
        for match in matches:
            if match.status != COMPLETED or match.winner_id is None or match.is_bye:
                continue
            winner, loser = match.winner_id, match.loser_id
            if loser is None:
                continue
            self.opponents[winner].append(loser)
            self.opponents[loser].append(winner)
            self.defeated[winner].append(loser)
            key = (winner, loser)
            self.head_to_head_wins[key] = self.head_to_head_wins.get(key, 0) + 1

    def met(self, first: str, second: str) -> bool:
        return second in self.opponents.get(first, [])

    def head_to_head(self, team_id: str, opponent_id: str) -> int:
        return self.head_to_head_wins.get((team_id, opponent_id), 0)

    def value(self, method: str, team_id: str):
        standing = self.table[team_id]
        if method == 'points_differential':
            return standing.points_differential
        if method == 'points_against':
            return standing.points_against
        if method == 'points_for':
            return standing.points_for
        if method == 'buchholz':
            return sum(self.table[o].wins for o in self.opponents[team_id])
        if method == 'sonneborn_berger':
            return sum(self.table[o].wins for o in self.defeated[team_id])
        if method == 'strength_of_schedule':
            opponents = self.opponents[team_id]
            if not opponents:
                return 0.0
            return round(sum(self.table[o].win_percentage for o in opponents) / len(opponents), 6)
        raise SettingsError(f'Unknown tie-breaker: {method}')

    def sort_key(self, method: str, standing: Standing):
        value = self.value(method, standing.team_id)
        return value if method in ASCENDING_TIE_BREAKERS else -value


def _break_ties(group: List[Standing], chain: List[str], context: TieBreakContext) -> List[List[Standing]]:
    """Split a tied group into ordered tiers; teams left in one tier share a rank."""
    if len(group) <= 1 or not chain:
        return [group]
    method, rest = chain[0], chain[1:]

    if method == 'head_to_head':
        if len(group) == 2 and context.met(group[0].team_id, group[1].team_id):
            first, second = group
            first_wins = context.head_to_head(first.team_id, second.team_id)
            second_wins = context.head_to_head(second.team_id, first.team_id)
            if first_wins > second_wins:
                return [[first], [second]]
            if second_wins > first_wins:
                return [[second], [first]]
        return _break_ties(group, rest, context)

    def key(standing):
        return context.sort_key(method, standing)

    tiers = []
    for _, members in groupby(sorted(group, key=key), key=key):
        tiers.extend(_break_ties(list(members), rest, context))
    return tiers


def _seed_order(standing: Standing):
    return (standing.seed is None, standing.seed if standing.seed is not None else 0, str(standing.team_id))


def rank_standings(table: Dict[str, Standing], chain: List[str], context: TieBreakContext) -> List[Standing]:
    """Order by stage and wins, break ties with the chain, assign competition ranks (1, 2, 2, 4)."""

    def primary(standing):
        return (-standing.stage, -standing.wins)

    ranked = []
    for _, members in groupby(sorted(table.values(), key=primary), key=primary):
        for tier in _break_ties(list(members), chain, context):
            rank = len(ranked) + 1
            for standing in sorted(tier, key=_seed_order):
                standing.rank = rank
                ranked.append(standing)
    return ranked


def compute_standings(tournament, matches: List[Match], teams: Optional[List[Team]] = None,
                      tie_breakers: Optional[Sequence[str]] = None,
                      format_type: Optional[str] = None) -> Standings:
    """
    Rank every team from the full match list.

    Args:
        tournament: Tournament descriptor; its type picks the format rules
        matches: All matches of the tournament, in any state
        teams: Optional team list so teams without matches still appear
        tie_breakers: Overrides the tie_breakers setting and format default
        format_type: Rank a sub-bracket (e.g. 'consolation') instead of the main format

    Returns:
        Standings with rankings in rank order
    """
    handler = get_format(format_type if format_type else tournament.type)
    settings = resolve_settings(tournament)
    chain = resolve_tie_breakers(handler, settings, tie_breakers)
    own = handler.own_matches(matches)

    table = _tally(own, teams, int(settings.get('recent_results_window', 5)))
    handler.team_outcomes(tournament, own, table, settings)

    context = TieBreakContext(own, table)
    for standing in table.values():
        for method in chain:
            if method != 'head_to_head':
                standing.tie_breakers[method] = context.value(method, standing.team_id)

    ranked = rank_standings(table, chain, context)

    complete = handler.is_complete(tournament, own)
    champion = handler.champion(tournament, own, ranked) if complete else None
    if complete:
        for standing in ranked:
            standing.status = 'champion' if standing.team_id == champion else 'eliminated'

    metadata = {
        'format': handler.type,
        'is_complete': complete,
        'champion': champion,
        'matches_completed': sum(1 for m in own if m.status == COMPLETED),
        'total_matches': len(own),
    }
    logger.debug(f'Computed standings for {tournament.id}: {len(ranked)} teams, complete={complete}')
    return Standings(rankings=ranked, tie_breakers=chain, metadata=metadata)
