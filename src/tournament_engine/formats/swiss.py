"""
Swiss system pairing.

Only round 1 exists after generation. Each later round is paired by
advance() once every match of the previous round is finished: teams are
grouped by wins, each group is folded top half against bottom half, and
rematches are avoided whenever some rematch-free pairing exists.
"""
import logging
import math
from itertools import groupby
from typing import Dict, FrozenSet, List, Optional, Set, Tuple

from ..config import resolve_settings
from ..models import COMPLETED, Match, MatchResult, SCHEDULED, Slot, Team, WINNER_BRANCH
from ..validation import FormatConstraints
from .base import FormatHandler, apply_qualification_cutoff, is_finished

logger = logging.getLogger(__name__)

Pair = Tuple[str, str]


def calculate_swiss_rounds(team_count: int, settings: Dict, max_rounds: int = 15) -> int:
    """Configured rounds, else ceil(log2(n)); never more than max_rounds or n - 1."""
    if team_count < 2:
        return 0
    configured = settings.get('swiss_rounds')
    rounds = int(configured) if configured else math.ceil(math.log2(team_count))
    return max(1, min(rounds, max_rounds, team_count - 1))


def fold_groups(ordered: List[str], wins: Dict[str, int]) -> List[List[str]]:
    """
    Split teams (already in standings order) into win groups.

    An odd group floats its last team down into the next group.
    """
    groups = []
    floaters: List[str] = []
    for _, members in groupby(ordered, key=lambda team_id: wins[team_id]):
        group = floaters + list(members)
        floaters = []
        if len(group) % 2 == 1:
            floaters = [group.pop()]
        if group:
            groups.append(group)
    if floaters:
        groups.append(floaters)
    return groups


def folded_pairs(group: List[str]) -> List[Pair]:
    half = len(group) // 2
    return [(group[i], group[i + half]) for i in range(half)]


def _backtrack_pairs(remaining: List[str], played: Set[FrozenSet[str]],
                     preference, allowed_rematches: int = 0) -> Optional[List[Pair]]:
    if not remaining:
        return []
    first = remaining[0]
    rest = remaining[1:]
    for candidate in sorted(rest, key=lambda team_id: preference(first, team_id)):
        rematch = frozenset((first, candidate)) in played
        if rematch and not allowed_rematches:
            continue
        others = [team_id for team_id in rest if team_id != candidate]
        budget = allowed_rematches - 1 if rematch else allowed_rematches
        sub = _backtrack_pairs(others, played, preference, budget)
        if sub is not None:
            return [(first, candidate)] + sub
    return None


def pair_swiss_round(ordered: List[str], wins: Dict[str, int],
                     played: Set[FrozenSet[str]]) -> List[Pair]:
    """
    Pair an even number of teams given in standings order.

    The folded pairing is used as is when it repeats no earlier pairing.
    Otherwise a backtracking search looks for the pairing closest to the
    folded one that repeats as few earlier pairings as possible: none if
    that can be done, else one, and so on.
    """
    groups = fold_groups(ordered, wins)
    ideal = [pair for group in groups for pair in folded_pairs(group)]
    if not any(frozenset(pair) in played for pair in ideal):
        return ideal

    flat = [team_id for group in groups for team_id in group]
    position = {team_id: index for index, team_id in enumerate(flat)}
    group_index = {team_id: index for index, group in enumerate(groups) for team_id in group}
    partner = {}
    for first, second in ideal:
        partner[first] = second
        partner[second] = first

    def preference(team_id, candidate):
        return (abs(group_index[candidate] - group_index[team_id]),
                abs(position[candidate] - position[partner[team_id]]))

    allowed = 0
    while True:
        searched = _backtrack_pairs(flat, played, preference, allowed)
        if searched is not None:
            break
        allowed += 1
    if allowed:
        logger.warning(f'No rematch-free pairing for {len(flat)} teams, allowing {allowed} rematch(es)')
    return searched


class SwissHandler(FormatHandler):
    type = 'swiss'
    display_name = 'Swiss System'
    description = 'Pairs teams with similar records each round.'
    constraints = FormatConstraints(
        min_teams=4,
        max_teams=200,
        preferred_team_counts=(),
        supports_odd_team_count=True,
        supports_byes=True,
        max_rounds=15,
    )
    default_tie_breakers = ('buchholz', 'sonneborn_berger', 'points_differential')

    def bye_teams(self, seeded: List[Team]) -> List[Team]:
        return [seeded[-1]] if len(seeded) % 2 == 1 else []

    def build(self, tournament, seeded, settings):
        total_rounds = calculate_swiss_rounds(len(seeded), settings, self.constraints.max_rounds)
        ordered = [team.id for team in seeded]
        seeds = {team.id: team.seed for team in seeded}
        bye_team = None
        if len(ordered) % 2 == 1:
            bye_team = ordered.pop()
        matches = self._round_matches(tournament, 1, folded_pairs(ordered), bye_team, seeds)
        extra = {
            'total_rounds': total_rounds,
            'total_matches': total_rounds * (len(seeded) // 2),
            'byes_per_round': len(seeded) % 2,
        }
        return matches, extra

    def _round_matches(self, tournament, round_num: int, pairs: List[Pair],
                       bye_team: Optional[str], seeds: Dict[str, int]) -> List[Match]:
        round_name = f'Round {round_num}'
        matches = []
        for position, (first, second) in enumerate(pairs, 1):
            matches.append(Match(
                f'S{round_num}-M{position}', round_num, round_name,
                Slot.for_team(first, seed=seeds.get(first)),
                Slot.for_team(second, seed=seeds.get(second)),
                branch=WINNER_BRANCH, position=position, status=SCHEDULED,
            ))
        if bye_team is not None:
            position = len(pairs) + 1
            matches.append(Match(
                f'S{round_num}-M{position}', round_num, round_name,
                Slot.for_team(bye_team, seed=seeds.get(bye_team)), Slot.bye(),
                branch=WINNER_BRANCH, position=position, status=COMPLETED,
                result=MatchResult(tournament.max_points, 0, bye_team),
            ))
        return matches

    def progress(self, completed, tournament, matches, by_id, settings):
        own = self.own_matches(matches)
        round_num = completed.round
        current_round = [m for m in own if m.round == round_num]
        next_exists = any(m.round == round_num + 1 for m in own)
        seeds = self._seeds(own)
        total_rounds = calculate_swiss_rounds(len(seeds), settings, self.constraints.max_rounds)

        new_matches = []
        if (all(is_finished(m) for m in current_round) and not next_exists
                and round_num < total_rounds):
            new_matches = self._pair_next_round(tournament, own, round_num + 1, seeds)
            logger.info(f'Paired Swiss round {round_num + 1} for {tournament.id}: '
                        f'{len(new_matches)} matches')
        return [completed], new_matches, {}

    def _seeds(self, matches: List[Match]) -> Dict[str, int]:
        seeds = {}
        for match in matches:
            for slot in match.slots:
                if slot.is_team and slot.team_id not in seeds:
                    seeds[slot.team_id] = slot.seed
        return seeds

    def _pair_next_round(self, tournament, matches: List[Match], round_num: int,
                         seeds: Dict[str, int]) -> List[Match]:
        wins = {team_id: 0 for team_id in seeds}
        played: Set[FrozenSet[str]] = set()
        had_bye = set()
        for match in matches:
            if match.winner_id in wins:
                wins[match.winner_id] += 1
            if match.is_bye:
                had_bye.update(match.team_ids)
            elif match.slot1.is_team and match.slot2.is_team:
                played.add(frozenset((match.slot1.team_id, match.slot2.team_id)))

        def seed_key(team_id):
            seed = seeds.get(team_id)
            return seed if seed is not None else len(seeds) + 1

        ordered = sorted(seeds, key=lambda team_id: (-wins[team_id], seed_key(team_id), team_id))
        bye_team = None
        if len(ordered) % 2 == 1:
            for team_id in reversed(ordered):
                if team_id not in had_bye:
                    bye_team = team_id
                    break
            if bye_team is None:
                bye_team = ordered[-1]
            ordered.remove(bye_team)

        pairs = pair_swiss_round(ordered, wins, played)
        return self._round_matches(tournament, round_num, pairs, bye_team, seeds)

    def is_complete(self, tournament, matches):
        own = self.own_matches(matches)
        if not own:
            return False
        total_rounds = calculate_swiss_rounds(len(self._seeds(own)), resolve_settings(tournament),
                                              self.constraints.max_rounds)
        last_round = max(m.round for m in own)
        if last_round < total_rounds:
            return False
        return all(is_finished(m) for m in own if m.round == last_round)

    def team_outcomes(self, tournament, matches, standings, settings):
        total_rounds = calculate_swiss_rounds(len(self._seeds(matches)), settings,
                                              self.constraints.max_rounds)
        rounds_played: Dict[str, int] = {}
        for match in matches:
            if not is_finished(match):
                continue
            for team_id in match.team_ids:
                rounds_played[team_id] = rounds_played.get(team_id, 0) + 1
        remaining = {team_id: max(0, total_rounds - rounds_played.get(team_id, 0))
                     for team_id in standings}
        apply_qualification_cutoff(standings, remaining, int(settings.get('qualifiers', 1)))
