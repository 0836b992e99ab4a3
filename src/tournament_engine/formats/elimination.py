"""
Single elimination bracket generation and progression.

Matches are laid out round by round from the standard seed order. A pairing
against a bye creates no match: the team (or the pending winner) is carried
straight into the next round's slot. Every later match exists from the
start with placeholder slots that advance() fills in.
"""
import logging
import math
from typing import Callable, Dict, List, Optional, Tuple

from ..errors import BracketIntegrityError
from ..models import COMPLETED, Match, PENDING, SCHEDULED, Slot, Team, WINNER_BRANCH
from ..seeding import assign_byes
from ..validation import FormatConstraints
from .base import FormatHandler

logger = logging.getLogger(__name__)


def get_round_name(teams_in_round: int, total_teams: int) -> str:
    """Get the name of a round based on number of teams."""
    if teams_in_round == 2:
        return "Final"
    elif teams_in_round == 4:
        return "Semifinal"
    elif teams_in_round == 8:
        return "Quarterfinal"
    else:
        return f"Round of {teams_in_round}"


def calculate_bracket_size(num_teams: int) -> int:
    """Calculate the bracket size (next power of 2)."""
    if num_teams <= 0:
        return 0
    return 2 ** math.ceil(math.log2(num_teams))


def calculate_byes(num_teams: int) -> int:
    """Calculate number of byes needed."""
    return calculate_bracket_size(num_teams) - num_teams


def _generate_bracket_order(bracket_size: int) -> List[int]:
    """
    Generate the standard tournament bracket order.

    For 8 teams: [1, 8, 4, 5, 2, 7, 3, 6]
    This gives matchups: 1v8, 4v5, 2v7, 3v6, so seeds 1 and 2 can only
    meet in the final.
    """
    if bracket_size <= 1:
        return [1] if bracket_size == 1 else []
    if bracket_size == 2:
        return [1, 2]

    upper = _generate_bracket_order(bracket_size // 2)
    order = []
    for seed in upper:
        order.append(seed)
        order.append(bracket_size + 1 - seed)
    return order


class BracketBuilder:
    """Collects matches while an elimination bracket is laid out."""

    def __init__(self, branch: str = WINNER_BRANCH):
        self.branch = branch
        self.matches: List[Match] = []
        self._by_id: Dict[str, Match] = {}

    def feed(self, match_id: str, round_num: int, round_name: str, position: int,
             slot1: Slot, slot2: Slot, branch: Optional[str] = None) -> Tuple[Slot, Slot]:
        """
        Pair two slots.

        Returns the (winner, loser) slots to use further on. A bye on either
        side creates no match; the other slot passes through and the loser
        is a bye.
        """
        if slot1.is_bye:
            return slot2, Slot.bye()
        if slot2.is_bye:
            return slot1, Slot.bye()

        match = Match(match_id, round_num, round_name, slot1, slot2,
                      branch=branch if branch else self.branch, position=position)
        for slot in (slot1, slot2):
            if slot.is_placeholder:
                source = self._by_id[slot.match_id]
                if slot.kind == Slot.WINNER_OF:
                    source.winner_to = match_id
                else:
                    source.loser_to = match_id
        self.matches.append(match)
        self._by_id[match_id] = match
        return Slot.winner_of(match_id), Slot.loser_of(match_id)


def build_winners_bracket(builder: BracketBuilder, seeded: List[Team], prefix: str = "",
                          round_namer: Callable[[int, int], str] = get_round_name):
    """
    Lay out the main bracket for seeded teams.

    Returns:
        (champion slot, loser slots per round, total rounds)
    """
    bracket_size = calculate_bracket_size(len(seeded))
    total_rounds = int(math.log2(bracket_size)) if bracket_size > 1 else 0
    by_seed = {team.seed: team for team in seeded}

    current = []
    for seed in _generate_bracket_order(bracket_size):
        team = by_seed.get(seed)
        current.append(Slot.for_team(team.id, seed=seed) if team else Slot.bye())

    losers_by_round = []
    for round_num in range(1, total_rounds + 1):
        teams_in_round = bracket_size // (2 ** (round_num - 1))
        round_name = round_namer(teams_in_round, bracket_size)
        next_slots = []
        losers = []
        for i in range(0, len(current), 2):
            position = i // 2 + 1
            winner, loser = builder.feed(f"{prefix}W{round_num}-M{position}", round_num, round_name,
                                         position, current[i], current[i + 1])
            next_slots.append(winner)
            losers.append(loser)
        losers_by_round.append(losers)
        current = next_slots

    champion = current[0] if current else Slot.bye()
    return champion, losers_by_round, total_rounds


def place_team(by_id: Dict[str, Match], source: Match, target_id: str, outcome: str,
               team_id: str) -> Match:
    """
    Resolve the slot of target_id that waits for the given outcome of source.

    The target is updated in place (callers pass working copies) and turns
    from pending to scheduled once both of its slots hold teams.
    """
    target = by_id.get(target_id)
    if target is None:
        raise BracketIntegrityError(f'Successor {target_id} of match {source.id} is missing', source.id)

    seed = source.seed_of(team_id)
    for attr in ('slot1', 'slot2'):
        slot = getattr(target, attr)
        if slot.references(source.id, outcome):
            setattr(target, attr, slot.resolve(team_id, seed))
            if target.status == PENDING and target.is_ready:
                target.status = SCHEDULED
            logger.debug(f'Placed {team_id} into {target.id} from {source.id}')
            return target

    label = 'winner' if outcome == Slot.WINNER_OF else 'loser'
    raise BracketIntegrityError(
        f'Match {target_id} has no open slot for the {label} of {source.id}', source.id)


class SingleEliminationHandler(FormatHandler):
    type = 'single-elimination'
    display_name = 'Single Elimination'
    description = "Traditional knockout tournament. Lose once and you're out."
    constraints = FormatConstraints(
        min_teams=2,
        max_teams=1024,
        preferred_team_counts=(4, 8, 16, 32, 64, 128, 256),
        supports_odd_team_count=True,
        supports_byes=True,
        max_rounds=10,
        power_of_two_bracket=True,
    )
    is_elimination = True
    supports_consolation = True
    prefix = ""
    branches = (WINNER_BRANCH,)

    def byes_needed(self, team_count: int) -> int:
        return calculate_byes(team_count)

    def bye_teams(self, seeded: List[Team]) -> List[Team]:
        return assign_byes(seeded, calculate_bracket_size(len(seeded)))

    def build(self, tournament, seeded, settings):
        builder = BracketBuilder(self.branches[0])
        _, _, total_rounds = build_winners_bracket(builder, seeded, self.prefix)
        extra = {
            'total_rounds': total_rounds,
            'bracket_size': calculate_bracket_size(len(seeded)),
            'byes': calculate_byes(len(seeded)),
        }
        return builder.matches, extra

    def progress(self, completed, tournament, matches, by_id, settings):
        affected = [completed]
        if completed.winner_to:
            affected.append(place_team(by_id, completed, completed.winner_to, Slot.WINNER_OF,
                                       completed.winner_id))
        return affected, [], {}

    def final_match(self, matches: List[Match]) -> Optional[Match]:
        own = self.own_matches(matches)
        if not own:
            return None
        return max(own, key=lambda m: m.round)

    def is_complete(self, tournament, matches):
        final = self.final_match(matches)
        return final is not None and final.status == COMPLETED

    def team_outcomes(self, tournament, matches, standings, settings):
        top_stage = max((m.round for m in matches), default=0) + 1
        for standing in standings.values():
            standing.stage = top_stage
        for match in matches:
            loser = match.loser_id
            if loser in standings:
                standings[loser].status = 'eliminated'
                standings[loser].stage = match.round

    def champion(self, tournament, matches, ranked):
        final = self.final_match(matches)
        if final is None or final.status != COMPLETED:
            return None
        return final.winner_id
