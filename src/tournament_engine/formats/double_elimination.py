"""
Double elimination bracket generation and progression.

In double elimination:
- Teams must lose twice to be eliminated
- Winners Bracket: Teams that haven't lost yet
- Losers Bracket: Teams that have lost once
- Grand Final: Winners bracket champion vs Losers bracket champion
- Bracket Reset: If losers bracket winner wins Grand Final, a final match decides the champion
"""
import logging
import math
from typing import Dict, List, Optional

from ..config import resolve_settings
from ..errors import BracketIntegrityError
from ..models import COMPLETED, LOSER_BRANCH, Match, SCHEDULED, Slot, WINNER_BRANCH
from ..validation import FormatConstraints
from .elimination import (
    BracketBuilder,
    SingleEliminationHandler,
    build_winners_bracket,
    calculate_bracket_size,
    calculate_byes,
    place_team,
)

logger = logging.getLogger(__name__)


def get_losers_round_name(round_num: int, total_losers_rounds: int) -> str:
    """Get the name for a losers bracket round (0-indexed)."""
    rounds_from_end = total_losers_rounds - round_num - 1
    if rounds_from_end == 0:
        return "Losers Final"
    elif rounds_from_end == 1:
        return "Losers Semifinal"
    else:
        return f"Losers Round {round_num + 1}"


def get_winners_round_name(teams_in_round: int, bracket_size: int) -> str:
    """Get the name for a winners bracket round."""
    if teams_in_round == 2:
        return "Winners Final"
    elif teams_in_round == 4:
        return "Winners Semifinal"
    elif teams_in_round == 8:
        return "Winners Quarterfinal"
    else:
        return f"Winners Round of {teams_in_round}"


def calculate_losers_bracket_rounds(bracket_size: int) -> int:
    """
    Calculate number of rounds in losers bracket.
    For N teams in winners bracket (power of 2):
    - Winners bracket has log2(N) rounds
    - Losers bracket has 2 * (log2(N) - 1) rounds

    Pattern: minor, major, minor, major, ... ending with a major round
    """
    if bracket_size < 2:
        return 0
    winners_rounds = int(math.log2(bracket_size))
    return 2 * (winners_rounds - 1)


def build_losers_bracket(builder: BracketBuilder, losers_by_round: List[List[Slot]],
                         total_losers_rounds: int, prefix: str = "") -> Slot:
    """
    Lay out the losers bracket and return the slot of its champion.

    The rounds alternate:
    - Minor rounds (L1, L3, L5...): losers bracket teams pair off
      (L1 pairs the losers of W1-M1 and W1-M2, W1-M3 and W1-M4, ...)
    - Major rounds (L2, L4, ...): losers of the next winners round drop in
      against the previous losers round winners, position for position

    A loser slot of a match that never exists is a bye, so the other side
    passes straight through.
    """
    if total_losers_rounds <= 0:
        # two-team bracket: the only first-round loser is the losers champion
        return losers_by_round[0][0]

    current: List[Slot] = []
    winners_round = 1
    for round_index in range(total_losers_rounds):
        round_num = round_index + 1
        round_name = get_losers_round_name(round_index, total_losers_rounds)

        if round_index == 0:
            drops = losers_by_round[0]
            pairs = [(drops[i], drops[i + 1]) for i in range(0, len(drops), 2)]
        elif round_index % 2 == 1:
            winners_round += 1
            pairs = list(zip(losers_by_round[winners_round - 1], current))
        else:
            pairs = [(current[i], current[i + 1]) for i in range(0, len(current), 2)]

        next_slots = []
        for position, (slot1, slot2) in enumerate(pairs, 1):
            winner, _ = builder.feed(f"{prefix}L{round_num}-M{position}", round_num, round_name,
                                     position, slot1, slot2, branch=LOSER_BRANCH)
            next_slots.append(winner)
        current = next_slots

    return current[0]


class DoubleEliminationHandler(SingleEliminationHandler):
    type = 'double-elimination'
    display_name = 'Double Elimination'
    description = 'Two-bracket system with winners and losers brackets. Lose twice to be eliminated.'
    constraints = FormatConstraints(
        min_teams=4,
        max_teams=256,
        preferred_team_counts=(4, 8, 16, 32, 64, 128),
        supports_odd_team_count=True,
        supports_byes=True,
        max_rounds=16,
        power_of_two_bracket=True,
    )
    supports_consolation = False
    branches = (WINNER_BRANCH, LOSER_BRANCH)

    @property
    def grand_final_id(self) -> str:
        return f"{self.prefix}GF"

    @property
    def bracket_reset_id(self) -> str:
        return f"{self.prefix}BR"

    def build(self, tournament, seeded, settings):
        builder = BracketBuilder(WINNER_BRANCH)
        bracket_size = calculate_bracket_size(len(seeded))
        winners_champion, losers_by_round, winners_rounds = build_winners_bracket(
            builder, seeded, self.prefix, get_winners_round_name)
        losers_rounds = calculate_losers_bracket_rounds(bracket_size)
        losers_champion = build_losers_bracket(builder, losers_by_round, losers_rounds, self.prefix)

        builder.feed(self.grand_final_id, winners_rounds + 1, 'Grand Final', 1,
                     winners_champion, losers_champion, branch=WINNER_BRANCH)

        extra = {
            'total_rounds': winners_rounds + 1,
            'bracket_size': bracket_size,
            'byes': calculate_byes(len(seeded)),
            'winners_rounds': winners_rounds,
            'losers_rounds': losers_rounds,
            'bracket_reset': bool(settings.get('bracket_reset', True)),
        }
        return builder.matches, extra

    def progress(self, completed, tournament, matches, by_id, settings):
        affected = [completed]
        branch_updates: Dict[str, str] = {}
        winner = completed.winner_id
        loser = completed.loser_id

        if completed.id == self.bracket_reset_id:
            return affected, [], branch_updates

        if completed.id == self.grand_final_id:
            new_matches = []
            losers_champion = completed.slot2.team_id
            if winner == losers_champion and settings.get('bracket_reset', True):
                if self.bracket_reset_id in by_id:
                    raise BracketIntegrityError(
                        f'Bracket reset {self.bracket_reset_id} already exists', completed.id)
                new_matches.append(self._bracket_reset(completed))
                completed.winner_to = self.bracket_reset_id
                completed.loser_to = self.bracket_reset_id
                branch_updates[loser] = LOSER_BRANCH
                logger.info(f'Losers champion {winner} won {completed.id}, bracket reset created')
            return affected, new_matches, branch_updates

        for target_id, outcome, team_id in ((completed.winner_to, Slot.WINNER_OF, winner),
                                            (completed.loser_to, Slot.LOSER_OF, loser)):
            if not target_id:
                continue
            target = place_team(by_id, completed, target_id, outcome, team_id)
            if target not in affected:
                affected.append(target)

        if completed.branch == WINNER_BRANCH and completed.loser_to:
            branch_updates[loser] = LOSER_BRANCH
        return affected, [], branch_updates

    def _bracket_reset(self, grand_final: Match) -> Match:
        slot1 = Slot.for_team(grand_final.slot1.team_id, seed=grand_final.slot1.seed,
                              match_id=grand_final.id)
        slot2 = Slot.for_team(grand_final.slot2.team_id, seed=grand_final.slot2.seed,
                              match_id=grand_final.id)
        return Match(self.bracket_reset_id, grand_final.round + 1, 'Bracket Reset', slot1, slot2,
                     branch=WINNER_BRANCH, position=1, status=SCHEDULED, is_conditional=True)

    def is_complete(self, tournament, matches):
        by_id = {m.id: m for m in self.own_matches(matches)}
        reset = by_id.get(self.bracket_reset_id)
        if reset is not None:
            return reset.status == COMPLETED
        grand_final = by_id.get(self.grand_final_id)
        if grand_final is None or grand_final.status != COMPLETED:
            return False
        if grand_final.winner_id == grand_final.slot1.team_id:
            return True
        return not self._reset_enabled(tournament)

    def _reset_enabled(self, tournament) -> bool:
        return bool(resolve_settings(tournament).get('bracket_reset', True))

    def team_outcomes(self, tournament, matches, standings, settings):
        losers_rounds = max((m.round for m in matches if m.branch == LOSER_BRANCH), default=0)
        alive_stage = losers_rounds + 3
        reset_enabled = bool(settings.get('bracket_reset', True))
        losses: Dict[str, int] = {}

        for standing in standings.values():
            standing.stage = alive_stage

        for match in matches:
            loser = match.loser_id
            if loser is None or loser not in standings:
                continue
            losses[loser] = losses.get(loser, 0) + 1
            decisive_final = match.id == self.grand_final_id and not reset_enabled
            if losses[loser] >= 2 or decisive_final:
                standings[loser].status = 'eliminated'
                standings[loser].stage = self._elimination_stage(match, losers_rounds)

    def _elimination_stage(self, match: Match, losers_rounds: int) -> int:
        if match.id == self.bracket_reset_id:
            return losers_rounds + 2
        if match.id == self.grand_final_id:
            return losers_rounds + 1
        return match.round

    def final_match(self, matches: List[Match]) -> Optional[Match]:
        by_id = {m.id: m for m in self.own_matches(matches)}
        return by_id.get(self.bracket_reset_id) or by_id.get(self.grand_final_id)

    def champion(self, tournament, matches, ranked):
        if not self.is_complete(tournament, matches):
            return None
        return self.final_match(matches).winner_id
