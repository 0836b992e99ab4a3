"""
Shared contract for every tournament format.

A handler is stateless: each call receives the tournament, the teams or
the full match list, and returns new objects. Nothing passed in is mutated.
"""
import logging
import math
from typing import Dict, List, Optional, Tuple

from ..config import resolve_settings
from ..errors import BracketIntegrityError
from ..models import (
    BracketNode, BracketResult, CANCELLED, COMPLETED, GenerationOptions, Match,
    ProgressionResult, Team, ValidatorResult, WINNER_BRANCH,
)
from ..seeding import seed_teams
from ..validation import FormatConstraints, validate_teams

logger = logging.getLogger(__name__)


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class FormatHandler:
    """Base class for the format variants registered in tournament_engine.formats."""

    type = None
    display_name = None
    description = ''
    constraints = FormatConstraints(min_teams=2)
    branches = (WINNER_BRANCH,)
    supports_consolation = False
    is_elimination = False
    default_tie_breakers = ('points_differential', 'points_against')

    # -- validation -------------------------------------------------------

    def validate(self, tournament, teams: List[Team], settings: Optional[Dict] = None) -> ValidatorResult:
        settings = settings if settings is not None else resolve_settings(tournament)
        return validate_teams(tournament, teams, self.constraints,
                              format_name=self.display_name, settings=settings)

    # -- generation -------------------------------------------------------

    def generate(self, tournament, teams: List[Team],
                 options: Optional[GenerationOptions] = None) -> BracketResult:
        options = options if options else GenerationOptions()
        settings = resolve_settings(tournament)
        validation = self.validate(tournament, teams, settings)
        if validation.is_valid and not options.allow_byes and self.byes_needed(len(teams)):
            validation = validation.merge(ValidatorResult(
                errors=[f'{len(teams)} teams need {self.byes_needed(len(teams))} byes '
                        f'but byes are not allowed']))
        if not validation.is_valid:
            logger.info(f'Not generating {self.type} for {tournament.id}: {validation.errors}')
            return BracketResult(validation=validation)

        ordered = seed_teams(teams, options.seeding)
        seeded = []
        for index, team in enumerate(ordered):
            seeded_team = team.copy()
            seeded_team.seed = index + 1
            seeded_team.bracket_branch = self.branches[0]
            seeded.append(seeded_team)

        matches, extra = self.build(tournament, seeded, settings)
        structure = self.build_structure(matches)
        total_matches = extra.pop('total_matches', len(matches))
        metadata = {
            'format': self.type,
            'format_name': self.display_name,
            'total_rounds': extra.pop('total_rounds'),
            'total_matches': total_matches,
            'estimated_duration': self.estimate_duration(tournament, total_matches, settings),
            'min_players': self.constraints.min_teams,
            'max_players': self.constraints.max_teams,
            'supports_byes': self.constraints.supports_byes,
            'supports_consolation': self.supports_consolation,
        }
        metadata.update(extra)

        bye_teams = self.bye_teams(seeded)
        logger.info(f'Generated {self.type} for {tournament.id}: {len(seeded)} teams, '
                    f'{len(matches)} matches, {metadata["total_rounds"]} rounds')
        return BracketResult(matches=matches, bracket_structure=structure, metadata=metadata,
                             seeded_teams=seeded, bye_teams=bye_teams, validation=validation)

    def build(self, tournament, seeded: List[Team], settings: Dict) -> Tuple[List[Match], Dict]:
        """Create the initial matches; returns (matches, metadata extras incl. total_rounds)."""
        raise NotImplementedError

    def byes_needed(self, team_count: int) -> int:
        return 0

    def bye_teams(self, seeded: List[Team]) -> List[Team]:
        return seeded[:self.byes_needed(len(seeded))]

    def estimate_duration(self, tournament, total_matches: int, settings: Dict) -> int:
        """Minutes for total_matches, adjusted for short form, self-reporting and manual courts."""
        base = total_matches * settings.get('match_duration_minutes', 45)
        factor = 1.0
        if tournament.short_form:
            factor *= 0.7
        if settings.get('scoring_mode') == 'self-report':
            factor *= 1.1
        if settings.get('court_assignment_mode') == 'manual':
            factor *= 1.2
        return round_half_up(base * factor)

    # -- progression ------------------------------------------------------

    def advance(self, completed_match: Match, tournament, all_matches: List[Match]) -> ProgressionResult:
        """
        Consume one newly completed match.

        Raises BracketIntegrityError when the match is not completed, has
        no winner among its teams, is unknown to all_matches, or its
        successors cannot take the result.
        """
        matches = self._working_copy(completed_match, all_matches)
        by_id = {m.id: m for m in matches}
        completed = by_id[completed_match.id]
        settings = resolve_settings(tournament)

        affected, new_matches, branch_updates = self.progress(completed, tournament, matches, by_id, settings)
        matches.extend(new_matches)

        own = self.own_matches(matches)
        complete = self.is_complete(tournament, own)
        final_rankings = None
        if complete:
            from ..standings import compute_standings
            final_rankings = compute_standings(tournament, matches, format_type=self.type).rankings
            logger.info(f'{self.type} tournament {tournament.id} is complete')

        logger.debug(f'Advanced {completed.id}: {len(affected)} affected, {len(new_matches)} new')
        return ProgressionResult(
            affected_matches=affected,
            new_matches=new_matches,
            updated_bracket_structure=self.build_structure(own),
            is_complete=complete,
            final_rankings=final_rankings,
            branch_updates=branch_updates,
        )

    def progress(self, completed: Match, tournament, matches: List[Match],
                 by_id: Dict[str, Match], settings: Dict):
        """Return (affected_matches, new_matches, branch_updates) for a completed match."""
        raise NotImplementedError

    def _working_copy(self, completed_match: Match, all_matches: List[Match]) -> List[Match]:
        if completed_match.status != COMPLETED:
            raise BracketIntegrityError(
                f'Match {completed_match.id} is {completed_match.status}, not completed',
                completed_match.id)
        winner = completed_match.winner_id
        if winner is None or winner not in completed_match.team_ids:
            raise BracketIntegrityError(
                f'Match {completed_match.id} has no declared winner among its teams',
                completed_match.id)

        matches = []
        found = False
        for match in all_matches:
            if match.id == completed_match.id:
                matches.append(completed_match.copy())
                found = True
            else:
                matches.append(match.copy())
        if not found:
            raise BracketIntegrityError(f'Match {completed_match.id} is not part of this tournament',
                                        completed_match.id)
        return matches

    def own_matches(self, matches: List[Match]) -> List[Match]:
        return [m for m in matches if m.branch in self.branches]

    def is_complete(self, tournament, matches: List[Match]) -> bool:
        raise NotImplementedError

    # -- structure and standings hooks ------------------------------------

    def build_structure(self, matches: List[Match]) -> List[BracketNode]:
        nodes = []
        for match in matches:
            nodes.append(BracketNode(
                id=match.id,
                match_id=match.id,
                round=match.round,
                position=match.position,
                branch=match.branch,
                children=list(dict.fromkeys(s.match_id for s in match.slots if s.match_id)),
                parent=match.winner_to,
                team_ids=match.team_ids,
                winner_id=match.winner_id,
            ))
        return nodes

    def team_outcomes(self, tournament, matches: List[Match], standings: Dict, settings: Dict) -> None:
        """Set status and stage on each Standing in standings (keyed by team id)."""
        raise NotImplementedError

    def champion(self, tournament, matches: List[Match], ranked) -> Optional[str]:
        """Champion team id once the tournament is complete, else None."""
        if not self.is_complete(tournament, matches) or not ranked:
            return None
        return ranked[0].team_id


def is_finished(match: Match) -> bool:
    return match.status in (COMPLETED, CANCELLED)


def apply_qualification_cutoff(standings: Dict, remaining: Dict[str, int], qualifiers: int) -> None:
    """
    Mark teams that can no longer finish in the top `qualifiers` places.

    A team is out when at least `qualifiers` other teams already have more
    wins than it could reach by winning every remaining match.
    """
    for standing in standings.values():
        standing.stage = 0
    if qualifiers <= 0 or qualifiers >= len(standings):
        return
    for team_id, standing in standings.items():
        best_case = standing.wins + remaining.get(team_id, 0)
        ahead = sum(1 for other_id, other in standings.items()
                    if other_id != team_id and other.wins > best_case)
        if ahead >= qualifiers:
            standing.status = 'eliminated'
