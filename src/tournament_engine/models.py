"""
Data model for the tournament format engine.

Every object here is plain data: the engine reads them, copies them and
returns new ones, but never keeps them between calls.
"""
import copy
from collections import Counter

UNRANKED = 9999

REGION_KEYWORDS = {
    'North': ('north', 'northern'),
    'South': ('south', 'southern'),
    'East': ('east', 'eastern'),
    'West': ('west', 'western'),
    'Central': ('central', 'center'),
}

SCHEDULED = 'scheduled'
ACTIVE = 'active'
COMPLETED = 'completed'
CANCELLED = 'cancelled'
PENDING = 'pending'
MATCH_STATUSES = (PENDING, SCHEDULED, ACTIVE, COMPLETED, CANCELLED)

WINNER_BRANCH = 'winner'
LOSER_BRANCH = 'loser'
CONSOLATION_BRANCH = 'consolation'
BARRAGE_BRANCH = 'barrage'


class Player:
    def __init__(self, name, ranking=None, club=None, region=None,
                 win_percentage=0.0, points_differential=0):
        self.name = name
        self.ranking = ranking
        self.club = club
        self.region = region
        self.win_percentage = win_percentage
        self.points_differential = points_differential

    def __repr__(self):
        return f"Player(name={self.name}, ranking={self.ranking}, club={self.club})"


class Team:
    def __init__(self, id, name=None, members=None, ranking=None, club=None, region=None,
                 seed=None, bracket_branch=WINNER_BRANCH):
        self.id = id
        self.name = name if name else id
        self.members = list(members) if members else []
        self._ranking = ranking
        self._club = club
        self._region = region
        self.seed = seed
        self.bracket_branch = bracket_branch

    @property
    def ranking(self):
        """Composite ranking, lower is better."""
        if self._ranking is not None:
            return self._ranking
        if not self.members:
            return UNRANKED
        total = sum(p.ranking if p.ranking is not None else UNRANKED for p in self.members)
        return total / len(self.members)

    @property
    def win_percentage(self):
        if not self.members:
            return 0.0
        return sum(p.win_percentage for p in self.members) / len(self.members)

    @property
    def points_differential(self):
        if not self.members:
            return 0
        return sum(p.points_differential for p in self.members) / len(self.members)

    @property
    def club(self):
        """Explicit club, else the most common club among members."""
        if self._club:
            return self._club
        clubs = [p.club for p in self.members if p.club]
        if not clubs:
            return None
        # most_common keeps first-seen order on equal counts
        return Counter(clubs).most_common(1)[0][0]

    @property
    def region(self):
        if self._region:
            return self._region
        regions = [p.region for p in self.members if p.region]
        if regions:
            return Counter(regions).most_common(1)[0][0]
        club = self.club
        if not club:
            return None
        lower_club = club.lower()
        for region, keywords in REGION_KEYWORDS.items():
            if any(keyword in lower_club for keyword in keywords):
                return region
        return None

    def copy(self):
        return copy.copy(self)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'members': [p.name for p in self.members],
            'ranking': self.ranking,
            'club': self.club,
            'region': self.region,
            'seed': self.seed,
            'bracket_branch': self.bracket_branch,
        }

    def __repr__(self):
        return f"Team(id={self.id}, seed={self.seed}, ranking={self.ranking})"


class Slot:
    """
    One participant position of a match.

    kind is one of:
    - 'team': a concrete team (team_id set)
    - 'winner_of' / 'loser_of': the outcome of match_id, not yet known
    - 'bye': no opponent

    A resolved placeholder keeps match_id as provenance so the bracket
    tree can still be rebuilt from the matches alone.
    """
    TEAM = 'team'
    WINNER_OF = 'winner_of'
    LOSER_OF = 'loser_of'
    BYE = 'bye'

    def __init__(self, kind, team_id=None, match_id=None, seed=None):
        self.kind = kind
        self.team_id = team_id
        self.match_id = match_id
        self.seed = seed

    @classmethod
    def for_team(cls, team_id, seed=None, match_id=None):
        return cls(cls.TEAM, team_id=team_id, seed=seed, match_id=match_id)

    @classmethod
    def winner_of(cls, match_id):
        return cls(cls.WINNER_OF, match_id=match_id)

    @classmethod
    def loser_of(cls, match_id):
        return cls(cls.LOSER_OF, match_id=match_id)

    @classmethod
    def bye(cls):
        return cls(cls.BYE)

    @property
    def is_team(self):
        return self.kind == self.TEAM

    @property
    def is_bye(self):
        return self.kind == self.BYE

    @property
    def is_placeholder(self):
        return self.kind in (self.WINNER_OF, self.LOSER_OF)

    def references(self, match_id, outcome):
        """True if this slot still waits for the given outcome of match_id."""
        return self.kind == outcome and self.match_id == match_id

    def resolve(self, team_id, seed=None):
        return Slot.for_team(team_id, seed=seed, match_id=self.match_id)

    def label(self):
        if self.kind == self.TEAM:
            return self.team_id
        if self.kind == self.BYE:
            return 'BYE'
        prefix = 'Winner' if self.kind == self.WINNER_OF else 'Loser'
        return f"{prefix} {self.match_id}"

    def to_dict(self):
        return {'kind': self.kind, 'team_id': self.team_id,
                'match_id': self.match_id, 'seed': self.seed}

    def __eq__(self, other):
        if not isinstance(other, Slot):
            return NotImplemented
        return (self.kind, self.team_id, self.match_id) == (other.kind, other.team_id, other.match_id)

    def __repr__(self):
        return f"Slot({self.label()})"


class MatchResult:
    def __init__(self, score1=0, score2=0, winner_id=None):
        self.score1 = score1
        self.score2 = score2
        self.winner_id = winner_id

    def to_dict(self):
        return {'score1': self.score1, 'score2': self.score2, 'winner_id': self.winner_id}

    def __repr__(self):
        return f"MatchResult({self.score1}-{self.score2}, winner={self.winner_id})"


class Match:
    def __init__(self, id, round, round_name, slot1, slot2, branch=WINNER_BRANCH,
                 position=1, status=None, result=None, winner_to=None, loser_to=None,
                 is_conditional=False):
        self.id = id
        self.round = round
        self.round_name = round_name
        self.branch = branch
        self.position = position
        self.slot1 = slot1
        self.slot2 = slot2
        self.result = result
        self.winner_to = winner_to
        self.loser_to = loser_to
        self.is_conditional = is_conditional
        if status is None:
            status = SCHEDULED if self.is_ready else PENDING
        self.status = status

    @property
    def slots(self):
        return (self.slot1, self.slot2)

    @property
    def is_ready(self):
        """Both participants are concrete teams."""
        return self.slot1.is_team and self.slot2.is_team

    @property
    def is_bye(self):
        return self.slot1.is_bye or self.slot2.is_bye

    @property
    def team_ids(self):
        return [s.team_id for s in self.slots if s.is_team]

    @property
    def winner_id(self):
        if self.status != COMPLETED or self.result is None:
            return None
        return self.result.winner_id

    @property
    def loser_id(self):
        winner = self.winner_id
        if winner is None:
            return None
        for slot in self.slots:
            if slot.is_team and slot.team_id != winner:
                return slot.team_id
        return None

    def score_for(self, team_id):
        """(points for, points against) for team_id in this match."""
        if self.result is None:
            return 0, 0
        if self.slot1.is_team and self.slot1.team_id == team_id:
            return self.result.score1, self.result.score2
        return self.result.score2, self.result.score1

    def opponent_of(self, team_id):
        for own, other in ((self.slot1, self.slot2), (self.slot2, self.slot1)):
            if own.is_team and own.team_id == team_id:
                return other.team_id if other.is_team else None
        return None

    def seed_of(self, team_id):
        for slot in self.slots:
            if slot.is_team and slot.team_id == team_id:
                return slot.seed
        return None

    def complete(self, score1, score2, winner_id=None):
        """Return a completed copy of this match. The winner defaults to the higher score."""
        if winner_id is None and score1 != score2:
            winner_id = self.slot1.team_id if score1 > score2 else self.slot2.team_id
        updated = self.copy()
        updated.result = MatchResult(score1, score2, winner_id)
        updated.status = COMPLETED
        return updated

    def copy(self):
        return copy.deepcopy(self)

    def to_dict(self):
        return {
            'id': self.id,
            'round': self.round,
            'round_name': self.round_name,
            'branch': self.branch,
            'position': self.position,
            'teams': [self.slot1.label(), self.slot2.label()],
            'slots': [self.slot1.to_dict(), self.slot2.to_dict()],
            'status': self.status,
            'result': self.result.to_dict() if self.result else None,
            'winner_to': self.winner_to,
            'loser_to': self.loser_to,
            'is_conditional': self.is_conditional,
        }

    def __repr__(self):
        return (f"Match(id={self.id}, {self.slot1.label()} vs {self.slot2.label()}, "
                f"status={self.status})")


class BracketNode:
    def __init__(self, id, round, position, branch=WINNER_BRANCH, match_id=None,
                 children=None, parent=None, team_ids=None, winner_id=None):
        self.id = id
        self.round = round
        self.position = position
        self.branch = branch
        self.match_id = match_id
        self.children = children if children else []
        self.parent = parent
        self.team_ids = team_ids if team_ids else []
        self.winner_id = winner_id

    def to_dict(self):
        return {
            'id': self.id,
            'round': self.round,
            'position': self.position,
            'branch': self.branch,
            'match_id': self.match_id,
            'children': list(self.children),
            'parent': self.parent,
            'team_ids': list(self.team_ids),
            'winner_id': self.winner_id,
        }

    def __repr__(self):
        return f"BracketNode(id={self.id}, round={self.round}, branch={self.branch})"


class Tournament:
    def __init__(self, id, type, name=None, format=None, status='setup', max_points=13,
                 short_form=False, max_players=None, settings=None):
        self.id = id
        self.type = type
        self.name = name if name else id
        self.format = format
        self.status = status
        self.max_points = max_points
        self.short_form = short_form
        self.max_players = max_players
        self.settings = settings if settings else {}

    def __repr__(self):
        return f"Tournament(id={self.id}, type={self.type}, format={self.format})"


class SeedingOptions:
    METHODS = ('ranked', 'random', 'club-balanced', 'geographic', 'skill-balanced')
    DISTRIBUTIONS = ('snake', 'even', 'random')

    def __init__(self, method='ranked', random_seed=None, skill_distribution='even'):
        self.method = method
        self.random_seed = random_seed
        self.skill_distribution = skill_distribution

    def __repr__(self):
        return (f"SeedingOptions(method={self.method}, random_seed={self.random_seed}, "
                f"skill_distribution={self.skill_distribution})")


class GenerationOptions:
    def __init__(self, seeding=None, allow_byes=True):
        self.seeding = seeding if seeding else SeedingOptions()
        self.allow_byes = allow_byes

    def __repr__(self):
        return f"GenerationOptions(seeding={self.seeding}, allow_byes={self.allow_byes})"


class ValidatorResult:
    def __init__(self, errors=None, warnings=None, suggestions=None):
        self.errors = errors if errors else []
        self.warnings = warnings if warnings else []
        self.suggestions = suggestions if suggestions else []

    @property
    def is_valid(self):
        return not self.errors

    def merge(self, other):
        return ValidatorResult(self.errors + other.errors,
                               self.warnings + other.warnings,
                               self.suggestions + other.suggestions)

    def to_dict(self):
        return {
            'is_valid': self.is_valid,
            'errors': list(self.errors),
            'warnings': list(self.warnings),
            'suggestions': list(self.suggestions),
        }

    def __repr__(self):
        return f"ValidatorResult(is_valid={self.is_valid}, errors={self.errors}, warnings={self.warnings})"


class BracketResult:
    def __init__(self, matches=None, bracket_structure=None, metadata=None, seeded_teams=None,
                 bye_teams=None, validation=None):
        self.matches = matches if matches else []
        self.bracket_structure = bracket_structure if bracket_structure else []
        self.metadata = metadata if metadata else {}
        self.seeded_teams = seeded_teams if seeded_teams else []
        self.bye_teams = bye_teams if bye_teams else []
        self.validation = validation if validation else ValidatorResult()

    @property
    def ok(self):
        return self.validation.is_valid

    def to_dict(self):
        return {
            'matches': [m.to_dict() for m in self.matches],
            'bracket_structure': [n.to_dict() for n in self.bracket_structure],
            'metadata': dict(self.metadata),
            'seeded_teams': [t.to_dict() for t in self.seeded_teams],
            'bye_teams': [t.to_dict() for t in self.bye_teams],
            'validation': self.validation.to_dict(),
        }


class ProgressionResult:
    def __init__(self, affected_matches=None, new_matches=None, updated_bracket_structure=None,
                 is_complete=False, final_rankings=None, branch_updates=None):
        self.affected_matches = affected_matches if affected_matches else []
        self.new_matches = new_matches if new_matches else []
        self.updated_bracket_structure = updated_bracket_structure if updated_bracket_structure else []
        self.is_complete = is_complete
        self.final_rankings = final_rankings
        self.branch_updates = branch_updates if branch_updates else {}

    def to_dict(self):
        return {
            'affected_matches': [m.to_dict() for m in self.affected_matches],
            'new_matches': [m.to_dict() for m in self.new_matches],
            'updated_bracket_structure': [n.to_dict() for n in self.updated_bracket_structure],
            'is_complete': self.is_complete,
            'final_rankings': [s.to_dict() for s in self.final_rankings] if self.final_rankings else None,
            'branch_updates': dict(self.branch_updates),
        }


class Standing:
    def __init__(self, team_id, seed=None):
        self.team_id = team_id
        self.seed = seed
        self.rank = 0
        self.wins = 0
        self.losses = 0
        self.points_for = 0
        self.points_against = 0
        self.recent_results = []
        self.status = 'active'
        self.stage = 0
        self.tie_breakers = {}

    @property
    def matches_played(self):
        return self.wins + self.losses

    @property
    def points_differential(self):
        return self.points_for - self.points_against

    @property
    def win_percentage(self):
        if not self.matches_played:
            return 0.0
        return self.wins / self.matches_played

    def to_dict(self):
        return {
            'team_id': self.team_id,
            'rank': self.rank,
            'matches_played': self.matches_played,
            'wins': self.wins,
            'losses': self.losses,
            'points_for': self.points_for,
            'points_against': self.points_against,
            'points_differential': self.points_differential,
            'recent_results': list(self.recent_results),
            'status': self.status,
            'tie_breakers': dict(self.tie_breakers),
        }

    def __repr__(self):
        return (f"Standing(rank={self.rank}, team={self.team_id}, "
                f"{self.wins}-{self.losses}, status={self.status})")


class Standings:
    def __init__(self, rankings=None, tie_breakers=None, metadata=None):
        self.rankings = rankings if rankings else []
        self.tie_breakers = tie_breakers if tie_breakers else []
        self.metadata = metadata if metadata else {}

    def for_team(self, team_id):
        for standing in self.rankings:
            if standing.team_id == team_id:
                return standing
        return None

    def to_dict(self):
        return {
            'rankings': [s.to_dict() for s in self.rankings],
            'tie_breakers': list(self.tie_breakers),
            'metadata': dict(self.metadata),
        }
