"""
Shared pytest fixtures for tournament engine tests.

Running tests:
    pytest tests/                  - full suite
    pytest tests/ -m "not slow"   - fast subset (skips large brackets)
"""
import pytest
import sys
import os

# Add src directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from tournament_engine.engine import advance
from tournament_engine.models import SCHEDULED, Player, Team, Tournament


def _make_teams(count, prefix='T'):
    """Teams T1..Tn where Tk has ranking k (so Tk is seed k under ranked seeding)."""
    return [Team(id=f'{prefix}{i}', name=f'Team {i}', ranking=i) for i in range(1, count + 1)]


def _play(tournament, matches, match_id, winner_id, winning_score=13, losing_score=7):
    """Complete one match, advance it and merge the result into a new match list."""
    match = next(m for m in matches if m.id == match_id)
    if match.slot1.team_id == winner_id:
        completed = match.complete(winning_score, losing_score)
    else:
        completed = match.complete(losing_score, winning_score)
    result = advance(completed, tournament, matches)
    updated = {m.id: m for m in result.affected_matches}
    merged = [updated.get(m.id, m) for m in matches] + result.new_matches
    return merged, result


def _run(tournament, matches, pick_winner=None, max_steps=2000):
    """
    Play every scheduled match until none is left.

    pick_winner(match) chooses the winner; by default the better seed wins.
    Returns (matches, last ProgressionResult).
    """
    def better_seed(match):
        first, second = match.slot1, match.slot2
        return first.team_id if (first.seed or 0) <= (second.seed or 0) else second.team_id

    chooser = pick_winner if pick_winner else better_seed
    result = None
    for _ in range(max_steps):
        ready = [m for m in matches if m.status == SCHEDULED and m.is_ready]
        if not ready:
            return matches, result
        match = ready[0]
        matches, result = _play(tournament, matches, match.id, chooser(match))
    raise AssertionError('tournament did not finish')


@pytest.fixture
def make_teams():
    """Factory for ranked teams T1..Tn."""
    return _make_teams


@pytest.fixture
def make_tournament():
    """Factory for a tournament of a given type."""
    def factory(type='single-elimination', **kwargs):
        kwargs.setdefault('id', 'cup')
        return Tournament(type=type, **kwargs)
    return factory


@pytest.fixture
def play():
    """Complete and advance a single match."""
    return _play


@pytest.fixture
def run_tournament():
    """Play a tournament to the end."""
    return _run


@pytest.fixture
def five_teams():
    """Teams A..E ranked 1..5."""
    return [Team(id=name, name=f'Team {name}', ranking=rank)
            for rank, name in enumerate('ABCDE', 1)]


@pytest.fixture
def club_players():
    """Doubles players across three clubs."""
    return [
        Player('Ana', ranking=1, club='North Boules'),
        Player('Ben', ranking=3, club='North Boules'),
        Player('Cleo', ranking=2, club='South Petanque'),
        Player('Dan', ranking=6, club='South Petanque'),
        Player('Eve', ranking=4, club='Central Club'),
        Player('Finn', ranking=8, club='Central Club'),
    ]
