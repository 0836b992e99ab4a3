"""
Tests for round robin scheduling and standings.
"""
import pytest

from tournament_engine.engine import compute_standings, generate, is_complete
from tournament_engine.formats.round_robin import circle_rounds
from tournament_engine.models import SCHEDULED


def play_pair(play, tournament, matches, winner, loser, score=(13, 7)):
    """Play the match between two teams, whatever its id."""
    match = next(m for m in matches if set(m.team_ids) == {winner, loser})
    matches, _ = play(tournament, matches, match.id, winner, *score)
    return matches


class TestCircleMethod:
    """Tests for circle_rounds."""

    @pytest.mark.parametrize('count', [4, 6, 10])
    def test_even_count(self, count):
        """Even fields play N-1 rounds without byes."""
        ids = [f't{i}' for i in range(count)]
        rounds = circle_rounds(ids)
        assert len(rounds) == count - 1
        assert all(bye is None for _, bye in rounds)
        assert all(len(pairs) == count // 2 for pairs, _ in rounds)

    @pytest.mark.parametrize('count', [3, 5, 7])
    def test_odd_count(self, count):
        """Odd fields play N rounds and each team sits out once."""
        ids = [f't{i}' for i in range(count)]
        rounds = circle_rounds(ids)
        assert len(rounds) == count
        assert sorted(bye for _, bye in rounds) == sorted(ids)

    @pytest.mark.parametrize('count', [3, 4, 5, 8, 9])
    def test_everyone_meets_once(self, count):
        """N(N-1)/2 distinct pairings and nobody plays twice in a round."""
        ids = [f't{i}' for i in range(count)]
        rounds = circle_rounds(ids)
        pairs = [frozenset(p) for round_pairs, _ in rounds for p in round_pairs]
        assert len(pairs) == count * (count - 1) // 2
        assert len(set(pairs)) == len(pairs)
        for round_pairs, bye in rounds:
            seen = [team for pair in round_pairs for team in pair]
            assert len(seen) == len(set(seen))
            assert bye not in seen

    def test_pair_orientation_alternates(self):
        """The fixed team is listed first; the next pair is flipped."""
        rounds = circle_rounds(['a', 'b', 'c', 'd'])
        firsts = {pairs[0][0] for pairs, _ in rounds}
        assert firsts == {'a'}
        second_pairs = [pairs[1] for pairs, _ in rounds]
        assert all(pair[0] != 'a' for pair in second_pairs)


class TestGeneration:
    """Tests for generated round robin schedules."""

    def test_four_teams(self, make_teams, make_tournament):
        """Six matches over three rounds, all scheduled."""
        result = generate(make_tournament('round-robin'), make_teams(4))
        assert len(result.matches) == 6
        assert result.metadata['total_rounds'] == 3
        assert result.metadata['byes_by_round'] == {}
        assert all(m.status == SCHEDULED for m in result.matches)
        assert result.bye_teams == []
        assert result.matches[0].id == 'R1-M1'

    def test_five_teams_byes(self, make_teams, make_tournament):
        """Byes are listed per round and in the structure, never as matches."""
        result = generate(make_tournament('round-robin'), make_teams(5))
        assert len(result.matches) == 10
        assert result.metadata['total_rounds'] == 5
        byes = result.metadata['byes_by_round']
        assert sorted(byes) == [1, 2, 3, 4, 5]
        assert sorted(byes.values()) == ['T1', 'T2', 'T3', 'T4', 'T5']
        assert not any(m.is_bye for m in result.matches)

        nodes = {n.id: n for n in result.bracket_structure}
        for round_num, team_id in byes.items():
            assert nodes[f'R{round_num}-BYE'].team_ids == [team_id]

    def test_field_limits(self, make_teams, make_tournament):
        """Round robin takes 3 to 20 teams."""
        assert generate(make_tournament('round-robin'), make_teams(20)).validation.is_valid
        assert generate(make_tournament('round-robin'), make_teams(21)).matches == []


class TestPlay:
    """Tests for playing a round robin through."""

    def test_progress_adds_nothing(self, make_teams, make_tournament, play):
        """The whole schedule exists up front."""
        tournament = make_tournament('round-robin')
        matches = generate(tournament, make_teams(4)).matches
        matches, result = play(tournament, matches, 'R1-M1', matches[0].slot1.team_id)
        assert result.new_matches == []
        assert [m.id for m in result.affected_matches] == ['R1-M1']
        assert not result.is_complete

    def test_completion(self, make_teams, make_tournament, run_tournament):
        """Complete after the last match; the best record is champion."""
        tournament = make_tournament('round-robin')
        matches = generate(tournament, make_teams(4)).matches
        matches, result = run_tournament(tournament, matches)
        assert result.is_complete
        assert is_complete(tournament, matches)
        standings = compute_standings(tournament, matches)
        assert [(s.team_id, s.wins, s.rank) for s in standings.rankings] == [
            ('T1', 3, 1), ('T2', 2, 2), ('T3', 1, 3), ('T4', 0, 4),
        ]
        assert standings.rankings[0].status == 'champion'
        assert standings.metadata['champion'] == 'T1'

    def test_mathematically_eliminated(self, make_teams, make_tournament, play):
        """Teams that cannot catch the leader are eliminated before the end."""
        tournament = make_tournament('round-robin')
        matches = generate(tournament, make_teams(4)).matches
        for loser in ('T2', 'T3', 'T4'):
            matches = play_pair(play, tournament, matches, 'T1', loser)
        standings = compute_standings(tournament, matches)
        assert standings.for_team('T1').status == 'active'
        for team_id in ('T2', 'T3', 'T4'):
            assert standings.for_team(team_id).status == 'eliminated'


def head_to_head_season(play, tournament, matches):
    """T1 and T3 finish on two wins; T1 won their game but T3 has the better differential."""
    results = [
        ('T1', 'T2', (13, 12)),
        ('T1', 'T3', (13, 12)),
        ('T4', 'T1', (13, 0)),
        ('T3', 'T2', (13, 0)),
        ('T3', 'T4', (13, 0)),
        ('T2', 'T4', (13, 7)),
    ]
    for winner, loser, score in results:
        matches = play_pair(play, tournament, matches, winner, loser, score)
    return matches


class TestTieBreaks:
    """Tests for round robin tie-breaks."""

    def test_head_to_head_first(self, make_teams, make_tournament, play):
        """The default chain settles a two-way tie by the game between them."""
        tournament = make_tournament('round-robin')
        matches = generate(tournament, make_teams(4)).matches
        matches = head_to_head_season(play, tournament, matches)
        standings = compute_standings(tournament, matches)
        assert [s.team_id for s in standings.rankings] == ['T1', 'T3', 'T2', 'T4']
        assert [s.rank for s in standings.rankings] == [1, 2, 3, 4]

    def test_chain_override(self, make_teams, make_tournament, play):
        """An explicit chain replaces the default."""
        tournament = make_tournament('round-robin')
        matches = generate(tournament, make_teams(4)).matches
        matches = head_to_head_season(play, tournament, matches)
        standings = compute_standings(tournament, matches, tie_breakers=['points_differential'])
        assert [s.team_id for s in standings.rankings[:2]] == ['T3', 'T1']
        assert standings.tie_breakers == ['points_differential']

    def test_three_way_tie_shares_rank(self, make_teams, make_tournament, play):
        """Head-to-head is skipped for three teams; equal values share a rank."""
        tournament = make_tournament('round-robin')
        matches = generate(tournament, make_teams(4)).matches
        results = [('T1', 'T2'), ('T1', 'T3'), ('T1', 'T4'),
                   ('T3', 'T2'), ('T2', 'T4'), ('T4', 'T3')]
        for winner, loser in results:
            matches = play_pair(play, tournament, matches, winner, loser)
        standings = compute_standings(tournament, matches)
        assert [s.rank for s in standings.rankings] == [1, 2, 2, 2]
        assert [s.team_id for s in standings.rankings] == ['T1', 'T2', 'T3', 'T4']
