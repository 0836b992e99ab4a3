"""
Team seeding strategies.

Every strategy returns a permutation of its input: no team is added or
dropped. Seeds are not assigned here; the format engine numbers the
returned order 1..N.
"""
import logging
import math
import random
from typing import Callable, Dict, List, Optional

from .models import SeedingOptions, Team

logger = logging.getLogger(__name__)

LCG_MODULUS = 2147483647
LCG_MULTIPLIER = 16807


class SeededRandom:
    """
    Park-Miller minimal standard generator.

    The same seed always yields the same sequence, so a seeded shuffle is
    reproducible across runs and machines.
    """

    def __init__(self, seed: int):
        state = int(seed) % LCG_MODULUS
        if state <= 0:
            state = 1
        self.state = state

    def random(self) -> float:
        self.state = (self.state * LCG_MULTIPLIER) % LCG_MODULUS
        return (self.state - 1) / (LCG_MODULUS - 1)


def _make_rng(options: SeedingOptions, rng=None):
    if options.random_seed is not None:
        return SeededRandom(options.random_seed)
    if rng is not None:
        return rng
    return random.Random()


def shuffle(items: List, rng) -> List:
    """Fisher-Yates shuffle returning a new list."""
    result = list(items)
    for i in range(len(result) - 1, 0, -1):
        j = int(rng.random() * (i + 1))
        result[i], result[j] = result[j], result[i]
    return result


def ranked_order(teams: List[Team]) -> List[Team]:
    """Stable sort: ranking ascending, then win percentage and differential descending."""
    return sorted(teams, key=lambda t: (t.ranking, -t.win_percentage, -t.points_differential))


def _interleave_groups(teams: List[Team], key: Callable[[Team], Optional[str]]) -> List[Team]:
    groups: Dict[str, List[Team]] = {}
    ungrouped = []
    for team in teams:
        group = key(team)
        if group:
            groups.setdefault(group, []).append(team)
        else:
            ungrouped.append(team)

    named_groups = [(name, ranked_order(members)) for name, members in groups.items()]
    # best-ranked member first, group name breaks ties
    named_groups.sort(key=lambda item: (item[1][0].ranking, item[0]))
    ordered_groups = [members for _, members in named_groups]

    result = []
    depth = max((len(members) for members in ordered_groups), default=0)
    for index in range(depth):
        for members in ordered_groups:
            if index < len(members):
                result.append(members[index])

    result.extend(ranked_order(ungrouped))
    return result


def _skill_tiers(ranked: List[Team]) -> List[List[Team]]:
    tier_size = math.ceil(len(ranked) / 4)
    return [ranked[i:i + tier_size] for i in range(0, len(ranked), tier_size)]


def _snake_distribution(ranked: List[Team]) -> List[Team]:
    pod_count = math.ceil(len(ranked) / 4)
    pods: List[List[Team]] = [[] for _ in range(pod_count)]
    for index, team in enumerate(ranked):
        lap, offset = divmod(index, pod_count)
        pod = offset if lap % 2 == 0 else pod_count - 1 - offset
        pods[pod].append(team)
    return [team for pod in pods for team in pod]


def _even_distribution(ranked: List[Team]) -> List[Team]:
    pod_count = math.ceil(len(ranked) / 4)
    pods: List[List[Team]] = [[] for _ in range(pod_count)]
    for index, team in enumerate(ranked):
        pods[index % pod_count].append(team)
    return [team for pod in pods for team in pod]


def _random_within_tiers(ranked: List[Team], rng) -> List[Team]:
    result = []
    for tier in _skill_tiers(ranked):
        result.extend(shuffle(tier, rng))
    return result


def seed_teams(teams: List[Team], options: Optional[SeedingOptions] = None, rng=None) -> List[Team]:
    """
    Order teams for bracket construction.

    Args:
        teams: Teams to order; must not be empty
        options: Strategy and its parameters (defaults to ranked)
        rng: Random source used by the random strategies when no
            random_seed is given; anything with a random() method

    Returns:
        A new list holding the same team objects in seed order.
    """
    if not teams:
        raise ValueError('Cannot seed an empty team list')
    options = options if options else SeedingOptions()
    method = options.method

    if method == 'ranked':
        ordered = ranked_order(teams)
    elif method == 'random':
        ordered = shuffle(teams, _make_rng(options, rng))
    elif method == 'club-balanced':
        ordered = _interleave_groups(teams, lambda t: t.club)
    elif method == 'geographic':
        ordered = _interleave_groups(teams, lambda t: t.region)
    elif method == 'skill-balanced':
        ranked = ranked_order(teams)
        distribution = options.skill_distribution
        if distribution == 'snake':
            ordered = _snake_distribution(ranked)
        elif distribution == 'random':
            ordered = _random_within_tiers(ranked, _make_rng(options, rng))
        elif distribution == 'even':
            ordered = _even_distribution(ranked)
        else:
            raise ValueError(f'Unknown skill distribution: {distribution}')
    else:
        raise ValueError(f'Unknown seeding method: {method}')

    logger.debug(f'Seeded {len(ordered)} teams using {method}')
    return ordered


def assign_byes(ordered: List[Team], target_size: int) -> List[Team]:
    """Teams that receive a first-round bye: the top (target_size - N) seeds."""
    bye_count = max(0, target_size - len(ordered))
    return list(ordered[:min(bye_count, len(ordered))])
