"""
Per-tournament write serialization for file-backed callers.

The engine itself is pure; these helpers hold a FileLock for one tournament
while its matches are loaded, advanced and stored, so two results for the
same tournament can never interleave their read-modify-write.
"""
import logging
import os
from typing import Callable, List

from filelock import FileLock

from .engine import advance
from .models import Match, ProgressionResult

logger = logging.getLogger(__name__)


def tournament_lock(lock_dir: str, tournament_id: str, timeout: float = 10) -> FileLock:
    """FileLock guarding one tournament's stored state."""
    os.makedirs(lock_dir, exist_ok=True)
    return FileLock(os.path.join(lock_dir, f'{tournament_id}.lock'), timeout=timeout)


def locked_advance(lock_dir: str, completed_match: Match, tournament,
                   load_matches: Callable[[str], List[Match]],
                   store_progression: Callable[[str, ProgressionResult], None],
                   timeout: float = 10) -> ProgressionResult:
    """
    Advance a match while holding the tournament's lock.

    load_matches(tournament_id) must return the current match list and
    store_progression(tournament_id, result) must persist the result; both
    run inside the lock. Raises filelock.Timeout if the lock is busy.
    """
    with tournament_lock(lock_dir, tournament.id, timeout):
        matches = load_matches(tournament.id)
        result = advance(completed_match, tournament, matches)
        store_progression(tournament.id, result)
        logger.debug(f'Stored progression of {completed_match.id} for {tournament.id}')
    return result
