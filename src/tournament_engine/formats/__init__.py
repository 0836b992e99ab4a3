"""
Format registry. The set of formats is closed: every tournament type maps to
exactly one handler, and an unknown type raises UnsupportedFormatError.
"""
from ..errors import UnsupportedFormatError
from .barrage import BarrageHandler, select_barrage_teams
from .base import FormatHandler
from .consolation import ConsolationHandler, select_consolation_teams
from .double_elimination import DoubleEliminationHandler
from .elimination import SingleEliminationHandler
from .round_robin import RoundRobinHandler
from .swiss import SwissHandler

FORMAT_HANDLERS = {
    handler.type: handler
    for handler in (
        SingleEliminationHandler(),
        DoubleEliminationHandler(),
        SwissHandler(),
        RoundRobinHandler(),
        BarrageHandler(),
        ConsolationHandler(),
    )
}


def get_format(tournament_type: str) -> FormatHandler:
    """Handler for a tournament type."""
    try:
        return FORMAT_HANDLERS[tournament_type]
    except KeyError:
        raise UnsupportedFormatError(tournament_type) from None


__all__ = [
    'FORMAT_HANDLERS',
    'FormatHandler',
    'get_format',
    'select_barrage_teams',
    'select_consolation_teams',
]
