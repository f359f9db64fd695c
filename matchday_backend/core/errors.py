# matchday_backend/core/errors.py
# Error taxonomy shared by services and routes.
# Services raise these BEFORE mutating anything; main.py turns them into
# {"success": false, "message": ...} responses.

from typing import List, Optional, Tuple


class MatchdayError(Exception):
    """Base class for every expected, user-facing failure."""
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(MatchdayError):
    """Referenced match, club, table or report does not exist."""
    status_code = 404


class InvalidStateError(MatchdayError):
    """Operation attempted from a state that forbids it."""
    status_code = 400


class ValidationError(MatchdayError):
    """Malformed input: bad enum value, out-of-range number, identical teams."""
    status_code = 400


class ConflictError(MatchdayError):
    """Unique kickoff slot collision or lost compare-and-swap. Caller retries."""
    status_code = 409


class CapacityError(MatchdayError):
    """
    The scheduling solver could not fit every pairing inside the league window.

    - scheduled: the (home_id, away_id, kickoff_at) triples assigned before failing
    - failed_pairing: the (home_id, away_id) pairing that could not be placed
    """
    status_code = 400

    def __init__(
        self,
        message: str,
        scheduled: Optional[List[Tuple[int, int, object]]] = None,
        failed_pairing: Optional[Tuple[int, int]] = None,
    ):
        super().__init__(message)
        self.scheduled = scheduled or []
        self.failed_pairing = failed_pairing
