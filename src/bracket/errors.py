"""
Error taxonomy for the bracket engine.

ValidationError  - bad input shape, never retried.
StateConflict    - request conflicts with stored state, needs explicit confirmation.
ConsistencyError - broken bracket topology, fatal for the tournament.
"""


class BracketError(Exception):
    """Base class for all bracket engine errors."""

    status_code = 500
    default_code = 'BRACKET_ERROR'

    def __init__(self, message, code=None):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code


class ValidationError(BracketError):
    status_code = 400
    default_code = 'VALIDATION_ERROR'


class StateConflict(BracketError):
    status_code = 409
    default_code = 'STATE_CONFLICT'


class ConsistencyError(BracketError):
    status_code = 500
    default_code = 'CONSISTENCY_ERROR'


class NotFound(BracketError):
    status_code = 404
    default_code = 'NOT_FOUND'


class InsufficientParticipants(ValidationError):
    default_code = 'INSUFFICIENT_PARTICIPANTS'


class CapacityExceeded(ValidationError):
    default_code = 'CAPACITY_EXCEEDED'


class UnsupportedFormat(ValidationError):
    default_code = 'UNSUPPORTED_FORMAT'


class InvalidWinner(ValidationError):
    default_code = 'INVALID_WINNER'


class AmbiguousResult(ValidationError):
    default_code = 'AMBIGUOUS_RESULT'


class AlreadyResolved(StateConflict):
    default_code = 'ALREADY_RESOLVED'


class BracketAlreadyHasResults(StateConflict):
    default_code = 'BRACKET_HAS_RESULTS'


class MatchNotReady(StateConflict):
    default_code = 'MATCH_NOT_READY'


class RoundNotComplete(StateConflict):
    default_code = 'ROUND_NOT_COMPLETE'


class SwissRoundsExhausted(StateConflict):
    default_code = 'SWISS_ROUNDS_EXHAUSTED'


class NoPairingAvailable(StateConflict):
    default_code = 'NO_PAIRING_AVAILABLE'
