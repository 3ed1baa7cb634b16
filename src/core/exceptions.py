"""
Custom exceptions raised at the boundaries (service / API / persistence).

NOTE: The engine itself does not raise for illegal moves. Those get rejected by returning False / None.
"""


class GameError(Exception):
    """Top level exception: anything that goes wrong while handling a game."""


class GameStateError(GameError):
    """The game (or a stored record of it) is not in a state that allows the request."""


class InvalidPlacementError(GameError):
    """A board placement string could not be interpreted."""


class InvalidRequestError(GameError):
    """
    Request data is malformed.

    NOTE: not a ValueError, so raised from within a pydantic validator it propagates as is
    (pydantic only collects ValueError / AssertionError into a ValidationError).
    """


class RepositoryError(GameError):
    """Persistence layer could not find / store the requested game."""
