"""Domain errors raised by the letter engine and translated by the routes."""


class RecommendationError(Exception):
    """Base class for recommendation workflow errors."""


class NoAnswersError(RecommendationError):
    """Letters were requested before any answer was saved."""


class StaleProgressError(RecommendationError):
    """A versioned progress save lost a race with another writer."""

    def __init__(self, expected_version: int, current_version: int):
        super().__init__(
            f"Progress was saved elsewhere (expected version {expected_version}, "
            f"current version {current_version})"
        )
        self.expected_version = expected_version
        self.current_version = current_version
