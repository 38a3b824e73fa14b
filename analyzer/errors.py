"""
Scoring engine exceptions.

Each failure class maps to a different recovery:
- FeedError: skip the token for this cycle, leave it unchecked
- ScoringError: skip one participation, leave it unscored
- PersistenceError: report the wallet as failed, keep writing the others
"""


class ScoringEngineError(Exception):
    """Base class for all scoring engine errors."""


class FeedError(ScoringEngineError):
    """The swap feed or price history was unavailable or malformed."""


class ScoringError(ScoringEngineError):
    """A participation is missing data its score depends on."""


class PersistenceError(ScoringEngineError):
    """A wallet or runner record could not be written."""
