"""
Store error taxonomy.

The transition guard limit is not an error here: reaching it is a
navigation outcome.
"""


class StoreError(Exception):
    """Base for all store failures."""


class StoreUnavailable(StoreError):
    """Persistence target unreachable and no usable local data."""


class NotFound(StoreError):
    """An operation needed an existing snapshot, cycle, or counter."""


class MigrationFailure(StoreError):
    """Schema migration failed. The store refuses writes until re-initialized."""
