"""Error taxonomy for the rules engine.

Every rejected operation leaves the character and headquarters exactly as they
were. ``ValidationError`` covers bad allocations and input values,
``IllegalAction`` covers moves the rules forbid in the current state.
"""


class RulesError(Exception):
    """Base class for all rules-engine errors."""

    pass


class ValidationError(RulesError):
    """Raised when a value or allocation breaks a budget or bound."""

    pass


class IllegalAction(RulesError):
    """Raised when an action is not allowed in the current game state."""

    pass


class NoConditionSlot(IllegalAction):
    """Raised when no inactive condition of the required category remains."""

    pass


class PushUnavailable(IllegalAction):
    """Raised when a push is attempted anywhere but right after a skill roll."""

    pass


class RollForbidden(IllegalAction):
    """Raised when a broken character attempts a skill test of that category."""

    pass


class InsufficientPoints(IllegalAction):
    """Raised when the headquarters cannot afford an upgrade."""

    pass


class PrerequisiteNotMet(IllegalAction):
    """Raised when an upgrade's prerequisite evaluates false."""

    pass


class AlreadyPurchased(IllegalAction):
    """Raised when an upgrade is bought a second time."""

    pass


class InsufficientXP(IllegalAction):
    """Raised when an advance costs more XP than the character has."""

    pass


class AdvanceNotAllowed(IllegalAction):
    """Raised when a skill is maxed or a talent is already owned."""

    pass


class DataIntegrityWarning(UserWarning):
    """Emitted when reference data points at something that does not exist."""

    pass
