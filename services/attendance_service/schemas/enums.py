import enum


class RosterStatus(str, enum.Enum):
    """Roster-only status for customers without a record for the date."""

    NOT_MARKED = "not_marked"
