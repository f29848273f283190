"""Domain-specific exceptions"""


class RosaCashError(Exception):
    """Base exception for the domain layer"""

    pass


class ValidationError(RosaCashError, ValueError):
    """Input data is malformed: bad day of month, unparseable date, negative value"""

    pass
