"""Utility functions shared by the declaro modules."""

__all__ = ['NOT_PROVIDED', 'is_empty', 'verbose_name_from']


class _NotProvided:
    """Sentinel type for a value that was not supplied at all.

    Distinct from ``None``, which is a supplied (null) value.
    """
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self):
        return False

    def __repr__(self):
        return 'NOT_PROVIDED'


NOT_PROVIDED = _NotProvided()


def is_empty(value) -> bool:
    """A value is empty if it is null, not provided, or the empty string."""
    return value is None or value is NOT_PROVIDED or (isinstance(value, str) and value == '')


def verbose_name_from(name: str) -> str:
    return name.replace('_', ' ').strip()
