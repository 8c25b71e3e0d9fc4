"""Composable value validators.

A validator is any callable accepting a single value. It returns nothing on
success and raises :class:`~declaro.exceptions.ValidationError` with a *code*
and *params* on failure. The factories in this module bind a bound to a new
validator so that fields can attach them in an ordered chain.

Example::

    from declaro.fields import IntegerField
    from declaro.validators import max_value_validator

    percentage = IntegerField(validators=[max_value_validator(100)])
"""

__all__ = ['Validator', 'max_length_validator', 'max_value_validator', 'min_length_validator',
           'min_value_validator']

import typing

from declaro.exceptions import ValidationError

Validator = typing.Callable[[typing.Any], None]


def min_value_validator(min_value) -> Validator:
    """Validate that a value is greater than or equal to *min_value*."""
    def validator(value):
        if value < min_value:
            raise ValidationError(f'Ensure this value is greater than or equal to {min_value}.',
                                  code='min_value', params={'min_value': min_value})
    return validator


def max_value_validator(max_value) -> Validator:
    """Validate that a value is less than or equal to *max_value*."""
    def validator(value):
        if value > max_value:
            raise ValidationError(f'Ensure this value is less than or equal to {max_value}.',
                                  code='max_value', params={'max_value': max_value})
    return validator


def min_length_validator(min_length: int) -> Validator:
    """Validate that the length of a value is at least *min_length*."""
    def validator(value):
        if len(value) < min_length:
            raise ValidationError(f'Ensure this value has at least {min_length} characters.',
                                  code='min_length', params={'min_length': min_length})
    return validator


def max_length_validator(max_length: int) -> Validator:
    """Validate that the length of a value is at most *max_length*."""
    def validator(value):
        if len(value) > max_length:
            raise ValidationError(f'Ensure this value has at most {max_length} characters.',
                                  code='max_length', params={'max_length': max_length})
    return validator
