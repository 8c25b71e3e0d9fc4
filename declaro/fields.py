"""Field descriptors for declaro resources.

A field describes one named, typed slot of a resource: its default, whether
it may be null, the allowed choices, how raw values are coerced to the native
type, and the validators that the coerced value must pass.

Fields are declared as class attributes of a :class:`~declaro.resources.Resource`
subclass. The descriptor itself holds no per-instance state; instance values
live in the storage of each resource instance::

    class Book(Resource, namespace='library'):
        title = StringField(max_length=128)
        num_pages = IntegerField(min_value=1, allow_null=True)
        genre = StringField(choices=[('sci-fi', 'Science Fiction'), ('fantasy', 'Fantasy')])

Cleaning a value runs the pipeline: default substitution, type coercion
(:meth:`Field.to_python`), structural validation (:meth:`Field.validate`) and
then every attached validator, collecting all of their failures.
"""

__all__ = ['ArrayOf', 'CleanResult', 'Field', 'FloatField', 'IntegerField', 'ObjectAs', 'StringField']

import collections.abc
import itertools
import logging
import typing
from dataclasses import dataclass

import numpy

from declaro import validators as _validators
from declaro.exceptions import TypeCoercionError
from declaro.exceptions import ValidationError
from declaro.registry import get_registry
from declaro.utils import NOT_PROVIDED
from declaro.utils import is_empty
from declaro.utils import verbose_name_from

logger = logging.getLogger(__name__)
logger.debug('Importing {}'.format(__name__))

# Process-wide declaration order of every field ever constructed.
_declaration_counter = itertools.count()


class _SafeParams(dict):
    def __missing__(self, key):
        return '{' + key + '}'


def _interpolate(message: str, params: typing.Mapping) -> str:
    if not params:
        return message
    return message.format_map(_SafeParams(params))


@dataclass(frozen=True)
class CleanResult:
    """Outcome of cleaning a single value.

    Exactly one of *value* (when *error* is None) or *error* is meaningful.
    """
    value: typing.Any = None
    error: typing.Optional[ValidationError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self):
        """Get the cleaned value, or raise the validation error."""
        if self.error is not None:
            raise self.error
        return self.value


class Field:
    """Base class for resource fields.

    Args:
        verbose_name: Human readable name. Derived from the attribute name if not given.
        verbose_name_plural: Plural of *verbose_name*.
        name: Name of the field in the wire format. Defaults to the attribute name.
        allow_null: Whether ``None`` is an acceptable value.
        choices: Sequence of ``(value, label)`` pairs restricting the allowed values.
        use_default_if_not_provided: Substitute the default when cleaning a value
            that was not provided at all. Otherwise a missing value cleans as ``None``.
        default: Default value, or a callable producing it.
        validators: Sequence of validator callables (see :mod:`declaro.validators`).
        error_messages: Mapping of error code to message, overriding the defaults
            and the messages of validators with a matching code.
        doc: Optional docstring for the descriptor.
    """
    default_error_messages = {
        'invalid_choice': 'Value {value!r} is not a valid choice.',
        'null': 'This field cannot be null.',
    }

    def __init__(self, verbose_name: str = None, verbose_name_plural: str = None, name: str = None,
                 allow_null: bool = False, choices: typing.Sequence[typing.Tuple[typing.Any, str]] = None,
                 use_default_if_not_provided: bool = False, default=NOT_PROVIDED,
                 validators: typing.Iterable[_validators.Validator] = (),
                 error_messages: typing.Mapping[str, str] = None, doc: str = None):
        self.verbose_name = verbose_name
        self.verbose_name_plural = verbose_name_plural
        self.name = name
        self.attname = None
        self.allow_null = allow_null
        self.choices = tuple(tuple(choice) for choice in choices) if choices is not None else None
        self.use_default_if_not_provided = use_default_if_not_provided
        self.default = default
        self.validators = list(validators)
        # Resource class the field was first attached to.
        self.resource = None

        messages = {}
        for cls in reversed(type(self).__mro__):
            messages.update(getattr(cls, 'default_error_messages', {}))
        messages.update(error_messages or {})
        self.error_messages = messages

        self.declaration_index = next(_declaration_counter)

        if doc is not None:
            self.__doc__ = str(doc)

    def __repr__(self):
        return '<{}.{}: {}>'.format(type(self).__module__, type(self).__name__, self.name)

    def set_attributes_from_name(self, attname: str):
        if self.name is None:
            self.name = attname
        self.attname = attname
        if self.verbose_name is None:
            self.verbose_name = verbose_name_from(self.name)
        if self.verbose_name_plural is None:
            self.verbose_name_plural = self.verbose_name + 's'

    def __set_name__(self, owner, name):
        # Called by type.__new__ during class creation. The owning class attaches
        # the field to its metadata afterwards, in __init_subclass__.
        self.set_attributes_from_name(name)
        if self.resource is None:
            self.resource = owner

    def __get__(self, instance, owner):
        # Note that instance==None when called through the *owner* (as a class attribute).
        if instance is None:
            return self
        return instance._values.get(self.name)

    def __set__(self, instance, value):
        # Assignment stores the raw value. Use Resource.set() for validated assignment.
        instance._values[self.name] = value

    def to_python(self, value):
        """Convert a raw value to the native type of this field.

        Raises:
            TypeCoercionError if the value cannot be converted.
        """
        return value

    def validate(self, value):
        """Check the choices and null constraints."""
        if self.choices is not None and not is_empty(value):
            if any(choice[0] == value for choice in self.choices):
                return
            params = {'value': value}
            raise ValidationError(_interpolate(self.error_messages['invalid_choice'], params),
                                  code='invalid_choice', params=params)

        if value is None and not self.allow_null:
            raise ValidationError(self.error_messages['null'], code='null')

    def validator_errors(self, value) -> typing.List[ValidationError]:
        """Run every validator and collect all failures.

        A failure whose code has an entry in *error_messages* takes that message.
        """
        errors = []
        if is_empty(value):
            return errors
        for validator in self.validators:
            try:
                validator(value)
            except ValidationError as e:
                if e.code is not None and e.code in self.error_messages:
                    e = ValidationError(_interpolate(self.error_messages[e.code], e.params),
                                        code=e.code, params=e.params)
                errors.append(e)
        return errors

    def run_validators(self, value):
        error = _combine(self.validator_errors(value))
        if error is not None:
            raise error

    def run_clean(self, value=NOT_PROVIDED) -> CleanResult:
        """Coerce and validate *value*, reporting failure as part of the result."""
        if value is NOT_PROVIDED:
            value = self.get_default() if self.use_default_if_not_provided else None
        try:
            value = self.to_python(value)
            self.validate(value)
        except TypeCoercionError as e:
            return CleanResult(value=value, error=ValidationError(str(e), code='invalid', params={'value': value}))
        except ValidationError as e:
            return CleanResult(value=value, error=e)

        return CleanResult(value=value, error=_combine(self.validator_errors(value)))

    def clean(self, value=NOT_PROVIDED):
        """Convert the value's type and run validation.

        Returns:
            The cleaned value.

        Raises:
            ValidationError if coercion or any validation fails.
        """
        return self.run_clean(value).unwrap()

    def has_default(self) -> bool:
        return self.default is not NOT_PROVIDED

    def get_default(self):
        """Get the default value for this field, or None if there is no default."""
        if not self.has_default():
            return None
        if callable(self.default):
            return self.default()
        return self.default

    def value_from_object(self, obj):
        """Get the raw value of this field from a mapping or resource instance.

        Returns NOT_PROVIDED if *obj* holds no value for this field.
        """
        if isinstance(obj, collections.abc.Mapping):
            return obj.get(self.name, NOT_PROVIDED)
        return obj._values.get(self.name, NOT_PROVIDED)

    def prepare(self, value):
        """Prepare a value for use in a JSON structure."""
        return value


class _NumberField(Field):
    native_type: typing.ClassVar[type]

    def __init__(self, min_value=None, max_value=None, **options):
        super().__init__(**options)
        self.min_value = min_value
        self.max_value = max_value
        if _is_number(min_value):
            self.validators.append(_validators.min_value_validator(min_value))
        if _is_number(max_value):
            self.validators.append(_validators.max_value_validator(max_value))

    def to_python(self, value):
        if value is None or value is NOT_PROVIDED:
            return None
        if isinstance(value, numpy.generic):
            value = value.item()
        if isinstance(value, str):
            value = value.strip()
            if len(value) == 0:
                return None
        try:
            return self.to_native(value)
        except (TypeError, ValueError, OverflowError):
            raise TypeCoercionError(_interpolate(self.error_messages['invalid'], {'value': value})) from None

    def to_native(self, value):
        return self.native_type(value)


class IntegerField(_NumberField):
    """Field that holds an integer.

    Floats are accepted only if they hold a whole number.
    """
    native_type = int
    default_error_messages = {
        'invalid': "'{value}' value must be an integer.",
    }

    def to_native(self, value):
        if isinstance(value, float) and not value.is_integer():
            raise ValueError(f'{value} is not a whole number')
        return int(value)


class FloatField(_NumberField):
    """Field that holds a float."""
    native_type = float
    default_error_messages = {
        'invalid': "'{value}' value must be a float.",
    }


class StringField(Field):
    """Field that holds a string."""

    def __init__(self, min_length: int = None, max_length: int = None, **options):
        super().__init__(**options)
        self.min_length = min_length
        self.max_length = max_length
        if _is_number(min_length):
            self.validators.append(_validators.min_length_validator(min_length))
        if _is_number(max_length):
            self.validators.append(_validators.max_length_validator(max_length))

    def to_python(self, value):
        if value is None or value is NOT_PROVIDED:
            return None
        if isinstance(value, str):
            return value
        return str(value)


class _ResourceReference(Field):
    """Implementation helper for fields holding embedded resources.

    The embedded resource type may be given as a resource class or by its
    qualified name. A name is resolved when first needed, in the registry of
    the resource that owns the field, which allows self-referencing and
    mutually-referencing schemas.
    """
    default_error_messages = {
        'invalid_resource': 'Expected a {resource} resource or a JSON object.',
    }

    def __init__(self, resource, **options):
        self._of = resource
        super().__init__(**options)

    @property
    def of(self) -> type:
        """The resource class of embedded values."""
        if isinstance(self._of, str):
            registry = self.resource._meta.registry if self.resource is not None else get_registry()
            name = self._of
            if name not in registry and self.resource is not None:
                namespace = self.resource._meta.namespace
                if namespace:
                    name = f'{namespace}.{name}'
            self._of = registry.resolve(name)
        return self._of

    def _to_resource(self, value):
        from declaro.codec import create_resource_from_json

        resource = self.of
        if isinstance(value, resource):
            value.full_clean()
            return value
        if isinstance(value, collections.abc.Mapping):
            return create_resource_from_json(value, resource)
        raise TypeCoercionError(_interpolate(self.error_messages['invalid_resource'],
                                             {'resource': resource._meta.resource_name}))

    @staticmethod
    def _prepare_resource(value):
        return value.to_json() if hasattr(value, 'to_json') else value


class ObjectAs(_ResourceReference):
    """Field that contains a single embedded resource."""

    def to_python(self, value):
        if value is None or value is NOT_PROVIDED:
            return None
        return self._to_resource(value)

    def prepare(self, value):
        if value is None:
            return None
        return self._prepare_resource(value)


class ArrayOf(_ResourceReference):
    """Field that contains a list of embedded resources.

    The default value is a new empty list for every resource instance.
    """
    default_error_messages = {
        'invalid': 'Expected a list of {resource} resources.',
    }

    def __init__(self, resource, **options):
        options.setdefault('default', list)
        super().__init__(resource, **options)

    def to_python(self, value):
        if value is None or value is NOT_PROVIDED:
            return None
        if not isinstance(value, (list, tuple)):
            raise TypeCoercionError(_interpolate(self.error_messages['invalid'],
                                                 {'resource': self.of._meta.resource_name}))
        items = []
        errors = {}
        for index, item in enumerate(value):
            try:
                items.append(self._to_resource(item))
            except TypeCoercionError as e:
                errors[index] = [str(e)]
            except ValidationError as e:
                errors[index] = e.message_dict if e.kind == 'dict' else e.messages
        if errors:
            raise ValidationError(errors)
        return items

    def prepare(self, value):
        if value is None:
            return None
        return [self._prepare_resource(item) for item in value]


def _combine(errors: typing.List[ValidationError]) -> typing.Optional[ValidationError]:
    # A single failure keeps its code and params.
    if not errors:
        return None
    if len(errors) == 1:
        return errors[0]
    return ValidationError(errors)


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)
