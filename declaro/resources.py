"""Resource schemas and records.

A schema is declared by subclassing :class:`Resource`. Fields are given as
class attributes and meta options as class keyword arguments::

    class Person(Resource, namespace='app'):
        name = StringField()
        age = IntegerField(min_value=0, allow_null=True)

    class Employee(Person):
        employee_number = IntegerField()

The recognized meta options are:

namespace
    Prefix of the qualified resource name. Inherited from the parent schema
    when not given.
abstract
    Abstract schemas are not registered for deserialization.
type_field
    Key of the discriminator in the JSON representation (default ``'$'``).
    Inherited from the parent schema when not given.
verbose_name, verbose_name_plural
    Human readable names, derived from the class name when not given.

Any other class keyword argument raises :class:`~declaro.exceptions.UnknownMetaOptionError`.

Fields may not be named ``values`` or ``events`` (keyword arguments of the
constructor), may not shadow an attribute of :class:`Resource` such as ``get``
or ``set``, and may not take the name of the discriminator key. Such a
declaration raises :class:`~declaro.exceptions.ReservedFieldNameError`.

Each non-abstract schema is registered under its qualified name
(``'app.Person'``) in the registry that is current at declaration time
(see :mod:`declaro.registry`).

Field order is deterministic: inherited fields come first, then the fields
declared on the class in declaration order. A field redeclared under an
inherited name takes the position of the redeclaration.
"""

__all__ = ['DEFAULT_TYPE_FIELD', 'META_OPTION_NAMES', 'Resource', 'ResourceOptions', 'declare_schema',
           'each_field']

import collections.abc
import logging
import typing

from declaro.events import EventEmitter
from declaro.events import Observable
from declaro.exceptions import ReservedFieldNameError
from declaro.exceptions import UnknownFieldError
from declaro.exceptions import UnknownMetaOptionError
from declaro.exceptions import ValidationError
from declaro.fields import Field
from declaro.registry import SchemaRegistry
from declaro.registry import get_registry
from declaro.utils import NOT_PROVIDED
from declaro.utils import verbose_name_from

logger = logging.getLogger(__name__)
logger.debug('Importing {}'.format(__name__))

DEFAULT_TYPE_FIELD = '$'
META_OPTION_NAMES = frozenset(('namespace', 'abstract', 'type_field', 'verbose_name', 'verbose_name_plural'))


class ResourceOptions:
    """Schema metadata for a resource class.

    Available as the ``_meta`` attribute of every resource class.

    Attributes:
        name: Name of the resource class.
        namespace: Namespace of the qualified resource name, or None.
        abstract: Whether the schema is abstract (not registered).
        type_field: Key of the discriminator in the JSON representation.
        fields: Fields declared on this schema, in declaration order.
        parents: Metadata of the parent schemas.
        registry: Registry the schema was declared in.
    """
    fields: typing.List[Field]
    parents: typing.List['ResourceOptions']
    registry: typing.Optional[SchemaRegistry]

    def __init__(self, meta_options: typing.Mapping[str, typing.Any] = None):
        self.meta_options = dict(meta_options or {})
        self.parents = []
        self.fields = []
        self.registry = None

        self.name = None
        self.namespace = NOT_PROVIDED
        self.verbose_name = None
        self.verbose_name_plural = None
        self.abstract = False
        self.type_field = NOT_PROVIDED

        self._resource_name = None
        self._all_fields = None
        self._field_map = None

    def __repr__(self):
        return '<Options for {}>'.format(self.resource_name)

    def contribute_to_class(self, cls, name: str):
        cls._meta = self
        self.name = name

        unknown = set(self.meta_options) - META_OPTION_NAMES
        if unknown:
            raise UnknownMetaOptionError(name, unknown)
        for key, value in self.meta_options.items():
            setattr(self, key, value)
        self.abstract = bool(self.abstract)

        if self.verbose_name is None:
            self.verbose_name = verbose_name_from(self.name)
        if self.verbose_name_plural is None:
            self.verbose_name_plural = self.verbose_name + 's'

    def inherit(self, parents: typing.Sequence['ResourceOptions']):
        self.parents = list(parents)
        for parent in self.parents:
            if self.namespace is NOT_PROVIDED and parent.namespace is not NOT_PROVIDED:
                self.namespace = parent.namespace
            if self.type_field is NOT_PROVIDED and parent.type_field is not NOT_PROVIDED:
                self.type_field = parent.type_field
        if self.namespace is NOT_PROVIDED:
            self.namespace = None
        if self.type_field is NOT_PROVIDED:
            self.type_field = DEFAULT_TYPE_FIELD

    def add_field(self, field: Field):
        self.fields.append(field)
        self._all_fields = None
        self._field_map = None

    @property
    def resource_name(self) -> str:
        """Qualified name, ``'namespace.Name'`` or just ``'Name'``."""
        if self._resource_name is None:
            if self.namespace:
                self._resource_name = f'{self.namespace}.{self.name}'
            else:
                self._resource_name = self.name
        return self._resource_name

    @property
    def all_fields(self) -> typing.Tuple[Field, ...]:
        """Inherited and own fields, in iteration order."""
        if self._all_fields is None:
            own_names = {field.name for field in self.fields}
            inherited = {}
            for parent in self.parents:
                for field in parent.all_fields:
                    if field.name not in own_names:
                        inherited.setdefault(field.name, field)
            inherited_fields = list(inherited.values())
            if len(self.parents) > 1:
                # Several parents: order the union by declaration.
                inherited_fields.sort(key=lambda f: f.declaration_index)
            self._all_fields = tuple(inherited_fields + self.fields)
        return self._all_fields

    @property
    def field_map(self) -> typing.Mapping[str, Field]:
        if self._field_map is None:
            self._field_map = {field.name: field for field in self.all_fields}
        return self._field_map

    def get_field(self, name: str) -> Field:
        try:
            return self.field_map[name]
        except KeyError:
            raise UnknownFieldError(name, self.resource_name) from None


class Resource:
    """Base class for all resources.

    Create an instance with a mapping of field values, or with keyword
    arguments. Fields that are not supplied take their default value.
    Construction does not coerce or validate; use :meth:`full_clean`, or
    :meth:`set` for validated assignment.

    Change events are published through an :class:`~declaro.events.Observable`,
    by default a new :class:`~declaro.events.EventEmitter` per instance.
    """
    _meta: typing.ClassVar[ResourceOptions]
    events_factory: typing.ClassVar[typing.Callable[[], Observable]] = EventEmitter

    def __init__(self, values: typing.Mapping[str, typing.Any] = None, events: Observable = None, **kwargs):
        self._values = {}
        self._events = events if events is not None else self.events_factory()

        if values is None:
            values = {}
        if kwargs:
            values = dict(values, **kwargs)

        for field in self._meta.all_fields:
            value = field.value_from_object(values)
            if value is NOT_PROVIDED:
                value = field.get_default()
            self._values[field.name] = value

    def __init_subclass__(cls, **kwargs):
        meta_options = {key: kwargs.pop(key) for key in list(kwargs) if key in META_OPTION_NAMES}
        if kwargs:
            raise UnknownMetaOptionError(cls.__name__, kwargs)

        meta = ResourceOptions(meta_options)
        meta.contribute_to_class(cls, cls.__name__)
        meta.inherit([base._meta for base in cls.__bases__ if issubclass(base, Resource)])
        meta.registry = get_registry()

        # Fields were named by __set_name__ during class creation. Attach them in declaration order.
        for value in cls.__dict__.values():
            if isinstance(value, Field):
                _check_field_name(cls, value)
                meta.add_field(value)
        for field in meta.all_fields:
            if field.name == meta.type_field:
                raise ReservedFieldNameError(field.name, meta.resource_name,
                                             'it is the discriminator key of the JSON representation')

        if meta.abstract:
            logger.debug(f'Not registering abstract resource {meta.resource_name}')
        else:
            meta.registry.register(cls, meta.resource_name)

        super().__init_subclass__()

    def __repr__(self):
        return '<{}: {} resource>'.format(type(self).__name__, self._meta.resource_name)

    def __str__(self):
        return '{} resource'.format(self._meta.resource_name)

    def __eq__(self, other):
        if type(other) is not type(self):
            return NotImplemented
        return self.to_json() == other.to_json()

    __hash__ = None

    def get(self, attr: str):
        """Get the current value of a field."""
        try:
            return self._values[attr]
        except KeyError:
            raise UnknownFieldError(attr, self._meta.resource_name) from None

    def set(self, attr, value=NOT_PROVIDED, silent: bool = False, **options):
        """Set one or more field values with validation.

        Accepts either a field name and a value, or a mapping of field names
        to values. Values are cleaned by their fields; nothing is assigned
        unless every value is valid.

        Unless *silent*, a ``'change:<field>'`` event is triggered for each
        field whose value changed, with arguments ``(resource, value, options)``,
        followed by a single ``'change'`` event with ``(resource, options)``.

        Setting a None attribute is a no-op.

        Raises:
            UnknownFieldError if a field is not declared on the schema.
            ValidationError if any value is invalid. A single invalid value
            raises the error of its field, with its *code* and *params*.
            Several invalid values raise an error keyed by field name.
        """
        if attr is None:
            return
        if isinstance(attr, collections.abc.Mapping):
            attrs = attr
        else:
            attrs = {attr: value}
        options = dict(options, silent=silent)

        cleaned = {}
        errors = {}
        for name, raw in attrs.items():
            field = self._meta.get_field(name)
            result = field.run_clean(raw)
            if result.ok:
                cleaned[field.name] = result.value
            else:
                errors[field.name] = result.error
        if len(errors) == 1:
            # A single failure is reported as the field reported it.
            raise next(iter(errors.values()))
        if errors:
            raise ValidationError({name: _error_detail(error) for name, error in errors.items()})

        changes = []
        for name, new_value in cleaned.items():
            if self._values.get(name) != new_value:
                changes.append(name)
                self._values[name] = new_value

        if not silent:
            for name in changes:
                self._events.trigger(f'change:{name}', self, self._values[name], options)
            if changes:
                self._events.trigger('change', self, options)

    def full_clean(self):
        """Clean every field of the resource and store the cleaned values.

        Raises:
            ValidationError mapping each failing field name to its messages.
        """
        errors = {}
        for field in self._meta.all_fields:
            result = field.run_clean(field.value_from_object(self))
            if result.ok:
                self._values[field.name] = result.value
            else:
                errors[field.name] = _error_detail(result.error)
        if errors:
            raise ValidationError(errors)

    def to_json(self) -> typing.Dict[str, typing.Any]:
        """Get the JSON-compatible representation, including the discriminator."""
        data = {self._meta.type_field: self._meta.resource_name}
        for field in self._meta.all_fields:
            data[field.name] = field.prepare(self._values.get(field.name))
        return data

    def on(self, event: str, handler):
        """Register a change handler with the observable of this instance."""
        self._events.on(event, handler)

    def off(self, event: str, handler=None):
        self._events.off(event, handler)


Resource._meta = ResourceOptions({'abstract': True})
Resource._meta.contribute_to_class(Resource, 'Resource')
Resource._meta.inherit([])


# Keyword arguments of Resource.__init__.
_RESERVED_FIELD_NAMES = frozenset(('values', 'events'))


def _check_field_name(cls, field: Field):
    if field.name in _RESERVED_FIELD_NAMES:
        raise ReservedFieldNameError(field.name, cls.__name__, 'it is a keyword argument of the resource constructor')
    if hasattr(Resource, field.attname):
        raise ReservedFieldNameError(field.attname, cls.__name__, 'it is an attribute of Resource')


def _error_detail(error: ValidationError):
    if error.kind == 'dict':
        return error.message_dict
    return error.messages


def declare_schema(parent, name: str, fields: typing.Mapping[str, typing.Any] = None, **meta_options) -> type:
    """Declare a resource class without a class statement.

    Equivalent to a class statement deriving from *parent* (a resource class
    or a tuple of them) with *fields* in the class body. Values in *fields*
    that are not :class:`~declaro.fields.Field` instances become plain class
    attributes.
    """
    bases = parent if isinstance(parent, tuple) else (parent,)
    namespace = dict(fields or {})
    namespace.setdefault('__qualname__', name)
    return type(name, bases, namespace, **meta_options)


def each_field(resource) -> typing.Iterator[Field]:
    """Iterate the fields of a resource class or instance in declaration order."""
    return iter(resource._meta.all_fields)
