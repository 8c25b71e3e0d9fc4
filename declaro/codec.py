"""Build resources from JSON data, and encode resources as JSON.

Decoding is polymorphic. The discriminator value of a JSON object (under the
``type_field`` of the expected resource, ``'$'`` by default) names the
resource type to create. The name is resolved in a
:class:`~declaro.registry.SchemaRegistry`::

    >>> person = create_resource_from_json({'$': 'app.Person', 'name': 'Bob'})
    >>> person.to_json()
    {'$': 'app.Person', 'name': 'Bob'}

Keys of the JSON object that are not fields of the resolved resource are
ignored. Missing keys take the field defaults.

When an expected resource type is given, the resolved type must be that type
or one of its subclasses. An object without a discriminator is created as the
expected type.
"""

__all__ = ['build_object_graph', 'create_resource_from_json', 'dumps', 'encode', 'loads']

import collections.abc
import functools
import json
import logging
import typing

import numpy

from declaro.exceptions import InvalidInputError
from declaro.exceptions import UnknownSchemaError
from declaro.exceptions import ValidationError
from declaro.registry import SchemaRegistry
from declaro.registry import get_registry
from declaro.resources import DEFAULT_TYPE_FIELD
from declaro.resources import Resource
from declaro.utils import NOT_PROVIDED

logger = logging.getLogger(__name__)
logger.debug('Importing {}'.format(__name__))

ResourceT = typing.TypeVar('ResourceT', bound=Resource)


def create_resource_from_json(data: typing.Mapping[str, typing.Any],
                              resource: typing.Type[ResourceT] = None,
                              *,
                              full_clean: bool = True,
                              registry: SchemaRegistry = None) -> ResourceT:
    """Create a resource instance from a decoded JSON object.

    Args:
        data: Decoded JSON object.
        resource: Expected resource type, if known.
        full_clean: Validate the new instance with :meth:`~declaro.resources.Resource.full_clean`.
        registry: Registry for resolving the discriminator. Defaults to the registry of
            *resource*, or the current registry.

    Raises:
        UnknownSchemaError if the discriminator does not name a registered resource.
        ValidationError if the resource is incompatible with *resource* or fails validation.
        InvalidInputError if *data* is not a mapping.
    """
    if not isinstance(data, collections.abc.Mapping):
        raise InvalidInputError(f'Expected a JSON object. Got {data!r}')
    if registry is None:
        if resource is not None and resource._meta.registry is not None:
            registry = resource._meta.registry
        else:
            registry = get_registry()

    type_field = resource._meta.type_field if resource is not None else DEFAULT_TYPE_FIELD
    resource_name = data.get(type_field, NOT_PROVIDED)
    if resource_name is NOT_PROVIDED:
        if resource is None:
            raise UnknownSchemaError(None)
        resource_type = resource
    else:
        resource_type = registry.resolve(resource_name)
        if resource is not None and not issubclass(resource_type, resource):
            params = {'expected': resource._meta.resource_name, 'received': resource_name}
            raise ValidationError('Expected resource type {expected}; received {received}.'.format(**params),
                                  code='invalid_type', params=params)
    logger.debug('Decoding {} as {}.'.format(resource_name, resource_type._meta.resource_name))

    attrs = {}
    for field in resource_type._meta.all_fields:
        value = field.value_from_object(data)
        if value is not NOT_PROVIDED:
            attrs[field.name] = value

    new_resource = resource_type(attrs)
    if full_clean:
        new_resource.full_clean()
    return new_resource


def build_object_graph(data, resource: typing.Type[ResourceT] = None, *, full_clean: bool = True,
                       registry: SchemaRegistry = None) -> typing.Union[ResourceT, typing.List[ResourceT]]:
    """Create a resource, or a list of resources, from decoded JSON data.

    Raises:
        InvalidInputError if *data* is neither a list nor a JSON object.
    """
    if isinstance(data, (list, tuple)):
        return [create_resource_from_json(item, resource, full_clean=full_clean, registry=registry)
                for item in data]
    if isinstance(data, collections.abc.Mapping):
        return create_resource_from_json(data, resource, full_clean=full_clean, registry=registry)
    raise InvalidInputError(f'Cannot build resources from {type(data).__name__} data.')


@functools.singledispatch
def encode(obj):
    """Convert an object that the JSON encoder does not support to basic Python data.

    Suitable for the *default* argument of ``json.dumps()``.
    """
    raise TypeError(f'No registered dispatching for {obj!r}')


@encode.register(Resource)
def _(obj: Resource):
    return obj.to_json()


@encode.register(numpy.generic)
def _(obj: numpy.generic):
    return obj.item()


def dumps(obj, **json_args) -> str:
    """Serialize resources (or structures containing resources) to a JSON string."""
    return json.dumps(obj, default=encode, **json_args)


def loads(serialized: str, resource: typing.Type[ResourceT] = None, **options):
    """Deserialize a JSON string to a resource or a list of resources.

    *options* are passed to :func:`build_object_graph`.
    """
    return build_object_graph(json.loads(serialized), resource, **options)
