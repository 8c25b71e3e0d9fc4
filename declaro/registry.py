"""Schema registry.

Map qualified resource names to the resource classes that implement them.

Resource classes register themselves when they are declared (see
:mod:`declaro.resources`). Declaration is expected to complete before records
are deserialized; after that the registry is only read.

Registries are ordinary objects. The registry used by new declarations and by
deserialization without an explicit registry is the *current* registry of the
execution context, which is :data:`default_registry` unless a different one
has been activated with :func:`use_registry`::

    registry = SchemaRegistry()
    with use_registry(registry):
        class Person(Resource, namespace='app'):
            name = StringField()

    assert registry.get('app.Person') is Person
"""

__all__ = ['SchemaRegistry', 'default_registry', 'get_registry', 'use_registry']

import contextlib
import contextvars
import logging
import typing
import warnings

from declaro.exceptions import DuplicateSchemaNameError
from declaro.exceptions import UnknownSchemaError

logger = logging.getLogger(__name__)
logger.debug('Importing {}'.format(__name__))


class SchemaRegistry:
    """Mapping of qualified resource names to resource classes."""

    def __init__(self):
        self._resources: typing.Dict[str, type] = {}

    def register(self, resource: type, name: str = None):
        """Register a resource class under its qualified name.

        Raises:
            DuplicateSchemaNameError if the name is already registered.
        """
        if name is None:
            name = resource._meta.resource_name
        if name in self._resources:
            raise DuplicateSchemaNameError(name)
        self._resources[name] = resource
        logger.debug(f'Registered resource {name}')

    def unregister(self, name: str):
        del self._resources[name]

    def get(self, name: str, default=None) -> typing.Optional[type]:
        return self._resources.get(name, default)

    def resolve(self, name: str) -> type:
        """Get the resource class registered for *name*.

        Raises:
            UnknownSchemaError if no such resource is registered.
        """
        try:
            return self._resources[name]
        except (KeyError, TypeError):
            raise UnknownSchemaError(name) from None

    def names(self) -> typing.List[str]:
        return list(self._resources)

    def __contains__(self, name) -> bool:
        return name in self._resources

    def __len__(self) -> int:
        return len(self._resources)

    def _clear(self):
        """Forget all registered resources.

        This should only be used by test harnesses.
        """
        warnings.warn('SchemaRegistry._clear() should only be used for test cases!', RuntimeWarning)
        logger.info('Clearing {} registered resource types.'.format(len(self._resources)))
        self._resources.clear()


default_registry = SchemaRegistry()

_current_registry: contextvars.ContextVar[SchemaRegistry] = contextvars.ContextVar(
    'declaro_registry', default=default_registry)


def get_registry() -> SchemaRegistry:
    """Get the registry that is current in this execution context."""
    return _current_registry.get()


@contextlib.contextmanager
def use_registry(registry: SchemaRegistry):
    """Make *registry* current for the duration of the ``with`` block."""
    token = _current_registry.set(registry)
    try:
        yield registry
    finally:
        _current_registry.reset(token)
