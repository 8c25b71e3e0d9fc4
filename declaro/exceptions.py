"""Core declaro exceptions."""

__all__ = ['DeclaroError', 'DuplicateSchemaNameError', 'InvalidInputError', 'ReservedFieldNameError',
           'TypeCoercionError', 'UnknownFieldError', 'UnknownMetaOptionError', 'UnknownSchemaError',
           'ValidationError']

import typing


class DeclaroError(Exception):
    """Base exception for declaro package errors.

    Users should be able to use this base class to catch errors
    emitted by declaro.
    """


class ValidationError(DeclaroError):
    """Validation of one or more values failed.

    A ValidationError has one of three shapes, reported by *kind*:

    ``'message'``
        A single failure. *messages* holds one message, *code* and *params*
        describe the failure for programmatic handling and message overrides.
    ``'list'``
        A flat sequence of failures, such as those collected from a validator
        chain. *error_list* holds the individual errors with their codes.
    ``'dict'``
        A mapping of field name to messages, produced by whole-record validation.
        Only this shape provides *message_dict*.
    """
    code: typing.Optional[str]
    params: typing.Mapping[str, typing.Any]

    def __init__(self, message, code: str = None, params: typing.Mapping = None):
        self.code = None
        self.params = {}
        self.error_list = [self]
        if isinstance(message, typing.Mapping):
            self.kind = 'dict'
            self._message_dict = dict(message)
        elif isinstance(message, (list, tuple)):
            self.kind = 'list'
            self.error_list = []
            for item in message:
                if not isinstance(item, ValidationError):
                    item = ValidationError(item)
                if item.kind == 'list':
                    self.error_list.extend(item.error_list)
                else:
                    self.error_list.append(item)
        else:
            self.kind = 'message'
            self._message = str(message)
            self.code = code
            self.params = dict(params) if params else {}
        super().__init__(self._display())

    @property
    def messages(self) -> typing.List[str]:
        """Messages as a flat list.

        For the *dict* shape, messages are prefixed with the field name.
        """
        if self.kind == 'message':
            return [self._message]
        if self.kind == 'list':
            return [message for error in self.error_list for message in error.messages]
        flattened = []
        for name, messages in self._message_dict.items():
            for message in _flatten(messages):
                flattened.append(f'{name}: {message}')
        return flattened

    @property
    def message_dict(self) -> typing.Dict[str, typing.Any]:
        if self.kind != 'dict':
            raise AttributeError(f'ValidationError of kind {self.kind!r} has no message_dict.')
        return self._message_dict

    def _display(self):
        if self.kind == 'dict':
            return repr(self._message_dict)
        messages = self.messages
        if len(messages) == 1:
            return messages[0]
        return repr(messages)


def _flatten(messages) -> typing.Iterator[str]:
    if isinstance(messages, typing.Mapping):
        for name, nested in messages.items():
            for message in _flatten(nested):
                yield f'{name}: {message}'
    elif isinstance(messages, (list, tuple)):
        for message in messages:
            yield from _flatten(message)
    else:
        yield str(messages)


class TypeCoercionError(DeclaroError, ValueError):
    """A raw value could not be converted to the native type of a field."""


class UnknownSchemaError(DeclaroError, LookupError):
    """A resource name does not resolve to a registered schema."""
    def __init__(self, name):
        self.name = name
        super().__init__(f'Resource type `{name}` not defined')


class UnknownFieldError(DeclaroError, LookupError):
    """A field name is not declared on the schema."""
    def __init__(self, field_name, resource=None):
        self.field_name = field_name
        self.resource = resource
        if resource is not None:
            message = f'Unknown field `{field_name}` on {resource}'
        else:
            message = f'Unknown field `{field_name}`'
        super().__init__(message)


class UnknownMetaOptionError(DeclaroError, TypeError):
    """Schema declaration received a meta option that is not recognized."""
    def __init__(self, name, options: typing.Iterable[str]):
        self.options = sorted(options)
        super().__init__('Unknown meta option on {}: {}'.format(name, ', '.join(self.options)))


class ReservedFieldNameError(DeclaroError, TypeError):
    """A field is declared under a name that the resource model uses itself."""
    def __init__(self, field_name, resource=None, reason=None):
        self.field_name = field_name
        self.resource = resource
        message = f'Field name `{field_name}` is reserved'
        if resource is not None:
            message += f' on {resource}'
        if reason:
            message += f': {reason}'
        super().__init__(message)


class DuplicateSchemaNameError(DeclaroError):
    """A schema with the same qualified name is already registered."""
    def __init__(self, name):
        self.name = name
        super().__init__(f'Resource type `{name}` appears to be registered already.')


class InvalidInputError(DeclaroError, TypeError):
    """Input data is neither a sequence nor a keyed container."""
