"""declaro: declarative resource schemas.

Define typed resources as sets of field descriptors, validate and coerce raw
input into them, and rebuild typed instances from untyped JSON.
"""

__version__ = '0.1.0'

import logging

from declaro.codec import build_object_graph
from declaro.codec import create_resource_from_json
from declaro.codec import dumps
from declaro.codec import loads
from declaro.events import EventEmitter
from declaro.events import Observable
from declaro.exceptions import DeclaroError
from declaro.exceptions import DuplicateSchemaNameError
from declaro.exceptions import InvalidInputError
from declaro.exceptions import ReservedFieldNameError
from declaro.exceptions import TypeCoercionError
from declaro.exceptions import UnknownFieldError
from declaro.exceptions import UnknownMetaOptionError
from declaro.exceptions import UnknownSchemaError
from declaro.exceptions import ValidationError
from declaro.fields import ArrayOf
from declaro.fields import Field
from declaro.fields import FloatField
from declaro.fields import IntegerField
from declaro.fields import ObjectAs
from declaro.fields import StringField
from declaro.registry import SchemaRegistry
from declaro.registry import get_registry
from declaro.registry import use_registry
from declaro.resources import Resource
from declaro.resources import declare_schema
from declaro.resources import each_field
from declaro.utils import NOT_PROVIDED
from declaro.utils import is_empty

logger = logging.getLogger(__name__)
logger.debug('Importing {}'.format(__name__))
