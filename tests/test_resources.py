"""Test resource declaration, schema metadata, and the resource instance model."""
import logging

import pytest

from declaro.exceptions import DuplicateSchemaNameError
from declaro.exceptions import ReservedFieldNameError
from declaro.exceptions import UnknownFieldError
from declaro.exceptions import UnknownMetaOptionError
from declaro.exceptions import ValidationError
from declaro.fields import ArrayOf
from declaro.fields import IntegerField
from declaro.fields import ObjectAs
from declaro.fields import StringField
from declaro.resources import DEFAULT_TYPE_FIELD
from declaro.resources import Resource
from declaro.resources import declare_schema
from declaro.resources import each_field

logger = logging.getLogger(__name__)
logger.debug('Importing {}'.format(__name__))


def test_meta_options(registry):
    class Person(Resource, namespace='app'):
        name = StringField()

    meta = Person._meta
    assert meta.name == 'Person'
    assert meta.namespace == 'app'
    assert meta.resource_name == 'app.Person'
    assert meta.type_field == DEFAULT_TYPE_FIELD
    assert meta.verbose_name == 'Person'
    assert meta.verbose_name_plural == 'Persons'
    assert not meta.abstract
    assert meta.registry is registry
    assert registry.get('app.Person') is Person

    class Basic_Thing(Resource, verbose_name_plural='Basic things'):
        ...

    assert Basic_Thing._meta.resource_name == 'Basic_Thing'
    assert Basic_Thing._meta.verbose_name == 'Basic Thing'
    assert Basic_Thing._meta.verbose_name_plural == 'Basic things'


def test_unknown_meta_option(registry):
    with pytest.raises(UnknownMetaOptionError) as exc_info:
        class Broken(Resource, namespace='app', colour='blue', size=3):
            ...
    assert exc_info.value.options == ['colour', 'size']
    assert 'app.Broken' not in registry


def test_duplicate_schema_name(registry):
    class Person(Resource, namespace='app'):
        ...

    with pytest.raises(DuplicateSchemaNameError) as exc_info:
        class Person(Resource, namespace='app'):
            ...
    assert exc_info.value.name == 'app.Person'

    # Same name in another namespace is a different resource.
    class Person(Resource, namespace='other'):
        ...
    assert len(registry) == 2


def test_abstract_not_registered(registry):
    class Base(Resource, abstract=True, namespace='app'):
        created = StringField(allow_null=True)

    class Concrete(Base):
        ...

    assert registry.names() == ['app.Concrete']
    # Namespace is inherited from the parent schema; abstract is not.
    assert Concrete._meta.namespace == 'app'
    assert not Concrete._meta.abstract


def test_type_field_inherited(registry):
    class Shape(Resource, abstract=True, type_field='kind'):
        ...

    class Circle(Shape):
        ...

    assert Circle._meta.type_field == 'kind'
    assert Circle().to_json() == {'kind': 'Circle'}


def test_declaration_order(registry):
    class Record(Resource):
        c = IntegerField()
        a = IntegerField()
        b = IntegerField()

    assert [f.name for f in each_field(Record)] == ['c', 'a', 'b']
    assert [f.name for f in each_field(Record())] == ['c', 'a', 'b']


def test_inherited_fields_precede_own_fields(registry):
    class Animal(Resource, abstract=True):
        name = StringField()
        legs = IntegerField()

    class Dog(Animal):
        breed = StringField()
        # Redeclaring an inherited field moves it to this position.
        legs = IntegerField(default=4)

    assert [f.name for f in each_field(Dog)] == ['name', 'breed', 'legs']
    assert Dog().legs == 4
    assert [f.name for f in each_field(Animal)] == ['name', 'legs']


def test_multiple_parents_ordered_by_declaration(registry):
    """Fields inherited from several parents are ordered by declaration, not by base order."""
    class HasTitle(Resource, abstract=True):
        title = StringField()

    class HasCount(Resource, abstract=True):
        count = IntegerField()

    class Item(HasCount, HasTitle):
        sku = StringField()

    assert [f.name for f in each_field(Item)] == ['title', 'count', 'sku']


def test_field_naming(registry):
    shared = StringField()

    class First(Resource):
        label = shared

    class Second(Resource):
        caption = shared

    # The name is assigned once, on first attachment.
    assert shared.name == 'label'
    assert shared.resource is First
    assert shared.attname == 'caption'
    assert [f.name for f in each_field(Second)] == ['label']


def test_construction_uses_defaults(registry):
    class Settings(Resource):
        retries = IntegerField(default=3)
        label = StringField(allow_null=True)

    settings = Settings()
    assert settings.retries == 3
    assert settings.label is None

    settings = Settings({'retries': '5', 'ignored': True})
    # Construction does not coerce.
    assert settings.get('retries') == '5'
    settings.full_clean()
    assert settings.get('retries') == 5

    settings = Settings(retries=1, label='x')
    assert settings.retries == 1
    assert settings.label == 'x'


def test_array_default_isolation(registry):
    class Tag(Resource):
        name = StringField()

    class Post(Resource):
        tags = ArrayOf(Tag)

    first = Post()
    second = Post()
    assert first.tags == [] and second.tags == []
    assert first.tags is not second.tags
    first.tags.append(Tag(name='news'))
    assert second.tags == []


def test_set(registry):
    """Check validated assignment of one or several values."""
    class Person(Resource):
        name = StringField(max_length=10)
        age = IntegerField(min_value=0, allow_null=True)

    person = Person(name='Bob')
    person.set('age', '30')
    assert person.age == 30

    person.set({'name': 'Alice', 'age': 31})
    assert person.name == 'Alice'
    assert person.age == 31

    with pytest.raises(UnknownFieldError) as exc_info:
        person.set('doesNotExist', 1)
    assert exc_info.value.field_name == 'doesNotExist'

    with pytest.raises(ValidationError) as exc_info:
        person.set('age', -1)
    assert exc_info.value.code == 'min_value'
    assert exc_info.value.params == {'min_value': 0}

    with pytest.raises(ValidationError) as exc_info:
        person.set({'name': 'Carol', 'age': -1})
    assert exc_info.value.code == 'min_value'
    # Nothing is assigned unless every value is valid.
    assert person.name == 'Alice'
    assert person.age == 31

    # Several invalid values are reported by field name.
    with pytest.raises(ValidationError) as exc_info:
        person.set({'name': 'Bartholomew', 'age': -1})
    assert exc_info.value.kind == 'dict'
    assert set(exc_info.value.message_dict) == {'name', 'age'}
    assert person.name == 'Alice'


def test_set_none_attribute_is_noop(registry):
    class Person(Resource):
        name = StringField()

    person = Person(name='Bob')
    changes = []
    person.on('change', lambda *args: changes.append(args))
    assert person.set(None) is None
    assert person.name == 'Bob'
    assert changes == []


def test_set_change_events(registry):
    class Person(Resource):
        name = StringField()
        age = IntegerField()

    person = Person(name='Bob', age=30)
    field_events = []
    change_events = []
    person.on('change:name', lambda *args: field_events.append(('name',) + args))
    person.on('change:age', lambda *args: field_events.append(('age',) + args))
    person.on('change', lambda *args: change_events.append(args))

    person.set({'name': 'Bob', 'age': 31}, source='test')
    assert field_events == [('age', person, 31, {'silent': False, 'source': 'test'})]
    assert change_events == [(person, {'silent': False, 'source': 'test'})]

    # Unchanged values trigger nothing.
    person.set('age', 31)
    assert len(change_events) == 1

    person.set('name', 'Robert', silent=True)
    assert person.name == 'Robert'
    assert len(field_events) == 1
    assert len(change_events) == 1


def test_injected_observable(registry):
    class Recorder:
        def __init__(self):
            self.events = []

        def trigger(self, event, *args):
            self.events.append(event)

    class Person(Resource):
        name = StringField()

    recorder = Recorder()
    person = Person(name='Bob', events=recorder)
    person.set('name', 'Alice')
    assert recorder.events == ['change:name', 'change']


def test_full_clean_aggregates_errors(registry):
    """Confirm that whole-record validation reports every failing field at once."""
    class Person(Resource):
        name = StringField(max_length=3)
        age = IntegerField(min_value=0)
        nickname = StringField(allow_null=True)

    person = Person(name='Bartholomew', age='-4')
    with pytest.raises(ValidationError) as exc_info:
        person.full_clean()
    error = exc_info.value
    assert error.kind == 'dict'
    assert set(error.message_dict) == {'name', 'age'}
    assert all(error.message_dict[name] for name in ('name', 'age'))
    # Valid fields are still cleaned; failing fields keep their raw values.
    assert person.nickname is None
    assert person.age == '-4'

    person = Person(name='Bob', age='4')
    person.full_clean()
    assert person.age == 4


def test_full_clean_nested_errors(registry):
    class Address(Resource):
        city = StringField(min_length=2)

    class Person(Resource):
        address = ObjectAs(Address)

    person = Person(address={'city': 'X'})
    with pytest.raises(ValidationError) as exc_info:
        person.full_clean()
    message_dict = exc_info.value.message_dict
    assert list(message_dict) == ['address']
    assert list(message_dict['address']) == ['city']
    assert exc_info.value.messages == ['address: city: Ensure this value has at least 2 characters.']


def test_full_clean_embedded_instances(registry):
    """Confirm that embedded resource instances are validated with their parent."""
    class Address(Resource):
        city = StringField(min_length=2)

    class Person(Resource):
        address = ObjectAs(Address)
        history = ArrayOf(Address)

    person = Person(address=Address(city='X'), history=[Address(city='Oslo'), Address(city=None)])
    with pytest.raises(ValidationError) as exc_info:
        person.full_clean()
    message_dict = exc_info.value.message_dict
    assert list(message_dict['address']) == ['city']
    assert list(message_dict['history']) == [1]
    assert message_dict['history'][1] == {'city': ['This field cannot be null.']}

    with pytest.raises(ValidationError) as exc_info:
        person.set('address', Address(city='Y'))
    assert list(exc_info.value.message_dict) == ['city']

    address = Address(city='Oslo')
    person = Person(address=address, history=[])
    person.full_clean()
    assert person.address is address


def test_reserved_field_names(registry):
    with pytest.raises(ReservedFieldNameError) as exc_info:
        class Message(Resource):
            events = ArrayOf('Message')
    assert exc_info.value.field_name == 'events'

    with pytest.raises(ReservedFieldNameError):
        class Options(Resource):
            values = StringField()

    for name in ('get', 'set', 'on', 'off', 'to_json', 'full_clean'):
        with pytest.raises(ReservedFieldNameError) as exc_info:
            declare_schema(Resource, 'Broken', {name: StringField()})
        assert exc_info.value.field_name == name
    assert len(registry) == 0

    # The wire name is free as long as the attribute does not shadow Resource.
    class Query(Resource):
        set_ = StringField(name='set')

    assert Query(set='a').set_ == 'a'


def test_field_named_like_discriminator(registry):
    with pytest.raises(ReservedFieldNameError):
        class Tagged(Resource):
            kind = StringField(name='$')

    class Shape(Resource, abstract=True):
        kind = StringField()

    with pytest.raises(ReservedFieldNameError) as exc_info:
        class Circle(Shape, type_field='kind'):
            ...
    assert exc_info.value.field_name == 'kind'
    assert len(registry) == 0


def test_get(registry):
    class Person(Resource):
        name = StringField()

    person = Person(name='Bob')
    assert person.get('name') == 'Bob'
    with pytest.raises(UnknownFieldError):
        person.get('age')


def test_declare_schema(registry):
    Person = declare_schema(Resource, 'Person', {
        'name': StringField(),
        'greeting': 'hello',
    }, namespace='app')

    assert registry.get('app.Person') is Person
    assert [f.name for f in each_field(Person)] == ['name']
    assert Person.greeting == 'hello'

    Employee = declare_schema(Person, 'Employee', {'number': IntegerField()})
    assert Employee._meta.resource_name == 'app.Employee'
    assert [f.name for f in each_field(Employee)] == ['name', 'number']

    with pytest.raises(UnknownMetaOptionError):
        declare_schema(Resource, 'Broken', {}, typeField='kind')


def test_to_json_and_equality(registry):
    class Person(Resource, namespace='app'):
        name = StringField()

    person = Person(name='Bob')
    assert person.to_json() == {'$': 'app.Person', 'name': 'Bob'}
    assert person == Person(name='Bob')
    assert person != Person(name='Alice')
    assert repr(person) == '<Person: app.Person resource>'
    assert str(person) == 'app.Person resource'
