import copy
import logging
from enum import Enum, auto


class Endianess(Enum):
    LITTLE_ENDIAN = auto()
    BIG_ENDIAN    = auto()

    @property
    def prefix(self) -> str:
        '''The byte order character understood by the struct module.'''
        return '<' if self == Endianess.LITTLE_ENDIAN else '>'


def get_root_from_chunk(instance):
    return get_instance_from_chunk(instance, condition=lambda x: x.father is None)


def get_instance_from_chunk(instance, condition):
    while not condition(instance):
        instance = instance.father

    return instance


logger = logging.getLogger(__name__)


class FieldDescriptor(object):
    """Class attribute standing for a declared field.

    The instance of the chunk never sees the declared field: the first
    access stores into the instance a copy of it, fathered by the chunk,
    so that two chunks of the same class never share values."""

    def __init__(self, template: "Field", field_name: str):
        self.template = template
        self.template.name = field_name

    @property
    def name(self) -> str:
        return self.template.name

    def __get__(self, chunk, owner=None):
        if chunk is None:
            return self

        fields = chunk.__dict__
        if self.name not in fields:
            logger.debug("creating field '%s' for %s", self.name, chunk.__class__.__name__)
            fields[self.name] = self.template.create(father=chunk)

        return fields[self.name]

    def __set__(self, chunk, value):
        # a field replaces the one in place, anything else is its new value
        if isinstance(value, self.template.__class__):
            value.father = chunk
            value.name = self.name
            chunk.__dict__[self.name] = value
            return

        self.__get__(chunk).value = value


class FieldBase(object):

    def contribute_to_chunk(self, cls, name):
        current = cls.__dict__.get(name)
        if current is not None and not isinstance(current, FieldDescriptor):
            raise AttributeError(f'\'{name}\' of {cls.__name__} is not a field and can\'t be redefined as one')

        setattr(cls, name, FieldDescriptor(self, name))

    def create(self, father):
        instance = copy.deepcopy(self)
        instance.father = father
        return instance


class Meta(object):
    """What the metaclass knows of a chunk: the names of its fields in
    the order they are unpacked."""

    def __init__(self, fields=None):
        self.fields = list(fields or [])

    def add(self, name):
        if name not in self.fields:
            self.fields.append(name)


class MetaChunk(type):
    '''Collect the fields declared in the body of a chunk class.

    The fields of the parents come first, a field redefined by a subclass
    keeps the position it had in the parent.'''

    def __new__(cls, name, bases, attrs):
        plain = {key: value for key, value in attrs.items() if not isinstance(value, FieldBase)}
        declared = [(key, value) for key, value in attrs.items() if isinstance(value, FieldBase)]

        new_cls = super().__new__(cls, name, bases, plain)
        new_cls._meta = Meta()

        for parent in bases:
            if not isinstance(parent, MetaChunk):
                continue
            for field_name in parent._meta.fields:
                new_cls._meta.add(field_name)

        for field_name, field in declared:
            logger.debug('field \'%s\' declared in %s' % (field_name, name))
            new_cls._meta.add(field_name)
            field.contribute_to_chunk(new_cls, field_name)

        return new_cls
