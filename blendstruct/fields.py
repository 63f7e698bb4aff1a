"""
A Field is "fundamental" datatype from the format point of view, something directly
unpackable from a stream without need of sub-components.
"""
import logging
import struct
from enum import Enum

from .enum import Compliant
from .meta import FieldBase, Endianess
from .exceptions import UnpackException, MagicException, InvalidFormatException


class Field(FieldBase):
    """Base class to subclass from"""

    def __init__(self, *args, name=None, father=None, default=None, offset=None,
                 endianess=None, compliant=Compliant.INHERIT, is_magic=False):
        super().__init__()
        self.logger = logging.getLogger(__name__)
        self.name = name
        self.father = father
        self.default = default
        self.offset = offset
        self.endianess = endianess
        self.compliant = compliant
        self.is_magic = is_magic

        self.init()

    def init(self):
        self.value = self.value_from_default()

    def value_from_default(self):
        return self.default

    def __str__(self):
        return str(self.value)

    def get_endianess(self) -> Endianess:
        '''The endianess is inherited from the father if not indicated explicitly.'''
        instance = self
        while instance is not None:
            if instance.endianess is not None:
                return instance.endianess
            instance = instance.father

        return Endianess.LITTLE_ENDIAN

    def is_compliant(self, level):
        '''Returns the compliant'''
        instance = self
        while instance is not None:
            if instance.compliant & level:
                return True
            if not instance.compliant & Compliant.INHERIT:
                break

            instance = instance.father

        return False

    def _get_size(self):
        raise NotImplementedError(f"method {self.__class__.__name__}._get_size() not implemented")

    size = property(
        fget=lambda self: self._get_size(),
    )

    def check_magic(self):
        if self.is_magic and self.value != self.default:
            self.logger.warning(f'the magic for field \'{self.name}\' doesn\'t correspond: {self.value!r}')
            if self.is_compliant(Compliant.MAGIC):
                raise MagicException(chain=[], message=f'expected {self.default!r}, found {self.value!r}')
            return False

        return True

    def unpack(self, stream):
        raise NotImplementedError('you need to implement this in the subclass')


class StructField(Field):
    """
    Simplest of the fields: mimic the behaviour of the struct module unpacking
    integers from bytes.

    The main advantage is the possibility to indicate via the "enum" argument some subclass
    of enum.Enum so to have directly a representation of the value of the field itself.
    """

    def __init__(self, format, default=0, enum=None, **kw):
        self.format = format
        self.enum = enum
        super().__init__(default=default, **kw)

    def __repr__(self):
        if self.enum:
            return f'<{self.__class__.__name__}({self.value!r})>'

        encoder = str if isinstance(self.value, bytes) else hex
        return '<%s(%s)>' % (self.__class__.__name__, encoder(self.value))

    def value_from_default(self):
        if not self.enum or isinstance(self.default, Enum):
            return super().value_from_default()

        return self.enum(self.default)

    def get_format(self):
        return '%s%s' % (self.get_endianess().prefix, self.format)

    def _get_size(self):
        return struct.calcsize(self.get_format())

    def _unpack_enum(self, value):
        try:
            return self.enum(value)
        except ValueError:
            if self.is_compliant(Compliant.ENUM):
                raise InvalidFormatException(
                    chain=[], message=f'{self.enum.__name__} doesn\'t have element with value {value!r}')

            self.logger.warning(f'enum {self.enum!r} doesn\'t have element with value {value!r} in it')

            return value

    def unpack(self, stream):
        raw = stream.read_exact(self.size)

        try:
            value = struct.unpack(self.get_format(), raw)[0]
        except struct.error as e:
            self.logger.error(e)
            raise UnpackException(chain=[], message=str(e))

        self.value = self._unpack_enum(value) if self.enum else value

        self.check_magic()


class StringField(Field):
    """Represent a contiguous chunk of bytes.

    With a length of zero the chunk is terminated by a NUL byte."""

    def __init__(self, n=None, **kw):
        if n is None and 'default' not in kw:
            raise ValueError("StringField must have 'n' or 'default' indicated!")

        self.length = n if n is not None else len(kw['default'])

        super().__init__(**kw)

    def __repr__(self):
        return '<%s(%s)>' % (self.__class__.__name__, repr(self.value))

    def __len__(self):
        return len(self.value)

    def value_from_default(self):
        return b'\x00' * self.length if self.default is None else self.default

    def _get_size(self):
        return self.length if self.length else len(self.value) + 1

    def unpack(self, stream):
        self.value = stream.read_exact(self.length) if self.length else stream.read_until()

        self.check_magic()
