'''
Decoding of the payload of a block into a Record, using the layout
computed from the catalog.

The primitive values are extracted from the raw payload with bitstring,
each primitive type of the catalog maps to a token like "floatle:32".
'''
import logging
from collections import OrderedDict
from typing import Any, List

from bitstring import ConstBitStream, ReadError

from ..exceptions import TruncatedStreamException
from ..meta import Endianess
from .sdna import Catalog, Structure, StructureField


logger = logging.getLogger(__name__)


# primitive type -> bitstring kind, the number of bits comes from the size in the catalog
PRIMITIVES = {
    'char':     'uint',
    'uchar':    'uint',
    'int8_t':   'int',
    'uint8_t':  'uint',
    'short':    'int',
    'ushort':   'uint',
    'int16_t':  'int',
    'uint16_t': 'uint',
    'int':      'int',
    'long':     'int',
    'ulong':    'uint',
    'int32_t':  'int',
    'uint32_t': 'uint',
    'float':    'float',
    'double':   'float',
    'int64_t':  'int',
    'uint64_t': 'uint',
}

TEXT_TYPES = ('char',)


def get_token(type_name: str, size: int, endianess: Endianess) -> str:
    kind, bits = PRIMITIVES[type_name], size * 8
    if bits == 8:
        return f'{kind}:8'

    suffix = 'le' if endianess == Endianess.LITTLE_ENDIAN else 'be'

    return f'{kind}{suffix}:{bits}'


class Record(object):
    '''The decoded content of a structure: the values are accessible
    as attributes or as items, in the order of the fields.

    Pointers are represented by the address they had into the producer
    (use BlendFile.follow() to obtain the record they point to).'''

    def __init__(self, structure: Structure, address=None):
        self.structure = structure
        self.address = address
        self._values = OrderedDict()

    @property
    def type_name(self) -> str:
        return self.structure.name

    def __repr__(self):
        address = f'@0x{self.address:x}' if self.address is not None else ''
        return f'<{self.__class__.__name__}({self.type_name}{address})>'

    def __getattr__(self, name):
        # only the fields, "_values" itself is missing while copying or unpickling
        values = self.__dict__.get('_values')
        if values is None:
            raise AttributeError(name)
        if name not in values:
            raise AttributeError(f'\'{self.type_name}\' has no field named \'{name}\'')

        return values[name]

    def __getitem__(self, name):
        return self._values[name]

    def __setitem__(self, name, value):
        self._values[name] = value

    def __contains__(self, name):
        return name in self._values

    def __iter__(self):
        return iter(self._values)

    def keys(self):
        return self._values.keys()

    def items(self):
        return self._values.items()


class RecordDecoder(object):
    '''The default structure-aware decoder: a block becomes a Record, or a
    list of them if its count is not one.'''

    def __init__(self, catalog: Catalog):
        self.catalog = catalog

    def decode(self, block, structure: Structure, stream):
        stream.seek(block.offset)
        payload = stream.read_exact(block.size)

        self.endianess = stream.endianess
        self.pointer_width = stream.pointer_width
        bits = ConstBitStream(bytes=payload)

        logger.debug('decoding block %s as %d x %s' % (block.code, block.count, structure.name))

        records = []
        for idx in range(block.count):
            base = idx * structure.size
            try:
                records.append(self.decode_structure(bits, structure, base, address=block.address))
            except (ReadError, ValueError) as e:
                raise TruncatedStreamException(
                    chain=[f'block {block.code}@0x{block.address:x}'],
                    message=f'element {idx} of {structure.name} exceeds the payload: {e}') from e

        return records[0] if block.count == 1 else records

    def decode_structure(self, bits: ConstBitStream, structure: Structure, base: int, address=None) -> Record:
        record = Record(structure, address=address)
        for field in structure.fields:
            if field.name in record:  # unions have repeated names, the first wins
                continue
            record[field.name] = self.decode_field(bits, field, base + field.offset)

        return record

    def decode_field(self, bits: ConstBitStream, field: StructureField, position: int) -> Any:
        if field.is_pointer:
            count = field.pointer_count()
            values = [self.read_pointer(bits, position + idx * self.pointer_width.size) for idx in range(count)]
            return values if field.is_array else values[0]

        shape = field.array_shape()

        if shape and field.type.name in TEXT_TYPES:
            return self.read_text(bits, position, shape)

        return self.read_array(bits, field, position, shape)

    def read_array(self, bits: ConstBitStream, field: StructureField, position: int, shape: List[int]):
        if not shape:
            return self.read_value(bits, field, position)

        step = field.type.size
        for dimension in shape[1:]:
            step *= dimension

        return [self.read_array(bits, field, position + idx * step, shape[1:]) for idx in range(shape[0])]

    def read_text(self, bits: ConstBitStream, position: int, shape: List[int]):
        if len(shape) > 1:
            step = 1
            for dimension in shape[1:]:
                step *= dimension
            return [self.read_text(bits, position + idx * step, shape[1:]) for idx in range(shape[0])]

        bits.bytepos = position
        raw = bits.read(f'bytes:{shape[0]}')

        return raw.split(b'\x00', 1)[0].decode('utf-8', errors='replace')

    def read_value(self, bits: ConstBitStream, field: StructureField, position: int):
        structure = self.catalog.get_structure(field.type.name)
        if structure is not None:
            return self.decode_structure(bits, structure, position)

        bits.bytepos = position
        if field.type.name not in PRIMITIVES:
            return bits.read(f'bytes:{field.type.size}')

        return bits.read(get_token(field.type.name, field.type.size, self.endianess))

    def read_pointer(self, bits: ConstBitStream, position: int) -> int:
        bits.bytepos = position
        suffix = 'le' if self.endianess == Endianess.LITTLE_ENDIAN else 'be'

        return bits.read(f'uint{suffix}:{self.pointer_width.size * 8}')
