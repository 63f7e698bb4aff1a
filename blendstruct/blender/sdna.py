'''
# SDNA

The "structure DNA" is the description that Blender appends to every file of
all the C structures it dumped: since the layout changes between versions
and between architectures, a reader must not have a static idea of it but
must reconstruct it from this catalog.

It's made of four tables

 1. NAME: the declarations of the fields, as written in the C source (``*next``, ``co[3]``, ``(*func)()``)
 2. TYPE: the names of the types, primitive and composite
 3. TLEN: the size in bytes of each type
 4. STRC: for each structure the index of its type and a list of (type, name) couples

Each table is introduced by its four characters identifier and is followed
by padding up to a multiple of four bytes.
'''
import logging
import re
from functools import lru_cache
from typing import Dict, List, Optional

from ..streams import Stream
from ..exceptions import CorruptIndexException, InvalidFormatException
from .enum import PointerWidth, SDNAIdentifier


logger = logging.getLogger(__name__)


UNSIZED = -1

_RE_FUNCTION_POINTER = re.compile(r'^\(\*+(?P<name>[A-Za-z_]\w*)\)\(.*\)$')
_RE_DECLARATION = re.compile(r'^(?P<pointer>\*{0,2})(?P<name>[A-Za-z_]\w*)(?P<arrays>(?:\[\d*\])*)$')
_RE_DIMENSION = re.compile(r'\[(\d*)\]')


class DeclaredName(object):
    '''A field declaration parsed into its components.'''

    def __init__(self, declaration, name, pointer_depth=0, array_sizes=None, is_function_pointer=False):
        self.declaration = declaration
        self.name = name
        self.pointer_depth = pointer_depth
        self.array_sizes = array_sizes or []
        self.is_function_pointer = is_function_pointer

    def __repr__(self):
        return f'<{self.__class__.__name__}({self.declaration!r})>'

    def __eq__(self, other):
        if not isinstance(other, DeclaredName):
            return NotImplemented

        return (self.declaration, self.name, self.pointer_depth, self.array_sizes, self.is_function_pointer) == \
            (other.declaration, other.name, other.pointer_depth, other.array_sizes, other.is_function_pointer)

    def __hash__(self):
        return hash(self.declaration)

    @property
    def is_pointer(self) -> bool:
        return self.pointer_depth > 0

    @property
    def is_array(self) -> bool:
        return len(self.array_sizes) > 0


@lru_cache(maxsize=None)
def parse_declaration(declaration: str) -> DeclaredName:
    '''Parse the declaration of a field

        >>> parse_declaration('*mat[4]').array_sizes
        [4]

    Something we don't understand becomes an opaque scalar with the
    identifier characters of the declaration as name.'''
    declaration = declaration.strip()

    match = _RE_FUNCTION_POINTER.match(declaration)
    if match:
        return DeclaredName(declaration, match.group('name'), pointer_depth=1, is_function_pointer=True)

    match = _RE_DECLARATION.match(declaration)
    if match:
        array_sizes = [int(_) if _ else UNSIZED for _ in _RE_DIMENSION.findall(match.group('arrays'))]
        return DeclaredName(
            declaration,
            match.group('name'),
            pointer_depth=len(match.group('pointer')),
            array_sizes=array_sizes,
        )

    logger.warning('unable to parse the declaration \'%s\', treating it as a scalar' % declaration)
    name = re.sub(r'\W', '', declaration) or declaration or '_'

    return DeclaredName(declaration, name)


class PrimitiveType(object):

    def __init__(self, id: int, name: str, size: int = 0):
        self.id = id
        self.name = name
        self.size = size

    def __repr__(self):
        return f'<{self.__class__.__name__}({self.id}, {self.name!r}, size={self.size})>'


class StructureField(object):
    '''A field of a structure with its position inside it.'''

    def __init__(self, type: PrimitiveType, declared_name: DeclaredName, offset: int):
        self.type = type
        self.declared_name = declared_name
        self.offset = offset

    def __repr__(self):
        return f'<{self.__class__.__name__}({self.type.name} {self.declared_name.declaration} @ {self.offset})>'

    @property
    def name(self) -> str:
        return self.declared_name.name

    @property
    def is_pointer(self) -> bool:
        return self.declared_name.is_pointer

    @property
    def is_array(self) -> bool:
        return self.declared_name.is_array

    @property
    def array_sizes(self) -> List[int]:
        return self.declared_name.array_sizes

    def pointer_count(self) -> int:
        '''How many pointers are stored for a pointer field.'''
        amount = self.array_sizes[0] if self.is_array else 1

        return amount if amount > 0 else 1

    def array_shape(self) -> List[int]:
        '''The dimensions that take space, empty if the field behaves like a scalar.

        The multiplier starts from zero and the first sized dimension is
        added to it, so leading zero dimensions are skipped ("a[0][3]" has
        three elements) while a zero after that makes the product vanish.'''
        shape = []
        multi = 0
        for dimension in self.array_sizes:
            if dimension == UNSIZED:
                continue
            if multi == 0:
                multi += dimension
                shape = [dimension] if dimension else []
            else:
                multi *= dimension
                shape.append(dimension)

        return shape if multi else []

    def contribution(self, pointer_width: PointerWidth) -> int:
        '''The number of bytes this field occupies into the structure.'''
        if self.is_pointer:
            return pointer_width.size * self.pointer_count()

        multi = 1
        for dimension in self.array_shape():
            multi *= dimension

        return self.type.size * multi


class Structure(object):

    def __init__(self, type: PrimitiveType):
        self.type = type
        self.fields: List[StructureField] = []
        self._fields_by_name: Dict[str, StructureField] = {}
        self._end = 0

    def __repr__(self):
        return f'<{self.__class__.__name__}({self.type.name}, {len(self.fields)} fields)>'

    @property
    def name(self) -> str:
        return self.type.name

    @property
    def size(self) -> int:
        return self.type.size

    @property
    def computed_size(self) -> int:
        '''Where the last field ends.'''
        return self._end

    def append(self, field: StructureField, contribution: int):
        self.fields.append(field)
        self._fields_by_name.setdefault(field.name, field)
        self._end = field.offset + contribution

    def has_field(self, name: str) -> bool:
        return name in self._fields_by_name

    def get_field(self, name: str) -> StructureField:
        return self._fields_by_name[name]


class Catalog(object):
    '''Owner of all the names, types and structures of a file.

    All the other objects refer to these tables by index or by
    reference, never by copy.'''

    def __init__(self, pointer_width: PointerWidth):
        self.pointer_width = pointer_width
        self.names: List[DeclaredName] = []
        self.types: List[PrimitiveType] = []
        self.structures: List[Structure] = []
        self._structures_by_name: Dict[str, Structure] = {}

    def __repr__(self):
        return '<%s(names=%d, types=%d, structures=%d)>' % (
            self.__class__.__name__,
            len(self.names),
            len(self.types),
            len(self.structures),
        )

    def has_structure(self, name: str) -> bool:
        return name in self._structures_by_name

    def get_structure(self, name: str) -> Optional[Structure]:
        return self._structures_by_name.get(name)

    def get_type(self, index: int) -> PrimitiveType:
        if not 0 <= index < len(self.types):
            raise CorruptIndexException(message=f'type index {index} out of range (there are {len(self.types)} types)')

        return self.types[index]

    def get_name(self, index: int) -> DeclaredName:
        if not 0 <= index < len(self.names):
            raise CorruptIndexException(message=f'name index {index} out of range (there are {len(self.names)} names)')

        return self.names[index]

    def get_structure_by_index(self, index: int) -> Structure:
        if not 0 <= index < len(self.structures):
            raise CorruptIndexException(
                message=f'structure index {index} out of range (there are {len(self.structures)} structures)')

        return self.structures[index]

    @staticmethod
    def _expect(stream: Stream, identifier: str):
        value = stream.read_string(4)
        if value != identifier:
            raise InvalidFormatException(
                chain=[identifier], message=f'expected identifier {identifier!r}, found {value!r} at 0x{stream.tell() - 4:x}')

    @classmethod
    def from_stream(cls, stream: Stream, offset: int) -> "Catalog":
        '''Build the catalog reading the payload of the catalog block at the given offset.

        The stream must already have the byte order and the pointer width of the file.'''
        catalog = cls(stream.pointer_width)

        stream.seek(offset)
        cls._expect(stream, SDNAIdentifier.SDNA)

        cls._expect(stream, SDNAIdentifier.NAME)
        n_names = stream.read_struct('I')
        for _ in range(n_names):
            catalog.names.append(parse_declaration(stream.read_string(0)))
        stream.align()
        logger.debug('found %d names' % n_names)

        cls._expect(stream, SDNAIdentifier.TYPE)
        n_types = stream.read_struct('I')
        for idx in range(n_types):
            catalog.types.append(PrimitiveType(idx, stream.read_string(0)))
        stream.align()
        logger.debug('found %d types' % n_types)

        cls._expect(stream, SDNAIdentifier.TLEN)
        for _type in catalog.types:
            _type.size = stream.read_struct('H')
            if _type.size == 0:  # opaque, pointer sized (e.g. function pointers)
                _type.size = catalog.pointer_width.size
        stream.align()

        cls._expect(stream, SDNAIdentifier.STRC)
        n_structures = stream.read_struct('I')
        for _ in range(n_structures):
            catalog._read_structure(stream)
        stream.align()
        logger.debug('found %d structures' % n_structures)

        return catalog

    def _read_structure(self, stream: Stream):
        structure = Structure(self.get_type(stream.read_struct('H')))
        n_fields = stream.read_struct('H')

        offset = 0
        for _ in range(n_fields):
            type_index = stream.read_struct('H')
            name_index = stream.read_struct('H')
            field = StructureField(self.get_type(type_index), self.get_name(name_index), offset)
            contribution = field.contribution(self.pointer_width)
            structure.append(field, contribution)
            offset += contribution

        if offset > structure.size:
            logger.warning('structure \'%s\' has a layout of %d bytes but declares %d' % (
                structure.name, offset, structure.size))

        logger.debug('structure %s with %d fields' % (structure.name, n_fields))

        self.structures.append(structure)
        self._structures_by_name.setdefault(structure.name, structure)


def link_blocks(blocks, catalog: Catalog):
    '''Bind each block to the structure indicated by its SDNA index.'''
    for block in blocks:
        try:
            block.structure = catalog.get_structure_by_index(block.sdna_index)
        except CorruptIndexException as e:
            e.chain.append(f'block {block.code}@0x{block.address:x}')
            raise
