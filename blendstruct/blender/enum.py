from enum import Enum

from ..meta import Endianess


class PointerWidth(Enum):
    '''The character after the magic tells the size of the pointers
    of the machine that wrote the file.'''
    WIDTH4 = b'_'
    WIDTH8 = b'-'

    @property
    def size(self) -> int:
        return 4 if self == PointerWidth.WIDTH4 else 8

    @property
    def format(self) -> str:
        return 'I' if self == PointerWidth.WIDTH4 else 'Q'


class ByteOrder(Enum):
    LITTLE = b'v'
    BIG    = b'V'

    @property
    def endianess(self) -> Endianess:
        return Endianess.LITTLE_ENDIAN if self == ByteOrder.LITTLE else Endianess.BIG_ENDIAN


class BlockCode(object):
    '''Codes of the blocks with a special role in the file'''
    CATALOG     = 'DNA1'
    CATALOG_OLD = 'SDNA'
    TERMINATOR  = 'ENDB'

    CATALOGS = (CATALOG, CATALOG_OLD)


class SDNAIdentifier(object):
    '''The identifiers that introduce the sections of the catalog'''
    SDNA = 'SDNA'
    NAME = 'NAME'
    TYPE = 'TYPE'
    TLEN = 'TLEN'
    STRC = 'STRC'


# structures that are UI scaffolding and clutter the report
REPORT_DENYLIST = (
    'ScrVert',
    'Panel',
    'ScrEdge',
    'ARegion',
)
