'''
# Blend format

The native format of Blender is a dump of the memory of the program: a
short header, a sequence of blocks each one containing one or more C
structures, and at the end the catalog (SDNA) that describes the layout
of every structure used.

  .----------------------------.
  | header (12 bytes)          |
  | block header | payload     |
  | block header | payload     |
    ...
  | block header DNA1 | SDNA   |
  | block header ENDB          |
  '----------------------------'

The header tells the size of the pointers ('_' for 4 bytes, '-' for 8 bytes)
and the endianess ('v' for little, 'V' for big) of the machine that wrote
the file; every block header records the address the block had in memory
(that is used by the pointers of the other blocks to refer to it), the index
of its structure into the catalog and how many structures it contains.

The reader assumes the convention of the writer: the catalog block is the
last one before the terminator, so the scan of the blocks stops there.

The whole file can be compressed with gzip, in that case it's decompressed
transparently.
'''
import logging
import os
import threading
from typing import List, Optional

from . import fields as blend_fields
from ..core import Chunk
from .. import fields
from ..enum import Compliant
from ..streams import Stream
from ..exceptions import (
    InvalidFormatException,
    MagicException,
    NotFoundException,
)
from ..compression.inflate import gunzip
from .enum import PointerWidth, ByteOrder, BlockCode
from .sdna import Catalog, Structure, link_blocks
from .decoder import RecordDecoder


logger = logging.getLogger(__name__)


class BlendHeader(Chunk):
    magic        = fields.StringField(7, default=b'BLENDER', is_magic=True)
    pointer_size = fields.StructField('c', enum=PointerWidth, default=PointerWidth.WIDTH8)
    byte_order   = fields.StructField('c', enum=ByteOrder, default=ByteOrder.LITTLE)
    version      = fields.StringField(3, default=b'000')


class BlockHeader(Chunk):
    '''The header preceding the payload of each block.

    The width of the "old" field (the original address) depends on the
    pointer size of the file, so it must be indicated at construction.'''
    code   = blend_fields.BlockCodeField()
    len    = fields.StructField('I')
    old    = blend_fields.Blend_Pointer()
    SDNAnr = fields.StructField('I')
    nr     = fields.StructField('I')

    def __init__(self, stream=None, pointer_width=None, **kwargs):
        self.pointer_width = pointer_width
        super().__init__(stream, **kwargs)


class Block(object):
    '''An entry of the directory of the file: where the payload is, how
    big it is and (after the linking) which structure it contains.'''

    def __init__(self, code: str, size: int, address: int, sdna_index: int, count: int, offset: int):
        self.code = code
        self.size = size
        self.address = address
        self.sdna_index = sdna_index
        self.count = count
        self.offset = offset
        self.structure: Optional[Structure] = None

    @classmethod
    def from_header(cls, header: BlockHeader, offset: int) -> "Block":
        return cls(
            header.code.code,
            header.len.value,
            header.old.value,
            header.SDNAnr.value,
            header.nr.value,
            offset,
        )

    @property
    def type_name(self) -> Optional[str]:
        return self.structure.name if self.structure else None

    def __repr__(self):
        return '<%s(%s, %s, count=%d, size=%d, address=0x%x)>' % (
            self.__class__.__name__,
            self.code,
            self.type_name,
            self.count,
            self.size,
            self.address,
        )


class BlendFile(object):
    '''A loaded blend file.

    The constructor reads the header, the directory of the blocks and the
    catalog and then links them together; any problem with the file makes it
    fail. The content of the blocks is decoded only when asked, and only once
    for each address:

        blend = BlendFile('cube.blend')
        scene = blend.decode(blend.get_blocks_by_type('Scene', 0))

    The decoder is any object with a method decode(block, structure, stream),
    by default a RecordDecoder. When a lookup doesn't find anything None is
    returned, unless the file is opened with compliant=Compliant.LOOKUP, in
    that case NotFoundException is raised.
    '''

    def __init__(self, path, decompressor=gunzip, decoder=None, compliant=Compliant.NONE):
        self.path = path
        self.name = str(path) if isinstance(path, (str, os.PathLike)) else '<%s>' % type(path).__name__
        self.compliant = compliant
        self._parsed_blocks = {}
        self._lock = threading.RLock()

        self.stream, self.header = self._read_header(Stream(path), decompressor)

        self.pointer_width: PointerWidth = self.header.pointer_size.value
        self.byte_order: ByteOrder = self.header.byte_order.value
        self.version: str = self.header.version.value.decode('latin1')

        self.stream.endianess = self.byte_order.endianess
        self.stream.pointer_width = self.pointer_width

        self.blocks: List[Block] = self._read_blocks()
        self.catalog = Catalog.from_stream(self.stream, self.blocks[-1].offset)
        link_blocks(self.blocks, self.catalog)

        self.decoder = decoder if decoder is not None else RecordDecoder(self.catalog)

        logger.info('loaded \'%s\' - Blender version is %s' % (self.name, self.version))

    def __repr__(self):
        return '<%s(%s, version=%s, pointer=%d, %s, blocks=%d)>' % (
            self.__class__.__name__,
            self.name,
            self.version,
            self.pointer_width.size,
            self.byte_order.name.lower(),
            len(self.blocks),
        )

    @staticmethod
    def _unpack_header(stream: Stream) -> BlendHeader:
        return BlendHeader(stream, compliant=Compliant.MAGIC | Compliant.ENUM)

    def _read_header(self, stream: Stream, decompressor):
        '''If the magic is not there we suppose the file is compressed: we try
        once to decompress it and to read the header again.'''
        try:
            return stream, self._unpack_header(stream)
        except MagicException:
            logger.warning('magic not found, trying to decompress \'%s\'' % self.name)

        stream.seek(0)
        stream = Stream(decompressor(stream.obj))

        header = self._unpack_header(stream)
        logger.info('blend file is compressed, decompressed in memory')

        return stream, header

    def _read_blocks(self) -> List[Block]:
        '''Scan the block headers up to the catalog, this one included.'''
        blocks = []
        while True:
            header = BlockHeader(self.stream, pointer_width=self.pointer_width, endianess=self.stream.endianess)
            code = header.code.code

            if code == BlockCode.TERMINATOR:
                raise InvalidFormatException(
                    chain=['blocks'], message=f'terminator found at 0x{header.offset:x} before the catalog')

            block = Block.from_header(header, self.stream.tell())
            logger.debug('found %r at offset 0x%x' % (block, block.offset))
            blocks.append(block)

            if code in BlockCode.CATALOGS:
                return blocks

            self.stream.seek(block.offset + block.size)

    def _not_found(self, message):
        if self.compliant & Compliant.LOOKUP:
            raise NotFoundException(message=message)

        logger.warning(message)

        return None

    def count_of_type(self, type_name: str) -> int:
        return len(self.get_blocks_by_type(type_name))

    def get_blocks_by_type(self, type_name: str, ordinal: Optional[int] = None):
        '''Without ordinal returns all the blocks containing the given structure, in
        the order they are into the file, otherwise only the one at that position.'''
        blocks = [_ for _ in self.blocks if _.type_name == type_name]

        if ordinal is None:
            return blocks

        if not 0 <= ordinal < len(blocks):
            return self._not_found(f'{type_name} {ordinal} not found')

        return blocks[ordinal]

    def has_address(self, address: int) -> bool:
        return any(_.address == address for _ in self.blocks)

    def get_block_by_address(self, address: int) -> Optional[Block]:
        for block in self.blocks:
            if block.address == address:
                return block

        return self._not_found(f'could not find block at address 0x{address:x}')

    def decode(self, block):
        '''Return the decoded content of the block (or of the block at the
        given address); the result is cached using the address.'''
        if isinstance(block, int):
            block = self.get_block_by_address(block)

        if block is None:
            return None

        with self._lock:
            if block.address not in self._parsed_blocks:
                logger.debug('decoding %r' % block)
                self._parsed_blocks[block.address] = self.decoder.decode(block, block.structure, self.stream)

            return self._parsed_blocks[block.address]

    def follow(self, record, field_name: str):
        '''Decode what the pointer field of the record points to.

        Null pointers become None, arrays of pointers a list.'''
        value = record[field_name]

        if isinstance(value, list):
            return [self.decode(_) if _ else None for _ in value]

        return self.decode(value) if value else None
