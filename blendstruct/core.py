"""
The Chunk: a record of fields unpacked one after the other.

The headers of the blend container (file header and block headers) are
chunks, the structures described by the catalog are not: their layout is
known only at runtime and they are handled by the decoder.
"""
from typing import Tuple, List, Dict

from .fields import Field
from .meta import MetaChunk, get_root_from_chunk
from .streams import Stream
from .exceptions import BlendStructException


class Chunk(Field, metaclass=MetaChunk):
    """
    Together with Field is the main class that defines a format: its main attributes
    are offset and size that identify a Chunk.

    A Chunk is described declaratively, the order of the class attributes
    is the order of the fields into the stream

        class Dummy(Chunk):
            magic = fields.StringField(4, default=b'KBAB', is_magic=True)
            length = fields.StructField('I')

    and passing a stream (or something that Stream() understands) to the
    constructor unpacks it.
    """

    def __init__(self, stream=None, **kwargs):
        super().__init__(**kwargs)

        if stream is not None:
            stream = stream if isinstance(stream, Stream) else Stream(stream)
            self.logger.debug('unpacking \'%s\' from %s' % (self.__class__.__name__, stream))
            self.unpack(stream)

    def init(self):
        pass

    def get_ordered_fields_name(self) -> List[str]:
        return self._meta.fields

    def get_fields(self) -> List[Tuple[str, Field]]:
        '''It returns a list of couples (name, instance) for each field.'''
        return [(_, getattr(self, _)) for _ in self.get_ordered_fields_name()]

    def __repr__(self):
        fields = ','.join(f'{name}={field!r}' for name, field in self.get_fields())
        return f'<{self.__class__.__name__}({fields})>'

    def __str__(self):
        return ''.join(f'{name}: {field!r}\n' for name, field in self.get_fields())

    @property
    def root(self):
        '''Obtain the final father of this chunk'''
        return get_root_from_chunk(self)

    def _get_size(self):
        '''the size is derived from the subchunks'''
        size = 0
        for _, field in self.get_fields():
            size += field.size

        return size

    @property
    def layout(self) -> Dict[str, Tuple[int, int]]:
        result = {}
        for name, field in self.get_fields():
            result[name] = (field.offset, field.size)

        return result

    def unpack(self, stream):
        '''Take the binary data from the stream and fill the fields in order.

        The fields are contiguous, each one starts where the previous one ended;
        an exception raised by a field is re-raised with the name of the field
        added to its chain, so that the caller knows where the unpacking broke.
        '''
        self.offset = stream.tell()
        for field_name, field in self.get_fields():
            self.logger.debug('unpacking %s.%s' % (self.__class__.__name__, field_name))

            offset = stream.tell()
            self.logger.debug('offset at %d' % offset)

            try:
                field.unpack(stream)
            except BlendStructException as e:
                e.chain.append(field_name)
                raise

            field.offset = offset

        if hasattr(self, 'validate'):
            self.validate()
