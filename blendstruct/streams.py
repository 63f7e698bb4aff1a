import io
import logging
import struct

from .meta import Endianess
from .exceptions import TruncatedStreamException


logger = logging.getLogger(__name__)


class Stream(object):
    '''This is a simple wrapper around bytes/file object to
    uniform its properties: it's the cursor every reader uses to move
    into the data.

    The byte order and the pointer width are decided by the file being read,
    so they are attributes of the stream that the caller binds once
    (see BlendFile), all the typed reads honor them.'''
    def __init__(self, obj, endianess=Endianess.LITTLE_ENDIAN, pointer_width=None):
        '''Here we normalize the object in order to be accessed as a normal file object'''
        self._type = type(obj)
        self.obj = obj
        self.history = []
        self._owned = True
        self.endianess = endianess
        self.pointer_width = pointer_width

        init_method_name = 'init_%s' % self.obj.__class__.__name__

        init_method = getattr(self, init_method_name, None)

        if init_method is None:
            if not hasattr(self.obj, 'read'):
                raise ValueError('\'%s\' is the wrong kind of object to use as a stream' % self._type.__name__)
            init_method = self.init_fileobj

        init_method()

    def __repr__(self):
        return '<%s(%s)>' % (self.__class__.__name__, self._type.__name__)

    def __getattr__(self, name):
        if name == 'obj':
            raise AttributeError(name)
        return getattr(self.obj, name)

    def __del__(self):
        obj = self.__dict__.get('obj')
        if self.__dict__.get('_owned') and hasattr(obj, 'close'):
            obj.close()

    def init_str(self):
        '''We think this is a path'''
        logger.debug('opening path \'%s\'' % self.obj)
        self.obj = open(self.obj, 'rb')

    init_PosixPath = init_str
    init_WindowsPath = init_str

    def init_bytes(self):
        '''We think these are raw bytes'''
        self.obj = io.BytesIO(self.obj)

    init_bytearray = init_bytes

    def init_fileobj(self):
        '''Already a file object, we use it as it is (and we don't close it)'''
        self._owned = False

    def seek(self, offset):
        if not isinstance(offset, int):
            raise ValueError('\'%s\' is the wrong kind of offset to use' % offset.__class__.__name__)

        self.obj.seek(offset)

    def tell(self):
        return self.obj.tell()

    def read_exact(self, n):
        '''Read exactly n bytes, otherwise the stream is truncated.'''
        data = self.obj.read(n)

        if len(data) != n:
            raise TruncatedStreamException(
                message=f'wanted {n} bytes at offset 0x{self.tell() - len(data):x}, got {len(data)}')

        return data

    def read_until(self, terminator=b'\x00'):
        '''Read bytes up to the terminator (that is consumed but not returned).'''
        data = bytearray()
        while True:
            b = self.obj.read(1)
            if len(b) == 0:
                raise TruncatedStreamException(message=f'missing terminator {terminator!r}')
            if b == terminator:
                break
            data += b

        return bytes(data)

    def read_string(self, length=0, encoding='latin1'):
        '''Read a string of fixed length or, if length is zero, terminated by NUL.

        The result is stripped of whitespaces at both ends.'''
        raw = self.read_until() if length == 0 else self.read_exact(length)

        return raw.decode(encoding).strip()

    def read_struct(self, format):
        '''Unpack a single value with the byte order of the stream.'''
        format = '%s%s' % (self.endianess.prefix, format)
        raw = self.read_exact(struct.calcsize(format))

        return struct.unpack(format, raw)[0]

    def align(self, n=4):
        '''Move forward to the next multiple of n, if not already there.'''
        position = self.tell()
        trim = position % n
        if trim != 0:
            self.seek(position + n - trim)

    def read_all(self):
        return self.obj.read()

    def save(self):
        self.history.append(self.obj.tell())

    def restore(self):
        old_seek = self.history.pop()
        self.obj.seek(old_seek)
