'''
# gzip

Blender can save the files compressed with gzip (the option is named
"Compress File"), the content is the usual container as a whole.

The decompressor is whatever callable takes the raw file object
and returns the decompressed data (as bytes or as a file object).
'''
import gzip
import logging
import zlib

from ..exceptions import InvalidFormatException


logger = logging.getLogger(__name__)


def gunzip(fileobj):
    '''Inflate the whole gzip stream in memory.'''
    logger.debug('trying to decompress %r with gzip' % fileobj)
    try:
        with gzip.GzipFile(fileobj=fileobj, mode='rb') as inflater:
            return inflater.read()
    except (OSError, EOFError, zlib.error) as e:
        raise InvalidFormatException(chain=[], message=f'unable to decompress: {e}') from e
