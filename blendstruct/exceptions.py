class BlendStructException(Exception):
    '''Base class to extend in order to throw exception in blendstruct.

    It takes as first argument the chain of the layers that caused the
    exception, an optional message can follow.
    '''

    def __init__(self, chain=None, message=None):
        self.chain = chain if chain is not None else []
        self.message = message
        super().__init__(message)

    def __str__(self):
        where = '.'.join(reversed(self.chain))
        if where and self.message:
            return f'{where}: {self.message}'

        return where or self.message or ''


class InvalidFormatException(BlendStructException):
    '''The data doesn't look like the format it's supposed to be.'''
    pass


class MagicException(InvalidFormatException):
    pass


class UnpackException(BlendStructException):
    pass


class TruncatedStreamException(UnpackException):
    '''Fewer bytes available than a fixed-width read requires.'''
    pass


class CorruptIndexException(BlendStructException):
    '''An index read from the catalog or from a block header points outside
    the table it refers to.'''
    pass


class NotFoundException(BlendStructException):
    pass
