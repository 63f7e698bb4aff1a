'''
Fields whose representation depends on the header of the blend file.
'''
from .. import fields
from ..meta import get_root_from_chunk
from ..exceptions import InvalidFormatException
from .enum import PointerWidth


class Blend_Pointer(fields.StructField):
    '''Wrapper for the pointer values: the width is resolved from the
    attribute "pointer_width" of the root chunk (that in turn comes
    from the file header).'''

    def __init__(self, **kwargs):
        super().__init__('Q', **kwargs)

    def get_pointer_width(self) -> PointerWidth:
        width = getattr(get_root_from_chunk(self), 'pointer_width', None)
        if not isinstance(width, PointerWidth):
            self.logger.error('pointer width is not defined for the root chunk')
            raise InvalidFormatException(chain=[], message='unknown pointer width')

        return width

    def get_format(self):
        fmt = '%s%s' % (self.get_endianess().prefix, self.get_pointer_width().format)
        self.logger.debug(f'format: \'{fmt}\'')

        return fmt


class BlockCodeField(fields.StringField):
    '''The four characters identifying a block: shorter codes are
    padded with NULs that we remove.'''

    def __init__(self, **kwargs):
        super().__init__(4, **kwargs)

    @property
    def code(self) -> str:
        return self.value.replace(b'\x00', b'').decode('latin1').strip()
