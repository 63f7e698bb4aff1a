import pytest

from blendstruct.blender import BlendFile
from blendstruct.blender.decoder import Record, RecordDecoder, get_token
from blendstruct.exceptions import TruncatedStreamException
from blendstruct.meta import Endianess


@pytest.mark.parametrize('type_name,size,endianess,token', [
    ('char', 1, Endianess.LITTLE_ENDIAN, 'uint:8'),
    ('short', 2, Endianess.LITTLE_ENDIAN, 'intle:16'),
    ('float', 4, Endianess.BIG_ENDIAN, 'floatbe:32'),
    ('uint64_t', 8, Endianess.BIG_ENDIAN, 'uintbe:64'),
    ('long', 8, Endianess.LITTLE_ENDIAN, 'intle:64'),
])
def test_get_token(type_name, size, endianess, token):
    assert get_token(type_name, size, endianess) == token


def test_default_decoder(scene_data):
    blend = BlendFile(scene_data)

    assert isinstance(blend.decoder, RecordDecoder)
    assert blend.decoder.catalog is blend.catalog


def test_record(scene_data):
    blend = BlendFile(scene_data)

    cube = blend.decode(0x1000)

    assert isinstance(cube, Record)
    assert cube.type_name == 'Object'
    assert cube.address == 0x1000
    assert list(cube.keys()) == ['id', 'loc', 'parent', 'flag', 'pad']
    assert cube.loc == [1.0, 2.0, 3.0]
    assert cube['flag'] == 7
    assert cube.parent == 0
    assert 'loc' in cube
    assert 'mesh' not in cube
    assert repr(cube) == '<Record(Object@0x1000)>'

    assert isinstance(cube.id, Record)
    assert cube.id.type_name == 'ID'
    assert cube.id.next == 0
    assert cube.id.name == 'OBCube'

    with pytest.raises(AttributeError):
        cube.mesh


@pytest.mark.parametrize('pointer_size', [4, 8])
def test_record_big_endian(scene_file_factory, pointer_size):
    blend = BlendFile(scene_file_factory(pointer_size, big_endian=True))

    camera = blend.decode(0x2000)
    scene = blend.decode(0x3000)

    assert camera.loc == [0.0, -5.0, 0.5]
    assert camera.parent == 0x1000
    assert scene.camera == 0x2000
    assert scene.frame == 42
    assert scene.id.name == 'SCScene'


def test_multiple_elements(blend_builder, scene_builder, payloads):
    object_payload, _ = payloads
    builder = scene_builder()
    builder.add_block(
        b'DATA', 0x1000, 1,
        object_payload(builder, b'OBa', (1, 1, 1), flag=1) + object_payload(builder, b'OBb', (2, 2, 2), flag=2),
        count=2,
    )

    records = BlendFile(builder.build()).decode(0x1000)

    assert isinstance(records, list)
    assert [_.id.name for _ in records] == ['OBa', 'OBb']
    assert [_.flag for _ in records] == [1, 2]


def test_element_exceeds_payload(scene_builder, payloads):
    object_payload, _ = payloads
    builder = scene_builder()
    builder.add_block(b'DATA', 0x1000, 1, object_payload(builder, b'OBa', (1, 1, 1)), count=2)

    blend = BlendFile(builder.build())

    with pytest.raises(TruncatedStreamException) as e:
        blend.decode(0x1000)

    assert e.value.chain == ['block DATA@0x1000']


def test_arrays(blend_builder):
    builder = blend_builder(pointer_size=4)
    for name, size in (('char', 1), ('short', 2), ('float', 4), ('void', 0)):
        builder.sdna.add_type(name, size)
    builder.sdna.add_structure('Grid', 2 * 3 * 4 + 2 * 4 + 3 * 4 + 2, [
        ('float', 'mat[2][3]'),
        ('char', 'names[2][4]'),
        ('void', '*links[3]'),
        ('short', 'data[]'),
    ])
    payload = builder.pack('6f', *range(6)) + b'ab\x00\x00cdef' + builder.pack('3I', 1, 0, 3) + builder.pack('h', -1)
    builder.add_block(b'DATA', 0x10, 0, payload)

    grid = BlendFile(builder.build()).decode(0x10)

    assert grid.mat == [[0.0, 1.0, 2.0], [3.0, 4.0, 5.0]]
    assert grid.names == ['ab', 'cdef']
    assert grid.links == [1, 0, 3]
    assert grid.data == -1


def test_unknown_primitive(blend_builder):
    builder = blend_builder()
    builder.sdna.add_type('opaque_t', 3)
    builder.sdna.add_structure('Wrapper', 3, [('opaque_t', 'blob')])
    builder.add_block(b'DATA', 0x10, 0, b'xyz')

    assert BlendFile(builder.build()).decode(0x10).blob == b'xyz'


def test_primitive_width_from_catalog(blend_builder):
    builder = blend_builder()
    builder.sdna.add_type('long', 8)
    builder.sdna.add_type('ulong', 8)
    builder.sdna.add_structure('Wide', 16, [('long', 'signed'), ('ulong', 'unsigned')])
    builder.add_block(b'DATA', 0x10, 0, builder.pack('qQ', -(1 << 40), (1 << 63) + 5))

    wide = BlendFile(builder.build()).decode(0x10)

    assert wide.signed == -(1 << 40)
    assert wide.unsigned == (1 << 63) + 5


def test_underscore_fields(blend_builder):
    builder = blend_builder()
    builder.sdna.add_type('short', 2)
    builder.sdna.add_structure('Padded', 4, [('short', 'flag'), ('short', '_pad')])
    builder.add_block(b'DATA', 0x10, 0, builder.pack('hh', 1, 2))

    padded = BlendFile(builder.build()).decode(0x10)

    assert padded._pad == 2
    assert padded['_pad'] == 2

    with pytest.raises(AttributeError):
        padded._pad0
