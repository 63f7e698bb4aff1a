import gzip
import struct

import pytest


class SDNABuilder:
    '''Build the payload of a catalog block.'''

    def __init__(self):
        self.names = []
        self.types = []
        self.sizes = []
        self.structures = []

    def add_type(self, name, size):
        if name in self.types:
            return self.types.index(name)
        self.types.append(name)
        self.sizes.append(size)
        return len(self.types) - 1

    def add_name(self, declaration):
        if declaration in self.names:
            return self.names.index(declaration)
        self.names.append(declaration)
        return len(self.names) - 1

    def add_structure(self, type_name, size, fields):
        '''fields is a list of (type name, declaration), the types must be already added.'''
        type_index = self.add_type(type_name, size)
        self.structures.append((type_index, [
            (self.types.index(_type), self.add_name(declaration)) for _type, declaration in fields
        ]))
        return len(self.structures) - 1

    @staticmethod
    def _pad(data):
        return data + b'\x00' * (-len(data) % 4)

    def build(self, prefix='<'):
        u32 = lambda x: struct.pack(prefix + 'I', x)
        u16 = lambda x: struct.pack(prefix + 'H', x)

        data = b'SDNA'
        data += b'NAME' + u32(len(self.names)) + b''.join(_.encode() + b'\x00' for _ in self.names)
        data = self._pad(data)
        data += b'TYPE' + u32(len(self.types)) + b''.join(_.encode() + b'\x00' for _ in self.types)
        data = self._pad(data)
        data += b'TLEN' + b''.join(u16(_) for _ in self.sizes)
        data = self._pad(data)
        data += b'STRC' + u32(len(self.structures))
        for type_index, fields in self.structures:
            data += u16(type_index) + u16(len(fields))
            for field_type, field_name in fields:
                data += u16(field_type) + u16(field_name)

        return self._pad(data)


class BlendBuilder:
    '''Build a synthetic blend file: header, data blocks, catalog and terminator.

    The payloads are padded to four bytes so that every payload starts aligned.'''

    def __init__(self, pointer_size=8, big_endian=False, version=b'280'):
        self.pointer_size = pointer_size
        self.prefix = '>' if big_endian else '<'
        self.version = version
        self.sdna = SDNABuilder()
        self.blocks = []

    def pack(self, fmt, *values):
        return struct.pack(self.prefix + fmt, *values)

    def pointer(self, address):
        return self.pack('I' if self.pointer_size == 4 else 'Q', address)

    def add_block(self, code, address, sdna_index, payload, count=1):
        self.blocks.append((code, address, sdna_index, count, payload))

    def block_header(self, code, size, address, sdna_index, count):
        return code.ljust(4, b'\x00') + self.pack('I', size) + self.pointer(address) + self.pack('II', sdna_index, count)

    def header(self):
        return b'BLENDER' + (b'-' if self.pointer_size == 8 else b'_') + \
            (b'V' if self.prefix == '>' else b'v') + self.version

    def build(self, terminator_first=False):
        data = self.header()

        if terminator_first:
            data += self.block_header(b'ENDB', 0, 0, 0, 0)

        for code, address, sdna_index, count, payload in self.blocks:
            payload = SDNABuilder._pad(payload)
            data += self.block_header(code, len(payload), address, sdna_index, count) + payload

        catalog = self.sdna.build(self.prefix)
        data += self.block_header(b'DNA1', len(catalog), 0, 0, 1) + catalog
        data += self.block_header(b'ENDB', 0, 0, 0, 0)

        return data


def make_scene_builder(pointer_size=8, big_endian=False):
    '''A small catalog resembling the real one:

        struct ID { void *next; char name[8]; }
        struct Object { ID id; float loc[3]; Object *parent; short flag; short pad; }
        struct Scene { ID id; Object *camera; int frame; }
    '''
    builder = BlendBuilder(pointer_size=pointer_size, big_endian=big_endian)
    sdna = builder.sdna
    for name, size in (('char', 1), ('short', 2), ('int', 4), ('float', 4), ('void', 0)):
        sdna.add_type(name, size)

    id_size = pointer_size + 8
    sdna.add_type('ID', id_size)
    sdna.add_type('Object', id_size + 12 + pointer_size + 4)
    sdna.add_type('Scene', id_size + pointer_size + 4)

    sdna.add_structure('ID', id_size, [('void', '*next'), ('char', 'name[8]')])
    sdna.add_structure('Object', id_size + 12 + pointer_size + 4, [
        ('ID', 'id'), ('float', 'loc[3]'), ('Object', '*parent'), ('short', 'flag'), ('short', 'pad'),
    ])
    sdna.add_structure('Scene', id_size + pointer_size + 4, [
        ('ID', 'id'), ('Object', '*camera'), ('int', 'frame'),
    ])

    return builder


def object_payload(builder, name, loc, parent=0, flag=0):
    return builder.pointer(0) + name.ljust(8, b'\x00') + builder.pack('3f', *loc) + \
        builder.pointer(parent) + builder.pack('hh', flag, 0)


def scene_payload(builder, name, camera, frame):
    return builder.pointer(0) + name.ljust(8, b'\x00') + builder.pointer(camera) + builder.pack('i', frame)


def build_scene_file(pointer_size=8, big_endian=False):
    builder = make_scene_builder(pointer_size, big_endian)
    builder.add_block(b'OB', 0x1000, 1, object_payload(builder, b'OBCube', (1.0, 2.0, 3.0), flag=7))
    builder.add_block(b'OB', 0x2000, 1, object_payload(builder, b'OBCamera', (0.0, -5.0, 0.5), parent=0x1000))
    builder.add_block(b'SC', 0x3000, 2, scene_payload(builder, b'SCScene', 0x2000, 42))

    return builder.build()


@pytest.fixture
def blend_builder():
    return BlendBuilder


@pytest.fixture
def scene_builder():
    return make_scene_builder


@pytest.fixture
def payloads():
    return object_payload, scene_payload


@pytest.fixture
def scene_data():
    return build_scene_file()


@pytest.fixture
def scene_file(tmp_path, scene_data):
    path = tmp_path / 'scene.blend'
    path.write_bytes(scene_data)
    return path


@pytest.fixture
def scene_file_factory(tmp_path):
    def _factory(pointer_size=8, big_endian=False, compressed=False):
        data = build_scene_file(pointer_size, big_endian)
        path = tmp_path / f'scene-{pointer_size}-{"be" if big_endian else "le"}{".gz" if compressed else ""}.blend'
        path.write_bytes(gzip.compress(data) if compressed else data)
        return path

    return _factory


@pytest.fixture
def sdna_builder():
    return SDNABuilder
