#!/usr/bin/env python3
import sys
import os
import logging

from blendstruct.blender import BlendFile
from blendstruct.blender.report import render_text


logging.basicConfig(level=logging.DEBUG if 'DEBUG' in os.environ else logging.INFO)
logger = logging.getLogger(__name__)


def usage(progname):
    print('usage: %s <blend file> [type name]' % progname)
    sys.exit(1)


def dump_records(blend, type_name):
    blocks = blend.get_blocks_by_type(type_name)
    print(f'{len(blocks)} blocks of type {type_name}:')
    for block in blocks:
        records = blend.decode(block)
        for record in records if isinstance(records, list) else [records]:
            print(f'{record!r}')
            for name, value in record.items():
                print(f'  {name:<24} {value!r}')


if __name__ == '__main__':
    if len(sys.argv) < 2:
        usage(sys.argv[0])

    blend = BlendFile(sys.argv[1])

    if len(sys.argv) > 2:
        dump_records(blend, sys.argv[2])
    else:
        sys.stdout.write(render_text(blend))
