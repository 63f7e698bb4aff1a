#!/usr/bin/env python3
'''
Export the structures and the blocks of a blend file as an HTML page.
'''
import sys
import os
import logging

from blendstruct.blender import BlendFile
from blendstruct.blender.report import render_html


logging.basicConfig(level=logging.DEBUG if 'DEBUG' in os.environ else logging.INFO)
logger = logging.getLogger(__name__)


def usage(progname):
    print(f'usage: {progname} <blend file> <output html>')
    sys.exit(1)


if __name__ == '__main__':
    if len(sys.argv) < 3:
        usage(sys.argv[0])

    blend = BlendFile(sys.argv[1])

    with open(sys.argv[2], 'w') as f:
        f.write(render_html(blend))

    logger.info(f'exported {len(blend.catalog.structures)} structures and {len(blend.blocks)} blocks to {sys.argv[2]}')
