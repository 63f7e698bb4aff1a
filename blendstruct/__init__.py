"""
# Blendstruct: Blender files for humans.

A blend file doesn't have a fixed layout: it's a dump of the memory of the
program that wrote it, and it carries with itself the description of
every structure it contains. Reading it means three things

 1. unpacking the parts with a fixed layout (the header and the headers
    of the blocks), described declaratively with Chunk and the fields
 2. rebuilding the catalog of the structures (SDNA) and their layout,
    that depends on the version of Blender and on the machine
 3. decoding the content of the blocks using that layout, lazily and
    only once for each block

The entry point is blendstruct.blender.BlendFile.
"""
