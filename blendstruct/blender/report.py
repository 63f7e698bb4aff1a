'''
Human readable description of what a blend file contains: all the
structures of the catalog with the layout of their fields and all the
blocks of the directory.
'''
import html
from typing import Dict, Iterator, List

from .enum import REPORT_DENYLIST


def format_array(sizes: List[int]) -> str:
    if not sizes:
        return ''

    return '[%s]' % ','.join(str(_) for _ in sizes)


def structure_rows(catalog) -> Iterator[Dict]:
    '''One entry for each structure, with the rows of its fields.'''
    for structure in catalog.structures:
        yield {
            'id': structure.type.id,
            'name': structure.name,
            'size': structure.size,
            'fields': [{
                'type': field.type.name,
                'name': field.name,
                'declaration': field.declared_name.declaration,
                'array': format_array(field.array_sizes),
                'pointer': field.is_pointer,
                'size': field.type.size,
                'offset': field.offset,
            } for field in structure.fields],
        }


def block_rows(blend, denylist=REPORT_DENYLIST) -> Iterator[Dict]:
    for block in blend.blocks:
        if block.type_name in denylist:
            continue

        yield {
            'code': block.code,
            'type': block.type_name,
            'count': block.count,
            'size': block.size,
            'offset': block.offset,
            'address': block.address,
        }


def render_text(blend) -> str:
    pointer_type = 'unsigned long' if blend.pointer_width.size == 8 else 'unsigned int'
    lines = [
        f'version:      {blend.version}',
        f'pointer type: {pointer_type}',
        f'endianess:    {blend.byte_order.name.lower()}',
        '',
        'Structures (Size):',
    ]

    for structure in structure_rows(blend.catalog):
        lines.append(f"  {structure['id']} {structure['name']} ({structure['size']})")
        lines.append(f"    {'TYPE':<20} {'NAME CLEAN':<24} {'NAME':<28} {'[]':<10} {'*':<2} {'SIZE':>5} {'OFFSET':>6}")
        for field in structure['fields']:
            pointer = '*' if field['pointer'] else ''
            lines.append(
                f"    {field['type']:<20} {field['name']:<24} {field['declaration']:<28} {field['array']:<10} "
                f"{pointer:<2} {field['size']:>5} {field['offset']:>6}")

    lines.append('')
    lines.append('Blocks:')
    lines.append(f"  {'NAME':<6} {'TYPE':<24} {'COUNT':>6} {'SIZE':>8} {'OFFSET':>10} OLD ADDRESS")
    for block in block_rows(blend):
        lines.append(
            f"  {block['code']:<6} {block['type'] or '':<24} {block['count']:>6} {block['size']:>8} "
            f"{block['offset']:>10} 0x{block['address']:x}")

    return '\n'.join(lines) + '\n'


STYLE = '''html,body{font-family:monospace}
a{color: #000;}
h2{padding:0;margin: 20px 0 5px 0;}
h3{padding:0;margin: 10px 0 5px 0;}
h3.type{font-weight:normal;}
th,td{text-align:left;padding: 7px;border-bottom:1px solid #ccc;margin:0;}
td.center, th.center{text-align:center;}
'''


def render_html(blend) -> str:
    e = html.escape
    catalog = blend.catalog
    pointer_type = 'unsigned long' if blend.pointer_width.size == 8 else 'unsigned int'

    out = [
        '<html><head><title>blendstruct file structure export</title>',
        f'<style type="text/css">{STYLE}</style></head><body>',
        '<h1>blendstruct</h1>',
        '<h2>File info</h2>',
        f'<h3>version</h3> {e(blend.version)}',
        f'<h3>pointer type</h3> {pointer_type}',
        '<h2>Structures (Size)</h2>',
    ]

    for structure in structure_rows(catalog):
        name = e(structure['name'])
        out.append(f'<h3 class=\'type\'><a id="{name}">{structure["id"]} <b>{name}</b> ({structure["size"]})</a></h3>')
        out.append(
            "<table cellspacing='0'><tr><th>TYPE</th><th>NAME CLEAN</th><th>NAME</th>"
            "<th class='center'>[]</th><th class='center'>*</th><th>SIZE</th><th>OFFSET</th></tr>")
        for field in structure['fields']:
            _type = e(field['type'])
            if catalog.has_structure(field['type']):
                _type = f'<a href="#{_type}">{_type}</a>'
            pointer = '&#10003;' if field['pointer'] else ''
            out.append(
                f"<tr><td>{_type}</td><td>{e(field['name'])}</td><td>{e(field['declaration'])}</td>"
                f"<td class='center'>{field['array']}</td><td class='center'>{pointer}</td>"
                f"<td>{field['size']}</td><td>{field['offset']}</td></tr>")
        out.append('</table><br />')

    out.append('<h2>Blocks</h2>')
    out.append(
        "<table cellspacing='0'><tr><th>NAME</th><th>TYPE</th><th>COUNT</th><th>SIZE</th>"
        "<th>OFFSET</th><th>OLD ADDRESS</th></tr>")
    for block in block_rows(blend):
        _type = e(block['type'] or '')
        out.append(
            f"<tr><td>{e(block['code'])}</td><td><a href=\"#{_type}\">{_type}</a></td><td>{block['count']}</td>"
            f"<td>{block['size']}</td><td>{block['offset']}</td><td>{block['address']}</td></tr>")
    out.append('</table>')
    out.append('</body></html>')

    return '\n'.join(out) + '\n'
