import csv
import struct
import zlib

import nbtlib

from convert_world_commands import (
    SECTOR_SIZE,
    convert_chunk_commands,
    convert_region,
    convert_world_commands,
    dump_chunk,
    load_chunk,
)


def command_block(command, block_id='minecraft:command_block'):
    return nbtlib.Compound({
        'id': nbtlib.String(block_id),
        'Command': nbtlib.String(command),
        'auto': nbtlib.Byte(0),
    })


def make_chunk(*tile_entities):
    return nbtlib.File({
        'Level': nbtlib.Compound({
            'TileEntities': nbtlib.List[nbtlib.Compound](list(tile_entities)),
        }),
    })


def write_region(path, chunk, sectors=1):
    compressed = zlib.compress(dump_chunk(chunk))
    header = bytearray(8192)
    header[0:4] = (2).to_bytes(3, 'big') + bytes([sectors])
    body = struct.pack('>I', len(compressed) + 1) + struct.pack('B', 2) + compressed
    body += b'\x00' * (sectors * SECTOR_SIZE - len(body))
    path.write_bytes(bytes(header) + body)


def read_region_chunk(path):
    data = path.read_bytes()
    length = struct.unpack('>I', data[2 * SECTOR_SIZE:2 * SECTOR_SIZE + 4])[0]
    compressed = data[2 * SECTOR_SIZE + 5:2 * SECTOR_SIZE + 4 + length]
    return load_chunk(zlib.decompress(compressed))


def test_convert_chunk_commands():
    chunk = make_chunk(
        command_block('tp @a[/tp 1 2 3] 0 64 0'),
        nbtlib.Compound({'id': nbtlib.String('minecraft:chest')}),
        command_block('say nothing here'),
        command_block('fill @e[10 0 0 0 5 0] air', 'minecraft:repeating_command_block'),
    )

    changes = convert_chunk_commands(chunk)

    assert changes == [
        (0, 'tp @a[/tp 1 2 3] 0 64 0', 'tp @a[x=1,y=2,z=3] 0 64 0'),
        (3, 'fill @e[10 0 0 0 5 0] air', 'fill @e[x=0,y=0,z=0,dx=10,dy=5,dz=0] air'),
    ]
    tile_entities = chunk['Level']['TileEntities']
    assert tile_entities[0]['Command'] == 'tp @a[x=1,y=2,z=3] 0 64 0'
    assert tile_entities[2]['Command'] == 'say nothing here'


def test_convert_chunk_without_tile_entities():
    assert convert_chunk_commands(nbtlib.File({'Level': nbtlib.Compound({})})) == []


def test_convert_region_in_place(tmp_path):
    region_path = tmp_path / 'r.0.0.mca'
    write_region(region_path, make_chunk(command_block('kill @e[5 6 7]')))

    assert convert_region(region_path) == 1

    chunk = read_region_chunk(region_path)
    assert chunk['Level']['TileEntities'][0]['Command'] == 'kill @e[x=5,y=6,z=7]'


def test_convert_world_commands_copies_world_and_logs(tmp_path):
    world = tmp_path / 'arena'
    (world / 'region').mkdir(parents=True)
    write_region(world / 'region' / 'r.0.0.mca', make_chunk(command_block('kill @e[5 6 7]')))
    output = tmp_path / 'converted'
    log_csv = tmp_path / 'log.csv'

    assert convert_world_commands(str(world), str(output), str(log_csv)) == 1

    source_chunk = read_region_chunk(world / 'region' / 'r.0.0.mca')
    assert source_chunk['Level']['TileEntities'][0]['Command'] == 'kill @e[5 6 7]'
    converted_chunk = read_region_chunk(output / 'arena' / 'region' / 'r.0.0.mca')
    assert converted_chunk['Level']['TileEntities'][0]['Command'] == 'kill @e[x=5,y=6,z=7]'

    with open(log_csv, newline='', encoding='utf-8') as f:
        rows = list(csv.DictReader(f))
    assert rows == [{
        'region_file': 'r.0.0.mca',
        'chunk_x': '0',
        'chunk_z': '0',
        'command_index': '0',
        'command': 'kill @e[5 6 7]',
        'converted_command': 'kill @e[x=5,y=6,z=7]',
    }]


def test_convert_world_without_region(tmp_path, capsys):
    assert convert_world_commands(str(tmp_path), str(tmp_path / 'out'), str(tmp_path / 'log.csv')) == 0
    assert 'Region directory not found' in capsys.readouterr().out
