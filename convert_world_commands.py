#!/usr/bin/env python3
"""
Convert World Commands - Rewrite coordinate selectors inside command blocks of a world

Usage: python convert_world_commands.py <world_folder> <output_folder> <log_csv>
Example: python convert_world_commands.py "1-12 worlds/arena" "converted worlds" arena_coordinates.csv
"""

import csv
import os
import shutil
import struct
import sys
import tempfile
import zlib
from pathlib import Path
from typing import List, Tuple

import nbtlib

from coordinate_converter import CoordinateScanner, convert_text

SECTOR_SIZE = 4096
HEADER_SIZE = 8192
COMMAND_BLOCK_IDS = ['minecraft:command_block', 'command_block',
                     'minecraft:repeating_command_block', 'minecraft:chain_command_block']
LOG_FIELDS = ['region_file', 'chunk_x', 'chunk_z', 'command_index', 'command', 'converted_command']


def find_tile_entities(chunk_nbt):
    if 'Level' in chunk_nbt and 'TileEntities' in chunk_nbt['Level']:
        return chunk_nbt['Level']['TileEntities']
    if 'block_entities' in chunk_nbt:
        return chunk_nbt['block_entities']
    return None


def convert_chunk_commands(chunk_nbt, scanner: CoordinateScanner = None) -> List[Tuple[int, str, str]]:
    """Rewrite every command block in the chunk, returns (index, old, new) for each change"""
    changes = []
    tile_entities = find_tile_entities(chunk_nbt)
    if not tile_entities:
        return changes

    for i, tile_entity in enumerate(tile_entities):
        if tile_entity.get('id') not in COMMAND_BLOCK_IDS:
            continue
        command = str(tile_entity.get('Command', ''))
        if not command:
            continue
        converted = convert_text(command, scanner)
        if converted != command:
            tile_entity['Command'] = nbtlib.String(converted)
            changes.append((i, command, converted))
    return changes


def load_chunk(chunk_data: bytes):
    with tempfile.NamedTemporaryFile(delete=False, suffix='.nbt') as temp_file:
        temp_file.write(chunk_data)
        temp_path = temp_file.name
    try:
        return nbtlib.load(temp_path)
    finally:
        os.unlink(temp_path)


def dump_chunk(chunk_nbt) -> bytes:
    with tempfile.NamedTemporaryFile(delete=False, suffix='.nbt') as temp_file:
        temp_path = temp_file.name
    try:
        chunk_nbt.save(temp_path)
        with open(temp_path, 'rb') as f:
            return f.read()
    finally:
        os.unlink(temp_path)


def convert_region(region_path: Path, writer=None, scanner: CoordinateScanner = None) -> int:
    """Convert all command blocks in one region file in place, returns the number of commands changed"""
    total_changed = 0

    with open(region_path, 'r+b') as f:
        header = f.read(HEADER_SIZE)

        for chunk_x in range(32):
            for chunk_z in range(32):
                offset = (chunk_x + chunk_z * 32) * 4
                location = struct.unpack('>I', b'\x00' + header[offset:offset + 3])[0]
                sectors = header[offset + 3]

                if location == 0 or sectors == 0:
                    continue

                try:
                    f.seek(location * SECTOR_SIZE)
                    length = struct.unpack('>I', f.read(4))[0]
                    compression_type = struct.unpack('B', f.read(1))[0]
                    compressed_data = f.read(length - 1)

                    if compression_type != 2:
                        print(f"  [ERROR] Chunk ({chunk_x}, {chunk_z}) has unsupported compression type: {compression_type}")
                        continue

                    chunk_nbt = load_chunk(zlib.decompress(compressed_data))
                    changes = convert_chunk_commands(chunk_nbt, scanner)
                    if not changes:
                        continue

                    new_compressed_data = zlib.compress(dump_chunk(chunk_nbt))
                    new_length = len(new_compressed_data) + 1
                    if new_length + 4 > sectors * SECTOR_SIZE:
                        print(f"  [ERROR] Chunk ({chunk_x}, {chunk_z}) no longer fits in {sectors} sectors, skipped")
                        continue

                    f.seek(location * SECTOR_SIZE)
                    f.write(struct.pack('>I', new_length))
                    f.write(struct.pack('B', 2))
                    f.write(new_compressed_data)

                    for command_index, command, converted in changes:
                        print(f"    {command} -> {converted}")
                        if writer is not None:
                            writer.writerow({
                                'region_file': region_path.name,
                                'chunk_x': chunk_x,
                                'chunk_z': chunk_z,
                                'command_index': command_index,
                                'command': command,
                                'converted_command': converted,
                            })
                    print(f"  [OK] Chunk ({chunk_x}, {chunk_z}): {len(changes)} commands converted")
                    total_changed += len(changes)

                except Exception as e:
                    print(f"  [ERROR] Error processing chunk ({chunk_x}, {chunk_z}): {e}")

    return total_changed


def convert_world_commands(world_folder: str, output_folder: str, log_csv: str) -> int:
    print("=== Converting Command Block Coordinates ===")

    world_path = Path(world_folder)
    output_world_path = Path(output_folder) / world_path.name
    if not (world_path / 'region').exists():
        print(f"Error: Region directory not found in {world_folder}")
        return 0
    if not output_world_path.exists():
        shutil.copytree(world_path, output_world_path)

    scanner = CoordinateScanner()
    total_changed = 0
    with open(log_csv, 'w', newline='', encoding='utf-8') as csvfile:
        writer = csv.DictWriter(csvfile, fieldnames=LOG_FIELDS)
        writer.writeheader()

        for region_path in sorted((output_world_path / 'region').glob('r.*.mca')):
            print(f"\nProcessing region: {region_path.name}")
            total_changed += convert_region(region_path, writer, scanner)

    print(f"\n=== Conversion Complete ===")
    print(f"Total commands converted: {total_changed}")
    print(f"World saved to: {output_world_path}")
    print(f"Log saved to: {log_csv}")
    return total_changed


if __name__ == "__main__":
    if len(sys.argv) != 4:
        print("Usage: python convert_world_commands.py <world_folder> <output_folder> <log_csv>")
        sys.exit(1)
    convert_world_commands(sys.argv[1], sys.argv[2], sys.argv[3])
