#!/usr/bin/env python3
"""
Convert mcfunction - Rewrite coordinate selectors in .mcfunction files

Usage: python convert_mcfunction.py <file_or_folder> [--dry-run]
Example: python convert_mcfunction.py datapacks/arena/data/arena/functions
"""

import sys
from pathlib import Path

from mcfunction_editor import (
    MCFUNCTION_SUFFIX,
    UNSUPPORTED_FILE_MESSAGE,
    CoordinateCompletionProvider,
    Selection,
    TextDocument,
    convert_coordinates_command,
)


def find_function_files(target: Path):
    if target.is_dir():
        return sorted(target.rglob(f"*{MCFUNCTION_SUFFIX}"))
    return [target]


def read_function(path: Path) -> TextDocument:
    with open(path, 'r', encoding='utf-8', newline='') as f:
        return TextDocument(str(path), f.read())


def write_function(path: Path, document: TextDocument):
    with open(path, 'w', encoding='utf-8', newline='') as f:
        f.write(document.text)


def preview_file(path: Path) -> int:
    document = read_function(path)
    if not document.is_mcfunction():
        print(f"  [INFO] {UNSUPPORTED_FILE_MESSAGE}")
        return 0
    provider = CoordinateCompletionProvider()
    items = provider.provide_completion_items(document, Selection(0, len(document.text)))
    for item in items:
        print(f"  {item.label}")
    return len(items)


def convert_file(path: Path) -> int:
    document = read_function(path)
    converted = convert_coordinates_command(
        document,
        [Selection(0, len(document.text))],
        notify=lambda level, message: print(f"  [{level.upper()}] {message}"),
    )
    if converted:
        write_function(path, document)
        print(f"  [OK] {converted} selectors converted")
    return converted


def convert_functions(target: str, dry_run: bool = False):
    print("=== Converting Coordinate Selectors ===")

    target_path = Path(target)
    if not target_path.exists():
        print(f"Error: {target} not found")
        return

    total_files = 0
    total_converted = 0
    for path in find_function_files(target_path):
        print(f"\nProcessing: {path}")
        try:
            if dry_run:
                count = preview_file(path)
            else:
                count = convert_file(path)
        except (OSError, UnicodeDecodeError) as e:
            print(f"  [ERROR] Could not process {path}: {e}")
            continue
        total_files += 1
        total_converted += count

    print(f"\n=== Conversion Complete ===")
    print(f"Files processed: {total_files}")
    if dry_run:
        print(f"Selectors that would be converted: {total_converted}")
    else:
        print(f"Selectors converted: {total_converted}")


if __name__ == "__main__":
    args = [arg for arg in sys.argv[1:] if arg != '--dry-run']
    if len(args) != 1:
        print("Usage: python convert_mcfunction.py <file_or_folder> [--dry-run]")
        sys.exit(1)
    convert_functions(args[0], dry_run='--dry-run' in sys.argv[1:])
