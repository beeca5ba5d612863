#!/usr/bin/env python3
# main.py
import os
import sys
import json
import logging
import argparse
from typing import Any, List, Optional

from bencodec import config
from bencodec.codec import decode, encode
from bencodec.errors import BencodeError


def setup_logger(log_level: str = 'INFO') -> None:
    """Configure application logger"""
    level = getattr(logging, log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format=config.LOG_FORMAT
    )
    logging.debug(f"Logging initialized at {logging.getLevelName(level)} level")


def read_input(file_path: str) -> bytes:
    """Read a whole file, '-' meaning stdin"""
    if file_path == '-':
        return sys.stdin.buffer.read()
    if not os.path.exists(file_path):
        raise FileNotFoundError(f"Input file not found: {file_path}")

    logging.info(f"Reading {file_path}")
    with open(file_path, 'rb') as f:
        return f.read()


def to_json(value: Any) -> Any:
    """Turn a generic decoded value into something json.dumps accepts"""
    if isinstance(value, bytes):
        try:
            return value.decode(config.TEXT_ENCODING)
        except UnicodeDecodeError:
            return value.hex()
    if isinstance(value, list):
        return [to_json(item) for item in value]
    if isinstance(value, dict):
        return {key: to_json(item) for key, item in value.items()}
    return value


def run_decode(file_path: str, indent: int) -> None:
    """Print a bencoded file as JSON"""
    value = decode(read_input(file_path))
    print(json.dumps(to_json(value), indent=indent, ensure_ascii=False))


def run_encode(file_path: str, output: Optional[str]) -> None:
    """Encode a JSON file to bencode"""
    value = json.loads(read_input(file_path))
    encoded = encode(value)

    if output is None or output == '-':
        sys.stdout.buffer.write(encoded)
        sys.stdout.buffer.flush()
    else:
        with open(output, 'wb') as f:
            f.write(encoded)
        logging.info(f"Wrote {len(encoded)} bytes to {output}")


def run_check(file_path: str) -> bool:
    """Report whether a file holds exactly one value in canonical form"""
    data = read_input(file_path)
    canonical = encode(decode(data)) == data
    if canonical:
        print(f"{file_path}: canonical ({len(data)} bytes)")
    else:
        print(f"{file_path}: valid but not canonical")
    return canonical


def main(argv: Optional[List[str]] = None) -> int:
    """Main application entry point with command-line interface"""
    parser = argparse.ArgumentParser(description='Bencode encoder and decoder')
    parser.add_argument('--log-level', default=config.LOG_LEVEL, help='Logging level')
    subparsers = parser.add_subparsers(dest='command')

    # Decode command
    decode_parser = subparsers.add_parser('decode', help='Print a bencoded file as JSON')
    decode_parser.add_argument('file', help="Bencoded file, '-' for stdin")
    decode_parser.add_argument('--indent', type=int, default=config.DEFAULT_JSON_INDENT,
                               help='JSON indentation')

    # Encode command
    encode_parser = subparsers.add_parser('encode', help='Encode a JSON file to bencode')
    encode_parser.add_argument('file', help="JSON file, '-' for stdin")
    encode_parser.add_argument('-o', '--output', help='Output file (default: stdout)')

    # Check command
    check_parser = subparsers.add_parser('check', help='Check a bencoded file is canonical')
    check_parser.add_argument('file', help="Bencoded file, '-' for stdin")

    # Parse arguments
    args = parser.parse_args(argv)

    # Set up logging
    setup_logger(args.log_level)

    # Execute requested command
    try:
        if args.command == 'decode':
            run_decode(args.file, args.indent)
        elif args.command == 'encode':
            run_encode(args.file, args.output)
        elif args.command == 'check':
            return 0 if run_check(args.file) else 1
        else:
            parser.print_help()
            return 1
    except (BencodeError, FileNotFoundError, json.JSONDecodeError) as e:
        logging.error(f"Failed to {args.command} {args.file}: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
