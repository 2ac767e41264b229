#!/usr/bin/env python3
"""
txt2bmp.py — wrap any byte stream (text or otherwise) as a BMP image

Every input byte becomes one pixel. Without --width the whole input is a
single row; with --width W the input is cut into rows of W bytes and the
last row is filled with zeros. The header variant is OS/2 (12 bytes) unless
a dimension needs more than 16 bits or --kind says otherwise.

Usage:
  python txt2bmp.py INPUT OUT.bmp [--kind windows|os2] [--width W|flat] [--inverted] [-v]

Examples:
  python txt2bmp.py notes.txt notes.bmp --width 64
  echo hello | python txt2bmp.py - hello.bmp --kind windows
"""

import argparse, os, sys

from bmpcodec import __version__, BitmapKind, BmpError, text_to_bmp

def parse_width(s):
    """argparse type: non-negative int, or 'flat' (same as 0)."""
    if s.strip().lower() == "flat":
        return 0
    try:
        w = int(s)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid width {s!r}; use a number or 'flat'")
    if w < 0:
        raise argparse.ArgumentTypeError(f"width must not be negative, got {w}")
    return w

def is_stdin(path):
    return path.strip() == "-"

def run(input, output, kind=None, width=None, inverted=False, verbose=False):
    name = "stdin" if is_stdin(input) else os.path.basename(input)
    try:
        if is_stdin(input):
            src = sys.stdin.buffer
        else:
            src = open(input, "rb")
        try:
            with _LazyFile(output) as dst:
                h = text_to_bmp(src, dst.open, width=width, kind=kind, inverted=inverted)
        finally:
            if src is not sys.stdin.buffer:
                src.close()
    except (BmpError, OSError, EOFError) as e:
        print(f"[ERR] {name}: {e}", file=sys.stderr)
        return 1

    if verbose:
        print(f"[OK]  {name} → {os.path.basename(output)}  ({h['kind'].value}, width={h['width']}, "
              f"height={h['height']}, stride={h['stride']}, size={h['size']})", file=sys.stderr)
    return 0

class _LazyFile:
    """Output file that is only created when open() is first called."""
    def __init__(self, path):
        self.path = path
        self.f = None

    def open(self):
        if self.f is None:
            self.f = open(self.path, "wb")
        return self.f

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        if self.f is not None:
            self.f.close()
        return False

def main(argv=None):
    ap = argparse.ArgumentParser(description="Convert text (any bytes) into a 1-byte-per-pixel BMP.")
    ap.add_argument("input", help="A path to the text file ('-' for stdin)")
    ap.add_argument("output", help="A path to the bmp file")
    ap.add_argument("--kind", choices=[k.value for k in BitmapKind],
                    help="Header variant (default: os2, or windows when a dimension exceeds 65535)")
    ap.add_argument("--width", type=parse_width, help="Image width in bytes; 0 or 'flat' for a single row (default)")
    ap.add_argument("--inverted", action="store_true", help="Upside down (store a negative height)")
    ap.add_argument("-v", "--verbose", action="store_true", help="Report image geometry on stderr")
    ap.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    args = ap.parse_args(argv)
    kind = BitmapKind(args.kind) if args.kind else None
    try:
        return run(args.input, args.output, kind=kind, width=args.width,
                   inverted=args.inverted, verbose=args.verbose)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        return 130

if __name__ == "__main__":
    raise SystemExit(main())
