#!/usr/bin/env python3
"""
bmp2txt.py — dump the pixel bytes of a BMP as text

Reads the file header and the 12-byte (OS/2) or 40-byte (Windows) info
header, skips everything up to the pixel offset, then writes every stored
row minus its alignment padding. Each pixel byte becomes one character.

Usage:
  python bmp2txt.py IMAGE.bmp [OUT.txt] [-v]

Examples:
  python bmp2txt.py hello.bmp            # text to stdout
  python bmp2txt.py hello.bmp hello.txt
"""

import argparse, os, sys

from bmpcodec import __version__, BmpError, bmp_to_text

def run(input, output=None, verbose=False):
    name = os.path.basename(input)
    try:
        with open(input, "rb") as src:
            if output is None:
                h = bmp_to_text(src, sys.stdout.buffer)
            else:
                with open(output, "wb") as dst:
                    h = bmp_to_text(src, dst)
    except (BmpError, OSError, EOFError) as e:
        print(f"[ERR] {name}: {e}", file=sys.stderr)
        return 1

    if verbose:
        where = os.path.basename(output) if output else "stdout"
        print(f"[OK]  {name} → {where}  ({h['kind'].value}, width={h['width']}, "
              f"height={h['height']}, stride={h['stride']}, chars={h['chars']})", file=sys.stderr)
    return 0

def main(argv=None):
    ap = argparse.ArgumentParser(description="Convert a 1-byte-per-pixel BMP back into the text it carries.")
    ap.add_argument("input", help="A path to the bmp file")
    ap.add_argument("output", nargs="?", help="A path to the text file (default: stdout)")
    ap.add_argument("-v", "--verbose", action="store_true", help="Report image geometry on stderr")
    ap.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    args = ap.parse_args(argv)
    try:
        return run(args.input, args.output, verbose=args.verbose)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        return 130

if __name__ == "__main__":
    raise SystemExit(main())
