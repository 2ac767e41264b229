#!/usr/bin/env python3
"""
bmpcodec.py — wrap raw bytes as a 1-byte-per-pixel BMP and strip them back out

On-disk layout written/read here:
  BITMAPFILEHEADER (14 bytes)
    "BM", file size (u32le), 4 reserved zero bytes, pixel offset (u32le)
  Info header, either
    OS/2 BITMAPCOREHEADER (12 bytes): size=12, width u16, height i16,
      planes=1, bpp=1, then a 3-byte palette entry FF FF FF
    Windows BITMAPINFOHEADER (40 bytes): size=40, width u32, height i32,
      planes=1, bpp=1, compression=0, image size/x-res/y-res=0,
      palette count=1, important=0, then a 4-byte palette entry FF FF FF 00
  Pixel rows, top row first, each padded with zeros to a multiple of 4 bytes.

The pixel bytes are opaque: one input byte is one "pixel". A negative height
only marks the image as inverted for viewers; rows are never reordered.
"""

from enum import Enum

__version__ = "0.1.0"

BASE = 14  # file header is 14 bytes; info header starts at offset 14
MAGIC = b"BM"
U16_MAX = 0xFFFF
U32_MAX = 0xFFFFFFFF


class BmpError(ValueError):
    pass


class UnsupportedFormat(BmpError):
    pass


class UnsupportedHeaderSize(UnsupportedFormat):
    def __init__(self, size):
        super().__init__(
            f"BMP header size must be 40 (for Windows Bitmap) or 12 (for OS/2 Bitmap), got {size}")
        self.size = size


class GeometryTooLarge(BmpError):
    pass


class BitmapKind(Enum):
    WINDOWS = "windows"
    OS2 = "os2"

    @property
    def header_size(self):
        return _LAYOUT[self]["header_size"]

    @property
    def palette(self):
        return _LAYOUT[self]["palette"]

    @property
    def width_bytes(self):
        return _LAYOUT[self]["dim_bytes"]

    @property
    def height_bytes(self):
        return _LAYOUT[self]["dim_bytes"]

    @property
    def offset(self):
        """Pixel data offset: file header + info header + palette."""
        return BASE + self.header_size + len(self.palette)

    @classmethod
    def from_header_size(cls, size):
        for kind, layout in _LAYOUT.items():
            if layout["header_size"] == size:
                return kind
        raise UnsupportedHeaderSize(size)


_LAYOUT = {
    BitmapKind.WINDOWS: {"header_size": 40, "dim_bytes": 4, "palette": b"\xFF\xFF\xFF\x00"},
    BitmapKind.OS2:     {"header_size": 12, "dim_bytes": 2, "palette": b"\xFF\xFF\xFF"},
}


def u16(b,o): return int.from_bytes(b[o:o+2], "little")
def u32(b,o): return int.from_bytes(b[o:o+4], "little")
def i16(b,o): return int.from_bytes(b[o:o+2], "little", signed=True)
def i32(b,o): return int.from_bytes(b[o:o+4], "little", signed=True)

def le(value, nbytes):
    # two's complement truncated to the field width
    return (value & ((1 << (8 * nbytes)) - 1)).to_bytes(nbytes, "little")

def padded_width(width):
    return ((width + 3) // 4) * 4

def row_padding(width):
    return (4 - width % 4) % 4


# ---- geometry ----

def resolve_geometry(n, width=None):
    """Return (width, height) for n input bytes.

    No width (or 0) puts the whole input on one row; otherwise the last
    row is rounded up and later filled with zeros.
    """
    if not width:
        return n, 1
    if width < 0:
        raise ValueError(f"width must not be negative, got {width}")
    return width, (n + width - 1) // width

def infer_kind(width, height):
    if width > U16_MAX or height > U16_MAX:
        return BitmapKind.WINDOWS
    return BitmapKind.OS2

def check_geometry(width, height, kind=None):
    if height > U16_MAX:
        raise GeometryTooLarge("The height must be smaller than 2^16")
    if (width > U16_MAX or height > U16_MAX) and kind is BitmapKind.OS2:
        raise GeometryTooLarge("The 32bit width/height is not supported in OS/2 Bitmap")
    if width > U32_MAX:
        raise GeometryTooLarge("The width must be smaller than 2^32")
    k = kind or infer_kind(width, height)
    if k.offset + padded_width(width) * height > U32_MAX:
        raise GeometryTooLarge("The file size must be smaller than 2^32")


# ---- rows ----

def depad_rows(data, width):
    """Drop the alignment bytes of every stored row.

    A short trailing row (truncated file) contributes whatever is there,
    up to width bytes.
    """
    if width == 0:
        return b""
    stride = padded_width(width)
    view = memoryview(data)
    out = bytearray()
    for s in range(0, len(view), stride):
        out += view[s:s+width]
    return bytes(out)

def iter_rows(data, width, height):
    """Yield height stored rows: width bytes of data (zero-filled past the
    end of data) followed by the alignment padding."""
    if width == 0:
        return
    want = width * height
    if len(data) < want:
        data = bytes(data) + b"\x00" * (want - len(data))
    pad = b"\x00" * row_padding(width)
    view = memoryview(data)
    for s in range(0, want, width):
        yield bytes(view[s:s+width]) + pad

def pad_rows(data, width, height):
    return b"".join(iter_rows(data, width, height))


# ---- headers ----

def build_headers(width, height, kind, inverted=False):
    """File header + info header + palette, ready to be followed by pixel rows."""
    offset = kind.offset
    size = offset + padded_width(width) * height
    h = -height if inverted else height

    file_header = bytearray(14)
    file_header[0:2]   = MAGIC
    file_header[2:6]   = size.to_bytes(4, "little")
    file_header[6:10]  = (0).to_bytes(4, "little")  # reserved
    file_header[10:14] = offset.to_bytes(4, "little")

    info = bytearray(kind.header_size)
    wn, hn = kind.width_bytes, kind.height_bytes
    p = 4 + wn + hn
    info[0:4]     = kind.header_size.to_bytes(4, "little")
    info[4:4+wn]  = le(width, wn)
    info[4+wn:p]  = le(h, hn)
    info[p:p+2]   = (1).to_bytes(2, "little")  # planes
    info[p+2:p+4] = (1).to_bytes(2, "little")  # bits per pixel
    if kind is BitmapKind.WINDOWS:
        info[16:20] = (0).to_bytes(4, "little")  # BI_RGB
        info[20:24] = (0).to_bytes(4, "little")  # image size (ignored)
        info[24:28] = (0).to_bytes(4, "little")  # x resolution (ignored)
        info[28:32] = (0).to_bytes(4, "little")  # y resolution (ignored)
        info[32:36] = (1).to_bytes(4, "little")  # palette entries
        info[36:40] = (0).to_bytes(4, "little")  # important index

    return bytes(file_header) + bytes(info) + kind.palette

def read_exact(src, n):
    b = src.read(n)
    if len(b) != n:
        raise EOFError(f"unexpected end of file: wanted {n} bytes, got {len(b)}")
    return b

def read_bmp_header(src):
    """Consume the file header and info header (palette included) from src.

    Leaves src positioned at the first pixel byte.
    """
    fh = read_exact(src, BASE)
    if fh[:2] != MAGIC:
        raise UnsupportedFormat("Not a BMP (missing 'BM')")
    off = u32(fh, 10)
    if off < BASE + 4:
        raise UnsupportedFormat(f"Pixel offset {off} leaves no room for an info header")
    info = read_exact(src, off - BASE)
    kind = BitmapKind.from_header_size(u32(info, 0))
    n = kind.width_bytes
    if len(info) < 4 + n:
        raise UnsupportedFormat(f"Info header of {len(info)} bytes has no width field")
    rd_w, rd_h = (u16, i16) if kind is BitmapKind.OS2 else (u32, i32)
    width = rd_w(info, 4)
    # height is informational only; decoding never looks at it
    height = rd_h(info, 4 + n) if len(info) >= 4 + 2*n else 0
    return {
        "off": off, "kind": kind, "size": u32(fh, 2),
        "width": width, "height": height, "stride": padded_width(width),
    }


# ---- pipelines ----

def decode_bmp(src):
    """Read a BMP from src; returns (text, header) with one char per pixel byte.

    Row count is whatever the rest of the stream holds, not the stored height.
    """
    h = read_bmp_header(src)
    pixels = depad_rows(src.read(), h["width"])
    return pixels.decode("latin-1"), h

def bmp_to_text(src, dst):
    text, h = decode_bmp(src)
    dst.write(text.encode("utf-8"))
    dst.flush()
    h["chars"] = len(text)
    return h

def plan_bmp(n, width=None, kind=None):
    """Resolve and validate geometry for n bytes; returns (width, height, kind)."""
    w, ht = resolve_geometry(n, width)
    check_geometry(w, ht, kind)
    return w, ht, kind or infer_kind(w, ht)

def encode_bmp(data, width=None, kind=None, inverted=False):
    w, ht, k = plan_bmp(len(data), width, kind)
    return build_headers(w, ht, k, inverted) + pad_rows(data, w, ht)

def text_to_bmp(src, dst, width=None, kind=None, inverted=False):
    """Read all of src and write it to dst as a BMP.

    dst may be a callable returning the sink; it is only called once the
    geometry has been validated, so nothing is created on failure.
    """
    data = src.read()
    w, ht, k = plan_bmp(len(data), width, kind)
    if callable(dst):
        dst = dst()
    dst.write(build_headers(w, ht, k, inverted))
    for row in iter_rows(data, w, ht):
        dst.write(row)
    dst.flush()
    return {"kind": k, "width": w, "height": -ht if inverted else ht,
            "stride": padded_width(w), "off": k.offset, "bytes": len(data),
            "size": k.offset + padded_width(w) * ht}
