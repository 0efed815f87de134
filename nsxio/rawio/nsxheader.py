"""
Parsing of the NSx basic and extended headers.

Two incompatible layouts exist and are selected by the 8 first bytes of the
file:

  * ``NEURALSG``: file spec 2.1. A short fixed header followed by one uint32
    electrode id per channel. No extended header, no date.
  * ``NEURALCD`` (spec 2.2 to 3.0) and ``BRSMPGRP`` (spec 3.0 with 64-bit
    timestamps): a 306-byte main header followed by one 66-byte extended
    header block per channel. Both share the same header layout and only
    differ by the width of the segment timestamps in the data region.

All values are little-endian.
"""

import datetime
import warnings

import numpy as np

from nsxio.core import FileMetadata, ElectrodeDescriptor, UnsupportedFormat, IOFailure


FILE_ID_DTYPE = np.dtype([("file_id", "S8")])

# Header types by file identifier, the file_id field is read separately
NSX_BASIC_HEADER_TYPES = {
    "NEURALSG": np.dtype(
        [
            ("label", "S16"),
            ("period", "<u4"),
            ("channel_count", "<u4"),
        ]
    ),
    "NEURALCD": np.dtype(
        [
            ("ver_major", "u1"),
            ("ver_minor", "u1"),
            ("bytes_in_headers", "<u4"),
            ("label", "S16"),
            ("comment", "S256"),
            ("period", "<u4"),
            ("timestamp_resolution", "<u4"),
            ("year", "<u2"),
            ("month", "<u2"),
            ("weekday", "<u2"),
            ("day", "<u2"),
            ("hour", "<u2"),
            ("minute", "<u2"),
            ("second", "<u2"),
            ("millisecond", "<u2"),
            ("channel_count", "<u4"),
        ]
    ),
}
NSX_BASIC_HEADER_TYPES["BRSMPGRP"] = NSX_BASIC_HEADER_TYPES["NEURALCD"]

NSX_EXT_HEADER_TYPES = {
    "NEURALSG": np.dtype([("electrode_id", "<u4")]),
    "NEURALCD": np.dtype(
        [
            ("type", "S2"),
            ("electrode_id", "<u2"),
            ("electrode_label", "S16"),
            ("physical_connector", "u1"),
            ("connector_pin", "u1"),
            ("min_digital_val", "<i2"),
            ("max_digital_val", "<i2"),
            ("min_analog_val", "<i2"),
            ("max_analog_val", "<i2"),
            ("units", "S16"),
            ("hi_freq_corner", "<u4"),
            ("hi_freq_order", "<u4"),
            ("hi_freq_type", "<u2"),
            ("lo_freq_corner", "<u4"),
            ("lo_freq_order", "<u4"),
            ("lo_freq_type", "<u2"),
        ]
    ),
}
NSX_EXT_HEADER_TYPES["BRSMPGRP"] = NSX_EXT_HEADER_TYPES["NEURALCD"]

# 2.1 files only carry a period, on the 30 kHz system clock
LEGACY_TIMESTAMP_RESOLUTION = 30000


def decode_string(raw):
    """Bytes up to the first NUL, decoded, without trailing blanks."""
    return raw.split(b"\x00", 1)[0].decode("latin-1").rstrip()


def read_struct(fid, dtype, count=1):
    """
    Read ``count`` records of ``dtype`` at the current position of ``fid``.

    Raises IOFailure when the file ends before all records were read.
    """
    data = np.fromfile(fid, dtype=dtype, count=count)
    if data.size != count:
        raise IOFailure(
            f"Unexpected end of file while reading header: expected {count} record(s) "
            f"of {dtype.itemsize} bytes, got {data.size}"
        )
    return data


def read_file_id(fid):
    """Read the 8-byte format identifier from the start of the file."""
    fid.seek(0)
    file_id = read_struct(fid, FILE_ID_DTYPE)[0]["file_id"]
    try:
        file_id = file_id.decode("ascii")
    except UnicodeDecodeError:
        raise UnsupportedFormat(f"Unsupported NSX file type: {file_id!r}") from None
    if file_id not in NSX_BASIC_HEADER_TYPES:
        raise UnsupportedFormat(f"Unsupported NSX file type: {file_id!r}")
    return file_id


class LegacyHeaderParser:
    """
    Header of file spec 2.1 (``NEURALSG``) files.

    There is no extended header, so no electrode descriptors are produced.
    """

    file_ids = ("NEURALSG",)

    def parse(self, fid, file_id, timezone=None):
        basic = read_struct(fid, NSX_BASIC_HEADER_TYPES[file_id])[0]
        channel_count = int(basic["channel_count"])
        channel_ids = read_struct(fid, NSX_EXT_HEADER_TYPES[file_id], count=channel_count)
        metadata = FileMetadata(
            file_id=file_id,
            file_spec="2.1",
            label=decode_string(basic["label"].tobytes()),
            period=int(basic["period"]),
            timestamp_resolution=LEGACY_TIMESTAMP_RESOLUTION,
            channel_count=channel_count,
            channel_ids=channel_ids["electrode_id"],
            timezone=timezone,
        )
        return metadata, []


class ModernHeaderParser:
    """
    Header of file spec 2.2 and later (``NEURALCD`` and ``BRSMPGRP``) files.

    An extended header block whose type tag is not ``'CC'`` is not decoded:
    its descriptor only keeps the tag and a warning is issued.
    """

    file_ids = ("NEURALCD", "BRSMPGRP")

    def parse(self, fid, file_id, timezone=None):
        basic = read_struct(fid, NSX_BASIC_HEADER_TYPES[file_id])[0]
        channel_count = int(basic["channel_count"])
        ext_header = read_struct(fid, NSX_EXT_HEADER_TYPES[file_id], count=channel_count)

        electrodes = [self._parse_electrode(i, block) for i, block in enumerate(ext_header)]
        metadata = FileMetadata(
            file_id=file_id,
            file_spec=f"{basic['ver_major']}.{basic['ver_minor']}",
            label=decode_string(basic["label"].tobytes()),
            comment=decode_string(basic["comment"].tobytes()),
            period=int(basic["period"]),
            timestamp_resolution=int(basic["timestamp_resolution"]),
            channel_count=channel_count,
            channel_ids=ext_header["electrode_id"],
            date=self._parse_date(basic),
            timezone=timezone,
        )
        return metadata, electrodes

    @staticmethod
    def _parse_date(basic):
        # weekday is redundant with the date and is ignored
        try:
            return datetime.datetime(
                int(basic["year"]),
                int(basic["month"]),
                int(basic["day"]),
                int(basic["hour"]),
                int(basic["minute"]),
                int(basic["second"]),
                int(basic["millisecond"]) * 1000,
                tzinfo=datetime.timezone.utc,
            )
        except ValueError as err:
            warnings.warn(f"Recording date in header is not valid ({err}), date is left empty", UserWarning)
            return None

    @staticmethod
    def _parse_electrode(index, block):
        type_tag = decode_string(block["type"].tobytes())
        if type_tag != ElectrodeDescriptor.valid_type:
            warnings.warn(
                f"Attempted to read extended header on channel {index + 1}, "
                f"but electrode type was {type_tag!r} instead of 'CC'",
                UserWarning,
            )
            return ElectrodeDescriptor(type=type_tag)

        bank = int(block["physical_connector"])
        return ElectrodeDescriptor(
            type=type_tag,
            electrode_id=int(block["electrode_id"]),
            label=decode_string(block["electrode_label"].tobytes()),
            connector_bank=chr(ord("A") - 1 + bank) if bank > 0 else "",
            connector_pin=int(block["connector_pin"]),
            digital_range=(int(block["min_digital_val"]), int(block["max_digital_val"])),
            analog_range=(int(block["min_analog_val"]), int(block["max_analog_val"])),
            analog_units=decode_string(block["units"].tobytes()),
            high_freq_corner=int(block["hi_freq_corner"]),
            high_freq_order=int(block["hi_freq_order"]),
            high_filter_type=_filter_type(block["hi_freq_type"]),
            low_freq_corner=int(block["lo_freq_corner"]),
            low_freq_order=int(block["lo_freq_order"]),
            low_filter_type=_filter_type(block["lo_freq_type"]),
        )


def _filter_type(code):
    code = int(code)
    if code < len(ElectrodeDescriptor.filter_types):
        return ElectrodeDescriptor.filter_types[code]
    return f"Unknown ({code})"


def parse_header(fid, timezone=None):
    """
    Parse the whole header of an open NSx file.

    Returns ``(metadata, electrodes, header_end)``, where ``header_end`` is the
    byte offset of the data region. The file cursor is left at ``header_end``.
    """
    file_id = read_file_id(fid)
    parser = HEADER_PARSERS[file_id]
    metadata, electrodes = parser.parse(fid, file_id, timezone=timezone)
    return metadata, electrodes, fid.tell()


HEADER_PARSERS = {}
for _parser in (LegacyHeaderParser(), ModernHeaderParser()):
    for _file_id in _parser.file_ids:
        HEADER_PARSERS[_file_id] = _parser
