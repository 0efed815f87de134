"""
Tests of nsxio.rawio.nsxsegments
"""

import logging
import os
import tempfile
import unittest

from nsxio.core import Segment
from nsxio.rawio.nsxheader import parse_header
from nsxio.rawio.nsxsegments import get_segment_indexer
from nsxio.rawio.utils import get_file_size
from nsxio.test.tools import make_signal, write_legacy_nsx, write_modern_nsx


class TestSegmentIndexer(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmpdir.cleanup)

    def index(self, filename):
        with open(filename, "rb") as fid:
            metadata, electrodes, header_end = parse_header(fid)
            file_end = get_file_size(fid)
            indexer = get_segment_indexer(metadata.file_id)
            with self.assertLogs("nsxio.test", level="DEBUG") as logs:
                logging.getLogger("nsxio.test").debug("indexing")
                segments = indexer.index(
                    fid, metadata.channel_count, header_end, file_end, logger=logging.getLogger("nsxio.test")
                )
        return segments, header_end, file_end, logs.output

    def path(self, name):
        return os.path.join(self.tmpdir.name, name)

    def test_single_segment(self):
        filename = write_modern_nsx(self.path("one.ns5"), [(0, make_signal(100, 4))])
        segments, header_end, file_end, _ = self.index(filename)
        self.assertEqual(len(segments), 1)
        self.assertEqual(segments[0].datapoints, 100)
        self.assertEqual(segments[0].data_start, header_end + 9)
        self.assertEqual(segments[0].data_end, file_end)

    def test_paused_recording(self):
        filename = write_modern_nsx(
            self.path("paused.ns5"), [(0, make_signal(100, 4)), (9000, make_signal(50, 4)), (20000, make_signal(7, 4))]
        )
        segments, header_end, file_end, _ = self.index(filename)
        self.assertEqual([s.datapoints for s in segments], [100, 50, 7])
        self.assertEqual([s.timestamp for s in segments], [0, 9000, 20000])
        # every byte after the header is a packet header or a sample
        packets = sum(9 + s.nbytes for s in segments)
        self.assertEqual(header_end + packets, file_end)

    def test_64bit_timestamps(self):
        timestamp = 2**40 + 3
        filename = write_modern_nsx(
            self.path("big.ns6"), [(0, make_signal(10, 2)), (timestamp, make_signal(5, 2))], file_id="BRSMPGRP"
        )
        segments, header_end, file_end, _ = self.index(filename)
        self.assertEqual([s.datapoints for s in segments], [10, 5])
        self.assertEqual(segments[1].timestamp, timestamp)
        self.assertEqual(header_end + sum(13 + s.nbytes for s in segments), file_end)

    def test_corrupted_marker(self):
        filename = write_modern_nsx(
            self.path("corrupt.ns5"),
            [(0, make_signal(100, 2)), (500, make_signal(40, 2))],
            tail=b"\x07" + bytes(8) + make_signal(3, 2).tobytes(),
        )
        segments, header_end, file_end, output = self.index(filename)
        self.assertEqual(len(segments), 2)
        self.assertEqual(segments[0].datapoints, 100)
        # the last good segment runs to the end of the file
        self.assertEqual(segments[1].datapoints, (file_end - segments[1].data_start) // 4)
        self.assertEqual(segments[1].data_end, segments[1].data_start + segments[1].datapoints * 4)
        self.assertTrue(any("Duration read issue" in line for line in output))

    def test_truncated_packet_header(self):
        filename = write_modern_nsx(self.path("cut.ns5"), [(0, make_signal(10, 2))], tail=b"\x01\x00\x00")
        segments, header_end, file_end, output = self.index(filename)
        self.assertEqual(len(segments), 1)
        self.assertEqual(segments[0].datapoints, 10)

    def test_segment_past_end_of_file(self):
        filename = write_modern_nsx(self.path("overrun.ns5"), [(0, make_signal(10, 2))])
        with open(filename, "r+b") as fid:
            fid.truncate(get_file_size(fid) - 4 * 3 - 1)
        segments, header_end, file_end, output = self.index(filename)
        self.assertEqual(segments[0].datapoints, 6)
        self.assertTrue(any("declares 10 data points" in line for line in output))

    def test_legacy(self):
        filename = write_legacy_nsx(self.path("legacy.ns2"), make_signal(25, 3), period=30, trailing=b"\x01\x02\x03")
        segments, header_end, file_end, output = self.index(filename)
        self.assertEqual(segments, [Segment(0, 25, header_end, header_end + 25 * 6)])
        self.assertTrue(any("trailing" in line for line in output))


if __name__ == "__main__":
    unittest.main()
