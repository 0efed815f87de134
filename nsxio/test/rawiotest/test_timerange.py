"""
Tests of nsxio.rawio.timerange
"""

import unittest

from nsxio.core import RangeAfterEnd, ReadRequest, Segment
from nsxio.rawio.timerange import find_segment_span, resolve_segments


class TestFindSegmentSpan(unittest.TestCase):
    extents = [10.0, 5.0, 20.0]

    def test_inside_one_segment(self):
        self.assertEqual(find_segment_span(self.extents, 2, 8), (0, 0))
        self.assertEqual(find_segment_span(self.extents, 11, 14), (1, 1))

    def test_across_segments(self):
        self.assertEqual(find_segment_span(self.extents, 8, 12), (0, 1))
        self.assertEqual(find_segment_span(self.extents, 0, 35), (0, 2))

    def test_end_on_boundary(self):
        # ending exactly on a boundary stops in the segment that ends there
        self.assertEqual(find_segment_span(self.extents, 0, 10), (0, 0))
        self.assertEqual(find_segment_span(self.extents, 0, 15), (0, 1))
        # ending just after it pulls in the next one
        self.assertEqual(find_segment_span(self.extents, 0, 10.001), (0, 1))

    def test_start_on_boundary(self):
        self.assertEqual(find_segment_span(self.extents, 10, 12), (1, 1))

    def test_never_past_last_segment(self):
        self.assertEqual(find_segment_span(self.extents, 30, 1000), (2, 2))

    def test_after_end(self):
        with self.assertRaises(RangeAfterEnd):
            find_segment_span(self.extents, 35, 40)
        with self.assertRaises(RangeAfterEnd):
            find_segment_span(self.extents, 100, 200)

    def test_empty_request_on_boundary(self):
        first, last = find_segment_span(self.extents, 10, 10)
        self.assertLessEqual(first, last)

    def test_boundary_law(self):
        # last is one past the last segment ending strictly before end
        extents = [3.0, 3.0, 3.0, 3.0]
        for end in (0.5, 2.9, 3.0, 3.1, 5.9, 6.0, 8.0, 11.9, 12.0):
            first, last = find_segment_span(extents, 0, end)
            ends_before = [i for i, c in enumerate((3.0, 6.0, 9.0, 12.0)) if c < end]
            expected = min(ends_before[-1] + 1, 3) if ends_before else 0
            self.assertEqual((first, last), (0, expected), msg=f"end={end}")


class TestResolveSegments(unittest.TestCase):
    def setUp(self):
        self.segments = [Segment(0, 1000, 100, 2100), Segment(5000, 500, 2109, 3109)]

    def test_seconds(self):
        request = resolve_segments(ReadRequest([1], (0.5, 1.2)), self.segments, 1000.0)
        self.assertEqual((request.first_segment, request.last_segment), (0, 1))

    def test_datapoints(self):
        request = resolve_segments(ReadRequest([1], (1, 1000), units="datapoints"), self.segments, 1000.0)
        self.assertEqual((request.first_segment, request.last_segment), (0, 0))
        request = resolve_segments(ReadRequest([1], (1001, 1200), units="datapoints"), self.segments, 1000.0)
        self.assertEqual((request.first_segment, request.last_segment), (1, 1))

    def test_after_end(self):
        with self.assertRaises(RangeAfterEnd):
            resolve_segments(ReadRequest([1], (1.6, 2.0)), self.segments, 1000.0)
        with self.assertRaises(RangeAfterEnd):
            resolve_segments(ReadRequest([1], (1501, 1600), units="datapoints"), self.segments, 1000.0)

    def test_start_in_last_sample_period(self):
        # datapoint floor(start * Fs) = 1000 is the last one of the first segment
        for start in (1.0, 1.0005):
            request = resolve_segments(ReadRequest([1], (start, 1.2)), self.segments, 1000.0)
            self.assertEqual((request.first_segment, request.last_segment), (0, 1))
        request = resolve_segments(ReadRequest([1], (1000, 1200), units="datapoints"), self.segments, 1000.0)
        self.assertEqual((request.first_segment, request.last_segment), (0, 1))


if __name__ == "__main__":
    unittest.main()
