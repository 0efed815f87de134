"""
Tests of the nsxio.core.request, nsxio.core.loadeddata and nsxio.core.spikerecord modules
"""

import unittest

import numpy as np
from numpy.testing import assert_array_equal
import quantities as pq

from nsxio.core import LoadedData, ReadRequest, SessionState, SpikeRecord, Segment
from nsxio.core.request import normalize_units


class TestReadRequest(unittest.TestCase):
    def test_units(self):
        self.assertEqual(normalize_units("seconds"), "s")
        self.assertEqual(normalize_units("raw"), "datapoints")
        with self.assertRaises(ValueError):
            normalize_units("minutes")

    def test_downsample(self):
        with self.assertRaises(ValueError):
            ReadRequest([1], (0, 1), downsample=0)

    def test_unresolved(self):
        request = ReadRequest([2, 1], (0, 1))
        self.assertFalse(request.is_resolved)
        self.assertEqual(request.channels, (2, 1))
        request.first_segment, request.last_segment = 1, 2
        self.assertEqual(list(request.segment_span), [1, 2])

    def test_datapoint_bounds_seconds(self):
        request = ReadRequest([1], (0.5, 1.2))
        self.assertEqual(request.datapoint_bounds(1000, 1500), (500, 1200))

    def test_datapoint_bounds_clamped(self):
        request = ReadRequest([1], (0, 10))
        self.assertEqual(request.datapoint_bounds(1000, 1500), (1, 1500))
        request = ReadRequest([1], (0.0001, 0.0019))
        self.assertEqual(request.datapoint_bounds(1000, 1500), (1, 2))

    def test_datapoint_bounds_datapoints(self):
        request = ReadRequest([1], (20, 80.5), units="datapoints")
        self.assertEqual(request.datapoint_bounds(1000, 1500), (20, 81))


class TestSegment(unittest.TestCase):
    def test_segment(self):
        segment = Segment(timestamp=30, datapoints=100, data_start=400, data_end=1200)
        self.assertEqual(segment.nbytes, 800)
        self.assertEqual(segment.duration(1000.0), 0.1)
        self.assertEqual(segment, Segment(30, 100, 400, 1200))


class TestLoadedData(unittest.TestCase):
    def setUp(self):
        self.data = LoadedData(
            [np.arange(6, dtype="int16").reshape(2, 3), np.arange(4, dtype="int16").reshape(2, 2)], channels=[3, 1]
        )

    def test_shape(self):
        self.assertEqual(len(self.data), 2)
        self.assertEqual(self.data.datapoints, [3, 2])
        self.assertEqual(self.data.concatenated().shape, (2, 5))

    def test_channel_signal(self):
        assert_array_equal(self.data.channel_signal(1), [3, 4, 5, 2, 3])
        self.assertIsNone(self.data.channel_index(2))
        with self.assertRaises(KeyError):
            self.data.channel_signal(2)

    def test_row_count_checked(self):
        with self.assertRaises(ValueError):
            LoadedData([np.zeros((3, 2))], channels=[1, 2])


class TestSpikeRecord(unittest.TestCase):
    def test_empty_record(self):
        record = SpikeRecord(3)
        self.assertFalse(record.loaded)
        self.assertEqual(record.count, 0)
        self.assertEqual(record.spike_times_in("ms").size, 0)

    def test_times_in_units(self):
        record = SpikeRecord(1)
        record.spike_times = pq.Quantity([0.1, 0.25], "s")
        self.assertEqual(record.count, 2)
        assert_array_equal(record.spike_times_in("ms"), [100.0, 250.0])


class TestSessionState(unittest.TestCase):
    def test_flags(self):
        self.assertFalse(SessionState.CLOSED.is_open)
        self.assertTrue(SessionState.OPENED.is_open)
        self.assertFalse(SessionState.OPENED.has_data)
        self.assertTrue(SessionState.SPIKES_LOADED.has_data)


if __name__ == "__main__":
    unittest.main()
