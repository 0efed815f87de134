"""
Tests of the nsxio.core.header module
"""

import datetime
import unittest

from nsxio.core import FileMetadata, ElectrodeDescriptor
from nsxio.core.header import project_datetime


class TestFileMetadata(unittest.TestCase):
    def setUp(self):
        self.date = datetime.datetime(2019, 3, 13, 14, 5, 42, tzinfo=datetime.timezone.utc)
        self.metadata = FileMetadata(
            file_id="NEURALCD",
            file_spec="2.3",
            label="30 kS/s",
            period=1,
            channel_count=4,
            timestamp_resolution=30000,
            channel_ids=[1, 2, 3, 4],
            date=self.date,
            timezone="UTC",
        )

    def test_sampling_rate(self):
        self.assertEqual(self.metadata.sampling_rate, 30000.0)
        slow = FileMetadata("NEURALSG", "2.1", "1 kS/s", period=30, channel_count=1)
        self.assertEqual(slow.sampling_rate, 1000.0)
        self.assertTrue(slow.is_legacy)
        self.assertFalse(self.metadata.is_legacy)

    def test_read_only(self):
        with self.assertRaises(AttributeError):
            self.metadata.period = 2
        self.assertEqual(self.metadata.period, 1)

    def test_channel_ids(self):
        self.assertEqual(self.metadata.channel_ids, (1, 2, 3, 4))

    def test_date_local(self):
        self.assertEqual(self.metadata.date_local, self.date)
        self.assertEqual(self.metadata.date_local.utcoffset(), datetime.timedelta(0))

    def test_no_date(self):
        legacy = FileMetadata("NEURALSG", "2.1", "", period=1, channel_count=1)
        self.assertIsNone(legacy.date)
        self.assertIsNone(legacy.date_local)


class TestProjectDatetime(unittest.TestCase):
    def test_named_timezone(self):
        date = datetime.datetime(2019, 7, 1, 12, 0, tzinfo=datetime.timezone.utc)
        local = project_datetime(date, "America/New_York")
        self.assertEqual(local.hour, 8)
        self.assertEqual(local, date)

    def test_tzinfo(self):
        date = datetime.datetime(2019, 7, 1, 12, 0, tzinfo=datetime.timezone.utc)
        tz = datetime.timezone(datetime.timedelta(hours=2))
        self.assertEqual(project_datetime(date, tz).hour, 14)

    def test_local_timezone(self):
        date = datetime.datetime(2019, 7, 1, 12, 0, tzinfo=datetime.timezone.utc)
        self.assertEqual(project_datetime(date), date)


class TestElectrodeDescriptor(unittest.TestCase):
    def test_scale_factor(self):
        electrode = ElectrodeDescriptor(
            "CC", electrode_id=1, label="elec1", digital_range=(-32764, 32764), analog_range=(-8191, 8191)
        )
        self.assertTrue(electrode.is_valid)
        self.assertEqual(electrode.scale_factor, 4.0)
        self.assertTrue(electrode.has_integral_scale)

    def test_non_integral_scale(self):
        electrode = ElectrodeDescriptor("CC", digital_range=(-200, 200), analog_range=(-3, 3))
        self.assertAlmostEqual(electrode.scale_factor, 200 / 3)
        self.assertFalse(electrode.has_integral_scale)

    def test_invalid_block(self):
        electrode = ElectrodeDescriptor("XX")
        self.assertFalse(electrode.is_valid)
        self.assertIsNone(electrode.scale_factor)
        self.assertFalse(electrode.has_integral_scale)
        self.assertIn("not read", repr(electrode))

    def test_zero_analog_range(self):
        electrode = ElectrodeDescriptor("CC", digital_range=(0, 100), analog_range=(0, 0))
        self.assertIsNone(electrode.scale_factor)


if __name__ == "__main__":
    unittest.main()
