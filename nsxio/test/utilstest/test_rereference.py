"""
Tests of nsxio.utils.rereference
"""

import unittest

import numpy as np
from numpy.testing import assert_allclose, assert_array_equal

from nsxio.core import ElectrodeDescriptor, LoadedData
from nsxio.utils import RerefSettings, common_reref
from nsxio.utils.rereference import electrode_bank, ignored_mask


def electrode(label, digital=32764, analog=8191):
    return ElectrodeDescriptor(
        "CC", label=label, digital_range=(-digital, digital), analog_range=(-analog, analog), analog_units="uV"
    )


class TestHelpers(unittest.TestCase):
    def test_electrode_bank(self):
        self.assertEqual(electrode_bank("elecA01"), "elecA")
        self.assertEqual(electrode_bank("chan17"), "chan")

    def test_ignored_mask(self):
        mask = ignored_mask(["elec1", "AINP1", "pulses2"], ("ainp1", "pulses"))
        assert_array_equal(mask, [False, True, True])


class TestRerefSettings(unittest.TestCase):
    def test_defaults(self):
        settings = RerefSettings()
        self.assertEqual(settings.group_size, np.inf)
        self.assertTrue(settings.convert_units)
        self.assertEqual(settings.ignore_electrodes, ("ainp1", "ainp2", "pulses", "digin"))

    def test_single_label(self):
        self.assertEqual(RerefSettings(ignore_electrodes="sync").ignore_electrodes, ("sync",))

    def test_group_size(self):
        with self.assertRaises(ValueError):
            RerefSettings(group_size=0)


class TestCommonReref(unittest.TestCase):
    def setUp(self):
        self.labels = ["elecA1", "elecA2", "elecB1", "elecB2", "ainp1"]
        common = np.array([0.0, 10, 20, 30])
        self.matrix = np.array(
            [common + 1, common + 3, 5 * common, 5 * common + 2, [100, -100, 100, -100]], dtype="int16"
        )
        self.data = LoadedData([self.matrix], channels=[1, 2, 3, 4, 5])

    def test_global_reference(self):
        result = common_reref(self.data, self.labels, convert_units=False)
        self.assertEqual(result[0].dtype, np.float64)
        # the analog input is only centred
        assert_allclose(result[0][4], [100, -100, 100, -100])
        # referenced channels average to zero at every sample
        assert_allclose(result[0][:4].sum(axis=0), 0, atol=1e-9)
        # input is left untouched
        self.assertEqual(self.data[0].dtype, np.int16)

    def test_banks(self):
        result = common_reref(self.data, self.labels, group_size=2, convert_units=False)
        assert_allclose(result[0][0], -result[0][1], atol=1e-9)
        assert_allclose(result[0][0], 0, atol=1e-9)
        assert_allclose(result[0][2], 0, atol=1e-9)

    def test_bank_size_mismatch(self):
        # no bank holds exactly 3 channels: channels are only centred
        result = common_reref(self.data, self.labels, group_size=3, convert_units=False)
        assert_allclose(result[0][0], [-15, -5, 5, 15])

    def test_convert_units(self):
        electrodes = [electrode(label) for label in self.labels]
        electrodes[1] = electrode("elecA2", digital=200, analog=3)
        result = common_reref(self.data, self.labels, electrodes=electrodes, group_size=1)
        plain = common_reref(self.data, self.labels, group_size=1, convert_units=False)
        assert_allclose(result[0][0], plain[0][0] / 4)
        # weird ratio is left unconverted
        assert_allclose(result[0][1], plain[0][1])

    def test_segments(self):
        data = LoadedData([self.matrix, self.matrix[:, :2]], channels=[1, 2, 3, 4, 5])
        result = common_reref(data, self.labels, convert_units=False)
        self.assertEqual(result.datapoints, [4, 2])


if __name__ == "__main__":
    unittest.main()
