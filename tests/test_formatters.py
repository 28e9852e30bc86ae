import unittest

from stackscope.formatters import RawValueFormatter, TimeFormatter


class TestRawValueFormatter(unittest.TestCase):
    def test_integers(self):
        """Whole numbers are printed with thousands separators."""
        self.assertEqual(RawValueFormatter().format(1234567), "1,234,567")
        self.assertEqual(RawValueFormatter().format(12.0), "12")

    def test_fractions(self):
        self.assertEqual(RawValueFormatter().format(2.5), "2.50")


class TestTimeFormatter(unittest.TestCase):
    def test_microseconds(self):
        """Values are scaled to the largest unit above one."""
        formatter = TimeFormatter("microseconds")
        self.assertEqual(formatter.format(0), "0.00µs")
        self.assertEqual(formatter.format(250), "250.00µs")
        self.assertEqual(formatter.format(1500), "1.50ms")
        self.assertEqual(formatter.format(2_500_000), "2.50s")
        self.assertEqual(formatter.format(90_000_000), "1.50min")

    def test_nanoseconds(self):
        self.assertEqual(TimeFormatter("nanoseconds").format(12), "12ns")

    def test_unit(self):
        self.assertEqual(TimeFormatter("milliseconds").unit, "milliseconds")

    def test_unknown_unit(self):
        with self.assertRaises(ValueError):
            TimeFormatter("fortnights")
