import unittest

import numpy as np

from orienta.core.ringbuffer import RingBuffer


class RingBufferTest(unittest.TestCase):
    def test_rejects_non_positive_sizes(self):
        with self.assertRaises(ValueError):
            RingBuffer(0)
        with self.assertRaises(ValueError):
            RingBuffer(4, width=0)

    def test_append_until_full_then_overwrite_oldest(self):
        buf = RingBuffer(3)
        for value in range(5):
            buf.append(value)
        self.assertEqual(len(buf), 3)
        np.testing.assert_array_equal(buf.view()[:, 0], [2.0, 3.0, 4.0])
        self.assertEqual(float(buf[0][0]), 2.0)
        self.assertEqual(float(buf[-1][0]), 4.0)

    def test_index_out_of_range(self):
        buf = RingBuffer(2)
        with self.assertRaises(IndexError):
            buf[0]
        buf.append(1.0)
        with self.assertRaises(IndexError):
            buf[1]

    def test_rows_and_columns_stay_oldest_first_across_wrap(self):
        buf = RingBuffer(4, width=2)
        for i in range(6):
            buf.append([i, i * 10])
        np.testing.assert_array_equal(buf.view(), [[2, 20], [3, 30], [4, 40], [5, 50]])
        np.testing.assert_array_equal(buf.column(1), [20, 30, 40, 50])

    def test_view_is_a_copy(self):
        buf = RingBuffer(2)
        buf.append(1.0)
        snapshot = buf.view()
        snapshot[0, 0] = 99.0
        self.assertEqual(float(buf[0][0]), 1.0)

    def test_clear(self):
        buf = RingBuffer(2)
        buf.append(1.0)
        buf.clear()
        self.assertEqual(len(buf), 0)
        self.assertEqual(buf.view().shape, (0, 1))


if __name__ == "__main__":
    unittest.main()
