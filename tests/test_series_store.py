import itertools
import threading
import unittest
from datetime import datetime, timedelta, timezone

from pricewatch.series.store import BoundedSeriesStore


def counting_clock(start=None):
    """Clock that advances one second per call, so order is visible in timestamps."""
    base = start or datetime(2024, 1, 1, tzinfo=timezone.utc)
    counter = itertools.count()
    return lambda: base + timedelta(seconds=next(counter))


class TestBoundedSeriesStore(unittest.TestCase):
    def test_bounded_growth(self):
        store = BoundedSeriesStore(capacity=100)
        for i in range(150):
            store.record_observation("BTC-USD", float(i))

        self.assertEqual(len(store.snapshot("BTC-USD")), 100)

    def test_fifo_eviction_order(self):
        store = BoundedSeriesStore(capacity=100)
        for i in range(1, 151):
            store.record_observation("BTC-USD", float(i))

        prices = [o.price for o in store.snapshot("BTC-USD")]
        self.assertEqual(prices, [float(i) for i in range(51, 151)])

    def test_unseen_instrument_is_empty(self):
        store = BoundedSeriesStore()

        self.assertEqual(store.snapshot("XRP-USD"), ())
        self.assertEqual(store.latest_price("XRP-USD"), (0.0, False))
        # Reading must not create the series
        self.assertEqual(store.instruments(), [])

    def test_latest_price(self):
        store = BoundedSeriesStore(capacity=3)
        for p in (10.0, 11.5, 12.25, 13.0):
            store.record_observation("ETH-USD", p)

        self.assertEqual(store.latest_price("ETH-USD"), (13.0, True))

    def test_snapshot_is_isolated_from_later_writes(self):
        store = BoundedSeriesStore(capacity=10)
        for i in range(8):
            store.record_observation("BTC-USD", float(i))

        before = store.snapshot("BTC-USD")
        for i in range(8, 13):
            store.record_observation("BTC-USD", float(i))
        after = store.snapshot("BTC-USD")

        self.assertEqual([o.price for o in before], [float(i) for i in range(8)])
        self.assertEqual([o.price for o in after], [float(i) for i in range(3, 13)])
        self.assertIsInstance(before, tuple)

    def test_instruments_are_independent(self):
        store = BoundedSeriesStore(capacity=5)
        store.record_observation("ETH-USD", 3000.0)
        eth_before = store.snapshot("ETH-USD")

        for i in range(20):
            store.record_observation("BTC-USD", 60000.0 + i)

        self.assertEqual(store.snapshot("ETH-USD"), eth_before)
        self.assertEqual(store.instruments(), ["BTC-USD", "ETH-USD"])
        self.assertEqual(len(store), 2)

    def test_capture_time_comes_from_store_clock(self):
        start = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
        store = BoundedSeriesStore(capacity=2, clock=counting_clock(start))
        store.record_observation("BTC-USD", 1.0)
        store.record_observation("BTC-USD", 2.0)
        store.record_observation("BTC-USD", 3.0)

        stamps = [o.observed_at for o in store.snapshot("BTC-USD")]
        self.assertEqual(stamps, [start + timedelta(seconds=1), start + timedelta(seconds=2)])

    def test_snapshot_many_uses_one_point_in_time(self):
        store = BoundedSeriesStore(capacity=5)
        store.record_observation("BTC-USD", 1.0)

        result = store.snapshot_many(["BTC-USD", "ETH-USD"])
        self.assertEqual(list(result), ["BTC-USD", "ETH-USD"])
        self.assertEqual(len(result["BTC-USD"]), 1)
        self.assertEqual(result["ETH-USD"], ())

    def test_any_instrument_is_accepted(self):
        store = BoundedSeriesStore()
        store.record_observation("NOT-SUBSCRIBED", 1.0)

        self.assertEqual(store.latest_price("NOT-SUBSCRIBED"), (1.0, True))

    def test_invalid_arguments(self):
        with self.assertRaises(ValueError):
            BoundedSeriesStore(capacity=0)

        store = BoundedSeriesStore()
        with self.assertRaises(ValueError):
            store.record_observation("", 1.0)
        with self.assertRaises(ValueError):
            store.record_observation("BTC-USD", -1.0)
        with self.assertRaises(ValueError):
            store.record_observation("BTC-USD", float("nan"))
        with self.assertRaises(ValueError):
            store.record_observation("BTC-USD", float("inf"))
        with self.assertRaises(TypeError):
            store.record_observation("BTC-USD", "12.5")
        with self.assertRaises(TypeError):
            store.record_observation("BTC-USD", True)
        with self.assertRaises(TypeError):
            store.record_observation("BTC-USD", None)
        self.assertEqual(store.snapshot("BTC-USD"), ())

    def test_wire_format(self):
        start = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
        store = BoundedSeriesStore(clock=lambda: start)
        obs = store.record_observation("BTC-USD", 61234.5)

        self.assertEqual(
            obs.to_wire(),
            {"Timestamp": "2024-05-01T12:00:00+00:00", "Price": 61234.5, "ProductID": "BTC-USD"},
        )


class TestBoundedSeriesStoreConcurrency(unittest.TestCase):
    capacity = 50

    def _run_threads(self, targets):
        threads = [threading.Thread(target=t) for t in targets]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=30)
        for t in threads:
            self.assertFalse(t.is_alive())

    def test_single_writer_many_readers_see_contiguous_suffix(self):
        store = BoundedSeriesStore(capacity=self.capacity, clock=counting_clock())
        total = 5000
        done = threading.Event()
        errors = []

        def writer():
            try:
                for i in range(total):
                    store.record_observation("BTC-USD", float(i))
            finally:
                done.set()

        def reader():
            while not done.is_set():
                snap = store.snapshot("BTC-USD")
                if len(snap) > self.capacity:
                    errors.append(f"too long: {len(snap)}")
                prices = [o.price for o in snap]
                if prices and prices != [prices[0] + k for k in range(len(prices))]:
                    errors.append(f"not contiguous: {prices[:5]}...")
                price, found = store.latest_price("BTC-USD")
                if found and price < (prices[-1] if prices else 0.0):
                    errors.append("latest price went backwards")

        self._run_threads([writer] + [reader] * 8)

        self.assertEqual(errors, [])
        final = [o.price for o in store.snapshot("BTC-USD")]
        self.assertEqual(final, [float(i) for i in range(total - self.capacity, total)])

    def test_many_writers_many_readers(self):
        store = BoundedSeriesStore(capacity=self.capacity, clock=counting_clock())
        writers = 8
        per_writer = 1000
        finished = threading.Semaphore(0)
        stop = threading.Event()
        errors = []

        def make_writer(wid):
            def writer():
                for seq in range(per_writer):
                    # price encodes (writer, sequence)
                    store.record_observation("ETH-USD", float(wid * 1_000_000 + seq))
                finished.release()
            return writer

        def check(snap):
            if len(snap) > self.capacity:
                errors.append(f"too long: {len(snap)}")
            stamps = [o.observed_at for o in snap]
            if stamps != sorted(stamps) or len(set(stamps)) != len(stamps):
                errors.append("reordered or duplicated entries")
            last_seq = {}
            for o in snap:
                wid, seq = divmod(int(o.price), 1_000_000)
                if seq <= last_seq.get(wid, -1):
                    errors.append(f"writer {wid} out of order")
                last_seq[wid] = seq

        def reader():
            while not stop.is_set():
                check(store.snapshot("ETH-USD"))

        def coordinator():
            for _ in range(writers):
                finished.acquire()
            stop.set()

        self._run_threads(
            [make_writer(w) for w in range(writers)] + [reader] * 6 + [coordinator]
        )

        self.assertEqual(errors, [])
        final = store.snapshot("ETH-USD")
        self.assertEqual(len(final), self.capacity)
        check(final)
        self.assertEqual(errors, [])
        # Untouched instrument stays empty
        self.assertEqual(store.snapshot("BTC-USD"), ())


if __name__ == "__main__":
    unittest.main()
