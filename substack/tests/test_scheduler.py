# substack/tests/test_scheduler.py
import threading
import unittest
from unittest.mock import MagicMock

from substack.core.feeds import FeedAggregator
from substack.core.scheduler import FeedRefresher


class TestFeedRefresher(unittest.TestCase):
    def setUp(self):
        self.aggregator = MagicMock(spec=FeedAggregator)
        self.refreshed = threading.Event()
        self.aggregator.refresh.side_effect = lambda: self.refreshed.set() or 0
        self.refresher = FeedRefresher(self.aggregator, interval=300)

    def tearDown(self):
        self.refresher.stop()

    def test_start_refreshes_immediately_and_schedules_job(self):
        self.refresher.start()
        self.assertTrue(self.refreshed.wait(5))
        self.assertTrue(self.refresher.running)
        self.assertEqual(len(self.refresher.scheduler.jobs), 1)
        self.assertEqual(self.refresher.scheduler.jobs[0].interval, 300)

    def test_start_twice_keeps_one_thread(self):
        self.refresher.start()
        thread = self.refresher._thread
        self.refresher.start()
        self.assertIs(self.refresher._thread, thread)

    def test_stop(self):
        self.refresher.start()
        self.refreshed.wait(5)
        self.refresher.stop()
        self.assertFalse(self.refresher.running)
        self.assertEqual(self.refresher.scheduler.jobs, [])

    def test_failed_refresh_does_not_raise(self):
        self.aggregator.refresh.side_effect = RuntimeError("boom")
        self.refresher._run()
        self.aggregator.refresh.assert_called_once()


if __name__ == "__main__":
    unittest.main()
