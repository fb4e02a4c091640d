"""
Unit tests for the process shutdown coordinator.
"""
import signal
import threading
import time
import unittest
from unittest.mock import MagicMock, patch

from kosmoo.common.shutdown import ShutdownManager, ShutdownState


class TestShutdownManager(unittest.TestCase):

    def setUp(self):
        ShutdownManager.reset()
        self.manager = ShutdownManager(timeout=5)

    def tearDown(self):
        ShutdownManager.reset()

    def test_starts_running(self):
        self.assertTrue(self.manager.is_running)
        self.assertIs(ShutdownManager(), self.manager)

    def test_stops_server_before_later_cleanup(self):
        order = []
        server = MagicMock()
        server.stop.side_effect = lambda: order.append("server")
        self.manager.register(lambda: order.append("final"), priority=40, name="final")
        self.manager.register(server.stop, priority=10, name="exposition-server")

        self.manager.initiate_shutdown()

        self.assertEqual(order, ["server", "final"])
        self.assertEqual(self.manager.state, ShutdownState.STOPPED)
        self.assertFalse(self.manager.is_running)

    def test_failing_callback_does_not_block_the_rest(self):
        later = MagicMock()
        self.manager.register(MagicMock(side_effect=OSError("already closed")), priority=10)
        self.manager.register(later, priority=20)

        self.manager.initiate_shutdown()
        later.assert_called_once()

    def test_callbacks_past_timeout_are_skipped(self):
        ShutdownManager.reset()
        manager = ShutdownManager(timeout=0.05)
        skipped = MagicMock()
        manager.register(lambda: time.sleep(0.1), priority=10, name="slow")
        manager.register(skipped, priority=20, name="skipped")

        manager.initiate_shutdown()

        skipped.assert_not_called()
        self.assertEqual(manager.state, ShutdownState.STOPPED)

    def test_runs_callbacks_once(self):
        callback = MagicMock()
        self.manager.register(callback)
        self.manager.initiate_shutdown()
        self.manager.initiate_shutdown()
        callback.assert_called_once()

    def test_signal_handler_initiates_shutdown(self):
        self.manager._on_signal(signal.SIGTERM, None)
        self.assertEqual(self.manager.state, ShutdownState.STOPPED)

    @patch("kosmoo.common.shutdown.signal.signal")
    def test_installs_handlers(self, mock_signal):
        self.manager.install_signal_handlers()
        installed = {c.args[0] for c in mock_signal.call_args_list}
        self.assertEqual(installed, {signal.SIGINT, signal.SIGTERM})


class TestInterruptibleSleep(unittest.TestCase):

    def setUp(self):
        ShutdownManager.reset()
        self.manager = ShutdownManager()

    def tearDown(self):
        ShutdownManager.reset()

    def test_full_sleep(self):
        self.assertTrue(self.manager.sleep(0.05))

    def test_refresh_sleep_cut_short(self):
        timer = threading.Timer(0.1, self.manager.initiate_shutdown)
        timer.start()

        start = time.monotonic()
        completed = self.manager.sleep(30)
        timer.join()

        self.assertFalse(completed)
        self.assertLess(time.monotonic() - start, 10)

    def test_no_sleep_once_stopped(self):
        self.manager.initiate_shutdown()
        self.assertFalse(self.manager.sleep(30))


if __name__ == "__main__":
    unittest.main()
