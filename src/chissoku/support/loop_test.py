import threading
import time
import unittest
from unittest.mock import Mock, call, patch

import timeout_decorator
from hamcrest import assert_that, is_, is_not

from chissoku.protocol.io_test import debug_timeout
from chissoku.support.loop import BackgroundLoop


class NastyException(Exception):
    """ really nasty """


class BackgroundLoopTest(unittest.TestCase):

    @timeout_decorator.timeout(debug_timeout(2))
    def test_real_thread(self):
        thread = None
        loop_thread = None
        sut = None

        def fn():
            nonlocal thread, loop_thread
            thread = threading.current_thread()
            loop_thread = sut.background_thread
        loop = Mock(side_effect=fn)
        sut = BackgroundLoop(loop, name="test-loop")
        sut.startup = Mock()
        sut.shutdown = Mock()
        sut.start()
        while not loop.call_count:
            time.sleep(0)

        assert_that(thread, is_not(None))
        assert_that(thread, is_(loop_thread))
        assert_that(thread.name, is_("test-loop"))
        assert_that(thread.daemon, is_(True))
        assert_that(sut.running(), is_(True))
        sut.stop()
        assert_that(sut.running(), is_(False))
        assert_that(thread.is_alive(), is_(False))
        sut.shutdown.assert_called_once()
        sut.startup.assert_called_once()

    def test_run_invokes_startup_shutdown_around_loop(self):
        running = Mock(return_value=True)

        def fn():
            if running.call_count > 1:
                running.return_value = False

        loop = Mock(side_effect=fn)
        sut = BackgroundLoop(loop)
        sut.shutdown = Mock()
        sut.startup = Mock()
        sut.running = running
        manager = Mock()
        manager.attach_mock(sut.startup, 'startup')
        manager.attach_mock(sut.shutdown, 'shutdown')
        manager.attach_mock(loop, 'loop')
        sut._run()
        self.assertEqual(manager.mock_calls, [call.startup(), call.loop(), call.loop(), call.shutdown()])

    def test_an_exception_does_not_stop_the_loop(self):
        running = Mock(return_value=True)
        error = NastyException()

        def fn():
            if running.call_count == 10:
                running.return_value = False
            raise error

        loop = Mock(side_effect=fn)
        sut = BackgroundLoop(loop)
        sut.running = running
        sut.exception_handler = Mock()
        sut._run()
        self.assertEqual(loop.call_count, 10)
        self.assertEqual(sut.exception_handler.call_count, 10)
        sut.exception_handler.assert_called_with(error)

    def test_loop_passes_args(self):
        fn = Mock()
        sut = BackgroundLoop(fn, args=(1, "a"))
        sut.loop()
        fn.assert_called_once_with(1, "a")

    @patch('threading.Thread')
    def test_starting_an_already_started_loop(self, thread):
        sut = BackgroundLoop(Mock())
        the_thread = Mock()
        thread.return_value = the_thread
        sut.start()
        thread.assert_called_once_with(target=sut._run, name=None, daemon=True)
        the_thread.start.assert_called_once()
        thread.reset_mock()
        sut.start()
        thread.assert_not_called()

    def test_stop_when_not_started_is_harmless(self):
        sut = BackgroundLoop()
        sut.stop()
        sut.join()
        assert_that(sut.running(), is_(False))

    @timeout_decorator.timeout(debug_timeout(2))
    def test_stop_from_the_loop_itself(self):
        sut = None

        def fn():
            sut.stop()
        sut = BackgroundLoop(fn)
        sut.start()
        sut.join()
        assert_that(sut.running(), is_(False))
