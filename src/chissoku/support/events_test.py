import threading
import unittest
from unittest.mock import Mock

from hamcrest import assert_that, is_, empty

from chissoku.support.events import EventSource


class EventsTest(unittest.TestCase):

    def test_handlers_empty(self):
        sut = EventSource()
        assert_that(sut.handlers(), is_(empty()))

    def test_manage_handlers(self):
        sut = EventSource()
        m1 = Mock()
        sut.add(m1)
        assert_that(sut.handlers(), is_((m1,)))

        sut.remove(m1)
        assert_that(sut.handlers(), is_(empty()))

        sut.remove(m1)
        assert_that(sut.handlers(), is_(empty()))

        sut += m1
        assert_that(sut.handlers(), is_((m1,)))

        sut -= m1
        assert_that(sut.handlers(), is_(empty()))

    def test_no_listeners(self):
        sut = EventSource()
        sut.fire(1)

    def test_listeners_called_in_order(self):
        sut = EventSource()
        manager = Mock()
        sut += manager.first
        sut += manager.second
        sut.fire(1, v="hey")
        assert_that(manager.mock_calls[0][0], is_("first"))
        manager.first.assert_called_once_with(1, v="hey")
        manager.second.assert_called_once_with(1, v="hey")

    def test_handler_may_remove_itself_while_firing(self):
        sut = EventSource()
        other = Mock()

        def once():
            sut.remove(once)
        sut += once
        sut += other
        sut.fire()
        other.assert_called_once_with()
        assert_that(sut.handlers(), is_((other,)))

    def test_concurrent_registration(self):
        sut = EventSource()
        handlers = [Mock() for _ in range(50)]
        threads = [threading.Thread(target=sut.add, args=(h,)) for h in handlers]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert_that(len(sut.handlers()), is_(50))
