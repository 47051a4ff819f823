import threading


class EventSource(object):
    """
    Calls each registered handler, in the order registered, whenever the event fires.
    Registration may happen on any thread; handlers run on the thread calling fire().
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._handlers = ()

    def __iadd__(self, handler):
        return self.add(handler)

    def __isub__(self, handler):
        return self.remove(handler)

    def add(self, handler):
        with self._lock:
            self._handlers += (handler,)
        return self

    def remove(self, handler):
        with self._lock:
            if handler in self._handlers:
                handlers = list(self._handlers)
                handlers.remove(handler)
                self._handlers = tuple(handlers)
        return self

    def handlers(self):
        return self._handlers

    def fire(self, *args, **kwargs):
        # handlers added or removed while firing take effect on the next fire
        for handler in self._handlers:
            handler(*args, **kwargs)
