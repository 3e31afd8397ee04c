import threading
from queue import Empty, Queue


class EventSource(object):
    """
    Keeps a list of handlers and calls each of them with the fired event.
    Handlers may be added and removed from any thread. A handler added while an
    event is being fired receives the next event, not the current one.
    """

    def __init__(self):
        self._handlers = []
        self._lock = threading.Lock()

    def __iadd__(self, handler):
        return self.add(handler)

    def __isub__(self, handler):
        return self.remove(handler)

    def add(self, handler):
        with self._lock:
            if handler not in self._handlers:
                self._handlers.append(handler)
        return self

    def remove(self, handler):
        with self._lock:
            if handler in self._handlers:
                self._handlers.remove(handler)
        return self

    def handlers(self):
        with self._lock:
            return tuple(self._handlers)

    def fire(self, *args, **kwargs):
        for handler in self.handlers():
            handler(*args, **kwargs)


class EventQueue(EventSource):
    """
    An event source where fire() only posts the event. The events are delivered to the
    handlers in the order they were posted, on whichever thread calls publish(), or they
    can be consumed directly by a single reader with take().
    """

    def __init__(self):
        super().__init__()
        self.event_queue = Queue()

    def fire(self, event):
        self.event_queue.put(event)

    def take(self, timeout=None):
        """
        Removes the next event from the queue.
        :param timeout: how long to wait for an event, in seconds. None waits forever.
        :return: the next event, or None if no event arrived within the timeout.
        """
        try:
            return self.event_queue.get(timeout=timeout)
        except Empty:
            return None

    def publish(self):
        """ delivers any queued events to the handlers on the calling thread. """
        queue = self.event_queue
        while not queue.empty():
            event = queue.get()
            for handler in self.handlers():
                handler(event)
