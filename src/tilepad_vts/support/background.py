"""
Runs a function repeatedly on a background daemon thread until stopped.
"""
import logging
import threading
from typing import Callable

logger = logging.getLogger(__name__)


class BackgroundLoop:
    """ Continually runs a given function on a background thread.
        Exceptions raised by the function are logged and the loop continues.
        Subclasses may override loop() instead of passing a function.
    """

    def __init__(self, fn: Callable=None, args=(), name=None, log=logger):
        """
        :param fn: the function to run
        :param args: arguments to pass to fn
        :param name: the name given to the background thread
        """
        self.fn = fn
        self.args = args
        self.name = name
        self.stop_event = threading.Event()
        self.background_thread = None
        self.logger = log
        self._start_lock = threading.Lock()

    def start(self):
        """ Starts the background thread. Starting a loop that is already started does nothing. """
        with self._start_lock:
            if self.background_thread is None:
                t = threading.Thread(target=self._run, name=self.name, daemon=True)
                self.background_thread = t
                t.start()

    def exception_handler(self, e):
        self.logger.exception(e)

    def _run(self):
        self._do(self.startup)
        while self.running():
            self._do(self.loop)
        self._do(self.shutdown)
        self.logger.debug("background thread %s exiting", self.name)

    def _do(self, callme):
        try:
            callme()
        except Exception as e:
            self.exception_handler(e)

    def startup(self):
        """ template method called when the thread starts """

    def loop(self):
        self.fn(*self.args)

    def shutdown(self):
        """ template method called when the thread exits """

    def running(self):
        return not self.stop_event.is_set()

    def stop(self, wait=True):
        """
        Signals the loop to stop.
        :param wait: when True, waits for the background thread to exit, unless called from that thread.
        """
        self.stop_event.set()
        thread = self.background_thread
        if wait and thread and thread is not threading.current_thread():
            thread.join()

    @property
    def alive(self):
        thread = self.background_thread
        return thread is not None and thread.is_alive() and self.running()
