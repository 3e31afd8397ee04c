import time


class RetryStrategy:
    """ decides how long to wait before an operation is tried again. The base strategy never waits. """

    def __call__(self, current_time=time.monotonic):
        return 0

    def reset(self):
        pass


class PeriodRetryStrategy(RetryStrategy):
    """
    Allows an operation to be tried once per period. The first call always allows a try.

    :param retry_period: The retry period in seconds.
    :param last_tried: the time of the previous try, or None if never tried.
    """

    def __init__(self, retry_period, last_tried=None):
        self.retry_period = retry_period
        self.last_tried = last_tried

    def __call__(self, current_time=time.monotonic, dry_run=False):
        """
        :param current_time: the current time, or a callable returning it.
        :param dry_run: when True, a try is not recorded.
        :return: the number of seconds until the operation may be tried. A value <= 0
            means try now, and unless dry_run is set the period restarts from current_time.
        """
        if callable(current_time):
            current_time = current_time()
        result = self._time_to_retry(current_time)
        if not dry_run and result <= 0:
            self.last_tried = current_time
        return result

    def reset(self):
        """ forgets the last try, so the next call allows an immediate try. """
        self.last_tried = None

    def _time_to_retry(self, current_time):
        return 0 if self.last_tried is None else self.retry_period - (current_time - self.last_tried)

    def __eq__(self, other):
        return isinstance(other, PeriodRetryStrategy) and \
            (self.retry_period, self.last_tried) == (other.retry_period, other.last_tried)

    def __repr__(self):
        return "PeriodRetryStrategy(%r, last_tried=%r)" % (self.retry_period, self.last_tried)
