import threading

from errors import Cancelled


class CancellationToken:
    """
    Cooperative cancellation. The engines call check() between iterations;
    cancel() may be called from any thread.
    """

    def __init__(self):
        self._event = threading.Event()

    def cancel(self):
        self._event.set()

    @property
    def cancelled(self):
        return self._event.is_set()

    def check(self):
        if self._event.is_set():
            raise Cancelled('Execution cancelled')


class ExecutionMonitor:
    """
    Bundles the optional progress callback and cancellation token of one run.
    The reported fraction never decreases.
    """

    def __init__(self, progress=None, cancellation=None, verbose=False, name=None):
        self.progress = progress
        self.cancellation = cancellation
        self.verbose = verbose
        self.name = name
        self.fraction = 0.0

    def start(self):
        self.fraction = 0.0

    def check(self):
        if self.cancellation is not None:
            self.cancellation.check()

    def report(self, fraction, message=''):
        self.fraction = min(1.0, max(self.fraction, float(fraction)))
        if self.progress is not None:
            self.progress(self.fraction, message)

    def log(self, message):
        if self.verbose:
            print(f'[{self.name}] {message}')
