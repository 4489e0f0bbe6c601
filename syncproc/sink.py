"""consumers for the lines a process writes

A Sink feeds each stdout line and each stderr line to its own callable:

>>> out = []
>>> sink = Sink(out.append)
>>> sink.add_to_stdout('a'); sink.add_to_stderr('dropped'); sink.add_to_stdout('b')
>>> out
['a', 'b']

Once closed, a sink accepts nothing further:

>>> sink.exit_code = 0
>>> sink.close(); sink.close()
>>> sink.add_to_stdout('c')
Traceback (most recent call last):
...
syncproc.exc.SinkClosedError: Sink is closed

A Collector keeps everything:

>>> c = Collector()
>>> c.add_to_stdout('x'); c.add_to_stderr('y')
>>> c.lines, c.stdout, c.stderr
(['x', 'y'], ['x'], ['y'])
"""

__all__ = 'Sink', 'Collector', 'discard'

import sys

from .exc import SinkClosedError


def discard(line):
    pass


class Sink:
    """two line consumers, an exit code and an open/closed state"""
    def __init__(self, stdout=discard, stderr=discard):
        """
        stdout: called with each line the process writes to standard output
        stderr: called with each line the process writes to standard error
        """
        self.stdout_action = stdout
        self.stderr_action = stderr
        self._exit_code = None
        self.closed = False

    @classmethod
    def devnull(cls):
        """a sink that throws every line away"""
        return cls()

    @classmethod
    def print(cls, file=None, err_file=None):
        """a sink that echoes stdout and stderr lines to our own"""
        def printer(default, stream):
            return lambda line: print(line, file=default() if stream is None else stream)
        return cls(printer(lambda: sys.stdout, file), printer(lambda: sys.stderr, err_file))

    def check_open(self):
        if self.closed:
            raise SinkClosedError(f'{type(self).__name__} is closed')

    def add_to_stdout(self, line):
        self.check_open()
        self.stdout_action(line)

    def add_to_stderr(self, line):
        self.check_open()
        self.stderr_action(line)

    @property
    def exit_code(self):
        return self._exit_code

    @exit_code.setter
    def exit_code(self, value):
        self.check_open()
        self._exit_code = value

    def close(self):
        self.closed = True

    def __repr__(self):
        state = 'closed' if self.closed else 'open'
        return f'{type(self).__name__}({state}, exit_code={self.exit_code!r})'


class Collector(Sink):
    """a sink that accumulates lines for later

    lines holds stdout and stderr in arrival order; stdout and stderr hold
    each stream on its own
    """
    def __init__(self):
        self.lines = []
        self.stdout = []
        self.stderr = []
        super().__init__(self._collect(self.stdout), self._collect(self.stderr))

    def _collect(self, stream):
        def collect(line):
            stream.append(line)
            self.lines.append(line)
        return collect

    def first_line(self):
        return self.lines[0] if self.lines else None
