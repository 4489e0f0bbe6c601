"""exceptions raised by syncproc

Everything derives from SyncProcError, so a script can catch the whole family:

>>> try:
...     raise StartError('nope', ['-x'], 'Could not find nope on the path.')
... except SyncProcError as e:
...     print(e)
...
Could not find nope on the path.
"""

__all__ = (
    'SyncProcError', 'ParseError', 'RunError', 'StartError',
    'SinkClosedError', 'ProcessStateError', 'BridgeError',
)

from shlex import join


class SyncProcError(Exception):
    """base class for all syncproc errors"""


class ParseError(SyncProcError, ValueError):
    """a command line could not be split into arguments"""
    def __init__(self, command_line, reason):
        self.command_line = command_line
        self.reason = reason
        super().__init__(f'{reason}: {command_line!r}')


class RunError(SyncProcError):
    """a process exited with a nonzero status

    >>> e = RunError('ls', ['/missing'], 'ls failed', exit_code=2)
    >>> e.command_line, e.exit_code
    ('ls /missing', 2)
    """
    def __init__(self, executable, arguments, reason, exit_code=None):
        self.executable = executable
        self.arguments = list(arguments)
        self.exit_code = exit_code
        self.reason = reason
        super().__init__(reason)

    @property
    def command_line(self):
        return join([self.executable, *self.arguments])


class StartError(RunError):
    """a process could not be spawned (missing executable, bad cwd, ...)"""
    def __init__(self, executable, arguments, reason, errno=None):
        super().__init__(executable, arguments, reason)
        self.errno = errno


class SinkClosedError(SyncProcError, RuntimeError):
    """a line or exit code was delivered to a sink after it was closed"""


class ProcessStateError(SyncProcError, RuntimeError):
    """an operation does not fit the lifecycle state of a process"""


class BridgeError(SyncProcError, RuntimeError):
    """a bridging wait was issued while another one was outstanding"""
