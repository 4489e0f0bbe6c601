"""spawn processes and wait on them as if asyncio were not there

Running a process sends each line it writes to a Sink:

>>> from syncproc.sink import Collector
>>> Process('echo abc').run(Collector()).lines
['abc']

Failures raise, unless asked not to:

>>> Process('sh -c "exit 3"').run()
Traceback (most recent call last):
...
syncproc.exc.RunError: The command [sh -c 'exit 3'] failed with exit code 3
>>> Process('sh -c "exit 3"').run(nothrow=True).exit_code
3

A missing executable fails when starting:

>>> Process('no-such-program-xyz').start()
Traceback (most recent call last):
...
syncproc.exc.StartError: Could not find no-such-program-xyz on the path.

Processes chain into pipes with |:

>>> (Process('printf "b\\\\na\\\\n"') | 'sort').to_list()
['a', 'b']
"""

__all__ = 'Process', 'State', 'CHUNK_SIZE', 'SIGPIPE'

import asyncio
import os
import signal
import subprocess
from enum import Enum
from shlex import join, split

from .exc import ProcessStateError, RunError, StartError
from .lines import LineDecoder
from .parse import ParsedCommand, parse, parse_args
from .settings import Settings
from .sink import Sink

CHUNK_SIZE = 1 << 16
# what a writer into a closed pipe receives from the shell
SIGPIPE = getattr(signal, 'SIGPIPE', signal.SIGTERM)


class State(Enum):
    UNSTARTED = 'unstarted'
    STARTING = 'starting'
    RUNNING = 'running'
    COMPLETED = 'completed'
    FAILED = 'failed'
    START_FAILED = 'start failed'


def get_shell(shell):
    """the argv prefix for running through a shell

    >>> get_shell(True), get_shell('bash'), get_shell('zsh -e -c')
    (['sh', '-c'], ['bash', '-c'], ['zsh', '-e', '-c'])
    """
    if shell is True:
        shell = 'sh -c'
    if isinstance(shell, str):
        shell = split(shell)
        if len(shell) == 1:
            shell.append('-c')
    return list(shell)


class Process:
    """one child process, started at most once

    The lifecycle is UNSTARTED -> STARTING -> RUNNING and then COMPLETED or
    FAILED, or STARTING -> START_FAILED when the spawn itself goes wrong.

    Every blocking call (waiting for the spawn, draining the output, waiting
    for the exit) is a wait on the Bridge from settings, which runs the
    asyncio loop that does the actual work.
    """
    def __init__(self, command_line, cwd=None, *, settings=None):
        """
        command_line: split with syncproc.parse.parse(), globs expanded
        cwd: working directory for the child and for glob expansion
        settings: a Settings; the default one is read from the environment
        """
        if isinstance(command_line, ParsedCommand):
            self.parsed = command_line
            self.raw = None
        else:
            self.parsed = parse(command_line, cwd)
            # handed to the shell as written when shell=True
            self.raw = command_line
        self.cwd = self.parsed.cwd
        self.settings = Settings.from_env() if settings is None else settings
        self.bridge = self.settings.get_bridge()
        self.state = State.UNSTARTED
        self.exit_code = None
        self.pending = None
        # set when a Pipe feeds our stdin
        self.piped = False
        self.mode = None

    @classmethod
    def from_args(cls, executable, args=(), cwd=None, *, settings=None):
        """like Process(), but without splitting

        >>> Process.from_args('echo', ['a  b']).parsed.arguments
        ('a  b',)
        """
        return cls(parse_args(executable, args, cwd), settings=settings)

    @property
    def executable(self):
        return self.parsed.executable

    @property
    def arguments(self):
        return list(self.parsed.arguments)

    @property
    def command_line(self):
        return self.parsed.command_line

    def __repr__(self):
        return f'{type(self).__name__}({self.command_line!r}, state={self.state.value!r})'

    def start(self, shell=False, detached=False, wait_for_start=True, terminal=False):
        """spawn the process

        shell: False to exec directly, True for sh -c, or a shell such as 'bash'
        detached: don't attach any I/O and never wait on the process;
                  poll() reaps it once it has finished
        wait_for_start: block until the spawn succeeds or fails
        terminal: give the child our own stdin/stdout/stderr

        Returns self, so that start() can be chained.
        """
        if self.state is not State.UNSTARTED:
            raise ProcessStateError(f'{self!r} was already started')
        if terminal and detached:
            raise ProcessStateError('terminal and detached cannot be combined')

        self.mode = 'detached' if detached else 'terminal' if terminal else 'normal'
        self.state = State.STARTING
        self.settings.log(
            'Process.start: %s (cwd=%s, shell=%r, mode=%s)',
            self.command_line, self.workdir, shell, self.mode,
        )
        self.pending = self.bridge.submit(self._spawn(shell))
        if wait_for_start:
            self.bridge.wait(self.pending)
            self.settings.log('Process.start returned, pid=%s', self.pid)
        return self

    @property
    def workdir(self):
        return os.getcwd() if self.cwd is None else os.fspath(self.cwd)

    async def _spawn(self, shell):
        workdir = self.workdir
        env = self.settings.env
        argv = self.parsed.argv
        if shell:
            argv = get_shell(shell) + [join(argv) if self.raw is None else self.raw]
        try:
            if self.mode == 'detached':
                process = subprocess.Popen(
                    argv, cwd=workdir, env=env, start_new_session=True,
                    stdin=subprocess.DEVNULL, stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL,
                )
            else:
                streams = {} if self.mode == 'terminal' else dict(
                    stdin=asyncio.subprocess.PIPE,
                    stdout=asyncio.subprocess.PIPE,
                    stderr=asyncio.subprocess.PIPE,
                )
                process = await asyncio.create_subprocess_exec(*argv, cwd=workdir, env=env, **streams)
        except FileNotFoundError as e:
            self.state = State.START_FAILED
            if e.filename == workdir and not os.path.isdir(workdir):
                reason = f'Working directory {workdir} does not exist.'
            else:
                reason = f'Could not find {self.executable} on the path.'
            raise StartError(self.executable, self.arguments, reason, e.errno) from e
        except OSError as e:
            self.state = State.START_FAILED
            reason = f'Could not start {self.executable}: {e.strerror or e}'
            raise StartError(self.executable, self.arguments, reason, e.errno) from e
        self.state = State.RUNNING
        return process

    @property
    def process(self):
        """the underlying process object, waiting for the spawn if needed"""
        if self.pending is None:
            raise ProcessStateError(f'{self!r} was never started')
        if not self.pending.done():
            return self.bridge.wait(self.pending)
        return self.pending.result()

    @property
    def pid(self):
        return self.process.pid

    @property
    def stdin(self):
        """raw asyncio.StreamWriter for the child's standard input"""
        return self.process.stdin

    @property
    def stdout(self):
        """raw asyncio.StreamReader for the child's standard output"""
        return self.process.stdout

    @property
    def stderr(self):
        """raw asyncio.StreamReader for the child's standard error"""
        return self.process.stderr

    def run(self, sink=None, shell=False, detached=False, terminal=False, nothrow=False):
        """start the process and, unless detached, drain it to completion

        sink: receives every line; a devnull sink by default
        nothrow: record a nonzero exit code on the sink instead of raising

        The sink is closed on the way out, error or not, and returned.
        """
        sink = Sink.devnull() if sink is None else sink
        try:
            self.start(shell=shell, detached=detached, terminal=terminal)
            if terminal:
                self.bridge.wait(self._wait_for_exit(sink, nothrow))
            elif not detached:
                self.process_until_exit(sink, nothrow)
        finally:
            sink.close()
        return sink

    def process_until_exit(self, sink=None, nothrow=False):
        """forward every output line to sink and block until the process exits"""
        if self.state is State.UNSTARTED:
            raise ProcessStateError(f'{self!r} was never started')
        if self.mode != 'normal':
            raise ProcessStateError(f'cannot read the output of a {self.mode} process')
        sink = Sink.devnull() if sink is None else sink
        self.bridge.wait(self.drain(sink, nothrow))
        return sink

    async def drain(self, sink, nothrow):
        process = await self.pending
        if not self.piped:
            await close_stdin(process)
        readers = [
            asyncio.ensure_future(read_lines(process.stdout, sink.add_to_stdout)),
            asyncio.ensure_future(read_lines(process.stderr, sink.add_to_stderr)),
        ]
        try:
            await asyncio.gather(*readers)
        except Exception:
            # the sink refused a line: stop feeding it and reap the child
            for reader in readers:
                reader.cancel()
            await asyncio.gather(*readers, return_exceptions=True)
            send_sigpipe(process)
            self.exited(await process.wait())
            self.state = State.FAILED
            raise
        self.exited(await process.wait(), sink, nothrow)

    async def _wait_for_exit(self, sink, nothrow):
        process = await self.pending
        self.exited(await process.wait(), sink, nothrow)

    def poll(self):
        """the exit code if the process has finished, else None

        Detached processes are never waited on, so this is what reaps them.
        """
        if self.mode == 'detached' and self.state is State.RUNNING:
            exit_code = self.process.poll()
            if exit_code is not None:
                self.exited(exit_code)
        return self.exit_code

    def exited(self, exit_code, sink=None, nothrow=True):
        """record the exit code, raising RunError for failures unless nothrow"""
        self.exit_code = exit_code
        if sink is not None:
            sink.exit_code = exit_code
        self.settings.log('Process exited: %s -> %s', self.command_line, exit_code)
        if exit_code != 0 and not nothrow:
            self.state = State.FAILED
            raise RunError(
                self.executable, self.arguments,
                f'The command [{self.command_line}] failed with exit code {exit_code}',
                exit_code,
            )
        self.state = State.COMPLETED

    def __or__(self, other):
        """pipe our stdout and stderr into another process

        other: a Process or a command line, started without waiting if needed
        """
        from .pipe import Pipe
        if isinstance(other, str):
            other = type(self)(other, settings=self.settings)
        for process in self, other:
            if process.state is State.UNSTARTED:
                process.start(wait_for_start=False)
        return Pipe(self, other)


async def read_lines(reader, action, chunk_size=CHUNK_SIZE):
    """call action with each decoded line from reader until EOF"""
    lines = LineDecoder()
    while True:
        chunk = await reader.read(chunk_size)
        if not chunk:
            break
        for line in lines.feed(chunk):
            action(line)
    for line in lines.flush():
        action(line)


def send_sigpipe(process):
    """end a process whose output nobody reads any more"""
    if process.returncode is None:
        try:
            os.kill(process.pid, SIGPIPE)
        except ProcessLookupError:
            pass


async def close_stdin(process):
    """close a child's stdin, ignoring a child that already went away"""
    if process.stdin is None or process.stdin.is_closing():
        return
    process.stdin.close()
    try:
        await process.stdin.wait_closed()
    except (BrokenPipeError, ConnectionResetError):
        pass
