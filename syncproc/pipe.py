"""shell-style pipelines between processes

A Pipe forwards everything its left process writes, stdout and stderr
alike, to the stdin of its right process. Only the last process's output
reaches the caller:

>>> from syncproc.process import Process
>>> pipe = Process('printf "c\\\\na\\\\nb\\\\n"') | 'sort' | 'head -n 2'
>>> pipe.to_list()
['a', 'b']

The right-hand side going away early is not an error:

>>> (Process('yes') | 'head -n 1').to_list()
['y']
"""

__all__ = 'Pipe',

import asyncio

from .exc import StartError
from .process import CHUNK_SIZE, State, close_stdin, send_sigpipe
from .sink import Collector, Sink, discard


class Pipe:
    """link two started processes: lhs stdout+stderr -> rhs stdin

    Both processes run concurrently. rhs sees EOF once both of lhs's output
    streams are exhausted. Appending with | starts the new stage at once and
    returns a Pipe for (rhs, new stage), remembering self upstream.
    """
    def __init__(self, lhs, rhs, upstream=None):
        for process in lhs, rhs:
            if process.state is State.UNSTARTED:
                raise ValueError(f'{process!r} must be started before it is piped')
            if process.mode != 'normal':
                raise ValueError(f'cannot pipe a {process.mode} process')
        if rhs.piped:
            raise ValueError(f'{rhs!r} already has its stdin piped')
        self.lhs = lhs
        self.rhs = rhs
        self.upstream = upstream
        self.settings = rhs.settings
        self.bridge = rhs.bridge
        self.broken = False
        rhs.piped = True
        self.settings.log('Pipe: %s | %s', lhs.command_line, rhs.command_line)
        self.task = self.bridge.submit(self._pump())

    def __repr__(self):
        return f'{type(self).__name__}({self.lhs!r}, {self.rhs!r})'

    @property
    def exit_code(self):
        """the exit code of the terminal stage, once it finished"""
        return self.rhs.exit_code

    def __or__(self, other):
        """append a stage, given as a command line or a Process"""
        if isinstance(other, str):
            other = type(self.rhs)(other, settings=self.settings)
        if other.state is State.UNSTARTED:
            other.start(wait_for_start=False)
        return type(self)(self.rhs, other, upstream=self)

    def stages(self):
        """the pipes from the head of the chain down to self"""
        pipes = []
        pipe = self
        while pipe is not None:
            pipes.append(pipe)
            pipe = pipe.upstream
        return pipes[::-1]

    async def _pump(self):
        try:
            lhs = await self.lhs.pending
            if not self.lhs.piped:
                await close_stdin(lhs)
            rhs = await started(self.rhs)
            if rhs is None:
                self._break(lhs)
            lock = asyncio.Lock()
            await asyncio.gather(
                self._forward(lhs, lhs.stdout, rhs, lock),
                self._forward(lhs, lhs.stderr, rhs, lock),
            )
        finally:
            # rhs must see EOF even when lhs never started
            rhs = await started(self.rhs)
            if rhs is not None:
                await close_stdin(rhs)
        self.lhs.exited(await lhs.wait())

    async def _forward(self, lhs, reader, rhs, lock):
        while True:
            chunk = await reader.read(CHUNK_SIZE)
            if not chunk:
                return
            if self.broken:
                continue
            async with lock:
                try:
                    rhs.stdin.write(chunk)
                    await rhs.stdin.drain()
                except (BrokenPipeError, ConnectionResetError):
                    self._break(lhs)

    def _break(self, lhs):
        """rhs stopped reading: discard the rest and tell lhs, as sh would"""
        if self.broken:
            return
        self.broken = True
        self.settings.log('Pipe: broken pipe into %s ignored', self.rhs.command_line)
        send_sigpipe(lhs)

    async def drain(self, sink, nothrow=False):
        """drain the terminal stage only; upstream stages finish on their own"""
        try:
            await self.rhs.drain(sink, nothrow)
        finally:
            self._check_upstream()

    def _check_upstream(self):
        """raise the first start failure among the pumps that already ended"""
        failure = None
        for pipe in self.stages():
            task = pipe.task
            if not task.done():
                task.add_done_callback(retrieve)
            elif not task.cancelled() and task.exception() is not None:
                e = task.exception()
                if isinstance(e, StartError):
                    failure = failure or e
                else:
                    self.settings.log('Pipe: %s failed: %r', pipe.lhs.command_line, e)
        if failure is not None:
            raise failure

    def for_each(self, stdout, stderr=discard, nothrow=False):
        """call stdout/stderr with each line of the terminal stage until it exits"""
        sink = Sink(stdout, stderr)
        try:
            self.bridge.wait(self.drain(sink, nothrow))
        finally:
            sink.close()
        return sink

    def to_list(self):
        """stdout and stderr lines of the terminal stage, in arrival order"""
        collector = Collector()
        self.for_each(collector.stdout_action, collector.stderr_action)
        return collector.lines

    def run(self):
        """echo the terminal stage's output to our own stdout and stderr"""
        sink = Sink.print()
        return self.for_each(sink.stdout_action, sink.stderr_action)


def retrieve(task):
    """mark the outcome of a pump nobody waits for as seen"""
    if not task.cancelled():
        task.exception()


async def started(process):
    """the spawned process, or None if it failed to start"""
    try:
        return await process.pending
    except StartError:
        return None
