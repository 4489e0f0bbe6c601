r"""one-call helpers, usable as funcpipes pipes

>>> run('echo abc').exit_code
0
>>> 'printf "x\ny\n"' | to_list
['x', 'y']
>>> 'echo first; echo second' | first_line.sh
'first'
>>> 'exit 4' | run.sh.nothrow | get.exit_code
4

for_each takes the line consumers by keyword:

>>> 'echo hi' | for_each.partial(stdout=print)
hi
Sink(closed, exit_code=0)
"""

__all__ = (
    'start', 'run', 'for_each', 'to_list', 'first_line',
    'to', 'get', 'now',
)

from funcpipes import Pipe, to, get, now

from .process import Process
from .sink import Collector, Sink, discard


@Pipe
def start(command_line, cwd=None, *, settings=None, **options):
    """start a Process and return it, see Process.start()"""
    return Process(command_line, cwd, settings=settings).start(**options)


@Pipe
def run(command_line, cwd=None, *, sink=None, settings=None, **options):
    """run a Process to completion and return its sink, see Process.run()"""
    return Process(command_line, cwd, settings=settings).run(sink, **options)


@Pipe
def for_each(command_line, cwd=None, *, stdout=discard, stderr=discard, **options):
    """run, calling stdout and stderr with each line"""
    return run(command_line, cwd, sink=Sink(stdout, stderr), **options)


@Pipe
def to_list(command_line, cwd=None, **options):
    """run and collect stdout and stderr lines in arrival order"""
    return run(command_line, cwd, sink=Collector(), **options).lines


@Pipe
def first_line(command_line, cwd=None, **options):
    """run and return the first line of output, or None"""
    return run(command_line, cwd, sink=Collector(), **options).first_line()


for func in start, run, for_each, to_list, first_line:
    func.sh = func.partial(shell=True)

for func in run, for_each, to_list, first_line:
    for w in (func, func.sh):
        w.nothrow = w.partial(nothrow=True)
