r"""syncproc - blocking process calls and pipes on top of asyncio

Processes are spawned and read through asyncio, but every call blocks until
its work is done, so a script reads top to bottom:

>>> Process('echo abc').run(Collector()).lines
['abc']

Output is delivered a line at a time to a Sink, which has one consumer for
stdout and one for stderr:

>>> out, err = [], []
>>> Process('sh -c "echo out; echo err >&2"').run(Sink(out.append, err.append)).exit_code
0
>>> out, err
(['out'], ['err'])

A nonzero exit raises RunError, unless nothrow is set:

>>> try: Process('false').run()
... except RunError as e: print(e.exit_code)
...
1
>>> Process('false').run(nothrow=True).exit_code
1

Command lines are split like a shell would, quotes included, and globs in
unquoted words are expanded against the working directory (or left alone if
they match nothing):

>>> Process('echo "a  b" *.no-such-extension').parsed.arguments
('a  b', '*.no-such-extension')

Processes chain with |, and the stages run concurrently. Everything the left
side writes (stdout and stderr) goes to the right side's stdin; only the
last stage's output comes back:

>>> (Process('printf "b\na\n"') | 'sort' | 'head -n 1').to_list()
['a']

Processes can also be run through a shell, given our own terminal, or be
detached and left alone:

>>> Process('echo $((1 + 2))').run(Collector(), shell=True).lines
['3']

The same things are available as funcpipes pipes:

>>> 'echo xyz' | to_list
['xyz']
>>> 'echo xyz | tr a-z A-Z' | first_line.sh
'XYZ'
"""

from .bridge import Bridge, get_bridge  # noqa: F401
from .exc import *  # noqa: F401 F403
from .parse import ParsedCommand, parse, parse_args  # noqa: F401
from .pipe import Pipe  # noqa: F401
from .process import Process, State  # noqa: F401
from .settings import Settings  # noqa: F401
from .sink import Sink, Collector  # noqa: F401
from .util import *  # noqa: F401 F403
