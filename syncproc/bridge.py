"""blocking waits on top of an asyncio event loop

A Bridge owns an event loop that nobody else runs. Waiting on something
pumps that loop until the awaitable resolves, so the caller sees an ordinary
blocking call:

>>> import asyncio
>>> bridge = Bridge()
>>> bridge.wait(asyncio.sleep(0, 'done'))
'done'

Failures come back out as if the call had been synchronous:

>>> async def fail():
...     raise KeyError('x')
...
>>> try: bridge.wait(fail())
... except KeyError as e: print(repr(e))
...
KeyError('x')

Work can be queued without waiting for it; it makes progress whenever the
loop is pumped by a later wait:

>>> task = bridge.submit(asyncio.sleep(0, 42))
>>> bridge.wait(task)
42
>>> bridge.close()
"""

__all__ = 'Bridge', 'get_bridge'

import asyncio
import threading

from .exc import BridgeError


class Bridge:
    """an event loop driven only by blocking waits

    There is no timeout: a wait on something that never resolves blocks
    forever. Waits do not nest; a wait issued from inside a coroutine or
    callback that the loop is running raises BridgeError instead of
    deadlocking:

    >>> bridge = Bridge()
    >>> async def nested():
    ...     bridge.wait(asyncio.sleep(0))
    ...
    >>> try: bridge.wait(nested())
    ... except BridgeError as e: print(e)
    ...
    bridging wait issued while another one is outstanding
    >>> bridge.close()
    """
    def __init__(self, loop=None):
        self.loop = asyncio.new_event_loop() if loop is None else loop
        self.waiting = False

    def submit(self, awaitable) -> asyncio.Future:
        """schedule a coroutine or future on the loop and return its future"""
        return asyncio.ensure_future(awaitable, loop=self.loop)

    def wait(self, awaitable):
        """pump the loop until awaitable resolves and return its result"""
        if self.waiting or self.loop.is_running():
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise BridgeError('bridging wait issued while another one is outstanding')
        self.waiting = True
        try:
            return self.loop.run_until_complete(awaitable)
        finally:
            self.waiting = False

    def close(self):
        """cancel whatever is still pending and close the loop"""
        if self.loop.is_closed():
            return
        pending = asyncio.all_tasks(self.loop)
        for task in pending:
            task.cancel()
        if pending:
            self.loop.run_until_complete(asyncio.gather(*pending, return_exceptions=True))
        self.loop.close()

    @property
    def closed(self):
        return self.loop.is_closed()

    def __repr__(self):
        return f'{type(self).__name__}({self.loop!r})'

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, exc_traceback):
        self.close()


_local = threading.local()


def get_bridge() -> Bridge:
    """the calling thread's bridge, created on first use

    >>> get_bridge() is get_bridge()
    True
    """
    bridge = getattr(_local, 'bridge', None)
    if bridge is None or bridge.closed:
        bridge = _local.bridge = Bridge()
    return bridge
