"""configuration threaded into processes and pipes

There is no global settings object. Every Process and Pipe carries a
Settings value, handed down from whoever created it:

>>> settings = Settings(verbose=True)
>>> settings.verbose, settings.logger.name
(True, 'syncproc')

Defaults can also come from the environment:

>>> import os
>>> os.environ['SYNCPROC_VERBOSE'] = 'yes'
>>> Settings.from_env().verbose
True
>>> del os.environ['SYNCPROC_VERBOSE']
"""

__all__ = 'Settings',

import logging
import os
from dataclasses import dataclass, field, replace
from typing import Mapping, Optional

from .bridge import Bridge, get_bridge

TRUTHY = '1', 'true', 'yes', 'on'


@dataclass(frozen=True)
class Settings:
    verbose: bool = False
    logger: logging.Logger = field(default_factory=lambda: logging.getLogger('syncproc'))
    # None means the bridge of whichever thread asks for it
    bridge: Optional[Bridge] = None
    # None inherits os.environ
    env: Optional[Mapping[str, str]] = None

    @classmethod
    def from_env(cls, environ=None, **overrides):
        """read SYNCPROC_VERBOSE from environ (default: os.environ)"""
        environ = os.environ if environ is None else environ
        verbose = environ.get('SYNCPROC_VERBOSE', '').strip().lower() in TRUTHY
        return cls(**{ 'verbose': verbose, **overrides })

    def get_bridge(self) -> Bridge:
        return get_bridge() if self.bridge is None else self.bridge

    def with_(self, **changes):
        """copy with some fields replaced

        >>> Settings().with_(verbose=True).verbose
        True
        """
        return replace(self, **changes)

    def log(self, msg, *args):
        """log at INFO when verbose, DEBUG otherwise"""
        self.logger.log(logging.INFO if self.verbose else logging.DEBUG, msg, *args)
