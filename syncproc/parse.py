"""split command lines into an executable and its arguments

Tokens are separated by whitespace. Quoted spans are taken literally:

>>> parse('echo "hello  world" \\'$HOME\\'').arguments
('hello  world', '$HOME')

Unquoted tokens with glob characters are expanded against the working
directory, sorted; a pattern that matches nothing is passed through as is:

>>> parse('ls *.no-such-extension').arguments
('*.no-such-extension',)

Quoted or escaped patterns are never expanded:

>>> parse('ls "*.py" \\\\*.py').arguments
('*.py', '*.py')

Broken quoting is reported before anything gets spawned:

>>> parse('echo "oops')
Traceback (most recent call last):
...
syncproc.exc.ParseError: unterminated " quote: 'echo "oops'
"""

__all__ = 'ParsedCommand', 'parse', 'parse_args', 'split', 'expand'

import glob
import re
from dataclasses import dataclass
from shlex import join
from typing import Iterable, Optional, Tuple

from .exc import ParseError

GLOB = re.compile(r'[*?[]')
QUOTES = '\'"'
# characters a backslash escapes inside double quotes, as in sh
DQUOTE_ESCAPES = '"\\$`'


@dataclass(frozen=True)
class ParsedCommand:
    executable: str
    arguments: Tuple[str, ...] = ()
    cwd: Optional[str] = None

    @property
    def argv(self):
        return [self.executable, *self.arguments]

    @property
    def command_line(self):
        """the command, quoted so that a shell would split it the same way

        >>> parse_args('echo', ['a b', 'c']).command_line
        "echo 'a b' c"
        """
        return join(self.argv)


def split(command_line):
    """split into (token, literal) pairs

    literal is True for tokens containing any quoted or escaped part

    >>> split('a "b c" d\\\\ e')
    [('a', False), ('b c', True), ('d e', True)]
    """
    tokens = []
    chars = []
    quote = None
    literal = False
    in_token = False

    i, n = 0, len(command_line)
    while i < n:
        c = command_line[i]
        if quote is not None:
            if c == quote:
                quote = None
            elif quote == '"' and c == '\\' and i + 1 < n and command_line[i + 1] in DQUOTE_ESCAPES:
                i += 1
                chars.append(command_line[i])
            else:
                chars.append(c)
        elif c in QUOTES:
            quote = c
            literal = in_token = True
        elif c == '\\':
            if i + 1 == n:
                raise ParseError(command_line, 'trailing escape')
            i += 1
            chars.append(command_line[i])
            literal = in_token = True
        elif c.isspace():
            if in_token:
                tokens.append((''.join(chars), literal))
                chars.clear()
                literal = in_token = False
        else:
            chars.append(c)
            in_token = True
        i += 1

    if quote is not None:
        raise ParseError(command_line, f'unterminated {quote} quote')
    if in_token:
        tokens.append((''.join(chars), literal))
    return tokens


def expand(pattern, cwd=None):
    """expand a glob pattern relative to cwd

    >>> expand('plain')
    ['plain']
    """
    if not GLOB.search(pattern):
        return [pattern]
    matches = sorted(glob.glob(pattern, root_dir=cwd))
    return matches if matches else [pattern]


def expand_all(tokens: Iterable[Tuple[str, bool]], cwd=None):
    return tuple(
        arg
        for token, literal in tokens
        for arg in ((token,) if literal else expand(token, cwd))
    )


def parse(command_line: str, cwd=None) -> ParsedCommand:
    """parse a command line string

    >>> parse('grep -r "some thing" .')
    ParsedCommand(executable='grep', arguments=('-r', 'some thing', '.'), cwd=None)
    """
    tokens = split(command_line)
    if not tokens:
        raise ParseError(command_line, 'empty command')
    (executable, _), *arguments = tokens
    return ParsedCommand(executable, expand_all(arguments, cwd), cwd)


def unquote(arg):
    """strip one level of matching quotes, reporting whether there were any

    >>> unquote('"*.txt"'), unquote('*.txt')
    (('*.txt', True), ('*.txt', False))
    """
    if len(arg) >= 2 and arg[0] in QUOTES and arg[0] == arg[-1]:
        return arg[1:-1], True
    return arg, False


def parse_args(executable: str, args: Iterable[str] = (), cwd=None) -> ParsedCommand:
    """build from an explicit executable and arguments

    Nothing is split, but each argument is still glob-expanded unless it is
    wrapped in quotes.

    >>> parse_args('echo', ['a b', "'*'"]).arguments
    ('a b', '*')
    """
    if not executable:
        raise ParseError(executable, 'empty command')
    return ParsedCommand(executable, expand_all(map(unquote, args), cwd), cwd)
