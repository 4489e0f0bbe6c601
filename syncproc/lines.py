"""incremental UTF-8 decoding and line splitting

Chunks arrive however the OS hands them over; lines come out whole, with
universal newline handling, even when a character or a \\r\\n pair is split
across chunks:

>>> lines = LineDecoder()
>>> lines.feed(b'one\\r'), lines.feed(b'\\ntw'), lines.feed(b'o\\rthree\\xe2\\x82')
([], ['one'], ['two'])
>>> lines.feed(b'\\xac\\n'), lines.feed(b'tail')
(['three€'], [])
>>> lines.flush()
['tail']
"""

__all__ = 'LineDecoder',

import codecs
import io


class LineDecoder:
    def __init__(self, encoding='utf-8', errors='replace'):
        self.decoder = io.IncrementalNewlineDecoder(
            codecs.getincrementaldecoder(encoding)(errors),
            translate=True,
        )
        self.pending = ''

    def feed(self, data, final=False):
        """decode data and return the lines it completed"""
        text = self.pending + self.decoder.decode(data, final)
        *lines, self.pending = text.split('\n')
        return lines

    def flush(self):
        """end of stream: return the unterminated last line, if any"""
        lines = self.feed(b'', final=True)
        if self.pending:
            lines.append(self.pending)
            self.pending = ''
        return lines
