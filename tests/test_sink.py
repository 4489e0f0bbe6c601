"""Tests for sinks."""

import pytest

from syncproc import Collector, Sink, SinkClosedError


class TestSink:
    def test_streams_go_to_their_actions(self):
        out, err = [], []
        sink = Sink(out.append, err.append)
        sink.add_to_stdout('1')
        sink.add_to_stderr('2')
        sink.add_to_stdout('3')
        assert out == ['1', '3']
        assert err == ['2']

    def test_devnull(self):
        sink = Sink.devnull()
        sink.add_to_stdout('x')
        sink.add_to_stderr('y')
        assert sink.exit_code is None

    def test_close_is_idempotent(self):
        sink = Sink()
        sink.close()
        sink.close()
        assert sink.closed

    def test_closed_sink_rejects_lines(self):
        sink = Sink()
        sink.close()
        with pytest.raises(SinkClosedError):
            sink.add_to_stdout('x')
        with pytest.raises(SinkClosedError):
            sink.add_to_stderr('x')

    def test_exit_code_final_after_close(self):
        sink = Sink()
        sink.exit_code = 2
        sink.close()
        with pytest.raises(SinkClosedError):
            sink.exit_code = 0
        assert sink.exit_code == 2

    def test_print(self, capsys):
        sink = Sink.print()
        sink.add_to_stdout('out')
        sink.add_to_stderr('err')
        captured = capsys.readouterr()
        assert captured.out == 'out\n'
        assert captured.err == 'err\n'


class TestCollector:
    def test_collects_in_order(self):
        c = Collector()
        c.add_to_stdout('a')
        c.add_to_stderr('b')
        c.add_to_stdout('c')
        assert c.lines == ['a', 'b', 'c']
        assert c.stdout == ['a', 'c']
        assert c.stderr == ['b']

    def test_first_line(self):
        c = Collector()
        assert c.first_line() is None
        c.add_to_stderr('e')
        assert c.first_line() == 'e'
