"""Tests for running single processes."""

import os
import time

import pytest

from syncproc import (
    Collector, Process, ProcessStateError, RunError, Settings, Sink,
    SinkClosedError, StartError, State,
)

pytestmark = pytest.mark.posix


def lines(command_line, **kwargs):
    return Process(command_line).run(Collector(), **kwargs).lines


class TestRun:
    def test_simple_command(self):
        assert lines('echo hello world') == ['hello world']

    def test_returns_the_sink(self):
        sink = Collector()
        assert Process('true').run(sink) is sink
        assert sink.closed
        assert sink.exit_code == 0

    def test_default_sink(self):
        sink = Process('echo discarded').run()
        assert sink.exit_code == 0

    def test_universal_newlines(self):
        assert lines(r'printf "a\r\nb\rc\n"') == ['a', 'b', 'c']

    def test_unterminated_last_line(self):
        assert lines(r'printf "a\nb"') == ['a', 'b']

    def test_utf8(self):
        assert lines(r'printf "caf\303\251\n"') == ['café']

    def test_stdout_and_stderr_separated(self):
        sink = Process('sh -c "echo 1; echo 2 >&2; echo 3"').run(Collector())
        assert sink.stdout == ['1', '3']
        assert sink.stderr == ['2']

    def test_many_lines_in_order(self):
        assert lines('seq 1 20000') == [str(i) for i in range(1, 20001)]

    def test_from_args(self):
        sink = Process.from_args('echo', ['a  b', 'c']).run(Collector())
        assert sink.lines == ['a  b c']

    def test_stdin_is_closed(self):
        assert lines('cat') == []

    def test_cwd(self, tmp_path):
        sink = Process('pwd', tmp_path).run(Collector())
        assert os.path.realpath(sink.lines[0]) == os.path.realpath(tmp_path)

    def test_glob_in_cwd(self, tmp_path):
        for name in 'b.txt', 'a.txt':
            (tmp_path / name).write_text('')
        assert Process('echo *.txt "*.txt"', tmp_path).run(Collector()).lines == ['a.txt b.txt *.txt']

    def test_unmatched_glob_passed_through(self, tmp_path):
        assert Process('echo *.none', tmp_path).run(Collector()).lines == ['*.none']

    def test_env(self):
        env = {'PATH': os.environ['PATH'], 'SYNCPROC_TEST': 'value'}
        process = Process('sh -c "echo $SYNCPROC_TEST"', settings=Settings(env=env))
        assert process.run(Collector()).lines == ['value']


class TestShell:
    def test_shell_true(self):
        assert lines('echo a; echo b', shell=True) == ['a', 'b']

    def test_named_shell(self):
        assert lines('echo $((2 * 3))', shell='sh') == ['6']

    def test_parsed_command_through_shell(self):
        sink = Process.from_args('echo', ['a;b']).run(Collector(), shell=True)
        assert sink.lines == ['a;b']


class TestFailure:
    def test_nonzero_raises(self):
        with pytest.raises(RunError) as excinfo:
            Process('sh -c "exit 3"').run()
        error = excinfo.value
        assert error.exit_code == 3
        assert error.executable == 'sh'
        assert error.arguments == ['-c', 'exit 3']
        assert '3' in str(error)

    def test_output_before_failure_kept(self):
        sink = Collector()
        with pytest.raises(RunError):
            Process('sh -c "echo partial; exit 1"').run(sink)
        assert sink.lines == ['partial']
        assert sink.closed
        assert sink.exit_code == 1

    def test_nothrow(self):
        sink = Process('sh -c "exit 7"').run(nothrow=True)
        assert sink.exit_code == 7

    def test_failed_state(self):
        process = Process('false')
        with pytest.raises(RunError):
            process.run()
        assert process.state is State.FAILED
        assert process.exit_code == 1


class TestStartFailure:
    def test_missing_executable_run(self):
        sink = Collector()
        with pytest.raises(StartError) as excinfo:
            Process('no-such-program-syncproc --flag').run(sink)
        error = excinfo.value
        assert error.executable == 'no-such-program-syncproc'
        assert error.arguments == ['--flag']
        assert 'no-such-program-syncproc' in str(error)
        assert sink.lines == []
        assert sink.closed

    def test_missing_executable_start(self):
        process = Process('no-such-program-syncproc')
        with pytest.raises(StartError):
            process.start()
        assert process.state is State.START_FAILED

    def test_start_error_is_run_error(self):
        with pytest.raises(RunError):
            Process('no-such-program-syncproc').start()

    def test_missing_executable_without_waiting(self):
        process = Process('no-such-program-syncproc').start(wait_for_start=False)
        with pytest.raises(StartError):
            process.process_until_exit()

    def test_missing_cwd(self, tmp_path):
        with pytest.raises(StartError, match='does not exist'):
            Process('true', str(tmp_path / 'gone')).start()


class TestLifecycle:
    def test_states(self):
        process = Process('true')
        assert process.state is State.UNSTARTED
        process.start()
        assert process.state is State.RUNNING
        assert isinstance(process.pid, int)
        process.process_until_exit()
        assert process.state is State.COMPLETED
        assert process.exit_code == 0

    def test_start_once(self):
        process = Process('true').start()
        with pytest.raises(ProcessStateError):
            process.start()
        process.process_until_exit()

    def test_drain_unstarted(self):
        with pytest.raises(ProcessStateError):
            Process('true').process_until_exit()

    def test_start_without_waiting(self):
        process = Process('echo late').start(wait_for_start=False)
        assert process.state is State.STARTING
        sink = process.process_until_exit(Collector())
        assert sink.lines == ['late']

    def test_terminal_and_detached(self):
        with pytest.raises(ProcessStateError):
            Process('true').start(terminal=True, detached=True)

    def test_write_to_stdin(self):
        process = Process('cat').start()
        process.stdin.write(b'fed\n')
        assert process.process_until_exit(Collector()).lines == ['fed']


class TestModes:
    def test_detached(self):
        process = Process('sleep 0')
        sink = process.run(detached=True)
        assert sink.closed
        assert sink.exit_code is None
        assert isinstance(process.pid, int)
        process.process.wait()

    def test_detached_reaped_by_poll(self):
        process = Process('true').start(detached=True)
        deadline = time.monotonic() + 5
        while process.poll() is None and time.monotonic() < deadline:
            time.sleep(0.01)
        assert process.exit_code == 0
        assert process.state is State.COMPLETED
        assert process.process.returncode == 0

    def test_poll_before_exit(self):
        process = Process('sleep 3').start(detached=True)
        assert process.poll() is None
        assert process.state is State.RUNNING
        process.process.kill()
        process.process.wait()

    def test_detached_cannot_be_drained(self):
        process = Process('true').start(detached=True)
        with pytest.raises(ProcessStateError):
            process.process_until_exit()
        process.process.wait()

    def test_terminal(self):
        sink = Process('true').run(terminal=True)
        assert sink.exit_code == 0

    def test_terminal_failure(self):
        with pytest.raises(RunError):
            Process('false').run(terminal=True)
        assert Process('false').run(terminal=True, nothrow=True).exit_code == 1


class TestSinkContract:
    def test_closed_sink_rejected(self):
        sink = Sink()
        sink.close()
        with pytest.raises(SinkClosedError):
            Process('echo x').run(sink)

    def test_raising_action_stops_the_drain(self):
        def boom(line):
            raise ValueError(line)

        err = []
        process = Process('sh -c "echo a; sleep 0.3; echo b >&2"')
        with pytest.raises(ValueError, match='a'):
            process.run(Sink(boom, err.append))
        assert process.state is State.FAILED
        assert process.exit_code is not None
        assert Process('echo later').run(Collector()).lines == ['later']
        assert err == []
