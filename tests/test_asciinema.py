import io
from datetime import timedelta

import pytest

from hapikit.asciinema import (
    BadArgumentError,
    Delay,
    NoArgumentsError,
    Script,
    Shell,
    UnknownControlError,
    Wait,
    load_script,
    main,
    parse_control,
)


def test_parse_control_delay_and_wait():
    assert parse_control("delay 10") == Delay(timedelta(milliseconds=10))
    assert parse_control("wait 250") == Wait(timedelta(milliseconds=250))


def test_parse_control_errors():
    with pytest.raises(UnknownControlError):
        parse_control("sleep 10")
    with pytest.raises(NoArgumentsError):
        parse_control("delay")
    with pytest.raises(BadArgumentError):
        parse_control("wait abc")


def test_shell_appends_newline_once():
    assert Shell("echo hi").cmd == "echo hi\n"
    assert Shell("echo hi\n").cmd == "echo hi\n"


def test_shell_types_every_character():
    script = Script(delay=timedelta(0), stdin=io.BytesIO())
    Shell("ls -la").run(script)
    assert script.stdin.getvalue() == b"ls -la\n"


def test_shell_write_failure_exits():
    stdin = io.BytesIO()
    stdin.close()
    script = Script(delay=timedelta(0), stdin=stdin)
    with pytest.raises(SystemExit) as info:
        Shell("ls").run(script)
    assert info.value.code == 1


def test_controls_change_script_timing():
    script = Script()
    Delay(timedelta(milliseconds=5)).run(script)
    Wait(timedelta(milliseconds=7)).run(script)
    assert script.delay == timedelta(milliseconds=5)
    assert script.wait == timedelta(milliseconds=7)


def test_script_defaults():
    script = Script()
    assert script.delay == timedelta(milliseconds=40)
    assert script.wait == timedelta(milliseconds=100)


def test_load_script(tmp_path):
    path = tmp_path / "demo.sh"
    path.write_text("#$ delay 10\necho hi\n#$ wait 0\nls\n")
    script = load_script(path, ["out.cast"])
    assert script.args == ["out.cast"]
    assert script.commands == [
        Delay(timedelta(milliseconds=10)),
        Shell("echo hi"),
        Wait(timedelta(0)),
        Shell("ls"),
    ]


def test_load_script_reports_line(tmp_path):
    path = tmp_path / "bad.sh"
    path.write_text("echo hi\n#$ bogus 1\n")
    with pytest.raises(UnknownControlError) as info:
        load_script(path, [])
    assert "(line 2)" in str(info.value)


def test_execute_runs_commands_in_order(tmp_path):
    path = tmp_path / "demo.sh"
    path.write_text("#$ delay 0\n#$ wait 0\necho a\necho b\n")
    script = load_script(path, [])
    script.wait = timedelta(0)
    script.stdin = io.BytesIO()
    script.execute()
    assert script.stdin.getvalue() == b"echo a\necho b\n"


def test_stop_sends_eot_and_waits():
    calls = []

    class FakeProcess:
        def wait(self):
            calls.append("wait")

    script = Script(args=["out.cast"], process=FakeProcess(), stdin=io.BytesIO())
    script.stop()
    assert script.stdin.getvalue() == b"\x04"
    assert calls == ["wait"]


@pytest.mark.parametrize("argv", [[], ["-h"], ["--help"]])
def test_main_usage(argv):
    with pytest.raises(SystemExit) as info:
        main(argv)
    assert "usage:" in str(info.value.code)