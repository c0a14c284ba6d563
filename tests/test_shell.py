import pytest

from xvkit.shell import (
    MAXARGS,
    O_CREATE,
    O_RDONLY,
    O_WRONLY,
    BackCommand,
    ExecCommand,
    ListCommand,
    PipeCommand,
    RedirCommand,
    ShellSyntaxError,
    parse_cd,
    parse_command,
)


def test_simple_exec():
    assert parse_command("echo hello world\n") == ExecCommand(("echo", "hello", "world"))


def test_empty_line_is_empty_exec():
    assert parse_command("") == ExecCommand(())
    assert parse_command(" \t\n") == ExecCommand(())


def test_pipe_is_right_nested():
    cmd = parse_command("a | b | c")
    assert cmd == PipeCommand(
        ExecCommand(("a",)), PipeCommand(ExecCommand(("b",)), ExecCommand(("c",)))
    )


def test_output_redirection():
    cmd = parse_command("ls > out")
    assert cmd == RedirCommand(ExecCommand(("ls",)), "out", O_WRONLY | O_CREATE, 1)


def test_append_opens_like_output():
    assert parse_command("ls >> out") == parse_command("ls > out")


def test_redirections_nest_in_order():
    cmd = parse_command("cat < in > out")
    inner = RedirCommand(ExecCommand(("cat",)), "in", O_RDONLY, 0)
    assert cmd == RedirCommand(inner, "out", O_WRONLY | O_CREATE, 1)


def test_redirection_between_arguments():
    cmd = parse_command("grep x < in y")
    assert cmd == RedirCommand(ExecCommand(("grep", "x", "y")), "in", O_RDONLY, 0)


def test_symbols_end_words():
    cmd = parse_command("echo a>b")
    assert cmd == RedirCommand(ExecCommand(("echo", "a")), "b", O_WRONLY | O_CREATE, 1)


def test_list_and_background():
    cmd = parse_command("a & ; b")
    assert cmd == ListCommand(BackCommand(ExecCommand(("a",))), ExecCommand(("b",)))


def test_repeated_background():
    assert parse_command("a & &") == BackCommand(BackCommand(ExecCommand(("a",))))


def test_block_with_redirection():
    cmd = parse_command("(a; b) > f")
    body = ListCommand(ExecCommand(("a",)), ExecCommand(("b",)))
    assert cmd == RedirCommand(body, "f", O_WRONLY | O_CREATE, 1)


def test_command_after_background_is_leftover():
    with pytest.raises(ShellSyntaxError, match="leftovers"):
        parse_command("a & b")


def test_missing_redirection_file():
    with pytest.raises(ShellSyntaxError, match="missing file for redirection"):
        parse_command("a >")


def test_missing_close_paren():
    with pytest.raises(ShellSyntaxError, match="missing \\)"):
        parse_command("(a")


def test_unmatched_close_paren():
    with pytest.raises(ShellSyntaxError, match="leftovers"):
        parse_command("a )")


def test_open_paren_inside_arguments():
    with pytest.raises(ShellSyntaxError, match="syntax"):
        parse_command("a (b)")


def test_too_many_args():
    words = " ".join(f"w{i}" for i in range(MAXARGS))
    with pytest.raises(ShellSyntaxError, match="too many args"):
        parse_command(words)


def test_most_args_allowed():
    words = tuple(f"w{i}" for i in range(MAXARGS - 1))
    assert parse_command(" ".join(words)) == ExecCommand(words)


def test_parse_cd():
    assert parse_cd("cd /usr\n") == "/usr"
    assert parse_cd("echo cd\n") is None
    assert parse_cd("cdx y\n") is None