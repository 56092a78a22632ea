import pytest

from elfnm.options import UnknownOptionError, parse_options

ALLOWED = "prugDah"


def test_single_flag_and_operand():
    assert parse_options(["-a", "file"], ALLOWED) == (["a"], ["file"])


def test_grouped_flags_keep_order():
    assert parse_options(["-ag", "x", "y"], ALLOWED) == (["a", "g"], ["x", "y"])


def test_separate_flags():
    assert parse_options(["-a", "-g", "-D"], ALLOWED) == (["a", "g", "D"], [])


def test_no_arguments():
    assert parse_options([], ALLOWED) == ([], [])


def test_double_dash_ends_flags():
    assert parse_options(["-r", "--", "-a"], ALLOWED) == (["r"], ["-a"])


def test_lone_dash_is_an_operand():
    assert parse_options(["-", "-a"], ALLOWED) == ([], ["-", "-a"])


def test_flags_after_operand_are_operands():
    assert parse_options(["file", "-a"], ALLOWED) == ([], ["file", "-a"])


def test_unknown_flag_raises_with_preceding_flags():
    with pytest.raises(UnknownOptionError) as caught:
        parse_options(["-p", "-az", "file"], ALLOWED)
    assert caught.value.option == "z"
    assert caught.value.preceding == ["p", "a"]


def test_long_looking_argument_is_parsed_as_flags():
    with pytest.raises(UnknownOptionError) as caught:
        parse_options(["--a"], ALLOWED)
    assert caught.value.option == "-"
    assert caught.value.preceding == []


def test_help_before_unknown_is_recorded():
    with pytest.raises(UnknownOptionError) as caught:
        parse_options(["-hZ"], ALLOWED)
    assert caught.value.preceding == ["h"]


def test_input_sequence_is_not_modified():
    argv = ("-u", "a.out")
    flags, operands = parse_options(argv, ALLOWED)
    assert argv == ("-u", "a.out")
    assert flags + operands == ["u", "a.out"]