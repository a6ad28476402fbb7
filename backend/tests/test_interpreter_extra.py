"""Additional interpreter tests covering nested loops, pauses and edge cases."""

import sys

import pytest

from backend.codesync.interpreter import Interpreter
from backend.codesync.trace import ProvidedInput


def test_nested_loops():
    it = Interpreter()
    code = (
        'total = 0\n'
        'for i in range(2):\n'
        '  for j in range(3):\n'
        '    total = total + 1\n'
        'print(total)\n'
    )
    res = it.run(code)
    assert res.error is None
    assert res.outputs() == ["6"]
    # total + outer start + 2 * (iteration + inner start + 3 * (iteration + assign)) + print
    assert len(res.trace) == 19
    inner_starts = [s for s in res.trace if s.description == "Starting a loop that will run 3 times."]
    assert [s.line_number for s in inner_starts] == [3, 3]
    assigns = [s for s in res.trace if s.description.startswith("Assign") and s.line_number != 1]
    assert len(assigns) == 6
    assert all(s.line_number == 4 for s in assigns)
    assert res.trace[-1].variables == {"total": 6, "i": 1, "j": 2}


def test_loop_body_tolerates_blank_lines_and_ends_at_dedent():
    it = Interpreter()
    code = (
        'for i in range(2):\n'
        '  x = i\n'
        '\n'
        '  y = i * 10\n'
        'print(y)\n'
    )
    res = it.run(code)
    assert res.error is None
    assert len(res.trace) == 8
    assert res.outputs() == ["10"]
    assert [s.line_number for s in res.trace if s.description.startswith("Assign 0 to 'y'")] == [4]
    assert res.trace[-1].line_number == 5


def test_zero_iterations():
    it = Interpreter()
    res = it.run('for i in range(0):\n  print("never")\nprint("done")')
    assert res.error is None
    assert res.outputs() == ["done"]
    assert res.trace[0].description == "Starting a loop that will run 0 times."
    assert len(res.trace) == 2
    assert "i" not in res.trace[-1].variables


def test_range_expression_uses_scope():
    it = Interpreter()
    res = it.run("n = 2\nfor k in range(n + 1):\n  print(k)")
    assert res.outputs() == ["0", "1", "2"]


def test_non_numeric_range_fails_before_iterating():
    it = Interpreter()
    res = it.run('n = "3"\nfor i in range(n):\n  print(i)')
    assert res.error == "TypeError: 'n' does not evaluate to an integer"
    assert len(res.trace) == 2
    assert res.trace[-1].line_number == 2
    assert res.trace[-1].variables == {"n": "3"}


def test_error_in_loop_body_aborts_remaining_iterations():
    it = Interpreter()
    code = (
        'for i in range(3):\n'
        '  x = 10 / i\n'
        'print("after")\n'
    )
    res = it.run(code)
    assert "ZeroDivisionError" in res.error
    assert len(res.trace) == 3
    err = res.trace[-1]
    assert err.is_error
    assert err.line_number == 2
    assert err.variables == {"i": 0}
    assert res.outputs() == []


def test_error_in_loop_body_keeps_preceding_body_steps():
    it = Interpreter()
    code = (
        'for i in range(3):\n'
        '  print(i)\n'
        '  y = missing + i\n'
    )
    res = it.run(code)
    assert res.outputs() == ["0"]
    assert "NameError" in res.error
    assert res.trace[-1].line_number == 3
    assert sum(1 for s in res.trace if s.is_error) == 1


def test_comment_only_loop_body():
    it = Interpreter()
    res = it.run("for i in range(2):\n  # nothing yet\nprint(i)")
    assert res.error is None
    assert res.outputs() == ["1"]
    assert len(res.trace) == 4


def test_input_inside_loop_pauses_whole_run():
    it = Interpreter()
    code = (
        'for i in range(2):\n'
        '  name = input("Name? ")\n'
        '  print(name)\n'
        'print("end")\n'
    )
    first = it.run(code)
    assert first.status == "paused"
    assert first.trace[-1].line_number == 2
    assert first.trace[-1].input_variable == "name"
    scope, start_line, variable = first.continuation()
    assert scope == {"i": 0}
    second = it.run(code, scope, start_line, ProvidedInput(variable, "Bo"))
    assert second.error is None
    assert second.outputs() == ["Bo", "end"]


def test_start_line_skips_earlier_lines():
    it = Interpreter()
    res = it.run("a = 1\nb = 2", start_line=1)
    assert len(res.trace) == 1
    assert res.trace[0].line_number == 2
    assert res.trace[0].variables == {"b": 2}


def test_start_line_past_end_is_empty_completion():
    it = Interpreter()
    res = it.run("a = 1", start_line=5)
    assert res.trace == []
    assert res.status == "completed"


def test_negative_start_line_rejected():
    it = Interpreter()
    with pytest.raises(ValueError):
        it.run("a = 1", start_line=-1)


def test_trailing_comment_ignored():
    it = Interpreter()
    res = it.run("x = 1  # one\nprint(\"# not a comment\")")
    assert res.error is None
    assert res.trace[0].variables == {"x": 1}
    assert res.outputs() == ["# not a comment"]


def test_print_without_argument():
    it = Interpreter()
    res = it.run("print()")
    assert res.outputs() == [""]


def test_response_serialization():
    it = Interpreter()
    done = it.run('print("hi")').to_dict()
    assert done == {
        "trace": [{"lineNumber": 1, "description": "Printing output", "variables": {}, "output": "hi"}],
        "error": None,
    }
    paused = it.run('x = input("?")').to_dict()
    assert paused["trace"][0]["requiresInput"] is True
    assert paused["trace"][0]["inputVariable"] == "x"
    assert "isError" not in paused["trace"][0]
    failed = it.run("y = z").to_dict()
    assert failed["trace"][0]["isError"] is True
    assert failed["error"].startswith("NameError")


def test_float_overflow_in_division_is_error_step():
    it = Interpreter()
    code = "x = 10\nfor i in range(9):\n  x = x * x\ny = x / 3"
    res = it.run(code)
    assert res.error is not None
    assert res.error.startswith("OverflowError")
    assert res.trace[-1].is_error
    assert res.trace[-1].line_number == 4
    assert "y" not in res.trace[-1].variables


def test_overflowing_float_literal_and_product():
    it = Interpreter()
    res = it.run("x = 1e999")
    assert res.error == "OverflowError: numerical result out of range"
    assert len(res.trace) == 1
    res = it.run("x = 1e200 * 1e200")
    assert res.error == "OverflowError: numerical result out of range"


@pytest.mark.skipif(not hasattr(sys, "get_int_max_str_digits"), reason="no int string conversion limit")
def test_integer_too_long_to_display_is_error_step():
    it = Interpreter()
    res = it.run("x = 10\nfor i in range(13):\n  x = x * x\nprint(x)")
    assert res.error is not None
    assert res.error.startswith("OverflowError")
    assert res.trace[-1].line_number == 3
    assert res.outputs() == []


def test_non_ascii_text_kept_in_description():
    it = Interpreter()
    res = it.run('name = "José"')
    assert res.trace[0].description == "Assign \"José\" to 'name'"
