import io
import sys

import pytest

from treelox.errors import (
    ArityMismatchError, LoxRuntimeError, NotCallableError, StackOverflowError,
    TypeMismatchError, UndefinedVariableError,
)
from treelox.interpreter import Interpreter, run_program
from treelox.objects import LoxObject
from treelox.parser import parse_program


def run(source, interpreter=None):
    """Run `source` and return the printed lines."""
    if interpreter is None:
        interpreter = Interpreter(output=io.StringIO())
    interpreter.run(parse_program(source))
    return interpreter.output.getvalue().splitlines()


def test_print_hi():
    assert run('var a = "hi"; print a;') == ['hi']


def test_run_program_writes_to_stdout(capsys):
    run_program('print 1 + 2;')
    assert capsys.readouterr().out == '3\n'


def test_arithmetic_and_display():
    assert run('print 1 + 2 * 3; print (1 + 2) * 3; print 7 / 2; print -4 - 1;') == ['7', '9', '3.5', '-5']


def test_division_by_zero_follows_ieee():
    assert run('print 1 / 0; print -1 / 0; print 0 / 0;') == ['inf', '-inf', 'NaN']


def test_comparisons():
    assert run('print 1 < 2; print 2 <= 2; print 3 > 4; print 3 >= 4;') == ['true', 'true', 'false', 'false']


def test_equality_rules():
    source = '''
        print nil == nil;
        print nil == false;
        print "1" == 1;
        print 1 == 1;
        print "a" != "a";
        print 0/0 == 0/0;
    '''
    assert run(source) == ['true', 'false', 'false', 'true', 'false', 'false']


def test_truthiness_and_not():
    assert run('print !nil; print !false; print !0; print !"";') == ['true', 'true', 'false', 'false']


def test_string_concatenation():
    assert run('print "foo" + "bar";') == ['foobar']


@pytest.mark.parametrize('source', ['print "a" + 1;', 'print 1 + "a";'])
def test_mixed_plus_is_a_type_error_in_both_orders(source):
    with pytest.raises(TypeMismatchError) as excinfo:
        run(source)
    assert excinfo.value.message == 'Operands must be two numbers or two strings.'


@pytest.mark.parametrize('source, message', [
    ('print -"a";', 'Operand must be a number.'),
    ('print "a" * 2;', 'Operands must be numbers.'),
    ('print nil < 1;', 'Operands must be numbers.'),
    ('print true - false;', 'Operands must be numbers.'),
])
def test_operand_type_errors(source, message):
    with pytest.raises(TypeMismatchError) as excinfo:
        run(source)
    assert excinfo.value.message == message


def test_logical_operators_return_operand_values():
    assert run('print nil or "yes"; print 0 and "second"; print false and 1; print 1 or 2;') == \
        ['yes', 'second', 'false', '1']


def test_short_circuit_skips_side_effects():
    source = '''
        var x = 0;
        false and (x = 1);
        true or (x = 2);
        print x;
    '''
    assert run(source) == ['0']


def test_short_circuit_skips_errors():
    assert run('print true or undefined; print false and undefined;') == ['true', 'false']


def test_block_scope_is_discarded():
    with pytest.raises(UndefinedVariableError) as excinfo:
        run('{ var x = 1; }\nprint x;')
    assert excinfo.value.line == 2


def test_assignment_from_nested_block_mutates_outer_binding():
    assert run('var x = 1; { { x = 2; } } print x;') == ['2']


def test_shadowing_in_block():
    assert run('var x = "outer"; { var x = "inner"; print x; } print x;') == ['inner', 'outer']


def test_redeclaration_replaces():
    assert run('var x = 1; var x = 2; print x;') == ['2']


def test_var_defaults_to_nil():
    assert run('var x; print x;') == ['nil']


def test_assignment_is_an_expression():
    assert run('var a; var b; a = b = 3; print a; print b;') == ['3', '3']


def test_assign_undeclared_fails():
    with pytest.raises(UndefinedVariableError):
        run('y = 1;')


def test_if_else():
    assert run('if (1) print "then"; else print "else"; if (nil) print "no";') == ['then']
    assert run('if (false) print "then"; else print "else";') == ['else']


def test_while_loop():
    assert run('var i = 0; while (i < 3) { print i; i = i + 1; }') == ['0', '1', '2']


def test_for_loop():
    assert run('for (var i = 0; i < 3; i = i + 1) print i;') == ['0', '1', '2']


def test_for_loop_variable_is_scoped_to_the_loop():
    with pytest.raises(UndefinedVariableError):
        run('for (var i = 0; i < 1; i = i + 1) {} print i;')


def test_loop_body_block_gets_fresh_scope_each_iteration():
    source = '''
        var i = 0;
        while (i < 2) {
            var seen;
            print seen;
            seen = i;
            i = i + 1;
        }
    '''
    assert run(source) == ['nil', 'nil']


def test_function_prints_and_yields_nil():
    assert run('fun f(a, b) { print a + b; } print f(1, 2);') == ['3', 'nil']


def test_arity_mismatch_fails_before_body_runs():
    out = io.StringIO()
    interpreter = Interpreter(output=out)
    with pytest.raises(ArityMismatchError) as excinfo:
        run('fun f(a, b) { print "body"; }\nf(1);', interpreter)
    assert excinfo.value.message == 'Expected 2 arguments but got 1.'
    assert excinfo.value.line == 2
    assert out.getvalue() == ''


def test_function_declaration_does_not_run_body():
    assert run('fun f() { print "called"; } print f;') == ['<fn f>']


def test_functions_mutate_globals():
    assert run('var count = 0; fun bump() { count = count + 1; } bump(); bump(); print count;') == ['2']


def test_functions_do_not_see_caller_locals():
    source = '''
        fun show() { print local; }
        {
            var local = "caller";
            show();
        }
    '''
    with pytest.raises(UndefinedVariableError):
        run(source)


def test_nested_function_cannot_see_enclosing_locals():
    source = '''
        fun outer(x) {
            fun inner() { print x; }
            inner();
        }
        outer(1);
    '''
    with pytest.raises(UndefinedVariableError):
        run(source)


def test_parameters_shadow_globals():
    assert run('var a = "global"; fun f(a) { print a; } f("param"); print a;') == ['param', 'global']


def test_recursion_through_globals():
    source = '''
        var n = 3;
        fun countdown() {
            if (n > 0) {
                print n;
                n = n - 1;
                countdown();
            }
        }
        countdown();
    '''
    assert run(source) == ['3', '2', '1']


def test_deep_recursion_through_globals():
    source = '''
        var n = 1000;
        fun down() { if (n > 0) { n = n - 1; down(); } }
        down();
        print n;
    '''
    limit = sys.getrecursionlimit()
    assert run(source) == ['0']
    assert sys.getrecursionlimit() == limit


def test_unbounded_recursion_is_a_runtime_error():
    interpreter = Interpreter(output=io.StringIO())
    with pytest.raises(StackOverflowError) as excinfo:
        run('fun f() {\n  f();\n}\nf();', interpreter)
    assert str(excinfo.value) == 'line 2: Stack overflow.'
    assert interpreter.environment is interpreter.globals


def test_binary_operands_evaluated_left_to_right():
    assert run('var x; print (x = "a") + (x = "b"); print x;') == ['ab', 'b']
    assert run('var x; print (x = 1) < (x = 2); print x;') == ['true', '2']


def test_left_operand_error_wins():
    with pytest.raises(UndefinedVariableError) as excinfo:
        run('var x = 0; print missing - (x = nil);')
    assert excinfo.value.message == "Undefined variable 'missing'."


def test_assignment_rebinds_without_touching_shared_cell():
    interpreter = Interpreter(output=io.StringIO())
    run('var a = 1; var b = a; a = 2;', interpreter)
    values = interpreter.globals.values
    assert values['b'].as_number() == 1
    assert values['a'] is not values['b']


def test_arguments_evaluated_left_to_right():
    source = '''
        fun log(x) { print x; }
        fun pair(a, b) {}
        pair(log("first"), log("second"));
    '''
    assert run(source) == ['first', 'second']


@pytest.mark.parametrize('source', ['"text"();', 'nil();', '1();'])
def test_calling_non_callable(source):
    with pytest.raises(NotCallableError) as excinfo:
        run(source)
    assert excinfo.value.message == 'Can only call functions.'


def test_clock_builtin():
    interpreter = Interpreter(output=io.StringIO())
    interpreter.run(parse_program('var t = clock();'))
    assert interpreter.globals.values['t'].as_number() > 0
    assert run('print clock;') == ['<native fn>']


def test_host_registered_builtin():
    out = io.StringIO()
    interpreter = Interpreter(output=out)
    interpreter.define_builtin('double', 1, lambda args: LoxObject.new_number(args[0].as_number() * 2))
    assert run('print double(21);', interpreter) == ['42']


def test_error_leaves_prior_mutations_in_place():
    out = io.StringIO()
    interpreter = Interpreter(output=out)
    with pytest.raises(LoxRuntimeError):
        run('var a = 1; a = 2; a = a + nil; a = 3;', interpreter)
    assert interpreter.globals.values['a'].as_number() == 2


def test_error_unwinds_to_global_scope():
    interpreter = Interpreter(output=io.StringIO())
    with pytest.raises(UndefinedVariableError):
        run('fun f() { { var inner = 1; missing; } } f();', interpreter)
    assert interpreter.environment is interpreter.globals


def test_debug_trace_is_written(tmp_path):
    debug_file = tmp_path / 'debug.txt'
    interpreter = Interpreter(output=io.StringIO(), debug_level=3, debug_file=str(debug_file))
    interpreter.run(parse_program('var x = 1; fun f() {} f(); if (x) x = 2;'))
    interpreter.close()
    trace = debug_file.read_text().splitlines()
    assert trace[0] == 'run 4 statement(s)'
    assert 'define function f' in trace
    assert 'if condition -> True' in trace
    assert trace[-1] == 'run finished'
