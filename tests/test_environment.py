import pytest

from treelox.environment import Environment
from treelox.errors import UndefinedVariableError
from treelox.objects import LoxObject
from treelox.scanner import Token, TokenKind


def name(text, line=1):
    return Token(TokenKind.IDENTIFIER, text.encode(), line)


def test_define_and_get():
    env = Environment()
    value = LoxObject.new_number(1)
    env.define('x', value)
    assert env.get(name('x')) is value


def test_redefine_replaces_binding():
    env = Environment()
    env.define('x', LoxObject.new_number(1))
    env.define('x', LoxObject.new_string('two'))
    assert env.get(name('x')).as_string() == 'two'


def test_get_walks_outward():
    outer = Environment()
    outer.define('x', LoxObject.new_number(1))
    inner = Environment.new_enclosed(outer)
    assert inner.enclosing is outer
    assert inner.get(name('x')).as_number() == 1


def test_define_shadows_without_touching_outer():
    outer = Environment()
    outer.define('x', LoxObject.new_number(1))
    inner = Environment.new_enclosed(outer)
    inner.define('x', LoxObject.new_number(2))
    assert inner.get(name('x')).as_number() == 2
    assert outer.get(name('x')).as_number() == 1


def test_assign_updates_owning_scope():
    outer = Environment()
    outer.define('x', LoxObject.new_number(1))
    inner = Environment.new_enclosed(Environment.new_enclosed(outer))
    replacement = LoxObject.new_number(5)
    inner.assign(name('x'), replacement)
    assert outer.get(name('x')) is replacement
    assert 'x' not in inner.values


def test_get_undefined_reports_name_and_line():
    env = Environment.new_enclosed(Environment())
    with pytest.raises(UndefinedVariableError) as excinfo:
        env.get(name('missing', line=7))
    assert excinfo.value.line == 7
    assert excinfo.value.message == "Undefined variable 'missing'."


def test_assign_never_creates_a_binding():
    env = Environment()
    with pytest.raises(UndefinedVariableError):
        env.assign(name('y'), LoxObject.nil())
    assert 'y' not in env.values


def test_snapshot_and_restore():
    env = Environment()
    env.define('x', LoxObject.new_number(1))
    snapshot = env.snapshot()
    env.assign(name('x'), LoxObject.new_number(2))
    env.define('y', LoxObject.nil())
    env.restore(snapshot)
    assert env.get(name('x')).as_number() == 1
    assert 'y' not in env.values
