"""Standard builtins registered in every interpreter's global scope."""

import time
from typing import List

from treelox.environment import Environment
from treelox.objects import LoxObject


def populate_std_environment() -> Environment:
    std_env = Environment()

    def std_clock(args: List[LoxObject]) -> LoxObject:
        return LoxObject.new_number(time.time())

    std_env.define('clock', LoxObject.new_builtin_function(0, std_clock, 'clock'))
    return std_env
