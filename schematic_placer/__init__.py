import builtins
from sys import stdin

APP_NAME = "schematic-placer"
__version__ = "0.1.0"


if not stdin.isatty():

    def input_abort(*args, **kwargs):
        raise EOFError

    builtins.input = input_abort
