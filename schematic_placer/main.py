import logging

from typer import Typer

from .cli.commands import capture, place


def build_app() -> Typer:
    app = Typer(add_completion=False, no_args_is_help=True)
    app.command(no_args_is_help=True)(place)
    app.command(no_args_is_help=True)(capture)
    return app


def main():
    logging.disable()  # disable amulet's logging
    build_app()()
