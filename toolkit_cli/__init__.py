"""Personal command-line toolkit.

The `run` command surface is implemented with Typer and Rich. Subcommands are
discovered from a local scripts directory and registered next to a short list of
built-in commands.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"
