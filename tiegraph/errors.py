# ---------------------------------------------------------------------
# Exceptions and warnings raised by the graph builders.
# ---------------------------------------------------------------------


class InvalidInputError(ValueError):
    """An argument violated its contract (length, name, or range)."""

    def __init__(self, argument: str, message: str):
        self.argument = argument
        super().__init__(f"{argument}: {message}")


class EmptyResultWarning(UserWarning):
    """A builder produced a graph or matrix without any vertices."""
