"""
Exception types shared across pigmix.

Invalid arguments (size mismatch, malformed hex string) use the built-in
ValueError; the classes below cover the failures that callers are expected
to tell apart.
"""

from typing import Iterable, Optional


class PigmixError(Exception):
    """Base class for pigmix errors"""
    pass


class UnknownStrategyError(PigmixError, ValueError):
    """A factory was asked for a name it does not know."""

    def __init__(self, kind: str, key: str, known: Optional[Iterable[str]] = None):
        self.kind = kind
        self.key = key
        self.known = tuple(known) if known is not None else ()
        message = f"Unknown {kind}: {key!r}"
        if self.known:
            message += f" (known: {', '.join(self.known)})"
        super().__init__(message)


class MinimizerError(PigmixError, RuntimeError):
    """The underlying black-box minimizer failed mid-run."""

    def __init__(self, algorithm: str, message: str, evaluations: int = 0):
        self.algorithm = algorithm
        # objective calls consumed before the failure
        self.evaluations = evaluations
        super().__init__(f"{algorithm} failed: {message}")


class SampleGenerationError(PigmixError, RuntimeError):
    """A batch item could not be processed; the batch was aborted."""

    def __init__(self, index: int, message: str):
        self.index = index
        super().__init__(f"Sample {index} failed: {message}")


class PaletteLoadError(PigmixError):
    """Palette file missing or malformed"""
    pass
