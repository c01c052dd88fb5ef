"""EvoArena exception hierarchy."""


class EvoArenaError(Exception):
    """Root of all EvoArena domain exceptions."""


class ShapeMismatchError(EvoArenaError, ValueError):
    """Brain received an input vector of the wrong length."""


class IncompatibleShapeError(EvoArenaError, ValueError):
    """Crossover attempted between brains or genomes of different layer sizes."""


class GenomeDecodeError(EvoArenaError):
    """A serialized genome payload is malformed or has an unsupported version."""


class RecordDecodeError(EvoArenaError):
    """A persisted creature record is malformed or has an unsupported schema."""
