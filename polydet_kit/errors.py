"""Exceptions raised by the detection pipeline."""


class PolydetError(Exception):
    """Base class for pipeline errors."""


class ShapeMismatchError(PolydetError, ValueError):
    """Raw model output does not match the expected layout / number of classes."""


class InferenceError(PolydetError, RuntimeError):
    """The model failed to produce an output tensor."""
