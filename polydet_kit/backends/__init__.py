"""
Optional inference backends for polydet_kit.

Each backend satisfies `polydet_kit.types.DetectionModel` (NHWC `input_shape`
plus `execute`). They live in a separate package so the core pre/post-processing
can be used without installing an inference runtime.
"""

from __future__ import annotations

__all__ = []
