from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class PreprocessResult:
    """
    Model input plus the ratios that map model-space coordinates back to the source.

    Multiply x by `x_ratio` and y by `y_ratio` to recover source pixels.
    """

    tensor: np.ndarray
    x_ratio: float
    y_ratio: float

    @property
    def ratios(self):
        return self.x_ratio, self.y_ratio


def _require_cv2():
    try:
        import cv2  # type: ignore
    except Exception as e:  # pragma: no cover
        raise ImportError("OpenCV is required for preprocessing. Install with `pip install opencv-python`.") from e
    return cv2


def _check_image(image: np.ndarray) -> None:
    if image is None or not hasattr(image, "shape"):
        raise TypeError("source must be a NumPy array.")
    if image.ndim != 3 or image.shape[2] != 3:
        raise ValueError(f"Expected image shape (H, W, 3), got {getattr(image, 'shape', None)}")
    if image.shape[0] == 0 or image.shape[1] == 0:
        raise ValueError(f"Image has an empty side: {image.shape}")


def pad_to_square(image: np.ndarray) -> np.ndarray:
    """
    Zero-pad an (H, W, 3) image on the bottom and right to (S, S, 3), S = max(H, W).

    The original pixels stay at the top-left so (0, 0) means the same point
    before and after padding.
    """

    cv2 = _require_cv2()
    _check_image(image)

    h, w = image.shape[:2]
    max_size = max(h, w)
    if h == w:
        return image
    image = np.ascontiguousarray(image)
    return cv2.copyMakeBorder(image, 0, max_size - h, 0, max_size - w, cv2.BORDER_CONSTANT, value=(0, 0, 0))


def preprocess(source: np.ndarray, model_width: int, model_height: int) -> PreprocessResult:
    """
    Square-pad, resize and normalize a frame for the detector.

    Returns a float32 tensor of shape (1, model_height, model_width, 3) in [0, 1].
    Channel order is passed through untouched.
    """

    if model_width <= 0 or model_height <= 0:
        raise ValueError(f"Model size must be positive, got {model_width}x{model_height}")

    cv2 = _require_cv2()
    _check_image(source)

    h, w = source.shape[:2]
    max_size = max(h, w)
    padded = pad_to_square(source)

    # Resize in float so the bilinear weights are not rounded back to uint8.
    resized = cv2.resize(
        padded.astype(np.float32),
        (int(model_width), int(model_height)),
        interpolation=cv2.INTER_LINEAR,
    )
    tensor = (resized / 255.0).astype(np.float32, copy=False)[None, ...]

    return PreprocessResult(tensor=tensor, x_ratio=max_size / w, y_ratio=max_size / h)
