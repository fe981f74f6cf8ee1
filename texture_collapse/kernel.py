"""Neighbourhood patterns used as keys of the conditional statistics."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Sequence, Tuple

from .errors import InvalidKernelShape


def validate_kernel_shape(kernel_shape: Sequence[int]) -> Tuple[int, int]:
    """Return ``(width, height)`` or raise if the window has no single centre."""
    try:
        width, height = (int(v) for v in kernel_shape)
    except (TypeError, ValueError) as exc:
        raise InvalidKernelShape(f"Kernel shape must be (width, height), got {kernel_shape!r}") from exc
    if width < 1 or height < 1:
        raise InvalidKernelShape(f"Kernel dimensions must be positive, got {width}x{height}")
    if width % 2 == 0 or height % 2 == 0:
        raise InvalidKernelShape(f"Kernel {width}x{height} has no centre cell; both sides must be odd")
    return width, height


def window_offsets(kernel_shape: Sequence[int]) -> list[Tuple[int, int]]:
    """Window offsets ``(dx, dy)`` in kernel order: rows outer, columns inner, centre skipped."""
    width, height = validate_kernel_shape(kernel_shape)
    half_w, half_h = (width - 1) // 2, (height - 1) // 2
    offsets = []
    for k in range(height):
        for j in range(width):
            if j == half_w and k == half_h:
                continue
            offsets.append((j - half_w, k - half_h))
    return offsets


@dataclass(frozen=True)
class Kernel:
    """Colour indices of every window cell around a centre pixel.

    Equality and hashing are element-wise, so two kernels read from
    different places in the sample aggregate under the same key.
    """

    indices: Tuple[int, ...]

    def __post_init__(self):
        object.__setattr__(self, "indices", tuple(int(i) for i in self.indices))

    def __len__(self) -> int:
        return len(self.indices)

    def __iter__(self) -> Iterator[int]:
        return iter(self.indices)

    def __str__(self) -> str:
        return "[" + ", ".join(str(i) for i in self.indices) + "]"
