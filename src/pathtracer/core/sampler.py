"""Per-pixel random number streams for Monte Carlo sampling.

Every pixel owns one stream: a 32-bit PCG-hash state stored in a Taichi field.
Sampling functions receive the stream index explicitly, so concurrently traced
pixels never touch each other's generator state. Seeding derives each state
from (seed, stream index), which makes a render with a fixed seed reproduce
bit-identical output no matter how the kernel is scheduled across threads.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.core.sampler import seed_streams, random_float
    >>> seed_streams(1234, 16)
    >>> # Inside a kernel: x = random_float(stream_index)
"""

import taichi as ti

from pathtracer.config import MAX_IMAGE_HEIGHT, MAX_IMAGE_WIDTH

# One stream per pixel of the largest supported image
MAX_STREAMS = MAX_IMAGE_WIDTH * MAX_IMAGE_HEIGHT

# 24 mantissa bits give every float in [0, 1) an exact representation
_INV_2_24 = 1.0 / 16777216.0

_stream_state = ti.field(dtype=ti.u32, shape=MAX_STREAMS)


@ti.func
def _lcg_step(state: ti.u32) -> ti.u32:
    return state * ti.u32(747796405) + ti.u32(2891336453)


@ti.func
def _permute(state: ti.u32) -> ti.u32:
    """PCG RXS-M-XS output permutation."""
    word = ((state >> ((state >> ti.u32(28)) + ti.u32(4))) ^ state) * ti.u32(277803737)
    return (word >> ti.u32(22)) ^ word


@ti.func
def pcg_hash(value: ti.u32) -> ti.u32:
    """Hash a 32-bit value with one PCG step and output permutation."""
    return _permute(_lcg_step(value))


@ti.kernel
def _seed_streams(seed: ti.u32, count: ti.i32):
    base = pcg_hash(seed)
    for i in range(count):
        _stream_state[i] = pcg_hash(base ^ pcg_hash(ti.cast(i, ti.u32)))


def seed_streams(seed: int, count: int = MAX_STREAMS) -> None:
    """Reset the first ``count`` streams from ``seed``.

    Args:
        seed: 32-bit seed shared by all streams.
        count: Number of streams to reset.

    Raises:
        ValueError: If count is outside [0, MAX_STREAMS] or seed does not fit
            in 32 bits.
    """
    if count < 0 or count > MAX_STREAMS:
        raise ValueError(f"Stream count {count} outside [0, {MAX_STREAMS}]")
    if seed < 0 or seed > 0xFFFFFFFF:
        raise ValueError(f"Seed {seed} does not fit in 32 bits")
    _seed_streams(seed, count)


@ti.func
def random_u32(stream: ti.i32) -> ti.u32:
    """Advance a stream and return its next 32-bit output."""
    state = _lcg_step(_stream_state[stream])
    _stream_state[stream] = state
    return _permute(state)


@ti.func
def random_float(stream: ti.i32) -> ti.f32:
    """Return a uniform float in [0, 1) drawn from the given stream."""
    return ti.cast(random_u32(stream) >> ti.u32(8), ti.f32) * _INV_2_24


@ti.func
def random_range(stream: ti.i32, lo: ti.f32, hi: ti.f32) -> ti.f32:
    """Return a uniform float in [lo, hi) drawn from the given stream."""
    return lo + (hi - lo) * random_float(stream)


def get_stream_state(stream: int) -> int:
    """Read a stream's raw state from Python (debugging and tests)."""
    return int(_stream_state[stream])
