"""Escape-time iteration for the Mandelbrot recurrence z -> z*z + c."""

from __future__ import annotations

import numpy as np
import tensorflow as tf

from .numeric import ComplexPoint

# Squared bailout radius; |z| > 2 guarantees divergence.
BAILOUT_SQUARED = 4.0

_ORIGIN = ComplexPoint(0.0, 0.0)


def escape(c: ComplexPoint, budget: int) -> int:
    """Return the step at which the orbit of ``c`` leaves the bailout disc, or ``budget``."""

    z = _ORIGIN
    for i in range(budget + 1):
        if z.norm_sqr() > BAILOUT_SQUARED:
            return i
        z = z * z + c
    return budget


@tf.function
def _escape_step(
    i: tf.Tensor,
    zr: tf.Tensor,
    zi: tf.Tensor,
    cr: tf.Tensor,
    ci: tf.Tensor,
    counts: tf.Tensor,
    active: tf.Tensor,
) -> tuple[tf.Tensor, tf.Tensor, tf.Tensor, tf.Tensor]:
    """Check the bailout for step ``i`` and advance the orbits still inside."""

    norm_sqr = zr * zr + zi * zi
    escaped = tf.logical_and(active, norm_sqr > tf.constant(BAILOUT_SQUARED, dtype=zr.dtype))
    counts = tf.where(escaped, tf.fill(tf.shape(counts), i), counts)
    active = tf.logical_and(active, tf.logical_not(escaped))

    zr_new = zr * zr - zi * zi + cr
    zi_new = zr * zi + zi * zr + ci
    zr = tf.where(active, zr_new, zr)
    zi = tf.where(active, zi_new, zi)
    return zr, zi, counts, active


@tf.function(
    input_signature=[
        tf.TensorSpec(shape=[None, None], dtype=tf.float64),
        tf.TensorSpec(shape=[None, None], dtype=tf.float64),
        tf.TensorSpec(shape=[], dtype=tf.int32),
    ]
)
def _escape_run(cr: tf.Tensor, ci: tf.Tensor, budget: tf.Tensor) -> tf.Tensor:
    """Iterate every point of a block using a TensorFlow while loop."""

    i = tf.constant(0, dtype=tf.int32)
    zr = tf.zeros_like(cr)
    zi = tf.zeros_like(ci)
    counts = tf.fill(tf.shape(cr), budget)
    active = tf.ones_like(cr, dtype=tf.bool)

    def cond(i, zr, zi, counts, active):
        return tf.logical_and(tf.less_equal(i, budget), tf.reduce_any(active))

    def body(i, zr, zi, counts, active):
        zr, zi, counts, active = _escape_step(i, zr, zi, cr, ci, counts, active)
        return i + 1, zr, zi, counts, active

    _, _, _, counts, _ = tf.while_loop(cond, body, (i, zr, zi, counts, active))
    return counts


def escape_counts(re: np.ndarray, im: np.ndarray, budget: int) -> np.ndarray:
    """Vectorised :func:`escape` over two equally shaped 2-D float64 arrays."""

    if budget < 0:
        raise ValueError(f"Iteration budget must be non-negative, got {budget}.")
    re = np.asarray(re, dtype=np.float64)
    im = np.asarray(im, dtype=np.float64)
    if re.shape != im.shape or re.ndim != 2:
        raise ValueError(f"Expected two 2-D arrays of equal shape, got {re.shape} and {im.shape}.")
    if re.size == 0:
        return np.zeros(re.shape, dtype=np.int32)

    counts = _escape_run(
        tf.convert_to_tensor(re, dtype=tf.float64),
        tf.convert_to_tensor(im, dtype=tf.float64),
        tf.constant(budget, dtype=tf.int32),
    )
    return counts.numpy()
