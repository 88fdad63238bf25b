"""JAX setup for the chi-squared HWE p-values.

JAX computes in float32 unless x64 mode is switched on, which would round
small p-values to zero. ``configure_jax`` must run before the first JAX array
is created; the ``count`` command calls it on startup.
"""

from __future__ import annotations

import jax
from loguru import logger


def configure_jax(enable_x64: bool = True, platform: str | None = None) -> None:
    """Set JAX precision and, optionally, pin it to one platform.

    Args:
        enable_x64: Compute in float64.
        platform: "cpu", "gpu" or "tpu"; None lets JAX choose.
    """
    jax.config.update("jax_enable_x64", enable_x64)
    if platform is not None:
        jax.config.update("jax_platform_name", platform)
    info = get_jax_info()
    logger.debug(
        f"JAX {info['version']} on {info['backend']} "
        f"(x64={'on' if info['x64_enabled'] else 'off'})"
    )


def get_jax_info() -> dict:
    """JAX version, backend, devices and whether x64 is enabled."""
    return {
        "version": jax.__version__,
        "backend": jax.default_backend(),
        "devices": [str(device) for device in jax.devices()],
        "x64_enabled": bool(jax.config.jax_enable_x64),
    }
