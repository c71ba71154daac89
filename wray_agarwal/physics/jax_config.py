"""JAX setup shared by the closure physics: float64 on the host by default."""

import os

# Point-wise closure kernels; stay on the host unless a platform is chosen.
os.environ.setdefault('JAX_PLATFORMS', 'cpu')

import jax
import jax.numpy as jnp

jax.config.update("jax_enable_x64", True)


def get_device_info() -> str:
    """Platform and id of every visible JAX device."""
    return ", ".join(f"{d.platform}:{d.id}" for d in jax.devices())


__all__ = ['jax', 'jnp', 'get_device_info']
