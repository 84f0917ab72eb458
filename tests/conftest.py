"""Pytest configuration and shared fixtures for the assembler tests.

This module provides:
- Deterministic RNG fixtures for numpy and torch
- A seeded AssemblerContext that is closed after each test
- Debug mode reset between tests
"""

import os

import numpy as np
import pytest
import torch

from qassembler import AssemblerConfig, AssemblerContext, set_debug_enabled


def _seed() -> int:
    return int(os.environ.get("TEST_RNG_SEED", "0"))


@pytest.fixture(scope="function")
def rng() -> np.random.Generator:
    """Provide a deterministic numpy RNG for tests.

    Uses seed from TEST_RNG_SEED environment variable (default: 0).
    """
    return np.random.default_rng(_seed())


@pytest.fixture(scope="function")
def torch_rng() -> torch.Generator:
    """Provide a deterministic CPU torch RNG for tests."""
    generator = torch.Generator()
    generator.manual_seed(_seed())
    return generator


@pytest.fixture(scope="function")
def ctx():
    """A seeded assembler context, closed when the test ends."""
    context = AssemblerContext(AssemblerConfig(seed=_seed()))
    yield context
    context.close()


@pytest.fixture(scope="function", autouse=True)
def set_random_seeds() -> None:
    """Seed numpy and torch global generators for every test."""
    np.random.seed(_seed())
    torch.manual_seed(_seed())


@pytest.fixture(scope="function", autouse=True)
def reset_debug_mode():
    """Keep debug mode from leaking between tests."""
    yield
    set_debug_enabled(False)
