"""
Shared fixtures: the Haberdasher example service and a hook recorder.
"""
import random
import sys
from pathlib import Path

import pytest

# example service lives in examples/haberdasher
sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "examples"))

from haberdasher.service import HaberdasherService, haberdasher_descriptor  # noqa: E402

from helpers import Recorder  # noqa: E402


@pytest.fixture
def haberdasher() -> HaberdasherService:
    return HaberdasherService(random.Random(7))


@pytest.fixture
def descriptor(haberdasher):
    return haberdasher_descriptor(haberdasher)


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()
