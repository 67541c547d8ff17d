import pytest

from pigmix.core.color_science import LabColor
from pigmix.core.data_types import Pigment
from pigmix.utils.palette_loader import load_palette


def make_pigment(title, hex_str, pigment_id=None):
    return Pigment(title=title, hex=hex_str, lab=LabColor.from_hex(hex_str), id=pigment_id)


@pytest.fixture
def palette():
    return load_palette("default")


@pytest.fixture
def red():
    return make_pigment("Red", "#E34234", 1)


@pytest.fixture
def blue():
    return make_pigment("Blue", "#002185", 2)


@pytest.fixture
def yellow():
    return make_pigment("Yellow", "#FCD300", 3)


@pytest.fixture
def white():
    return make_pigment("White", "#FFFFFF", 4)


@pytest.fixture
def two_pigments(red, blue):
    return [red, blue]
