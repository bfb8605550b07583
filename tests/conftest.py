from datetime import datetime

import pytest

from partogram_canvas.data_model import PartogramDocument, default_table
from partogram_canvas.geometry import DEFAULT_GEOMETRY
from partogram_canvas.session import PartogramSession

NOW = datetime(2024, 1, 1, 10, 30)


@pytest.fixture
def g():
    return DEFAULT_GEOMETRY


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def document():
    return PartogramDocument(table_data=default_table(NOW))


@pytest.fixture
def session(document):
    return PartogramSession(document)


def dilation_cell_y(g, value):
    """Internal y in the middle of the dilation cell for `value`."""
    return g.dilation_to_y(value) + g.dilation_unit_height * 0.2


def contraction_slot_y(g, slot):
    return g.contraction_slot_top(slot) + g.contraction_row_height / 2
