import logging

import pytest

from halfoh.controller.dimensions import resolve_dimensions
from halfoh.model.errors import DimensionTooSmallError, EvenDimensionError, FailureKind

from conftest import CHORD, semicircle


def test_odd_dimensions_are_kept(adapter, d_shape):
    assert resolve_dimensions(adapter, *d_shape, auto_fix=False) == (17, 13)


def test_even_dimension_is_incremented(adapter, caplog):
    arc = adapter.create_curve(semicircle(), 16, name="arc", distribution=[i / 15 for i in range(16)])
    chord = adapter.create_curve(CHORD, 13, name="chord")

    with caplog.at_level(logging.INFO, logger="halfoh"):
        assert resolve_dimensions(adapter, arc, chord, auto_fix=True) == (17, 13)

    assert adapter.get_dimension(arc) == 17
    assert not arc.custom_distribution
    assert "increased from 16 to 17" in caplog.text


def test_even_dimension_is_rejected_without_auto_fix(adapter):
    arc = adapter.create_curve(semicircle(), 17, name="arc")
    chord = adapter.create_curve(CHORD, 12, name="chord")

    with pytest.raises(EvenDimensionError) as excinfo:
        resolve_dimensions(adapter, arc, chord, auto_fix=False)
    assert excinfo.value.kind == FailureKind.EVEN_DIMENSION_REJECTED
    assert "chord" in excinfo.value.message
    assert adapter.get_dimension(chord) == 12


def test_small_dimension_is_fatal(adapter):
    arc = adapter.create_curve(semicircle(), 17, name="arc")
    chord = adapter.create_curve(CHORD, 3, name="chord")

    with pytest.raises(DimensionTooSmallError, match="at least 5") as excinfo:
        resolve_dimensions(adapter, arc, chord, auto_fix=True)
    assert excinfo.value.fatal


def test_auto_fixed_dimension_still_checked_against_minimum(adapter):
    arc = adapter.create_curve(semicircle(), 2, name="arc")
    chord = adapter.create_curve(CHORD, 13, name="chord")

    with pytest.raises(DimensionTooSmallError):
        resolve_dimensions(adapter, arc, chord, auto_fix=True)
    assert adapter.get_dimension(arc) == 3
