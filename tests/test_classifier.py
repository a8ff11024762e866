import itertools

import pytest

from cnvvcf.classifier import assign_cnv_type
from cnvvcf.errors import InvalidCnvTypeError
from cnvvcf.models import CnvType

REF = CnvType.REFERENCE
GAIN = CnvType.GAIN
LOSS = CnvType.LOSS
LOH = CnvType.LOSS_OF_HETEROZYGOSITY


def _combinations(alphabet, max_len=4):
    for n in range(1, max_len + 1):
        yield from itertools.product(alphabet, repeat=n)


def test_all_reference_is_reference():
    for n in range(1, 5):
        assert assign_cnv_type([REF] * n) is REF


@pytest.mark.parametrize("direction", [GAIN, LOSS, LOH])
def test_single_direction_with_reference(direction):
    for types in _combinations([REF, direction]):
        expected = REF if set(types) == {REF} else direction
        assert assign_cnv_type(list(types)) is expected


def test_gain_and_loss_is_complex():
    for types in _combinations([REF, GAIN, LOSS]):
        if GAIN in types and LOSS in types:
            assert assign_cnv_type(list(types)) is CnvType.COMPLEX_CNV


def test_loh_mixed_with_gain_is_complex():
    assert assign_cnv_type([LOH, REF, GAIN]) is CnvType.COMPLEX_CNV


def test_single_sample_never_complex():
    for t in (REF, GAIN, LOSS, LOH):
        assert assign_cnv_type([t]) is not CnvType.COMPLEX_CNV
    with pytest.raises(InvalidCnvTypeError, match="single sample"):
        assign_cnv_type([CnvType.COMPLEX_CNV])


def test_empty_input_rejected():
    with pytest.raises(InvalidCnvTypeError):
        assign_cnv_type([])


def test_errors_are_value_errors():
    with pytest.raises(ValueError):
        assign_cnv_type([])
