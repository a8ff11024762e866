from __future__ import annotations

import logging
from typing import Sequence

from .errors import InvalidCnvTypeError
from .models import CnvType

logger = logging.getLogger(__name__)

# Checked in order; the first set containing every sample's type wins.
_UNIFIABLE = (
    (CnvType.REFERENCE, frozenset({CnvType.REFERENCE})),
    (CnvType.LOSS, frozenset({CnvType.REFERENCE, CnvType.LOSS})),
    (CnvType.GAIN, frozenset({CnvType.REFERENCE, CnvType.GAIN})),
    (CnvType.LOSS_OF_HETEROZYGOSITY, frozenset({CnvType.REFERENCE, CnvType.LOSS_OF_HETEROZYGOSITY})),
)


def assign_cnv_type(cnv_types: Sequence[CnvType]) -> CnvType:
    """Reconcile per-sample CNV types into the single type of a shared record.

    Samples agreeing on one direction (optionally mixed with reference calls)
    give that direction; anything else is a complex CNV, which only makes sense
    when there are at least two samples.

    Raises
    ------
    InvalidCnvTypeError
        If ``cnv_types`` is empty, or a single sample carries a type that cannot
        be written on its own.
    """
    if len(cnv_types) == 0:
        raise InvalidCnvTypeError("Cannot assign a CNV type without any sample calls")

    observed = set(cnv_types)
    for result, allowed in _UNIFIABLE:
        if observed <= allowed:
            return result

    if len(cnv_types) == 1:
        raise InvalidCnvTypeError(f"cnvType {cnv_types[0].name} is invalid for single sample.")

    logger.debug("Mixed sample CNV types %s; writing complex CNV", sorted(t.name for t in observed))
    return CnvType.COMPLEX_CNV
