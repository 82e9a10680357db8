from __future__ import annotations

import pytest

from topo_helpers import CHIANG_MAI, KOH, NO_GEOMETRY, SAMUT_PRAKAN, TopologyBuilder, box


@pytest.fixture()
def sample_topology() -> dict:
    builder = TopologyBuilder()
    builder.polygon([box(98.95, 18.75, 99.02, 18.82)], CHIANG_MAI)
    builder.null(NO_GEOMETRY)
    builder.polygon([box(100.40, 13.60, 100.60, 13.80), box(100.45, 13.65, 100.55, 13.75)], SAMUT_PRAKAN)
    builder.multipolygon(
        [[box(102.30, 12.00, 102.35, 12.05)], [box(102.40, 12.00, 102.45, 12.05)]],
        KOH,
    )
    return builder.build()
