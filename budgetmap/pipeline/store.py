"""Process-scoped cache of decoded features and resolved municipality records."""

from __future__ import annotations

import enum
import logging
import threading
import time
from typing import Any, Callable, Mapping

from budgetmap.common.constants import WEB_MERCATOR_EPSG
from budgetmap.common.errors import BudgetMapError
from budgetmap.common.logging import get_logger, log_event
from budgetmap.common.models import BoundaryFeature, MunicipalityRecord
from budgetmap.pipeline.attributes import resolve
from budgetmap.pipeline.topology import decode

logger = get_logger(__name__)


class LoadState(enum.Enum):
    UNLOADED = "unloaded"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


class FeatureStore:
    """Load the topology once and share the result with every caller.

    The first caller runs ``loader`` and decodes its output; callers arriving
    while that load is in flight wait for it and receive the same features or
    the same error. A failed load is not retried until ``invalidate``.
    """

    def __init__(
        self,
        loader: Callable[[], Any],
        *,
        source_epsg: int = WEB_MERCATOR_EPSG,
        overrides: Mapping[str, float] | None = None,
    ) -> None:
        self._loader = loader
        self._source_epsg = source_epsg
        self._overrides = overrides
        self._condition = threading.Condition()
        self._state = LoadState.UNLOADED
        self._features: list[BoundaryFeature] | None = None
        self._records: list[MunicipalityRecord] | None = None
        self._error: Exception | None = None

    @property
    def state(self) -> LoadState:
        with self._condition:
            return self._state

    def _load(self) -> list[BoundaryFeature]:
        started = time.monotonic()
        features = decode(self._loader(), source_epsg=self._source_epsg)
        log_event(
            logger,
            "feature store ready",
            stage="load",
            event="STORE_READY",
            status="ok",
            features_out=len(features),
            duration_ms=int((time.monotonic() - started) * 1000),
        )
        return features

    def features(self) -> list[BoundaryFeature]:
        with self._condition:
            while self._state is LoadState.LOADING:
                self._condition.wait()
            if self._state is LoadState.READY:
                return self._features
            if self._state is LoadState.FAILED:
                raise self._error
            self._state = LoadState.LOADING

        try:
            features = self._load()
        except Exception as exc:
            with self._condition:
                self._state = LoadState.FAILED
                self._error = exc
                self._condition.notify_all()
            error_code = exc.error_code if isinstance(exc, BudgetMapError) else "UNEXPECTED_ERROR"
            log_event(
                logger,
                f"feature store load failed: {exc}",
                level=logging.ERROR,
                stage="load",
                event="STORE_FAILED",
                status="error",
                error_code=error_code,
            )
            raise

        with self._condition:
            self._features = features
            self._state = LoadState.READY
            self._condition.notify_all()
        return features

    def resolve(self, properties: Mapping[str, Any]) -> MunicipalityRecord:
        return resolve(properties, overrides=self._overrides)

    def municipalities(self) -> list[MunicipalityRecord]:
        while True:
            features = self.features()
            with self._condition:
                # Records are only cached against the feature set still loaded.
                if self._state is LoadState.READY and self._features is features:
                    if self._records is None:
                        self._records = [self.resolve(feature.properties) for feature in features]
                    return self._records

    def invalidate(self) -> None:
        with self._condition:
            while self._state is LoadState.LOADING:
                self._condition.wait()
            self._state = LoadState.UNLOADED
            self._features = None
            self._records = None
            self._error = None
