"""TransformEngine - payload → flat attribute records.

Routes payloads by format, then enriches every record with the source's
static attributes and processing metadata.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, List, Optional, Union

from ..core.domain import PayloadFormat, Record, SourceSpec
from ..core.errors import FormatError
from .structured import parse_structured_records
from .tabular import parse_tabular

logger = logging.getLogger(__name__)

PROCESSOR_VERSION = "1.0.0"


class TransformEngine:
    """Parses fetched payloads into records.

    Stateless apart from the clock; one instance is shared by all workers.
    """

    def __init__(self, clock: Optional[Callable[[], float]] = None):
        self._clock = clock or time.time

    def transform(
        self,
        payload: Union[bytes, str],
        fmt: "PayloadFormat | str",
        filter_expr: Optional[str] = None,
        source_name: str = "",
    ) -> List[Record]:
        """Parse ``payload`` according to ``fmt``.

        Raises:
            FormatError: unsupported format or malformed payload
            TransformError: filter expression failed
        """
        try:
            fmt = PayloadFormat.parse(fmt)
        except ValueError as e:
            raise FormatError(str(e)) from e

        if fmt is PayloadFormat.STRUCTURED:
            return parse_structured_records(payload, filter_expr)

        if filter_expr:
            logger.debug(
                "[TRANSFORM] Filter ignored for tabular payload source=%s", source_name
            )
        return parse_tabular(payload, source_name)

    def enrich(self, records: List[Record], source: SourceSpec) -> List[Record]:
        """Merge static attributes and processing metadata into each record."""
        processed_at = int(self._clock())
        for record in records:
            record.update(source.attributes)
            record["source.name"] = source.name
            record["processed.timestamp"] = processed_at
            record["processor.version"] = PROCESSOR_VERSION
        return records

    def transform_source(self, payload: Union[bytes, str], source: SourceSpec) -> List[Record]:
        records = self.transform(payload, source.format, source.filter_expr, source.name)
        return self.enrich(records, source)
