"""
Metric record type definitions shared by the metrics sinks.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class Dimension(BaseModel):
    """A single name/value dimension attached to a metric."""

    model_config = ConfigDict(frozen=True)

    name: str
    value: str


class MetricDatum(BaseModel):
    """
    One named counter or timer value.
    A batch of these is produced for every poll iteration.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    unit: str
    value: float
    timestamp: datetime
    dimensions: tuple[Dimension, ...]

    def dimension(self, name: str) -> str | None:
        """Get a dimension value by name."""
        for dimension in self.dimensions:
            if dimension.name == name:
                return dimension.value
        return None
