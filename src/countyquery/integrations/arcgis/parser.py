"""
ArcGIS feature query response parser.

Normalizes the JSON envelope of ``/query`` and ``/queryRelatedRecords``
responses into flat record lists. The result shape is chosen by the
caller, never inferred from the envelope.
"""

import logging
from typing import Any, Dict, List, Optional, Union

from countyquery.core.errors import MalformedResponseError, ServiceError
from countyquery.models.features import FeatureRecord, parse_geometry
from countyquery.models.query import ResultShape

logger = logging.getLogger(__name__)

NormalizedRecord = Union[Dict[str, Any], FeatureRecord]


class ArcGISResponseParser:
    """Parser for ArcGIS REST feature query responses."""

    def _features(self, envelope: Dict[str, Any]) -> List[Any]:
        features = envelope.get("features") or []
        if not isinstance(features, list):
            raise MalformedResponseError(
                f"Expected 'features' to be a list, got {type(features).__name__}"
            )
        return features

    def _attributes(self, entry: Any) -> Dict[str, Any]:
        """
        Extract the attribute mapping of a feature or related record.

        Args:
            entry: Feature or related record object

        Returns:
            Attribute mapping, empty when the entry has none
        """
        if not isinstance(entry, dict):
            raise MalformedResponseError(
                f"Expected feature object, got {type(entry).__name__}"
            )
        return entry.get("attributes") or {}

    def _envelope_wkid(self, envelope: Dict[str, Any]) -> Optional[int]:
        spatial_reference = envelope.get("spatialReference")
        if isinstance(spatial_reference, dict):
            return spatial_reference.get("wkid")
        return None

    def _related_records(self, envelope: Dict[str, Any]) -> List[Any]:
        """
        Read the records of the first related record group.

        A missing group list, an empty one, or a group without records all
        mean "no related records".
        """
        groups = envelope.get("relatedRecordGroups") or []
        if not isinstance(groups, list):
            raise MalformedResponseError("Expected 'relatedRecordGroups' to be a list")
        if not groups:
            return []

        first_group = groups[0]
        if not isinstance(first_group, dict):
            raise MalformedResponseError("Related record group must be an object")

        records = first_group.get("relatedRecords") or []
        if not isinstance(records, list):
            raise MalformedResponseError("Expected 'relatedRecords' to be a list")
        return records

    def parse_attributes(self, envelope: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Map every feature to its attribute mapping."""
        return [self._attributes(feature) for feature in self._features(envelope)]

    def parse_features(self, envelope: Dict[str, Any]) -> List[FeatureRecord]:
        """
        Map every feature to a FeatureRecord.

        The spatial reference comes from the envelope and is shared by all
        records; per-geometry references are kept on the geometry itself.
        """
        wkid = self._envelope_wkid(envelope)
        return [
            FeatureRecord(
                attributes=self._attributes(feature),
                spatial_reference_wkid=wkid,
                geometry=parse_geometry(feature.get("geometry")),
            )
            for feature in self._features(envelope)
        ]

    def parse_related(self, envelope: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Map every related record of the first group to its attributes."""
        return [self._attributes(record) for record in self._related_records(envelope)]

    def parse(self, envelope: Any, result_shape: ResultShape) -> List[NormalizedRecord]:
        """
        Normalize a decoded response body.

        Args:
            envelope: Decoded JSON body
            result_shape: Record shape requested by the caller

        Returns:
            Records in service response order

        Raises:
            ServiceError: If the body carries a truthy ``error``
            MalformedResponseError: If the body is not a query envelope
        """
        result_shape = ResultShape(result_shape)

        if not isinstance(envelope, dict):
            raise MalformedResponseError(
                f"Expected a JSON object, got {type(envelope).__name__}"
            )

        error = envelope.get("error")
        if error:
            raise ServiceError(error)

        handlers = {
            ResultShape.ATTRIBUTES_ONLY: self.parse_attributes,
            ResultShape.FULL: self.parse_features,
            ResultShape.RELATED: self.parse_related,
        }
        records: List[NormalizedRecord] = list(handlers[result_shape](envelope))

        logger.debug(f"Parsed {len(records)} records as {result_shape.value}")
        return records
