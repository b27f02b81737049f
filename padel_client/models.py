from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from padel_client.errors import ApiFailure


class Attribute(str, Enum):
    MANIABILITY = "Maniability"
    WEIGHT = "Weight"
    EFFECT = "Effect"
    TOLERANCE = "Tolerance"
    POWER = "Power"
    CONTROL = "Control"


METRIC_NAMES: tuple[str, ...] = tuple(item.value for item in Attribute)


@dataclass(frozen=True)
class AuthHeaders:
    api_key: str
    timestamp: int
    nonce: str
    signature: str
    content_type: str = "application/json"
    accept: str = "application/json"

    def as_dict(self) -> Dict[str, str]:
        return {
            "X-API-Key": self.api_key,
            "X-API-Timestamp": str(self.timestamp),
            "X-API-Nonce": self.nonce,
            "X-API-Signature": self.signature,
            "Content-Type": self.content_type,
            "Accept": self.accept,
        }


@dataclass(frozen=True)
class RacketMetrics:
    Maniability: float = 0
    Weight: float = 0
    Effect: float = 0
    Tolerance: float = 0
    Power: float = 0
    Control: float = 0


@dataclass(frozen=True)
class RacketRecord:
    """Canonical racket shape consumed by display code.

    Only the adapter builds these; wire names such as ``url_image`` never
    leak past it.
    """

    id: Any
    name: Optional[str] = None
    brand: Optional[str] = None
    image_url: Optional[str] = None
    store_url: Optional[str] = None
    balance: Any = None
    weight: Any = None
    shape: Any = None
    metrics: RacketMetrics = field(default_factory=RacketMetrics)
    similarity_score: Optional[float] = None

    @property
    def similarity_percent(self) -> Optional[float]:
        if self.similarity_score is None:
            return None
        return round(self.similarity_score * 100.0, 1)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "brand": self.brand,
            "imageUrl": self.image_url,
            "storeUrl": self.store_url,
            "balance": self.balance,
            "weight": self.weight,
            "shape": self.shape,
            "metrics": asdict(self.metrics),
            "similarityScore": self.similarity_score,
        }


@dataclass(frozen=True)
class SimilarRackets:
    reference_racket: Optional[RacketRecord] = None
    similar_rackets: List[RacketRecord] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "referenceRacket": self.reference_racket.to_dict() if self.reference_racket else None,
            "similarRackets": [racket.to_dict() for racket in self.similar_rackets],
        }


@dataclass(frozen=True)
class ProbeResult:
    """Outcome of a connectivity probe; failures are reported, not raised."""

    ok: bool
    base_url: str
    status: Optional[int] = None
    count: Optional[int] = None
    failure: Optional[ApiFailure] = None
