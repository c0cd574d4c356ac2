"""Service layer: entity orchestrators returning ServiceResult.

Services may import from domain and infrastructure layers.
They must never import from commands or output.
"""

from imgroute.services.mapping import MappingService
from imgroute.services.origin import OriginService
from imgroute.services.policy import PolicyService
from imgroute.services.result import ServiceError, ServiceResult

__all__ = [
    "MappingService",
    "OriginService",
    "PolicyService",
    "ServiceError",
    "ServiceResult",
]
