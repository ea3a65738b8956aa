from budget_hotel.services.base.base_service import BaseService, Clock
from budget_hotel.services.base.service_result import ErrorCode, ServiceError, ServiceResult

__all__ = [
    "BaseService",
    "Clock",
    "ErrorCode",
    "ServiceError",
    "ServiceResult",
]
