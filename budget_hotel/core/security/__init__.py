from budget_hotel.core.security.encryption import EncryptionService

__all__ = ["EncryptionService"]
