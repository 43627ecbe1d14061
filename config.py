import os
from dataclasses import dataclass, field
from typing import List, Optional


def _env_or(key: str, default: str) -> str:
    v = os.getenv(key)
    return v if v is not None else default


@dataclass(frozen=True)
class Settings:
    database_url: Optional[str] = None
    database_name: Optional[str] = None
    account_id: str = ""
    hotel_id: str = ""
    hotel_name: str = "Hotel Management System"
    hotel_address: str = ""
    hotel_phone: str = ""
    hotel_email: str = ""
    hotel_fax: str = ""
    allowed_origins: List[str] = field(default_factory=lambda: ["*"])
    log_level: str = "INFO"
    port: int = 8000

    @classmethod
    def from_env(cls) -> "Settings":
        origins = [o.strip() for o in _env_or("ALLOWED_ORIGINS", "*").split(",") if o.strip()]
        return cls(
            database_url=os.getenv("DATABASE_URL"),
            database_name=os.getenv("DATABASE_NAME"),
            account_id=_env_or("ACCOUNT_ID", ""),
            hotel_id=_env_or("HOTEL_ID", ""),
            hotel_name=_env_or("HOTEL_NAME", "Hotel Management System"),
            hotel_address=_env_or("HOTEL_ADDRESS", ""),
            hotel_phone=_env_or("HOTEL_PHONE", ""),
            hotel_email=_env_or("HOTEL_EMAIL", ""),
            hotel_fax=_env_or("HOTEL_FAX", ""),
            allowed_origins=origins or ["*"],
            log_level=_env_or("LOG_LEVEL", "INFO").upper(),
            port=int(_env_or("PORT", "8000")),
        )

    def hotel_identity(self) -> dict:
        """Fields stamped on every booking at creation time."""
        return {
            "hotel_id": self.hotel_id,
            "hotel_name": self.hotel_name,
            "hotel_address": self.hotel_address,
            "hotel_phone": self.hotel_phone,
            "hotel_email": self.hotel_email,
            "hotel_fax": self.hotel_fax,
        }
