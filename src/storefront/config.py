"""Runtime settings read from the environment.

Only the shop's own knobs live here. Persistence and event processing are
configured through ``domain.toml`` and ``PROTEAN_ENV``.
"""

import os
from dataclasses import dataclass
from functools import lru_cache


def _int(name: str, default: int) -> int:
    raw = os.getenv(name)
    return int(raw) if raw else default


@dataclass(frozen=True)
class StoreSettings:
    env: str = "development"
    admin_key: str = ""
    store_url: str = "http://localhost:3000"

    swish_alias: str = ""
    swish_cert: str = ""
    swish_key: str = ""
    swish_ca: str = ""
    swish_api_url: str = "https://mss.cpc.getswish.net/swish-cpcapi"
    swish_callback: str = ""

    smtp_server: str = ""
    smtp_port: int = 465
    smtp_username: str = ""
    smtp_password: str = ""
    email_from: str = ""
    email_bcc: str = ""

    @classmethod
    def from_env(cls) -> "StoreSettings":
        return cls(
            env=os.getenv("PROTEAN_ENV", "development").lower(),
            admin_key=os.getenv("ADMIN_KEY", ""),
            store_url=os.getenv("STORE_URL", cls.store_url),
            swish_alias=os.getenv("SWISH_ALIAS", ""),
            swish_cert=os.getenv("SWISH_CERT", ""),
            swish_key=os.getenv("SWISH_KEY", ""),
            swish_ca=os.getenv("SWISH_CA", ""),
            swish_api_url=os.getenv("SWISH_API_URL", cls.swish_api_url),
            swish_callback=os.getenv("SWISH_CALLBACK", ""),
            smtp_server=os.getenv("SMTP_SERVER", ""),
            smtp_port=_int("SMTP_PORT", 465),
            smtp_username=os.getenv("SMTP_USERNAME", ""),
            smtp_password=os.getenv("SMTP_PASSWORD", ""),
            email_from=os.getenv("EMAIL_FROM", ""),
            email_bcc=os.getenv("EMAIL_BCC", ""),
        )

    @property
    def swish_configured(self) -> bool:
        return bool(self.swish_alias and self.swish_cert and self.swish_key)

    @property
    def smtp_configured(self) -> bool:
        return bool(self.smtp_server and self.email_from)

    @property
    def payment_callback_url(self) -> str:
        return self.swish_callback or f"{self.store_url}/api/order/swish/paymentCallback"

    @property
    def refund_callback_url(self) -> str:
        base = self.payment_callback_url.rsplit("/", 1)[0]
        return f"{base}/refundCallback"


@lru_cache(maxsize=1)
def get_settings() -> StoreSettings:
    return StoreSettings.from_env()
