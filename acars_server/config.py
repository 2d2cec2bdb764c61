"""Application configuration models and helpers."""

from functools import lru_cache
from typing import Annotated, List, Union

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


def _split_csv(value: Union[str, List[str], None]) -> List[str]:
    if value is None:
        return []
    items = value.split(",") if isinstance(value, str) else value
    return [item.strip() for item in items if item and item.strip()]


class AppSettings(BaseSettings):
    """Runtime configuration for the ACARS ingestion service."""

    udp_host: str = Field(default="0.0.0.0", description="Bind address for the ACARS UDP socket.")
    udp_port: int = Field(
        default=9876,
        ge=0,
        le=65535,
        description="UDP port on which acarsdec forwards messages.",
    )
    max_packet_size: int = Field(
        default=512,
        ge=68,
        description="Receive buffer size for a single datagram (bytes).",
    )
    database_url: str = Field(
        default="sqlite:///acars.db",
        description="SQLAlchemy database URL. Empty disables persistence.",
    )
    skip_labels: Annotated[List[str], NoDecode] = Field(
        default_factory=list,
        description="Message labels that are never stored.",
    )
    once_labels: Annotated[List[str], NoDecode] = Field(
        default_factory=list,
        description="Message labels stored once per date, flight and registration.",
    )
    channels: Annotated[List[str], NoDecode] = Field(
        default_factory=list,
        description="Frequencies (MHz) for receiver channels 1..N.",
    )
    stop_on_decode_error: bool = Field(
        default=False,
        description="Stop the ingestion loop on the first undecodable datagram.",
    )
    api_enabled: bool = Field(default=True, description="Serve the HTTP status API.")
    api_host: str = Field(default="127.0.0.1")
    api_port: int = Field(default=9090, ge=1, le=65535)
    log_level: str = Field(default="INFO")

    model_config = SettingsConfigDict(env_prefix="acars_", env_file=".env", extra="ignore")

    @field_validator("skip_labels", "once_labels", "channels", mode="before")
    @classmethod
    def _parse_list(cls, value):
        return _split_csv(value)


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    """Return cached settings instance for reuse across request handlers."""

    return AppSettings()
