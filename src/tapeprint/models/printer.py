"""Printer connection configuration models."""

from pydantic import BaseModel, Field

# Raw data port used for the bulk raster stream
DATA_PORT = 9100


class PrinterConfig(BaseModel):
    """Configuration for a network tape printer."""

    address: str
    control_port: int = 9100  # UDP
    data_port: int = DATA_PORT  # TCP
    connect_timeout: float = Field(default=5.0, gt=0)
    reply_timeout: float = Field(default=5.0, gt=0)
    # Dotted path "package.module:Class" of the control-channel codec
    codec: str | None = None
    # Send a best-effort stop when a session aborts after starting
    stop_on_abort: bool = False
