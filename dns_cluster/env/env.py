from __future__ import annotations
from pydantic import BaseModel, StrictFloat, StrictInt, StrictStr
from typing import Callable, Dict, Literal, Union

PrimaryType = Union[str, int, float, bytes, bool]


class Env(BaseModel):
    DNS_CLUSTER_NODE_NAME: StrictStr | None = None
    DNS_CLUSTER_RELEASE_NAME: StrictStr | None = None
    DNS_CLUSTER_COOKIE: StrictStr = "dns-cluster-dev-cookie-change-in-prod"
    DNS_CLUSTER_TRANSPORT_HOST: StrictStr = "0.0.0.0"
    DNS_CLUSTER_TRANSPORT_PORT: StrictInt = 4370
    DNS_CLUSTER_DNS_TIMEOUT: StrictFloat = 5.0
    DNS_CLUSTER_HANDSHAKE_TIMEOUT: StrictFloat = 5.0
    DNS_CLUSTER_LOG_LEVEL: StrictStr = "info"
    DNS_CLUSTER_LOG_OUTPUT: Literal["stdout", "stderr"] = "stderr"

    @classmethod
    def types_map(cls) -> Dict[str, Callable[[str], PrimaryType]]:
        return {
            "DNS_CLUSTER_NODE_NAME": str,
            "DNS_CLUSTER_RELEASE_NAME": str,
            "DNS_CLUSTER_COOKIE": str,
            "DNS_CLUSTER_TRANSPORT_HOST": str,
            "DNS_CLUSTER_TRANSPORT_PORT": int,
            "DNS_CLUSTER_DNS_TIMEOUT": float,
            "DNS_CLUSTER_HANDSHAKE_TIMEOUT": float,
            "DNS_CLUSTER_LOG_LEVEL": str,
            "DNS_CLUSTER_LOG_OUTPUT": str,
        }

    @property
    def is_release(self) -> bool:
        return self.DNS_CLUSTER_RELEASE_NAME is not None

    def get_transport_config(self) -> dict:
        """Get node transport settings from environment settings."""
        return {
            'node_name': self.DNS_CLUSTER_NODE_NAME,
            'cookie': self.DNS_CLUSTER_COOKIE,
            'host': self.DNS_CLUSTER_TRANSPORT_HOST,
            'port': self.DNS_CLUSTER_TRANSPORT_PORT,
            'handshake_timeout': self.DNS_CLUSTER_HANDSHAKE_TIMEOUT,
        }

    def get_logging_config(self) -> dict:
        """Get LoggingConfig.update() keyword arguments from environment settings."""
        return {
            'log_level': self.DNS_CLUSTER_LOG_LEVEL,
            'log_output': self.DNS_CLUSTER_LOG_OUTPUT,
        }
