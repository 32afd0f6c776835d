"""Proxy settings for the browser session"""

from dataclasses import dataclass
from typing import Dict, Optional


@dataclass(frozen=True)
class ProxyConfig:
    """Configuration for a single proxy"""

    host: str
    port: int
    username: Optional[str] = None
    password: Optional[str] = None

    @classmethod
    def parse(cls, spec: str) -> "ProxyConfig":
        """Parse ``host:port`` or ``host:port:username:password``"""
        parts = spec.strip().split(":")
        if len(parts) not in (2, 4) or not parts[0]:
            raise ValueError(f"Invalid proxy (expected host:port[:username:password]): {spec!r}")
        try:
            port = int(parts[1])
        except ValueError:
            raise ValueError(f"Invalid proxy port: {parts[1]!r}")
        if len(parts) == 4:
            return cls(parts[0], port, parts[2], parts[3])
        return cls(parts[0], port)

    def to_url(self) -> str:
        if self.username:
            return f"http://{self.username}:{self.password}@{self.host}:{self.port}"
        return f"http://{self.host}:{self.port}"

    def to_playwright_dict(self) -> Dict[str, str]:
        """Convert to Playwright proxy format"""
        ret = {"server": f"http://{self.host}:{self.port}"}
        if self.username:
            ret["username"] = self.username
            ret["password"] = self.password or ""
        return ret

    def __str__(self) -> str:
        return f"{self.host}:{self.port}"
