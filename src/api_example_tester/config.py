"""Run configuration: where the server is and how to run the examples."""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel


class RunConfig(BaseModel):
    """Settings for one run against one server."""

    protocol: str = "http"
    host: str = "localhost"
    port: int = 8081
    spec: Path = Path("./swagger.yml")
    auth_mode: Literal["client", "header"] = "client"
    success_first: bool = False
    timeout: float | None = None
    verbose: bool = False

    @property
    def server_url(self) -> str:
        return f"{self.protocol}://{self.host}:{self.port}"

    def base_url(self, base_path: str) -> str:
        """Server URL joined with the document's basePath."""
        if base_path and not base_path.startswith("/"):
            base_path = "/" + base_path
        return self.server_url + base_path.rstrip("/")
