from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel


class ApiCreds(BaseModel):
    key: str
    secret: str
    passphrase: str


class RemoteBuilderConfig(BaseModel):
    url: str
    token: str | None = None


@dataclass
class RequestArgs:
    method: str
    request_path: str
    body: Any = None
