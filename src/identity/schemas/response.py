"""Standard response envelope: {status, code, msg, data}."""

from typing import Literal

from pydantic import BaseModel


class ApiResponse[DataT](BaseModel):
    status: Literal["success", "error"] = "success"
    code: int = 200
    msg: str
    data: DataT | None = None
