# model/api.py
from pydantic import BaseModel


class GenerateResponse(BaseModel):
    names: list[str]


class StatsResponse(BaseModel):
    total: int
    remaining: int
    ready: bool


class ErrorResponse(BaseModel):
    error: str
