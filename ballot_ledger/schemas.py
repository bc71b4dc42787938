from typing import Any, List, Union

from pydantic import BaseModel, Field


class InvokeRequest(BaseModel):
    function: str = Field(..., min_length=1, examples=["CastVote"])
    args: List[Union[str, bool, int]] = Field(default_factory=list, examples=[["vote1", "voter1", "candidate1"]])


class InvokeResponse(BaseModel):
    function: str
    result: Any = None
