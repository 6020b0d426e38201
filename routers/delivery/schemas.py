from pydantic import BaseModel
from typing import Literal


class CourierAssign(BaseModel):
    method: Literal["Uber", "PickMe"]
