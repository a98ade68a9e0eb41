"""Pydantic model for the signed-in user."""
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class User(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    uid: str = ""
    email: str = ""
    name: str = ""
    order_count: int = 0
