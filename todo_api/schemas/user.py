from pydantic import BaseModel


class UserLookup(BaseModel):
    user_id: int
