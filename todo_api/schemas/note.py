from pydantic import BaseModel


class NoteWrite(BaseModel):
    content: str
