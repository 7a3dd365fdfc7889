"""Request and response models for the chat endpoints."""

import base64
import binascii
from typing import Tuple

from pydantic import BaseModel, Field, field_validator


class ChatMessageRequest(BaseModel):
    message: str = Field(..., min_length=1, description="The user's trading question")

    @field_validator("message")
    @classmethod
    def message_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("message must not be blank")
        return value


class ImageChatRequest(ChatMessageRequest):
    image: str = Field(..., min_length=1, description="Chart image, base64 or data URL")
    mime_type: str = Field(default="image/jpeg", alias="mimeType")

    model_config = {"populate_by_name": True}

    def decode_image(self) -> Tuple[bytes, str]:
        """Return the raw image bytes and their MIME type."""
        data, mime_type = self.image, self.mime_type
        if data.startswith("data:"):
            header, _, data = data.partition(",")
            mime_type = header[5:].split(";")[0] or mime_type
        try:
            return base64.b64decode(data, validate=True), mime_type
        except (binascii.Error, ValueError) as e:
            raise ValueError("image is not valid base64") from e


class ChatResponse(BaseModel):
    response: str
