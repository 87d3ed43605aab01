from typing import Optional

from pydantic import BaseModel, Field, model_validator

from jewelshop.core.config import settings


class SignedUrlRequest(BaseModel):
    bucket: Optional[str] = None
    path: Optional[str] = None
    expiresIn: int = Field(default=settings.SIGNED_URL_DEFAULT_EXPIRY, ge=1, le=7 * 24 * 3600)

    @model_validator(mode="after")
    def bucket_and_path(self):
        if not self.bucket or not self.path:
            raise ValueError("Bucket and path are required")
        return self
