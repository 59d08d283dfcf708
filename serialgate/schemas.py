from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

# largest value a 64-bit INTEGER column holds
MAX_INT64 = 2**63 - 1


class VerifyReq(BaseModel):
    model_config = ConfigDict(strict=True)

    code: str = ""


class CreateReq(BaseModel):
    model_config = ConfigDict(strict=True)

    code: Optional[str] = None
    expiry: Optional[str] = None
    max_uses: Optional[int] = Field(default=None, le=MAX_INT64)


def describe_error(e: ValidationError) -> str:
    parts = []
    for err in e.errors(include_url=False):
        loc = ".".join(str(p) for p in err["loc"])
        parts.append(f"{loc}: {err['msg']}" if loc else err["msg"])
    return "; ".join(parts)
