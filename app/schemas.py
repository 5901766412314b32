import uuid
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field
from pydantic_core import PydanticCustomError


# --- Field validators ---
#
# Request fields default to None and are validated with validate_default so
# that missing, empty and wrongly-typed values all produce one readable
# message instead of pydantic's generic ones.

def required_string(field: str) -> BeforeValidator:
    def check(value: Any) -> str:
        if value is None or value == "":
            raise PydanticCustomError("field_required", "Please provide {field}", {"field": field})
        if not isinstance(value, str):
            raise PydanticCustomError(
                "field_not_string", "{field} type should be string", {"field": field}
            )
        return value

    return BeforeValidator(check)


def required_id(field: str, label: str) -> BeforeValidator:
    def check(value: Any) -> uuid.UUID:
        if value is None or value == "":
            raise PydanticCustomError("field_required", "Please provide {field}", {"field": field})
        if isinstance(value, uuid.UUID):
            return value
        try:
            return uuid.UUID(str(value))
        except ValueError:
            raise PydanticCustomError(
                "invalid_id", "Invalid {label} Id", {"label": label}
            ) from None

    return BeforeValidator(check)


# --- Author ---

class AuthorCreate(BaseModel):
    name: Annotated[str, required_string("name")] = Field(None, validate_default=True)
    password: Annotated[str, required_string("password")] = Field(None, validate_default=True)
    email: Annotated[str, required_string("email")] = Field(None, validate_default=True)


class LoginRequest(BaseModel):
    email: Annotated[str, required_string("email")] = Field(None, validate_default=True)
    password: Annotated[str, required_string("password")] = Field(None, validate_default=True)


class AuthorResponse(BaseModel):
    id: uuid.UUID
    name: str
    email: str
    created_at: str | None
    updated_at: str | None


class RegisterResponse(AuthorResponse):
    token: str
    message: str


class TokenResponse(BaseModel):
    token: str


# --- Post ---

class PostCreate(BaseModel):
    content: Annotated[str, required_string("post content")] = Field(
        None, validate_default=True
    )


# --- Comment / Reply ---

class CommentCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    post_id: Annotated[uuid.UUID, required_id("postId", "post")] = Field(
        None, alias="postId", validate_default=True
    )
    content: Annotated[str, required_string("content")] = Field(None, validate_default=True)


class ReplyCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    post_id: Annotated[uuid.UUID, required_id("postId", "post")] = Field(
        None, alias="postId", validate_default=True
    )
    comment_id: Annotated[uuid.UUID, required_id("commentId", "comment")] = Field(
        None, alias="commentId", validate_default=True
    )
    content: Annotated[str, required_string("content")] = Field(None, validate_default=True)


# --- Feed ---

class FeedResponse(BaseModel):
    data: list  # serialised post dicts, comments and replies embedded
    nextPage: str | None = None
    prevPage: str | None = None
