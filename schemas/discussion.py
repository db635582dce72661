from pydantic import BaseModel, Field, StringConstraints
from typing import Annotated, Optional
from datetime import datetime


# Trimmed before length checks, so whitespace-only text is rejected
PostText = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=1000)]
CommentText = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=500)]

def _now() -> str:
    return datetime.now().isoformat()


class Reply(BaseModel):
    id: str
    author: str
    content: str = Field(max_length=500)
    created_at: str = Field(default_factory=_now)

class Comment(BaseModel):
    id: str
    author: str
    content: str = Field(max_length=500)
    likes: list[str] = Field(default_factory=list)
    replies: list[Reply] = Field(default_factory=list)
    created_at: str = Field(default_factory=_now)

class LinkPreview(BaseModel):
    url: str
    title: Optional[str] = None
    description: Optional[str] = None
    image: Optional[str] = None
    site_name: Optional[str] = None

class Post(BaseModel):
    id: str
    session_id: str
    author: str
    content: str = Field(max_length=1000)
    likes: list[str] = Field(default_factory=list)
    comments: list[Comment] = Field(default_factory=list)
    link_preview: Optional[LinkPreview] = None
    created_at: str = Field(default_factory=_now)

class CreatePostRequest(BaseModel):
    author: str
    content: PostText
    link_preview: Optional[LinkPreview] = None
    client_id: Optional[str] = None

class UpdatePostRequest(BaseModel):
    content: PostText
    link_preview: Optional[LinkPreview] = None

class CreateCommentRequest(BaseModel):
    author: str
    content: CommentText
    client_id: Optional[str] = None

class UpdateCommentRequest(BaseModel):
    content: CommentText

class ToggleLikeRequest(BaseModel):
    user_id: str

class LikesResponse(BaseModel):
    likes: list[str]
