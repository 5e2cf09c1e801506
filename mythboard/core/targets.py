from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Target:
    """What a reaction points at: a post, or one image URL of a post's gallery"""
    post_id: Optional[str] = None
    image_url: Optional[str] = None

    def __post_init__(self):
        if (self.post_id is None) == (self.image_url is None):
            raise ValueError("a target is exactly one of a post id or an image url")

    @classmethod
    def post(cls, post_id: str) -> "Target":
        return cls(post_id=post_id)

    @classmethod
    def image(cls, image_url: str) -> "Target":
        return cls(image_url=image_url)

    @property
    def key(self) -> str:
        if self.post_id is not None:
            return f"post:{self.post_id}"
        return f"image:{self.image_url}"

    def __str__(self) -> str:
        return self.key
