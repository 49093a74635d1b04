from pydantic import BaseModel


class ListingType(BaseModel):
    """
    A directory type (term of the listing type taxonomy).
    """
    id: int
    name: str
    slug: str = ""


class ListingStatus(BaseModel):
    """
    A post status a listing can be in (e.g. "publish", "draft").
    """
    slug: str
    name: str
