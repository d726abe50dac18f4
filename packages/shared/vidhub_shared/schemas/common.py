from enum import Enum

from pydantic import BaseModel

class TargetKind(str, Enum):
    VIDEO = "video"
    COMMENT = "comment"
    TWEET = "tweet"

class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"

class VideoSortField(str, Enum):
    CREATED_AT = "created_at"
    VIEWS = "views"
    DURATION = "duration"
    TITLE = "title"

class Pagination(BaseModel):
    page: int
    per_page: int
    total: int
    total_pages: int

