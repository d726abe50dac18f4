# SQLModel definitions, imported here so Alembic sees the full metadata.
from .base import UUIDMixin, TimestampMixin  # noqa: F401
from .user import User, AuthSession  # noqa: F401
from .content import Video, Comment, Tweet  # noqa: F401
from .like import Like  # noqa: F401
from .subscription import Subscription  # noqa: F401
from .playlist import Playlist, PlaylistVideo  # noqa: F401
from .watch_history import WatchHistory  # noqa: F401
