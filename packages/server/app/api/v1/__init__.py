"""
API v1 Router

Authentication lives at /auth; everything else is mounted here under /api/v1.
"""

from fastapi import APIRouter
from . import comments, dashboard, likes, playlists, subscriptions, tweets, users, videos

router = APIRouter()

router.include_router(users.router, prefix="/users", tags=["Users"])
router.include_router(videos.router, prefix="/videos", tags=["Videos"])
router.include_router(comments.router, prefix="/comments", tags=["Comments"])
router.include_router(likes.router, prefix="/likes", tags=["Likes"])
router.include_router(subscriptions.router, prefix="/subscriptions", tags=["Subscriptions"])
router.include_router(tweets.router, prefix="/tweets", tags=["Tweets"])
router.include_router(playlists.router, prefix="/playlists", tags=["Playlists"])
router.include_router(dashboard.router, prefix="/dashboard", tags=["Dashboard"])


@router.get("/", tags=["API"])
async def api_root():
    """API root — returns version and available endpoints."""
    return {
        "api": "v1",
        "version": "0.1.0",
        "endpoints": [
            "/users",
            "/videos",
            "/comments",
            "/likes",
            "/subscriptions",
            "/tweets",
            "/playlists",
            "/dashboard",
        ],
    }
