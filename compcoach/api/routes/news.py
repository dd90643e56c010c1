from fastapi import APIRouter, Depends

from compcoach.dependencies.services import get_news_feed
from compcoach.services.news_feed import NewsFeed

router = APIRouter()


@router.get("/news")
def latest_news(news_feed: NewsFeed = Depends(get_news_feed)):
    """Latest compensation news, filtered and formatted for the landing page."""
    return news_feed.latest()
