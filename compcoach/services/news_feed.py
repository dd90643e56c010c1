"""
Compensation news feed for the landing page.

Pulls recent articles from NewsAPI and keeps only the ones that are actually about
employee pay: sports, filings, lawsuits, job ads and crypto are dropped, and articles
from outside the trusted business/HR outlets need a strong compensation signal.
"""
import logging
from datetime import datetime, timezone
from typing import Optional

import requests

from compcoach.core.errors import ConfigurationError, UpstreamError

logger = logging.getLogger(__name__)

NEWSAPI_URL = "https://newsapi.org/v2/everything"
NEWS_QUERY = (
    '("salary negotiation" OR "tech salaries" OR "pay equity" OR "wage gap" OR '
    '"salary transparency" OR "remote work pay" OR "compensation trends" OR '
    '"layoffs severance" OR "minimum wage" OR "living wage")'
)
MAX_ARTICLES = 6

EXCLUDE_KEYWORDS = [
    # Sports
    "nfl", "nba", "mlb", "nhl", "mls", "fifa", "espn", "athlete", "quarterback", "pitcher", "playoffs",
    # Corporate filings
    "inducement grant", "nasdaq listing rule", "8-k", "sec filing", "form 10", "announces appointment",
    # Legal/Insurance
    "workers compensation insurance", "workers comp claim", "settlement", "lawsuit", "court award",
    # Job postings
    "seeks", "hiring for", "job opening", "apply now", "careers page",
    # Crypto
    "crypto", "bitcoin", "mining reward", "staking reward",
    # Government payments
    "stimulus", "relief payment", "tax refund", "benefits claim",
]

EMPLOYMENT_TERMS = [
    "salary", "salaries", "wage", "wages", "pay", "paid", "compensation",
    "employee", "employees", "worker", "workers", "staff",
    "job", "jobs", "career", "hiring", "layoff", "layoffs",
]

EMPLOYMENT_CONTEXT = [
    "employee compensation", "executive compensation", "tech compensation",
    "salary", "wage", "pay equity", "total comp", "stock", "equity",
    "bonus", "benefits package", "rsu", "stock option",
]

TRUSTED_SOURCES = [
    "techcrunch", "bloomberg", "wsj", "wall street journal", "forbes", "fortune",
    "business insider", "cnbc", "reuters", "financial times", "ft.com",
    "harvard business review", "hbr", "mit", "wired", "verge", "ars technica",
    "shrm", "hr dive", "linkedin", "glassdoor", "indeed",
]

STRONG_SIGNALS = [
    "salary negotiation", "tech salaries", "pay equity", "wage gap",
    "compensation trends", "remote work pay", "layoff", "severance",
    "minimum wage", "living wage", "salary transparency",
]

GRADIENTS = [
    "from-blue-400 to-cyan-500",
    "from-purple-400 to-pink-500",
    "from-emerald-400 to-teal-500",
    "from-orange-400 to-red-500",
    "from-indigo-400 to-violet-500",
    "from-rose-400 to-pink-500",
]


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}{'s' if count > 1 else ''} ago"


def relative_time(published_at: str, now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    try:
        published = datetime.fromisoformat(published_at.replace("Z", "+00:00"))
    except (AttributeError, ValueError):
        return "Recently"
    if published.tzinfo is None:
        published = published.replace(tzinfo=timezone.utc)

    diff_hours = int((now - published).total_seconds() // 3600)
    diff_days = diff_hours // 24
    if diff_hours < 1:
        return "Just now"
    if diff_hours < 24:
        return _plural(diff_hours, "hour")
    if diff_days < 7:
        return _plural(diff_days, "day")
    return _plural(diff_days // 7, "week")


def categorize(title: str) -> str:
    lower = title.lower()
    if any(term in lower for term in ("equity", "stock", "rsu")):
        return "Equity"
    if any(term in lower for term in ("remote", "hybrid", "wfh")):
        return "Remote Work"
    if "negotiat" in lower:
        return "Negotiation"
    if any(term in lower for term in ("gender", "pay gap", "pay equity")):
        return "Pay Equity"
    if "layoff" in lower or "severance" in lower:
        return "Layoffs"
    return "Market Trends"


def is_relevant(article: dict) -> bool:
    title = article.get("title")
    description = article.get("description")
    if not title or not description or not article.get("url"):
        return False

    source = ((article.get("source") or {}).get("name") or "").lower()
    combined = f"{title.lower()} {description.lower()}"

    if any(keyword in combined for keyword in EXCLUDE_KEYWORDS):
        return False
    if not any(term in combined for term in EMPLOYMENT_TERMS):
        return False
    # "compensation" alone is too often legal or insurance compensation
    if "compensation" in combined and not any(ctx in combined for ctx in EMPLOYMENT_CONTEXT):
        return False

    trusted = any(name in source for name in TRUSTED_SOURCES)
    if not trusted and not any(signal in combined for signal in STRONG_SIGNALS):
        return False
    return True


def normalize_articles(articles: list, now: Optional[datetime] = None) -> list[dict]:
    relevant = [article for article in articles if isinstance(article, dict) and is_relevant(article)]
    news = []
    for idx, article in enumerate(relevant[:MAX_ARTICLES]):
        news.append({
            "title": article["title"],
            "excerpt": article["description"],
            "source": (article.get("source") or {}).get("name"),
            "url": article["url"],
            "time": relative_time(article.get("publishedAt") or "", now),
            "category": categorize(article["title"]),
            "gradient": GRADIENTS[idx % len(GRADIENTS)],
        })
    return news


class NewsFeed:
    def __init__(self, api_key: str, session: Optional[requests.Session] = None, timeout: float = 10.0):
        self.api_key = api_key
        self._session = session or requests.Session()
        self.timeout = timeout

    def latest(self, now: Optional[datetime] = None) -> list[dict]:
        if not self.api_key:
            raise ConfigurationError("NewsAPI key not configured")

        params = {
            "q": NEWS_QUERY,
            "language": "en",
            "sortBy": "publishedAt",
            "pageSize": 50,
            "apiKey": self.api_key,
        }
        try:
            response = self._session.get(NEWSAPI_URL, params=params, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            logger.error("NewsAPI request failed: %s", e)
            raise UpstreamError("Failed to fetch news", status_code=500) from e

        if not response.ok:
            logger.error("NewsAPI error: %s", response.status_code)
            raise UpstreamError("Failed to fetch news", status_code=500)

        try:
            data = response.json()
        except ValueError as e:
            logger.error("NewsAPI returned a non-JSON body")
            raise UpstreamError("Failed to fetch news", status_code=500) from e

        return normalize_articles(data.get("articles") or [], now)
