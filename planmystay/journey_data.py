"""
journey_data.py — seed content for the travel-journey feature.

seed_journey_data() replaces whatever is stored; it backs the /seed-journey
demo trigger and is safe to run repeatedly.
"""
from sqlalchemy.ext.asyncio import AsyncSession

from planmystay import store

JOURNEY_STAGES = [
    {
        "slug": "dream",
        "position": 1,
        "title": "Dream",
        "description": "Pick a destination that fits the season, your budget and the people you travel with.",
        "tips": [
            "Shortlist three places and compare average nightly prices",
            "Check local holidays and festivals for your dates",
        ],
    },
    {
        "slug": "plan",
        "position": 2,
        "title": "Plan",
        "description": "Fix your dates, set a budget and sketch a day-by-day route.",
        "tips": [
            "Use the price estimator before committing to a neighbourhood",
            "Leave one unplanned day per week",
        ],
    },
    {
        "slug": "book",
        "position": 3,
        "title": "Book",
        "description": "Reserve the stay, read recent reviews and confirm the house rules.",
        "tips": [
            "Prefer listings with reviews from the last six months",
            "Message the host about check-in times before paying",
        ],
    },
    {
        "slug": "stay",
        "position": 4,
        "title": "Stay",
        "description": "Settle in, explore like a local and keep your host in the loop.",
        "tips": [
            "Photograph the place on arrival",
            "Ask the host for their favourite nearby spots",
        ],
    },
    {
        "slug": "share",
        "position": 5,
        "title": "Share",
        "description": "Leave an honest review so the next traveller can choose well.",
        "tips": [
            "Mention what the photos did not show",
            "Rate cleanliness, location and communication separately in your comment",
        ],
    },
]


async def seed_journey_data(db: AsyncSession) -> int:
    stages = [dict(stage, tips=list(stage["tips"])) for stage in JOURNEY_STAGES]
    return await store.replace_journey_stages(db, stages)
