"""Campaign targeting — URL rules and schedule windows."""

import re
from datetime import datetime
from typing import List
from urllib.parse import urlparse

from croniter import croniter

from notiproof_engine.models.campaign import CampaignSchedule, DisplayRules
from notiproof_engine.models.clock import ensure_utc


def _glob_to_regex(pattern: str) -> "re.Pattern":
    parts = [re.escape(p) for p in pattern.split("*")]
    return re.compile(".*".join(parts))


def _matches_any(patterns: List[str], url: str) -> bool:
    path = urlparse(url).path or url
    for pattern in patterns:
        # Path patterns ("/products/*") match the path, anything else the full URL
        candidate = path if pattern.startswith("/") else url
        if _glob_to_regex(pattern).fullmatch(candidate):
            return True
    return False


def url_matches(rules: DisplayRules, url: str) -> bool:
    """Whether a page URL passes a campaign's allow/block lists."""
    if rules.url_blocklist and _matches_any(rules.url_blocklist, url):
        return False
    if not rules.url_allowlist:
        return True
    return _matches_any(rules.url_allowlist, url)


def schedule_active(schedule: CampaignSchedule, current_time: datetime) -> bool:
    """Determine if a campaign's schedule admits the current time."""
    if not schedule.enabled:
        return True

    current_time = ensure_utc(current_time)

    if schedule.start_date and current_time < schedule.start_date:
        return False
    if schedule.end_date and current_time > schedule.end_date:
        return False

    if schedule.cron:
        try:
            return croniter.match(schedule.cron, current_time)
        except (ValueError, KeyError):
            # Invalid cron expression: inactive
            return False

    return True
