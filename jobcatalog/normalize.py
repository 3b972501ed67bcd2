"""
Normalization of provider payloads into catalog records.

Providers disagree on field names, so every canonical field has a short
priority list of source keys. The first non-empty value wins; otherwise a
fixed default applies. Normalization never raises.
"""

import math
import time
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Sequence

from bs4 import BeautifulSoup

from .logger import get_logger
from .schema import Job, SOURCE_EXTERNAL, clean_str_list, parse_flag

logger = get_logger()

RECENTLY = "Recently"
SECONDS_PER_DAY = 24 * 60 * 60

TEXT_FIELDS = {
    # canonical: (source keys, default)
    "title": (("title",), "Job Position"),
    "company": (("company", "company_name"), "Company"),
    "location": (("location",), "Location"),
    "type": (("job_type", "type"), "full-time"),
    "experience": (("experience", "experience_level"), "Not specified"),
    "salary": (("salary", "salary_range"), "Competitive"),
    "description": (("description",), "No description available"),
    "url": (("application_link", "url"), "#"),
    "logo": (("logo", "company_logo"), ""),
}

def normalize_text(s: str) -> str:
    return " ".join(s.strip().split())


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_iso(dt: datetime) -> str:
    return dt.astimezone(timezone.utc).isoformat(timespec="milliseconds")


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 string or datetime into an aware UTC datetime."""
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str) and value.strip():
        raw = value.strip()
        if raw.endswith(("Z", "z")):
            raw = raw[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(raw)
        except ValueError:
            return None
    else:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def format_posted_age(ts: Any, now: Optional[datetime] = None) -> str:
    """
    Bucket the age of ``ts`` relative to ``now`` into a human label.

    Days are rounded up, so anything under 24 hours old is "1 day ago".
    Unparseable input yields "Recently".
    """
    posted = parse_timestamp(ts)
    if posted is None:
        return RECENTLY
    now = now or utc_now()
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    days = math.ceil(abs((now - posted).total_seconds()) / SECONDS_PER_DAY)

    if days == 1:
        return "1 day ago"
    if days < 7:
        return f"{days} days ago"
    if days < 30:
        return f"{math.ceil(days / 7)} weeks ago"
    return f"{math.ceil(days / 30)} months ago"


def _first(payload: Dict[str, Any], keys: Sequence[str]) -> Any:
    for k in keys:
        v = payload.get(k)
        if v is None:
            continue
        if isinstance(v, str) and not v.strip():
            continue
        return v
    return None


def _text(payload: Dict[str, Any], keys: Sequence[str], default: str, collapse: bool = True) -> str:
    v = _first(payload, keys)
    if v is None:
        return default
    if not collapse:
        return str(v)
    return normalize_text(str(v)) or default


def _list(payload: Dict[str, Any], key: str) -> List[str]:
    v = payload.get(key)
    if not isinstance(v, (list, tuple, str)):
        return []
    return clean_str_list(v)


def _flag(payload: Dict[str, Any], keys: Sequence[str]) -> bool:
    for k in keys:
        if parse_flag(payload.get(k)):
            return True
    return False


def clean_description(text: str) -> str:
    """Flatten HTML markup some providers send in descriptions."""
    if "<" not in text or ">" not in text:
        return text
    flattened = BeautifulSoup(text, "html.parser").get_text(" ", strip=True)
    return normalize_text(flattened) or text


def normalize_job(payload: Dict[str, Any], fallback_id: str, now: datetime) -> Job:
    """Normalize one provider payload into an external Job."""
    values = {name: _text(payload, keys, default) for name, (keys, default) in TEXT_FIELDS.items()}
    # Plain-text descriptions keep their line breaks; only markup is flattened
    keys, default = TEXT_FIELDS["description"]
    values["description"] = clean_description(_text(payload, keys, default, collapse=False))

    requirements = _list(payload, "requirements")
    skills = _list(payload, "skills")

    raw_id = payload.get("id")
    job_id = str(raw_id).strip() if raw_id is not None else ""

    created = parse_timestamp(payload.get("created_at"))
    # Future timestamps would break updated_at >= created_at
    if created is None or created > now:
        created = now

    link = payload.get("application_link")
    return Job(
        id=job_id or fallback_id,
        created_at=to_iso(created),
        updated_at=to_iso(now),
        source=SOURCE_EXTERNAL,
        requirements=requirements or list(skills),
        skills=skills or list(requirements),
        posted=format_posted_age(payload.get("created_at"), now),
        remote=_flag(payload, ("remote", "is_remote")),
        application_link=link.strip() if isinstance(link, str) and link.strip() else None,
        **values,
    )


def normalize_external_jobs(payloads: Iterable[Any], now: Optional[datetime] = None) -> List[Job]:
    """
    Normalize a batch of provider payloads.

    Payloads without an id get ``api_job_<epoch ms>_<index>``; the index
    keeps synthesized ids unique within the batch. Entries that are not
    mappings are skipped.
    """
    now = now or utc_now()
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    seed = int(time.time() * 1000)
    batch = list(payloads or [])
    provided = {
        str(p["id"]).strip() for p in batch if isinstance(p, dict) and p.get("id") is not None
    }

    jobs: List[Job] = []
    for index, payload in enumerate(batch):
        if not isinstance(payload, dict):
            logger.warning("Skipping non-object job payload", index=index, kind=type(payload).__name__)
            continue
        fallback_id = f"api_job_{seed}_{index}"
        while fallback_id in provided:
            fallback_id += "_x"
        jobs.append(normalize_job(payload, fallback_id, now))
    return jobs
