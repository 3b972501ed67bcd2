from dataclasses import asdict, dataclass, field, fields, replace
from typing import Any, Dict, Iterable, List, Optional
from urllib.parse import urlparse

SOURCE_EXTERNAL = "external"
SOURCE_LOCAL = "local"
SOURCES = (SOURCE_EXTERNAL, SOURCE_LOCAL)

# Fields owned by the catalog itself; callers never set them directly.
SYSTEM_FIELDS = ("id", "created_at", "updated_at", "source")

REQUIRED_STR_FIELDS = ["title", "company", "location"]
OPTIONAL_STR_FIELDS = [
    "type",
    "experience",
    "salary",
    "description",
    "posted",
    "url",
    "logo",
    "application_link",
]
LIST_FIELDS = ["requirements", "skills"]

TRUE_STRINGS = {"true", "yes", "1", "remote"}


def clean_str_list(values: Optional[Iterable[Any]]) -> List[str]:
    """Trim entries and drop the empty ones. Non-string entries are stringified."""
    if values is None:
        return []
    if isinstance(values, str):
        values = values.split(",")
    result = []
    for v in values:
        if v is None:
            continue
        s = str(v).strip()
        if s:
            result.append(s)
    return result


def parse_flag(value: Any) -> bool:
    """Read a boolean the way feeds and admins spell it; "false" and "no" are False."""
    if isinstance(value, str):
        return value.strip().lower() in TRUE_STRINGS
    return bool(value)


def coerce_fields(values: Dict[str, Any]) -> Dict[str, Any]:
    """Bring loosely typed field values into the shapes Job expects.

    None in a string field becomes the Job default for it, so every stored
    string field is a real string.
    """
    coerced = dict(values)
    for name in LIST_FIELDS:
        if name in coerced:
            coerced[name] = clean_str_list(coerced[name])
    if "remote" in coerced:
        coerced["remote"] = parse_flag(coerced["remote"])
    for name in REQUIRED_STR_FIELDS + OPTIONAL_STR_FIELDS:
        if name not in coerced:
            continue
        value = coerced[name]
        if value is None:
            if name != "application_link":
                coerced[name] = STR_DEFAULTS.get(name, "")
        elif not isinstance(value, str):
            coerced[name] = str(value)
    return coerced


@dataclass
class Job:
    """One job posting in the catalog."""

    id: str
    title: str
    company: str
    location: str
    created_at: str
    updated_at: str
    source: str
    type: str = "full-time"
    experience: str = "Not specified"
    salary: str = "Competitive"
    description: str = ""
    requirements: List[str] = field(default_factory=list)
    skills: List[str] = field(default_factory=list)
    posted: str = "Recently"
    url: str = "#"
    logo: str = ""
    remote: bool = False
    application_link: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def copy(self) -> "Job":
        """Detached copy; its lists are not shared with this record."""
        return replace(self, requirements=list(self.requirements), skills=list(self.skills))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Job":
        known = {f.name for f in fields(cls)}
        kwargs = coerce_fields({k: v for k, v in data.items() if k in known})
        for name in ("id", "title", "company", "location", "created_at", "updated_at"):
            if kwargs.get(name) is None:
                kwargs[name] = ""
        if not kwargs.get("source"):
            kwargs["source"] = SOURCE_LOCAL
        return cls(**kwargs)


EDITABLE_FIELDS = frozenset(f.name for f in fields(Job)) - frozenset(SYSTEM_FIELDS)
STR_DEFAULTS = {f.name: f.default for f in fields(Job) if f.name in OPTIONAL_STR_FIELDS}


def _is_non_empty_str(v: Any) -> bool:
    return isinstance(v, str) and v.strip() != ""


def _valid_url(v: str) -> bool:
    try:
        p = urlparse(v)
        return bool(p.scheme and p.netloc)
    except ValueError:
        return False


def validate_job_fields(data: Dict[str, Any], partial: bool = False) -> List[str]:
    """
    Returns a list of validation error messages for admin-supplied job fields.
    Empty list means valid. With ``partial`` only the given fields are checked,
    which is what an update needs.
    """
    errors: List[str] = []

    unknown = sorted(k for k in data if k not in EDITABLE_FIELDS)
    if unknown:
        errors.append(f"Unknown or read-only field(s): {', '.join(unknown)}")

    for f in REQUIRED_STR_FIELDS:
        if f not in data:
            if not partial:
                errors.append(f"Missing required field: {f}")
        elif not _is_non_empty_str(data[f]):
            errors.append(f"Field '{f}' must be a non-empty string")

    for f in OPTIONAL_STR_FIELDS:
        if f in data and not isinstance(data[f], str):
            if f == "application_link" and data[f] is None:
                continue
            errors.append(f"Field '{f}' must be a string if provided")

    for f in LIST_FIELDS:
        if f in data and not isinstance(data[f], (list, tuple, str)):
            errors.append(f"Field '{f}' must be a list of strings")

    if "remote" in data and not isinstance(data["remote"], bool):
        errors.append("Field 'remote' must be true or false")

    # '#' is the catalog's placeholder for "no application URL"
    url = data.get("url")
    if isinstance(url, str) and url.strip() and url != "#" and not _valid_url(url):
        errors.append("Field 'url' must be a valid absolute URL (scheme + host)")

    return errors
