"""
Normalization utility helpers.
Turn raw GraphQL project items into IssueRecord entities and (de)serialize records for the snapshot cache.
"""
from datetime import datetime, timezone
from typing import Dict, Any, List, Optional
from normalize.models import CustomProperty, IssueRecord

# payload keys a ProjectV2 field value may carry, in coalescing order
FIELD_VALUE_KEYS = ('text', 'name', 'number', 'date')


def parse_datetime(raw: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 date or date-time into an aware datetime.

    Date-only and naive values are taken as UTC. Returns None for empty or unparseable input.
    """
    if not raw or not isinstance(raw, str):
        return None
    text = raw.strip()
    if text.endswith('Z') or text.endswith('z'):
        text = text[:-1] + '+00:00'
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _stringify(value: Any) -> str:
    # integral floats render like the API shows them ("80", not "80.0")
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def coerce_field_value(raw: Dict[str, Any]) -> str:
    """Return the first present payload of a field value node, or an empty string."""
    for key in FIELD_VALUE_KEYS:
        value = raw.get(key)
        if value is not None:
            return _stringify(value)
    return ''


def _field_name(raw: Dict[str, Any]) -> Optional[str]:
    fld = raw.get('field')
    if not isinstance(fld, dict):
        return None
    return fld.get('name') or None


def extract_custom_properties(field_values: List[Dict[str, Any]]) -> List[CustomProperty]:
    """Flatten field value nodes into CustomProperty items, skipping nodes without a field name."""
    props: List[CustomProperty] = []
    for fv in field_values or []:
        if not isinstance(fv, dict):
            continue
        name = _field_name(fv)
        if name is None:
            continue
        props.append(CustomProperty(name=name, value=coerce_field_value(fv)))
    return props


def normalize_project_item(raw: Dict[str, Any]) -> Optional[IssueRecord]:
    """Create an IssueRecord from one `items.edges[].node` payload.

    Returns None when the item is not backed by an issue (draft items, pull requests).
    """
    content = raw.get('content') if isinstance(raw, dict) else None
    if not isinstance(content, dict) or content.get('number') is None:
        return None
    labels = [lbl.get('name') for lbl in ((content.get('labels') or {}).get('nodes') or []) if isinstance(lbl, dict) and lbl.get('name')]
    field_values = (raw.get('fieldValues') or {}).get('nodes') or []
    return IssueRecord(
        number=int(content['number']),
        title=content.get('title') or '',
        closed_at=parse_datetime(content.get('closedAt')),
        labels=tuple(labels),
        custom_properties=tuple(extract_custom_properties(field_values)),
    )


def issue_to_dict(issue: IssueRecord) -> Dict[str, Any]:
    return {
        'number': issue.number,
        'title': issue.title,
        'closed_at': issue.closed_at.isoformat() if issue.closed_at else None,
        'labels': list(issue.labels),
        'custom_properties': [{'name': p.name, 'value': p.value} for p in issue.custom_properties],
    }


def issue_from_dict(raw: Dict[str, Any]) -> IssueRecord:
    """Rebuild an IssueRecord from its cached form. Raises KeyError/TypeError/ValueError on malformed input."""
    props = tuple(CustomProperty(name=str(p['name']), value=str(p['value'])) for p in raw.get('custom_properties') or [])
    closed_at = parse_datetime(raw.get('closed_at'))
    if raw.get('closed_at') and closed_at is None:
        raise ValueError(f"Unparseable closed_at {raw.get('closed_at')!r} for issue {raw.get('number')}")
    return IssueRecord(
        number=int(raw['number']),
        title=str(raw.get('title') or ''),
        closed_at=closed_at,
        labels=tuple(str(lbl) for lbl in raw.get('labels') or []),
        custom_properties=props,
    )
