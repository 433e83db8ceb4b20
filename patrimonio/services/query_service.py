"""Filtering, search, sorting and aggregation over in-memory snapshots.

Nothing here touches the database: callers load the user's collections and
pass them in. Rows only need the attributes of the ORM models.
"""
import logging
from collections import OrderedDict
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal

from patrimonio.events import bus, EventBus, StoreChange
from patrimonio.models.asset import AssetStatus
from patrimonio.models.history import HistoryAction
from patrimonio.services.history_service import as_instant

logger = logging.getLogger(__name__)

NO_CATEGORY = "Sem Categoria"
NO_LOCATION = "Sem Localização"

SORT_KEYS = ("name", "code_id", "category_name", "city", "value", "created_at", "updated_at")


@dataclass
class AssetFilters:
    city: str | None = None
    category_name: str | None = None
    search: str = ""
    sort_key: str = "updated_at"
    direction: str = "desc"


@dataclass
class AssetRow:
    id: str
    name: str
    code_id: str
    category_id: str | None
    city: str
    value: Decimal
    observation: str | None
    status: AssetStatus
    created_at: datetime
    updated_at: datetime
    category_name: str
    city_label: str


def _category_names(categories: Iterable) -> dict[str, str]:
    return {c.id: c.name for c in categories}


def _enrich(asset, names: dict[str, str]) -> AssetRow:
    return AssetRow(
        id=asset.id,
        name=asset.name,
        code_id=asset.code_id,
        category_id=asset.category_id,
        city=asset.city,
        value=asset.value,
        observation=asset.observation,
        status=asset.status,
        created_at=asset.created_at,
        updated_at=asset.updated_at,
        category_name=names.get(asset.category_id, NO_CATEGORY) if asset.category_id else NO_CATEGORY,
        city_label=asset.city or NO_LOCATION,
    )


def _sort_value(view: AssetRow, key: str):
    value = getattr(view, key)
    if key in ("created_at", "updated_at"):
        return as_instant(value)
    if key == "value":
        return Decimal(value)
    return (value or "").lower()


def sort_views(views: list[AssetRow], key: str = "updated_at", direction: str = "desc") -> list[AssetRow]:
    if key not in SORT_KEYS:
        raise ValueError(f"Chave de ordenação inválida: {key}")
    return sorted(views, key=lambda v: _sort_value(v, key), reverse=direction == "desc")


def filter_assets(assets: Iterable, categories: Iterable, filters: AssetFilters | None = None) -> list[AssetRow]:
    """Main inventory view: active assets only.

    city is an exact match, category_name is resolved to an id first (an
    unknown name matches nothing), search is a case-insensitive substring of
    name or code_id.
    """
    filters = filters or AssetFilters()
    categories = list(categories)
    names = _category_names(categories)

    rows = [a for a in assets if a.status != AssetStatus.inativo]

    if filters.city:
        rows = [a for a in rows if a.city == filters.city]

    if filters.category_name:
        category_id = next((c.id for c in categories if c.name == filters.category_name), None)
        rows = [a for a in rows if category_id is not None and a.category_id == category_id]

    if filters.search:
        term = filters.search.lower()
        rows = [a for a in rows if term in a.name.lower() or term in a.code_id.lower()]

    views = [_enrich(a, names) for a in rows]
    return sort_views(views, filters.sort_key, filters.direction)


def trash_view(
    assets: Iterable,
    categories: Iterable,
    search: str = "",
    category_name: str | None = None,
    direction: str = "desc",
) -> list[AssetRow]:
    """Inactive assets, searchable by name, code or category, sorted by updated_at."""
    categories = list(categories)
    names = _category_names(categories)
    views = [_enrich(a, names) for a in assets if a.status == AssetStatus.inativo]

    if category_name:
        category_id = next((c.id for c in categories if c.name == category_name), None)
        views = [v for v in views if category_id is not None and v.category_id == category_id]

    if search:
        term = search.lower()
        views = [
            v for v in views
            if term in v.name.lower() or term in v.code_id.lower() or term in v.category_name.lower()
        ]

    return sort_views(views, "updated_at", direction)


def _sum_by(views: list[AssetRow], label: Callable[[AssetRow], str]) -> list[dict]:
    totals: OrderedDict[str, Decimal] = OrderedDict()
    for v in views:
        totals[label(v)] = totals.get(label(v), Decimal("0")) + Decimal(v.value)
    return [{"name": name, "value": float(value)} for name, value in totals.items()]


def _count_by(views: list[AssetRow], label: Callable[[AssetRow], str]) -> list[dict]:
    counts: OrderedDict[str, int] = OrderedDict()
    for v in views:
        counts[label(v)] = counts.get(label(v), 0) + 1
    return [{"name": name, "count": count} for name, count in counts.items()]


def dashboard_summary(assets: Iterable, categories: Iterable, history: Iterable, now: datetime | None = None) -> dict:
    """Aggregates behind the dashboard and the AI narrative summary.

    Activity counters and series cover the last 30 days; the series are
    cumulative per day.
    """
    now = as_instant(now)
    names = _category_names(categories)
    active = [_enrich(a, names) for a in assets if a.status != AssetStatus.inativo]

    month_ago = now - timedelta(days=30)
    recent = []
    for log in history:
        ts = as_instant(log.timestamp, now)
        if month_ago <= ts <= now:
            recent.append((ts, log.action))

    def count(action: HistoryAction) -> int:
        return sum(1 for _, a in recent if a == action)

    days = [(month_ago + timedelta(days=i)).date() for i in range((now.date() - month_ago.date()).days + 1)]

    def series(action: HistoryAction) -> list[dict]:
        per_day = {d: 0 for d in days}
        for ts, a in recent:
            if a == action and ts.date() in per_day:
                per_day[ts.date()] += 1
        cumulative = 0
        points = []
        for d in days:
            cumulative += per_day[d]
            points.append({"date": d.strftime("%d/%m"), "value": cumulative})
        return points

    return {
        "total_assets": len(active),
        "total_value": float(sum((Decimal(v.value) for v in active), Decimal("0"))),
        "total_cities": len({v.city for v in active if v.city}),
        "created_last_month": count(HistoryAction.created),
        "updated_last_month": count(HistoryAction.updated),
        "deleted_last_month": count(HistoryAction.deactivated),
        "value_by_city_chart": _sum_by(active, lambda v: v.city_label),
        "value_by_category_chart": _sum_by(active, lambda v: v.category_name),
        "items_by_city_chart": _count_by(active, lambda v: v.city_label),
        "items_by_category_chart": _count_by(active, lambda v: v.category_name),
        "created_chart": series(HistoryAction.created),
        "updated_chart": series(HistoryAction.updated),
        "deleted_chart": series(HistoryAction.deactivated),
    }


class LiveQuery:
    """A derived view that recomputes itself whenever the user's data changes.

    loader() returns (assets, categories); it is called on construction and
    again for every StoreChange of the user on the assets, categories or
    locations collections.
    """

    WATCHED = frozenset({"assets", "categories", "locations"})

    def __init__(
        self,
        user_id: str,
        loader: Callable[[], tuple[list, list]],
        filters: AssetFilters | None = None,
        event_bus: EventBus = bus,
    ):
        self.user_id = user_id
        self.filters = filters or AssetFilters()
        self._loader = loader
        self.rows: list[AssetRow] = []
        self.refresh_count = 0
        self.refresh()
        self._unsubscribe = event_bus.subscribe(self._on_event)

    def refresh(self) -> None:
        assets, categories = self._loader()
        self.rows = filter_assets(assets, categories, self.filters)
        self.refresh_count += 1

    def _on_event(self, event) -> None:
        if isinstance(event, StoreChange) and event.user_id == self.user_id and event.collection in self.WATCHED:
            self.refresh()

    def close(self) -> None:
        self._unsubscribe()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
