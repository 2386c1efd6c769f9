"""
Event summary reports.

``build_summary`` turns an event's participants into table rows grouped by
deal group, with the rowspan metadata needed to merge city cells within a
group. The ``export_*`` helpers render participant, summary and per-city
sheets as ``.xlsx`` bytes with openpyxl.
"""
from __future__ import annotations

import io
import logging
import re
import uuid
from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font
from openpyxl.utils import get_column_letter

from tourcrm.db import models, schemas

logger = logging.getLogger(__name__)

CITY_NAMES: Dict[str, str] = {
    "Beijing": "Пекин",
    "Luoyang": "Лоян",
    "Xian": "Сиань",
    "Zhangjiajie": "Чжанцзяцзе",
    "Shanghai": "Шанхай",
}

TRANSPORT_NAMES = {"plane": "Самолет", "train": "Поезд"}
ROOM_TYPE_NAMES = {"twin": "Twin", "double": "Double"}
EMPTY = "—"

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def city_title(city: str) -> str:
    return CITY_NAMES.get(city, city)


def _fmt_date(value: Optional[date], time: Optional[str] = None) -> str:
    if value is None:
        return ""
    return f"{value:%d.%m.%Y}{' ' + time if time else ''}"


def _visit_for(participant: schemas.Participant, city: str) -> Optional[schemas.CityVisit]:
    lowered = city.lower()
    return next((v for v in participant.visits if v.city.lower() == lowered), None)


def format_city_cell(visit: Optional[schemas.CityVisit]) -> str:
    if visit is None:
        return EMPTY
    arrival = _fmt_date(visit.arrival_date, visit.arrival_time)
    if visit.departure_date is None:
        return arrival
    return f"{arrival} - {_fmt_date(visit.departure_date, visit.departure_time)}"


def _transport(visit: schemas.CityVisit) -> str:
    arrival = TRANSPORT_NAMES.get(visit.transport_type, visit.transport_type)
    if visit.departure_transport_type:
        return f"{arrival} → {TRANSPORT_NAMES.get(visit.departure_transport_type, visit.departure_transport_type)}"
    return arrival


def _unique(values: Iterable[str]) -> List[str]:
    seen: List[str] = []
    for value in values:
        if value and value not in seen:
            seen.append(value)
    return seen


@dataclass
class _SummaryGroup:
    key: str
    members: List[schemas.Participant]
    name: Optional[str] = None
    custom: bool = False
    order: int = 0
    mergeable: bool = False

    @property
    def sort_key(self):
        if self.custom:
            return (0, self.order, "")
        if self.name:
            return (1, 0, self.name.lower())
        return (1, 1, self.members[0].contact.name.lower())


def _build_groups(
    participants: Sequence[schemas.Participant],
    custom_groups: Optional[Sequence[Sequence[uuid.UUID]]],
    ungrouped: Optional[Iterable[uuid.UUID]],
) -> List[_SummaryGroup]:
    by_deal = {p.deal.id: p for p in participants}
    accounted: set = set()
    groups: List[_SummaryGroup] = []

    for order, deal_ids in enumerate(custom_groups or []):
        members = [by_deal[d] for d in deal_ids if d in by_deal and d not in accounted]
        if not members:
            continue
        accounted.update(p.deal.id for p in members)
        groups.append(_SummaryGroup(key=f"custom-{order}", members=members, custom=True, order=order))

    for deal_id in ungrouped or []:
        participant = by_deal.get(deal_id)
        if participant is None or deal_id in accounted:
            continue
        accounted.add(deal_id)
        groups.append(_SummaryGroup(key=f"ungrouped-{deal_id}", members=[participant]))

    auto: Dict[uuid.UUID, _SummaryGroup] = {}
    for participant in participants:
        if participant.deal.id in accounted:
            continue
        group = participant.group
        if group is None:
            groups.append(_SummaryGroup(key=f"deal-{participant.deal.id}", members=[participant]))
            continue
        if group.id not in auto:
            auto[group.id] = _SummaryGroup(
                key=f"group-{group.id}",
                members=[],
                name=group.name,
                mergeable=group.type == "family",
            )
            groups.append(auto[group.id])
        auto[group.id].members.append(participant)

    for group in auto.values():
        # Primary member leads the group
        group.members.sort(key=lambda p: not p.deal.is_primary_in_group)

    groups.sort(key=lambda g: g.sort_key)
    return groups


def _row(
    participant: schemas.Participant,
    cities: Sequence[str],
    *,
    index: int,
    group: _SummaryGroup,
    group_index: int,
    position: int,
    city_row_spans: Dict[str, int],
    render_city_cell: Dict[str, bool],
    merge: bool,
) -> schemas.SummaryRow:
    visits = participant.visits
    deal = participant.deal
    return schemas.SummaryRow(
        index=index,
        deal_id=deal.id,
        contact_id=participant.contact.id,
        name=participant.contact.name,
        phone=participant.contact.phone,
        group_key=group.key,
        group_name=group.name,
        group_index=group_index,
        group_size=len(group.members),
        is_first_in_group=position == 0,
        cities={city: format_city_cell(_visit_for(participant, city)) for city in cities},
        city_row_spans=city_row_spans,
        render_city_cell=render_city_cell,
        hotels=", ".join(_unique(v.hotel_name for v in visits)),
        transports=", ".join(_transport(v) for v in visits),
        flight_numbers=", ".join(v.flight_number or EMPTY for v in visits),
        surcharge=deal.surcharge,
        nights=deal.nights,
        merge_surcharge_nights=merge,
        render_surcharge_nights=position == 0 or not merge,
    )


def build_summary(
    event: models.Event | schemas.Event,
    participants: Sequence[schemas.Participant],
    *,
    grouped: bool = True,
    custom_groups: Optional[Sequence[Sequence[uuid.UUID]]] = None,
    ungrouped: Optional[Iterable[uuid.UUID]] = None,
    cities: Optional[Sequence[str]] = None,
) -> schemas.EventSummary:
    """Summary rows for ``participants``; ``cities`` overrides the event's column list."""
    cities = list(cities) if cities is not None else list(event.cities or [])
    columns = [schemas.SummaryColumn(city=c, title=city_title(c)) for c in cities]
    rows: List[schemas.SummaryRow] = []

    if not grouped:
        for index, participant in enumerate(participants):
            solo = _SummaryGroup(key=f"deal-{participant.deal.id}", members=[participant])
            rows.append(
                _row(
                    participant,
                    cities,
                    index=index,
                    group=solo,
                    group_index=index,
                    position=0,
                    city_row_spans={c: 1 for c in cities},
                    render_city_cell={c: True for c in cities},
                    merge=False,
                )
            )
        return schemas.EventSummary(event_id=event.id, event_name=event.name, grouped=False, columns=columns, rows=rows)

    index = 0
    for group_index, group in enumerate(_build_groups(participants, custom_groups, ungrouped)):
        spans = {c: 0 for c in cities}
        first_seen: Dict[str, int] = {}
        for position, member in enumerate(group.members):
            for city in cities:
                if _visit_for(member, city) is not None:
                    spans[city] += 1
                    first_seen.setdefault(city, position)
        merge = group.mergeable and len(group.members) > 1
        for position, member in enumerate(group.members):
            rows.append(
                _row(
                    member,
                    cities,
                    index=index,
                    group=group,
                    group_index=group_index,
                    position=position,
                    city_row_spans=dict(spans),
                    render_city_cell={c: first_seen.get(c) == position for c in cities},
                    merge=merge,
                )
            )
            index += 1

    return schemas.EventSummary(event_id=event.id, event_name=event.name, grouped=True, columns=columns, rows=rows)


# Excel export

def export_filename(event_name: str, today: Optional[date] = None) -> str:
    """Sanitized event name (max 50 chars) plus the export date."""
    today = today or date.today()
    cleaned = re.sub(r"[^\w\s-]", "", event_name)
    cleaned = re.sub(r"\s+", "_", cleaned)[:50]
    return f"{cleaned}_{today:%d-%m-%Y}.xlsx"


def _write_header(ws, headers: Sequence[str]) -> None:
    ws.append(list(headers))
    for cell in ws[1]:
        cell.font = Font(bold=True)


def _autosize(ws, max_width: int = 60) -> None:
    for col in ws.columns:
        max_len = 0
        col_letter = get_column_letter(col[0].column)
        for cell in col:
            v = "" if cell.value is None else str(cell.value)
            max_len = max(max_len, len(v))
        ws.column_dimensions[col_letter].width = min(max_len + 2, max_width)


def _to_bytes(wb: Workbook) -> bytes:
    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


_SHEET_TITLE_INVALID = re.compile(r"[\\/?*\[\]:]")


def sheet_title(name: str, default: str = "Лист") -> str:
    # Excel forbids these characters and caps titles at 31 characters
    cleaned = _SHEET_TITLE_INVALID.sub(" ", name).strip(" '")[:31].strip()
    return cleaned or default


def export_participants(participants: Sequence[schemas.Participant]) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = "Участники"
    _write_header(ws, ["№", "ФИО", "Email", "Телефон", "Паспорт", "Дата рождения", "Статус сделки", "Сумма", "Примечания"])
    for index, p in enumerate(participants, start=1):
        contact = p.contact
        ws.append([
            index,
            contact.name or EMPTY,
            contact.email or "",
            contact.phone or "",
            contact.passport or "",
            _fmt_date(contact.birth_date),
            p.deal.status,
            float(p.deal.amount or 0),
            contact.notes or "",
        ])
    _autosize(ws)
    return _to_bytes(wb)


def _contiguous(summary: schemas.EventSummary, start: int, city: str, span: int) -> bool:
    rows = summary.rows[start:start + span]
    return len(rows) == span and all(r.group_key == rows[0].group_key and r.cities[city] != EMPTY for r in rows)


def export_summary(summary: schemas.EventSummary) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = "Туристы"
    cities = [c.city for c in summary.columns]
    headers = ["№", "Турист", "Телефон", *[c.title for c in summary.columns], "Отели", "Транспорт", "Номер рейса", "Доплата", "Ночи"]
    _write_header(ws, headers)
    surcharge_col = 4 + len(cities) + 3
    nights_col = surcharge_col + 1

    for row in summary.rows:
        ws.append([
            row.index + 1,
            row.name,
            row.phone or EMPTY,
            *[row.cities[c] for c in cities],
            row.hotels,
            row.transports,
            row.flight_numbers,
            float(row.surcharge) if row.surcharge is not None else None,
            row.nights,
        ])

    if summary.grouped:
        for position, row in enumerate(summary.rows):
            excel_row = position + 2
            for offset, city in enumerate(cities):
                span = row.city_row_spans.get(city, 1)
                if row.render_city_cell.get(city) and span > 1 and _contiguous(summary, position, city, span):
                    col = 4 + offset
                    ws.merge_cells(start_row=excel_row, start_column=col, end_row=excel_row + span - 1, end_column=col)
                    ws.cell(row=excel_row, column=col).alignment = Alignment(vertical="center")
            if row.merge_surcharge_nights and row.is_first_in_group and row.group_size > 1:
                for col in (surcharge_col, nights_col):
                    ws.merge_cells(start_row=excel_row, start_column=col, end_row=excel_row + row.group_size - 1, end_column=col)
                    ws.cell(row=excel_row, column=col).alignment = Alignment(vertical="center")

    _autosize(ws)
    return _to_bytes(wb)


def export_city(participants: Sequence[schemas.Participant], city: str) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = sheet_title(city_title(city))
    _write_header(ws, ["№", "Турист", "Телефон", "Прибытие", "Убытие", "Отель", "Тип номера", "Транспорт прибытия", "Рейс/Поезд"])
    index = 0
    for p in participants:
        visit = _visit_for(p, city)
        if visit is None:
            continue
        index += 1
        ws.append([
            index,
            p.contact.name,
            p.contact.phone or "",
            _fmt_date(visit.arrival_date, visit.arrival_time),
            _fmt_date(visit.departure_date, visit.departure_time),
            visit.hotel_name or "",
            ROOM_TYPE_NAMES.get(visit.room_type or "", ""),
            TRANSPORT_NAMES.get(visit.transport_type, visit.transport_type),
            visit.flight_number or "",
        ])
    _autosize(ws)
    return _to_bytes(wb)
