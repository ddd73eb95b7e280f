# app/services/occupancy.py
"""Mapa de ocupação dos gaveteiros.

Tudo é derivado das linhas de ``drawer_positions`` no momento da consulta;
nada é gravado. Gavetas com capacidade zero têm taxa 0.
"""
from dataclasses import dataclass

from sqlalchemy import case, func, select
from sqlalchemy.orm import Session

from app.db import snapshot
from app.models import Drawer, DrawerPosition, FileCabinet
from app.schemas import CabinetOccupancy, DrawerOccupancy, OccupationMap, OccupationTotals

DRAWER_CRITICAL_RATE = 90.0
CABINET_CRITICAL_RATE = 90.0
CABINET_WARNING_RATE = 70.0

STATUS_OK = "OK"
STATUS_WARNING = "WARNING"
STATUS_CRITICAL = "CRITICAL"


def occupancy_rate(occupied: int, capacity: int) -> float:
    if capacity <= 0:
        return 0.0
    return occupied / capacity * 100


def cabinet_status(rate: float) -> str:
    if rate >= CABINET_CRITICAL_RATE:
        return STATUS_CRITICAL
    if rate >= CABINET_WARNING_RATE:
        return STATUS_WARNING
    return STATUS_OK


def format_location(cabinet_number: str, drawer_number: int) -> str:
    return f"{cabinet_number}-G{drawer_number}"


@dataclass(frozen=True)
class DrawerStat:
    drawer_id: int
    cabinet_id: int
    cabinet_number: str
    number: int
    label: str | None
    capacity: int
    occupied: int

    @property
    def rate(self) -> float:
        return occupancy_rate(self.occupied, self.capacity)

    @property
    def location(self) -> str:
        return format_location(self.cabinet_number, self.number)


def drawer_stats(db: Session) -> list[DrawerStat]:
    """Uma linha por gaveta, com a contagem de posições ocupadas."""
    occupied = func.coalesce(
        func.sum(case((DrawerPosition.is_occupied.is_(True), 1), else_=0)), 0
    )
    stmt = (
        select(
            Drawer.id,
            Drawer.cabinet_id,
            FileCabinet.number,
            Drawer.number,
            Drawer.label,
            Drawer.capacity,
            occupied,
        )
        .join(FileCabinet, FileCabinet.id == Drawer.cabinet_id)
        .outerjoin(DrawerPosition, DrawerPosition.drawer_id == Drawer.id)
        .group_by(
            Drawer.id, Drawer.cabinet_id, FileCabinet.number,
            Drawer.number, Drawer.label, Drawer.capacity,
        )
        .order_by(FileCabinet.number, FileCabinet.id, Drawer.number)
    )
    return [DrawerStat(*row) for row in db.execute(stmt).all()]


def build_occupation_map(cabinets: list[FileCabinet], stats: list[DrawerStat]) -> OccupationMap:
    by_cabinet: dict[int, list[DrawerStat]] = {}
    for stat in stats:
        by_cabinet.setdefault(stat.cabinet_id, []).append(stat)

    nodes: list[CabinetOccupancy] = []
    for cabinet in sorted(cabinets, key=lambda c: (c.number, c.id)):
        drawers = sorted(by_cabinet.get(cabinet.id, []), key=lambda s: s.number)
        total = sum(d.capacity for d in drawers)
        used = sum(d.occupied for d in drawers)
        rate = occupancy_rate(used, total)
        nodes.append(CabinetOccupancy(
            cabinet_id=cabinet.id,
            number=cabinet.number,
            location=cabinet.location,
            total_positions=total,
            occupied_positions=used,
            occupancy_rate=rate,
            status=cabinet_status(rate),
            drawers=[
                DrawerOccupancy(
                    drawer_id=d.drawer_id,
                    number=d.number,
                    label=d.label,
                    capacity=d.capacity,
                    occupied=d.occupied,
                    occupancy_rate=d.rate,
                    critical=d.rate >= DRAWER_CRITICAL_RATE,
                )
                for d in drawers
            ],
        ))

    total_positions = sum(n.total_positions for n in nodes)
    occupied_positions = sum(n.occupied_positions for n in nodes)
    totals = OccupationTotals(
        total_cabinets=len(nodes),
        total_positions=total_positions,
        occupied_positions=occupied_positions,
        occupancy_rate=occupancy_rate(occupied_positions, total_positions),
        warning_cabinets=sum(1 for n in nodes if n.status == STATUS_WARNING),
        critical_cabinets=sum(1 for n in nodes if n.status == STATUS_CRITICAL),
    )
    return OccupationMap(cabinets=nodes, totals=totals)


def get_occupation_map(db: Session) -> OccupationMap:
    with snapshot(db):
        cabinets = list(db.scalars(select(FileCabinet)).all())
        stats = drawer_stats(db)
        return build_occupation_map(cabinets, stats)
