# app/services/reorganization.py
"""Sugestões de remanejamento de gavetas críticas para gavetas ociosas.

Somente leitura: para efetivar uma sugestão, use ``assign_employee_position``.
"""
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.db import snapshot
from app.models import DrawerPosition, Employee
from app.schemas import ReorganizationPlan, ReorganizationSuggestion
from app.services.occupancy import drawer_stats

DEFAULT_THRESHOLD = 90
DEFAULT_MAX_MOVES = 10
MIN_THRESHOLD, MAX_THRESHOLD = 50, 100
MIN_MOVES, MAX_MOVES = 1, 50
AVAILABLE_BELOW_RATE = 70.0
OCCUPANTS_PER_DRAWER = 3
REASON = "Redistribuição de capacidade"


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def suggest_reorganization(
    db: Session, critical_threshold: int | None = None, max_moves: int | None = None
) -> ReorganizationPlan:
    threshold = _clamp(
        DEFAULT_THRESHOLD if critical_threshold is None else critical_threshold,
        MIN_THRESHOLD, MAX_THRESHOLD,
    )
    budget = _clamp(DEFAULT_MAX_MOVES if max_moves is None else max_moves, MIN_MOVES, MAX_MOVES)

    suggestions: list[ReorganizationSuggestion] = []
    with snapshot(db):
        stats = drawer_stats(db)
        critical = sorted(
            (s for s in stats if s.capacity > 0 and s.rate >= threshold),
            key=lambda s: (-s.rate, s.cabinet_number, s.number),
        )
        critical_ids = {s.drawer_id for s in critical}
        # gavetas de capacidade zero não recebem ninguém
        available = sorted(
            (s for s in stats
             if s.capacity > 0 and s.rate < AVAILABLE_BELOW_RATE and s.drawer_id not in critical_ids),
            key=lambda s: (s.rate, s.cabinet_number, s.number),
        )

        if available:
            for source in critical:
                if len(suggestions) >= budget:
                    break
                occupants = db.execute(
                    select(Employee.id, Employee.full_name)
                    .join(DrawerPosition, DrawerPosition.employee_id == Employee.id)
                    .where(
                        DrawerPosition.drawer_id == source.drawer_id,
                        DrawerPosition.is_occupied.is_(True),
                    )
                    .order_by(DrawerPosition.position_number)
                    .limit(OCCUPANTS_PER_DRAWER)
                ).all()
                for employee_id, full_name in occupants:
                    if len(suggestions) >= budget:
                        break
                    target = available[len(suggestions) % len(available)]
                    suggestions.append(ReorganizationSuggestion(
                        employee_id=employee_id,
                        employee_name=full_name,
                        from_drawer_id=source.drawer_id,
                        from_location=source.location,
                        to_drawer_id=target.drawer_id,
                        to_location=target.location,
                        reason=REASON,
                    ))

    return ReorganizationPlan(
        critical_threshold=threshold,
        max_moves=budget,
        suggestions=suggestions,
        total_moves=len(suggestions),
    )
