"""
Unit Tests for the reorganization planner
Tests for: budget, critical sources, round-robin targets, clamping, read-only behaviour
"""
from sqlalchemy import select

from app.models import DrawerPosition
from app.services.assignment import assign_employee_position
from app.services.occupancy import occupancy_rate
from app.services.reorganization import REASON, suggest_reorganization

ACTOR = "tester"


def fill(db, make_employee, drawer_id, count):
    for pos in range(1, count + 1):
        assign_employee_position(db, make_employee().id, drawer_id, pos, ACTOR)


class TestSuggestReorganization:
    def test_moves_from_critical_to_available(self, db, make_cabinet, make_employee, drawers_of):
        full = make_cabinet("A1", drawer_count=1, drawer_capacity=4)
        empty = make_cabinet("B1", drawer_count=2, drawer_capacity=10)
        full_drawer = drawers_of(full.id)[0].id
        b1, b2 = [d.id for d in drawers_of(empty.id)]
        fill(db, make_employee, full_drawer, 4)

        plan = suggest_reorganization(db)

        # no máximo 3 ocupantes por gaveta crítica
        assert plan.total_moves == 3
        assert all(s.from_drawer_id == full_drawer for s in plan.suggestions)
        assert all(s.from_location == "A1-G1" for s in plan.suggestions)
        assert [s.to_drawer_id for s in plan.suggestions] == [b1, b2, b1]
        assert [s.to_location for s in plan.suggestions] == ["B1-G1", "B1-G2", "B1-G1"]
        assert all(s.reason == REASON for s in plan.suggestions)

    def test_respects_move_budget(self, db, make_cabinet, make_employee, drawers_of):
        for n in range(3):
            cabinet = make_cabinet(f"C{n}", drawer_count=1, drawer_capacity=3)
            fill(db, make_employee, drawers_of(cabinet.id)[0].id, 3)
        make_cabinet("Z", drawer_count=1, drawer_capacity=50)

        plan = suggest_reorganization(db, max_moves=4)

        assert plan.max_moves == 4
        assert plan.total_moves == 4
        assert len(plan.suggestions) <= plan.max_moves

    def test_never_sources_below_threshold(self, db, make_cabinet, make_employee, drawers_of):
        hot = make_cabinet("H", drawer_count=1, drawer_capacity=10)
        warm = make_cabinet("W", drawer_count=1, drawer_capacity=10)
        make_cabinet("E", drawer_count=1, drawer_capacity=10)
        hot_id = drawers_of(hot.id)[0].id
        fill(db, make_employee, hot_id, 9)
        fill(db, make_employee, drawers_of(warm.id)[0].id, 8)

        plan = suggest_reorganization(db, critical_threshold=90)

        stats = {}
        for s in plan.suggestions:
            occupied = len(db.scalars(
                select(DrawerPosition).where(
                    DrawerPosition.drawer_id == s.from_drawer_id, DrawerPosition.is_occupied.is_(True)
                )
            ).all())
            stats[s.from_drawer_id] = occupancy_rate(occupied, 10)
        assert set(stats) == {hot_id}
        assert all(rate >= 90 for rate in stats.values())

    def test_most_full_drawer_first(self, db, make_cabinet, make_employee, drawers_of):
        ninety = make_cabinet("N", drawer_count=1, drawer_capacity=10)
        hundred = make_cabinet("M", drawer_count=1, drawer_capacity=2)
        make_cabinet("E", drawer_count=1, drawer_capacity=10)
        fill(db, make_employee, drawers_of(ninety.id)[0].id, 9)
        hundred_id = drawers_of(hundred.id)[0].id
        fill(db, make_employee, hundred_id, 2)

        plan = suggest_reorganization(db)

        assert plan.suggestions[0].from_drawer_id == hundred_id
        assert plan.suggestions[1].from_drawer_id == hundred_id
        assert plan.total_moves == 5

    def test_no_available_drawers_yields_empty_plan(self, db, make_cabinet, make_employee, drawers_of):
        cabinet = make_cabinet("A1", drawer_count=1, drawer_capacity=2)
        fill(db, make_employee, drawers_of(cabinet.id)[0].id, 2)
        plan = suggest_reorganization(db)
        assert plan.suggestions == []
        assert plan.total_moves == 0

    def test_inputs_are_clamped(self, db):
        plan = suggest_reorganization(db, critical_threshold=10, max_moves=500)
        assert plan.critical_threshold == 50
        assert plan.max_moves == 50
        plan = suggest_reorganization(db, critical_threshold=150, max_moves=0)
        assert plan.critical_threshold == 100
        assert plan.max_moves == 1

    def test_plan_does_not_mutate(self, db, make_cabinet, make_employee, drawers_of):
        full = make_cabinet("A1", drawer_count=1, drawer_capacity=2)
        make_cabinet("B1", drawer_count=1, drawer_capacity=10)
        full_drawer = drawers_of(full.id)[0].id
        fill(db, make_employee, full_drawer, 2)
        before = [(p.id, p.employee_id) for p in db.scalars(select(DrawerPosition).order_by(DrawerPosition.id))]

        plan = suggest_reorganization(db)

        after = [(p.id, p.employee_id) for p in db.scalars(select(DrawerPosition).order_by(DrawerPosition.id))]
        assert plan.total_moves == 2
        assert before == after
