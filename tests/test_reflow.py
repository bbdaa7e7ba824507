"""Tests for the reflow scheduler."""

import pytest

from reflowbot.algorithms.errors import (
    CyclicDependencyError,
    ImmovableOrderConflictError,
    NoWorkingTimeFoundError,
    UnknownWorkCenterError
)
from reflowbot.algorithms.models import DelayCause
from reflowbot.algorithms.reflow import ReflowScheduler
from reflowbot.validators import validate_schedule


def run(orders, centers, **kwargs):
    return ReflowScheduler(orders, centers, verbose=False, **kwargs).reflow()


class TestReflowScenario:
    """The X/Y scenario: Y depends on X on the same work center."""

    @pytest.fixture
    def orders(self, make_order, at):
        return [
            make_order('X', at(0, 9), at(0, 10), 60),
            make_order('Y', at(0, 9, 30), at(0, 10), 30, depends_on=['X']),
        ]

    def test_x_unchanged_and_y_pushed(self, orders, make_center, at):
        result = run(orders, [make_center()])

        x = result.get_work_order('X')
        y = result.get_work_order('Y')
        assert (x.start, x.end) == (at(0, 9), at(0, 10))
        assert (y.start, y.end) == (at(0, 10), at(0, 10, 30))

    def test_exactly_one_change_for_y(self, orders, make_center, at):
        result = run(orders, [make_center()])

        assert len(result.changes) == 1
        change = result.changes[0]
        assert change.work_order_id == 'Y'
        assert change.old_start == at(0, 9, 30)
        assert change.new_start == at(0, 10)
        assert change.old_end == at(0, 10)
        assert change.new_end == at(0, 10, 30)
        assert change.cause == DelayCause.DEPENDENCY
        assert change.delay_minutes == 30

    def test_inputs_not_mutated(self, orders, make_center, at):
        run(orders, [make_center()])
        assert orders[1].start == at(0, 9, 30)
        assert orders[1].end == at(0, 10)

    def test_second_run_is_a_no_op(self, orders, make_center):
        first = run(orders, [make_center()])
        second = run(first.work_orders, [make_center()])
        assert second.changes == []

    def test_result_in_processing_order(self, orders, make_center):
        result = run(list(reversed(orders)), [make_center()])
        assert [wo.id for wo in result.work_orders] == ['X', 'Y']


class TestDelayCauses:
    """Each kind of conflict is reported with its own cause."""

    def test_work_center_busy(self, make_order, make_center, at):
        orders = [
            make_order('A', at(0, 9), at(0, 11), 120),
            make_order('B', at(0, 10), at(0, 11), 60),
        ]
        result = run(orders, [make_center()])

        b = result.get_work_order('B')
        assert (b.start, b.end) == (at(0, 11), at(0, 12))
        assert result.changes[0].cause == DelayCause.WORK_CENTER_BUSY

    def test_other_work_center_not_blocked(self, make_order, make_center, at):
        orders = [
            make_order('A', at(0, 9), at(0, 11), 120, center_id='C1'),
            make_order('B', at(0, 10), at(0, 11), 60, center_id='C2'),
        ]
        result = run(orders, [make_center('C1'), make_center('C2')])
        assert result.changes == []

    def test_outside_shift(self, make_order, make_center, at):
        orders = [make_order('A', at(0, 18), at(0, 19), 60)]
        result = run(orders, [make_center()])

        a = result.get_work_order('A')
        assert (a.start, a.end) == (at(1, 8), at(1, 9))
        assert result.changes[0].cause == DelayCause.OUTSIDE_SHIFT

    def test_maintenance(self, make_order, make_center, at):
        center = make_center(maintenance=[(at(0, 9, 30), at(0, 10, 30))])
        orders = [make_order('A', at(0, 9), at(0, 10), 60)]
        result = run(orders, [center])

        a = result.get_work_order('A')
        assert (a.start, a.end) == (at(0, 10, 30), at(0, 11, 30))
        assert result.changes[0].cause == DelayCause.MAINTENANCE
        assert result.changes[0].reason == 'Moved past a maintenance window'

    def test_shift_boundary(self, make_order, make_center, at):
        orders = [make_order('A', at(0, 16, 30), at(0, 17, 30), 60)]
        result = run(orders, [make_center()])

        a = result.get_work_order('A')
        assert (a.start, a.end) == (at(0, 16, 30), at(1, 8, 30))
        assert result.changes[0].cause == DelayCause.SHIFT_BOUNDARY
        assert result.changes[0].delay_minutes == 0

    def test_duration_mismatch(self, make_order, make_center, at):
        orders = [make_order('A', at(0, 9), at(0, 11), 60)]
        result = run(orders, [make_center()])

        assert result.get_work_order('A').end == at(0, 10)
        assert result.changes[0].cause == DelayCause.DURATION_MISMATCH

    def test_dependency_across_work_centers(self, make_order, make_center, at):
        orders = [
            make_order('CUT', at(0, 9), at(0, 12), 180, center_id='C1'),
            make_order('PACK', at(0, 10), at(0, 11), 60, center_id='C2', depends_on=['CUT']),
        ]
        result = run(orders, [make_center('C1'), make_center('C2')])

        pack = result.get_work_order('PACK')
        assert (pack.start, pack.end) == (at(0, 12), at(0, 13))
        assert result.changes[0].cause == DelayCause.DEPENDENCY


class TestImmovableOrders:
    """Maintenance work orders keep their planned time."""

    def test_immovable_order_not_moved(self, make_order, make_center, at):
        orders = [
            make_order('A', at(0, 9, 30), at(0, 10, 30), 60),
            make_order('M', at(0, 10), at(0, 11), 60, is_maintenance=True),
        ]
        result = run(orders, [make_center()])

        m = result.get_work_order('M')
        a = result.get_work_order('A')
        assert (m.start, m.end) == (at(0, 10), at(0, 11))
        assert (a.start, a.end) == (at(0, 11), at(0, 12))
        assert [c.work_order_id for c in result.changes] == ['A']
        assert result.changes[0].cause == DelayCause.MAINTENANCE

    def test_immovable_order_outside_shift_allowed(self, make_order, make_center, at):
        orders = [make_order('M', at(0, 20), at(0, 22), 120, is_maintenance=True)]
        result = run(orders, [make_center()])
        assert result.changes == []
        assert result.get_work_order('M').start == at(0, 20)

    def test_dependents_wait_for_immovable_order(self, make_order, make_center, at):
        orders = [
            make_order('M', at(0, 9), at(0, 10), 60, is_maintenance=True),
            make_order('B', at(0, 9), at(0, 10), 60, center_id='C2', depends_on=['M']),
        ]
        result = run(orders, [make_center('C1'), make_center('C2')])
        assert result.get_work_order('B').start == at(0, 10)

    def test_conflicting_dependency_raises(self, make_order, make_center, at):
        orders = [
            make_order('P', at(0, 9), at(0, 11), 120),
            make_order('M', at(0, 10), at(0, 11), 60, depends_on=['P'], is_maintenance=True),
        ]
        with pytest.raises(ImmovableOrderConflictError) as exc_info:
            run(orders, [make_center()])
        assert exc_info.value.work_order_id == 'M'

    def test_overlapping_immovable_orders_raise(self, make_order, make_center, at):
        orders = [
            make_order('M1', at(0, 10), at(0, 12), 120, is_maintenance=True),
            make_order('M2', at(0, 11), at(0, 13), 120, is_maintenance=True),
        ]
        with pytest.raises(ImmovableOrderConflictError) as exc_info:
            run(orders, [make_center()])
        assert exc_info.value.work_order_id == 'M2'
        assert exc_info.value.blocked_by == 'M1'
        assert exc_info.value.blocked_until == at(0, 12)

    def test_overlap_found_behind_a_long_immovable_order(self, make_order, make_center, at):
        orders = [
            make_order('LONG', at(0, 8), at(0, 16), 480, is_maintenance=True),
            make_order('SHORT', at(0, 9), at(0, 10), 60, is_maintenance=True),
            make_order('LATE', at(0, 15), at(0, 17), 120, is_maintenance=True),
        ]
        with pytest.raises(ImmovableOrderConflictError) as exc_info:
            run(orders, [make_center()])
        assert exc_info.value.work_order_id == 'SHORT'

    def test_touching_immovable_orders_allowed(self, make_order, make_center, at):
        orders = [
            make_order('M1', at(0, 10), at(0, 11), 60, is_maintenance=True),
            make_order('M2', at(0, 11), at(0, 12), 60, is_maintenance=True),
        ]
        result = run(orders, [make_center()])
        assert result.changes == []
        assert validate_schedule(result, [make_center()]).is_valid

    def test_immovable_orders_on_different_centers_may_overlap(self, make_order, make_center, at):
        orders = [
            make_order('M1', at(0, 10), at(0, 12), 120, is_maintenance=True),
            make_order('M2', at(0, 11), at(0, 13), 120, center_id='C2', is_maintenance=True),
        ]
        result = run(orders, [make_center('C1'), make_center('C2')])
        assert result.changes == []

    def test_movable_order_routes_past_later_immovable_order(self, make_order, make_center, at):
        # A is processed first but lands after M, which keeps its slot
        orders = [
            make_order('A', at(0, 9, 30), at(0, 10, 30), 60),
            make_order('M', at(0, 10), at(0, 11), 60, is_maintenance=True),
        ]
        centers = [make_center()]
        result = run(orders, centers)

        assert [wo.id for wo in result.work_orders] == ['A', 'M']
        assert result.get_work_order('A').start == at(0, 11)
        assert validate_schedule(result, centers).is_valid


class TestReflowFailures:
    """Failures propagate as distinct exceptions."""

    def test_unknown_work_center(self, make_order, make_center, at):
        orders = [make_order('A', at(0, 9), at(0, 10), 60, center_id='NOPE')]
        with pytest.raises(UnknownWorkCenterError) as exc_info:
            run(orders, [make_center()])
        assert exc_info.value.work_center_id == 'NOPE'

    def test_cycle(self, make_order, make_center, at):
        orders = [
            make_order('A', at(0, 9), at(0, 10), 60, depends_on=['B']),
            make_order('B', at(0, 9), at(0, 10), 60, depends_on=['A']),
        ]
        with pytest.raises(CyclicDependencyError):
            run(orders, [make_center()])

    def test_no_working_time_names_order_and_center(self, make_order, make_center, at):
        orders = [make_order('A', at(0, 9), at(0, 10), 60, center_id='IDLE')]
        with pytest.raises(NoWorkingTimeFoundError) as exc_info:
            run(orders, [make_center('IDLE', shifts=[])])
        assert exc_info.value.work_order_id == 'A'
        assert exc_info.value.work_center_id == 'IDLE'

    def test_empty_input(self, make_center):
        result = run([], [make_center()])
        assert result.work_orders == []
        assert result.changes == []
        assert result.get_summary() == {}


class TestScheduleProperties:
    """A mixed scenario checked against every scheduling constraint."""

    @pytest.fixture
    def centers(self, make_center, at):
        return [
            make_center('C1', maintenance=[(at(0, 12), at(0, 13)), (at(1, 8), at(1, 9))]),
            make_center('C2', maintenance=[(at(0, 15), at(0, 16))]),
        ]

    @pytest.fixture
    def orders(self, make_order, at):
        return [
            make_order('A', at(0, 8), at(0, 10), 120, center_id='C1'),
            make_order('B', at(0, 9), at(0, 11), 120, center_id='C1'),
            make_order('C', at(0, 9), at(0, 10), 60, center_id='C2', depends_on=['A']),
            make_order('D', at(0, 11), at(0, 13), 120, center_id='C2', depends_on=['B', 'C']),
            make_order('E', at(0, 14), at(0, 17), 180, center_id='C1', depends_on=['D']),
            make_order('F', at(0, 16), at(0, 18), 120, center_id='C2'),
            make_order('M', at(0, 19), at(0, 21), 120, center_id='C1', is_maintenance=True),
        ]

    def test_validates(self, orders, centers):
        result = run(orders, centers)
        report = validate_schedule(result, centers)
        assert report.is_valid, report.errors

    def test_dependencies_finish_first(self, orders, centers):
        result = run(orders, centers)
        by_id = {wo.id: wo for wo in result.work_orders}
        for wo in result.work_orders:
            for parent_id in wo.depends_on:
                assert by_id[parent_id].end <= wo.start

    def test_no_overlap_per_center(self, orders, centers):
        result = run(orders, centers)
        for center_id in ('C1', 'C2'):
            placed = sorted((wo for wo in result.work_orders if wo.work_center_id == center_id),
                            key=lambda wo: wo.start)
            for previous, current in zip(placed, placed[1:]):
                assert previous.end <= current.start

    def test_movable_orders_start_in_processing_order(self, orders, centers):
        result = run(orders, centers)
        for center_id in ('C1', 'C2'):
            starts = [wo.start for wo in result.work_orders
                      if wo.work_center_id == center_id and not wo.is_maintenance]
            assert starts == sorted(starts)

    def test_cursor_never_moves_back(self, orders, centers):
        result = run(orders, centers)
        for center_id in ('C1', 'C2'):
            placed = [wo for wo in result.work_orders
                      if wo.work_center_id == center_id and not wo.is_maintenance]
            for previous, current in zip(placed, placed[1:]):
                assert previous.end <= current.start

    def test_maintenance_excluded(self, orders, centers):
        result = run(orders, centers)
        by_center = {wc.id: wc for wc in centers}
        for wo in result.work_orders:
            if wo.is_maintenance:
                continue
            for window in by_center[wo.work_center_id].calendar.maintenance_windows:
                assert not window.overlaps(wo.start, wo.end)

    def test_never_starts_before_plan(self, orders, centers):
        result = run(orders, centers)
        planned = {wo.id: wo.start for wo in orders}
        for wo in result.work_orders:
            assert wo.start >= planned[wo.id]

    def test_change_log_matches_moved_orders(self, orders, centers):
        result = run(orders, centers)
        planned = {wo.id: (wo.start, wo.end) for wo in orders}
        moved = [wo.id for wo in result.work_orders if (wo.start, wo.end) != planned[wo.id]]
        assert [c.work_order_id for c in result.changes] == moved


class TestSummary:
    """Tests for result summaries."""

    def test_summary_counts(self, make_order, make_center, at):
        orders = [
            make_order('X', at(0, 9), at(0, 10), 60, mo_id='MO-1'),
            make_order('Y', at(0, 9, 30), at(0, 10), 30, depends_on=['X'], mo_id='MO-1'),
        ]
        scheduler = ReflowScheduler(orders, [make_center()], verbose=False)
        scheduler.reflow()
        summary = scheduler.get_summary()

        assert summary['total_work_orders'] == 2
        assert summary['moved'] == 1
        assert summary['total_delay_minutes'] == 30
        assert summary['changes_by_cause'] == {'dependency': 1}

    def test_late_manufacturing_orders(self, make_order, make_center, at):
        from reflowbot.algorithms.models import ManufacturingOrder

        orders = [
            make_order('X', at(0, 9), at(0, 10), 60, mo_id='MO-1'),
            make_order('Y', at(0, 9, 30), at(0, 10), 30, depends_on=['X'], mo_id='MO-1'),
        ]
        mos = [ManufacturingOrder(id='MO-1', number='MO-1001', due_date=at(0, 10, 15))]
        result = run(orders, [make_center()], manufacturing_orders=mos)

        late = result.get_late_manufacturing_orders()
        assert len(late) == 1
        assert late[0]['completion_date'] == at(0, 10, 30)
        assert result.get_summary()['late_manufacturing_orders'] == 1
