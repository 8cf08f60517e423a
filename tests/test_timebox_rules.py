from datetime import datetime, timedelta

from taskflow.rules.timebox_rules import (
    BlockSlot,
    is_valid_duration,
    has_overlap,
    can_schedule_task,
    is_valid_schedule_time,
    validate_time_block,
    plan_extension,
    find_next_block,
)

NINE = datetime(2030, 1, 7, 9, 0)


def at(hour, minute=0):
    return NINE.replace(hour=hour, minute=minute)


def test_duration_must_be_in_fixed_set():
    for minutes in (25, 45, 60, 90):
        assert is_valid_duration(minutes).valid
    for minutes in (0, 30, 120, True):
        result = is_valid_duration(minutes)
        assert result.errors == ["Duration must be one of: 25, 45, 60, 90 minutes"]


def test_adjacent_blocks_do_not_overlap():
    a = BlockSlot(id=1, scheduled_for=at(9), duration_minutes=60)
    assert has_overlap(BlockSlot(scheduled_for=at(10), duration_minutes=25), [a]).valid
    clash = has_overlap(BlockSlot(scheduled_for=at(9, 59), duration_minutes=25), [a])
    assert clash.errors == ["TimeBlock overlaps with existing block at 09:00"]


def test_overlap_skips_self_on_update():
    a = BlockSlot(id=1, scheduled_for=at(9), duration_minutes=60)
    moved = BlockSlot(id=1, scheduled_for=at(9, 30), duration_minutes=60)
    assert has_overlap(moved, [a]).valid


def test_only_now_and_next_can_be_scheduled():
    assert can_schedule_task("NOW").valid
    assert can_schedule_task("NEXT").valid
    assert not can_schedule_task("LATER").valid
    assert not can_schedule_task("READY").valid


def test_past_scheduling_only_rejected_for_new_blocks():
    now = at(12)
    assert not is_valid_schedule_time(at(11), is_update=False, now=now).valid
    assert is_valid_schedule_time(at(11), is_update=True, now=now).valid
    assert is_valid_schedule_time(at(12), is_update=False, now=now).valid


def test_validate_collects_all_errors():
    existing = [BlockSlot(id=1, scheduled_for=at(9), duration_minutes=60)]
    candidate = BlockSlot(scheduled_for=at(9, 30), duration_minutes=30)
    result = validate_time_block(candidate, existing, "LATER", now=at(10))
    assert len(result.errors) == 4


def test_extension_pushes_everything_from_original_end():
    a = BlockSlot(id=1, scheduled_for=at(9), duration_minutes=60)
    abutting = BlockSlot(id=2, scheduled_for=at(10), duration_minutes=25)
    later = BlockSlot(id=3, scheduled_for=at(14), duration_minutes=45)
    earlier = BlockSlot(id=4, scheduled_for=at(8), duration_minutes=25)

    plan = plan_extension(a, [later, earlier, a, abutting], 15)

    assert plan.new_duration == 75
    assert plan.rescheduled_count == 2
    assert [(b.id, start) for b, start in plan.shifts] == [
        (2, at(10, 15)),
        (3, at(14, 15)),
    ]


def test_bring_forward_from_block_end():
    ref = BlockSlot(id=1, scheduled_for=at(9), duration_minutes=25)
    done = BlockSlot(id=2, scheduled_for=at(10), duration_minutes=25, completed=True)
    target = BlockSlot(id=3, scheduled_for=at(11), duration_minutes=45)
    after = BlockSlot(id=4, scheduled_for=at(13), duration_minutes=45)

    plan = find_next_block(ref, [ref, done, after, target], now=at(9, 5))

    assert plan.block.id == 3
    assert plan.new_start == at(9, 25)
    assert plan.saved_minutes == 95


def test_bring_forward_uses_now_when_reference_completed():
    ref = BlockSlot(id=1, scheduled_for=at(9), duration_minutes=60, completed=True)
    target = BlockSlot(id=2, scheduled_for=at(10), duration_minutes=25)

    plan = find_next_block(ref, [ref, target], now=at(9, 40))

    assert plan.new_start == at(9, 40)
    assert plan.saved_minutes == 20


def test_bring_forward_without_candidate():
    ref = BlockSlot(id=1, scheduled_for=at(9), duration_minutes=60)
    abandoned = BlockSlot(id=2, scheduled_for=at(11), duration_minutes=25, abandoned=True)
    plan = find_next_block(ref, [ref, abandoned], now=at(9))
    assert plan.block is None
    assert plan.saved_minutes == 0


def test_block_slot_end():
    slot = BlockSlot(scheduled_for=NINE, duration_minutes=90)
    assert slot.end == NINE + timedelta(minutes=90)
