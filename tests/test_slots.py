from datetime import time

import pytest

from solver.slots import CatalogSlot, Day, SlotCatalog, SlotId


def test_day_parse_accepts_names_indexes_and_members():
    assert Day.parse("MONDAY") is Day.MON
    assert Day.parse("fri") is Day.FRI
    assert Day.parse(2) is Day.WED
    assert Day.parse(Day.THU) is Day.THU
    with pytest.raises(ValueError):
        Day.parse("SATURDAY")


def test_catalog_excludes_breaks_and_orders_day_then_period():
    catalog = SlotCatalog(
        [
            CatalogSlot(Day.TUE, 1, time(8, 0), time(8, 40)),
            CatalogSlot(Day.MON, 2, time(8, 40), time(9, 20)),
            CatalogSlot(Day.MON, None, time(10, 0), time(10, 20), is_break=True, name="Morning Break"),
            CatalogSlot(Day.MON, 1, time(8, 0), time(8, 40)),
            CatalogSlot(Day.MON, 3, time(9, 20), time(10, 0), is_break=True, name="Flagged break"),
        ]
    )

    assert catalog.teaching_slots == (
        SlotId(Day.MON, 1),
        SlotId(Day.MON, 2),
        SlotId(Day.TUE, 1),
    )
    assert catalog.teaching_slot_count == 3
    assert not catalog.is_teaching(SlotId(Day.MON, 3))
    assert len(catalog.all_slots) == 5


def test_catalog_ignores_periods_outside_the_teaching_range():
    catalog = SlotCatalog([CatalogSlot(Day.MON, 0), CatalogSlot(Day.MON, 11), CatalogSlot(Day.MON, 10)])
    assert catalog.teaching_slots == (SlotId(Day.MON, 10),)


def test_duplicate_teaching_slot_is_rejected():
    with pytest.raises(ValueError):
        SlotCatalog([CatalogSlot(Day.MON, 1), CatalogSlot(Day.MON, 1)])


def test_uniform_grid():
    catalog = SlotCatalog.uniform(["MON", "TUE"], range(1, 4))
    assert catalog.teaching_slot_count == 6
    assert catalog.days == (Day.MON, Day.TUE)
    assert SlotId(Day.TUE, 3).label == "TUE-3"
