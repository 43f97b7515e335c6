from datetime import time

from transit_sync.jobs.sync.normalize.daytype import (
    SATURDAY_BITS,
    SUNDAY_BITS,
    WEEKDAY_BITS,
    WEEKDAYS,
    TimetableBuilder,
    eshot_weekdays,
    iett_weekdays,
)


def _build_one(builder: TimetableBuilder):
    records = builder.build()
    assert len(records) == 1
    return records[0]


def test_iett_weekday_tag_fills_monday_to_friday_only():
    b = TimetableBuilder("istanbul")
    assert b.add("34A_G_D0", "08:15:00", iett_weekdays("I"))

    tt = _build_one(b)
    for day in ("monday", "tuesday", "wednesday", "thursday", "friday"):
        assert tt.buckets[day] == (time(8, 15),)
    assert tt.buckets["saturday"] == ()
    assert tt.buckets["sunday"] == ()


def test_iett_saturday_and_sunday_tags():
    assert iett_weekdays("C") == ("saturday",)
    assert iett_weekdays("p") == ("sunday",)
    assert iett_weekdays("X") == ()
    assert iett_weekdays(None) == ()


def test_eshot_saturday_bit_only_lands_in_saturday():
    b = TimetableBuilder("izmir")
    b.add("5_G_D0", "07:30", eshot_weekdays(SATURDAY_BITS))

    tt = _build_one(b)
    assert tt.buckets["saturday"] == (time(7, 30),)
    assert all(tt.buckets[d] == () for d in WEEKDAYS if d != "saturday")


def test_eshot_bit_groups_are_not_exclusive():
    days = eshot_weekdays(WEEKDAY_BITS | SUNDAY_BITS)
    assert days == ("monday", "tuesday", "wednesday", "thursday", "friday", "sunday")
    assert eshot_weekdays(0) == ()
    assert eshot_weekdays(0b1000) == ()


def test_unparsable_times_and_unknown_days_are_dropped():
    b = TimetableBuilder("istanbul")
    assert not b.add("1_G_D0", "25:00", iett_weekdays("I"))
    assert not b.add("1_G_D0", "ab:cd", iett_weekdays("I"))
    assert not b.add("1_G_D0", "06:00", iett_weekdays("?"))
    assert b.dropped == 3
    assert b.build() == []


def test_buckets_sorted_and_deduplicated():
    b = TimetableBuilder("istanbul")
    for raw in ("09:00", "06:30", "09:00:00", "07:45"):
        b.add("1_G_D0", raw, iett_weekdays("P"))

    tt = _build_one(b)
    assert tt.buckets["sunday"] == (time(6, 30), time(7, 45), time(9, 0))


def test_builder_keeps_routes_apart():
    b = TimetableBuilder("istanbul")
    b.add("1_G_D0", "06:00", iett_weekdays("I"))
    b.add("1_D_D0", "06:10", iett_weekdays("I"))
    assert [tt.route_code for tt in b.build()] == ["1_G_D0", "1_D_D0"]
