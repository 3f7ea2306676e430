from datetime import date, timedelta


def last_bookable_date(today: date, advance_days: int) -> date:
    return today + timedelta(days=advance_days)


def is_date_bookable(day: date, today: date, advance_days: int) -> bool:
    """True when `today <= day <= today + advance_days`.

    Both dates must already be calendar days in the reference time zone.
    """
    return today <= day <= last_bookable_date(today, advance_days)


def bookable_dates(today: date, advance_days: int) -> list[date]:
    return [today + timedelta(days=offset) for offset in range(advance_days + 1)]
