from datetime import date

from app.models.mistake import StreakInfo


def record_avoidance(streak: StreakInfo, today: date) -> StreakInfo:
    """Return the streak after the mistake was avoided on ``today``.

    A gap of exactly one day since the last avoidance extends the streak.
    Any other gap, including re-marking on the same day, restarts it at 1.
    """
    current_streak = 1
    if streak.last_avoided_date:
        try:
            last_date = date.fromisoformat(streak.last_avoided_date[:10])
        except ValueError:
            last_date = None
        if last_date is not None and (today - last_date).days == 1:
            current_streak = streak.current_streak + 1

    return StreakInfo(
        current_streak=current_streak,
        best_streak=max(streak.best_streak, current_streak),
        last_avoided_date=today.isoformat(),
    )
