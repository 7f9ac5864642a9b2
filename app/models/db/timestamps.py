from datetime import datetime, timezone


def utcnow() -> datetime:
    # Python-side default keeps sub-second ordering on backends whose now() is coarse
    return datetime.now(timezone.utc)
