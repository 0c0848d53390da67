"""
Storage hygiene: removes access codes that can never be redeemed again
(expired or superseded) and were never used. Safe to run at any time, e.g.
from a daily cron. Redemption does not depend on it.
"""
from cricket_talent.db.session import SessionLocal
from cricket_talent.db.models import _all  # noqa: F401
from cricket_talent.services.account_links import purge_expired_codes


def main():
    db = SessionLocal()
    try:
        removed = purge_expired_codes(db)
        print(f"🧹 {removed} dead access codes removed")
    finally:
        db.close()


if __name__ == "__main__":
    main()
