# Importing every model registers its table on Base.metadata before create_all
from cricket_talent.db.models.user import User  # noqa: F401
from cricket_talent.db.models.access_code import AccessCode  # noqa: F401
from cricket_talent.db.models.guardian_link import GuardianLink  # noqa: F401
from cricket_talent.db.models.achievement import Achievement  # noqa: F401
