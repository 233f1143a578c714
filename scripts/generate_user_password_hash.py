# Prints a bcrypt hash for seeding a user row by hand: python scripts/generate_user_password_hash.py <password>
import sys
from forgeblock.core.config import settings
from forgeblock.core.security import get_password_hash

password = sys.argv[1] if len(sys.argv) > 1 else None
if not password:
    print("Usage: generate_user_password_hash.py <password>")
    sys.exit(1)
print(get_password_hash(password, rounds=settings.BCRYPT_ROUNDS))
