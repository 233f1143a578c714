# Bans (or with --unban, unbans) an account by username against the configured DATABASE_URL.
# A ban takes effect immediately: the user's current token stops verifying on its next use.
import argparse
import logging
import sys

from forgeblock.core.config import settings, resolve_signing_key
from forgeblock.core.errors import ConfigurationError, ServiceError
from forgeblock.core.security import TokenSigner
from forgeblock.crud.stores import build_store
from forgeblock.services.session_authority import SessionAuthority

logging.basicConfig(level=logging.INFO, format='%(levelname)-8s [%(name)s] %(message)s')
logger = logging.getLogger("scripts.ban_user")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Ban or unban a ForgeBlock account.")
    parser.add_argument("username")
    parser.add_argument("--unban", action="store_true", help="Lift an existing ban instead")
    args = parser.parse_args(argv)

    if not settings.DATABASE_URL:
        logger.error("DATABASE_URL is not set; the in-memory store has nothing to ban.")
        return 2
    try:
        store = build_store(settings)
        authority = SessionAuthority(store, TokenSigner.from_settings(settings, resolve_signing_key(settings)), settings)
        user = store.get_user_by_username(args.username)
        if user is None:
            logger.error(f"No user named '{args.username}'.")
            return 1
        authority.ban_user(user.id, banned=not args.unban)
    except (ConfigurationError, ServiceError) as e:
        logger.error(f"Could not update ban status: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
