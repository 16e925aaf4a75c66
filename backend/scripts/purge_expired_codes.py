"""Delete expired verification and password-reset codes.

Lookups already ignore expired rows, so running this is never required for
correctness; it only reclaims space.

Usage:
    cd backend && python -m scripts.purge_expired_codes
"""

import asyncio
import logging

from signup_api.core.database import engine, session_scope
from signup_api.services.verification_cleanup import purge_expired_codes

logger = logging.getLogger(__name__)


async def main() -> int:
    """CLI entry point: purge against the configured database."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        async with session_scope() as session:
            deleted = await purge_expired_codes(session)
    finally:
        await engine.dispose()

    logger.info("Done: %d rows deleted", deleted)
    return deleted


if __name__ == "__main__":
    asyncio.run(main())
