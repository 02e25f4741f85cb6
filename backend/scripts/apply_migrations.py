import asyncio
import os
import sys

# Ensure backend path is in sys.path
if os.path.exists("backend"):
    sys.path.append(os.path.join(os.getcwd(), "backend"))
else:
    sys.path.append(os.getcwd())

from mycircle.infra.migrate import apply_pending, discover
from mycircle.infra.postgres import close_pool, get_pool


async def main():
    known = discover()
    if not known:
        print("No migrations found.")
        return

    pool = await get_pool()
    try:
        applied = await apply_pending(pool)
    finally:
        await close_pool()

    if applied:
        for version in applied:
            print(f"Applied {version}")
    else:
        print(f"Up to date ({known[-1][0]})")


if __name__ == "__main__":
    if sys.platform == 'win32':
        asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())
    asyncio.run(main())
