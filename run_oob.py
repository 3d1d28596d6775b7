# run_oob.py
"""Out-of-band authorization walkthrough against the live API."""
import asyncio

from twit import TwitClient
from twit.logger import logger


async def run():
    async with TwitClient.from_env() as client:
        if not client.is_authed():
            url = await client.get_authorization_url()
            if url is False:
                logger.error("Could not get a request token: %r %s",
                             client.get_last_error(), client.get_last_error_message())
                return
            print("Authorize this application at:\n ", url)
            pin = input("PIN: ")
            user = await client.auth_access_token(pin)
            if user is False:
                logger.error("PIN exchange failed: %r", client.get_last_error())
                return
            tokens = client.get_auth_tokens()
            print(f"Authorized as @{user.screen_name} (id {user.user_id})")
            print("Save these to .env to skip this step next time:")
            print(f"  TWIT_ACCESS_TOKEN={tokens.oauth_token}")
            print(f"  TWIT_ACCESS_SECRET={tokens.oauth_token_secret}")

        timeline = await client.statuses_home_timeline({"count": 5})
        if timeline is False:
            logger.error("Home timeline failed: %r", client.get_last_error())
        else:
            print("\nHome timeline preview:", str(timeline)[:500])

        limits = client.rate_limit
        print(f"\nRate limit: {limits.remaining}/{limits.limit}, resets at {limits.reset}")


if __name__ == "__main__":
    asyncio.run(run())
