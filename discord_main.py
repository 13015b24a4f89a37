import logging
import os

from dotenv import load_dotenv

from application.config import BettingConfig
from application.context import build_context
from infrastructure.storage import open_repositories
from interfaces.discord.handlers import create_discord_bot


load_dotenv()

DISCORD_TOKEN = os.environ.get("DISCORD_TOKEN")
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")


def main() -> None:
    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if not DISCORD_TOKEN:
        raise RuntimeError("DISCORD_TOKEN environment variable is not set.")

    config = BettingConfig.from_env()
    if not config.operator_ids:
        logging.getLogger(__name__).warning(
            "BETTING_OPERATORS is empty; nobody can create or resolve lines."
        )

    app = build_context(config, *open_repositories(config.db_path))

    bot = create_discord_bot(app)
    # Logging is already configured above.
    bot.run(DISCORD_TOKEN, log_handler=None)


if __name__ == "__main__":
    main()
