import logging
import os

from dotenv import load_dotenv

from application.config import BettingConfig
from application.context import build_context
from infrastructure.storage import open_repositories
from interfaces.telegram.handlers import create_telegram_bot


load_dotenv()

TELEGRAM_TOKEN = os.environ.get("TELEGRAM_TOKEN")
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")


def main() -> None:
    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if not TELEGRAM_TOKEN:
        raise RuntimeError("TELEGRAM_TOKEN environment variable is not set.")

    config = BettingConfig.from_env()
    if not config.operator_ids:
        logging.getLogger(__name__).warning(
            "BETTING_OPERATORS is empty; nobody can create or resolve lines."
        )

    app = build_context(config, *open_repositories(config.db_path))

    bot = create_telegram_bot(TELEGRAM_TOKEN, app)
    bot.infinity_polling()


if __name__ == "__main__":
    main()
