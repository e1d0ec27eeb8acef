from __future__ import annotations

import argparse
import logging
import os
from typing import Optional

from app.config import configure_logging, get_settings

from .base import CrawlError, District, district_names_from_codes


logger = logging.getLogger(__name__)


def run_crawl(*, refresh: bool, codes: Optional[list], fmt: str, out: Optional[str]) -> int:
    from app.services.institution_service import build_orchestrator, format_institutions_text, generate_excel

    names = district_names_from_codes(codes or []) or None
    orchestrator = build_orchestrator()
    try:
        result = orchestrator.execute(refresh, names)
    except CrawlError as exc:
        logger.error("Crawl failed: %s", exc.message)
        return 1

    if result.summary is not None:
        summary = result.summary.to_dict()
        for outcome in summary.pop("outcomes"):
            logger.info("%(status)s %(level)s %(target)s: %(reason)s", outcome)
        print(" ".join(f"{k}={v}" for k, v in summary.items()))
    if fmt == "xlsx":
        path = out or "institutions.xlsx"
        with open(path, "wb") as f:
            f.write(generate_excel(result.records))
        print(os.path.abspath(path))
    else:
        text = format_institutions_text(result.records)
        if out:
            with open(out, "w", encoding="utf-8") as f:
                f.write(text)
            print(os.path.abspath(out))
        else:
            print(text, end="")
    return 0


def run_bot() -> int:
    from app.services.bot.telegram import build_bot

    settings = get_settings()
    if not settings.telegram_token:
        logger.error("TELEGRAM_BOT_TOKEN is not set")
        return 2
    bot = build_bot(settings)
    try:
        bot.run_forever()
    except KeyboardInterrupt:
        pass
    finally:
        bot.stop()
    return 0


def main(argv: Optional[list] = None) -> int:
    parser = argparse.ArgumentParser(description="Education institution catalog tasks")
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    sub = parser.add_subparsers(dest="cmd", required=True)

    crawl = sub.add_parser("crawl", help="Refresh the catalog from edu.tatar.ru and print it")
    crawl.add_argument("--no-refresh", action="store_true", help="Only read the stored catalog")
    crawl.add_argument(
        "--districts",
        default="",
        help=f"Comma separated district codes ({', '.join(District.codes())}); empty means all",
    )
    crawl.add_argument("--format", choices=["text", "xlsx"], default="text")
    crawl.add_argument("--out", default=None, help="Output file (default: stdout for text)")

    sub.add_parser("bot", help="Run the Telegram bot with long polling")

    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    if args.cmd == "crawl":
        codes = [c for c in args.districts.split(",") if c.strip()]
        return run_crawl(refresh=not args.no_refresh, codes=codes, fmt=args.format, out=args.out)
    if args.cmd == "bot":
        return run_bot()

    parser.error("unknown command")
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
