"""Main entry point for the LinkSentry risk service."""

import argparse
import asyncio
import json
import logging
import signal
import sys
from typing import Optional

from .analyzer import (
    CertificateProber,
    DomainAgeProber,
    InvalidRequestError,
    LexicalAnalyzer,
    PersistenceError,
    RedirectTracer,
    RiskEngine,
)
from .api.server import ApiServer
from .cache import create_domain_age_cache
from .config import Config, load_config, validate_config
from .storage import Database

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
    )


def build_engine(config: Config, database: Database, persist: bool = True) -> RiskEngine:
    """Wire the signal checks from configuration."""
    cache = create_domain_age_cache(
        ttl_seconds=config.domain_age_cache_ttl,
        max_entries=config.domain_age_cache_size,
    )
    return RiskEngine(
        brand_reader=database,
        sink=database if persist else None,
        lexical=LexicalAnalyzer(
            suspicious_keywords=config.suspicious_keywords,
            suspicious_tlds=config.suspicious_tlds,
            shortener_domains=config.shortener_domains,
            tracking_params=config.tracking_params,
        ),
        age_prober=DomainAgeProber(
            cache,
            rdap_base_url=config.rdap_base_url,
            timeout=config.rdap_timeout,
        ),
        cert_prober=CertificateProber(timeout=config.tls_timeout),
        redirect_tracer=RedirectTracer(
            max_hops=config.redirect_max_hops,
            timeout=config.redirect_timeout,
        ),
    )


async def _open_database(config: Config) -> Database:
    config.ensure_dirs()
    database = Database(config.db_path)
    await database.connect()
    await database.seed_trusted_brands(config.trusted_brands)
    return database


async def serve(config: Config) -> None:
    """Run the HTTP service until SIGINT/SIGTERM."""
    database = await _open_database(config)
    engine = build_engine(config, database)
    server = ApiServer(config.api_host, config.api_port, engine, database)

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except NotImplementedError:
            # Windows event loops have no signal handler support.
            pass

    await server.start()
    try:
        await stop_event.wait()
    finally:
        logger.info("Shutting down")
        await server.stop()
        await database.close()


async def evaluate_once(
    config: Config,
    url: str,
    context: dict,
    user_id: Optional[str] = None,
    persist: bool = True,
) -> dict:
    database = await _open_database(config)
    try:
        engine = build_engine(config, database, persist=persist)
        verdict = await engine.evaluate(url, user_id=user_id, context=context)
        return verdict.to_dict()
    finally:
        await database.close()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="linksentry",
        description="Score URLs for phishing and impersonation risk.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("serve", help="Run the HTTP evaluation service")

    evaluate = sub.add_parser("evaluate", help="Evaluate a single URL and print the verdict")
    evaluate.add_argument("url")
    evaluate.add_argument("--user-id", default=None)
    evaluate.add_argument("--redirected", action="store_true")
    evaluate.add_argument("--external-likely", action="store_true")
    evaluate.add_argument("--popup-spam", action="store_true")
    evaluate.add_argument(
        "--no-persist",
        action="store_true",
        help="Do not record the verdict in the database",
    )
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    config = load_config()
    configure_logging(config.log_level)

    errors = validate_config(config)
    if errors:
        for error in errors:
            logger.error("Config error: %s", error)
        return 2

    if args.command == "serve":
        asyncio.run(serve(config))
        return 0

    context = {
        "redirected": args.redirected,
        "externalLikely": args.external_likely,
        "popupSpam": args.popup_spam,
    }
    try:
        result = asyncio.run(
            evaluate_once(
                config,
                args.url,
                context,
                user_id=args.user_id,
                persist=not args.no_persist,
            )
        )
    except InvalidRequestError as exc:
        logger.error("Invalid request: %s", exc.message)
        return 2
    except PersistenceError as exc:
        logger.error("%s", exc.message)
        return 1

    print(json.dumps(result, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
