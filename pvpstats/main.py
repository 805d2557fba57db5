import argparse
import asyncio
import logging
import os
from typing import Any

from dotenv import load_dotenv

from .application.bootstrap import bootstrap_app
from .application.container import AppConfig, AppContainer
from .infrastructure import load_settings_from_yaml

load_dotenv()
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


def load_app_config() -> AppConfig:
    config_path = os.getenv("PVPSTATS_CONFIG", "config.yml")
    settings: dict[str, Any] = {"db_path": "data/pvpstats.db"}
    settings.update(load_settings_from_yaml(config_path))

    db_path = os.getenv("DB_PATH", "").strip()
    if db_path:
        settings["db_path"] = db_path
    ttl_raw = os.getenv("CACHE_TTL_SECONDS", "").strip()
    if ttl_raw:
        settings["cache_ttl_seconds"] = float(ttl_raw)
    metrics_path = os.getenv("METRICS_LOG_PATH", "").strip()
    if metrics_path:
        settings["metrics_log_path"] = metrics_path

    config = AppConfig(**settings)
    logger.info(
        "Config loaded: db_path=%s, pool=%s, cache_ttl=%ss, overwrite_id=%s, rename_on_id=%s, workers=%s, metrics=%s",
        config.db_path,
        config.db_max_connections,
        config.cache_ttl_seconds,
        config.overwrite_id_on_name_collision,
        config.rename_on_id_match,
        config.worker_count,
        config.metrics_log_path or "off",
    )
    return config


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="pvpstats", description="Inspect and feed PvP kill statistics.")
    commands = parser.add_subparsers(dest="command", required=True)

    stats = commands.add_parser("stats", help="Show kills, deaths, streak and rank of a player")
    stats.add_argument("name")

    rank = commands.add_parser("rank", help="Show the kill rank of a player")
    rank.add_argument("name")

    top = commands.add_parser("top", help="Show the kill leaderboard")
    top.add_argument("--limit", type=int, default=10, help="Number of entries (default: 10)")

    placeholder = commands.add_parser("placeholder", help="Resolve a placeholder for a player")
    placeholder.add_argument("name")
    placeholder.add_argument("identifier", help="e.g. kills, kdr, topkills_1_name")

    join = commands.add_parser("join", help="Register a player identity")
    join.add_argument("name")
    join.add_argument("stable_id")

    death = commands.add_parser("death", help="Record a death, optionally with its killer")
    death.add_argument("victim")
    death.add_argument("--killer", default=None)

    return parser.parse_args(argv)


async def run_command(container: AppContainer, args: argparse.Namespace) -> str:
    stats = container.stats
    presenter = container.presenter

    if args.command == "stats":
        record = await stats.get_stats(args.name)
        rank = await stats.get_rank(args.name) if record else None
        return presenter.profile_text(args.name, record, rank)
    if args.command == "rank":
        return presenter.rank_text(args.name, await stats.get_rank(args.name))
    if args.command == "top":
        entries = await stats.get_leaderboard(args.limit)
        return presenter.leaderboard_text(entries, args.limit)
    if args.command == "placeholder":
        value = await container.placeholders.resolve(args.name, args.identifier)
        return value if value is not None else f"Unknown placeholder: {args.identifier}"
    if args.command == "join":
        container.listener.on_identity_observed(args.name, args.stable_id)
        await stats.drain()
        return f"Identity {args.name} ({args.stable_id}) synced."
    if args.command == "death":
        container.listener.on_death_occurred(args.victim, args.killer)
        await stats.drain()
        if args.killer:
            return f"{args.killer} killed {args.victim}."
        return f"{args.victim} died."
    raise RuntimeError(f"Unknown command: {args.command}")


async def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    config = load_app_config()
    logger.debug("Bootstrapping application")
    async with bootstrap_app(config) as container:
        print(await run_command(container, args))


def cli() -> None:
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Interrupted by user, shutting down")


if __name__ == "__main__":
    cli()
