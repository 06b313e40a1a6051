from balancer import Balancer
from scorelb.config import load_config
from aiohttp import web
import argparse
import asyncio
import logging


def setup_logging(log_level: str, log_file: str | None):
    level = getattr(logging, log_level.upper())
    handlers = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(message)s",
        handlers=handlers,
    )
    return logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument(
        "--config", required=True, help="JSON file with nodes and options"
    )
    parser.add_argument(
        "--interval", type=float, default=5.0, help="Seconds between refresh passes"
    )
    parser.add_argument("--port", type=int, default=8080)
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    parser.add_argument(
        "--log-file", default=None, help="Optional file path for logging"
    )
    args, _ = parser.parse_known_args()

    logger = setup_logging(args.log_level, args.log_file)
    nodes, options = load_config(args.config)
    balancer = Balancer(nodes, options)
    asyncio.run(run_app(balancer, args.port, args.interval, logger))


def build_app(balancer: Balancer) -> web.Application:
    async def optimal_node(request):
        only_available = request.query.get("only_available", "true").lower() != "false"
        node = await balancer.select_optimal(only_available)
        if node is None:
            return web.json_response({"error": "no node available"}, status=503)
        return web.json_response(
            {
                "endpoint": node.endpoint,
                "score": node.score(),
                "last_status": node.last_status,
            }
        )

    async def list_nodes(request):
        return web.json_response(await balancer.show())

    async def refresh(request):
        await balancer.refresh_once()
        return web.json_response({"status": "refreshed"})

    async def metrics_handler(request):
        accept = request.headers.get("Accept", "")
        if "application/json" in accept:
            return web.json_response(await balancer.stats.snapshot())
        return web.Response(
            text=await balancer.stats.export_prometheus(), content_type="text/plain"
        )

    app = web.Application()
    app.router.add_get("/_control/optimal", optimal_node)
    app.router.add_get("/_control/list", list_nodes)
    app.router.add_post("/_control/refresh", refresh)
    app.router.add_get("/metrics", metrics_handler)
    return app


async def run_app(balancer: Balancer, port: int, interval: float, logger):
    shutdown_event = asyncio.Event()
    runner = None

    try:
        await balancer.start_watch(interval)

        runner = web.AppRunner(build_app(balancer))
        await runner.setup()
        site = web.TCPSite(runner, "127.0.0.1", port)
        await site.start()
        logger.info(f"Node selector running on http://127.0.0.1:{port}")

        await shutdown_event.wait()

    finally:
        shutdown_event.set()
        await balancer.stop_watch()
        if runner:
            await runner.cleanup()


if __name__ == "__main__":
    main()
