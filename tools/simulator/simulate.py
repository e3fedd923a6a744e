#!/usr/bin/env python3
"""requestlens traffic simulator.

Runs a small instrumented FastAPI app in-process, drives it with simulated
clients, and lets the connector ship the captured records to a collector.

Usage:
    # Local development collector (uvicorn requestlens.main:app)
    python -m tools.simulator.simulate --collector http://localhost:8000 --developer-mode

    # Burst: 50 clients, small batches, fast timer
    python -m tools.simulator.simulate --clients 50 --requests-per-minute 120 --flush-size 10 --flush-interval-ms 500
"""

from __future__ import annotations

import argparse
import asyncio
import json
import random
import time
import uuid
from dataclasses import dataclass

import httpx
from fastapi import FastAPI, Request

from requestlens.config import ConnectorConfig, LoggingConfig
from requestlens.connector import Connector
from requestlens.logs import setup_logging

USER_AGENTS = [
    "Mozilla/5.0 (X11; Linux x86_64) Firefox/128.0",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 14_5) Safari/605.1.15",
    "curl/8.7.1",
    "python-httpx/0.27.0",
]


@dataclass
class SimClient:
    client_id: str
    user_agent: str
    requests_sent: int = 0
    errors: int = 0


def build_demo_app(connector: Connector) -> FastAPI:
    """A toy service with a few routes, instrumented with the connector."""
    demo = FastAPI(title="requestlens demo")
    demo.middleware("http")(connector.watcher())

    @demo.get("/items/{item_id}")
    async def get_item(item_id: int, verbose: bool = False) -> dict:
        await asyncio.sleep(random.uniform(0.001, 0.02))
        return {"id": item_id, "verbose": verbose}

    @demo.post("/orders")
    async def create_order(request: Request) -> dict:
        payload = await request.json()
        return {"order_id": str(uuid.uuid4()), "lines": len(payload.get("lines", []))}

    return demo


async def run_client(
    client: httpx.AsyncClient,
    sim: SimClient,
    requests_per_minute: float,
    duration_seconds: float,
) -> None:
    """Simulate a single client calling the demo app."""
    interval = 60.0 / requests_per_minute
    end_time = time.monotonic() + duration_seconds
    headers = {"user-agent": sim.user_agent, "x-client-id": sim.client_id}

    while time.monotonic() < end_time:
        roll = random.random()
        try:
            if roll < 0.6:
                resp = await client.get(
                    f"/items/{random.randint(1, 500)}",
                    params={"verbose": random.choice(["true", "false"])},
                    headers=headers,
                )
            elif roll < 0.9:
                order = {"lines": [{"sku": f"SKU-{random.randint(1, 99)}"}
                                   for _ in range(random.randint(1, 4))]}
                resp = await client.post("/orders", content=json.dumps(order),
                                         headers={**headers, "content-type": "application/json"})
            else:
                resp = await client.get("/missing", headers=headers)
            sim.requests_sent += 1
            if resp.status_code >= 500:
                sim.errors += 1
        except httpx.RequestError:
            sim.errors += 1

        await asyncio.sleep(interval)


async def run_simulation(args: argparse.Namespace) -> None:
    """Run the full simulation."""
    config = ConnectorConfig(
        service_name=args.service,
        base_url=args.collector,
        api_key=args.api_key,
        flush_interval_ms=args.flush_interval_ms,
        flush_size=args.flush_size,
        max_buffer_size=args.max_buffer_size,
        developer_mode=args.developer_mode,
    )
    connector = Connector(config)
    connector.start()

    clients = [
        SimClient(client_id=str(uuid.uuid4()), user_agent=random.choice(USER_AGENTS))
        for _ in range(args.clients)
    ]

    print(f"Starting simulation: {args.clients} clients, {args.requests_per_minute} req/min each")
    print(f"  Duration: {args.duration}s")
    print(f"  Collector: {args.collector} (developer mode: {args.developer_mode})")
    print(f"  Flush: every {args.flush_interval_ms} ms or {args.flush_size} records")
    print()

    start = time.monotonic()
    transport = httpx.ASGITransport(app=build_demo_app(connector))
    async with httpx.AsyncClient(transport=transport, base_url="http://demo.local") as client:
        await asyncio.gather(*[
            run_client(client, sim, args.requests_per_minute, args.duration)
            for sim in clients
        ])

    elapsed = time.monotonic() - start
    connector.stop(final_flush=True)

    total = sum(c.requests_sent for c in clients)
    print(f"\nSimulation complete in {elapsed:.1f}s")
    print(f"  Total requests: {total}")
    print(f"  Client errors: {sum(c.errors for c in clients)}")
    print(f"  Throughput: {total / elapsed:.1f} req/sec")

    stats = connector.stats()
    print("\nPipeline stats:")
    print(f"  Records enqueued: {stats['records_enqueued']}")
    print(f"  Records sent: {stats['records_sent']} in {stats['batches_sent']} batches")
    print(f"  Failed batches: {stats['batches_failed']}")
    print(f"  Records dropped: {stats['records_dropped']}")
    print(f"  Left in buffer: {stats['buffer_depth']}")


def main():
    parser = argparse.ArgumentParser(description="requestlens traffic simulator")
    parser.add_argument("--collector", default="http://localhost:8000", help="Collector base URL")
    parser.add_argument("--api-key", default="dev-key", help="Collector API key")
    parser.add_argument("--service", default="demo-service", help="Reported service name")
    parser.add_argument("--clients", type=int, default=5, help="Number of simulated clients")
    parser.add_argument("--duration", type=int, default=30, help="Simulation duration in seconds")
    parser.add_argument("--requests-per-minute", type=float, default=60,
                        help="Requests per minute per client")
    parser.add_argument("--flush-interval-ms", type=int, default=5000)
    parser.add_argument("--flush-size", type=int, default=50)
    parser.add_argument("--max-buffer-size", type=int, default=1000)
    parser.add_argument("--developer-mode", action="store_true",
                        help="Use the collector URL verbatim and print diagnostics")
    parser.add_argument("--log-level", default="info")

    args = parser.parse_args()
    setup_logging(LoggingConfig(level=args.log_level))

    asyncio.run(run_simulation(args))


if __name__ == "__main__":
    main()
