"""Sample task graph for the taskweave CLI.

This file can be run with:
    taskweave run examples/sample_pipeline.py

Or in dry-run mode:
    taskweave run examples/sample_pipeline.py --dry-run
"""

import asyncio
import random

from taskweave import DependExecutionMode, Task, TaskManager


async def fetch(token, source):
    await asyncio.sleep(0.1)
    return [f"{source}-{i}" for i in range(3)]


def flaky_enrich(token, rows):
    # Sync workers run on a thread; check the token between units of work
    token.check()
    if random.random() < 0.5:
        raise ConnectionError("enrichment service unavailable")
    return [row.upper() for row in rows]


async def merge(token, _):
    return "merged"


manager = TaskManager(max_concurrency=2)

users = Task("fetch-users", fetch, input="user", priority=10)
orders = Task("fetch-orders", fetch, input="order", priority=5)
enrich = Task(
    "enrich",
    flaky_enrich,
    input=["a", "b"],
    max_retries=3,
    retry_interval=0.2,
    retry_backoff=2.0,
).add_dependency(users)
report = Task(
    "report",
    merge,
    depend_execution_mode=DependExecutionMode.SEQUENTIAL,
    success_callback=lambda result: result.upper(),
).depends_on(enrich, orders)

manager.add_task(users).add_task(orders).add_task(enrich).add_task(report)
