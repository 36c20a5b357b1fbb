"""Execute a stored workflow from the command line.

Run: python -m scripts.execute_workflow <workflow-id> [user-id]
"""

import argparse
import asyncio
import json
import os
import sys
import time

# Ensure project root is in path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


async def run(workflow_id: str, user_id: str, trigger_data: dict) -> int:
    """Execute one workflow and print the outcome. Returns the exit code."""
    from core.logging_config import setup_logging
    from db.database import close_db, init_db
    from workflow.executor import execute_workflow

    setup_logging()
    await init_db()

    print(f"[execute] Executing workflow {workflow_id}...")
    start = time.monotonic()
    try:
        result = await execute_workflow(workflow_id, user_id, "manual", trigger_data)
    finally:
        await close_db()
    duration_ms = int((time.monotonic() - start) * 1000)

    if result.success:
        print("[execute] Workflow executed successfully")
        print(f"[execute] Duration: {duration_ms}ms (run {result.run_id})")
        print(json.dumps(result.output, indent=2, default=str))
        return 0

    print("[execute] Workflow execution failed", file=sys.stderr)
    print(f"[execute] Error: {result.error}", file=sys.stderr)
    if result.error_step:
        print(f"[execute] Failed at step: {result.error_step}", file=sys.stderr)
    return 1


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Execute a stored workflow by id")
    parser.add_argument("workflow_id", help="Workflow to execute")
    parser.add_argument("user_id", nargs="?", default="1", help="User whose credentials to use (default: 1)")
    parser.add_argument(
        "--trigger-data",
        default="{}",
        help="Trigger payload as a JSON object, exposed as {{trigger.*}}",
    )
    args = parser.parse_args(argv)

    try:
        trigger_data = json.loads(args.trigger_data)
    except json.JSONDecodeError as e:
        parser.error(f"--trigger-data is not valid JSON: {e}")
    if not isinstance(trigger_data, dict):
        parser.error("--trigger-data must be a JSON object")

    return asyncio.run(run(args.workflow_id, args.user_id, trigger_data))


if __name__ == "__main__":
    sys.exit(main())
