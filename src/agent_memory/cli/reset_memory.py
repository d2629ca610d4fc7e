#!/usr/bin/env python3
"""
CLI tool for wiping an agent's memory.

Usage:
    python -m agent_memory.cli.reset_memory --agent-id AGENT [options]

Examples:
    # Show how many records would be removed, then ask before deleting
    python -m agent_memory.cli.reset_memory --agent-id planner

    # Delete without the confirmation prompt
    python -m agent_memory.cli.reset_memory --agent-id planner --yes

    # Use a different configuration file
    python -m agent_memory.cli.reset_memory --agent-id planner --config config/prod.yaml
"""

import argparse
import asyncio
import logging
import sys

from agent_memory.config_loader import load_config
from agent_memory.log_config import configure_logging
from agent_memory.memory_system import AgentMemorySystem

logger = logging.getLogger(__name__)


async def reset_agent_memory(agent_id: str, config_path: str, assume_yes: bool) -> int:
    """Clear the agent's namespace; returns the number of deleted records, or -1 if declined."""
    config = load_config(config_path)
    memory_system = AgentMemorySystem(config)
    await memory_system.initialize()
    try:
        memory = memory_system.for_agent(agent_id)
        pending = await memory.count()

        print(f"\n🧹 AGENT MEMORY RESET")
        print(f"═════════════════════")
        print(f"Agent: {agent_id}")
        print(f"Namespace: {memory.namespace}")
        print(f"Records stored: {pending}")

        if pending == 0:
            print("✅ Nothing to delete")
            return 0

        if not assume_yes:
            answer = input(f"\nDelete all {pending} records? This cannot be undone [y/N]: ")
            if answer.strip().lower() not in ("y", "yes"):
                print("Aborted, memory left unchanged")
                return -1

        deleted = await memory.clear()
        print(f"\n✅ Deleted {deleted} records")
        return deleted
    finally:
        await memory_system.close()


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Delete every memory record of one agent",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    parser.add_argument(
        '--agent-id',
        required=True,
        help='Agent whose memory namespace is cleared'
    )

    parser.add_argument(
        '--config',
        default='config/base.yaml',
        help='Path to the YAML configuration file (default: config/base.yaml)'
    )

    parser.add_argument(
        '--yes',
        action='store_true',
        help='Skip the confirmation prompt'
    )

    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Enable verbose logging'
    )

    args = parser.parse_args()

    configure_logging(logging.DEBUG if args.verbose else logging.WARNING)

    if not args.agent_id.strip():
        print("Error: agent-id must not be empty")
        sys.exit(1)

    try:
        deleted = asyncio.run(reset_agent_memory(args.agent_id, args.config, args.yes))
        sys.exit(1 if deleted < 0 else 0)
    except KeyboardInterrupt:
        print("\n⏹️  Reset interrupted by user")
        sys.exit(130)
    except Exception as e:
        logger.error(f"Memory reset failed: {e}")
        print(f"\n❌ Reset failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
