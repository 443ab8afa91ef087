#!/usr/bin/env python3
"""Business Assistant CLI."""

import argparse
import asyncio
import logging
import sys
from config.settings import DEFAULT_DATA_PATH, Settings
from orchestrator import BusinessAssistantOrchestrator


SUPPORT_SHORTCUTS = ["weekly-classes", "order-status", "create-order"]
DASHBOARD_SHORTCUTS = ["summary", "revenue", "enrollments", "attendance", "inactive-clients"]


async def run_shortcut(orchestrator: BusinessAssistantOrchestrator, args) -> str:
    """Run one of the canned agent queries."""
    support = orchestrator.support_agent
    dashboard = orchestrator.dashboard_agent

    if args.shortcut == "weekly-classes":
        return await support.weekly_classes()
    if args.shortcut == "order-status":
        if not args.order_id:
            raise ValueError("--order-id is required for order-status")
        return await support.order_status(args.order_id)
    if args.shortcut == "create-order":
        if not args.service or not args.client_email:
            raise ValueError("--service and --client-email are required for create-order")
        return await support.create_order(args.service, args.client_email)
    if args.shortcut == "summary":
        return await dashboard.dashboard_summary()
    if args.shortcut == "revenue":
        return await dashboard.monthly_revenue()
    if args.shortcut == "enrollments":
        return await dashboard.top_enrollments()
    if args.shortcut == "attendance":
        return await dashboard.attendance_stats(args.class_name)
    if args.shortcut == "inactive-clients":
        return await dashboard.inactive_clients()
    raise ValueError(f"Unknown shortcut: {args.shortcut}")


async def run(args) -> int:
    settings = Settings(
        llm_provider=args.provider,
        data_path=args.data_path or DEFAULT_DATA_PATH,
        notifications_enabled=not args.no_notifications,
        verbose=args.verbose,
    )

    orchestrator = BusinessAssistantOrchestrator(settings=settings)
    agent = orchestrator.support_agent if args.agent == "support" else orchestrator.dashboard_agent
    await orchestrator.start()

    try:
        if args.shortcut:
            print(await run_shortcut(orchestrator, args))
            return 0

        if args.query:
            result = await agent.handle_query(args.query, args.session_id)
            print(result.response)
            print(f"\n[session: {result.session_id}]")
            return 0

        # Interactive mode
        session_id = args.session_id
        print(f"Business Assistant ({args.agent} agent). Type 'new' for a new session, 'quit' to exit.")
        while True:
            try:
                query = await asyncio.to_thread(input, "\n> ")
            except EOFError:
                break
            query = query.strip()
            if not query:
                continue
            if query.lower() in ("quit", "exit"):
                break
            if query.lower() == "new":
                session_id = orchestrator.create_session()
                print(f"[new session: {session_id}]")
                continue

            result = await agent.handle_query(query, session_id)
            session_id = result.session_id
            print(result.response)
        return 0

    finally:
        await orchestrator.shutdown()


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Business Assistant - multilingual support and dashboard agents"
    )
    parser.add_argument(
        "--agent",
        "-a",
        type=str,
        choices=["support", "dashboard"],
        default="support",
        help="Agent to talk to (default: support)"
    )
    parser.add_argument(
        "--query",
        "-q",
        type=str,
        help="Query to process (omit for interactive mode)"
    )
    parser.add_argument(
        "--session-id",
        type=str,
        help="Continue an existing session"
    )
    parser.add_argument(
        "--shortcut",
        type=str,
        choices=SUPPORT_SHORTCUTS + DASHBOARD_SHORTCUTS,
        help="Run a canned query instead of --query"
    )
    parser.add_argument("--order-id", type=str, help="Order id for the order-status shortcut")
    parser.add_argument("--service", type=str, help="Service name for the create-order shortcut")
    parser.add_argument("--client-email", type=str, help="Client email for the create-order shortcut")
    parser.add_argument("--class-name", type=str, help="Class name for the attendance shortcut")
    parser.add_argument(
        "--provider",
        type=str,
        choices=["gemini", "openai", "anthropic"],
        default=None,
        help="LLM provider (default: LLM_PROVIDER env var or gemini)"
    )
    parser.add_argument(
        "--data-path",
        type=str,
        help="Path to a YAML business data file (default: bundled sample data)"
    )
    parser.add_argument(
        "--no-notifications",
        action="store_true",
        help="Log webhook events instead of sending them"
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose output"
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    try:
        sys.exit(asyncio.run(run(args)))
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)
    except KeyboardInterrupt:
        sys.exit(130)


if __name__ == "__main__":
    main()
