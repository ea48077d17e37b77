"""Manage tonapi streaming webhooks that feed POST /webhook."""

from __future__ import annotations

import argparse
import json
import os
import re
import sys
from collections.abc import Sequence
from typing import Any

import httpx

BASE_URL = "https://rt.tonapi.io"


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments."""
    parser = argparse.ArgumentParser(
        description="Create, list and delete tonapi webhooks and their account subscriptions.",
    )
    parser.add_argument(
        "--use-query",
        action="store_true",
        help="Send the API key as ?token= instead of an Authorization header.",
    )
    parser.add_argument(
        "--base-url",
        default=BASE_URL,
        help=f"Webhook API base URL (default: {BASE_URL}).",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    create = commands.add_parser("create", help="Register a webhook endpoint.")
    create.add_argument("-e", "--endpoint", required=True, help="Public URL of POST /webhook.")

    commands.add_parser("list", help="List registered webhooks.")

    delete = commands.add_parser("delete", help="Delete a webhook.")
    delete.add_argument("-i", "--id", required=True, type=int, help="Webhook id.")

    for name, text in (
        ("subscribe", "Receive transactions of the given accounts."),
        ("unsubscribe", "Stop receiving transactions of the given accounts."),
    ):
        sub = commands.add_parser(name, help=text)
        sub.add_argument("-i", "--id", required=True, type=int, help="Webhook id.")
        sub.add_argument(
            "-a",
            "--accounts",
            required=True,
            help="Account addresses separated by commas or whitespace.",
        )
    return parser.parse_args(argv)


def split_accounts(raw: str) -> list[str]:
    """Split a comma or whitespace separated account list."""
    accounts = [part for part in re.split(r"[,\s]+", raw) if part]
    if not accounts:
        raise ValueError("account list is empty")
    return accounts


class WebhookApi:
    """Minimal client for the tonapi webhook management API."""

    def __init__(self, token: str, base_url: str = BASE_URL, use_query: bool = False) -> None:
        if not token:
            raise ValueError("TONAPI_KEY is not set")
        self.token = token
        self.use_query = use_query
        self.http = httpx.Client(base_url=base_url, timeout=10.0)

    def request(self, method: str, path: str, body: dict[str, Any] | None = None) -> Any:
        params = {"token": self.token} if self.use_query else None
        headers = {} if self.use_query else {"Authorization": f"Bearer {self.token}"}
        response = self.http.request(method, path, params=params, headers=headers, json=body)
        response.raise_for_status()
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError:
            return {"raw": response.text}

    def create(self, endpoint: str) -> Any:
        return self.request("POST", "/webhooks", {"endpoint": endpoint})

    def list(self) -> Any:
        return self.request("GET", "/webhooks")

    def delete(self, webhook_id: int) -> Any:
        return self.request("DELETE", f"/webhooks/{webhook_id}")

    def subscribe(self, webhook_id: int, accounts: Sequence[str]) -> Any:
        body = {"accounts": [{"account_id": account} for account in accounts]}
        return self.request("POST", f"/webhooks/{webhook_id}/account-tx/subscribe", body)

    def unsubscribe(self, webhook_id: int, accounts: Sequence[str]) -> Any:
        body = {"accounts": list(accounts)}
        return self.request("POST", f"/webhooks/{webhook_id}/account-tx/unsubscribe", body)


def run(args: argparse.Namespace, api: WebhookApi) -> Any:
    """Execute one parsed command and return the API response."""
    if args.command == "create":
        return api.create(args.endpoint)
    if args.command == "list":
        return api.list()
    if args.command == "delete":
        return api.delete(args.id)
    if args.command == "subscribe":
        return api.subscribe(args.id, split_accounts(args.accounts))
    if args.command == "unsubscribe":
        return api.unsubscribe(args.id, split_accounts(args.accounts))
    raise ValueError(f"unknown command {args.command}")


def main(argv: Sequence[str] | None = None) -> int:
    """CLI entry point."""
    args = parse_args(argv)
    try:
        api = WebhookApi(os.environ.get("TONAPI_KEY", ""), args.base_url, args.use_query)
        result = run(args, api)
    except httpx.HTTPStatusError as exc:
        print(f"HTTP {exc.response.status_code}: {exc.response.text}", file=sys.stderr)
        return 1
    except (httpx.HTTPError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    print(json.dumps(result, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
