#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Home Security Assistant — Dev Console Chat Client (/api/chat)
-------------------------------------------------------------
Interactive console tool for talking to the assistant server over HTTP.

Features:
- Simple REPL: you type, the assistant answers.
- Sends {"message": "..."} to POST /api/chat.
- Prints {"response": "..."} or the server's {"error": "..."}.

The server keys conversations by the caller's address, so every message
sent from this console continues the same conversation.
"""

from __future__ import annotations

import argparse
import sys
from typing import Any, Dict

import requests

DEFAULT_SERVER = "http://127.0.0.1:3000/api/chat"


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Home Security Assistant — Dev Console Chat Client (/api/chat)",
    )
    parser.add_argument(
        "--server",
        type=str,
        default=DEFAULT_SERVER,
        help=f"Chat endpoint URL (default: {DEFAULT_SERVER})",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=60.0,
        help="HTTP timeout in seconds (default: 60).",
    )
    return parser.parse_args()


def send_message(
    http: requests.Session,
    server: str,
    text: str,
    timeout: float,
) -> Dict[str, Any]:
    """POST one message and return the decoded JSON body (success or error)."""
    resp = http.post(server, json={"message": text}, timeout=timeout)
    try:
        data = resp.json()
    except ValueError:
        return {"error": f"HTTP {resp.status_code}: {resp.text[:200]}"}
    if not isinstance(data, dict):
        return {"error": f"HTTP {resp.status_code}: unexpected body {data!r}"}
    return data


def run_repl(args: argparse.Namespace) -> None:
    print("Type a message and press Enter. Type /quit to exit.\n")
    print(f"[client] server : {args.server}\n")

    with requests.Session() as http:
        while True:
            try:
                text = input("You: ").strip()
            except (EOFError, KeyboardInterrupt):
                print("\nBye.")
                return

            if not text:
                continue
            if text.lower() in {"/quit", "/exit"}:
                print("Bye.")
                return

            try:
                data = send_message(http, args.server, text, args.timeout)
            except requests.RequestException as exc:
                print(f"Connection error: {exc}\n")
                continue

            if "error" in data:
                print(f"Server error: {data['error']}\n")
            else:
                print(f"\nAssistant: {data.get('response')}\n")


def main() -> None:
    args = parse_args()
    try:
        run_repl(args)
    except KeyboardInterrupt:
        print("\nBye.")
        sys.exit(0)


if __name__ == "__main__":
    main()
