"""Local demo agent speaking the Codex ``--json`` output contract."""

from __future__ import annotations

import argparse
import json
import re
import sys
import time
from pathlib import Path
from urllib.parse import unquote, urlparse

USER_QUERY_HEADER = "[[ ## user_query ## ]]"
_FILE_BULLET = re.compile(r"^\* \[(?P<name>[^\]]+)\]\((?P<uri>file://[^)]+)\)")


def main(argv: list[str] | None = None) -> int:
    """Answer the prompt read from stdin with a deterministic assistant message."""

    parser = argparse.ArgumentParser()
    parser.add_argument("--quiet", action="store_true")
    parser.add_argument("--json", action="store_true")
    parser.add_argument("--profile", default=None)
    parser.add_argument("--model", default=None)
    parser.add_argument("--approval-preset", default=None)
    parser.add_argument("--sleep-seconds", type=float, default=0.0)
    args = parser.parse_args(argv)

    prompt = sys.stdin.read()
    if args.sleep_seconds > 0:
        time.sleep(args.sleep_seconds)

    names: list[str] = []
    for line in prompt.splitlines():
        match = _FILE_BULLET.match(line.strip())
        if match is None:
            continue
        file_path = _uri_to_path(match.group("uri"))
        if not file_path.exists():
            answer = f"ERROR: missing-file {match.group('name')}"
            break
        names.append(match.group("name"))
    else:
        summary = (
            f"Attachments detected ({len(names)}): {', '.join(names)}."
            if names
            else "No attachments received."
        )
        answer = f"{summary}\nQuery: {_user_query(prompt)}"

    payload = {
        "messages": [
            {"role": "user", "content": prompt},
            {"role": "assistant", "content": [{"type": "text", "text": answer}]},
        ],
        "metadata": {"backend": "echo_agent", "model": args.model, "profile": args.profile},
    }
    print(json.dumps(payload, ensure_ascii=False))
    return 0


def _user_query(prompt: str) -> str:
    _, _, query = prompt.partition(USER_QUERY_HEADER)
    return query.strip()


def _uri_to_path(uri: str) -> Path:
    path = unquote(urlparse(uri).path)
    if re.match(r"^/[a-zA-Z]:/", path):
        path = path[1:]
    return Path(path)


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
