#!/usr/bin/env python3
"""
Seed script — creates a small dataset for trying out the take feed.

Creates:
  • 8 users (each gets an access token on registration)
  • 2 takes per user
  • Some likes across takes

Takes can only be posted on Thursdays (US Eastern or Pacific) unless the API
runs with POSTING_GATE_OVERRIDE=true; on other days the take step reports the
refusal and the script stops after creating users.

Run after the API is up:
  python scripts/seed_data.py --api-url http://localhost:8000
"""
import argparse
import json
import random
import time
import urllib.request
import urllib.error
from dataclasses import dataclass, field
from typing import Optional


BASE_USERS = [
    ("SpicyPenguin", "Alice Chen"),
    ("CuddlyTiger", "Bob Martinez"),
    ("VolatileSalmon", "Carol Singh"),
    ("SweetPlatypus", "Dave Kim"),
    ("TakenWolverine", "Eve Johnson"),
    ("EcstaticDolphin", "Frank Williams"),
    ("FerociousCat", "Grace Li"),
    ("PerniciousDog", "Henry Brown"),
]

SAMPLE_TAKES = [
    "Cereal is a soup and I will not be taking questions.",
    "Tabs are better than spaces. Fight me.",
    "Pineapple on pizza is the only correct pizza.",
    "Thursday is the real start of the weekend.",
    "Hot dogs are sandwiches. Tacos are also sandwiches.",
    "The best seat on a plane is the aisle, not the window.",
    "Breakfast for dinner beats dinner for dinner.",
    "Cats are just small, judgemental dogs.",
    "Water is not wet. Things in water are wet.",
    "Dark mode is overrated.",
    "Mondays are fine. It's Wednesdays you need to watch.",
    "The sequel was better than the original.",
    "Reply-all should require a confirmation dialog.",
    "Standing desks are just desks with extra steps.",
    "Leftover pizza is better cold.",
    "Socks with sandals is peak comfort.",
]


@dataclass
class ApiClient:
    base_url: str
    token: Optional[str] = None
    headers: dict = field(default_factory=lambda: {"Content-Type": "application/json"})

    def _send(self, method: str, path: str, data: Optional[dict] = None) -> tuple[int, dict]:
        url = f"{self.base_url}{path}"
        headers = dict(self.headers)
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        body = json.dumps(data).encode() if data is not None else None
        req = urllib.request.Request(url, data=body, headers=headers, method=method)
        try:
            with urllib.request.urlopen(req, timeout=10) as resp:
                raw = resp.read()
                return resp.status, json.loads(raw) if raw else {}
        except urllib.error.HTTPError as e:
            raw = e.read().decode()
            print(f"  HTTP {e.code} on {method} {path}: {raw}")
            try:
                return e.code, json.loads(raw)
            except ValueError:
                return e.code, {}

    def post(self, path: str, data: Optional[dict] = None) -> tuple[int, dict]:
        return self._send("POST", path, data if data is not None else {})

    def get(self, path: str) -> tuple[int, dict]:
        return self._send("GET", path)

    def as_user(self, token: str) -> "ApiClient":
        return ApiClient(self.base_url, token=token)


def wait_for_api(client: ApiClient, retries: int = 15) -> None:
    print(f"Waiting for API at {client.base_url} ...")
    for i in range(retries):
        try:
            _, result = client.get("/health")
            if result.get("status") == "ok":
                print("  API is ready!\n")
                return
        except Exception:
            pass
        time.sleep(3)
    raise RuntimeError(f"API not reachable at {client.base_url} after {retries} retries")


def main(api_url: str) -> None:
    client = ApiClient(api_url)
    wait_for_api(client)

    # ── Create users ─────────────────────────────────────────────────────
    print("Creating users...")
    sessions: list[ApiClient] = []
    for username, full_name in BASE_USERS:
        status, result = client.post("/users/", {"username": username, "full_name": full_name})
        if status == 201:
            sessions.append(client.as_user(result["access_token"]))
            print(f"  ✓ {username} ({result['user']['user_id']})")
        else:
            print(f"  ✗ Failed to create {username}")

    if not sessions:
        print("No users created — aborting")
        return

    # ── Create takes ─────────────────────────────────────────────────────
    print("\nPosting takes...")
    take_ids: list[int] = []
    takes = random.sample(SAMPLE_TAKES, k=len(SAMPLE_TAKES))
    for idx, session in enumerate(sessions):
        for contents in takes[idx * 2: idx * 2 + 2]:
            status, result = session.post("/takes/", {"contents": contents})
            if status == 403 and result.get("error") == "gate_closed":
                print(f"  ✗ {result['detail']}")
                print("    Restart the API with POSTING_GATE_OVERRIDE=true to seed on other days.")
                return
            if status == 201:
                take_ids.append(result["id"])
    print(f"  ✓ {len(take_ids)} takes posted")

    # ── Create some likes ─────────────────────────────────────────────────
    print("\nAdding likes...")
    likes = 0
    for take_id in take_ids:
        # Each take gets 0-5 random likes
        for session in random.sample(sessions, k=random.randint(0, min(5, len(sessions)))):
            status, _ = session.post(f"/takes/{take_id}/like")
            if status == 200:
                likes += 1
    print(f"  ✓ {likes} likes added")

    # ── Print summary ─────────────────────────────────────────────────────
    print("\n" + "=" * 60)
    print("Seed complete! Here are some commands to try:\n")
    print("# Today's feed:")
    print(f"  curl -s '{api_url}/feed/today' | python3 -m json.tool\n")
    print("# Post a take (use a token printed by POST /users/):")
    print(f"  curl -s -X POST '{api_url}/takes/' \\")
    print("    -H 'Content-Type: application/json' \\")
    print("    -H 'Authorization: Bearer <token>' \\")
    print("    -d '{\"contents\": \"Hello world!\"}' | python3 -m json.tool\n")
    print(f"# Watch the live feed: connect a WebSocket client to {api_url.replace('http', 'ws')}/feed/live")
    print("=" * 60)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed the Hot Take feed")
    parser.add_argument("--api-url", default="http://localhost:8000", help="API base URL")
    args = parser.parse_args()
    main(args.api_url)
