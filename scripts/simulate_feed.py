"""Simulate a busy venue against a running Proxy Match server.

Registers a crowd of synthetic users scattered around a venue, has each of
them pull a discovery feed and send interest to their top candidates, then
lets the recipients answer after a short random delay (about 70% accept).

Usage: python -m scripts.simulate_feed [--count 30] [--base-url http://localhost:8000]
"""
import argparse
import asyncio
import random
import statistics
import sys
import time
from typing import Any

import httpx


DEFAULT_BASE_URL = "http://localhost:8000"
DEFAULT_COUNT = 30

VENUE = {
    "latitude": 40.7484,
    "longitude": -73.9857,
    "venue_id": "The Rooftop Bar",
    "neighborhood_id": "Chelsea",
    "city_id": "New York City",
}

ACCEPT_PROBABILITY = 0.7
RESPONSE_DELAY_SECONDS = (2.0, 5.0)

FIRST_NAMES = [
    "Alex", "Jordan", "Riley", "Taylor", "Morgan", "Casey", "Quinn", "Avery",
    "Jamie", "Drew", "Skyler", "Reese", "Parker", "Rowan", "Sage", "Emery",
]

BIO_FRAGMENTS = [
    "Music lover.", "Coffee enthusiast.", "Always down for spontaneous adventures.",
    "Photographer by day, DJ by night.", "Tech nerd who loves dancing.",
    "Yoga instructor.", "Sunset chaser.", "Foodie and karaoke regular.",
    "Vinyl collector.", "Night owl.", "Startup founder who loves hiking.",
    "Architect who sketches museums.", "Stand-up comedy fan.", "Wine and board games.",
]


def random_bio() -> str:
    return " ".join(random.sample(BIO_FRAGMENTS, 3))


def jitter(value: float, spread: float = 0.0008) -> float:
    """Scatter a coordinate within roughly 90 m of the venue."""
    return value + random.uniform(-spread, spread)


async def register_user(client: httpx.AsyncClient, base_url: str, index: int) -> str | None:
    user_id = f"sim_{index:03d}"
    profile = {
        "name": f"{random.choice(FIRST_NAMES)} {index}",
        "age": random.randint(21, 40),
        "bio": random_bio(),
    }
    position = {
        **VENUE,
        "latitude": jitter(VENUE["latitude"]),
        "longitude": jitter(VENUE["longitude"]),
    }
    try:
        resp = await client.put(f"{base_url}/api/v1/profiles/{user_id}", json=profile)
        if resp.status_code != 200:
            print(f"  [WARN] Profile {user_id}: status {resp.status_code}")
            return None
        resp = await client.put(f"{base_url}/api/v1/positions/{user_id}", json=position)
        if resp.status_code != 200:
            print(f"  [WARN] Position {user_id}: status {resp.status_code}")
            return None
        return user_id
    except httpx.HTTPError as e:
        print(f"  [ERROR] {user_id}: {e}")
        return None


async def respond_later(
    client: httpx.AsyncClient,
    base_url: str,
    connection_id: str,
    results: dict[str, Any],
) -> None:
    """Answer a pending request the way a person on the other phone would."""
    await asyncio.sleep(random.uniform(*RESPONSE_DELAY_SECONDS))
    outcome = "accepted" if random.random() < ACCEPT_PROBABILITY else "declined"
    try:
        resp = await client.post(
            f"{base_url}/api/v1/connections/{connection_id}/resolve",
            json={"outcome": outcome},
        )
    except httpx.HTTPError as e:
        results["errors"].append(f"Resolve {connection_id[:8]}: {e}")
        return
    if resp.status_code == 200:
        results[outcome] += 1
    elif resp.status_code == 409:
        results["already_resolved"] += 1
    else:
        results["errors"].append(f"Resolve {connection_id[:8]}: status {resp.status_code}")


async def run_simulation(base_url: str, count: int, per_user: int) -> dict[str, Any]:
    print(f"\n{'='*60}")
    print(f"Proxy Match feed simulation: {count} users at {VENUE['venue_id']}")
    print(f"Target: {base_url}")
    print(f"{'='*60}\n")

    results: dict[str, Any] = {
        "total": count,
        "registered": 0,
        "requests_sent": 0,
        "instant_matches": 0,
        "conflicts": 0,
        "accepted": 0,
        "declined": 0,
        "already_resolved": 0,
        "errors": [],
        "timings": {"discovery": [], "send_interest": []},
    }

    async with httpx.AsyncClient(timeout=30.0) as client:
        print(f"[1/3] Registering {count} users...")
        user_ids = [
            uid
            for uid in await asyncio.gather(
                *(register_user(client, base_url, i) for i in range(count))
            )
            if uid is not None
        ]
        results["registered"] = len(user_ids)
        print(f"  -> {len(user_ids)} users active\n")

        print(f"[2/3] Pulling feeds and sending interest (top {per_user} each)...")
        pending_responses: list[asyncio.Task] = []
        for i, uid in enumerate(user_ids):
            t0 = time.monotonic()
            resp = await client.post(
                f"{base_url}/api/v1/discovery/{uid}", json={"level": "neighborhood"}
            )
            results["timings"]["discovery"].append(time.monotonic() - t0)
            if resp.status_code != 200:
                results["errors"].append(f"Discovery {uid}: status {resp.status_code}")
                continue

            for item in resp.json()["items"][:per_user]:
                t0 = time.monotonic()
                sent = await client.post(
                    f"{base_url}/api/v1/connections/",
                    json={"from_user_id": uid, "to_user_id": item["user_id"]},
                )
                results["timings"]["send_interest"].append(time.monotonic() - t0)
                if sent.status_code == 201:
                    body = sent.json()
                    results["requests_sent"] += 1
                    if body["status"] == "accepted":
                        results["instant_matches"] += 1
                    else:
                        pending_responses.append(
                            asyncio.create_task(
                                respond_later(client, base_url, body["id"], results)
                            )
                        )
                elif sent.status_code in (409, 429):
                    results["conflicts"] += 1
                else:
                    results["errors"].append(
                        f"Interest {uid}->{item['user_id']}: status {sent.status_code}"
                    )
            if (i + 1) % 10 == 0:
                print(f"  Processed {i + 1}/{len(user_ids)} users")

        print(f"\n[3/3] Waiting for {len(pending_responses)} responses...")
        await asyncio.gather(*pending_responses)

    print(f"\n{'='*60}")
    print("SIMULATION RESULTS")
    print(f"{'='*60}")
    print(f"Users registered: {results['registered']}/{count}")
    print(f"Requests sent:    {results['requests_sent']}")
    print(f"Instant matches:  {results['instant_matches']}")
    print(f"Accepted:         {results['accepted']}")
    print(f"Declined:         {results['declined']}")
    print(f"Conflicts:        {results['conflicts']}")

    for phase, timings in results["timings"].items():
        if timings:
            print(f"\n{phase} latency:")
            print(f"  mean:   {statistics.mean(timings) * 1000:.1f}ms")
            print(f"  median: {statistics.median(timings) * 1000:.1f}ms")
            print(f"  p95:    {sorted(timings)[int(len(timings)*0.95)] * 1000:.1f}ms")
            print(f"  max:    {max(timings) * 1000:.1f}ms")

    if results["errors"]:
        print(f"\nErrors ({len(results['errors'])}):")
        for e in results["errors"][:10]:
            print(f"  - {e}")

    print(f"\n{'='*60}\n")
    return results


def main():
    parser = argparse.ArgumentParser(description="Proxy Match feed simulation")
    parser.add_argument("--count", type=int, default=DEFAULT_COUNT, help="Number of users to register")
    parser.add_argument("--per-user", type=int, default=3, help="Interest requests per user")
    parser.add_argument("--base-url", type=str, default=DEFAULT_BASE_URL, help="API base URL")
    args = parser.parse_args()

    results = asyncio.run(run_simulation(args.base_url, args.count, args.per_user))

    if results["errors"]:
        print(f"FAIL: {len(results['errors'])} unexpected errors")
        sys.exit(1)
    print("PASS: no unexpected errors")


if __name__ == "__main__":
    main()
