"""
Load test for the friendship flow.
Signs up pairs of users and has both sides of every pair send a friend
request at the same moment, then checks each pair ended up as friends.
"""

import asyncio
import time
import aiohttp

# -----------------------------
# CONFIG
# -----------------------------
BASE_URL = "http://127.0.0.1:5000"

# Pairs of users racing reciprocal requests
NUM_PAIRS = 200

# How many pairs run simultaneously
MAX_CONCURRENT = 50


# -----------------------------
# Load test functions
# -----------------------------
async def signup(session, name):
    async with session.post(f"{BASE_URL}/api/profiles", json={"name": name}) as resp:
        body = await resp.json()
        if resp.status != 201:
            raise RuntimeError(f"signup failed [{resp.status}] {body}")
        return body["profile"]["id"]


async def send_request(session, other_id):
    try:
        async with session.post(f"{BASE_URL}/api/friends/{other_id}/request") as resp:
            text = await resp.text()
            if resp.status != 200:
                print(f"[ERROR {resp.status}] request -> {other_id} :: {text[:200]}")
            return resp.status
    except aiohttp.ClientError as e:
        print(f"[EXCEPTION] {e} :: request -> {other_id}")
        return None


async def status_of(session, other_id):
    async with session.get(f"{BASE_URL}/api/friends/{other_id}/status") as resp:
        return (await resp.json()).get("status")


async def run_pair(n, semaphore):
    async with semaphore:
        # One cookie jar per user; unsafe=True so cookies stick on an IP host
        async with aiohttp.ClientSession(cookie_jar=aiohttp.CookieJar(unsafe=True)) as a, \
                aiohttp.ClientSession(cookie_jar=aiohttp.CookieJar(unsafe=True)) as b:
            a_id = await signup(a, f"Load A{n}")
            b_id = await signup(b, f"Load B{n}")

            await asyncio.gather(send_request(a, b_id), send_request(b, a_id))

            statuses = await asyncio.gather(status_of(a, b_id), status_of(b, a_id))
            if statuses != ["accepted", "accepted"]:
                print(f"[MISMATCH] pair {n}: {statuses}")
                return False
            return True


async def main():
    semaphore = asyncio.Semaphore(MAX_CONCURRENT)

    print(f"Racing {NUM_PAIRS} reciprocal request pairs with concurrency {MAX_CONCURRENT}...")
    start = time.time()
    results = await asyncio.gather(*(run_pair(n, semaphore) for n in range(NUM_PAIRS)))
    end = time.time()

    print(f"Completed in {end - start:.2f} seconds")
    print(f"{sum(results)}/{NUM_PAIRS} pairs converged to accepted")


if __name__ == "__main__":
    asyncio.run(main())
