"""
Fire concurrent checkouts at a running server and check nothing oversold.

Each worker is a distinct user: it fills its cart with --qty units of
--product and places an order at the same moment as the others. The sum
of units in successful orders must never exceed the stock seen before
the run.

    python tools/concurrency_checkout.py --product P1 --qty 4 --workers 2
"""
import argparse
import concurrent.futures
import os
import threading

import requests

BASE = os.environ.get("SHOPCORE_BASE", "http://127.0.0.1:8000")


def checkout_task(i, product_id, qty, barrier, direct):
    headers = {"X-User-Id": f"load-user-{i}"}
    try:
        if direct:
            barrier.wait()
            r = requests.post(
                f"{BASE}/api/orders/direct",
                json={"items": [{"productId": product_id, "quantity": qty}]},
                headers=headers,
                timeout=20,
            )
        else:
            requests.delete(f"{BASE}/api/cart", headers=headers, timeout=10)
            requests.post(
                f"{BASE}/api/cart/items",
                json={"productId": product_id, "quantity": qty},
                headers=headers,
                timeout=10,
            )
            barrier.wait()
            r = requests.post(f"{BASE}/api/orders", headers=headers, timeout=20)
        return (i, r.status_code, r.json())
    except requests.RequestException as e:
        return (i, "ERR", str(e))


def stock_of(product_id):
    r = requests.get(f"{BASE}/api/inventory/{product_id}", timeout=10)
    r.raise_for_status()
    return r.json()["stockQuantity"]


def run(workers, product_id, qty, direct):
    before = stock_of(product_id)
    print(f"stock before: {before}; workers={workers} qty={qty} direct={direct}")
    barrier = threading.Barrier(workers)
    with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as ex:
        futures = [
            ex.submit(checkout_task, i, product_id, qty, barrier, direct)
            for i in range(workers)
        ]
        results = [f.result() for f in futures]
    for r in results:
        print(r)
    sold = sum(qty for r in results if r[1] == 201)
    after = stock_of(product_id)
    print(f"successful orders: {sold // qty if qty else 0}, units sold: {sold}, stock after: {after}")
    if sold > before or after != before - sold:
        print("INVARIANT VIOLATED")
        raise SystemExit(1)
    print("ok: no oversell")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Concurrent checkout load test.")
    parser.add_argument("--product", default="P1")
    parser.add_argument("--qty", type=int, default=1)
    parser.add_argument("--workers", type=int, default=8)
    parser.add_argument("--direct", action="store_true", help="use POST /api/orders/direct")
    args = parser.parse_args()
    run(args.workers, args.product, args.qty, args.direct)
